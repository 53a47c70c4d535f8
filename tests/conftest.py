"""
Shared test fixtures and configuration for entire test suite.

Provides: Fake clock, recording sleep, artifact store on tmp_path, settings factories
Dependencies: pytest, pytest-asyncio
System role: Test infrastructure and fixture management
"""

import uuid
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from doc_optimizer.boundary.storage import LocalArtifactStore
from doc_optimizer.configs.pipeline import TimeoutSettings
from doc_optimizer.configs.upload import DOCX_MIME_TYPE, UploadSettings
from doc_optimizer.core.optimization.models import UploadArtifact
from tests.helpers import FakeClock, RecordingSleep


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def timeout_settings() -> TimeoutSettings:
    return TimeoutSettings(cold_start_seconds=300, base_seconds=45, per_char_seconds=0.005, max_seconds=120)


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "uploads"
    directory.mkdir()
    return directory


@pytest.fixture
def artifact_store(upload_dir: Path) -> LocalArtifactStore:
    return LocalArtifactStore(upload_dir)


@pytest.fixture
def upload_settings(upload_dir: Path) -> UploadSettings:
    return UploadSettings(
        max_file_size=1024,
        envelope_allowance=512,
        allowed_mime_types=["text/plain", DOCX_MIME_TYPE],
        allowed_extensions=[".txt", ".docx"],
        upload_dir=upload_dir,
        upload_timeout_seconds=5,
    )


@pytest.fixture
def make_artifact(upload_dir: Path):
    """Write a file into the upload dir and return its UploadArtifact."""

    def _make(content: bytes = b"Some text.", filename: str = "resume.txt", mime_type: str = "text/plain"):
        path = upload_dir / f"{uuid.uuid4().hex}-{filename}"
        path.write_bytes(content)
        return UploadArtifact(path=path, original_filename=filename, mime_type=mime_type, size=len(content))

    return _make


@pytest.fixture
def mock_probe_client() -> AsyncMock:
    client = AsyncMock()
    client.ping = AsyncMock(return_value=True)
    client.model_available = AsyncMock(return_value=True)
    return client
