"""
Upload ingestion utilities.

Streams a multipart/form-data request body into the artifact store while
enforcing content type, size ceiling, and file type allow-lists. The body is
never buffered in memory as a whole.

Dependencies: python-multipart, starlette, doc_optimizer.boundary.storage
System role: Ingestion validator between the HTTP surface and the pipeline
"""

import asyncio
import logging
from contextlib import AsyncExitStack
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import AsyncIterator, Awaitable, Callable, TypeVar

from python_multipart.multipart import MultipartParser, parse_options_header
from python_multipart.exceptions import MultipartParseError
from starlette.requests import ClientDisconnect

from doc_optimizer.boundary.storage import ArtifactWriter, LocalArtifactStore
from doc_optimizer.configs.upload import UploadSettings
from doc_optimizer.core.exceptions import (
    FileTooLargeError,
    InvalidContentTypeError,
    InvalidFileTypeError,
    NoFileError,
    UploadStreamError,
)
from doc_optimizer.core.optimization.models import UploadArtifact

logger = logging.getLogger(__name__)

T = TypeVar("T")

OCTET_STREAM = "application/octet-stream"


class _PartEvent(Enum):
    PART_BEGIN = 1
    PART_DATA = 2
    PART_END = 3
    HEADER_FIELD = 4
    HEADER_VALUE = 5
    HEADER_END = 6
    HEADERS_FINISHED = 7
    END = 8


@dataclass
class _UploadState:
    """Mutable progress of one multipart body."""

    header_field: bytes = b""
    header_value: bytes = b""
    headers: list[tuple[bytes, bytes]] = field(default_factory=list)
    in_file_part: bool = False
    file_complete: bool = False
    ended: bool = False
    body_bytes: int = 0
    filename: str | None = None
    mime_type: str | None = None
    path: Path | None = None
    writer: ArtifactWriter | None = None
    file_stack: AsyncExitStack | None = None


class IngestionValidator:
    """
    Accept exactly one uploaded file per request.

    On success the returned UploadArtifact is owned by the caller. On any
    failure the partial artifact is deleted before the error propagates.
    """

    def __init__(self, store: LocalArtifactStore, settings: UploadSettings) -> None:
        """
        Initialize validator.

        Args:
            store: Artifact store receiving the file bytes
            settings: Size ceiling, allow-lists, and upload timeout
        """
        self._store = store
        self._settings = settings
        self._allowed_extensions = {ext.lower() for ext in settings.allowed_extensions}
        self._allowed_mime_types = {mime.lower() for mime in settings.allowed_mime_types}

    @property
    def body_limit(self) -> int:
        """Largest request body accepted, multipart framing included."""
        return self._settings.max_file_size + self._settings.envelope_allowance

    async def ingest(
        self,
        stream: AsyncIterator[bytes],
        content_type: str | None,
        content_length: int | None = None,
    ) -> UploadArtifact:
        """
        Validate and persist one uploaded file.

        Args:
            stream: Raw request body chunks
            content_type: Request Content-Type header
            content_length: Declared Content-Length, if any

        Returns:
            UploadArtifact: Persisted upload

        Raises:
            InvalidContentTypeError: Not multipart/form-data or no boundary
            FileTooLargeError: Declared or streamed size over the ceiling
            InvalidFileTypeError: Extension or MIME type not allowed
            NoFileError: Body carries no file part
            UploadStreamError: Body ended early, disconnected, or timed out
        """
        boundary = self.parse_boundary(content_type)
        if content_length is not None and content_length > self.body_limit:
            raise FileTooLargeError(self._settings.max_file_size, received=content_length)

        state = _UploadState()
        try:
            return await asyncio.wait_for(
                self._receive(stream, boundary, state),
                self._settings.upload_timeout_seconds,
            )
        except BaseException as e:
            await self._discard(state)
            if isinstance(e, ClientDisconnect):
                raise UploadStreamError(
                    "Client disconnected before the upload completed",
                    {"received_bytes": state.body_bytes},
                ) from e
            if isinstance(e, asyncio.TimeoutError):
                raise UploadStreamError(
                    "Upload timed out",
                    {
                        "timeout_seconds": self._settings.upload_timeout_seconds,
                        "received_bytes": state.body_bytes,
                    },
                ) from e
            if isinstance(e, MultipartParseError):
                raise UploadStreamError("Malformed multipart body", {"error": str(e)}) from e
            raise

    @staticmethod
    def parse_boundary(content_type: str | None) -> bytes:
        """
        Extract the multipart boundary from a Content-Type header.

        Raises:
            InvalidContentTypeError: Header missing, not multipart/form-data,
                or without a boundary parameter
        """
        if not content_type:
            raise InvalidContentTypeError("Content-Type must be multipart/form-data")
        media_type, params = parse_options_header(content_type)
        if media_type.lower() != b"multipart/form-data":
            raise InvalidContentTypeError(
                "Content-Type must be multipart/form-data",
                {"content_type": content_type},
            )
        boundary = params.get(b"boundary")
        if not boundary:
            raise InvalidContentTypeError(
                "Multipart boundary missing from Content-Type",
                {"content_type": content_type},
            )
        return boundary

    def validate_file_type(self, filename: str, mime_type: str) -> None:
        """
        Check a file part against the allow-lists.

        A generic `application/octet-stream` declaration defers to the
        extension; any other MIME type must be allowed as well.
        Both checks must pass because extraction dispatches on the extension.

        Raises:
            InvalidFileTypeError: Extension or MIME type not allowed
        """
        extension = Path(filename).suffix.lower()
        if extension not in self._allowed_extensions:
            raise InvalidFileTypeError(filename, mime_type)
        if mime_type != OCTET_STREAM and mime_type not in self._allowed_mime_types:
            raise InvalidFileTypeError(filename, mime_type)

    async def _receive(
        self,
        stream: AsyncIterator[bytes],
        boundary: bytes,
        state: _UploadState,
    ) -> UploadArtifact:
        events: list[tuple[_PartEvent, bytes]] = []

        def on_data(event: _PartEvent) -> Callable[[bytes, int, int], None]:
            def callback(data: bytes, start: int, end: int) -> None:
                events.append((event, data[start:end]))

            return callback

        def on_notify(event: _PartEvent) -> Callable[[], None]:
            def callback() -> None:
                events.append((event, b""))

            return callback

        parser = MultipartParser(
            boundary,
            {
                "on_part_begin": on_notify(_PartEvent.PART_BEGIN),
                "on_part_data": on_data(_PartEvent.PART_DATA),
                "on_part_end": on_notify(_PartEvent.PART_END),
                "on_header_field": on_data(_PartEvent.HEADER_FIELD),
                "on_header_value": on_data(_PartEvent.HEADER_VALUE),
                "on_header_end": on_notify(_PartEvent.HEADER_END),
                "on_headers_finished": on_notify(_PartEvent.HEADERS_FINISHED),
                "on_end": on_notify(_PartEvent.END),
            },
        )

        async for chunk in stream:
            if not chunk:
                continue
            state.body_bytes += len(chunk)
            if state.body_bytes > self.body_limit:
                raise FileTooLargeError(self._settings.max_file_size, received=state.body_bytes)

            parser.write(chunk)
            pending, events[:] = list(events), []
            for event, data in pending:
                await self._handle(event, data, state)

        parser.finalize()
        for event, data in events:
            await self._handle(event, data, state)

        if state.path is None:
            if not state.ended:
                raise UploadStreamError(
                    "Upload ended before the multipart body was complete",
                    {"received_bytes": state.body_bytes},
                )
            raise NoFileError()
        if not state.file_complete or not state.ended:
            raise UploadStreamError(
                "Upload incomplete: stream ended before the file part finished",
                {"received_bytes": state.body_bytes, "file_name": state.filename},
            )

        artifact = UploadArtifact(
            path=state.path,
            original_filename=state.filename,
            mime_type=state.mime_type,
            size=state.writer.bytes_written,
        )
        logger.info(
            "Upload accepted",
            extra={
                "file_name": artifact.original_filename,
                "mime_type": artifact.mime_type,
                "size_bytes": artifact.size,
            },
        )
        return artifact

    async def _handle(self, event: _PartEvent, data: bytes, state: _UploadState) -> None:
        if event is _PartEvent.PART_BEGIN:
            state.headers = []
            state.header_field = b""
            state.header_value = b""
        elif event is _PartEvent.HEADER_FIELD:
            state.header_field += data
        elif event is _PartEvent.HEADER_VALUE:
            state.header_value += data
        elif event is _PartEvent.HEADER_END:
            state.headers.append((state.header_field.lower(), state.header_value))
            state.header_field = b""
            state.header_value = b""
        elif event is _PartEvent.HEADERS_FINISHED:
            await self._begin_part(state)
        elif event is _PartEvent.PART_DATA:
            if state.in_file_part:
                await self._write(data, state)
        elif event is _PartEvent.PART_END:
            if state.in_file_part:
                await state.file_stack.aclose()
                state.file_stack = None
                state.in_file_part = False
                state.file_complete = True
        elif event is _PartEvent.END:
            state.ended = True

    async def _begin_part(self, state: _UploadState) -> None:
        headers = dict(state.headers)
        _, disposition = parse_options_header(headers.get(b"content-disposition", b""))
        raw_filename = disposition.get(b"filename")

        if not raw_filename:
            return  # plain form field or empty file input
        if state.path is not None:
            logger.debug("Discarding additional file part")
            return

        filename = raw_filename.decode("utf-8", errors="replace")
        declared, _ = parse_options_header(headers.get(b"content-type", OCTET_STREAM.encode()))
        mime_type = declared.decode("latin-1").lower() or OCTET_STREAM
        self.validate_file_type(filename, mime_type)

        state.filename = filename
        state.mime_type = mime_type
        state.path = self._store.new_path(filename)
        state.file_stack = AsyncExitStack()
        state.writer = await state.file_stack.enter_async_context(self._store.open_writer(state.path))
        state.in_file_part = True

    async def _write(self, data: bytes, state: _UploadState) -> None:
        received = state.writer.bytes_written + len(data)
        if received > self._settings.max_file_size:
            raise FileTooLargeError(self._settings.max_file_size, received=received)
        await state.writer.write(data)

    async def _discard(self, state: _UploadState) -> None:
        if state.file_stack is not None:
            await asyncio.shield(state.file_stack.aclose())
            state.file_stack = None
        if state.path is None:
            return
        try:
            await asyncio.shield(self._store.delete(state.path))
        except OSError as e:
            logger.warning(
                "Failed to delete partial upload",
                extra={"file_path": str(state.path), "error": str(e)},
            )
        else:
            logger.info("Deleted partial upload", extra={"file_path": str(state.path)})


async def run_until_disconnected(
    job: Awaitable[T],
    is_disconnected: Callable[[], Awaitable[bool]],
    poll_interval: float = 0.5,
) -> T:
    """
    Await a job, cancelling it if the client goes away first.

    Args:
        job: Job coroutine
        is_disconnected: Returns True once the client has disconnected
        poll_interval: Seconds between disconnect checks

    Returns:
        The job's result

    Raises:
        ClientDisconnect: The client disconnected and the job was cancelled
    """
    task = asyncio.ensure_future(job)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=poll_interval)
            if done:
                return task.result()
            if await is_disconnected():
                logger.info("Client disconnected, cancelling job")
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
                raise ClientDisconnect()
    finally:
        if not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
