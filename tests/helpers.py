"""
Test doubles shared across the suite.

Dependencies: doc_optimizer.core.exceptions
System role: Fakes for clocks, sleeps, inference clients, and upload bodies
"""

from doc_optimizer.core.exceptions import FailureKind, InferenceError


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Awaitable sleep replacement that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class ScriptedClient:
    """
    Inference client returning scripted outcomes in order.

    Each script item is a string (returned), an exception (raised), or a
    callable receiving the prompt. When the script runs out, `default` is
    used; a None default echoes a numbered placeholder.
    """

    def __init__(self, script=None, default=None) -> None:
        self.script = list(script or [])
        self.default = default
        self.calls: list[dict] = []

    async def generate(self, model: str, prompt: str, timeout: float) -> str:
        self.calls.append({"model": model, "prompt": prompt, "timeout": timeout})
        outcome = self.script.pop(0) if self.script else self.default
        if outcome is None:
            return f"optimized-{len(self.calls)}"
        if isinstance(outcome, BaseException):
            raise outcome
        if callable(outcome):
            return outcome(prompt)
        return outcome


def inference_error(kind: FailureKind) -> InferenceError:
    return InferenceError(f"simulated {kind.value}", kind)


def multipart_body(
    filename: str | None = "resume.txt",
    content: bytes = b"Hello world.",
    content_type: str | None = "text/plain",
    boundary: str = "testboundary",
    extra_fields: dict[str, str] | None = None,
    extra_files: list[tuple[str, bytes, str]] | None = None,
) -> tuple[bytes, str]:
    """Build a multipart/form-data body and its Content-Type header."""
    parts: list[bytes] = []
    for name, value in (extra_fields or {}).items():
        parts.append(
            f'--{boundary}\r\nContent-Disposition: form-data; name="{name}"\r\n\r\n'.encode()
            + value.encode()
            + b"\r\n"
        )
    if filename is not None:
        headers = f'--{boundary}\r\nContent-Disposition: form-data; name="file"; filename="{filename}"\r\n'
        if content_type:
            headers += f"Content-Type: {content_type}\r\n"
        parts.append(headers.encode() + b"\r\n" + content + b"\r\n")
    for extra_name, extra_content, extra_type in extra_files or []:
        parts.append(
            (
                f'--{boundary}\r\nContent-Disposition: form-data; name="other"; filename="{extra_name}"\r\n'
                f"Content-Type: {extra_type}\r\n\r\n"
            ).encode()
            + extra_content
            + b"\r\n"
        )
    body = b"".join(parts) + f"--{boundary}--\r\n".encode()
    return body, f"multipart/form-data; boundary={boundary}"


async def byte_stream(data: bytes, chunk_size: int = 7):
    """Async iterator yielding `data` in small chunks."""
    for start in range(0, len(data), chunk_size):
        yield data[start : start + chunk_size]
