"""Exception taxonomy for the generation gateway.

Every error raised by the core carries a human-readable ``message`` and the
HTTP status the API layer maps it to.  Per-image fetch failures are not part
of this taxonomy: they are logged and skipped inside the gateway.
"""

from __future__ import annotations


class BildgenError(Exception):
    """Base class for all gateway errors."""

    status_code: int = 500
    label: str = "Generation failed"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(BildgenError):
    """Missing or malformed caller input (prompt, credential)."""

    status_code = 400
    label = "Invalid request"


class RateLimitError(BildgenError):
    """The caller exhausted its request quota for the current window.

    Attributes:
        retry_after_ms: Milliseconds until the caller's window resets.
    """

    status_code = 429
    label = "Rate limit exceeded"

    def __init__(self, retry_after_ms: int) -> None:
        seconds = -(-retry_after_ms // 1000)
        super().__init__(f"Too many requests. Please wait {seconds} seconds.")
        self.retry_after_ms = retry_after_ms


class UpstreamError(BildgenError):
    """The provider was unreachable, failed, or returned an unusable body."""

    status_code = 500
    label = "Generation failed"


class StorageError(BildgenError):
    """A generated image could not be written to the content directory."""

    status_code = 500
    label = "Generation failed"
