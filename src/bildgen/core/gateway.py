"""Generation gateway: validate, rate-limit, call the provider, persist.

:class:`GenerationGateway` is the single orchestrator behind
``POST /api/generate``.  A call to :meth:`GenerationGateway.submit` runs:

1. Rate-limit check for the caller identity.
2. Validation of prompt and effective credential.
3. Model key resolution (unknown keys fall back to the default model).
4. One provider call.
5. Decoding of the provider body into a list of image sources.
6. Per-image decode or download, then a write to the content directory.

Errors in steps 1-5 abort the request before anything is written.  A failed
decode or download in step 6 only skips the affected image; the batch still
succeeds, possibly with an empty image list.  A failed write removes the
files already written for the batch and aborts the request.

Every batch gets a timestamp no other batch of this process has used and
that no file in the content directory carries yet, so filenames never
collide even when batches finish within the same millisecond.
"""

from __future__ import annotations

import base64
import binascii
import logging
import threading
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import httpx

from bildgen.core.config import BildgenConfig
from bildgen.core.errors import RateLimitError, StorageError, UpstreamError, ValidationError
from bildgen.core.model_resolver import ModelResolver
from bildgen.core.provider import ProviderClient
from bildgen.core.provider_response import extract_error_message, parse_provider_payload
from bildgen.core.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class GenerationRequest:
    """One caller request.  Transient, never persisted."""

    prompt: str
    model_key: str | None = None
    width: int = 1024
    height: int = 1024
    count: int = 1
    credential: str | None = None
    identity: str = "unknown"


@dataclass(frozen=True)
class StoredImage:
    """Metadata for one image written to the content directory."""

    filename: str
    url: str
    prompt: str
    model: str
    timestamp: int
    width: int
    height: int


@dataclass
class GenerationResult:
    success: bool
    images: list[StoredImage] = field(default_factory=list)
    usage: Any = None

    def to_dict(self) -> dict:
        data: dict[str, Any] = {
            "success": self.success,
            "images": [asdict(image) for image in self.images],
        }
        if self.usage is not None:
            data["usage"] = self.usage
        return data


def decode_data_uri(value: str) -> bytes:
    """Decode the base64 payload of a ``data:`` URI.

    Raises:
        ValueError: If the URI has no payload or the payload is not base64.
    """
    _, sep, payload = value.partition(",")
    if not sep or not payload:
        raise ValueError("data URI has no payload")
    try:
        return base64.b64decode("".join(payload.split()), validate=True)
    except binascii.Error as e:
        raise ValueError(f"invalid base64 payload: {e}") from e


class GenerationGateway:
    """Orchestrate one generation request end to end.

    Args:
        config: Application configuration.
        rate_limiter: Shared limiter; lives as long as the gateway.
        resolver: Model key resolver.
        provider: Provider HTTP client.
    """

    def __init__(
        self,
        config: BildgenConfig,
        rate_limiter: RateLimiter,
        resolver: ModelResolver,
        provider: ProviderClient,
    ) -> None:
        self.config = config
        self.rate_limiter = rate_limiter
        self.resolver = resolver
        self.provider = provider
        self._batch_lock = threading.Lock()
        self._last_batch_timestamp = 0

    @property
    def content_dir(self) -> Path:
        return self.config.content_dir

    def submit(self, request: GenerationRequest) -> GenerationResult:
        """Run a generation request and persist the resulting images.

        Args:
            request: The caller's request.

        Returns:
            A successful :class:`GenerationResult`; its image list may be
            shorter than requested, or empty.

        Raises:
            RateLimitError: The caller's identity exceeded its quota.
            ValidationError: Prompt or credential missing.
            UpstreamError: The provider failed or returned an unusable body.
            StorageError: An image could not be written to disk.
        """
        decision = self.rate_limiter.check(request.identity)
        if not decision.allowed:
            logger.warning(
                f"Rate limit exceeded for {request.identity}, "
                f"retry in {decision.retry_after_ms} ms"
            )
            raise RateLimitError(decision.retry_after_ms)

        prompt = (request.prompt or "").strip()
        if not prompt:
            raise ValidationError("prompt required")

        credential = request.credential or self.config.api_key
        if not credential:
            raise ValidationError("credential required")

        model_id = self.resolver.resolve(request.model_key)
        size = f"{request.width}x{request.height}"
        logger.info(f"Generating {request.count} image(s) with {model_id} ({size})")

        status_code, payload = self.provider.create_completion(
            model_id, prompt, request.count, size, credential
        )
        if not 200 <= status_code < 300:
            message = extract_error_message(payload, status_code)
            logger.error(f"Provider returned {status_code}: {message}")
            raise UpstreamError(message)

        result = parse_provider_payload(payload)
        batch_timestamp = self._next_batch_timestamp()
        images: list[StoredImage] = []
        written: list[Path] = []

        # Empty slots keep their position so the index matches the batch position.
        for index, source in enumerate(result.sources, start=1):
            if source is None:
                continue
            data = self._load_image(source)
            if data is None:
                continue

            filename = f"image_{batch_timestamp}_{index}.png"
            filepath = self.content_dir / filename
            try:
                with filepath.open("xb") as handle:
                    handle.write(data)
            except OSError as e:
                logger.error(f"Failed to store {filename}: {e}", exc_info=True)
                if not isinstance(e, FileExistsError):
                    written.append(filepath)
                self._discard(written)
                raise StorageError(f"failed to store image: {e}") from e
            written.append(filepath)
            logger.info(f"Saved {filename} ({len(data)} bytes)")

            images.append(
                StoredImage(
                    filename=filename,
                    url=f"{self.config.content_url_prefix.rstrip('/')}/{filename}",
                    prompt=prompt,
                    model=model_id,
                    timestamp=batch_timestamp,
                    width=request.width,
                    height=request.height,
                )
            )

        usage = payload.get("usage") if isinstance(payload, dict) else None
        return GenerationResult(success=True, images=images, usage=usage)

    def _next_batch_timestamp(self) -> int:
        """Return a batch timestamp (ms) unused by this process and on disk."""
        with self._batch_lock:
            timestamp = max(_now_ms(), self._last_batch_timestamp + 1)
            while any(self.content_dir.glob(f"image_{timestamp}_*")):
                timestamp += 1
            self._last_batch_timestamp = timestamp
            return timestamp

    @staticmethod
    def _discard(paths: list[Path]) -> None:
        for path in paths:
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"Could not remove partial batch file {path}: {e}")

    def _load_image(self, source: str) -> bytes | None:
        """Return image bytes for *source*, or ``None`` if it must be skipped."""
        if source.startswith("data:"):
            try:
                return decode_data_uri(source)
            except ValueError as e:
                logger.warning(f"Skipping undecodable data URI: {e}")
                return None

        try:
            return self.provider.fetch_image(source)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(f"Failed to fetch image URL {source}: {e}")
            return None
