"""HTTP client for the multimodal generation provider.

:class:`ProviderClient` wraps a single :class:`httpx.Client` that is reused
for the generation call and for downloading remote images.  Passing an
``httpx`` transport (for example :class:`httpx.MockTransport`) replaces the
network entirely, which is how the tests drive it.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from bildgen.core.config import BildgenConfig
from bildgen.core.errors import UpstreamError

logger = logging.getLogger(__name__)


class ProviderClient:
    """Issue chat-completion requests and fetch generated images.

    Args:
        config: Application configuration (endpoint, headers, timeouts).
        transport: Optional ``httpx`` transport override.
    """

    def __init__(
        self,
        config: BildgenConfig,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._config = config
        self._client = httpx.Client(transport=transport, follow_redirects=True)

    def close(self) -> None:
        self._client.close()

    def create_completion(
        self,
        model_id: str,
        prompt: str,
        count: int,
        size: str,
        credential: str,
    ) -> tuple[int, Any]:
        """Send one generation request to the provider.

        Args:
            model_id: Fully qualified provider model identifier.
            prompt: User prompt, sent as a single user message.
            count: Number of images requested.
            size: ``"{width}x{height}"`` hint; providers may ignore it.
            credential: Bearer credential.

        Returns:
            Tuple of ``(status_code, payload)`` where *payload* is the decoded
            JSON body (``{}`` for an empty body).

        Raises:
            UpstreamError: On timeout, transport failure, or a body that is
                not valid JSON.
        """
        headers = {
            "Authorization": f"Bearer {credential}",
            "HTTP-Referer": self._config.provider_referer,
            "X-Title": self._config.provider_title,
        }
        body = {
            "model": model_id,
            "messages": [{"role": "user", "content": prompt}],
            "modalities": ["image", "text"],
            "n": count,
            "size": size,
        }

        try:
            response = self._client.post(
                self._config.provider_url,
                headers=headers,
                json=body,
                timeout=self._config.provider_timeout,
            )
        except httpx.TimeoutException as e:
            logger.error(f"Provider request timed out: {e}")
            raise UpstreamError("provider request timed out") from e
        except httpx.HTTPError as e:
            logger.error(f"Provider request failed: {e}")
            raise UpstreamError(f"provider unreachable: {e}") from e

        text = response.text
        try:
            payload = json.loads(text) if text else {}
        except ValueError as e:
            logger.error(f"Provider returned non-JSON body (status {response.status_code})")
            raise UpstreamError("invalid response") from e

        return response.status_code, payload

    def fetch_image(self, url: str) -> bytes:
        """Download a remote image.

        Raises:
            httpx.HTTPError: On transport failure, timeout, or a
                non-success status.
        """
        response = self._client.get(url, timeout=self._config.image_fetch_timeout)
        response.raise_for_status()
        return response.content
