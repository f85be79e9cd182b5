"""Decoding of provider response bodies into a uniform image list.

Providers answer in one of two shapes, recognized by which fields are
present rather than by an explicit type tag:

- **chat images** — ``choices[0].message.images``, each item carrying
  ``image_url.url`` (preferred) or ``url``.
- **flat data** — a top-level ``data`` list, each item carrying ``url`` or
  a ``b64_json`` payload.

A body matching neither shape decodes to :class:`EmptyResult`, which is a
valid, successful outcome with no images.

Example::

    result = parse_provider_payload(payload)
    for source in result.sources:
        if source is None:
            continue
        ...
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(frozen=True)
class ChatImagesResult:
    """Images embedded in a chat-style assistant message."""

    sources: list[str | None] = field(default_factory=list)


@dataclass(frozen=True)
class FlatDataResult:
    """Images returned as a flat ``data`` list."""

    sources: list[str | None] = field(default_factory=list)


@dataclass(frozen=True)
class EmptyResult:
    """Response carried no recognizable image list."""

    sources: list[str | None] = field(default_factory=list)


ProviderResult = Union[ChatImagesResult, FlatDataResult, EmptyResult]


def _chat_images(payload: dict[str, Any]) -> list | None:
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    message = first.get("message")
    if not isinstance(message, dict):
        return None
    images = message.get("images")
    # An empty list falls through to the flat-data check, matching a falsy test.
    if not isinstance(images, list) or not images:
        return None
    return images


def _chat_source(item: Any) -> str | None:
    if not isinstance(item, dict):
        return None
    image_url = item.get("image_url")
    if isinstance(image_url, dict) and image_url.get("url"):
        return image_url["url"]
    return item.get("url") or None


def _flat_source(item: Any) -> str | None:
    if not isinstance(item, dict):
        return None
    if item.get("url"):
        return item["url"]
    b64 = item.get("b64_json")
    if isinstance(b64, str) and b64:
        if b64.startswith("data:"):
            return b64
        return f"data:image/png;base64,{b64}"
    return None


def _collect(items: list, pick) -> list[str | None]:
    sources: list[str | None] = []
    for item in items:
        source = pick(item)
        sources.append(source if isinstance(source, str) and source else None)
    return sources


def parse_provider_payload(payload: Any) -> ProviderResult:
    """Decode a parsed provider body into one of the three result variants.

    Items without a usable url or payload stay in the list as ``None`` so
    every source keeps its position in the provider's list.

    Args:
        payload: The JSON-decoded provider body.

    Returns:
        :class:`ChatImagesResult`, :class:`FlatDataResult`, or
        :class:`EmptyResult`.
    """
    if not isinstance(payload, dict):
        return EmptyResult()

    images = _chat_images(payload)
    if images is not None:
        return ChatImagesResult(_collect(images, _chat_source))

    data = payload.get("data")
    if isinstance(data, list):
        return FlatDataResult(_collect(data, _flat_source))

    return EmptyResult()


def extract_error_message(payload: Any, status_code: int) -> str:
    """Return the provider's own error message, or a generic one.

    Args:
        payload: The JSON-decoded provider body.
        status_code: HTTP status of the provider response.
    """
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return f"API error: {status_code}"
