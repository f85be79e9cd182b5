"""Pydantic request and response models for the BildGenerator API.

These models define the JSON schema for the API endpoints.  FastAPI uses
them for automatic request validation, serialisation, and OpenAPI
documentation generation.

The browser client sends camelCase keys (``numImages``, ``apiKey``); the
snake_case field names are accepted as well.

Models
------
GenerateRequest
    Payload for ``POST /api/generate``.
ImageEntry / ImageListResponse
    Response of ``GET /api/images``.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

MIN_IMAGES = 1
MAX_IMAGES = 4
DEFAULT_SIZE = 1024


class GenerateRequest(BaseModel):
    """Request body for the ``POST /api/generate`` endpoint.

    Attributes:
        prompt: Text prompt.  Checked for emptiness by the gateway so a
            missing prompt yields a 400 rather than a schema error.
        model: Short model key (e.g. ``"flux2-pro"``).  Unknown keys fall
            back to the default model.
        width: Requested width in pixels.  Missing or non-positive values
            become 1024.
        height: Requested height in pixels.  Same fallback as *width*.
        num_images: Number of images (clamped to 1–4).
        api_key: Optional caller-supplied provider credential.
    """

    model_config = ConfigDict(populate_by_name=True)

    prompt: str | None = Field(default=None, description="Text prompt.")
    model: str | None = Field(
        default="flux2-pro",
        description="Short model key; unknown keys use the default model.",
    )
    width: int | None = Field(default=None, description="Image width in pixels.")
    height: int | None = Field(default=None, description="Image height in pixels.")
    num_images: int = Field(
        default=MIN_IMAGES,
        alias="numImages",
        description="Number of images to generate (1–4).",
    )
    api_key: str | None = Field(
        default=None,
        alias="apiKey",
        description="Provider credential; falls back to the server default.",
    )

    @field_validator("num_images", mode="before")
    @classmethod
    def _default_num_images(cls, value):
        return MIN_IMAGES if value is None else value

    @field_validator("num_images")
    @classmethod
    def _clamp_num_images(cls, value: int) -> int:
        return max(MIN_IMAGES, min(MAX_IMAGES, value))

    @property
    def resolved_width(self) -> int:
        return self.width if self.width and self.width > 0 else DEFAULT_SIZE

    @property
    def resolved_height(self) -> int:
        return self.height if self.height and self.height > 0 else DEFAULT_SIZE


class ImageEntry(BaseModel):
    """One file in the content directory."""

    filename: str
    url: str
    timestamp: float = Field(..., description="Modification time in milliseconds.")
    size: int = Field(..., description="File size in bytes.")


class ImageListResponse(BaseModel):
    """Response body for ``GET /api/images``."""

    images: list[ImageEntry]
