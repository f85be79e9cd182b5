"""Mapping from short model keys to provider model identifiers.

The frontend only knows short keys such as ``"flux2-pro"``.  The resolver
turns them into the fully qualified identifiers the provider expects.  An
unknown or missing key is never an error: it silently resolves to the
configured default model.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ModelSpec:
    """One selectable model."""

    key: str
    provider_id: str
    label: str
    description: str = ""


MODEL_CATALOG: tuple[ModelSpec, ...] = (
    ModelSpec(
        "flux2-pro",
        "black-forest-labs/flux.2-pro",
        "FLUX.2 Pro",
        "Frontier-level quality",
    ),
    ModelSpec(
        "gemini",
        "google/gemini-2.5-flash-image-preview",
        "Google Gemini 2.5 Flash Image",
        "Advanced image generation",
    ),
    ModelSpec("dalle3", "openai/dall-e-3", "DALL-E 3"),
    ModelSpec("dalle2", "openai/dall-e-2", "DALL-E 2"),
    ModelSpec(
        "stable-diffusion",
        "stabilityai/stable-diffusion-xl-v1.0",
        "Stable Diffusion XL",
    ),
)


class ModelResolver:
    """Resolve model keys against a fixed catalog.

    Args:
        default_key: Key used for unknown or missing model keys.  Must be
            present in *catalog*.
        catalog: Available models.

    Raises:
        ValueError: If *default_key* is not in the catalog.
    """

    def __init__(
        self,
        default_key: str = "flux2-pro",
        catalog: tuple[ModelSpec, ...] = MODEL_CATALOG,
    ) -> None:
        self._models = {spec.key: spec for spec in catalog}
        if default_key not in self._models:
            raise ValueError(f"Default model key not in catalog: {default_key}")
        self.default_key = default_key

    def resolve(self, model_key: str | None) -> str:
        """Return the provider model id for *model_key*, or the default's."""
        spec = self._models.get(model_key or "")
        if spec is None:
            spec = self._models[self.default_key]
        return spec.provider_id

    def models(self) -> list[ModelSpec]:
        """Return the catalog in declaration order."""
        return list(self._models.values())
