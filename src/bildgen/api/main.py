"""BildGenerator — FastAPI Application.

This module is the single entry point for the web backend.  It defines the
application factory, the module-level ``app`` instance, all REST API routes,
and the ``main()`` CLI function that launches the uvicorn server.

Architecture
------------
- **Configuration** comes from :mod:`bildgen.core.config` (``BILDGEN_*``
  environment variables and ``.env``).
- **Image generation** is delegated to
  :class:`~bildgen.core.gateway.GenerationGateway`, created once per
  application in the lifespan handler together with its rate limiter and
  provider client.
- **Gallery listing** scans the content directory on every request; there is
  no database.
- **Generated images** are served by FastAPI's ``StaticFiles`` under the
  configured content URL prefix (``/uploads`` by default).

Endpoints
---------
========  ============================  ====================================
Method    Path                          Purpose
========  ============================  ====================================
POST      ``/api/generate``             Generate and store an image batch
GET       ``/api/images``               Newest stored images (max 50)
GET       ``/api/images/{filename}``    Raw bytes of one stored image
GET       ``/api/models``               Selectable model keys
GET       ``/api/health``               Liveness check
========  ============================  ====================================

Usage
-----
CLI (installed entry point)::

    bildgen

Direct invocation::

    python -m bildgen.api.main
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse, Response
from fastapi.staticfiles import StaticFiles

from bildgen import __version__
from bildgen.api.gallery_store import list_images, resolve_image_path
from bildgen.api.models import GenerateRequest, ImageListResponse
from bildgen.core.config import BildgenConfig, config
from bildgen.core.errors import BildgenError, RateLimitError, ValidationError
from bildgen.core.gateway import GenerationGateway, GenerationRequest
from bildgen.core.model_resolver import ModelResolver
from bildgen.core.provider import ProviderClient
from bildgen.core.rate_limiter import RateLimiter
from bildgen.logging_setup import setup_logging

logger = logging.getLogger(__name__)


def _error_response(exc: BildgenError) -> JSONResponse:
    """Render a gateway error as the JSON body the client expects."""
    content = {"error": exc.label, "message": exc.message}
    headers = None
    if isinstance(exc, RateLimitError):
        content["retryAfter"] = exc.retry_after_ms
        headers = {"Retry-After": str(math.ceil(exc.retry_after_ms / 1000))}
    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


def _validation_message(exc: RequestValidationError) -> str:
    """Summarise schema errors as ``field: reason`` pairs."""
    parts = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        field = ".".join(loc) or "body"
        parts.append(f"{field}: {error.get('msg', 'invalid value')}")
    return "; ".join(parts) or "invalid request body"


def create_app(
    settings: BildgenConfig,
    transport: httpx.BaseTransport | None = None,
) -> FastAPI:
    """Build a FastAPI application bound to *settings*.

    Args:
        settings: Configuration for this application instance.
        transport: Optional ``httpx`` transport for the provider client,
            used by tests to replace the network.

    Returns:
        A configured :class:`FastAPI` instance.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Create the gateway on startup and close its HTTP client on shutdown."""
        # --- Startup -------------------------------------------------------
        provider = ProviderClient(settings, transport=transport)
        app.state.gateway = GenerationGateway(
            settings,
            RateLimiter(
                window_ms=settings.rate_limit_window_ms,
                max_requests=settings.rate_limit_max_requests,
                prune_interval_ms=settings.rate_limit_prune_interval_ms,
            ),
            ModelResolver(settings.default_model),
            provider,
        )
        logger.info(f"Gateway ready; storing images in {settings.content_dir}")

        yield

        # --- Shutdown ------------------------------------------------------
        provider.close()

    app = FastAPI(
        title="BildGenerator",
        description="Prompt-to-image gateway with local image storage.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    settings.content_dir.mkdir(parents=True, exist_ok=True)
    app.mount(
        settings.content_url_prefix,
        StaticFiles(directory=str(settings.content_dir)),
        name="uploads",
    )

    @app.exception_handler(BildgenError)
    async def handle_gateway_error(request: Request, exc: BildgenError) -> JSONResponse:
        return _error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return _error_response(ValidationError(_validation_message(exc)))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "Generation failed", "message": str(exc) or type(exc).__name__},
        )

    # -----------------------------------------------------------------------
    # Routes.
    # -----------------------------------------------------------------------

    @app.post("/api/generate")
    def generate_images(req: GenerateRequest, request: Request) -> dict:
        """Generate a batch of images and store them in the content directory.

        Declared as a plain ``def`` so the blocking provider call runs in
        FastAPI's threadpool.

        Returns:
            Dictionary with ``success``, ``images`` and, when the provider
            reported it, ``usage``.
        """
        gateway: GenerationGateway = request.app.state.gateway
        result = gateway.submit(
            GenerationRequest(
                prompt=req.prompt or "",
                model_key=req.model,
                width=req.resolved_width,
                height=req.resolved_height,
                count=req.num_images,
                credential=req.api_key,
                identity=request.client.host if request.client else "unknown",
            )
        )
        return result.to_dict()

    @app.get("/api/images", response_model=ImageListResponse)
    def get_images() -> dict:
        """Return the newest images in the content directory."""
        try:
            images = list_images(
                settings.content_dir,
                url_prefix=settings.content_url_prefix,
                limit=settings.list_limit,
            )
        except OSError as e:
            logger.error(f"Failed to list images: {e}", exc_info=True)
            return JSONResponse(
                status_code=500,
                content={"error": "Failed to fetch images", "message": str(e)},
            )
        return {"images": images}

    @app.get("/api/images/{filename}")
    def get_image(filename: str) -> Response:
        """Return the raw bytes of one stored image, or 404."""
        filepath = resolve_image_path(settings.content_dir, filename)
        if filepath is None:
            return JSONResponse(status_code=404, content={"error": "Image not found"})
        return FileResponse(filepath)

    @app.get("/api/models")
    def get_models(request: Request) -> dict:
        """Return the selectable model keys and the default key."""
        resolver = request.app.state.gateway.resolver
        return {
            "default": resolver.default_key,
            "models": [
                {
                    "key": spec.key,
                    "label": spec.label,
                    "description": spec.description,
                    "providerId": spec.provider_id,
                }
                for spec in resolver.models()
            ],
        }

    @app.get("/api/health")
    async def health() -> dict:
        return {"status": "ok", "timestamp": int(time.time() * 1000)}

    return app


app = create_app(config)


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host and port from :data:`~bildgen.core.config.config` (which loads
    from ``BILDGEN_SERVER_HOST`` and ``BILDGEN_SERVER_PORT``).  Defaults to
    ``0.0.0.0:3001``.

    This function is registered as the ``bildgen`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    setup_logging(config.log_level)
    uvicorn.run(
        "bildgen.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
