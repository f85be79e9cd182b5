"""BildGenerator — FastAPI REST API layer.

This package contains the FastAPI application, Pydantic request/response
models, and the content-directory helpers.

Modules
-------
main
    Application factory, route handlers and the ``main()`` CLI entry point.
models
    Pydantic models for API request and response validation.
gallery_store
    Content-directory listing and safe file lookup.
"""
