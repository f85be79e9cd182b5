"""Content-directory helpers for the BildGenerator API.

This module isolates filesystem access from ``bildgen.api.main`` so route
handlers can focus on HTTP concerns while the listing logic stays testable as
a small unit.

The content directory is the only source of truth:

- there is no metadata file; every listing is a fresh directory scan
- only files with a recognized image extension are listed
- list order is reverse-chronological by modification time (newest first)
"""

from __future__ import annotations

from pathlib import Path

IMAGE_EXTENSIONS = frozenset({".png", ".jpg", ".jpeg"})


def list_images(content_dir: Path, url_prefix: str = "/uploads", limit: int = 50) -> list[dict]:
    """Scan the content directory and return the most recent images.

    Args:
        content_dir: Directory holding generated images.
        url_prefix: URL prefix the directory is served under.
        limit: Maximum number of entries to return.

    Returns:
        List of ``{filename, url, timestamp, size}`` dictionaries, newest
        first.  ``timestamp`` is the modification time in milliseconds.
    """
    prefix = url_prefix.rstrip("/")
    entries: list[dict] = []

    for path in content_dir.iterdir():
        if path.suffix.lower() not in IMAGE_EXTENSIONS or not path.is_file():
            continue

        stats = path.stat()
        entries.append(
            {
                "filename": path.name,
                "url": f"{prefix}/{path.name}",
                "timestamp": stats.st_mtime * 1000,
                "size": stats.st_size,
            }
        )

    entries.sort(key=lambda entry: entry["timestamp"], reverse=True)
    return entries[:limit]


def resolve_image_path(content_dir: Path, filename: str) -> Path | None:
    """Map a requested filename to a file inside the content directory.

    Names containing path separators or parent references are rejected so a
    request can never read outside the content directory.

    Args:
        content_dir: Directory holding generated images.
        filename: Bare filename from the request path.

    Returns:
        The file path, or ``None`` if the name is unsafe or no such file exists.
    """
    if not filename or filename in {".", ".."} or "/" in filename or "\\" in filename:
        return None

    filepath = content_dir / filename
    if not filepath.is_file():
        return None
    return filepath
