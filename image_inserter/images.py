"""Image downloading and validation utilities."""

from __future__ import annotations

import logging
from typing import Optional

import requests
from filetype import guess

logger = logging.getLogger("image_inserter")


class NotAnImageError(requests.RequestException):
    """Raised when a download succeeds but the payload is not an image."""


def detect_image_format(data: bytes) -> Optional[str]:
    """Detect image type using filetype; returns lowercase extension."""
    kind = guess(data)
    if kind and kind.mime.startswith("image/"):
        ext = kind.extension.lower()
        if ext == "jpeg":
            return "jpg"
        return ext
    return None


def fetch_image_bytes(session: requests.Session, url: str, timeout: float) -> bytes:
    """GET an image and return its raw bytes, raising on transport failures."""
    resp = session.get(url, timeout=timeout)
    resp.raise_for_status()
    data = resp.content

    detected = detect_image_format(data)
    if detected is None:
        raise NotAnImageError(
            f"Response from {url} is not an image "
            f"(Content-Type={resp.headers.get('Content-Type', '')})",
            response=resp,
        )
    logger.debug("Downloaded %d bytes of %s from %s", len(data), detected, url)
    return data
