"""Utility helpers for URL validation and timestamped names."""

from __future__ import annotations

import datetime as dt
from urllib.parse import urlsplit, urlunsplit

TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"


def valid_url(value: str | None) -> bool:
    """Return True when the value parses as an absolute http(s) URL."""
    if not value:
        return False
    try:
        parts = urlsplit(value.strip())
    except ValueError:
        return False
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def timestamp(moment: dt.datetime) -> str:
    return moment.strftime(TIMESTAMP_FORMAT)


def replace_origin(url: str, origin: str) -> str:
    """Move a URL onto another origin, keeping any path prefix the origin has."""
    target = urlsplit(url)
    base = urlsplit(origin)
    path = base.path.rstrip("/") + (target.path or "/")
    return urlunsplit((base.scheme, base.netloc, path, target.query, target.fragment))
