"""Markdown snippets produced when an image is inserted into a note."""

from __future__ import annotations

from typing import Optional
from urllib.parse import quote

from .models import Author

DESCRIPTION_CHARS = 10


def referral_query(app_name: str) -> str:
    """UTM parameters Unsplash asks every attribution link to carry."""
    return f"utm_source={quote(app_name, safe='')}&utm_medium=referral"


def size_suffix(insert_size: str) -> str:
    return f"|{insert_size}" if insert_size else ""


def alt_text(description: Optional[str], fallback: str) -> str:
    """Short alt text: the first characters of the description, else the fallback."""
    if description:
        return description[:DESCRIPTION_CHARS]
    return fallback


def remote_image(alt: str, url: str, insert_size: str) -> str:
    return f"![{alt}{size_suffix(insert_size)}]({url})"


def embedded_file(filename: str, insert_size: str) -> str:
    return f"![[{filename}{size_suffix(insert_size)}]]"


def unsplash_attribution(author: Optional[Author], app_name: str) -> str:
    """Credit line required by the Unsplash API guidelines."""
    utm = referral_query(app_name)
    source = f"on [Unsplash](https://unsplash.com/?{utm})"
    if author is None or not author.username:
        return f"\n*Photo {source}*\n"
    return (
        f"\n*Photo by [{author.name or author.username}]"
        f"(https://unsplash.com/@{author.username}?{utm}) {source}*\n"
    )
