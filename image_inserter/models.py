"""Data models shared by the fetchers and their hosts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

START_PAGE = 1


@dataclass(frozen=True)
class Author:
    """Photographer credited in the attribution line."""

    name: str
    username: str


@dataclass(frozen=True)
class Image:
    """Normalized search hit returned by every provider."""

    thumbnail: str
    full_url: str
    description: Optional[str] = None
    download_touch_url: Optional[str] = None
    author: Optional[Author] = None


@dataclass
class PaginationState:
    """Page cursor for one search session."""

    current_page: int = START_PAGE
    total_pages: int = 0

    def no_result(self) -> bool:
        return self.total_pages <= 0

    def has_prev_page(self) -> bool:
        return not self.no_result() and self.current_page > START_PAGE

    def has_next_page(self) -> bool:
        return not self.no_result() and self.current_page < self.total_pages

    def prev_page(self) -> None:
        if self.has_prev_page():
            self.current_page -= 1

    def next_page(self) -> None:
        if self.has_next_page():
            self.current_page += 1
