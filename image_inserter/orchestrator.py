"""Debounced search and insertion flow driven by an editor host."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional, Protocol

from .fetcher import BaseFetcher, CreateFile
from .models import Image

logger = logging.getLogger("image_inserter")

GENERIC_ERROR_NOTICE = "Something went wrong, please contact the plugin author."


class Editor(Protocol):
    """The part of the host editor an insertion needs."""

    def replace_selection(self, text: str) -> None:
        ...


Notify = Callable[[str], None]


def _log_notice(message: str) -> None:
    logger.error(message)


class SearchScheduler:
    """Single-slot debounce in front of ``search_images``.

    Scheduling a search while another is still waiting replaces the pending
    timer. Requests already sent are left to finish; a caller whose search
    was superseded receives ``None`` instead of results.
    """

    def __init__(self, fetcher: BaseFetcher, delay: float = 0.5) -> None:
        self.fetcher = fetcher
        self.delay = delay
        self._timer: Optional[asyncio.Future] = None
        self._generation = 0

    async def search(self, query: str) -> Optional[List[Image]]:
        self._generation += 1
        generation = self._generation
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        timer = asyncio.ensure_future(asyncio.sleep(self.delay))
        self._timer = timer
        try:
            await timer
        except asyncio.CancelledError:
            if timer.cancelled() and generation != self._generation:
                logger.debug("Search for %r superseded before it was sent", query)
                return None
            raise

        images = await self.fetcher.search_images(query)
        if generation != self._generation:
            logger.debug("Discarding stale results for %r", query)
            return None
        return images


class ImageInserter:
    """Connects a fetcher to an editor: suggestions in, Markdown out."""

    def __init__(
        self,
        fetcher: BaseFetcher,
        editor: Optional[Editor] = None,
        create_file: Optional[CreateFile] = None,
        notify: Notify = _log_notice,
        debounce_seconds: Optional[float] = None,
    ) -> None:
        self.fetcher = fetcher
        self.editor = editor
        self.create_file = create_file
        self.notify = notify
        if debounce_seconds is None:
            debounce_seconds = fetcher.config.debounce_seconds
        self.scheduler = SearchScheduler(fetcher, debounce_seconds)

    async def get_suggestions(self, query: str) -> Optional[List[Image]]:
        """Search after the debounce delay; ``None`` means superseded."""
        try:
            return await self.scheduler.search(query)
        except Exception:  # pylint: disable=broad-except
            logger.exception("Search for %r failed", query)
            self.notify(GENERIC_ERROR_NOTICE)
            return []

    async def choose_suggestion(self, image: Image, uri_only: bool = False) -> bool:
        """Insert the chosen image; returns False when nothing was inserted."""
        if self.editor is None or self.create_file is None:
            raise ValueError("An editor and a create_file callback are required to insert")
        try:
            if uri_only:
                text = await self.fetcher.download_and_get_uri(image, self.create_file)
            else:
                text = await self.fetcher.download_and_insert_image(image, self.create_file)
        except Exception:  # pylint: disable=broad-except
            logger.exception("Inserting %s failed", image.full_url)
            self.notify(GENERIC_ERROR_NOTICE)
            return False
        self.editor.replace_selection(text)
        return True
