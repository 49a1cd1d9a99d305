"""Provider-specific fetchers that search, download and format stock photos."""

from __future__ import annotations

import asyncio
import datetime as dt
import logging
import math
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Protocol, Set, Tuple, runtime_checkable
from urllib.parse import urlsplit

import requests

from .config import (
    DEFAULT_PROXY_SERVER,
    PER_PAGE,
    ImageProvider,
    InsertMode,
    InserterConfig,
    Orientation,
)
from .images import fetch_image_bytes
from .markdown import alt_text, embedded_file, remote_image, unsplash_attribution
from .models import Author, Image, PaginationState
from .utils import replace_origin, timestamp, valid_url

logger = logging.getLogger("image_inserter")

CreateFile = Callable[[str, str, bytes], None]
Clock = Callable[[], dt.datetime]

LOCAL_IMAGE_PREFIX = "Inserted image "
LOCAL_IMAGE_EXTENSION = "png"

PIXABAY_SEARCH_URL = "https://pixabay.com/api/"
UNSPLASH_API_HOST = "api.unsplash.com"
UNSPLASH_SEARCH_URL = f"https://{UNSPLASH_API_HOST}/search/photos"

PIXABAY_ORIENTATIONS = {
    Orientation.LANDSCAPE: "horizontal",
    Orientation.PORTRAIT: "vertical",
    Orientation.SQUARISH: "all",
}


class ResponseShapeError(requests.RequestException):
    """Raised when a provider answers with JSON we cannot normalize."""


@runtime_checkable
class TouchesDownloadLocation(Protocol):
    """Fetchers whose provider must be told before an image is used."""

    async def touch_download_location(self, url: str) -> None:
        ...


def supports_download_touch(fetcher: object) -> bool:
    return isinstance(fetcher, TouchesDownloadLocation)


def resolve_proxy_server(candidate: str) -> str:
    """Use the configured proxy when it is a well-formed URL, else the default."""
    if valid_url(candidate):
        return candidate
    if candidate:
        logger.debug(
            "Ignoring invalid proxy server %r; using %s", candidate, DEFAULT_PROXY_SERVER
        )
    return DEFAULT_PROXY_SERVER


class BaseFetcher(ABC):
    """Pagination, downloads and insertion text shared by every provider.

    Subclasses supply the search request and the response normalization.
    Calls on one instance are expected to be serialized by the caller; the
    shared session is only ever used by one request at a time.
    """

    provider: ImageProvider

    def __init__(
        self,
        config: InserterConfig,
        session: Optional[requests.Session] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.config = config
        self.pagination = PaginationState()
        self._session = session or requests.Session()
        self._clock = clock or dt.datetime.now
        self._pending_touches: Set[asyncio.Task] = set()
        self._session_lock = asyncio.Lock()

    @property
    def current_page(self) -> int:
        return self.pagination.current_page

    @property
    def total_pages(self) -> int:
        return self.pagination.total_pages

    def no_result(self) -> bool:
        return self.pagination.no_result()

    def has_prev_page(self) -> bool:
        return self.pagination.has_prev_page()

    def has_next_page(self) -> bool:
        return self.pagination.has_next_page()

    def prev_page(self) -> None:
        self.pagination.prev_page()

    def next_page(self) -> None:
        self.pagination.next_page()

    @abstractmethod
    def _search_url(self) -> str:
        ...

    @abstractmethod
    def _search_params(self, query: str) -> Dict[str, str]:
        ...

    @abstractmethod
    def _parse_search(self, data: Any) -> Tuple[int, List[Image]]:
        ...

    def _attribution(self, image: Image) -> str:
        return ""

    async def _get(
        self, url: str, params: Optional[Dict[str, str]] = None
    ) -> requests.Response:
        async with self._session_lock:
            resp = await asyncio.to_thread(
                self._session.get,
                url,
                params=params,
                timeout=self.config.request_timeout,
            )
        resp.raise_for_status()
        return resp

    async def search_images(self, query: str) -> List[Image]:
        """Fetch the current page of results for a query."""
        url = self._search_url()
        params = self._search_params(query)
        logger.debug("Searching %s for %r with %s", self.provider.value, query, params)
        resp = await self._get(url, params=params)
        data = resp.json()
        try:
            total_pages, images = self._parse_search(data)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise ResponseShapeError(
                f"Unexpected {self.provider.value} search response: {exc!r}",
                response=resp,
            ) from exc

        self.pagination.total_pages = total_pages
        logger.info(
            "%s returned %d image(s) for %r (page %d of %d)",
            self.provider.value,
            len(images),
            query,
            self.pagination.current_page,
            total_pages,
        )
        return images

    async def download_image(self, url: str) -> bytes:
        async with self._session_lock:
            return await asyncio.to_thread(
                fetch_image_bytes, self._session, url, self.config.request_timeout
            )

    async def download_and_insert_image(self, image: Image, create_file: CreateFile) -> str:
        """Return the Markdown to insert for an image, saving it first in local mode."""
        self._schedule_touch(image)
        if self.config.insert_mode is InsertMode.LOCAL:
            filename = await self._save_locally(image, create_file)
            text = embedded_file(filename, self.config.insert_size)
        else:
            alt = alt_text(image.description, f"img-{timestamp(self._clock())}")
            text = remote_image(alt, image.full_url, self.config.insert_size)
        return text + self._attribution(image)

    async def download_and_get_uri(self, image: Image, create_file: CreateFile) -> str:
        """Return only the image location: its URL, or the saved file name."""
        self._schedule_touch(image)
        if self.config.insert_mode is InsertMode.LOCAL:
            return await self._save_locally(image, create_file)
        return image.full_url

    async def _save_locally(self, image: Image, create_file: CreateFile) -> str:
        name = f"{LOCAL_IMAGE_PREFIX}{timestamp(self._clock())}"
        data = await self.download_image(image.full_url)
        create_file(name, LOCAL_IMAGE_EXTENSION, data)
        logger.info("Saved %s.%s (%d bytes)", name, LOCAL_IMAGE_EXTENSION, len(data))
        return f"{name}.{LOCAL_IMAGE_EXTENSION}"

    def _schedule_touch(self, image: Image) -> None:
        if not supports_download_touch(self) or not image.download_touch_url:
            return
        task = asyncio.create_task(self._touch_quietly(image.download_touch_url))
        self._pending_touches.add(task)
        task.add_done_callback(self._pending_touches.discard)

    async def _touch_quietly(self, url: str) -> None:
        try:
            await self.touch_download_location(url)  # type: ignore[attr-defined]
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Failed to touch download location %s: %s", url, exc)

    async def wait_for_touches(self) -> None:
        """Let scheduled download touches finish before the event loop closes."""
        if self._pending_touches:
            await asyncio.gather(*list(self._pending_touches))

    def close(self) -> None:
        self._session.close()


class PixabayFetcher(BaseFetcher):
    """Pixabay search signed with the user's own API key."""

    provider = ImageProvider.PIXABAY

    def __init__(
        self,
        config: InserterConfig,
        session: Optional[requests.Session] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        super().__init__(config, session, clock)
        if not config.pixabay_api_key:
            logger.warning("No Pixabay API key configured; searches will be rejected")

    def _search_url(self) -> str:
        return PIXABAY_SEARCH_URL

    def _search_params(self, query: str) -> Dict[str, str]:
        params = {"key": self.config.pixabay_api_key, "q": query}
        orientation = PIXABAY_ORIENTATIONS.get(self.config.orientation)
        if orientation:
            params["orientation"] = orientation
        params["page"] = str(self.pagination.current_page)
        params["per_page"] = str(PER_PAGE)
        return params

    def _parse_search(self, data: Any) -> Tuple[int, List[Image]]:
        total_pages = math.ceil(int(data["total"]) / PER_PAGE)
        images = [
            Image(thumbnail=item["previewURL"], full_url=item["webformatURL"])
            for item in data["hits"]
        ]
        return total_pages, images


class UnsplashFetcher(BaseFetcher):
    """Unsplash search routed through a proxy that holds the shared API key."""

    provider = ImageProvider.UNSPLASH

    def __init__(
        self,
        config: InserterConfig,
        session: Optional[requests.Session] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        super().__init__(config, session, clock)
        self.proxy_server = resolve_proxy_server(config.proxy_server)

    def _search_url(self) -> str:
        return replace_origin(UNSPLASH_SEARCH_URL, self.proxy_server)

    def _search_params(self, query: str) -> Dict[str, str]:
        params = {"query": query}
        if self.config.orientation is not Orientation.NOT_SPECIFIED:
            params["orientation"] = self.config.orientation.value
        params["page"] = str(self.pagination.current_page)
        params["per_page"] = str(PER_PAGE)
        return params

    def _parse_search(self, data: Any) -> Tuple[int, List[Image]]:
        total_pages = int(data["total_pages"])
        images: List[Image] = []
        for item in data["results"]:
            user = item.get("user") or {}
            links = item.get("links") or {}
            author = None
            if user:
                author = Author(
                    name=user.get("name") or "",
                    username=user.get("username") or "",
                )
            images.append(
                Image(
                    thumbnail=item["urls"]["thumb"],
                    full_url=item["urls"]["regular"],
                    description=item.get("description") or item.get("alt_description"),
                    download_touch_url=links.get("download_location"),
                    author=author,
                )
            )
        return total_pages, images

    async def touch_download_location(self, url: str) -> None:
        """Report an image download to Unsplash, via the proxy."""
        if urlsplit(url).netloc == UNSPLASH_API_HOST:
            url = replace_origin(url, self.proxy_server)
        logger.debug("Touching download location %s", url)
        await self._get(url)

    def _attribution(self, image: Image) -> str:
        return unsplash_attribution(image.author, self.config.app_name)


def get_fetcher(
    config: InserterConfig,
    session: Optional[requests.Session] = None,
    clock: Optional[Clock] = None,
) -> BaseFetcher:
    """Build the fetcher for the configured provider. Performs no network I/O."""
    if config.provider is ImageProvider.PIXABAY:
        return PixabayFetcher(config, session, clock)
    return UnsplashFetcher(config, session, clock)
