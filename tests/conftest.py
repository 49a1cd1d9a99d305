"""Shared fakes for the fetcher tests: no test talks to the network."""

import datetime as dt
import logging
from typing import Callable, Dict, List, Optional, Tuple

import pytest
import requests

from image_inserter.config import ImageProvider, InserterConfig

logging.basicConfig(
    level=logging.DEBUG, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
FIXED_NOW = dt.datetime(2024, 5, 6, 7, 8, 9)
FIXED_STAMP = "20240506070809"


class FakeResponse:
    def __init__(self, json_data=None, content=b"", status_code=200, headers=None):
        self._json = json_data
        self.content = content
        self.status_code = status_code
        self.headers = headers or {}

    def json(self):
        if self._json is None:
            raise requests.JSONDecodeError("Expecting value", "", 0)
        return self._json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)


Handler = Callable[[str, Optional[Dict[str, str]]], FakeResponse]


class FakeSession:
    """Stands in for requests.Session and records every GET."""

    def __init__(self, handler: Handler):
        self.handler = handler
        self.calls: List[Tuple[str, Optional[Dict[str, str]]]] = []
        self.closed = False

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, dict(params) if params else None))
        return self.handler(url, params)

    def close(self):
        self.closed = True


def unsplash_item(description="A long mountain view", alt=None, with_user=True):
    item = {
        "description": description,
        "alt_description": alt,
        "urls": {
            "thumb": "https://images.unsplash.com/photo-1?w=200",
            "regular": "https://images.unsplash.com/photo-1?w=1080",
        },
        "links": {
            "download_location": "https://api.unsplash.com/photos/abc/download?ixid=xyz"
        },
    }
    if with_user:
        item["user"] = {"name": "Jane Doe", "username": "janedoe"}
    return item


def pixabay_hit(n=1):
    return {
        "previewURL": f"https://cdn.pixabay.com/photo/{n}_150.jpg",
        "webformatURL": f"https://pixabay.com/get/{n}_640.jpg",
    }


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def unsplash_config():
    return InserterConfig(proxy_server="https://proxy.example/")


@pytest.fixture
def pixabay_config():
    return InserterConfig(provider=ImageProvider.PIXABAY, pixabay_api_key="fakekey")


@pytest.fixture
def created_files():
    """A create_file callback that remembers what it was asked to store."""
    files = []

    def create_file(name, extension, binary):
        files.append((name, extension, binary))

    create_file.files = files
    return create_file
