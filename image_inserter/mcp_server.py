"""MCP server exposing image search and insertion tools."""

from __future__ import annotations

import dataclasses
import logging
import os
from pathlib import Path
from typing import List

from mcp.server.fastmcp import FastMCP

from .config import InsertMode, InserterConfig, load_config
from .fetcher import BaseFetcher, get_fetcher
from .models import Image

logger = logging.getLogger("image_inserter.mcp")
logger.setLevel(logging.ERROR)

SETTINGS_ENV = "IMAGE_INSERTER_SETTINGS"

mcp = FastMCP(name="image-inserter")


def _config() -> InserterConfig:
    settings = os.getenv(SETTINGS_ENV)
    config = load_config(Path(settings) if settings else None)
    # Tools only hand back text, so nothing is ever written to disk.
    return dataclasses.replace(config, insert_mode=InsertMode.REMOTE)


def _no_files(name: str, extension: str, binary: bytes) -> None:
    raise RuntimeError("Remote insertion does not create files")


async def _search_page(fetcher: BaseFetcher, query: str, page: int) -> List[Image]:
    images = await fetcher.search_images(query)
    while fetcher.current_page < page and fetcher.has_next_page():
        fetcher.next_page()
        images = await fetcher.search_images(query)
    return images


@mcp.tool()
async def search_images(query: str, page: int = 1) -> str:
    """Search the configured stock-photo provider and list the results as Markdown."""

    fetcher = get_fetcher(_config())
    try:
        images = await _search_page(fetcher, query, page)
    finally:
        fetcher.close()
    if not images:
        return f"No images found for '{query}'."

    lines = [f"Page {fetcher.current_page} of {fetcher.total_pages} for '{query}':", ""]
    for index, image in enumerate(images):
        label = image.description or f"image {index}"
        line = f"{index}. [{label}]({image.full_url}) - thumbnail: {image.thumbnail}"
        if image.author:
            line += f" - by {image.author.name}"
        lines.append(line)
    return "\n".join(lines)


@mcp.tool()
async def image_markdown(query: str, index: int = 0, page: int = 1) -> str:
    """Return the Markdown (with attribution) for one search result."""

    fetcher = get_fetcher(_config())
    try:
        images = await _search_page(fetcher, query, page)
        if not 0 <= index < len(images):
            raise ValueError(
                f"Index {index} is out of range; page {fetcher.current_page} "
                f"has {len(images)} image(s)"
            )
        markdown = await fetcher.download_and_insert_image(images[index], _no_files)
        await fetcher.wait_for_touches()
    finally:
        fetcher.close()
    return markdown


def main() -> None:
    """Entry point for running the MCP server."""
    logging.basicConfig(level=logging.ERROR)
    mcp.run()


if __name__ == "__main__":
    main()
