"""Command-line entry point for searching and inserting stock photos."""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from .config import ImageProvider, InsertMode, InserterConfig, Orientation, load_config
from .fetcher import BaseFetcher, get_fetcher
from .host import NoteEditor, directory_file_writer
from .models import Image
from .orchestrator import ImageInserter

logger = logging.getLogger("image_inserter.cli")


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("query", help="Search terms")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="JSON settings file (imageProvider, orientation, insertMode, ...)",
    )
    parser.add_argument(
        "--provider",
        choices=[provider.value for provider in ImageProvider],
        default=None,
        help="Image provider to search",
    )
    parser.add_argument(
        "--orientation",
        choices=[orientation.value for orientation in Orientation],
        default=None,
        help="Restrict results to an orientation",
    )
    parser.add_argument(
        "--page",
        type=int,
        default=1,
        help="Result page to show (pages are walked from the first one)",
    )
    parser.add_argument("--api-key", default=None, help="Pixabay API key")
    parser.add_argument("--proxy", default=None, help="Proxy server for Unsplash requests")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Search Unsplash or Pixabay and insert images into Markdown notes.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    search_parser = subparsers.add_parser("search", help="List images matching a query")
    _add_common_arguments(search_parser)

    insert_parser = subparsers.add_parser(
        "insert", help="Insert an image from the results into a note"
    )
    _add_common_arguments(insert_parser)
    insert_parser.add_argument("note", type=Path, help="Markdown note to insert into")
    insert_parser.add_argument(
        "--index",
        type=int,
        default=0,
        help="Zero-based position of the image on the selected page",
    )
    insert_parser.add_argument(
        "--mode",
        choices=[mode.value for mode in InsertMode],
        default=None,
        help="Link the remote image or download it next to the note",
    )
    insert_parser.add_argument(
        "--size",
        default=None,
        help="Display size suffix, e.g. 400 for ![alt|400](...)",
    )
    insert_parser.add_argument(
        "--attachments",
        type=Path,
        default=None,
        help="Directory for downloaded images (defaults to the note's directory)",
    )
    insert_parser.add_argument(
        "--uri-only",
        action="store_true",
        help="Insert only the image URL or file name, without Markdown or attribution",
    )

    argv = list(sys.argv[1:] if argv is None else argv)
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> InserterConfig:
    config = load_config(args.config)
    overrides = {}
    if args.provider:
        overrides["provider"] = ImageProvider(args.provider)
    if args.orientation:
        overrides["orientation"] = Orientation(args.orientation)
    if args.api_key:
        overrides["pixabay_api_key"] = args.api_key
    if args.proxy:
        overrides["proxy_server"] = args.proxy
    if getattr(args, "mode", None):
        overrides["insert_mode"] = InsertMode(args.mode)
    if getattr(args, "size", None) is not None:
        overrides["insert_size"] = args.size
    return dataclasses.replace(config, **overrides)


def _print_notice(message: str) -> None:
    sys.stderr.write(message + "\n")


async def collect_page(
    inserter: ImageInserter, query: str, page: int
) -> Optional[List[Image]]:
    """Search, then step forward until the requested page or the last one."""
    fetcher = inserter.fetcher
    images = await inserter.get_suggestions(query)
    while images and fetcher.current_page < page and fetcher.has_next_page():
        fetcher.next_page()
        images = await inserter.get_suggestions(query)
    if images and fetcher.current_page < page:
        logger.warning(
            "Only %d page(s) available for %r; showing page %d",
            fetcher.total_pages,
            query,
            fetcher.current_page,
        )
    return images


def _format_image(index: int, image: Image) -> str:
    parts = [f"{index:>3}. {image.full_url}", f"thumb: {image.thumbnail}"]
    if image.description:
        parts.append(f"desc: {image.description}")
    if image.author:
        parts.append(f"by: {image.author.name} (@{image.author.username})")
    return " | ".join(parts)


async def _run_search(args: argparse.Namespace, fetcher: BaseFetcher) -> int:
    inserter = ImageInserter(fetcher, notify=_print_notice, debounce_seconds=0)
    images = await collect_page(inserter, args.query, args.page)
    if not images:
        sys.stdout.write("No results.\n")
        return 0
    for index, image in enumerate(images):
        sys.stdout.write(_format_image(index, image) + "\n")
    sys.stdout.write(
        f"Page {fetcher.current_page} of {fetcher.total_pages}"
        f"{' (more available)' if fetcher.has_next_page() else ''}\n"
    )
    return 0


async def _run_insert(args: argparse.Namespace, fetcher: BaseFetcher) -> int:
    note = Path(args.note).expanduser().resolve()
    attachments = (args.attachments or note.parent).expanduser().resolve()
    inserter = ImageInserter(
        fetcher,
        NoteEditor(note),
        directory_file_writer(attachments),
        notify=_print_notice,
        debounce_seconds=0,
    )
    images = await collect_page(inserter, args.query, args.page)
    if not images:
        sys.stdout.write("No results.\n")
        return 1
    if not 0 <= args.index < len(images):
        sys.stderr.write(f"Index {args.index} is outside 0..{len(images) - 1}\n")
        return 2
    inserted = await inserter.choose_suggestion(images[args.index], uri_only=args.uri_only)
    return 0 if inserted else 1


async def _run(args: argparse.Namespace) -> int:
    config = build_config(args)
    fetcher = get_fetcher(config)
    try:
        if args.command == "search":
            return await _run_search(args, fetcher)
        return await _run_insert(args, fetcher)
    finally:
        await fetcher.wait_for_touches()
        fetcher.close()


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
