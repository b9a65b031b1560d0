"""Command-line entry point for the Pinterest filename fixer."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
import time
from pathlib import Path
from typing import Iterable, Sequence

from .config import BrowserConfig, ResolverConfig, SaveConfig, default_output_root
from .pipeline import resolve_html, save_image, save_pages

logger = logging.getLogger("pinfix.cli")


def _ensure_command_prefix(argv: Sequence[str], commands: Iterable[str]) -> Sequence[str]:
    if not argv:
        return argv
    first = argv[0]
    if first in commands or first.startswith("-"):
        return argv
    return ("save", *argv)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--output",
        default=None,
        type=Path,
        help="Download root (default: $PINFIX_OUTPUT_DIR or ./downloads)",
    )
    parser.add_argument(
        "--wait",
        type=float,
        default=1.0,
        help="Seconds to wait after network idle before reading the page",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=30.0,
        help="Navigation timeout in seconds",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Save Pinterest images under their pin title instead of a hash.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    save_parser = subparsers.add_parser("save", help="Render pin pages and save their main image")
    save_parser.add_argument("urls", nargs="+", help="One or more pin URLs")
    _add_common_arguments(save_parser)

    image_parser = subparsers.add_parser(
        "image", help="Save an image URL, naming it from the pin page when given"
    )
    image_parser.add_argument("src_url", help="Image URL to save")
    image_parser.add_argument("--page", default=None, help="Pin page the image was taken from")
    _add_common_arguments(image_parser)

    resolve_parser = subparsers.add_parser(
        "resolve", help="Resolve metadata from a saved HTML page without downloading"
    )
    resolve_parser.add_argument("--html", required=True, type=Path, help="Saved HTML file")
    resolve_parser.add_argument("--url", required=True, help="URL the HTML was captured from")
    resolve_parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")

    argv = list(sys.argv[1:] if argv is None else argv)
    argv = list(_ensure_command_prefix(argv, subparsers.choices.keys()))
    return parser.parse_args(argv)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )


def _save_config(args: argparse.Namespace) -> SaveConfig:
    output_root = Path(args.output).resolve() if args.output else default_output_root()
    return SaveConfig(output_root=output_root)


def _browser_config(args: argparse.Namespace) -> BrowserConfig:
    return BrowserConfig(wait_after_load=args.wait, navigation_timeout=args.timeout)


def _run_save(args: argparse.Namespace) -> int:
    overall_start = time.perf_counter()
    results = asyncio.run(
        save_pages(args.urls, _save_config(args), _browser_config(args), ResolverConfig())
    )
    total_elapsed = time.perf_counter() - overall_start

    saved = [result for result in results if result.saved_path]
    for result in saved:
        sys.stdout.write(f"{result.saved_path}\n")
    logger.info(
        "Finished in %.2fs (%d/%d saved, %d failed)",
        total_elapsed,
        len(saved),
        len(args.urls),
        len(args.urls) - len(saved),
    )
    return 0 if len(saved) == len(args.urls) else 1


def _run_image(args: argparse.Namespace) -> int:
    path = asyncio.run(
        save_image(args.src_url, args.page, _save_config(args), _browser_config(args), ResolverConfig())
    )
    if path is None:
        logger.error("Nothing was saved for %s", args.src_url)
        return 1
    sys.stdout.write(f"{path}\n")
    return 0


def _run_resolve(args: argparse.Namespace) -> int:
    if not args.html.exists():
        logger.error("HTML file does not exist: %s", args.html)
        return 2
    html = args.html.read_text(encoding="utf-8")
    described = asyncio.run(resolve_html(html, args.url))
    sys.stdout.write(json.dumps(described, ensure_ascii=False, indent=2) + "\n")
    return 0 if described["imageUrl"] else 1


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    _configure_logging(args.verbose)
    if args.command == "save":
        code = _run_save(args)
    elif args.command == "image":
        code = _run_image(args)
    else:
        code = _run_resolve(args)
    sys.exit(code)


if __name__ == "__main__":
    main()
