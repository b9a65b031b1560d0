"""MCP server exposing pinfix resolve/save tools."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from mcp.server.fastmcp import FastMCP
from playwright.async_api import async_playwright

from .browser import PlaywrightDocument, open_page
from .config import BrowserConfig, SaveConfig, default_output_root
from .pipeline import describe, save_pages
from .resolver import MetadataResolver

logger = logging.getLogger("pinfix.mcp")
logger.setLevel(logging.ERROR)

mcp = FastMCP(name="pinfix")


@mcp.tool()
async def resolve(url: str) -> str:
    """Render a pin page and return its resolved metadata and filename as JSON."""
    async with async_playwright() as playwright:
        async with open_page(playwright, url, BrowserConfig()) as page:
            metadata = await MetadataResolver(PlaywrightDocument(page)).resolve()
    return json.dumps(describe(metadata), ensure_ascii=False)


@mcp.tool()
async def save(url: str, output_dir: Optional[str] = None) -> str:
    """Save the main image of a pin page and return the written path."""
    output_root = Path(output_dir).expanduser().resolve() if output_dir else default_output_root()
    results = await save_pages([url], SaveConfig(output_root=output_root), BrowserConfig())
    if not results or results[0].saved_path is None:
        raise RuntimeError(f"Failed to save an image from {url}")
    return str(results[0].saved_path)


def main() -> None:
    """Entry point for running the MCP server."""
    logging.basicConfig(level=logging.ERROR)
    mcp.run()


if __name__ == "__main__":
    main()
