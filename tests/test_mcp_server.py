import json
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import pytest

from conftest import CLOSEUP_SRC, PIN_URL, pin_page

from pinfix import mcp_server
from pinfix.document import StaticDocument
from pinfix.pipeline import SaveResult


@pytest.fixture
def static_page(monkeypatch):
    @asynccontextmanager
    async def fake_playwright():
        yield MagicMock()

    @asynccontextmanager
    async def fake_open_page(playwright, url, config):
        yield StaticDocument(url, pin_page())

    monkeypatch.setattr(mcp_server, "async_playwright", fake_playwright)
    monkeypatch.setattr(mcp_server, "open_page", fake_open_page)
    monkeypatch.setattr(mcp_server, "PlaywrightDocument", lambda page: page)


@pytest.mark.asyncio
async def test_resolve_tool_returns_json(static_page):
    report = json.loads(await mcp_server.resolve(PIN_URL))

    assert report["url"] == PIN_URL
    assert report["title"] == "Chocolate Cake Recipe"
    assert report["pinId"] == "987654321"
    assert report["imageUrl"] == CLOSEUP_SRC
    assert report["filename"] == "Pinterest/Chocolate Cake Recipe.jpg"


@pytest.mark.asyncio
async def test_save_tool_returns_saved_path(monkeypatch, tmp_path):
    saved = tmp_path / "Pinterest" / "Chocolate Cake Recipe.jpg"
    fake_save = AsyncMock(return_value=[SaveResult(url=PIN_URL, metadata=None, saved_path=saved)])
    monkeypatch.setattr(mcp_server, "save_pages", fake_save)

    assert await mcp_server.save(PIN_URL, output_dir=str(tmp_path)) == str(saved)

    urls, save_config, _ = fake_save.await_args.args
    assert urls == [PIN_URL]
    assert save_config.output_root == tmp_path.resolve()


@pytest.mark.asyncio
async def test_save_tool_raises_when_nothing_saved(monkeypatch, tmp_path):
    monkeypatch.setattr(
        mcp_server,
        "save_pages",
        AsyncMock(return_value=[SaveResult(url=PIN_URL, metadata=None, saved_path=None)]),
    )

    with pytest.raises(RuntimeError, match="Failed to save"):
        await mcp_server.save(PIN_URL, output_dir=str(tmp_path))
