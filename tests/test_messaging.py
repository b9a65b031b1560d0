import asyncio

import pytest

from pinfix.messaging import ContextMenu, MessageBus, NoReceiverError


@pytest.mark.asyncio
async def test_push_is_delivered_as_json_copy():
    bus = MessageBus()
    received = []

    async def listener(message):
        received.append(message)

    bus.add_runtime_listener(listener)
    payload = {"type": "DOWNLOAD_IMAGE", "title": "Cake"}
    task = bus.send_message(payload)
    payload["title"] = "Changed"
    await task

    assert received == [{"type": "DOWNLOAD_IMAGE", "title": "Cake"}]


@pytest.mark.asyncio
async def test_push_rejects_non_json_payload():
    bus = MessageBus()
    with pytest.raises(TypeError):
        bus.send_message({"type": "DOWNLOAD_IMAGE", "when": object()})


@pytest.mark.asyncio
async def test_push_failures_stay_in_listener():
    bus = MessageBus()

    async def broken(message):
        raise RuntimeError("boom")

    bus.add_runtime_listener(broken)
    bus.send_message({"type": "DOWNLOAD_IMAGE"})
    await bus.drain()


@pytest.mark.asyncio
async def test_pull_without_listener_raises():
    bus = MessageBus()
    with pytest.raises(NoReceiverError):
        await bus.send_to_tab(7, {"type": "GET_PIN_META"})


@pytest.mark.asyncio
async def test_pull_unanswered_type_raises():
    bus = MessageBus()

    async def page(message):
        return None

    bus.add_tab_listener(7, page)
    with pytest.raises(NoReceiverError):
        await bus.send_to_tab(7, {"type": "SOMETHING_ELSE"})


@pytest.mark.asyncio
async def test_pull_returns_reply_and_honours_timeout():
    bus = MessageBus()

    async def page(message):
        return {"title": "Cake", "pinId": "1"}

    async def slow(message):
        await asyncio.sleep(1)
        return {}

    bus.add_tab_listener(1, page)
    bus.add_tab_listener(2, slow)

    assert await bus.send_to_tab(1, {"type": "GET_PIN_META"}) == {"title": "Cake", "pinId": "1"}
    with pytest.raises(asyncio.TimeoutError):
        await bus.send_to_tab(2, {"type": "GET_PIN_META"}, timeout=0.01)

    bus.remove_tab_listener(1)
    with pytest.raises(NoReceiverError):
        await bus.send_to_tab(1, {"type": "GET_PIN_META"})


@pytest.mark.asyncio
async def test_context_menu_dispatches_clicks():
    menus = ContextMenu()
    clicks = []

    async def handler(info):
        clicks.append(info)

    menus.create("save-it", "Save it", ["image"])
    menus.on_clicked(handler)
    await menus.click("save-it", src_url="https://i.pinimg.com/x.jpg", tab_id=3)

    assert menus.items["save-it"]["contexts"] == ["image"]
    assert clicks[0].menu_item_id == "save-it"
    assert clicks[0].src_url == "https://i.pinimg.com/x.jpg"
    assert clicks[0].tab_id == 3
    with pytest.raises(KeyError):
        await menus.click("missing")
