from conftest import CLOSEUP_SRC, PIN_URL, pin_page

from pinfix.document import PageSnapshot
from pinfix.extractors import (
    image_from_closeup,
    image_from_preview,
    is_asset_url,
    make_image_scanner,
    pin_id_from_url,
    title_from_closeup,
    title_from_headings,
)


def snapshot(html, url=PIN_URL, sizes=None):
    return PageSnapshot.from_html(html, url, sizes)


def test_title_from_closeup_prefers_specific_selector():
    snap = snapshot(pin_page(title="  Chocolate   Cake Recipe "))
    assert title_from_closeup(snap) == "Chocolate Cake Recipe"


def test_title_from_closeup_skips_generic_titles():
    html = """
    <div data-test-id="closeup-title"><h1>Pinterest</h1></div>
    <main><h1>Red Sneakers Outfit</h1></main>
    """
    assert title_from_closeup(snapshot(html)) == "Red Sneakers Outfit"


def test_title_from_closeup_rejects_overlong_text():
    html = f'<div data-test-id="closeup-title"><h1>{"x" * 301}</h1></div>'
    assert title_from_closeup(snapshot(html)) is None


def test_title_from_headings_uses_document_order():
    html = "<h2>Pinterest - Home</h2><h3>A</h3><h4>Garden Ideas</h4><h1>Later</h1>"
    assert title_from_headings(snapshot(html)) == "Garden Ideas"


def test_title_missing_returns_none():
    assert title_from_headings(snapshot("<p>No headings</p>")) is None


def test_pin_id_from_url():
    assert pin_id_from_url(PIN_URL) == "987654321"
    assert pin_id_from_url("https://www.pinterest.com/ideas/cake/") == ""


def test_asset_url_signature():
    assert is_asset_url(CLOSEUP_SRC)
    assert is_asset_url("https://pinimg.com/x.jpg")
    assert not is_asset_url("https://s.pinterest.com/logo.png")
    assert not is_asset_url("https://evilpinimg.com/x.jpg")


def test_image_from_closeup_records_alt_text():
    candidate = image_from_closeup(snapshot(pin_page(alt="  Red Sneakers  ")))
    assert candidate.url == CLOSEUP_SRC
    assert candidate.alt == "Red Sneakers"
    assert candidate.source == "closeup"


def test_image_from_closeup_ignores_non_cdn_images():
    html = """
    <div data-test-id="pin-closeup-image"><img src="https://example.com/a.jpg"></div>
    <div data-test-id="closeup-image"><img src="https://i.pinimg.com/originals/aa/bb/cc/1234abcd.png"></div>
    """
    candidate = image_from_closeup(snapshot(html))
    assert candidate.url.endswith("1234abcd.png")
    assert candidate.alt == ""


def test_scan_picks_largest_and_filters_small_and_profile_images():
    html = """
    <img src="https://i.pinimg.com/75x75_RS/aa/avatar.jpg" width="900" height="900">
    <img src="https://i.pinimg.com/236x/thumb.jpg" width="150" height="300">
    <img src="https://i.pinimg.com/474x/medium.jpg" alt="medium" width="474" height="600">
    <img src="https://i.pinimg.com/736x/large.jpg" alt="large" width="736" height="900">
    <img src="https://i.pinimg.com/boards/cover.jpg" width="1000" height="1000">
    <img src="https://example.com/huge.jpg" width="3000" height="3000">
    """
    candidate = make_image_scanner()(snapshot(html))
    assert candidate.url == "https://i.pinimg.com/736x/large.jpg"
    assert candidate.alt == "large"
    assert candidate.source == "scan"


def test_scan_breaks_ties_by_first_seen():
    html = """
    <img src="https://i.pinimg.com/736x/first.jpg" width="400" height="400">
    <img src="https://i.pinimg.com/736x/second.jpg" width="400" height="400">
    """
    assert make_image_scanner()(snapshot(html)).url.endswith("first.jpg")


def test_scan_prefers_captured_rendered_sizes():
    html = """
    <img src="https://i.pinimg.com/736x/a.jpg" width="900" height="900">
    <img src="https://i.pinimg.com/736x/b.jpg">
    """
    sizes = {
        "https://i.pinimg.com/736x/a.jpg": (100, 100),
        "https://i.pinimg.com/736x/b.jpg": (600, 800),
    }
    assert make_image_scanner()(snapshot(html, sizes=sizes)).url.endswith("b.jpg")


def test_scan_respects_element_budget():
    small = "".join(
        f'<img src="https://i.pinimg.com/236x/{i}.jpg" width="10" height="10">' for i in range(5)
    )
    big = '<img src="https://i.pinimg.com/736x/late.jpg" width="800" height="800">'
    assert make_image_scanner(scan_limit=5)(snapshot(small + big)) is None
    assert make_image_scanner(scan_limit=6)(snapshot(small + big)).url.endswith("late.jpg")


def test_preview_requires_cdn_host():
    good = '<meta property="og:image" content="https://i.pinimg.com/736x/p.jpg">'
    bad = '<meta property="og:image" content="https://example.com/p.jpg">'
    assert image_from_preview(snapshot(good)).source == "preview"
    assert image_from_preview(snapshot(bad)) is None
    assert image_from_preview(snapshot("<p></p>")) is None
