from pathlib import Path
from typing import List, Tuple

import pytest

PIN_URL = "https://www.pinterest.com/pin/987654321/"
CLOSEUP_SRC = "https://i.pinimg.com/originals/ab/cd/ef123456.jpg"


class FakeClock:
    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeDownloadService:
    def __init__(self, root: Path = Path("/downloads")) -> None:
        self.root = root
        self.calls: List[Tuple[str, str, str]] = []
        self.error: Exception | None = None

    def download(self, url: str, filename: str, conflict_action: str = "uniquify") -> Path:
        self.calls.append((url, filename, conflict_action))
        if self.error is not None:
            raise self.error
        return self.root / filename


def pin_page(
    title: str = "Chocolate Cake Recipe",
    image_src: str = CLOSEUP_SRC,
    alt: str = "A slice of chocolate cake",
    extra: str = "",
) -> str:
    return f"""
    <html>
      <head>
        <title>Pinterest</title>
        <meta property="og:image" content="https://i.pinimg.com/736x/11/22/33/preview.jpg">
      </head>
      <body>
        <header><h1>Pinterest</h1></header>
        <main>
          <div data-test-id="pin-closeup-image">
            <img src="{image_src}" alt="{alt}" width="736" height="1104">
          </div>
          <div data-test-id="closeup-title"><h1>{title}</h1></div>
          {extra}
        </main>
      </body>
    </html>
    """


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def download_service() -> FakeDownloadService:
    return FakeDownloadService()
