from __future__ import annotations

import base64
import io
from pathlib import Path
from typing import Callable, Tuple

import pytest
from PIL import Image

from cardrender.fonts import register_fonts


@pytest.fixture(autouse=True, scope="session")
def registered_fonts():
    # Never reach for the network from the test suite.
    return register_fonts(allow_download=False)


def png_bytes(size: Tuple[int, int], color=(200, 30, 30, 255)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGBA", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def make_data_uri() -> Callable[..., str]:
    def factory(size: Tuple[int, int] = (50, 100), color=(200, 30, 30, 255)) -> str:
        encoded = base64.b64encode(png_bytes(size, color)).decode("ascii")
        return f"data:image/png;base64,{encoded}"

    return factory


@pytest.fixture
def icon_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "icons"
    directory.mkdir()
    (directory / "fire.png").write_bytes(png_bytes((48, 48), (240, 120, 0, 255)))
    (directory / "attack.png").write_bytes(png_bytes((64, 32), (20, 20, 200, 255)))
    (directory / "broken.png").write_bytes(b"not a png")
    return directory
