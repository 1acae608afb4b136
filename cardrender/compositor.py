from __future__ import annotations

import base64
import binascii
import io
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from PIL import Image, ImageDraw, ImageFont, ImageOps, UnidentifiedImageError

from .errors import AssetDecodeFailure
from .fonts import get_font

logger = logging.getLogger(__name__)

Rect = Tuple[int, int, int, int]

ARTWORK_BASE = (34, 34, 34)
PLACEHOLDER_STROKE = (85, 85, 85)
PLACEHOLDER_TEXT = (119, 119, 119)
PLACEHOLDER_INSET = 8
PLACEHOLDER_DASH = (6, 6)
PLACEHOLDER_LABEL = "无插画"
FAILED_LABEL = "插画加载失败"
PLACEHOLDER_FONT_SIZE = 18

OUTCOME_IMAGE = "image"
OUTCOME_PLACEHOLDER = "placeholder"
OUTCOME_FAILED = "failed"


@dataclass(frozen=True)
class Placement:
    x: int
    y: int
    width: int
    height: int
    scale: float


@dataclass(frozen=True)
class ArtworkResult:
    outcome: str
    placement: Optional[Placement] = None

    @property
    def is_placeholder(self) -> bool:
        return self.outcome != OUTCOME_IMAGE


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def fit_within(src_size: Tuple[int, int], box: Rect) -> Placement:
    """Scale ``src_size`` to fit inside ``box`` keeping its aspect ratio, centered."""
    src_w, src_h = src_size
    x, y, width, height = box
    if src_w <= 0 or src_h <= 0:
        raise ValueError(f"Invalid source size: {src_w}x{src_h}")
    scale = min(width / src_w, height / src_h)
    draw_w = max(1, _round_half_up(src_w * scale))
    draw_h = max(1, _round_half_up(src_h * scale))
    dx = x + _round_half_up((width - draw_w) / 2)
    dy = y + _round_half_up((height - draw_h) / 2)
    return Placement(dx, dy, draw_w, draw_h, scale)


def decode_data_uri(value: str) -> Image.Image:
    if not value or not value.startswith("data:image/"):
        raise AssetDecodeFailure("Artwork is not an image data URI")
    header, sep, payload = value.partition(",")
    if not sep or ";base64" not in header:
        raise AssetDecodeFailure("Artwork data URI is not base64 encoded")
    try:
        raw = base64.b64decode("".join(payload.split()), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise AssetDecodeFailure("Artwork base64 payload is invalid", str(exc)) from exc
    try:
        with Image.open(io.BytesIO(raw)) as opened:
            opened.load()
            return opened.convert("RGBA")
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as exc:
        raise AssetDecodeFailure("Artwork image could not be decoded", str(exc)) from exc


def rounded_mask(size: Tuple[int, int], radius: float) -> Image.Image:
    width, height = size
    radius = int(min(radius, width / 2, height / 2))
    mask = Image.new("L", size, 0)
    ImageDraw.Draw(mask).rounded_rectangle(
        (0, 0, width - 1, height - 1), radius=radius, fill=255
    )
    return mask


def draw_dashed_rectangle(
    draw: ImageDraw.ImageDraw,
    bounds: Tuple[int, int, int, int],
    fill,
    width: int = 2,
    dash: Tuple[int, int] = PLACEHOLDER_DASH,
) -> None:
    x0, y0, x1, y1 = bounds
    on, off = dash
    step = on + off
    for start in range(x0, x1, step):
        end = min(start + on, x1)
        draw.line((start, y0, end, y0), fill=fill, width=width)
        draw.line((start, y1, end, y1), fill=fill, width=width)
    for start in range(y0, y1, step):
        end = min(start + on, y1)
        draw.line((x0, start, x0, end), fill=fill, width=width)
        draw.line((x1, start, x1, end), fill=fill, width=width)


def _draw_placeholder(
    layer: Image.Image,
    label: str,
    font: ImageFont.ImageFont,
) -> None:
    width, height = layer.size
    draw = ImageDraw.Draw(layer)
    draw_dashed_rectangle(
        draw,
        (
            PLACEHOLDER_INSET,
            PLACEHOLDER_INSET,
            width - PLACEHOLDER_INSET - 1,
            height - PLACEHOLDER_INSET - 1,
        ),
        fill=PLACEHOLDER_STROKE,
    )
    draw.text((16, 28), label, font=font, fill=PLACEHOLDER_TEXT, anchor="lm")


def draw_artwork(
    canvas: Image.Image,
    art: Optional[str],
    box: Rect,
    radius: float = 16,
    font: Optional[ImageFont.ImageFont] = None,
) -> ArtworkResult:
    """Compose the artwork region; a missing or broken image degrades to a placeholder."""
    x, y, width, height = box
    font = font or get_font(PLACEHOLDER_FONT_SIZE)
    layer = Image.new("RGBA", (width, height), ARTWORK_BASE + (255,))

    if not art:
        _draw_placeholder(layer, PLACEHOLDER_LABEL, font)
        result = ArtworkResult(OUTCOME_PLACEHOLDER)
    else:
        try:
            image = decode_data_uri(art)
        except AssetDecodeFailure as exc:
            logger.warning("Artwork decode failed: %s (%s)", exc.message, exc.detail)
            _draw_placeholder(layer, FAILED_LABEL, font)
            result = ArtworkResult(OUTCOME_FAILED)
        else:
            local = fit_within(image.size, (0, 0, width, height))
            resized = image.resize((local.width, local.height), Image.LANCZOS)
            layer.alpha_composite(resized, (local.x, local.y))
            logger.debug(
                "Artwork %sx%s -> %sx%s at scale %.3f",
                image.width,
                image.height,
                local.width,
                local.height,
                local.scale,
            )
            result = ArtworkResult(
                OUTCOME_IMAGE,
                Placement(x + local.x, y + local.y, local.width, local.height, local.scale),
            )

    canvas.paste(layer.convert("RGB"), (x, y), rounded_mask((width, height), radius))
    return result


class IconLibrary:
    """Icons looked up by exact key as ``<key>.png`` inside one directory."""

    def __init__(self, icon_dir: Optional[Path]) -> None:
        self.icon_dir = Path(icon_dir) if icon_dir else None
        self.missing: List[str] = []
        self._loaded: Dict[str, Optional[Image.Image]] = {}

    def resolve(self, key: Optional[str]) -> Optional[Path]:
        key = key or ""
        if not key or self.icon_dir is None:
            return None
        if key in {".", ".."} or Path(key).name != key or "\\" in key:
            return None
        return self.icon_dir / f"{key}.png"

    def load(self, key: Optional[str]) -> Optional[Image.Image]:
        key = key or ""
        if key in self._loaded:
            return self._loaded[key]
        image: Optional[Image.Image] = None
        path = self.resolve(key)
        if path is None or not path.is_file():
            logger.warning("Icon not found for key %r in %s", key, self.icon_dir)
        else:
            try:
                with Image.open(path) as opened:
                    image = opened.convert("RGBA")
            except (UnidentifiedImageError, OSError) as exc:
                logger.warning("Failed to decode icon %s: %s", path, exc)
        if image is None:
            self.missing.append(key)
        self._loaded[key] = image
        return image


def paste_icon(
    canvas: Image.Image,
    icon: Image.Image,
    origin: Tuple[int, int],
    size: int,
) -> Placement:
    contained = ImageOps.contain(icon, (size, size), method=Image.LANCZOS)
    x = int(origin[0]) + (size - contained.width) // 2
    y = int(origin[1]) + (size - contained.height) // 2
    canvas.paste(contained, (x, y), contained)
    return Placement(x, y, contained.width, contained.height, contained.width / icon.width)
