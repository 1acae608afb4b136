"""
Greedy word wrapping against measured text widths.

Lines are built token by token and flushed as soon as the next token would
push the line past ``max_width``. Tokens are never split, so a single token
wider than the box overflows on its own line.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Callable, List, Optional, Tuple

from PIL import ImageDraw, ImageFont

logger = logging.getLogger(__name__)

PARAGRAPH_PATTERN = re.compile(r"[\r\n]+")
WHITESPACE_PATTERN = re.compile(r"(\s+)")
# Ideographs, kana and full-width forms break between characters.
CJK_PATTERN = re.compile(
    r"([\u3000-\u303f\u3040-\u30ff\u3400-\u4dbf\u4e00-\u9fff\uf900-\ufaff\uff00-\uffef])"
)

Measure = Callable[[str], float]


def measure_text_width(
    draw: ImageDraw.ImageDraw,
    text: str,
    font: ImageFont.ImageFont,
) -> float:
    return draw.textlength(text, font=font)


def tokenize(paragraph: str) -> List[str]:
    tokens: List[str] = []
    for piece in WHITESPACE_PATTERN.split(paragraph):
        if not piece:
            continue
        if piece.isspace():
            tokens.append(piece)
            continue
        tokens.extend(part for part in CJK_PATTERN.split(piece) if part)
    return tokens


def layout_lines(
    text: Optional[str],
    measure: Measure,
    max_width: float,
    max_lines: Optional[int] = None,
) -> List[str]:
    lines: List[str] = []
    if not text:
        return lines
    if max_lines is not None and max_lines <= 0:
        return lines

    def full() -> bool:
        return max_lines is not None and len(lines) >= max_lines

    for paragraph in PARAGRAPH_PATTERN.split(str(text)):
        line = ""
        for token in tokenize(paragraph):
            candidate = line + token
            if line and measure(candidate) > max_width:
                lines.append(line)
                if full():
                    return lines
                line = token.lstrip()
            else:
                line = candidate
        if line:
            lines.append(line)
            if full():
                return lines
    return lines


def draw_wrapped_text(
    draw: ImageDraw.ImageDraw,
    text: Optional[str],
    xy: Tuple[float, float],
    max_width: float,
    line_height: float,
    font: ImageFont.ImageFont,
    fill,
    max_lines: Optional[int] = None,
    anchor: str = "lm",
) -> int:
    """Draw ``text`` wrapped to ``max_width`` and return the number of lines drawn."""
    x, y = xy
    lines = layout_lines(
        text,
        lambda value: measure_text_width(draw, value, font),
        max_width,
        max_lines=max_lines,
    )
    for line in lines:
        draw.text((x, y), line, font=font, fill=fill, anchor=anchor)
        y += line_height
    if lines:
        logger.debug(
            "Wrapped %d chars into %d lines (max_width=%s)",
            len(text or ""),
            len(lines),
            max_width,
        )
    return len(lines)


def estimate_line_count(
    draw: ImageDraw.ImageDraw,
    text: Optional[str],
    font: ImageFont.ImageFont,
    max_width: float,
) -> int:
    """Line count guessed from the unwrapped width of the whole string."""
    if not text or max_width <= 0:
        return 0
    return math.ceil(measure_text_width(draw, single_line(text), font) / max_width)


def single_line(text: Optional[str]) -> str:
    return PARAGRAPH_PATTERN.sub(" ", text or "").strip()
