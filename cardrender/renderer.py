"""
Card layout for the 885x1290 template.

A render runs a fixed list of stages against one canvas. Stages that flow
content downwards (title, tags, abilities) share a LayoutCursor; the header,
metadata line, artwork frame and footer sit at fixed template positions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from PIL import Image, ImageDraw

from .compositor import ArtworkResult, IconLibrary, draw_artwork, paste_icon
from .encoder import encode_png
from .fonts import get_font, resources_dir
from .models import AbilitySlot, CardData, LayoutCursor, Theme, validate_card
from .text_layout import (
    draw_wrapped_text,
    estimate_line_count,
    measure_text_width,
    single_line,
)
from .theme import select_theme

logger = logging.getLogger(__name__)

CANVAS_SIZE = (885, 1290)
CANVAS_WIDTH, CANVAS_HEIGHT = CANVAS_SIZE
GRADIENT_END = (255, 255, 255)
TEXT_COLOR = (0, 0, 0)

HEADER_HEIGHT = 72

ART_BOX = (40, 96, CANVAS_WIDTH - 80, 540)
ART_RADIUS = 16

TITLE_FONT_SIZE = 36
TITLE_CENTER_X = CANVAS_WIDTH // 2
TITLE_Y = ART_BOX[1] + ART_BOX[3] + 34
TITLE_GAP = 40

META_FONT_SIZE = 16
META_POSITION = (CANVAS_WIDTH - 24, 1246)
META_SEPARATOR = "  ·  "
META_GAP = 16

CONTENT_X = 32
CONTENT_WIDTH = CANVAS_WIDTH - CONTENT_X * 2
CONTENT_TOP = TITLE_Y + TITLE_GAP

CHIP_FONT_SIZE = 14
CHIP_HEIGHT = 24
CHIP_RADIUS = 12
CHIP_PADDING = 9
CHIP_GAP = 8
CHIP_ROW_HEIGHT = 32
CHIP_BLOCK_ADVANCE = 40
CHIP_ICON_SIZE = 16
CHIP_ICON_GAP = 4
CHIP_FILL = (255, 255, 255)

ABILITY_ICON_SIZE = 32
ABILITY_ICON_GAP = 8
ABILITY_LABEL_GAP = 12
ABILITY_LABEL_FONT_SIZE = 18
ABILITY_BODY_FONT_SIZE = 16
ABILITY_LINE_HEIGHT = 26
ABILITY_BLOCK_GAP = 12
ABILITY_EXTRA_INDENT = 24
ABILITY_LABEL_SEPARATOR = " · "

FOOTER_FONT_SIZE = 12
FOOTER_LINE_HEIGHT = 18
FOOTER_MAX_LINES = 3
FOOTER_Y = CANVAS_HEIGHT - 56
FOOTER_COLOR = (49, 49, 50)
FOOTER_SEPARATOR = "  ·  "

MEASURED = "measured"
ESTIMATED = "estimated"
LAYOUT_MODES = (MEASURED, ESTIMATED)

STAGES = (
    "background",
    "header",
    "title",
    "metadata",
    "artwork",
    "tags",
    "abilities",
    "footer",
)


def default_icon_dir() -> Path:
    return resources_dir() / "icons"


@dataclass
class RenderOptions:
    icon_dir: Optional[Path] = None
    # "estimated" reproduces the legacy advance: ceil(unwrapped width / content width).
    cursor_advance: str = MEASURED
    title_centering: str = MEASURED

    def __post_init__(self) -> None:
        if self.cursor_advance not in LAYOUT_MODES:
            raise ValueError(f"Unknown cursor advance mode: {self.cursor_advance}")
        if self.title_centering not in LAYOUT_MODES:
            raise ValueError(f"Unknown title centering mode: {self.title_centering}")
        if self.icon_dir is None:
            self.icon_dir = default_icon_dir()


@dataclass(frozen=True)
class ChipPlacement:
    tag: str
    x: int
    y: int
    width: int
    row: int
    has_icon: bool


@dataclass
class RenderReport:
    theme: Theme
    stages: List[str] = field(default_factory=list)
    title_x: float = 0.0
    artwork: Optional[ArtworkResult] = None
    chips: List[ChipPlacement] = field(default_factory=list)
    chip_rows: int = 0
    ability_blocks: int = 0
    ability_lines: List[int] = field(default_factory=list)
    ability_text_x: List[int] = field(default_factory=list)
    metadata_width: int = 0
    footer_lines: int = 0
    footer_width: int = 0
    footer_bottom: float = 0.0
    missing_icons: List[str] = field(default_factory=list)
    cursor_trace: List[int] = field(default_factory=list)


@dataclass
class RenderContext:
    canvas: Image.Image
    draw: ImageDraw.ImageDraw
    theme: Theme
    cursor: LayoutCursor
    icons: IconLibrary
    report: RenderReport


@dataclass
class RenderResult:
    image: Image.Image
    report: RenderReport

    def to_png(self) -> bytes:
        return encode_png(self.image)


class CardRenderer:
    def __init__(self, options: Optional[RenderOptions] = None) -> None:
        self.options = options or RenderOptions()

    def render(self, card: CardData) -> RenderResult:
        validate_card(card)
        theme = select_theme(card.category, card.tags)
        canvas = Image.new("RGB", CANVAS_SIZE, GRADIENT_END)
        ctx = RenderContext(
            canvas=canvas,
            draw=ImageDraw.Draw(canvas),
            theme=theme,
            cursor=LayoutCursor(0),
            icons=IconLibrary(self.options.icon_dir),
            report=RenderReport(theme=theme),
        )
        for stage in STAGES:
            getattr(self, f"_draw_{stage}")(ctx, card)
            ctx.report.stages.append(stage)
        ctx.report.missing_icons = list(ctx.icons.missing)
        ctx.report.cursor_trace = list(ctx.cursor.trace)
        logger.debug(
            "Rendered card %r: %d chips, %d ability blocks, cursor ended at %d",
            card.name,
            len(ctx.report.chips),
            ctx.report.ability_blocks,
            ctx.cursor.y,
        )
        return RenderResult(image=canvas, report=ctx.report)

    def _draw_background(self, ctx: RenderContext, card: CardData) -> None:
        top = Image.new("RGB", CANVAS_SIZE, ctx.theme.background)
        bottom = Image.new("RGB", CANVAS_SIZE, GRADIENT_END)
        mask = Image.linear_gradient("L").resize(CANVAS_SIZE)
        ctx.canvas.paste(Image.composite(bottom, top, mask), (0, 0))

    def _draw_header(self, ctx: RenderContext, card: CardData) -> None:
        ctx.draw.rectangle((0, 0, CANVAS_WIDTH, HEADER_HEIGHT), fill=ctx.theme.accent)
        ctx.cursor.move_to(HEADER_HEIGHT)

    def _draw_title(self, ctx: RenderContext, card: CardData) -> None:
        font = get_font(TITLE_FONT_SIZE)
        name = single_line(card.name)
        if self.options.title_centering == ESTIMATED:
            x = TITLE_CENTER_X - len(name) * TITLE_FONT_SIZE / 2
        else:
            x = TITLE_CENTER_X - measure_text_width(ctx.draw, name, font) / 2
        ctx.draw.text((x, TITLE_Y), name, font=font, fill=TEXT_COLOR, anchor="lm")
        ctx.report.title_x = x
        ctx.cursor.move_to(CONTENT_TOP)

    def _draw_metadata(self, ctx: RenderContext, card: CardData) -> None:
        text = META_SEPARATOR.join(
            single_line(part) for part in (card.category, card.number) if part
        )
        if not text:
            return
        font = get_font(META_FONT_SIZE)
        ctx.draw.text(META_POSITION, text, font=font, fill=TEXT_COLOR, anchor="rm")
        ctx.report.metadata_width = int(measure_text_width(ctx.draw, text, font))

    def _draw_artwork(self, ctx: RenderContext, card: CardData) -> None:
        ctx.report.artwork = draw_artwork(ctx.canvas, card.art, ART_BOX, radius=ART_RADIUS)

    def _draw_tags(self, ctx: RenderContext, card: CardData) -> None:
        if not card.tags:
            return
        font = get_font(CHIP_FONT_SIZE)
        left = CONTENT_X
        right = CONTENT_X + CONTENT_WIDTH
        x = left
        row = 0
        for tag in card.tags:
            label = f"#{single_line(tag)}"
            icon = ctx.icons.load(tag)
            chip_w = int(measure_text_width(ctx.draw, label, font)) + CHIP_PADDING * 2
            if icon is not None:
                chip_w += CHIP_ICON_SIZE + CHIP_ICON_GAP
            if x > left and x + chip_w > right:
                x = left
                row += 1
                ctx.cursor.advance(CHIP_ROW_HEIGHT)
            y = ctx.cursor.y
            ctx.draw.rounded_rectangle(
                (x, y, x + chip_w, y + CHIP_HEIGHT),
                radius=CHIP_RADIUS,
                fill=CHIP_FILL,
                outline=ctx.theme.accent,
            )
            text_x = x + CHIP_PADDING
            if icon is not None:
                paste_icon(
                    ctx.canvas,
                    icon,
                    (text_x, y + (CHIP_HEIGHT - CHIP_ICON_SIZE) // 2),
                    CHIP_ICON_SIZE,
                )
                text_x += CHIP_ICON_SIZE + CHIP_ICON_GAP
            ctx.draw.text(
                (text_x, y + CHIP_HEIGHT / 2), label, font=font, fill=TEXT_COLOR, anchor="lm"
            )
            ctx.report.chips.append(ChipPlacement(tag, x, y, chip_w, row, icon is not None))
            x += chip_w + CHIP_GAP
        ctx.report.chip_rows = row + 1
        ctx.cursor.advance(CHIP_BLOCK_ADVANCE)

    def _draw_abilities(self, ctx: RenderContext, card: CardData) -> None:
        for slot in card.populated_slots():
            self._draw_ability_slot(ctx, slot)
            ctx.report.ability_blocks += 1
        if ctx.cursor.y > FOOTER_Y - FOOTER_LINE_HEIGHT:
            logger.warning(
                "Ability text for %r runs into the footer (cursor at %d)",
                card.name,
                ctx.cursor.y,
            )

    def _draw_ability_slot(self, ctx: RenderContext, slot: AbilitySlot) -> None:
        label = ABILITY_LABEL_SEPARATOR.join(
            part for part in (slot.chance, slot.cost) if part
        )
        if slot.mode or label or slot.description:
            self._draw_ability_block(ctx, CONTENT_X, slot.mode, label, slot.description)
        extra = slot.extra
        if extra is not None and not extra.is_empty():
            self._draw_ability_block(
                ctx,
                CONTENT_X + ABILITY_EXTRA_INDENT,
                extra.mode,
                extra.cost or "",
                extra.description,
            )

    def _draw_ability_block(
        self,
        ctx: RenderContext,
        left: int,
        mode: Optional[str],
        label: str,
        description: Optional[str],
    ) -> int:
        top = ctx.cursor.y
        label = single_line(label)
        middle = top + ABILITY_ICON_SIZE / 2
        x = left
        if mode:
            icon = ctx.icons.load(mode)
            if icon is not None:
                paste_icon(ctx.canvas, icon, (x, top), ABILITY_ICON_SIZE)
            x += ABILITY_ICON_SIZE + ABILITY_ICON_GAP
        if label:
            label_font = get_font(ABILITY_LABEL_FONT_SIZE)
            ctx.draw.text((x, middle), label, font=label_font, fill=ctx.theme.accent, anchor="lm")
            x += int(measure_text_width(ctx.draw, label, label_font)) + ABILITY_LABEL_GAP

        body_font = get_font(ABILITY_BODY_FONT_SIZE)
        text_width = max(1, CONTENT_X + CONTENT_WIDTH - x)
        lines = draw_wrapped_text(
            ctx.draw,
            description,
            (x, middle),
            text_width,
            ABILITY_LINE_HEIGHT,
            body_font,
            TEXT_COLOR,
        )
        ctx.report.ability_lines.append(lines)
        ctx.report.ability_text_x.append(x)

        if self.options.cursor_advance == ESTIMATED:
            counted = estimate_line_count(ctx.draw, description, body_font, CONTENT_WIDTH)
        else:
            counted = lines
        height = counted * ABILITY_LINE_HEIGHT
        if mode or label:
            height = max(height, ABILITY_ICON_SIZE)
        ctx.cursor.advance(height + ABILITY_BLOCK_GAP)
        return lines

    def _draw_footer(self, ctx: RenderContext, card: CardData) -> None:
        text = FOOTER_SEPARATOR.join(part for part in (card.note, card.copyright) if part)
        if not text:
            return
        font = get_font(FOOTER_FONT_SIZE)
        # Footer lines share the bottom band with the right-aligned metadata.
        width = CONTENT_WIDTH
        if ctx.report.metadata_width:
            beside_meta = META_POSITION[0] - ctx.report.metadata_width - META_GAP - CONTENT_X
            width = max(1, min(width, beside_meta))
        lines = draw_wrapped_text(
            ctx.draw,
            text,
            (CONTENT_X, FOOTER_Y),
            width,
            FOOTER_LINE_HEIGHT,
            font,
            FOOTER_COLOR,
            max_lines=FOOTER_MAX_LINES,
        )
        ctx.report.footer_lines = lines
        ctx.report.footer_width = width
        if lines:
            ctx.report.footer_bottom = (
                FOOTER_Y + (lines - 1) * FOOTER_LINE_HEIGHT + FOOTER_LINE_HEIGHT / 2
            )


def render_card(card: CardData, options: Optional[RenderOptions] = None) -> RenderResult:
    return CardRenderer(options).render(card)


def render_card_png(card: CardData, options: Optional[RenderOptions] = None) -> bytes:
    return render_card(card, options).to_png()
