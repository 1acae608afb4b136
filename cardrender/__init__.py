"""Core card composition utilities for cardsnap."""

from .errors import (  # noqa: F401
    AssetDecodeFailure,
    CardRenderError,
    EncodeFailure,
    PayloadTooLarge,
    ValidationError,
)
from .fonts import register_fonts  # noqa: F401
from .models import AbilityExtra, AbilitySlot, CardData, Theme  # noqa: F401
from .renderer import (  # noqa: F401
    CardRenderer,
    RenderOptions,
    RenderResult,
    render_card,
    render_card_png,
)
from .theme import select_theme  # noqa: F401

__all__ = [
    "AbilityExtra",
    "AbilitySlot",
    "AssetDecodeFailure",
    "CardData",
    "CardRenderError",
    "CardRenderer",
    "EncodeFailure",
    "PayloadTooLarge",
    "RenderOptions",
    "RenderResult",
    "Theme",
    "ValidationError",
    "register_fonts",
    "render_card",
    "render_card_png",
    "select_theme",
]
