from __future__ import annotations

from typing import Iterable, Optional, Tuple

from .models import Theme

# Checked in order; the first substring found in the category wins.
CATEGORY_THEMES: Tuple[Tuple[str, Theme], ...] = (
    ("忍术", Theme(background=(214, 232, 255), accent=(52, 98, 176))),
    ("忍者", Theme(background=(255, 226, 206), accent=(190, 86, 40))),
    ("状态", Theme(background=(226, 244, 220), accent=(70, 138, 74))),
)

TAG_THEMES = {
    "fire": Theme(background=(255, 220, 214), accent=(196, 58, 42)),
    "water": Theme(background=(212, 236, 250), accent=(36, 120, 180)),
    "wind": Theme(background=(226, 246, 236), accent=(60, 150, 110)),
    "earth": Theme(background=(238, 228, 210), accent=(132, 98, 56)),
    "lightning": Theme(background=(250, 246, 212), accent=(178, 150, 24)),
}

DEFAULT_THEME = Theme(background=(236, 236, 240), accent=(72, 72, 88))


def select_theme(category: Optional[str], tags: Iterable[str] = ()) -> Theme:
    normalized = (category or "").strip()
    for needle, theme in CATEGORY_THEMES:
        if needle in normalized:
            return theme
    for tag in tags or ():
        theme = TAG_THEMES.get(str(tag).strip().lower())
        if theme is not None:
            return theme
    return DEFAULT_THEME
