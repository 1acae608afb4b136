from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .errors import PayloadTooLarge, ValidationError

RGB = Tuple[int, int, int]

MAX_ABILITY_SLOTS = 2
# Data-URI text length, checked before any decode.
MAX_ART_LENGTH = 12 * 1024 * 1024


@dataclass(frozen=True)
class AbilityExtra:
    mode: Optional[str] = None
    cost: Optional[str] = None
    description: Optional[str] = None

    def is_empty(self) -> bool:
        return not (self.mode or self.cost or self.description)


@dataclass(frozen=True)
class AbilitySlot:
    chance: Optional[str] = None
    mode: Optional[str] = None
    cost: Optional[str] = None
    description: Optional[str] = None
    extra: Optional[AbilityExtra] = None

    def is_populated(self) -> bool:
        if self.chance or self.mode or self.cost or self.description:
            return True
        return self.extra is not None and not self.extra.is_empty()


@dataclass(frozen=True)
class CardData:
    name: str
    category: str = ""
    number: str = ""
    tags: Tuple[str, ...] = ()
    ability_slots: Tuple[AbilitySlot, ...] = ()
    art: str = ""
    note: str = ""
    copyright: str = ""

    def populated_slots(self) -> List[AbilitySlot]:
        return [slot for slot in self.ability_slots if slot.is_populated()]


def validate_card(card: CardData) -> None:
    """Reject a card before any drawing happens."""
    if not card.name or not card.name.strip():
        raise ValidationError("Missing required field: name")
    if len(card.ability_slots) > MAX_ABILITY_SLOTS:
        raise ValidationError(
            f"At most {MAX_ABILITY_SLOTS} ability slots are supported, "
            f"got {len(card.ability_slots)}"
        )
    if card.art and len(card.art) > MAX_ART_LENGTH:
        raise PayloadTooLarge("Artwork payload is too large")


@dataclass(frozen=True)
class Theme:
    background: RGB
    accent: RGB


@dataclass
class LayoutCursor:
    """Vertical offset shared by the draw stages of a single render."""

    y: int
    trace: List[int] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.trace.append(self.y)

    def advance(self, dy: float) -> int:
        if dy < 0:
            raise ValueError(f"Cursor cannot move upwards (dy={dy})")
        self.y += int(round(dy))
        self.trace.append(self.y)
        return self.y

    def move_to(self, y: float) -> int:
        return self.advance(y - self.y)
