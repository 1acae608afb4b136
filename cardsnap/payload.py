"""
Normalize raw card payloads into :class:`cardrender.models.CardData`.

The submission form has used several names for the same field over time.
Each field is resolved once through an ordered list of candidate keys so the
renderer only ever sees canonical names.
"""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional, Sequence, Tuple

from cardrender.errors import ValidationError
from cardrender.models import MAX_ABILITY_SLOTS, AbilityExtra, AbilitySlot, CardData

KNOWN_CATEGORIES = ("忍术", "忍者", "状态")
CATEGORY_OPTIONS = {"option1": "忍术", "option2": "忍者", "option3": "状态"}
NUMBER_KEYS = ("number", "Nomber")
NOTE_KEYS = ("note", "add")
TAG_SEPARATOR = re.compile(r"[,，]")
LEGACY_OPTIONS_KEY = "option1"


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _first(raw: Mapping[str, Any], keys: Sequence[str]) -> str:
    for key in keys:
        value = _text(raw.get(key))
        if value:
            return value
    return ""


def _optional(value: Any) -> Optional[str]:
    return _text(value) or None


def resolve_category(raw: Mapping[str, Any]) -> str:
    explicit = _text(raw.get("category"))
    if explicit:
        return explicit
    kind = _text(raw.get("type"))
    if kind in KNOWN_CATEGORIES:
        return kind
    if kind in CATEGORY_OPTIONS:
        return CATEGORY_OPTIONS[kind]
    return _first(raw, ("cardType", "kind"))


def resolve_tags(value: Any) -> Tuple[str, ...]:
    if isinstance(value, (list, tuple)):
        items = [_text(item) for item in value if item]
    else:
        items = [part.strip() for part in TAG_SEPARATOR.split(_text(value))]
    return tuple(item for item in items if item)


def _extra_from_mapping(value: Any) -> Optional[AbilityExtra]:
    if not isinstance(value, Mapping):
        return None
    extra = AbilityExtra(
        mode=_optional(value.get("mode")),
        cost=_optional(value.get("cost")),
        description=_optional(value.get("description")),
    )
    return None if extra.is_empty() else extra


def _canonical_slot(value: Mapping[str, Any]) -> AbilitySlot:
    return AbilitySlot(
        chance=_optional(value.get("chance")),
        mode=_optional(value.get("mode")),
        cost=_optional(value.get("cost")),
        description=_optional(value.get("description")),
        extra=_extra_from_mapping(value.get("extra")),
    )


def _legacy_slot(raw: Mapping[str, Any], index: int) -> AbilitySlot:
    options = raw.get(LEGACY_OPTIONS_KEY)
    if not isinstance(options, Mapping):
        options = {}
    extra = AbilityExtra(
        mode=_optional(options.get(f"extra_description_{index}_mode")),
        cost=_optional(options.get(f"cost_extra_{index}")),
        description=_optional(options.get(f"extra_description_{index}")),
    )
    return AbilitySlot(
        chance=_optional(options.get(f"chance_{index}")),
        mode=_optional(options.get(f"description_mode_{index}")),
        cost=_optional(options.get(f"cost_{index}")),
        description=_optional(raw.get(f"description_{index}")),
        extra=None if extra.is_empty() else extra,
    )


def resolve_ability_slot(raw: Mapping[str, Any], index: int) -> AbilitySlot:
    canonical = raw.get(f"abilitySlot{index}")
    if isinstance(canonical, Mapping):
        return _canonical_slot(canonical)
    return _legacy_slot(raw, index)


def normalize_payload(raw: Any) -> CardData:
    if not isinstance(raw, Mapping):
        raise ValidationError("Card payload must be a JSON object")
    slots = tuple(
        resolve_ability_slot(raw, index) for index in range(1, MAX_ABILITY_SLOTS + 1)
    )
    art = raw.get("art")
    return CardData(
        name=_text(raw.get("name")),
        category=resolve_category(raw),
        number=_first(raw, NUMBER_KEYS),
        tags=resolve_tags(raw.get("tags")),
        ability_slots=slots,
        art=art.strip() if isinstance(art, str) else "",
        note=_first(raw, NOTE_KEYS),
        copyright=_text(raw.get("copyright")),
    )
