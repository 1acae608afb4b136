from __future__ import annotations

import pytest

from cardrender.errors import ValidationError
from cardrender.models import AbilityExtra, AbilitySlot
from cardsnap.payload import normalize_payload, resolve_category, resolve_tags


class TestCategory:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ({"category": "忍者", "type": "option1"}, "忍者"),
            ({"type": "状态"}, "状态"),
            ({"type": "option1"}, "忍术"),
            ({"type": "lexla", "cardType": "Relic"}, "Relic"),
            ({"kind": "Event"}, "Event"),
            ({"type": "lexla"}, ""),
        ],
    )
    def test_precedence(self, raw, expected) -> None:
        assert resolve_category(raw) == expected


class TestTags:
    def test_string_is_split_on_both_comma_styles(self) -> None:
        assert resolve_tags("fire, water，wind,,") == ("fire", "water", "wind")

    def test_list_drops_empty_entries(self) -> None:
        assert resolve_tags(["fire", "", None, " wind "]) == ("fire", "wind")

    def test_missing(self) -> None:
        assert resolve_tags(None) == ()


class TestNormalizePayload:
    def test_canonical_payload(self) -> None:
        card = normalize_payload(
            {
                "name": " Shadow Clone ",
                "category": "忍术",
                "number": "NS-001",
                "tags": ["fire"],
                "art": "",
                "abilitySlot1": {
                    "chance": "50%",
                    "mode": "attack",
                    "cost": "2",
                    "description": "Deal 3 damage.",
                    "extra": {"mode": "fire", "cost": "1", "description": "Burn."},
                },
                "abilitySlot2": {"description": "Draw a card.", "extra": {}},
                "note": "Promo",
                "copyright": "(c) Studio",
            }
        )
        assert card.name == "Shadow Clone"
        assert card.number == "NS-001"
        assert card.tags == ("fire",)
        assert card.ability_slots[0] == AbilitySlot(
            chance="50%",
            mode="attack",
            cost="2",
            description="Deal 3 damage.",
            extra=AbilityExtra(mode="fire", cost="1", description="Burn."),
        )
        assert card.ability_slots[1] == AbilitySlot(description="Draw a card.")
        assert card.note == "Promo"

    def test_legacy_form_fields(self) -> None:
        card = normalize_payload(
            {
                "type": "lexla",
                "category": "忍者",
                "name": "Kunai",
                "Nomber": "007",
                "tags": "steel，thrown",
                "description_1": "Throw it.",
                "description_2": "Pick it up.",
                "option1": {
                    "chance_1": "30%",
                    "description_mode_1": "attack",
                    "cost_1": "1",
                    "extra_description_1_mode": "fire",
                    "cost_extra_1": "2",
                    "extra_description_1": "Ignite.",
                    "chance_2": "",
                    "cost_2": "0",
                },
                "add": "Starter deck",
            }
        )
        assert card.number == "007"
        assert card.tags == ("steel", "thrown")
        assert card.note == "Starter deck"
        first, second = card.ability_slots
        assert first == AbilitySlot(
            chance="30%",
            mode="attack",
            cost="1",
            description="Throw it.",
            extra=AbilityExtra(mode="fire", cost="2", description="Ignite."),
        )
        assert second == AbilitySlot(cost="0", description="Pick it up.")

    def test_missing_fields_default_to_empty(self) -> None:
        card = normalize_payload({"name": "Bare"})
        assert card.category == ""
        assert card.tags == ()
        assert card.art == ""
        assert card.populated_slots() == []

    def test_non_string_art_is_ignored(self) -> None:
        assert normalize_payload({"name": "x", "art": 42}).art == ""

    @pytest.mark.parametrize("raw", [None, [], "name=x"])
    def test_non_object_payload(self, raw) -> None:
        with pytest.raises(ValidationError):
            normalize_payload(raw)
