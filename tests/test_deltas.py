"""Tests for delta resolution and motion-parent inheritance."""

import pytest

from motionlab.content.models import ModifierRow, ModifierSelection, Motion
from motionlab.scoring.deltas import (
    ResolvedDelta,
    resolve_all_deltas,
    resolve_single_delta,
    sort_selections,
)


def _chain(length):
    """M0 -> M1 -> ... -> M{length-1}, each the parent of the previous."""
    motions = {}
    for i in range(length):
        parent = f"M{i + 1}" if i + 1 < length else None
        motions[f"M{i}"] = Motion(id=f"M{i}", parent_id=parent)
    return motions


class TestResolveSingleDelta:
    """Tests for resolving one modifier row against one motion."""

    def test_direct_entry(self, motions, modifier_tables):
        row = modifier_tables["gripWidths"]["WIDE"]

        resolved = resolve_single_delta("PRESS_FLAT", row, motions, "gripWidths")

        assert resolved.deltas == {"CHEST_MID": 0.1, "TRICEPS_OUTER": -0.1, "TRICEPS_DEEP": -0.1}
        assert resolved.inherited is False
        assert resolved.inherit_chain == ()
        assert resolved.resolved_from == "PRESS_FLAT"
        assert resolved.modifier_table == "gripWidths"
        assert resolved.modifier_id == "WIDE"

    def test_inherit_sentinel_uses_parent_entry(self, motions, modifier_tables):
        row = modifier_tables["grips"]["NEUTRAL"]

        resolved = resolve_single_delta("PRESS_FLAT", row, motions, "grips")

        assert resolved.deltas == {"TRICEPS": 0.05}
        assert resolved.inherited is True
        assert resolved.inherit_chain == ("PRESS_FLAT",)
        assert resolved.resolved_from == "PRESS"
        assert resolved.motion_id == "PRESS_FLAT"

    def test_absent_entry_falls_back_to_parent(self, motions, modifier_tables):
        row = modifier_tables["gripWidths"]["NARROW"]

        resolved = resolve_single_delta("PRESS_INCLINE", row, motions, "gripWidths")

        assert resolved.deltas == {"TRICEPS": 0.3, "CHEST_MID": -0.1}
        assert resolved.inherited is True
        assert resolved.resolved_from == "PRESS"

    def test_empty_entry_is_home_base(self, motions, modifier_tables):
        row = modifier_tables["grips"]["PRONATED"]

        resolved = resolve_single_delta("PRESS", row, motions, "grips")

        assert resolved is not None
        assert resolved.deltas == {}
        assert resolved.inherited is False

    def test_home_base_is_inherited_too(self, motions, modifier_tables):
        row = modifier_tables["grips"]["PRONATED"]

        resolved = resolve_single_delta("PRESS_FLAT", row, motions, "grips")

        assert resolved.deltas == {}
        assert resolved.inherited is True

    def test_no_entry_and_no_parent_returns_none(self, motions, modifier_tables):
        row = modifier_tables["grips"]["SUPINATED"]

        assert resolve_single_delta("SQUAT", row, motions, "grips") is None

    def test_unknown_motion_returns_none(self, motions, modifier_tables):
        row = modifier_tables["grips"]["SUPINATED"]

        assert resolve_single_delta("DEADLIFT", row, motions, "grips") is None

    def test_malformed_entry_returns_none(self, motions):
        row = ModifierRow.from_dict({"id": "ODD", "delta_rules": {"PRESS": 42}})

        assert resolve_single_delta("PRESS", row, motions) is None

    def test_parent_cycle_terminates(self):
        motions = {
            "A": Motion(id="A", parent_id="B"),
            "B": Motion(id="B", parent_id="A"),
        }
        row = ModifierRow.from_dict({"id": "X", "delta_rules": {"A": "inherit"}})

        assert resolve_single_delta("A", row, motions) is None

    def test_inherit_cycle_terminates(self):
        motions = {
            "A": Motion(id="A", parent_id="B"),
            "B": Motion(id="B", parent_id="A"),
        }
        row = ModifierRow.from_dict(
            {"id": "X", "delta_rules": {"A": "inherit", "B": "inherit"}}
        )

        assert resolve_single_delta("B", row, motions) is None

    def test_depth_bound(self):
        motions = _chain(25)
        row = ModifierRow.from_dict({"id": "X", "delta_rules": {"M24": {"QUADS": 0.1}}})

        assert resolve_single_delta("M0", row, motions, max_depth=20) is None

        resolved = resolve_single_delta("M0", row, motions, max_depth=30)
        assert resolved.resolved_from == "M24"
        assert len(resolved.inherit_chain) == 24


class TestResolveAllDeltas:
    """Tests for resolving a full modifier selection."""

    def test_press_flat_selection(self, motions, modifier_tables):
        selections = [
            ModifierSelection("grips", "NEUTRAL"),
            ModifierSelection("gripWidths", "WIDE"),
        ]

        resolved = resolve_all_deltas("PRESS_FLAT", selections, motions, modifier_tables)

        assert [(d.modifier_table, d.modifier_id) for d in resolved] == [
            ("grips", "NEUTRAL"),
            ("gripWidths", "WIDE"),
        ]

    def test_order_independent(self, motions, modifier_tables):
        forward = [
            ModifierSelection("gripWidths", "NARROW"),
            ModifierSelection("grips", "NEUTRAL"),
        ]

        a = resolve_all_deltas("PRESS_FLAT", forward, motions, modifier_tables)
        b = resolve_all_deltas("PRESS_FLAT", list(reversed(forward)), motions, modifier_tables)

        assert [d.to_dict() for d in a] == [d.to_dict() for d in b]
        assert a[0].modifier_table == "grips"

    def test_unknown_table_and_row_are_skipped(self, motions, modifier_tables):
        selections = [
            ModifierSelection("handPositions", "UP"),
            ModifierSelection("grips", "HOOK"),
            ModifierSelection("gripWidths", "WIDE"),
        ]

        resolved = resolve_all_deltas("PRESS_FLAT", selections, motions, modifier_tables)

        assert [d.modifier_id for d in resolved] == ["WIDE"]

    def test_home_base_and_none_rows_are_dropped(self, motions, modifier_tables):
        selections = [
            ModifierSelection("grips", "PRONATED"),
            ModifierSelection("gripWidths", "NONE"),
        ]

        assert resolve_all_deltas("PRESS_FLAT", selections, motions, modifier_tables) == []

    def test_not_applicable_modifier_is_dropped(self, motions, modifier_tables):
        selections = [ModifierSelection("stanceWidths", "WIDE")]

        assert resolve_all_deltas("CURL", selections, motions, modifier_tables) == []

    def test_empty_selection(self, motions, modifier_tables):
        assert resolve_all_deltas("PRESS_FLAT", [], motions, modifier_tables) == []


class TestSortSelections:
    def test_canonical_order_with_unknown_tables_last(self):
        selections = [
            ModifierSelection("zTable", "A"),
            ModifierSelection("rangeOfMotion", "FULL"),
            ModifierSelection("motionPaths", "ARC"),
            ModifierSelection("aTable", "B"),
        ]

        ordered = sort_selections(selections)

        assert [s.table_key for s in ordered] == [
            "motionPaths",
            "rangeOfMotion",
            "zTable",
            "aTable",
        ]


class TestResolvedDeltaToDict:
    def test_inherit_chain_only_when_inherited(self):
        direct = ResolvedDelta("grips", "WIDE", "PRESS", {"CHEST_MID": 0.1}, resolved_from="PRESS")
        inherited = ResolvedDelta(
            "grips", "WIDE", "PRESS_FLAT", {"CHEST_MID": 0.1},
            inherited=True, inherit_chain=("PRESS_FLAT",), resolved_from="PRESS",
        )

        assert "inheritChain" not in direct.to_dict()
        assert inherited.to_dict()["inheritChain"] == ["PRESS_FLAT"]
        assert inherited.to_dict()["modifierTable"] == "grips"

    @pytest.mark.parametrize("deltas", [{}, {"TRICEPS": 0.2}])
    def test_with_deltas_keeps_identity(self, deltas):
        original = ResolvedDelta("grips", "WIDE", "PRESS", {"CHEST_MID": 0.1}, resolved_from="PRESS")

        replaced = original.with_deltas(deltas)

        assert replaced.deltas == deltas
        assert (replaced.modifier_table, replaced.modifier_id) == ("grips", "WIDE")
        assert original.deltas == {"CHEST_MID": 0.1}
