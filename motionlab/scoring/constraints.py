"""Constraint evaluation: which modifier tables a motion can use.

Dead-zone rules encode biomechanical impossibilities. Each rule source
returns per-table constraints; sources are merged with a fixed state
priority so the output never depends on the order rules fire in.

State priority (highest wins): hidden > disabled > defaulted > suppressed > allowed
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping, Union

from motionlab.content.models import Equipment, ModifierRow, Motion
from motionlab.content.vocabulary import (
    MODIFIER_TABLE_KEYS,
    BodyRegions,
    ModifierTables,
    equipment_key_to_table,
)

logger = logging.getLogger(__name__)


class ConstraintState(str, Enum):
    """Visibility state of one modifier table."""

    ALLOWED = "allowed"
    SUPPRESSED = "suppressed"
    DEFAULTED = "defaulted"
    DISABLED = "disabled"
    HIDDEN = "hidden"

    @property
    def priority(self) -> int:
        return _STATE_PRIORITY[self]


_STATE_PRIORITY = {
    ConstraintState.HIDDEN: 4,
    ConstraintState.DISABLED: 3,
    ConstraintState.DEFAULTED: 2,
    ConstraintState.SUPPRESSED: 1,
    ConstraintState.ALLOWED: 0,
}


@dataclass(frozen=True)
class ModifierConstraint:
    """Evaluated constraint for one modifier table.

    Attributes:
        state: Table visibility state
        allowed_values: Row ids the table is restricted to, or None for all
        default_value: Row id preselected for the table
        reason: Human-readable explanation, ``"; "``-joined when merged
    """

    state: ConstraintState = ConstraintState.ALLOWED
    allowed_values: tuple[str, ...] | None = None
    default_value: str | None = None
    reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"tableState": self.state.value}
        if self.allowed_values is not None:
            result["allowedValues"] = list(self.allowed_values)
        if self.default_value is not None:
            result["defaultValue"] = self.default_value
        if self.reason is not None:
            result["reason"] = self.reason
        return result


ConstraintMap = dict[str, ModifierConstraint]


# ============== Rule sources ==============

def body_region_isolation(motion: Motion) -> ConstraintMap:
    """Hide modifier tables that belong to the other half of the body.

    Upper-only motions hide lower-body tables and vice versa. Motions with
    both regions, or none, are unaffected.
    """
    constraints: ConstraintMap = {}

    if motion.body_regions == {BodyRegions.UPPER}:
        for table_key in BodyRegions.LOWER_BODY_TABLES:
            constraints[table_key] = ModifierConstraint(
                state=ConstraintState.HIDDEN,
                reason="Upper-body motion: lower body modifiers not applicable",
            )
    elif motion.body_regions == {BodyRegions.LOWER}:
        for table_key in BodyRegions.UPPER_BODY_TABLES:
            constraints[table_key] = ModifierConstraint(
                state=ConstraintState.HIDDEN,
                reason="Lower-body motion: upper body modifiers not applicable",
            )

    return constraints


def equipment_restrictions(
    modifier_constraints: Mapping[str, Iterable[str]] | None,
) -> ConstraintMap:
    """Restrict tables to the row ids the equipment allows.

    Tables the equipment does not mention are unaffected.
    """
    constraints: ConstraintMap = {}
    if not modifier_constraints:
        return constraints

    for raw_key, allowed_ids in modifier_constraints.items():
        table_key = equipment_key_to_table(raw_key)
        allowed = tuple(allowed_ids)
        constraints[table_key] = ModifierConstraint(
            state=ConstraintState.ALLOWED,
            allowed_values=allowed,
            reason=f"Equipment restricts {table_key} to: {', '.join(allowed)}",
        )

    return constraints


def torso_orientation_gating(
    selected_torso_angle: Union[ModifierRow, Mapping[str, Any], None],
) -> ConstraintMap:
    """Hide torso orientations when the selected torso angle disallows them."""
    if selected_torso_angle is None:
        return {}

    if isinstance(selected_torso_angle, ModifierRow):
        allow = selected_torso_angle.extras.get("allow_torso_orientations")
    else:
        allow = selected_torso_angle.get("allow_torso_orientations")

    if allow is False:
        return {
            ModifierTables.TORSO_ORIENTATIONS: ModifierConstraint(
                state=ConstraintState.HIDDEN,
                reason="Selected torso angle does not support torso orientations",
            )
        }
    return {}


# ============== Merge & evaluate ==============

def merge_constraints(*sources: Mapping[str, ModifierConstraint]) -> ConstraintMap:
    """Merge rule sources table by table.

    The higher-priority state wins. On a tie where both sides restrict
    allowed values, the lists are intersected; an empty intersection keeps
    the existing list. Reasons are joined with ``"; "``.
    """
    merged: ConstraintMap = {}

    for source in sources:
        for table_key, constraint in source.items():
            existing = merged.get(table_key)

            if existing is None or constraint.state.priority > existing.state.priority:
                merged[table_key] = constraint
                continue

            if (
                constraint.state.priority == existing.state.priority
                and constraint.allowed_values is not None
                and existing.allowed_values is not None
            ):
                incoming = set(constraint.allowed_values)
                intersection = tuple(v for v in existing.allowed_values if v in incoming)
                merged[table_key] = dataclasses.replace(
                    existing,
                    allowed_values=intersection or existing.allowed_values,
                    reason=f"{existing.reason or ''}; {constraint.reason or ''}",
                )

    return merged


def evaluate_constraints(
    motion: Motion,
    equipment: Equipment | None = None,
    selected_torso_angle: Union[ModifierRow, Mapping[str, Any], None] = None,
    table_keys: Iterable[str] = MODIFIER_TABLE_KEYS,
) -> dict[str, ModifierConstraint]:
    """Evaluate constraints for every modifier table.

    Every key in ``table_keys`` appears in the output; tables no rule
    touches are "allowed". Motion defaults then turn "allowed" tables into
    "defaulted" ones.

    Args:
        motion: Motion being configured
        equipment: Selected equipment, if any
        selected_torso_angle: Selected torso angle row, if any
        table_keys: Tables to report on

    Returns:
        dict: Table key to ModifierConstraint
    """
    merged = merge_constraints(
        body_region_isolation(motion),
        equipment_restrictions(equipment.modifier_constraints if equipment else None),
        torso_orientation_gating(selected_torso_angle),
    )

    modifiers: dict[str, ModifierConstraint] = {
        table_key: merged.get(table_key, ModifierConstraint()) for table_key in table_keys
    }

    for table_key, default_id in motion.default_modifier_selections.items():
        existing = modifiers.get(table_key)
        if existing is not None and existing.state is ConstraintState.ALLOWED:
            modifiers[table_key] = dataclasses.replace(
                existing,
                state=ConstraintState.DEFAULTED,
                default_value=default_id,
                reason=f"Motion default: {default_id}",
            )

    logger.debug(
        f"Evaluated constraints for '{motion.id}': "
        f"{sum(1 for c in modifiers.values() if c.state is ConstraintState.HIDDEN)} hidden"
    )
    return modifiers
