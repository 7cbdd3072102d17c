"""Integrity checks over a full content snapshot.

Every check is a pure function returning a list of LintIssue. ``lint_all``
runs them in a fixed order (motions, muscles, modifier tables, combo rules,
equipment) so the report is stable between runs. The linter never raises on
bad content; bad content is what it reports.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from motionlab.content.models import (
    ComboRule,
    DeltaMap,
    Equipment,
    Inherit,
    MalformedEntry,
    ModifierRow,
    Motion,
    Muscle,
)
from motionlab.content.muscle_tree import is_scorable
from motionlab.content.schemas import (
    ClampMusclePayload,
    ReplaceDeltaPayload,
    SwitchMotionPayload,
)
from motionlab.content.vocabulary import (
    EQUIPMENT_KEY_MAP,
    NONE_ROW_ID,
    ComboActions,
    ContentTables,
)

from .combo_validator import (
    CONDITIONS_FIELD,
    EMPTY_CONDITIONS_MESSAGE,
    PAYLOAD_FIELD,
    raw_rule_fields,
    structural_errors,
)
from .issues import LintIssue, Severity

logger = logging.getLogger(__name__)

RowsLike = Union[Mapping[str, ModifierRow], Iterable[ModifierRow]]


def json_type_name(value: Any) -> str:
    """Name of a value's JSON type, for messages."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, (list, tuple)):
        return "array"
    return "object"


def _values(items: Union[Mapping[str, Any], Iterable[Any], None]) -> list[Any]:
    if items is None:
        return []
    if isinstance(items, Mapping):
        return list(items.values())
    return list(items)


@dataclass(frozen=True)
class LintContext:
    motions: dict[str, Motion]
    muscles: dict[str, Muscle]
    tables: dict[str, dict[str, ModifierRow]]

    def has_row(self, table_key: str, row_id: str) -> bool:
        return row_id in self.tables.get(table_key, {})


def _issue(severity: Severity, table: str, row_id: str, field: str, message: str) -> LintIssue:
    return LintIssue(severity=severity, table=table, row_id=row_id, field=field, message=message)


_EXPECTED_TYPES = {
    "parent_id": "a string",
    "parent_ids": "a string or an array of strings",
    "upper_lower": "a string or an array of strings",
    "muscle_targets": "an object",
    "default_delta_configs": "an object",
    "modifier_constraints": "an object",
    "priority": "a number",
}


def lint_field_types(table: str, row_id: str, invalid_fields: Mapping[str, Any]) -> list[LintIssue]:
    """One error per known field that was authored with the wrong JSON type."""
    issues: list[LintIssue] = []
    for field, value in invalid_fields.items():
        if field.startswith("modifier_constraints."):
            expected = "an array of strings"
        else:
            expected = _EXPECTED_TYPES.get(field, "a valid value")
        issues.append(_issue(
            Severity.ERROR, table, row_id, field,
            f"{field} must be {expected}, got {json_type_name(value)}",
        ))
    return issues


# ============== Motions ==============

def lint_motion(motion: Motion, ctx: LintContext) -> list[LintIssue]:
    """Check one motion's targets, parent and defaults."""
    table = ContentTables.MOTIONS
    issues = lint_field_types(table, motion.id, motion.invalid_fields)

    targets = {**motion.muscle_targets, **motion.invalid_targets}
    for muscle_id, value in targets.items():
        field = f"muscle_targets.{muscle_id}"
        if muscle_id not in ctx.muscles:
            issues.append(_issue(
                Severity.WARNING, table, motion.id, field,
                f'Unknown muscle ID "{muscle_id}" in muscle_targets',
            ))
        if muscle_id in motion.invalid_targets:
            issues.append(_issue(
                Severity.ERROR, table, motion.id, field,
                f"Score must be a number, got {json_type_name(value)}",
            ))

    if motion.parent_id and motion.parent_id not in ctx.motions:
        issues.append(_issue(
            Severity.ERROR, table, motion.id, "parent_id",
            f'Unknown parent motion ID "{motion.parent_id}"',
        ))
    elif motion.parent_id and _in_parent_cycle(motion.id, ctx.motions):
        issues.append(_issue(
            Severity.ERROR, table, motion.id, "parent_id",
            f'Circular parent chain detected starting at "{motion.id}"',
        ))

    for table_key, row_id in motion.default_modifier_selections.items():
        field = f"default_delta_configs.{table_key}"
        if table_key not in ctx.tables:
            issues.append(_issue(
                Severity.ERROR, table, motion.id, field,
                f'Unknown modifier table "{table_key}"',
            ))
        elif not ctx.has_row(table_key, row_id):
            issues.append(_issue(
                Severity.ERROR, table, motion.id, field,
                f'Unknown row "{row_id}" in table "{table_key}"',
            ))

    return issues


def _in_parent_cycle(motion_id: str, motions: Mapping[str, Motion]) -> bool:
    """True when walking parents from ``motion_id`` comes back to it."""
    visited: set[str] = set()
    current = motions[motion_id].parent_id
    while current and current not in visited:
        if current == motion_id:
            return True
        visited.add(current)
        parent = motions.get(current)
        current = parent.parent_id if parent else None
    return False


# ============== Muscles ==============

def lint_muscle(muscle: Muscle, ctx: LintContext) -> list[LintIssue]:
    table = ContentTables.MUSCLES
    issues = lint_field_types(table, muscle.id, muscle.invalid_fields)
    for parent_id in muscle.parent_ids:
        if parent_id == muscle.id:
            issues.append(_issue(
                Severity.ERROR, table, muscle.id, "parent_ids",
                "Muscle lists itself as a parent",
            ))
        elif parent_id not in ctx.muscles:
            issues.append(_issue(
                Severity.ERROR, table, muscle.id, "parent_ids",
                f'Unknown parent muscle ID "{parent_id}"',
            ))
    return issues


# ============== Modifier tables ==============

def lint_none_anchor(table_key: str, rows: Mapping[str, ModifierRow]) -> list[LintIssue]:
    """The table has a NONE row and that row carries no real deltas."""
    none_row = rows.get(NONE_ROW_ID)
    if none_row is None:
        return [_issue(
            Severity.ERROR, table_key, NONE_ROW_ID, "id",
            f'Missing required "{NONE_ROW_ID}" row',
        )]

    issues: list[LintIssue] = []
    for motion_id, entry in none_row.delta_rules.items():
        if isinstance(entry, DeltaMap) and not entry.is_home_base:
            issues.append(_issue(
                Severity.ERROR, table_key, NONE_ROW_ID, f"delta_rules.{motion_id}",
                f'"{NONE_ROW_ID}" row must not carry deltas',
            ))
    return issues


def _inherit_is_circular(motion_id: str, row: ModifierRow, ctx: LintContext) -> bool:
    visited: set[str] = set()
    current: str | None = motion_id
    while current:
        if current in visited:
            return True
        visited.add(current)
        motion = ctx.motions.get(current)
        if motion is None or not motion.parent_id:
            return False
        if isinstance(row.delta_rules.get(motion.parent_id), Inherit):
            current = motion.parent_id
        else:
            return False
    return False


def lint_delta_rules(table_key: str, row: ModifierRow, ctx: LintContext) -> list[LintIssue]:
    """Check one modifier row's delta_rules."""
    issues: list[LintIssue] = []

    if row.invalid_delta_rules is not None:
        issues.append(_issue(
            Severity.ERROR, table_key, row.id, "delta_rules",
            f"delta_rules must be an object, got {json_type_name(row.invalid_delta_rules)}",
        ))
        return issues

    for motion_id, entry in row.delta_rules.items():
        field = f"delta_rules.{motion_id}"

        if motion_id not in ctx.motions:
            issues.append(_issue(
                Severity.ERROR, table_key, row.id, field,
                f'Unknown motion ID "{motion_id}"',
            ))
            continue

        if isinstance(entry, Inherit):
            if not ctx.motions[motion_id].parent_id:
                issues.append(_issue(
                    Severity.ERROR, table_key, row.id, field,
                    f'"inherit" used but motion "{motion_id}" has no parent_id',
                ))
            elif _inherit_is_circular(motion_id, row, ctx):
                issues.append(_issue(
                    Severity.ERROR, table_key, row.id, field,
                    f'Circular inheritance detected starting at "{motion_id}"',
                ))
            continue

        if isinstance(entry, MalformedEntry):
            issues.append(_issue(
                Severity.ERROR, table_key, row.id, field,
                f"Invalid delta entry type: {json_type_name(entry.raw)}",
            ))
            continue

        values = {**entry.deltas, **entry.invalid_values}
        for muscle_id, value in values.items():
            muscle_field = f"{field}.{muscle_id}"
            muscle = ctx.muscles.get(muscle_id)
            if muscle is None:
                issues.append(_issue(
                    Severity.WARNING, table_key, row.id, muscle_field,
                    f'Unknown muscle ID "{muscle_id}"',
                ))
            elif not is_scorable(muscle):
                issues.append(_issue(
                    Severity.WARNING, table_key, row.id, muscle_field,
                    f'Muscle "{muscle_id}" is not scorable',
                ))
            if muscle_id in entry.invalid_values:
                issues.append(_issue(
                    Severity.ERROR, table_key, row.id, muscle_field,
                    f"Delta value must be a number, got {json_type_name(value)}",
                ))

    return issues


# ============== Combo rules ==============

def _validated(schema: type[BaseModel], raw: Any) -> Any:
    """Parsed payload, or None when it is structurally invalid."""
    try:
        return schema.model_validate(raw)
    except PydanticValidationError:
        return None


def _lint_combo_payload(rule: ComboRule, ctx: LintContext) -> list[LintIssue]:
    """Reference checks on a structurally valid payload."""
    table = ContentTables.COMBO_RULES
    issues: list[LintIssue] = []
    raw_payload = raw_rule_fields(rule)[2]

    if rule.action_type == ComboActions.SWITCH_MOTION:
        switch = _validated(SwitchMotionPayload, raw_payload)
        field = f"{PAYLOAD_FIELD}.proxy_motion_id"
        if switch is None:
            return issues
        if switch.proxy_motion_id not in ctx.motions:
            issues.append(_issue(
                Severity.ERROR, table, rule.id, field,
                f'Unknown proxy motion ID "{switch.proxy_motion_id}"',
            ))
        elif switch.proxy_motion_id == rule.motion_id:
            issues.append(_issue(
                Severity.WARNING, table, rule.id, field,
                "Proxy motion is the rule's own motion",
            ))

    elif rule.action_type == ComboActions.REPLACE_DELTA:
        replace = _validated(ReplaceDeltaPayload, raw_payload)
        if replace is not None:
            if replace.table_key not in ctx.tables:
                issues.append(_issue(
                    Severity.ERROR, table, rule.id, f"{PAYLOAD_FIELD}.table_key",
                    f'Unknown modifier table "{replace.table_key}"',
                ))
            elif not ctx.has_row(replace.table_key, replace.row_id):
                issues.append(_issue(
                    Severity.ERROR, table, rule.id, f"{PAYLOAD_FIELD}.row_id",
                    f'Unknown row "{replace.row_id}" in table "{replace.table_key}"',
                ))
            for muscle_id in replace.deltas:
                if muscle_id not in ctx.muscles:
                    issues.append(_issue(
                        Severity.WARNING, table, rule.id, f"{PAYLOAD_FIELD}.deltas.{muscle_id}",
                        f'Unknown muscle ID "{muscle_id}"',
                    ))

    elif rule.action_type == ComboActions.CLAMP_MUSCLE:
        clamp = _validated(ClampMusclePayload, raw_payload)
        for muscle_id in clamp.clamps if clamp is not None else ():
            field = f"{PAYLOAD_FIELD}.clamps.{muscle_id}"
            muscle = ctx.muscles.get(muscle_id)
            if muscle is None:
                issues.append(_issue(
                    Severity.ERROR, table, rule.id, field,
                    f'Unknown muscle ID "{muscle_id}"',
                ))
            elif not is_scorable(muscle):
                issues.append(_issue(
                    Severity.WARNING, table, rule.id, field,
                    f'Muscle "{muscle_id}" is not scorable',
                ))

    return issues


def lint_combo_rule(rule: ComboRule, ctx: LintContext) -> list[LintIssue]:
    """Check one combo rule's structure and references."""
    table = ContentTables.COMBO_RULES
    issues = lint_field_types(table, rule.id, rule.invalid_fields)

    if rule.motion_id not in ctx.motions:
        issues.append(_issue(
            Severity.ERROR, table, rule.id, "motion_id",
            f'Unknown motion ID "{rule.motion_id}"',
        ))

    errors, has_no_conditions = structural_errors(*raw_rule_fields(rule))
    for field, message in errors:
        issues.append(_issue(Severity.ERROR, table, rule.id, field, message))
    if has_no_conditions:
        issues.append(_issue(
            Severity.WARNING, table, rule.id, CONDITIONS_FIELD, EMPTY_CONDITIONS_MESSAGE,
        ))

    for index, condition in enumerate(rule.trigger_conditions):
        field = f"{CONDITIONS_FIELD}.{index}.tableKey"
        rows = ctx.tables.get(condition.table_key)
        if rows is None:
            issues.append(_issue(
                Severity.ERROR, table, rule.id, field,
                f'Unknown modifier table "{condition.table_key}"',
            ))
            continue
        for value in condition.values:
            if value not in rows:
                issues.append(_issue(
                    Severity.WARNING, table, rule.id, f"{CONDITIONS_FIELD}.{index}.value",
                    f'Unknown row "{value}" in table "{condition.table_key}"',
                ))

    issues.extend(_lint_combo_payload(rule, ctx))

    if not rule.is_active:
        issues.append(_issue(
            Severity.INFO, table, rule.id, "is_active",
            "Rule is inactive and will never fire",
        ))

    return issues


# ============== Equipment ==============

def lint_equipment(equipment: Equipment, ctx: LintContext) -> list[LintIssue]:
    table = ContentTables.EQUIPMENT
    issues = lint_field_types(table, equipment.id, equipment.invalid_fields)
    for raw_key, allowed_ids in equipment.modifier_constraints.items():
        field = f"modifier_constraints.{raw_key}"
        table_key = EQUIPMENT_KEY_MAP.get(raw_key)
        if table_key is None:
            issues.append(_issue(
                Severity.WARNING, table, equipment.id, field,
                f'Unknown constraint key "{raw_key}"',
            ))
            continue
        if table_key not in ctx.tables:
            continue
        for row_id in allowed_ids:
            if not ctx.has_row(table_key, row_id):
                issues.append(_issue(
                    Severity.WARNING, table, equipment.id, field,
                    f'Unknown row "{row_id}" in table "{table_key}"',
                ))
    return issues


# ============== Entry point ==============

def lint_all(
    motions: Union[Mapping[str, Motion], Iterable[Motion]],
    muscles: Union[Mapping[str, Muscle], Iterable[Muscle]],
    modifier_tables: Mapping[str, RowsLike],
    combo_rules: Iterable[ComboRule] | None = None,
    equipment: Union[Mapping[str, Equipment], Iterable[Equipment], None] = None,
) -> list[LintIssue]:
    """Run every integrity check across the content.

    Args:
        motions: Motions, as a list or an id-keyed mapping
        muscles: Muscles, as a list or an id-keyed mapping
        modifier_tables: Table key to rows (a list or an id-keyed mapping)
        combo_rules: Optional combo rules
        equipment: Optional equipment rows

    Returns:
        list: Issues in a stable order. Empty when the content is clean.
    """
    motion_list: list[Motion] = _values(motions)
    muscle_list: list[Muscle] = _values(muscles)
    tables = {
        table_key: {row.id: row for row in _values(rows)}
        for table_key, rows in modifier_tables.items()
    }
    ctx = LintContext(
        motions={m.id: m for m in motion_list},
        muscles={m.id: m for m in muscle_list},
        tables=tables,
    )

    issues: list[LintIssue] = []
    for motion in motion_list:
        issues.extend(lint_motion(motion, ctx))
    for muscle in muscle_list:
        issues.extend(lint_muscle(muscle, ctx))
    for table_key, rows in tables.items():
        issues.extend(lint_none_anchor(table_key, rows))
        for row in rows.values():
            issues.extend(lint_delta_rules(table_key, row, ctx))
    for rule in combo_rules or ():
        issues.extend(lint_combo_rule(rule, ctx))
    for item in _values(equipment):
        issues.extend(lint_equipment(item, ctx))

    logger.info(f"Lint finished with {len(issues)} issues")
    return issues
