"""Combo rule resolution.

A combo rule fires when every one of its trigger conditions matches the
active modifier selection. Matching is order-independent: selections are
normalized into a table key -> set of row ids lookup first.

Tie-break order among matching rules of one action type:
specificity (condition count) desc -> priority desc -> id asc.

SWITCH_MOTION is exclusive (only the top-ranked rule takes effect).
REPLACE_DELTA and CLAMP_MUSCLE are additive; clamps on the same muscle keep
the lowest cap.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Sequence, cast

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from motionlab.content.models import ComboRule, ModifierSelection, TriggerCondition
from motionlab.content.schemas import (
    PAYLOAD_SCHEMAS,
    ClampMusclePayload,
    ReplaceDeltaPayload,
    SwitchMotionPayload,
)

from .activation import ComboOverrides, DeltaOverride
from .constants import ComboActions, ComboOperators, WinnerReasons

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RuleFired:
    """Audit record for one rule that took effect."""

    rule_id: str
    rule_label: str
    action_type: str
    matched_conditions: tuple[TriggerCondition, ...]
    specificity: int
    priority: int
    winner_reason: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "ruleId": self.rule_id,
            "ruleLabel": self.rule_label,
            "actionType": self.action_type,
            "matchedConditions": [c.to_dict() for c in self.matched_conditions],
            "specificity": self.specificity,
            "priority": self.priority,
            "winnerReason": self.winner_reason,
        }


@dataclass(frozen=True)
class ComboResolution:
    """Outcome of resolving combo rules for one motion and selection."""

    effective_motion_id: str
    delta_overrides: tuple[DeltaOverride, ...] = ()
    clamp_map: Mapping[str, float] = field(default_factory=dict)
    rules_fired: tuple[RuleFired, ...] = ()

    @property
    def switched(self) -> bool:
        return any(r.action_type == ComboActions.SWITCH_MOTION for r in self.rules_fired)

    @property
    def overrides(self) -> ComboOverrides:
        return ComboOverrides(delta_overrides=self.delta_overrides, clamp_map=dict(self.clamp_map))

    def to_dict(self) -> dict[str, Any]:
        return {
            "effectiveMotionId": self.effective_motion_id,
            "deltaOverrides": [o.to_dict() for o in self.delta_overrides],
            "clampMap": dict(self.clamp_map),
            "rulesFired": [r.to_dict() for r in self.rules_fired],
        }


def group_selections(selections: Iterable[ModifierSelection]) -> dict[str, set[str]]:
    """Normalize selections into table key -> set of selected row ids."""
    by_table: dict[str, set[str]] = {}
    for selection in selections:
        by_table.setdefault(selection.table_key, set()).add(selection.row_id)
    return by_table


def condition_matches(
    condition: TriggerCondition, selections_by_table: Mapping[str, set[str]]
) -> bool:
    selected = selections_by_table.get(condition.table_key)
    hit = selected is not None and any(v in selected for v in condition.values)

    if condition.operator in ComboOperators.POSITIVE:
        return hit
    if condition.operator in ComboOperators.NEGATIVE:
        return not hit
    return False


def rule_matches(rule: ComboRule, selections_by_table: Mapping[str, set[str]]) -> bool:
    """True when the rule has conditions and every one of them matches."""
    if not rule.trigger_conditions:
        return False
    return all(condition_matches(c, selections_by_table) for c in rule.trigger_conditions)


def rank_key(rule: ComboRule) -> tuple[int, int, str]:
    """Sort key implementing specificity desc -> priority desc -> id asc."""
    return (-rule.specificity, -rule.priority, rule.id)


def winner_reason(winner: ComboRule, others: Sequence[ComboRule]) -> str:
    """Explain why ``winner`` ranks above the other candidates of its type."""
    if not others:
        return WinnerReasons.ONLY_MATCH
    if all(o.specificity < winner.specificity for o in others):
        return WinnerReasons.HIGHEST_SPECIFICITY
    if all(o.priority < winner.priority for o in others):
        return WinnerReasons.PRIORITY_TIE_BREAK
    return WinnerReasons.ID_TIE_BREAK


def parse_payload(rule: ComboRule) -> BaseModel | None:
    """Validate a rule's action payload; None for unknown or invalid ones."""
    schema = PAYLOAD_SCHEMAS.get(rule.action_type)
    if schema is None:
        logger.warning(f"Skipping combo rule '{rule.id}': unknown action type '{rule.action_type}'")
        return None
    try:
        return schema.model_validate(dict(rule.action_payload))
    except PydanticValidationError as e:
        logger.warning(
            f"Skipping combo rule '{rule.id}': invalid {rule.action_type} payload "
            f"({e.error_count()} errors)"
        )
        return None


def _fired(rule: ComboRule, others: Sequence[ComboRule]) -> RuleFired:
    return RuleFired(
        rule_id=rule.id,
        rule_label=rule.label,
        action_type=rule.action_type,
        matched_conditions=rule.trigger_conditions,
        specificity=rule.specificity,
        priority=rule.priority,
        winner_reason=winner_reason(rule, others),
    )


def resolve_combo_rules(
    motion_id: str,
    selections: Iterable[ModifierSelection],
    rules: Iterable[ComboRule],
) -> ComboResolution:
    """Resolve which combo rules fire for a motion and selection.

    Only active rules scoped to ``motion_id`` with at least one trigger
    condition are candidates. Rules whose payload fails validation are
    skipped; the linter reports them.

    Args:
        motion_id: Motion selected by the user
        selections: Active modifier selections
        rules: All combo rules (any motion, any state)

    Returns:
        ComboResolution with the effective motion id, delta overrides,
        clamp map, and audit records for every rule that fired.
    """
    selections_by_table = group_selections(selections)

    matching: list[tuple[ComboRule, BaseModel]] = []
    for rule in rules:
        if rule.motion_id != motion_id or not rule.is_active:
            continue
        if not rule_matches(rule, selections_by_table):
            continue
        payload = parse_payload(rule)
        if payload is not None:
            matching.append((rule, payload))

    matching.sort(key=lambda pair: rank_key(pair[0]))

    def candidates(action_type: str) -> list[tuple[ComboRule, BaseModel]]:
        return [pair for pair in matching if pair[0].action_type == action_type]

    effective_motion_id = motion_id
    delta_overrides: list[DeltaOverride] = []
    clamp_map: dict[str, float] = {}
    rules_fired: list[RuleFired] = []

    switch_candidates = candidates(ComboActions.SWITCH_MOTION)
    if switch_candidates:
        winner, payload = switch_candidates[0]
        effective_motion_id = cast(SwitchMotionPayload, payload).proxy_motion_id
        rules_fired.append(_fired(winner, [r for r, _ in switch_candidates[1:]]))
        logger.debug(f"Combo rule '{winner.id}' switched '{motion_id}' to '{effective_motion_id}'")

    replace_candidates = candidates(ComboActions.REPLACE_DELTA)
    for rule, payload in replace_candidates:
        replace = cast(ReplaceDeltaPayload, payload)
        delta_overrides.append(
            DeltaOverride(table_key=replace.table_key, row_id=replace.row_id, deltas=replace.deltas)
        )
        rules_fired.append(_fired(rule, [r for r, _ in replace_candidates if r.id != rule.id]))

    clamp_candidates = candidates(ComboActions.CLAMP_MUSCLE)
    for rule, payload in clamp_candidates:
        for muscle_id, cap in cast(ClampMusclePayload, payload).clamps.items():
            clamp_map[muscle_id] = min(clamp_map[muscle_id], cap) if muscle_id in clamp_map else cap
        rules_fired.append(_fired(rule, [r for r, _ in clamp_candidates if r.id != rule.id]))

    return ComboResolution(
        effective_motion_id=effective_motion_id,
        delta_overrides=tuple(delta_overrides),
        clamp_map=clamp_map,
        rules_fired=tuple(rules_fired),
    )
