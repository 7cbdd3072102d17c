"""Activation score computation.

Pipeline:
1. Flatten base muscle_targets into flat scores
2. Apply REPLACE_DELTA overrides from combo rules
3. Sum all resolved deltas
4. Apply the delta sum to base, then clamp and normalize per policy
5. Apply CLAMP_MUSCLE caps from combo rules

Combo-rule clamping is owned here; callers must not clamp again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Sequence

from motionlab.content.models import is_number
from motionlab.content.muscle_tree import flatten_muscle_tree, is_nested_targets

from .deltas import ResolvedDelta
from .exceptions import MissingMuscleError
from .policy import DEFAULT_SCORE_POLICY, ScorePolicy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeltaOverride:
    """Replacement deltas for one modifier row, from a REPLACE_DELTA rule."""

    table_key: str
    row_id: str
    deltas: Mapping[str, float] = field(default_factory=dict)

    @property
    def key(self) -> tuple[str, str]:
        return (self.table_key, self.row_id)

    def to_dict(self) -> dict[str, Any]:
        return {"table_key": self.table_key, "row_id": self.row_id, "deltas": dict(self.deltas)}


@dataclass(frozen=True)
class ComboOverrides:
    """Overrides produced by the combo rule engine for one computation."""

    delta_overrides: tuple[DeltaOverride, ...] = ()
    clamp_map: Mapping[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class ActivationResult:
    """Result of an activation computation.

    Attributes:
        base_scores: Flat base scores of the motion
        applied_deltas: Deltas actually applied, after combo replacements
        final_scores: Clamped (and normalized, if the policy says so) scores
        raw_scores: Unclamped base + delta sum, for tracing
        normalized_scores: final scores on a 0-1 scale; only set when the
            policy's output_mode is "normalized" or "both"
        policy: Policy the result was computed under
    """

    base_scores: dict[str, float]
    applied_deltas: list[ResolvedDelta]
    final_scores: dict[str, float]
    raw_scores: dict[str, float]
    normalized_scores: dict[str, float] | None = None
    policy: ScorePolicy = DEFAULT_SCORE_POLICY

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary shaped by the policy's output_mode."""
        result: dict[str, Any] = {
            "baseScores": dict(self.base_scores),
            "appliedDeltas": [d.to_dict() for d in self.applied_deltas],
            "rawScores": dict(self.raw_scores),
        }
        if self.policy.output_mode in ("raw", "both"):
            result["finalScores"] = dict(self.final_scores)
        if self.policy.output_mode in ("normalized", "both"):
            result["normalizedScores"] = dict(self.normalized_scores or {})
        return result


def flatten_muscle_targets(targets: Mapping[str, Any]) -> dict[str, float]:
    """Return flat base scores for a motion's muscle_targets.

    Flat maps are copied; legacy nested trees are flattened. Non-numeric
    values are dropped.
    """
    if is_nested_targets(targets):
        targets = flatten_muscle_tree(targets)
    return {muscle_id: score for muscle_id, score in targets.items() if is_number(score)}


def sum_deltas(resolved_deltas: Iterable[ResolvedDelta]) -> dict[str, float]:
    """Sum all resolved deltas into a single flat delta map."""
    summed: dict[str, float] = {}
    for resolved in resolved_deltas:
        for muscle_id, delta in resolved.deltas.items():
            summed[muscle_id] = summed.get(muscle_id, 0) + delta
    return summed


def _add_deltas(
    base: Mapping[str, float], delta_sum: Mapping[str, float], policy: ScorePolicy
) -> dict[str, float]:
    scores = dict(base)
    for muscle_id, delta in delta_sum.items():
        if muscle_id in scores:
            scores[muscle_id] = scores[muscle_id] + delta
        elif policy.missing_key_behavior == "zero":
            scores[muscle_id] = delta
        elif policy.missing_key_behavior == "error":
            raise MissingMuscleError(muscle_id)
    return scores


def apply_deltas(
    base_scores: Mapping[str, float],
    delta_sum: Mapping[str, float],
    policy: ScorePolicy = DEFAULT_SCORE_POLICY,
) -> dict[str, float]:
    """Apply a delta sum to base scores, then clamp and normalize.

    Muscles in ``delta_sum`` that are not in ``base_scores`` are handled per
    ``policy.missing_key_behavior``.

    Raises:
        MissingMuscleError: Under the "error" behavior, for the first such muscle.
    """
    scores = _add_deltas(base_scores, delta_sum, policy)

    for muscle_id, score in scores.items():
        scores[muscle_id] = max(policy.clamp_min, min(policy.clamp_max, score))

    if policy.normalizes:
        for muscle_id, score in scores.items():
            scores[muscle_id] = score / policy.clamp_max

    return scores


def apply_delta_overrides(
    resolved_deltas: Sequence[ResolvedDelta],
    overrides: Iterable[DeltaOverride],
    motion_id: str = "",
) -> list[ResolvedDelta]:
    """Swap in REPLACE_DELTA deltas for matching modifier rows.

    An override whose (table_key, row_id) matches a resolved delta replaces
    that delta's contribution. An override with no match is appended as an
    additional delta. When several overrides target the same row the last
    one wins.
    """
    by_key: dict[tuple[str, str], DeltaOverride] = {}
    for override in overrides:
        by_key[override.key] = override

    effective: list[ResolvedDelta] = []
    for resolved in resolved_deltas:
        override = by_key.pop((resolved.modifier_table, resolved.modifier_id), None)
        if override is None:
            effective.append(resolved)
        else:
            logger.debug(
                f"Replacing deltas for {resolved.modifier_table}/{resolved.modifier_id}"
            )
            effective.append(resolved.with_deltas(override.deltas))

    for override in by_key.values():
        effective.append(
            ResolvedDelta(
                modifier_table=override.table_key,
                modifier_id=override.row_id,
                motion_id=motion_id,
                deltas=dict(override.deltas),
            )
        )

    return effective


def compute_activation(
    muscle_targets: Mapping[str, Any],
    resolved_deltas: Sequence[ResolvedDelta],
    policy_overrides: Mapping[str, Any] | ScorePolicy | None = None,
    combo_overrides: ComboOverrides | None = None,
    motion_id: str = "",
) -> ActivationResult:
    """Compute final activation scores for a motion.

    Args:
        muscle_targets: Base scores of the motion (flat or legacy nested)
        resolved_deltas: Output of resolve_all_deltas
        policy_overrides: Policy fields merged onto the default policy
        combo_overrides: Delta replacements and muscle caps from combo rules
        motion_id: Motion being scored, recorded on appended override deltas

    Returns:
        ActivationResult

    Raises:
        MissingMuscleError: Under the "error" missing-key behavior.
        PolicyError: If the policy overrides are invalid.
    """
    policy = DEFAULT_SCORE_POLICY.merged(policy_overrides)

    effective_deltas = list(resolved_deltas)
    if combo_overrides and combo_overrides.delta_overrides:
        effective_deltas = apply_delta_overrides(
            effective_deltas, combo_overrides.delta_overrides, motion_id
        )

    base_scores = flatten_muscle_targets(muscle_targets)
    delta_sum = sum_deltas(effective_deltas)
    raw_scores = _add_deltas(base_scores, delta_sum, policy)
    final_scores = apply_deltas(base_scores, delta_sum, policy)

    if combo_overrides and combo_overrides.clamp_map:
        floor = policy.output_floor
        for muscle_id, cap in combo_overrides.clamp_map.items():
            if muscle_id in final_scores and final_scores[muscle_id] > cap:
                final_scores[muscle_id] = max(cap, floor)

    normalized_scores = None
    if policy.output_mode in ("normalized", "both"):
        if policy.normalizes or policy.clamp_max <= 0:
            normalized_scores = dict(final_scores)
        else:
            normalized_scores = {m: s / policy.clamp_max for m, s in final_scores.items()}

    logger.debug(
        f"Computed activation for {len(final_scores)} muscles "
        f"from {len(effective_deltas)} deltas"
    )
    return ActivationResult(
        base_scores=base_scores,
        applied_deltas=effective_deltas,
        final_scores=final_scores,
        raw_scores=raw_scores,
        normalized_scores=normalized_scores,
        policy=policy,
    )
