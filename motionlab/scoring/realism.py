"""Realism advisory for a computed activation.

Non-blocking and informational: flags results that are technically valid
but look implausible (huge single deltas, many muscles pinned at the clamp
ceiling, muscles wiped out by negative deltas).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from .activation import ActivationResult
from .constants import RealismThresholds

AdvisoryLevel = Literal["green", "yellow", "red"]

REASONABLE_MESSAGE = "Score distribution looks reasonable"


@dataclass(frozen=True)
class RealismAdvisory:
    level: AdvisoryLevel
    reasons: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"level": self.level, "reasons": list(self.reasons)}


def _preview(muscle_ids: list[str]) -> str:
    shown = ", ".join(muscle_ids[: RealismThresholds.PREVIEW_LIMIT])
    if len(muscle_ids) > RealismThresholds.PREVIEW_LIMIT:
        shown += "..."
    return shown


def evaluate_realism(activation: ActivationResult) -> RealismAdvisory:
    """Grade an activation result green, yellow or red.

    Red: any single delta above MAX_SINGLE_DELTA in magnitude, or below
    MIN_NEGATIVE_DELTA. Yellow: muscles pinned at the clamp ceiling, total
    delta magnitude above MAX_TOTAL_DELTA_MAGNITUDE, or muscles reduced to
    the floor from a positive base.
    """
    policy = activation.policy
    ceiling = 1.0 if policy.normalizes else policy.clamp_max
    floor = policy.output_floor

    reasons: list[str] = []
    has_red = False
    has_yellow = False

    clamped = [m for m, score in activation.final_scores.items() if score >= ceiling]
    if clamped:
        reasons.append(
            f"{len(clamped)} muscle(s) clamped at max ({ceiling:g}): {_preview(clamped)}"
        )
        has_yellow = True

    total_magnitude = sum(
        abs(delta) for resolved in activation.applied_deltas for delta in resolved.deltas.values()
    )
    if total_magnitude > RealismThresholds.MAX_TOTAL_DELTA_MAGNITUDE:
        reasons.append(
            f"Total delta magnitude ({total_magnitude:.2f}) exceeds advisory threshold "
            f"({RealismThresholds.MAX_TOTAL_DELTA_MAGNITUDE:g})"
        )
        has_yellow = True

    for resolved in activation.applied_deltas:
        source = f"{resolved.modifier_table}.{resolved.modifier_id}"
        for muscle_id, delta in resolved.deltas.items():
            if abs(delta) > RealismThresholds.MAX_SINGLE_DELTA:
                reasons.append(f"Large delta on {muscle_id}: {delta:+g} from {source}")
                has_red = True
            if delta < RealismThresholds.MIN_NEGATIVE_DELTA:
                reasons.append(f"Extreme negative delta on {muscle_id}: {delta:g} from {source}")
                has_red = True

    zeroed = [
        m
        for m, score in activation.final_scores.items()
        if score <= floor and activation.base_scores.get(m, 0) > 0
    ]
    if zeroed:
        reasons.append(f"{len(zeroed)} muscle(s) reduced to 0: {_preview(zeroed)}")
        has_yellow = True

    if not reasons:
        reasons.append(REASONABLE_MESSAGE)

    level: AdvisoryLevel = "red" if has_red else "yellow" if has_yellow else "green"
    return RealismAdvisory(level=level, reasons=reasons)
