"""Scoring service: the orchestration seam over one content snapshot.

An HTTP layer (or the CLI) calls this service; the engine modules below it
stay pure functions over typed content.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Union

from motionlab.config.policy_loader import get_policy_loader
from motionlab.config.settings import Settings, get_settings
from motionlab.content.models import ModifierSelection, Motion
from motionlab.content.provider import ContentProvider, JsonDirectoryProvider
from motionlab.content.snapshot import ContentSnapshot, load_snapshot
from motionlab.content.vocabulary import ModifierTables
from motionlab.core.exceptions import UnknownMotionError, ValidationError
from motionlab.core.logging import get_logger
from motionlab.linter import LintIssue, lint_all
from motionlab.scoring.activation import ActivationResult, compute_activation
from motionlab.scoring.combo_rules import ComboResolution, resolve_combo_rules
from motionlab.scoring.constants import MAX_INHERIT_DEPTH
from motionlab.scoring.constraints import ModifierConstraint, evaluate_constraints
from motionlab.scoring.deltas import ResolvedDelta, resolve_all_deltas
from motionlab.scoring.policy import DEFAULT_SCORE_POLICY, ScorePolicy
from motionlab.scoring.realism import RealismAdvisory, evaluate_realism


logger = get_logger(__name__)

SelectionLike = Union[ModifierSelection, Mapping[str, Any], tuple[str, str]]


def coerce_selection(selection: SelectionLike) -> ModifierSelection:
    """Accept a ModifierSelection, a ``{tableKey, rowId}`` mapping, or a pair.

    Raises:
        ValidationError: If the selection has no table key or row id.
    """
    if isinstance(selection, ModifierSelection):
        result = selection
    elif isinstance(selection, Mapping):
        result = ModifierSelection.from_dict(selection)
    elif isinstance(selection, (tuple, list)) and len(selection) == 2:
        result = ModifierSelection(table_key=str(selection[0]), row_id=str(selection[1]))
    else:
        raise ValidationError("selections", f"Unsupported selection {selection!r}")

    if not result.table_key or not result.row_id:
        raise ValidationError("selections", "Selection needs both a table key and a row id")
    return result


@dataclass(frozen=True)
class ScoringOutcome:
    """Everything a single compute call produced."""

    motion_id: str
    effective_motion_id: str
    activation: ActivationResult
    combo: ComboResolution
    advisory: RealismAdvisory

    def to_dict(self) -> dict[str, Any]:
        return {
            "motionId": self.motion_id,
            "effectiveMotionId": self.effective_motion_id,
            **self.activation.to_dict(),
            "combo": self.combo.to_dict(),
            "advisory": self.advisory.to_dict(),
        }


@dataclass(frozen=True)
class MuscleTrace:
    base: float
    final: float

    @property
    def delta(self) -> float:
        return self.final - self.base

    def to_dict(self) -> dict[str, float]:
        return {"base": self.base, "final": self.final, "delta": self.delta}


@dataclass(frozen=True)
class TraceResult:
    """Base-vs-final comparison for every muscle touched by a computation."""

    outcome: ScoringOutcome
    muscles: dict[str, MuscleTrace] = field(default_factory=dict)

    @property
    def resolved_deltas(self) -> list[ResolvedDelta]:
        return self.outcome.activation.applied_deltas

    def to_dict(self) -> dict[str, Any]:
        return {
            "motionId": self.outcome.motion_id,
            "effectiveMotionId": self.outcome.effective_motion_id,
            "muscles": {m: t.to_dict() for m, t in self.muscles.items()},
            "resolvedDeltas": [d.to_dict() for d in self.resolved_deltas],
            "rulesFired": [r.to_dict() for r in self.outcome.combo.rules_fired],
        }


class ScoringService:
    """Computes activation, traces, constraints and lint reports.

    Example:
        >>> service = ScoringService(snapshot)
        >>> outcome = service.compute("PRESS_FLAT", [("grips", "NEUTRAL")])
        >>> outcome.activation.final_scores["DELTS_FRONT"]
        0.45
    """

    def __init__(
        self,
        snapshot: ContentSnapshot,
        base_policy: ScorePolicy = DEFAULT_SCORE_POLICY,
        max_inherit_depth: int = MAX_INHERIT_DEPTH,
    ):
        """Initialize the service.

        Args:
            snapshot: Content to evaluate against
            base_policy: Policy that per-call overrides are merged onto
            max_inherit_depth: Inheritance walk bound for delta resolution
        """
        self._snapshot = snapshot
        self._base_policy = base_policy
        self._max_inherit_depth = max_inherit_depth

    @classmethod
    def from_provider(
        cls, provider: ContentProvider, settings: Settings | None = None
    ) -> ScoringService:
        """Load a snapshot from ``provider`` and apply settings."""
        settings = settings or get_settings()
        loader = get_policy_loader(settings.policy_config_path)
        return cls(
            load_snapshot(provider),
            base_policy=loader.get_policy(settings.default_policy),
            max_inherit_depth=settings.max_inherit_depth,
        )

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> ScoringService:
        """Load content from ``settings.content_dir``."""
        settings = settings or get_settings()
        return cls.from_provider(JsonDirectoryProvider(settings.content_dir), settings)

    @property
    def snapshot(self) -> ContentSnapshot:
        return self._snapshot

    @property
    def base_policy(self) -> ScorePolicy:
        return self._base_policy

    def require_motion(self, motion_id: str) -> Motion:
        """Look up a motion.

        Raises:
            UnknownMotionError: If the snapshot has no such motion.
        """
        motion = self._snapshot.get_motion(motion_id)
        if motion is None:
            raise UnknownMotionError(motion_id)
        return motion

    def compute(
        self,
        motion_id: str,
        selections: Iterable[SelectionLike],
        policy_overrides: Mapping[str, Any] | ScorePolicy | None = None,
    ) -> ScoringOutcome:
        """Run combo rules, delta resolution and activation for one request.

        A SWITCH_MOTION proxy that does not exist in the snapshot is ignored
        and the selected motion is scored instead.

        Raises:
            UnknownMotionError: If ``motion_id`` is unknown.
            ValidationError: If a selection is malformed.
            MissingMuscleError: Under the "error" missing-key policy.
            PolicyError: If the policy overrides are invalid.
        """
        motion = self.require_motion(motion_id)
        selected = [coerce_selection(s) for s in selections]

        combo = resolve_combo_rules(motion_id, selected, self._snapshot.combo_rules)
        effective = self._snapshot.get_motion(combo.effective_motion_id)
        if effective is None:
            logger.warning(
                "combo_proxy_motion_missing",
                motion_id=motion_id,
                proxy_motion_id=combo.effective_motion_id,
            )
            effective = motion

        deltas = resolve_all_deltas(
            effective.id,
            selected,
            self._snapshot.motions,
            self._snapshot.modifier_tables,
            self._max_inherit_depth,
        )
        policy = self._base_policy.merged(policy_overrides)
        activation = compute_activation(
            effective.muscle_targets,
            deltas,
            policy,
            combo.overrides,
            motion_id=effective.id,
        )

        logger.debug(
            "activation_computed",
            motion_id=motion_id,
            effective_motion_id=effective.id,
            selections=len(selected),
            deltas=len(activation.applied_deltas),
            rules_fired=len(combo.rules_fired),
        )
        return ScoringOutcome(
            motion_id=motion_id,
            effective_motion_id=effective.id,
            activation=activation,
            combo=combo,
            advisory=evaluate_realism(activation),
        )

    def trace(
        self,
        motion_id: str,
        selections: Iterable[SelectionLike],
        policy_overrides: Mapping[str, Any] | ScorePolicy | None = None,
    ) -> TraceResult:
        """Compute, then compare base and final scores muscle by muscle."""
        outcome = self.compute(motion_id, selections, policy_overrides)
        base = outcome.activation.base_scores
        final = outcome.activation.final_scores

        muscles = {
            muscle_id: MuscleTrace(base=base.get(muscle_id, 0.0), final=final.get(muscle_id, 0.0))
            for muscle_id in [*base, *(m for m in final if m not in base)]
        }
        return TraceResult(outcome=outcome, muscles=muscles)

    def constraints(
        self,
        motion_id: str,
        equipment_id: str | None = None,
        torso_angle_id: str | None = None,
    ) -> dict[str, ModifierConstraint]:
        """Evaluate modifier-table constraints for a motion.

        Unknown equipment or torso angle ids are treated as not selected.

        Raises:
            UnknownMotionError: If ``motion_id`` is unknown.
        """
        motion = self.require_motion(motion_id)

        equipment = self._snapshot.equipment.get(equipment_id) if equipment_id else None
        if equipment_id and equipment is None:
            logger.debug("constraint_equipment_unknown", equipment_id=equipment_id)

        torso_angle = (
            self._snapshot.get_row(ModifierTables.TORSO_ANGLES, torso_angle_id)
            if torso_angle_id
            else None
        )
        if torso_angle_id and torso_angle is None:
            logger.debug("constraint_torso_angle_unknown", torso_angle_id=torso_angle_id)

        return evaluate_constraints(motion, equipment, torso_angle)

    def lint(self) -> list[LintIssue]:
        """Lint the whole snapshot."""
        snapshot = self._snapshot
        issues = lint_all(
            snapshot.motions,
            snapshot.muscles,
            snapshot.modifier_tables,
            snapshot.combo_rules,
            snapshot.equipment,
        )
        logger.info("content_linted", issues=len(issues))
        return issues
