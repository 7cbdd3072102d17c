"""Rules and resolution engine.

This package turns a motion plus a set of selected modifiers into per-muscle
activation scores, and decides which modifier tables are usable.

Main exports:
    - resolve_all_deltas: Resolve selected modifiers against a motion
    - compute_activation: Apply deltas to base scores under a ScorePolicy
    - evaluate_constraints: Per-table visibility state for a motion
    - resolve_combo_rules: Fire author-defined combo rules for a selection
    - evaluate_realism: Informational plausibility check on a result
    - ScorePolicy: Clamp / normalize / missing-key policy
"""
from .activation import (
    ActivationResult,
    ComboOverrides,
    DeltaOverride,
    apply_delta_overrides,
    apply_deltas,
    compute_activation,
    flatten_muscle_targets,
    sum_deltas,
)

from .combo_rules import (
    ComboResolution,
    RuleFired,
    resolve_combo_rules,
    winner_reason,
)

from .constants import (
    MAX_INHERIT_DEPTH,
    ComboActions,
    ComboOperators,
    RealismThresholds,
    WinnerReasons,
)

from .constraints import (
    ConstraintState,
    ModifierConstraint,
    body_region_isolation,
    equipment_restrictions,
    evaluate_constraints,
    merge_constraints,
    torso_orientation_gating,
)

from .deltas import (
    ResolvedDelta,
    resolve_all_deltas,
    resolve_single_delta,
)

from .exceptions import (
    ActivationError,
    MissingMuscleError,
    PolicyError,
    ScoringException,
)

from .policy import (
    DEFAULT_SCORE_POLICY,
    NORMALIZED_POLICY,
    STRICT_POLICY,
    ScorePolicy,
    create_score_policy,
)

from .realism import (
    RealismAdvisory,
    evaluate_realism,
)

__all__ = [
    # Activation
    "ActivationResult",
    "ComboOverrides",
    "DeltaOverride",
    "apply_delta_overrides",
    "apply_deltas",
    "compute_activation",
    "flatten_muscle_targets",
    "sum_deltas",
    # Combo rules
    "ComboResolution",
    "RuleFired",
    "resolve_combo_rules",
    "winner_reason",
    # Constants
    "MAX_INHERIT_DEPTH",
    "ComboActions",
    "ComboOperators",
    "RealismThresholds",
    "WinnerReasons",
    # Constraints
    "ConstraintState",
    "ModifierConstraint",
    "body_region_isolation",
    "equipment_restrictions",
    "evaluate_constraints",
    "merge_constraints",
    "torso_orientation_gating",
    # Deltas
    "ResolvedDelta",
    "resolve_all_deltas",
    "resolve_single_delta",
    # Exceptions
    "ActivationError",
    "MissingMuscleError",
    "PolicyError",
    "ScoringException",
    # Policy
    "DEFAULT_SCORE_POLICY",
    "NORMALIZED_POLICY",
    "STRICT_POLICY",
    "ScorePolicy",
    "create_score_policy",
    # Realism
    "RealismAdvisory",
    "evaluate_realism",
]
