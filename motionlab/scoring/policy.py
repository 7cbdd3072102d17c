"""Score policy value object and built-in presets.

A ScorePolicy controls how resolved deltas are applied to a motion's base
scores: clamp bounds, normalization, how deltas for muscles missing from the
base are treated, and which score views are emitted.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Final, Literal, Mapping

from motionlab.content.models import is_number

from .exceptions import PolicyError

MissingKeyBehavior = Literal["skip", "zero", "error"]
OutputMode = Literal["raw", "normalized", "both"]

MISSING_KEY_BEHAVIORS: Final[tuple[str, ...]] = ("skip", "zero", "error")
OUTPUT_MODES: Final[tuple[str, ...]] = ("raw", "normalized", "both")


@dataclass(frozen=True)
class ScorePolicy:
    """Immutable scoring policy.

    Attributes:
        clamp_min: Lower bound applied to every final score
        clamp_max: Upper bound applied to every final score
        normalize_output: Divide final scores by clamp_max after clamping
        missing_key_behavior: Handling of deltas for muscles absent from base
            ("skip" ignores them, "zero" inserts them, "error" raises)
        output_mode: Which score views to emit ("raw", "normalized", "both")
    """

    clamp_min: float = 0.0
    clamp_max: float = 5.0
    normalize_output: bool = False
    missing_key_behavior: MissingKeyBehavior = "skip"
    output_mode: OutputMode = "raw"

    def __post_init__(self):
        for name in ("clamp_min", "clamp_max"):
            value = getattr(self, name)
            if not is_number(value):
                raise PolicyError(
                    f"{name} must be a number, got {value!r}",
                    details={"field": name},
                )
        if not isinstance(self.normalize_output, bool):
            raise PolicyError(
                f"normalize_output must be a boolean, got {self.normalize_output!r}",
                details={"field": "normalize_output"},
            )
        if self.clamp_min > self.clamp_max:
            raise PolicyError(
                f"clamp_min ({self.clamp_min}) must be <= clamp_max ({self.clamp_max})",
                details={"clamp_min": self.clamp_min, "clamp_max": self.clamp_max},
            )
        if self.missing_key_behavior not in MISSING_KEY_BEHAVIORS:
            raise PolicyError(
                f"Invalid missing_key_behavior '{self.missing_key_behavior}'. "
                f"Must be one of: {', '.join(MISSING_KEY_BEHAVIORS)}"
            )
        if self.output_mode not in OUTPUT_MODES:
            raise PolicyError(
                f"Invalid output_mode '{self.output_mode}'. "
                f"Must be one of: {', '.join(OUTPUT_MODES)}"
            )

    @property
    def normalizes(self) -> bool:
        """Whether final scores are divided by clamp_max."""
        return self.normalize_output and self.clamp_max > 0

    @property
    def output_floor(self) -> float:
        """Lowest value a final score can take under this policy."""
        if self.normalizes:
            return self.clamp_min / self.clamp_max
        return self.clamp_min

    def merged(self, overrides: Mapping[str, Any] | ScorePolicy | None = None) -> ScorePolicy:
        """Return a new policy with overrides shallow-merged on top of this one.

        Args:
            overrides: Field overrides. Accepts snake_case or camelCase keys
                (``clampMax``), or a complete ScorePolicy which replaces this one.

        Returns:
            ScorePolicy: The merged policy.

        Raises:
            PolicyError: If an override names an unknown field or an invalid value.
        """
        if overrides is None:
            return self
        if isinstance(overrides, ScorePolicy):
            return overrides

        known = {f.name for f in dataclasses.fields(self)}
        changes: dict[str, Any] = {}
        for key, value in overrides.items():
            name = _CAMEL_TO_SNAKE.get(key, key)
            if name not in known:
                raise PolicyError(
                    f"Unknown score policy field '{key}'",
                    details={"field": key},
                )
            changes[name] = value
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return dataclasses.asdict(self)


_CAMEL_TO_SNAKE: Final[dict[str, str]] = {
    "clampMin": "clamp_min",
    "clampMax": "clamp_max",
    "normalizeOutput": "normalize_output",
    "missingKeyBehavior": "missing_key_behavior",
    "outputMode": "output_mode",
}


DEFAULT_SCORE_POLICY: Final[ScorePolicy] = ScorePolicy()

NORMALIZED_POLICY: Final[ScorePolicy] = ScorePolicy(
    normalize_output=True,
    output_mode="normalized",
)

STRICT_POLICY: Final[ScorePolicy] = ScorePolicy(missing_key_behavior="error")


def create_score_policy(
    overrides: Mapping[str, Any] | ScorePolicy | None = None,
) -> ScorePolicy:
    """Create a policy by merging overrides onto the default policy."""
    return DEFAULT_SCORE_POLICY.merged(overrides)
