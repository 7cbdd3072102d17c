"""Exception hierarchy for the scoring engine.

Only a small part of the engine can fail at evaluation time. Content gaps
(unknown modifiers, rows that do not apply to a motion) degrade silently and
content-integrity problems are reported by the linter, never raised.

Exception Hierarchy:
- ScoringException (base)
  - ActivationError (activation computation failures)
    - MissingMuscleError (strict policy: delta references a muscle absent from base)
  - PolicyError (invalid score policy values)

Example:
    try:
        result = compute_activation(targets, deltas, {"missing_key_behavior": "error"})
    except MissingMuscleError as e:
        logger.error(f"Strict scoring failed: {e}")
"""

from __future__ import annotations


class ScoringException(Exception):
    """Base exception for all scoring-related errors.

    Attributes:
        message: Human-readable error message
        details: Optional dictionary with additional error context
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation."""
        return self.message


class ActivationError(ScoringException):
    """Base exception for failures while computing activation scores."""

    pass


class MissingMuscleError(ActivationError):
    """Raised under the ``error`` missing-key policy.

    A resolved delta referenced a muscle that does not exist in the motion's
    base scores.

    Example:
        ```python
        raise MissingMuscleError("TRICEP_OUTER")
        ```
    """

    def __init__(self, muscle_id: str) -> None:
        super().__init__(
            f'Delta references unknown muscle "{muscle_id}" not in base scores',
            details={"muscle_id": muscle_id},
        )
        self.muscle_id = muscle_id


class PolicyError(ScoringException):
    """Raised when a score policy carries invalid values."""

    pass
