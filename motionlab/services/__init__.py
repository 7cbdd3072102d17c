"""Service layer over a content snapshot."""
from motionlab.services.scoring_service import (
    MuscleTrace,
    ScoringOutcome,
    ScoringService,
    TraceResult,
    coerce_selection,
)

__all__ = ["MuscleTrace", "ScoringOutcome", "ScoringService", "TraceResult", "coerce_selection"]
