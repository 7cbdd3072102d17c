"""Constants for the rules and resolution engine.

Table, body-region and combo-rule vocabulary lives in
motionlab.content.vocabulary and is re-exported here for convenience.

Constants are organized by functional area:
- Delta resolution: inheritance walk bound
- Combo rules: tie-break reasons
- Realism advisory thresholds
"""

from __future__ import annotations

from typing import Final

from motionlab.content.vocabulary import ComboActions, ComboOperators

MAX_INHERIT_DEPTH: Final[int] = 20


# =============================================================================
# Combo Rules
# =============================================================================

class WinnerReasons:
    """Human-readable reasons recorded for each fired rule."""

    ONLY_MATCH = "only match"
    HIGHEST_SPECIFICITY = "highest specificity"
    PRIORITY_TIE_BREAK = "priority tie-break"
    ID_TIE_BREAK = "id tie-break"


# =============================================================================
# Realism Advisory Thresholds
# =============================================================================

class RealismThresholds:
    """Thresholds for the informational realism advisory."""

    MAX_SINGLE_DELTA = 2.0
    MAX_TOTAL_DELTA_MAGNITUDE = 5.0
    MIN_NEGATIVE_DELTA = -1.5
    PREVIEW_LIMIT = 3  # muscle ids listed per reason


__all__ = [
    "MAX_INHERIT_DEPTH",
    "ComboActions",
    "ComboOperators",
    "WinnerReasons",
    "RealismThresholds",
]
