"""Content vocabulary shared by every engine component.

Content JSON conventions that every storage backend must preserve:
- ``delta_rules`` values are either an object (possibly empty) or ``"inherit"``
- every modifier table contains a row with id exactly ``"NONE"``
- equipment restriction keys use an UPPER_SNAKE vocabulary (``GRIPS``,
  ``GRIP_WIDTHS``) mapped onto the camelCase table keys used internally
"""

from __future__ import annotations

from typing import Final

NONE_ROW_ID: Final[str] = "NONE"
INHERIT_SENTINEL: Final[str] = "inherit"


# =============================================================================
# Modifier Tables
# =============================================================================

class ModifierTables:
    """Canonical modifier-table keys.

    The tuple order is the canonical processing order used when resolving
    deltas for a selection. It only affects the order of resolver output,
    never its content.
    """

    MOTION_PATHS = "motionPaths"
    TORSO_ANGLES = "torsoAngles"
    TORSO_ORIENTATIONS = "torsoOrientations"
    RESISTANCE_ORIGIN = "resistanceOrigin"
    GRIPS = "grips"
    GRIP_WIDTHS = "gripWidths"
    ELBOW_RELATIONSHIP = "elbowRelationship"
    EXECUTION_STYLES = "executionStyles"
    FOOT_POSITIONS = "footPositions"
    STANCE_WIDTHS = "stanceWidths"
    STANCE_TYPES = "stanceTypes"
    LOAD_PLACEMENT = "loadPlacement"
    SUPPORT_STRUCTURES = "supportStructures"
    LOADING_AIDS = "loadingAids"
    RANGE_OF_MOTION = "rangeOfMotion"

    ALL: Final[tuple[str, ...]] = (
        MOTION_PATHS,
        TORSO_ANGLES,
        TORSO_ORIENTATIONS,
        RESISTANCE_ORIGIN,
        GRIPS,
        GRIP_WIDTHS,
        ELBOW_RELATIONSHIP,
        EXECUTION_STYLES,
        FOOT_POSITIONS,
        STANCE_WIDTHS,
        STANCE_TYPES,
        LOAD_PLACEMENT,
        SUPPORT_STRUCTURES,
        LOADING_AIDS,
        RANGE_OF_MOTION,
    )

    @staticmethod
    def order_index(table_key: str) -> int:
        """Position of a table in the canonical order; unknown tables sort last.

        Args:
            table_key: Modifier table key (camelCase)

        Returns:
            Index into ALL, or len(ALL) for unknown keys
        """
        try:
            return ModifierTables.ALL.index(table_key)
        except ValueError:
            return len(ModifierTables.ALL)


MODIFIER_TABLE_KEYS: Final[tuple[str, ...]] = ModifierTables.ALL


# =============================================================================
# Body Regions
# =============================================================================

class BodyRegions:
    """Body-region vocabulary and the modifier tables tied to each region."""

    UPPER = "UPPER"
    LOWER = "LOWER"

    UPPER_BODY_TABLES: Final[tuple[str, ...]] = (
        ModifierTables.GRIPS,
        ModifierTables.GRIP_WIDTHS,
        ModifierTables.ELBOW_RELATIONSHIP,
    )
    LOWER_BODY_TABLES: Final[tuple[str, ...]] = (
        ModifierTables.FOOT_POSITIONS,
        ModifierTables.STANCE_WIDTHS,
        ModifierTables.STANCE_TYPES,
    )


# =============================================================================
# Equipment Constraint Vocabulary
# =============================================================================

EQUIPMENT_KEY_MAP: Final[dict[str, str]] = {
    "GRIPS": ModifierTables.GRIPS,
    "GRIP_WIDTHS": ModifierTables.GRIP_WIDTHS,
    "TORSO_ANGLES": ModifierTables.TORSO_ANGLES,
    "TORSO_ORIENTATIONS": ModifierTables.TORSO_ORIENTATIONS,
    "STANCE_WIDTHS": ModifierTables.STANCE_WIDTHS,
    "STANCE_TYPES": ModifierTables.STANCE_TYPES,
    "FOOT_POSITIONS": ModifierTables.FOOT_POSITIONS,
    "SUPPORT_STRUCTURES": ModifierTables.SUPPORT_STRUCTURES,
    "ELBOW_RELATIONSHIP": ModifierTables.ELBOW_RELATIONSHIP,
    "EXECUTION_STYLES": ModifierTables.EXECUTION_STYLES,
    "MOTION_PATHS": ModifierTables.MOTION_PATHS,
    "RESISTANCE_ORIGIN": ModifierTables.RESISTANCE_ORIGIN,
    "LOADING_AIDS": ModifierTables.LOADING_AIDS,
    "LOAD_PLACEMENT": ModifierTables.LOAD_PLACEMENT,
    "RANGE_OF_MOTION": ModifierTables.RANGE_OF_MOTION,
    "EQUIPMENT_CATEGORIES": "equipmentCategories",
    "EQUIPMENT": "equipment",
}


def equipment_key_to_table(raw_key: str) -> str:
    """Map an UPPER_SNAKE equipment constraint key to an internal table key.

    Unknown keys fall back to their lowercase form.
    """
    return EQUIPMENT_KEY_MAP.get(raw_key, raw_key.lower())


# =============================================================================
# Content table names
# =============================================================================

class ContentTables:
    """Names of the non-modifier content tables served by a provider."""

    MOTIONS = "motions"
    MUSCLES = "muscles"
    EQUIPMENT = "equipment"
    COMBO_RULES = "comboRules"


# =============================================================================
# Combo Rule Vocabulary
# =============================================================================

class ComboOperators:
    """Trigger condition operators."""

    EQ = "eq"
    IN = "in"
    NOT_EQ = "not_eq"
    NOT_IN = "not_in"

    POSITIVE: Final[frozenset[str]] = frozenset({EQ, IN})
    NEGATIVE: Final[frozenset[str]] = frozenset({NOT_EQ, NOT_IN})
    ALL: Final[tuple[str, ...]] = (EQ, IN, NOT_EQ, NOT_IN)


class ComboActions:
    """Combo rule action types."""

    SWITCH_MOTION = "SWITCH_MOTION"
    REPLACE_DELTA = "REPLACE_DELTA"
    CLAMP_MUSCLE = "CLAMP_MUSCLE"

    ALL: Final[tuple[str, ...]] = (SWITCH_MOTION, REPLACE_DELTA, CLAMP_MUSCLE)
