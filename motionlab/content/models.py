"""Typed content entities.

Every entity is a frozen dataclass built from content JSON with
``from_dict``. Known fields are typed; anything else an author added to the
row is kept in ``extras`` rather than widening the entity to an open dict.

Content is parsed leniently. Values the engine cannot use (a non-numeric
delta, a delta entry that is neither an object nor ``"inherit"``, a field of
the wrong JSON type) are kept aside on the entity so the linter can report
them; the engine itself never sees them and falls back to the field default.
"""

from __future__ import annotations

import logging
import numbers
from dataclasses import dataclass, field
from typing import Any, Mapping, Union

from .muscle_tree import flatten_muscle_tree, is_nested_targets
from .vocabulary import INHERIT_SENTINEL

logger = logging.getLogger(__name__)


def is_number(value: Any) -> bool:
    """True for real numbers; booleans are not scores."""
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _split_numeric(raw: Mapping[str, Any]) -> tuple[dict[str, float], dict[str, Any]]:
    numeric: dict[str, float] = {}
    invalid: dict[str, Any] = {}
    for key, value in raw.items():
        if is_number(value):
            numeric[key] = value
        else:
            invalid[key] = value
    return numeric, invalid


def _extras(raw: Mapping[str, Any], known: frozenset[str]) -> dict[str, Any]:
    return {k: v for k, v in raw.items() if k not in known}


def _as_id_tuple(value: Any) -> tuple[str, ...] | None:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,) if value else ()
    if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
        return tuple(value)
    return None


class _FieldReader:
    """Reads typed fields off a content row, recording values of the wrong type."""

    def __init__(self, raw: Mapping[str, Any]) -> None:
        self.raw = raw
        self.invalid: dict[str, Any] = {}

    def id_tuple(self, name: str) -> tuple[str, ...]:
        """A string or a list of strings; a bare string is a single id."""
        ids = _as_id_tuple(self.raw.get(name))
        if ids is None:
            self.invalid[name] = self.raw[name]
            return ()
        return ids

    def optional_str(self, name: str) -> str | None:
        value = self.raw.get(name)
        if value is None or value == "":
            return None
        if not isinstance(value, str):
            self.invalid[name] = value
            return None
        return value

    def mapping(self, name: str) -> dict[str, Any]:
        value = self.raw.get(name)
        if value is None or value == []:
            return {}
        if not isinstance(value, Mapping):
            self.invalid[name] = value
            return {}
        return dict(value)

    def integer(self, name: str) -> int:
        value = self.raw.get(name)
        if value is None:
            return 0
        if not is_number(value):
            self.invalid[name] = value
            return 0
        return int(value)


# =============================================================================
# Delta entries
# =============================================================================

@dataclass(frozen=True)
class Inherit:
    """The ``"inherit"`` sentinel: use the parent motion's entry instead."""

    def to_json(self) -> str:
        return INHERIT_SENTINEL


@dataclass(frozen=True)
class DeltaMap:
    """Per-muscle signed deltas for one motion.

    An empty map is the home base: the modifier applies to the motion but
    changes nothing.

    Attributes:
        deltas: Numeric deltas keyed by muscle id
        invalid_values: Non-numeric values found in the content, kept for linting
    """

    deltas: Mapping[str, float] = field(default_factory=dict)
    invalid_values: Mapping[str, Any] = field(default_factory=dict)

    @property
    def is_home_base(self) -> bool:
        return not self.deltas and not self.invalid_values

    def to_json(self) -> dict[str, Any]:
        return {**self.deltas, **self.invalid_values}


@dataclass(frozen=True)
class MalformedEntry:
    """A delta entry that is neither an object nor ``"inherit"``."""

    raw: Any

    def to_json(self) -> Any:
        return self.raw


DeltaEntry = Union[Inherit, DeltaMap, MalformedEntry]

INHERIT = Inherit()


def parse_delta_entry(raw: Any) -> DeltaEntry:
    """Parse one ``delta_rules`` value into its tagged variant."""
    if raw == INHERIT_SENTINEL:
        return INHERIT
    if isinstance(raw, Mapping):
        deltas, invalid = _split_numeric(raw)
        return DeltaMap(deltas=deltas, invalid_values=invalid)
    return MalformedEntry(raw=raw)


def parse_delta_rules(raw: Any) -> dict[str, DeltaEntry]:
    """Parse a whole ``delta_rules`` field.

    ``None`` and an empty list (a legacy storage artifact) mean no rules.
    """
    if raw is None or raw == []:
        return {}
    if not isinstance(raw, Mapping):
        logger.debug(f"Ignoring non-object delta_rules of type {type(raw).__name__}")
        return {}
    return {str(motion_id): parse_delta_entry(entry) for motion_id, entry in raw.items()}


# =============================================================================
# Entities
# =============================================================================

@dataclass(frozen=True)
class Muscle:
    """One muscle (or muscle group) in the muscle DAG.

    Attributes:
        id: Muscle id
        label: Display label
        parent_ids: Ordered parent muscle ids (zero, one or several)
        is_scorable: False marks grouping-only muscles; None counts as scorable
        invalid_fields: Known fields whose content had the wrong type
        extras: Author-defined fields beyond the typed core
    """

    id: str
    label: str = ""
    parent_ids: tuple[str, ...] = ()
    is_scorable: bool | None = None
    invalid_fields: Mapping[str, Any] = field(default_factory=dict)
    extras: Mapping[str, Any] = field(default_factory=dict)

    _KNOWN = frozenset({"id", "label", "parent_ids", "is_scorable"})

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> Muscle:
        fields = _FieldReader(raw)
        return cls(
            id=str(raw["id"]),
            label=raw.get("label", ""),
            parent_ids=fields.id_tuple("parent_ids"),
            is_scorable=raw.get("is_scorable"),
            invalid_fields=fields.invalid,
            extras=_extras(raw, cls._KNOWN),
        )


@dataclass(frozen=True)
class Motion:
    """A body movement pattern with its base activation profile.

    Attributes:
        id: Motion id
        label: Display label
        parent_id: Parent motion used only for delta inheritance fallback
        body_regions: Subset of {"UPPER", "LOWER"}
        muscle_targets: Flat base scores keyed by muscle id
        invalid_targets: Non-numeric target values, kept for linting
        default_modifier_selections: Table key to default row id
        is_active: Inactive motions are excluded from coverage reporting
        invalid_fields: Known fields whose content had the wrong type
        extras: Author-defined fields beyond the typed core
    """

    id: str
    label: str = ""
    parent_id: str | None = None
    body_regions: frozenset[str] = frozenset()
    muscle_targets: Mapping[str, float] = field(default_factory=dict)
    invalid_targets: Mapping[str, Any] = field(default_factory=dict)
    default_modifier_selections: Mapping[str, str] = field(default_factory=dict)
    is_active: bool = True
    invalid_fields: Mapping[str, Any] = field(default_factory=dict)
    extras: Mapping[str, Any] = field(default_factory=dict)

    _KNOWN = frozenset(
        {"id", "label", "parent_id", "upper_lower", "muscle_targets", "default_delta_configs", "is_active"}
    )

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> Motion:
        fields = _FieldReader(raw)
        targets = fields.mapping("muscle_targets")
        if is_nested_targets(targets):
            logger.debug(f"Flattening legacy nested muscle_targets for motion '{raw.get('id')}'")
            targets = flatten_muscle_tree(targets)
        numeric, invalid = _split_numeric(targets)

        return cls(
            id=str(raw["id"]),
            label=raw.get("label", ""),
            parent_id=fields.optional_str("parent_id"),
            body_regions=frozenset(fields.id_tuple("upper_lower")),
            muscle_targets=numeric,
            invalid_targets=invalid,
            default_modifier_selections=fields.mapping("default_delta_configs"),
            is_active=raw.get("is_active", True) is not False,
            invalid_fields=fields.invalid,
            extras=_extras(raw, cls._KNOWN),
        )


@dataclass(frozen=True)
class ModifierRow:
    """One selectable option in a modifier table (e.g. one grip).

    ``delta_rules`` maps motion id to a DeltaEntry. A motion id that is
    absent means the modifier does not apply to that motion.
    ``invalid_delta_rules`` keeps a ``delta_rules`` value that is neither an
    object nor empty, for the linter.
    """

    id: str
    label: str = ""
    delta_rules: Mapping[str, DeltaEntry] = field(default_factory=dict)
    is_active: bool = True
    invalid_delta_rules: Any = None
    extras: Mapping[str, Any] = field(default_factory=dict)

    _KNOWN = frozenset({"id", "label", "delta_rules", "is_active"})

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> ModifierRow:
        raw_rules = raw.get("delta_rules")
        invalid = None
        if raw_rules is not None and raw_rules != [] and not isinstance(raw_rules, Mapping):
            invalid = raw_rules
        return cls(
            id=str(raw["id"]),
            label=raw.get("label", ""),
            delta_rules=parse_delta_rules(raw.get("delta_rules")),
            is_active=raw.get("is_active", True) is not False,
            invalid_delta_rules=invalid,
            extras=_extras(raw, cls._KNOWN),
        )


@dataclass(frozen=True)
class Equipment:
    """Equipment with per-table restrictions on selectable modifier rows.

    ``modifier_constraints`` keys use the UPPER_SNAKE content vocabulary.
    A constraint whose allowed ids are not a list of strings is left out and
    recorded in ``invalid_fields`` under ``modifier_constraints.<KEY>``.
    """

    id: str
    label: str = ""
    modifier_constraints: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    invalid_fields: Mapping[str, Any] = field(default_factory=dict)
    extras: Mapping[str, Any] = field(default_factory=dict)

    _KNOWN = frozenset({"id", "label", "modifier_constraints"})

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> Equipment:
        fields = _FieldReader(raw)
        constraints: dict[str, tuple[str, ...]] = {}
        for key, value in fields.mapping("modifier_constraints").items():
            ids = _as_id_tuple(value)
            if ids is None:
                fields.invalid[f"modifier_constraints.{key}"] = value
            else:
                constraints[key] = ids
        return cls(
            id=str(raw["id"]),
            label=raw.get("label", ""),
            modifier_constraints=constraints,
            invalid_fields=fields.invalid,
            extras=_extras(raw, cls._KNOWN),
        )


@dataclass(frozen=True)
class TriggerCondition:
    """One combo-rule condition on a modifier table's selection."""

    table_key: str
    operator: str
    values: tuple[str, ...]

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> TriggerCondition:
        value = raw.get("value")
        if isinstance(value, (list, tuple)):
            values = tuple(str(v) for v in value)
        elif value is None:
            values = ()
        else:
            values = (str(value),)
        return cls(
            table_key=str(raw.get("tableKey", raw.get("table_key", ""))),
            operator=str(raw.get("operator", "")),
            values=values,
        )

    def to_dict(self) -> dict[str, Any]:
        value: str | list[str] = self.values[0] if len(self.values) == 1 else list(self.values)
        return {"tableKey": self.table_key, "operator": self.operator, "value": value}


@dataclass(frozen=True)
class ComboRule:
    """An authored conditional override scoped to one base motion.

    ``action_type`` stays a plain string and ``action_payload`` stays raw so
    that unknown or malformed rules survive loading and reach the linter.
    ``raw_conditions`` and ``raw_payload`` hold the JSON exactly as authored.
    """

    id: str
    motion_id: str
    trigger_conditions: tuple[TriggerCondition, ...] = ()
    action_type: str = ""
    action_payload: Mapping[str, Any] = field(default_factory=dict)
    priority: int = 0
    is_active: bool = True
    label: str = ""
    raw_conditions: Any = None
    raw_payload: Any = None
    invalid_fields: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> ComboRule:
        raw_conditions = raw.get("trigger_conditions_json", raw.get("trigger_conditions"))
        conditions = raw_conditions if isinstance(raw_conditions, list) else []
        payload = raw.get("action_payload_json", raw.get("action_payload"))
        fields = _FieldReader(raw)
        return cls(
            id=str(raw["id"]),
            motion_id=str(raw.get("motion_id", "")),
            trigger_conditions=tuple(
                TriggerCondition.from_dict(c) for c in conditions if isinstance(c, Mapping)
            ),
            action_type=str(raw.get("action_type", "")),
            action_payload=payload if isinstance(payload, Mapping) else {},
            priority=fields.integer("priority"),
            is_active=raw.get("is_active", True) is not False,
            label=raw.get("label", ""),
            raw_conditions=raw_conditions,
            raw_payload=payload,
            invalid_fields=fields.invalid,
        )

    @property
    def specificity(self) -> int:
        """Number of trigger conditions; more conditions is more specific."""
        return len(self.trigger_conditions)


@dataclass(frozen=True, order=True)
class ModifierSelection:
    """One selected row in one modifier table."""

    table_key: str
    row_id: str

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> ModifierSelection:
        return cls(
            table_key=str(raw.get("tableKey", raw.get("table_key", ""))),
            row_id=str(raw.get("rowId", raw.get("row_id", ""))),
        )
