"""Read-only, typed view of one version of the content tables."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping, TypeVar

from .models import ComboRule, Equipment, ModifierRow, Motion, Muscle
from .provider import ContentNotFoundError, ContentProvider, InMemoryProvider
from .vocabulary import MODIFIER_TABLE_KEYS, ContentTables

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ContentSnapshot:
    """Typed content tables with id lookups.

    Attributes:
        motions: Motion id to Motion
        muscles: Muscle id to Muscle
        modifier_tables: Table key to {row id: ModifierRow}
        equipment: Equipment id to Equipment
        combo_rules: All combo rules, active or not, in content order
    """

    motions: Mapping[str, Motion] = field(default_factory=dict)
    muscles: Mapping[str, Muscle] = field(default_factory=dict)
    modifier_tables: Mapping[str, Mapping[str, ModifierRow]] = field(default_factory=dict)
    equipment: Mapping[str, Equipment] = field(default_factory=dict)
    combo_rules: tuple[ComboRule, ...] = ()

    def get_motion(self, motion_id: str) -> Motion | None:
        return self.motions.get(motion_id)

    def get_row(self, table_key: str, row_id: str) -> ModifierRow | None:
        return self.modifier_tables.get(table_key, {}).get(row_id)

    def rules_for_motion(self, motion_id: str) -> list[ComboRule]:
        return [rule for rule in self.combo_rules if rule.motion_id == motion_id]

    @classmethod
    def from_tables(cls, tables: Mapping[str, list[dict[str, Any]]]) -> ContentSnapshot:
        """Build a snapshot straight from raw table rows."""
        return load_snapshot(InMemoryProvider(tables))


def _index_rows(
    table: str, rows: Iterable[Mapping[str, Any]], build: Callable[[Mapping[str, Any]], T]
) -> dict[str, T]:
    indexed: dict[str, T] = {}
    for raw in rows:
        if not isinstance(raw, Mapping) or "id" not in raw:
            logger.warning(f"Skipping row without an id in table '{table}'")
            continue
        entity = build(raw)
        if entity.id in indexed:
            logger.warning(f"Duplicate id '{entity.id}' in table '{table}', last row wins")
        indexed[entity.id] = entity
    return indexed


def _fetch_optional(provider: ContentProvider, name: str) -> list[dict[str, Any]] | None:
    try:
        return provider.fetch_table(name)
    except ContentNotFoundError:
        logger.warning(f"Content table '{name}' not found, skipping")
        return None


def load_snapshot(provider: ContentProvider) -> ContentSnapshot:
    """Load every content table from a provider into a ContentSnapshot.

    ``motions`` and ``muscles`` are required. Equipment, combo rules and each
    modifier table are optional: a missing one is skipped with a warning.

    Raises:
        ContentNotFoundError: If motions or muscles are missing.
        ContentLoadError: If any table cannot be read.
    """
    motions = _index_rows(
        ContentTables.MOTIONS, provider.fetch_table(ContentTables.MOTIONS), Motion.from_dict
    )
    muscles = _index_rows(
        ContentTables.MUSCLES, provider.fetch_table(ContentTables.MUSCLES), Muscle.from_dict
    )
    equipment = _index_rows(
        ContentTables.EQUIPMENT,
        _fetch_optional(provider, ContentTables.EQUIPMENT) or [],
        Equipment.from_dict,
    )

    combo_rules = tuple(
        ComboRule.from_dict(raw)
        for raw in _fetch_optional(provider, ContentTables.COMBO_RULES) or []
        if isinstance(raw, Mapping) and "id" in raw
    )

    modifier_tables: dict[str, dict[str, ModifierRow]] = {}
    for table_key in MODIFIER_TABLE_KEYS:
        rows = _fetch_optional(provider, table_key)
        if rows is None:
            continue
        modifier_tables[table_key] = _index_rows(table_key, rows, ModifierRow.from_dict)

    logger.info(
        f"Loaded content snapshot: {len(motions)} motions, {len(muscles)} muscles, "
        f"{len(modifier_tables)} modifier tables, {len(combo_rules)} combo rules"
    )
    return ContentSnapshot(
        motions=motions,
        muscles=muscles,
        modifier_tables=modifier_tables,
        equipment=equipment,
        combo_rules=combo_rules,
    )
