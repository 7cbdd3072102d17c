"""Delta resolution with motion-parent inheritance.

A modifier row's ``delta_rules`` maps motion ids to a delta entry. When a
motion has no entry of its own, or its entry is ``"inherit"``, resolution
falls back to the motion's parent, then the parent's parent, and so on.

Example:
    >>> deltas = resolve_all_deltas(
    ...     "PRESS_FLAT",
    ...     [ModifierSelection("grips", "PRONATED")],
    ...     snapshot.motions,
    ...     snapshot.modifier_tables,
    ... )
    >>> [d.modifier_id for d in deltas]
    ['PRONATED']
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from motionlab.content.models import DeltaMap, Inherit, ModifierRow, ModifierSelection, Motion
from motionlab.content.vocabulary import ModifierTables

from .constants import MAX_INHERIT_DEPTH

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedDelta:
    """The deltas one selected modifier row contributes to one motion.

    Attributes:
        modifier_table: Table key of the selected row
        modifier_id: Row id of the selected row
        motion_id: Motion the delta was resolved for
        deltas: Muscle id to signed delta (empty for a home-base match)
        inherited: True when the entry came from an ancestor motion
        inherit_chain: Motion ids walked past before the match
        resolved_from: Motion whose entry matched
    """

    modifier_table: str
    modifier_id: str
    motion_id: str
    deltas: Mapping[str, float] = field(default_factory=dict)
    inherited: bool = False
    inherit_chain: tuple[str, ...] = ()
    resolved_from: str = ""

    def with_deltas(self, deltas: Mapping[str, float]) -> ResolvedDelta:
        return ResolvedDelta(
            modifier_table=self.modifier_table,
            modifier_id=self.modifier_id,
            motion_id=self.motion_id,
            deltas=dict(deltas),
            inherited=self.inherited,
            inherit_chain=self.inherit_chain,
            resolved_from=self.resolved_from,
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "modifierTable": self.modifier_table,
            "modifierId": self.modifier_id,
            "motionId": self.motion_id,
            "deltas": dict(self.deltas),
            "inherited": self.inherited,
            "resolvedFrom": self.resolved_from,
        }
        if self.inherit_chain:
            result["inheritChain"] = list(self.inherit_chain)
        return result


def resolve_single_delta(
    motion_id: str,
    modifier_row: ModifierRow,
    motions_by_id: Mapping[str, Motion],
    table_key: str = "",
    max_depth: int = MAX_INHERIT_DEPTH,
) -> ResolvedDelta | None:
    """Resolve the delta a modifier row contributes to a motion.

    Args:
        motion_id: Motion being scored
        modifier_row: Selected modifier row
        motions_by_id: All motions, for parent lookups
        table_key: Table the row belongs to, recorded on the result
        max_depth: Maximum number of motions visited

    Returns:
        ResolvedDelta, possibly with empty deltas for a home-base match, or
        None when the modifier does not apply to the motion (no entry on the
        whole parent chain, a malformed entry, a cycle, or the depth bound).
    """
    visited: set[str] = set()
    chain: list[str] = []
    current = motion_id

    for _ in range(max_depth):
        if current in visited:
            logger.debug(
                f"Inheritance cycle at '{current}' resolving {table_key}/{modifier_row.id} "
                f"for '{motion_id}'"
            )
            return None
        visited.add(current)

        entry = modifier_row.delta_rules.get(current)

        if entry is None or isinstance(entry, Inherit):
            motion = motions_by_id.get(current)
            if motion is None or not motion.parent_id:
                return None
            chain.append(current)
            current = motion.parent_id
            continue

        if not isinstance(entry, DeltaMap):
            logger.debug(
                f"Malformed delta entry for '{current}' in {table_key}/{modifier_row.id}"
            )
            return None

        return ResolvedDelta(
            modifier_table=table_key,
            modifier_id=modifier_row.id,
            motion_id=motion_id,
            deltas=dict(entry.deltas),
            inherited=bool(chain),
            inherit_chain=tuple(chain),
            resolved_from=current,
        )

    logger.debug(f"Max inherit depth {max_depth} exceeded resolving '{motion_id}'")
    return None


def sort_selections(selections: Iterable[ModifierSelection]) -> list[ModifierSelection]:
    """Stable sort by canonical table order; unknown tables go last."""
    return sorted(selections, key=lambda s: ModifierTables.order_index(s.table_key))


def resolve_all_deltas(
    motion_id: str,
    selections: Iterable[ModifierSelection],
    motions_by_id: Mapping[str, Motion],
    modifier_tables_by_key: Mapping[str, Mapping[str, ModifierRow]],
    max_depth: int = MAX_INHERIT_DEPTH,
) -> list[ResolvedDelta]:
    """Resolve every selected modifier for a motion.

    Unknown tables and rows are skipped. Only non-empty deltas are returned;
    home-base matches and modifiers that do not apply are dropped.
    """
    results: list[ResolvedDelta] = []

    for selection in sort_selections(selections):
        table = modifier_tables_by_key.get(selection.table_key)
        if table is None:
            logger.debug(f"Skipping selection from unknown table '{selection.table_key}'")
            continue
        row = table.get(selection.row_id)
        if row is None:
            logger.debug(
                f"Skipping unknown row '{selection.row_id}' in table '{selection.table_key}'"
            )
            continue

        resolved = resolve_single_delta(
            motion_id, row, motions_by_id, selection.table_key, max_depth
        )
        if resolved is not None and resolved.deltas:
            results.append(resolved)

    return results
