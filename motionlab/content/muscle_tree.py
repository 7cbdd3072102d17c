"""Muscle hierarchy utilities and the legacy nested-targets adapter.

The canonical shape of ``muscle_targets`` is a flat mapping of muscle id to
score. Ancestor group totals, when present, are stored explicitly and are
never computed at read time.

Legacy content stores targets as a nested tree::

    {"CHEST": {"_score": 0.9, "CHEST_MID": {"_score": 0.9}}}

``flatten_muscle_tree`` converts that shape to the flat form at load time.
``build_muscle_tree`` goes the other way for display. Parent chains follow
the first entry of ``parent_ids``; the muscle hierarchy is a DAG, so
secondary parents are not part of the display path.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Protocol

logger = logging.getLogger(__name__)

SCORE_KEY = "_score"


class MuscleLike(Protocol):
    id: str
    parent_ids: tuple[str, ...]
    is_scorable: bool | None


def is_nested_targets(targets: Mapping[str, Any]) -> bool:
    """Check if a muscle_targets mapping uses the legacy nested-tree shape."""
    return any(isinstance(value, Mapping) for value in targets.values())


def flatten_muscle_tree(tree: Mapping[str, Any]) -> dict[str, Any]:
    """Flatten a legacy nested muscle tree to ``{muscle_id: score}``.

    Every node contributes its own ``_score``; numeric leaves keyed directly
    under a node are taken as-is. Nodes without ``_score`` contribute 0.

    Args:
        tree: Nested mapping, optionally with a root-level ``_score``.

    Returns:
        Flat mapping in depth-first order.
    """
    flat: dict[str, Any] = {}

    def walk(node: Mapping[str, Any]) -> None:
        for key, child in node.items():
            if key == SCORE_KEY:
                continue
            if isinstance(child, Mapping):
                flat[key] = child.get(SCORE_KEY, 0)
                walk(child)
            else:
                flat[key] = child

    walk(tree)
    return flat


def _index(muscles: Iterable[MuscleLike]) -> dict[str, MuscleLike]:
    return {m.id: m for m in muscles}


def find_root_muscle_id(muscle_id: str, muscles_by_id: Mapping[str, MuscleLike]) -> str:
    """Walk first parents up to the root muscle. Cycle-safe.

    A cycle returns ``muscle_id`` unchanged.
    """
    visited: set[str] = set()
    current = muscle_id
    while current not in visited:
        visited.add(current)
        muscle = muscles_by_id.get(current)
        if muscle is None or not muscle.parent_ids:
            return current
        current = muscle.parent_ids[0]
    return muscle_id


def path_from_root(muscle_id: str, muscles_by_id: Mapping[str, MuscleLike]) -> list[str]:
    """Path from the root muscle down to ``muscle_id`` (inclusive).

    Returns an empty list when the first-parent chain is cyclic.
    """
    visited: set[str] = set()
    path: list[str] = []
    current = muscle_id
    while current not in visited:
        visited.add(current)
        path.insert(0, current)
        muscle = muscles_by_id.get(current)
        if muscle is None or not muscle.parent_ids:
            return path
        current = muscle.parent_ids[0]
    logger.debug(f"Cyclic parent chain while building path for muscle '{muscle_id}'")
    return []


def build_muscle_tree(
    flat: Mapping[str, float], muscles: Iterable[MuscleLike]
) -> dict[str, Any]:
    """Build a nested display tree from flat scores.

    Intermediate ancestors missing from ``flat`` get ``_score`` 0. Unknown
    muscle ids are dropped.
    """
    muscles_by_id = _index(muscles)
    tree: dict[str, Any] = {SCORE_KEY: 0}

    for muscle_id, score in flat.items():
        if muscle_id not in muscles_by_id:
            logger.debug(f"Skipping unknown muscle '{muscle_id}' while building tree")
            continue
        path = path_from_root(muscle_id, muscles_by_id)
        if not path:
            continue
        node = tree
        for node_id in path:
            child = node.get(node_id)
            if not isinstance(child, dict):
                child = {SCORE_KEY: flat.get(node_id, 0)}
                node[node_id] = child
            node = child
        node[SCORE_KEY] = score

    return tree


def recompute_tree_scores(tree: dict[str, Any]) -> float:
    """Recompute each inner node's ``_score`` as the sum of its children.

    Leaves keep their stored score. Mutates ``tree`` and returns its total.
    """
    children = [child for key, child in tree.items() if key != SCORE_KEY and isinstance(child, dict)]
    if not children:
        return tree.get(SCORE_KEY, 0)
    total = sum(recompute_tree_scores(child) for child in children)
    tree[SCORE_KEY] = total
    return total


def collect_parent_ids(muscles: Iterable[MuscleLike]) -> set[str]:
    """Ids that appear as a parent of at least one muscle."""
    return {pid for m in muscles for pid in m.parent_ids}


def strip_parent_zeros(flat: Mapping[str, float], parent_ids: set[str]) -> dict[str, float]:
    """Drop parent muscle ids whose stored score is exactly 0."""
    return {
        muscle_id: score
        for muscle_id, score in flat.items()
        if not (muscle_id in parent_ids and score == 0)
    }


def is_scorable(muscle: MuscleLike | None) -> bool:
    """A missing flag counts as scorable."""
    return muscle is not None and muscle.is_scorable is not False


def filter_scorable(flat: Mapping[str, float], muscles: Iterable[MuscleLike]) -> dict[str, float]:
    """Keep only entries whose muscle is known and scorable."""
    muscles_by_id = _index(muscles)
    return {
        muscle_id: score
        for muscle_id, score in flat.items()
        if is_scorable(muscles_by_id.get(muscle_id))
    }
