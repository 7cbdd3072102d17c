"""Delta rule coverage across modifier tables.

For every modifier table: how many active motions have an entry in some
active row, and how many of those entries are home-base or inherit. For
every motion: which tables cover it. Only active motions and rows count.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Final, Iterable, Mapping

from motionlab.content.models import DeltaMap, Inherit, ModifierRow, Motion
from motionlab.content.vocabulary import NONE_ROW_ID, ModifierTables

HIGH_IMPACT_TABLES: Final[tuple[str, ...]] = (
    ModifierTables.GRIPS,
    ModifierTables.GRIP_WIDTHS,
    ModifierTables.TORSO_ANGLES,
    ModifierTables.STANCE_WIDTHS,
    ModifierTables.MOTION_PATHS,
)


@dataclass
class TableCoverage:
    covered: int = 0
    total: int = 0
    home_base: int = 0
    inherit: int = 0
    has_none_row: bool = False

    @property
    def ratio(self) -> float:
        return self.covered / self.total if self.total else 0.0


@dataclass
class MotionCoverage:
    label: str = ""
    covered: int = 0
    total: int = 0
    tables: list[str] = field(default_factory=list)

    @property
    def ratio(self) -> float:
        return self.covered / self.total if self.total else 0.0


@dataclass
class CoverageReport:
    tables: dict[str, TableCoverage] = field(default_factory=dict)
    motions: dict[str, MotionCoverage] = field(default_factory=dict)
    high_impact_gaps: dict[str, list[str]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "tables": {
                key: {
                    "covered": c.covered,
                    "total": c.total,
                    "homeBase": c.home_base,
                    "inherit": c.inherit,
                    "hasNoneRow": c.has_none_row,
                }
                for key, c in self.tables.items()
            },
            "motions": {
                key: {"covered": c.covered, "total": c.total, "tables": list(c.tables)}
                for key, c in self.motions.items()
            },
            "highImpactGaps": {key: list(v) for key, v in self.high_impact_gaps.items()},
        }


def _first_entry(motion_id: str, rows: Iterable[ModifierRow]):
    for row in rows:
        if motion_id in row.delta_rules:
            return row.delta_rules[motion_id]
    return None


def build_coverage_report(
    motions: Iterable[Motion],
    modifier_tables: Mapping[str, Mapping[str, ModifierRow]],
    top_motion_count: int = 15,
) -> CoverageReport:
    """Compute table and motion coverage.

    Args:
        motions: All motions; inactive ones are ignored
        modifier_tables: Table key to {row id: ModifierRow}
        top_motion_count: How many leading motions the high-impact gap check uses
    """
    active_motions = [m for m in motions if m.is_active]
    report = CoverageReport(
        motions={m.id: MotionCoverage(label=m.label) for m in active_motions}
    )

    for table_key, rows_by_id in modifier_tables.items():
        active_rows = [row for row in rows_by_id.values() if row.is_active]
        stats = TableCoverage(total=len(active_motions), has_none_row=NONE_ROW_ID in rows_by_id)

        for motion in active_motions:
            entry = _first_entry(motion.id, active_rows)
            motion_stats = report.motions[motion.id]
            motion_stats.total += 1
            if entry is None:
                continue
            stats.covered += 1
            if isinstance(entry, Inherit):
                stats.inherit += 1
            elif isinstance(entry, DeltaMap) and entry.is_home_base:
                stats.home_base += 1
            motion_stats.covered += 1
            motion_stats.tables.append(table_key)

        report.tables[table_key] = stats

    top_motions = active_motions[:top_motion_count]
    for table_key in HIGH_IMPACT_TABLES:
        rows_by_id = modifier_tables.get(table_key)
        if rows_by_id is None:
            continue
        active_rows = [row for row in rows_by_id.values() if row.is_active]
        report.high_impact_gaps[table_key] = [
            m.id for m in top_motions if _first_entry(m.id, active_rows) is None
        ]

    return report


def format_coverage_report(report: CoverageReport, bottom: int = 10) -> str:
    """Render a coverage report as console text."""
    lines = ["=== Delta Rules Coverage Report ===", "", f"Active motions: {len(report.motions)}", ""]

    lines.append("-- Table Coverage --")
    for table_key, stats in sorted(report.tables.items(), key=lambda kv: kv[1].ratio):
        marker = " *" if table_key in HIGH_IMPACT_TABLES else ""
        none_note = "" if stats.has_none_row else f' (missing "{NONE_ROW_ID}" row)'
        lines.append(
            f"  {table_key}{marker}: {stats.covered}/{stats.total} motions "
            f"({stats.ratio * 100:.1f}%) [{stats.home_base} home-base, {stats.inherit} inherit]"
            f"{none_note}"
        )

    lines.append("")
    lines.append(f"-- Bottom {bottom} Motions (worst coverage) --")
    worst = sorted(report.motions.items(), key=lambda kv: kv[1].ratio)[:bottom]
    for motion_id, stats in worst:
        lines.append(
            f"  {motion_id} ({stats.label or '?'}): {stats.covered}/{stats.total} tables "
            f"({stats.ratio * 100:.1f}%)"
        )
        if stats.tables:
            lines.append(f"    Present in: {', '.join(stats.tables)}")

    lines.append("")
    lines.append("-- High-Impact Gaps (* tables x top motions) --")
    for table_key, missing in report.high_impact_gaps.items():
        if missing:
            lines.append(f"  {table_key}: missing {len(missing)} top motions")
            lines.append(f"    {', '.join(missing)}")
        else:
            lines.append(f"  {table_key}: fully covered for top motions")

    return "\n".join(lines)
