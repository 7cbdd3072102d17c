"""Tests for the delta rule coverage report."""

from motionlab.content.models import ModifierRow, Motion
from motionlab.linter.coverage import build_coverage_report, format_coverage_report


class TestBuildCoverageReport:
    def test_table_counts(self, motions, modifier_tables):
        report = build_coverage_report(motions.values(), modifier_tables)

        grips = report.tables["grips"]
        assert grips.total == 5
        assert grips.covered == 3  # PRESS, PRESS_FLAT, CURL
        assert grips.inherit == 1
        assert grips.has_none_row is True

    def test_home_base_counted(self, motions, modifier_tables):
        rows = {
            "NONE": ModifierRow.from_dict({"id": "NONE"}),
            "FLAT": ModifierRow.from_dict({"id": "FLAT", "delta_rules": {"PRESS": {}}}),
        }

        report = build_coverage_report(motions.values(), {"torsoAngles": rows})

        assert report.tables["torsoAngles"].home_base == 1
        assert report.tables["torsoAngles"].covered == 1

    def test_motion_coverage(self, motions, modifier_tables):
        report = build_coverage_report(motions.values(), modifier_tables)

        squat = report.motions["SQUAT"]
        assert squat.covered == 1
        assert squat.total == len(modifier_tables)
        assert squat.tables == ["stanceWidths"]

    def test_inactive_motions_and_rows_are_ignored(self, modifier_tables):
        motions = [
            Motion(id="PRESS"),
            Motion(id="OLD_PRESS", is_active=False),
        ]
        rows = {
            "NONE": ModifierRow.from_dict({"id": "NONE"}),
            "OLD": ModifierRow.from_dict(
                {"id": "OLD", "delta_rules": {"PRESS": {"TRICEPS": 0.1}}, "is_active": False}
            ),
        }

        report = build_coverage_report(motions, {"grips": rows})

        assert list(report.motions) == ["PRESS"]
        assert report.tables["grips"].covered == 0

    def test_missing_none_row(self, motions):
        rows = {"WIDE": ModifierRow.from_dict({"id": "WIDE"})}

        report = build_coverage_report(motions.values(), {"gripWidths": rows})

        assert report.tables["gripWidths"].has_none_row is False

    def test_high_impact_gaps(self, motions, modifier_tables):
        report = build_coverage_report(motions.values(), modifier_tables, top_motion_count=2)

        assert report.high_impact_gaps["grips"] == []
        assert report.high_impact_gaps["gripWidths"] == []
        assert report.high_impact_gaps["stanceWidths"] == ["PRESS", "PRESS_FLAT"]
        assert "motionPaths" not in report.high_impact_gaps


class TestFormatCoverageReport:
    def test_sections(self, motions, modifier_tables):
        report = build_coverage_report(motions.values(), modifier_tables)

        text = format_coverage_report(report, bottom=3)

        assert "=== Delta Rules Coverage Report ===" in text
        assert "Active motions: 5" in text
        assert "grips *: 3/5 motions (60.0%) [0 home-base, 1 inherit]" in text
        assert "-- Bottom 3 Motions (worst coverage) --" in text
        assert "stanceWidths: missing" in text

    def test_to_dict(self, motions, modifier_tables):
        payload = build_coverage_report(motions.values(), modifier_tables).to_dict()

        assert payload["tables"]["grips"]["inherit"] == 1
        assert payload["motions"]["SQUAT"]["tables"] == ["stanceWidths"]
