"""Tests for the content integrity linter."""

import pytest

from motionlab.content.snapshot import ContentSnapshot
from motionlab.linter import LintIssue, Severity, count_by_severity, format_lint_results, has_errors
from motionlab.linter.rules import json_type_name, lint_all


def lint_snapshot(snapshot):
    return lint_all(
        snapshot.motions,
        snapshot.muscles,
        snapshot.modifier_tables,
        snapshot.combo_rules,
        snapshot.equipment,
    )


def lint_tables(content_tables):
    return lint_snapshot(ContentSnapshot.from_tables(content_tables))


def messages(issues, severity=None):
    return [i.message for i in issues if severity is None or i.severity is severity]


class TestCleanContent:
    def test_fixture_content_is_clean(self, snapshot):
        assert lint_snapshot(snapshot) == []

    def test_accepts_lists(self, snapshot):
        issues = lint_all(
            list(snapshot.motions.values()),
            list(snapshot.muscles.values()),
            {key: list(rows.values()) for key, rows in snapshot.modifier_tables.items()},
        )

        assert issues == []


class TestNoneAnchor:
    """Every modifier table needs a NONE row that carries no deltas."""

    def test_missing_none_row_is_exactly_one_error(self, content_tables):
        content_tables["gripWidths"] = [
            row for row in content_tables["gripWidths"] if row["id"] != "NONE"
        ]

        errors = [i for i in lint_tables(content_tables) if i.severity is Severity.ERROR]

        assert len(errors) == 1
        assert errors[0].table == "gripWidths"
        assert errors[0].row_id == "NONE"
        assert errors[0].message == 'Missing required "NONE" row'

    def test_none_row_with_deltas(self, content_tables):
        content_tables["grips"][0]["delta_rules"] = {"PRESS": {"TRICEPS": 0.1}, "CURL": {}}

        issues = lint_tables(content_tables)

        assert messages(issues, Severity.ERROR) == ['"NONE" row must not carry deltas']
        assert issues[0].field == "delta_rules.PRESS"


class TestDeltaRules:
    def test_unknown_motion(self, content_tables):
        content_tables["grips"][1]["delta_rules"]["DEADLIFT"] = {"GLUTES": 0.1}

        issues = lint_tables(content_tables)

        assert messages(issues, Severity.ERROR) == ['Unknown motion ID "DEADLIFT"']

    def test_inherit_without_parent(self, content_tables):
        content_tables["grips"][2]["delta_rules"]["CURL"] = "inherit"

        issues = lint_tables(content_tables)

        assert messages(issues, Severity.ERROR) == [
            '"inherit" used but motion "CURL" has no parent_id'
        ]

    def test_circular_inherit(self, content_tables):
        content_tables["motions"].extend([
            {"id": "A", "parent_id": "B", "muscle_targets": {}},
            {"id": "B", "parent_id": "A", "muscle_targets": {}},
        ])
        content_tables["grips"][1]["delta_rules"].update({"A": "inherit", "B": "inherit"})

        errors = messages(lint_tables(content_tables), Severity.ERROR)

        assert 'Circular inheritance detected starting at "A"' in errors
        assert 'Circular inheritance detected starting at "B"' in errors

    def test_malformed_entry(self, content_tables):
        content_tables["grips"][1]["delta_rules"]["CURL"] = 0.5

        issues = lint_tables(content_tables)

        assert messages(issues, Severity.ERROR) == ["Invalid delta entry type: number"]

    def test_unknown_and_non_scorable_muscles_are_warnings(self, content_tables):
        content_tables["grips"][3]["delta_rules"]["CURL"] = {"FOREARMS": 0.1, "CHEST": 0.2}

        issues = lint_tables(content_tables)

        assert not has_errors(issues)
        assert messages(issues, Severity.WARNING) == [
            'Unknown muscle ID "FOREARMS"',
            'Muscle "CHEST" is not scorable',
        ]

    def test_non_numeric_delta(self, content_tables):
        content_tables["grips"][3]["delta_rules"]["CURL"] = {"BICEPS": "0.3", "QUADS": True}

        issues = lint_tables(content_tables)

        assert messages(issues, Severity.ERROR) == [
            "Delta value must be a number, got string",
            "Delta value must be a number, got boolean",
        ]
        assert issues[0].field == "delta_rules.CURL.BICEPS"

    def test_delta_rules_not_an_object(self, content_tables):
        content_tables["grips"][1]["delta_rules"] = ["PRESS"]

        issues = lint_tables(content_tables)

        assert messages(issues, Severity.ERROR) == ["delta_rules must be an object, got array"]

    def test_empty_list_delta_rules_is_allowed(self, content_tables):
        content_tables["grips"][0]["delta_rules"] = []

        assert lint_tables(content_tables) == []


class TestMotions:
    def test_unknown_parent(self, content_tables):
        content_tables["motions"][3]["parent_id"] = "PULL"

        issues = lint_tables(content_tables)

        assert messages(issues) == ['Unknown parent motion ID "PULL"']
        assert issues[0].field == "parent_id"

    def test_circular_parent_chain(self, content_tables):
        content_tables["motions"][0]["parent_id"] = "PRESS_FLAT"

        errors = messages(lint_tables(content_tables), Severity.ERROR)

        assert errors == [
            'Circular parent chain detected starting at "PRESS"',
            'Circular parent chain detected starting at "PRESS_FLAT"',
        ]

    def test_target_checks(self, content_tables):
        content_tables["motions"][3]["muscle_targets"] = {"BICEPS": 1.0, "FOREARMS": 0.3, "BRACHIALIS": "high"}

        issues = lint_tables(content_tables)

        assert messages(issues, Severity.WARNING) == [
            'Unknown muscle ID "FOREARMS" in muscle_targets',
            'Unknown muscle ID "BRACHIALIS" in muscle_targets',
        ]
        assert messages(issues, Severity.ERROR) == ["Score must be a number, got string"]

    def test_unknown_default_table_and_row(self, content_tables):
        content_tables["motions"][1]["default_delta_configs"] = {
            "grips": "HOOK",
            "handles": "D_HANDLE",
        }

        errors = messages(lint_tables(content_tables), Severity.ERROR)

        assert errors == [
            'Unknown row "HOOK" in table "grips"',
            'Unknown modifier table "handles"',
        ]


class TestMuscles:
    def test_parent_checks(self, content_tables):
        content_tables["muscles"].append(
            {"id": "LATS", "parent_ids": ["LATS", "BACK"]}
        )

        errors = messages(lint_tables(content_tables), Severity.ERROR)

        assert errors == ["Muscle lists itself as a parent", 'Unknown parent muscle ID "BACK"']


class TestComboRules:
    def _rule(self, **overrides):
        rule = {
            "id": "R1",
            "motion_id": "PRESS_FLAT",
            "trigger_conditions_json": [{"tableKey": "grips", "operator": "eq", "value": "NEUTRAL"}],
            "action_type": "CLAMP_MUSCLE",
            "action_payload_json": {"clamps": {"TRICEPS": 0.5}},
            "is_active": True,
        }
        rule.update(overrides)
        return rule

    def _lint_rule(self, content_tables, **overrides):
        content_tables["comboRules"] = [self._rule(**overrides)]
        return lint_tables(content_tables)

    def test_valid_rule(self, content_tables):
        assert self._lint_rule(content_tables) == []

    def test_unknown_motion(self, content_tables):
        issues = self._lint_rule(content_tables, motion_id="DIP")

        assert messages(issues) == ['Unknown motion ID "DIP"']

    def test_unknown_condition_table_and_row(self, content_tables):
        issues = self._lint_rule(content_tables, trigger_conditions_json=[
            {"tableKey": "handles", "operator": "eq", "value": "D"},
            {"tableKey": "grips", "operator": "in", "value": ["NEUTRAL", "HOOK"]},
        ])

        assert messages(issues, Severity.ERROR) == ['Unknown modifier table "handles"']
        assert messages(issues, Severity.WARNING) == ['Unknown row "HOOK" in table "grips"']

    def test_invalid_operator(self, content_tables):
        issues = self._lint_rule(content_tables, trigger_conditions_json=[
            {"tableKey": "grips", "operator": "gt", "value": "NEUTRAL"},
        ])

        errors = [i for i in issues if i.severity is Severity.ERROR]
        assert len(errors) == 1
        assert errors[0].field == "trigger_conditions_json.0.operator"

    def test_zero_conditions_is_a_warning(self, content_tables):
        issues = self._lint_rule(content_tables, trigger_conditions_json=[])

        assert [(i.severity, i.message) for i in issues] == [
            (Severity.WARNING, "must have at least one condition")
        ]

    def test_unknown_action_type(self, content_tables):
        issues = self._lint_rule(content_tables, action_type="BOOST")

        assert messages(issues) == [
            'Invalid action_type "BOOST". Must be one of: SWITCH_MOTION, REPLACE_DELTA, CLAMP_MUSCLE'
        ]

    def test_switch_proxy_checks(self, content_tables):
        unknown = self._lint_rule(
            content_tables, action_type="SWITCH_MOTION",
            action_payload_json={"proxy_motion_id": "DIP"},
        )
        self_proxy = self._lint_rule(
            content_tables, action_type="SWITCH_MOTION",
            action_payload_json={"proxy_motion_id": "PRESS_FLAT"},
        )

        assert messages(unknown, Severity.ERROR) == ['Unknown proxy motion ID "DIP"']
        assert messages(self_proxy, Severity.WARNING) == ["Proxy motion is the rule's own motion"]

    def test_replace_delta_checks(self, content_tables):
        issues = self._lint_rule(
            content_tables, action_type="REPLACE_DELTA",
            action_payload_json={"table_key": "grips", "row_id": "HOOK", "deltas": {"FOREARMS": 0.1}},
        )

        assert messages(issues, Severity.ERROR) == ['Unknown row "HOOK" in table "grips"']
        assert messages(issues, Severity.WARNING) == ['Unknown muscle ID "FOREARMS"']

    def test_replace_delta_unknown_table(self, content_tables):
        issues = self._lint_rule(
            content_tables, action_type="REPLACE_DELTA",
            action_payload_json={"table_key": "handles", "row_id": "D", "deltas": {}},
        )

        assert messages(issues) == ['Unknown modifier table "handles"']

    def test_clamp_checks(self, content_tables):
        issues = self._lint_rule(
            content_tables, action_payload_json={"clamps": {"FOREARMS": 0.5, "DELTS": 0.2}},
        )

        assert messages(issues, Severity.ERROR) == ['Unknown muscle ID "FOREARMS"']
        assert messages(issues, Severity.WARNING) == ['Muscle "DELTS" is not scorable']

    def test_non_numeric_clamp(self, content_tables):
        issues = self._lint_rule(content_tables, action_payload_json={"clamps": {"TRICEPS": "low"}})

        errors = [i for i in issues if i.severity is Severity.ERROR]
        assert len(errors) == 1
        assert errors[0].field == "action_payload_json.clamps.TRICEPS"

    def test_inactive_rule_is_info(self, content_tables):
        issues = self._lint_rule(content_tables, is_active=False)

        assert [(i.severity, i.message) for i in issues] == [
            (Severity.INFO, "Rule is inactive and will never fire")
        ]


class TestEquipment:
    def test_unknown_key_and_row(self, content_tables):
        content_tables["equipment"][1]["modifier_constraints"] = {
            "GRIPS": ["NEUTRAL", "HOOK"],
            "HANDLES": ["D"],
        }

        issues = lint_tables(content_tables)

        assert not has_errors(issues)
        assert messages(issues, Severity.WARNING) == [
            'Unknown row "HOOK" in table "grips"',
            'Unknown constraint key "HANDLES"',
        ]


class TestLinterNeverRaises:
    def test_garbage_content(self, content_tables):
        content_tables["grips"].append({"id": "JUNK", "delta_rules": "everything"})
        content_tables["motions"].append({"id": "ODD", "muscle_targets": [1, 2, 3]})
        content_tables["comboRules"].append({
            "id": "JUNK_RULE",
            "trigger_conditions_json": "grips=NEUTRAL",
            "action_payload_json": None,
        })

        issues = lint_tables(content_tables)

        assert has_errors(issues)

    @pytest.mark.parametrize(
        "table, row, field, message",
        [
            (
                "comboRules",
                {
                    "id": "HIGH_PRIORITY",
                    "motion_id": "PRESS_FLAT",
                    "trigger_conditions_json": [{"tableKey": "grips", "operator": "eq", "value": "NEUTRAL"}],
                    "action_type": "CLAMP_MUSCLE",
                    "action_payload_json": {"clamps": {"TRICEPS": 0.5}},
                    "priority": "high",
                },
                "priority",
                "priority must be a number, got string",
            ),
            (
                "muscles",
                {"id": "LATS", "parent_ids": 7},
                "parent_ids",
                "parent_ids must be a string or an array of strings, got number",
            ),
            (
                "motions",
                {"id": "ROW", "upper_lower": 1, "muscle_targets": {"BICEPS": 0.5}},
                "upper_lower",
                "upper_lower must be a string or an array of strings, got number",
            ),
            (
                "motions",
                {"id": "ROW", "default_delta_configs": ["grips"]},
                "default_delta_configs",
                "default_delta_configs must be an object, got array",
            ),
            (
                "equipment",
                {"id": "BANDS", "modifier_constraints": ["GRIPS"]},
                "modifier_constraints",
                "modifier_constraints must be an object, got array",
            ),
            (
                "equipment",
                {"id": "BANDS", "modifier_constraints": {"GRIPS": 3}},
                "modifier_constraints.GRIPS",
                "modifier_constraints.GRIPS must be an array of strings, got number",
            ),
        ],
    )
    def test_wrong_field_types_are_reported(self, content_tables, table, row, field, message):
        content_tables[table].append(row)

        issues = lint_tables(content_tables)

        assert [(i.severity, i.row_id, i.field, i.message) for i in issues] == [
            (Severity.ERROR, row["id"], field, message)
        ]


class TestFormatting:
    def test_format_lint_results(self):
        issues = [
            LintIssue(Severity.ERROR, "grips", "NONE", "id", 'Missing required "NONE" row'),
            LintIssue(Severity.WARNING, "motions", "CURL", "muscle_targets.X", "Unknown"),
        ]

        text = format_lint_results(issues)

        assert text.splitlines() == [
            '[ERR] grips/NONE → id: Missing required "NONE" row',
            "[WRN] motions/CURL → muscle_targets.X: Unknown",
            "",
            "Summary: 1 errors, 1 warnings, 0 info",
        ]

    def test_no_issues(self):
        assert format_lint_results([]) == "No issues found."

    def test_count_by_severity(self):
        issues = [LintIssue(Severity.INFO, "comboRules", "R", "is_active", "off")]

        counts = count_by_severity(issues)

        assert counts[Severity.INFO] == 1
        assert counts[Severity.ERROR] == 0

    @pytest.mark.parametrize(
        "value,expected",
        [(None, "null"), (True, "boolean"), ("x", "string"), (1.5, "number"), ([], "array"), ({}, "object")],
    )
    def test_json_type_name(self, value, expected):
        assert json_type_name(value) == expected
