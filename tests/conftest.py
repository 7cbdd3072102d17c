"""Shared fixtures: a small but complete set of content tables.

Motions:
    PRESS           upper, base parent of the press family
    PRESS_FLAT      child of PRESS, default grip NEUTRAL
    PRESS_INCLINE   child of PRESS, used as a SWITCH_MOTION proxy
    CURL            upper, standalone
    SQUAT           lower, standalone
"""

import pytest
import structlog

from motionlab.content.snapshot import ContentSnapshot


@pytest.fixture(autouse=True)
def _reset_structlog():
    # The CLI reconfigures structlog onto pytest's per-test captured stderr;
    # reset so later tests don't write to a closed stream.
    yield
    structlog.reset_defaults()


@pytest.fixture
def muscle_rows():
    return [
        {"id": "CHEST", "label": "Chest", "parent_ids": [], "is_scorable": False},
        {"id": "CHEST_MID", "label": "Mid Chest", "parent_ids": ["CHEST"]},
        {"id": "CHEST_UPPER", "label": "Upper Chest", "parent_ids": ["CHEST"]},
        {"id": "TRICEPS", "label": "Triceps", "parent_ids": []},
        {"id": "TRICEPS_OUTER", "label": "Lateral Head", "parent_ids": ["TRICEPS"]},
        {"id": "TRICEPS_DEEP", "label": "Medial Head", "parent_ids": ["TRICEPS"]},
        {"id": "DELTS", "label": "Shoulders", "parent_ids": [], "is_scorable": False},
        {"id": "DELTS_FRONT", "label": "Front Delts", "parent_ids": ["DELTS"]},
        {"id": "BICEPS", "label": "Biceps", "parent_ids": []},
        {"id": "QUADS", "label": "Quadriceps", "parent_ids": []},
        {"id": "GLUTES", "label": "Glutes", "parent_ids": []},
    ]


@pytest.fixture
def motion_rows():
    return [
        {
            "id": "PRESS",
            "label": "Press",
            "upper_lower": ["UPPER"],
            "muscle_targets": {"CHEST_MID": 0.8, "TRICEPS": 0.6, "DELTS_FRONT": 0.4},
        },
        {
            "id": "PRESS_FLAT",
            "label": "Flat Press",
            "parent_id": "PRESS",
            "upper_lower": ["UPPER"],
            "muscle_targets": {"CHEST_MID": 0.92, "TRICEPS": 0.72, "DELTS_FRONT": 0.45},
            "default_delta_configs": {"grips": "NEUTRAL"},
        },
        {
            "id": "PRESS_INCLINE",
            "label": "Incline Press",
            "parent_id": "PRESS",
            "upper_lower": ["UPPER"],
            "muscle_targets": {"CHEST_UPPER": 1.0, "DELTS_FRONT": 0.7, "TRICEPS": 0.6},
        },
        {
            "id": "CURL",
            "label": "Curl",
            "upper_lower": ["UPPER"],
            "muscle_targets": {"BICEPS": 1.0},
        },
        {
            "id": "SQUAT",
            "label": "Squat",
            "upper_lower": ["LOWER"],
            "muscle_targets": {"QUADS": 1.2, "GLUTES": 0.9},
        },
    ]


@pytest.fixture
def grip_rows():
    return [
        {"id": "NONE", "label": "None", "delta_rules": {}},
        {
            "id": "NEUTRAL",
            "label": "Neutral",
            "delta_rules": {"PRESS": {"TRICEPS": 0.05}, "PRESS_FLAT": "inherit"},
        },
        {
            "id": "PRONATED",
            "label": "Pronated",
            "delta_rules": {"PRESS": {}, "CURL": {"BICEPS": -0.2}},
        },
        {
            "id": "SUPINATED",
            "label": "Supinated",
            "delta_rules": {"PRESS": {"CHEST_UPPER": 0.2}, "CURL": {"BICEPS": 0.3}},
        },
    ]


@pytest.fixture
def grip_width_rows():
    return [
        {"id": "NONE", "label": "None", "delta_rules": {}},
        {
            "id": "WIDE",
            "label": "Wide",
            "delta_rules": {
                "PRESS_FLAT": {"CHEST_MID": 0.1, "TRICEPS_OUTER": -0.1, "TRICEPS_DEEP": -0.1},
            },
        },
        {
            "id": "NARROW",
            "label": "Narrow",
            "delta_rules": {"PRESS": {"TRICEPS": 0.3, "CHEST_MID": -0.1}},
        },
    ]


@pytest.fixture
def torso_angle_rows():
    return [
        {"id": "NONE", "label": "None", "delta_rules": {}},
        {"id": "FLAT", "label": "Flat", "delta_rules": {}, "allow_torso_orientations": True},
        {
            "id": "VERTICAL",
            "label": "Vertical",
            "delta_rules": {},
            "allow_torso_orientations": False,
        },
    ]


@pytest.fixture
def stance_width_rows():
    return [
        {"id": "NONE", "label": "None", "delta_rules": {}},
        {"id": "WIDE", "label": "Wide", "delta_rules": {"SQUAT": {"GLUTES": 0.2}}},
    ]


@pytest.fixture
def equipment_rows():
    return [
        {
            "id": "BARBELL",
            "label": "Barbell",
            "modifier_constraints": {
                "GRIPS": ["PRONATED", "SUPINATED"],
                "GRIP_WIDTHS": ["NONE", "WIDE", "NARROW"],
            },
        },
        {"id": "CABLE", "label": "Cable", "modifier_constraints": {}},
    ]


@pytest.fixture
def combo_rule_rows():
    return [
        {
            "id": "FLAT_SUPINATED_SWITCH",
            "label": "Reverse grip flat press behaves like incline",
            "motion_id": "PRESS_FLAT",
            "trigger_conditions_json": [
                {"tableKey": "grips", "operator": "eq", "value": "SUPINATED"},
            ],
            "action_type": "SWITCH_MOTION",
            "action_payload_json": {"proxy_motion_id": "PRESS_INCLINE"},
            "priority": 0,
            "is_active": True,
        },
        {
            "id": "FLAT_NEUTRAL_WIDE_REPLACE",
            "label": "Neutral wide press",
            "motion_id": "PRESS_FLAT",
            "trigger_conditions_json": [
                {"tableKey": "grips", "operator": "eq", "value": "NEUTRAL"},
                {"tableKey": "gripWidths", "operator": "eq", "value": "WIDE"},
            ],
            "action_type": "REPLACE_DELTA",
            "action_payload_json": {
                "table_key": "gripWidths",
                "row_id": "WIDE",
                "deltas": {"CHEST_MID": 0.3},
            },
            "priority": 0,
            "is_active": True,
        },
        {
            "id": "FLAT_NARROW_CLAMP",
            "label": "Narrow press triceps cap",
            "motion_id": "PRESS_FLAT",
            "trigger_conditions_json": [
                {"tableKey": "gripWidths", "operator": "in", "value": ["NARROW"]},
            ],
            "action_type": "CLAMP_MUSCLE",
            "action_payload_json": {"clamps": {"TRICEPS": 0.8}},
            "priority": 0,
            "is_active": True,
        },
    ]


@pytest.fixture
def content_tables(
    muscle_rows,
    motion_rows,
    grip_rows,
    grip_width_rows,
    torso_angle_rows,
    stance_width_rows,
    equipment_rows,
    combo_rule_rows,
):
    """Raw rows keyed by table name, as a provider would serve them."""
    return {
        "muscles": muscle_rows,
        "motions": motion_rows,
        "grips": grip_rows,
        "gripWidths": grip_width_rows,
        "torsoAngles": torso_angle_rows,
        "stanceWidths": stance_width_rows,
        "equipment": equipment_rows,
        "comboRules": combo_rule_rows,
    }


@pytest.fixture
def snapshot(content_tables):
    return ContentSnapshot.from_tables(content_tables)


@pytest.fixture
def motions(snapshot):
    return snapshot.motions


@pytest.fixture
def modifier_tables(snapshot):
    return snapshot.modifier_tables
