"""Pydantic schemas for combo rule JSON fields.

Used at author time to validate a rule before it is saved, by the linter,
and by the combo rule engine to parse action payloads before applying them.
"""

from __future__ import annotations

from typing import Literal, Union

from pydantic import BaseModel, Field, StrictFloat, StrictStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .vocabulary import ComboActions


# ============== Trigger Conditions ==============

class TriggerConditionSchema(BaseModel):
    """One trigger condition as authored in ``trigger_conditions_json``."""

    tableKey: StrictStr = Field(min_length=1)
    operator: Literal["eq", "in", "not_eq", "not_in"]
    value: Union[StrictStr, list[StrictStr]]


TRIGGER_CONDITIONS_ADAPTER = TypeAdapter(list[TriggerConditionSchema])


# ============== Action Payloads ==============

class SwitchMotionPayload(BaseModel):
    """SWITCH_MOTION: score a proxy motion instead of the selected one."""

    proxy_motion_id: StrictStr = Field(min_length=1)


class ReplaceDeltaPayload(BaseModel):
    """REPLACE_DELTA: substitute the deltas a modifier row contributes."""

    table_key: StrictStr = Field(min_length=1)
    row_id: StrictStr = Field(min_length=1)
    deltas: dict[str, StrictFloat]


class ClampMusclePayload(BaseModel):
    """CLAMP_MUSCLE: cap named muscles in the final scores."""

    clamps: dict[str, StrictFloat]


PAYLOAD_SCHEMAS: dict[str, type[BaseModel]] = {
    ComboActions.SWITCH_MOTION: SwitchMotionPayload,
    ComboActions.REPLACE_DELTA: ReplaceDeltaPayload,
    ComboActions.CLAMP_MUSCLE: ClampMusclePayload,
}


def validation_error_fields(prefix: str, exc: PydanticValidationError) -> list[tuple[str, str]]:
    """Flatten a pydantic ValidationError into ``(prefix.loc, message)`` pairs."""
    pairs = []
    for error in exc.errors():
        loc = ".".join(str(part) for part in error["loc"])
        pairs.append((f"{prefix}.{loc}" if loc else prefix, error["msg"]))
    return pairs
