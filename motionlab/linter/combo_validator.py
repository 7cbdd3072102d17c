"""Structural validation of combo rule JSON fields.

Used at author time (before a rule is saved) and by the linter. Checks
shape only; whether referenced ids exist is the linter's job.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Union

from pydantic import ValidationError as PydanticValidationError

from motionlab.content.models import ComboRule
from motionlab.content.schemas import (
    PAYLOAD_SCHEMAS,
    TRIGGER_CONDITIONS_ADAPTER,
    validation_error_fields,
)
from motionlab.content.vocabulary import ComboActions

CONDITIONS_FIELD = "trigger_conditions_json"
PAYLOAD_FIELD = "action_payload_json"
EMPTY_CONDITIONS_MESSAGE = "must have at least one condition"


@dataclass(frozen=True)
class ComboRuleValidationResult:
    valid: bool
    errors: list[str] = field(default_factory=list)


def raw_rule_fields(rule: Union[ComboRule, Mapping[str, Any]]) -> tuple[str, Any, Any]:
    """(action_type, raw conditions, raw payload) of a rule or content row."""
    if isinstance(rule, ComboRule):
        conditions = rule.raw_conditions
        if conditions is None:
            conditions = [c.to_dict() for c in rule.trigger_conditions]
        payload = rule.raw_payload if rule.raw_payload is not None else dict(rule.action_payload)
        return rule.action_type, conditions, payload
    return (
        str(rule.get("action_type", "")),
        rule.get(CONDITIONS_FIELD, rule.get("trigger_conditions")),
        rule.get(PAYLOAD_FIELD, rule.get("action_payload")),
    )


def structural_errors(
    action_type: str, raw_conditions: Any, raw_payload: Any
) -> tuple[list[tuple[str, str]], bool]:
    """Collect shape errors for one rule as ``(field, message)`` pairs.

    Returns:
        (errors, has_no_conditions). An empty but well-formed condition list
        is reported through the flag, not as an error, so callers can choose
        its severity.
    """
    errors: list[tuple[str, str]] = []

    if action_type not in ComboActions.ALL:
        errors.append((
            "action_type",
            f'Invalid action_type "{action_type}". Must be one of: {", ".join(ComboActions.ALL)}',
        ))

    has_no_conditions = False
    try:
        conditions = TRIGGER_CONDITIONS_ADAPTER.validate_python(raw_conditions)
    except PydanticValidationError as e:
        errors.extend(validation_error_fields(CONDITIONS_FIELD, e))
    else:
        has_no_conditions = not conditions

    schema = PAYLOAD_SCHEMAS.get(action_type)
    if schema is not None:
        try:
            schema.model_validate(raw_payload)
        except PydanticValidationError as e:
            errors.extend(validation_error_fields(PAYLOAD_FIELD, e))

    return errors, has_no_conditions


def validate_combo_rule(rule: Union[ComboRule, Mapping[str, Any]]) -> ComboRuleValidationResult:
    """Validate the structure of a combo rule's JSON fields.

    Args:
        rule: A ComboRule, or a raw content row with ``action_type``,
            ``trigger_conditions_json`` and ``action_payload_json``.

    Returns:
        ComboRuleValidationResult listing every problem found, each as
        ``"field: message"``.
    """
    errors, has_no_conditions = structural_errors(*raw_rule_fields(rule))
    if has_no_conditions:
        errors.append((CONDITIONS_FIELD, EMPTY_CONDITIONS_MESSAGE))
    return ComboRuleValidationResult(
        valid=not errors,
        errors=[f"{field_name}: {message}" for field_name, message in errors],
    )
