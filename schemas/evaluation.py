"""Rule evaluation schemas - derived per-field UI/validation state"""

from typing import Any, Optional
from uuid import UUID

from pydantic import Field as PydanticField

from schemas.common import CamelModel
from schemas.field_type import FieldKind


class EvaluationField(CamelModel):
    """The slice of a field the rule engine needs"""
    name: str
    kind: FieldKind = FieldKind.TEXT
    is_required: bool = False


class DerivedState(CamelModel):
    visible: bool = True
    enabled: bool = True
    required: bool = False
    value: Any = None


class RuleWarning(CamelModel):
    rule_id: Optional[UUID] = None
    rule_name: Optional[str] = None
    reason: str


class EvaluationResult(CamelModel):
    states: dict[str, DerivedState]
    warnings: list[RuleWarning] = []


class EvaluationRequest(CamelModel):
    project_id: Optional[UUID] = None
    values: dict[str, Any] = PydanticField(default_factory=dict)


class RecordError(CamelModel):
    field: str
    reason: str


class RecordValidationResult(CamelModel):
    valid: bool
    states: dict[str, DerivedState]
    errors: list[RecordError] = []
    warnings: list[RuleWarning] = []
