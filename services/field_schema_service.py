"""Field Schema Service - loads the active schema and evaluates records against it"""

from dataclasses import dataclass, field as dataclass_field
from typing import Any, Mapping
from uuid import UUID

from fastapi import Depends
from sqlalchemy.orm import Session

from core.logging_config import get_logger
from db.session import get_db
from models import Field, FieldRule
from repositories.field_repository import FieldRepository
from repositories.field_rule_repository import FieldRuleRepository
from repositories.field_type_repository import FieldTypeRepository
from repositories.project_repository import ProjectRepository
from schemas.evaluation import (
    EvaluationField,
    EvaluationResult,
    RecordError,
    RecordValidationResult,
)
from schemas.field_type import FieldKind, parse_validation_spec, TextSpec
from services.field_kinds import is_empty, validate_value
from services.rule_engine import evaluate

logger = get_logger(__name__)


@dataclass
class FieldSchema:
    """Active fields, their validation contracts and the rules for one scope"""
    fields: list[Field]
    rules: list[FieldRule]
    specs: dict[str, Any] = dataclass_field(default_factory=dict)

    def evaluation_fields(self) -> list[EvaluationField]:
        return [
            EvaluationField(
                name=field.name,
                kind=FieldKind(self.specs[field.name].kind),
                is_required=field.is_required,
            )
            for field in self.fields
        ]


class FieldSchemaService:
    """
    Request-scoped entry point for form rendering and record validation.

    The rule set is read fresh on every call; nothing is cached between
    requests.
    """

    def __init__(self, session: Session):
        self.fields = FieldRepository(session)
        self.field_types = FieldTypeRepository(session)
        self.rules = FieldRuleRepository(session)
        self.projects = ProjectRepository(session)

    def load(self, project_id: UUID | None = None) -> FieldSchema:
        """Active fields plus the active rules of a project (and global ones)"""
        if project_id is not None:
            self.projects.get_or_404(project_id)
            rules = self.rules.list_active(project_id=project_id)
        else:
            rules = self.rules.list_active(global_only=True)

        fields = self.fields.get_active()
        types = {field_type.name: field_type for field_type in self.field_types.get_all()}
        specs = {}
        for field in fields:
            field_type = types.get(field.type)
            specs[field.name] = parse_validation_spec(field_type.validation_spec) if field_type else TextSpec()
        return FieldSchema(fields=fields, rules=rules, specs=specs)

    def evaluate(self, project_id: UUID | None, values: Mapping[str, Any]) -> EvaluationResult:
        schema = self.load(project_id)
        return evaluate(schema.evaluation_fields(), schema.rules, values)

    def validate_record(self, project_id: UUID | None, values: Mapping[str, Any]) -> RecordValidationResult:
        """
        Evaluate the rules, then check the record against the derived state.

        Visible required fields must have a value. Values of visible, enabled
        fields must satisfy their type's contract. Hidden fields are exempt
        from both checks.
        """
        schema = self.load(project_id)
        result = evaluate(schema.evaluation_fields(), schema.rules, values)
        options = {field.name: field.values for field in schema.fields}

        errors: list[RecordError] = []
        for name in values:
            if name not in result.states:
                errors.append(RecordError(field=name, reason="is not an active field"))

        for name, state in result.states.items():
            if not state.visible:
                continue
            if is_empty(state.value):
                if state.required:
                    errors.append(RecordError(field=name, reason="is required"))
                continue
            if not state.enabled:
                continue
            for reason in validate_value(schema.specs[name], state.value, options[name]):
                errors.append(RecordError(field=name, reason=reason))

        if errors:
            logger.info_ctx("Record failed validation", errors=len(errors), project_id=str(project_id))
        return RecordValidationResult(
            valid=not errors,
            states=result.states,
            errors=errors,
            warnings=result.warnings,
        )


def get_field_schema_service(db: Session = Depends(get_db)) -> FieldSchemaService:
    return FieldSchemaService(db)
