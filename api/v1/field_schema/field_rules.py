"""Field Rules API endpoints - conditional rules and their evaluation"""

from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Response, status

from schemas.evaluation import EvaluationRequest, EvaluationResult, RecordValidationResult
from schemas.field_rule import FieldRuleCreate, FieldRuleUpdate, FieldRuleRead
from repositories.field_rule_repository import FieldRuleRepository, get_field_rule_repository
from services.field_export_service import FieldExportService, get_field_export_service
from services.field_schema_service import FieldSchemaService, get_field_schema_service

router = APIRouter()


@router.get("/", response_model=list[FieldRuleRead])
def list_field_rules(
    project_id: Optional[UUID] = None,
    include_inactive: bool = False,
    rule_repo: FieldRuleRepository = Depends(get_field_rule_repository),
):
    """
    List rules in evaluation order: priority descending, then oldest first.

    With ``project_id`` the project's rules are listed together with the
    global ones.
    """
    if include_inactive:
        return rule_repo.list_all(project_id=project_id)
    return rule_repo.list_active(project_id=project_id)


@router.post("/", response_model=FieldRuleRead, status_code=status.HTTP_201_CREATED)
def create_field_rule(
    rule_data: FieldRuleCreate,
    rule_repo: FieldRuleRepository = Depends(get_field_rule_repository),
):
    """
    Create a rule.

    Condition and target must be existing, non-archived fields and the
    operator must fit the condition field's type.
    """
    return rule_repo.create(rule_data)


@router.post("/evaluate/", response_model=EvaluationResult)
def evaluate_field_rules(
    request: EvaluationRequest,
    schema_service: FieldSchemaService = Depends(get_field_schema_service),
):
    """Derive visibility, enablement, required-ness and value per active field"""
    return schema_service.evaluate(request.project_id, request.values)


@router.post("/validate/", response_model=RecordValidationResult)
def validate_record(
    request: EvaluationRequest,
    schema_service: FieldSchemaService = Depends(get_field_schema_service),
):
    """Evaluate the rules, then check the record's values against their field types"""
    return schema_service.validate_record(request.project_id, request.values)


@router.get("/export/")
def export_field_rules(
    export_service: FieldExportService = Depends(get_field_export_service),
):
    return Response(
        content=export_service.export_rules(),
        media_type="application/json",
        headers={"Content-Disposition": 'attachment; filename="field-rules.json"'},
    )


@router.get("/{rule_id}/", response_model=FieldRuleRead)
def get_field_rule(
    rule_id: UUID,
    rule_repo: FieldRuleRepository = Depends(get_field_rule_repository),
):
    return rule_repo.get_or_404(rule_id)


@router.patch("/{rule_id}/", response_model=FieldRuleRead)
def update_field_rule(
    rule_id: UUID,
    update_data: FieldRuleUpdate,
    rule_repo: FieldRuleRepository = Depends(get_field_rule_repository),
):
    """Update a rule; the merged rule is validated like a new one"""
    rule = rule_repo.get_or_404(rule_id)
    update_dict = update_data.model_dump(exclude_unset=True)
    return rule_repo.update(rule, update_dict)


@router.delete("/{rule_id}/", status_code=status.HTTP_204_NO_CONTENT)
def delete_field_rule(
    rule_id: UUID,
    rule_repo: FieldRuleRepository = Depends(get_field_rule_repository),
):
    rule = rule_repo.get_or_404(rule_id)
    rule_repo.delete(rule)
