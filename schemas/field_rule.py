"""Field rule schemas - JSON shaped as the FieldRule entity (camelCase)"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Field as PydanticField

from models.field_rule import RuleOperator, RuleAction, RULE_PRIORITY_MIN, RULE_PRIORITY_MAX
from schemas.common import CamelModel


class FieldRuleCreate(CamelModel):
    name: Optional[str] = PydanticField(None, max_length=200)
    description: Optional[str] = None
    condition_field: str = PydanticField(..., min_length=1, max_length=200)
    operator: RuleOperator
    value: str = ""
    action: RuleAction
    target_field: str = PydanticField(..., min_length=1, max_length=200)
    action_value: Optional[str] = None
    priority: int = PydanticField(0, ge=RULE_PRIORITY_MIN, le=RULE_PRIORITY_MAX)
    is_active: bool = True
    project_id: Optional[UUID] = None


class FieldRuleUpdate(CamelModel):
    name: Optional[str] = PydanticField(None, max_length=200)
    description: Optional[str] = None
    condition_field: Optional[str] = PydanticField(None, min_length=1, max_length=200)
    operator: Optional[RuleOperator] = None
    value: Optional[str] = None
    action: Optional[RuleAction] = None
    target_field: Optional[str] = PydanticField(None, min_length=1, max_length=200)
    action_value: Optional[str] = None
    priority: Optional[int] = PydanticField(None, ge=RULE_PRIORITY_MIN, le=RULE_PRIORITY_MAX)
    is_active: Optional[bool] = None
    project_id: Optional[UUID] = None


class FieldRuleRead(CamelModel):
    id: UUID
    name: Optional[str]
    description: Optional[str]
    condition_field: str
    operator: RuleOperator
    value: str
    action: RuleAction
    target_field: str
    action_value: Optional[str]
    priority: int
    is_active: bool
    project_id: Optional[UUID]
    created_at: datetime
    updated_at: datetime
