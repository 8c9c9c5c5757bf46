"""Field schemas - the field registry's request and response shapes"""

from datetime import datetime
from typing import Annotated, Optional
from uuid import UUID

from pydantic import AfterValidator, AliasChoices, Field as PydanticField

from models.field import FieldStatus
from schemas.common import CamelModel


def _strip_values(values):
    if values is None:
        return values
    return [str(v).strip() for v in values if str(v).strip()]


def _strip_name(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("name must not be blank")
    return value


def _blank_parent_is_none(value: str) -> str | None:
    return value.strip() or None


PermissibleValues = Annotated[list[str], AfterValidator(_strip_values)]
FieldName = Annotated[str, PydanticField(min_length=1, max_length=200), AfterValidator(_strip_name)]
ParentName = Annotated[str, PydanticField(max_length=200), AfterValidator(_blank_parent_is_none)]


class FieldCreate(CamelModel):
    """Schema for creating a field"""
    name: FieldName
    description: Optional[str] = None
    type: str = PydanticField(..., min_length=1, max_length=50)
    parent: Optional[ParentName] = None
    values: PermissibleValues = PydanticField(default_factory=list)
    metadata: Optional[dict] = None
    is_required: bool = False
    is_system: bool = False


class FieldUpdate(CamelModel):
    """Schema for patching a field; only supplied keys are applied"""
    name: Optional[FieldName] = None
    description: Optional[str] = None
    type: Optional[str] = PydanticField(None, min_length=1, max_length=50)
    parent: Optional[ParentName] = None
    values: Optional[PermissibleValues] = None
    metadata: Optional[dict] = None
    status: Optional[FieldStatus] = None
    is_required: Optional[bool] = None


class FieldRead(CamelModel):
    """Schema for reading a field"""
    id: UUID
    name: str
    description: Optional[str]
    type: str
    parent: Optional[str]
    values: list[str]
    metadata: Optional[dict] = PydanticField(
        None,
        validation_alias=AliasChoices("metadata_", "metadata"),
        serialization_alias="metadata",
    )
    status: FieldStatus
    is_required: bool
    is_system: bool
    created_at: datetime
    updated_at: datetime


class FieldImportError(CamelModel):
    index: int
    name: Optional[str] = None
    error: str
    field: Optional[str] = None
    reason: str


class FieldBulkResult(CamelModel):
    created: list[FieldRead]
    errors: list[FieldImportError] = []


class FieldImportRequest(CamelModel):
    content: str = PydanticField(..., min_length=1)
