"""Field Types API endpoints - the catalogue of primitive field kinds"""

from uuid import UUID
from fastapi import APIRouter, Depends, status

from schemas.field_type import FieldTypeCreate, FieldTypeUpdate, FieldTypeRead, FieldTypeUpdateResult
from repositories.field_type_repository import FieldTypeRepository, get_field_type_repository

router = APIRouter()


@router.get("/", response_model=list[FieldTypeRead])
def list_field_types(
    field_type_repo: FieldTypeRepository = Depends(get_field_type_repository),
):
    """List all field types, system types first"""
    return field_type_repo.get_all()


@router.post("/", response_model=FieldTypeRead, status_code=status.HTTP_201_CREATED)
def create_field_type(
    field_type_data: FieldTypeCreate,
    field_type_repo: FieldTypeRepository = Depends(get_field_type_repository),
):
    """
    Create a user-defined field type.

    Names are unique regardless of case. The validation spec decides how
    values of fields with this type are parsed and checked.
    """
    return field_type_repo.create(field_type_data)


@router.get("/{field_type_id}/", response_model=FieldTypeRead)
def get_field_type(
    field_type_id: UUID,
    field_type_repo: FieldTypeRepository = Depends(get_field_type_repository),
):
    return field_type_repo.get_or_404(field_type_id)


@router.patch("/{field_type_id}/", response_model=FieldTypeUpdateResult)
def update_field_type(
    field_type_id: UUID,
    update_data: FieldTypeUpdate,
    field_type_repo: FieldTypeRepository = Depends(get_field_type_repository),
):
    """
    Update a field type.

    A changed validation spec is applied and reported in ``warnings``;
    existing fields of the type may no longer satisfy it.
    """
    field_type = field_type_repo.get_or_404(field_type_id)
    update_dict = update_data.model_dump(exclude_unset=True)
    if update_data.validation_spec is not None:
        update_dict["validation_spec"] = update_data.validation_spec
    field_type, warnings = field_type_repo.update(field_type, update_dict)
    return FieldTypeUpdateResult(field_type=FieldTypeRead.model_validate(field_type), warnings=warnings)


@router.delete("/{field_type_id}/", status_code=status.HTTP_204_NO_CONTENT)
def delete_field_type(
    field_type_id: UUID,
    field_type_repo: FieldTypeRepository = Depends(get_field_type_repository),
):
    """Delete a field type. System types and types in use cannot be deleted."""
    field_type = field_type_repo.get_or_404(field_type_id)
    field_type_repo.delete(field_type)
