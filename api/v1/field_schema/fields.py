"""Fields API endpoints - the field registry"""

from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, Response, status

from core.exceptions import ValidationError
from models import FieldStatus
from schemas.common import Page
from schemas.field import (
    FieldCreate,
    FieldUpdate,
    FieldRead,
    FieldBulkResult,
    FieldImportError,
    FieldImportRequest,
)
from repositories.field_repository import FieldRepository, get_field_repository
from services.field_export_service import (
    ExportFormat,
    FieldExportService,
    get_field_export_service,
    parse_import,
)

router = APIRouter()

MEDIA_TYPES = {ExportFormat.JSON: "application/json", ExportFormat.CSV: "text/csv"}


@router.get("/", response_model=Page[FieldRead])
def list_fields(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    search: Optional[str] = None,
    field_status: Optional[FieldStatus] = Query(None, alias="status"),
    type: Optional[str] = None,
    has_values: Optional[bool] = None,
    has_rules: Optional[bool] = None,
    field_repo: FieldRepository = Depends(get_field_repository),
):
    """List fields page by page, system fields first then alphabetical"""
    return field_repo.get_page(
        page=page,
        limit=limit,
        search=search,
        status=field_status,
        type_name=type,
        has_values=has_values,
        has_rules=has_rules,
    )


@router.post("/", response_model=FieldRead, status_code=status.HTTP_201_CREATED)
def create_field(
    field_data: FieldCreate,
    field_repo: FieldRepository = Depends(get_field_repository),
):
    """
    Create a new field.

    The type must exist, the parent (if any) must exist and not be archived,
    and select types need at least one permissible value.
    """
    return field_repo.create(field_data)


@router.get("/hierarchy/", response_model=dict[str, list[FieldRead]])
def get_field_hierarchy(
    field_repo: FieldRepository = Depends(get_field_repository),
):
    """Non-archived fields grouped by parent name; top-level fields are under "root" """
    return field_repo.get_hierarchy()


@router.get("/children/", response_model=list[FieldRead])
def get_field_children(
    name: str,
    field_repo: FieldRepository = Depends(get_field_repository),
):
    field_repo.get_by_name_or_404(name)
    return field_repo.get_children(name)


@router.get("/by-name/", response_model=FieldRead)
def get_field_by_name(
    name: str,
    field_repo: FieldRepository = Depends(get_field_repository),
):
    return field_repo.get_by_name_or_404(name)


@router.post("/bulk/", response_model=FieldBulkResult, status_code=status.HTTP_201_CREATED)
def bulk_create_fields(
    fields_data: list[FieldCreate],
    field_repo: FieldRepository = Depends(get_field_repository),
):
    """
    Create several fields in order.

    A field may use an earlier field of the same request as parent. Entries
    that fail are reported in ``errors``; the others are still created.
    """
    created, errors = field_repo.bulk_create(fields_data)
    return FieldBulkResult(
        created=[FieldRead.model_validate(field) for field in created],
        errors=[FieldImportError(**error) for error in errors],
    )


@router.post("/import/", response_model=FieldBulkResult, status_code=status.HTTP_201_CREATED)
def import_fields(
    import_data: FieldImportRequest,
    format: ExportFormat = Query(ExportFormat.JSON),
    field_repo: FieldRepository = Depends(get_field_repository),
):
    """Import fields from an exported JSON or CSV document"""
    definitions, parse_errors = parse_import(import_data.content, format)
    if not definitions and parse_errors:
        first = parse_errors[0]
        raise ValidationError(first["field"] or "content", first["reason"])

    created, errors = field_repo.bulk_create(definitions)
    # Map batch positions back to rows of the document
    rejected = {error["index"] for error in parse_errors}
    parsed_rows = [i for i in range(len(definitions) + len(parse_errors)) if i not in rejected]
    for error in errors:
        error["index"] = parsed_rows[error["index"]]

    return FieldBulkResult(
        created=[FieldRead.model_validate(field) for field in created],
        errors=sorted(
            (FieldImportError(**error) for error in parse_errors + errors),
            key=lambda error: error.index,
        ),
    )


@router.get("/export/")
def export_fields(
    format: ExportFormat = Query(ExportFormat.JSON),
    export_service: FieldExportService = Depends(get_field_export_service),
):
    """Download non-archived fields as JSON or CSV"""
    content = export_service.export_fields(format)
    return Response(
        content=content,
        media_type=MEDIA_TYPES[format],
        headers={"Content-Disposition": f'attachment; filename="fields.{format.value}"'},
    )


@router.get("/{field_id}/", response_model=FieldRead)
def get_field(
    field_id: UUID,
    field_repo: FieldRepository = Depends(get_field_repository),
):
    """Get field details"""
    return field_repo.get_or_404(field_id)


@router.patch("/{field_id}/", response_model=FieldRead)
def update_field(
    field_id: UUID,
    update_data: FieldUpdate,
    field_repo: FieldRepository = Depends(get_field_repository),
):
    """
    Update a field.

    Renaming is refused while a child field or a rule references the field
    by name.
    """
    field = field_repo.get_or_404(field_id)
    update_dict = update_data.model_dump(exclude_unset=True)
    return field_repo.update(field, update_dict)


@router.delete("/{field_id}/", status_code=status.HTTP_204_NO_CONTENT)
def delete_field(
    field_id: UUID,
    field_repo: FieldRepository = Depends(get_field_repository),
):
    """
    Archive a field.

    The row is kept so rules and stored records keep resolving the name.
    This fails while other fields use the field as parent.
    """
    field = field_repo.get_or_404(field_id)
    field_repo.delete(field)
