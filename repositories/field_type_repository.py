"""Field Type Repository - the catalogue of primitive field kinds"""

from uuid import UUID

from fastapi import Depends
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from core.exceptions import ConflictError, NotFoundError
from core.logging_config import get_logger
from db.session import get_db, transaction
from models import FieldType
from schemas.field_type import (
    FieldTypeCreate,
    dump_validation_spec,
    parse_validation_spec,
)

logger = get_logger(__name__)


class FieldTypeRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_or_404(self, field_type_id: UUID) -> FieldType:
        field_type = self.session.get(FieldType, field_type_id)
        if not field_type:
            raise NotFoundError("Field type", field_type_id)
        return field_type

    def get_by_name(self, name: str) -> FieldType | None:
        """Case-insensitive lookup by name"""
        stmt = select(FieldType).where(func.lower(FieldType.name) == name.strip().lower())
        return self.session.scalar(stmt)

    def get_by_exact_name(self, name: str) -> FieldType | None:
        """Lookup by the exact name fields reference"""
        return self.session.scalar(select(FieldType).where(FieldType.name == name))

    def get_all(self) -> list[FieldType]:
        """All field types, system types first, then alphabetical"""
        stmt = select(FieldType).order_by(FieldType.is_system.desc(), FieldType.name)
        return list(self.session.scalars(stmt).all())

    def create(self, field_type_data: FieldTypeCreate) -> FieldType:
        """Create a user-defined field type"""
        name = field_type_data.name.strip()
        if self.get_by_name(name):
            logger.warning_ctx("Field type name collision", name=name)
            raise ConflictError(f"Field type '{name}' already exists")

        field_type = FieldType(
            name=name,
            description=field_type_data.description,
            icon=field_type_data.icon,
            validation_spec=dump_validation_spec(field_type_data.validation_spec),
            is_system=False,
        )
        with transaction(self.session):
            self.session.add(field_type)
        self.session.refresh(field_type)

        logger.info_ctx("Created field type", name=field_type.name, id=str(field_type.id))
        return field_type

    def update(self, field_type: FieldType, update_data: dict) -> tuple[FieldType, list[str]]:
        """
        Update a field type with the provided data.

        Returns the updated type and warnings. Renames are refused for system
        types and for types that fields reference, since fields point at the
        name. A changed validation contract is applied but reported: existing
        fields of the type must be re-validated by the caller.
        """
        warnings: list[str] = []
        changes: dict = {}

        new_name = update_data.get("name")
        if new_name is not None and new_name.strip() != field_type.name:
            new_name = new_name.strip()
            if field_type.is_system:
                raise ConflictError(f"System field type '{field_type.name}' cannot be renamed")
            existing = self.get_by_name(new_name)
            if existing and existing.id != field_type.id:
                raise ConflictError(f"Field type '{new_name}' already exists")
            in_use = self._count_fields(field_type.name)
            if in_use:
                raise ConflictError(
                    f"Field type '{field_type.name}' is used by {in_use} field(s) and cannot be renamed"
                )
            changes["name"] = new_name

        spec = update_data.get("validation_spec")
        if spec is not None:
            if isinstance(spec, dict):
                spec = parse_validation_spec(spec)
            old_spec = parse_validation_spec(field_type.validation_spec)
            if field_type.is_system and spec.kind != old_spec.kind:
                raise ConflictError(
                    f"System field type '{field_type.name}' cannot change kind "
                    f"from '{old_spec.kind}' to '{spec.kind}'"
                )
            new_spec = dump_validation_spec(spec)
            if new_spec != dump_validation_spec(old_spec):
                warnings.append(
                    f"Validation contract of '{field_type.name}' changed; "
                    f"re-validate existing fields of this type"
                )
            changes["validation_spec"] = new_spec

        for key in ("description", "icon"):
            if key in update_data:
                changes[key] = update_data[key]

        with transaction(self.session):
            for key, value in changes.items():
                setattr(field_type, key, value)
        self.session.refresh(field_type)

        for warning in warnings:
            logger.warning_ctx(warning, field_type=field_type.name)
        logger.info_ctx("Updated field type", name=field_type.name, changed=sorted(changes))
        return field_type, warnings

    def delete(self, field_type: FieldType) -> None:
        """Delete a user-defined field type that no field references"""
        if field_type.is_system:
            raise ConflictError(f"System field type '{field_type.name}' cannot be deleted")

        in_use = self._count_fields(field_type.name)
        if in_use:
            raise ConflictError(
                f"Cannot delete field type '{field_type.name}' as it is used by {in_use} field(s)"
            )

        with transaction(self.session):
            self.session.delete(field_type)
        logger.info_ctx("Deleted field type", name=field_type.name)

    def _count_fields(self, type_name: str) -> int:
        # Deferred import, the field repository depends on this module
        from repositories.field_repository import FieldRepository
        return FieldRepository(self.session).count_by_type(type_name)


def get_field_type_repository(db: Session = Depends(get_db)) -> FieldTypeRepository:
    """Dependency for field type repository"""
    return FieldTypeRepository(db)
