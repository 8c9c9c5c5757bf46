"""Field Repository - the field registry and its integrity rules"""

import math
from uuid import UUID

from fastapi import Depends
from sqlalchemy import func, or_, select, exists
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.exceptions import ConflictError, NotFoundError, ValidationError
from core.logging_config import get_logger
from core.settings import settings
from db.session import get_db, transaction
from models import Field, FieldRule, FieldStatus, FieldType
from repositories.field_type_repository import FieldTypeRepository
from schemas.field import FieldCreate
from schemas.field_type import LIST_KINDS, parse_validation_spec
from services.field_kinds import check_rule_condition, resolve_kind

logger = get_logger(__name__)

ROOT_KEY = "root"


def _escape_like(text: str) -> str:
    """Make ``%`` and ``_`` in user input match literally"""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class FieldRepository:
    def __init__(self, session: Session, max_depth: int | None = None):
        self.session = session
        self.max_depth = max_depth or settings.FIELD_PARENT_MAX_DEPTH
        self.field_types = FieldTypeRepository(session)

    def get_or_404(self, field_id: UUID) -> Field:
        field = self.session.get(Field, field_id)
        if not field:
            raise NotFoundError("Field", field_id)
        return field

    def get_by_name(self, name: str) -> Field | None:
        """Get a field by its unique name, archived fields included"""
        return self.session.scalar(select(Field).where(Field.name == name))

    def get_by_name_or_404(self, name: str) -> Field:
        field = self.get_by_name(name)
        if not field:
            raise NotFoundError("Field", name)
        return field

    def get_page(
        self,
        page: int = 1,
        limit: int | None = None,
        search: str | None = None,
        status: FieldStatus | None = None,
        type_name: str | None = None,
        has_values: bool | None = None,
        has_rules: bool | None = None,
    ) -> dict:
        """Paginated field listing, system fields first then alphabetical"""
        limit = min(limit or settings.DEFAULT_PAGE_SIZE, settings.MAX_PAGE_SIZE)
        page = max(page, 1)

        conditions = []
        if search and search.strip():
            pattern = f"%{_escape_like(search.strip())}%"
            conditions.append(or_(
                Field.name.ilike(pattern, escape="\\"),
                Field.description.ilike(pattern, escape="\\"),
                Field.type.ilike(pattern, escape="\\"),
            ))
        if status is not None:
            conditions.append(Field.status == status)
        if type_name:
            conditions.append(Field.type == type_name)
        if has_values is not None:
            conditions.append(Field.values != [] if has_values else Field.values == [])
        if has_rules is not None:
            referenced = exists().where(or_(
                FieldRule.condition_field == Field.name,
                FieldRule.target_field == Field.name,
            ))
            conditions.append(referenced if has_rules else ~referenced)

        total = self.session.scalar(select(func.count(Field.id)).where(*conditions)) or 0
        stmt = (
            select(Field)
            .where(*conditions)
            .order_by(Field.is_system.desc(), Field.name)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return {
            "items": list(self.session.scalars(stmt).all()),
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": math.ceil(total / limit) if total else 0,
        }

    def get_active(self) -> list[Field]:
        """All active fields, the set forms are rendered from"""
        stmt = select(Field).where(Field.status == FieldStatus.ACTIVE).order_by(Field.name)
        return list(self.session.scalars(stmt).all())

    def count_by_type(self, type_name: str) -> int:
        """Number of fields of any status that reference a field type"""
        stmt = select(func.count(Field.id)).where(Field.type == type_name)
        return self.session.scalar(stmt) or 0

    def count_children(self, name: str) -> int:
        """Number of fields of any status whose parent is ``name``"""
        stmt = select(func.count(Field.id)).where(Field.parent == name)
        return self.session.scalar(stmt) or 0

    def count_rule_references(self, name: str) -> int:
        stmt = select(func.count(FieldRule.id)).where(or_(
            FieldRule.condition_field == name,
            FieldRule.target_field == name,
        ))
        return self.session.scalar(stmt) or 0

    def get_children(self, name: str) -> list[Field]:
        """Direct, non-archived children of a field"""
        stmt = (
            select(Field)
            .where(Field.parent == name)
            .where(Field.status != FieldStatus.ARCHIVED)
            .order_by(Field.name)
        )
        return list(self.session.scalars(stmt).all())

    def get_hierarchy(self) -> dict[str, list[Field]]:
        """Non-archived fields grouped by parent name, top-level fields under "root" """
        stmt = select(Field).where(Field.status != FieldStatus.ARCHIVED).order_by(Field.name)
        hierarchy: dict[str, list[Field]] = {}
        for field in self.session.scalars(stmt):
            hierarchy.setdefault(field.parent or ROOT_KEY, []).append(field)
        return hierarchy

    def create(self, field_data: FieldCreate) -> Field:
        """
        Create a new field.

        Every check runs before anything is written: unique name, existing
        type, existing non-archived parent, an acyclic parent chain within
        the depth limit and permissible values fitting the type.
        """
        name = field_data.name
        if self.get_by_name(name):
            logger.warning_ctx("Rejected field create", name=name, reason="duplicate name")
            raise ConflictError(f"Field with name '{name}' already exists")

        field_type = self._resolve_type(field_data.type)
        if field_data.parent is not None:
            self._check_parent(name, field_data.parent, self._parent_map())
        self._check_values(field_type, field_data.values)

        field = Field(
            name=name,
            description=field_data.description,
            type=field_type.name,
            parent=field_data.parent,
            values=list(field_data.values),
            metadata_=field_data.metadata,
            status=FieldStatus.ACTIVE,
            is_required=field_data.is_required,
            is_system=field_data.is_system,
        )
        try:
            with transaction(self.session):
                self.session.add(field)
        except IntegrityError:
            raise ConflictError(f"Field with name '{name}' already exists")
        self.session.refresh(field)

        logger.info_ctx("Created field", name=field.name, type=field.type, parent=field.parent)
        return field

    def bulk_create(self, fields_data: list[FieldCreate]) -> tuple[list[Field], list[dict]]:
        """
        Create fields in order, each in its own transaction.

        A field may name an earlier field of the batch as its parent. Rejected
        entries are reported instead of aborting the batch.
        """
        created: list[Field] = []
        errors: list[dict] = []
        for index, field_data in enumerate(fields_data):
            try:
                created.append(self.create(field_data))
            except (ValidationError, ConflictError) as e:
                errors.append({
                    "index": index,
                    "name": field_data.name,
                    "error": e.kind,
                    "field": getattr(e, "field", None),
                    "reason": e.reason,
                })
        logger.info_ctx("Bulk field create finished", created=len(created), failed=len(errors))
        return created, errors

    def update(self, field: Field, update_data: dict) -> Field:
        """
        Update a field with the provided data.

        Patched attributes get the same checks as on create. Renames are
        refused while another field or any rule references the field; parent
        changes are checked against the whole tree with the patch applied;
        type changes must keep every rule conditioned on the field valid.
        """
        changes: dict = {}
        name = field.name

        new_name = update_data.get("name")
        if new_name is not None:
            new_name = new_name.strip()
            if not new_name:
                raise ValidationError("name", "name must not be blank")
        if new_name is not None and new_name != field.name:
            if self.get_by_name(new_name):
                raise ConflictError(f"Field with name '{new_name}' already exists")
            children = self.count_children(field.name)
            rules = self.count_rule_references(field.name)
            if children or rules:
                raise ConflictError(
                    f"Field '{field.name}' is referenced by {children} field(s) and "
                    f"{rules} rule(s) and cannot be renamed"
                )
            changes["name"] = name = new_name

        field_type = None
        new_type = update_data.get("type")
        if new_type is not None and new_type != field.type:
            field_type = self._resolve_type(new_type)
            self._check_conditioned_rules(field.name, field_type)
            changes["type"] = field_type.name

        if "parent" in update_data:
            parent = (update_data["parent"] or "").strip() or None
            if parent != field.parent:
                if parent is not None:
                    parent_map = self._parent_map()
                    # Dry run: the tree as it would look after this update
                    parent_map.pop(field.name, None)
                    parent_map[name] = parent
                    self._check_parent(name, parent, parent_map, previous_name=field.name)
                changes["parent"] = parent

        if field_type is not None or update_data.get("values") is not None:
            if field_type is None:
                field_type = self._resolve_type(field.type)
            values = update_data.get("values")
            if values is None:
                values = field.values
            self._check_values(field_type, values)
            changes["values"] = list(values)

        status = update_data.get("status")
        if status is not None and status != field.status:
            status = FieldStatus(status)
            if status == FieldStatus.ARCHIVED:
                self._check_no_children(field)
            elif field.status == FieldStatus.ARCHIVED:
                parent_name = changes.get("parent", field.parent)
                parent = self.get_by_name(parent_name) if parent_name else None
                if parent is not None and parent.is_archived:
                    raise ValidationError("status", f"parent field '{parent.name}' is archived")
            changes["status"] = status

        if "description" in update_data:
            changes["description"] = update_data["description"]
        if "metadata" in update_data:
            changes["metadata_"] = update_data["metadata"]
        if update_data.get("is_required") is not None:
            changes["is_required"] = update_data["is_required"]

        try:
            with transaction(self.session):
                for key, value in changes.items():
                    setattr(field, key, value)
        except IntegrityError:
            raise ConflictError(f"Field with name '{name}' already exists")
        self.session.refresh(field)

        logger.info_ctx("Updated field", name=field.name, changed=sorted(changes))
        return field

    def delete(self, field: Field) -> Field:
        """
        Archive a field.

        Fails while another field uses it as parent. The row is kept so rules
        and historical data keep resolving the name.
        """
        self._check_no_children(field)
        if field.is_archived:
            return field

        with transaction(self.session):
            field.status = FieldStatus.ARCHIVED
        self.session.refresh(field)

        logger.info_ctx("Archived field", name=field.name)
        return field

    def _resolve_type(self, type_name: str) -> FieldType:
        field_type = self.field_types.get_by_exact_name(type_name)
        if not field_type:
            logger.warning_ctx("Rejected field change", reason="unknown type", type=type_name)
            raise ValidationError("type", f"Field type '{type_name}' does not exist")
        return field_type

    def _parent_map(self) -> dict[str, str | None]:
        rows = self.session.execute(select(Field.name, Field.parent))
        return {row_name: row_parent for row_name, row_parent in rows}

    def _check_parent(
        self,
        name: str,
        parent: str,
        parent_map: dict[str, str | None],
        previous_name: str | None = None,
    ) -> None:
        """Parent must exist, not be archived, and not lead back to the field"""
        if parent in (name, previous_name):
            raise ValidationError("parent", "Field cannot be its own parent")

        parent_field = self.get_by_name(parent)
        if not parent_field:
            raise ValidationError("parent", f"Parent field '{parent}' does not exist")
        if parent_field.is_archived:
            raise ValidationError("parent", f"Parent field '{parent}' is archived")

        depth = 0
        seen = set()
        current = parent
        while current is not None:
            if current in (name, previous_name):
                raise ValidationError("parent", f"Parent '{parent}' would make '{name}' its own ancestor")
            if current in seen:
                raise ValidationError("parent", f"Parent chain of '{parent}' contains a cycle")
            seen.add(current)
            depth += 1
            if depth > self.max_depth:
                raise ValidationError(
                    "parent", f"Parent chain exceeds the maximum depth of {self.max_depth}"
                )
            current = parent_map.get(current)

    def _check_values(self, field_type: FieldType, values: list[str]) -> None:
        spec = parse_validation_spec(field_type.validation_spec)
        if spec.kind in {kind.value for kind in LIST_KINDS} and spec.required and not values:
            raise ValidationError("values", f"Fields of type '{field_type.name}' need at least one value")
        if len(set(values)) != len(values):
            raise ValidationError("values", "Permissible values must be unique")

    def _check_no_children(self, field: Field) -> None:
        children = self.count_children(field.name)
        if children:
            logger.warning_ctx("Rejected field archive", name=field.name, children=children)
            raise ConflictError(
                f"Cannot delete field '{field.name}' as it has {children} child field(s)"
            )

    def _check_conditioned_rules(self, name: str, field_type: FieldType) -> None:
        kind = resolve_kind(field_type.validation_spec)
        rules = self.session.scalars(select(FieldRule).where(FieldRule.condition_field == name))
        for rule in rules:
            problem = check_rule_condition(rule.operator, kind, rule.value)
            if problem:
                raise ValidationError(
                    "type",
                    f"Type '{field_type.name}' breaks rule '{rule.name or rule.id}': {problem[1]}"
                )


def get_field_repository(db: Session = Depends(get_db)) -> FieldRepository:
    """Dependency for field repository"""
    return FieldRepository(db)
