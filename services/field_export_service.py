"""Field Export Service - field and rule import/export as JSON or CSV"""

import csv
import io
import json
from enum import Enum

from fastapi import Depends
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.orm import Session

from core.exceptions import ValidationError
from core.logging_config import get_logger
from db.session import get_db
from models import Field, FieldRule, FieldStatus
from schemas.field import FieldCreate, FieldRead
from schemas.field_rule import FieldRuleRead

logger = get_logger(__name__)

CSV_COLUMNS = ["name", "description", "type", "parent", "values", "isRequired", "isSystem", "status"]
VALUE_SEPARATOR = "|"


class ExportFormat(str, Enum):
    JSON = "json"
    CSV = "csv"


class FieldExportService:
    def __init__(self, session: Session):
        self.session = session

    def export_fields(self, export_format: ExportFormat = ExportFormat.JSON) -> str:
        """Non-archived fields, every parent listed before its children"""
        stmt = select(Field).where(Field.status != FieldStatus.ARCHIVED).order_by(Field.name)
        fields = [
            FieldRead.model_validate(field).model_dump(mode="json", by_alias=True)
            for field in _parents_first(list(self.session.scalars(stmt)))
        ]
        logger.info_ctx("Exported fields", count=len(fields), format=ExportFormat(export_format).value)

        if ExportFormat(export_format) == ExportFormat.JSON:
            return json.dumps(fields, indent=2, ensure_ascii=False)

        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=CSV_COLUMNS, extrasaction="ignore")
        writer.writeheader()
        for field in fields:
            row = dict(field)
            row["values"] = VALUE_SEPARATOR.join(field["values"])
            row["description"] = field["description"] or ""
            row["parent"] = field["parent"] or ""
            row["isRequired"] = "true" if field["isRequired"] else "false"
            row["isSystem"] = "true" if field["isSystem"] else "false"
            writer.writerow(row)
        return buffer.getvalue()

    def export_rules(self) -> str:
        stmt = select(FieldRule).order_by(FieldRule.priority.desc(), FieldRule.created_at, FieldRule.id)
        rules = [
            FieldRuleRead.model_validate(rule).model_dump(mode="json", by_alias=True)
            for rule in self.session.scalars(stmt)
        ]
        logger.info_ctx("Exported field rules", count=len(rules))
        return json.dumps(rules, indent=2, ensure_ascii=False)


def _parents_first(fields: list[Field]) -> list[Field]:
    """Order fields so an import can create them one by one"""
    by_name = {field.name: field for field in fields}
    ordered: list[Field] = []
    placed: set[str] = set()

    def place(field: Field, trail: set[str]):
        if field.name in placed or field.name in trail:
            return
        parent = by_name.get(field.parent) if field.parent else None
        if parent is not None:
            place(parent, trail | {field.name})
        placed.add(field.name)
        ordered.append(field)

    for field in fields:
        place(field, set())
    return ordered


def _parse_bool(raw) -> bool:
    if isinstance(raw, bool):
        return raw
    return str(raw or "").strip().lower() in {"true", "yes", "y", "1"}


def _split_values(raw) -> list[str]:
    if isinstance(raw, list):
        return raw
    text = str(raw or "")
    separator = VALUE_SEPARATOR if VALUE_SEPARATOR in text else ","
    return [value.strip() for value in text.split(separator) if value.strip()]


def _read_rows(content: str, import_format: ExportFormat) -> list[dict]:
    if import_format == ExportFormat.JSON:
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise ValidationError("content", f"Invalid JSON: {e.msg}")
        if isinstance(data, dict):
            data = data.get("fields", [])
        if not isinstance(data, list):
            raise ValidationError("content", "Expected a list of field definitions")
        return data

    reader = csv.DictReader(io.StringIO(content))
    if not reader.fieldnames or "name" not in reader.fieldnames:
        raise ValidationError("content", "CSV header must include a 'name' column")
    rows = []
    for row in reader:
        rows.append({
            "name": row.get("name"),
            "description": row.get("description") or None,
            "type": row.get("type"),
            "parent": row.get("parent") or None,
            "values": row.get("values"),
            "isRequired": row.get("isRequired") or row.get("is_required"),
            "isSystem": row.get("isSystem") or row.get("is_system"),
        })
    return rows


def parse_import(content: str, import_format: ExportFormat = ExportFormat.JSON) -> tuple[list[FieldCreate], list[dict]]:
    """
    Parse an import document into field definitions.

    Rows that do not form a valid definition are reported with their index
    and skipped. A document that cannot be read at all raises ValidationError.
    """
    rows = _read_rows(content, ExportFormat(import_format))
    definitions: list[FieldCreate] = []
    errors: list[dict] = []
    for index, row in enumerate(rows):
        if not isinstance(row, dict):
            errors.append({"index": index, "name": None, "error": "validation_error",
                           "field": None, "reason": "Expected an object"})
            continue
        row = dict(row)
        row["values"] = _split_values(row.get("values"))
        for key in ("isRequired", "isSystem"):
            if key in row:
                row[key] = _parse_bool(row[key])
        try:
            definitions.append(FieldCreate.model_validate(row))
        except PydanticValidationError as e:
            first = e.errors()[0]
            errors.append({
                "index": index,
                "name": row.get("name"),
                "error": "validation_error",
                "field": ".".join(str(part) for part in first["loc"]) or None,
                "reason": first["msg"],
            })
    logger.info_ctx("Parsed field import", parsed=len(definitions), rejected=len(errors))
    return definitions, errors


def get_field_export_service(db: Session = Depends(get_db)) -> FieldExportService:
    return FieldExportService(db)
