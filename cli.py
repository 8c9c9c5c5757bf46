import json
import uuid
from pathlib import Path
from typing import Optional

import typer
from typer import Option

from services.field_export_service import ExportFormat

app = typer.Typer(help="GridField administration commands")


@app.command()
def seed_field_types():
    """Upsert the ten system field types"""
    from db.session import db_context
    from services.seed_service import seed_system_field_types

    with db_context() as db:
        created = seed_system_field_types(db)
    typer.echo(f"System field types seeded ({created} created)")


@app.command()
def seed_demo():
    """Seed the power-generation demo fields and rules"""
    from db.session import db_context
    from services.seed_service import seed_demo_schema

    with db_context() as db:
        fields, rules = seed_demo_schema(db)
    typer.echo(f"Demo schema seeded ({fields} fields, {rules} rules created)")


@app.command()
def evaluate(
    values_file: Path = Option(..., "--values-file", exists=True, dir_okay=False, readable=True),
    project_id: Optional[str] = Option(None, "--project-id"),
):
    """Evaluate the active rules against a JSON object of field values"""
    from db.session import db_context
    from services.field_schema_service import FieldSchemaService

    values = json.loads(values_file.read_text(encoding="utf-8"))
    if not isinstance(values, dict):
        raise typer.BadParameter("values file must contain a JSON object", param_hint="--values-file")

    with db_context() as db:
        result = FieldSchemaService(db).evaluate(uuid.UUID(project_id) if project_id else None, values)
        typer.echo(result.model_dump_json(by_alias=True, indent=2))


@app.command()
def export_fields(
    export_format: ExportFormat = Option(ExportFormat.JSON, "--format"),
):
    """Print non-archived fields as JSON or CSV"""
    from db.session import db_context
    from services.field_export_service import FieldExportService

    with db_context() as db:
        typer.echo(FieldExportService(db).export_fields(export_format))


if __name__ == "__main__":
    app()
