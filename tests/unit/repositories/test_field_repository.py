import pytest
from sqlalchemy.orm import Session

from core.exceptions import ConflictError, NotFoundError, ValidationError
from models import Field, FieldStatus
from repositories.field_repository import FieldRepository, ROOT_KEY
from schemas.field import FieldCreate


@pytest.mark.unit
class TestFieldRepositoryCreate:

    def test_create_field(self, db_session: Session, system_field_types):
        repo = FieldRepository(db_session)

        field = repo.create(FieldCreate(
            name="  Nameplate Capacity (MW) ",
            type="Number",
            description="Maximum electrical output",
            metadata={"unit": "MW"},
            is_required=True,
        ))

        assert field.id is not None
        assert field.name == "Nameplate Capacity (MW)"
        assert field.status == FieldStatus.ACTIVE
        assert field.metadata_ == {"unit": "MW"}
        assert field.values == []

    def test_duplicate_name_conflicts(self, db_session: Session, make_field):
        make_field("County")
        repo = FieldRepository(db_session)

        with pytest.raises(ConflictError):
            repo.create(FieldCreate(name="County", type="Text"))

        assert db_session.query(Field).filter(Field.name == "County").count() == 1

    def test_unknown_type(self, db_session: Session, system_field_types):
        repo = FieldRepository(db_session)

        with pytest.raises(ValidationError) as exc_info:
            repo.create(FieldCreate(name="Hub Height", type="Length"))

        assert exc_info.value.field == "type"
        assert db_session.query(Field).count() == 0

    def test_unknown_parent(self, db_session: Session, system_field_types):
        repo = FieldRepository(db_session)

        with pytest.raises(ValidationError) as exc_info:
            repo.create(FieldCreate(name="County", type="Text", parent="State/Province"))

        assert exc_info.value.field == "parent"

    def test_archived_parent(self, db_session: Session, make_field):
        state = make_field("State/Province")
        repo = FieldRepository(db_session)
        repo.delete(state)

        with pytest.raises(ValidationError) as exc_info:
            repo.create(FieldCreate(name="County", type="Text", parent="State/Province"))

        assert "archived" in exc_info.value.reason

    def test_select_needs_values(self, db_session: Session, system_field_types):
        repo = FieldRepository(db_session)

        with pytest.raises(ValidationError) as exc_info:
            repo.create(FieldCreate(name="Permit Status", type="Select"))

        assert exc_info.value.field == "values"

    def test_values_must_be_unique(self, db_session: Session, system_field_types):
        repo = FieldRepository(db_session)

        with pytest.raises(ValidationError):
            repo.create(FieldCreate(name="Permit Status", type="Select", values=["Issued", " Issued"]))

    def test_depth_limit(self, db_session: Session, make_field):
        make_field("Level 1")
        make_field("Level 2", parent="Level 1")
        make_field("Level 3", parent="Level 2")
        repo = FieldRepository(db_session, max_depth=2)

        with pytest.raises(ValidationError) as exc_info:
            repo.create(FieldCreate(name="Level 4", type="Text", parent="Level 3"))

        assert "maximum depth" in exc_info.value.reason


@pytest.mark.unit
class TestFieldRepositoryUpdate:

    def test_parent_cycle_rejected(self, db_session: Session, make_field):
        make_field("Technology Type", "Select", values=["Coal"])
        make_field("Nameplate Capacity (MW)", "Number", parent="Technology Type")
        make_field("Net Capacity (MW)", "Number", parent="Nameplate Capacity (MW)")
        repo = FieldRepository(db_session)
        root = repo.get_by_name("Technology Type")

        with pytest.raises(ValidationError) as exc_info:
            repo.update(root, {"parent": "Net Capacity (MW)"})

        assert exc_info.value.field == "parent"
        db_session.refresh(root)
        assert root.parent is None

    def test_self_parent_rejected(self, db_session: Session, make_field):
        field = make_field("Latitude", "Number")
        repo = FieldRepository(db_session)

        with pytest.raises(ValidationError):
            repo.update(field, {"parent": "Latitude"})

    def test_move_to_other_parent(self, db_session: Session, make_field):
        make_field("County")
        make_field("State/Province")
        latitude = make_field("Latitude", "Number", parent="County")
        repo = FieldRepository(db_session)

        updated = repo.update(latitude, {"parent": "State/Province", "description": "Decimal degrees"})

        assert updated.parent == "State/Province"
        assert updated.description == "Decimal degrees"

    def test_clear_parent(self, db_session: Session, make_field):
        make_field("County")
        latitude = make_field("Latitude", "Number", parent="County")

        updated = FieldRepository(db_session).update(latitude, {"parent": None})

        assert updated.parent is None

    def test_rename_unreferenced_field(self, db_session: Session, make_field):
        field = make_field("Notes")

        updated = FieldRepository(db_session).update(field, {"name": "Project Notes"})

        assert updated.name == "Project Notes"

    def test_blank_rename_rejected(self, db_session: Session, make_field):
        field = make_field("Notes")
        repo = FieldRepository(db_session)

        with pytest.raises(ValidationError) as exc_info:
            repo.update(field, {"name": "   "})

        assert exc_info.value.field == "name"
        db_session.refresh(field)
        assert field.name == "Notes"

    def test_rename_strips_whitespace(self, db_session: Session, make_field):
        field = make_field("Notes")

        updated = FieldRepository(db_session).update(field, {"name": "  Project Notes  "})

        assert updated.name == "Project Notes"

    def test_parent_is_stripped_like_on_create(self, db_session: Session, make_field):
        make_field("County")
        latitude = make_field("Latitude", "Number")
        repo = FieldRepository(db_session)

        assert repo.update(latitude, {"parent": " County "}).parent == "County"
        assert repo.update(latitude, {"parent": "   "}).parent is None

    def test_rename_refused_while_parent_of_another_field(self, db_session: Session, make_field):
        county = make_field("County")
        make_field("Latitude", "Number", parent="County")

        with pytest.raises(ConflictError):
            FieldRepository(db_session).update(county, {"name": "County/Parish"})

        db_session.refresh(county)
        assert county.name == "County"

    def test_rename_refused_while_rule_references_field(self, db_session: Session, power_fields, make_rule):
        make_rule("Project Status", "=", "Commercial Operation", "Require", "Planned COD")

        with pytest.raises(ConflictError):
            FieldRepository(db_session).update(power_fields["Planned COD"], {"name": "COD"})

    def test_type_change_must_keep_rules_valid(self, db_session: Session, power_fields, make_rule):
        make_rule("Nameplate Capacity (MW)", ">", "20", "Modify", "NERC Compliance Required", action_value="true")

        with pytest.raises(ValidationError) as exc_info:
            FieldRepository(db_session).update(power_fields["Nameplate Capacity (MW)"], {"type": "Text"})

        assert exc_info.value.field == "type"

    def test_archive_through_status_checks_children(self, db_session: Session, power_fields):
        with pytest.raises(ConflictError):
            FieldRepository(db_session).update(power_fields["Technology Type"], {"status": FieldStatus.ARCHIVED})

    def test_inactive_child_still_blocks_archiving_parent(self, db_session: Session, make_field):
        make_field("Planned COD", "Date")
        start = make_field("Construction Start Date", "Date", parent="Planned COD")
        repo = FieldRepository(db_session)
        repo.update(start, {"status": FieldStatus.INACTIVE})
        with pytest.raises(ConflictError):
            repo.delete(repo.get_by_name("Planned COD"))


@pytest.mark.unit
class TestFieldRepositoryDelete:

    def test_delete_archives(self, db_session: Session, make_field):
        field = make_field("Notes")
        repo = FieldRepository(db_session)

        archived = repo.delete(field)

        assert archived.status == FieldStatus.ARCHIVED
        assert repo.get_by_name("Notes") is not None
        assert db_session.query(Field).count() == 1

    def test_delete_parent_conflicts_and_changes_nothing(self, db_session: Session, power_fields):
        repo = FieldRepository(db_session)
        parent = power_fields["Technology Type"]
        child = power_fields["Nameplate Capacity (MW)"]
        before = [(f.name, f.parent, f.status) for f in (parent, child)]

        with pytest.raises(ConflictError) as exc_info:
            repo.delete(parent)

        assert "child field" in exc_info.value.reason
        db_session.expire_all()
        after = [
            (f.name, f.parent, f.status)
            for f in (repo.get_by_name("Technology Type"), repo.get_by_name("Nameplate Capacity (MW)"))
        ]
        assert after == before


@pytest.mark.unit
class TestFieldRepositoryQueries:

    def test_hierarchy_groups_by_parent(self, db_session: Session, power_fields):
        repo = FieldRepository(db_session)
        repo.delete(power_fields["Planned COD"])

        hierarchy = repo.get_hierarchy()

        assert [f.name for f in hierarchy["Technology Type"]] == [
            "Energy Storage Capacity (MWh)", "Nameplate Capacity (MW)",
        ]
        root_names = [f.name for f in hierarchy[ROOT_KEY]]
        assert "Technology Type" in root_names
        assert "Planned COD" not in root_names

    def test_children(self, db_session: Session, power_fields):
        children = FieldRepository(db_session).get_children("Technology Type")

        assert {f.name for f in children} == {"Nameplate Capacity (MW)", "Energy Storage Capacity (MWh)"}

    def test_page_filters(self, db_session: Session, power_fields, make_rule):
        make_rule("Project Status", "=", "Commercial Operation", "Require", "Planned COD")
        repo = FieldRepository(db_session)

        assert repo.get_page(search="capacity")["total"] == 2
        assert repo.get_page(type_name="Select")["total"] == 2
        assert repo.get_page(has_values=True)["total"] == 2
        with_rules = repo.get_page(has_rules=True)
        assert {f.name for f in with_rules["items"]} == {"Project Status", "Planned COD"}

    def test_page_search_treats_wildcards_literally(self, db_session: Session, make_field):
        make_field("Ownership %")
        make_field("Ownership Share")
        make_field("Grid_Region")
        make_field("Grid Region")
        repo = FieldRepository(db_session)

        assert [f.name for f in repo.get_page(search="%")["items"]] == ["Ownership %"]
        assert [f.name for f in repo.get_page(search="d_R")["items"]] == ["Grid_Region"]

    def test_page_limits(self, db_session: Session, power_fields):
        page = FieldRepository(db_session).get_page(page=2, limit=4)

        assert page["total"] == 6
        assert page["total_pages"] == 2
        assert len(page["items"]) == 2

    def test_get_or_404(self, db_session: Session, system_field_types):
        from uuid import uuid4

        with pytest.raises(NotFoundError):
            FieldRepository(db_session).get_or_404(uuid4())


@pytest.mark.unit
class TestFieldRepositoryBulkCreate:

    def test_bulk_create_reports_failures(self, db_session: Session, system_field_types):
        repo = FieldRepository(db_session)

        created, errors = repo.bulk_create([
            FieldCreate(name="State/Province", type="Select", values=["Texas", "Nevada"]),
            FieldCreate(name="County", type="Text", parent="State/Province"),
            FieldCreate(name="Hub Height", type="Length"),
            FieldCreate(name="County", type="Text"),
        ])

        assert [f.name for f in created] == ["State/Province", "County"]
        assert [(e["index"], e["error"]) for e in errors] == [(2, "validation_error"), (3, "conflict")]
