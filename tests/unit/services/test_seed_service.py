import pytest
from sqlalchemy.orm import Session

from models import Field, FieldRule, FieldType
from services.field_schema_service import FieldSchemaService
from services.seed_service import DEMO_FIELDS, DEMO_RULES, seed_demo_schema, seed_system_field_types


@pytest.mark.unit
class TestSeedService:

    def test_seed_system_field_types(self, db_session: Session):
        assert seed_system_field_types(db_session) == 10

        field_types = db_session.query(FieldType).all()
        assert all(field_type.is_system for field_type in field_types)
        percentage = next(t for t in field_types if t.name == "Percentage")
        assert percentage.validation_spec == {"kind": "percentage", "min": 0, "max": 100}

    def test_seed_demo_schema(self, db_session: Session):
        fields, rules = seed_demo_schema(db_session)

        assert fields == len(DEMO_FIELDS)
        assert rules == len(DEMO_RULES)
        assert db_session.query(Field).count() == len(DEMO_FIELDS)
        assert db_session.query(FieldRule).count() == len(DEMO_RULES)

    def test_seed_demo_schema_twice_creates_nothing(self, db_session: Session):
        seed_demo_schema(db_session)

        assert seed_demo_schema(db_session) == (0, 0)

    def test_demo_schema_evaluates(self, db_session: Session):
        seed_demo_schema(db_session)

        result = FieldSchemaService(db_session).evaluate(None, {
            "Technology Type": "Hybrid Solar+Storage",
            "Nameplate Capacity (MW)": "120",
            "Energy Storage Capacity (MWh)": "480",
            "State/Province": "Nevada",
        })

        states = result.states
        assert result.warnings == []
        assert states["Energy Storage Capacity (MWh)"].enabled is True
        assert states["Storage Duration (Hours)"].required is True
        assert states["NERC Compliance Required"].value == "true"
        assert states["County"].required is True
        assert states["Emissions Rate (lbs CO2/MWh)"].visible is True
