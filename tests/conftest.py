from typing import Callable, Generator
import pytest
from sqlalchemy import create_engine, StaticPool
from sqlalchemy.orm import sessionmaker, Session
from fastapi.testclient import TestClient
from faker import Faker

from main import app
from models.base import Base
from models import Field, FieldRule, FieldType, Project
from db.session import get_db
from core.settings import Settings
from repositories.field_repository import FieldRepository
from repositories.field_rule_repository import FieldRuleRepository
from schemas.field import FieldCreate
from schemas.field_rule import FieldRuleCreate
from services.seed_service import seed_system_field_types

fake = Faker()

# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={
        "check_same_thread": False,
    },
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create a test database session."""
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create a test client with database session override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def test_settings():
    """Settings for a local SQLite database."""
    return Settings(
        DATABASE_HOST=None,
        SQLITE_PATH=":memory:",
        FIELD_PARENT_MAX_DEPTH=4,
        SEED_ON_STARTUP=False,
    )


@pytest.fixture
def system_field_types(db_session: Session) -> dict[str, FieldType]:
    """Seed the ten system field types."""
    seed_system_field_types(db_session)
    return {field_type.name: field_type for field_type in db_session.query(FieldType).all()}


@pytest.fixture
def sample_project(db_session: Session) -> Project:
    """Create a sample project for testing."""
    project = Project(name=f"{fake.city()} Solar Farm")
    db_session.add(project)
    db_session.commit()
    db_session.refresh(project)
    return project


@pytest.fixture
def make_field(db_session: Session, system_field_types) -> Callable[..., Field]:
    """Create fields through the registry; defaults to a Text field with a fake name."""
    repo = FieldRepository(db_session)

    def _make_field(name: str | None = None, type: str = "Text", **kwargs) -> Field:
        return repo.create(FieldCreate(
            name=name or fake.unique.catch_phrase(),
            type=type,
            **kwargs,
        ))

    return _make_field


@pytest.fixture
def make_rule(db_session: Session) -> Callable[..., FieldRule]:
    """Create rules through the rule store."""
    repo = FieldRuleRepository(db_session)

    def _make_rule(condition_field: str, operator: str, value: str, action: str, target_field: str, **kwargs) -> FieldRule:
        return repo.create(FieldRuleCreate(
            condition_field=condition_field,
            operator=operator,
            value=value,
            action=action,
            target_field=target_field,
            **kwargs,
        ))

    return _make_rule


@pytest.fixture
def power_fields(make_field) -> dict[str, Field]:
    """A slice of the power-generation schema used across tests."""
    fields = [
        make_field("Technology Type", "Select", values=["Solar PV", "Natural Gas", "Coal", "Hybrid Solar+Storage"]),
        make_field("Nameplate Capacity (MW)", "Number", parent="Technology Type", is_required=True),
        make_field("Energy Storage Capacity (MWh)", "Number", parent="Technology Type"),
        make_field("NERC Compliance Required", "Boolean"),
        make_field("Project Status", "Select", values=["Permitting", "Under Construction", "Commercial Operation"]),
        make_field("Planned COD", "Date"),
    ]
    return {field.name: field for field in fields}
