"""Pytest fixtures and configuration for studydash tests."""

import pytest
from datetime import date, datetime
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
import uuid

from studydash.database.database import Base
from studydash.database.instance_repository import InstanceRepository
from studydash.database.pattern_repository import RecurrencePatternRepository
from studydash.models.items import ItemKind
from studydash.models.recurrence import RecurrencePattern
from studydash.recurrence.service import RecurrenceService


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(scope="function")
def db_session(test_user_id):
    """Create a database session for testing.

    Uses an in-memory SQLite database that is created fresh for each test.
    Also creates a test user in the database.
    """
    from sqlalchemy import event
    from studydash.database.models import UserDB

    # Create engine with StaticPool for in-memory database
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    # Foreign keys are needed for ON DELETE SET NULL on pattern removal
    @event.listens_for(engine, "connect")
    def set_sqlite_pragmas(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    # Create all tables
    Base.metadata.create_all(bind=engine)

    # Create session
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    # Create test user (required for foreign key constraints)
    now = datetime.utcnow()
    session.add(UserDB(id=test_user_id, email="test@example.com", name="Test User", created_at=now, updated_at=now))
    session.commit()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def test_user_id():
    """Test user ID for multi-user testing."""
    return "test-user-123"


@pytest.fixture
def other_user_id(db_session):
    """A second user, for ownership isolation tests."""
    from studydash.database.models import UserDB

    now = datetime.utcnow()
    db_session.add(UserDB(id="other-user-456", email="other@example.com", name="Other", created_at=now, updated_at=now))
    db_session.commit()
    return "other-user-456"


@pytest.fixture
def pattern_repository(db_session: Session):
    return RecurrencePatternRepository(db_session)


@pytest.fixture
def task_repository(db_session: Session):
    return InstanceRepository(db_session, ItemKind.TASK)


@pytest.fixture
def service(db_session: Session):
    return RecurrenceService(db_session)


@pytest.fixture
def now():
    """Fixed clock: Thursday 2026-01-01 09:00."""
    return datetime(2026, 1, 1, 9, 0)


@pytest.fixture
def sample_pattern_base(test_user_id, now):
    """Base pattern data (weekly on Mondays, task kind) that can be overridden."""
    return {
        "id": str(uuid.uuid4()),
        "user_id": test_user_id,
        "item_kind": ItemKind.TASK,
        "recurrence_type": "weekly",
        "interval_days": None,
        "days_of_week": [1],
        "days_of_month": [],
        "start_date": date(2026, 1, 1),
        "end_date": None,
        "occurrence_count": None,
        "instance_count": 0,
        "last_generated": None,
        "is_active": True,
        "template": {"title": "Weekly review"},
        "created_at": now,
        "updated_at": now,
    }


@pytest.fixture
def sample_pattern(sample_pattern_base):
    return RecurrencePattern(**sample_pattern_base)


@pytest.fixture
def test_user(test_user_id):
    """Create a test user object."""
    from studydash.models.user import User
    now = datetime.utcnow()
    return User(
        id=test_user_id,
        email="test@example.com",
        name="Test User",
        created_at=now,
        updated_at=now,
    )


@pytest.fixture
def test_client(db_session: Session, test_user):
    """Create a FastAPI test client with overridden database dependency and authentication."""
    from studydash.api.app import app
    from studydash.database.database import get_db
    from studydash.auth.dependencies import get_current_user

    # Override the get_db dependency to use our test database session
    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close the session here, let the fixture handle it

    # Override authentication to return test user
    def override_get_current_user():
        return test_user

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user

    with TestClient(app) as client:
        yield client

    # Clean up dependency overrides
    app.dependency_overrides.clear()
