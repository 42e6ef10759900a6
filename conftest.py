import pytest
import os
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

# --- Alembic Imports ---
from alembic.config import Config
from alembic import command
# --- End Alembic Imports ---

# Import app and dependency functions first
from main import app, get_db, get_current_user

# Import database components needed for setup
from database import Base
import models

TEST_DATABASE_URL = "sqlite:///./job-board-test.db"
ALEMBIC_INI = os.path.join(os.path.dirname(os.path.abspath(__file__)), "alembic.ini")

connect_args = (
    {"check_same_thread": False} if TEST_DATABASE_URL.startswith("sqlite") else {}
)
test_engine = create_engine(TEST_DATABASE_URL, connect_args=connect_args)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@event.listens_for(test_engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON;")
    cursor.close()


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create the test database from models and stamp with Alembic head."""
    db_path = TEST_DATABASE_URL.split("///")[-1]
    if os.path.exists(db_path):
        os.unlink(db_path)

    # --- Create schema directly from models --- #
    Base.metadata.create_all(bind=test_engine)

    # --- Stamp the database with the latest Alembic revision --- #
    alembic_cfg = Config(ALEMBIC_INI)
    alembic_cfg.set_main_option("sqlalchemy.url", TEST_DATABASE_URL)
    command.stamp(alembic_cfg, "head")

    yield  # Tests run here

    test_engine.dispose()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture(scope="function")
def db_session(setup_test_database):
    """Yields a SQLAlchemy session and empties the tables afterwards."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.query(models.Job).delete()
        session.query(models.User).delete()
        session.commit()
        session.close()


# Override the get_db dependency for tests
@pytest.fixture(scope="function")
def override_get_db():
    """Override the get_db dependency to use our test database.

    This creates a new session for each API call, allowing proper
    transaction handling within FastAPI endpoints.
    """

    def _override_get_db():
        db = TestSessionLocal()
        try:
            yield db
        finally:
            db.close()

    original = app.dependency_overrides.get(get_db)
    app.dependency_overrides[get_db] = _override_get_db

    yield

    if original:
        app.dependency_overrides[get_db] = original
    else:
        del app.dependency_overrides[get_db]


@pytest.fixture(scope="function")
def test_client(override_get_db):
    """Provides a test client that does not follow redirects."""
    return TestClient(app, follow_redirects=False)


@pytest.fixture(scope="function")
def login_as():
    """Authenticate every request as the given user (or ``None`` for anonymous)."""

    def _login(user):
        if user is not None:
            # Detached copy so requests never touch the test's own session
            user = models.User(
                id=user.id,
                email=user.email,
                display_name=user.display_name,
                cognito_sub=user.cognito_sub,
                role=user.role,
            )
        app.dependency_overrides[get_current_user] = lambda: user

    yield _login

    app.dependency_overrides.pop(get_current_user, None)


# --- Test data factories --- #
@pytest.fixture(scope="function")
def make_user(db_session):
    """Create a user directly in the test database."""
    counter = {"n": 0}

    def _make_user(role: models.Role = models.Role.USER, email: str = None, user_id: int = None) -> models.User:
        counter["n"] += 1
        email = email or f"user{counter['n']}-{role.value.lower()}@example.com"
        user = models.User(
            id=user_id,
            email=email,
            cognito_sub=f"sub-for-{email.replace('@', '-')}",
            display_name=email.split("@")[0],
            role=role,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture(scope="function")
def make_job(db_session):
    """Create a job owned by ``owner`` directly in the test database."""

    def _make_job(owner: models.User, status: models.JobStatus = models.JobStatus.PUBLISHED, **fields) -> models.Job:
        values = {
            "title": "Dog walker",
            "reward": "20",
            "location": "Springfield",
            "description": "Walk two friendly dogs every morning",
            "contact_email": "owner@example.com",
            "contact_phone": "555-0199",
        }
        values.update(fields)
        job = models.Job(user_id=owner.id, status=status, **values)
        db_session.add(job)
        db_session.commit()
        db_session.refresh(job)
        return job

    return _make_job
