import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from crowdsolve.main import app, get_db
from crowdsolve.auth_utils import create_access_token
from crowdsolve.database import Base
from crowdsolve.models import User
from crowdsolve.store import EntityKind, EntityStore


# -------------------------------------------------------
# ⚙️ Test Database Setup
# -------------------------------------------------------
# Use in-memory SQLite for fast, isolated tests
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# -------------------------------------------------------
# 🧪 Fixtures
# -------------------------------------------------------
@pytest.fixture(scope="function")
def db_session():
    """Create a new database session for each test."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        # Drop tables to ensure clean slate for next test
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """Create a new test client for each test with DB override."""

    def override_get_db():
        try:
            yield db_session
        finally:
            db_session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    del app.dependency_overrides[get_db]


@pytest.fixture
def store(db_session):
    return EntityStore(db_session)


@pytest.fixture
def make_user(db_session):
    """Insert a user directly and return its id."""

    def _make_user(username, **fields):
        user = User(
            username=username,
            email=f"{username}@example.com",
            password_hash="hashedpassword",
            **fields,
        )
        db_session.add(user)
        db_session.commit()
        return user.user_id

    return _make_user


@pytest.fixture
def make_problem(store):
    def _make_problem(creator_id, title="Broken streetlight", **fields):
        fields.setdefault("description", "The light on Main St has been out for a week.")
        fields.setdefault("location", "Main St")
        fields.setdefault("category", "infrastructure")
        problem = store.create(EntityKind.PROBLEM, created_by=creator_id, title=title, **fields)
        return problem.problem_id

    return _make_problem


@pytest.fixture
def auth_headers():
    def _auth_headers(user_id):
        token = create_access_token({"user_id": user_id})
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers
