import os
import tempfile

# 1. Set required environment variables for testing (before any app import)
os.environ.pop("PROJECT_ID", None)
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="psycheverse-uploads-")
os.environ["LOGIN_RATE_LIMIT"] = "1000/minute"
os.environ["ENABLE_TRACING"] = "false"
os.environ["STRIPE_API_KEY"] = ""

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

# Import main AFTER setting up the environment
from main import app  # noqa: E402
from database import Base, get_db  # noqa: E402
from security import create_access_token  # noqa: E402
import crud  # noqa: E402

ADMIN_USERNAME = "admin"
ADMIN_EMAIL = "admin@psycheverse.org"
ADMIN_PASSWORD = "admin123"


@pytest.fixture
def session_factory():
    """
    Fresh in-memory SQLite database per test.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory, db_session):
    """
    TestClient whose requests use the per-test database, seeded like a real startup.
    """
    crud.seed_defaults(db_session, ADMIN_USERNAME, ADMIN_EMAIL, ADMIN_PASSWORD)

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides = {}


@pytest.fixture
def admin_headers(client):
    res = client.post("/api/auth/login", json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD})
    assert res.status_code == 200
    return {"Authorization": f"Bearer {res.json()['token']}"}


@pytest.fixture
def agent_headers():
    """
    A valid token for a non-admin caller, such as a status polling agent.
    """
    token = create_access_token(42, "poller", "agent")
    return {"Authorization": f"Bearer {token}"}
