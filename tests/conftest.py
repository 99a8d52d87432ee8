import os

import pytest

# Force the in-memory SQLite engine before the database module is imported
os.environ.setdefault("PYTEST_RUNNING", "1")

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402

from task_manager.db import models  # noqa: E402
from task_manager.db.database import SessionLocal, engine, get_db  # noqa: E402
from task_manager.db.storage import SqlDocumentStore  # noqa: E402
from task_manager.services import reset_peer_services_for_tests  # noqa: E402
from task_manager.utils.settings import refresh_settings_cache  # noqa: E402

_SERVICE_ENV = (
    "TASK_MANAGER_DEFAULT_LIMIT",
    "TASK_MANAGER_MAX_LIMIT",
    "PROFILE_MANAGER_URL",
    "SERVICE_API_URL",
    "INTERACTION_PROTOCOL_ENGINE_URL",
    "PEER_CONNECT_TIMEOUT",
    "PEER_READ_TIMEOUT",
    "CORS_ORIGINS",
)


@pytest.fixture(scope="session", autouse=True)
def create_schema_once():
    """Create the document table once per test session."""
    models.Base.metadata.create_all(bind=engine)
    yield
    models.Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def clean_data():
    """Empty every table between tests without dropping metadata."""
    with engine.begin() as connection:
        for table in reversed(models.Base.metadata.sorted_tables):
            connection.execute(table.delete())
    yield


@pytest.fixture(autouse=True)
def service_env(monkeypatch):
    """Disable the peer services and run the cascade on a single worker."""
    for name in _SERVICE_ENV:
        monkeypatch.delenv(name, raising=False)
    # The in-memory engine shares one connection; concurrent sessions would interleave on it
    monkeypatch.setenv("CASCADE_MAX_WORKERS", "1")
    refresh_settings_cache()
    reset_peer_services_for_tests()
    yield
    refresh_settings_cache()
    reset_peer_services_for_tests()


@pytest.fixture
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def store(db_session: Session):
    return SqlDocumentStore(db_session)


@pytest.fixture
def client():
    from task_manager.api.main import app

    def _override_get_db():
        db = SessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def file_session_factory(tmp_path):
    """Sessions on a file backed SQLite database, each with its own connection."""
    file_engine = create_engine(
        f"sqlite+pysqlite:///{tmp_path / 'documents.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    models.Base.metadata.create_all(bind=file_engine)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=file_engine)
    finally:
        file_engine.dispose()
