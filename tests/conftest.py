import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from escuela import models  # noqa: F401
from escuela.database import Base, get_db
from escuela.main import app


def make_engine(create_tables=True):
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    if create_tables:
        Base.metadata.create_all(bind=engine)
    return engine


def auth_headers(user_id, email=None, first_name=None, last_name=None):
    headers = {"Authorization": f"Bearer {user_id}"}
    if email:
        headers["X-User-Email"] = email
    if first_name:
        headers["X-User-First-Name"] = first_name
    if last_name:
        headers["X-User-Last-Name"] = last_name
    return headers


@pytest.fixture
def engine():
    engine = make_engine()
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def _client_for(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def client(session_factory):
    yield _client_for(session_factory)
    app.dependency_overrides.clear()


@pytest.fixture
def broken_client():
    """Cliente cuya base no tiene tablas: toda consulta falla."""
    engine = make_engine(create_tables=False)
    yield _client_for(sessionmaker(bind=engine))
    app.dependency_overrides.clear()
    engine.dispose()


@pytest.fixture
def admin(client):
    headers = auth_headers("user_admin", "admin@escuela.test", "Ana", "Perez")
    resp = client.post("/api/auth/initialize", headers=headers)
    assert resp.json()["user"]["role"] == "admin"
    return headers


@pytest.fixture
def teacher(client, admin):
    headers = auth_headers("user_teacher", "profe@escuela.test", "Luis", "Gomez")
    resp = client.post("/api/auth/initialize", headers=headers)
    assert resp.json()["user"]["role"] == "profesor"
    return headers
