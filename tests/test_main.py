from fastapi.testclient import TestClient
from sqlalchemy import inspect

from escuela import main
from tests.conftest import make_engine


def test_startup_creates_tables(monkeypatch):
    engine = make_engine(create_tables=False)
    monkeypatch.setattr(main, "engine", engine)

    with TestClient(main.app) as client:
        assert client.get("/health").json() == {"status": "ok"}

    tables = set(inspect(engine).get_table_names())
    assert {"users", "bootstrap_claims", "institutions", "grades"} <= tables
    engine.dispose()
