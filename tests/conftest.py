import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from kanban.db import db_session, get_db, init_db, make_engine
from kanban.main import app


@pytest.fixture()
def session_factory():
    engine = make_engine("sqlite://", poolclass=StaticPool)
    init_db(engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        yield from db_session(session_factory)

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def register(client):
    def _register(name: str, email: str) -> dict:
        res = client.post("/v1/users", json={"name": name, "email": email})
        assert res.status_code == 201, res.text
        return {"Authorization": f"Bearer {res.json()['id']}"}

    return _register


@pytest.fixture()
def alice(register):
    return register("Alice", "alice@example.com")


@pytest.fixture()
def bob(register):
    return register("Bob", "bob@example.com")


@pytest.fixture()
def make_board(client):
    def _make_board(headers: dict, name: str = "Sprint", columns: tuple = ()) -> dict:
        board = client.post("/v1/boards", json={"name": name}, headers=headers).json()
        board["columns"] = [
            client.post(f"/v1/boards/{board['id']}/columns", json={"name": col}, headers=headers).json()
            for col in columns
        ]
        return board

    return _make_board


@pytest.fixture()
def view(client):
    def _view(board_id: str, headers: dict) -> dict:
        res = client.get(f"/v1/boards/{board_id}", headers=headers)
        assert res.status_code == 200, res.text
        return res.json()

    return _view
