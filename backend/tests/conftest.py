import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import get_db, init_db
from main import app
from services import auth as auth_service
from services.catalog import CatalogRepository


@pytest.fixture
def engine():
    # One shared in-memory connection so every session sees the same data
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def user(db):
    return auth_service.register(db, "alice", "alice@example.com", "secret123").user


@pytest.fixture
def catalog(db, user):
    return CatalogRepository(db, user.id)


def register_user(client, username="bob", email="bob@example.com", password="secret123"):
    r = client.post("/api/v1/auth/register", json={"username": username, "email": email, "password": password})
    assert r.status_code == 201, r.text
    return r.json()["data"]


@pytest.fixture
def auth_headers(client):
    token = register_user(client)["token"]
    return {"Authorization": f"Bearer {token}"}


def create_product(client, headers, **fields):
    body = {"code": "SKU1", "name": "Widget", "stock": 0, "minStock": 5, "price": "9.99"}
    body.update(fields)
    r = client.post("/api/v1/products", json=body, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()["data"]
