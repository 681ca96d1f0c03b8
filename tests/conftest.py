# flake8: noqa
import os
import tempfile

# Point settings at throwaway locations before the app module is imported
os.environ.setdefault("RECIPI_DB_URL", "sqlite://")
os.environ.setdefault("RECIPI_MEDIA_DIR", tempfile.mkdtemp(prefix="recipi-media-"))

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from recipi import app as app_module
from recipi import models
from recipi.client import ClientContext, Session


SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
# Use StaticPool so the same in-memory database is shared across connections
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app_module.app.dependency_overrides[app_module.get_db] = override_get_db


@pytest.fixture(autouse=True)
def fresh_tables():
    models.Base.metadata.create_all(bind=engine)
    yield
    models.Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    return TestClient(app_module.app)


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def register(client):
    """Register a user and return its bearer token."""

    def _register(username="maria", email=None, password="secret-pw"):
        res = client.post(
            "/users",
            json={
                "user": {
                    "username": username,
                    "email": email or f"{username}@example.com",
                    "password": password,
                }
            },
        )
        assert res.status_code == 201, res.text
        return res.json()["user"]["token"]

    return _register


@pytest.fixture
def token(register):
    return register()


@pytest.fixture
def auth(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def context(token):
    """Client context logged in as 'maria'."""
    return ClientContext(session=Session(token))


CHILI = {
    "name": "Chili Verde",
    "description": "Pork in green sauce",
    "prepTime": "20",
    "cookTime": "120",
    "difficulty": "medium",
    "servings": "6",
    "notes": "Better the next day",
    "ingredients": '["3 lb pork shoulder", "1 lb tomatillos"]',
    "steps[0]": "Roast tomatillos",
    "steps[1]": "Simmer pork",
    "tags[0]": "mexican",
    "tags[1]": "spicy",
}


@pytest.fixture
def chili(client, auth):
    res = client.post("/recipes", data=CHILI, headers=auth)
    assert res.status_code == 201, res.text
    return res.json()
