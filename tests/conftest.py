"""
Pytest fixtures for the bulletin board API tests.

The database is a throwaway SQLite file so worker threads in the race tests
get real, separate connections. DATABASE_URL must be set before `models`
is imported.
"""

import os
import tempfile

_DB_DIR = tempfile.mkdtemp(prefix="bulletin-board-tests-")
os.environ["APP_ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_DB_DIR, "test.db")

from datetime import timedelta

import pytest

from api import create_app
from models import storage
from models.user import UserRole
from services.session_manager import SessionManager
from utils.tokens import TokenCodec

TEST_SECRET = "test-secret-with-at-least-32-bytes!"

ALICE = {
    "username": "alice",
    "password": "Secret123!",
    "firstName": "Alice",
    "lastName": "Liddell",
    "email": "alice@example.com",
}


@pytest.fixture(autouse=True)
def clean_db():
    """Fresh tables for every test."""
    storage.drop_all()
    storage.reload()
    yield
    storage.close()


@pytest.fixture
def codec() -> TokenCodec:
    return TokenCodec(secret=TEST_SECRET, issuer="bulletin-board-api", ttl_seconds=3600)


@pytest.fixture
def manager(codec) -> SessionManager:
    return SessionManager(storage, codec, refresh_ttl=timedelta(days=7))


@pytest.fixture
def alice(manager):
    return manager.register(
        username=ALICE["username"],
        password=ALICE["password"],
        first_name=ALICE["firstName"],
        last_name=ALICE["lastName"],
        email=ALICE["email"],
    )


@pytest.fixture
def bob(manager):
    return manager.register(
        username="bob",
        password="Hunter22!",
        first_name="Bob",
        last_name="Builder",
        email="bob@example.com",
    )


@pytest.fixture
def admin(manager):
    return manager.register(
        username="root_admin",
        password="AdminPass1!",
        first_name="Site",
        last_name="Administrator",
        email="admin@example.com",
        role=UserRole.ADMINISTRATOR,
    )


@pytest.fixture
def app():
    app = create_app("test")
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


def auth_header(access_token: str) -> dict:
    return {"Authorization": f"Bearer {access_token}"}
