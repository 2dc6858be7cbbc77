# tests/conftest.py
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

import app.models  # noqa: F401  registers the tables
from app.core.config import Settings, get_settings
from app.core.errors import StorageError
from app.core.security import CredentialService
from app.db.session import get_session
from app.main import app as fastapi_app
from app.routers.auth import get_credential_service
from app.services.s3 import get_media_store
from app.services.summary import get_summary_service

ADMIN_SECRET = "let-me-in"
JWT_SECRET = "test-secret"


class FakeMediaStore:
    """In-memory stand-in for the S3 media store."""

    def __init__(self):
        self.assets = {}
        self.uploads = []
        self.destroyed = []
        self.fail_upload = False
        self.fail_destroy = False

    def upload(self, file_content, file_name, folder="misc", content_type="image/jpeg"):
        if self.fail_upload:
            raise StorageError("Failed to upload image")
        asset_id = f"{folder}/{len(self.uploads) + 1}-{file_name}"
        self.assets[asset_id] = file_content
        self.uploads.append(asset_id)
        return f"https://media.test/{asset_id}", asset_id

    def destroy(self, asset_id):
        if not asset_id:
            return True
        if self.fail_destroy:
            return False
        self.assets.pop(asset_id, None)
        self.destroyed.append(asset_id)
        return True


class FakeSummaryService:
    def __init__(self):
        self.calls = []

    def summarize(self, title, content=None):
        self.calls.append((title, content))
        return f"A short excerpt about {title}."


@pytest.fixture()
def settings():
    return Settings(
        DATABASE_URL="sqlite://",
        JWT_SECRET_KEY=JWT_SECRET,
        JWT_EXPIRE_MINUTES=60,
        ADMIN_ACCESS_TOKEN=ADMIN_SECRET,
    )


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture()
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture()
def credentials():
    # Minimum bcrypt cost keeps the suite fast
    return CredentialService(rounds=4)


@pytest.fixture()
def media():
    return FakeMediaStore()


@pytest.fixture()
def summarizer():
    return FakeSummaryService()


@pytest.fixture()
def client(engine, settings, credentials, media, summarizer):
    def get_test_session():
        with Session(engine) as session:
            yield session

    fastapi_app.dependency_overrides[get_session] = get_test_session
    fastapi_app.dependency_overrides[get_settings] = lambda: settings
    fastapi_app.dependency_overrides[get_credential_service] = lambda: credentials
    fastapi_app.dependency_overrides[get_media_store] = lambda: media
    fastapi_app.dependency_overrides[get_summary_service] = lambda: summarizer
    yield TestClient(fastapi_app)
    fastapi_app.dependency_overrides.clear()


def register(client, name="Alice", email="alice@example.com", password="secret123", **extra):
    data = {"name": name, "email": email, "password": password, "bio": f"{name} writes."}
    data.update(extra)
    return client.post("/api/auth/register", data=data)


def login(client, email="alice@example.com", password="secret123"):
    resp = client.post("/api/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()["token"]


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def alice_token(client):
    assert register(client).status_code == 201
    return login(client)


@pytest.fixture()
def bob_token(client):
    assert register(client, name="Bob", email="bob@example.com").status_code == 201
    return login(client, email="bob@example.com")


@pytest.fixture()
def admin_token(client):
    resp = register(client, name="Root", email="root@example.com", adminAccessToken=ADMIN_SECRET)
    assert resp.status_code == 201
    return login(client, email="root@example.com")
