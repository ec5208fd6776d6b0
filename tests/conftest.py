import json
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ.pop("IDENTITY_SECRET_KEY", None)
os.environ.pop("IDENTITY_JWKS_URL", None)
os.environ.pop("ENABLE_SEED_ENDPOINT", None)

import pytest
from fastapi.testclient import TestClient

from authentication.repository import create_user
from authentication.security import create_admin_token, hash_password
from db.base import Base
from db.session import SessionLocal, engine
from main import app
from services.company_repository import create_company
from services.identity_provider import IdentityProviderClient, get_identity_client


class FakeTransport:
    """Scripted stand-in for the identity provider's HTTP API."""

    def __init__(self):
        self.calls = []
        self.responses = {}

    def queue(self, method, path, status, payload):
        self.responses.setdefault((method, path), []).append((status, payload))

    def __call__(self, method, url, headers, body, timeout):
        path = url.split("/v1", 1)[1]
        self.calls.append((method, path, json.loads(body) if body else None))
        queued = self.responses.get((method, path))
        if not queued:
            raise AssertionError(f"unexpected call {method} {path}")
        status, payload = queued.pop(0)
        if isinstance(payload, Exception):
            raise payload
        return status, json.dumps(payload).encode("utf-8")


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_company(db):
    def _make(**overrides):
        values = {
            "name": "Precision Tech AB",
            "description": "CNC-bearbetning och precisionstillverkning",
            "categories": ["CNC-bearbetning"],
            "location": "Borås",
            "region": "Västra Götaland",
            "city": "Borås",
        }
        values.update(overrides)
        company = create_company(db, values)
        db.commit()
        db.refresh(company)
        return company

    return _make


@pytest.fixture
def admin_user(db):
    user = create_user(db, username="admin", password_hash=hash_password("admin123"), role="super_admin")
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def admin_headers(admin_user):
    return {"Authorization": f"Bearer {create_admin_token(admin_user)}"}


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def identity_client(fake_transport):
    return IdentityProviderClient(
        secret_key="sk_test",
        api_url="https://idp.test/v1",
        transport=fake_transport,
        backoff_seconds=0,
    )


@pytest.fixture
def use_identity_client(identity_client):
    app.dependency_overrides[get_identity_client] = lambda: identity_client
    yield identity_client
    app.dependency_overrides.pop(get_identity_client, None)
