import os
import re
import uuid

from cryptography.fernet import Fernet

# Test configuration must be in place before the application modules are imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.setdefault("DB_ENCRYPTION_KEY", Fernet.generate_key().decode())

import pytest
from fastapi.testclient import TestClient

from config import Settings
from errors import EmailDeliveryError
from mailer import Mailer
from main import create_app

PASSWORD = "testpassword123"


class FakeMailer(Mailer):
    """Collects outgoing mail instead of talking to an SMTP server."""

    def __init__(self, settings):
        super().__init__(settings)
        self.outbox = []
        self.fail = False

    def send(self, to, subject, body):
        if self.fail:
            raise EmailDeliveryError("Email could not be sent")
        self.outbox.append({"to": to, "subject": subject, "body": body})

    def last_token(self, path: str) -> str:
        match = re.search(rf"/{path}/([0-9a-f]+)", self.outbox[-1]["body"])
        assert match, f"no /{path}/ link in the last mail"
        return match.group(1)


@pytest.fixture
def settings():
    return Settings.from_env()


@pytest.fixture
def mailer(settings):
    return FakeMailer(settings)


@pytest.fixture
def app(settings, mailer):
    return create_app(settings, mailer)


@pytest.fixture
def client(app):
    # Host header must match TrustedHostMiddleware
    with TestClient(app, base_url="http://localhost:8000") as test_client:
        yield test_client


@pytest.fixture
def db(app):
    session = app.state.session_factory()
    yield session
    session.close()


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_user(client):
    """Register a user with a random email and return ``(headers, user)``."""

    def _make_user(name="Test User", password=PASSWORD):
        email = f"test_{uuid.uuid4().hex[:12]}@example.com"
        response = client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
        assert response.status_code == 201, response.text
        # Requests authenticate through explicit headers only
        client.cookies.clear()
        body = response.json()
        return auth_headers(body["token"]), body["user"]

    return _make_user
