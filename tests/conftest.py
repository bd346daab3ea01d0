import os

# Configuration is read at import time
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ["LOG_FILE"] = ""
os.environ.pop("SMTP_HOST", None)
os.environ.pop("API_PREFIX", None)

import mongomock
import pytest
from fastapi.testclient import TestClient

from docbook.db.client import get_db, init_db
from docbook.main import app
from docbook.services.email_service import EmailDeliveryError
from docbook.services.notification_service import NotificationDispatcher, get_notification_dispatcher


class RecordingTransport:
    def __init__(self):
        self.sent = []

    def send(self, to, subject, text, html):
        self.sent.append({"to": to, "subject": subject, "text": text, "html": html})
        return {"id": f"test-{len(self.sent)}", "success": True}


class FailingTransport:
    def __init__(self):
        self.attempts = 0

    def send(self, to, subject, text, html):
        self.attempts += 1
        raise EmailDeliveryError("SMTP server unreachable")


@pytest.fixture
def db():
    database = mongomock.MongoClient()["docbook_test"]
    init_db(database)
    return database


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def client(db, transport):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_notification_dispatcher] = lambda: NotificationDispatcher(transport=transport)
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def register(client):
    def _register(name="Pat Patient", email="pat@example.com", password="secret123", role="patient"):
        response = client.post(
            "/auth/register",
            json={"name": name, "email": email, "password": password, "role": role},
        )
        assert response.status_code == 201, response.text
        body = response.json()
        return body["user"], {"Authorization": f"Bearer {body['token']}"}
    return _register


@pytest.fixture
def doctor(client, register):
    user, headers = register(name="Gregory House", email="house@example.com", role="doctor")
    response = client.post(
        "/doctor/profile",
        json={
            "specialty": "Cardiology",
            "experience": 12,
            "bio": "Diagnostics",
            "consultationFee": 150,
            "location": {"city": "Princeton", "state": "NJ"},
        },
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return {"user": user, "headers": headers, "profile": response.json()["profile"]}


@pytest.fixture
def patient(register):
    user, headers = register()
    return {"user": user, "headers": headers}
