"""Shared fixtures: an app on in-memory SQLite with a recording email sender."""

import pytest

from tamales.main import create_app
from tamales.models import db
from tamales.services.store_service import Store


class RecordingEmailSender:
    """Stands in for ResendEmailSender and keeps every message it was asked to send."""

    def __init__(self):
        self.sent = []
        self.fail_with = None

    def send(self, to, subject, html):
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append({"to": to, "subject": subject, "html": html})
        return {"id": f"msg_{len(self.sent)}"}


TEST_CONFIG = {
    "TESTING": True,
    "SQLALCHEMY_DATABASE_URI": "sqlite://",
    "SQLALCHEMY_ENGINE_OPTIONS": {},
    "RESEND_API_KEY": None,
    "FROM_EMAIL": "Tamales <orders@example.com>",
    "ADMIN_EMAIL": "admin@example.com",
}


@pytest.fixture
def email_sender():
    return RecordingEmailSender()


@pytest.fixture
def app(email_sender):
    app = create_app(TEST_CONFIG, email_sender=email_sender)
    yield app
    with app.app_context():
        db.drop_all()


@pytest.fixture
def bare_app():
    """App without an injected sender, so requests build a real ResendEmailSender."""
    app = create_app(TEST_CONFIG)
    yield app
    with app.app_context():
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app):
    with app.app_context():
        yield Store(db.session)


@pytest.fixture
def create_user(client):
    def _create(**fields):
        payload = {"action": "createUser", "name": "Ana", "email": "ana@example.com"}
        payload.update(fields)
        response = client.post("/api", json=payload)
        assert response.status_code == 200, response.get_json()
        return response

    return _create


@pytest.fixture
def create_order(client):
    def _create(**fields):
        payload = {
            "action": "createOrder",
            "user_email": "a@b.com",
            "user_name": "Ana",
            "user_phone": "555-0100",
            "items": [{"id": 1, "name": "Pork", "qty": 2, "total": 20}],
            "grand_total": 20,
        }
        payload.update(fields)
        return client.post("/api", json=payload)

    return _create
