import json
from datetime import datetime, timedelta
from itertools import count

import pytest
from flask_jwt_extended import create_access_token

from app import create_app
from config import Config
from models import db
from models.transaction_model import TransactionRecord
from models.trip_model import Trip
from models.user_model import User


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    JWT_SECRET_KEY = "trip-linker-test-secret-0123456789abcdef"
    LOG_LEVEL = "WARNING"
    TRIP_LINK_PROVIDER = "deepseek"
    TRIP_LINK_MODEL = ""
    TRIP_LINK_BATCH_LIMIT = 60
    TRIP_LINK_BATCH_PER_USER = 12
    TRIP_LINK_TRIP_LIMIT = 25
    TRIP_LINK_STALE_MINUTES = 30
    TRIP_LINK_LEASE_SECONDS = 900
    TRIP_LINK_WORKERS = 1


BASE_POSTED_AT = datetime(2026, 3, 10, 12, 0)


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    seq = count(1)

    def _make(name=None):
        n = next(seq)
        user = User(name=name or f"user{n}", email=f"user{n}@example.com", password="x")
        db.session.add(user)
        db.session.commit()
        return user

    return _make


@pytest.fixture
def make_trip(app):
    seq = count(1)

    def _make(user, **kw):
        n = next(seq)
        fields = {
            "id": f"T{n}",
            "name": f"Trip {n}",
            "destination": "Lisbon",
            "start_date": "2026-03-08",
            "end_date": "2026-03-15",
            "currency": "EUR",
            "created_at": BASE_POSTED_AT + timedelta(minutes=n),
        }
        fields.update(kw)
        trip = Trip(user_id=user.id, **fields)
        db.session.add(trip)
        db.session.commit()
        return trip

    return _make


@pytest.fixture
def make_txn(app):
    seq = count(1)

    def _make(user, **kw):
        n = next(seq)
        fields = {
            "id": f"tx{n}",
            "amount": -42.5,
            "currency": "EUR",
            "merchant_name": f"Merchant {n}",
            "description": f"CARD PURCHASE {n}",
            "posted_at": BASE_POSTED_AT - timedelta(hours=n),
            "link_status": "pending",
        }
        fields.update(kw)
        txn = TransactionRecord(user_id=user.id, **fields)
        db.session.add(txn)
        db.session.commit()
        return txn

    return _make


@pytest.fixture
def auth_headers(app):
    def _headers(user):
        token = create_access_token(identity=str(user.id))
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def llm_key(monkeypatch):
    monkeypatch.setenv("DEEPSEEK_API_KEY", "test-key")


def decisions_reply(*entries) -> str:
    """A classifier answer in the fenced-JSON shape the prompt asks for."""
    return "Here you go:\n```json\n" + json.dumps({"results": list(entries)}) + "\n```"


class FakeClassifier:
    def __init__(self):
        self.calls = []
        self.reply = ""

    def __call__(self, provider, prompt, **kwargs):
        self.calls.append({"provider": provider, "prompt": prompt, **kwargs})
        reply = self.reply(prompt) if callable(self.reply) else self.reply
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def classifier(monkeypatch):
    fake = FakeClassifier()
    monkeypatch.setattr("trip_linking.classifier.complete_text", fake)
    return fake
