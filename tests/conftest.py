import pytest

from financespro import create_app
from financespro.accounts import create_administrator
from financespro.extensions import db

PASSWORD = "pw12345678"


@pytest.fixture
def app(tmp_path):
    """Application bound to a throw-away SQLite file."""
    app = create_app(
        {
            "TESTING": True,
            "SECRET_KEY": "test-secret",
            "JWT_SECRET_KEY": "test-jwt-secret",
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'financespro-test.db'}",
            "LOG_LEVEL": "WARNING",
        }
    )
    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.fixture
def client(app):
    return app.test_client()


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def login(client, email: str, password: str = PASSWORD) -> dict:
    resp = client.post("/api/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.get_json()
    return bearer(resp.get_json()["data"]["token"])


@pytest.fixture
def register(client):
    """Register a tenant and return its bearer headers."""

    def _register(email="a@x.ch", password=PASSWORD, full_name="Anne Exemple", company="A SA"):
        resp = client.post(
            "/api/auth/register",
            json={"email": email, "password": password, "full_name": full_name, "company": company},
        )
        assert resp.status_code == 201, resp.get_json()
        return bearer(resp.get_json()["data"]["token"])

    return _register


@pytest.fixture
def admin_headers(app, client):
    with app.app_context():
        create_administrator("admin@financespro.ch", PASSWORD, "Admin", "FinancesPro Suisse")
    return login(client, "admin@financespro.ch")


@pytest.fixture
def make_client(client):
    """Create a client for the given tenant and return its id."""

    def _make(headers, company="C SA", email="c@c.ch", **extra):
        resp = client.post("/api/clients", json={"company": company, "email": email, **extra}, headers=headers)
        assert resp.status_code == 201, resp.get_json()
        return resp.get_json()["data"]["id"]

    return _make


def facture_payload(client_id, **overrides):
    payload = {
        "client_id": client_id,
        "client_name": "C SA",
        "date": "2024-01-01",
        "echeance": "2024-01-31",
        "articles": [{"description": "Svc", "qty": 1, "price": 200}],
        "subtotal": 200,
        "tva": 15.4,
        "total": 200,
        "status": "pending",
    }
    payload.update(overrides)
    return payload
