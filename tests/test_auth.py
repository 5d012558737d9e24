from datetime import datetime, timedelta, timezone

import jwt

from conftest import PASSWORD, bearer, login
from financespro.accounts import set_status
from financespro.extensions import db
from financespro.models import User


def _register(client, **overrides):
    body = {"email": "a@x.ch", "password": PASSWORD, "full_name": "Anne", "company": "A SA"}
    body.update(overrides)
    return client.post("/api/auth/register", json=body)


def test_register_returns_user_and_token(client):
    resp = _register(client, email="Anne@X.ch")
    assert resp.status_code == 201

    body = resp.get_json()
    assert body["status"] == "success"
    user = body["data"]["user"]
    assert user["email"] == "anne@x.ch"
    assert user["company_name"] == "A SA"
    assert user["account_type"] == "entreprise"
    assert "password_hash" not in user
    assert body["data"]["token"]


def test_register_duplicate_email_is_rejected(client):
    assert _register(client).status_code == 201

    resp = _register(client, email="A@X.CH")
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Cet email est déjà utilisé"


def test_register_validation_errors(client):
    resp = client.post("/api/auth/register", json={"email": "not-an-email", "password": "short"})
    assert resp.status_code == 400

    body = resp.get_json()
    assert body["status"] == "error"
    fields = {e["field"] for e in body["errors"]}
    assert fields == {"email", "password", "full_name", "company"}


def test_register_cannot_create_administrator(client):
    resp = _register(client, account_type="administrateur")
    assert resp.status_code == 400
    assert resp.get_json()["errors"][0]["field"] == "account_type"


def test_login_and_me(client, register):
    register()
    headers = login(client, "a@x.ch")

    resp = client.get("/api/auth/me", headers=headers)
    assert resp.status_code == 200
    assert resp.get_json()["data"]["user"]["email"] == "a@x.ch"


def test_login_rejects_bad_credentials(client, register):
    register()

    wrong = client.post("/api/auth/login", json={"email": "a@x.ch", "password": "wrong-password"})
    unknown = client.post("/api/auth/login", json={"email": "b@x.ch", "password": PASSWORD})

    assert wrong.status_code == 401
    assert unknown.status_code == 401
    assert wrong.get_json()["message"] == unknown.get_json()["message"]


def test_login_requires_fields(client):
    resp = client.post("/api/auth/login", json={})
    assert resp.status_code == 400


def test_inactive_account_cannot_login(app, client, register):
    register()
    with app.app_context():
        user = User.query.filter_by(email="a@x.ch").one()
        set_status(user.id, "suspended")

    resp = client.post("/api/auth/login", json={"email": "a@x.ch", "password": PASSWORD})
    assert resp.status_code == 403


def test_missing_token(client):
    resp = client.get("/api/auth/me")
    assert resp.status_code == 401
    assert resp.get_json() == {"status": "error", "message": "Token d'accès requis"}


def test_malformed_token(client):
    resp = client.get("/api/clients", headers=bearer("not-a-jwt"))
    assert resp.status_code == 401
    assert resp.get_json()["message"] == "Token invalide"


def test_token_signed_with_another_secret(client, register):
    register()
    now = datetime.now(timezone.utc)
    token = jwt.encode({"id": "user_x", "iat": now, "exp": now + timedelta(hours=1)}, "other", algorithm="HS256")

    assert client.get("/api/clients", headers=bearer(token)).status_code == 401


def test_expired_token(app, client):
    past = datetime.now(timezone.utc) - timedelta(hours=25)
    token = jwt.encode(
        {"id": "user_x", "email": "a@x.ch", "role": "entreprise", "iat": past, "exp": past + timedelta(hours=24)},
        app.config["JWT_SECRET_KEY"],
        algorithm="HS256",
    )

    resp = client.get("/api/clients", headers=bearer(token))
    assert resp.status_code == 401
    assert resp.get_json()["message"] == "Token invalide"


def test_token_claims(app, client, register):
    headers = register()
    token = headers["Authorization"].split(" ", 1)[1]

    claims = jwt.decode(token, app.config["JWT_SECRET_KEY"], algorithms=["HS256"])
    assert claims["email"] == "a@x.ch"
    assert claims["role"] == "entreprise"
    assert claims["exp"] - claims["iat"] == 24 * 3600


def test_me_after_account_deleted(app, client, register):
    headers = register()
    with app.app_context():
        db.session.delete(User.query.filter_by(email="a@x.ch").one())
        db.session.commit()

    resp = client.get("/api/auth/me", headers=headers)
    assert resp.status_code == 401
    assert resp.get_json()["message"] == "Utilisateur introuvable"
