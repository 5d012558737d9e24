from conftest import facture_payload, login
from financespro.extensions import get_backend
from financespro.models import User


def test_index(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.get_json() == {
        "message": "Welcome to FinancesPro Suisse API",
        "version": "1.0.0",
        "status": "active",
    }


def test_unknown_route_uses_error_envelope(client):
    resp = client.get("/api/nope")
    assert resp.status_code == 404
    assert resp.get_json() == {"status": "error", "message": "Route introuvable"}


def test_unexpected_error_is_generic(app, client, register, monkeypatch):
    headers = register()
    app.config["EXPOSE_ERRORS"] = False

    def boom(owner_id):
        raise RuntimeError("database exploded")

    with app.app_context():
        monkeypatch.setattr(get_backend().dashboard, "tenant_dashboard", boom)

    resp = client.get("/api/factures/stats/dashboard", headers=headers)
    assert resp.status_code == 500
    assert resp.get_json() == {"status": "error", "message": "Erreur interne du serveur"}

    app.config["EXPOSE_ERRORS"] = True
    resp = client.get("/api/factures/stats/dashboard", headers=headers)
    body = resp.get_json()
    assert body["message"] == "database exploded"
    assert any("RuntimeError" in line for line in body["stack"])


# ---------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------
def test_init_db_command(app):
    result = app.test_cli_runner().invoke(args=["init-db"])
    assert result.exit_code == 0
    assert "Database tables created." in result.output


def test_create_admin_command(app, client):
    runner = app.test_cli_runner()
    result = runner.invoke(args=["create-admin", "--email", "Root@FinancesPro.ch", "--password", "pw12345678"])
    assert result.exit_code == 0, result.output

    with app.app_context():
        assert User.query.filter_by(email="root@financespro.ch").one().account_type == "administrateur"

    headers = login(client, "root@financespro.ch")
    assert client.get("/api/admin/stats", headers=headers).status_code == 200

    again = runner.invoke(args=["create-admin", "--email", "root@financespro.ch", "--password", "pw12345678"])
    assert again.exit_code != 0
    assert "Cet email est déjà utilisé" in again.output


def test_create_admin_rejects_short_password(app):
    result = app.test_cli_runner().invoke(args=["create-admin", "--email", "root@x.ch", "--password", "short"])
    assert result.exit_code != 0


def test_mark_overdue_command(app, client, register, make_client):
    headers = register()
    client_id = make_client(headers)
    late = client.post("/api/factures", json=facture_payload(client_id), headers=headers).get_json()["data"]
    on_time = client.post(
        "/api/factures",
        json=facture_payload(client_id, date="2024-02-01", echeance="2024-03-31"),
        headers=headers,
    ).get_json()["data"]

    result = app.test_cli_runner().invoke(args=["mark-overdue", "--today", "2024-02-15"])
    assert result.exit_code == 0, result.output
    assert "1 invoice(s) marked overdue." in result.output

    late = client.get(f"/api/factures/{late['id']}", headers=headers).get_json()["data"]
    assert late["status"] == "overdue"
    assert late["status_label"] == "en retard"
    assert client.get(f"/api/factures/{on_time['id']}", headers=headers).get_json()["data"]["status"] == "pending"

    stats = client.get("/api/factures/stats/dashboard", headers=headers).get_json()["data"]
    assert stats["overdueCount"] == 1
