from conftest import PASSWORD, facture_payload
from financespro.extensions import db
from financespro.models import User


def _tenant_with_paid_invoice(client, register, make_client, email="alice@x.ch", company="Alice SA"):
    headers = register(email, company=company)
    client_id = make_client(headers)
    client.post("/api/services", json={"name": "Audit", "price": 10}, headers=headers)
    client.post("/api/factures", json=facture_payload(client_id, status="paid"), headers=headers)
    client.post("/api/factures", json=facture_payload(client_id, status="pending"), headers=headers)
    return headers


def test_admin_routes_reject_tenants(client, register):
    headers = register()
    for path in ("/api/admin/stats", "/api/admin/users", "/api/admin/companies", "/api/admin/recent-activity"):
        resp = client.get(path, headers=headers)
        assert resp.status_code == 403, path
        assert resp.get_json()["message"] == "Accès refusé. Privilèges administrateur requis."


def test_admin_routes_require_token(client):
    assert client.get("/api/admin/stats").status_code == 401


def test_deleted_admin_gets_401(app, client, admin_headers):
    with app.app_context():
        db.session.delete(User.query.filter_by(email="admin@financespro.ch").one())
        db.session.commit()

    assert client.get("/api/admin/stats", headers=admin_headers).status_code == 401


def test_platform_stats(client, register, make_client, admin_headers):
    _tenant_with_paid_invoice(client, register, make_client)
    _tenant_with_paid_invoice(client, register, make_client, email="bob@x.ch", company="Bob GmbH")

    data = client.get("/api/admin/stats", headers=admin_headers).get_json()["data"]
    assert data == {
        "totalUsers": 3,
        "totalCompanies": 2,
        "totalInvoices": 4,
        "totalRevenue": 400.0,
        "activeUsers": 3,
        "pendingInvoices": 2,
    }


def test_users_and_user_detail(client, register, make_client, admin_headers):
    _tenant_with_paid_invoice(client, register, make_client)

    users = client.get("/api/admin/users", headers=admin_headers).get_json()["data"]
    assert {u["email"] for u in users} == {"alice@x.ch", "admin@financespro.ch"}
    assert all("password_hash" not in u for u in users)

    alice = next(u for u in users if u["email"] == "alice@x.ch")
    detail = client.get(f"/api/admin/users/{alice['id']}", headers=admin_headers).get_json()["data"]
    assert detail["company"] == "Alice SA"
    assert detail["stats"] == {"clients": 1, "services": 1, "invoices": 2, "revenue": 200.0}

    assert client.get("/api/admin/users/user_0_zzzzz", headers=admin_headers).status_code == 404


def test_companies(client, register, make_client, admin_headers):
    _tenant_with_paid_invoice(client, register, make_client)

    companies = client.get("/api/admin/companies", headers=admin_headers).get_json()["data"]
    assert len(companies) == 1
    company = companies[0]
    assert company["company"] == "Alice SA"
    assert company["contact_name"] == "Anne Exemple"
    assert company["total_clients"] == 1
    assert company["total_services"] == 1
    assert company["total_invoices"] == 2
    assert company["total_revenue"] == 200.0


def test_recent_activity(client, register, make_client, admin_headers):
    _tenant_with_paid_invoice(client, register, make_client)

    activity = client.get("/api/admin/recent-activity", headers=admin_headers).get_json()["data"]
    types = [a["type"] for a in activity]
    assert types.count("user_registered") == 2
    assert types.count("invoice_created") == 2

    timestamps = [a["timestamp"] for a in activity]
    assert timestamps == sorted(timestamps, reverse=True)

    invoice = next(a for a in activity if a["type"] == "invoice_created")
    assert invoice["company"] == "Alice SA"
    assert invoice["details"] == "200.00 CHF"


def test_update_user_status(client, register, admin_headers):
    register()
    users = client.get("/api/admin/users", headers=admin_headers).get_json()["data"]
    tenant_id = next(u["id"] for u in users if u["email"] == "a@x.ch")

    resp = client.put(f"/api/admin/users/{tenant_id}/status", json={"status": "inactive"}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.get_json()["data"]["status"] == "inactive"

    login = client.post("/api/auth/login", json={"email": "a@x.ch", "password": PASSWORD})
    assert login.status_code == 403

    bad = client.put(f"/api/admin/users/{tenant_id}/status", json={"status": "banned"}, headers=admin_headers)
    assert bad.status_code == 400

    missing = client.put("/api/admin/users/user_0_zzzzz/status", json={"status": "active"}, headers=admin_headers)
    assert missing.status_code == 404
