from conftest import facture_payload


def _invoice(client, headers, client_id, price, status):
    resp = client.post(
        "/api/factures",
        json=facture_payload(client_id, articles=[{"description": "Svc", "qty": 1, "price": price}], status=status),
        headers=headers,
    )
    assert resp.status_code == 201, resp.get_json()


def test_tenant_dashboard_figures(client, register, make_client):
    headers = register()
    client_id = make_client(headers)

    _invoice(client, headers, client_id, 100, "paid")
    _invoice(client, headers, client_id, 200, "paid")
    _invoice(client, headers, client_id, 50, "pending")
    _invoice(client, headers, client_id, 80, "overdue")

    resp = client.get("/api/factures/stats/dashboard", headers=headers)
    assert resp.status_code == 200
    assert resp.get_json()["data"] == {
        "totalFactures": 4,
        "totalPaid": 300.0,
        "totalPending": 50.0,
        "overdueCount": 1,
        "totalClients": 1,
    }


def test_dashboard_is_scoped_to_the_caller(client, register, make_client):
    alice = register("alice@x.ch")
    bob = register("bob@x.ch")
    _invoice(client, alice, make_client(alice), 100, "paid")

    data = client.get("/api/factures/stats/dashboard", headers=bob).get_json()["data"]
    assert data == {"totalFactures": 0, "totalPaid": 0.0, "totalPending": 0.0, "overdueCount": 0, "totalClients": 0}


def test_dashboard_reflects_changes_immediately(client, register, make_client):
    headers = register()
    client_id = make_client(headers)
    _invoice(client, headers, client_id, 100, "pending")

    before = client.get("/api/factures/stats/dashboard", headers=headers).get_json()["data"]
    assert before["totalPending"] == 100.0

    facture_id = client.get("/api/factures", headers=headers).get_json()["data"][0]["id"]
    client.put(f"/api/factures/{facture_id}", json=facture_payload(client_id, status="paid"), headers=headers)

    after = client.get("/api/factures/stats/dashboard", headers=headers).get_json()["data"]
    assert after["totalPending"] == 0.0
    assert after["totalPaid"] == 200.0
