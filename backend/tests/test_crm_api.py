from conftest import TODAY


def test_sponsor_contract_flow(client, auth_headers, workspace):
    sponsor = client.post("/api/sponsors", json={"name": "  Apex Nutrition "}, headers=auth_headers).json()
    assert sponsor["name"] == "Apex Nutrition"

    response = client.post(
        "/api/contracts",
        json={"sponsor_id": sponsor["id"], "start_date": "2026-01-01", "end_date": "2026-12-31", "base_pay": "15000"},
        headers=auth_headers,
    )
    assert response.status_code == 201

    contracts = client.get(f"/api/contracts?sponsor_id={sponsor['id']}", headers=auth_headers).json()
    assert [c["end_date"] for c in contracts] == ["2026-12-31"]

    assert client.delete(f"/api/sponsors/{sponsor['id']}", headers=auth_headers).status_code == 204
    assert client.get("/api/contracts", headers=auth_headers).json() == []


def test_contract_dates_validated(client, auth_headers, sponsor):
    response = client.post(
        "/api/contracts",
        json={"sponsor_id": sponsor.id, "start_date": "2026-06-01", "end_date": "2026-01-01"},
        headers=auth_headers,
    )

    assert response.status_code == 400


def test_contract_negative_base_pay_rejected(client, auth_headers, sponsor):
    response = client.post(
        "/api/contracts",
        json={"sponsor_id": sponsor.id, "base_pay": "-1"},
        headers=auth_headers,
    )

    assert response.status_code == 422


def test_contact_touch(client, auth_headers, sponsor):
    contact = client.post(
        "/api/contacts",
        json={"name": "Pat Payable", "sponsor_id": sponsor.id, "is_billing": True},
        headers=auth_headers,
    ).json()
    assert contact["last_touch_date"] is None

    touched = client.post(f"/api/contacts/{contact['id']}/touch", headers=auth_headers).json()

    assert touched["last_touch_date"] == TODAY.isoformat()


def test_obligation_status(client, auth_headers, workspace):
    obligation = client.post(
        "/api/obligations",
        json={"title": "Race recap video", "type": "content", "due_date": "2026-03-20"},
        headers=auth_headers,
    ).json()
    assert obligation["status"] == "pending"

    done = client.patch(f"/api/obligations/{obligation['id']}/status", json={"status": "done"}, headers=auth_headers)
    assert done.json()["status"] == "done"

    assert client.get("/api/obligations", headers=auth_headers).json() == []
    assert len(client.get("/api/obligations?show_all=true", headers=auth_headers).json()) == 1


def test_obligation_type_validated(client, auth_headers, workspace):
    response = client.post("/api/obligations", json={"title": "X", "type": "party"}, headers=auth_headers)

    assert response.status_code == 422


def test_billing_profile_upsert(client, auth_headers, workspace):
    assert client.get("/api/settings/billing", headers=auth_headers).json() is None

    saved = client.put(
        "/api/settings/billing",
        json={"business_name": "Test Racing LLC", "account_number_last4": "1234", "city": " "},
        headers=auth_headers,
    ).json()
    assert saved["business_name"] == "Test Racing LLC"
    assert saved["city"] is None

    updated = client.put("/api/settings/billing", json={"business_name": "Renamed"}, headers=auth_headers).json()
    assert updated["id"] == saved["id"]
    assert updated["business_name"] == "Renamed"
    assert updated["account_number_last4"] is None


def test_billing_last4_length(client, auth_headers, workspace):
    response = client.put("/api/settings/billing", json={"account_number_last4": "12345"}, headers=auth_headers)

    assert response.status_code == 422
