"""
Tests for subscription and department endpoints.
"""
from app.db.models.subscription import Subscription


def payload(**overrides):
    data = {
        "name": "GitHub Enterprise",
        "price": "2100.00",
        "billing_type": "Yearly",
        "currency": "USD",
        "renewal_date": "2999-01-01",
    }
    data.update(overrides)
    return data


def test_requires_auth(client):
    assert client.get("/subscriptions").status_code == 401


def test_create_derives_status(client, auth_headers):
    active = client.post("/subscriptions", json=payload(), headers=auth_headers)
    expired = client.post("/subscriptions", json=payload(name="Old Tool", renewal_date="2000-01-01"),
                          headers=auth_headers)
    lifetime = client.post("/subscriptions", json=payload(name="Forever", renewal_date=None),
                           headers=auth_headers)

    assert active.status_code == 201
    assert active.json()["status"] == "Active"
    assert expired.json()["status"] == "Inactive"
    assert lifetime.json()["status"] == "Active"
    assert lifetime.json()["renewal_date"] is None


def test_create_duplicate_name(client, auth_headers):
    client.post("/subscriptions", json=payload(), headers=auth_headers)

    response = client.post("/subscriptions", json=payload(name="github enterprise"), headers=auth_headers)

    assert response.status_code == 409


def test_create_unknown_department(client, auth_headers):
    response = client.post("/subscriptions", json=payload(department_id=999), headers=auth_headers)

    assert response.status_code == 400


def test_update_rederives_status(client, auth_headers):
    created = client.post("/subscriptions", json=payload(), headers=auth_headers).json()

    response = client.put(
        f"/subscriptions/{created['id']}",
        json=payload(renewal_date="2000-01-01"),
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json()["status"] == "Inactive"


def test_soft_delete(client, db, auth_headers, test_user):
    created = client.post("/subscriptions", json=payload(), headers=auth_headers).json()

    response = client.delete(f"/subscriptions/{created['id']}", headers=auth_headers)

    assert response.status_code == 200
    assert client.get(f"/subscriptions/{created['id']}", headers=auth_headers).status_code == 404

    db.expire_all()
    row = db.get(Subscription, created["id"])
    assert row.deleted_at is not None
    assert row.deleted_by == test_user.id
    assert row.status == "Inactive"

    # Name is free again once the old row is deleted
    again = client.post("/subscriptions", json=payload(), headers=auth_headers)
    assert again.status_code == 201


def test_list_filters_and_paginates(client, auth_headers, department):
    for i in range(3):
        client.post("/subscriptions", json=payload(name=f"Tool {i}", department_id=department.id),
                    headers=auth_headers)
    client.post("/subscriptions", json=payload(name="Expired", renewal_date="2000-01-01"),
                headers=auth_headers)

    response = client.get("/subscriptions", params={"status": "active", "limit": 2}, headers=auth_headers)

    body = response.json()
    assert body["total"] == 3
    assert body["total_pages"] == 2
    assert len(body["subscriptions"]) == 2
    assert body["subscriptions"][0]["department_name"] == "Engineering"


def test_list_search_by_name(client, auth_headers):
    client.post("/subscriptions", json=payload(name="Slack"), headers=auth_headers)
    client.post("/subscriptions", json=payload(name="Jira"), headers=auth_headers)

    response = client.get("/subscriptions", params={"search": "sla", "column": "name"}, headers=auth_headers)

    names = [s["name"] for s in response.json()["subscriptions"]]
    assert names == ["Slack"]


def test_export_csv(client, auth_headers):
    client.post("/subscriptions", json=payload(renewal_date=None), headers=auth_headers)

    response = client.get("/subscriptions/export", headers=auth_headers)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    lines = response.text.strip().splitlines()
    assert lines[0].startswith('"ID","Name"')
    assert '"GitHub Enterprise"' in lines[1]
    assert '"-"' in lines[1]


def test_departments(client, auth_headers):
    created = client.post("/departments", json={"name": "Finance"}, headers=auth_headers)
    duplicate = client.post("/departments", json={"name": "finance"}, headers=auth_headers)

    assert created.status_code == 201
    assert duplicate.status_code == 409
    assert [d["name"] for d in client.get("/departments", headers=auth_headers).json()] == ["Finance"]
