from __future__ import annotations

ITEM = {"name": "Widget A", "description": "Standard", "quantity": "100", "price": "9.99"}


def test_inventory_requires_authentication(client):
    assert client.get("/inventory").status_code == 401


def test_inventory_crud(client, auth_headers):
    created = client.post("/inventory", json=ITEM, headers=auth_headers)
    assert created.status_code == 201
    item = created.json()
    assert item["name"] == "Widget A"
    assert float(item["quantity"]) == 100
    assert float(item["price"]) == 9.99

    assert client.post("/inventory", json=ITEM, headers=auth_headers).status_code == 409

    updated = client.patch(f"/inventory/{item['id']}", json={"quantity": "1234.56"}, headers=auth_headers)
    assert updated.status_code == 200
    assert float(updated.json()["quantity"]) == 1234.56

    listed = client.get("/inventory", headers=auth_headers).json()
    assert [row["id"] for row in listed] == [item["id"]]

    assert client.delete(f"/inventory/{item['id']}", headers=auth_headers).status_code == 204
    assert client.get(f"/inventory/{item['id']}", headers=auth_headers).status_code == 404
    assert client.get("/inventory", headers=auth_headers).json() == []


def test_inventory_rename_collision(client, auth_headers):
    first = client.post("/inventory", json=ITEM, headers=auth_headers).json()
    client.post("/inventory", json={**ITEM, "name": "Widget B"}, headers=auth_headers)

    resp = client.patch(f"/inventory/{first['id']}", json={"name": "Widget B"}, headers=auth_headers)
    assert resp.status_code == 409


def test_inventory_validation(client, auth_headers):
    assert client.post("/inventory", json={**ITEM, "price": "-1"}, headers=auth_headers).status_code == 422
    assert client.post("/inventory", json={**ITEM, "name": ""}, headers=auth_headers).status_code == 422
    assert client.get("/inventory/9999", headers=auth_headers).status_code == 404


def test_patch_rejects_null_for_required_fields(client, auth_headers):
    item = client.post("/inventory", json=ITEM, headers=auth_headers).json()

    for field in ("name", "description", "quantity", "price"):
        resp = client.patch(f"/inventory/{item['id']}", json={field: None}, headers=auth_headers)
        assert resp.status_code == 422, field

    cleared = client.patch(f"/inventory/{item['id']}", json={"sku": None}, headers=auth_headers)
    assert cleared.status_code == 200
    assert float(cleared.json()["quantity"]) == 100
