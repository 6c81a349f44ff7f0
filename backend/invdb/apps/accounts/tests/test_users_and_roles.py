from __future__ import annotations

from invdb.apps.accounts import models, services


def _viewer_headers(client):
    resp = client.post(
        "/auth/register",
        json={"username": "viewer", "email": "viewer@example.com", "password": "secret123"},
    )
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}, resp.json()["user"]["id"]


def test_default_roles_are_idempotent(db_session):
    assert services.ensure_default_roles(db_session) == 3
    db_session.commit()
    assert services.ensure_default_roles(db_session) == 0
    aliases = [role.alias for role in services.list_roles(db_session)]
    assert aliases == ["admin", "manager", "viewer"]


def test_user_crud(client, auth_headers, admin_user):
    _, user_id = _viewer_headers(client)

    listed = client.get("/users", headers=auth_headers).json()
    assert {u["username"] for u in listed} == {"admin", "viewer"}

    updated = client.patch(
        f"/users/{user_id}",
        json={"role_alias": models.MANAGER_ROLE_ALIAS},
        headers=auth_headers,
    )
    assert updated.status_code == 200
    assert updated.json()["role_alias"] == models.MANAGER_ROLE_ALIAS

    clash = client.patch(f"/users/{user_id}", json={"username": "admin"}, headers=auth_headers)
    assert clash.status_code == 409

    missing_role = client.patch(f"/users/{user_id}", json={"role_alias": "ghost"}, headers=auth_headers)
    assert missing_role.status_code == 404

    reset = client.patch(
        f"/users/{user_id}/reset-password",
        json={"new_password": "brandnew1"},
        headers=auth_headers,
    )
    assert reset.status_code == 200
    login = client.post("/auth/login", json={"username": "viewer", "password": "brandnew1"})
    assert login.status_code == 200

    deleted = client.delete(f"/users/{user_id}", headers=auth_headers)
    assert deleted.status_code == 200
    assert client.get(f"/users/{user_id}", headers=auth_headers).status_code == 404
    assert client.post("/auth/login", json={"username": "viewer", "password": "brandnew1"}).status_code == 401


def test_role_crud_requires_admin(client, auth_headers, admin_user):
    viewer_headers, _ = _viewer_headers(client)
    payload = {"alias": "auditor", "name": "Auditor", "description": "Reads reports"}

    assert client.post("/roles", json=payload, headers=viewer_headers).status_code == 403

    created = client.post("/roles", json=payload, headers=auth_headers)
    assert created.status_code == 201
    assert created.json()["alias"] == "auditor"

    assert client.post("/roles", json=payload, headers=auth_headers).status_code == 409

    fetched = client.get("/roles/auditor", headers=viewer_headers)
    assert fetched.status_code == 200
    assert fetched.json()["users"] == []

    renamed = client.patch("/roles/auditor", json={"name": "Senior Auditor"}, headers=auth_headers)
    assert renamed.json()["name"] == "Senior Auditor"

    collision = client.patch("/roles/auditor", json={"alias": "viewer"}, headers=auth_headers)
    assert collision.status_code == 409

    assert client.delete("/roles/auditor", headers=auth_headers).status_code == 200
    assert client.get("/roles/auditor", headers=auth_headers).status_code == 404


def test_role_with_users_cannot_be_deleted(client, auth_headers, admin_user):
    _viewer_headers(client)

    resp = client.delete("/roles/viewer", headers=auth_headers)
    assert resp.status_code == 400

    role = client.get("/roles/viewer", headers=auth_headers).json()
    assert [u["username"] for u in role["users"]] == ["viewer"]


def test_patch_rejects_null_for_required_fields(client, auth_headers, admin_user):
    _, user_id = _viewer_headers(client)
    for field in ("username", "email", "is_active"):
        resp = client.patch(f"/users/{user_id}", json={field: None}, headers=auth_headers)
        assert resp.status_code == 422, field

    resp = client.patch(f"/roles/{models.DEFAULT_ROLE_ALIAS}", json={"name": None}, headers=auth_headers)
    assert resp.status_code == 422
