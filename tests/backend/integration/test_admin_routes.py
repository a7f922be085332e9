import pytest


pytestmark = pytest.mark.asyncio


async def test_admin_user_management_flow(client, create_admin, auth_header_factory):
    admin, admin_password = await create_admin()
    admin_headers = await auth_header_factory(admin.email, admin_password)

    # Create a normal user via public endpoint
    user_payload = {"name": "Member One", "email": "member1@example.com", "password": "Member#123"}
    register_resp = await client.post("/api/v1/auth/register", json=user_payload)
    user_id = register_resp.json()["userId"]

    list_resp = await client.get("/api/v1/admin/users", headers=admin_headers, params={"offset": 0, "limit": 20})
    assert list_resp.status_code == 200
    body = list_resp.json()
    assert body["total"] == 2
    member = next(item for item in body["items"] if item["email"] == "member1@example.com")
    assert member["isActive"] is False
    assert "password_hash" not in member

    detail_resp = await client.get(f"/api/v1/admin/users/{user_id}", headers=admin_headers)
    assert detail_resp.status_code == 200
    assert detail_resp.json()["user"]["name"] == "Member One"

    activate = await client.patch(f"/api/v1/admin/users/{user_id}/active", headers=admin_headers, json={"active": True})
    assert activate.status_code == 200
    assert activate.json()["user"]["isActive"] is True

    deactivate = await client.patch(f"/api/v1/admin/users/{user_id}/active", headers=admin_headers, json={"active": False})
    assert deactivate.json()["user"]["isActive"] is False


async def test_admin_cannot_deactivate_self(client, create_admin, auth_header_factory):
    admin, admin_password = await create_admin()
    headers = await auth_header_factory(admin.email, admin_password)

    resp = await client.patch(f"/api/v1/admin/users/{admin.id}/active", headers=headers, json={"active": False})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "CANNOT_DEACTIVATE_SELF"

    # Same id in another spelling is still the admin's own account
    upper = await client.patch(
        f"/api/v1/admin/users/{str(admin.id).upper()}/active", headers=headers, json={"active": False}
    )
    assert upper.status_code == 400
    assert upper.json()["error"]["code"] == "CANNOT_DEACTIVATE_SELF"
    assert (await client.get("/api/v1/auth/me", headers=headers)).json()["data"]["isActive"] is True


async def test_admin_unknown_user(client, create_admin, auth_header_factory):
    admin, admin_password = await create_admin()
    headers = await auth_header_factory(admin.email, admin_password)

    detail = await client.get("/api/v1/admin/users/00000000-0000-0000-0000-000000000000", headers=headers)
    assert detail.status_code == 400
    assert detail.json()["error"]["code"] == "USER_NOT_FOUND"

    patch = await client.patch("/api/v1/admin/users/not-a-uuid/active", headers=headers, json={"active": True})
    assert patch.status_code == 400
    assert patch.json()["error"]["code"] == "USER_NOT_FOUND"


async def test_non_admin_forbidden(client, create_user, auth_header_factory):
    user, password = await create_user()
    headers = await auth_header_factory(user.email, password)

    resp = await client.get("/api/v1/admin/users", headers=headers)
    assert resp.status_code == 403
    assert resp.json()["success"] is False
    assert resp.json()["error"]["code"] == "FORBIDDEN_ADMIN_ONLY"


async def test_admin_requires_auth(client):
    client.cookies.clear()
    resp = await client.get("/api/v1/admin/users")
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "AUTH_REQUIRED"
