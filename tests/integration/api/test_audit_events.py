import pytest
from httpx import AsyncClient

from src.domain.entities import UserRole


@pytest.mark.asyncio
async def test_key_lifecycle_is_audited_in_order(
    client: AsyncClient, make_user, auth_headers, settle
):
    """create, use, revoke and a rejected use show up newest first"""
    user = await make_user()
    headers = auth_headers(user)

    created = (await client.post("/api-keys", json={"name": "k"}, headers=headers)).json()
    key_id = created["api_key"]["id"]
    used = await client.get(
        "/v1/whoami",
        headers={"x-api-key": created["key"], "user-agent": "curl/8.4.0", "x-request-id": "req-used"},
    )
    assert used.status_code == 200
    assert used.headers["x-request-id"] == "req-used"
    await client.patch(f"/api-keys/{key_id}/revoke", headers=headers)
    rejected = await client.get("/v1/whoami", headers={"x-api-key": created["key"]})
    assert rejected.status_code == 401

    await settle()
    response = await client.get("/audit/me", headers=headers)

    assert response.status_code == 200
    page = response.json()
    assert [e["action"] for e in page["items"]] == ["key_revoked", "key_used", "key_created"]
    assert all(e["resource_id"] == key_id for e in page["items"])
    assert all(e["category"] == "key" for e in page["items"])

    key_used = page["items"][1]
    assert key_used["user_agent"] == "curl/8.4.0"
    assert key_used["device_info"] == "curl"
    assert key_used["request_id"] == "req-used"
    assert key_used["metadata"]["keyPrefix"] == created["key"][:8]
    assert key_used["metadata"]["path"] == "/v1/whoami"


@pytest.mark.asyncio
async def test_audit_never_stores_secrets(client: AsyncClient, make_user, auth_headers, settle):
    user = await make_user()
    headers = auth_headers(user)
    created = (await client.post("/api-keys", json={"name": "k"}, headers=headers)).json()
    await client.get("/v1/whoami", headers={"x-api-key": created["key"], "cookie": "sid=topsecret"})

    await settle()
    response = await client.get("/audit/me", headers=headers)

    assert created["key"] not in response.text
    assert "topsecret" not in response.text
    assert headers["Authorization"].split()[1] not in response.text


@pytest.mark.asyncio
async def test_admin_audit_requires_admin_role(client: AsyncClient, make_user, auth_headers):
    user = await make_user()

    response = await client.get("/audit", headers=auth_headers(user))

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "INSUFFICIENT_ROLE"


@pytest.mark.asyncio
async def test_admin_audit_filters_and_pagination(
    client: AsyncClient, make_user, auth_headers, settle
):
    admin = await make_user("admin@example.com", role=UserRole.admin)
    alice = await make_user("alice@example.com")
    bob = await make_user("bob@example.com")

    for i in range(3):
        await client.post("/api-keys", json={"name": f"a{i}"}, headers=auth_headers(alice))
    bob_key = (
        await client.post("/api-keys", json={"name": "b"}, headers=auth_headers(bob))
    ).json()
    await client.delete(f"/api-keys/{bob_key['api_key']['id']}", headers=auth_headers(bob))

    await settle()
    admin_headers = auth_headers(admin)

    everything = (await client.get("/audit", headers=admin_headers)).json()
    assert everything["total"] == 5

    by_actor = (await client.get(f"/audit?actor={alice.id}&limit=2", headers=admin_headers)).json()
    assert by_actor["total"] == 3
    assert len(by_actor["items"]) == 2

    page_two = (
        await client.get(f"/audit?actor={alice.id}&limit=2&page=2", headers=admin_headers)
    ).json()
    assert len(page_two["items"]) == 1

    deleted = (await client.get("/audit?action=key_deleted", headers=admin_headers)).json()
    assert deleted["total"] == 1
    assert deleted["items"][0]["actor_id"] == str(bob.id)

    by_category = (await client.get("/audit?category=user", headers=admin_headers)).json()
    assert by_category["total"] == 0

    unknown_action = await client.get("/audit?action=made_up", headers=admin_headers)
    assert unknown_action.status_code == 422


@pytest.mark.asyncio
async def test_request_trail(client: AsyncClient, make_user, auth_headers, settle):
    admin = await make_user("root@example.com", role=UserRole.superadmin)
    user = await make_user()
    await client.post(
        "/api-keys", json={"name": "k"}, headers={**auth_headers(user), "x-request-id": "trace-1"}
    )

    await settle()
    response = await client.get("/audit/requests/trace-1", headers=auth_headers(admin))

    assert response.status_code == 200
    assert [e["action"] for e in response.json()] == ["key_created"]
