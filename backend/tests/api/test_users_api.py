import pytest

from unlinked.domain.identity.store import IdentityStore


@pytest.mark.asyncio
async def test_suggestions_endpoint(api_client, make_user, auth_headers):
    alice = await make_user("alice")
    bob = await make_user("bob")
    carol = await make_user("carol")
    identity = IdentityStore()
    await identity.add_connection(alice.id, bob.id)
    await identity.add_connection(bob.id, alice.id)

    response = await api_client.get("/users/suggestions", headers=auth_headers(alice))

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert [user["id"] for user in body["users"]] == [carol.id]


@pytest.mark.asyncio
async def test_public_profile_endpoint(api_client, make_user, auth_headers):
    alice = await make_user("alice", email="alice@example.com")
    bob = await make_user("bob")

    response = await api_client.get("/users/alice", headers=auth_headers(bob))

    assert response.status_code == 200
    user = response.json()["user"]
    assert user["id"] == alice.id
    assert user["connections"] == []
    assert "email" not in user
    assert "alice@example.com" not in response.text


@pytest.mark.asyncio
async def test_public_profile_unknown_user(api_client, make_user, auth_headers):
    bob = await make_user("bob")

    response = await api_client.get("/users/ghost", headers=auth_headers(bob))

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_users_endpoints_require_auth(api_client):
    assert (await api_client.get("/users/suggestions")).status_code == 401
    assert (await api_client.get("/users/alice")).status_code == 401
