import pytest

from unlinked.domain.common.exceptions import NotFound, ValidationError


@pytest.mark.asyncio
async def test_create_and_lookup(identity):
    user = await identity.create_user(username="Alice", name="Alice A", email="a@example.com")

    by_id = await identity.get(user.id)
    by_name = await identity.find_by_username("alice")

    assert by_id.username == "Alice"
    assert by_name is not None and by_name.id == user.id
    assert by_id.email == "a@example.com"
    assert by_id.connections == frozenset()


@pytest.mark.asyncio
async def test_username_is_unique_case_insensitively(identity):
    await identity.create_user(username="bob", name="Bob")
    with pytest.raises(ValidationError) as exc_info:
        await identity.create_user(username="BOB", name="Other Bob")
    assert exc_info.value.reason == "username_taken"


@pytest.mark.asyncio
async def test_blank_username_rejected(identity):
    with pytest.raises(ValidationError):
        await identity.create_user(username="  ", name="Nobody")


@pytest.mark.asyncio
async def test_missing_user(identity):
    assert await identity.find_by_id("ghost") is None
    assert await identity.find_by_username("ghost") is None
    with pytest.raises(NotFound):
        await identity.get("ghost")


@pytest.mark.asyncio
async def test_connection_writes_are_idempotent_per_side(identity, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")

    assert await identity.add_connection(alice.id, bob.id) is True
    assert await identity.add_connection(alice.id, bob.id) is False
    assert await identity.is_connected(alice.id, bob.id)
    assert not await identity.is_connected(bob.id, alice.id)

    assert await identity.remove_connection(alice.id, bob.id) is True
    assert await identity.remove_connection(alice.id, bob.id) is False
    assert await identity.get_connection_ids(alice.id) == set()


@pytest.mark.asyncio
async def test_summaries_skip_unknown_ids(identity, make_user):
    alice = await make_user("alice")

    summaries = await identity.get_summaries([alice.id, "ghost", alice.id])

    assert list(summaries) == [alice.id]
    assert summaries[alice.id].name == "Alice"
