import asyncio

import pytest

from unlinked.domain.common.exceptions import (
    AlreadyConnected,
    DuplicateRequest,
    InvalidOperation,
    InvalidState,
    NotFound,
    Unauthorized,
)
from unlinked.domain.notifications.ledger import NotificationLedger
from unlinked.domain.social.audit import CONNECTION_EVENTS_STREAM
from unlinked.domain.social.edges import EdgeJournal
from unlinked.domain.social.models import RequestStatus
from unlinked.domain.social.service import ConnectionService


@pytest.fixture
def service():
    return ConnectionService()


@pytest.mark.asyncio
async def test_create_request_persists_pending_and_notifies_recipient(service, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")

    request = await service.create_request(alice, bob.id)

    assert request.status is RequestStatus.PENDING
    assert request.sender_id == alice.id
    assert request.recipient_id == bob.id
    stored = await service.ledger.get(request.id)
    assert stored is not None and stored.status is RequestStatus.PENDING

    notifications = await NotificationLedger().list_for_user(bob.id, limit=10)
    assert [(n.type.value, n.related_user_id) for n in notifications] == [("connectionRequest", alice.id)]


@pytest.mark.asyncio
async def test_create_request_rejects_self(service, make_user):
    alice = await make_user("alice")
    with pytest.raises(InvalidOperation):
        await service.create_request(alice, alice.id)


@pytest.mark.asyncio
async def test_create_request_unknown_recipient(service, make_user):
    alice = await make_user("alice")
    with pytest.raises(NotFound):
        await service.create_request(alice, "no-such-user")


@pytest.mark.asyncio
async def test_create_request_when_already_connected(service, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    request = await service.create_request(alice, bob.id)
    await service.accept_request(bob, request.id)

    with pytest.raises(AlreadyConnected):
        await service.create_request(alice, bob.id)
    with pytest.raises(AlreadyConnected):
        await service.create_request(bob, alice.id)


@pytest.mark.asyncio
async def test_duplicate_request_same_direction(service, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    await service.create_request(alice, bob.id)

    with pytest.raises(DuplicateRequest) as exc_info:
        await service.create_request(alice, bob.id)
    assert exc_info.value.reason == "already_sent"


@pytest.mark.asyncio
async def test_reverse_request_allowed_by_default(service, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    first = await service.create_request(alice, bob.id)
    second = await service.create_request(bob, alice.id)

    assert first.id != second.id
    # Both directions pending: the oldest request decides the status
    status = await service.get_connection_status(alice, bob.id)
    assert status.status == "pending"


@pytest.mark.asyncio
async def test_reverse_request_blocked_in_strict_mode(make_user):
    service = ConnectionService(strict_pending_pairs=True)
    alice = await make_user("alice")
    bob = await make_user("bob")
    await service.create_request(alice, bob.id)

    with pytest.raises(DuplicateRequest) as exc_info:
        await service.create_request(bob, alice.id)
    assert exc_info.value.reason == "reverse_pending"


@pytest.mark.asyncio
async def test_concurrent_creates_leave_one_pending(service, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")

    results = await asyncio.gather(
        service.create_request(alice, bob.id),
        service.create_request(alice, bob.id),
        return_exceptions=True,
    )

    created = [r for r in results if not isinstance(r, BaseException)]
    failed = [r for r in results if isinstance(r, BaseException)]
    assert len(created) == 1
    assert len(failed) == 1 and isinstance(failed[0], DuplicateRequest)
    pending = await service.ledger.list_incoming_pending(bob.id)
    assert [r.id for r in pending] == [created[0].id]


@pytest.mark.asyncio
async def test_new_request_allowed_after_rejection(service, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    first = await service.create_request(alice, bob.id)
    await service.reject_request(bob, first.id)

    second = await service.create_request(alice, bob.id)
    assert second.id != first.id
    assert (await service.ledger.get(first.id)).status is RequestStatus.REJECTED


@pytest.mark.asyncio
async def test_accept_links_both_sides_and_notifies_sender(service, make_user, identity):
    alice = await make_user("alice")
    bob = await make_user("bob")
    request = await service.create_request(alice, bob.id)

    accepted = await service.accept_request(bob, request.id)

    assert accepted.status is RequestStatus.ACCEPTED
    assert await identity.is_connected(alice.id, bob.id)
    assert await identity.is_connected(bob.id, alice.id)
    assert await EdgeJournal().pending() == []
    assert await service.ledger.list_incoming_pending(bob.id) == []

    notifications = await NotificationLedger().list_for_user(alice.id, limit=10)
    assert [(n.type.value, n.related_user_id) for n in notifications] == [("connectionAccepted", bob.id)]


@pytest.mark.asyncio
async def test_accept_requires_recipient(service, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    carol = await make_user("carol")
    request = await service.create_request(alice, bob.id)

    with pytest.raises(Unauthorized):
        await service.accept_request(carol, request.id)
    with pytest.raises(Unauthorized):
        await service.accept_request(alice, request.id)
    assert (await service.ledger.get(request.id)).status is RequestStatus.PENDING


@pytest.mark.asyncio
async def test_accept_missing_request(service, make_user):
    bob = await make_user("bob")
    with pytest.raises(NotFound):
        await service.accept_request(bob, "missing")


@pytest.mark.asyncio
async def test_terminal_requests_cannot_transition_again(service, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    accepted = await service.create_request(alice, bob.id)
    await service.accept_request(bob, accepted.id)

    with pytest.raises(InvalidState):
        await service.accept_request(bob, accepted.id)
    with pytest.raises(InvalidState):
        await service.reject_request(bob, accepted.id)
    assert (await service.ledger.get(accepted.id)).status is RequestStatus.ACCEPTED


@pytest.mark.asyncio
async def test_reject_leaves_graph_untouched_and_sends_nothing(service, make_user, identity):
    alice = await make_user("alice")
    bob = await make_user("bob")
    request = await service.create_request(alice, bob.id)

    rejected = await service.reject_request(bob, request.id)

    assert rejected.status is RequestStatus.REJECTED
    assert not await identity.is_connected(alice.id, bob.id)
    assert not await identity.is_connected(bob.id, alice.id)
    assert await NotificationLedger().list_for_user(alice.id, limit=10) == []
    with pytest.raises(InvalidState):
        await service.accept_request(bob, request.id)


@pytest.mark.asyncio
async def test_remove_connection_is_symmetric_and_idempotent(service, make_user, identity):
    alice = await make_user("alice")
    bob = await make_user("bob")
    request = await service.create_request(alice, bob.id)
    await service.accept_request(bob, request.id)

    await service.remove_connection(bob, alice.id)
    await service.remove_connection(bob, alice.id)
    await service.remove_connection(alice, bob.id)

    assert not await identity.is_connected(alice.id, bob.id)
    assert not await identity.is_connected(bob.id, alice.id)
    # The request stays as an audit record
    assert (await service.ledger.get(request.id)).status is RequestStatus.ACCEPTED
    assert (await service.get_connection_status(alice, bob.id)).status == "notConnected"


@pytest.mark.asyncio
async def test_connection_status_covers_every_state(service, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    carol = await make_user("carol")
    dave = await make_user("dave")

    to_bob = await service.create_request(alice, bob.id)
    from_carol = await service.create_request(carol, alice.id)
    to_dave = await service.create_request(alice, dave.id)
    await service.accept_request(dave, to_dave.id)

    sent = await service.get_connection_status(alice, bob.id)
    received = await service.get_connection_status(alice, carol.id)
    connected = await service.get_connection_status(alice, dave.id)
    reverse = await service.get_connection_status(bob, alice.id)

    assert sent.status == "pending" and sent.request_id is None
    assert received.status == "received" and received.request_id == from_carol.id
    assert connected.status == "connected"
    assert reverse.status == "received" and reverse.request_id == to_bob.id

    stranger = await make_user("erin")
    assert (await service.get_connection_status(alice, stranger.id)).status == "notConnected"
    assert (await service.get_connection_status(alice, alice.id)).status == "notConnected"


@pytest.mark.asyncio
async def test_status_is_read_fresh_after_removal(service, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    request = await service.create_request(alice, bob.id)
    await service.accept_request(bob, request.id)
    assert (await service.get_connection_status(alice, bob.id)).status == "connected"

    await service.remove_connection(alice, bob.id)
    assert (await service.get_connection_status(bob, alice.id)).status == "notConnected"


@pytest.mark.asyncio
async def test_notification_failure_does_not_undo_accept(service, make_user, identity, monkeypatch):
    alice = await make_user("alice")
    bob = await make_user("bob")
    request = await service.create_request(alice, bob.id)

    async def broken_emit(**kwargs):
        raise RuntimeError("ledger down")

    monkeypatch.setattr(service.notifications, "emit", broken_emit)

    accepted = await service.accept_request(bob, request.id)

    assert accepted.status is RequestStatus.ACCEPTED
    assert await identity.is_connected(alice.id, bob.id)
    assert await identity.is_connected(bob.id, alice.id)


@pytest.mark.asyncio
async def test_accept_email_is_deferred(service, make_user, monkeypatch):
    alice = await make_user("alice", email="alice@example.com")
    bob = await make_user("bob")
    request = await service.create_request(alice, bob.id)

    sent = []

    async def fake_notify(recipient_email, template_kind, payload):
        sent.append((recipient_email, template_kind, dict(payload)))
        return True

    monkeypatch.setattr("unlinked.domain.identity.mailer.notify", fake_notify)
    deferred = []

    await service.accept_request(bob, request.id, defer=lambda *args: deferred.append(args))

    assert sent == []
    assert len(deferred) == 1
    func, name, hook = deferred[0]
    assert name == "email"
    await func(name, hook)
    assert len(sent) == 1
    email, kind, payload = sent[0]
    assert email == "alice@example.com"
    assert kind == "connection_accepted"
    assert payload["accepter_name"] == "Bob"
    assert payload["profile_url"].endswith("/profile/bob")


@pytest.mark.asyncio
async def test_lifecycle_events_are_audited(service, make_user, fake_redis):
    alice = await make_user("alice")
    bob = await make_user("bob")
    request = await service.create_request(alice, bob.id)
    await service.accept_request(bob, request.id)
    await service.remove_connection(alice, bob.id)

    entries = await fake_redis.xrange(CONNECTION_EVENTS_STREAM)
    assert [fields["event"] for _, fields in entries] == ["sent", "accepted", "removed"]
    assert entries[1][1]["request_id"] == request.id


@pytest.mark.asyncio
async def test_list_pending_requests_includes_sender(service, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    carol = await make_user("carol")
    await service.create_request(alice, carol.id)
    await service.create_request(bob, carol.id)

    pending = await service.list_pending_requests(carol)

    assert {view.sender_id for view in pending} == {alice.id, bob.id}
    assert {view.sender.username for view in pending} == {"alice", "bob"}
    assert all(view.status == "pending" for view in pending)


@pytest.mark.asyncio
async def test_list_connections_returns_summaries(service, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    carol = await make_user("carol")
    for other in (bob, carol):
        request = await service.create_request(alice, other.id)
        await service.accept_request(other, request.id)

    connections = await service.list_connections(alice)

    assert sorted(summary.username for summary in connections) == ["bob", "carol"]
    assert [summary.username for summary in await service.list_connections(bob)] == ["alice"]
