import pytest

from unlinked.domain.common.exceptions import NotFound
from unlinked.domain.notifications.models import NotificationType
from unlinked.domain.notifications.service import NotificationService
from unlinked.domain.posts.store import PostStore


@pytest.fixture
def service():
    return NotificationService()


@pytest.mark.asyncio
async def test_list_is_newest_first_with_resolved_summaries(service, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    post = await PostStore().create(author_id=alice.id, content="a post")

    first = await service.emit(recipient_id=alice.id, kind=NotificationType.CONNECTION_REQUEST, related_user_id=bob.id)
    second = await service.emit(
        recipient_id=alice.id,
        kind=NotificationType.LIKE,
        related_user_id=bob.id,
        related_post_id=post.id,
    )

    listed = await service.list_for_user(alice)

    assert [n.id for n in listed] == [second.id, first.id]
    assert listed[0].type == "like"
    assert listed[0].related_user.username == "bob"
    assert listed[0].related_post.content == "a post"
    assert listed[1].related_post is None
    assert all(n.read is False for n in listed)


@pytest.mark.asyncio
async def test_list_returns_every_notification_unless_limited(service, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    emitted = [
        await service.emit(recipient_id=alice.id, kind=NotificationType.LIKE, related_user_id=bob.id)
        for _ in range(105)
    ]

    everything = await service.list_for_user(alice)
    newest = await service.list_for_user(alice, limit=3)

    assert len(everything) == 105
    assert {n.id for n in everything} == {n.id for n in emitted}
    assert [n.id for n in newest] == [n.id for n in everything[:3]]
    assert await service.list_for_user(bob) == []


@pytest.mark.asyncio
async def test_mark_read_by_owner(service, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    notification = await service.emit(recipient_id=alice.id, kind=NotificationType.COMMENT, related_user_id=bob.id)
    assert await service.unread_count(alice) == 1

    view = await service.mark_read(alice, notification.id)
    again = await service.mark_read(alice, notification.id)

    assert view.read is True and again.read is True
    assert await service.unread_count(alice) == 0


@pytest.mark.asyncio
async def test_cross_user_access_looks_missing(service, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    notification = await service.emit(recipient_id=alice.id, kind=NotificationType.COMMENT, related_user_id=bob.id)

    with pytest.raises(NotFound):
        await service.mark_read(bob, notification.id)
    with pytest.raises(NotFound):
        await service.delete(bob, notification.id)
    with pytest.raises(NotFound):
        await service.mark_read(bob, "does-not-exist")

    listed = await service.list_for_user(alice)
    assert [(n.id, n.read) for n in listed] == [(notification.id, False)]


@pytest.mark.asyncio
async def test_delete_by_owner(service, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    keep = await service.emit(recipient_id=alice.id, kind=NotificationType.LIKE, related_user_id=bob.id)
    drop = await service.emit(recipient_id=alice.id, kind=NotificationType.LIKE, related_user_id=bob.id)

    await service.delete(alice, drop.id)

    assert [n.id for n in await service.list_for_user(alice)] == [keep.id]
    assert await service.unread_count(alice) == 1
    with pytest.raises(NotFound):
        await service.delete(alice, drop.id)
    with pytest.raises(NotFound):
        await service.mark_read(alice, drop.id)


@pytest.mark.asyncio
async def test_deleted_post_renders_without_preview(service, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    store = PostStore()
    post = await store.create(author_id=alice.id, content="gone soon")
    await service.emit(
        recipient_id=alice.id,
        kind=NotificationType.COMMENT,
        related_user_id=bob.id,
        related_post_id=post.id,
    )
    await store.delete(post)

    listed = await service.list_for_user(alice)

    assert listed[0].related_post_id == post.id
    assert listed[0].related_post is None
