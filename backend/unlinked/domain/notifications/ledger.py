"""Append-only notification ledger stored in Redis.

Each notification is the hash `notification:{id}`; the recipient's index is
the zset `notifications:user:{recipient_id}` scored by creation time. Ids
are ULIDs so entries created in the same millisecond still sort by arrival.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

import ulid
from redis.exceptions import WatchError

from unlinked.domain.common.exceptions import NotFound
from unlinked.domain.notifications.models import Notification, NotificationType
from unlinked.infra.redis import redis_client


def _notification_key(notification_id: str) -> str:
	return f"notification:{notification_id}"


def _user_index_key(user_id: str) -> str:
	return f"notifications:user:{user_id}"


class NotificationLedger:
	async def append(
		self,
		*,
		recipient_id: str,
		kind: NotificationType,
		related_user_id: str,
		related_post_id: Optional[str] = None,
	) -> Notification:
		notification = Notification(
			id=ulid.new().str,
			recipient_id=recipient_id,
			type=kind,
			related_user_id=related_user_id,
			related_post_id=related_post_id,
			read=False,
			created_at=datetime.now(timezone.utc),
		)
		async with redis_client.pipeline(transaction=True) as pipe:
			pipe.hset(_notification_key(notification.id), mapping=notification.to_record())
			pipe.zadd(_user_index_key(recipient_id), {notification.id: notification.created_at.timestamp()})
			await pipe.execute()
		return notification

	async def get(self, notification_id: str) -> Optional[Notification]:
		record = await redis_client.hgetall(_notification_key(notification_id))
		if not record:
			return None
		return Notification.from_record(notification_id, record)

	async def list_for_user(self, user_id: str, *, limit: Optional[int] = None) -> List[Notification]:
		"""Newest first, all of them unless `limit` is given.

		Index entries whose document is gone are skipped.
		"""
		if limit is not None and limit <= 0:
			return []
		stop = -1 if limit is None else limit - 1
		# Equal scores order by member, and ULIDs sort by creation
		ids = await redis_client.zrevrange(_user_index_key(user_id), 0, stop)
		if not ids:
			return []
		pipe = redis_client.pipeline(transaction=False)
		for notification_id in ids:
			pipe.hgetall(_notification_key(notification_id))
		records = await pipe.execute()
		return [
			Notification.from_record(notification_id, record)
			for notification_id, record in zip(ids, records)
			if record
		]

	async def mark_read(self, notification_id: str, user_id: str) -> Notification:
		"""Flip `read` for a notification owned by `user_id`; anything else is NotFound."""
		key = _notification_key(notification_id)
		async with redis_client.pipeline(transaction=True) as pipe:
			try:
				await pipe.watch(key)
				record = await pipe.hgetall(key)
				if not record or record.get("recipient_id") != user_id:
					raise NotFound("notification_missing")
				pipe.multi()
				pipe.hset(key, "read", "1")
				await pipe.execute()
			except WatchError:
				# The only concurrent writes are another read flip or a delete
				record = await redis_client.hgetall(key)
				if not record or record.get("recipient_id") != user_id:
					raise NotFound("notification_missing") from None
		record["read"] = "1"
		return Notification.from_record(notification_id, record)

	async def delete(self, notification_id: str, user_id: str) -> None:
		key = _notification_key(notification_id)
		async with redis_client.pipeline(transaction=True) as pipe:
			try:
				await pipe.watch(key)
				owner = await pipe.hget(key, "recipient_id")
				if owner != user_id:
					raise NotFound("notification_missing")
				pipe.multi()
				pipe.delete(key)
				pipe.zrem(_user_index_key(user_id), notification_id)
				await pipe.execute()
			except WatchError:
				raise NotFound("notification_missing") from None

	async def unread_count(self, user_id: str) -> int:
		ids = await redis_client.zrange(_user_index_key(user_id), 0, -1)
		if not ids:
			return 0
		pipe = redis_client.pipeline(transaction=False)
		for notification_id in ids:
			pipe.hget(_notification_key(notification_id), "read")
		flags = await pipe.execute()
		return sum(1 for flag in flags if flag == "0")


__all__ = ["NotificationLedger"]
