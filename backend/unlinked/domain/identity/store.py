"""Redis-backed identity store.

Each user is a hash at `user:{id}` with its connections in the set
`user:{id}:connections`; `users:index` orders every user id by sign-up time. Only single-key commands touch a connections set,
so every write is atomic for one user and idempotent; keeping the two sides
of an edge in step is the caller's job.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import AsyncIterator, Dict, Iterable, List, Optional
from uuid import uuid4

from unlinked.domain.common.exceptions import NotFound, ValidationError
from unlinked.domain.identity.models import User
from unlinked.domain.identity.schemas import UserSummary
from unlinked.infra.redis import redis_client

_CONNECTIONS_MATCH = "user:*:connections"
_USERS_INDEX = "users:index"
_SUGGESTION_SCAN_BATCH = 100


def _user_key(user_id: str) -> str:
	return f"user:{user_id}"


def _username_key(username: str) -> str:
	return f"username:{username.lower()}"


def connections_key(user_id: str) -> str:
	return f"user:{user_id}:connections"


def _summary_from_record(user_id: str, record: dict) -> UserSummary:
	return UserSummary(
		id=user_id,
		username=record["username"],
		name=record.get("name") or record["username"],
		profile_picture=record.get("profile_picture") or None,
		headline=record.get("headline") or None,
	)


class IdentityStore:
	"""User lookups and per-user connection set mutations."""

	async def create_user(
		self,
		*,
		username: str,
		name: str,
		email: Optional[str] = None,
		headline: Optional[str] = None,
		profile_picture: Optional[str] = None,
		user_id: Optional[str] = None,
	) -> User:
		username = (username or "").strip()
		if not username:
			raise ValidationError("username_required")
		user_id = user_id or str(uuid4())
		claimed = await redis_client.set(_username_key(username), user_id, nx=True)
		if not claimed:
			raise ValidationError("username_taken")
		created = datetime.now(timezone.utc)
		record = {
			"username": username,
			"name": name or username,
			"email": email or "",
			"headline": headline or "",
			"profile_picture": profile_picture or "",
			"created_at": created.isoformat(),
		}
		async with redis_client.pipeline(transaction=True) as pipe:
			pipe.hset(_user_key(user_id), mapping=record)
			pipe.zadd(_USERS_INDEX, {user_id: created.timestamp()})
			await pipe.execute()
		return User.from_record(user_id, record)

	async def find_by_id(self, user_id: str) -> Optional[User]:
		record = await redis_client.hgetall(_user_key(user_id))
		if not record:
			return None
		connections = await redis_client.smembers(connections_key(user_id))
		return User.from_record(user_id, record, set(connections))

	async def get(self, user_id: str) -> User:
		user = await self.find_by_id(user_id)
		if user is None:
			raise NotFound("user_missing")
		return user

	async def find_by_username(self, username: str) -> Optional[User]:
		user_id = await redis_client.get(_username_key(username))
		if not user_id:
			return None
		return await self.find_by_id(user_id)

	async def exists(self, user_id: str) -> bool:
		return bool(await redis_client.exists(_user_key(user_id)))

	async def get_connection_ids(self, user_id: str) -> set[str]:
		return set(await redis_client.smembers(connections_key(user_id)))

	async def is_connected(self, user_id: str, other_id: str) -> bool:
		return bool(await redis_client.sismember(connections_key(user_id), other_id))

	async def add_connection(self, user_id: str, other_id: str) -> bool:
		"""Add `other_id` to `user_id`'s connections. Returns False if already present."""
		return bool(await redis_client.sadd(connections_key(user_id), other_id))

	async def remove_connection(self, user_id: str, other_id: str) -> bool:
		"""Remove `other_id` from `user_id`'s connections. Returns False if absent."""
		return bool(await redis_client.srem(connections_key(user_id), other_id))

	async def get_summaries(self, user_ids: Iterable[str]) -> Dict[str, UserSummary]:
		ids = list(dict.fromkeys(str(uid) for uid in user_ids))
		if not ids:
			return {}
		pipe = redis_client.pipeline(transaction=False)
		for user_id in ids:
			pipe.hgetall(_user_key(user_id))
		records = await pipe.execute()
		return {
			user_id: _summary_from_record(user_id, record)
			for user_id, record in zip(ids, records)
			if record
		}

	async def list_connections(self, user_id: str) -> List[UserSummary]:
		ids = sorted(await self.get_connection_ids(user_id))
		summaries = await self.get_summaries(ids)
		return [summaries[uid] for uid in ids if uid in summaries]

	async def suggest_connections(self, user_id: str, *, limit: int) -> List[UserSummary]:
		"""Up to `limit` users who are neither `user_id` nor already connected, oldest sign-ups first."""
		if limit <= 0:
			return []
		excluded = await self.get_connection_ids(user_id)
		excluded.add(user_id)
		picked: List[str] = []
		start = 0
		while len(picked) < limit:
			batch = await redis_client.zrange(_USERS_INDEX, start, start + _SUGGESTION_SCAN_BATCH - 1)
			if not batch:
				break
			picked.extend(uid for uid in batch if uid not in excluded)
			start += _SUGGESTION_SCAN_BATCH
		summaries = await self.get_summaries(picked[:limit])
		return [summaries[uid] for uid in picked[:limit] if uid in summaries]

	async def iter_connection_owners(self) -> AsyncIterator[str]:
		"""Yield ids of every user holding a non-empty connections set."""
		async for key in redis_client.scan_iter(match=_CONNECTIONS_MATCH, count=500):
			yield key.split(":")[1]


__all__ = ["IdentityStore", "connections_key"]
