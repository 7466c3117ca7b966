"""Connection edge writes and their intent journal.

An edge lives in two documents: each endpoint's connections set. The
identity store can only update one of them atomically, so every edge
mutation is journaled first as an `EdgeIntent` under
`edge_intent:{low_id}:{high_id}`, then applied to both sides, then cleared.
An intent that outlives its writer is replayed by the reconciler. Replays
and heals run as WATCH-guarded transactions so they never act on a pair
state that changed after it was read.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import List, Optional

from redis.exceptions import WatchError

from unlinked.domain.identity.store import IdentityStore, connections_key
from unlinked.infra.redis import redis_client

_INTENT_PREFIX = "edge_intent:"


class EdgeOp(str, Enum):
	LINK = "link"
	UNLINK = "unlink"


def _intent_key(user_a: str, user_b: str) -> str:
	low, high = sorted((user_a, user_b))
	return f"{_INTENT_PREFIX}{low}:{high}"


@dataclass(slots=True, frozen=True)
class EdgeIntent:
	op: EdgeOp
	user_a: str
	user_b: str
	recorded_at: datetime

	@classmethod
	def new(cls, op: EdgeOp, user_a: str, user_b: str) -> "EdgeIntent":
		return cls(op=op, user_a=user_a, user_b=user_b, recorded_at=datetime.now(timezone.utc))

	@property
	def key(self) -> str:
		return _intent_key(self.user_a, self.user_b)

	def to_json(self) -> str:
		return json.dumps(
			{"op": self.op.value, "a": self.user_a, "b": self.user_b, "at": self.recorded_at.isoformat()},
			separators=(",", ":"),
		)

	@classmethod
	def from_json(cls, raw: str) -> "EdgeIntent":
		data = json.loads(raw)
		return cls(
			op=EdgeOp(data["op"]),
			user_a=data["a"],
			user_b=data["b"],
			recorded_at=datetime.fromisoformat(data["at"]),
		)


class EdgeJournal:
	"""One outstanding intent per unordered pair; the newest intent wins."""

	def queue(self, pipe, intent: EdgeIntent) -> None:
		"""Add the intent write to an open MULTI block."""
		pipe.set(intent.key, intent.to_json())

	async def record(self, intent: EdgeIntent) -> EdgeIntent:
		await redis_client.set(intent.key, intent.to_json())
		return intent

	async def get(self, user_a: str, user_b: str) -> Optional[EdgeIntent]:
		raw = await redis_client.get(_intent_key(user_a, user_b))
		return EdgeIntent.from_json(raw) if raw else None

	async def clear(self, intent: EdgeIntent) -> bool:
		"""Drop the intent if it is still the one journaled for its pair."""
		async with redis_client.pipeline(transaction=True) as pipe:
			try:
				await pipe.watch(intent.key)
				if await pipe.get(intent.key) != intent.to_json():
					return False
				pipe.multi()
				pipe.delete(intent.key)
				await pipe.execute()
			except WatchError:
				return False
		return True

	async def pending(self, *, older_than: timedelta = timedelta(0)) -> List[EdgeIntent]:
		cutoff = datetime.now(timezone.utc) - older_than
		intents: List[EdgeIntent] = []
		async for key in redis_client.scan_iter(match=f"{_INTENT_PREFIX}*", count=500):
			raw = await redis_client.get(key)
			if not raw:
				continue
			intent = EdgeIntent.from_json(raw)
			if intent.recorded_at <= cutoff:
				intents.append(intent)
		return intents


class EdgeWriter:
	"""Applies journaled intents to both endpoints' connections sets."""

	def __init__(self, *, identity: IdentityStore | None = None, journal: EdgeJournal | None = None) -> None:
		self.identity = identity or IdentityStore()
		self.journal = journal or EdgeJournal()

	async def apply(self, intent: EdgeIntent) -> None:
		"""Idempotent: replaying a half-applied intent converges both sides."""
		if intent.op is EdgeOp.LINK:
			await self.identity.add_connection(intent.user_a, intent.user_b)
			await self.identity.add_connection(intent.user_b, intent.user_a)
		else:
			await self.identity.remove_connection(intent.user_a, intent.user_b)
			await self.identity.remove_connection(intent.user_b, intent.user_a)
		await self.journal.clear(intent)

	async def link(self, user_a: str, user_b: str) -> EdgeIntent:
		intent = await self.journal.record(EdgeIntent.new(EdgeOp.LINK, user_a, user_b))
		await self.apply(intent)
		return intent

	async def unlink(self, user_a: str, user_b: str) -> EdgeIntent:
		intent = await self.journal.record(EdgeIntent.new(EdgeOp.UNLINK, user_a, user_b))
		await self.apply(intent)
		return intent

	async def replay(self, intent: EdgeIntent) -> bool:
		"""Finish an abandoned intent, but only while it is still the journaled one.

		Both sides and the clear commit in one MULTI guarded by a WATCH on the
		intent key, so a newer intent for the pair always wins.
		"""
		key_a = connections_key(intent.user_a)
		key_b = connections_key(intent.user_b)
		async with redis_client.pipeline(transaction=True) as pipe:
			try:
				await pipe.watch(intent.key)
				if await pipe.get(intent.key) != intent.to_json():
					return False
				pipe.multi()
				if intent.op is EdgeOp.LINK:
					pipe.sadd(key_a, intent.user_b)
					pipe.sadd(key_b, intent.user_a)
				else:
					pipe.srem(key_a, intent.user_b)
					pipe.srem(key_b, intent.user_a)
				pipe.delete(intent.key)
				await pipe.execute()
			except WatchError:
				return False
		return True

	async def heal(self, owner_id: str, other_id: str) -> bool:
		"""Add `owner_id` to `other_id`'s set when the edge exists on the owner's side only.

		The one-sided state is re-read under WATCH on both sets and the pair's
		intent key; a concurrent link, unlink or new intent aborts the heal.
		"""
		owner_key = connections_key(owner_id)
		other_key = connections_key(other_id)
		intent_key = _intent_key(owner_id, other_id)
		async with redis_client.pipeline(transaction=True) as pipe:
			try:
				await pipe.watch(owner_key, other_key, intent_key)
				if not await pipe.sismember(owner_key, other_id):
					return False
				if await pipe.sismember(other_key, owner_id):
					return False
				if await pipe.exists(intent_key):
					return False
				pipe.multi()
				pipe.sadd(other_key, owner_id)
				await pipe.execute()
			except WatchError:
				return False
		return True


__all__ = ["EdgeIntent", "EdgeJournal", "EdgeOp", "EdgeWriter"]
