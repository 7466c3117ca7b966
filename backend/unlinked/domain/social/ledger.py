"""Connection request ledger.

Keys owned by the ledger:

- `connreq:{id}`: the request hash.
- `connreq:pair:{sender}:{recipient}`: id of the request currently claiming
  the directional pair. A claim only counts while its request is pending.
- `connreq:inbox:{recipient}`: zset of pending request ids by creation time.

Creation and every status transition run as one WATCH/MULTI over these
keys, so two racing creates for the same pair cannot both commit a pending
request and a request leaves `pending` exactly once.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, List, Optional
from uuid import uuid4

from redis.exceptions import WatchError

from unlinked.domain.common.exceptions import DuplicateRequest, InvalidState, NotFound
from unlinked.domain.social.edges import EdgeIntent, EdgeJournal
from unlinked.domain.social.models import ConnectionRequest, RequestStatus
from unlinked.infra.redis import redis_client


def _request_key(request_id: str) -> str:
	return f"connreq:{request_id}"


def _pair_key(sender_id: str, recipient_id: str) -> str:
	return f"connreq:pair:{sender_id}:{recipient_id}"


def _inbox_key(recipient_id: str) -> str:
	return f"connreq:inbox:{recipient_id}"


class ConnectionRequestLedger:
	def __init__(self, *, journal: EdgeJournal | None = None) -> None:
		self.journal = journal or EdgeJournal()

	async def create(
		self,
		sender_id: str,
		recipient_id: str,
		*,
		check_reverse: bool = False,
	) -> ConnectionRequest:
		"""Persist a new pending request unless the pair already has one.

		With `check_reverse` a pending request in the opposite direction also
		counts as a duplicate.
		"""
		now = datetime.now(timezone.utc)
		request = ConnectionRequest(
			id=str(uuid4()),
			sender_id=sender_id,
			recipient_id=recipient_id,
			status=RequestStatus.PENDING,
			created_at=now,
			updated_at=now,
		)
		pair_keys = [_pair_key(sender_id, recipient_id)]
		if check_reverse:
			pair_keys.append(_pair_key(recipient_id, sender_id))
		async with redis_client.pipeline(transaction=True) as pipe:
			try:
				await pipe.watch(*pair_keys)
				for key in pair_keys:
					holder = await pipe.get(key)
					if holder and await pipe.hget(_request_key(holder), "status") == RequestStatus.PENDING.value:
						raise DuplicateRequest("already_sent" if key == pair_keys[0] else "reverse_pending")
				pipe.multi()
				pipe.set(pair_keys[0], request.id)
				pipe.hset(_request_key(request.id), mapping=request.to_record())
				pipe.zadd(_inbox_key(recipient_id), {request.id: now.timestamp()})
				await pipe.execute()
			except WatchError:
				# A concurrent create or transition touched the pair claim first
				raise DuplicateRequest("already_sent") from None
		return request

	async def get(self, request_id: str) -> Optional[ConnectionRequest]:
		record = await redis_client.hgetall(_request_key(request_id))
		if not record:
			return None
		return ConnectionRequest.from_record(request_id, record)

	async def get_many(self, request_ids: Iterable[str]) -> List[ConnectionRequest]:
		ids = list(request_ids)
		if not ids:
			return []
		pipe = redis_client.pipeline(transaction=False)
		for request_id in ids:
			pipe.hgetall(_request_key(request_id))
		records = await pipe.execute()
		return [ConnectionRequest.from_record(rid, record) for rid, record in zip(ids, records) if record]

	async def transition(
		self,
		request_id: str,
		status: RequestStatus,
		*,
		edge_intent: EdgeIntent | None = None,
	) -> ConnectionRequest:
		"""Move a pending request to a terminal status.

		When `edge_intent` is given it is journaled in the same transaction, so
		an accepted request always leaves a trace for the edge writer to finish.
		"""
		if not status.is_terminal:
			raise ValueError("transition target must be terminal")
		key = _request_key(request_id)
		async with redis_client.pipeline(transaction=True) as pipe:
			try:
				await pipe.watch(key)
				record = await pipe.hgetall(key)
				if not record:
					raise NotFound("request_missing")
				request = ConnectionRequest.from_record(request_id, record)
				if request.status is not RequestStatus.PENDING:
					raise InvalidState("not_pending")
				pair_key = _pair_key(request.sender_id, request.recipient_id)
				await pipe.watch(pair_key)
				holder = await pipe.get(pair_key)
				updated = request.with_status(status, datetime.now(timezone.utc))
				pipe.multi()
				pipe.hset(key, mapping={"status": updated.status.value, "updated_at": updated.updated_at.isoformat()})
				pipe.zrem(_inbox_key(request.recipient_id), request_id)
				if holder == request_id:
					pipe.delete(pair_key)
				if edge_intent is not None:
					self.journal.queue(pipe, edge_intent)
				await pipe.execute()
			except WatchError:
				raise InvalidState("concurrent_update") from None
		return updated

	async def find_pending(self, sender_id: str, recipient_id: str) -> Optional[ConnectionRequest]:
		holder = await redis_client.get(_pair_key(sender_id, recipient_id))
		if not holder:
			return None
		request = await self.get(holder)
		if request is None or request.status is not RequestStatus.PENDING:
			return None
		return request

	async def find_pending_between(self, user_a: str, user_b: str) -> Optional[ConnectionRequest]:
		"""Any pending request between the pair, oldest first if both directions exist."""
		candidates = [
			request
			for request in (await self.find_pending(user_a, user_b), await self.find_pending(user_b, user_a))
			if request is not None
		]
		if not candidates:
			return None
		return min(candidates, key=lambda r: (r.created_at, r.id))

	async def list_incoming_pending(self, recipient_id: str) -> List[ConnectionRequest]:
		ids = await redis_client.zrevrange(_inbox_key(recipient_id), 0, -1)
		requests = await self.get_many(ids)
		return [r for r in requests if r.status is RequestStatus.PENDING and r.recipient_id == recipient_id]


__all__ = ["ConnectionRequestLedger"]
