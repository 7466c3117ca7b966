"""Audit trail for connection lifecycle events."""

from __future__ import annotations

from typing import Dict

from unlinked.infra.redis import redis_client

CONNECTION_EVENTS_STREAM = "x:connections.events"
_STREAM_MAXLEN = 10_000


async def log_connection_event(event: str, fields: Dict[str, str]) -> None:
	payload = {"event": event, **fields}
	await redis_client.xadd(CONNECTION_EVENTS_STREAM, payload, maxlen=_STREAM_MAXLEN, approximate=True)
