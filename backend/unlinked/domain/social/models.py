"""Domain models for connection requests and derived connection status."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Mapping


class RequestStatus(str, Enum):
	"""Connection request lifecycle. `accepted` and `rejected` are terminal."""

	PENDING = "pending"
	ACCEPTED = "accepted"
	REJECTED = "rejected"

	@property
	def is_terminal(self) -> bool:
		return self is not RequestStatus.PENDING


class ConnectionStatus(str, Enum):
	"""How a target user relates to the viewer, derived on every read."""

	CONNECTED = "connected"
	PENDING = "pending"
	RECEIVED = "received"
	NOT_CONNECTED = "notConnected"


@dataclass(slots=True, frozen=True)
class ConnectionRequest:
	"""A directional proposal to connect; kept forever as an audit trail."""

	id: str
	sender_id: str
	recipient_id: str
	status: RequestStatus
	created_at: datetime
	updated_at: datetime

	@classmethod
	def from_record(cls, request_id: str, record: Mapping[str, str]) -> "ConnectionRequest":
		return cls(
			id=request_id,
			sender_id=record["sender_id"],
			recipient_id=record["recipient_id"],
			status=RequestStatus(record["status"]),
			created_at=datetime.fromisoformat(record["created_at"]),
			updated_at=datetime.fromisoformat(record["updated_at"]),
		)

	def to_record(self) -> dict[str, str]:
		return {
			"sender_id": self.sender_id,
			"recipient_id": self.recipient_id,
			"status": self.status.value,
			"created_at": self.created_at.isoformat(),
			"updated_at": self.updated_at.isoformat(),
		}

	def with_status(self, status: RequestStatus, at: datetime) -> "ConnectionRequest":
		return replace(self, status=status, updated_at=at)
