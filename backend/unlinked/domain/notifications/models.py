"""Domain models for user notifications."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Mapping, Optional


class NotificationType(str, Enum):
	CONNECTION_REQUEST = "connectionRequest"
	CONNECTION_ACCEPTED = "connectionAccepted"
	LIKE = "like"
	COMMENT = "comment"


@dataclass(slots=True)
class Notification:
	id: str
	recipient_id: str
	type: NotificationType
	related_user_id: str
	related_post_id: Optional[str]
	read: bool
	created_at: datetime

	@classmethod
	def from_record(cls, notification_id: str, record: Mapping[str, str]) -> "Notification":
		return cls(
			id=notification_id,
			recipient_id=record["recipient_id"],
			type=NotificationType(record["type"]),
			related_user_id=record["related_user_id"],
			related_post_id=record.get("related_post_id") or None,
			read=record.get("read") == "1",
			created_at=datetime.fromisoformat(record["created_at"]),
		)

	def to_record(self) -> dict[str, str]:
		return {
			"recipient_id": self.recipient_id,
			"type": self.type.value,
			"related_user_id": self.related_user_id,
			"related_post_id": self.related_post_id or "",
			"read": "1" if self.read else "0",
			"created_at": self.created_at.isoformat(),
		}
