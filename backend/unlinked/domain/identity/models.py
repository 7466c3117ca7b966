"""Domain models for user identity records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import FrozenSet, Mapping, Optional


@dataclass(slots=True)
class User:
	"""A user document together with its `connections` set."""

	id: str
	username: str
	name: str
	email: Optional[str]
	headline: Optional[str]
	profile_picture: Optional[str]
	created_at: datetime
	connections: FrozenSet[str] = field(default_factory=frozenset)

	@classmethod
	def from_record(cls, user_id: str, record: Mapping[str, str], connections: set[str] | None = None) -> "User":
		return cls(
			id=user_id,
			username=record["username"],
			name=record.get("name") or record["username"],
			email=record.get("email") or None,
			headline=record.get("headline") or None,
			profile_picture=record.get("profile_picture") or None,
			created_at=datetime.fromisoformat(record["created_at"]),
			connections=frozenset(connections or ()),
		)
