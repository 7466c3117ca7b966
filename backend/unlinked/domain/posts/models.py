"""Domain models for posts and their engagement containers."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import FrozenSet, Mapping, Optional, Sequence, Tuple


class LikeChange(str, Enum):
	"""Outcome of a like toggle against the post's likes set."""

	LIKED = "liked"
	UNLIKED = "unliked"
	# A concurrent toggle by the same user already made this change
	UNCHANGED = "unchanged"


@dataclass(slots=True, frozen=True)
class Comment:
	user_id: str
	content: str
	created_at: datetime

	def to_json(self) -> str:
		return json.dumps(
			{"user_id": self.user_id, "content": self.content, "created_at": self.created_at.isoformat()},
			separators=(",", ":"),
		)

	@classmethod
	def from_json(cls, raw: str) -> "Comment":
		data = json.loads(raw)
		return cls(
			user_id=data["user_id"],
			content=data["content"],
			created_at=datetime.fromisoformat(data["created_at"]),
		)


@dataclass(slots=True)
class Post:
	id: str
	author_id: str
	content: str
	image: Optional[str]
	created_at: datetime
	likes: FrozenSet[str] = field(default_factory=frozenset)
	comments: Tuple[Comment, ...] = ()

	@classmethod
	def from_record(
		cls,
		post_id: str,
		record: Mapping[str, str],
		likes: set[str] | None = None,
		comments: Sequence[str] | None = None,
	) -> "Post":
		return cls(
			id=post_id,
			author_id=record["author_id"],
			content=record.get("content", ""),
			image=record.get("image") or None,
			created_at=datetime.fromisoformat(record["created_at"]),
			likes=frozenset(likes or ()),
			comments=tuple(Comment.from_json(raw) for raw in comments or ()),
		)
