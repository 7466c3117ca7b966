"""Pydantic schemas for rendered notifications."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel

from unlinked.domain.identity.schemas import UserSummary
from unlinked.domain.posts.schemas import PostPreview


class NotificationView(BaseModel):
	id: str
	type: Literal["connectionRequest", "connectionAccepted", "like", "comment"]
	read: bool
	created_at: datetime
	related_user_id: str
	related_user: Optional[UserSummary] = None
	related_post_id: Optional[str] = None
	related_post: Optional[PostPreview] = None
