"""Pydantic schemas for post payloads and rendered post views."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from unlinked.domain.identity.schemas import UserSummary


class PostCreateRequest(BaseModel):
	content: str = Field(default="", description="Post text")
	image: Optional[str] = Field(default=None, description="URL of an image already uploaded to the media store")


class CommentCreateRequest(BaseModel):
	content: str = Field(default="", description="Comment text")


class CommentView(BaseModel):
	user: UserSummary | None
	user_id: str
	content: str
	created_at: datetime


class PostView(BaseModel):
	id: str
	author: UserSummary | None
	author_id: str
	content: str
	image: Optional[str] = None
	likes: List[str]
	like_count: int
	comments: List[CommentView]
	created_at: datetime


class PostPreview(BaseModel):
	id: str
	content: str
	image: Optional[str] = None
