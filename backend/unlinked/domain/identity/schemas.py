"""Pydantic schemas for user summaries and public profiles."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class UserSummary(BaseModel):
	id: str
	username: str
	name: str
	profile_picture: Optional[str] = None
	headline: Optional[str] = None


class PublicProfile(UserSummary):
	"""A user's profile as anyone may see it; the email address stays private."""

	created_at: datetime
	connections: List[str] = Field(default_factory=list)
