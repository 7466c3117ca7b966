"""Pydantic schemas for connection requests and status."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel

from unlinked.domain.identity.schemas import UserSummary


class ConnectionRequestView(BaseModel):
	id: str
	sender_id: str
	recipient_id: str
	status: Literal["pending", "accepted", "rejected"]
	created_at: datetime
	updated_at: datetime
	sender: Optional[UserSummary] = None


class ConnectionStatusView(BaseModel):
	status: Literal["connected", "pending", "received", "notConnected"]
	request_id: Optional[str] = None
