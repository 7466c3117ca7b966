"""Read-only profile lookups: connection suggestions and public profiles."""

from __future__ import annotations

from typing import List

from unlinked.domain.common.exceptions import NotFound
from unlinked.domain.identity.schemas import PublicProfile, UserSummary
from unlinked.domain.identity.store import IdentityStore
from unlinked.infra.auth import AuthenticatedUser

SUGGESTION_LIMIT = 5


class ProfileService:
	def __init__(self, *, identity: IdentityStore | None = None) -> None:
		self.identity = identity or IdentityStore()

	async def get_suggested_connections(
		self,
		auth_user: AuthenticatedUser,
		*,
		limit: int = SUGGESTION_LIMIT,
	) -> List[UserSummary]:
		"""Users the caller could connect with: never the caller, never a current connection."""
		return await self.identity.suggest_connections(str(auth_user.id), limit=limit)

	async def get_public_profile(self, username: str) -> PublicProfile:
		user = await self.identity.find_by_username(username)
		if user is None:
			raise NotFound("user_missing")
		return PublicProfile(
			id=user.id,
			username=user.username,
			name=user.name,
			profile_picture=user.profile_picture,
			headline=user.headline,
			created_at=user.created_at,
			connections=sorted(user.connections),
		)


__all__ = ["ProfileService", "SUGGESTION_LIMIT"]
