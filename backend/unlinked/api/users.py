"""REST surface for connection suggestions and public profiles."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from unlinked.domain.container import get_profile_service
from unlinked.domain.identity.service import ProfileService
from unlinked.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/suggestions")
async def suggested_connections(
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: ProfileService = Depends(get_profile_service),
) -> dict:
	users = await service.get_suggested_connections(auth_user)
	return {"success": True, "message": "Suggested connections", "users": users}


@router.get("/{username}")
async def public_profile(
	username: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: ProfileService = Depends(get_profile_service),
) -> dict:
	profile = await service.get_public_profile(username)
	return {"success": True, "message": "Public profile", "user": profile}
