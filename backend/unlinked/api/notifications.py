"""REST surface for the caller's notifications."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from unlinked.domain.container import get_notification_service
from unlinked.domain.notifications.service import NotificationService
from unlinked.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("")
async def list_notifications(
	limit: Optional[int] = Query(default=None, ge=1),
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: NotificationService = Depends(get_notification_service),
) -> dict:
	notifications = await service.list_for_user(auth_user, limit=limit)
	return {"success": True, "message": "Notifications", "notifications": notifications}


@router.get("/unread-count")
async def unread_count(
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: NotificationService = Depends(get_notification_service),
) -> dict:
	count = await service.unread_count(auth_user)
	return {"success": True, "message": "Unread notifications", "count": count}


@router.put("/{notification_id}/read")
async def mark_read(
	notification_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: NotificationService = Depends(get_notification_service),
) -> dict:
	notification = await service.mark_read(auth_user, notification_id)
	return {"success": True, "message": "Notification marked as read", "notification": notification}


@router.delete("/{notification_id}")
async def delete_notification(
	notification_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: NotificationService = Depends(get_notification_service),
) -> dict:
	await service.delete(auth_user, notification_id)
	return {"success": True, "message": "Notification deleted"}
