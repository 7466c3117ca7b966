"""REST surface for connection requests and the connection graph."""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends

from unlinked.domain.container import get_connection_service
from unlinked.domain.social.service import ConnectionService, request_view
from unlinked.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/connections", tags=["connections"])


@router.post("/request/{user_id}")
async def send_request(
	user_id: str,
	background: BackgroundTasks,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: ConnectionService = Depends(get_connection_service),
) -> dict:
	request = await service.create_request(auth_user, user_id, defer=background.add_task)
	return {"success": True, "message": "Connection request sent", "request_id": request.id}


@router.put("/accept/{request_id}")
async def accept_request(
	request_id: str,
	background: BackgroundTasks,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: ConnectionService = Depends(get_connection_service),
) -> dict:
	request = await service.accept_request(auth_user, request_id, defer=background.add_task)
	return {"success": True, "message": "Connection request accepted", "request": request_view(request)}


@router.put("/reject/{request_id}")
async def reject_request(
	request_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: ConnectionService = Depends(get_connection_service),
) -> dict:
	request = await service.reject_request(auth_user, request_id)
	return {"success": True, "message": "Connection request rejected", "request": request_view(request)}


@router.get("/requests")
async def pending_requests(
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: ConnectionService = Depends(get_connection_service),
) -> dict:
	requests = await service.list_pending_requests(auth_user)
	return {"success": True, "message": "Pending requests", "requests": requests}


@router.get("")
async def list_connections(
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: ConnectionService = Depends(get_connection_service),
) -> dict:
	connections = await service.list_connections(auth_user)
	return {"success": True, "message": "Connections", "connections": connections}


@router.get("/status/{user_id}")
async def connection_status(
	user_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: ConnectionService = Depends(get_connection_service),
) -> dict:
	view = await service.get_connection_status(auth_user, user_id)
	return {"success": True, "message": "Connection status", **view.model_dump(exclude_none=True)}


@router.delete("/{user_id}")
async def remove_connection(
	user_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: ConnectionService = Depends(get_connection_service),
) -> dict:
	await service.remove_connection(auth_user, user_id)
	return {"success": True, "message": "Connection removed"}
