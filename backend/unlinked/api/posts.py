"""REST surface for posts, likes, comments and the feed."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status

from unlinked.domain.container import get_engagement_service, get_feed_composer
from unlinked.domain.posts.engagement import EngagementService
from unlinked.domain.posts.feed import FeedComposer
from unlinked.domain.posts.schemas import CommentCreateRequest, PostCreateRequest
from unlinked.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/posts", tags=["posts"])


@router.get("")
async def feed(
	limit: Optional[int] = Query(default=None, ge=1, le=500),
	auth_user: AuthenticatedUser = Depends(get_current_user),
	composer: FeedComposer = Depends(get_feed_composer),
) -> dict:
	posts = await composer.get_feed(auth_user, limit=limit)
	return {"success": True, "message": "Feed", "posts": posts}


@router.post("/create", status_code=status.HTTP_201_CREATED)
async def create_post(
	payload: PostCreateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: EngagementService = Depends(get_engagement_service),
) -> dict:
	post = await service.create_post(auth_user, payload.content, payload.image)
	return {"success": True, "message": "Post created", "post": post}


@router.get("/{post_id}")
async def get_post(
	post_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: EngagementService = Depends(get_engagement_service),
) -> dict:
	post = await service.get_post(post_id)
	return {"success": True, "message": "Post", "post": post}


@router.delete("/delete/{post_id}")
async def delete_post(
	post_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: EngagementService = Depends(get_engagement_service),
) -> dict:
	await service.delete_post(auth_user, post_id)
	return {"success": True, "message": "Post deleted"}


@router.post("/{post_id}/like")
async def toggle_like(
	post_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: EngagementService = Depends(get_engagement_service),
) -> dict:
	post = await service.toggle_like(auth_user, post_id)
	return {"success": True, "message": "Like updated", "post": post}


@router.post("/{post_id}/comment", status_code=status.HTTP_201_CREATED)
async def add_comment(
	post_id: str,
	payload: CommentCreateRequest,
	background: BackgroundTasks,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: EngagementService = Depends(get_engagement_service),
) -> dict:
	post = await service.add_comment(auth_user, post_id, payload.content, defer=background.add_task)
	return {"success": True, "message": "Comment added", "post": post}
