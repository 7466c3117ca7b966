"""Post authoring plus the like and comment engagement paths."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from unlinked.domain.common.exceptions import NotFound, Unauthorized, ValidationError
from unlinked.domain.identity import mailer
from unlinked.domain.identity.store import IdentityStore
from unlinked.domain.notifications.models import NotificationType
from unlinked.domain.notifications.service import NotificationService
from unlinked.domain.posts.models import Comment, LikeChange, Post
from unlinked.domain.posts.schemas import PostView
from unlinked.domain.posts.store import PostStore
from unlinked.domain.posts.views import render_post
from unlinked.infra.auth import AuthenticatedUser
from unlinked.infra.hooks import Deferrer, PostCommitHooks
from unlinked.obs import metrics as obs_metrics
from unlinked.settings import settings

logger = logging.getLogger(__name__)


class EngagementService:
	"""Likes and comments mutate only the post's own containers.

	Notifications to the author go through post-commit hooks and are skipped
	when the actor is the author.
	"""

	def __init__(
		self,
		*,
		posts: PostStore | None = None,
		identity: IdentityStore | None = None,
		notifications: NotificationService | None = None,
	) -> None:
		self.posts = posts or PostStore()
		self.identity = identity or IdentityStore()
		self.notifications = notifications or NotificationService(identity=self.identity, posts=self.posts)

	async def _load(self, post_id: str) -> Post:
		post = await self.posts.get(str(post_id))
		if post is None:
			raise NotFound("post_missing")
		return post

	async def create_post(
		self,
		auth_user: AuthenticatedUser,
		content: str,
		image: str | None = None,
	) -> PostView:
		content = (content or "").strip()
		if not content and not image:
			raise ValidationError("content_required")
		post = await self.posts.create(author_id=str(auth_user.id), content=content, image=image)
		logger.info("Post %s created by %s", post.id, post.author_id)
		return await render_post(self.identity, post)

	async def get_post(self, post_id: str) -> PostView:
		return await render_post(self.identity, await self._load(post_id))

	async def delete_post(self, auth_user: AuthenticatedUser, post_id: str) -> None:
		post = await self._load(post_id)
		if post.author_id != str(auth_user.id):
			raise Unauthorized("not_author")
		await self.posts.delete(post)

	async def toggle_like(self, auth_user: AuthenticatedUser, post_id: str) -> PostView:
		user_id = str(auth_user.id)
		post = await self._load(post_id)
		change = await self.posts.toggle_like(post.id, user_id)
		obs_metrics.inc_like(change.value)
		# Reloaded before any side effect: a post deleted in between gets no notification
		updated = await self._load(post.id)

		if change is LikeChange.LIKED and post.author_id != user_id:
			hooks = PostCommitHooks("toggle_like")
			hooks.add(
				"notification",
				lambda: self.notifications.emit(
					recipient_id=post.author_id,
					kind=NotificationType.LIKE,
					related_user_id=user_id,
					related_post_id=post.id,
				),
			)
			await hooks.run()

		return await render_post(self.identity, updated)

	async def add_comment(
		self,
		auth_user: AuthenticatedUser,
		post_id: str,
		content: str,
		*,
		defer: Deferrer | None = None,
	) -> PostView:
		if not content or not content.strip():
			raise ValidationError("comment_empty")
		user_id = str(auth_user.id)
		post = await self._load(post_id)
		comment = Comment(user_id=user_id, content=content.strip(), created_at=datetime.now(timezone.utc))
		await self.posts.append_comment(post.id, comment)
		obs_metrics.inc_comment()
		updated = await self._load(post.id)

		if post.author_id != user_id:
			hooks = PostCommitHooks("add_comment", defer=defer)
			hooks.add(
				"notification",
				lambda: self.notifications.emit(
					recipient_id=post.author_id,
					kind=NotificationType.COMMENT,
					related_user_id=user_id,
					related_post_id=post.id,
				),
			)
			hooks.add_deferred("email", lambda: self._send_comment_email(post, comment))
			await hooks.run()

		return await render_post(self.identity, updated)

	async def _send_comment_email(self, post: Post, comment: Comment) -> None:
		author = await self.identity.find_by_id(post.author_id)
		commenter = await self.identity.find_by_id(comment.user_id)
		if author is None or commenter is None:
			logger.warning("Skipping comment email for post %s: user missing", post.id)
			return
		await mailer.notify(
			author.email,
			mailer.COMMENT,
			{
				"recipient_name": author.name,
				"commenter_name": commenter.name,
				"post_url": f"{settings.client_url}/posts/{post.id}",
				"comment": comment.content,
			},
		)


__all__ = ["EngagementService"]
