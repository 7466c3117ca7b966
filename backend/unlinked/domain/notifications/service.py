"""Notification emission and recipient-scoped queries."""

from __future__ import annotations

import logging
from typing import List, Optional

from unlinked.domain.identity.store import IdentityStore
from unlinked.domain.notifications.ledger import NotificationLedger
from unlinked.domain.notifications.models import Notification, NotificationType
from unlinked.domain.notifications.schemas import NotificationView
from unlinked.domain.posts.store import PostStore
from unlinked.infra.auth import AuthenticatedUser
from unlinked.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)


class NotificationService:
	"""Owns writes to the notification ledger and renders listings."""

	def __init__(
		self,
		*,
		ledger: NotificationLedger | None = None,
		identity: IdentityStore | None = None,
		posts: PostStore | None = None,
	) -> None:
		self.ledger = ledger or NotificationLedger()
		self.identity = identity or IdentityStore()
		self.posts = posts or PostStore()

	async def emit(
		self,
		*,
		recipient_id: str,
		kind: NotificationType,
		related_user_id: str,
		related_post_id: Optional[str] = None,
	) -> Notification:
		"""Append one notification. Callers run this inside a post-commit hook."""
		notification = await self.ledger.append(
			recipient_id=recipient_id,
			kind=kind,
			related_user_id=related_user_id,
			related_post_id=related_post_id,
		)
		obs_metrics.inc_notification(kind.value)
		logger.debug("Notification %s (%s) for %s", notification.id, kind.value, recipient_id)
		return notification

	async def _render(self, notifications: List[Notification]) -> List[NotificationView]:
		users = await self.identity.get_summaries(n.related_user_id for n in notifications)
		posts = await self.posts.previews(n.related_post_id for n in notifications if n.related_post_id)
		return [
			NotificationView(
				id=n.id,
				type=n.type.value,
				read=n.read,
				created_at=n.created_at,
				related_user_id=n.related_user_id,
				related_user=users.get(n.related_user_id),
				related_post_id=n.related_post_id,
				related_post=posts.get(n.related_post_id) if n.related_post_id else None,
			)
			for n in notifications
		]

	async def list_for_user(self, auth_user: AuthenticatedUser, *, limit: int | None = None) -> List[NotificationView]:
		"""Every notification of the caller, newest first; `limit` keeps only the newest N."""
		notifications = await self.ledger.list_for_user(auth_user.id, limit=limit)
		return await self._render(notifications)

	async def mark_read(self, auth_user: AuthenticatedUser, notification_id: str) -> NotificationView:
		notification = await self.ledger.mark_read(notification_id, auth_user.id)
		rendered = await self._render([notification])
		return rendered[0]

	async def delete(self, auth_user: AuthenticatedUser, notification_id: str) -> None:
		await self.ledger.delete(notification_id, auth_user.id)

	async def unread_count(self, auth_user: AuthenticatedUser) -> int:
		return await self.ledger.unread_count(auth_user.id)


__all__ = ["NotificationService"]
