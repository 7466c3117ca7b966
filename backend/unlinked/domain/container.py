"""Process-wide service instances wired for FastAPI dependencies."""

from __future__ import annotations

from typing import Optional

from unlinked.domain.identity.service import ProfileService
from unlinked.domain.identity.store import IdentityStore
from unlinked.domain.notifications.service import NotificationService
from unlinked.domain.posts.engagement import EngagementService
from unlinked.domain.posts.feed import FeedComposer
from unlinked.domain.posts.store import PostStore
from unlinked.domain.social.edges import EdgeJournal
from unlinked.domain.social.reconcile import EdgeReconciler
from unlinked.domain.social.service import ConnectionService

_identity: Optional[IdentityStore] = None
_posts: Optional[PostStore] = None
_journal: Optional[EdgeJournal] = None
_notifications: Optional[NotificationService] = None
_connections: Optional[ConnectionService] = None
_engagement: Optional[EngagementService] = None
_feed: Optional[FeedComposer] = None
_reconciler: Optional[EdgeReconciler] = None
_profiles: Optional[ProfileService] = None


def get_identity_store() -> IdentityStore:
	global _identity
	if _identity is None:
		_identity = IdentityStore()
	return _identity


def get_post_store() -> PostStore:
	global _posts
	if _posts is None:
		_posts = PostStore()
	return _posts


def get_edge_journal() -> EdgeJournal:
	global _journal
	if _journal is None:
		_journal = EdgeJournal()
	return _journal


def get_notification_service() -> NotificationService:
	global _notifications
	if _notifications is None:
		_notifications = NotificationService(identity=get_identity_store(), posts=get_post_store())
	return _notifications


def get_connection_service() -> ConnectionService:
	global _connections
	if _connections is None:
		_connections = ConnectionService(
			identity=get_identity_store(),
			notifications=get_notification_service(),
			journal=get_edge_journal(),
		)
	return _connections


def get_engagement_service() -> EngagementService:
	global _engagement
	if _engagement is None:
		_engagement = EngagementService(
			posts=get_post_store(),
			identity=get_identity_store(),
			notifications=get_notification_service(),
		)
	return _engagement


def get_feed_composer() -> FeedComposer:
	global _feed
	if _feed is None:
		_feed = FeedComposer(posts=get_post_store(), identity=get_identity_store())
	return _feed


def get_profile_service() -> ProfileService:
	global _profiles
	if _profiles is None:
		_profiles = ProfileService(identity=get_identity_store())
	return _profiles


def get_edge_reconciler() -> EdgeReconciler:
	global _reconciler
	if _reconciler is None:
		_reconciler = EdgeReconciler(identity=get_identity_store(), journal=get_edge_journal())
	return _reconciler


def reset_services() -> None:
	"""Drop cached instances; tests call this between cases."""
	global _identity, _posts, _journal, _notifications, _connections, _engagement, _feed, _reconciler, _profiles
	_identity = _posts = _journal = None
	_notifications = _connections = _engagement = _feed = _reconciler = _profiles = None
