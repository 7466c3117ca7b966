"""Connection service: request lifecycle, graph edges and derived status."""

from __future__ import annotations

import logging
from typing import List, Optional

from unlinked.domain.common.exceptions import (
	AlreadyConnected,
	InvalidOperation,
	InvalidState,
	NotFound,
	SocialError,
	Unauthorized,
)
from unlinked.domain.identity import mailer
from unlinked.domain.identity.schemas import UserSummary
from unlinked.domain.identity.store import IdentityStore
from unlinked.domain.notifications.models import NotificationType
from unlinked.domain.notifications.service import NotificationService
from unlinked.domain.social import audit
from unlinked.domain.social.edges import EdgeIntent, EdgeJournal, EdgeOp, EdgeWriter
from unlinked.domain.social.ledger import ConnectionRequestLedger
from unlinked.domain.social.models import ConnectionRequest, ConnectionStatus, RequestStatus
from unlinked.domain.social.schemas import ConnectionRequestView, ConnectionStatusView
from unlinked.infra.auth import AuthenticatedUser
from unlinked.infra.hooks import Deferrer, PostCommitHooks
from unlinked.obs import metrics as obs_metrics
from unlinked.settings import settings

logger = logging.getLogger(__name__)


def request_view(request: ConnectionRequest, sender: Optional[UserSummary] = None) -> ConnectionRequestView:
	return ConnectionRequestView(
		id=request.id,
		sender_id=request.sender_id,
		recipient_id=request.recipient_id,
		status=request.status.value,
		created_at=request.created_at,
		updated_at=request.updated_at,
		sender=sender,
	)


class ConnectionService:
	"""Coordinates the identity store, the request ledger and notifications.

	Every call takes the acting user explicitly. Primary writes either commit
	or raise; notifications, audit entries and emails run afterwards as
	post-commit hooks and cannot fail the call.
	"""

	def __init__(
		self,
		*,
		identity: IdentityStore | None = None,
		ledger: ConnectionRequestLedger | None = None,
		notifications: NotificationService | None = None,
		journal: EdgeJournal | None = None,
		strict_pending_pairs: bool | None = None,
	) -> None:
		self.identity = identity or IdentityStore()
		self.journal = journal or EdgeJournal()
		self.ledger = ledger or ConnectionRequestLedger(journal=self.journal)
		self.notifications = notifications or NotificationService(identity=self.identity)
		self.edges = EdgeWriter(identity=self.identity, journal=self.journal)
		self._strict_pending_pairs = strict_pending_pairs

	@property
	def strict_pending_pairs(self) -> bool:
		if self._strict_pending_pairs is None:
			return settings.strict_pending_pairs
		return self._strict_pending_pairs

	async def create_request(
		self,
		auth_user: AuthenticatedUser,
		recipient_id: str,
		*,
		defer: Deferrer | None = None,
	) -> ConnectionRequest:
		sender_id = str(auth_user.id)
		recipient_id = str(recipient_id)
		try:
			if sender_id == recipient_id:
				raise InvalidOperation("self_request")
			if not await self.identity.exists(recipient_id):
				raise NotFound("user_missing")
			if await self.identity.is_connected(sender_id, recipient_id):
				raise AlreadyConnected()
			request = await self.ledger.create(
				sender_id,
				recipient_id,
				check_reverse=self.strict_pending_pairs,
			)
		except SocialError as exc:
			obs_metrics.inc_request_send_reject(exc.reason)
			raise

		obs_metrics.inc_request_sent()
		hooks = PostCommitHooks("create_request", defer=defer)
		hooks.add(
			"notification",
			lambda: self.notifications.emit(
				recipient_id=recipient_id,
				kind=NotificationType.CONNECTION_REQUEST,
				related_user_id=sender_id,
			),
		)
		hooks.add("audit", lambda: self._audit("sent", request))
		await hooks.run()
		return request

	async def _load_for_recipient(self, auth_user: AuthenticatedUser, request_id: str) -> ConnectionRequest:
		request = await self.ledger.get(str(request_id))
		if request is None:
			raise NotFound("request_missing")
		if request.recipient_id != str(auth_user.id):
			raise Unauthorized("not_recipient")
		if request.status is not RequestStatus.PENDING:
			raise InvalidState("not_pending")
		return request

	async def accept_request(
		self,
		auth_user: AuthenticatedUser,
		request_id: str,
		*,
		defer: Deferrer | None = None,
	) -> ConnectionRequest:
		request = await self._load_for_recipient(auth_user, request_id)
		intent = EdgeIntent.new(EdgeOp.LINK, request.sender_id, request.recipient_id)
		accepted = await self.ledger.transition(request.id, RequestStatus.ACCEPTED, edge_intent=intent)
		obs_metrics.inc_request_transition(RequestStatus.ACCEPTED.value)
		try:
			await self.edges.apply(intent)
		except Exception:
			# The intent committed with the transition; the reconciler finishes the link
			obs_metrics.inc_edge_write_deferred(EdgeOp.LINK.value)
			logger.warning(
				"edge_write_incomplete",
				exc_info=True,
				extra={"connection_request_id": accepted.id, "op": EdgeOp.LINK.value},
			)

		hooks = PostCommitHooks("accept_request", defer=defer)
		hooks.add(
			"notification",
			lambda: self.notifications.emit(
				recipient_id=accepted.sender_id,
				kind=NotificationType.CONNECTION_ACCEPTED,
				related_user_id=accepted.recipient_id,
			),
		)
		hooks.add("audit", lambda: self._audit("accepted", accepted))
		hooks.add_deferred("email", lambda: self._send_accepted_email(accepted))
		await hooks.run()
		return accepted

	async def reject_request(self, auth_user: AuthenticatedUser, request_id: str) -> ConnectionRequest:
		request = await self._load_for_recipient(auth_user, request_id)
		rejected = await self.ledger.transition(request.id, RequestStatus.REJECTED)
		obs_metrics.inc_request_transition(RequestStatus.REJECTED.value)
		hooks = PostCommitHooks("reject_request")
		hooks.add("audit", lambda: self._audit("rejected", rejected))
		await hooks.run()
		return rejected

	async def remove_connection(self, auth_user: AuthenticatedUser, other_user_id: str) -> None:
		"""Drop the edge from both sides. Removing a missing edge is a no-op."""
		user_id = str(auth_user.id)
		other_user_id = str(other_user_id)
		if user_id == other_user_id:
			return
		await self.edges.unlink(user_id, other_user_id)
		obs_metrics.inc_connection_removed()
		hooks = PostCommitHooks("remove_connection")
		hooks.add(
			"audit",
			lambda: audit.log_connection_event("removed", {"user_id": user_id, "other_user_id": other_user_id}),
		)
		await hooks.run()

	async def get_connection_status(self, auth_user: AuthenticatedUser, target_id: str) -> ConnectionStatusView:
		"""Derived from a fresh read of the viewer's connections and the request ledger."""
		viewer_id = str(auth_user.id)
		target_id = str(target_id)
		if await self.identity.is_connected(viewer_id, target_id):
			return ConnectionStatusView(status=ConnectionStatus.CONNECTED.value)
		pending = await self.ledger.find_pending_between(viewer_id, target_id)
		if pending is not None:
			if pending.sender_id == viewer_id:
				return ConnectionStatusView(status=ConnectionStatus.PENDING.value)
			if pending.sender_id == target_id:
				return ConnectionStatusView(status=ConnectionStatus.RECEIVED.value, request_id=pending.id)
		return ConnectionStatusView(status=ConnectionStatus.NOT_CONNECTED.value)

	async def list_pending_requests(self, auth_user: AuthenticatedUser) -> List[ConnectionRequestView]:
		requests = await self.ledger.list_incoming_pending(str(auth_user.id))
		senders = await self.identity.get_summaries(r.sender_id for r in requests)
		return [request_view(r, senders.get(r.sender_id)) for r in requests]

	async def list_connections(self, auth_user: AuthenticatedUser) -> List[UserSummary]:
		return await self.identity.list_connections(str(auth_user.id))

	async def _audit(self, event: str, request: ConnectionRequest) -> None:
		await audit.log_connection_event(
			event,
			{
				"request_id": request.id,
				"sender_id": request.sender_id,
				"recipient_id": request.recipient_id,
				"status": request.status.value,
			},
		)

	async def _send_accepted_email(self, request: ConnectionRequest) -> None:
		sender = await self.identity.find_by_id(request.sender_id)
		accepter = await self.identity.find_by_id(request.recipient_id)
		if sender is None or accepter is None:
			logger.warning("Skipping acceptance email for request %s: user missing", request.id)
			return
		await mailer.notify(
			sender.email,
			mailer.CONNECTION_ACCEPTED,
			{
				"recipient_name": sender.name,
				"accepter_name": accepter.name,
				"profile_url": f"{settings.client_url}/profile/{accepter.username}",
			},
		)


__all__ = ["ConnectionService", "request_view"]
