"""Domain-level exceptions shared by the connection and engagement services."""

from __future__ import annotations


class SocialError(Exception):
	"""Base class for social graph and engagement errors."""

	reason: str = "unknown"

	def __init__(self, reason: str | None = None) -> None:
		super().__init__(reason or self.reason)
		if reason:
			self.reason = reason


class ValidationError(SocialError):
	"""Malformed or missing input; the caller can correct it."""

	reason = "invalid_input"


class NotFound(SocialError):
	"""Entity absent, or access deliberately masked as absent."""

	reason = "not_found"


class Unauthorized(SocialError):
	"""Caller is not the entitled actor for an entity it can already see."""

	reason = "unauthorized"


class InvalidOperation(SocialError):
	reason = "invalid_operation"


class StateConflict(SocialError):
	"""A state-machine precondition did not hold."""

	reason = "conflict"


class InvalidState(StateConflict):
	reason = "not_pending"


class AlreadyConnected(StateConflict):
	reason = "already_connected"


class DuplicateRequest(StateConflict):
	reason = "already_sent"


class DependencyFailure(SocialError):
	"""A best-effort side channel (notification, email, audit) failed.

	Raised only inside post-commit hook boundaries; always logged and dropped.
	"""

	reason = "dependency_failed"
