"""Post-commit side effects for mutating operations.

A mutating service call finalises its primary write first, then runs the
hooks registered here. Each hook runs in its own failure boundary: a failing
notification, audit append or email is logged and counted but never reaches
the caller, and never rolls back the committed write.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, List, Optional, Tuple

from unlinked.domain.common.exceptions import DependencyFailure
from unlinked.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)

HookFunc = Callable[[], Awaitable[Any]]
Deferrer = Callable[..., Any]


class PostCommitHooks:
	"""Ordered list of best-effort side effects attached to one operation.

	`add` hooks run as soon as `run()` is awaited. `add_deferred` hooks are
	handed to `defer` (e.g. `BackgroundTasks.add_task`) so they execute after
	the response has been sent; without a deferrer they are awaited last.
	"""

	def __init__(self, operation: str, *, defer: Optional[Deferrer] = None) -> None:
		self.operation = operation
		self._defer = defer
		self._hooks: List[Tuple[str, HookFunc]] = []
		self._deferred: List[Tuple[str, HookFunc]] = []
		self.failures: List[DependencyFailure] = []

	def add(self, name: str, func: HookFunc) -> None:
		self._hooks.append((name, func))

	def add_deferred(self, name: str, func: HookFunc) -> None:
		self._deferred.append((name, func))

	def __len__(self) -> int:
		return len(self._hooks) + len(self._deferred)

	async def run(self) -> None:
		for name, func in self._hooks:
			await self.guarded(name, func)
		for name, func in self._deferred:
			if self._defer is not None:
				self._defer(self.guarded, name, func)
			else:
				await self.guarded(name, func)

	async def guarded(self, name: str, func: HookFunc) -> None:
		try:
			await func()
		except Exception as exc:
			failure = DependencyFailure(f"{self.operation}:{name}")
			failure.__cause__ = exc
			self.failures.append(failure)
			obs_metrics.inc_post_commit_failure(self.operation, name)
			logger.warning(
				"post_commit_hook_failed",
				exc_info=exc,
				extra={"operation": self.operation, "hook": name},
			)


__all__ = ["PostCommitHooks"]
