"""Edge repair job keeps both sides of every connection in agreement."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from unlinked.domain.social.reconcile import EdgeReconciler, RepairReport
from unlinked.obs import metrics as obs_metrics

_JOB_NAME = "social-edge-repair"

logger = logging.getLogger(__name__)


class EdgeRepairJob:
	"""Replays stale edge intents and heals one-sided connections."""

	def __init__(self, *, reconciler: EdgeReconciler | None = None) -> None:
		self.reconciler = reconciler or EdgeReconciler()

	async def run_once(self) -> RepairReport:
		started = datetime.now(timezone.utc)
		try:
			report = await self.reconciler.run_once()
		except Exception:
			duration = (datetime.now(timezone.utc) - started).total_seconds()
			obs_metrics.observe_job(_JOB_NAME, "error", duration)
			raise
		duration = (datetime.now(timezone.utc) - started).total_seconds()
		obs_metrics.observe_job(_JOB_NAME, "success", duration)
		if report.total:
			logger.info("Edge repair replayed=%d healed=%d", report.replayed, report.healed)
		return report


__all__ = ["EdgeRepairJob"]
