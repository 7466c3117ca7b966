"""Repair pass for the connection graph.

Two kinds of damage are fixed here. Intents left behind by a writer that
died between the two sides are replayed once they are older than the grace
period. Edges present on only one side with no outstanding intent are
completed by adding the missing side.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

from unlinked.domain.identity.store import IdentityStore
from unlinked.domain.social.edges import EdgeJournal, EdgeWriter
from unlinked.obs import metrics as obs_metrics
from unlinked.settings import settings

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RepairReport:
	replayed: int = 0
	healed: int = 0

	@property
	def total(self) -> int:
		return self.replayed + self.healed


class EdgeReconciler:
	def __init__(
		self,
		*,
		identity: IdentityStore | None = None,
		journal: EdgeJournal | None = None,
		writer: EdgeWriter | None = None,
	) -> None:
		self.identity = identity or IdentityStore()
		self.journal = journal or EdgeJournal()
		self.writer = writer or EdgeWriter(identity=self.identity, journal=self.journal)

	async def run_once(self, *, grace_seconds: int | None = None) -> RepairReport:
		grace = settings.edge_repair_grace_seconds if grace_seconds is None else grace_seconds
		report = RepairReport()

		for intent in await self.journal.pending(older_than=timedelta(seconds=grace)):
			if not await self.writer.replay(intent):
				continue
			report.replayed += 1
			logger.info("Replayed %s intent for %s/%s", intent.op.value, intent.user_a, intent.user_b)

		owners = [owner async for owner in self.identity.iter_connection_owners()]
		for owner in owners:
			for other in await self.identity.get_connection_ids(owner):
				if await self.identity.is_connected(other, owner):
					continue
				if await self.writer.heal(owner, other):
					report.healed += 1
					logger.warning("Healed one-sided connection %s -> %s", owner, other)

		if report.replayed:
			obs_metrics.inc_edge_repair("replayed", report.replayed)
		if report.healed:
			obs_metrics.inc_edge_repair("healed", report.healed)
		return report


__all__ = ["EdgeReconciler", "RepairReport"]
