"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from unlinked.api import connections, notifications, ops, posts, users
from unlinked.api.errors import install_error_handlers
from unlinked.domain.container import get_edge_reconciler
from unlinked.infra.redis import close_redis
from unlinked.infra.scheduler import MaintenanceScheduler
from unlinked.jobs.edge_repair import EdgeRepairJob
from unlinked.obs import init as obs_init
from unlinked.settings import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
	scheduler: MaintenanceScheduler | None = None
	if settings.edge_repair_interval_minutes > 0:
		repair_job = EdgeRepairJob(reconciler=get_edge_reconciler())
		scheduler = MaintenanceScheduler()
		scheduler.start()
		scheduler.schedule_every("social-edge-repair", repair_job.run_once, minutes=settings.edge_repair_interval_minutes)
		app.state.maintenance_scheduler = scheduler
		logger.info("Edge repair scheduled every %d minutes", settings.edge_repair_interval_minutes)
	try:
		yield
	finally:
		if scheduler is not None:
			scheduler.shutdown()
		await close_redis()


app = FastAPI(title="UnLinked API", lifespan=lifespan)
install_error_handlers(app)

allow_origins = list(settings.cors_allow_origins)
if not allow_origins:
	allow_origins = [settings.client_url]

# Starlette disallows wildcard '*' with allow_credentials=True
if "*" in allow_origins:
	allow_origins = [settings.client_url]

app.add_middleware(
	CORSMiddleware,
	allow_origins=allow_origins,
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)
obs_init(app)

app.include_router(ops.router)
app.include_router(connections.router)
app.include_router(posts.router)
app.include_router(notifications.router)
app.include_router(users.router)
