"""Operations endpoints: liveness and Prometheus exposition."""

from __future__ import annotations

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from unlinked.infra.redis import redis_client
from unlinked.settings import settings

router = APIRouter(prefix="", tags=["ops"])


@router.get("/health")
async def health() -> dict:
	redis_ok = True
	try:
		await redis_client.ping()
	except Exception:
		redis_ok = False
	return {
		"success": redis_ok,
		"message": "ok" if redis_ok else "degraded",
		"service": settings.service_name,
		"commit": settings.git_commit,
		"redis": redis_ok,
	}


@router.get("/metrics")
async def metrics() -> Response:
	return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
