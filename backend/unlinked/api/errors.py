"""Global error handlers ensuring every JSON error carries a request id."""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from unlinked.domain.common.exceptions import (
	InvalidOperation,
	NotFound,
	SocialError,
	StateConflict,
	Unauthorized,
	ValidationError,
)

logger = logging.getLogger(__name__)


def get_request_id(request: Request) -> Optional[str]:
	rid = getattr(request.state, "request_id", None)
	return rid or request.headers.get("X-Request-Id")


def status_for(exc: SocialError) -> int:
	if isinstance(exc, (ValidationError, InvalidOperation)):
		return status.HTTP_400_BAD_REQUEST
	if isinstance(exc, Unauthorized):
		return status.HTTP_403_FORBIDDEN
	if isinstance(exc, NotFound):
		return status.HTTP_404_NOT_FOUND
	if isinstance(exc, StateConflict):
		return status.HTTP_409_CONFLICT
	return status.HTTP_500_INTERNAL_SERVER_ERROR


def _body(request: Request, message: Any, **extra: Any) -> dict:
	return {"success": False, "message": message, "request_id": get_request_id(request), **extra}


def install_error_handlers(app: FastAPI) -> None:
	@app.exception_handler(SocialError)
	async def social_exc_handler(request: Request, exc: SocialError):  # type: ignore[override]
		code = status_for(exc)
		if code >= 500:
			logger.error("Unmapped domain error %s on %s", exc.reason, request.url.path)
			return JSONResponse(status_code=code, content=_body(request, "internal_error"))
		return JSONResponse(status_code=code, content=_body(request, exc.reason))

	@app.exception_handler(StarletteHTTPException)
	async def http_exc_handler(request: Request, exc: StarletteHTTPException):  # type: ignore[override]
		return JSONResponse(
			status_code=exc.status_code,
			content=_body(request, exc.detail),
			headers=getattr(exc, "headers", None),
		)

	@app.exception_handler(RequestValidationError)
	async def validation_exc_handler(request: Request, exc: RequestValidationError):  # type: ignore[override]
		return JSONResponse(
			status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
			content=_body(request, "validation_error", errors=jsonable_errors(exc)),
		)

	@app.exception_handler(Exception)
	async def unhandled_exc_handler(request: Request, exc: Exception):  # type: ignore[override]
		logger.exception("Unhandled error on %s", request.url.path, exc_info=exc)
		return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=_body(request, "internal_error"))


def jsonable_errors(exc: RequestValidationError) -> list:
	return [
		{"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
		for error in exc.errors()
	]


__all__ = ["get_request_id", "install_error_handlers", "status_for"]
