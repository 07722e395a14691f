"""Optional API key authentication middleware."""

from __future__ import annotations

import hmac
import logging
import uuid

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import (
    BaseHTTPMiddleware,
    RequestResponseEndpoint,
)
from starlette.responses import JSONResponse

from cortexops.api.dependencies import get_request_logger, get_settings
from cortexops.api.schemas import APIResponse
from cortexops.constants import (
    API_KEY_HEADER,
    AUTH_ERROR_MESSAGE,
    ID_HEX_LENGTH,
    PUBLIC_PATH_PREFIXES,
)

logger = logging.getLogger(__name__)


def is_public_path(app: FastAPI, path: str) -> bool:
    """Health checks and the app's own OpenAPI/docs routes."""
    docs = {app.openapi_url, app.docs_url, app.redoc_url} - {None}
    return path in docs or path.startswith(PUBLIC_PATH_PREFIXES)


class ApiKeyMiddleware(BaseHTTPMiddleware):
    """Require ``X-API-Key`` once ``Settings.api_key`` is set.

    CORS preflights and public paths always pass. A rejection is
    logged with its reason and written to the request log as an
    ``auth`` error.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        path = request.url.path
        if request.method == "OPTIONS" or is_public_path(request.app, path):
            return await call_next(request)

        expected = get_settings(request).api_key
        if not expected:
            return await call_next(request)

        provided = request.headers.get(API_KEY_HEADER, "")
        if hmac.compare_digest(provided.encode(), expected.encode()):
            return await call_next(request)
        return _reject(request, "missing" if not provided else "mismatch")


def _reject(request: Request, reason: str) -> JSONResponse:
    path = request.url.path
    logger.info("event=auth_rejected path=%s reason=%s", path, reason)
    request_logger = get_request_logger(request)
    if request_logger is not None:
        request_logger.log_error(
            uuid.uuid4().hex[:ID_HEX_LENGTH],
            "auth",
            f"{reason} API key for {request.method} {path}",
        )
    body = APIResponse(success=False, error=AUTH_ERROR_MESSAGE)
    return JSONResponse(status_code=401, content=body.model_dump())
