"""Request tracing middleware.

Every request gets an id (an incoming ``X-Request-ID`` is reused), echoed
back in the response header and attached to every request log line. Write
bodies are logged at DEBUG with credentials redacted.
"""

import json
import logging
import time
import uuid
from typing import Any

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from gtm_workspace.core.logging import get_logger

logger = get_logger("gtm_workspace.requests")

REQUEST_ID_HEADER = "X-Request-ID"
REDACTED_KEYS = frozenset({"password", "token", "secret", "api_key", "apikey", "authorization"})
_READ_ONLY_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


def redact(value: Any) -> Any:
    """Mask credential-looking keys at any depth, lists included."""
    if isinstance(value, dict):
        return {
            key: "****" if key.lower() in REDACTED_KEYS else redact(item)
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [redact(item) for item in value]
    return value


def _status_level(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        fields = {"request_id": request_id, "method": request.method, "path": request.url.path}

        logger.info("Request received", extra={**fields, "query": str(request.query_params) or None})
        if request.method not in _READ_ONLY_METHODS and logger.isEnabledFor(logging.DEBUG):
            await self._log_body(request, request_id)

        started = time.monotonic()
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id

        logger.log(
            _status_level(response.status_code),
            f"{request.method} {request.url.path} -> {response.status_code}",
            extra={
                **fields,
                "status_code": response.status_code,
                "duration_ms": round((time.monotonic() - started) * 1000, 2),
            },
        )
        return response

    @staticmethod
    async def _log_body(request: Request, request_id: str) -> None:
        raw = await request.body()
        if not raw:
            return
        try:
            body = redact(json.loads(raw))
        except ValueError:
            logger.debug("Non-JSON request body", extra={"request_id": request_id, "bytes": len(raw)})
            return
        logger.debug("Request body", extra={"request_id": request_id, "body": body})
