import logging
import re
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from .request_context import reset_candidate_id, set_candidate_id, set_request_id

logger = logging.getLogger("reactassess.middleware")

_CANDIDATE_PATH = re.compile(r"/candidates/(?P<candidate_id>[^/]+)")
_QUIET_PATHS = frozenset({"/health", "/api/docs", "/api/openapi.json"})


def _candidate_from_path(path: str) -> str | None:
    match = _CANDIDATE_PATH.search(path)
    return match.group("candidate_id") if match else None


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id, bind the candidate (if any) and log the outcome."""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        request.state.request_id = request_id
        set_request_id(request_id)

        path = request.url.path
        candidate_token = set_candidate_id(_candidate_from_path(path))
        try:
            response = await call_next(request)
            elapsed_ms = (time.perf_counter() - started) * 1000
            if path not in _QUIET_PATHS:
                logger.info(
                    "%s %s -> %d in %.1fms",
                    request.method,
                    path,
                    response.status_code,
                    elapsed_ms,
                    extra={"request_id": request_id},
                )
        finally:
            reset_candidate_id(candidate_token)

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time-Ms"] = f"{elapsed_ms:.1f}"
        return response
