from contextvars import ContextVar
from typing import Optional

_request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
_candidate_id_ctx: ContextVar[Optional[str]] = ContextVar("candidate_id", default=None)


def set_request_id(request_id: str):
    return _request_id_ctx.set(request_id)


def get_request_id() -> Optional[str]:
    return _request_id_ctx.get()


def set_candidate_id(candidate_id: Optional[str]):
    return _candidate_id_ctx.set(candidate_id)


def reset_candidate_id(token) -> None:
    _candidate_id_ctx.reset(token)


def get_candidate_id() -> Optional[str]:
    return _candidate_id_ctx.get()
