"""
Authentication dependencies for FastAPI.

Requests carry ``Authorization: Bearer <jwt>``; the ``sub`` claim is the
internal user id. Routes receive that id as a plain string and pass it into
the core explicitly.
"""

import logging
import uuid

from fastapi import Header, HTTPException

from nearmatch.auth.security import decode_access_token
from nearmatch.config import DEV_MODE

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Raised when authentication fails with detailed reason."""

    def __init__(self, reason: str, detail: str = "unauthorized"):
        self.reason = reason
        self.detail = detail
        self.trace_id = str(uuid.uuid4())
        super().__init__(detail)


def _unauthorized(reason: str, message: str, trace_id: str) -> HTTPException:
    logger.warning(f"[AUTH_FAILURE] trace_id={trace_id} reason={reason}")
    detail = {"message": message, "trace_id": trace_id}
    if DEV_MODE:
        detail["reason"] = reason
    return HTTPException(status_code=401, detail=detail)


def _extract_bearer(authorization: str | None) -> str:
    if not authorization:
        raise AuthError(reason="missing_token", detail="Missing Authorization header")
    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise AuthError(reason="malformed_token", detail="Invalid Authorization header")
    return parts[1].strip()


def _user_id_from_header(authorization: str | None) -> str:
    try:
        token = _extract_bearer(authorization)
    except AuthError as e:
        raise _unauthorized(e.reason, e.detail, e.trace_id)

    trace_id = str(uuid.uuid4())
    try:
        payload = decode_access_token(token)
    except HTTPException as e:
        if e.status_code != 401:
            raise
        reason = "token_expired" if "expired" in str(e.detail).lower() else "signature_invalid"
        raise _unauthorized(reason, "unauthorized", trace_id)

    user_id = str(payload.get("sub") or "").strip()
    if not user_id:
        raise _unauthorized("token_missing_subject", "unauthorized", trace_id)
    logger.debug(f"[auth] token valid, sub={user_id}")
    return user_id


def get_current_user_id(authorization: str | None = Header(default=None, alias="Authorization")) -> str:
    return _user_id_from_header(authorization)


def get_optional_user_id(authorization: str | None = Header(default=None, alias="Authorization")) -> str | None:
    if not authorization:
        return None
    return _user_id_from_header(authorization)
