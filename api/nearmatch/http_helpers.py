import logging
import uuid
from datetime import datetime
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

from .entities import CandidatePage, CandidateView, MatchedUser, MatchOutcome, UserProfile
from .errors import Conflict, DeadlineExceeded, InvariantViolation, MatchError, NotFound, Unavailable, ValidationError

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: list[tuple[type[MatchError], int]] = [
    (ValidationError, 400),
    (NotFound, 404),
    (Conflict, 409),
    (DeadlineExceeded, 504),
    (Unavailable, 503),
    (InvariantViolation, 500),
]


def status_for(exc: MatchError) -> int:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 500


async def match_error_handler(request: Request, exc: MatchError) -> JSONResponse:
    status = status_for(exc)
    trace_id = str(uuid.uuid4())
    if status >= 500:
        logger.error(f"[API] {request.method} {request.url.path} failed trace_id={trace_id} reason={exc.reason}: {exc.detail}")
    return JSONResponse(
        status_code=status,
        content={"success": False, "message": exc.detail, "reason": exc.reason, "trace_id": trace_id},
    )


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def user_payload(user: UserProfile) -> dict[str, Any]:
    return {
        "id": user.id,
        "displayName": user.display_name,
        "bio": user.bio,
        "photoUrl": user.photo_url,
        "age": user.age,
        "gender": user.gender,
        "isProfileVisible": user.is_profile_visible,
        "isOnboardingCompleted": user.is_onboarding_completed,
        "lastLatitude": user.last_latitude,
        "lastLongitude": user.last_longitude,
        "lastLocationUpdate": _iso(user.last_location_update),
        "minAge": user.min_age,
        "maxAge": user.max_age,
        "maxDistance": user.max_distance,
    }


def outcome_payload(outcome: MatchOutcome) -> dict[str, Any]:
    return {
        "id": outcome.match_id,
        "targetUserId": outcome.counterpart_id,
        "myAction": outcome.my_action.value if outcome.my_action else None,
        "theirAction": outcome.their_action.value if outcome.their_action else None,
        "isMutual": outcome.is_mutual,
        "isNewMatch": outcome.became_mutual_now,
        "matchedAt": _iso(outcome.matched_at),
        "createdAt": _iso(outcome.created_at),
        "updatedAt": _iso(outcome.updated_at),
    }


def matched_user_payload(item: MatchedUser) -> dict[str, Any]:
    return {**user_payload(item.user), "matchId": item.match_id, "matchedAt": _iso(item.matched_at)}


def candidate_payload(item: CandidateView) -> dict[str, Any]:
    return {**user_payload(item.user), "distanceMeters": round(item.distance_meters, 1)}


def candidate_page_payload(result: CandidatePage) -> dict[str, Any]:
    info = result.page_info
    return {
        "success": True,
        "data": [candidate_payload(c) for c in result.candidates],
        "pagination": {
            "page": info.page,
            "pageSize": info.page_size,
            "total": info.total,
            "totalPages": info.total_pages,
            "hasNext": info.has_next,
        },
    }
