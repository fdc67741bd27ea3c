from typing import Any

from fastapi import APIRouter, Depends

from ..auth.deps import get_current_user_id
from ..deadline import Deadline
from ..deps import get_match_engine, request_deadline
from ..entities import MatchAction
from ..http_helpers import matched_user_payload, outcome_payload, user_payload
from ..schemas import ActionRequest, TargetUserRequest
from ..services.match_engine import MatchEngine

router = APIRouter()


def _act(engine: MatchEngine, user_id: str, target_user_id: str, action: Any, deadline: Deadline) -> dict[str, Any]:
    outcome = engine.act(user_id, target_user_id, action, deadline=deadline)
    message = "It's a match!" if outcome.became_mutual_now else "Action recorded"
    return {"success": True, "data": outcome_payload(outcome), "message": message}


@router.post("/matches/like")
def send_like(
    payload: TargetUserRequest,
    user_id: str = Depends(get_current_user_id),
    engine: MatchEngine = Depends(get_match_engine),
    deadline: Deadline = Depends(request_deadline),
) -> dict[str, Any]:
    return _act(engine, user_id, payload.target_user_id, MatchAction.LIKE, deadline)


@router.post("/matches/dislike")
def send_dislike(
    payload: TargetUserRequest,
    user_id: str = Depends(get_current_user_id),
    engine: MatchEngine = Depends(get_match_engine),
    deadline: Deadline = Depends(request_deadline),
) -> dict[str, Any]:
    return _act(engine, user_id, payload.target_user_id, MatchAction.DISLIKE, deadline)


@router.post("/matches/super-like")
def send_super_like(
    payload: TargetUserRequest,
    user_id: str = Depends(get_current_user_id),
    engine: MatchEngine = Depends(get_match_engine),
    deadline: Deadline = Depends(request_deadline),
) -> dict[str, Any]:
    return _act(engine, user_id, payload.target_user_id, MatchAction.SUPER_LIKE, deadline)


@router.post("/matches/actions")
def send_action(
    payload: ActionRequest,
    user_id: str = Depends(get_current_user_id),
    engine: MatchEngine = Depends(get_match_engine),
    deadline: Deadline = Depends(request_deadline),
) -> dict[str, Any]:
    return _act(engine, user_id, payload.target_user_id, payload.action, deadline)


@router.get("/matches/mutual")
def get_my_mutual_matches(
    user_id: str = Depends(get_current_user_id),
    engine: MatchEngine = Depends(get_match_engine),
    deadline: Deadline = Depends(request_deadline),
) -> dict[str, Any]:
    matches = engine.list_mutual_matches(user_id, deadline=deadline)
    return {"success": True, "data": [matched_user_payload(m) for m in matches]}


@router.get("/matches/actions")
def get_my_actions(
    action: str,
    limit: int | None = None,
    user_id: str = Depends(get_current_user_id),
    engine: MatchEngine = Depends(get_match_engine),
    deadline: Deadline = Depends(request_deadline),
) -> dict[str, Any]:
    users = engine.list_by_action(user_id, action, limit, deadline=deadline)
    return {"success": True, "data": [user_payload(u) for u in users]}
