from typing import Any

from fastapi import APIRouter, Depends

from ..auth.deps import get_optional_user_id
from ..deadline import Deadline
from ..deps import get_locator, request_deadline
from ..http_helpers import candidate_page_payload
from ..services.locator import GeoCandidateLocator
from .profile import center_from_query

router = APIRouter()


@router.get("/discover/nearby")
def get_nearby(
    latitude: float | None = None,
    longitude: float | None = None,
    radiusKm: float | None = None,
    page: int = 1,
    pageSize: int | None = None,
    user_id: str | None = Depends(get_optional_user_id),
    locator: GeoCandidateLocator = Depends(get_locator),
    deadline: Deadline = Depends(request_deadline),
) -> dict[str, Any]:
    result = locator.find_nearby(
        center_from_query(latitude, longitude),
        radiusKm,
        page,
        pageSize,
        requester_id=user_id,
        deadline=deadline,
    )
    return candidate_page_payload(result)
