from typing import Any

from fastapi import APIRouter, Depends

from ..auth.deps import get_current_user_id
from ..deadline import Deadline
from ..deps import get_locator, get_users, request_deadline
from ..entities import GeoPoint
from ..errors import InvalidCoordinates
from ..http_helpers import candidate_page_payload, user_payload
from ..repo import UserRepository
from ..schemas import UpdateLocationRequest, UpdatePreferencesRequest
from ..services.locator import GeoCandidateLocator

router = APIRouter()


def center_from_query(latitude: float | None, longitude: float | None) -> GeoPoint | None:
    if latitude is None and longitude is None:
        return None
    if latitude is None or longitude is None:
        raise InvalidCoordinates("latitude and longitude must be provided together")
    return GeoPoint(latitude, longitude)


@router.get("/users/me")
def get_me(
    user_id: str = Depends(get_current_user_id),
    users: UserRepository = Depends(get_users),
    deadline: Deadline = Depends(request_deadline),
) -> dict[str, Any]:
    return {"success": True, "data": user_payload(users.require(user_id, deadline=deadline))}


@router.put("/users/me/location")
def update_my_location(
    payload: UpdateLocationRequest,
    user_id: str = Depends(get_current_user_id),
    users: UserRepository = Depends(get_users),
    deadline: Deadline = Depends(request_deadline),
) -> dict[str, Any]:
    user = users.update_location(user_id, payload.latitude, payload.longitude, deadline=deadline)
    return {"success": True, "message": "Location updated successfully", "data": user_payload(user)}


@router.patch("/users/me/preferences")
def update_my_preferences(
    payload: UpdatePreferencesRequest,
    user_id: str = Depends(get_current_user_id),
    users: UserRepository = Depends(get_users),
    deadline: Deadline = Depends(request_deadline),
) -> dict[str, Any]:
    changes = payload.model_dump(exclude_unset=True)
    user = users.update_preferences(user_id, deadline=deadline, **changes)
    return {"success": True, "data": user_payload(user)}


@router.get("/users/candidates")
def get_candidates(
    latitude: float | None = None,
    longitude: float | None = None,
    radiusKm: float | None = None,
    page: int = 1,
    pageSize: int | None = None,
    order: str | None = None,
    user_id: str = Depends(get_current_user_id),
    locator: GeoCandidateLocator = Depends(get_locator),
    deadline: Deadline = Depends(request_deadline),
) -> dict[str, Any]:
    result = locator.find_candidates(
        user_id,
        center_from_query(latitude, longitude),
        radiusKm,
        page,
        pageSize,
        order=order,
        deadline=deadline,
    )
    return candidate_page_payload(result)


@router.get("/users/potential-matches")
def get_potential_matches(
    page: int = 1,
    pageSize: int | None = None,
    user_id: str = Depends(get_current_user_id),
    locator: GeoCandidateLocator = Depends(get_locator),
    deadline: Deadline = Depends(request_deadline),
) -> dict[str, Any]:
    return candidate_page_payload(locator.find_potential_matches(user_id, page, pageSize, deadline=deadline))
