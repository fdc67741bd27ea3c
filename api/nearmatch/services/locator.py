from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from ..deadline import Deadline
from ..entities import CandidatePage, CandidateView, GeoPoint, PageInfo, UserProfile
from ..errors import InvalidCoordinates, ValidationError
from .geo import bounding_box, haversine_meters, valid_coordinates

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class CandidateOrder(str, Enum):
    DISTANCE = "distance"
    RECENTLY_LOCATED = "recently_located"


@dataclass(frozen=True)
class CandidateFlow:
    name: str
    default_radius_km: float
    order: CandidateOrder
    require_onboarding: bool


def discovery_flow(default_radius_km: float = 50.0, order: CandidateOrder | str = CandidateOrder.RECENTLY_LOCATED) -> CandidateFlow:
    return CandidateFlow("discovery", float(default_radius_km), CandidateOrder(order), require_onboarding=True)


def nearby_flow(default_radius_km: float = 10.0, order: CandidateOrder | str = CandidateOrder.DISTANCE) -> CandidateFlow:
    return CandidateFlow("nearby", float(default_radius_km), CandidateOrder(order), require_onboarding=False)


def page_bounds(page: int | None, page_size: int | None, default_size: int, max_size: int) -> tuple[int, int]:
    page = max(1, int(page or 1))
    size = default_size if page_size is None else int(page_size)
    return page, max(1, min(max_size, size))


def paginate(items: list[CandidateView], page: int, page_size: int) -> CandidatePage:
    total = len(items)
    total_pages = math.ceil(total / page_size) if total else 0
    start = (page - 1) * page_size
    chunk = items[start:start + page_size]
    return CandidatePage(
        candidates=chunk,
        page_info=PageInfo(
            page=page,
            page_size=page_size,
            total=total,
            total_pages=total_pages,
            has_next=page < total_pages,
        ),
    )


def age_in_range(age: int | None, min_age: int | None, max_age: int | None) -> bool:
    if min_age is None and max_age is None:
        return True
    if age is None:
        return False
    if min_age is not None and age < min_age:
        return False
    if max_age is not None and age > max_age:
        return False
    return True


def rank(candidates: list[CandidateView], order: CandidateOrder) -> list[CandidateView]:
    if order == CandidateOrder.DISTANCE:
        return sorted(candidates, key=lambda c: (c.distance_meters, c.user.id))
    return sorted(
        candidates,
        key=lambda c: (-(c.user.last_location_update or _EPOCH).timestamp(), c.distance_meters, c.user.id),
    )


class GeoCandidateLocator:
    """Nearby, eligible candidates for a requester, filtered in two phases.

    Phase one asks storage for users inside a lat/lon rectangle around the
    center. Phase two computes the haversine distance of each row, drops the
    ones outside the circle, then applies eligibility, ordering and the page
    slice. Totals are always counted after phase two.
    """

    def __init__(
        self,
        users,
        *,
        discovery: CandidateFlow | None = None,
        nearby: CandidateFlow | None = None,
        default_page_size: int = 20,
        max_page_size: int = 100,
        logger: logging.Logger | None = None,
    ) -> None:
        self._users = users
        self.discovery = discovery or discovery_flow()
        self.nearby = nearby or nearby_flow()
        self._default_page_size = default_page_size
        self._max_page_size = max_page_size
        self._log = logger or logging.getLogger(__name__)

    def find_candidates(
        self,
        requester_id: str | None,
        center: GeoPoint | None = None,
        radius_km: float | None = None,
        page: int | None = 1,
        page_size: int | None = None,
        *,
        flow: CandidateFlow | None = None,
        order: CandidateOrder | str | None = None,
        exclude_acted: bool = False,
        deadline: Deadline | None = None,
    ) -> CandidatePage:
        flow = flow or self.discovery
        try:
            order = CandidateOrder(order) if order else flow.order
        except ValueError:
            raise ValidationError("order must be 'distance' or 'recently_located'") from None
        page, page_size = page_bounds(page, page_size, self._default_page_size, self._max_page_size)

        if center is not None and not valid_coordinates(center.latitude, center.longitude):
            raise InvalidCoordinates()

        requester: UserProfile | None = None
        if requester_id is not None:
            requester = self._users.require(str(requester_id), deadline=deadline)
            if center is None:
                center = requester.location

        if center is None:
            self._log.info("[LOCATOR] no location for requester=%s flow=%s", requester_id, flow.name)
            return paginate([], page, page_size)

        if radius_km is None or radius_km <= 0:
            radius_km = flow.default_radius_km
        radius_m = radius_km * 1000.0

        min_age = requester.min_age if requester else None
        max_age = requester.max_age if requester else None

        box = bounding_box(center.latitude, center.longitude, radius_km)
        self._log.debug(
            "[LOCATOR] bounds lat=[%s, %s] lon=%s radius_km=%s",
            box.min_lat,
            box.max_lat,
            box.lon_ranges,
            radius_km,
        )
        rows = self._users.candidates_in_box(
            box,
            exclude_user_id=requester.id if requester else None,
            min_age=min_age,
            max_age=max_age,
            require_onboarding=flow.require_onboarding,
            exclude_acted_by=requester.id if (requester and exclude_acted) else None,
            deadline=deadline,
        )

        survivors: list[CandidateView] = []
        for user in rows:
            if not self._eligible(user, requester, flow, min_age, max_age):
                continue
            distance = haversine_meters(center.latitude, center.longitude, user.last_latitude, user.last_longitude)
            if distance <= radius_m:
                survivors.append(CandidateView(user=user, distance_meters=distance))

        result = paginate(rank(survivors, order), page, page_size)
        self._log.info(
            "[LOCATOR] requester=%s flow=%s box_rows=%d within_radius=%d page=%d returned=%d",
            requester_id,
            flow.name,
            len(rows),
            len(survivors),
            page,
            len(result.candidates),
        )
        return result

    def find_nearby(
        self,
        center: GeoPoint | None,
        radius_km: float | None = None,
        page: int | None = 1,
        page_size: int | None = None,
        *,
        requester_id: str | None = None,
        deadline: Deadline | None = None,
    ) -> CandidatePage:
        return self.find_candidates(
            requester_id,
            center,
            radius_km,
            page,
            page_size,
            flow=self.nearby,
            deadline=deadline,
        )

    def find_potential_matches(
        self,
        requester_id: str,
        page: int | None = 1,
        page_size: int | None = None,
        *,
        deadline: Deadline | None = None,
    ) -> CandidatePage:
        """Discovery feed without anyone the requester already swiped on.

        The search radius is the requester's own max_distance when set.
        """
        requester = self._users.require(str(requester_id), deadline=deadline)
        radius_km = requester.max_distance / 1000.0 if requester.max_distance else None
        return self.find_candidates(
            requester.id,
            None,
            radius_km,
            page,
            page_size,
            flow=self.discovery,
            exclude_acted=True,
            deadline=deadline,
        )

    @staticmethod
    def _eligible(
        user: UserProfile,
        requester: UserProfile | None,
        flow: CandidateFlow,
        min_age: int | None,
        max_age: int | None,
    ) -> bool:
        if requester is not None and user.id == requester.id:
            return False
        if not user.is_profile_visible or user.location is None:
            return False
        if flow.require_onboarding and not user.is_onboarding_completed:
            return False
        return age_in_range(user.age, min_age, max_age)
