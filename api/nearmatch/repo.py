import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import and_, or_, select, update
from sqlalchemy.exc import DBAPIError

from .database import guard_deadline, storage_error
from .deadline import Deadline
from .entities import UserProfile
from .errors import InvalidCoordinates, InvalidPreferences, NotFound
from .models import MatchRecord, UserAccount
from .services.geo import BoundingBox, valid_coordinates

MIN_ALLOWED_AGE = 18
MAX_ALLOWED_AGE = 100
MIN_DISTANCE_METERS = 1000
MAX_DISTANCE_METERS = 100000

_UNSET: Any = object()


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class UserRepository:
    """Storage access for user accounts: lookups, location, preferences and the box query."""

    def __init__(self, session_factory, *, clock=_now_utc, logger: logging.Logger | None = None) -> None:
        self._session_factory = session_factory
        self._clock = clock
        self._log = logger or logging.getLogger(__name__)

    def get(self, user_id: str, *, deadline: Deadline | None = None) -> UserProfile | None:
        try:
            with self._session_factory() as db:
                guard_deadline(db, deadline, "user lookup")
                row = db.execute(select(UserAccount).where(UserAccount.id == str(user_id))).scalars().first()
        except DBAPIError as exc:
            self._log.error("[USERS] lookup failed user_id=%s: %s", user_id, exc)
            raise storage_error(exc, "user storage unavailable") from exc
        return UserProfile.from_row(row) if row else None

    def get_many(self, user_ids: list[str], *, deadline: Deadline | None = None) -> dict[str, UserProfile]:
        if not user_ids:
            return {}
        try:
            with self._session_factory() as db:
                guard_deadline(db, deadline, "user batch lookup")
                rows = db.execute(select(UserAccount).where(UserAccount.id.in_([str(u) for u in user_ids]))).scalars().all()
        except DBAPIError as exc:
            self._log.error("[USERS] batch lookup failed: %s", exc)
            raise storage_error(exc, "user storage unavailable") from exc
        return {str(r.id): UserProfile.from_row(r) for r in rows}

    def require(self, user_id: str, *, deadline: Deadline | None = None) -> UserProfile:
        user = self.get(user_id, deadline=deadline)
        if user is None:
            raise NotFound(f"User not found: {user_id}")
        return user

    def exists(self, user_id: str, *, deadline: Deadline | None = None) -> bool:
        return self.get(user_id, deadline=deadline) is not None

    def create(
        self,
        user_id: str | None = None,
        *,
        display_name: str | None = None,
        bio: str | None = None,
        photo_url: str | None = None,
        age: int | None = None,
        gender: str | None = None,
        is_profile_visible: bool = True,
        is_onboarding_completed: bool = False,
        latitude: float | None = None,
        longitude: float | None = None,
        located_at: datetime | None = None,
        min_age: int | None = None,
        max_age: int | None = None,
        max_distance: int | None = None,
    ) -> UserProfile:
        if latitude is not None or longitude is not None:
            if latitude is None or longitude is None or not valid_coordinates(latitude, longitude):
                raise InvalidCoordinates()
        _validate_preferences(min_age, max_age, max_distance)
        now = self._clock()
        row = UserAccount(
            id=str(user_id or uuid.uuid4()),
            display_name=display_name,
            bio=bio,
            photo_url=photo_url,
            age=age,
            gender=gender,
            is_profile_visible=is_profile_visible,
            is_onboarding_completed=is_onboarding_completed,
            last_latitude=latitude,
            last_longitude=longitude,
            last_location_update=(located_at or now) if latitude is not None else None,
            min_age=min_age,
            max_age=max_age,
            max_distance=max_distance,
            created_at=now,
            updated_at=now,
        )
        try:
            with self._session_factory() as db:
                db.add(row)
                db.commit()
        except DBAPIError as exc:
            self._log.error("[USERS] create failed user_id=%s: %s", row.id, exc)
            raise storage_error(exc, "user storage unavailable") from exc
        self._log.info("[USERS] created user_id=%s", row.id)
        return UserProfile.from_row(row)

    def update_location(
        self,
        user_id: str,
        latitude: float,
        longitude: float,
        *,
        deadline: Deadline | None = None,
    ) -> UserProfile:
        if not valid_coordinates(latitude, longitude):
            raise InvalidCoordinates()
        now = self._clock()
        values = {
            "last_latitude": latitude,
            "last_longitude": longitude,
            "last_location_update": now,
            "updated_at": now,
        }
        self._update(user_id, values, deadline=deadline, operation="location update")
        self._log.info("[USERS] location updated user_id=%s", user_id)
        return self.require(user_id, deadline=deadline)

    def update_preferences(
        self,
        user_id: str,
        *,
        min_age: int | None = _UNSET,
        max_age: int | None = _UNSET,
        max_distance: int | None = _UNSET,
        is_profile_visible: bool | None = None,
        is_onboarding_completed: bool | None = None,
        deadline: Deadline | None = None,
    ) -> UserProfile:
        current = self.require(user_id, deadline=deadline)
        merged_min = current.min_age if min_age is _UNSET else min_age
        merged_max = current.max_age if max_age is _UNSET else max_age
        merged_distance = current.max_distance if max_distance is _UNSET else max_distance
        _validate_preferences(merged_min, merged_max, merged_distance)

        values: dict[str, Any] = {
            "min_age": merged_min,
            "max_age": merged_max,
            "max_distance": merged_distance,
            "updated_at": self._clock(),
        }
        if is_profile_visible is not None:
            values["is_profile_visible"] = is_profile_visible
        if is_onboarding_completed is not None:
            values["is_onboarding_completed"] = is_onboarding_completed
        self._update(user_id, values, deadline=deadline, operation="preferences update")
        return self.require(user_id, deadline=deadline)

    def candidates_in_box(
        self,
        box: BoundingBox,
        *,
        exclude_user_id: str | None = None,
        min_age: int | None = None,
        max_age: int | None = None,
        require_onboarding: bool = False,
        exclude_acted_by: str | None = None,
        deadline: Deadline | None = None,
    ) -> list[UserProfile]:
        """Phase-one range query. Over-includes the corners of the box."""
        stmt = select(UserAccount).where(
            UserAccount.is_profile_visible.is_(True),
            UserAccount.last_latitude.is_not(None),
            UserAccount.last_longitude.is_not(None),
            UserAccount.last_latitude >= box.min_lat,
            UserAccount.last_latitude <= box.max_lat,
        )
        if box.lon_ranges is not None:
            stmt = stmt.where(
                or_(*[and_(UserAccount.last_longitude >= lo, UserAccount.last_longitude <= hi) for lo, hi in box.lon_ranges])
            )
        if exclude_user_id:
            stmt = stmt.where(UserAccount.id != str(exclude_user_id))
        if require_onboarding:
            stmt = stmt.where(UserAccount.is_onboarding_completed.is_(True))
        if min_age is not None:
            stmt = stmt.where(UserAccount.age >= min_age)
        if max_age is not None:
            stmt = stmt.where(UserAccount.age <= max_age)
        if exclude_acted_by:
            me = str(exclude_acted_by)
            stmt = stmt.where(
                ~select(MatchRecord.id)
                .where(
                    or_(
                        and_(MatchRecord.member_low == me, MatchRecord.member_high == UserAccount.id),
                        and_(MatchRecord.member_high == me, MatchRecord.member_low == UserAccount.id),
                    )
                )
                .exists()
            )

        try:
            with self._session_factory() as db:
                guard_deadline(db, deadline, "candidate box query")
                rows = db.execute(stmt).scalars().all()
        except DBAPIError as exc:
            self._log.error("[USERS] candidate query failed: %s", exc)
            raise storage_error(exc, "user storage unavailable") from exc
        return [UserProfile.from_row(r) for r in rows]

    def _update(self, user_id: str, values: dict[str, Any], *, deadline: Deadline | None, operation: str) -> None:
        try:
            with self._session_factory() as db:
                guard_deadline(db, deadline, operation)
                result = db.execute(update(UserAccount).where(UserAccount.id == str(user_id)).values(**values))
                if result.rowcount == 0:
                    db.rollback()
                    raise NotFound(f"User not found: {user_id}")
                db.commit()
        except DBAPIError as exc:
            self._log.error("[USERS] %s failed user_id=%s: %s", operation, user_id, exc)
            raise storage_error(exc, "user storage unavailable") from exc


def _validate_preferences(min_age: int | None, max_age: int | None, max_distance: int | None) -> None:
    for label, value in (("min_age", min_age), ("max_age", max_age)):
        if value is not None and not MIN_ALLOWED_AGE <= value <= MAX_ALLOWED_AGE:
            raise InvalidPreferences(f"{label} must be between {MIN_ALLOWED_AGE} and {MAX_ALLOWED_AGE}")
    if min_age is not None and max_age is not None and min_age > max_age:
        raise InvalidPreferences("min_age must not exceed max_age")
    if max_distance is not None and not MIN_DISTANCE_METERS <= max_distance <= MAX_DISTANCE_METERS:
        raise InvalidPreferences(
            f"max_distance must be between {MIN_DISTANCE_METERS} and {MAX_DISTANCE_METERS} meters"
        )
