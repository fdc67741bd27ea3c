from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from .errors import InvalidAction


class MatchAction(str, Enum):
    LIKE = "LIKE"
    DISLIKE = "DISLIKE"
    SUPER_LIKE = "SUPER_LIKE"

    @property
    def is_affirmative(self) -> bool:
        return self in (MatchAction.LIKE, MatchAction.SUPER_LIKE)

    @classmethod
    def parse(cls, value: Any) -> "MatchAction":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidAction(f"action must be LIKE, DISLIKE, or SUPER_LIKE (got {value!r})") from None


def as_utc(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class UserProfile:
    id: str
    display_name: str | None = None
    bio: str | None = None
    photo_url: str | None = None
    age: int | None = None
    gender: str | None = None
    is_profile_visible: bool = True
    is_onboarding_completed: bool = False
    last_latitude: float | None = None
    last_longitude: float | None = None
    last_location_update: datetime | None = None
    min_age: int | None = None
    max_age: int | None = None
    max_distance: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def location(self) -> GeoPoint | None:
        if self.last_latitude is None or self.last_longitude is None:
            return None
        return GeoPoint(self.last_latitude, self.last_longitude)

    @classmethod
    def from_row(cls, row: Any) -> "UserProfile":
        return cls(
            id=str(row.id),
            display_name=row.display_name,
            bio=row.bio,
            photo_url=row.photo_url,
            age=row.age,
            gender=row.gender,
            is_profile_visible=bool(row.is_profile_visible),
            is_onboarding_completed=bool(row.is_onboarding_completed),
            last_latitude=row.last_latitude,
            last_longitude=row.last_longitude,
            last_location_update=as_utc(row.last_location_update),
            min_age=row.min_age,
            max_age=row.max_age,
            max_distance=row.max_distance,
            created_at=as_utc(row.created_at),
            updated_at=as_utc(row.updated_at),
        )


@dataclass(frozen=True)
class RelationshipRecord:
    id: str
    member_low: str
    member_high: str
    action_low: MatchAction | None
    action_high: MatchAction | None
    low_acted_at: datetime | None
    high_acted_at: datetime | None
    is_mutual: bool
    matched_at: datetime | None
    version: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: Any) -> "RelationshipRecord":
        return cls(
            id=str(row.id),
            member_low=str(row.member_low),
            member_high=str(row.member_high),
            action_low=MatchAction(row.action_low) if row.action_low else None,
            action_high=MatchAction(row.action_high) if row.action_high else None,
            low_acted_at=as_utc(row.low_acted_at),
            high_acted_at=as_utc(row.high_acted_at),
            is_mutual=bool(row.is_mutual),
            matched_at=as_utc(row.matched_at),
            version=int(row.version),
            created_at=as_utc(row.created_at),
            updated_at=as_utc(row.updated_at),
        )


@dataclass(frozen=True)
class MatchOutcome:
    """A relationship record seen from the acting user's side."""

    match_id: str
    counterpart_id: str
    my_action: MatchAction | None
    their_action: MatchAction | None
    is_mutual: bool
    matched_at: datetime | None
    became_mutual_now: bool
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class MatchedUser:
    user: UserProfile
    match_id: str
    matched_at: datetime | None
    updated_at: datetime


@dataclass(frozen=True)
class CandidateView:
    user: UserProfile
    distance_meters: float


@dataclass(frozen=True)
class PageInfo:
    page: int
    page_size: int
    total: int
    total_pages: int
    has_next: bool


@dataclass(frozen=True)
class CandidatePage:
    candidates: list[CandidateView]
    page_info: PageInfo
