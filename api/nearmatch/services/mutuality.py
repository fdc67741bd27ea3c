from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from ..entities import MatchAction, RelationshipRecord


class MatchedAtPolicy(str, Enum):
    KEEP_FIRST = "keep_first"
    RESTAMP = "restamp"


@dataclass(frozen=True)
class SlotWrite:
    action_low: MatchAction | None
    action_high: MatchAction | None
    low_acted_at: datetime | None
    high_acted_at: datetime | None
    is_mutual: bool
    matched_at: datetime | None
    became_mutual_now: bool


def is_mutual(action_low: MatchAction | None, action_high: MatchAction | None) -> bool:
    if action_low is None or action_high is None:
        return False
    return action_low.is_affirmative and action_high.is_affirmative


def first_action(slot: str, action: MatchAction, now: datetime) -> SlotWrite:
    return SlotWrite(
        action_low=action if slot == "low" else None,
        action_high=action if slot == "high" else None,
        low_acted_at=now if slot == "low" else None,
        high_acted_at=now if slot == "high" else None,
        is_mutual=False,
        matched_at=None,
        became_mutual_now=False,
    )


def apply_action(
    record: RelationshipRecord,
    slot: str,
    action: MatchAction,
    now: datetime,
    policy: MatchedAtPolicy = MatchedAtPolicy.KEEP_FIRST,
) -> SlotWrite:
    action_low, action_high = record.action_low, record.action_high
    low_acted_at, high_acted_at = record.low_acted_at, record.high_acted_at
    if slot == "low":
        action_low, low_acted_at = action, now
    elif slot == "high":
        action_high, high_acted_at = action, now
    else:
        raise ValueError(f"unknown slot {slot!r}")

    mutual = is_mutual(action_low, action_high)
    became = mutual and not record.is_mutual

    matched_at = record.matched_at
    if became:
        if policy == MatchedAtPolicy.RESTAMP or matched_at is None:
            matched_at = now

    return SlotWrite(
        action_low=action_low,
        action_high=action_high,
        low_acted_at=low_acted_at,
        high_acted_at=high_acted_at,
        is_mutual=mutual,
        matched_at=matched_at,
        became_mutual_now=became,
    )
