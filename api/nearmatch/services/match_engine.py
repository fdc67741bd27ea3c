from __future__ import annotations

import logging

from ..deadline import Deadline
from ..entities import MatchAction, MatchedUser, MatchOutcome, RelationshipRecord, UserProfile
from ..errors import NotFound, SelfAction
from .ledger import ActionLedger
from .pair_key import canonical_pair


def clamp_limit(limit: int | None, default: int = 50, maximum: int = 200) -> int:
    if limit is None or limit <= 0:
        return default
    return max(1, min(maximum, int(limit)))


def outcome_for(record: RelationshipRecord, actor_id: str, became_mutual_now: bool) -> MatchOutcome:
    if actor_id == record.member_low:
        counterpart, mine, theirs = record.member_high, record.action_low, record.action_high
    else:
        counterpart, mine, theirs = record.member_low, record.action_high, record.action_low
    return MatchOutcome(
        match_id=record.id,
        counterpart_id=counterpart,
        my_action=mine,
        their_action=theirs,
        is_mutual=record.is_mutual,
        matched_at=record.matched_at,
        became_mutual_now=became_mutual_now,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


class MatchEngine:
    """Entry point for swipes and the match lists built from them."""

    def __init__(
        self,
        ledger: ActionLedger,
        users,
        *,
        default_limit: int = 50,
        max_limit: int = 200,
        logger: logging.Logger | None = None,
    ) -> None:
        self._ledger = ledger
        self._users = users
        self._default_limit = default_limit
        self._max_limit = max_limit
        self._log = logger or logging.getLogger(__name__)

    def act(
        self,
        actor_id: str,
        target_id: str,
        action: MatchAction | str,
        *,
        deadline: Deadline | None = None,
    ) -> MatchOutcome:
        actor_id, target_id = str(actor_id), str(target_id)
        if actor_id == target_id:
            raise SelfAction()
        action = MatchAction.parse(action)
        pair = canonical_pair(actor_id, target_id)

        if not self._users.exists(target_id, deadline=deadline):
            raise NotFound(f"User not found: {target_id}")

        record, became_mutual_now = self._ledger.record_action(pair, actor_id, action, deadline=deadline)
        self._log.info(
            "[MATCH] %s -> %s action=%s mutual=%s new_match=%s",
            actor_id,
            target_id,
            action.value,
            record.is_mutual,
            became_mutual_now,
        )
        return outcome_for(record, actor_id, became_mutual_now)

    def like(self, actor_id: str, target_id: str, *, deadline: Deadline | None = None) -> MatchOutcome:
        return self.act(actor_id, target_id, MatchAction.LIKE, deadline=deadline)

    def dislike(self, actor_id: str, target_id: str, *, deadline: Deadline | None = None) -> MatchOutcome:
        return self.act(actor_id, target_id, MatchAction.DISLIKE, deadline=deadline)

    def super_like(self, actor_id: str, target_id: str, *, deadline: Deadline | None = None) -> MatchOutcome:
        return self.act(actor_id, target_id, MatchAction.SUPER_LIKE, deadline=deadline)

    def list_mutual_matches(self, user_id: str, *, deadline: Deadline | None = None) -> list[MatchedUser]:
        user_id = str(user_id)
        records = self._ledger.mutual_for(user_id, deadline=deadline)
        profiles = self._users.get_many([_counterpart(r, user_id) for r in records], deadline=deadline)
        out: list[MatchedUser] = []
        for r in records:
            profile = profiles.get(_counterpart(r, user_id))
            if profile is None:
                continue
            out.append(MatchedUser(user=profile, match_id=r.id, matched_at=r.matched_at, updated_at=r.updated_at))
        return out

    def list_by_action(
        self,
        user_id: str,
        action: MatchAction | str,
        limit: int | None = None,
        *,
        deadline: Deadline | None = None,
    ) -> list[UserProfile]:
        action = MatchAction.parse(action)
        user_id = str(user_id)
        limit = clamp_limit(limit, self._default_limit, self._max_limit)
        records = self._ledger.by_own_action(user_id, action, limit, deadline=deadline)
        profiles = self._users.get_many([_counterpart(r, user_id) for r in records], deadline=deadline)
        return [profiles[c] for c in (_counterpart(r, user_id) for r in records) if c in profiles]


def _counterpart(record: RelationshipRecord, user_id: str) -> str:
    return record.member_high if record.member_low == user_id else record.member_low
