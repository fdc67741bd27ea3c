from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import datetime, timezone

from sqlalchemy import and_, case, insert, or_, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError

from ..database import guard_deadline, storage_error
from ..deadline import Deadline
from ..entities import MatchAction, RelationshipRecord
from ..errors import Conflict
from ..models import MatchRecord
from .mutuality import MatchedAtPolicy, apply_action, first_action
from .pair_key import PairKey


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class ActionLedger:
    """Owns the single relationship record of every canonical pair.

    Writes are serialized by the database, not by this process: the insert path
    leans on the unique (member_low, member_high) constraint and the update path
    is a compare-and-set on ``version``. Losing either race restarts the whole
    read-modify-write, up to ``max_attempts`` times, then raises Conflict.
    """

    def __init__(
        self,
        session_factory,
        *,
        max_attempts: int = 3,
        matched_at_policy: MatchedAtPolicy | str = MatchedAtPolicy.KEEP_FIRST,
        clock=_now_utc,
        id_factory=_new_id,
        logger: logging.Logger | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._max_attempts = max(1, int(max_attempts))
        self._policy = MatchedAtPolicy(matched_at_policy)
        self._clock = clock
        self._id_factory = id_factory
        self._log = logger or logging.getLogger(__name__)

    @property
    def matched_at_policy(self) -> MatchedAtPolicy:
        return self._policy

    def record_action(
        self,
        pair: PairKey,
        acting_member: str,
        action: MatchAction | str,
        *,
        deadline: Deadline | None = None,
    ) -> tuple[RelationshipRecord, bool]:
        action = MatchAction.parse(action)
        slot = pair.slot_of(acting_member)

        for attempt in range(1, self._max_attempts + 1):
            try:
                result = self._attempt(pair, slot, action, deadline)
            except IntegrityError as exc:
                self._log.warning(
                    "[LEDGER] insert lost race pair=(%s, %s) attempt=%d: %s",
                    pair.low,
                    pair.high,
                    attempt,
                    exc.orig,
                )
                continue
            except DBAPIError as exc:
                self._log.error("[LEDGER] storage failure pair=(%s, %s): %s", pair.low, pair.high, exc)
                raise storage_error(exc, "match storage unavailable") from exc
            if result is not None:
                return result
            self._log.warning("[LEDGER] stale version pair=(%s, %s) attempt=%d", pair.low, pair.high, attempt)

        raise Conflict(f"Could not record action for pair ({pair.low}, {pair.high}) after {self._max_attempts} attempts")

    def get(self, pair: PairKey, *, deadline: Deadline | None = None) -> RelationshipRecord | None:
        try:
            with self._session_factory() as db:
                guard_deadline(db, deadline, "ledger lookup")
                row = self._fetch(db, pair)
        except DBAPIError as exc:
            raise storage_error(exc, "match storage unavailable") from exc
        return RelationshipRecord.from_row(row) if row else None

    def mutual_for(self, user_id: str, *, deadline: Deadline | None = None) -> list[RelationshipRecord]:
        stmt = (
            select(MatchRecord)
            .where(
                MatchRecord.is_mutual.is_(True),
                or_(MatchRecord.member_low == user_id, MatchRecord.member_high == user_id),
            )
            .order_by(MatchRecord.matched_at.is_(None), MatchRecord.matched_at.desc(), MatchRecord.updated_at.desc())
        )
        return self._select(stmt, deadline, "mutual matches")

    def by_own_action(
        self,
        user_id: str,
        action: MatchAction | str,
        limit: int,
        *,
        deadline: Deadline | None = None,
    ) -> list[RelationshipRecord]:
        """Records where the user's own slot holds ``action``, latest own action first."""
        action = MatchAction.parse(action)
        own_acted_at = case((MatchRecord.member_low == user_id, MatchRecord.low_acted_at), else_=MatchRecord.high_acted_at)
        stmt = (
            select(MatchRecord)
            .where(
                or_(
                    and_(MatchRecord.member_low == user_id, MatchRecord.action_low == action.value),
                    and_(MatchRecord.member_high == user_id, MatchRecord.action_high == action.value),
                )
            )
            .order_by(own_acted_at.desc(), MatchRecord.updated_at.desc())
            .limit(limit)
        )
        return self._select(stmt, deadline, "actions by user")

    def _attempt(
        self,
        pair: PairKey,
        slot: str,
        action: MatchAction,
        deadline: Deadline | None,
    ) -> tuple[RelationshipRecord, bool] | None:
        with self._session_factory() as db:
            guard_deadline(db, deadline, "ledger write")
            row = self._fetch(db, pair)
            now = self._clock()

            if row is None:
                write = first_action(slot, action, now)
                record = RelationshipRecord(
                    id=self._id_factory(),
                    member_low=pair.low,
                    member_high=pair.high,
                    action_low=write.action_low,
                    action_high=write.action_high,
                    low_acted_at=write.low_acted_at,
                    high_acted_at=write.high_acted_at,
                    is_mutual=False,
                    matched_at=None,
                    version=1,
                    created_at=now,
                    updated_at=now,
                )
                db.execute(
                    insert(MatchRecord).values(
                        id=record.id,
                        member_low=record.member_low,
                        member_high=record.member_high,
                        action_low=_value(record.action_low),
                        action_high=_value(record.action_high),
                        low_acted_at=record.low_acted_at,
                        high_acted_at=record.high_acted_at,
                        is_mutual=False,
                        matched_at=None,
                        version=1,
                        created_at=now,
                        updated_at=now,
                    )
                )
                db.commit()
                self._log.info(
                    "[LEDGER] created match_id=%s pair=(%s, %s) %s=%s",
                    record.id,
                    pair.low,
                    pair.high,
                    slot,
                    action.value,
                )
                return record, False

            current = RelationshipRecord.from_row(row)
            write = apply_action(current, slot, action, now, self._policy)
            result = db.execute(
                update(MatchRecord)
                .where(MatchRecord.id == current.id, MatchRecord.version == current.version)
                .values(
                    action_low=_value(write.action_low),
                    action_high=_value(write.action_high),
                    low_acted_at=write.low_acted_at,
                    high_acted_at=write.high_acted_at,
                    is_mutual=write.is_mutual,
                    matched_at=write.matched_at,
                    version=current.version + 1,
                    updated_at=now,
                )
            )
            if result.rowcount != 1:
                db.rollback()
                return None
            db.commit()

        if write.became_mutual_now:
            self._log.info("[LEDGER] mutual match_id=%s pair=(%s, %s)", current.id, pair.low, pair.high)
        updated = replace(
            current,
            action_low=write.action_low,
            action_high=write.action_high,
            low_acted_at=write.low_acted_at,
            high_acted_at=write.high_acted_at,
            is_mutual=write.is_mutual,
            matched_at=write.matched_at,
            version=current.version + 1,
            updated_at=now,
        )
        return updated, write.became_mutual_now

    def _fetch(self, db, pair: PairKey):
        return (
            db.execute(
                select(MatchRecord).where(MatchRecord.member_low == pair.low, MatchRecord.member_high == pair.high)
            )
            .scalars()
            .first()
        )

    def _select(self, stmt, deadline: Deadline | None, operation: str) -> list[RelationshipRecord]:
        try:
            with self._session_factory() as db:
                guard_deadline(db, deadline, operation)
                rows = db.execute(stmt).scalars().all()
        except DBAPIError as exc:
            self._log.error("[LEDGER] %s query failed: %s", operation, exc)
            raise storage_error(exc, "match storage unavailable") from exc
        return [RelationshipRecord.from_row(r) for r in rows]


def _value(action: MatchAction | None) -> str | None:
    return action.value if action is not None else None
