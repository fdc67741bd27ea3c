from datetime import datetime, timedelta, timezone

import pytest

from nearmatch.entities import MatchAction, RelationshipRecord
from nearmatch.errors import InvalidAction
from nearmatch.services.mutuality import MatchedAtPolicy, apply_action, first_action, is_mutual

LIKE = MatchAction.LIKE
DISLIKE = MatchAction.DISLIKE
SUPER = MatchAction.SUPER_LIKE
T0 = datetime(2026, 3, 1, tzinfo=timezone.utc)


def _record(action_low=None, action_high=None, mutual=False, matched_at=None):
    return RelationshipRecord(
        id="m1",
        member_low="a",
        member_high="b",
        action_low=action_low,
        action_high=action_high,
        low_acted_at=T0 if action_low else None,
        high_acted_at=T0 if action_high else None,
        is_mutual=mutual,
        matched_at=matched_at,
        version=1,
        created_at=T0,
        updated_at=T0,
    )


def test_mutual_requires_two_affirmative_actions():
    assert is_mutual(LIKE, LIKE)
    assert is_mutual(LIKE, SUPER)
    assert is_mutual(SUPER, SUPER)
    assert not is_mutual(LIKE, None)
    assert not is_mutual(None, None)
    for other in (None, LIKE, DISLIKE, SUPER):
        assert not is_mutual(DISLIKE, other)
        assert not is_mutual(other, DISLIKE)


def test_first_action_fills_only_acting_slot():
    write = first_action("high", LIKE, T0)
    assert write.action_low is None
    assert write.action_high == LIKE
    assert write.high_acted_at == T0 and write.low_acted_at is None
    assert write.is_mutual is False and write.became_mutual_now is False


def test_reciprocal_like_becomes_mutual_and_stamps():
    now = T0 + timedelta(minutes=5)
    write = apply_action(_record(action_low=LIKE), "high", SUPER, now)
    assert write.is_mutual is True
    assert write.became_mutual_now is True
    assert write.matched_at == now
    assert write.action_low == LIKE and write.low_acted_at == T0


def test_repeat_on_mutual_record_is_not_a_new_match():
    write = apply_action(_record(LIKE, LIKE, mutual=True, matched_at=T0), "low", LIKE, T0 + timedelta(hours=1))
    assert write.is_mutual is True
    assert write.became_mutual_now is False
    assert write.matched_at == T0


def test_dislike_clears_mutual_but_keeps_matched_at():
    write = apply_action(_record(LIKE, LIKE, mutual=True, matched_at=T0), "high", DISLIKE, T0 + timedelta(hours=1))
    assert write.is_mutual is False
    assert write.matched_at == T0


@pytest.mark.parametrize(
    "policy, expected_offset",
    [(MatchedAtPolicy.KEEP_FIRST, timedelta(0)), (MatchedAtPolicy.RESTAMP, timedelta(days=2))],
)
def test_regained_match_follows_policy(policy, expected_offset):
    lost = _record(LIKE, DISLIKE, mutual=False, matched_at=T0)
    regained_at = T0 + timedelta(days=2)
    write = apply_action(lost, "high", LIKE, regained_at, policy)
    assert write.is_mutual is True
    assert write.became_mutual_now is True
    assert write.matched_at == T0 + expected_offset


def test_parse_rejects_unknown_action():
    assert MatchAction.parse("SUPER_LIKE") is SUPER
    with pytest.raises(InvalidAction):
        MatchAction.parse("LOVE")
    with pytest.raises(InvalidAction):
        MatchAction.parse(None)
