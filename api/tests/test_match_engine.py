import pytest
from sqlalchemy import func, select

from nearmatch.entities import MatchAction
from nearmatch.errors import InvalidAction, NotFound, SelfAction
from nearmatch.models import MatchRecord
from nearmatch.services.match_engine import MatchEngine, clamp_limit


class SpyUsers:
    def __init__(self):
        self.calls = 0

    def exists(self, user_id, *, deadline=None):
        self.calls += 1
        return True


class SpyLedger:
    def __init__(self):
        self.calls = 0

    def record_action(self, *args, **kwargs):
        self.calls += 1
        raise AssertionError("ledger should not be reached")


def _records(session_factory):
    with session_factory() as db:
        return db.execute(select(func.count()).select_from(MatchRecord)).scalar_one()


@pytest.fixture
def people(make_user):
    for uid in ("alice", "bob", "carol", "dave"):
        make_user(uid, 55.75, 37.61, display_name=uid.title())


@pytest.mark.parametrize("first, second", [("alice", "bob"), ("bob", "alice")])
def test_reciprocal_likes_end_in_one_mutual_record(matcher, session_factory, people, first, second):
    matcher.like(first, second)
    outcome = matcher.like(second, first)

    assert outcome.is_mutual is True
    assert outcome.became_mutual_now is True
    assert _records(session_factory) == 1


def test_single_like_is_not_a_match(matcher, people):
    outcome = matcher.like("alice", "bob")
    assert outcome.is_mutual is False
    assert outcome.became_mutual_now is False
    assert outcome.my_action is MatchAction.LIKE
    assert outcome.their_action is None

    assert matcher.list_mutual_matches("alice") == []
    assert [u.id for u in matcher.list_by_action("alice", MatchAction.LIKE, 50)] == ["bob"]


def test_like_then_super_like_is_listed_for_both(matcher, people):
    matcher.like("alice", "bob")
    outcome = matcher.super_like("bob", "alice")
    assert outcome.my_action is MatchAction.SUPER_LIKE
    assert outcome.their_action is MatchAction.LIKE

    for_alice = matcher.list_mutual_matches("alice")
    for_bob = matcher.list_mutual_matches("bob")
    assert [m.user.id for m in for_alice] == ["bob"]
    assert [m.user.id for m in for_bob] == ["alice"]
    assert for_alice[0].matched_at is not None
    assert for_alice[0].matched_at == for_bob[0].matched_at == outcome.matched_at

    matcher.like("alice", "bob")
    assert matcher.list_mutual_matches("alice")[0].matched_at == outcome.matched_at


def test_repeat_like_does_not_announce_a_new_match(matcher, people):
    matcher.like("alice", "bob")
    matcher.like("bob", "alice")
    again = matcher.like("bob", "alice")
    assert again.is_mutual is True
    assert again.became_mutual_now is False


def test_dislike_breaks_match(matcher, people):
    matcher.like("alice", "bob")
    matcher.like("bob", "alice")
    outcome = matcher.dislike("alice", "bob")
    assert outcome.is_mutual is False
    assert matcher.list_mutual_matches("bob") == []


def test_self_action_never_touches_storage():
    users, ledger = SpyUsers(), SpyLedger()
    engine = MatchEngine(ledger, users)
    for action in ("LIKE", "DISLIKE", "SUPER_LIKE", "NOPE"):
        with pytest.raises(SelfAction):
            engine.act("u1", "u1", action)
    assert users.calls == 0
    assert ledger.calls == 0


def test_invalid_action_never_touches_storage():
    users, ledger = SpyUsers(), SpyLedger()
    engine = MatchEngine(ledger, users)
    with pytest.raises(InvalidAction):
        engine.act("u1", "u2", "WINK")
    assert users.calls == 0


def test_unknown_target_is_not_found(matcher, session_factory, people):
    with pytest.raises(NotFound):
        matcher.like("alice", "ghost")
    assert _records(session_factory) == 0


def test_list_by_action_is_scoped_to_own_slot(matcher, people):
    matcher.like("bob", "alice")
    matcher.dislike("alice", "carol")
    matcher.super_like("alice", "dave")

    assert matcher.list_by_action("alice", "LIKE") == []
    assert [u.id for u in matcher.list_by_action("alice", "DISLIKE")] == ["carol"]
    assert [u.id for u in matcher.list_by_action("alice", "SUPER_LIKE")] == ["dave"]
    assert [u.id for u in matcher.list_by_action("bob", "LIKE")] == ["alice"]


def test_list_by_action_orders_latest_first_and_limits(matcher, people):
    matcher.like("alice", "bob")
    matcher.like("alice", "carol")
    matcher.like("alice", "dave")

    assert [u.id for u in matcher.list_by_action("alice", "LIKE")] == ["dave", "carol", "bob"]
    assert [u.id for u in matcher.list_by_action("alice", "LIKE", 2)] == ["dave", "carol"]
    assert [u.id for u in matcher.list_by_action("alice", "LIKE", 0)] == ["dave", "carol", "bob"]
    assert [u.id for u in matcher.list_by_action("alice", "LIKE", -1)] == ["dave", "carol", "bob"]


def test_mutual_matches_newest_first(matcher, people):
    for other in ("bob", "carol"):
        matcher.like("alice", other)
        matcher.like(other, "alice")
    assert [m.user.id for m in matcher.list_mutual_matches("alice")] == ["carol", "bob"]


def test_list_by_action_rejects_unknown_action(matcher, people):
    with pytest.raises(InvalidAction):
        matcher.list_by_action("alice", "MAYBE")


@pytest.mark.parametrize(
    "raw, expected",
    [(None, 50), (0, 50), (-5, 50), (1, 1), (75, 75), (200, 200), (5000, 200)],
)
def test_clamp_limit(raw, expected):
    assert clamp_limit(raw) == expected
