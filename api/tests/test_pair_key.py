import pytest

from nearmatch.errors import InvariantViolation, SelfAction
from nearmatch.services.pair_key import PairKey, canonical_pair


def test_canonical_pair_ignores_call_order():
    assert canonical_pair("bob", "alice") == canonical_pair("alice", "bob") == PairKey("alice", "bob")


def test_canonical_pair_is_lexicographic_on_ids():
    pair = canonical_pair("b2c9", "0f11")
    assert (pair.low, pair.high) == ("0f11", "b2c9")


def test_canonical_pair_rejects_self():
    with pytest.raises(SelfAction):
        canonical_pair("u1", "u1")


def test_slot_and_other_member():
    pair = canonical_pair("u2", "u1")
    assert pair.slot_of("u1") == "low"
    assert pair.slot_of("u2") == "high"
    assert pair.other("u1") == "u2"
    assert "u1" in pair and "u3" not in pair


def test_slot_of_outsider_is_invariant_violation():
    with pytest.raises(InvariantViolation):
        canonical_pair("u1", "u2").slot_of("u3")
