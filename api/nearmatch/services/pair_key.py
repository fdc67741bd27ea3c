from __future__ import annotations

from dataclasses import dataclass

from ..errors import InvariantViolation, SelfAction


@dataclass(frozen=True)
class PairKey:
    low: str
    high: str

    def slot_of(self, member_id: str) -> str:
        if member_id == self.low:
            return "low"
        if member_id == self.high:
            return "high"
        raise InvariantViolation(f"{member_id} is not a member of pair ({self.low}, {self.high})")

    def other(self, member_id: str) -> str:
        return self.high if self.slot_of(member_id) == "low" else self.low

    def __contains__(self, member_id: object) -> bool:
        return member_id in (self.low, self.high)


def canonical_pair(user_a: str, user_b: str) -> PairKey:
    a, b = str(user_a), str(user_b)
    if a == b:
        raise SelfAction()
    low, high = sorted((a, b))
    return PairKey(low=low, high=high)
