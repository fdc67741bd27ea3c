import time
from dataclasses import dataclass

from .errors import DeadlineExceeded


@dataclass(frozen=True)
class Deadline:
    """Absolute request deadline on the monotonic clock."""

    expires_at: float

    @classmethod
    def after(cls, seconds: float) -> "Deadline":
        return cls(expires_at=time.monotonic() + seconds)

    def remaining(self) -> float:
        return self.expires_at - time.monotonic()

    def remaining_ms(self) -> int:
        return max(1, int(self.remaining() * 1000))

    def expired(self) -> bool:
        return self.remaining() <= 0

    def check(self, operation: str) -> None:
        if self.expired():
            raise DeadlineExceeded(f"deadline exceeded before {operation}")
