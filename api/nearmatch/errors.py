class MatchError(Exception):
    """Base class for errors raised by the matching core."""

    reason = "error"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.reason
        super().__init__(self.detail)


class ValidationError(MatchError):
    reason = "invalid_request"


class InvalidAction(ValidationError):
    reason = "invalid_action"


class SelfAction(ValidationError):
    reason = "self_action"

    def __init__(self, detail: str | None = None):
        super().__init__(detail or "Cannot act on yourself")


class InvalidCoordinates(ValidationError):
    reason = "invalid_coordinates"

    def __init__(self, detail: str | None = None):
        super().__init__(
            detail or "Invalid coordinates. Latitude must be between -90 and 90, longitude between -180 and 180"
        )


class InvalidPreferences(ValidationError):
    reason = "invalid_preferences"


class NotFound(MatchError):
    reason = "not_found"


class Conflict(MatchError):
    reason = "conflict"


class Unavailable(MatchError):
    reason = "unavailable"


class DeadlineExceeded(Unavailable):
    reason = "deadline_exceeded"


class InvariantViolation(MatchError):
    reason = "invariant_violation"
