class EngineError(Exception):
    """Base class for failures the feed and swipe operations report to callers."""

    default_message = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InputError(EngineError):
    """Rejected before any write: self-swipe, bad ids, malformed filters."""

    default_message = "Invalid input"


class NotFoundError(EngineError):
    default_message = "User not found"


class DependencyFailure(EngineError):
    """A required store could not be read or written."""

    default_message = "Store unavailable"
