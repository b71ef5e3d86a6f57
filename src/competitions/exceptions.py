"""Competition exceptions."""


class CompetitionException(Exception):
    """Base exception for competition errors."""

    pass


class ConfigurationError(CompetitionException):
    """Raised when required competition options are missing or invalid.

    Every violation is collected before raising so the caller can fix them
    all at once.
    """

    def __init__(self, missing: list[str], invalid: list[str] | None = None):
        self.missing = list(missing)
        self.invalid = list(invalid or [])

        parts = []
        if self.missing:
            parts.append(f"Missing required key(s): {', '.join(self.missing)}")
        if self.invalid:
            parts.append(f"Invalid key(s): {', '.join(self.invalid)}")
        super().__init__("; ".join(parts))


class NotFoundError(CompetitionException):
    """Raised when a competition or participant does not exist."""

    pass


class AuthorizationError(CompetitionException):
    """Raised when a user may not perform an operation on a competition."""

    pass


class InvalidStateError(CompetitionException):
    """Raised when an operation does not fit the competition's current state."""

    pass


class UpstreamFetchError(CompetitionException):
    """Raised when activity history could not be fetched for participants."""

    def __init__(self, user_ids: list[str], reason: str):
        self.user_ids = list(user_ids)
        super().__init__(
            f"Failed to fetch activity for user(s) {', '.join(self.user_ids)}: {reason}"
        )
