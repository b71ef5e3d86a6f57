"""Activity provider exceptions."""


class ActivityProviderException(Exception):
    """Base exception for activity provider errors."""

    pass


class ProviderNotFound(ActivityProviderException):
    """Raised when the provider has no record of the user (404)."""

    pass


class ProviderUnauthorized(ActivityProviderException):
    """Raised when the provider rejects our credentials (401/403)."""

    pass


class ProviderRateLimited(ActivityProviderException):
    """Raised when the provider's rate limit is exceeded (429)."""

    pass
