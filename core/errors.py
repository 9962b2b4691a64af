"""Exception hierarchy for Hue bridge communication.

Every failure raised by the API client is a HueError subclass, so callers can
catch the whole family in one place and still tell the cases apart.
"""


class HueError(Exception):
    """Base class for all Hue bridge errors."""


class DiscoveryError(HueError):
    """Bridge discovery service could not be reached or returned garbage."""


class LinkButtonError(HueError):
    """Bridge refused to create an API key (usually: link button not pressed)."""

    def __init__(self, message: str, error_type: int | None = None):
        self.error_type = error_type
        super().__init__(message)


class ProtocolError(HueError):
    """Bridge response did not have the expected shape."""


class BridgeApiError(HueError):
    """Bridge returned errors in the response envelope, or an unclassified failure."""


class NotFoundError(HueError):
    """Requested resource does not exist on the bridge."""


class AuthenticationError(HueError):
    """API key rejected (HTTP 401/403)."""


class RateLimitError(HueError):
    """Too many requests (HTTP 429)."""


class ServerError(HueError):
    """Bridge-side failure (HTTP 5xx)."""


class ConnectivityError(HueError):
    """Connection refused or timed out."""
