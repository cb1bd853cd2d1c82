"""Exception classes for the Spotify Web API client."""

from typing import Optional


class SpotifyError(Exception):
    """Base exception for all Spotify Web API errors.

    Attributes:
        status: HTTP status code returned by the API
        message: Error message from the response body
    """

    def __init__(self, status: int, message: str):
        """Initialize Spotify error.

        Args:
            status: HTTP status code (401, 403, 404, 429, 5xx, ...)
            message: Human-readable error message
        """
        self.status = status
        self.message = message
        super().__init__(f"Spotify Error {status}: {message}")


class SpotifyAuthenticationError(SpotifyError):
    """Access token missing, expired or revoked (status 401)."""

    pass


class SpotifyAuthorizationError(SpotifyError):
    """Token lacks the scope for the requested resource (status 403)."""

    pass


class SpotifyNotFoundError(SpotifyError):
    """Requested playlist, album or artist does not exist (status 404)."""

    pass


class SpotifyRateLimitError(SpotifyError):
    """Too many requests (status 429).

    Attributes:
        retry_after: Seconds the server asked us to wait, if provided
    """

    def __init__(self, status: int, message: str, retry_after: Optional[float] = None):
        super().__init__(status, message)
        self.retry_after = retry_after


class SpotifyServerError(SpotifyError):
    """Spotify backend failure (status 5xx)."""

    pass
