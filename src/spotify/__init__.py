"""Spotify Web API client module for catalog access."""

__version__ = "1.0.0"

from .client import SpotifyClient, normalize_limit
from .exceptions import (
    SpotifyAuthenticationError,
    SpotifyAuthorizationError,
    SpotifyError,
    SpotifyNotFoundError,
    SpotifyRateLimitError,
    SpotifyServerError,
)
from .models import (
    SpotifyAlbum,
    SpotifyArtist,
    SpotifyArtistRef,
    SpotifyConfig,
    SpotifyImage,
    SpotifyPlaylist,
    SpotifyTrack,
    SpotifyUser,
)
from .retry import NO_RETRY, RetryPolicy

__all__ = [
    # Client
    "SpotifyClient",
    "normalize_limit",
    "RetryPolicy",
    "NO_RETRY",
    # Models
    "SpotifyConfig",
    "SpotifyAlbum",
    "SpotifyArtist",
    "SpotifyArtistRef",
    "SpotifyImage",
    "SpotifyPlaylist",
    "SpotifyTrack",
    "SpotifyUser",
    # Exceptions
    "SpotifyError",
    "SpotifyAuthenticationError",
    "SpotifyAuthorizationError",
    "SpotifyNotFoundError",
    "SpotifyRateLimitError",
    "SpotifyServerError",
]
