"""Data models for Spotify Web API integration.

These records mirror the JSON payloads of the endpoints the mix engine reads.
They are parsed once at the client boundary (see ``transform.py``) so the
engine never touches raw dictionaries.
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class SpotifyConfig:
    """Configuration for connecting to the Spotify Web API.

    Attributes:
        access_token: OAuth bearer token (token acquisition happens elsewhere)
        base_url: API root
        market: ISO country code used for top-tracks and album listings
        client_name: Identifier sent in the User-Agent header
    """

    access_token: str
    base_url: str = "https://api.spotify.com/v1"
    market: str = "US"
    client_name: str = "mix-engine"

    def __post_init__(self):
        """Validate configuration on initialization."""
        if not self.base_url or not self.base_url.startswith(("http://", "https://")):
            raise ValueError("base_url must be a valid HTTP/HTTPS URL")
        if not self.access_token:
            raise ValueError("access_token is required")
        if len(self.market) != 2:
            raise ValueError("market must be a two-letter country code")


@dataclass
class SpotifyImage:
    url: str
    height: Optional[int] = None
    width: Optional[int] = None


@dataclass
class SpotifyArtistRef:
    """Simplified artist object embedded in track payloads."""

    id: str
    name: str


@dataclass
class SpotifyAlbum:
    """Album metadata (simplified or full album object).

    Attributes:
        id: Unique album identifier
        name: Album name
        images: Cover images, largest first
        release_date: "YYYY", "YYYY-MM" or "YYYY-MM-DD"
        album_type: "album", "single" or "compilation" (optional)
    """

    id: str
    name: str
    images: List[SpotifyImage] = field(default_factory=list)
    release_date: Optional[str] = None
    album_type: Optional[str] = None

    @property
    def release_year(self) -> Optional[int]:
        """Year component of the release date, if parseable."""
        if not self.release_date:
            return None
        head = self.release_date.split("-")[0]
        return int(head) if head.isdigit() else None


@dataclass
class SpotifyTrack:
    """Raw candidate track as returned by the catalog.

    Attributes:
        id: Catalog track identifier
        name: Track title
        uri: Playable reference ("spotify:track:<id>")
        artists: Credited artists, primary first
        album: Album the track was fetched with
        duration_ms: Duration in milliseconds (optional)
        is_local: True for user-uploaded local files
        is_playable: False when the track is unavailable in the market;
            None when the API did not report playability
        explicit: True when flagged as explicit content
    """

    id: str
    name: str
    uri: str
    artists: List[SpotifyArtistRef] = field(default_factory=list)
    album: Optional[SpotifyAlbum] = None
    duration_ms: Optional[int] = None
    is_local: bool = False
    is_playable: Optional[bool] = None
    explicit: bool = False

    @property
    def primary_artist(self) -> Optional[SpotifyArtistRef]:
        return self.artists[0] if self.artists else None


@dataclass
class SpotifyArtist:
    """Full artist object from search results.

    Attributes:
        id: Unique artist identifier
        name: Artist name
        popularity: 0-100 popularity score (optional)
        followers: Follower count (optional)
    """

    id: str
    name: str
    images: List[SpotifyImage] = field(default_factory=list)
    popularity: Optional[int] = None
    followers: Optional[int] = None


@dataclass
class SpotifyPlaylist:
    """Simplified playlist object from the user's library listing."""

    id: str
    name: str
    owner_id: Optional[str] = None
    track_count: Optional[int] = None


@dataclass
class SpotifyUser:
    id: str
    display_name: Optional[str] = None
    country: Optional[str] = None
