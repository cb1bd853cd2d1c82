"""
Pytest configuration for the mix-engine test suite.

Puts the project root on the Python path so tests import ``src.*`` and
provides shared track factories and an in-memory catalog client.
"""
import random
import sys
from pathlib import Path
from typing import Dict, List, Optional, Set

import pytest

# Add project root to Python path so tests can import from src
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from src.spotify.exceptions import SpotifyNotFoundError, SpotifyServerError  # noqa: E402
from src.spotify.models import (  # noqa: E402
    SpotifyAlbum,
    SpotifyArtist,
    SpotifyArtistRef,
    SpotifyPlaylist,
    SpotifyTrack,
)


def make_track(
    track_id: str,
    artist: str = "Artist",
    album_id: str = "album-1",
    year: Optional[int] = 2000,
    name: Optional[str] = None,
    explicit: bool = False,
    is_local: bool = False,
    is_playable: Optional[bool] = None,
    album_name: Optional[str] = None,
) -> SpotifyTrack:
    """Build a candidate track with sensible defaults."""
    album = SpotifyAlbum(
        id=album_id,
        name=album_name or f"Album {album_id}",
        release_date=f"{year}-06-01" if year else None,
    )
    return SpotifyTrack(
        id=track_id,
        name=name or f"Song {track_id}",
        uri=f"spotify:track:{track_id}",
        artists=[SpotifyArtistRef(id=f"artist-{artist.lower().replace(' ', '-')}", name=artist)],
        album=album,
        duration_ms=200000,
        explicit=explicit,
        is_local=is_local,
        is_playable=is_playable,
    )


def make_pool(prefix: str, count: int, **kwargs) -> List[SpotifyTrack]:
    return [make_track(f"{prefix}-{i}", **kwargs) for i in range(count)]


class FakeCatalogClient:
    """In-memory stand-in for SpotifyClient.

    Populate the attributes directly; ids listed in ``failing`` raise a
    server error when fetched.
    """

    def __init__(self):
        self.liked: List[SpotifyTrack] = []
        self.playlists: Dict[str, List[SpotifyTrack]] = {}
        self.album_tracks: Dict[str, List[SpotifyTrack]] = {}
        self.artist_albums: Dict[str, Dict[str, List[SpotifyAlbum]]] = {}
        self.top_tracks: Dict[str, List[SpotifyTrack]] = {}
        self.artists: Dict[str, List[SpotifyArtist]] = {}
        self.recommendations: List[SpotifyTrack] = []
        self.user_playlists: List[SpotifyPlaylist] = []
        self.failing: Set[str] = set()
        self.calls: List[tuple] = []
        self.closed = False

    def _check(self, key: str) -> None:
        if key in self.failing:
            raise SpotifyServerError(503, f"{key} unavailable")

    async def get_liked_tracks(self, target: int = 300) -> List[SpotifyTrack]:
        self.calls.append(("liked", target))
        self._check("liked")
        return self.liked[:min(target, 300)]

    async def get_liked_track_ids(self, limit: int = 300) -> Set[str]:
        self.calls.append(("liked_ids", limit))
        self._check("liked_ids")
        return {t.id for t in self.liked[:limit]}

    async def get_playlist_tracks_bulk(self, playlist_id: str, target: int = 300) -> List[SpotifyTrack]:
        self.calls.append(("playlist", playlist_id, target))
        self._check(playlist_id)
        if playlist_id not in self.playlists:
            raise SpotifyNotFoundError(404, f"Playlist {playlist_id} not found")
        return self.playlists[playlist_id][:target]

    async def get_album_tracks(self, album_id: str, album: Optional[SpotifyAlbum] = None) -> List[SpotifyTrack]:
        self.calls.append(("album_tracks", album_id))
        self._check(album_id)
        return list(self.album_tracks.get(album_id, []))

    async def get_album_tracks_full(self, album_id: str) -> List[SpotifyTrack]:
        return await self.get_album_tracks(album_id)

    async def get_artist_top_tracks(self, artist_id: str) -> List[SpotifyTrack]:
        self.calls.append(("top_tracks", artist_id))
        self._check(artist_id)
        return list(self.top_tracks.get(artist_id, []))

    async def get_artist_albums(self, artist_id: str, include_groups: str = "album") -> List[SpotifyAlbum]:
        self.calls.append(("artist_albums", artist_id, include_groups))
        return list(self.artist_albums.get(artist_id, {}).get(include_groups, []))

    async def search_artists(self, query: str, limit: int = 5) -> List[SpotifyArtist]:
        self.calls.append(("search", query))
        self._check(query)
        return self.artists.get(query, [])[:limit]

    async def get_recommendations(self, seed_artists, seed_tracks, limit: int = 20) -> List[SpotifyTrack]:
        self.calls.append(("recommendations", tuple(seed_artists), tuple(seed_tracks), limit))
        self._check("recommendations")
        return self.recommendations[:limit]

    async def get_all_user_playlists(self) -> List[SpotifyPlaylist]:
        self.calls.append(("library",))
        self._check("library")
        return list(self.user_playlists)

    async def close(self) -> None:
        self.closed = True

    def call_names(self) -> List[str]:
        return [call[0] for call in self.calls]


@pytest.fixture
def fake_client() -> FakeCatalogClient:
    return FakeCatalogClient()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def track_factory():
    """Factory fixture: ``track_factory("t1", year=1995, explicit=True)``."""
    return make_track


@pytest.fixture
def pool_factory():
    """Factory fixture: ``pool_factory("liked", 40)`` -> 40 distinct tracks."""
    return make_pool
