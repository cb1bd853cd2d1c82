"""
Offline catalog for demos and development.

``MockCatalogClient`` answers the same calls as ``SpotifyClient`` from a
deterministic, generated library, so every option can be composed without
network access or credentials.
"""

import logging
import random
import re
from typing import Dict, List, Optional, Set

from src.spotify.exceptions import SpotifyNotFoundError
from src.spotify.models import (
    SpotifyAlbum,
    SpotifyArtist,
    SpotifyArtistRef,
    SpotifyImage,
    SpotifyPlaylist,
    SpotifyTrack,
)

from .constants import (
    ACOUSTIC_PLAYLIST_NAME,
    CURATED_GENRE_SOURCE_NAMES,
    PRIMARY_ARTIST_NAME,
    SIGNAL_PLAYLIST_NAME,
    SIMILAR_ARTIST_NAMES,
)

logger = logging.getLogger(__name__)

ALBUMS_PER_ARTIST = 4
TRACKS_PER_ALBUM = 12
PLAYLIST_SIZE = 60
LIKED_SIZE = 150


def _slug(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


class MockCatalogClient:
    """In-memory catalog client with a seeded demo library.

    Attributes:
        artists: Demo artists by id
        albums: Demo albums by id
        playlists: Library playlists by id
    """

    def __init__(self, seed: int = 7):
        self._rng = random.Random(seed)
        self.artists: Dict[str, SpotifyArtist] = {}
        self.albums: Dict[str, SpotifyAlbum] = {}
        self._album_tracks: Dict[str, List[SpotifyTrack]] = {}
        self._artist_albums: Dict[str, List[SpotifyAlbum]] = {}
        self.playlists: Dict[str, SpotifyPlaylist] = {}
        self._playlist_tracks: Dict[str, List[SpotifyTrack]] = {}
        self._liked: List[SpotifyTrack] = []

        for name in (PRIMARY_ARTIST_NAME,) + SIMILAR_ARTIST_NAMES:
            self._add_artist(name, first_year=1995)
        for index in range(8):
            self._add_artist(f"Demo MC {index + 1}", first_year=1990 + index * 2)
        self._add_artist("Acoustic Demo Band", first_year=1991)

        everything = self.all_tracks()
        rap = [t for t in everything if t.primary_artist.name.startswith("Demo MC")]
        acoustic = [t for t in everything if t.primary_artist.name == "Acoustic Demo Band"]

        self._add_playlist(SIGNAL_PLAYLIST_NAME, self._rng.sample(everything, PLAYLIST_SIZE))
        self._add_playlist(ACOUSTIC_PLAYLIST_NAME, acoustic)
        for name in CURATED_GENRE_SOURCE_NAMES:
            self._add_playlist(name, self._rng.sample(rap, min(len(rap), PLAYLIST_SIZE // 2)))
        self._liked = self._rng.sample(everything, LIKED_SIZE)

        logger.info(
            f"Mock catalog ready: {len(self.artists)} artists, {len(self.albums)} albums, "
            f"{len(self.playlists)} playlists"
        )

    # Library construction

    def _add_artist(self, name: str, first_year: int) -> None:
        artist_id = f"mock-artist-{_slug(name)}"
        self.artists[artist_id] = SpotifyArtist(id=artist_id, name=name, popularity=50)
        ref = SpotifyArtistRef(id=artist_id, name=name)
        albums = []
        for a in range(ALBUMS_PER_ARTIST):
            album_id = f"{artist_id}-album-{a + 1}"
            album = SpotifyAlbum(
                id=album_id,
                name=f"{name} Vol. {a + 1}",
                images=[SpotifyImage(url=f"https://example.invalid/{album_id}.jpg", height=640, width=640)],
                release_date=f"{first_year + a * 3}-01-01",
                album_type="album",
            )
            self.albums[album_id] = album
            albums.append(album)
            self._album_tracks[album_id] = [
                SpotifyTrack(
                    id=f"{album_id}-t{t + 1}",
                    name=f"{name} Song {a + 1}.{t + 1}",
                    uri=f"spotify:track:{album_id}-t{t + 1}",
                    artists=[ref],
                    album=album,
                    duration_ms=180000 + self._rng.randint(0, 120000),
                    explicit=self._rng.random() < 0.2,
                )
                for t in range(TRACKS_PER_ALBUM)
            ]
        self._artist_albums[artist_id] = albums

    def _add_playlist(self, name: str, tracks: List[SpotifyTrack]) -> None:
        playlist_id = f"mock-playlist-{_slug(name)}"
        self.playlists[playlist_id] = SpotifyPlaylist(
            id=playlist_id, name=name, owner_id="mock-user", track_count=len(tracks)
        )
        self._playlist_tracks[playlist_id] = list(tracks)

    def all_tracks(self) -> List[SpotifyTrack]:
        return [t for tracks in self._album_tracks.values() for t in tracks]

    # Catalog client interface

    async def get_liked_tracks(self, target: int = 300) -> List[SpotifyTrack]:
        return self._liked[:target]

    async def get_liked_track_ids(self, limit: int = 300) -> Set[str]:
        return {t.id for t in self._liked[:limit]}

    async def get_playlist_tracks_bulk(self, playlist_id: str, target: int = 300) -> List[SpotifyTrack]:
        if playlist_id not in self._playlist_tracks:
            raise SpotifyNotFoundError(404, f"Playlist {playlist_id} not found")
        return self._playlist_tracks[playlist_id][:target]

    async def get_album_tracks(self, album_id: str, album: Optional[SpotifyAlbum] = None) -> List[SpotifyTrack]:
        if album_id not in self._album_tracks:
            raise SpotifyNotFoundError(404, f"Album {album_id} not found")
        return list(self._album_tracks[album_id])

    async def get_album_tracks_full(self, album_id: str) -> List[SpotifyTrack]:
        return await self.get_album_tracks(album_id)

    async def get_artist_top_tracks(self, artist_id: str) -> List[SpotifyTrack]:
        albums = self._artist_albums.get(artist_id, [])
        return [self._album_tracks[a.id][0] for a in albums] + [self._album_tracks[a.id][1] for a in albums]

    async def get_artist_albums(self, artist_id: str, include_groups: str = "album") -> List[SpotifyAlbum]:
        if include_groups != "album":
            return []
        return list(self._artist_albums.get(artist_id, []))

    async def search_artists(self, query: str, limit: int = 5) -> List[SpotifyArtist]:
        needle = query.lower().replace(" artist", "")
        matches = [a for a in self.artists.values() if needle in a.name.lower()]
        return matches[:limit]

    async def get_recommendations(
        self, seed_artists: List[str], seed_tracks: List[str], limit: int = 20
    ) -> List[SpotifyTrack]:
        if not seed_artists and not seed_tracks:
            return []
        return self._rng.sample(self.all_tracks(), min(limit, len(self.all_tracks())))

    async def get_all_user_playlists(self) -> List[SpotifyPlaylist]:
        return list(self.playlists.values())

    async def close(self) -> None:
        pass

    async def __aenter__(self) -> "MockCatalogClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
