"""
Catalog Resolver - links named logical sources to catalog identifiers.

Playlists are matched by normalized exact name against the user's full
library; artists are resolved through catalog search. Linked slots are never
overwritten, so resolving twice is a no-op.
"""

import logging
import re
from typing import Dict, List, Optional, Sequence

from src.spotify.models import SpotifyPlaylist

from .catalog_store import CatalogStore
from .constants import (
    ACOUSTIC_PLAYLIST_NAME,
    CURATED_GENRE_SOURCE_NAMES,
    PRIMARY_ARTIST_NAME,
    SIGNAL_PLAYLIST_NAME,
)
from .models import CatalogConfig, CatalogSource, SourceKind

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")
_QUOTES = str.maketrans({"“": '"', "”": '"', "‘": "'", "’": "'"})


def normalize_name(name: str) -> str:
    """Canonical form used for exact name matching.

    Examples:
        >>> normalize_name("  My  Shazam\\tTracks ")
        'my shazam tracks'
        >>> normalize_name("Rock ‘n’ Roll")
        "rock 'n' roll"
    """
    return _WHITESPACE.sub(" ", name.lower().translate(_QUOTES)).strip()


class ArtistResolver:
    """Resolves artist names to catalog ids with an in-memory cache.

    Owned by the engine instance; ``reset()`` drops every cached id.
    """

    SEARCH_LIMIT = 5

    def __init__(self, client):
        self.client = client
        self._cache: Dict[str, str] = {}

    def reset(self) -> None:
        self._cache.clear()

    def cached(self, name: str) -> Optional[str]:
        return self._cache.get(normalize_name(name))

    async def resolve(self, name: str) -> Optional[str]:
        """Look up an artist id by name.

        Tries the bare name, then ``"<name> artist"``. An exact
        case-insensitive name match wins, otherwise the first result.

        Returns:
            The artist id, or None when no query produced a result
        """
        key = normalize_name(name)
        if key in self._cache:
            return self._cache[key]

        for query in (name, f"{name} artist"):
            try:
                artists = await self.client.search_artists(query, limit=self.SEARCH_LIMIT)
            except Exception as e:
                logger.warning(f"Artist search for {query!r} failed: {e}")
                continue
            if not artists:
                continue

            exact = next((a for a in artists if a.name.lower() == name.lower()), None)
            best = exact or artists[0]
            self._cache[key] = best.id
            logger.debug(f"Resolved artist {name!r} -> {best.id} ({best.name})")
            return best.id

        logger.warning(f"Could not resolve artist {name!r}")
        return None


class CatalogResolver:
    """Fills unlinked catalog slots from the user's library and catalog search."""

    def __init__(
        self,
        client,
        catalog_store: CatalogStore,
        artist_resolver: ArtistResolver,
        primary_artist_name: str = PRIMARY_ARTIST_NAME,
        genre_source_names: Sequence[str] = CURATED_GENRE_SOURCE_NAMES,
    ):
        self.client = client
        self.catalog_store = catalog_store
        self.artist_resolver = artist_resolver
        self.primary_artist_name = primary_artist_name
        self.genre_source_names = tuple(genre_source_names)

    async def fetch_library(self) -> List[SpotifyPlaylist]:
        """Scan the user's playlists; a failed scan yields an empty library."""
        try:
            return await self.client.get_all_user_playlists()
        except Exception as e:
            logger.error(f"Library scan failed: {e}")
            return []

    def _needs_library(self, catalog: CatalogConfig) -> bool:
        if not catalog.secondary_signal_id or not catalog.acoustic_id:
            return True
        return any(catalog.curated_genre_sources.get(name) is None for name in self.genre_source_names)

    async def resolve_all(self) -> CatalogConfig:
        """Link every resolvable, currently unlinked source.

        Returns:
            The catalog as stored after resolution
        """
        catalog = self.catalog_store.get()
        updates: Dict[str, str] = {}
        genre_updates: Dict[str, Optional[CatalogSource]] = {}

        if self._needs_library(catalog):
            library = await self.fetch_library()
            by_name: Dict[str, str] = {}
            for playlist in library:
                by_name.setdefault(normalize_name(playlist.name), playlist.id)

            def find(name: str) -> Optional[str]:
                playlist_id = by_name.get(normalize_name(name))
                if playlist_id is None:
                    logger.info(f"Resolver: no library playlist named {name!r}")
                return playlist_id

            if not catalog.secondary_signal_id:
                playlist_id = find(SIGNAL_PLAYLIST_NAME)
                if playlist_id:
                    updates["secondary_signal_id"] = playlist_id
            if not catalog.acoustic_id:
                playlist_id = find(ACOUSTIC_PLAYLIST_NAME)
                if playlist_id:
                    updates["acoustic_id"] = playlist_id
            for name in self.genre_source_names:
                if catalog.curated_genre_sources.get(name) is not None:
                    continue
                playlist_id = find(name)
                if playlist_id:
                    genre_updates[name] = CatalogSource(playlist_id, SourceKind.PLAYLIST)
                    logger.info(f"Resolver: auto-linked genre source {name!r}")

        if not catalog.artist_primary_id:
            artist_id = await self.artist_resolver.resolve(self.primary_artist_name)
            if artist_id:
                updates["artist_primary_id"] = artist_id

        if updates or genre_updates:
            catalog = self.catalog_store.patch(curated_genre_sources=genre_updates, **updates)
            logger.info(f"Resolver: linked {len(updates) + len(genre_updates)} sources")
        else:
            logger.info("Resolver: catalog already up to date")
        return catalog
