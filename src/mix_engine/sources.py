"""
Source Pool Fetcher.

Maps each blended-mix category to catalog fetches and gathers the raw
candidate pools concurrently. A failing fetch degrades to an empty pool and
is remembered so total exhaustion can report the underlying cause.
"""

import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from src.spotify.models import SpotifyTrack

from .constants import (
    DEEP_CUTS_TARGET,
    GENRE_SOURCE_FETCH_SIZE,
    LIKED_FETCH_FLOOR,
    LIKED_FETCH_MULTIPLIER,
    PLAYLIST_FETCH_FLOOR,
    PLAYLIST_FETCH_MULTIPLIER,
)
from .deep_cuts import crawl_deep_cuts
from .models import ArtistMode, CatalogConfig, CatalogSource, SourceKind

logger = logging.getLogger(__name__)


def playlist_fetch_size(length: int) -> int:
    return max(PLAYLIST_FETCH_FLOOR, length * PLAYLIST_FETCH_MULTIPLIER)


def liked_fetch_size(length: int) -> int:
    return max(LIKED_FETCH_FLOOR, length * LIKED_FETCH_MULTIPLIER)


@dataclass
class SourcePools:
    """Raw per-category pools plus the fetches that failed."""
    pools: Dict[str, List[SpotifyTrack]] = field(default_factory=dict)
    failures: Dict[str, Exception] = field(default_factory=dict)

    def get(self, category: str) -> List[SpotifyTrack]:
        return self.pools.get(category, [])

    @property
    def first_failure(self) -> Optional[Exception]:
        return next(iter(self.failures.values()), None)


class SourcePoolFetcher:
    """Fetches raw candidate pools for the categories a build needs.

    Args:
        client: Catalog client (SpotifyClient or the offline mock catalog)
        catalog: Current catalog links; unlinked slots yield empty pools
        rng: Random source passed on to the deep-cuts crawl
    """

    def __init__(self, client, catalog: CatalogConfig, rng: Optional[random.Random] = None):
        self.client = client
        self.catalog = catalog
        self.rng = rng

    async def fetch_liked(self, target: int) -> List[SpotifyTrack]:
        return await self.client.get_liked_tracks(target)

    async def fetch_playlist(self, playlist_id: Optional[str], target: int) -> List[SpotifyTrack]:
        if not playlist_id:
            return []
        return await self.client.get_playlist_tracks_bulk(playlist_id, target)

    async def fetch_artist(self, artist_id: Optional[str], artist_mode: ArtistMode) -> List[SpotifyTrack]:
        """Primary artist pool: a deep-cuts crawl or the artist's top tracks."""
        if not artist_id:
            return []
        if artist_mode == ArtistMode.DEEP_CUTS:
            result = await crawl_deep_cuts(self.client, artist_id, DEEP_CUTS_TARGET, self.rng)
            return result.tracks
        return await self.client.get_artist_top_tracks(artist_id)

    async def fetch_source(
        self, source: CatalogSource, target: int = GENRE_SOURCE_FETCH_SIZE
    ) -> List[SpotifyTrack]:
        if source.type == SourceKind.ALBUM:
            return await self.client.get_album_tracks_full(source.id)
        return await self.client.get_playlist_tracks_bulk(source.id, target)

    async def fetch_genre_sources(self) -> Tuple[List[SpotifyTrack], List[Exception]]:
        """Fetch every linked curated genre source concurrently.

        Returns:
            Tuple of (merged tracks in source order, failures)
        """
        sources = self.catalog.linked_genre_sources()
        if not sources:
            return [], []

        results = await asyncio.gather(
            *(self.fetch_source(source) for source in sources),
            return_exceptions=True,
        )
        merged: List[SpotifyTrack] = []
        failures: List[Exception] = []
        for source, result in zip(sources, results):
            if isinstance(result, Exception):
                logger.error(f"Genre source fetch failed: {source.type.value} {source.id}: {result}")
                failures.append(result)
                continue
            logger.debug(f"Genre source {source.id}: {len(result)} tracks")
            merged.extend(result)
        return merged, failures

    async def _fetch_genre_pool(self) -> List[SpotifyTrack]:
        merged, failures = await self.fetch_genre_sources()
        if failures and not merged:
            raise failures[0]
        return merged

    async def _category_fetch(self, category: str, length: int, artist_mode: ArtistMode) -> List[SpotifyTrack]:
        if category == "liked":
            return await self.fetch_liked(liked_fetch_size(length))
        if category == "secondary_signal":
            return await self.fetch_playlist(self.catalog.secondary_signal_id, playlist_fetch_size(length))
        if category == "acoustic":
            return await self.fetch_playlist(self.catalog.acoustic_id, playlist_fetch_size(length))
        if category == "artist_primary":
            return await self.fetch_artist(self.catalog.artist_primary_id, artist_mode)
        if category == "curated_genre":
            return await self._fetch_genre_pool()
        raise ValueError(f"Unknown source category: {category}")

    async def fetch_categories(
        self,
        categories: Iterable[str],
        length: int,
        artist_mode: ArtistMode = ArtistMode.DEEP_CUTS,
    ) -> SourcePools:
        """Fetch the raw pools for ``categories`` concurrently.

        Args:
            categories: Category names (see CATEGORY_ORDER, excluding "novel")
            length: Requested mix length, drives fetch sizes
            artist_mode: Primary artist selection mode

        Returns:
            SourcePools; failed categories map to empty pools
        """
        names = list(dict.fromkeys(categories))
        results = await asyncio.gather(
            *(self._category_fetch(name, length, artist_mode) for name in names),
            return_exceptions=True,
        )

        pools = SourcePools()
        for name, result in zip(names, results):
            if isinstance(result, Exception):
                logger.warning(f"Source '{name}' unavailable, continuing without it: {result}")
                pools.failures[name] = result
                pools.pools[name] = []
            else:
                pools.pools[name] = list(result)

        logger.info(
            "Fetched source pools: "
            + ", ".join(f"{name}={len(pool)}" for name, pool in pools.pools.items())
        )
        return pools
