"""
Artist Radio Generator.

Blends the primary artist (deep cuts or top tracks) with top tracks from a
roster of similar artists. The primary artist takes at most half the mix.
"""

import asyncio
import logging
import random
from typing import List, Optional, Sequence

from src.spotify.models import SpotifyTrack

from .catalog_store import CatalogStore
from .constants import PRIMARY_ARTIST_MAX_QUOTA, PRIMARY_ARTIST_SHARE
from .exceptions import MixConfigurationError
from .filters import FilteredPool, TrackFilter
from .models import MixDraft, RuleSettings
from .resolver import ArtistResolver
from .selection import interleave, pad_to_target, shuffled
from .sources import SourcePoolFetcher

logger = logging.getLogger(__name__)


def primary_quota(length: int) -> int:
    """Primary artist share of the mix.

    Examples:
        >>> primary_quota(35)
        17
        >>> primary_quota(60)
        18
    """
    return min(PRIMARY_ARTIST_MAX_QUOTA, int(length * PRIMARY_ARTIST_SHARE))


async def _resolve_primary(
    fetcher: SourcePoolFetcher,
    artist_resolver: ArtistResolver,
    catalog_store: CatalogStore,
    primary_artist_name: str,
) -> str:
    artist_id = fetcher.catalog.artist_primary_id
    if artist_id:
        return artist_id

    artist_id = await artist_resolver.resolve(primary_artist_name)
    if not artist_id:
        raise MixConfigurationError(
            f"Could not resolve the primary artist {primary_artist_name!r}. Link it first."
        )
    catalog_store.patch(artist_primary_id=artist_id)
    fetcher.catalog.artist_primary_id = artist_id
    return artist_id


async def _similar_pool(fetcher: SourcePoolFetcher, artist_resolver: ArtistResolver, name: str) -> List[SpotifyTrack]:
    """Top tracks of one similar artist; best effort."""
    try:
        artist_id = await artist_resolver.resolve(name)
        if not artist_id:
            return []
        return await fetcher.client.get_artist_top_tracks(artist_id)
    except Exception as e:
        logger.warning(f"Similar artist {name!r} unavailable: {e}")
        return []


async def generate_artist_radio(
    fetcher: SourcePoolFetcher,
    artist_resolver: ArtistResolver,
    catalog_store: CatalogStore,
    rules: RuleSettings,
    track_filter: TrackFilter,
    primary_artist_name: str,
    similar_artists: Sequence[str],
    rng: Optional[random.Random] = None,
) -> MixDraft:
    """Compose the artist radio.

    Raises:
        MixConfigurationError: If the primary artist cannot be resolved
    """
    length = rules.playlist_length
    artist_id = await _resolve_primary(fetcher, artist_resolver, catalog_store, primary_artist_name)

    p_quota = primary_quota(length)
    s_quota = length - p_quota

    primary_result, *similar_raw = await asyncio.gather(
        fetcher.fetch_artist(artist_id, rules.artist_mode),
        *(_similar_pool(fetcher, artist_resolver, name) for name in similar_artists),
        return_exceptions=True,
    )
    failure = None
    if isinstance(primary_result, Exception):
        logger.error(f"Primary artist fetch failed for {artist_id}: {primary_result}")
        failure = primary_result
        primary_result = []

    primary_pool = track_filter.apply(primary_result)
    similar_pools: List[FilteredPool] = [track_filter.apply(raw) for raw in similar_raw]

    picked_primary = shuffled(primary_pool.strict, rng)[:p_quota]
    picked_similar = interleave(
        [shuffled(pool.strict, rng) for pool in similar_pools],
        s_quota,
        seen={t.id for t in picked_primary},
    )
    selected = picked_primary + picked_similar

    padded = pad_to_target(
        selected, length,
        primary_pool.strict + [t for pool in similar_pools for t in pool.strict],
        rng,
    )
    relaxed_added = pad_to_target(
        selected, length,
        primary_pool.cooled_down + [t for pool in similar_pools for t in pool.cooled_down],
        rng,
    )

    warning = None
    if padded or relaxed_added:
        warning = f"Artist pools ran short; filled {len(padded) + len(relaxed_added)} tracks from the remaining pools"
        if relaxed_added:
            warning += f" ({len(relaxed_added)} recently played)"
        warning += "."

    logger.info(
        f"Artist radio: {len(picked_primary)}/{p_quota} primary, "
        f"{len(picked_similar)}/{s_quota} similar from {len(similar_pools)} artists"
    )
    summary = (
        f"{primary_artist_name} {len(picked_primary)} • Similar {len(picked_similar)}"
        f" ({rules.artist_mode.value})"
    )
    debug = (
        f"primary_pool={len(primary_pool.strict)} similar_pools="
        f"{[len(pool.strict) for pool in similar_pools]} quotas={p_quota}/{s_quota}"
    )
    return MixDraft(
        tracks=shuffled(selected, rng),
        source_summary=summary,
        debug_summary=debug,
        warning=warning,
        failure=failure,
    )
