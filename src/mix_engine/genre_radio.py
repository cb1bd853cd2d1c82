"""
Curated Genre (Rap) Radio Generator.

Builds a station from the linked curated sources: era-restricted to
1990-2009 and Latin-script titles, split between tracks the user already
likes (familiar) and everything else (deep cuts).
"""

import logging
import random
from typing import List, Optional, Set

from src.spotify.models import SpotifyTrack

from .constants import (
    ERA_MAX_YEAR,
    ERA_MIN_YEAR,
    FAMILIAR_RATIO,
    LIKED_IDS_LIMIT,
)
from .exceptions import MixConfigurationError
from .filters import TrackFilter, in_era, is_standard_entry
from .models import MixDraft, RuleSettings
from .recipe import round_half_up
from .selection import pad_to_target, shuffled
from .sources import SourcePoolFetcher

logger = logging.getLogger(__name__)


def _era_match(track: SpotifyTrack) -> bool:
    return is_standard_entry(track) and in_era(track, ERA_MIN_YEAR, ERA_MAX_YEAR)


async def _liked_ids(client) -> Set[str]:
    try:
        return await client.get_liked_track_ids(LIKED_IDS_LIMIT)
    except Exception as e:
        logger.warning(f"Could not load liked ids, treating every track as a deep cut: {e}")
        return set()


async def generate_genre_radio(
    fetcher: SourcePoolFetcher,
    rules: RuleSettings,
    track_filter: TrackFilter,
    rng: Optional[random.Random] = None,
) -> MixDraft:
    """Compose the curated genre radio.

    Args:
        fetcher: Source fetcher bound to the current catalog
        rules: Effective rule settings
        track_filter: Exclusion predicate (blocks, cooldown, explicit)
        rng: Random source

    Returns:
        MixDraft with the shuffled selection

    Raises:
        MixConfigurationError: If no curated source is linked
    """
    length = rules.playlist_length
    sources = fetcher.catalog.linked_genre_sources()
    if not sources:
        raise MixConfigurationError(
            "No curated genre sources are linked. Link at least one playlist or album first."
        )

    merged, failures = await fetcher.fetch_genre_sources()
    pool = track_filter.apply(merged)
    era_strict = [t for t in pool.strict if _era_match(t)]
    era_relaxed = [t for t in pool.relaxed if _era_match(t)]
    logger.info(
        f"Genre radio: {len(merged)} raw tracks from {len(sources)} sources "
        f"({len(failures)} failed), {len(era_strict)} in era"
    )

    warning = None
    if not era_relaxed:
        # Nothing survives the era filter; fall back to a flat random sample
        selected = shuffled(pool.strict, rng)[:length]
        relaxed_added = pad_to_target(selected, length, pool.cooled_down, rng)
        warning = (
            f"No tracks from {ERA_MIN_YEAR}-{ERA_MAX_YEAR} found in the linked sources; "
            "using a random sample of all their tracks."
        )
        if relaxed_added:
            warning += f" Re-admitted {len(relaxed_added)} recently played tracks."
        summary = f"Genre Radio (flat sample): {len(selected)} tracks from {len(sources)} sources"
        return MixDraft(
            tracks=shuffled(selected, rng),
            source_summary=summary,
            debug_summary=f"era_pool=0 merged={len(pool.relaxed)}",
            warning=warning,
            failure=failures[0] if failures else None,
        )

    liked_ids = await _liked_ids(fetcher.client)
    familiar = [t for t in era_strict if t.id in liked_ids]
    deep = [t for t in era_strict if t.id not in liked_ids]

    familiar_quota = min(length, round_half_up(length * FAMILIAR_RATIO))
    deep_quota = length - familiar_quota

    picked_familiar = shuffled(familiar, rng)[:familiar_quota]
    picked_deep = shuffled(deep, rng)[:deep_quota]
    selected: List[SpotifyTrack] = picked_familiar + picked_deep

    padded = pad_to_target(selected, length, era_strict, rng)
    relaxed_added = pad_to_target(selected, length, era_relaxed, rng)
    if padded or relaxed_added:
        warning = f"Curated sources ran short; filled {len(padded) + len(relaxed_added)} tracks from the wider era pool"
        if relaxed_added:
            warning += f" ({len(relaxed_added)} recently played)"
        warning += "."

    summary = (
        f"Genre Radio: {len(picked_familiar)} familiar • {len(picked_deep)} deep cuts"
        f" • {len(sources)} sources"
    )
    debug = (
        f"era_pool={len(era_strict)} familiar_pool={len(familiar)} deep_pool={len(deep)} "
        f"quotas={familiar_quota}/{deep_quota}"
    )
    return MixDraft(
        tracks=shuffled(selected, rng),
        source_summary=summary,
        debug_summary=debug,
        warning=warning,
        failure=failures[0] if failures else None,
    )
