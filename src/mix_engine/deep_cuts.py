"""
Deep-Cuts Crawl - a spread-out sample of an artist's full discography.

Studio albums are de-duplicated across editions, their tracks pooled, and a
random selection drawn so that no album dominates and no two consecutive
picks share an album.
"""

import asyncio
import logging
import random
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from src.spotify.models import SpotifyAlbum, SpotifyTrack

from .constants import DEEP_CUTS_ALBUM_CAP, DEEP_CUTS_SINGLES_THRESHOLD, DEEP_CUTS_TARGET
from .selection import select_with_album_cap

logger = logging.getLogger(__name__)

_BRACKETED = re.compile(r"\s*[(\[].*?[)\]]\s*")
_EDITION_WORDS = re.compile(r"\b(deluxe|remaster(ed)?|anniversary|edition|expanded)\b", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")


@dataclass
class DeepCutsResult:
    tracks: List[SpotifyTrack] = field(default_factory=list)
    album_count: int = 0
    pool_size: int = 0


def normalize_album_name(name: str) -> str:
    """Collapse edition variants of an album title to one key.

    Examples:
        >>> normalize_album_name("Nightmare (Deluxe Edition)")
        'nightmare'
        >>> normalize_album_name("City of Evil  [Remastered 2020]")
        'city of evil'
        >>> normalize_album_name("Waking the Fallen: Resurrected Anniversary")
        'waking the fallen: resurrected'
    """
    text = _BRACKETED.sub(" ", name.lower())
    text = _EDITION_WORDS.sub("", text)
    return _WHITESPACE.sub(" ", text).strip()


def _add_albums(
    albums_by_name: Dict[str, SpotifyAlbum],
    albums: List[SpotifyAlbum],
    prefer_newest: bool,
) -> List[SpotifyAlbum]:
    """Merge ``albums`` into the name map; returns names that were new."""
    new_names = []
    for album in albums:
        key = normalize_album_name(album.name)
        existing = albums_by_name.get(key)
        if existing is None:
            albums_by_name[key] = album
            new_names.append(key)
        elif prefer_newest and (album.release_date or "") > (existing.release_date or ""):
            # ISO dates compare lexically
            albums_by_name[key] = album
    return [albums_by_name[key] for key in new_names]


async def _fetch_album_tracks(client, albums: List[SpotifyAlbum]) -> List[SpotifyTrack]:
    """Fetch tracks for each album concurrently; failing albums are skipped."""
    results = await asyncio.gather(
        *(client.get_album_tracks(album.id, album=album) for album in albums),
        return_exceptions=True,
    )
    tracks: List[SpotifyTrack] = []
    for album, result in zip(albums, results):
        if isinstance(result, Exception):
            logger.warning(f"Skipping album {album.name!r} ({album.id}): {result}")
            continue
        tracks.extend(result)
    return tracks


def _dedupe_by_uri(tracks: List[SpotifyTrack]) -> List[SpotifyTrack]:
    seen = set()
    unique = []
    for track in tracks:
        if track.uri in seen:
            continue
        seen.add(track.uri)
        unique.append(track)
    return unique


async def crawl_deep_cuts(
    client,
    artist_id: str,
    target: int = DEEP_CUTS_TARGET,
    rng: Optional[random.Random] = None,
) -> DeepCutsResult:
    """Crawl an artist's albums (and singles when thin) and sample deep cuts.

    Args:
        client: Catalog client exposing ``get_artist_albums`` and ``get_album_tracks``
        artist_id: Catalog artist identifier
        target: Maximum number of tracks to select
        rng: Random source for the selection shuffle

    Returns:
        DeepCutsResult with the selection plus crawl statistics
    """
    albums_by_name: Dict[str, SpotifyAlbum] = {}
    _add_albums(albums_by_name, await client.get_artist_albums(artist_id, include_groups="album"), prefer_newest=True)

    pool = await _fetch_album_tracks(client, list(albums_by_name.values()))

    if len(_dedupe_by_uri(pool)) < DEEP_CUTS_SINGLES_THRESHOLD:
        singles = await client.get_artist_albums(artist_id, include_groups="single")
        new_singles = _add_albums(albums_by_name, singles, prefer_newest=False)
        logger.debug(f"Deep cuts for {artist_id}: thin pool, adding {len(new_singles)} singles")
        pool.extend(await _fetch_album_tracks(client, new_singles))

    pool = _dedupe_by_uri(pool)
    selected = select_with_album_cap(pool, target, DEEP_CUTS_ALBUM_CAP, rng)

    logger.info(
        f"Deep cuts for {artist_id}: {len(selected)} selected from {len(pool)} tracks "
        f"across {len(albums_by_name)} releases"
    )
    return DeepCutsResult(tracks=selected, album_count=len(albums_by_name), pool_size=len(pool))
