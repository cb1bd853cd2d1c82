"""
Exclusion predicate applied to every candidate pool.

The predicate runs once per pool and yields two views: the strict pool
(every exclusion) and the relaxed pool (cooldown ignored), which fallback
padding may fall back to as a last resort.
"""

import re
from dataclasses import dataclass, field
from typing import AbstractSet, Iterable, List, Optional

from src.spotify.models import SpotifyTrack

# Anything beyond Latin Extended-B
_NON_LATIN = re.compile(r"[^\u0000-\u024F]")


def is_latin_only(text: Optional[str]) -> bool:
    """True when ``text`` uses only Basic Latin through Latin Extended-B.

    Examples:
        >>> is_latin_only("Beyoncé")
        True
        >>> is_latin_only("東京")
        False
        >>> is_latin_only("Rap\U0001F4BF")
        False
    """
    return not _NON_LATIN.search(text or "")


def in_era(track: SpotifyTrack, min_year: int, max_year: int) -> bool:
    """True when the track's album release year is within [min_year, max_year]."""
    year = track.album.release_year if track.album else None
    return year is not None and min_year <= year <= max_year


def is_standard_entry(track: SpotifyTrack) -> bool:
    """Title and primary artist both render in Latin script."""
    artist = track.primary_artist
    return is_latin_only(track.name) and artist is not None and is_latin_only(artist.name)


@dataclass
class FilteredPool:
    """A source pool after exclusion filtering."""
    strict: List[SpotifyTrack] = field(default_factory=list)
    relaxed: List[SpotifyTrack] = field(default_factory=list)

    @property
    def cooled_down(self) -> List[SpotifyTrack]:
        """Tracks excluded only because of the cooldown window."""
        strict_ids = {t.id for t in self.strict}
        return [t for t in self.relaxed if t.id not in strict_ids]


class TrackFilter:
    """Candidate exclusion predicate.

    Excludes local files, tracks the catalog reports as unplayable, blocked
    ids, explicit tracks when explicit content is disallowed and, when
    ``apply_cooldown`` is set, ids still inside the cooldown window.
    """

    def __init__(
        self,
        blocked_ids: AbstractSet[str] = frozenset(),
        restricted_ids: AbstractSet[str] = frozenset(),
        allow_explicit: bool = True,
        apply_cooldown: bool = True,
    ):
        self.blocked_ids = blocked_ids
        self.restricted_ids = restricted_ids if apply_cooldown else frozenset()
        self.allow_explicit = allow_explicit

    def is_eligible(self, track: Optional[SpotifyTrack]) -> bool:
        """Every exclusion except the cooldown window."""
        if track is None or track.is_local or track.is_playable is False:
            return False
        if track.id in self.blocked_ids:
            return False
        if track.explicit and not self.allow_explicit:
            return False
        return True

    def __call__(self, track: Optional[SpotifyTrack]) -> bool:
        return self.is_eligible(track) and track.id not in self.restricted_ids

    def apply(self, tracks: Iterable[Optional[SpotifyTrack]]) -> FilteredPool:
        """Split a raw pool into strict and cooldown-relaxed views, de-duplicated by id."""
        pool = FilteredPool()
        seen = set()
        for track in tracks:
            if not self.is_eligible(track) or track.id in seen:
                continue
            seen.add(track.id)
            pool.relaxed.append(track)
            if track.id not in self.restricted_ids:
                pool.strict.append(track)
        return pool
