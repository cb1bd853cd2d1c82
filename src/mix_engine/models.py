"""
Core data models for mix composition.

Entities:
    - Track: Canonical track handed to callers
    - RunOption: User-selectable mix preset
    - RuleSettings / RuleOverride: Tuning parameters and per-option overrides
    - Recipe: Per-category quotas for a blended mix
    - CatalogSource / CatalogConfig: Persisted links to catalog sources
    - RunResult: Engine output with summary and optional warning
"""

from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from src.spotify.models import SpotifyTrack

from .exceptions import ValidationError


# ============================================================================
# Enumerations
# ============================================================================


class RunOptionType(Enum):
    """Kind of content an option produces."""
    MUSIC = "MUSIC"
    PODCAST = "PODCAST"


class TrackStatus(Enum):
    """User feedback on a generated track; set by the caller, never by the engine."""
    NONE = "none"
    LIKED = "liked"
    GEM = "gem"


class ArtistMode(Enum):
    """Which slice of the primary artist's catalog to draw from."""
    TOP_TRACKS = "TopTracks"
    DEEP_CUTS = "DeepCuts"


class SourceKind(Enum):
    PLAYLIST = "playlist"
    ALBUM = "album"


# ============================================================================
# Tracks
# ============================================================================


@dataclass
class Track:
    """Canonical track returned in a RunResult."""
    id: str
    uri: str
    title: str
    artist: str
    album: Optional[str] = None
    image_url: Optional[str] = None
    duration_ms: Optional[int] = None
    is_new: bool = False
    status: TrackStatus = TrackStatus.NONE

    @classmethod
    def from_candidate(cls, candidate: SpotifyTrack, is_new: bool = False) -> "Track":
        """Map a raw catalog track to the canonical shape."""
        album = candidate.album
        return cls(
            id=candidate.id,
            uri=candidate.uri,
            title=candidate.name,
            artist=", ".join(a.name for a in candidate.artists),
            album=album.name if album else None,
            image_url=album.images[0].url if album and album.images else None,
            duration_ms=candidate.duration_ms,
            is_new=is_new,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "uri": self.uri,
            "title": self.title,
            "artist": self.artist,
            "album": self.album,
            "imageUrl": self.image_url,
            "durationMs": self.duration_ms,
            "isNew": self.is_new,
            "status": self.status.value,
        }


# ============================================================================
# Options and rules
# ============================================================================


@dataclass(frozen=True)
class RunOption:
    """A selectable mix preset; ``id_key`` names the catalog slot it needs."""
    id: str
    name: str
    type: RunOptionType = RunOptionType.MUSIC
    description: str = ""
    id_key: Optional[str] = None


@dataclass
class RuleSettings:
    """User-tunable generation parameters.

    Attributes:
        playlist_length: Requested total number of tracks
        allow_explicit: Keep tracks flagged explicit
        avoid_repeats: Exclude tracks still inside the cooldown window
        artist_mode: Top tracks or deep cuts for the primary artist
        calm_hype: 0 (calm) .. 1 (hype) energy slider
        discover_level: Fraction of the mix devoted to novel recommendations
    """
    playlist_length: int = 35
    allow_explicit: bool = True
    avoid_repeats: bool = True
    artist_mode: ArtistMode = ArtistMode.DEEP_CUTS
    calm_hype: float = 0.2
    discover_level: float = 0.3

    def __post_init__(self):
        if isinstance(self.artist_mode, str):
            self.artist_mode = ArtistMode(self.artist_mode)
        if self.playlist_length < 1:
            raise ValidationError(f"playlist_length must be >= 1 (got {self.playlist_length})")
        if not 0.0 <= self.calm_hype <= 1.0:
            raise ValidationError(f"calm_hype must be within 0..1 (got {self.calm_hype})")
        if not 0.0 <= self.discover_level <= 1.0:
            raise ValidationError(f"discover_level must be within 0..1 (got {self.discover_level})")

    def merged(self, override: Optional["RuleOverride"]) -> "RuleSettings":
        """Return settings with every non-None override field applied."""
        if override is None:
            return self
        changes = {f.name: getattr(override, f.name) for f in fields(override)
                   if getattr(override, f.name) is not None}
        return replace(self, **changes) if changes else self


@dataclass
class RuleOverride:
    """Per-option rule overrides; None means "inherit the global value"."""
    playlist_length: Optional[int] = None
    allow_explicit: Optional[bool] = None
    avoid_repeats: Optional[bool] = None
    artist_mode: Optional[ArtistMode] = None
    calm_hype: Optional[float] = None
    discover_level: Optional[float] = None

    def __post_init__(self):
        if isinstance(self.artist_mode, str):
            self.artist_mode = ArtistMode(self.artist_mode)

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def to_dict(self) -> Dict[str, Any]:
        data = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is not None:
                data[f.name] = value.value if isinstance(value, Enum) else value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RuleOverride":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


# ============================================================================
# Recipe
# ============================================================================


# Interleave order of the blended-mix categories
CATEGORY_ORDER = (
    "acoustic",
    "artist_primary",
    "secondary_signal",
    "liked",
    "curated_genre",
    "novel",
)


@dataclass
class Recipe:
    """Integer track quotas per source category.

    ``novel`` is the discovery quota filled by recommendations; it is computed
    independently of the five weighted categories.
    """
    acoustic: int = 0
    artist_primary: int = 0
    secondary_signal: int = 0
    liked: int = 0
    curated_genre: int = 0
    novel: int = 0

    def quota(self, category: str) -> int:
        return getattr(self, category)

    def total(self) -> int:
        return sum(self.quota(c) for c in CATEGORY_ORDER)

    def as_dict(self) -> Dict[str, int]:
        return {c: self.quota(c) for c in CATEGORY_ORDER}


# ============================================================================
# Catalog links
# ============================================================================


@dataclass
class CatalogSource:
    """A linked playlist or album."""
    id: str
    type: SourceKind = SourceKind.PLAYLIST
    label: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.type, str):
            self.type = SourceKind(self.type)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"id": self.id, "type": self.type.value}
        if self.label:
            data["label"] = self.label
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["CatalogSource"]:
        if not data or not data.get("id"):
            return None
        return cls(id=data["id"], type=data.get("type", "playlist"), label=data.get("label"))


@dataclass
class CatalogConfig:
    """Persisted mapping from logical sources to catalog identifiers.

    None marks an unlinked slot.
    """
    secondary_signal_id: Optional[str] = None
    acoustic_id: Optional[str] = None
    artist_primary_id: Optional[str] = None
    curated_genre_sources: Dict[str, Optional[CatalogSource]] = field(default_factory=dict)

    def linked_genre_sources(self) -> List[CatalogSource]:
        return [s for s in self.curated_genre_sources.values() if s is not None]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "secondary_signal_id": self.secondary_signal_id,
            "acoustic_id": self.acoustic_id,
            "artist_primary_id": self.artist_primary_id,
            "curated_genre_sources": {
                name: source.to_dict() if source else None
                for name, source in self.curated_genre_sources.items()
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CatalogConfig":
        return cls(
            secondary_signal_id=data.get("secondary_signal_id"),
            acoustic_id=data.get("acoustic_id"),
            artist_primary_id=data.get("artist_primary_id"),
            curated_genre_sources={
                name: CatalogSource.from_dict(source)
                for name, source in (data.get("curated_genre_sources") or {}).items()
            },
        )


# ============================================================================
# Result
# ============================================================================


@dataclass
class RunResult:
    """Ordered tracks plus a human-readable source summary.

    ``warning`` is set whenever a fallback contributed tracks; it never
    blocks use of the mix.
    """
    run_type: RunOptionType
    option_name: str
    tracks: List[Track]
    source_summary: str
    debug_summary: str = ""
    warning: Optional[str] = None
    generation: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def playlist_name(self) -> str:
        return f"{self.option_name} • {self.created_at.strftime('%Y-%m-%d')}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "runType": self.run_type.value,
            "optionName": self.option_name,
            "playlistName": self.playlist_name,
            "createdAt": self.created_at.isoformat(),
            "tracks": [t.to_dict() for t in self.tracks],
            "sourceSummary": self.source_summary,
            "debugSummary": self.debug_summary,
            "warning": self.warning,
            "generation": self.generation,
        }


@dataclass
class MixDraft:
    """Raw selection produced by a generator, before mapping to Track."""
    tracks: List[SpotifyTrack]
    source_summary: str
    debug_summary: str = ""
    warning: Optional[str] = None
    novel_ids: Set[str] = field(default_factory=set)
    failure: Optional[Exception] = None
