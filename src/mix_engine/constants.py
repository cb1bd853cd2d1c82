"""Mix presets, base recipes and named catalog sources."""

from typing import Dict, Tuple

from .models import CatalogSource, RunOption, SourceKind

# ============================================================================
# Options
# ============================================================================

BLENDED_MIX_OPTIONS = (
    RunOption("chaos_mix", "Chaos", description="High energy randomness: liked songs, signal hits and the primary artist."),
    RunOption("zen_mix", "Zen", description="Deep calm: mostly 90s acoustic alternative with soft primary-artist cuts."),
    RunOption("focus_mix", "Focus", description="Steady flow: acoustic tracks, liked favorites and melodic primary-artist cuts."),
    RunOption("lightening_mix", "LighteningMix", description="Maximum hype: 90s/00s rap and heavy primary-artist tracks."),
)

SOURCE_OPTIONS = (
    RunOption("liked_songs", "LikedSongs", description="Pulling from your saved favorites."),
    RunOption("shazam_tracks", "ShazamList", description="Direct sync from your Shazam playlist.", id_key="secondary_signal_id"),
    RunOption("acoustic_rock", "90sAltRock", description="Pure 90s grunge and alternative acoustic cuts.", id_key="acoustic_id"),
    RunOption("rap_hiphop", "OGRap&HipHop", description="Curated 90s/00s station built from your library playlists.", id_key="curated_genre_sources"),
    RunOption("a7x_deep", "A7xRadio", description="The primary artist and similar heavy hitters with a focus on deep cuts.", id_key="artist_primary_id"),
)

ALL_OPTIONS = BLENDED_MIX_OPTIONS + SOURCE_OPTIONS
OPTIONS_BY_ID = {option.id: option for option in ALL_OPTIONS}

LIKED_OPTION_ID = "liked_songs"
SIGNAL_OPTION_ID = "shazam_tracks"
ACOUSTIC_OPTION_ID = "acoustic_rock"
GENRE_RADIO_OPTION_ID = "rap_hiphop"
ARTIST_RADIO_OPTION_ID = "a7x_deep"

# ============================================================================
# Recipes
# ============================================================================

BASE_RECIPE_TOTAL = 35
DEFAULT_RECIPE_ID = "chaos_mix"

# acoustic, artist_primary, secondary_signal, liked, curated_genre
BASE_RECIPES: Dict[str, Dict[str, int]] = {
    "zen_mix": {"acoustic": 20, "artist_primary": 6, "secondary_signal": 2, "liked": 7, "curated_genre": 0},
    "focus_mix": {"acoustic": 14, "artist_primary": 6, "secondary_signal": 2, "liked": 13, "curated_genre": 0},
    "chaos_mix": {"acoustic": 5, "artist_primary": 6, "secondary_signal": 12, "liked": 12, "curated_genre": 0},
    "lightening_mix": {"acoustic": 0, "artist_primary": 10, "secondary_signal": 7, "liked": 4, "curated_genre": 14},
}

# Mixes whose hype boost goes to the curated genre instead of the signal playlist
GENRE_HYPE_MIXES = frozenset({"lightening_mix", "chaos_mix"})

CALM_THRESHOLD = 0.33
HYPE_THRESHOLD = 0.67
ENERGY_SHIFT = 6

# ============================================================================
# Source fetch sizing
# ============================================================================

PLAYLIST_FETCH_FLOOR = 100
PLAYLIST_FETCH_MULTIPLIER = 3
LIKED_FETCH_FLOOR = 150
LIKED_FETCH_MULTIPLIER = 2
SINGLE_SOURCE_LIKED_MULTIPLIER = 5
DEEP_CUTS_TARGET = 100
GENRE_SOURCE_FETCH_SIZE = 100
NOVEL_EXTRA_CANDIDATES = 20

# ============================================================================
# Specialized generators
# ============================================================================

ERA_MIN_YEAR = 1990
ERA_MAX_YEAR = 2009
FAMILIAR_RATIO = 0.8
LIKED_IDS_LIMIT = 300

PRIMARY_ARTIST_MAX_QUOTA = 18
PRIMARY_ARTIST_SHARE = 0.5

DEEP_CUTS_ALBUM_CAP = 3
DEEP_CUTS_SINGLES_THRESHOLD = 200

# ============================================================================
# Named catalog sources
# ============================================================================

SIGNAL_PLAYLIST_NAME = "My Shazam Tracks"
ACOUSTIC_PLAYLIST_NAME = "90s Acoustic Alternative Rock"
PRIMARY_ARTIST_NAME = "Avenged Sevenfold"

SIMILAR_ARTIST_NAMES: Tuple[str, ...] = (
    "Shinedown",
    "System of a Down",
    "Korn",
    "Five Finger Death Punch",
    "Rage Against the Machine",
    "Breaking Benjamin",
)

CURATED_GENRE_SOURCE_NAMES: Tuple[str, ...] = (
    "Best Rap & Hip-Hop 90s/00s",
    "I Love My 90s Hip‑Hop",
    "80's & 90's Hip Hop / Rap\U0001F4BF",
    "2Pac – All Eyez On Me",
    "2Pac – Greatest Hits",
    "Eminem All Songs",
    "Hip Hop Classics",
    "Rap Caviar 90s",
)

DEFAULT_GENRE_SOURCES: Dict[str, CatalogSource] = {
    "I Love My 90s Hip‑Hop": CatalogSource("37i9dQZF1DX186v583rmzp", SourceKind.PLAYLIST),
    "2Pac – Greatest Hits": CatalogSource("1WBZyULtlANBKed7Zf9cDP", SourceKind.ALBUM),
}

DEFAULT_COOLDOWN_DAYS = 3
