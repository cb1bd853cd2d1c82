"""Mix Composition Engine

Composes personalized music mixes by blending liked songs, linked playlists,
an artist's catalog and curated genre sources according to weighted recipes.
"""

from src.mix_engine.config import MixEngineConfig
from src.mix_engine.engine import MixEngine
from src.mix_engine.exceptions import (
    MixBuildError,
    MixConfigurationError,
    MixEngineError,
    StoreError,
    ValidationError,
)
from src.mix_engine.models import (
    ArtistMode,
    CatalogConfig,
    CatalogSource,
    Recipe,
    RuleOverride,
    RuleSettings,
    RunOption,
    RunOptionType,
    RunResult,
    Track,
    TrackStatus,
)

__version__ = "1.0.0"

__all__ = [
    "MixEngine",
    "MixEngineConfig",
    "MixEngineError",
    "MixConfigurationError",
    "MixBuildError",
    "StoreError",
    "ValidationError",
    "ArtistMode",
    "CatalogConfig",
    "CatalogSource",
    "Recipe",
    "RuleOverride",
    "RuleSettings",
    "RunOption",
    "RunOptionType",
    "RunResult",
    "Track",
    "TrackStatus",
]
