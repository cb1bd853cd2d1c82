"""Configuration management for the mix engine.

All configuration is read from environment variables (NO .env files).
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from src.spotify.models import SpotifyConfig

from .constants import DEFAULT_COOLDOWN_DAYS, PRIMARY_ARTIST_NAME, SIMILAR_ARTIST_NAMES

DEFAULT_API_URL = "https://api.spotify.com/v1"
DEFAULT_STATE_DIR = "~/.mix-engine"

_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass
class MixEngineConfig:
    """Configuration for mix generation (reads from environment)."""

    # Required unless running on the mock catalog
    access_token: Optional[str] = None

    api_url: str = DEFAULT_API_URL
    market: str = "US"

    # Persisted state (cooldown, blocks, catalog, rule overrides)
    state_dir: Path = field(default_factory=lambda: Path(DEFAULT_STATE_DIR).expanduser())
    cooldown_days: float = DEFAULT_COOLDOWN_DAYS

    use_mock_data: bool = False

    primary_artist: str = PRIMARY_ARTIST_NAME
    similar_artists: Tuple[str, ...] = SIMILAR_ARTIST_NAMES

    @classmethod
    def from_environment(cls) -> 'MixEngineConfig':
        """Load configuration from environment variables (NO .env files).

        Returns:
            MixEngineConfig: Loaded configuration object

        Raises:
            EnvironmentError: If required environment variables are missing
            ValueError: If a numeric variable cannot be parsed
        """
        use_mock = os.getenv('MIX_USE_MOCK_DATA', '').strip().lower() in _TRUE_VALUES
        access_token = os.getenv('SPOTIFY_ACCESS_TOKEN')

        if not access_token and not use_mock:
            raise EnvironmentError(
                "Required environment variables missing: SPOTIFY_ACCESS_TOKEN\n"
                "These variables must be set in your shell environment (NOT in .env files).\n"
                "Example: export SPOTIFY_ACCESS_TOKEN='BQD...' (or MIX_USE_MOCK_DATA=1 for offline mode)"
            )

        similar_raw = os.getenv('MIX_SIMILAR_ARTISTS')
        similar = (
            tuple(name.strip() for name in similar_raw.split(',') if name.strip())
            if similar_raw else SIMILAR_ARTIST_NAMES
        )

        return cls(
            access_token=access_token,
            api_url=os.getenv('SPOTIFY_API_URL', DEFAULT_API_URL),
            market=os.getenv('SPOTIFY_MARKET', 'US'),
            state_dir=Path(os.getenv('MIX_STATE_DIR', DEFAULT_STATE_DIR)).expanduser(),
            cooldown_days=float(os.getenv('MIX_COOLDOWN_DAYS', str(DEFAULT_COOLDOWN_DAYS))),
            use_mock_data=use_mock,
            primary_artist=os.getenv('MIX_PRIMARY_ARTIST', PRIMARY_ARTIST_NAME),
            similar_artists=similar,
        )

    @property
    def cooldown_path(self) -> Path:
        return self.state_dir / "cooldown_history.json"

    @property
    def blocked_path(self) -> Path:
        return self.state_dir / "blocked_tracks.json"

    @property
    def catalog_path(self) -> Path:
        return self.state_dir / "catalog.json"

    @property
    def rule_overrides_path(self) -> Path:
        return self.state_dir / "rule_overrides.json"

    def to_spotify_config(self) -> SpotifyConfig:
        """Convert to SpotifyConfig for the catalog client.

        Raises:
            ValueError: If no access token is configured
        """
        if not self.access_token:
            raise ValueError("SPOTIFY_ACCESS_TOKEN is required for the live catalog")
        return SpotifyConfig(
            access_token=self.access_token,
            base_url=self.api_url,
            market=self.market,
        )

    def __repr__(self) -> str:
        """Return string representation with sensitive data masked."""
        return (
            f"MixEngineConfig("
            f"access_token={'***' if self.access_token else None}, "
            f"api_url='{self.api_url}', "
            f"market='{self.market}', "
            f"state_dir='{self.state_dir}', "
            f"cooldown_days={self.cooldown_days}, "
            f"use_mock_data={self.use_mock_data}, "
            f"primary_artist='{self.primary_artist}', "
            f"similar_artists={list(self.similar_artists)}"
            f")"
        )
