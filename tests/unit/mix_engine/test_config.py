"""Tests for MixEngineConfig environment loading."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from src.mix_engine.config import MixEngineConfig
from src.mix_engine.constants import SIMILAR_ARTIST_NAMES


class TestFromEnvironment:

    def test_minimal_environment(self):
        with patch.dict(os.environ, {"SPOTIFY_ACCESS_TOKEN": "BQD-token"}, clear=True):
            config = MixEngineConfig.from_environment()

        assert config.access_token == "BQD-token"
        assert config.api_url == "https://api.spotify.com/v1"
        assert config.market == "US"
        assert config.cooldown_days == 3
        assert config.use_mock_data is False
        assert config.similar_artists == SIMILAR_ARTIST_NAMES

    def test_all_variables(self, tmp_path):
        env = {
            "SPOTIFY_ACCESS_TOKEN": "tok",
            "SPOTIFY_API_URL": "https://proxy.example.com/v1",
            "SPOTIFY_MARKET": "GB",
            "MIX_STATE_DIR": str(tmp_path),
            "MIX_COOLDOWN_DAYS": "1.5",
            "MIX_PRIMARY_ARTIST": "Deftones",
            "MIX_SIMILAR_ARTISTS": "Tool, Korn ,,Chevelle",
        }
        with patch.dict(os.environ, env, clear=True):
            config = MixEngineConfig.from_environment()

        assert config.market == "GB"
        assert config.cooldown_days == 1.5
        assert config.primary_artist == "Deftones"
        assert config.similar_artists == ("Tool", "Korn", "Chevelle")
        assert config.catalog_path == tmp_path / "catalog.json"
        assert config.cooldown_path == tmp_path / "cooldown_history.json"
        assert config.blocked_path == tmp_path / "blocked_tracks.json"
        assert config.rule_overrides_path == tmp_path / "rule_overrides.json"

    def test_missing_token_raises(self):
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(EnvironmentError, match="SPOTIFY_ACCESS_TOKEN"):
                MixEngineConfig.from_environment()

    @pytest.mark.parametrize("value", ["1", "true", "YES", "on"])
    def test_mock_mode_needs_no_token(self, value):
        with patch.dict(os.environ, {"MIX_USE_MOCK_DATA": value}, clear=True):
            config = MixEngineConfig.from_environment()
        assert config.use_mock_data is True
        assert config.access_token is None

    def test_invalid_cooldown(self):
        env = {"SPOTIFY_ACCESS_TOKEN": "tok", "MIX_COOLDOWN_DAYS": "three"}
        with patch.dict(os.environ, env, clear=True):
            with pytest.raises(ValueError):
                MixEngineConfig.from_environment()

    def test_state_dir_expands_user(self):
        with patch.dict(os.environ, {"MIX_USE_MOCK_DATA": "1", "HOME": "/home/tester"}, clear=True):
            config = MixEngineConfig.from_environment()
        assert config.state_dir == Path("/home/tester/.mix-engine")


class TestSpotifyConfig:

    def test_converts(self):
        spotify = MixEngineConfig(access_token="tok", market="DE").to_spotify_config()
        assert spotify.access_token == "tok"
        assert spotify.market == "DE"

    def test_requires_token(self):
        with pytest.raises(ValueError):
            MixEngineConfig(use_mock_data=True).to_spotify_config()

    def test_repr_masks_token(self):
        text = repr(MixEngineConfig(access_token="super-secret"))
        assert "super-secret" not in text
        assert "access_token=***" in text
