"""
Tests for MixEngine.

The engine runs against the in-memory FakeCatalogClient with state stores
under tmp_path.

Test Coverage:
- Blended recipe mixes (full sources, missing source, exhaustion)
- Single-source options and their fallback warnings
- Cooldown and block exclusions
- Discovery recommendations flagged as new
- Dispatch to genre and artist radio
- Generation tracking and per-option rule overrides
- Offline mock mode
"""

import random

import pytest

from src.mix_engine.block_store import BlockStore
from src.mix_engine.catalog_store import CatalogStore
from src.mix_engine.config import MixEngineConfig
from src.mix_engine.constants import DEFAULT_GENRE_SOURCES, OPTIONS_BY_ID
from src.mix_engine.cooldown_store import CooldownStore
from src.mix_engine.engine import MixEngine
from src.mix_engine.exceptions import MixBuildError, MixConfigurationError
from src.mix_engine.models import (
    ArtistMode,
    CatalogSource,
    RuleOverride,
    RuleSettings,
    RunOption,
    RunOptionType,
)
from src.mix_engine.rule_overrides import RuleOverrideStore
from src.spotify.exceptions import SpotifyServerError
from src.spotify.models import SpotifyArtist


def rules(**kwargs) -> RuleSettings:
    kwargs.setdefault("calm_hype", 0.5)
    kwargs.setdefault("discover_level", 0.0)
    kwargs.setdefault("artist_mode", ArtistMode.TOP_TRACKS)
    return RuleSettings(**kwargs)


@pytest.fixture
def config(tmp_path):
    return MixEngineConfig(access_token="test-token", state_dir=tmp_path)


@pytest.fixture
def engine(fake_client, config):
    return MixEngine(
        client=fake_client,
        catalog_store=CatalogStore(config.catalog_path),
        cooldown_store=CooldownStore(config.cooldown_path, window_days=3),
        block_store=BlockStore(config.blocked_path),
        config=config,
        rng=random.Random(99),
        rule_override_store=RuleOverrideStore(config.rule_overrides_path),
    )


@pytest.fixture
def linked(engine, fake_client, pool_factory):
    """Engine with every blended source linked and well stocked."""
    fake_client.liked = pool_factory("liked", 100)
    fake_client.playlists["pl-signal"] = pool_factory("signal", 50)
    fake_client.playlists["pl-acoustic"] = pool_factory("acoustic", 50)
    fake_client.top_tracks["a7x"] = pool_factory("a7x", 20)
    engine.catalog_store.patch(
        secondary_signal_id="pl-signal",
        acoustic_id="pl-acoustic",
        artist_primary_id="a7x",
    )
    return engine


def ids(result):
    return [t.id for t in result.tracks]


def count(result, prefix):
    return sum(i.startswith(prefix + "-") for i in ids(result))


class TestBlendedMix:

    @pytest.mark.asyncio
    async def test_all_sources_available(self, linked, fake_client):
        result = await linked.generate_run_result(OPTIONS_BY_ID["chaos_mix"], rules())

        assert len(result.tracks) == 35
        assert len(set(ids(result))) == 35
        assert (count(result, "acoustic"), count(result, "a7x"), count(result, "signal"), count(result, "liked")) == (
            5, 6, 12, 12
        )
        assert "recommendations" not in fake_client.call_names()
        assert result.warning is None
        assert result.source_summary == "Acoustic 5 • Artist 6 • Signal 12 • Liked 12 • Genre 0 • New 0"
        assert "recipe=" in result.debug_summary
        assert result.run_type == RunOptionType.MUSIC

    @pytest.mark.asyncio
    async def test_interleaves_categories(self, linked):
        result = await linked.generate_run_result(OPTIONS_BY_ID["chaos_mix"], rules())
        assert [i.split("-")[0] for i in ids(result)[:4]] == ["acoustic", "a7x", "signal", "liked"]

    @pytest.mark.asyncio
    async def test_missing_source_filled_by_fallback(self, linked):
        linked.catalog_store.unlink("acoustic_id")

        result = await linked.generate_run_result(OPTIONS_BY_ID["chaos_mix"], rules())

        assert len(result.tracks) == 35
        assert len(set(ids(result))) == 35
        assert count(result, "acoustic") == 0
        assert result.warning is not None
        assert "filled 5 tracks" in result.warning
        assert result.source_summary.endswith("Fallback 5")

    @pytest.mark.asyncio
    async def test_failing_source_is_skipped(self, linked, fake_client):
        fake_client.failing.add("pl-signal")

        result = await linked.generate_run_result(OPTIONS_BY_ID["chaos_mix"], rules())

        assert len(result.tracks) == 35
        assert count(result, "signal") == 0
        assert "failed=['secondary_signal']" in result.debug_summary

    @pytest.mark.asyncio
    async def test_every_source_empty_raises_build_error(self, engine, fake_client):
        fake_client.failing.add("liked")

        with pytest.raises(MixBuildError) as exc_info:
            await engine.generate_run_result(OPTIONS_BY_ID["chaos_mix"], rules())

        assert isinstance(exc_info.value.__cause__, SpotifyServerError)

    @pytest.mark.asyncio
    async def test_cooldown_readmitted_after_strict_padding(self, engine, fake_client, pool_factory):
        fake_client.liked = pool_factory("liked", 20)
        restricted = {t.id for t in fake_client.liked[:15]}
        engine.cooldown_store.mark_used(restricted)

        result = await engine.generate_run_result(OPTIONS_BY_ID["chaos_mix"], rules(playlist_length=10))

        picked = ids(result)
        assert len(picked) == 10
        assert len(set(picked)) == 10
        flags = [i in restricted for i in picked]
        assert flags == [False] * 5 + [True] * 5
        assert "filled 7 tracks via fallback (5 re-admitted from recent history)" in result.warning

    @pytest.mark.asyncio
    async def test_genre_category_fetched_only_when_needed(self, linked, fake_client):
        await linked.generate_run_result(OPTIONS_BY_ID["zen_mix"], rules())
        assert "album_tracks" not in fake_client.call_names()

        fake_client.calls.clear()
        await linked.generate_run_result(OPTIONS_BY_ID["lightening_mix"], rules())
        # default linked 2Pac album
        assert "album_tracks" in fake_client.call_names()

    @pytest.mark.asyncio
    async def test_respects_requested_length(self, linked):
        result = await linked.generate_run_result(OPTIONS_BY_ID["focus_mix"], rules(playlist_length=12))
        assert len(result.tracks) == 12


class TestDiscovery:

    @pytest.mark.asyncio
    async def test_recommendations_marked_new(self, linked, fake_client, pool_factory):
        fake_client.recommendations = pool_factory("new", 40)

        result = await linked.generate_run_result(OPTIONS_BY_ID["focus_mix"], rules(discover_level=0.4))

        rec_call = next(c for c in fake_client.calls if c[0] == "recommendations")
        assert rec_call[3] == 14 + 20
        assert len(rec_call[2]) == 3
        new_tracks = [t for t in result.tracks if t.is_new]
        assert new_tracks
        assert all(t.id.startswith("new-") for t in new_tracks)
        assert all(not t.is_new for t in result.tracks if not t.id.startswith("new-"))
        assert f"New {len(new_tracks)}" in result.source_summary

    @pytest.mark.asyncio
    async def test_recommendation_failure_tolerated(self, linked, fake_client):
        fake_client.failing.add("recommendations")

        result = await linked.generate_run_result(OPTIONS_BY_ID["focus_mix"], rules(discover_level=0.4))

        assert len(result.tracks) == 35
        assert not any(t.is_new for t in result.tracks)


class TestExclusions:

    @pytest.mark.asyncio
    async def test_cooldown_excludes_recent_tracks(self, linked, fake_client):
        recent = {t.id for t in fake_client.liked[:80]}
        linked.cooldown_store.mark_used(recent)

        result = await linked.generate_run_result(OPTIONS_BY_ID["chaos_mix"], rules())

        assert not recent & set(ids(result))

    @pytest.mark.asyncio
    async def test_avoid_repeats_off_ignores_cooldown(self, linked, fake_client):
        linked.cooldown_store.mark_used(t.id for t in fake_client.playlists["pl-signal"][:45])

        result = await linked.generate_run_result(
            OPTIONS_BY_ID["shazam_tracks"], rules(playlist_length=10, avoid_repeats=False)
        )

        assert len(result.tracks) == 10
        assert result.warning is None

    @pytest.mark.asyncio
    async def test_generated_tracks_enter_cooldown(self, linked):
        result = await linked.generate_run_result(OPTIONS_BY_ID["chaos_mix"], rules())
        assert set(ids(result)) <= linked.cooldown_store.restricted_ids()

    @pytest.mark.asyncio
    async def test_blocked_tracks_never_returned(self, linked, fake_client):
        for track in fake_client.liked[:95]:
            linked.block_store.add(track)

        result = await linked.generate_run_result(OPTIONS_BY_ID["liked_songs"], rules(playlist_length=20))

        assert set(ids(result)) == {t.id for t in fake_client.liked[95:]}
        assert "Only 5 of 20" in result.warning

    @pytest.mark.asyncio
    async def test_explicit_filtered_when_disallowed(self, linked, fake_client, pool_factory):
        fake_client.liked = pool_factory("clean", 10) + pool_factory("dirty", 10, explicit=True)

        result = await linked.generate_run_result(
            OPTIONS_BY_ID["liked_songs"], rules(playlist_length=20, allow_explicit=False)
        )

        assert count(result, "dirty") == 0


class TestSingleSource:

    @pytest.mark.asyncio
    async def test_liked_songs(self, linked, fake_client):
        result = await linked.generate_run_result(OPTIONS_BY_ID["liked_songs"], rules(playlist_length=20))

        assert len(result.tracks) == 20
        assert count(result, "liked") == 20
        assert result.source_summary == "Source: LikedSongs"
        assert ("liked", 100) in fake_client.calls

    @pytest.mark.asyncio
    async def test_history_fallback_warning(self, linked, fake_client):
        linked.cooldown_store.mark_used(t.id for t in fake_client.playlists["pl-signal"][:45])

        result = await linked.generate_run_result(OPTIONS_BY_ID["shazam_tracks"], rules(playlist_length=10))

        assert len(result.tracks) == 10
        assert result.warning == "Source limit reached. Filled 5 tracks via history fallback."

    @pytest.mark.asyncio
    async def test_unlinked_source_raises(self, engine):
        with pytest.raises(MixConfigurationError, match="not linked"):
            await engine.generate_run_result(OPTIONS_BY_ID["acoustic_rock"], rules())

    @pytest.mark.asyncio
    async def test_fetch_failure_raises_build_error(self, linked, fake_client):
        fake_client.failing.add("pl-acoustic")
        with pytest.raises(MixBuildError):
            await linked.generate_run_result(OPTIONS_BY_ID["acoustic_rock"], rules())


class TestRadioDispatch:

    @pytest.mark.asyncio
    async def test_genre_radio(self, linked, fake_client, pool_factory):
        linked.catalog_store.patch(curated_genre_sources={"Hip Hop Classics": CatalogSource("pl-classics")})
        fake_client.playlists["pl-classics"] = pool_factory("rap", 60, year=1997)

        result = await linked.generate_run_result(OPTIONS_BY_ID["rap_hiphop"], rules(playlist_length=20))

        assert count(result, "rap") == 20
        assert result.source_summary.startswith("Genre Radio:")

    @pytest.mark.asyncio
    async def test_artist_radio(self, linked):
        result = await linked.generate_run_result(OPTIONS_BY_ID["a7x_deep"], rules(playlist_length=20))

        # no similar artist resolves, so the primary pool pads the rest
        assert count(result, "a7x") == 20
        assert result.source_summary.startswith("Avenged Sevenfold 10 • Similar 0")
        assert "filled 10 tracks" in result.warning

    @pytest.mark.asyncio
    async def test_genre_radio_failure_chained(self, engine, fake_client):
        for source in DEFAULT_GENRE_SOURCES.values():
            fake_client.failing.add(source.id)

        with pytest.raises(MixBuildError) as exc_info:
            await engine.generate_run_result(OPTIONS_BY_ID["rap_hiphop"], rules(playlist_length=10))

        assert isinstance(exc_info.value.__cause__, SpotifyServerError)
        assert str(exc_info.value.__cause__) in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_artist_radio_failure_chained(self, engine, fake_client):
        engine.catalog_store.patch(artist_primary_id="a7x")
        fake_client.failing.add("a7x")

        with pytest.raises(MixBuildError) as exc_info:
            await engine.generate_run_result(OPTIONS_BY_ID["a7x_deep"], rules(playlist_length=10))

        assert isinstance(exc_info.value.__cause__, SpotifyServerError)
        assert str(exc_info.value).startswith("No eligible tracks available for")
        assert str(exc_info.value.__cause__) in str(exc_info.value)


class TestEngineState:

    @pytest.mark.asyncio
    async def test_podcast_option_rejected(self, engine):
        podcast = RunOption("daily_news", "Daily News", type=RunOptionType.PODCAST)
        with pytest.raises(MixConfigurationError):
            await engine.generate_run_result(podcast, rules())

    @pytest.mark.asyncio
    async def test_newer_generation_supersedes(self, linked):
        first = await linked.generate_run_result(OPTIONS_BY_ID["liked_songs"], rules(playlist_length=5))
        assert linked.is_current(first)

        second = await linked.generate_run_result(OPTIONS_BY_ID["liked_songs"], rules(playlist_length=5))
        assert second.generation == first.generation + 1
        assert not linked.is_current(first)
        assert linked.is_current(second)

    @pytest.mark.asyncio
    async def test_rule_override_applies_to_its_option(self, linked):
        linked.rule_override_store.set_for_option("zen_mix", RuleOverride(playlist_length=8))

        zen = await linked.generate_run_result(OPTIONS_BY_ID["zen_mix"], rules())
        chaos = await linked.generate_run_result(OPTIONS_BY_ID["chaos_mix"], rules())

        assert len(zen.tracks) == 8
        assert len(chaos.tracks) == 35

    def test_list_options_reports_readiness(self, linked):
        ready = {option.id: is_ready for option, is_ready in linked.list_options()}
        assert ready["acoustic_rock"] is True
        assert ready["chaos_mix"] is True

        linked.catalog_store.unlink("acoustic_id")
        ready = {option.id: is_ready for option, is_ready in linked.list_options()}
        assert ready["acoustic_rock"] is False

    @pytest.mark.asyncio
    async def test_reset_caches(self, engine, fake_client):
        fake_client.artists["Korn"] = [SpotifyArtist(id="korn", name="Korn")]
        await engine.artist_resolver.resolve("Korn")
        engine.reset_caches()
        assert engine.artist_resolver.cached("Korn") is None


class TestMockMode:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("option_id", ["chaos_mix", "lightening_mix", "rap_hiphop", "a7x_deep", "liked_songs"])
    async def test_every_option_composes_offline(self, tmp_path, option_id):
        config = MixEngineConfig(use_mock_data=True, state_dir=tmp_path)
        engine = MixEngine.from_config(config, rng=random.Random(3))
        await engine.resolve_all()

        result = await engine.generate_run_result(OPTIONS_BY_ID[option_id], RuleSettings(playlist_length=20))

        assert 0 < len(result.tracks) <= 20
        assert len(set(ids(result))) == len(result.tracks)
        assert not config.cooldown_path.exists()
