"""
Tests for the catalog resolver.

Tests cover:
- Name normalization
- Artist search preference and caching
- Library playlist linking, idempotency and single-write patching
"""

import pytest

from src.mix_engine.catalog_store import CatalogStore
from src.mix_engine.constants import ACOUSTIC_PLAYLIST_NAME, SIGNAL_PLAYLIST_NAME
from src.mix_engine.models import CatalogSource
from src.mix_engine.resolver import ArtistResolver, CatalogResolver, normalize_name
from src.spotify.models import SpotifyArtist, SpotifyPlaylist


def test_normalize_name():
    assert normalize_name("  My  SHAZAM Tracks ") == "my shazam tracks"
    assert normalize_name("Rock ’n’ Roll") == normalize_name("rock 'n' roll")


class TestArtistResolver:

    @pytest.mark.asyncio
    async def test_prefers_exact_name(self, fake_client):
        fake_client.artists["Korn"] = [
            SpotifyArtist(id="kornish", name="Kornish"),
            SpotifyArtist(id="korn", name="KoRn"),
        ]
        assert await ArtistResolver(fake_client).resolve("Korn") == "korn"

    @pytest.mark.asyncio
    async def test_falls_back_to_first_result(self, fake_client):
        fake_client.artists["Tool"] = [SpotifyArtist(id="t1", name="Tool Academy")]
        assert await ArtistResolver(fake_client).resolve("Tool") == "t1"

    @pytest.mark.asyncio
    async def test_retries_with_artist_suffix(self, fake_client):
        fake_client.artists["Korn artist"] = [SpotifyArtist(id="korn", name="Korn")]

        assert await ArtistResolver(fake_client).resolve("Korn") == "korn"
        assert [c[1] for c in fake_client.calls] == ["Korn", "Korn artist"]

    @pytest.mark.asyncio
    async def test_search_error_tries_next_query(self, fake_client):
        fake_client.failing.add("Korn")
        fake_client.artists["Korn artist"] = [SpotifyArtist(id="korn", name="Korn")]
        assert await ArtistResolver(fake_client).resolve("Korn") == "korn"

    @pytest.mark.asyncio
    async def test_caches_successes_only(self, fake_client):
        resolver = ArtistResolver(fake_client)
        assert await resolver.resolve("Korn") is None
        fake_client.artists["Korn"] = [SpotifyArtist(id="korn", name="Korn")]
        assert await resolver.resolve("Korn") == "korn"

        calls = len(fake_client.calls)
        assert await resolver.resolve(" korn ") == "korn"
        assert len(fake_client.calls) == calls
        assert resolver.cached("KORN") == "korn"

        resolver.reset()
        assert resolver.cached("Korn") is None


class TestCatalogResolver:

    @pytest.fixture
    def store(self, tmp_path):
        return CatalogStore(tmp_path / "catalog.json")

    @pytest.fixture
    def library_client(self, fake_client):
        fake_client.user_playlists = [
            SpotifyPlaylist(id="pl-signal", name="  my shazam  TRACKS"),
            SpotifyPlaylist(id="pl-acoustic", name=ACOUSTIC_PLAYLIST_NAME),
            SpotifyPlaylist(id="pl-classics", name="Hip Hop Classics"),
            SpotifyPlaylist(id="pl-other", name="Workout"),
        ]
        fake_client.artists["Avenged Sevenfold"] = [SpotifyArtist(id="a7x", name="Avenged Sevenfold")]
        return fake_client

    def make_resolver(self, client, store, **kwargs):
        return CatalogResolver(client, store, ArtistResolver(client), **kwargs)

    @pytest.mark.asyncio
    async def test_links_everything_resolvable(self, library_client, store):
        catalog = await self.make_resolver(library_client, store).resolve_all()

        assert catalog.secondary_signal_id == "pl-signal"
        assert catalog.acoustic_id == "pl-acoustic"
        assert catalog.artist_primary_id == "a7x"
        assert catalog.curated_genre_sources["Hip Hop Classics"] == CatalogSource("pl-classics")
        assert store.get().to_dict() == catalog.to_dict()

    @pytest.mark.asyncio
    async def test_existing_links_not_overwritten(self, library_client, store):
        store.patch(secondary_signal_id="pl-manual")
        catalog = await self.make_resolver(library_client, store).resolve_all()
        assert catalog.secondary_signal_id == "pl-manual"

    @pytest.mark.asyncio
    async def test_second_run_is_a_no_op(self, library_client, store, mocker):
        resolver = self.make_resolver(library_client, store, genre_source_names=("Hip Hop Classics",))
        first = await resolver.resolve_all()

        patch_spy = mocker.spy(store, "patch")
        second = await resolver.resolve_all()

        assert second.to_dict() == first.to_dict()
        patch_spy.assert_not_called()
        assert library_client.call_names().count("library") == 1

    @pytest.mark.asyncio
    async def test_single_patch_per_run(self, library_client, store, mocker):
        patch_spy = mocker.spy(store, "patch")
        await self.make_resolver(library_client, store).resolve_all()
        assert patch_spy.call_count == 1

    @pytest.mark.asyncio
    async def test_library_failure_still_resolves_artist(self, library_client, store):
        library_client.failing.add("library")
        catalog = await self.make_resolver(library_client, store).resolve_all()

        assert catalog.secondary_signal_id is None
        assert catalog.artist_primary_id == "a7x"

    @pytest.mark.asyncio
    async def test_nothing_found_writes_nothing(self, fake_client, store):
        catalog = await self.make_resolver(fake_client, store).resolve_all()

        assert catalog.secondary_signal_id is None
        assert not store.path.exists()

    @pytest.mark.asyncio
    async def test_unlinked_default_can_be_relinked(self, library_client, store):
        library_client.user_playlists.append(SpotifyPlaylist(id="pl-90s", name="I Love My 90s Hip‑Hop"))
        store.unlink("I Love My 90s Hip‑Hop")

        catalog = await self.make_resolver(library_client, store).resolve_all()

        assert catalog.curated_genre_sources["I Love My 90s Hip‑Hop"].id == "pl-90s"


def test_signal_playlist_name_is_matched_case_insensitively():
    assert normalize_name("  my shazam  TRACKS") == normalize_name(SIGNAL_PLAYLIST_NAME)
