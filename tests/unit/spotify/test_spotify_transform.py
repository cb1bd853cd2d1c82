"""Tests for Spotify payload parsing and the retry policy."""

import pytest

from src.spotify.models import SpotifyAlbum, SpotifyConfig
from src.spotify.retry import NO_RETRY, RetryPolicy
from src.spotify.transform import (
    parse_album,
    parse_playlist,
    parse_saved_items,
    parse_track,
    parse_tracks,
)


class TestParseTrack:

    def test_full_track(self):
        track = parse_track({
            "id": "t1",
            "name": "Bat Country",
            "uri": "spotify:track:t1",
            "artists": [{"id": "a1", "name": "Avenged Sevenfold"}, {"id": "a2", "name": "Guest"}],
            "album": {"id": "al1", "name": "City of Evil", "release_date": "2005-06-06",
                      "images": [{"url": "https://i.scdn.co/x", "height": 640, "width": 640}]},
            "duration_ms": 313000,
            "explicit": True,
            "is_playable": False,
        })

        assert track.primary_artist.name == "Avenged Sevenfold"
        assert track.album.release_year == 2005
        assert track.album.images[0].url == "https://i.scdn.co/x"
        assert track.explicit is True
        assert track.is_playable is False
        assert track.is_local is False

    def test_playability_unknown_when_absent(self):
        track = parse_track({"id": "t1", "uri": "spotify:track:t1"})
        assert track.is_playable is None

    def test_attaches_fallback_album(self):
        album = SpotifyAlbum(id="al1", name="Record", release_date="1997")
        track = parse_track({"id": "t1", "uri": "spotify:track:t1"}, album=album)
        assert track.album is album
        assert track.album.release_year == 1997

    def test_drops_entries_without_id(self):
        assert parse_tracks([None, {"name": "no id"}, {"id": "t1", "uri": "spotify:track:t1"}])[0].id == "t1"
        assert len(parse_saved_items([{"track": None}, {}, None])) == 0


class TestParseOthers:

    def test_album_year_parsing(self):
        assert parse_album({"id": "a", "release_date": "1994-02"}).release_year == 1994
        assert parse_album({"id": "a", "release_date": None}).release_year is None
        assert parse_album({"name": "no id"}) is None

    def test_playlist(self):
        playlist = parse_playlist({"id": "p1", "name": "My Shazam Tracks",
                                   "owner": {"id": "u1"}, "tracks": {"total": 12}})
        assert playlist.owner_id == "u1"
        assert playlist.track_count == 12


class TestSpotifyConfig:

    def test_rejects_bad_values(self):
        with pytest.raises(ValueError):
            SpotifyConfig(access_token="")
        with pytest.raises(ValueError):
            SpotifyConfig(access_token="x", base_url="ftp://nope")
        with pytest.raises(ValueError):
            SpotifyConfig(access_token="x", market="USA")


class TestRetryPolicy:

    def test_delay_table_reuses_last_entry(self):
        policy = RetryPolicy(delays=(0.5, 1.0), max_attempts=5)
        assert policy.delay_for(1) == 0.5
        assert policy.delay_for(2) == 1.0
        assert policy.delay_for(4) == 1.0

    def test_retry_after_is_capped(self):
        policy = RetryPolicy(max_retry_after=5.0)
        assert policy.delay_for(1, retry_after=2.0) == 2.0
        assert policy.delay_for(1, retry_after=120.0) == 5.0

    def test_only_retryable_statuses(self):
        policy = RetryPolicy()
        assert policy.should_retry(429, 1)
        assert policy.should_retry(504, 2)
        assert not policy.should_retry(404, 1)
        assert not policy.should_retry(503, 3)

    def test_no_retry_policy(self):
        assert not NO_RETRY.should_retry(503, 1)

    def test_invalid_policy(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)
        with pytest.raises(ValueError):
            RetryPolicy(delays=())
