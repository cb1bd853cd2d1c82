"""Transform Spotify Web API JSON payloads into typed records."""

import logging
from typing import Any, Dict, List, Optional

from .models import (
    SpotifyAlbum,
    SpotifyArtist,
    SpotifyArtistRef,
    SpotifyImage,
    SpotifyPlaylist,
    SpotifyTrack,
    SpotifyUser,
)

logger = logging.getLogger(__name__)


def parse_images(images: Optional[List[Dict[str, Any]]]) -> List[SpotifyImage]:
    """Parse an image list, skipping entries without a URL.

    Examples:
        >>> parse_images([{"url": "https://i.scdn.co/a", "height": 640}])
        [SpotifyImage(url='https://i.scdn.co/a', height=640, width=None)]
        >>> parse_images(None)
        []
    """
    return [
        SpotifyImage(url=img["url"], height=img.get("height"), width=img.get("width"))
        for img in images or []
        if img and img.get("url")
    ]


def parse_album(data: Optional[Dict[str, Any]]) -> Optional[SpotifyAlbum]:
    """Parse a simplified or full album object.

    Returns:
        SpotifyAlbum, or None when the payload lacks an id
    """
    if not data or not data.get("id"):
        return None
    return SpotifyAlbum(
        id=data["id"],
        name=data.get("name", "Unknown Album"),
        images=parse_images(data.get("images")),
        release_date=data.get("release_date"),
        album_type=data.get("album_type"),
    )


def parse_track(
    data: Optional[Dict[str, Any]], album: Optional[SpotifyAlbum] = None
) -> Optional[SpotifyTrack]:
    """Parse a track object.

    Album endpoints return tracks without an embedded album; pass the album
    they were fetched from so release dates stay available downstream.

    Args:
        data: Track payload (may be None for removed playlist entries)
        album: Album to attach when the payload has none

    Returns:
        SpotifyTrack, or None when the payload is empty or lacks id/uri

    Examples:
        >>> track = parse_track({"id": "t1", "name": "Song", "uri": "spotify:track:t1",
        ...                      "artists": [{"id": "a1", "name": "Band"}]})
        >>> track.primary_artist.name
        'Band'
        >>> parse_track(None) is None
        True
    """
    if not data:
        return None
    if not data.get("id") or not data.get("uri"):
        # Local files carry no catalog id
        logger.debug(f"Skipping track without id/uri: {data.get('name')!r}")
        return None

    return SpotifyTrack(
        id=data["id"],
        name=data.get("name", ""),
        uri=data["uri"],
        artists=[
            SpotifyArtistRef(id=a.get("id") or "", name=a.get("name", "Unknown Artist"))
            for a in data.get("artists") or []
        ],
        album=parse_album(data.get("album")) or album,
        duration_ms=data.get("duration_ms"),
        is_local=bool(data.get("is_local", False)),
        is_playable=data.get("is_playable"),
        explicit=bool(data.get("explicit", False)),
    )


def parse_tracks(
    items: Optional[List[Optional[Dict[str, Any]]]], album: Optional[SpotifyAlbum] = None
) -> List[SpotifyTrack]:
    """Parse a list of track payloads, dropping unusable entries."""
    tracks = []
    for item in items or []:
        track = parse_track(item, album=album)
        if track is not None:
            tracks.append(track)
    return tracks


def parse_saved_items(items: Optional[List[Dict[str, Any]]]) -> List[SpotifyTrack]:
    """Parse paging items of the form ``{"track": {...}}`` (liked tracks, playlists)."""
    return parse_tracks([(item or {}).get("track") for item in items or []])


def parse_artist(data: Optional[Dict[str, Any]]) -> Optional[SpotifyArtist]:
    if not data or not data.get("id"):
        return None
    return SpotifyArtist(
        id=data["id"],
        name=data.get("name", ""),
        images=parse_images(data.get("images")),
        popularity=data.get("popularity"),
        followers=(data.get("followers") or {}).get("total"),
    )


def parse_playlist(data: Optional[Dict[str, Any]]) -> Optional[SpotifyPlaylist]:
    if not data or not data.get("id"):
        return None
    return SpotifyPlaylist(
        id=data["id"],
        name=data.get("name", ""),
        owner_id=(data.get("owner") or {}).get("id"),
        track_count=(data.get("tracks") or {}).get("total"),
    )


def parse_user(data: Dict[str, Any]) -> SpotifyUser:
    return SpotifyUser(
        id=data["id"],
        display_name=data.get("display_name"),
        country=data.get("country"),
    )
