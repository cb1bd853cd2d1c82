"""Async HTTP client for the Spotify Web API."""

import asyncio
import logging
import time
from collections import deque
from typing import Any, Callable, Dict, List, Optional, Set, TypeVar

import httpx

from .exceptions import (
    SpotifyAuthenticationError,
    SpotifyAuthorizationError,
    SpotifyError,
    SpotifyNotFoundError,
    SpotifyRateLimitError,
    SpotifyServerError,
)
from .models import (
    SpotifyAlbum,
    SpotifyArtist,
    SpotifyConfig,
    SpotifyPlaylist,
    SpotifyTrack,
    SpotifyUser,
)
from .retry import RetryPolicy
from .transform import (
    parse_album,
    parse_artist,
    parse_playlist,
    parse_saved_items,
    parse_tracks,
    parse_user,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Hard cap on the liked-songs pool; beyond this variety gains are negligible
MAX_LIKED_POOL = 300
LIKED_PAGE_SIZE = 50
PLAYLIST_PAGE_SIZE = 100
ALBUM_PAGE_SIZE = 50
MAX_RECOMMENDATION_SEEDS = 5

# Identifiers that are not real playlists and must be routed to the library
LIBRARY_ALIASES = ("liked_songs", "me")


def normalize_limit(value: Any, default: int, maximum: int) -> int:
    """Clamp a requested page size to an integer in [1, maximum].

    Examples:
        >>> normalize_limit(500, 50, 100)
        100
        >>> normalize_limit("abc", 50, 100)
        50
        >>> normalize_limit(0, 50, 100)
        1
    """
    try:
        val = int(value)
    except (TypeError, ValueError):
        val = default
    return min(maximum, max(1, val))


class SpotifyClient:
    """Async HTTP client for the Spotify Web API.

    Read-only access to the endpoints the mix engine consumes:
    - Saved (liked) tracks with deep pagination
    - Playlist and album track listings
    - Artist top tracks, album discography and search
    - Recommendations seeded by artists/tracks
    - The current user's playlist library

    Requests go through a finite ``RetryPolicy`` and map error statuses to
    typed exceptions. Token acquisition and refresh are handled by the caller.

    Attributes:
        config: SpotifyConfig with token and market
        client: httpx.AsyncClient for HTTP requests

    Example:
        >>> config = SpotifyConfig(access_token="BQD...")
        >>> async with SpotifyClient(config) as client:
        ...     tracks = await client.get_liked_tracks(100)
    """

    def __init__(
        self,
        config: SpotifyConfig,
        rate_limit: Optional[int] = None,
        retry_policy: Optional[RetryPolicy] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize Spotify API client.

        Args:
            config: SpotifyConfig with access token and API root
            rate_limit: Optional maximum requests per second (default: no limit)
            retry_policy: Retry behaviour for throttled/failed requests
            transport: Custom transport (tests inject httpx.MockTransport)
        """
        self.config = config
        self._base_url = config.base_url.rstrip("/")
        self.retry_policy = retry_policy or RetryPolicy()

        # Rate limiting
        self.rate_limit = rate_limit
        self._request_times: Optional[deque] = deque(maxlen=100) if rate_limit else None

        client_kwargs: Dict[str, Any] = {
            "base_url": self._base_url,
            "headers": {
                "Authorization": f"Bearer {config.access_token}",
                "Accept": "application/json",
                "User-Agent": config.client_name,
            },
            "timeout": httpx.Timeout(
                connect=10.0,
                read=30.0,
                write=10.0,
                pool=5.0,
            ),
            "follow_redirects": True,
        }
        if transport is not None:
            client_kwargs["transport"] = transport
        else:
            client_kwargs["limits"] = httpx.Limits(
                max_connections=20,
                max_keepalive_connections=10,
                keepalive_expiry=5.0,
            )

        # Try to enable HTTP/2 if available, fallback to HTTP/1.1
        try:
            self.client = httpx.AsyncClient(http2=True, **client_kwargs)
        except ImportError:
            # h2 package not installed
            logger.debug("HTTP/2 not available, using HTTP/1.1")
            self.client = httpx.AsyncClient(**client_kwargs)

        logger.info(f"Initialized Spotify client for {self._base_url} (market={config.market})")
        if rate_limit:
            logger.info(f"Rate limiting enabled: {rate_limit} requests/second")

    async def _apply_rate_limit(self) -> None:
        """Sliding one-second window limiter; sleeps when the window is full."""
        if not self.rate_limit or self._request_times is None:
            return

        now = time.monotonic()
        while self._request_times and now - self._request_times[0] > 1.0:
            self._request_times.popleft()

        if len(self._request_times) >= self.rate_limit:
            sleep_time = 1.0 - (now - self._request_times[0])
            if sleep_time > 0:
                logger.debug(f"Rate limit reached, sleeping for {sleep_time:.3f}s")
                await asyncio.sleep(sleep_time)
                now = time.monotonic()
                while self._request_times and now - self._request_times[0] > 1.0:
                    self._request_times.popleft()

        self._request_times.append(time.monotonic())

    @staticmethod
    def _retry_after(response: httpx.Response) -> Optional[float]:
        value = response.headers.get("retry-after")
        if value is None:
            return None
        try:
            return float(value)
        except ValueError:
            return None

    def _handle_response(self, response: httpx.Response) -> Optional[Dict[str, Any]]:
        """Parse a response and raise typed errors for failing statuses.

        Returns:
            Parsed JSON body, or None for 204/empty responses

        Raises:
            SpotifyAuthenticationError: 401
            SpotifyAuthorizationError: 403
            SpotifyNotFoundError: 404
            SpotifyRateLimitError: 429
            SpotifyServerError: 5xx
            SpotifyError: any other 4xx
        """
        status = response.status_code
        if status == 204:
            return None

        if status >= 400:
            body = response.text
            message = f"Request failed ({status})"
            try:
                error = response.json().get("error")
                if isinstance(error, dict):
                    message = error.get("message") or message
                elif isinstance(error, str):
                    message = error
            except ValueError:
                pass

            logger.error(
                f"[{status}] {response.request.method} {response.request.url} | Body: {body[:500]}"
            )

            if status == 401:
                raise SpotifyAuthenticationError(status, message)
            elif status == 403:
                raise SpotifyAuthorizationError(status, message)
            elif status == 404:
                raise SpotifyNotFoundError(status, message)
            elif status == 429:
                raise SpotifyRateLimitError(status, message, self._retry_after(response))
            elif status >= 500:
                raise SpotifyServerError(status, message)
            else:
                raise SpotifyError(status, message)

        if not response.content:
            return None
        return response.json()

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        """Issue a request, retrying per the retry policy.

        Args:
            method: HTTP method
            path: Path relative to the API root, or an absolute ``next`` URL
            params: Query parameters (None values are dropped)
            json_body: JSON request body

        Returns:
            Parsed JSON body or None
        """
        clean_params = {k: v for k, v in (params or {}).items() if v is not None}
        attempt = 0
        while True:
            attempt += 1
            await self._apply_rate_limit()
            logger.debug(f"{method} {path} params={clean_params} attempt={attempt}")

            try:
                response = await self.client.request(
                    method, path, params=clean_params or None, json=json_body
                )
            except httpx.TransportError as e:
                if attempt >= self.retry_policy.max_attempts:
                    logger.error(f"{method} {path} failed after {attempt} attempts: {e}")
                    raise
                delay = self.retry_policy.delay_for(attempt)
                logger.warning(f"{method} {path} transport error ({e}), retrying in {delay:.1f}s")
                await asyncio.sleep(delay)
                continue

            if self.retry_policy.should_retry(response.status_code, attempt):
                delay = self.retry_policy.delay_for(attempt, self._retry_after(response))
                logger.warning(
                    f"{method} {path} returned {response.status_code} "
                    f"(attempt {attempt}/{self.retry_policy.max_attempts}), retrying in {delay:.1f}s"
                )
                await asyncio.sleep(delay)
                continue

            return self._handle_response(response)

    async def _get(self, path: str, **params: Any) -> Dict[str, Any]:
        return await self.request("GET", path, params=params) or {}

    async def _collect_pages(
        self,
        path: str,
        page_size: int,
        target: int,
        parse_page: Callable[[Dict[str, Any]], List[T]],
        **params: Any,
    ) -> List[T]:
        """Fetch offset-paginated results until ``target`` items or a short page."""
        collected: List[T] = []
        offset = 0
        offsets_used = []
        while len(collected) < target:
            limit = min(page_size, target - len(collected))
            offsets_used.append(offset)
            data = await self._get(path, limit=limit, offset=offset, **params)
            items = data.get("items") or []
            if not items:
                break
            collected.extend(parse_page(data))
            if len(items) < limit:
                break
            offset += limit
        logger.debug(f"{path}: {len(collected)} items (offsets {offsets_used})")
        return collected

    async def get_me(self) -> SpotifyUser:
        data = await self._get("/me")
        return parse_user(data)

    async def get_liked_tracks(self, target: int = MAX_LIKED_POOL) -> List[SpotifyTrack]:
        """Fetch the user's saved tracks with deep pagination.

        Args:
            target: Desired pool size (capped at MAX_LIKED_POOL)

        Returns:
            Saved tracks, most recently saved first
        """
        target = min(max(1, int(target)), MAX_LIKED_POOL)
        logger.info(f"Gathering liked songs (target: {target})")
        tracks = await self._collect_pages(
            "/me/tracks",
            LIKED_PAGE_SIZE,
            target,
            lambda page: parse_saved_items(page.get("items")),
            market=self.config.market,
        )
        logger.info(f"Liked songs pool size: {len(tracks)}")
        return tracks

    async def get_liked_track_ids(self, limit: int = MAX_LIKED_POOL) -> Set[str]:
        """Return identifiers of the user's saved tracks."""
        return {t.id for t in await self.get_liked_tracks(limit)}

    async def get_playlist_tracks(
        self, playlist_id: str, limit: int = 50, offset: int = 0
    ) -> List[SpotifyTrack]:
        """Fetch one page of playlist tracks.

        Raises:
            ValueError: If the playlist id is empty or the "Unlinked" marker
            SpotifyNotFoundError: If the playlist does not exist
        """
        if not playlist_id or playlist_id == "Unlinked":
            raise ValueError("Playlist ID is missing or unlinked.")

        playlist_id = playlist_id.strip()
        if playlist_id in LIBRARY_ALIASES:
            logger.warning(f"Redirecting library alias {playlist_id!r} to liked songs")
            return await self.get_liked_tracks(limit)

        n_limit = normalize_limit(limit, 50, PLAYLIST_PAGE_SIZE)
        data = await self._get(
            f"/playlists/{playlist_id}/tracks",
            limit=n_limit,
            offset=offset,
            market=self.config.market,
        )
        return parse_saved_items(data.get("items"))

    async def get_playlist_tracks_bulk(self, playlist_id: str, target: int = 300) -> List[SpotifyTrack]:
        """Fetch up to ``target`` playlist tracks across pages of 100."""
        logger.info(f"Gathering playlist {playlist_id} tracks (target: {target})")
        collected: List[SpotifyTrack] = []
        offset = 0
        while len(collected) < target:
            page = await self.get_playlist_tracks(playlist_id, PLAYLIST_PAGE_SIZE, offset)
            if not page:
                break
            collected.extend(page)
            offset += PLAYLIST_PAGE_SIZE
            if len(page) < PLAYLIST_PAGE_SIZE:
                break
        return collected[:target]

    async def get_album(self, album_id: str) -> SpotifyAlbum:
        data = await self._get(f"/albums/{album_id}")
        album = parse_album(data)
        if album is None:
            raise SpotifyNotFoundError(404, f"Album {album_id} returned no data")
        return album

    async def get_album_tracks(
        self, album_id: str, album: Optional[SpotifyAlbum] = None
    ) -> List[SpotifyTrack]:
        """Fetch every track of an album.

        The album tracks endpoint omits album metadata; ``album`` is attached
        to each track when given.
        """
        return await self._collect_pages(
            f"/albums/{album_id}/tracks",
            ALBUM_PAGE_SIZE,
            1000,
            lambda page: parse_tracks(page.get("items"), album=album),
            market=self.config.market,
        )

    async def get_album_tracks_full(self, album_id: str) -> List[SpotifyTrack]:
        """Fetch album tracks with the album (including release date) attached."""
        album = await self.get_album(album_id)
        return await self.get_album_tracks(album_id, album=album)

    async def get_artist_top_tracks(self, artist_id: str) -> List[SpotifyTrack]:
        data = await self._get(f"/artists/{artist_id}/top-tracks", market=self.config.market)
        return parse_tracks(data.get("tracks"))

    async def get_artist_albums(
        self, artist_id: str, include_groups: str = "album"
    ) -> List[SpotifyAlbum]:
        """Enumerate an artist's releases of the given groups (album, single, ...)."""

        def parse_page(page: Dict[str, Any]) -> List[SpotifyAlbum]:
            albums = [parse_album(item) for item in page.get("items") or []]
            return [a for a in albums if a is not None]

        return await self._collect_pages(
            f"/artists/{artist_id}/albums",
            ALBUM_PAGE_SIZE,
            1000,
            parse_page,
            include_groups=include_groups,
            market=self.config.market,
        )

    async def search_artists(self, query: str, limit: int = 5) -> List[SpotifyArtist]:
        n_limit = normalize_limit(limit, 5, 50)
        data = await self._get("/search", q=query, type="artist", limit=n_limit)
        items = (data.get("artists") or {}).get("items") or []
        artists = [parse_artist(item) for item in items]
        return [a for a in artists if a is not None]

    async def get_recommendations(
        self,
        seed_artists: List[str],
        seed_tracks: List[str],
        limit: int = 20,
    ) -> List[SpotifyTrack]:
        """Fetch novel tracks seeded by up to five artist/track identifiers.

        Artist seeds take precedence; track seeds fill the remaining slots.
        Returns an empty list when no usable seeds are given.
        """
        final_artists = [s for s in seed_artists if s][:MAX_RECOMMENDATION_SEEDS]
        final_tracks = [s for s in seed_tracks if s][: MAX_RECOMMENDATION_SEEDS - len(final_artists)]
        if not final_artists and not final_tracks:
            return []

        params: Dict[str, Any] = {
            "limit": normalize_limit(limit, 20, 100),
            "market": self.config.market,
        }
        if final_artists:
            params["seed_artists"] = ",".join(final_artists)
        if final_tracks:
            params["seed_tracks"] = ",".join(final_tracks)

        data = await self._get("/recommendations", **params)
        return parse_tracks(data.get("tracks"))

    async def get_all_user_playlists(self) -> List[SpotifyPlaylist]:
        """Exhaustively list the user's playlists by following ``next`` links.

        Returns:
            Playlists de-duplicated by id, in library order
        """
        playlists: Dict[str, SpotifyPlaylist] = {}
        url: Optional[str] = "/me/playlists"
        params: Optional[Dict[str, Any]] = {"limit": 50}
        while url:
            data = await self.request("GET", url, params=params) or {}
            for item in data.get("items") or []:
                playlist = parse_playlist(item)
                if playlist is not None and playlist.id not in playlists:
                    playlists[playlist.id] = playlist
            url = data.get("next")
            # next links already carry their query string
            params = None
        logger.info(f"Library scan found {len(playlists)} playlists")
        return list(playlists.values())

    async def close(self) -> None:
        """Close the underlying HTTP client and release connections."""
        await self.client.aclose()
        logger.debug("Spotify client closed")

    async def __aenter__(self) -> "SpotifyClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
