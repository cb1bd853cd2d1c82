"""Block Store - user-curated permanent exclusion list."""

import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Set, Union

from src.spotify.models import SpotifyTrack

from .models import Track
from .state_file import FileLock, load_json, write_json_atomic

logger = logging.getLogger(__name__)


@dataclass
class BlockedTrack:
    id: str
    name: str
    artist: str
    album: Optional[str] = None
    added_at: str = ""


class BlockStore:
    """Blocked tracks persisted as a JSON list, newest first."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def list(self) -> List[BlockedTrack]:
        return [BlockedTrack(**entry) for entry in load_json(self.path, [])]

    def blocked_ids(self) -> Set[str]:
        return {entry.id for entry in self.list()}

    def is_blocked(self, track_id: str) -> bool:
        return track_id in self.blocked_ids()

    def add(self, track: Union[SpotifyTrack, Track]) -> bool:
        """Block a track. Returns False if it was already blocked."""
        if isinstance(track, SpotifyTrack):
            entry = BlockedTrack(
                id=track.id,
                name=track.name,
                artist=track.primary_artist.name if track.primary_artist else "",
                album=track.album.name if track.album else None,
            )
        else:
            entry = BlockedTrack(id=track.id, name=track.title, artist=track.artist, album=track.album)
        entry.added_at = datetime.now(timezone.utc).isoformat()

        with FileLock(self.path):
            blocked = self.list()
            if any(b.id == entry.id for b in blocked):
                return False
            write_json_atomic(self.path, [asdict(entry)] + [asdict(b) for b in blocked])

        logger.info(f"Blocked track {entry.id} ({entry.artist} - {entry.name})")
        return True

    def remove(self, track_id: str) -> bool:
        """Unblock a track. Returns False if it was not blocked."""
        with FileLock(self.path):
            blocked = self.list()
            remaining = [b for b in blocked if b.id != track_id]
            if len(remaining) == len(blocked):
                return False
            write_json_atomic(self.path, [asdict(b) for b in remaining])

        logger.info(f"Unblocked track {track_id}")
        return True
