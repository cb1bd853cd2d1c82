"""
Cooldown/History Store - rolling record of recently served tracks.

Maps track id -> last-used epoch milliseconds. A track is restricted while
its entry is younger than the cooldown window; unseen ids are never
restricted. Expired entries are pruned on every write.
"""

import logging
import time
from pathlib import Path
from typing import Callable, Dict, Iterable, Set

from .constants import DEFAULT_COOLDOWN_DAYS
from .state_file import FileLock, load_json, write_json_atomic

logger = logging.getLogger(__name__)

MS_PER_DAY = 24 * 60 * 60 * 1000


class CooldownStore:
    """Persisted cooldown history backed by a JSON file.

    Attributes:
        path: JSON document location
        window_ms: Cooldown window in milliseconds
    """

    def __init__(
        self,
        path: Path,
        window_days: float = DEFAULT_COOLDOWN_DAYS,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            path: Where the history is persisted
            window_days: Days a track stays restricted after use
            clock: Seconds-since-epoch source (injectable for tests)
        """
        self.path = Path(path)
        self.window_ms = int(window_days * MS_PER_DAY)
        self._clock = clock

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def get_history(self) -> Dict[str, int]:
        history = load_json(self.path, {})
        return {str(k): int(v) for k, v in history.items()}

    def is_restricted(self, track_id: str) -> bool:
        last_used = self.get_history().get(track_id)
        if last_used is None:
            return False
        return self._now_ms() - last_used < self.window_ms

    def restricted_ids(self) -> Set[str]:
        """Snapshot of every id still inside the window.

        Lets callers filter whole pools against one read of the history.
        """
        now = self._now_ms()
        return {tid for tid, ts in self.get_history().items() if now - ts < self.window_ms}

    def mark_used(self, track_ids: Iterable[str]) -> None:
        """Stamp ``track_ids`` with the current time and prune expired entries."""
        ids = [tid for tid in track_ids if tid]
        if not ids:
            return

        with FileLock(self.path):
            history = self.get_history()
            now = self._now_ms()
            for tid in ids:
                history[tid] = now

            kept = {tid: ts for tid, ts in history.items() if now - ts < self.window_ms}
            purged = len(history) - len(kept)
            write_json_atomic(self.path, kept)

        logger.info(f"Cooldown: marked {len(ids)} tracks as used")
        if purged > 0:
            logger.info(f"Cooldown: pruned {purged} expired tracks from history")

    def clear(self) -> None:
        with FileLock(self.path):
            write_json_atomic(self.path, {})
        logger.info("Cooldown: history cleared")
