"""
Balanced Interleaving Selector.

Round-robin selection across per-category pools followed by relaxed
fallback padding when the strict pass cannot reach the target.
"""

import random
from collections import deque
from typing import Callable, Iterable, List, Optional, Sequence, Set, Tuple, TypeVar

from src.spotify.models import SpotifyTrack

T = TypeVar("T")


def shuffled(items: Iterable[T], rng: Optional[random.Random] = None) -> List[T]:
    """Return a uniformly shuffled copy (Fisher-Yates via ``Random.shuffle``)."""
    copy = list(items)
    (rng or random).shuffle(copy)
    return copy


def interleave_indexed(
    pools: Sequence[Sequence[SpotifyTrack]],
    target: int,
    seen: Optional[Set[str]] = None,
) -> List[Tuple[int, SpotifyTrack]]:
    """Draw one new track per pool per pass until ``target`` or exhaustion.

    Pools are consumed in the given order. Tracks whose id is already in the
    result (or in ``seen``) are skipped without costing the pool its turn.
    The loop ends when the target is reached or a full pass adds nothing.

    Args:
        pools: Ordered candidate pools (already shuffled and quota-truncated)
        target: Maximum number of tracks to return
        seen: Ids that must not be selected (e.g. chosen by another stage)

    Returns:
        (pool index, track) pairs in draw order
    """
    queues = [deque(pool) for pool in pools]
    taken: Set[str] = set(seen or ())
    result: List[Tuple[int, SpotifyTrack]] = []

    while len(result) < target:
        added_this_pass = 0
        for index, queue in enumerate(queues):
            while queue:
                track = queue.popleft()
                if track.id in taken:
                    continue
                result.append((index, track))
                taken.add(track.id)
                added_this_pass += 1
                break
            if len(result) >= target:
                break
        if added_this_pass == 0:
            break

    return result


def interleave(
    pools: Sequence[Sequence[SpotifyTrack]],
    target: int,
    seen: Optional[Set[str]] = None,
) -> List[SpotifyTrack]:
    """Like ``interleave_indexed`` but returns only the tracks."""
    return [track for _, track in interleave_indexed(pools, target, seen)]


def pad_to_target(
    result: List[SpotifyTrack],
    target: int,
    candidates: Iterable[SpotifyTrack],
    rng: Optional[random.Random] = None,
) -> List[SpotifyTrack]:
    """Append shuffled, not-yet-chosen candidates until ``target``.

    Mutates ``result`` in place.

    Returns:
        The tracks that were appended
    """
    if len(result) >= target:
        return []

    taken = {t.id for t in result}
    added: List[SpotifyTrack] = []
    for track in shuffled(candidates, rng):
        if len(result) >= target:
            break
        if track.id in taken:
            continue
        result.append(track)
        taken.add(track.id)
        added.append(track)
    return added


def select_with_album_cap(
    pool: Sequence[SpotifyTrack],
    target: int,
    per_album_cap: int,
    rng: Optional[random.Random] = None,
    album_key: Callable[[SpotifyTrack], str] = lambda t: t.album.id if t.album else "",
) -> List[SpotifyTrack]:
    """Randomly pick up to ``target`` tracks with an album spread constraint.

    No album contributes more than ``per_album_cap`` tracks and the previous
    pick's album never supplies the next one.
    """
    selected: List[SpotifyTrack] = []
    album_counts: dict = {}
    last_album: Optional[str] = None

    for track in shuffled(pool, rng):
        if len(selected) >= target:
            break
        album_id = album_key(track)
        count = album_counts.get(album_id, 0)
        if count < per_album_cap and album_id != last_album:
            selected.append(track)
            album_counts[album_id] = count + 1
            last_album = album_id

    return selected
