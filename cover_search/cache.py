"""
Last-result cache.

Holds exactly one entry: the most recently resolved (track, cover) pair.
Consecutive tracks of the same album in the same folder can reuse it and
skip the provider round trip entirely. A cached None means the previous
track of that album found nothing, which is reused as well.

The entry is written from the pipeline worker and may be read by code
running on a different thread, so it is replaced as a whole under a lock
rather than mutated in place.
"""
from __future__ import annotations

import threading
from typing import Callable, Optional

from logging_config import get_logger

from .models import CacheEntry, CandidateImage, SearchConfig, Track

logger = get_logger(__name__)


class LastCoverCache:
    """Single-cell cache owned by one batch run."""

    def __init__(self):
        self._lock = threading.Lock()
        self._entry: Optional[CacheEntry] = None

    @property
    def entry(self) -> Optional[CacheEntry]:
        with self._lock:
            return self._entry

    def store(self, track: Track, image: Optional[CandidateImage]) -> None:
        entry = CacheEntry(track=track, image=image)
        with self._lock:
            self._entry = entry

    def clear(self) -> None:
        with self._lock:
            self._entry = None

    def lookup(
        self,
        track: Track,
        config: SearchConfig,
        is_writable: Callable[[Track], bool]
    ) -> Optional[CacheEntry]:
        """
        Return the cached entry if track may reuse it, else None.

        A returned entry with image=None is a negative hit: the previous
        track of this album found no cover, so searching again is pointless.

        Args:
            track: Track about to be resolved
            config: Engine configuration (auto reuse switch)
            is_writable: Write check for the cached track's file
        """
        if not config.auto_reuse_last_cover:
            return None

        entry = self.entry
        if entry is None:
            return None
        if entry.track.path == track.path:
            return None
        if entry.track.album_key != track.album_key:
            return None

        if entry.image is None:
            logger.debug(f"Cache: {track.name} shares album with {entry.track.name}, which had no cover")
            return entry

        if not is_writable(entry.track):
            logger.debug(f"Cache: {entry.track.name} is not writable, not reusing its cover")
            return None

        logger.debug(f"Cache hit: reusing cover of {entry.track.name} for {track.name}")
        return entry
