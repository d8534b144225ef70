"""
Per-track cover resolution.

resolve() decides, for a single track, whether to search at all, where the
cover comes from (last-result cache, stashed candidates, or providers),
which candidate wins, and whether it may be written.
"""
from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Sequence

from logging_config import get_logger
from system_utils.helpers import create_search_string

from .cache import LastCoverCache
from .coordinators import search_all, search_first
from .errors import NotWritable
from .interfaces import CoverSource, ImagePicker, TagStore
from .models import CandidateImage, CoverOutcome, SearchConfig, SearchMode, Track
from .observer import SearchObserver
from .policy import resize_if_needed, should_overwrite

logger = get_logger(__name__)


class CoverResolver:
    """
    Resolves covers for one batch run.

    Args:
        providers: Provider clients, filtered and ordered per search
        tag_store: Reads and writes embedded artwork
        config: Engine configuration
        cache: Last-result cache of the current run
        observer: Event sink
        picker: Chooses between candidates in manual mode
    """

    def __init__(
        self,
        providers: Sequence[CoverSource],
        tag_store: TagStore,
        config: SearchConfig,
        cache: LastCoverCache,
        observer: Optional[SearchObserver] = None,
        picker: Optional[ImagePicker] = None
    ):
        self.providers = list(providers)
        self.tag_store = tag_store
        self.config = config
        self.cache = cache
        self.observer = observer or SearchObserver()
        self.picker = picker
        # Candidates gathered in manual mode, consumed by the selection pass
        self._stash: Dict[str, List[CandidateImage]] = {}

    def needs_cover(self, track: Track) -> bool:
        if track.read_only:
            return False
        return self.config.overwrite_cover or not track.has_cover

    async def collect(self, track: Track) -> CoverOutcome:
        """
        Manual mode, first pass: gather candidates from all providers and keep
        them for the selection pass. Nothing is written.
        """
        if not self.needs_cover(track):
            self.observer.on_track_state_changed(track, CoverOutcome.SKIPPED.state_text)
            return CoverOutcome.SKIPPED

        covers = await search_all(self.providers, track, self.config.search_timeout)
        self._stash[str(track.path)] = covers
        return CoverOutcome.COLLECTED

    async def resolve(self, track: Track, mode: Optional[SearchMode] = None) -> CoverOutcome:
        """
        Find, choose and persist the cover for one track.

        Args:
            track: Track to resolve
            mode: Search mode, defaults to the configured one

        Returns:
            What happened to the track
        """
        mode = mode or self.config.mode

        if not self.needs_cover(track):
            logger.debug(f"Skipping {track.name}: read-only or cover exists")
            self.observer.on_track_state_changed(track, CoverOutcome.SKIPPED.state_text)
            return CoverOutcome.SKIPPED

        self.observer.on_track_highlighted(track, True)
        try:
            cached = self.cache.lookup(track, self.config, self.tag_store.is_writable)
            if cached is not None:
                self._stash.pop(str(track.path), None)
                return await self._apply(track, cached.image)

            covers = await self._find_candidates(track, mode)
            chosen = await self._select(track, covers, mode)
            return await self._apply(track, chosen)
        finally:
            self.observer.on_track_highlighted(track, False)

    async def _find_candidates(self, track: Track, mode: SearchMode) -> List[CandidateImage]:
        stashed = self._stash.pop(str(track.path), None)
        if stashed is not None:
            return stashed

        timeout = self.config.search_timeout
        if mode is SearchMode.MANUAL_SELECTION:
            return await search_all(self.providers, track, timeout)
        return await search_first(self.providers, track, timeout)

    async def _select(self, track: Track, covers: List[CandidateImage], mode: SearchMode) -> Optional[CandidateImage]:
        if not covers:
            return None
        if mode is SearchMode.MANUAL_SELECTION and self.picker is not None:
            self.observer.on_user_attention_requested()
            label = create_search_string(track)
            # Pickers block on user input
            return await asyncio.to_thread(self.picker.choose, covers, label)
        return covers[0]

    async def _apply(self, track: Track, image: Optional[CandidateImage]) -> CoverOutcome:
        """Resize, compare with the existing cover, persist, and remember the result."""
        if image is None:
            outcome = CoverOutcome.NO_COVER
        else:
            image = resize_if_needed(image, self.config.max_cover_size)
            outcome = await self._persist(track, image)

        self.observer.on_track_state_changed(track, outcome.state_text)
        # Remember every result, including "nothing found", for the next track of this album
        self.cache.store(track, image)
        return outcome

    async def _persist(self, track: Track, image: CandidateImage) -> CoverOutcome:
        existing = None
        if track.has_cover:
            existing = await asyncio.to_thread(self.tag_store.read_cover, track)

        if not should_overwrite(existing, image, self.config.overwrite_only_higher, self.config.overwrite_cover):
            logger.info(f"{track.name}: existing cover {existing.width}x{existing.height} is not smaller than {image.width}x{image.height}")
            return CoverOutcome.EXISTING_HIGHER

        try:
            if not self.tag_store.is_writable(track):
                raise NotWritable(track.path)
            await asyncio.to_thread(self.tag_store.write_cover, track, image)
        except NotWritable as e:
            logger.warning(str(e))
            return CoverOutcome.NOT_WRITABLE

        self.observer.on_cover_saved(track, image)
        return CoverOutcome.SAVED
