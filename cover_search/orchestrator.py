"""
Batch orchestration.

A batch run walks an ordered list of tracks through up to three stages:
1. search: resolve (race mode) or collect candidates (manual mode) per track
2. manual selection: only in manual mode, pick and persist a cover per track
3. finish: report completion

Everything a run mutates (cancel flag, progress, last-result cache) lives on
its BatchRun, never at module level.
"""
from __future__ import annotations

from typing import Callable, List, Optional, Sequence, Set

from logging_config import get_logger

from .cache import LastCoverCache
from .coordinators import order_providers
from .interfaces import CoverSource, ImagePicker, TagStore
from .models import BatchState, CoverOutcome, RunStatus, SearchConfig, SearchMode, Track
from .observer import SearchObserver
from .pipeline import AsyncPipeline, ErrorHandler
from .resolver import CoverResolver

logger = get_logger(__name__)


class BatchRun:
    """State and stages of a single batch run."""

    def __init__(
        self,
        tracks: Sequence[Track],
        mode: SearchMode,
        providers: Sequence[CoverSource],
        tag_store: TagStore,
        config: SearchConfig,
        observer: SearchObserver,
        picker: Optional[ImagePicker] = None
    ):
        self.tracks: List[Track] = list(tracks)
        self.mode = mode
        self.config = config
        self.observer = observer
        self.state = BatchState()
        self.cache = LastCoverCache()
        self.outcomes: List[CoverOutcome] = []
        # Paths whose candidates were stashed in stage 1
        self._collected: Set[str] = set()

        self.resolver = CoverResolver(
            order_providers(providers), tag_store, config, self.cache,
            observer=observer, picker=picker
        )

    @property
    def total(self) -> int:
        return len(self.tracks)

    async def search_covers(self) -> None:
        """Stage 1: one track at a time, in input order."""
        for track in self.tracks:
            if self.state.cancelled:
                logger.info(f"Search interrupted after {self.state.processed_count}/{self.total} track(s)")
                return

            self.observer.on_track_processing(track)
            if self.mode is SearchMode.MANUAL_SELECTION:
                outcome = await self.resolver.collect(track)
                if outcome is CoverOutcome.COLLECTED:
                    self._collected.add(str(track.path))
            else:
                outcome = await self.resolver.resolve(track, self.mode)
            self.outcomes.append(outcome)

            self.state.processed_count += 1
            self.observer.on_track_finished(track)
            self.observer.on_progress(self.state.processed_count, self.total)

    async def select_covers(self) -> None:
        """
        Stage 2 (manual mode): let the picker choose for every track collected in
        stage 1. Tracks skipped there already carry their final state.
        """
        self.state.processed_count = 0
        for track in self.tracks:
            if self.state.cancelled:
                logger.info(f"Manual selection interrupted after {self.state.processed_count}/{self.total} track(s)")
                return

            if str(track.path) in self._collected:
                self.observer.on_track_processing(track)
                outcome = await self.resolver.resolve(track, SearchMode.MANUAL_SELECTION)
                self.outcomes.append(outcome)
                self.observer.on_track_finished(track)

            self.state.processed_count += 1
            self.observer.on_progress(self.state.processed_count, self.total)

    async def finish(self) -> None:
        """Stage 3."""
        logger.info("Search finished")
        self.observer.on_progress(0, self.total)
        self.observer.on_batch_finished()
        self.observer.on_user_attention_requested()


class BatchOrchestrator:
    """
    Drives batches of tracks through cover resolution.

    Example:
        orchestrator = BatchOrchestrator(providers, MutagenTagStore(), get_search_config())
        pipeline = orchestrator.run(tracks)
        ...
        orchestrator.cancel()
        pipeline.join()
    """

    def __init__(
        self,
        providers: Sequence[CoverSource],
        tag_store: TagStore,
        config: SearchConfig,
        observer: Optional[SearchObserver] = None,
        picker: Optional[ImagePicker] = None
    ):
        self.providers = list(providers)
        self.tag_store = tag_store
        self.config = config
        self.observer = observer or SearchObserver()
        self.picker = picker
        self.current_run: Optional[BatchRun] = None

    def run(
        self,
        tracks: Sequence[Track],
        mode: Optional[SearchMode] = None,
        on_error: Optional[ErrorHandler] = None,
        on_complete: Optional[Callable[[RunStatus], None]] = None
    ) -> AsyncPipeline:
        """
        Start a batch run in the background.

        Args:
            tracks: Tracks in processing order (keep albums contiguous for cache reuse)
            mode: Search mode, defaults to the configured one
            on_error: Receives an unexpected fault that aborted the run
            on_complete: Called with the final RunStatus

        Returns:
            The started pipeline; join() it to wait for the run
        """
        mode = mode or self.config.mode
        batch = BatchRun(tracks, mode, self.providers, self.tag_store, self.config, self.observer, self.picker)
        self.current_run = batch

        logger.info(f"Starting cover search for {batch.total} track(s) in {mode.value} mode")
        self.observer.on_batch_started(batch.total)

        pipeline = AsyncPipeline.run(batch.search_covers)
        if mode is SearchMode.MANUAL_SELECTION:
            pipeline.and_then(batch.select_covers)
        pipeline.and_then(batch.finish)

        def _complete(status: RunStatus) -> None:
            if status is RunStatus.CANCELLED:
                self.observer.on_batch_cancelled()
            if on_complete is not None:
                on_complete(status)

        return pipeline.begin(on_error=on_error, on_complete=_complete, cancel_token=batch.state)

    def cancel(self) -> None:
        """Stop after the track currently being resolved. In-flight provider calls are not interrupted."""
        batch = self.current_run
        if batch is None:
            return
        logger.info("Stop cover search")
        batch.state.cancel()
