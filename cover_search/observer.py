"""
Progress/event sink for the engine.

The engine never renders anything; front ends subclass SearchObserver and
override the hooks they care about. All hooks may be called from the
pipeline worker thread.
"""
from __future__ import annotations

from logging_config import get_logger

from .models import CandidateImage, Track

logger = get_logger(__name__)


class SearchObserver:
    """Base observer, every hook is a no-op."""

    def on_batch_started(self, total: int) -> None:
        pass

    def on_track_processing(self, track: Track) -> None:
        pass

    def on_track_highlighted(self, track: Track, highlighted: bool) -> None:
        pass

    def on_track_state_changed(self, track: Track, state_text: str) -> None:
        pass

    def on_cover_saved(self, track: Track, image: CandidateImage) -> None:
        pass

    def on_track_finished(self, track: Track) -> None:
        pass

    def on_progress(self, current: int, total: int) -> None:
        pass

    def on_user_attention_requested(self) -> None:
        pass

    def on_batch_cancelled(self) -> None:
        pass

    def on_batch_finished(self) -> None:
        pass


class LoggingObserver(SearchObserver):
    """Observer that writes every event to the log."""

    def on_batch_started(self, total: int) -> None:
        logger.info(f"Cover search started for {total} track(s)")

    def on_track_processing(self, track: Track) -> None:
        logger.debug(f"Processing {track.name}")

    def on_track_state_changed(self, track: Track, state_text: str) -> None:
        if state_text:
            logger.info(f"{track.name}: {state_text}")

    def on_cover_saved(self, track: Track, image: CandidateImage) -> None:
        logger.info(f"{track.name}: saved {image.width}x{image.height} cover from {image.source or 'cache'}")

    def on_progress(self, current: int, total: int) -> None:
        logger.debug(f"Progress {current}/{total}")

    def on_batch_cancelled(self) -> None:
        logger.info("Cover search cancelled")

    def on_batch_finished(self) -> None:
        logger.info("Cover search finished")
