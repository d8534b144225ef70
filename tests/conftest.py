"""Pytest configuration and shared fixtures"""
import os
import sys
import threading
import time
from pathlib import Path
from typing import Dict, List, Optional

import pytest
from PIL import Image

# Add parent directory to path so root modules import without installing
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from cover_search import (
    CandidateImage,
    CoverSource,
    ImagePicker,
    NotWritable,
    SearchConfig,
    SearchObserver,
    TagStore,
    Track,
)


def make_image(width: int, height: int, source: str = "test", color=(200, 30, 30)) -> CandidateImage:
    return CandidateImage(image=Image.new("RGB", (width, height), color), source=source, url=f"http://{source}/{width}x{height}.jpg")


def make_track(path="/music/album/01.mp3", artist="Artist", album="Album", **kwargs) -> Track:
    return Track(path=Path(path), artist=artist, album=album, **kwargs)


def make_album(count: int, folder="/music/album", album="Album", **kwargs) -> List[Track]:
    return [
        make_track(f"{folder}/{i:02d}.mp3", album=album, track_number=i, **kwargs)
        for i in range(1, count + 1)
    ]


class FakeProvider(CoverSource):
    """Blocking provider with a scripted result, delay or exception."""

    def __init__(self, name, priority=1, result=None, delay=0.0, error=None, enabled=True):
        self.name = name
        self.priority = priority
        self.enabled = enabled
        self.result = list(result or [])
        self.delay = delay
        self.error = error
        self.calls: List[Track] = []
        self._lock = threading.Lock()

    def search(self, track: Track) -> List[CandidateImage]:
        with self._lock:
            self.calls.append(track)
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.result)

    @property
    def call_count(self) -> int:
        return len(self.calls)


class MemoryTagStore(TagStore):
    """In-memory artwork keyed by path."""

    def __init__(self, covers: Optional[Dict[str, CandidateImage]] = None, read_only=(), fail_writes=False):
        self.covers: Dict[str, CandidateImage] = dict(covers or {})
        self.read_only = {str(p) for p in read_only}
        self.fail_writes = fail_writes
        self.writes: List[tuple] = []

    def has_cover(self, track: Track) -> bool:
        return str(track.path) in self.covers

    def read_cover(self, track: Track) -> Optional[CandidateImage]:
        return self.covers.get(str(track.path))

    def is_writable(self, track: Track) -> bool:
        return str(track.path) not in self.read_only

    def write_cover(self, track: Track, image: CandidateImage) -> None:
        if self.fail_writes or not self.is_writable(track):
            raise NotWritable(track.path)
        self.covers[str(track.path)] = image
        self.writes.append((track, image))


class RecordingObserver(SearchObserver):
    """Keeps every event as (name, *args)."""

    def __init__(self):
        self.events: List[tuple] = []
        self._lock = threading.Lock()

    def _record(self, *event):
        with self._lock:
            self.events.append(event)

    def names(self) -> List[str]:
        return [e[0] for e in self.events]

    def states(self) -> Dict[str, str]:
        return {e[1].name: e[2] for e in self.events if e[0] == "state"}

    def on_batch_started(self, total):
        self._record("started", total)

    def on_track_processing(self, track):
        self._record("processing", track)

    def on_track_highlighted(self, track, highlighted):
        self._record("highlight", track, highlighted)

    def on_track_state_changed(self, track, state_text):
        self._record("state", track, state_text)

    def on_cover_saved(self, track, image):
        self._record("saved", track, image)

    def on_track_finished(self, track):
        self._record("finished", track)

    def on_progress(self, current, total):
        self._record("progress", current, total)

    def on_user_attention_requested(self):
        self._record("attention")

    def on_batch_cancelled(self):
        self._record("cancelled")

    def on_batch_finished(self):
        self._record("batch_finished")


class ScriptedPicker(ImagePicker):
    """Picks by index (None declines) and records what it was shown."""

    def __init__(self, index: Optional[int] = 0):
        self.index = index
        self.shown: List[tuple] = []

    def choose(self, candidates, context_label):
        self.shown.append((list(candidates), context_label))
        if self.index is None:
            return None
        return candidates[self.index]


@pytest.fixture
def config():
    return SearchConfig(search_timeout=1, max_cover_size=1000)


@pytest.fixture
def tag_store():
    return MemoryTagStore()


@pytest.fixture
def observer():
    return RecordingObserver()
