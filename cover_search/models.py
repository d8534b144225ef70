"""
Core data types for the cover search engine.

Leaf module: imports nothing from the rest of the package.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image


class SearchMode(Enum):
    """How candidates are gathered for a track."""
    FIRST_RESULT = "first_result"          # race, first non-empty provider wins
    MANUAL_SELECTION = "manual_selection"  # aggregate everything, a picker chooses


class CoverOutcome(Enum):
    """Per-track result. The value is the user-visible state text."""
    SAVED = "cover saved"
    NO_COVER = "no fitting cover"
    EXISTING_HIGHER = "existing resolution is higher"
    NOT_WRITABLE = "file is write-protected"
    SKIPPED = "cover already exists"
    COLLECTED = "candidates collected"

    @property
    def state_text(self) -> str:
        return self.value


class RunStatus(Enum):
    """Final status of a pipeline run."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True)
class Track:
    """
    One audio file plus the tag metadata needed to search for its cover.

    Built once per batch entry from externally loaded metadata and never
    mutated while the batch runs.
    """
    path: Path
    artist: str = ""
    album: str = ""
    title: str = ""
    track_number: int = 0
    has_cover: bool = False
    read_only: bool = False

    @property
    def folder(self) -> Path:
        return Path(self.path).parent

    @property
    def album_key(self) -> Tuple[str, str]:
        """Grouping key: tracks in the same folder with the same album tag."""
        return (str(self.folder), " ".join(self.album.lower().split()))

    @property
    def name(self) -> str:
        return Path(self.path).name


@dataclass(frozen=True)
class CandidateImage:
    """A decoded cover image returned by a provider (or read from a file)."""
    image: Image.Image = field(compare=False)
    source: str = ""
    url: str = ""

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    @property
    def area(self) -> int:
        return self.width * self.height

    def with_image(self, image: Image.Image) -> "CandidateImage":
        """Copy of this candidate carrying a different bitmap (e.g. after resizing)."""
        return CandidateImage(image=image, source=self.source, url=self.url)

    def __repr__(self) -> str:
        return f"<CandidateImage {self.width}x{self.height} source='{self.source}'>"


@dataclass(frozen=True)
class CacheEntry:
    """The most recently resolved cover. image=None records 'no cover found'."""
    track: Track
    image: Optional[CandidateImage]


@dataclass(frozen=True)
class SearchConfig:
    """Read-only configuration consumed by the engine."""
    overwrite_cover: bool = False
    overwrite_only_higher: bool = True
    manual_image_selection: bool = False
    auto_reuse_last_cover: bool = True
    search_timeout: float = 10
    max_cover_size: int = 1000
    enabled_providers: Tuple[str, ...] = ()

    @property
    def mode(self) -> SearchMode:
        if self.manual_image_selection:
            return SearchMode.MANUAL_SELECTION
        return SearchMode.FIRST_RESULT


class BatchState:
    """
    Cancellation flag and progress counter for one batch run.

    The flag is monotonic: once cancel() is called it stays set. It is read
    from the pipeline worker and set from whichever thread the caller uses,
    hence the Event.
    """

    def __init__(self):
        self._cancelled = threading.Event()
        self.processed_count = 0

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()
