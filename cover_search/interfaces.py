"""
Collaborator interfaces used by the engine.

Concrete implementations live outside the core: the mutagen tag store in
system_utils.tags, the console picker in cover_sync, provider clients in
providers.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from .models import CandidateImage, Track


class CoverSource(ABC):
    """Anything the coordinators can search: a provider client."""

    name: str = "unknown"
    enabled: bool = True
    priority: int = 100

    @abstractmethod
    def search(self, track: Track) -> List[CandidateImage]:
        """
        Search covers for a track (blocking).

        Returns:
            Candidates in the provider's own preference order, possibly empty.
        """


class TagStore(ABC):
    """Reads and writes embedded artwork."""

    @abstractmethod
    def has_cover(self, track: Track) -> bool:
        """True if the file already carries embedded artwork."""

    @abstractmethod
    def read_cover(self, track: Track) -> Optional[CandidateImage]:
        """Decode the embedded artwork, None if absent or unreadable."""

    @abstractmethod
    def write_cover(self, track: Track, image: CandidateImage) -> None:
        """
        Replace the embedded artwork.

        Raises:
            NotWritable: if the file cannot be written.
        """

    @abstractmethod
    def is_writable(self, track: Track) -> bool:
        """True if write_cover() may succeed for this file."""


class ImagePicker(ABC):
    """Lets a user choose one of several candidates."""

    @abstractmethod
    def choose(self, candidates: Sequence[CandidateImage], context_label: str) -> Optional[CandidateImage]:
        """Return the chosen candidate, or None if the user declines."""
