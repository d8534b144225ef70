"""
Audio library scanning.
Turns files/folders given on the command line into Track records.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Iterator, List, Optional

from mutagen import File as MutagenFile
from mutagen import MutagenError

from cover_search.interfaces import TagStore
from cover_search.models import Track
from logging_config import get_logger

from .tags import SUPPORTED_EXTENSIONS

logger = get_logger(__name__)


def _first(tags, key: str) -> str:
    if not tags:
        return ""
    values = tags.get(key)
    if not values:
        return ""
    return str(values[0]).strip()


def _parse_track_number(value: str) -> int:
    # "3/12" -> 3
    try:
        return int(value.split("/")[0])
    except (ValueError, AttributeError):
        return 0


def iter_audio_files(paths: Iterable) -> Iterator[Path]:
    """Yield supported audio files, walking directories recursively."""
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            for root, _dirs, files in os.walk(path):
                for filename in files:
                    candidate = Path(root) / filename
                    if candidate.suffix.lower() in SUPPORTED_EXTENSIONS:
                        yield candidate
        elif path.is_file():
            if path.suffix.lower() in SUPPORTED_EXTENSIONS:
                yield path
            else:
                logger.debug(f"Skipping unsupported file: {path}")
        else:
            logger.warning(f"Path not found: {path}")


def read_track(path: Path, tag_store: Optional[TagStore] = None) -> Optional[Track]:
    """
    Read tag metadata for one file.

    Args:
        path: Audio file
        tag_store: Used to detect an embedded cover (optional)

    Returns:
        Track, or None if mutagen cannot parse the file
    """
    try:
        audio = MutagenFile(path, easy=True)
    except (MutagenError, OSError) as e:
        logger.warning(f"Could not read {path.name}: {e}")
        return None
    if audio is None:
        logger.debug(f"Unrecognized audio file: {path.name}")
        return None

    tags = audio.tags
    track = Track(
        path=path,
        artist=_first(tags, "albumartist") or _first(tags, "artist"),
        album=_first(tags, "album"),
        title=_first(tags, "title"),
        track_number=_parse_track_number(_first(tags, "tracknumber")),
        read_only=not os.access(path, os.W_OK),
    )
    if tag_store is not None and tag_store.has_cover(track):
        track = Track(
            path=track.path,
            artist=track.artist,
            album=track.album,
            title=track.title,
            track_number=track.track_number,
            has_cover=True,
            read_only=track.read_only,
        )
    return track


def scan_tracks(paths: Iterable, tag_store: Optional[TagStore] = None) -> List[Track]:
    """
    Collect Tracks for every supported file under paths.

    Ordered by folder, album and track number so tracks of the same album
    are adjacent, which is what lets the last-cover cache hit.
    """
    tracks = []
    seen = set()
    for path in iter_audio_files(paths):
        resolved = path.resolve()
        if resolved in seen:
            continue
        seen.add(resolved)
        track = read_track(path, tag_store)
        if track is not None:
            tracks.append(track)

    tracks.sort(key=lambda t: (str(t.folder), t.album.lower(), t.track_number, t.name.lower()))
    logger.info(f"Found {len(tracks)} audio file(s)")
    return tracks
