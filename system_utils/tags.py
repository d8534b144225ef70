"""
Embedded artwork read/write using mutagen.

Supported containers:
  - .mp3             -> ID3 APIC frame (front cover)
  - .flac            -> FLAC picture block
  - .m4a/.mp4        -> MP4 'covr' atom
  - .ogg/.oga/.opus  -> Vorbis comment METADATA_BLOCK_PICTURE
"""
from __future__ import annotations

import base64
import os
from pathlib import Path
from typing import Optional

from mutagen import MutagenError
from mutagen.flac import FLAC, Picture
from mutagen.id3 import APIC, ID3, ID3NoHeaderError
from mutagen.mp4 import MP4, MP4Cover
from mutagen.oggopus import OggOpus
from mutagen.oggvorbis import OggVorbis

from cover_search.errors import NotWritable
from cover_search.interfaces import TagStore
from cover_search.models import CandidateImage, Track
from logging_config import get_logger

from .image import decode_image, encode_image

logger = get_logger(__name__)

SUPPORTED_EXTENSIONS = {".mp3", ".flac", ".m4a", ".mp4", ".ogg", ".oga", ".opus"}

FRONT_COVER = 3
VORBIS_PICTURE_KEY = "metadata_block_picture"
EMBEDDED_SOURCE = "embedded"


def _extension(path) -> str:
    return Path(path).suffix.lower()


def _read_cover_bytes(path: Path) -> Optional[bytes]:
    """Raw bytes of the first (front cover if present) embedded picture."""
    ext = _extension(path)

    if ext == ".mp3":
        try:
            tags = ID3(path)
        except ID3NoHeaderError:
            return None
        frames = tags.getall("APIC")
        if not frames:
            return None
        front = [f for f in frames if f.type == FRONT_COVER]
        return (front or frames)[0].data

    if ext == ".flac":
        pictures = FLAC(path).pictures
        if not pictures:
            return None
        front = [p for p in pictures if p.type == FRONT_COVER]
        return (front or pictures)[0].data

    if ext in (".m4a", ".mp4"):
        covers = (MP4(path).tags or {}).get("covr")
        return bytes(covers[0]) if covers else None

    if ext in (".ogg", ".oga", ".opus"):
        audio = OggOpus(path) if ext == ".opus" else OggVorbis(path)
        for encoded in audio.get(VORBIS_PICTURE_KEY, []):
            try:
                return Picture(base64.b64decode(encoded)).data
            except (ValueError, MutagenError):
                continue
        return None

    return None


def _write_mp3(path: Path, data: bytes, mime: str) -> None:
    try:
        tags = ID3(path)
    except ID3NoHeaderError:
        tags = ID3()
    tags.delall("APIC")
    tags.add(APIC(encoding=3, mime=mime, type=FRONT_COVER, desc="Cover", data=data))
    tags.save(path)


def _make_picture(data: bytes, mime: str, candidate: CandidateImage) -> Picture:
    picture = Picture()
    picture.type = FRONT_COVER
    picture.mime = mime
    picture.desc = "Cover"
    picture.width = candidate.width
    picture.height = candidate.height
    picture.depth = 24
    picture.data = data
    return picture


def _write_flac(path: Path, data: bytes, mime: str, candidate: CandidateImage) -> None:
    audio = FLAC(path)
    audio.clear_pictures()
    audio.add_picture(_make_picture(data, mime, candidate))
    audio.save()


def _write_mp4(path: Path, data: bytes, mime: str) -> None:
    audio = MP4(path)
    img_format = MP4Cover.FORMAT_PNG if mime == "image/png" else MP4Cover.FORMAT_JPEG
    audio["covr"] = [MP4Cover(data, imageformat=img_format)]
    audio.save()


def _write_ogg(path: Path, data: bytes, mime: str, candidate: CandidateImage) -> None:
    audio = OggOpus(path) if _extension(path) == ".opus" else OggVorbis(path)
    picture = _make_picture(data, mime, candidate)
    audio[VORBIS_PICTURE_KEY] = [base64.b64encode(picture.write()).decode("ascii")]
    audio.save()


class MutagenTagStore(TagStore):
    """TagStore backed by mutagen, covers are embedded as JPEG."""

    def has_cover(self, track: Track) -> bool:
        try:
            return _read_cover_bytes(Path(track.path)) is not None
        except (MutagenError, OSError) as e:
            logger.debug(f"Could not read tags of {track.name}: {e}")
            return False

    def read_cover(self, track: Track) -> Optional[CandidateImage]:
        try:
            data = _read_cover_bytes(Path(track.path))
        except (MutagenError, OSError) as e:
            logger.warning(f"Could not read cover of {track.name}: {e}")
            return None
        if data is None:
            return None
        return decode_image(data, source=EMBEDDED_SOURCE)

    def is_writable(self, track: Track) -> bool:
        path = Path(track.path)
        return path.is_file() and os.access(path, os.W_OK)

    def write_cover(self, track: Track, image: CandidateImage) -> None:
        path = Path(track.path)
        ext = _extension(path)
        if ext not in SUPPORTED_EXTENSIONS:
            raise NotWritable(path, f"unsupported format '{ext}'")
        if not self.is_writable(track):
            raise NotWritable(path)

        data, mime = encode_image(image)
        try:
            if ext == ".mp3":
                _write_mp3(path, data, mime)
            elif ext == ".flac":
                _write_flac(path, data, mime, image)
            elif ext in (".m4a", ".mp4"):
                _write_mp4(path, data, mime)
            else:
                _write_ogg(path, data, mime, image)
        except (MutagenError, OSError) as e:
            raise NotWritable(path, str(e)) from e

        logger.debug(f"Embedded {image.width}x{image.height} cover into {path.name} ({len(data)} bytes)")
