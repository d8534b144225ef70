"""Tests for embedded artwork I/O and library scanning"""
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from mutagen.id3 import ID3, TALB

from cover_search import NotWritable, Track
from system_utils import library
from system_utils.tags import MutagenTagStore

from conftest import make_image


@pytest.fixture
def mp3(tmp_path):
    # ID3 tags can be written to any file, no audio frames needed
    path = tmp_path / "01 - Song.mp3"
    path.write_bytes(b"\x00" * 256)
    tags = ID3()
    tags.add(TALB(encoding=3, text="Album"))
    tags.save(path)
    return path


def test_mp3_without_cover(mp3):
    store = MutagenTagStore()
    track = Track(path=mp3)
    assert not store.has_cover(track)
    assert store.read_cover(track) is None
    assert store.is_writable(track)


def test_mp3_write_then_read(mp3):
    store = MutagenTagStore()
    track = Track(path=mp3)

    store.write_cover(track, make_image(300, 200))

    assert store.has_cover(track)
    cover = store.read_cover(track)
    assert (cover.width, cover.height) == (300, 200)
    assert cover.source == "embedded"
    frames = ID3(mp3).getall("APIC")
    assert len(frames) == 1 and frames[0].mime == "image/jpeg"
    # Other tags survive
    assert str(ID3(mp3)["TALB"]) == "Album"


def test_write_replaces_existing_cover(mp3):
    store = MutagenTagStore()
    track = Track(path=mp3)
    store.write_cover(track, make_image(100, 100))
    store.write_cover(track, make_image(400, 400))

    assert len(ID3(mp3).getall("APIC")) == 1
    assert store.read_cover(track).width == 400


def test_unsupported_format_not_writable(tmp_path):
    path = tmp_path / "track.wav"
    path.write_bytes(b"RIFF")
    with pytest.raises(NotWritable, match="unsupported format"):
        MutagenTagStore().write_cover(Track(path=path), make_image(10, 10))


def test_missing_file_not_writable(tmp_path):
    track = Track(path=tmp_path / "gone.mp3")
    store = MutagenTagStore()
    assert not store.is_writable(track)
    with pytest.raises(NotWritable):
        store.write_cover(track, make_image(10, 10))


def test_iter_audio_files_walks_directories(tmp_path):
    (tmp_path / "a").mkdir()
    (tmp_path / "a" / "1.mp3").write_bytes(b"")
    (tmp_path / "a" / "cover.jpg").write_bytes(b"")
    (tmp_path / "b.FLAC").write_bytes(b"")

    found = sorted(p.name for p in library.iter_audio_files([tmp_path, tmp_path / "missing.mp3"]))

    assert found == ["1.mp3", "b.FLAC"]


def test_scan_tracks_reads_tags_and_sorts(tmp_path, monkeypatch):
    album = tmp_path / "album"
    album.mkdir()
    for name in ("b.mp3", "a.mp3", "c.mp3"):
        (album / name).write_bytes(b"")

    tags = {
        "a.mp3": {"artist": ["Muse"], "album": ["Origin"], "title": ["Two"], "tracknumber": ["2/11"]},
        "b.mp3": {"artist": ["Muse"], "album": ["Origin"], "title": ["One"], "tracknumber": ["1"]},
        "c.mp3": None,
    }

    def fake_file(path, easy=False):
        data = tags[Path(path).name]
        if data is None:
            return None
        audio = MagicMock()
        audio.tags = data
        return audio

    monkeypatch.setattr(library, "MutagenFile", fake_file)
    store = MagicMock()
    store.has_cover.side_effect = lambda track: track.name == "a.mp3"

    tracks = library.scan_tracks([album, album / "a.mp3"], store)

    assert [t.name for t in tracks] == ["b.mp3", "a.mp3"]
    assert [t.track_number for t in tracks] == [1, 2]
    assert tracks[0].artist == "Muse" and tracks[0].album == "Origin"
    assert [t.has_cover for t in tracks] == [False, True]
    assert tracks[0].album_key == tracks[1].album_key
