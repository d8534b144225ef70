"""Tests for per-track cover resolution"""
from dataclasses import replace

from cover_search import CoverOutcome, CoverResolver, LastCoverCache, SearchMode

from conftest import FakeProvider, MemoryTagStore, ScriptedPicker, make_image, make_track


def make_resolver(providers, tag_store, config, observer=None, picker=None):
    return CoverResolver(providers, tag_store, config, LastCoverCache(), observer=observer, picker=picker)


async def test_saves_first_result(config, tag_store, observer):
    cover = make_image(600, 600, source="A")
    provider = FakeProvider("A", result=[cover, make_image(700, 700)])
    resolver = make_resolver([provider], tag_store, config, observer)
    track = make_track()

    outcome = await resolver.resolve(track)

    assert outcome is CoverOutcome.SAVED
    assert tag_store.read_cover(track) is cover
    assert observer.states()[track.name] == "cover saved"
    assert ("highlight", track, True) in observer.events
    assert observer.events[-1] == ("highlight", track, False)


async def test_resizes_before_writing(config, tag_store):
    provider = FakeProvider("A", result=[make_image(3000, 1500)])
    resolver = make_resolver([provider], tag_store, config)
    track = make_track()

    await resolver.resolve(track)

    written = tag_store.read_cover(track)
    assert (written.width, written.height) == (1000, 500)


async def test_same_album_reuses_cached_cover(config, tag_store):
    provider = FakeProvider("A", result=[make_image(500, 500)])
    resolver = make_resolver([provider], tag_store, config)
    first = make_track("/music/a/01.mp3")
    second = make_track("/music/a/02.mp3")

    assert await resolver.resolve(first) is CoverOutcome.SAVED
    assert await resolver.resolve(second) is CoverOutcome.SAVED

    assert provider.call_count == 1
    assert tag_store.read_cover(second) is tag_store.read_cover(first)


async def test_no_cover_is_cached_for_album(config, tag_store, observer):
    provider = FakeProvider("A", result=[])
    resolver = make_resolver([provider], tag_store, config, observer)
    first = make_track("/music/a/01.mp3")
    second = make_track("/music/a/02.mp3")

    assert await resolver.resolve(first) is CoverOutcome.NO_COVER
    assert await resolver.resolve(second) is CoverOutcome.NO_COVER

    assert provider.call_count == 1
    assert observer.states()[second.name] == "no fitting cover"
    assert resolver.cache.entry.image is None


async def test_other_album_searches_again(config, tag_store):
    provider = FakeProvider("A", result=[make_image(500, 500)])
    resolver = make_resolver([provider], tag_store, config)

    await resolver.resolve(make_track("/music/a/01.mp3", album="One"))
    await resolver.resolve(make_track("/music/a/02.mp3", album="Two"))

    assert provider.call_count == 2


async def test_skips_track_with_cover(config, observer):
    track = make_track(has_cover=True)
    store = MemoryTagStore({str(track.path): make_image(100, 100)})
    provider = FakeProvider("A", result=[make_image(500, 500)])
    resolver = make_resolver([provider], store, config, observer)

    assert await resolver.resolve(track) is CoverOutcome.SKIPPED
    assert provider.call_count == 0
    assert observer.states()[track.name] == "cover already exists"


async def test_skips_read_only_track(config, tag_store):
    provider = FakeProvider("A", result=[make_image(500, 500)])
    resolver = make_resolver([provider], tag_store, replace(config, overwrite_cover=True))

    assert await resolver.resolve(make_track(read_only=True)) is CoverOutcome.SKIPPED
    assert provider.call_count == 0


async def test_existing_higher_resolution_is_kept(config, observer):
    track = make_track(has_cover=True)
    existing = make_image(800, 800, source="embedded")
    store = MemoryTagStore({str(track.path): existing})
    provider = FakeProvider("A", result=[make_image(600, 600)])
    resolver = make_resolver([provider], store, replace(config, overwrite_cover=True), observer)

    assert await resolver.resolve(track) is CoverOutcome.EXISTING_HIGHER
    assert store.read_cover(track) is existing
    assert store.writes == []
    assert observer.states()[track.name] == "existing resolution is higher"


async def test_overwrites_with_larger_cover(config):
    track = make_track(has_cover=True)
    store = MemoryTagStore({str(track.path): make_image(300, 300)})
    bigger = make_image(900, 900)
    resolver = make_resolver([FakeProvider("A", result=[bigger])], store, replace(config, overwrite_cover=True))

    assert await resolver.resolve(track) is CoverOutcome.SAVED
    assert store.read_cover(track) is bigger


async def test_not_writable_is_reported(config, observer):
    track = make_track()
    store = MemoryTagStore(read_only=[track.path])
    resolver = make_resolver([FakeProvider("A", result=[make_image(500, 500)])], store, config, observer)

    assert await resolver.resolve(track) is CoverOutcome.NOT_WRITABLE
    assert observer.states()[track.name] == "file is write-protected"
    assert "saved" not in observer.names()


async def test_write_failure_is_reported(config):
    store = MemoryTagStore(fail_writes=True)
    resolver = make_resolver([FakeProvider("A", result=[make_image(500, 500)])], store, config)

    assert await resolver.resolve(make_track()) is CoverOutcome.NOT_WRITABLE


async def test_manual_mode_uses_picker(config, tag_store, observer):
    a = make_image(100, 100, source="A")
    b = make_image(200, 200, source="B")
    picker = ScriptedPicker(index=1)
    providers = [FakeProvider("A", priority=1, result=[a]), FakeProvider("B", priority=2, result=[b])]
    resolver = make_resolver(providers, tag_store, config, observer, picker=picker)
    track = make_track(artist="Pink Floyd", album="Animals")

    outcome = await resolver.resolve(track, SearchMode.MANUAL_SELECTION)

    assert outcome is CoverOutcome.SAVED
    assert tag_store.read_cover(track) is b
    shown, label = picker.shown[0]
    assert shown == [a, b]
    assert label == "Pink Floyd - Animals"
    assert "attention" in observer.names()


async def test_manual_mode_declined(config, tag_store):
    picker = ScriptedPicker(index=None)
    resolver = make_resolver([FakeProvider("A", result=[make_image(100, 100)])], tag_store, config, picker=picker)

    assert await resolver.resolve(make_track(), SearchMode.MANUAL_SELECTION) is CoverOutcome.NO_COVER
    assert tag_store.writes == []


async def test_manual_mode_without_picker_takes_first(config, tag_store):
    first = make_image(100, 100, source="A")
    providers = [FakeProvider("A", priority=1, result=[first]), FakeProvider("B", priority=2, result=[make_image(5, 5)])]
    resolver = make_resolver(providers, tag_store, config)
    track = make_track()

    await resolver.resolve(track, SearchMode.MANUAL_SELECTION)

    assert tag_store.read_cover(track) is first
    assert all(p.call_count == 1 for p in providers)


async def test_collect_then_resolve_uses_stash(config, tag_store):
    provider = FakeProvider("A", result=[make_image(400, 400)])
    picker = ScriptedPicker(index=0)
    resolver = make_resolver([provider], tag_store, config, picker=picker)
    track = make_track()

    assert await resolver.collect(track) is CoverOutcome.COLLECTED
    assert tag_store.writes == []

    assert await resolver.resolve(track, SearchMode.MANUAL_SELECTION) is CoverOutcome.SAVED
    assert provider.call_count == 1


async def test_collect_skips_track_with_cover(config):
    track = make_track(has_cover=True)
    provider = FakeProvider("A", result=[make_image(1, 1)])
    resolver = make_resolver([provider], MemoryTagStore(), config)

    assert await resolver.collect(track) is CoverOutcome.SKIPPED
    assert provider.call_count == 0
