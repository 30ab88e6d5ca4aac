import gc

from sandbox_harness.memory import MemoryTracker


class Thing:
    pass


def test_track_and_release():
    tracker = MemoryTracker()
    thing = Thing()

    assert tracker.track(thing, "a thing")
    assert len(tracker) == 1
    assert tracker.get_objects()[0].description == "a thing"
    assert tracker.live_objects() == [thing]

    del thing
    gc.collect()

    assert tracker.live_objects() == []
    assert not tracker.get_objects()[0].alive


def test_default_description_is_type_name():
    tracker = MemoryTracker()
    thing = Thing()
    tracker.track(thing)

    assert tracker.get_objects()[0].description == "Thing"


def test_untrackable_objects_are_skipped():
    tracker = MemoryTracker()

    assert not tracker.track({"plain": "dict"}, "dict")
    assert not tracker.track(42)
    assert len(tracker) == 0


def test_clear():
    tracker = MemoryTracker()
    thing = Thing()
    tracker.track(thing)
    tracker.clear()

    assert tracker.get_objects() == []
