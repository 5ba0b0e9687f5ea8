"""Unit tests for FileStatusTracker."""

from __future__ import annotations

import pytest

from locsync_core.tracker import FileStatusTracker
from locsync_schemas.files import FileKey
from locsync_schemas.primitives import TrackerState
from tests.helpers.builders import make_target, make_unit


def _assert_disjoint(tracker: FileStatusTracker) -> None:
    seen: set[FileKey] = set()
    for state in TrackerState:
        keys = set(tracker.collection(state))
        assert not keys & seen
        seen |= keys
    assert len(seen) == len(tracker)


@pytest.mark.unit
def test_key_lives_in_exactly_one_collection() -> None:
    """Every transition removes the key from its previous collection."""
    unit = make_unit("home.json", "{}")
    target = make_target(unit, "es")
    tracker = FileStatusTracker()

    tracker.mark(target, TrackerState.IN_PROGRESS)
    _assert_disjoint(tracker)
    tracker.move(target.key, TrackerState.COMPLETED)
    _assert_disjoint(tracker)
    tracker.move(target.key, TrackerState.SKIPPED)
    _assert_disjoint(tracker)

    assert tracker.state_of(target.key) == TrackerState.SKIPPED
    assert target.key not in tracker.completed
    assert tracker.skipped[target.key] == target
    assert len(tracker) == 1


@pytest.mark.unit
def test_mark_all_and_counts() -> None:
    """Counts report the size of every collection."""
    unit = make_unit("home.json", "{}")
    tracker = FileStatusTracker()
    tracker.mark_all(
        [make_target(unit, locale) for locale in ("es", "fr", "de")],
        TrackerState.COMPLETED,
    )
    tracker.move(make_target(unit, "de").key, TrackerState.FAILED)

    counts = tracker.counts()

    assert counts[TrackerState.COMPLETED] == 2
    assert counts[TrackerState.FAILED] == 1
    assert counts[TrackerState.IN_PROGRESS] == 0
    _assert_disjoint(tracker)


@pytest.mark.unit
def test_move_unknown_key_raises() -> None:
    """Only tracked keys can be moved."""
    tracker = FileStatusTracker()
    key = FileKey("br-main", "file", "version", "es")

    with pytest.raises(KeyError):
        tracker.move(key, TrackerState.COMPLETED)
    assert key not in tracker
    assert tracker.get(key) is None


@pytest.mark.unit
def test_collections_are_read_only() -> None:
    """Collections cannot be mutated behind the tracker's back."""
    tracker = FileStatusTracker()

    with pytest.raises(TypeError):
        tracker.completed[FileKey("b", "f", "v", "es")] = None  # type: ignore[index]
