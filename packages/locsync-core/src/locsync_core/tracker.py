"""Per-run status tracking for (branch, file, version, locale) targets."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType

from locsync_schemas.files import FileKey, TargetFile
from locsync_schemas.primitives import TrackerState


class FileStatusTracker:
    """Four disjoint collections of targets keyed by ``FileKey``.

    A key lives in exactly one of ``completed``, ``in_progress``, ``failed``
    or ``skipped``. Every transition goes through :meth:`mark` or
    :meth:`move`, which remove the key from its previous collection.
    """

    def __init__(self) -> None:
        """Initialize an empty tracker."""
        self._collections: dict[TrackerState, dict[FileKey, TargetFile]] = {
            state: {} for state in TrackerState
        }
        self._states: dict[FileKey, TrackerState] = {}

    def mark(self, target: TargetFile, state: TrackerState) -> None:
        """Place a target in a collection, removing it from any other.

        Args:
            target: Target to track.
            state: Collection the target now belongs to.
        """
        key = target.key
        previous = self._states.get(key)
        if previous is not None:
            del self._collections[previous][key]
        self._collections[state][key] = target
        self._states[key] = state

    def mark_all(self, targets: Iterable[TargetFile], state: TrackerState) -> None:
        """Place several targets in one collection."""
        for target in targets:
            self.mark(target, state)

    def move(self, key: FileKey, state: TrackerState) -> None:
        """Move an already tracked key to another collection.

        Raises:
            KeyError: If the key is not tracked.
        """
        previous = self._states[key]
        if previous == state:
            return
        target = self._collections[previous].pop(key)
        self._collections[state][key] = target
        self._states[key] = state

    def state_of(self, key: FileKey) -> TrackerState | None:
        """Return the collection a key belongs to, if tracked."""
        return self._states.get(key)

    def get(self, key: FileKey) -> TargetFile | None:
        """Return the tracked target for a key, if any."""
        state = self._states.get(key)
        if state is None:
            return None
        return self._collections[state][key]

    def collection(self, state: TrackerState) -> Mapping[FileKey, TargetFile]:
        """Return a read-only view of one collection."""
        return MappingProxyType(self._collections[state])

    @property
    def completed(self) -> Mapping[FileKey, TargetFile]:
        """Targets whose translation is ready."""
        return self.collection(TrackerState.COMPLETED)

    @property
    def in_progress(self) -> Mapping[FileKey, TargetFile]:
        """Targets still waiting on a remote job."""
        return self.collection(TrackerState.IN_PROGRESS)

    @property
    def failed(self) -> Mapping[FileKey, TargetFile]:
        """Targets whose remote job failed."""
        return self.collection(TrackerState.FAILED)

    @property
    def skipped(self) -> Mapping[FileKey, TargetFile]:
        """Targets excluded from this run."""
        return self.collection(TrackerState.SKIPPED)

    def counts(self) -> dict[TrackerState, int]:
        """Return the size of every collection."""
        return {state: len(items) for state, items in self._collections.items()}

    def __len__(self) -> int:
        return len(self._states)

    def __contains__(self, key: object) -> bool:
        return key in self._states
