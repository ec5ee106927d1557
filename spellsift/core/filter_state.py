"""Filter State store with a short-lived snapshot cache.

A render pass may ask for the current filter values many times; the store
serves one snapshot for up to ``ttl`` seconds before rebuilding it. Any write
invalidates the snapshot.
"""

from __future__ import annotations

import time
from typing import Callable, Optional

from spellsift.models.filter_state import FilterState
from spellsift.utils.log import get_logger

logger = get_logger("state")

DEFAULT_TTL = 1.0

StateReader = Callable[[], FilterState]


class FilterStateStore:
    """Holds the current FilterState and caches snapshots.

    Example:
        store = FilterStateStore()
        store.update(level="3")
        store.merge_partial({"damage_type": "fire"})
        snapshot = store.get()
    """

    def __init__(
        self,
        reader: Optional[StateReader] = None,
        ttl: float = DEFAULT_TTL,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the store.

        Args:
            reader: Optional callable that rebuilds the state from the UI
                controls. When omitted the store owns the values itself.
            ttl: Snapshot lifetime in seconds.
            clock: Monotonic time source, injectable for tests.
        """
        self._reader = reader
        self._current = FilterState()
        self.ttl = ttl
        self._clock = clock
        self._snapshot: Optional[FilterState] = None
        self._snapshot_at = 0.0
        self.rebuilds = 0

    def get(self) -> FilterState:
        """Return the current snapshot, rebuilding it if stale."""
        now = self._clock()
        if self._snapshot is not None and now - self._snapshot_at < self.ttl:
            return self._snapshot
        self._snapshot = self._read()
        self._snapshot_at = now
        self.rebuilds += 1
        return self._snapshot

    def _read(self) -> FilterState:
        if self._reader is not None:
            self._current = self._reader()
        return self._current.model_copy()

    def invalidate(self) -> None:
        """Force the next ``get`` to rebuild the snapshot."""
        self._snapshot = None

    def reset(self) -> None:
        """Clear every filter back to empty/false."""
        self._current = FilterState()
        self.invalidate()

    def set(self, state: FilterState) -> None:
        """Replace the whole state."""
        self._current = state.model_copy()
        self.invalidate()

    def merge_partial(self, patch: dict) -> FilterState:
        """Apply an executor-derived patch.

        Args:
            patch: FilterState attribute names to values.

        Returns:
            The new state.

        Raises:
            pydantic.ValidationError: If the patch yields an invalid state;
                the stored state is left unchanged.
            KeyError: If the patch names an unknown attribute.
        """
        self._current = self._current.merged(patch)
        self.invalidate()
        logger.debug("Merged filter patch %s", patch)
        return self._current

    def update(self, **values) -> FilterState:
        """Set individual controls, as the filter UI does."""
        return self.merge_partial(values)
