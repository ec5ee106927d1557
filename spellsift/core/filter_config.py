"""Persisted, versioned filter configuration.

The configuration is stored under one settings key as::

    {"version": "0.10.0", "filters": [{"id": "name", "type": "search", ...}, ...]}

Loading repairs whatever it finds: legacy shapes and unreadable data revert to
the defaults, older versions are migrated, and ``ensure_integrity`` restores
missing defaults and canonical ordering. Nothing here raises to the caller;
problems are logged and recorded in ``FilterConfigStore.issues``.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Optional, Sequence

from pydantic import ValidationError

from spellsift.core.settings import FILTER_CONFIGURATION, Settings, SettingsError
from spellsift.models.filter_def import (
    DEFAULT_FILTER_CONFIG,
    DEFAULT_FILTER_CONFIG_VERSION,
    FIXED_FILTERS,
    LEADING_FIXED_FILTERS,
    TRAILING_FIXED_FILTERS,
    FilterDescriptor,
)
from spellsift.utils.log import get_logger

logger = get_logger("filter_config")

LEADING_ORDER = 10
SORTABLE_START = 20
TRAILING_START = 1000
ORDER_STEP = 10


class ConfigIssue(str, Enum):
    """Problems found while loading the stored configuration."""

    CORRUPT = "corrupt"
    LEGACY_SHAPE = "legacyShape"


def parse_version(version: Any) -> tuple[int, ...]:
    """Parse a dotted version into a comparable tuple.

    Non-numeric components count as 0; an unusable value parses as ``(0,)``.
    """
    if not isinstance(version, str) or not version.strip():
        return (0,)
    parts = []
    for piece in version.strip().split("."):
        match = re.match(r"\d+", piece)
        parts.append(int(match.group(0)) if match else 0)
    return tuple(parts)


def is_newer_version(current: str, stored: Any) -> bool:
    """True when ``current`` is strictly newer than ``stored``."""
    a, b = parse_version(current), parse_version(stored)
    width = max(len(a), len(b))
    return a + (0,) * (width - len(a)) > b + (0,) * (width - len(b))


def assign_orders(descriptors: Sequence[FilterDescriptor]) -> list[FilterDescriptor]:
    """Lay descriptors out in canonical order with gap-preserving orders.

    ``name`` leads at 10, sortable descriptors follow at 20, 30, ... in list
    order, then the trailing fixed descriptors and finally non-sortable
    unknown descriptors at 1000 + 10k. Returns copies.

    Args:
        descriptors: Descriptors in the desired relative order.

    Returns:
        New list with ``order`` rewritten.
    """
    leading = [d for d in descriptors if d.id in LEADING_FIXED_FILTERS]
    trailing = sorted(
        (d for d in descriptors if d.id in TRAILING_FIXED_FILTERS),
        key=lambda d: TRAILING_FIXED_FILTERS.index(d.id),
    )
    sortable = [d for d in descriptors if d.id not in FIXED_FILTERS and d.sortable]
    tail = [d for d in descriptors if d.id not in FIXED_FILTERS and not d.sortable]

    result = []
    for i, d in enumerate(leading):
        result.append(d.model_copy(update={"order": LEADING_ORDER + i}))
    for i, d in enumerate(sortable):
        result.append(d.model_copy(update={"order": SORTABLE_START + ORDER_STEP * i}))
    for i, d in enumerate(trailing + tail):
        result.append(d.model_copy(update={"order": TRAILING_START + ORDER_STEP * i}))
    return result


class FilterConfigStore:
    """Loads, repairs and saves the filter descriptor list.

    Example:
        store = FilterConfigStore(MemorySettings())
        filters = store.load()
        store.move("range", 0)        # reorder within the sortable block
        store.set_enabled("school", False)
    """

    def __init__(
        self,
        settings: Settings,
        key: str = FILTER_CONFIGURATION,
        defaults: Sequence[FilterDescriptor] = DEFAULT_FILTER_CONFIG,
        version: str = DEFAULT_FILTER_CONFIG_VERSION,
    ):
        self.settings = settings
        self.key = key
        self.defaults = tuple(defaults)
        self.version = version
        self.issues: list[ConfigIssue] = []
        self._defaults_by_id = {d.id: d for d in self.defaults}

    def default_filters(self) -> list[FilterDescriptor]:
        return [d.model_copy(deep=True) for d in self.defaults]

    def load(self) -> list[FilterDescriptor]:
        """Read, migrate and repair the stored configuration.

        Returns:
            Descriptors in canonical order. Never raises.
        """
        self.issues = []
        try:
            stored = self.settings.get(self.key)
        except SettingsError as e:
            self._record(ConfigIssue.CORRUPT, f"Cannot read filter configuration: {e}")
            return self.ensure_integrity(self.default_filters())

        if stored is None:
            return self.ensure_integrity(self.default_filters())

        if isinstance(stored, list) or (isinstance(stored, dict) and "version" not in stored):
            self._record(ConfigIssue.LEGACY_SHAPE, "Filter configuration has a legacy shape; restoring defaults")
            descriptors = self.ensure_integrity(self.default_filters())
            self._persist(descriptors)
            return descriptors

        if not isinstance(stored, dict) or not isinstance(stored.get("filters"), list):
            self._record(ConfigIssue.CORRUPT, "Filter configuration is unreadable; restoring defaults")
            descriptors = self.ensure_integrity(self.default_filters())
            self._persist(descriptors)
            return descriptors

        descriptors = self._parse_filters(stored["filters"])
        needs_save = False
        if is_newer_version(self.version, stored.get("version")):
            logger.info(
                "Migrating filter configuration from %s to %s",
                stored.get("version"),
                self.version,
            )
            descriptors = self.migrate(descriptors)
            needs_save = True

        descriptors = self.ensure_integrity(descriptors)
        if needs_save:
            self._persist(descriptors)
        return descriptors

    def migrate(self, descriptors: Sequence[FilterDescriptor]) -> list[FilterDescriptor]:
        """Bring descriptors from an older version up to date.

        Built-in descriptors take their definition (type, label, aliases)
        from the current defaults but keep the user's ``enabled`` flag and
        ``order``. Unknown descriptors pass through untouched.

        Args:
            descriptors: Parsed stored descriptors.

        Returns:
            Migrated descriptors, same relative order.
        """
        migrated = []
        for d in descriptors:
            default = self._defaults_by_id.get(d.id)
            if default is None:
                migrated.append(d)
                continue
            migrated.append(
                default.model_copy(deep=True, update={"enabled": d.enabled, "order": d.order})
            )
        return migrated

    def ensure_integrity(self, descriptors: Sequence[FilterDescriptor]) -> list[FilterDescriptor]:
        """Repair a descriptor list. Idempotent.

        Drops duplicate ids (first wins), inserts missing defaults at their
        default order, normalizes ``sortable`` by id and rewrites orders with
        ``assign_orders``. Unknown ids are kept non-sortable at the tail in
        their relative order.

        Args:
            descriptors: Descriptors to repair.

        Returns:
            New, canonically ordered list.
        """
        seen: set[str] = set()
        known: list[FilterDescriptor] = []
        unknown: list[FilterDescriptor] = []
        for d in descriptors:
            if d.id in seen:
                logger.warning("Dropping duplicate filter %r", d.id)
                continue
            seen.add(d.id)
            default = self._defaults_by_id.get(d.id)
            if default is None:
                unknown.append(d.model_copy(update={"sortable": False}))
            else:
                known.append(d.model_copy(update={"sortable": default.sortable}))

        for default in self.defaults:
            if default.id not in seen:
                logger.info("Restoring missing filter %r", default.id)
                known.append(default.model_copy(deep=True))

        known.sort(key=lambda d: d.order)
        return assign_orders(known + unknown)

    def save(self, descriptors: Sequence[FilterDescriptor]) -> list[FilterDescriptor]:
        """Persist descriptors with canonical orders.

        The sortable block keeps the order of ``descriptors`` as given.

        Args:
            descriptors: Descriptors in display order.

        Returns:
            The descriptors as persisted.
        """
        ordered = assign_orders(descriptors)
        self._persist(ordered)
        return ordered

    def reset(self) -> list[FilterDescriptor]:
        """Replace the stored configuration with the defaults."""
        descriptors = self.ensure_integrity(self.default_filters())
        self._persist(descriptors)
        return descriptors

    def enabled_filters(self) -> list[FilterDescriptor]:
        return [d for d in self.load() if d.enabled]

    def get(self, filter_id: str) -> Optional[FilterDescriptor]:
        for d in self.load():
            if d.id == filter_id:
                return d
        return None

    def set_enabled(self, filter_id: str, enabled: bool) -> list[FilterDescriptor]:
        """Show or hide one filter control.

        Raises:
            KeyError: If no descriptor has ``filter_id``.
        """
        descriptors = self.load()
        if not any(d.id == filter_id for d in descriptors):
            raise KeyError(f"Unknown filter: {filter_id}")
        updated = [
            d.model_copy(update={"enabled": enabled}) if d.id == filter_id else d
            for d in descriptors
        ]
        return self.save(updated)

    def move(self, filter_id: str, new_index: int) -> list[FilterDescriptor]:
        """Move a sortable filter to ``new_index`` within the sortable block.

        Raises:
            KeyError: If ``filter_id`` is unknown.
            ValueError: If the filter is not sortable.
        """
        descriptors = self.load()
        target = next((d for d in descriptors if d.id == filter_id), None)
        if target is None:
            raise KeyError(f"Unknown filter: {filter_id}")
        if not target.sortable:
            raise ValueError(f"Filter {filter_id!r} cannot be reordered")

        block = [d for d in descriptors if d.sortable and d.id != filter_id]
        index = max(0, min(new_index, len(block)))
        block.insert(index, target)
        fixed = [d for d in descriptors if not d.sortable]
        return self.save(fixed[:1] + block + fixed[1:])

    def _parse_filters(self, entries: list) -> list[FilterDescriptor]:
        descriptors = []
        for entry in entries:
            if not isinstance(entry, dict) or not isinstance(entry.get("id"), str):
                self._record(ConfigIssue.CORRUPT, f"Dropping malformed filter entry {entry!r}")
                continue
            default = self._defaults_by_id.get(entry["id"])
            data = {**default.to_dict(), **entry} if default is not None else entry
            try:
                descriptors.append(FilterDescriptor.model_validate(data))
            except ValidationError as e:
                self._record(
                    ConfigIssue.CORRUPT,
                    f"Dropping invalid filter {entry['id']!r}: {e.error_count()} error(s)",
                )
        return descriptors

    def _persist(self, descriptors: Sequence[FilterDescriptor]) -> None:
        payload = {"version": self.version, "filters": [d.to_dict() for d in descriptors]}
        try:
            self.settings.set(self.key, payload)
        except SettingsError as e:
            logger.warning("Could not save filter configuration: %s", e)

    def _record(self, issue: ConfigIssue, message: str) -> None:
        self.issues.append(issue)
        logger.warning(message)
