"""Most-recently-used list of committed search queries."""

from __future__ import annotations

from typing import Optional

from spellsift.core.settings import RECENT_SEARCHES, MemorySettings, Settings, SettingsError
from spellsift.utils.log import get_logger

logger = get_logger("recent")

DEFAULT_LIMIT = 8


class RecentSearches:
    """Bounded MRU list of unique query strings, newest first.

    The list lives in the caller's settings store under ``recentSearches``
    so it follows the viewer between sessions.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        limit: int = DEFAULT_LIMIT,
        key: str = RECENT_SEARCHES,
    ):
        self.settings = settings if settings is not None else MemorySettings()
        self.limit = limit
        self.key = key

    def list(self) -> list[str]:
        """Current entries, most recent first."""
        try:
            stored = self.settings.get(self.key, [])
        except SettingsError as e:
            logger.warning("Cannot read recent searches: %s", e)
            return []
        if not isinstance(stored, list):
            return []
        entries: list[str] = []
        for item in stored:
            if isinstance(item, str) and item.strip() and item not in entries:
                entries.append(item)
        return entries[: self.limit]

    def add(self, query: str) -> list[str]:
        """Record a committed query.

        The query is trimmed; empty queries are ignored. An existing
        occurrence moves to the head.

        Args:
            query: Raw committed query.

        Returns:
            The updated list.
        """
        text = (query or "").strip()
        if not text:
            return self.list()
        entries = [q for q in self.list() if q != text]
        entries.insert(0, text)
        return self._store(entries[: self.limit])

    def remove(self, query: str) -> list[str]:
        """Delete every occurrence of ``query``."""
        text = (query or "").strip()
        return self._store([q for q in self.list() if q != text])

    def clear(self) -> None:
        self._store([])

    def _store(self, entries: list[str]) -> list[str]:
        try:
            self.settings.set(self.key, entries)
        except SettingsError as e:
            logger.warning("Cannot save recent searches: %s", e)
        return entries

    def __len__(self) -> int:
        return len(self.list())

    def __contains__(self, query: str) -> bool:
        return query in self.list()
