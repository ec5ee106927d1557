"""Corpus source management for spellsift.

This module provides the PluginManager class that handles source discovery
via Python entry points, registration with pluggy, and merging of the
records and catalogs every source provides.
"""

from __future__ import annotations

from importlib.metadata import entry_points
from typing import Iterable

import pluggy

from spellsift.models.catalog import DEFAULT_CATALOGS, Catalogs, catalogs_from_dict
from spellsift.models.spell import CorpusError, SpellRecord
from spellsift.plugin import SpellSourceHookSpec, SpellSourcePlugin
from spellsift.utils.log import get_logger

logger = get_logger("plugins")

# Entry point group name for spellsift corpus sources
ENTRY_POINT_GROUP = "spellsift.sources"


class PluginError(Exception):
    """Base exception for plugin-related errors."""


class NoPluginFoundError(PluginError):
    """Raised when a named source is not registered, or none are."""


class PluginManager:
    """Manages corpus source discovery and registration.

    Example:
        manager = PluginManager()
        manager.discover()                        # entry point sources
        manager.register(JsonSpellSource(path))   # an explicit file
        spells = manager.load_corpus()
        catalogs = manager.load_catalogs()
    """

    def __init__(self) -> None:
        """Initialize the plugin manager."""
        self.pm = pluggy.PluginManager("spellsift")
        self.pm.add_hookspecs(SpellSourceHookSpec)
        self._plugins: dict[str, SpellSourcePlugin] = {}

    def register(self, plugin: SpellSourcePlugin) -> None:
        """Register a source instance.

        Args:
            plugin: The source instance to register.

        Raises:
            PluginError: If a source with the same name is registered.
        """
        name = plugin.name
        if name in self._plugins:
            raise PluginError(f"Source '{name}' is already registered")
        self._plugins[name] = plugin
        self.pm.register(plugin, name=name)
        logger.debug("Registered source %s", name)

    def unregister(self, name: str) -> None:
        """Unregister a source by name.

        Args:
            name: The name of the source to unregister.
        """
        if name in self._plugins:
            plugin = self._plugins.pop(name)
            self.pm.unregister(plugin)

    def discover(self) -> list[str]:
        """Discover and register sources from entry points.

        Scans the 'spellsift.sources' entry point group. Sources that fail
        to load are logged and skipped.

        Returns:
            List of discovered source names.
        """
        discovered = []
        for ep in entry_points(group=ENTRY_POINT_GROUP):
            try:
                plugin_class = ep.load()
                plugin_instance = plugin_class()
                self.register(plugin_instance)
                discovered.append(plugin_instance.name)
            except Exception as e:
                logger.warning("Skipping source entry point %s: %s", ep.name, e)
        return discovered

    def list_plugins(self) -> list[str]:
        """List all registered source names in registration order."""
        return list(self._plugins.keys())

    def get_plugin(self, name: str) -> SpellSourcePlugin | None:
        """Get a source by name, or None if not found."""
        return self._plugins.get(name)

    def get_plugin_info(self, name: str) -> dict[str, str] | None:
        """Get information about a source.

        Args:
            name: The name of the source.

        Returns:
            Dictionary with source info (name, version, description),
            or None if not found.
        """
        plugin = self._plugins.get(name)
        if plugin is None:
            return None

        return {
            "name": plugin.name,
            "version": getattr(plugin, "version", "0.0.0"),
            "description": getattr(plugin, "description", ""),
        }

    def _selected(self, names: Iterable[str] | None) -> list[SpellSourcePlugin]:
        if not self._plugins:
            raise NoPluginFoundError("No spell sources registered")
        if names is None:
            return list(self._plugins.values())
        selected = []
        for name in names:
            if name not in self._plugins:
                raise NoPluginFoundError(f"Unknown spell source '{name}'")
            selected.append(self._plugins[name])
        return selected

    def load_corpus(self, names: Iterable[str] | None = None) -> list[SpellRecord]:
        """Merge the records of the registered sources.

        Sources are read in registration order and the first record with a
        given id wins. Entries that fail validation are skipped with a
        warning.

        Args:
            names: Restrict to these sources; None reads all of them.

        Returns:
            The merged corpus.

        Raises:
            NoPluginFoundError: If no source is registered or a name is
                unknown.
        """
        corpus: list[SpellRecord] = []
        seen: set[str] = set()
        for plugin in self._selected(names):
            entries = plugin.get_spells() or []
            kept = 0
            for entry in entries:
                try:
                    record = entry if isinstance(entry, SpellRecord) else SpellRecord.from_dict(entry)
                except CorpusError as e:
                    logger.warning("Source %s: %s", plugin.name, e)
                    continue
                if record.id in seen:
                    logger.debug("Source %s: duplicate id %s ignored", plugin.name, record.id)
                    continue
                seen.add(record.id)
                corpus.append(record)
                kept += 1
            logger.debug("Source %s provided %d spells", plugin.name, kept)
        return corpus

    def load_catalogs(self, base: Catalogs = DEFAULT_CATALOGS) -> Catalogs:
        """Overlay the catalogs of every registered source onto ``base``.

        Later sources override earlier ones list by list.
        """
        catalogs = base
        for plugin in self._plugins.values():
            catalogs = catalogs_from_dict(plugin.get_catalogs(), catalogs)
        return catalogs
