"""Configuration loading and parsing for spellsift.

This module provides the ConfigLoader class for reading ``spellsift.toml``
files and the Config dataclass holding search, display and logging options.
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import tomli

from spellsift.core.display import DisplayFlags
from spellsift.core.recent import DEFAULT_LIMIT
from spellsift.core.settings import DEFAULT_PREFIX, validate_prefix
from spellsift.core.suggest import ADVANCED_DEBOUNCE, FUZZY_LIMIT, STANDARD_DEBOUNCE

CONFIG_FILENAME = "spellsift.toml"


class ConfigError(Exception):
    """Exception raised for configuration parsing errors.

    Attributes:
        message: Error description
        line: Line number where error occurred (if available)
        path: Path to the config file (if available)
    """

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        path: Optional[Path] = None
    ):
        self.line = line
        self.path = path

        parts = []
        if path:
            parts.append(f"Error in {path}")
        if line is not None:
            parts.append(f"at line {line}")
        if parts:
            full_message = f"{' '.join(parts)}: {message}"
        else:
            full_message = message

        super().__init__(full_message)


def _number(data: dict, key: str, default, minimum=0):
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"'{key}' must be a number, got {value!r}")
    if value < minimum:
        raise ConfigError(f"'{key}' must be at least {minimum}, got {value!r}")
    return value


@dataclass
class SearchConfig:
    """Search box settings."""

    prefix: str = DEFAULT_PREFIX
    recent_limit: int = DEFAULT_LIMIT
    standard_debounce_ms: int = int(STANDARD_DEBOUNCE * 1000)
    advanced_debounce_ms: int = int(ADVANCED_DEBOUNCE * 1000)
    fuzzy_limit: int = FUZZY_LIMIT

    @classmethod
    def from_dict(cls, data: dict) -> "SearchConfig":
        """Create SearchConfig from a dictionary.

        An unusable prefix falls back to the default with a warning rather
        than failing the whole file.
        """
        defaults = cls()
        return cls(
            prefix=validate_prefix(data.get("prefix", DEFAULT_PREFIX)),
            recent_limit=int(_number(data, "recent_limit", defaults.recent_limit, minimum=1)),
            standard_debounce_ms=int(_number(data, "standard_debounce_ms", defaults.standard_debounce_ms)),
            advanced_debounce_ms=int(_number(data, "advanced_debounce_ms", defaults.advanced_debounce_ms)),
            fuzzy_limit=int(_number(data, "fuzzy_limit", defaults.fuzzy_limit, minimum=1)),
        )


@dataclass
class DisplayConfig:
    """Row metadata settings.

    Every element of DisplayFlags can be switched off by name, e.g.
    ``damage_types = false``.
    """

    metric: bool = False
    flags: DisplayFlags = DisplayFlags.DEFAULT

    @classmethod
    def from_dict(cls, data: dict) -> "DisplayConfig":
        """Create DisplayConfig from a dictionary."""
        flags = DisplayFlags.DEFAULT
        for name, member in DisplayFlags.elements().items():
            if name not in data:
                continue
            if not isinstance(data[name], bool):
                raise ConfigError(f"display.{name} must be true or false")
            if data[name]:
                flags |= member
            else:
                flags &= ~member
        return cls(metric=bool(data.get("metric", False)), flags=flags)


@dataclass
class LoggingConfig:
    """Logging settings."""

    level: str = "WARNING"

    @classmethod
    def from_dict(cls, data: dict) -> "LoggingConfig":
        """Create LoggingConfig from a dictionary."""
        return cls(level=str(data.get("level", "WARNING")).upper())


@dataclass
class Config:
    """Complete spellsift configuration.

    Attributes:
        search: Search box settings like prefix and debounce windows
        display: Row metadata visibility and metric display
        logging: Log level
    """

    search: SearchConfig = field(default_factory=SearchConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: dict) -> "Config":
        """Create Config from a dictionary.

        Args:
            data: Dictionary parsed from TOML file

        Returns:
            Config instance with values from dictionary

        Raises:
            ConfigError: If a value has the wrong type
        """
        return cls(
            search=SearchConfig.from_dict(data.get("search", {})),
            display=DisplayConfig.from_dict(data.get("display", {})),
            logging=LoggingConfig.from_dict(data.get("logging", {})),
        )


class ConfigLoader:
    """Loader for spellsift TOML configuration files.

    Example usage:
        loader = ConfigLoader()
        config = loader.load(Path("spellsift.toml"))

        # Or load defaults when no file exists
        config = loader.load(None)
    """

    def load(self, path: Optional[Path]) -> Config:
        """Load configuration from a TOML file.

        Args:
            path: Path to the TOML configuration file, or None to use defaults

        Returns:
            Config instance with values from file or defaults

        Raises:
            ConfigError: If the file exists but contains invalid TOML or values
            FileNotFoundError: If the path is specified but file doesn't exist
        """
        if path is None:
            return Config()

        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        return self._build(self._read(path), path)

    def _read(self, path: Path) -> dict:
        try:
            return tomli.loads(path.read_text(encoding="utf-8"))
        except tomli.TOMLDecodeError as e:
            line = self._extract_line_number(str(e))
            raise ConfigError(str(e), line=line, path=path) from e

    def _build(self, data: dict, path: Optional[Path] = None) -> Config:
        try:
            return Config.from_dict(data)
        except ConfigError as e:
            if path is None or e.path is not None:
                raise
            raise ConfigError(str(e), path=path) from e

    def _extract_line_number(self, error_message: str) -> Optional[int]:
        """Extract line number from tomli error message.

        Args:
            error_message: The error message from tomli

        Returns:
            Line number if found, None otherwise
        """
        match = re.search(r"(?:at )?line (\d+)", error_message, re.IGNORECASE)
        if match:
            return int(match.group(1))
        return None

    def discover_configs(self, start_path: Optional[Path] = None) -> list[Path]:
        """Discover configuration files in order of precedence.

        Precedence order (lowest to highest):
        1. User config: ~/.config/spellsift/config.toml
        2. Local (start_path): <start_path>/spellsift.toml

        Args:
            start_path: Directory for the local config. If None, uses the
                current working directory.

        Returns:
            List of existing config file paths in precedence order (lowest first).
        """
        start_path = Path.cwd() if start_path is None else Path(start_path).resolve()

        configs: list[Path] = []

        user_config = Path(os.path.expanduser("~")) / ".config" / "spellsift" / "config.toml"
        if user_config.exists():
            configs.append(user_config)

        local_config = start_path / CONFIG_FILENAME
        if local_config.exists():
            if local_config.resolve() not in [c.resolve() for c in configs]:
                configs.append(local_config)

        return configs

    def load_merged(self, start_path: Optional[Path] = None) -> Config:
        """Load and merge configuration from all discovered config files.

        Later (higher precedence) files override values from earlier files;
        unspecified values fall through to lower precedence files or defaults.

        Args:
            start_path: Directory for config discovery. If None, uses the
                current working directory.

        Returns:
            Config instance with merged values from all sources.

        Raises:
            ConfigError: If any config file contains invalid TOML.
        """
        merged_data: dict = {}
        for config_path in self.discover_configs(start_path):
            merged_data = self._deep_merge(merged_data, self._read(config_path))
        return self._build(merged_data)

    def _deep_merge(self, base: dict, override: dict) -> dict:
        """Deep merge two dictionaries.

        Values from override take precedence over base. Nested dictionaries
        are merged recursively. Lists and other values are replaced entirely.

        Args:
            base: Base dictionary (lower precedence)
            override: Override dictionary (higher precedence)

        Returns:
            New dictionary with merged values.
        """
        result = base.copy()

        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result
