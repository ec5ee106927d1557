"""Tests for spellsift configuration loading."""

import pytest

from spellsift.core.config import (
    CONFIG_FILENAME,
    Config,
    ConfigError,
    ConfigLoader,
)
from spellsift.core.display import DisplayFlags


class TestConfigLoader:
    """Tests for ConfigLoader.load() method."""

    def test_load_basic_config(self, tmp_path):
        """Load a configuration file with every section."""
        config_file = tmp_path / "config.toml"
        config_file.write_text('''
[search]
prefix = "!"
recent_limit = 5
standard_debounce_ms = 500

[display]
metric = true
damage_types = false

[logging]
level = "debug"
''')

        config = ConfigLoader().load(config_file)

        assert config.search.prefix == "!"
        assert config.search.recent_limit == 5
        assert config.search.standard_debounce_ms == 500
        assert config.search.advanced_debounce_ms == 150
        assert config.display.metric is True
        assert DisplayFlags.DAMAGE_TYPES not in config.display.flags
        assert DisplayFlags.SCHOOL in config.display.flags
        assert config.logging.level == "DEBUG"

    def test_load_empty_config(self, tmp_path):
        """Load an empty config file returns defaults."""
        config_file = tmp_path / "config.toml"
        config_file.write_text('')

        config = ConfigLoader().load(config_file)

        assert config == Config()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ConfigLoader().load(tmp_path / "missing.toml")


class TestDefaultValues:
    """Tests for default configuration values."""

    def test_default_values(self):
        """Load with None returns all defaults."""
        config = ConfigLoader().load(None)

        assert config.search.prefix == "^"
        assert config.search.recent_limit == 8
        assert config.search.standard_debounce_ms == 800
        assert config.search.advanced_debounce_ms == 150
        assert config.search.fuzzy_limit == 5
        assert config.display.flags == DisplayFlags.DEFAULT
        assert config.display.metric is False
        assert config.logging.level == "WARNING"


class TestConfigErrors:
    """Tests for invalid configuration values."""

    def test_invalid_toml_reports_line(self, tmp_path):
        """Invalid TOML raises ConfigError with the line number."""
        config_file = tmp_path / "config.toml"
        config_file.write_text('[search]\nprefix = \n')

        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader().load(config_file)

        assert exc_info.value.line == 2
        assert exc_info.value.path == config_file
        assert str(config_file) in str(exc_info.value)

    def test_non_numeric_limit(self, tmp_path):
        config_file = tmp_path / "config.toml"
        config_file.write_text('[search]\nrecent_limit = "many"\n')

        with pytest.raises(ConfigError, match="recent_limit"):
            ConfigLoader().load(config_file)

    def test_zero_limit(self, tmp_path):
        config_file = tmp_path / "config.toml"
        config_file.write_text('[search]\nfuzzy_limit = 0\n')

        with pytest.raises(ConfigError, match="at least 1"):
            ConfigLoader().load(config_file)

    def test_non_boolean_display_flag(self, tmp_path):
        config_file = tmp_path / "config.toml"
        config_file.write_text('[display]\nschool = "no"\n')

        with pytest.raises(ConfigError, match="display.school"):
            ConfigLoader().load(config_file)

    def test_bad_prefix_falls_back(self, tmp_path):
        """An unusable prefix does not fail the file."""
        config_file = tmp_path / "config.toml"
        config_file.write_text('[search]\nprefix = "::"\n')

        assert ConfigLoader().load(config_file).search.prefix == "^"


class TestDiscovery:
    """Tests for discover_configs() and load_merged()."""

    def test_discover_no_configs(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path))

        assert ConfigLoader().discover_configs() == []

    def test_discover_precedence_order(self, tmp_path, monkeypatch):
        """User config comes before the local config."""
        user_dir = tmp_path / ".config" / "spellsift"
        user_dir.mkdir(parents=True)
        (user_dir / "config.toml").write_text('[search]\nprefix = "!"\n')
        local_dir = tmp_path / "project"
        local_dir.mkdir()
        (local_dir / CONFIG_FILENAME).write_text('[display]\nmetric = true\n')
        monkeypatch.setenv("HOME", str(tmp_path))

        configs = ConfigLoader().discover_configs(local_dir)

        assert [c.name for c in configs] == ["config.toml", CONFIG_FILENAME]

    def test_load_merged(self, tmp_path, monkeypatch):
        """Local values override user values; the rest fall through."""
        user_dir = tmp_path / ".config" / "spellsift"
        user_dir.mkdir(parents=True)
        (user_dir / "config.toml").write_text('[search]\nprefix = "!"\nrecent_limit = 3\n')
        local_dir = tmp_path / "project"
        local_dir.mkdir()
        (local_dir / CONFIG_FILENAME).write_text('[search]\nrecent_limit = 4\n')
        monkeypatch.setenv("HOME", str(tmp_path))

        config = ConfigLoader().load_merged(local_dir)

        assert config.search.prefix == "!"
        assert config.search.recent_limit == 4

    def test_load_merged_no_configs_returns_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path / "home"))

        assert ConfigLoader().load_merged() == Config()

    def test_deep_merge_replaces_lists(self):
        loader = ConfigLoader()
        merged = loader._deep_merge(
            {"search": {"prefix": "!", "x": [1]}, "a": 1},
            {"search": {"x": [2]}},
        )
        assert merged == {"search": {"prefix": "!", "x": [2]}, "a": 1}
