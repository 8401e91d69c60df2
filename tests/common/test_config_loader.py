"""Tests for ConfigLoader and path variable expansion."""

from pathlib import Path

import pytest
from pydantic import BaseModel, ConfigDict, Field

from gphotos_migrate.common import ConfigLoader, expand_path_variables


class _Section(BaseModel):
    model_config = ConfigDict(extra='forbid')

    name: str = "default"
    count: int = 1
    enabled: bool = False
    use_cache: bool = False
    ratio: float = 0.5
    items: list = Field(default_factory=list)


class _AppConfig(BaseModel):
    model_config = ConfigDict(extra='forbid')

    main: _Section = Field(default_factory=_Section)


@pytest.fixture
def loader(tmp_path, monkeypatch):
    """Loader isolated from real system/user config and cwd defaults."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(ConfigLoader, "_load_system_config", lambda self: None)
    monkeypatch.setattr(ConfigLoader, "_load_user_config", lambda self: None)
    return ConfigLoader(app_name="test-app", config_class=_AppConfig)


class TestConfigLoader:
    """Tests for ConfigLoader."""

    def test_model_defaults_without_files(self, loader):
        """Test that missing files fall back to model defaults."""
        config = loader.load()
        assert config.main.name == "default"
        assert config.main.count == 1

    def test_explicit_defaults_file(self, loader, tmp_path):
        """Test loading an explicit defaults.toml."""
        path = tmp_path / "custom.toml"
        path.write_text('[main]\nname = "from-file"\ncount = 7\n', encoding="utf-8")

        config = loader.load(defaults_path=path)
        assert config.main.name == "from-file"
        assert config.main.count == 7

    def test_cwd_defaults_file(self, loader, tmp_path):
        """Test that ./config/defaults.toml is found."""
        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "defaults.toml").write_text('[main]\nname = "cwd"\n', encoding="utf-8")

        assert loader.load().main.name == "cwd"

    def test_user_config_overrides_defaults(self, tmp_path, monkeypatch):
        """Test that the user config wins over defaults."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(ConfigLoader, "_load_system_config", lambda self: None)
        monkeypatch.setattr(ConfigLoader, "_load_user_config", lambda self: {"main": {"count": 42}})
        defaults = tmp_path / "defaults.toml"
        defaults.write_text('[main]\nname = "base"\ncount = 1\n', encoding="utf-8")

        config = ConfigLoader("test-app", _AppConfig).load(defaults_path=defaults)
        assert config.main.name == "base"
        assert config.main.count == 42

    def test_env_overrides(self, loader, monkeypatch):
        """Test that environment variables override file values."""
        monkeypatch.setenv("TEST_APP_MAIN_NAME", "env")
        monkeypatch.setenv("TEST_APP_MAIN_COUNT", "5")
        monkeypatch.setenv("TEST_APP_MAIN_ENABLED", "yes")
        monkeypatch.setenv("TEST_APP_MAIN_RATIO", "0.25")

        config = loader.load()
        assert config.main.name == "env"
        assert config.main.count == 5
        assert config.main.enabled is True
        assert config.main.ratio == 0.25

    def test_env_key_keeps_underscores(self, loader, monkeypatch):
        """Test that everything after the section is the key."""
        monkeypatch.setenv("TEST_APP_MAIN_USE_CACHE", "true")
        assert loader.load().main.use_cache is True

    def test_env_list_value(self, loader, monkeypatch):
        """Test that comma-separated values become lists."""
        monkeypatch.setenv("TEST_APP_MAIN_ITEMS", "a, b,c")
        assert loader.load().main.items == ["a", "b", "c"]

    def test_invalid_value_raises(self, loader, monkeypatch):
        """Test that validation errors propagate."""
        monkeypatch.setenv("TEST_APP_MAIN_COUNT", "many")
        with pytest.raises(ValueError):
            loader.load()

    def test_config_property_loads_once(self, loader):
        """Test that the config property caches the loaded object."""
        assert loader.config is loader.config


class TestExpandPathVariables:
    """Tests for expand_path_variables function."""

    def test_user_home(self):
        """Test ${USER_HOME} expansion."""
        assert expand_path_variables("${USER_HOME}/photos") == f"{Path.home()}/photos"

    def test_no_variables(self):
        """Test that plain paths are unchanged."""
        assert expand_path_variables("/data/takeout") == "/data/takeout"

    def test_non_string_passthrough(self):
        """Test that non-string values are returned as-is."""
        assert expand_path_variables(None) is None
