"""Tests for ConfigManager."""

import pytest
import yaml

from netrecon.config import ConfigManager, Settings
from netrecon.errors import ConfigError


@pytest.fixture
def isolated(tmp_path, monkeypatch):
    """Run with no config file reachable through the default search paths."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    return tmp_path


def _write(path, data):
    path.write_text(yaml.safe_dump(data))
    return path


def test_defaults(isolated):
    settings = ConfigManager(environ={}).load()
    assert settings.database.path == "./data/netrecon.db"
    assert settings.logging.level == "info"
    assert settings.scanner.default_timeout == 300
    assert settings.scanner.max_threads == 1000
    assert settings.scanner.default_ports == "1-1000"
    assert settings.scanner.default_scanner == "nmap"
    assert settings.source is None


def test_file_values(isolated):
    path = _write(isolated / "custom.yaml", {
        "database": {"path": "/var/lib/netrecon/scans.db"},
        "logging": {"level": "debug", "format": "text"},
        "scanner": {
            "default_timeout": 60,
            "default_scanner": "masscan",
            "presets": {
                "web": {"scanner": "nmap", "ports": "80,443", "timing": 4, "arguments": "-Pn"},
                "sweep": {"scanner": "masscan", "ports": "1-65535"},
            },
        },
    })
    settings = ConfigManager(path, environ={}).load()

    assert settings.source == path
    assert settings.database.path == "/var/lib/netrecon/scans.db"
    assert settings.logging.format == "text"
    assert settings.scanner.default_timeout == 60
    assert settings.scanner.default_scanner == "masscan"
    assert settings.scanner.default_ports == "1-1000"
    web = settings.scanner.presets["web"]
    assert (web.scanner, web.ports, web.timing, web.arguments) == ("nmap", "80,443", "4", "-Pn")
    assert settings.scanner.presets["sweep"].timing == ""


def test_search_path_in_cwd(isolated):
    _write(isolated / "netrecon.yaml", {"scanner": {"default_ports": "22"}})
    settings = ConfigManager(environ={}).load()
    assert settings.scanner.default_ports == "22"


def test_env_overrides_file(isolated):
    path = _write(isolated / "c.yaml", {"scanner": {"default_timeout": 60}})
    environ = {"NETRECON_SCANNER_DEFAULT_TIMEOUT": "15", "NETRECON_DATABASE_PATH": "/tmp/x.db"}
    settings = ConfigManager(path, environ=environ).load()
    assert settings.scanner.default_timeout == 15
    assert settings.database.path == "/tmp/x.db"


def test_config_path_from_env(isolated):
    path = _write(isolated / "env.yaml", {"logging": {"level": "warning"}})
    settings = ConfigManager(environ={"NETRECON_CONFIG": str(path)}).load()
    assert settings.logging.level == "warning"


def test_missing_explicit_file(isolated):
    with pytest.raises(ConfigError, match="not found"):
        ConfigManager(isolated / "nope.yaml", environ={}).load()


def test_malformed_yaml(isolated):
    path = isolated / "bad.yaml"
    path.write_text("scanner: [unclosed\n")
    with pytest.raises(ConfigError):
        ConfigManager(path, environ={}).load()


def test_wrong_type(isolated):
    path = _write(isolated / "c.yaml", {"scanner": {"default_timeout": "soon"}})
    with pytest.raises(ConfigError, match="integer"):
        ConfigManager(path, environ={}).load()


def test_non_mapping_section(isolated):
    path = _write(isolated / "c.yaml", {"scanner": ["nmap"]})
    with pytest.raises(ConfigError, match="mapping"):
        ConfigManager(path, environ={}).load()


def test_save_and_reload(isolated):
    settings = Settings()
    settings.scanner.default_ports = "22,80"
    target = ConfigManager(environ={}).save(settings, isolated / "out" / "config.yaml")

    assert target.exists()
    reloaded = ConfigManager(target, environ={}).load()
    assert reloaded.scanner.default_ports == "22,80"
    assert reloaded.to_dict() == settings.to_dict()
