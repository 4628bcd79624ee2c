"""Configuration management for netrecon.

Settings come from three layers, later ones winning:
built-in defaults, a YAML config file, NETRECON_* environment variables.
"""

import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping

import yaml

from netrecon.errors import ConfigError
from netrecon.model.scan import ScanPreset

ENV_PREFIX = "NETRECON"

SEARCH_PATHS = [
    Path("netrecon.yaml"),
    Path("configs") / "config.yaml",
    Path("~/.netrecon/config.yaml"),
    Path("/etc/netrecon/config.yaml"),
]


@dataclass
class DatabaseSettings:
    path: str = "./data/netrecon.db"


@dataclass
class LoggingSettings:
    level: str = "info"
    format: str = "rich"  # rich | text
    file: str = ""


@dataclass
class ScannerSettings:
    default_timeout: int = 300
    max_threads: int = 1000
    default_ports: str = "1-1000"
    default_scanner: str = "nmap"
    presets: dict[str, ScanPreset] = field(default_factory=dict)


@dataclass
class Settings:
    """Complete application settings."""

    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    scanner: ScannerSettings = field(default_factory=ScannerSettings)
    source: Path | None = None

    def to_dict(self) -> dict[str, Any]:
        presets = {
            name: {"scanner": p.scanner, "ports": p.ports, "arguments": p.arguments, "timing": p.timing}
            for name, p in self.scanner.presets.items()
        }
        scanner = {k: v for k, v in asdict(self.scanner).items() if k != "presets"}
        scanner["presets"] = presets
        return {
            "database": asdict(self.database),
            "logging": asdict(self.logging),
            "scanner": scanner,
        }


class ConfigManager:
    """Loads and saves netrecon settings."""

    def __init__(self, config_path: Path | str | None = None, environ: Mapping[str, str] | None = None) -> None:
        self.environ = os.environ if environ is None else environ
        if config_path is None:
            # Check for environment variable override
            env_config = self.environ.get(f"{ENV_PREFIX}_CONFIG")
            if env_config:
                config_path = env_config
        self.config_path = Path(config_path).expanduser() if config_path else None

    def find_config_file(self) -> Path | None:
        """Return the explicit config path, else the first existing default."""
        if self.config_path is not None:
            return self.config_path
        for candidate in SEARCH_PATHS:
            path = candidate.expanduser()
            if path.is_file():
                return path
        return None

    def load(self) -> Settings:
        """Build settings from defaults, the config file and the environment.

        Raises:
            ConfigError: An explicitly given file is missing or malformed,
                or a value has the wrong type.
        """
        settings = Settings()
        path = self.find_config_file()
        if path is not None:
            data = self._read_file(path)
            self._apply(settings, data, str(path))
            settings.source = path
        self._apply_env(settings)
        return settings

    def save(self, settings: Settings, path: Path | str | None = None) -> Path:
        """Write settings as YAML. Defaults to ~/.netrecon/config.yaml."""
        target = Path(path).expanduser() if path else (self.config_path or Path.home() / ".netrecon" / "config.yaml")
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w") as f:
            yaml.safe_dump(settings.to_dict(), f, sort_keys=False)
        return target

    def _read_file(self, path: Path) -> dict[str, Any]:
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
        except FileNotFoundError as e:
            raise ConfigError(f"config file not found: {path}") from e
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"error reading config file {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"config file {path} must contain a mapping")
        return data

    def _apply(self, settings: Settings, data: dict[str, Any], origin: str) -> None:
        for section_name in ("database", "logging", "scanner"):
            section_data = data.get(section_name)
            if section_data is None:
                continue
            if not isinstance(section_data, dict):
                raise ConfigError(f"{origin}: section {section_name!r} must be a mapping")
            section = getattr(settings, section_name)
            for f in fields(section):
                if f.name not in section_data:
                    continue
                if f.name == "presets":
                    section.presets = self._parse_presets(section_data["presets"], origin)
                else:
                    setattr(section, f.name, _coerce(getattr(section, f.name), section_data[f.name], f"{section_name}.{f.name}"))

    def _apply_env(self, settings: Settings) -> None:
        for section_name in ("database", "logging", "scanner"):
            section = getattr(settings, section_name)
            for f in fields(section):
                if f.name == "presets":
                    continue
                key = f"{ENV_PREFIX}_{section_name}_{f.name}".upper()
                if key in self.environ:
                    setattr(section, f.name, _coerce(getattr(section, f.name), self.environ[key], key))

    @staticmethod
    def _parse_presets(raw: Any, origin: str) -> dict[str, ScanPreset]:
        if not isinstance(raw, dict):
            raise ConfigError(f"{origin}: scanner.presets must be a mapping")
        presets = {}
        for name, values in raw.items():
            values = values or {}
            if not isinstance(values, dict):
                raise ConfigError(f"{origin}: preset {name!r} must be a mapping")
            presets[str(name)] = ScanPreset(
                name=str(name),
                scanner=str(values.get("scanner", "nmap")),
                ports=str(values.get("ports", "") or ""),
                arguments=str(values.get("arguments", "") or ""),
                timing=str(values.get("timing", "") or ""),
            )
        return presets


def _coerce(current: Any, value: Any, name: str) -> Any:
    """Convert ``value`` to the type of the current default."""
    if isinstance(current, bool):
        return str(value).lower() in ("1", "true", "yes", "on")
    if isinstance(current, int):
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"{name} must be an integer, got {value!r}") from e
    return "" if value is None else str(value)
