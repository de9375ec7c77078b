"""Global configuration — XDG paths, config file, env vars, defaults."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

_ENRICHMENT_MODES = ("fast", "full")


def _default_config_dir() -> Path:
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "portmonitor"
    return Path.home() / ".config" / "portmonitor"


@dataclass
class PortMonitorConfig:
    """Application-wide configuration."""

    config_dir: Path = field(default_factory=_default_config_dir)
    refresh_interval: float = 5.0
    kill_settle_delay: float = 0.5
    # Pids at or below these belong to system daemons we usually cannot inspect.
    fast_pid_threshold: int = 50
    full_pid_threshold: int = 100
    enrichment_mode: str = "fast"
    command_timeout: float | None = None
    lsof_path: str = "/usr/sbin/lsof"
    ps_path: str = "/bin/ps"
    nettop_path: str = "/usr/bin/nettop"
    kill_path: str = "/bin/kill"
    cache_max_entries: int = 512
    cache_ttl: float = 60.0
    web_host: str = "127.0.0.1"  # Hardcoded — never 0.0.0.0
    web_port: int = 8471
    verbose: bool = False

    @property
    def config_file(self) -> Path:
        return self.config_dir / "config.yaml"

    @classmethod
    def load(cls, path: str | Path | None = None) -> PortMonitorConfig:
        """Load config from an optional YAML file, then environment variables."""
        config = cls()

        config_path = Path(path) if path else config.config_file
        if config_path.is_file():
            config.apply_mapping(_read_yaml(config_path))

        env_interval = os.environ.get("PORTMONITOR_REFRESH_INTERVAL")
        if env_interval:
            config.refresh_interval = float(env_interval)

        env_mode = os.environ.get("PORTMONITOR_ENRICHMENT")
        if env_mode:
            config.enrichment_mode = env_mode

        env_port = os.environ.get("PORTMONITOR_WEB_PORT")
        if env_port:
            config.web_port = int(env_port)

        config.validate()
        return config

    def apply_mapping(self, data: dict) -> None:
        """Overlay values from a parsed config file onto this config."""
        for key, value in data.items():
            if key not in _FIELD_TYPES:
                logger.warning("Ignoring unsupported config key '%s'", key)
                continue
            setattr(self, key, _coerce(key, value))

    def validate(self) -> None:
        if self.enrichment_mode not in _ENRICHMENT_MODES:
            raise ValueError(
                f"enrichment_mode must be one of {', '.join(_ENRICHMENT_MODES)}, "
                f"got '{self.enrichment_mode}'"
            )
        if self.refresh_interval <= 0:
            raise ValueError("refresh_interval must be positive")
        if self.kill_settle_delay < 0:
            raise ValueError("kill_settle_delay must not be negative")


# Fields a config file may set: (type, may be null).
_FIELD_TYPES: dict[str, tuple[type, bool]] = {
    "refresh_interval": (float, False),
    "kill_settle_delay": (float, False),
    "fast_pid_threshold": (int, False),
    "full_pid_threshold": (int, False),
    "enrichment_mode": (str, False),
    "command_timeout": (float, True),
    "lsof_path": (str, False),
    "ps_path": (str, False),
    "nettop_path": (str, False),
    "kill_path": (str, False),
    "cache_max_entries": (int, False),
    "cache_ttl": (float, False),
    "web_port": (int, False),
    "verbose": (bool, False),
}


def _coerce(key: str, value: object) -> object:
    """Convert a config file value to its field type or raise ValueError."""
    expected, optional = _FIELD_TYPES[key]
    if value is None and optional:
        return None
    # YAML booleans are ints to isinstance(); only a bool field takes them.
    if isinstance(value, bool):
        if expected is bool:
            return value
    elif expected is float and isinstance(value, (int, float)):
        return float(value)
    elif isinstance(value, expected):
        return value
    raise ValueError(
        f"Invalid value for {key}: expected {expected.__name__}, got {value!r}"
    )


def _read_yaml(path: Path) -> dict:
    text = path.read_text(encoding="utf-8")
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid config file {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("Config YAML must be a mapping")
    return data
