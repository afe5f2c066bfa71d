"""
Configuration for DemoScope

Settings live in three sections (analysis, export, logging) and are read from,
lowest to highest precedence:

1. Defaults
2. The first config file found in the search paths (./demoscope.{yaml,toml,json},
   then $XDG_CONFIG_HOME/demoscope/config.{yaml,toml})
3. DEMOSCOPE_* environment variables
4. A config file passed explicitly (``--config``)
"""

import json
import logging
import os
import tomllib
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from demoscope.core.constants import DEFAULT_TICK_RATE

logger = logging.getLogger(__name__)


@dataclass
class AnalysisConfig:
    """Match analyser settings."""

    # Raise on malformed records instead of logging and dropping them
    strict: bool = False

    # Used for timestamps when the replay carries no server info
    tick_rate: float = DEFAULT_TICK_RATE

    # Emit VoteStarted events into the event log
    include_votes: bool = True


@dataclass
class ExportConfig:
    """Export settings."""

    default_format: str = "json"
    json_indent: int = 2
    csv_delimiter: str = ","


@dataclass
class LoggingConfig:
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: str | None = None
    file_max_bytes: int = 10 * 1024 * 1024  # 10MB
    file_backup_count: int = 5


@dataclass
class DemoScopeConfig:
    """All DemoScope settings."""

    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    config_version: str = "1.0"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DemoScopeConfig":
        """Build a config from nested section mappings, warning about unknown keys."""
        config = cls()
        for section_name, values in data.items():
            if section_name == "config_version":
                config.config_version = str(values)
                continue
            section = getattr(config, section_name, None)
            if section is None or not isinstance(values, dict):
                logger.warning(f"Ignoring unknown config section: {section_name}")
                continue
            known = {f.name for f in fields(section)}
            for key, value in values.items():
                if key in known:
                    setattr(section, key, value)
                else:
                    logger.warning(f"Ignoring unknown config key: {section_name}.{key}")
        return config

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# Environment variable -> (section, key)
ENV_VARS: dict[str, tuple[str, str]] = {
    "DEMOSCOPE_STRICT": ("analysis", "strict"),
    "DEMOSCOPE_TICK_RATE": ("analysis", "tick_rate"),
    "DEMOSCOPE_INCLUDE_VOTES": ("analysis", "include_votes"),
    "DEMOSCOPE_EXPORT_FORMAT": ("export", "default_format"),
    "DEMOSCOPE_LOG_LEVEL": ("logging", "level"),
    "DEMOSCOPE_LOG_FILE": ("logging", "file"),
}

_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off")


# ============================================================================
# Reading
# ============================================================================


def _read_yaml(path: Path) -> dict[str, Any]:
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _read_toml(path: Path) -> dict[str, Any]:
    with open(path, "rb") as f:
        return tomllib.load(f)


def _read_json(path: Path) -> dict[str, Any]:
    with open(path) as f:
        return json.load(f)


_READERS = {
    ".yaml": _read_yaml,
    ".yml": _read_yaml,
    ".toml": _read_toml,
    ".json": _read_json,
}


def config_search_paths() -> list[Path]:
    """Candidate config files, in search order."""
    xdg_dir = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")) / "demoscope"
    local = [Path.cwd() / f"demoscope{suffix}" for suffix in (".yaml", ".toml", ".json")]
    return local + [xdg_dir / "config.yaml", xdg_dir / "config.toml"]


def read_config_file(path: Path) -> dict[str, Any]:
    """Read a config file by extension. Missing files and unknown formats read as empty."""
    if not path.exists():
        return {}

    reader = _READERS.get(path.suffix.lower())
    if reader is None:
        logger.warning(f"Unknown config file format: {path.suffix}")
        return {}
    return reader(path)


def _parse_env_value(raw: str, current: Any) -> Any:
    """Convert raw to the type of the setting's default value."""
    if isinstance(current, bool):
        lowered = raw.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        raise ValueError(f"expected one of {', '.join(_TRUE + _FALSE)}")
    if isinstance(current, int):
        return int(raw)
    if isinstance(current, float):
        return float(raw)
    return raw


def env_overrides() -> dict[str, Any]:
    """Settings taken from DEMOSCOPE_* variables, typed like their defaults."""
    defaults = DemoScopeConfig()
    overrides: dict[str, Any] = {}

    for var, (section, key) in ENV_VARS.items():
        raw = os.environ.get(var)
        if raw is None:
            continue
        try:
            value = _parse_env_value(raw, getattr(getattr(defaults, section), key))
        except ValueError as e:
            logger.warning(f"Ignoring {var}={raw!r}: {e}")
            continue
        overrides.setdefault(section, {})[key] = value

    return overrides


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into a copy of base."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_file: Path | None = None, include_env: bool = True) -> DemoScopeConfig:
    """
    Load settings from every source.

    Args:
        config_file: Explicit config file; when given, the search paths are skipped
        include_env: Whether DEMOSCOPE_* variables apply

    Returns:
        The merged DemoScopeConfig
    """
    data: dict[str, Any] = {}

    if config_file is None:
        found = next((p for p in config_search_paths() if p.exists()), None)
        if found is not None:
            data = read_config_file(found)
            logger.info(f"Loaded config from: {found}")

    if include_env:
        data = merge_configs(data, env_overrides())

    if config_file is not None:
        data = merge_configs(data, read_config_file(config_file))
        logger.info(f"Loaded config from: {config_file}")

    return DemoScopeConfig.from_dict(data)


# ============================================================================
# Writing
# ============================================================================


def save_config(config: DemoScopeConfig, path: Path) -> None:
    """
    Write a config as YAML or JSON, chosen by extension.

    Raises:
        ValueError: For any other extension
    """
    suffix = path.suffix.lower()
    data = config.to_dict()

    if suffix in (".yaml", ".yml"):
        path.write_text(yaml.safe_dump(data, default_flow_style=False, sort_keys=False))
    elif suffix == ".json":
        path.write_text(json.dumps(data, indent=2))
    else:
        raise ValueError(f"Unknown config format: {suffix}")

    logger.info(f"Saved config to: {path}")


DEFAULT_CONFIG_YAML = """# DemoScope Configuration

# Match analyser settings
analysis:
  strict: false        # raise on malformed records instead of dropping them
  tick_rate: 66.667    # fallback when the replay has no server info
  include_votes: true

# Export settings
export:
  default_format: json
  json_indent: 2
  csv_delimiter: ","

# Logging settings
logging:
  level: INFO
  # file: /path/to/demoscope.log
"""


def generate_default_config(path: Path) -> None:
    """Write the default settings; YAML files get the commented template."""
    if path.suffix.lower() in (".yaml", ".yml"):
        path.write_text(DEFAULT_CONFIG_YAML)
    else:
        save_config(DemoScopeConfig(), path)

    logger.info(f"Generated default config at: {path}")
