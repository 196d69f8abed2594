"""Configuration file loading and caching.

Handles:
- YAML file parsing
- Environment variable overrides
- Config caching with reload support
- Conversion from dict to typed Config dataclass
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from pollwatch.config.paths import get_config_paths
from pollwatch.config.schema import Config, LoggingConfig, WatchConfig
from pollwatch.types import DEFAULT_INTERVAL_MS

# Module logger (may not be configured yet at import time)
_log = logging.getLogger("pollwatch.config")

_cached_config: Config | None = None

SECTIONS = ("watch", "logging")

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file, returning empty dict if not found or invalid.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed YAML as dict, or empty dict on error.
    """
    if not path.exists():
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except yaml.YAMLError as e:
        _log.warning("Invalid YAML in %s: %s", path, e)
        return {}
    except PermissionError:
        _log.debug("Permission denied reading %s", path)
        return {}
    except OSError as e:
        _log.warning("Error reading %s: %s", path, e)
        return {}


def _parse_bool(name: str, value: str) -> bool | None:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    _log.warning("Ignoring %s=%r: expected a boolean", name, value)
    return None


def env_overrides() -> dict[str, Any]:
    """Build config dict from environment variables.

    Recognized variables:
        POLLWATCH_LOG: log file path
        POLLWATCH_INTERVAL: polling interval in milliseconds
        POLLWATCH_FOLLOW_SYMLINK: follow symlinks (true/false)

    Returns:
        Config dict with values from environment.
    """
    overrides: dict[str, Any] = {}
    watch: dict[str, Any] = {}

    log_path = os.environ.get("POLLWATCH_LOG")
    if log_path:
        overrides["logging"] = {"file": log_path}

    interval = os.environ.get("POLLWATCH_INTERVAL")
    if interval:
        try:
            watch["interval"] = float(interval)
        except ValueError:
            _log.warning("Ignoring POLLWATCH_INTERVAL=%r: not a number", interval)

    follow = os.environ.get("POLLWATCH_FOLLOW_SYMLINK")
    if follow:
        parsed = _parse_bool("POLLWATCH_FOLLOW_SYMLINK", follow)
        if parsed is not None:
            watch["follow_symlink"] = parsed

    if watch:
        overrides["watch"] = watch
    return overrides


def merge_sources(sources: list[tuple[str, dict[str, Any]]]) -> dict[str, Any]:
    """Layer config sources in order, later sources winning key by key.

    The ``watch`` and ``logging`` sections merge per setting. A section that is
    not a mapping is skipped with a warning naming its source. A None setting
    never replaces an earlier value, so a file can leave a setting unset.
    Other top-level keys are kept as-is, the last source winning.

    Args:
        sources: (origin, data) pairs from lowest to highest priority.

    Returns:
        Dict with one mapping per known section plus any extra keys.
    """
    merged: dict[str, Any] = {section: {} for section in SECTIONS}
    for origin, data in sources:
        for key, value in data.items():
            if key not in SECTIONS:
                merged[key] = value
            elif isinstance(value, dict):
                merged[key].update((k, v) for k, v in value.items() if v is not None)
            elif value is not None:
                _log.warning("Ignoring %r section from %s: expected a mapping", key, origin)
    return merged


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_pattern(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def dict_to_config(data: dict[str, Any]) -> Config:
    """Convert merged dict to typed Config dataclass.

    Args:
        data: Merged configuration dictionary.

    Returns:
        Typed Config object.
    """
    watch_data = _as_dict(data.get("watch"))
    interval = watch_data.get("interval", DEFAULT_INTERVAL_MS)
    if not isinstance(interval, (int, float)) or isinstance(interval, bool) or interval < 0:
        _log.warning("Invalid watch.interval %r, using %d", interval, DEFAULT_INTERVAL_MS)
        interval = DEFAULT_INTERVAL_MS
    watch = WatchConfig(
        interval=float(interval),
        follow_symlink=bool(watch_data.get("follow_symlink", False)),
        ignore_dot_files=bool(watch_data.get("ignore_dot_files", True)),
        test=_as_pattern(watch_data.get("test")),
        ignore=_as_pattern(watch_data.get("ignore")),
    )

    log_data = _as_dict(data.get("logging"))
    verbose = log_data.get("verbose")
    logging_config = LoggingConfig(
        level=log_data.get("level"),
        verbose=verbose if isinstance(verbose, int) and not isinstance(verbose, bool) else None,
        file=log_data.get("file"),
    )

    extra = {k: v for k, v in data.items() if k not in SECTIONS}

    return Config(watch=watch, logging=logging_config, extra=extra)


def load_config(
    project_root: str | os.PathLike[str] | None = None,
    reload: bool = False,
) -> Config:
    """Load and merge config from all sources.

    Priority order (highest to lowest):
    1. Environment variables
    2. Project config ($project_root/.pollwatch/config.yaml)
    3. User config (~/.config/pollwatch/config.yaml or %APPDATA%)
    4. System config (/etc/pollwatch/ or %PROGRAMDATA%)

    Args:
        project_root: Project directory for project-level config.
        reload: Force reload even if cached.

    Returns:
        Merged Config object.
    """
    global _cached_config

    if _cached_config is not None and not reload and project_root is None:
        return _cached_config

    sources: list[tuple[str, dict[str, Any]]] = []

    for path in get_config_paths(project_root):
        config_data = load_yaml_file(path)
        if config_data:
            _log.debug("Loaded config from %s", path)
            sources.append((str(path), config_data))

    env_config = env_overrides()
    if env_config:
        sources.append(("environment", env_config))

    config = dict_to_config(merge_sources(sources))

    # Cache only global config (no project_root)
    if project_root is None:
        _cached_config = config

    return config


def get_config() -> Config:
    """Get the cached global config, loading it if needed."""
    if _cached_config is None:
        return load_config()
    return _cached_config


def reset_config() -> None:
    """Reset cached config.

    Useful for testing or forcing a reload.
    """
    global _cached_config
    _cached_config = None
