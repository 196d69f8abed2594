"""Configuration management for pollwatch.

Provides hierarchical YAML-based configuration with:
- System-level config (/etc/pollwatch/ or %PROGRAMDATA%)
- User-level config (~/.config/pollwatch/ or %APPDATA%)
- Project-level config ($project_root/.pollwatch/)
- Environment variable overrides (highest priority)

Example usage:
    from pollwatch import watch
    from pollwatch.config import load_config

    config = load_config(project_root="/path/to/project")
    watcher = watch("src", config.watch.to_options())
"""

from pollwatch.config.loader import (
    dict_to_config,
    get_config,
    load_config,
    reset_config,
)
from pollwatch.config.paths import (
    get_config_paths,
    get_project_config_path,
    get_system_config_path,
    get_user_config_path,
)
from pollwatch.config.schema import (
    Config,
    LoggingConfig,
    WatchConfig,
)

__all__ = [
    # Main API
    "Config",
    "load_config",
    "get_config",
    "reset_config",
    "dict_to_config",
    # Schema types
    "WatchConfig",
    "LoggingConfig",
    # Path utilities
    "get_config_paths",
    "get_system_config_path",
    "get_user_config_path",
    "get_project_config_path",
]
