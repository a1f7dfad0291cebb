# clsync Configuration Module
# Handles YAML-based configuration loading, validation, and defaults

from clsync.config.defaults import DEFAULT_CONFIG, generate_default_config
from clsync.config.loader import (
    ensure_config_exists,
    get_config_path,
    load_config,
    load_or_default,
    save_config,
    update_linked_repo,
    validate_config_file,
)
from clsync.config.schema import (
    ClsyncConfig,
    GitHubConfig,
    OutputConfig,
    PathsConfig,
    PushConfig,
)

__all__ = [
    # Schema
    "ClsyncConfig",
    "PathsConfig",
    "GitHubConfig",
    "PushConfig",
    "OutputConfig",
    # Loader
    "load_config",
    "load_or_default",
    "save_config",
    "get_config_path",
    "ensure_config_exists",
    "validate_config_file",
    "update_linked_repo",
    # Defaults
    "DEFAULT_CONFIG",
    "generate_default_config",
]
