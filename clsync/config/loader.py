# clsync Configuration Loader
# Load, save, and manage YAML configuration files

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from clsync.config.defaults import generate_default_config, get_default_config
from clsync.config.schema import ClsyncConfig

CONFIG_ENV = "CLSYNC_CONFIG"
HOME_ENV = "CLSYNC_HOME"


def get_config_dir() -> Path:
    """Get the clsync configuration directory."""
    return Path.home() / ".config" / "clsync"


def get_config_path() -> Path:
    """Get the path to the configuration file."""
    # Allow override via environment variable
    env_path = os.environ.get(CONFIG_ENV)
    if env_path:
        return Path(env_path).expanduser()
    return get_config_dir() / "config.yaml"


def load_config(config_path: Optional[Path] = None) -> ClsyncConfig:
    """
    Load configuration from YAML file.

    Args:
        config_path: Optional path to config file. Uses default if not provided.

    Returns:
        ClsyncConfig: Validated configuration object.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValidationError: If config file is invalid.
    """
    if config_path is None:
        config_path = get_config_path()

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}\nRun 'clsync config init' to create one.")

    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        data = {}

    return _validate(_merge_with_defaults(data))


def load_or_default(config_path: Optional[Path] = None) -> ClsyncConfig:
    """
    Load configuration, falling back to defaults when no file exists.

    Args:
        config_path: Optional path to config file.

    Returns:
        ClsyncConfig from the file, or the defaults.
    """
    try:
        return load_config(config_path)
    except FileNotFoundError:
        return _validate(get_default_config())


def save_config(config: ClsyncConfig, config_path: Optional[Path] = None) -> Path:
    """
    Save configuration to YAML file.

    Args:
        config: Configuration object to save.
        config_path: Optional path to config file. Uses default if not provided.

    Returns:
        Path: Path where config was saved.
    """
    if config_path is None:
        config_path = get_config_path()

    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = config.model_dump(mode="json")

    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)

    return config_path


def ensure_config_exists(config_path: Optional[Path] = None) -> tuple[Path, bool]:
    """
    Ensure configuration file exists, creating default if needed.

    Returns:
        Tuple of (config_path, was_created).
    """
    if config_path is None:
        config_path = get_config_path()

    if config_path.exists():
        return config_path, False

    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(generate_default_config(), encoding="utf-8")
    return config_path, True


def validate_config_file(config_path: Optional[Path] = None) -> tuple[bool, list[str]]:
    """
    Validate a configuration file without loading it into the system.

    Args:
        config_path: Path to config file to validate.

    Returns:
        Tuple of (is_valid, error_messages).
    """
    if config_path is None:
        config_path = get_config_path()

    errors: list[str] = []

    if not config_path.exists():
        return False, [f"Configuration file not found: {config_path}"]

    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        return False, [f"Invalid YAML syntax: {e}"]

    if data is None:
        return False, ["Configuration file is empty"]

    if not isinstance(data, dict):
        return False, ["Configuration root must be a mapping"]

    try:
        ClsyncConfig.model_validate(data)
    except ValidationError as e:
        for error in e.errors():
            loc = " -> ".join(str(part) for part in error["loc"])
            errors.append(f"{loc}: {error['msg']}")
        return False, errors

    return True, errors


def update_linked_repo(repo: Optional[str], config_path: Optional[Path] = None) -> ClsyncConfig:
    """
    Link (or unlink with None) the repository used by push, and save.

    Args:
        repo: Repository reference, or None to unlink.
        config_path: Optional path to config file.

    Returns:
        Updated ClsyncConfig.
    """
    if config_path is None:
        config_path = get_config_path()

    data: dict = {}
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

    # Only push.linked_repo changes, environment overrides are not persisted
    push = data.get("push") if isinstance(data.get("push"), dict) else {}
    data["push"] = {**push, "linked_repo": repo}
    config = _validate(_merge_with_defaults(data))

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)

    return config


def _merge_with_defaults(data: dict) -> dict:
    """Merge loaded data with default values for missing keys."""
    result = get_default_config()

    for section, values in data.items():
        if isinstance(values, dict) and isinstance(result.get(section), dict):
            result[section] = {**result[section], **values}
        else:
            result[section] = values

    return result


def _validate(data: dict) -> ClsyncConfig:
    """Apply environment overrides and validate."""
    home_override = os.environ.get(HOME_ENV)
    if home_override:
        data.setdefault("paths", {})["home"] = home_override
    return ClsyncConfig.model_validate(data)
