"""
Configuration Loading and Management Functions.

Handles loading, saving, and applying environment overrides to RecallForge
configuration.

Configuration precedence: 1. Env vars, 2. YAML file, 3. Defaults.

Environment Variables
---------------------
    RECALLFORGE_DATA_DIR     Data directory for the JSON store
    RECALLFORGE_TIMEZONE     Day policy ("local", "UTC", "Europe/Paris", ...)
    RECALLFORGE_LOG_LEVEL    DEBUG, INFO, WARNING, ERROR
    RECALLFORGE_QUEUE_LIMIT  Default study queue size
    RECALLFORGE_MIN_NEW      Reserved new-item slots
    RECALLFORGE_DAILY_GOAL   Daily XP goal
"""

import os
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

import yaml

from recallforge.core.env import get_env_int, get_env_str
from recallforge.core.exceptions import ConfigurationError

if TYPE_CHECKING:
    from recallforge.core.config import Config

CONFIG_FILENAMES = ("recallforge.yaml", "config.yaml")


class _Logger:
    """Lazy logger holder.

    Rule #6: Encapsulates logger state in smallest scope.
    Avoids importing rich before it is needed.
    """

    _instance = None

    @classmethod
    def get(cls) -> Any:
        """Get logger (lazy-loaded)."""
        if cls._instance is None:
            from recallforge.core.logging import get_logger

            cls._instance = get_logger(__name__)
        return cls._instance


def expand_env_vars(value: Any) -> Any:
    """Recursively expand environment variables in config values.

    Handles strings with ${VAR_NAME} or ${VAR_NAME:default} syntax inside
    nested dictionaries and lists.

    Args:
        value: Configuration value (string, dict, list, or primitive)

    Returns:
        Value with all environment variables expanded
    """
    if isinstance(value, str):
        pattern = r"\$\{([^}:]+)(?::([^}]*))?\}"

        def replace_env_var(match: re.Match) -> str:
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) is not None else ""
            return os.environ.get(var_name, default_value)

        return re.sub(pattern, replace_env_var, value)
    elif isinstance(value, dict):
        return {k: expand_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [expand_env_vars(item) for item in value]
    return value


def _apply_env_overrides(config: "Config") -> "Config":
    """
    Apply environment variable overrides to configuration.

    Environment variables take precedence over config file values.
    The config is re-validated afterwards.
    """
    _apply_storage_overrides(config)
    _apply_study_overrides(config)
    config.validate()
    return config


def _apply_storage_overrides(config: "Config") -> None:
    """Apply data directory, timezone and log level overrides."""
    data_dir = get_env_str("RECALLFORGE_DATA_DIR")
    if data_dir:
        config.storage.data_dir = data_dir

    tz_name = get_env_str("RECALLFORGE_TIMEZONE")
    if tz_name:
        config.timezone = tz_name

    log_level = get_env_str("RECALLFORGE_LOG_LEVEL")
    if log_level:
        config.log_level = log_level.upper()


def _apply_study_overrides(config: "Config") -> None:
    """Apply queue and gamification overrides."""
    limit = get_env_int("RECALLFORGE_QUEUE_LIMIT", min_value=0, max_value=1000)
    if limit is not None:
        config.queue.default_limit = limit
        config.session.default_limit = limit

    min_new = get_env_int("RECALLFORGE_MIN_NEW", min_value=0, max_value=1000)
    if min_new is not None:
        config.queue.min_new = min_new

    daily_goal = get_env_int("RECALLFORGE_DAILY_GOAL", min_value=0)
    if daily_goal is not None:
        config.gamification.daily_goal = daily_goal


def find_config_file(base_path: Path) -> Optional[Path]:
    """Return the first known config file under base_path, if any."""
    for filename in CONFIG_FILENAMES:
        candidate = base_path / filename
        if candidate.exists():
            return candidate
    return None


def load_config(
    config_path: Optional[Path] = None, base_path: Optional[Path] = None
) -> "Config":
    """
    Load configuration from YAML file with environment variable overrides.

    A file that cannot be read or parsed is reported and replaced by the
    defaults. A file that parses but fails validation raises, since silently
    ignoring a user's explicit settings would hide the mistake.

    Args:
        config_path: Path to config file. Defaults to recallforge.yaml or
            config.yaml in base_path.
        base_path: Base path for relative data directories. Defaults to cwd.

    Returns:
        Config object with all settings.

    Raises:
        ConfigurationError: If the file holds invalid values
    """
    from recallforge.core.config import Config

    base_path = base_path or Path.cwd()

    if config_path is None:
        config_path = find_config_file(base_path)
    if config_path is None or not config_path.exists():
        return _create_default_config(base_path)

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        _Logger.get().warning(
            "Could not load config, using defaults", path=config_path, error=e
        )
        return _create_default_config(base_path)

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {config_path} must contain a mapping")

    config = Config.from_dict(data, base_path)
    return _apply_env_overrides(config)


def _create_default_config(base_path: Path) -> "Config":
    """
    Create default configuration with environment overrides.

    Rule #4: Extracted to reduce duplication
    """
    from recallforge.core.config import Config

    config = Config()
    config._base_path = base_path
    return _apply_env_overrides(config)


def save_config(config: "Config", config_path: Optional[Path] = None) -> None:
    """Save configuration to YAML file."""
    if config_path is None:
        config_path = config._base_path / CONFIG_FILENAMES[0]

    config_dict = config.to_dict()

    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)
