"""
Configuration Management for RecallForge.

A hierarchy of dataclasses mapped to a YAML file, with ${VAR} expansion and
RECALLFORGE_* environment overrides.

    config/
    ├── study.py     # SchedulerConfig, QueueConfig, GamificationConfig, SessionConfig
    ├── storage.py   # StorageConfig
    └── config.py    # Main Config class

Usage Example
-------------
    config = load_config()
    limit = config.queue.default_limit
    data_dir = config.data_path
"""

from recallforge.core.config.config import Config
from recallforge.core.config.storage import StorageConfig
from recallforge.core.config.study import (
    GamificationConfig,
    QueueConfig,
    SchedulerConfig,
    SessionConfig,
)
from recallforge.core.config_loaders import load_config, save_config

__all__ = [
    "Config",
    "SchedulerConfig",
    "QueueConfig",
    "GamificationConfig",
    "SessionConfig",
    "StorageConfig",
    "load_config",
    "save_config",
]
