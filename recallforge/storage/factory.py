"""
Storage Backend Factory.

Builds the key-value store and repository selected by configuration:

    create_key_value_store(config)
        ├── "json"   → JsonFileStore  (files under config.data_path)
        └── "memory" → InMemoryStore  (nothing persisted)

Usage
-----
    from recallforge.storage.factory import create_repository

    repo = create_repository(config)
    store = repo.load()
"""

from typing import Optional

from recallforge.core.config import Config
from recallforge.core.exceptions import ConfigurationError
from recallforge.core.logging import get_logger
from recallforge.storage.base import KeyValueStore
from recallforge.storage.json_file import JsonFileStore
from recallforge.storage.memory import InMemoryStore
from recallforge.storage.repository import ProgressRepository
from recallforge.study.ledger import ProgressLedger

logger = get_logger(__name__)


def create_key_value_store(config: Config, backend: Optional[str] = None) -> KeyValueStore:
    """
    Get the key-value store for the configured backend.

    Args:
        config: RecallForge configuration
        backend: Override backend type ("json" or "memory")

    Returns:
        KeyValueStore instance

    Raises:
        ConfigurationError: If the backend type is unknown
    """
    backend_type = (backend or config.storage.backend).lower()

    if backend_type == "json":
        logger.debug("Using JSON file storage", path=config.data_path)
        return JsonFileStore(config.data_path, lock_timeout=config.storage.lock_timeout)

    if backend_type == "memory":
        logger.debug("Using in-memory storage")
        return InMemoryStore()

    raise ConfigurationError(
        f"Unknown storage backend: {backend_type}. Available backends: json, memory"
    )


def create_repository(
    config: Config,
    kv: Optional[KeyValueStore] = None,
    ledger: Optional[ProgressLedger] = None,
) -> ProgressRepository:
    """
    Build a ProgressRepository wired to the configured keys, level curve
    and scheduler bounds.

    Args:
        config: RecallForge configuration
        kv: Store to use instead of the configured backend
        ledger: Ledger whose level curve and scheduler bounds are used;
            built from config if None
    """
    ledger = ledger or ProgressLedger(config.scheduler, config.gamification)
    return ProgressRepository(
        kv or create_key_value_store(config),
        key=config.storage.progress_key,
        snapshot_key=config.storage.session_key,
        level_of=ledger.level_of,
        daily_goal=config.gamification.daily_goal,
        scheduler_config=ledger.scheduler_config,
    )
