"""
Storage configuration.

Selects the key-value backend that holds the serialized progress store and
the in-progress session snapshot.
"""

from dataclasses import dataclass


@dataclass
class StorageConfig:
    """Progress storage configuration."""

    backend: str = "json"  # json, memory
    data_dir: str = ".recallforge"
    progress_key: str = "progress"
    session_key: str = "session"
    lock_timeout: float = 10.0  # seconds
