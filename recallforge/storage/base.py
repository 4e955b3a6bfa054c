"""
Key-value store interface.

Adapters store opaque string blobs under short keys. Reads must return the
last successfully written value for a key, or None if nothing was written.
Writes must be durable before the next read in the same process.
"""

from abc import ABC, abstractmethod
from typing import Optional


class KeyValueStore(ABC):
    """Abstract blob store used by ProgressRepository."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Read the blob stored under key.

        Returns:
            The stored value, or None if the key was never written

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """
        Store value under key, replacing any previous value.

        Raises:
            StorageError: If the write did not complete
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Remove key.

        Returns:
            True if the key existed
        """
        pass

    def exists(self, key: str) -> bool:
        return self.get(key) is not None
