"""Persistence for progress stores and session snapshots.

The study core never performs I/O. It hands serialized blobs to a
KeyValueStore through ProgressRepository:

    ProgressRepository
          │
    ┌─────┴──────┐
    │KeyValueStore│  get / set / delete of string blobs
    └─────┬──────┘
     ┌────┴─────┐
     ↓          ↓
  InMemory   JsonFile (one file per key, locked atomic writes)
"""

from recallforge.storage.base import KeyValueStore
from recallforge.storage.factory import create_key_value_store, create_repository
from recallforge.storage.json_file import JsonFileStore
from recallforge.storage.memory import InMemoryStore
from recallforge.storage.repository import ProgressRepository

__all__ = [
    "KeyValueStore",
    "InMemoryStore",
    "JsonFileStore",
    "ProgressRepository",
    "create_key_value_store",
    "create_repository",
]
