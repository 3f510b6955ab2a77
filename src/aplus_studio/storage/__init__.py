"""Local persistence."""

from aplus_studio.storage.kv_store import FileKeyValueStore, InMemoryKeyValueStore, KeyValueStore

__all__ = ["FileKeyValueStore", "InMemoryKeyValueStore", "KeyValueStore"]
