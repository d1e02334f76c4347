from .key_value_store import KeyValueStore, InMemoryStore, SQLiteStore

__all__ = ["KeyValueStore", "InMemoryStore", "SQLiteStore"]
