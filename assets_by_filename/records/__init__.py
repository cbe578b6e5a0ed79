from .base_store import FileRecordStore, SchemaProvider

__all__ = ["FileRecordStore", "SchemaProvider"]
