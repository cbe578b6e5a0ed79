from .store import DirectusFileRecordStore, StaticSchemaProvider

__all__ = ["DirectusFileRecordStore", "StaticSchemaProvider"]
