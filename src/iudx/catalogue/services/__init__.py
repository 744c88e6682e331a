from .schema_codec import decode_schema, encode_schema
from .store import CatalogueStoreAdapter
from .validation import ValidationService

__all__ = ["CatalogueStoreAdapter", "ValidationService", "decode_schema", "encode_schema"]
