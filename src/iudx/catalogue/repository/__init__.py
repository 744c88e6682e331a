from .documents import INTERNAL_ID_FIELD, Document, DocumentStore, StoreError
from .memory import InMemoryDocumentStore

__all__ = ["Document", "DocumentStore", "INTERNAL_ID_FIELD", "InMemoryDocumentStore", "StoreError"]
