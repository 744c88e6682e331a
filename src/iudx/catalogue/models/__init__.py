from .contracts import (
    BulkCreateResponse,
    CatalogueItem,
    CountResponse,
    CreatedResponse,
    ItemTypesResponse,
    StatusResponse,
)

__all__ = [
    "BulkCreateResponse",
    "CatalogueItem",
    "CountResponse",
    "CreatedResponse",
    "ItemTypesResponse",
    "StatusResponse",
]
