from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class CatalogueItem(BaseModel):
    """Structural contract for an item submitted to /create/catalogue/{itemtype}.

    Items are open documents; only the fields the service itself reads are typed.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str | None = None
    item_type: str | None = Field(default=None, alias="item-type")
    tags: List[str] | None = None


class StatusResponse(BaseModel):
    """Body of every error response and of update replies."""

    status: str


class CreatedResponse(BaseModel):
    id: str


class CountResponse(BaseModel):
    count: int


class ItemTypesResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    item_types: List[str] = Field(alias="item-types")


class BulkCreateResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    bulk_id: str = Field(alias="bulk-id")
    ids: List[str] = Field(default_factory=list)
