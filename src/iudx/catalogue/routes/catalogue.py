from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from ..pipeline.dispatch import DispatchPipeline
from ..pipeline.types import Action
from .common import get_pipeline, inbound, to_response

router = APIRouter(tags=["catalogue"])


@router.get("/list/catalogue/{itemtype}")
async def list_items(
    itemtype: str,
    request: Request,
    pipeline: DispatchPipeline = Depends(get_pipeline),
) -> Response:
    """List items of one type; ``item-types`` and ``tags`` are reserved listings."""

    outcome = await pipeline.dispatch(await inbound(request, Action.LIST, item_type=itemtype))
    return to_response(outcome)


@router.get("/search/catalogue/attribute")
async def search_attribute(request: Request, pipeline: DispatchPipeline = Depends(get_pipeline)) -> Response:
    outcome = await pipeline.dispatch(await inbound(request, Action.SEARCH))
    return to_response(outcome)


@router.get("/count/catalogue/attribute")
async def count(request: Request, pipeline: DispatchPipeline = Depends(get_pipeline)) -> Response:
    outcome = await pipeline.dispatch(await inbound(request, Action.COUNT))
    return to_response(outcome)


@router.get("/get/catalogue/{item_id}")
async def read_item(
    item_id: str,
    request: Request,
    pipeline: DispatchPipeline = Depends(get_pipeline),
) -> Response:
    outcome = await pipeline.dispatch(await inbound(request, Action.READ_ITEM, item_id=item_id))
    return to_response(outcome)


__all__ = ["router"]
