from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from ..pipeline.dispatch import DispatchPipeline
from ..pipeline.types import Action
from .common import get_pipeline, inbound, to_response

router = APIRouter(tags=["mutations"])

BULK_ITEM_TYPE = "resource-item"


@router.post("/create/catalogue/resource-item/bulk/{bulk_id}")
async def bulk_create(
    bulk_id: str,
    request: Request,
    pipeline: DispatchPipeline = Depends(get_pipeline),
) -> Response:
    """Create a batch of resource items; a store fault may leave the batch partially applied."""

    outcome = await pipeline.dispatch(
        await inbound(request, Action.BULK_CREATE, item_type=BULK_ITEM_TYPE, bulk_id=bulk_id)
    )
    return to_response(outcome)


@router.patch("/update/catalogue/resource-item/bulk/{bulk_id}")
async def bulk_update(
    bulk_id: str,
    request: Request,
    pipeline: DispatchPipeline = Depends(get_pipeline),
) -> Response:
    outcome = await pipeline.dispatch(
        await inbound(request, Action.BULK_UPDATE, item_type=BULK_ITEM_TYPE, bulk_id=bulk_id)
    )
    return to_response(outcome)


@router.delete("/remove/catalogue/resource-item/bulk/{bulk_id}")
async def bulk_delete(
    bulk_id: str,
    request: Request,
    pipeline: DispatchPipeline = Depends(get_pipeline),
) -> Response:
    outcome = await pipeline.dispatch(
        await inbound(request, Action.BULK_DELETE, item_type=BULK_ITEM_TYPE, bulk_id=bulk_id)
    )
    return to_response(outcome)


@router.post("/create/catalogue/{itemtype}")
async def create(
    itemtype: str,
    request: Request,
    pipeline: DispatchPipeline = Depends(get_pipeline),
) -> Response:
    outcome = await pipeline.dispatch(await inbound(request, Action.CREATE, item_type=itemtype))
    return to_response(outcome)


@router.put("/update/catalogue/{itemtype}/{item_id}")
async def update(
    itemtype: str,
    item_id: str,
    request: Request,
    pipeline: DispatchPipeline = Depends(get_pipeline),
) -> Response:
    outcome = await pipeline.dispatch(
        await inbound(request, Action.UPDATE, item_type=itemtype, item_id=item_id)
    )
    return to_response(outcome)


@router.delete("/remove/catalogue/{itemtype}/{item_id}")
async def delete(
    itemtype: str,
    item_id: str,
    request: Request,
    pipeline: DispatchPipeline = Depends(get_pipeline),
) -> Response:
    outcome = await pipeline.dispatch(
        await inbound(request, Action.DELETE, item_type=itemtype, item_id=item_id)
    )
    return to_response(outcome)


__all__ = ["router"]
