from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from ..pipeline.dispatch import DispatchPipeline
from ..pipeline.types import Action
from .common import get_pipeline, inbound, to_response

# must be included ahead of the item mutation routes, whose paths would shadow these
router = APIRouter(tags=["schemas"])


@router.post("/create/catalogue/schema")
async def write_schema(request: Request, pipeline: DispatchPipeline = Depends(get_pipeline)) -> Response:
    outcome = await pipeline.dispatch(await inbound(request, Action.WRITE_SCHEMA))
    return to_response(outcome)


@router.get("/get/catalogue/schema/{schema_id}")
async def read_schema(
    schema_id: str,
    request: Request,
    pipeline: DispatchPipeline = Depends(get_pipeline),
) -> Response:
    outcome = await pipeline.dispatch(await inbound(request, Action.READ_SCHEMA, item_id=schema_id))
    return to_response(outcome)


@router.delete("/remove/catalogue/schema/{schema_id}")
async def delete_schema(
    schema_id: str,
    request: Request,
    pipeline: DispatchPipeline = Depends(get_pipeline),
) -> Response:
    outcome = await pipeline.dispatch(await inbound(request, Action.DELETE_SCHEMA, item_id=schema_id))
    return to_response(outcome)


__all__ = ["router"]
