from __future__ import annotations

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse

from ..auth.certificates import CertificateInfo, certificate_from_headers
from ..config import CatalogueSettings
from ..models import StatusResponse
from ..pipeline.dispatch import DispatchPipeline
from ..pipeline.types import Action, Completed, InboundRequest, Outcome


def get_pipeline(request: Request) -> DispatchPipeline:
    return request.app.state.pipeline


def get_certificate(request: Request) -> CertificateInfo:
    settings: CatalogueSettings = request.app.state.settings
    return certificate_from_headers(
        request.headers,
        settings.cert_subject_header,
        settings.cert_verify_header,
        peer=request.client.host if request.client else None,
        trusted_proxies=settings.trusted_proxies,
    )


async def inbound(request: Request, action: Action, **params: str | None) -> InboundRequest:
    """Collect everything the dispatcher needs from the raw HTTP request."""

    body = await request.body() if action.takes_body else None
    return InboundRequest(
        action=action,
        body=body,
        query=request.url.query,
        authorization=request.headers.get("authorization"),
        skip_validation=request.headers.get("skip_validation"),
        certificate=get_certificate(request),
        **params,
    )


def to_response(outcome: Outcome) -> Response:
    if isinstance(outcome, Completed):
        if outcome.status_code == status.HTTP_204_NO_CONTENT or outcome.body is None:
            return Response(status_code=outcome.status_code)
        return JSONResponse(status_code=outcome.status_code, content=outcome.body)
    return JSONResponse(
        status_code=outcome.status_code,
        content=StatusResponse(status=outcome.message).model_dump(),
    )


__all__ = ["get_certificate", "get_pipeline", "inbound", "to_response"]
