"""Protocol endpoint: admission, JSON-RPC dispatch and usage accounting."""

from __future__ import annotations

import logging
import math
import traceback
import uuid

from fastapi import APIRouter, BackgroundTasks, Request, Response, status
from fastapi.responses import JSONResponse

from catalog_mcp.api.dependencies import (
    AdmissionPipelineDep,
    DispatcherDep,
    UsageRecorderDep,
)
from catalog_mcp.core.settings import settings
from catalog_mcp.rpc.dispatcher import INTERNAL_ERROR, error_payload
from catalog_mcp.services.admission import (
    Admitted,
    CallContext,
    RateLimited,
    Rejection,
    SessionEnded,
)
from catalog_mcp.services.usage import UsageEvent

logger = logging.getLogger(__name__)

router = APIRouter(tags=["mcp"])


def _rejection_response(outcome: Rejection) -> JSONResponse:
    headers = outcome.headers() if isinstance(outcome, RateLimited) else None
    return JSONResponse(status_code=outcome.status_code, content=outcome.body(), headers=headers)


def _internal_error(request_id: str, exc: Exception) -> JSONResponse:
    data: dict[str, object] = {"request_id": request_id}
    if not settings.is_production:
        data["stack"] = "".join(traceback.format_exception(exc))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_payload(None, INTERNAL_ERROR, "Internal Server Error", data),
        headers={"X-Request-Id": request_id},
    )


def _success_headers(context: CallContext, limit: int) -> dict[str, str]:
    decision = context.rate_limit
    return {
        "Mcp-Session-Id": context.session_id,
        "X-Request-Id": context.request_id,
        "X-Processing-Time": f"{context.elapsed_ms()}ms",
        "X-RateLimit-Limit": str(limit),
        "X-RateLimit-Remaining": str(max(0, decision.remaining)),
        "X-RateLimit-Reset": str(math.ceil(decision.reset_in)),
    }


@router.post("/mcp")
@router.post("/", include_in_schema=False)
async def handle_mcp(
    request: Request,
    background_tasks: BackgroundTasks,
    pipeline: AdmissionPipelineDep,
    dispatcher: DispatcherDep,
    recorder: UsageRecorderDep,
) -> Response:
    """Admit a JSON-RPC call and dispatch it.

    Rejected calls get a plain JSON error body with the status of the stage
    that rejected them. Admitted calls always carry ``Mcp-Session-Id`` and
    the rate-limit headers, and are recorded in the usage log after the
    response is sent.
    """
    body = await request.body()
    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())

    try:
        outcome = pipeline.admit(request.headers, body)
    except Exception as exc:
        logger.exception("Admission failed: %s", request_id)
        return _internal_error(request_id, exc)

    if not isinstance(outcome, Admitted):
        return _rejection_response(outcome)

    context = outcome.context
    result = dispatcher.handle(body, context.request_id)
    duration_ms = context.elapsed_ms()

    logger.info(
        "Response %s: status=%s method=%s duration=%sms email=%s",
        context.request_id,
        result.status_code,
        result.method,
        duration_ms,
        context.account.email,
    )

    background_tasks.add_task(
        recorder.record,
        UsageEvent(
            credential_id=context.credential_id,
            email=context.account.email,
            method=result.method or "unknown",
            tool_name=result.tool_name,
            status_code=result.status_code,
            duration_ms=duration_ms,
        ),
    )

    return JSONResponse(
        status_code=result.status_code,
        content=result.payload,
        headers=_success_headers(context, pipeline.rate_limiter.minute_limit),
    )


@router.delete("/mcp")
async def end_session(request: Request, pipeline: AdmissionPipelineDep) -> Response:
    """End the session named by ``Mcp-Session-Id``."""
    outcome = pipeline.end_session(request.headers)
    if isinstance(outcome, SessionEnded):
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return _rejection_response(outcome)