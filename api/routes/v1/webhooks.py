"""Inbound completion callback from the n8n generation workflow.

Not authenticated with a user token: the workflow is a system caller. When
a callback secret is configured, it must be sent in X-Callback-Secret.

Responses:
- 200: applied, duplicate (already up to date) or conflict (dropped)
- 202: generation id unknown
- 400: malformed payload (including a missing generation_id)
- 401: callback secret missing or wrong
"""

import hmac
import json

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from api.exceptions import AuthenticationError
from api.routes.v1.dependencies import ServicesDep
from newsletter.logging import bind_context
from newsletter.models import CallbackAck, CallbackResult

router = APIRouter(prefix="/v1/webhooks", tags=["webhooks"])

CALLBACK_SECRET_HEADER = "X-Callback-Secret"

ACK_STATUS_CODES = {
    CallbackResult.APPLIED: 200,
    CallbackResult.DUPLICATE: 200,
    CallbackResult.CONFLICT: 200,
    CallbackResult.UNKNOWN_GENERATION: 202,
    CallbackResult.MALFORMED: 400,
}


def _verify_secret(request: Request) -> None:
    expected = request.app.state.callback_secret
    if not expected:
        return
    provided = request.headers.get(CALLBACK_SECRET_HEADER, "")
    if not hmac.compare_digest(provided.encode(), expected.encode()):
        raise AuthenticationError("Invalid callback secret")


def _ack_response(ack: CallbackAck) -> JSONResponse:
    return JSONResponse(
        status_code=ACK_STATUS_CODES[ack.result],
        content={
            "success": ack.accepted,
            "result": ack.result.value,
            "message": ack.message,
            "generation_id": ack.generation_id,
        },
    )


@router.post("/n8n")
async def n8n_completion_callback(request: Request, services: ServicesDep):
    """Apply a generation completion notification.

    Safe to deliver more than once; a status that contradicts an already
    finished generation is logged and ignored.
    """
    _verify_secret(request)

    try:
        payload = json.loads(await request.body())
    except ValueError:
        payload = None
    if not isinstance(payload, dict):
        ack = CallbackAck(result=CallbackResult.MALFORMED, message="Body must be a JSON object")
        return _ack_response(ack)

    if payload.get("generation_id"):
        bind_context(generation_id=payload["generation_id"])

    ack = await run_in_threadpool(services.orchestrator.handle_completion_callback, payload)
    return _ack_response(ack)
