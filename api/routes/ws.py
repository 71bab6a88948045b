"""WebSocket route streaming a generation's status until it finishes.

Messages sent to the client:
- {"type": "generation", "generation": {...}} on every poll
- {"type": "timeout", ...} when watching stops before a terminal status
- {"type": "error", "message": ...} when the generation disappears

The socket closes after a terminal status, a timeout or an error. Closing
the socket stops the polling; the generation itself is unaffected.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from api.auth.dependencies import user_id_from_token
from newsletter.config import POLL_INTERVAL_MS, POLL_MAX_ATTEMPTS
from newsletter.db.models import Generation, GenerationRead
from newsletter.generation.errors import GenerationNotFoundError, PollTimeoutError
from newsletter.generation.polling import watch_until_terminal
from newsletter.logging import get_logger

router = APIRouter()
logger = get_logger(__name__)

# Close codes
UNAUTHORIZED = 4001
NOT_FOUND = 4004


def _extract_token(websocket: WebSocket, token_param: Optional[str]) -> Optional[str]:
    """Extract JWT token from query param or Authorization header."""
    if token_param:
        return token_param

    auth_header = websocket.headers.get("authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:]

    return None


def _generation_message(generation: Generation) -> dict:
    return {
        "type": "generation",
        "generation": GenerationRead.model_validate(generation).model_dump(mode="json"),
    }


@router.websocket("/generations/{generation_id}")
async def generation_stream(
    websocket: WebSocket,
    generation_id: UUID,
    token: Optional[str] = Query(None),
    interval_ms: int = Query(POLL_INTERVAL_MS, ge=10, le=60000),
    max_attempts: int = Query(POLL_MAX_ATTEMPTS, ge=1, le=1000),
):
    """Stream a generation's record until it reaches a terminal status.

    Authentication:
        - Query param: ?token=<jwt>
        - Header: Authorization: Bearer <jwt>
    """
    user_id = user_id_from_token(_extract_token(websocket, token))
    if user_id is None:
        await websocket.close(code=UNAUTHORIZED, reason="Authentication required")
        return

    generations = websocket.app.state.services.generations
    if generations.get_owned(generation_id, user_id) is None:
        await websocket.close(code=NOT_FOUND, reason="Generation not found")
        return

    await websocket.accept()

    async def send_update(generation: Generation) -> None:
        await websocket.send_json(_generation_message(generation))

    try:
        await watch_until_terminal(
            generations.get,
            generation_id,
            send_update,
            interval_ms=interval_ms,
            max_attempts=max_attempts,
        )
    except PollTimeoutError as e:
        await websocket.send_json(
            {
                "type": "timeout",
                "message": "Still running; stopped watching",
                "attempts": e.attempts,
                "last_status": e.last_status,
            }
        )
    except GenerationNotFoundError:
        await websocket.send_json({"type": "error", "message": "Generation not found"})
    except WebSocketDisconnect:
        logger.debug("generation_stream_disconnected", generation_id=str(generation_id))
        return

    await websocket.close()
