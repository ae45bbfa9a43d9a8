"""
Chat API Routes
Streams the course advisor's reply as Server-Sent Events.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from academy.dependencies import get_chat_service
from academy.errors import AcademyError, InternalError
from academy.infrastructure.observability.logging import get_logger
from academy.models.api.chat_request import ChatRequest
from academy.services.chat_service import ChatService

logger = get_logger(__name__)

router = APIRouter(prefix="/laila-chat", tags=["chat"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
}


@router.post("")
async def laila_chat(
    payload: ChatRequest,
    request: Request,
    service: ChatService = Depends(get_chat_service),
):
    """Forward the conversation and relay the token stream."""
    try:
        stream = await service.open_chat(
            [message.model_dump() for message in payload.messages],
            language=payload.language,
            user_name=payload.user_name,
        )
    except AcademyError as e:
        logger.warning("Chat request failed", reason=type(e).__name__, status_code=e.status_code)
        raise
    except Exception as e:
        logger.error("Unexpected chat error", error=str(e))
        raise InternalError("AI service error") from e

    return StreamingResponse(
        service.relay(stream, is_disconnected=request.is_disconnected),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
