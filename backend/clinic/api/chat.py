"""Chat API endpoint."""

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from backend.clinic.api.deps import get_services, to_http_error
from backend.clinic.chat.service import ChatMessage
from backend.clinic.errors import ClinicError
from backend.clinic.services import ClinicServices

router = APIRouter(tags=["chat"])


class ChatRequest(BaseModel):
    messages: list[ChatMessage] = Field(min_length=1)


@router.post("/chat")
async def chat(
    payload: ChatRequest,
    services: ClinicServices = Depends(get_services),
) -> StreamingResponse:
    """Stream the assistant reply as plain text.

    Configuration and retrieval problems are reported before streaming
    starts, so they surface as proper status codes.
    """
    if not any(m.role == "user" for m in payload.messages):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="At least one user message is required",
        )

    try:
        system_prompt = await services.chat.prepare(payload.messages)
    except ClinicError as e:
        raise to_http_error(e) from e

    return StreamingResponse(
        services.chat.stream(system_prompt, payload.messages),
        media_type="text/plain; charset=utf-8",
    )
