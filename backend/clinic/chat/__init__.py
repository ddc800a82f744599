"""Chat completion using the composed clinic system prompt."""

from backend.clinic.chat.service import (
    ChatMessage,
    ChatProvider,
    ChatService,
    OpenAIChatProvider,
)

__all__ = ["ChatMessage", "ChatProvider", "ChatService", "OpenAIChatProvider"]
