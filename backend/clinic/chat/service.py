"""Chat completion with a composed system prompt."""

import asyncio
import logging
from collections.abc import AsyncIterator, Sequence
from typing import Literal, Protocol

from openai import AsyncOpenAI
from pydantic import BaseModel

from backend.clinic.config import KnowledgeMode, Settings, get_openai_api_key
from backend.clinic.errors import SearchError
from backend.clinic.knowledge.prompts import PromptStore
from backend.clinic.knowledge.store import KnowledgeStore
from backend.clinic.rag.composer import compose_retrieval_section, compose_system_prompt
from backend.clinic.rag.retriever import Retriever

logger = logging.getLogger(__name__)


class ChatMessage(BaseModel):
    """One turn of the conversation."""

    role: Literal["user", "assistant", "system"]
    content: str


class ChatProvider(Protocol):
    """Streaming chat completion model."""

    def check_configured(self) -> None:
        """Raise ConfigurationError if the provider cannot be called."""
        ...

    def stream(self, system_prompt: str, messages: Sequence[ChatMessage]) -> AsyncIterator[str]:
        """Yield text deltas of the assistant reply."""
        ...


class OpenAIChatProvider:
    """ChatProvider backed by OpenAI chat completions."""

    def __init__(self, settings: Settings, client: AsyncOpenAI | None = None) -> None:
        self.settings = settings
        self._client = client

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=get_openai_api_key(self.settings),
                timeout=self.settings.chat_timeout_s,
            )
        return self._client

    def check_configured(self) -> None:
        self._get_client()

    async def stream(
        self, system_prompt: str, messages: Sequence[ChatMessage]
    ) -> AsyncIterator[str]:
        client = self._get_client()
        response = await client.chat.completions.create(
            model=self.settings.openai_chat_model,
            messages=[
                {"role": "system", "content": system_prompt},
                *({"role": m.role, "content": m.content} for m in messages),
            ],
            temperature=self.settings.chat_temperature,
            max_tokens=self.settings.chat_max_tokens,
            stream=True,
        )
        async for chunk in response:
            if not chunk.choices:
                continue
            delta = chunk.choices[0].delta.content
            if delta:
                yield delta


class ChatService:
    """Builds the system prompt and streams replies.

    ``knowledge_mode`` decides what the prompt is built from: ``flat``
    injects every active knowledge entry, ``retrieval`` injects the chunks
    most similar to the latest user message, ``hybrid`` does both.
    """

    def __init__(
        self,
        prompts: PromptStore,
        knowledge: KnowledgeStore,
        retriever: Retriever,
        provider: ChatProvider,
        settings: Settings,
    ) -> None:
        self.prompts = prompts
        self.knowledge = knowledge
        self.retriever = retriever
        self.provider = provider
        self.settings = settings

    async def build_system_prompt(self, query: str | None) -> str:
        """Compose the system prompt for the configured knowledge mode.

        Raises:
            SearchError: In retrieval mode, if the query cannot be searched.
        """
        mode = self.settings.knowledge_mode
        # Store reads may hit Redis; keep them off the event loop
        prompt = (await asyncio.to_thread(self.prompts.get_active_prompt)).content

        if mode in (KnowledgeMode.flat, KnowledgeMode.hybrid):
            prompt = compose_system_prompt(prompt, self.knowledge.list_active())

        if mode in (KnowledgeMode.retrieval, KnowledgeMode.hybrid) and query and query.strip():
            try:
                hits = await self.retriever.search(query, self.settings.retrieval_top_k)
            except SearchError as e:
                if mode == KnowledgeMode.retrieval:
                    raise
                logger.warning("hybrid_retrieval_skipped", extra={"error": str(e)})
            else:
                prompt = compose_retrieval_section(prompt, hits)

        return prompt

    async def prepare(self, messages: Sequence[ChatMessage]) -> str:
        """Check configuration and build the system prompt for a conversation.

        Raises:
            ConfigurationError: If the chat provider is not configured.
            SearchError: In retrieval mode, if the query cannot be searched.
        """
        self.provider.check_configured()
        query = next((m.content for m in reversed(messages) if m.role == "user"), None)
        system_prompt = await self.build_system_prompt(query)
        logger.info(
            "chat_request",
            extra={
                "mode": self.settings.knowledge_mode.value,
                "messages": len(messages),
                "system_prompt_chars": len(system_prompt),
            },
        )
        return system_prompt

    async def stream(self, system_prompt: str, messages: Sequence[ChatMessage]) -> AsyncIterator[str]:
        async for delta in self.provider.stream(system_prompt, messages):
            yield delta

    async def stream_reply(self, messages: Sequence[ChatMessage]) -> AsyncIterator[str]:
        """Stream the assistant reply to a conversation."""
        system_prompt = await self.prepare(messages)
        async for delta in self.stream(system_prompt, messages):
            yield delta
