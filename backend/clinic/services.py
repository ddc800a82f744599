"""Per-application service container."""

import logging
from dataclasses import dataclass

import redis

from backend.clinic.chat.service import ChatProvider, ChatService, OpenAIChatProvider
from backend.clinic.config import Settings, StorageBackend
from backend.clinic.knowledge.ingest import DocumentIngestor
from backend.clinic.knowledge.prompts import PromptStore
from backend.clinic.knowledge.store import KnowledgeStore
from backend.clinic.rag.embedder import Embedder, EmbeddingProvider, OpenAIEmbeddingProvider
from backend.clinic.rag.retriever import Retriever
from backend.clinic.rag.tokens import TiktokenCounter, TokenCounter
from backend.clinic.rag.vector_index import VectorIndex
from backend.clinic.storage.core import build_store, create_redis_client

logger = logging.getLogger(__name__)


@dataclass
class ClinicServices:
    """Stores, index and services owned by one application instance."""

    settings: Settings
    knowledge: KnowledgeStore
    prompts: PromptStore
    index: VectorIndex
    embedder: Embedder
    retriever: Retriever
    ingestor: DocumentIngestor
    chat: ChatService
    redis_client: redis.Redis | None = None

    @classmethod
    def build(
        cls,
        settings: Settings,
        embedding_provider: EmbeddingProvider | None = None,
        chat_provider: ChatProvider | None = None,
        counter: TokenCounter | None = None,
        redis_client: redis.Redis | None = None,
    ) -> "ClinicServices":
        """Wire up every service from settings.

        Providers and the token counter can be swapped, e.g. for fakes in
        tests; OpenAI and tiktoken are used otherwise.
        """
        if settings.storage_backend == StorageBackend.redis and redis_client is None:
            redis_client = create_redis_client(settings)

        embedder = Embedder.from_settings(
            embedding_provider or OpenAIEmbeddingProvider(settings), settings
        )
        index = VectorIndex(
            embedder,
            counter or TiktokenCounter(settings.tokenizer_encoding),
            store=build_store(settings, "documents", redis_client),
            max_tokens=settings.chunk_max_tokens,
        )
        knowledge = KnowledgeStore(build_store(settings, "knowledge", redis_client))
        prompts = PromptStore(
            active_store=build_store(settings, "prompt", redis_client),
            history_store=build_store(settings, "prompts", redis_client),
        )
        retriever = Retriever(index, embedder, default_top_k=settings.search_top_k)
        chat = ChatService(
            prompts,
            knowledge,
            retriever,
            chat_provider or OpenAIChatProvider(settings),
            settings,
        )
        logger.info(
            "services_built",
            extra={
                "storage_backend": settings.storage_backend.value,
                "knowledge_mode": settings.knowledge_mode.value,
            },
        )
        return cls(
            settings=settings,
            knowledge=knowledge,
            prompts=prompts,
            index=index,
            embedder=embedder,
            retriever=retriever,
            ingestor=DocumentIngestor(index, knowledge, settings),
            chat=chat,
            redis_client=redis_client,
        )
