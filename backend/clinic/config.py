"""Application configuration and settings."""

from enum import Enum
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from backend.clinic.errors import MissingOpenAIKeyError

_BASE_DIR = Path(__file__).resolve().parents[2]
_ENV_FILE = _BASE_DIR / ".env"


class KnowledgeMode(str, Enum):
    """What the chat system prompt is built from."""

    flat = "flat"
    retrieval = "retrieval"
    hybrid = "hybrid"


class StorageBackend(str, Enum):
    """Backing store for knowledge entries, prompts and vector documents."""

    memory = "memory"
    redis = "redis"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE, env_file_encoding="utf-8", extra="ignore"
    )

    # Storage
    storage_backend: StorageBackend = Field(
        default=StorageBackend.memory,
        description="Where stores keep their state: memory or redis",
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL",
    )
    redis_namespace: str = Field(
        default="clinic", description="Key prefix for Redis hashes"
    )

    # CORS
    ui_origin: str = Field(
        default="http://localhost:3000",
        description="Allowed CORS origin for the admin and chat UI",
    )

    # External APIs
    openai_api_key: str = Field(
        default="dummy-openai-api-key-for-tests",
        description="OpenAI API key for chat and embeddings",
    )
    openai_chat_model: str = Field(
        default="gpt-4-turbo", description="OpenAI model for chat"
    )
    chat_temperature: float = Field(default=0.7, description="Chat sampling temperature")
    chat_max_tokens: int = Field(default=1000, description="Max tokens per chat reply")
    chat_timeout_s: float = Field(
        default=60.0, description="Timeout for a chat completion request"
    )

    # Embeddings
    embedding_model: str = Field(
        default="text-embedding-ada-002", description="OpenAI embedding model"
    )
    embedding_dimensions: int = Field(
        default=1536, description="Dimensionality of embedding vectors"
    )
    embedding_timeout_s: float = Field(
        default=10.0, description="Timeout for a single embedding call"
    )
    embedding_max_retries: int = Field(
        default=2, description="Retries after the first failed embedding call"
    )
    tokenizer_encoding: str = Field(
        default="cl100k_base", description="tiktoken encoding used for token counts"
    )

    # Retry Configuration
    retry_jitter_min_ms: int = Field(
        default=200, description="Minimum retry jitter in milliseconds"
    )
    retry_jitter_max_ms: int = Field(
        default=500, description="Maximum retry jitter in milliseconds"
    )

    # Chunking and retrieval
    chunk_max_tokens: int = Field(
        default=500, description="Maximum tokens per chunk", gt=0
    )
    search_top_k: int = Field(
        default=5, description="Default number of search results", gt=0
    )
    retrieval_top_k: int = Field(
        default=5,
        description="Excerpts injected into the system prompt in retrieval mode",
        gt=0,
    )
    knowledge_mode: KnowledgeMode = Field(
        default=KnowledgeMode.flat,
        description="System prompt source: flat entries, retrieval, or both",
    )

    # Ingestion
    min_document_chars: int = Field(
        default=50, description="Minimum extracted characters for a document"
    )
    max_upload_sections: int = Field(
        default=20, description="Maximum knowledge entries created per upload"
    )
    upload_section_chars: int = Field(
        default=300, description="Target characters per sentence-grouped section"
    )
    knowledge_preview_chars: int = Field(
        default=500, description="Content preview length for ingested documents"
    )

    # PDF
    enable_pdf_ocr: bool = Field(
        default=False, description="OCR low-text PDF pages and embedded images"
    )
    ocr_min_text_threshold: int = Field(
        default=50, description="Characters below which a PDF page is OCR'd"
    )
    ocr_dpi_scale: float = Field(default=2.0, description="Render scale for OCR")

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")

    @field_validator("log_level", mode="after")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        """Accept log levels in any case."""
        return value.strip().upper()


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get application settings singleton."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def get_openai_api_key(settings: Settings | None = None) -> str:
    """Return a validated OpenAI API key or raise a helpful error."""
    settings = settings or get_settings()
    api_key = (settings.openai_api_key or "").strip()
    if not api_key or api_key.startswith("dummy-"):
        raise MissingOpenAIKeyError(
            "OpenAI API key is not configured. "
            "Set OPENAI_API_KEY in your environment (.env) before using chat "
            "or document search."
        )
    return api_key
