"""Knowledge base entry models."""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator


class KnowledgeSource(str, Enum):
    """How a knowledge entry entered the store."""

    manual = "manual"
    upload = "upload"
    drive = "drive"


def _clean_tags(value: list[str]) -> list[str]:
    """Strip tags and drop blanks and duplicates, keeping first-seen order."""
    seen: set[str] = set()
    tags = []
    for tag in value:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.add(tag)
            tags.append(tag)
    return tags


class KnowledgeEntry(BaseModel):
    """A categorized piece of clinic knowledge injected into the system prompt."""

    id: str = Field(description="Unique entry identifier")
    category: str = Field(description="Open category such as Treatments or Pricing")
    title: str = Field(description="Short title")
    content: str = Field(description="Free text content")
    tags: list[str] = Field(default_factory=list, description="Search tags")
    is_active: bool = Field(default=True, description="Included in prompt composition")
    source: KnowledgeSource = Field(
        default=KnowledgeSource.manual, description="Origin of the entry"
    )
    file_name: str | None = Field(default=None, description="Originating file name")
    origin_file_id: str | None = Field(
        default=None, description="Identifier of the file in its source system"
    )
    vector_document_id: str | None = Field(
        default=None, description="Vector document built from the same content"
    )
    chunk_count: int | None = Field(
        default=None, description="Chunks indexed for the referenced vector document"
    )
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class KnowledgeEntryCreate(BaseModel):
    """Payload for creating a knowledge entry."""

    id: str | None = Field(default=None, description="Explicit id; generated if absent")
    category: str = Field(min_length=1)
    title: str = Field(min_length=1)
    content: str = Field(min_length=1)
    tags: list[str] = Field(default_factory=list)
    is_active: bool = True
    source: KnowledgeSource = KnowledgeSource.manual
    file_name: str | None = None
    origin_file_id: str | None = None
    vector_document_id: str | None = None
    chunk_count: int | None = None

    @field_validator("category", "title", mode="after")
    @classmethod
    def _strip(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("tags", mode="after")
    @classmethod
    def _tags(cls, value: list[str]) -> list[str]:
        return _clean_tags(value)


class KnowledgeEntryUpdate(BaseModel):
    """Partial update; only fields that are set are merged."""

    category: str | None = Field(default=None, min_length=1)
    title: str | None = Field(default=None, min_length=1)
    content: str | None = Field(default=None, min_length=1)
    tags: list[str] | None = None
    is_active: bool | None = None
    file_name: str | None = None

    @field_validator("category", "title", "content", "tags", "is_active", mode="before")
    @classmethod
    def _not_null(cls, value: object) -> object:
        # Runs only for fields sent explicitly; omitted fields stay unset
        if value is None:
            raise ValueError("must not be null")
        return value

    @field_validator("category", "title", mode="after")
    @classmethod
    def _strip(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("tags", mode="after")
    @classmethod
    def _tags(cls, value: list[str] | None) -> list[str] | None:
        return None if value is None else _clean_tags(value)


class KnowledgeFilter(BaseModel):
    """Listing filter; unset fields match everything."""

    category: str | None = None
    is_active: bool | None = None

    def matches(self, entry: KnowledgeEntry) -> bool:
        """Return True if the entry passes every set criterion."""
        if self.category is not None and entry.category.lower() != self.category.lower():
            return False
        if self.is_active is not None and entry.is_active != self.is_active:
            return False
        return True
