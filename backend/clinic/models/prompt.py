"""System prompt models."""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field


class PromptSource(str, Enum):
    """Whether a prompt is the built-in default or was stored by an admin."""

    default = "default"
    stored = "stored"


class ActivePrompt(BaseModel):
    """A system prompt version."""

    id: str
    name: str
    content: str
    version: int = 1
    is_active: bool = True
    source: PromptSource = PromptSource.stored
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class PromptSave(BaseModel):
    """Payload for saving a prompt to history."""

    name: str = Field(min_length=1)
    content: str = Field(min_length=1)
    is_active: bool = False
    version: int | None = None


class PromptActivate(BaseModel):
    """Payload for replacing the active prompt."""

    content: str = Field(min_length=1)
    name: str | None = None
    id: str | None = None
