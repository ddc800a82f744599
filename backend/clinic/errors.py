"""Exception hierarchy for the clinic backend."""


class ClinicError(Exception):
    """Base class for all clinic backend errors."""


class ConfigurationError(ClinicError):
    """A required collaborator or credential is not configured."""


class MissingOpenAIKeyError(ConfigurationError):
    """Raised when an OpenAI API key is not configured."""


class EmbeddingError(ClinicError):
    """The embedding provider failed after all retries."""


class SearchError(ClinicError):
    """A search query could not be answered."""


class DocumentTextError(ClinicError):
    """Extracted document text is empty, too short, or unreadable."""


class UnsupportedFileTypeError(DocumentTextError):
    """The uploaded file type cannot be converted to text."""


class KnowledgeEntryNotFoundError(ClinicError):
    """No knowledge entry exists with the requested id."""

    def __init__(self, entry_id: str) -> None:
        super().__init__(f"Knowledge entry not found: {entry_id}")
        self.entry_id = entry_id


class DuplicateKnowledgeEntryError(ClinicError):
    """A knowledge entry with the requested id already exists."""

    def __init__(self, entry_id: str) -> None:
        super().__init__(f"Knowledge entry already exists: {entry_id}")
        self.entry_id = entry_id
