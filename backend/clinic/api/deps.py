"""FastAPI dependencies and error mapping shared by the routers."""

from fastapi import HTTPException, Request, status

from backend.clinic.errors import (
    ClinicError,
    ConfigurationError,
    DocumentTextError,
    DuplicateKnowledgeEntryError,
    KnowledgeEntryNotFoundError,
    SearchError,
)
from backend.clinic.services import ClinicServices


def get_services(request: Request) -> ClinicServices:
    """Dependency returning the services attached to the running app."""
    return request.app.state.services


def to_http_error(error: ClinicError) -> HTTPException:
    """Map a backend error onto the HTTP status the API reports it with."""
    if isinstance(error, ConfigurationError):
        code = status.HTTP_503_SERVICE_UNAVAILABLE
    elif isinstance(error, KnowledgeEntryNotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, DuplicateKnowledgeEntryError):
        code = status.HTTP_409_CONFLICT
    elif isinstance(error, DocumentTextError):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(error, SearchError):
        code = status.HTTP_502_BAD_GATEWAY
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=str(error))
