"""FastAPI application factory."""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from backend.clinic.api.chat import router as chat_router
from backend.clinic.api.health import get_health
from backend.clinic.api.knowledge import router as knowledge_router
from backend.clinic.api.prompts import router as prompts_router
from backend.clinic.api.rag import router as rag_router
from backend.clinic.config import Settings, get_settings
from backend.clinic.services import ClinicServices

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    """Configure root logging once; later calls only adjust the level."""
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    root.setLevel(level)


def create_app(
    settings: Settings | None = None,
    services: ClinicServices | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use; loaded from the environment if omitted.
        services: Prebuilt services, e.g. with fake providers in tests.

    Returns:
        Configured FastAPI application
    """
    settings = settings or (services.settings if services else get_settings())
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Clinic Assistant API",
        description="Clinic assistant backend: knowledge base, prompts and RAG search",
        version="0.1.0",
    )
    app.state.services = services or ClinicServices.build(settings)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.ui_origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check endpoint
    @app.get("/healthz")
    async def healthz(request: Request) -> dict[str, Any]:
        """Health check endpoint."""
        result = await get_health(request.app.state.services)
        return result.model_dump()

    # Include routers
    app.include_router(chat_router)
    app.include_router(knowledge_router)
    app.include_router(prompts_router)
    app.include_router(rag_router)

    logger.info(
        "app_created",
        extra={
            "storage_backend": settings.storage_backend.value,
            "knowledge_mode": settings.knowledge_mode.value,
        },
    )
    return app


# Create app instance for uvicorn
app = create_app()
