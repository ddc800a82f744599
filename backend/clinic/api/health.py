"""Health check endpoint for infrastructure status."""

import asyncio
from typing import Literal

from pydantic import BaseModel

from backend.clinic.config import StorageBackend
from backend.clinic.errors import ConfigurationError
from backend.clinic.models.documents import IndexStats
from backend.clinic.services import ClinicServices


class HealthStatus(BaseModel):
    """Health check response."""

    status: Literal["ok", "down"]
    checks: dict[str, Literal["ok", "down"]]
    openai_configured: bool
    index: IndexStats


async def get_health(services: ClinicServices) -> HealthStatus:
    """
    Check health of core infrastructure components.

    Checks:
    - Storage: Attempts to PING Redis when it backs the stores; the
      in-memory backend is always ok
    - OpenAI: Reported as configured or not; never marks the service down

    Returns:
        HealthStatus with overall status, individual check results and index stats
    """
    checks: dict[str, Literal["ok", "down"]] = {}

    if services.settings.storage_backend == StorageBackend.redis:
        try:
            await asyncio.to_thread(services.redis_client.ping)
            checks["redis"] = "ok"
        except Exception:
            checks["redis"] = "down"
    else:
        checks["storage"] = "ok"

    try:
        services.embedder.check_configured()
        openai_configured = True
    except ConfigurationError:
        openai_configured = False

    # Overall status - down if any check is down
    overall_status: Literal["ok", "down"] = (
        "ok" if all(status == "ok" for status in checks.values()) else "down"
    )

    return HealthStatus(
        status=overall_status,
        checks=checks,
        openai_configured=openai_configured,
        index=services.index.get_stats(),
    )
