"""System prompt API endpoints."""

from fastapi import APIRouter, Depends, status

from backend.clinic.api.deps import get_services
from backend.clinic.models.prompt import ActivePrompt, PromptActivate, PromptSave
from backend.clinic.services import ClinicServices

router = APIRouter(prefix="/prompts", tags=["prompts"])


@router.get("", response_model=list[ActivePrompt])
def list_prompts(services: ClinicServices = Depends(get_services)) -> list[ActivePrompt]:
    """Saved prompts, newest first."""
    return services.prompts.list_prompts()


@router.post("", response_model=ActivePrompt, status_code=status.HTTP_201_CREATED)
def save_prompt(
    payload: PromptSave,
    services: ClinicServices = Depends(get_services),
) -> ActivePrompt:
    return services.prompts.save_prompt(
        payload.name, payload.content, is_active=payload.is_active, version=payload.version
    )


@router.get("/active", response_model=ActivePrompt)
def get_active_prompt(services: ClinicServices = Depends(get_services)) -> ActivePrompt:
    """The prompt in force, or the built-in default."""
    return services.prompts.get_active_prompt()


@router.put("/active", response_model=ActivePrompt)
def set_active_prompt(
    payload: PromptActivate,
    services: ClinicServices = Depends(get_services),
) -> ActivePrompt:
    """Replace the active prompt; the last write wins."""
    return services.prompts.set_active_prompt(
        payload.content, name=payload.name, prompt_id=payload.id
    )
