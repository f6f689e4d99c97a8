"""Journal prompt API: reads, telemetry and generation triggers."""

from typing import Any

from fastapi import APIRouter, HTTPException, Query

from app.core import prompt_triggers
from app.core.config import get_settings
from app.core.logging import get_logger
from app.core.prompt_errors import NotFoundError
from app.core.schemas_prompts import (
    ActivePromptGrid,
    CleanupResponse,
    DraftContentRequest,
    PromptType,
    RegeneratePromptRequest,
    TriggerResponse,
)
from app.db.prompts import cleanup_old_prompts

logger = get_logger(__name__)

router = APIRouter()


@router.get("/users/{user_id}/prompts", response_model=ActivePromptGrid)
async def list_active_prompts(user_id: str):
    """All active prompts for a user, grouped by type and category."""
    try:
        return prompt_triggers.list_active_prompts(user_id)
    except Exception as e:
        logger.exception(f"Failed to list prompts for user {user_id}")
        raise HTTPException(status_code=500, detail="Failed to list prompts") from e


@router.get("/users/{user_id}/prompts/{prompt_type}")
async def list_prompts_by_type(user_id: str, prompt_type: PromptType) -> list[dict[str, Any]]:
    """Active prompts of one type, any category."""
    try:
        return prompt_triggers.list_prompts_by_type(user_id, prompt_type)
    except Exception as e:
        logger.exception(f"Failed to list {prompt_type.value} prompts for user {user_id}")
        raise HTTPException(status_code=500, detail="Failed to list prompts") from e


@router.post("/users/{user_id}/onboarding-complete", response_model=TriggerResponse, status_code=202)
async def onboarding_complete(user_id: str) -> TriggerResponse:
    """Schedule static prompt generation after onboarding."""
    prompt_triggers.on_onboarding_complete(user_id)
    return TriggerResponse(detail="static prompt generation scheduled")


@router.post("/users/{user_id}/entries/created", response_model=TriggerResponse, status_code=202)
async def entry_created(user_id: str) -> TriggerResponse:
    """Check whether a new entry unlocks history-based prompts."""
    try:
        triggered = prompt_triggers.on_entry_created(user_id)
    except Exception as e:
        logger.exception(f"Entry trigger failed for user {user_id}")
        raise HTTPException(status_code=500, detail="Failed to check entry count") from e

    if not triggered:
        return TriggerResponse(status="ignored", triggered=False)
    return TriggerResponse(detail="history prompt generation scheduled")


@router.post("/users/{user_id}/prompts/regenerate", response_model=TriggerResponse, status_code=202)
async def regenerate_prompts(user_id: str, request: RegeneratePromptRequest) -> TriggerResponse:
    """Schedule regeneration of one type/category."""
    try:
        prompt_triggers.regenerate(user_id, request.prompt_type, request.category)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    return TriggerResponse(
        detail=f"{request.category.value} {request.prompt_type.value} regeneration scheduled"
    )


@router.post("/users/{user_id}/prompts/context", response_model=TriggerResponse, status_code=202)
async def draft_content_changed(user_id: str, request: DraftContentRequest) -> TriggerResponse:
    """Feed live draft content to the debounced context-aware trigger.

    Sending panel_open=false ends the editor session.
    """
    prompt_triggers.on_draft_content_changed(
        user_id,
        request.prompt_type,
        request.draft_text,
        session_id=request.session_id,
        panel_open=request.panel_open,
    )
    return TriggerResponse(status="debounced")


@router.post("/prompts/{prompt_id}/shown")
async def prompt_shown(prompt_id: str):
    """Record an impression. Telemetry failures never reach the client."""
    try:
        prompt_triggers.record_shown(prompt_id)
    except Exception:
        logger.exception(f"Failed to record impression for prompt {prompt_id}")
    return {"ok": True}


@router.post("/prompts/{prompt_id}/used")
async def prompt_used(prompt_id: str):
    """Record that the user started writing from a prompt."""
    try:
        prompt_triggers.record_used(prompt_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return {"ok": True}


@router.post("/admin/prompts/cleanup", response_model=CleanupResponse)
async def cleanup_prompts(older_than_days: int | None = Query(default=None, ge=0)) -> CleanupResponse:
    """Hard-delete inactive prompts older than the retention window."""
    days = get_settings().PROMPT_RETENTION_DAYS if older_than_days is None else older_than_days
    return CleanupResponse(deleted=cleanup_old_prompts(days))
