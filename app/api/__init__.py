"""API router for v1 endpoints."""

from fastapi import APIRouter

from app.api import prompts

router = APIRouter()

# Journal prompt reads, telemetry and generation triggers
router.include_router(prompts.router, tags=["prompts"])
