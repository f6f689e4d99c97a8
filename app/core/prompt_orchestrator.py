"""Prompt generation orchestrator.

Three workflows share one generate-and-swap skeleton:

    build messages -> gateway call -> decode -> swap in new prompts
                                   \\-> on failure: fallback or leave state as is

- Static (onboarding): profile only, N prompts per type, template fallback
- Static regeneration: on demand, new prompts replace old only after success
- History-based: needs enough active entries, analysis tool, no fallback
- Context-aware: tail of the live draft, no fallback

Every workflow catches its own errors and returns a WorkflowOutcome; nothing
propagates to the trigger that scheduled it.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Callable, Optional

from app.chains import prompt_gateway
from app.chains.journal_prompt_instructions import (
    build_context_messages,
    build_history_messages,
    build_static_messages,
)
from app.core.config import get_settings
from app.core.entry_analysis import ANALYZE_ENTRIES_TOOL, make_analysis_tool_handler
from app.core.logging import get_logger, log_with_context
from app.core.prompt_errors import NotFoundError, OutputValidationError
from app.core.prompt_parsing import DecodeResult, decode_prompt_list, decode_single_prompt
from app.core.prompt_templates import get_template_prompts
from app.core.schemas_prompts import (
    PROMPT_TYPES,
    TEMPLATE_MODEL,
    JournalProfile,
    PromptCategory,
    PromptMetadata,
    PromptType,
)
from app.db import entries as entries_db
from app.db import profiles as profiles_db
from app.db import prompts as prompts_db

logger = get_logger(__name__)


class WorkflowOutcome(str, Enum):
    CREATED = "created"
    FALLBACK = "fallback"
    SKIPPED = "skipped"
    FAILED = "failed"


class SwapMode(str, Enum):
    """How new prompts replace the active ones of their triple.

    - REPLACE_TRIPLE: deactivate everything active, then create
    - REPLACE_AFTER_CREATE: create first, then deactivate exactly the ids
      that were active before the workflow started
    """
    REPLACE_TRIPLE = "replace_triple"
    REPLACE_AFTER_CREATE = "replace_after_create"


@dataclass
class WorkflowPlan:
    """Parameters of one generate-and-swap run."""

    workflow: str
    user_id: str
    prompt_type: PromptType
    category: PromptCategory
    build_messages: Callable[[], list[dict]]
    decode: Callable[[str], DecodeResult[list[str]]]
    tools: Optional[list[dict]] = None
    tool_handler: Optional[Callable] = None
    fallback: Optional[Callable[[], list[str]]] = None
    swap: SwapMode = SwapMode.REPLACE_TRIPLE


@dataclass
class _TripleLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


# One lock per (user, type, category): version read, deactivate and create
# for a triple never interleave within this process. Entries are removed
# once no run holds or waits on them.
_triple_locks: dict[tuple[str, str, str], _TripleLock] = {}


@asynccontextmanager
async def _triple_lock(user_id: str, prompt_type: PromptType, category: PromptCategory):
    key = (str(user_id), prompt_type.value, category.value)
    entry = _triple_locks.setdefault(key, _TripleLock())
    entry.users += 1
    try:
        async with entry.lock:
            yield
    finally:
        entry.users -= 1
        if entry.users == 0 and _triple_locks.get(key) is entry:
            del _triple_locks[key]


def _decode_one(text: str) -> DecodeResult[list[str]]:
    result = decode_single_prompt(text)
    if not result.ok:
        return DecodeResult.failure(result.error or "empty prompt")
    return DecodeResult.success([result.value])


def _next_version(plan: WorkflowPlan) -> int:
    return prompts_db.get_latest_version(plan.user_id, plan.prompt_type, plan.category) + 1


def _store_prompts(plan: WorkflowPlan, texts: list[str], model: str, tokens_used: int, version: int) -> list[str]:
    """Swap the triple's active prompts for `texts`. Returns new ids.

    If a create fails, the rows already created by this call are
    deactivated before the error propagates.
    """
    metadata = PromptMetadata(
        model=model,
        tokens_used=tokens_used,
        generated_at=datetime.now(UTC),
        version=version,
    )

    previous_ids: list[str] = []
    if plan.swap == SwapMode.REPLACE_AFTER_CREATE:
        previous_ids = prompts_db.list_active_prompt_ids(plan.user_id, plan.prompt_type, plan.category)
    else:
        prompts_db.deactivate_prompts(plan.user_id, plan.prompt_type, plan.category)

    new_ids: list[str] = []
    try:
        for text in texts:
            new_ids.append(prompts_db.create_prompt(plan.user_id, plan.prompt_type, plan.category, text, metadata))
    except Exception:
        if new_ids:
            logger.warning(f"Rolling back {len(new_ids)} partially stored prompts for {plan.user_id}")
            prompts_db.deactivate_prompt_ids(new_ids)
        raise

    if previous_ids:
        prompts_db.deactivate_prompt_ids(previous_ids)

    return new_ids


async def generate_and_swap(plan: WorkflowPlan) -> WorkflowOutcome:
    """
    Run one workflow plan inside its error boundary.

    Args:
        plan: Workflow parameters

    Returns:
        WorkflowOutcome describing which path was taken
    """
    context = {
        "user_id": plan.user_id,
        "workflow": plan.workflow,
        "prompt_type": plan.prompt_type.value,
        "category": plan.category.value,
    }

    version: Optional[int] = None
    async with _triple_lock(plan.user_id, plan.prompt_type, plan.category):
        try:
            result = await prompt_gateway.generate_text(
                plan.build_messages(),
                tools=plan.tools,
                tool_handler=plan.tool_handler,
                workflow=plan.workflow,
                user_id=plan.user_id,
                prompt_type=plan.prompt_type.value,
            )
            decoded = plan.decode(result.text)
            if not decoded.ok:
                raise OutputValidationError(f"Could not decode generator output: {decoded.error}")

            version = _next_version(plan)
            ids = _store_prompts(plan, decoded.value, result.model, result.tokens_used, version)
            log_with_context(logger, logging.INFO, f"Created {len(ids)} prompts", **context)
            return WorkflowOutcome.CREATED

        except Exception as e:
            if plan.fallback is None:
                log_with_context(
                    logger, logging.ERROR, f"Generation failed, keeping current prompts: {e}", **context
                )
                return WorkflowOutcome.FAILED

            log_with_context(logger, logging.WARNING, f"Generation failed, using templates: {e}", **context)

        try:
            # A rolled-back attempt gives its version to the templates
            if version is None:
                version = _next_version(plan)
            ids = _store_prompts(plan, plan.fallback(), TEMPLATE_MODEL, 0, version)
        except Exception:
            logger.exception(f"Template fallback failed for {plan.prompt_type.value} ({plan.user_id})")
            return WorkflowOutcome.FAILED

        log_with_context(logger, logging.INFO, f"Stored {len(ids)} template prompts", **context)
        return WorkflowOutcome.FALLBACK


async def _load_profile(user_id: str) -> JournalProfile:
    profile = await profiles_db.get_profile(user_id)
    if profile is None:
        raise NotFoundError(f"User {user_id} not found")
    return profile


# ============================================================================
# Static prompts
# ============================================================================


def _static_plan(profile: JournalProfile, prompt_type: PromptType, regenerate: bool) -> WorkflowPlan:
    count = get_settings().STATIC_PROMPTS_PER_TYPE
    return WorkflowPlan(
        workflow="static_regenerate" if regenerate else "static",
        user_id=profile.user_id,
        prompt_type=prompt_type,
        category=PromptCategory.STATIC,
        build_messages=lambda: build_static_messages(profile, prompt_type, count, fresh=regenerate),
        decode=lambda text: decode_prompt_list(text, limit=count),
        fallback=None if regenerate else (lambda: get_template_prompts(prompt_type, profile.style)),
        swap=SwapMode.REPLACE_AFTER_CREATE if regenerate else SwapMode.REPLACE_TRIPLE,
    )


async def _generate_static_for_type(profile: JournalProfile, prompt_type: PromptType) -> WorkflowOutcome:
    """Static prompts for one type; falls back to templates on any failure."""
    return await generate_and_swap(_static_plan(profile, prompt_type, regenerate=False))


async def generate_static_prompts(user_id: str) -> dict[PromptType, WorkflowOutcome]:
    """Generate static prompts for all four types, one type at a time."""
    logger.info(f"Generating static prompts for user {user_id}")
    try:
        profile = await _load_profile(user_id)
    except NotFoundError:
        logger.warning(f"User {user_id} not found, skipping static prompts")
        return {t: WorkflowOutcome.SKIPPED for t in PROMPT_TYPES}
    except Exception:
        logger.exception(f"Failed to load profile for {user_id}")
        return {t: WorkflowOutcome.FAILED for t in PROMPT_TYPES}

    outcomes = {}
    for prompt_type in PROMPT_TYPES:
        outcomes[prompt_type] = await _generate_static_for_type(profile, prompt_type)

    logger.info(f"Completed static prompt generation for user {user_id}: {[o.value for o in outcomes.values()]}")
    return outcomes


async def regenerate_static_prompts(user_id: str, prompt_type: PromptType) -> WorkflowOutcome:
    """Replace a type's static prompts. Old prompts stay active if generation fails."""
    try:
        profile = await _load_profile(user_id)
    except NotFoundError:
        logger.warning(f"User {user_id} not found, skipping static regeneration")
        return WorkflowOutcome.SKIPPED
    except Exception:
        logger.exception(f"Failed to load profile for {user_id}")
        return WorkflowOutcome.FAILED

    return await generate_and_swap(_static_plan(profile, PromptType(prompt_type), regenerate=True))


# ============================================================================
# History-based prompts
# ============================================================================


async def generate_history_prompt(user_id: str, prompt_type: PromptType) -> WorkflowOutcome:
    """Generate one history-based prompt from the user's recent entries.

    Exits without writing when the user has fewer active entries than the
    threshold.
    """
    settings = get_settings()
    prompt_type = PromptType(prompt_type)

    try:
        profile = await _load_profile(user_id)
        entries = entries_db.get_recent_entries(user_id, limit=settings.HISTORY_ENTRY_LOOKBACK)
    except NotFoundError:
        logger.warning(f"User {user_id} not found, skipping history prompt")
        return WorkflowOutcome.SKIPPED
    except Exception:
        logger.exception(f"Failed to load history context for {user_id}")
        return WorkflowOutcome.FAILED

    if len(entries) < settings.HISTORY_ENTRY_THRESHOLD:
        logger.info(f"Not enough entries ({len(entries)}) for {prompt_type.value} history prompt")
        return WorkflowOutcome.SKIPPED

    plan = WorkflowPlan(
        workflow="history",
        user_id=user_id,
        prompt_type=prompt_type,
        category=PromptCategory.HISTORY_BASED,
        build_messages=lambda: build_history_messages(
            profile,
            prompt_type,
            entries,
            summarized=settings.HISTORY_ENTRIES_SUMMARIZED,
            preview_chars=settings.HISTORY_PREVIEW_CHARS,
        ),
        decode=_decode_one,
        tools=[ANALYZE_ENTRIES_TOOL],
        tool_handler=make_analysis_tool_handler(entries),
    )
    return await generate_and_swap(plan)


# ============================================================================
# Context-aware prompts
# ============================================================================


async def generate_context_prompt(user_id: str, prompt_type: PromptType, current_content: str) -> WorkflowOutcome:
    """Generate one prompt about the draft the user is writing."""
    settings = get_settings()
    prompt_type = PromptType(prompt_type)
    current_content = current_content or ""

    if len(current_content) < settings.CONTEXT_MIN_CHARS:
        logger.debug(f"Content too short ({len(current_content)} chars) for context prompt")
        return WorkflowOutcome.SKIPPED

    try:
        profile = await _load_profile(user_id)
    except NotFoundError:
        logger.warning(f"User {user_id} not found, skipping context prompt")
        return WorkflowOutcome.SKIPPED
    except Exception:
        logger.exception(f"Failed to load profile for {user_id}")
        return WorkflowOutcome.FAILED

    draft_tail = current_content[-settings.CONTEXT_TAIL_CHARS :]
    plan = WorkflowPlan(
        workflow="context",
        user_id=user_id,
        prompt_type=prompt_type,
        category=PromptCategory.CONTEXT_AWARE,
        build_messages=lambda: build_context_messages(profile, prompt_type, draft_tail),
        decode=_decode_one,
    )
    return await generate_and_swap(plan)
