"""Events that schedule prompt generation.

Trigger functions return as soon as work is queued; generation runs on the
PromptTaskQueue. Read and telemetry helpers for active prompts live here
too so the API layer talks to one module.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any

from app.core import prompt_orchestrator
from app.core.config import get_settings
from app.core.logging import get_logger
from app.core.prompt_task_queue import PromptTaskQueue, get_task_queue
from app.core.schemas_prompts import PROMPT_TYPES, ActivePromptGrid, PromptCategory, PromptType
from app.db import entries as entries_db
from app.db import prompts as prompts_db

logger = get_logger(__name__)


# ============================================================================
# Lifecycle triggers
# ============================================================================


def on_onboarding_complete(user_id: str, queue: PromptTaskQueue | None = None) -> None:
    """Schedule static prompts for all four types (one job)."""
    queue = queue or get_task_queue()
    queue.submit(prompt_orchestrator.generate_static_prompts, user_id, label=f"static:{user_id}")
    logger.info(f"Scheduled static prompt generation for user {user_id}")


def on_entry_count_reaches_five(user_id: str, queue: PromptTaskQueue | None = None) -> None:
    """Schedule one history-based prompt per type."""
    queue = queue or get_task_queue()
    for prompt_type in PROMPT_TYPES:
        queue.submit(
            prompt_orchestrator.generate_history_prompt,
            user_id,
            prompt_type,
            label=f"history:{prompt_type.value}:{user_id}",
        )
    logger.info(f"Scheduled history prompt generation for user {user_id}")


def on_entry_created(user_id: str, queue: PromptTaskQueue | None = None) -> bool:
    """Check the active entry count after a new entry.

    Fires history generation only when the count equals the threshold
    exactly, so later entries do not regenerate.

    Returns:
        True if history generation was scheduled
    """
    threshold = get_settings().HISTORY_ENTRY_THRESHOLD
    count = entries_db.count_active_entries(user_id)
    if count != threshold:
        logger.debug(f"User {user_id} has {count} active entries, no history trigger")
        return False

    on_entry_count_reaches_five(user_id, queue=queue)
    return True


def regenerate(
    user_id: str,
    prompt_type: PromptType,
    category: PromptCategory,
    queue: PromptTaskQueue | None = None,
) -> None:
    """Schedule a user-requested regeneration.

    Raises:
        ValueError: For context-aware prompts, which only the draft trigger creates
    """
    prompt_type = PromptType(prompt_type)
    category = PromptCategory(category)
    queue = queue or get_task_queue()

    if category == PromptCategory.STATIC:
        queue.submit(
            prompt_orchestrator.regenerate_static_prompts,
            user_id,
            prompt_type,
            label=f"static-regen:{prompt_type.value}:{user_id}",
        )
    elif category == PromptCategory.HISTORY_BASED:
        queue.submit(
            prompt_orchestrator.generate_history_prompt,
            user_id,
            prompt_type,
            label=f"history:{prompt_type.value}:{user_id}",
        )
    else:
        raise ValueError("Context-aware prompts cannot be regenerated on demand")

    logger.info(f"Scheduled {category.value} regeneration of {prompt_type.value} for user {user_id}")


# ============================================================================
# Draft trigger (debounced context-aware generation)
# ============================================================================


@dataclass
class _DraftSession:
    last_submitted: str | None = None
    in_flight: bool = False
    timer: asyncio.Task | None = None
    pending: dict[str, Any] = field(default_factory=dict)
    last_activity: float = field(default_factory=time.monotonic)

    @property
    def idle(self) -> bool:
        return not self.in_flight and (self.timer is None or self.timer.done())


class DraftPromptTrigger:
    """Debounces draft changes into context-aware generation requests.

    State is kept per (user, session). Each change restarts the timer; when
    it expires the latest draft is submitted if the panel is open, the text
    is long enough, it differs from the last submitted text and no
    generation for the session is running. A draft that settles while a
    generation is running is submitted when that generation finishes.

    A change with the panel closed ends the session. Sessions with no
    activity for ``session_idle_seconds`` are dropped on the next change.
    """

    def __init__(
        self,
        queue: PromptTaskQueue | None = None,
        debounce_seconds: float | None = None,
        min_chars: int | None = None,
        session_idle_seconds: float | None = None,
    ):
        settings = get_settings()
        self._queue = queue
        self.debounce_seconds = (
            settings.CONTEXT_DEBOUNCE_SECONDS if debounce_seconds is None else debounce_seconds
        )
        self.min_chars = settings.CONTEXT_TRIGGER_MIN_CHARS if min_chars is None else min_chars
        self.session_idle_seconds = (
            settings.CONTEXT_SESSION_IDLE_SECONDS if session_idle_seconds is None else session_idle_seconds
        )
        self._sessions: dict[tuple[str, str], _DraftSession] = {}

    @property
    def queue(self) -> PromptTaskQueue:
        return self._queue or get_task_queue()

    @property
    def session_count(self) -> int:
        return len(self._sessions)

    def session(self, user_id: str, session_id: str) -> _DraftSession:
        return self._sessions.setdefault((str(user_id), session_id), _DraftSession())

    def _expire_idle_sessions(self) -> None:
        cutoff = time.monotonic() - self.session_idle_seconds
        stale = [key for key, state in self._sessions.items() if state.idle and state.last_activity < cutoff]
        for key in stale:
            del self._sessions[key]
        if stale:
            logger.debug(f"Dropped {len(stale)} idle draft sessions")

    def content_changed(
        self,
        user_id: str,
        prompt_type: PromptType,
        draft_text: str,
        session_id: str = "default",
        panel_open: bool = True,
    ) -> None:
        """Record a draft change and (re)start the debounce timer.

        With the panel closed nothing can fire, so the session is closed.
        """
        self._expire_idle_sessions()
        if not panel_open:
            self.close_session(user_id, session_id)
            return

        state = self.session(user_id, session_id)
        state.last_activity = time.monotonic()
        if state.timer is not None and not state.timer.done():
            state.timer.cancel()

        state.pending = {
            "prompt_type": PromptType(prompt_type),
            "draft_text": draft_text or "",
            "panel_open": panel_open,
        }
        state.timer = asyncio.get_running_loop().create_task(self._fire_later(user_id, session_id))

    def close_session(self, user_id: str, session_id: str = "default") -> None:
        """Forget a session and cancel its pending timer.

        A generation already running for the session still completes.
        """
        state = self._sessions.pop((str(user_id), session_id), None)
        if state and state.timer is not None and not state.timer.done():
            state.timer.cancel()

    async def _fire_later(self, user_id: str, session_id: str) -> None:
        await asyncio.sleep(self.debounce_seconds)
        self.fire(user_id, session_id)

    def fire(self, user_id: str, session_id: str) -> bool:
        """Submit the pending draft if every gate passes. Returns True on submit."""
        state = self._sessions.get((str(user_id), session_id))
        if state is None:
            return False
        pending = state.pending
        draft_text = pending.get("draft_text", "")

        if not pending.get("panel_open", False):
            return False
        if len(draft_text) < self.min_chars:
            return False
        if draft_text == state.last_submitted:
            return False
        if state.in_flight:
            logger.debug(f"Context generation already running for {user_id}/{session_id}")
            return False

        state.last_submitted = draft_text
        state.in_flight = True
        self.queue.submit(
            self._generate,
            user_id,
            session_id,
            pending["prompt_type"],
            draft_text,
            label=f"context:{pending['prompt_type'].value}:{user_id}",
        )
        return True

    async def _generate(self, user_id: str, session_id: str, prompt_type: PromptType, draft_text: str) -> None:
        key = (str(user_id), session_id)
        started = self._sessions.get(key)
        try:
            await prompt_orchestrator.generate_context_prompt(user_id, prompt_type, draft_text)
        finally:
            state = self._sessions.get(key)
            # Skip sessions closed (or reopened) while generating
            if state is not None and state is started:
                state.in_flight = False
                state.last_activity = time.monotonic()
                # A draft that settled during the run was gated out; submit it now
                if state.timer is None or state.timer.done():
                    self.fire(user_id, session_id)


_draft_trigger: DraftPromptTrigger | None = None


def get_draft_trigger() -> DraftPromptTrigger:
    """Get or create the global draft trigger."""
    global _draft_trigger
    if _draft_trigger is None:
        _draft_trigger = DraftPromptTrigger()
    return _draft_trigger


def on_draft_content_changed(
    user_id: str,
    active_type: PromptType,
    draft_text: str,
    session_id: str = "default",
    panel_open: bool = True,
) -> None:
    """Feed a draft change to the debounced context-aware trigger."""
    get_draft_trigger().content_changed(
        user_id, active_type, draft_text, session_id=session_id, panel_open=panel_open
    )


# ============================================================================
# Reads and telemetry
# ============================================================================


def list_active_prompts(user_id: str) -> ActivePromptGrid:
    return prompts_db.get_active_prompts(user_id)


def list_prompts_by_type(user_id: str, prompt_type: PromptType) -> list[dict[str, Any]]:
    return prompts_db.get_prompts_by_type(user_id, PromptType(prompt_type))


def record_shown(prompt_id: str) -> None:
    prompts_db.mark_prompt_shown(prompt_id)


def record_used(prompt_id: str) -> None:
    prompts_db.mark_prompt_used(prompt_id)
