"""Database operations for the journal_prompts table.

The store does no invariant checking: callers deactivate prior active
prompts of a (user, type, category) triple before creating new ones.
Deactivation is a soft delete; cleanup_old_prompts is the only hard delete.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

from app.core.logging import get_logger
from app.core.prompt_errors import NotFoundError, StoreError
from app.core.schemas_prompts import (
    PROMPT_CATEGORIES,
    PROMPT_TYPES,
    ActivePromptGrid,
    PromptCategory,
    PromptMetadata,
    PromptType,
)
from app.db.supabase_client import get_supabase

logger = get_logger(__name__)

TABLE = "journal_prompts"


def _now() -> str:
    return datetime.now(UTC).isoformat()


def _value(enum_or_str: Any) -> str:
    return enum_or_str.value if hasattr(enum_or_str, "value") else str(enum_or_str)


def empty_prompt_grid() -> ActivePromptGrid:
    """Every type/category combination present, with empty lists."""
    return {t.value: {c.value: [] for c in PROMPT_CATEGORIES} for t in PROMPT_TYPES}


def create_prompt(
    user_id: str,
    prompt_type: PromptType | str,
    category: PromptCategory | str,
    prompt_text: str,
    metadata: PromptMetadata,
) -> str:
    """Insert a new active prompt. Returns its id."""
    supabase = get_supabase()
    now = _now()
    row = {
        "user_id": str(user_id),
        "prompt_type": _value(prompt_type),
        "prompt_category": _value(category),
        "prompt_text": prompt_text,
        "prompt_metadata": metadata.model_dump(mode="json"),
        "times_shown": 0,
        "times_used": 0,
        "is_active": True,
        "created_at": now,
        "updated_at": now,
    }
    try:
        response = supabase.table(TABLE).insert(row).execute()
    except Exception as e:
        raise StoreError(f"Failed to create prompt: {e}") from e
    if not response.data:
        raise StoreError("No data returned from prompt insert")
    return response.data[0]["id"]


def list_active_prompt_ids(
    user_id: str, prompt_type: PromptType | str, category: PromptCategory | str
) -> list[str]:
    """Ids of the active prompts for one triple."""
    supabase = get_supabase()
    response = (
        supabase.table(TABLE)
        .select("id")
        .eq("user_id", str(user_id))
        .eq("prompt_type", _value(prompt_type))
        .eq("prompt_category", _value(category))
        .eq("is_active", True)
        .execute()
    )
    return [row["id"] for row in (response.data or [])]


def deactivate_prompts(
    user_id: str, prompt_type: PromptType | str, category: PromptCategory | str
) -> int:
    """Soft-delete every active prompt of a triple. Idempotent."""
    supabase = get_supabase()
    try:
        response = (
            supabase.table(TABLE)
            .update({"is_active": False, "updated_at": _now()})
            .eq("user_id", str(user_id))
            .eq("prompt_type", _value(prompt_type))
            .eq("prompt_category", _value(category))
            .eq("is_active", True)
            .execute()
        )
    except Exception as e:
        raise StoreError(f"Failed to deactivate prompts: {e}") from e
    count = len(response.data) if response.data else 0
    if count:
        logger.debug(f"Deactivated {count} {_value(category)} {_value(prompt_type)} prompts for {user_id}")
    return count


def deactivate_prompt_ids(prompt_ids: list[str]) -> int:
    """Soft-delete specific prompts by id."""
    if not prompt_ids:
        return 0
    supabase = get_supabase()
    try:
        response = (
            supabase.table(TABLE)
            .update({"is_active": False, "updated_at": _now()})
            .in_("id", [str(pid) for pid in prompt_ids])
            .eq("is_active", True)
            .execute()
        )
    except Exception as e:
        raise StoreError(f"Failed to deactivate prompts: {e}") from e
    return len(response.data) if response.data else 0


def get_latest_version(
    user_id: str, prompt_type: PromptType | str, category: PromptCategory | str
) -> int:
    """Highest metadata version stored for a triple, active or not. 0 if none."""
    supabase = get_supabase()
    response = (
        supabase.table(TABLE)
        .select("prompt_metadata")
        .eq("user_id", str(user_id))
        .eq("prompt_type", _value(prompt_type))
        .eq("prompt_category", _value(category))
        .execute()
    )
    versions = [
        (row.get("prompt_metadata") or {}).get("version") or 0 for row in (response.data or [])
    ]
    return max(versions, default=0)


def get_active_prompts(user_id: str) -> ActivePromptGrid:
    """All active prompts for a user, grouped by type then category."""
    supabase = get_supabase()
    response = (
        supabase.table(TABLE)
        .select("*")
        .eq("user_id", str(user_id))
        .eq("is_active", True)
        .order("created_at", desc=False)
        .execute()
    )

    grouped = empty_prompt_grid()
    for row in response.data or []:
        by_category = grouped.get(row.get("prompt_type"))
        if by_category is not None and row.get("prompt_category") in by_category:
            by_category[row["prompt_category"]].append(row)
    return grouped


def get_prompts_by_type(user_id: str, prompt_type: PromptType | str) -> list[dict[str, Any]]:
    """Active prompts of one type, any category."""
    supabase = get_supabase()
    response = (
        supabase.table(TABLE)
        .select("*")
        .eq("user_id", str(user_id))
        .eq("prompt_type", _value(prompt_type))
        .eq("is_active", True)
        .execute()
    )
    return response.data or []


def get_prompt(prompt_id: str) -> dict[str, Any] | None:
    """Get a prompt by id."""
    supabase = get_supabase()
    response = supabase.table(TABLE).select("*").eq("id", str(prompt_id)).limit(1).execute()
    return response.data[0] if response.data else None


def mark_prompt_shown(prompt_id: str) -> None:
    """Count an impression. Missing prompts are ignored."""
    prompt = get_prompt(prompt_id)
    if not prompt:
        logger.debug(f"mark_prompt_shown: prompt {prompt_id} not found, ignoring")
        return

    now = _now()
    get_supabase().table(TABLE).update(
        {
            "times_shown": (prompt.get("times_shown") or 0) + 1,
            "last_shown_at": now,
            "updated_at": now,
        }
    ).eq("id", str(prompt_id)).execute()


def mark_prompt_used(prompt_id: str) -> None:
    """Count a use of the prompt.

    Raises:
        NotFoundError: If the prompt does not exist
    """
    prompt = get_prompt(prompt_id)
    if not prompt:
        raise NotFoundError(f"Prompt {prompt_id} not found")

    now = _now()
    get_supabase().table(TABLE).update(
        {
            "times_used": (prompt.get("times_used") or 0) + 1,
            "last_shown_at": now,
            "updated_at": now,
        }
    ).eq("id", str(prompt_id)).execute()


def cleanup_old_prompts(older_than_days: int) -> int:
    """Delete inactive prompts last updated before the cutoff. Returns the count."""
    cutoff = (datetime.now(UTC) - timedelta(days=older_than_days)).isoformat()
    response = (
        get_supabase()
        .table(TABLE)
        .delete()
        .eq("is_active", False)
        .lt("updated_at", cutoff)
        .execute()
    )
    count = len(response.data) if response.data else 0
    logger.info(f"Deleted {count} inactive prompts older than {older_than_days} days")
    return count
