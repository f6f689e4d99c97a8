"""Database reads over journal_entries for prompt generation."""

from app.core.schemas_prompts import EntrySummary
from app.db.supabase_client import get_supabase

TABLE = "journal_entries"


def get_recent_entries(user_id: str, limit: int = 10) -> list[EntrySummary]:
    """Most recent active entries, newest entry_date first."""
    supabase = get_supabase()
    response = (
        supabase.table(TABLE)
        .select("entry_date, plain_text")
        .eq("user_id", str(user_id))
        .eq("is_active", True)
        .order("entry_date", desc=True)
        .limit(limit)
        .execute()
    )
    return [
        EntrySummary(entry_date=row["entry_date"], plain_text=row.get("plain_text") or "")
        for row in (response.data or [])
    ]


def count_active_entries(user_id: str) -> int:
    """Number of active (not soft-deleted) entries for a user."""
    supabase = get_supabase()
    response = (
        supabase.table(TABLE)
        .select("id", count="exact")
        .eq("user_id", str(user_id))
        .eq("is_active", True)
        .execute()
    )
    return response.count or 0
