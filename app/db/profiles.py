"""Database operations for journaling profiles (read-only here)."""

from typing import Optional

from app.core.schemas_prompts import JournalProfile
from app.db.supabase_client import get_supabase as get_client

PROFILE_COLUMNS = (
    "user_id, full_name, current_role, experience_level, mentorship_style, "
    "development_goals, tech_stack, work_environment, is_onboarded"
)


async def get_profile(user_id: str) -> Optional[JournalProfile]:
    """Get the onboarding profile for a user. None if the user is absent."""
    client = get_client()
    result = (
        client.table("profiles")
        .select(PROFILE_COLUMNS)
        .eq("user_id", str(user_id))
        .limit(1)
        .execute()
    )
    if not result.data:
        return None

    row = dict(result.data[0])
    row["development_goals"] = row.get("development_goals") or []
    row["tech_stack"] = row.get("tech_stack") or []
    row["is_onboarded"] = bool(row.get("is_onboarded"))
    return JournalProfile(**row)
