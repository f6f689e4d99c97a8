"""Fake in-memory prompt store for orchestrator and trigger tests."""

from datetime import UTC, datetime, timedelta
from typing import Any, Dict, List
from uuid import uuid4

from app.core.prompt_errors import NotFoundError, StoreError
from app.core.schemas_prompts import PromptMetadata

STORE_FUNCTIONS = (
    "create_prompt",
    "list_active_prompt_ids",
    "deactivate_prompts",
    "deactivate_prompt_ids",
    "get_latest_version",
    "get_active_prompts",
    "get_prompts_by_type",
    "get_prompt",
    "mark_prompt_shown",
    "mark_prompt_used",
    "cleanup_old_prompts",
)


def _v(value: Any) -> str:
    return value.value if hasattr(value, "value") else str(value)


class FakePromptDB:
    """In-memory replacement for app.db.prompts."""

    def __init__(self):
        self.reset()

    def reset(self):
        """Reset all rows and failure switches."""
        self.rows: List[Dict[str, Any]] = []
        self.fail_creates = False
        # 1-based create_prompt call numbers that raise
        self.fail_create_calls: set[int] = set()
        self.create_count = 0
        self.calls: List[str] = []

    def install(self, monkeypatch) -> "FakePromptDB":
        """Patch every store function on app.db.prompts with this fake."""
        from app.db import prompts as prompts_db

        for name in STORE_FUNCTIONS:
            monkeypatch.setattr(prompts_db, name, getattr(self, name))
        return self

    # Helpers for assertions
    def active(self, user_id: str, prompt_type=None, category=None) -> List[Dict[str, Any]]:
        return [
            r
            for r in self.rows
            if r["user_id"] == user_id
            and r["is_active"]
            and (prompt_type is None or r["prompt_type"] == _v(prompt_type))
            and (category is None or r["prompt_category"] == _v(category))
        ]

    def seed(self, user_id: str, prompt_type, category, text: str, version: int = 1, active: bool = True, **extra) -> str:
        """Insert a row directly, bypassing create_prompt."""
        now = datetime.now(UTC)
        row = {
            "id": str(uuid4()),
            "user_id": user_id,
            "prompt_type": _v(prompt_type),
            "prompt_category": _v(category),
            "prompt_text": text,
            "prompt_metadata": {"model": "seed", "tokens_used": 0, "generated_at": now.isoformat(), "version": version},
            "times_shown": 0,
            "times_used": 0,
            "last_shown_at": None,
            "is_active": active,
            "created_at": now,
            "updated_at": now,
        }
        row.update(extra)
        self.rows.append(row)
        return row["id"]

    # Store operations
    def create_prompt(self, user_id, prompt_type, category, prompt_text, metadata: PromptMetadata) -> str:
        self.calls.append("create_prompt")
        self.create_count += 1
        if self.fail_creates or self.create_count in self.fail_create_calls:
            raise StoreError("simulated insert failure")
        now = datetime.now(UTC)
        row = {
            "id": str(uuid4()),
            "user_id": str(user_id),
            "prompt_type": _v(prompt_type),
            "prompt_category": _v(category),
            "prompt_text": prompt_text,
            "prompt_metadata": metadata.model_dump(mode="json"),
            "times_shown": 0,
            "times_used": 0,
            "last_shown_at": None,
            "is_active": True,
            "created_at": now,
            "updated_at": now,
        }
        self.rows.append(row)
        return row["id"]

    def list_active_prompt_ids(self, user_id, prompt_type, category) -> List[str]:
        self.calls.append("list_active_prompt_ids")
        return [r["id"] for r in self.active(str(user_id), prompt_type, category)]

    def deactivate_prompts(self, user_id, prompt_type, category) -> int:
        self.calls.append("deactivate_prompts")
        rows = self.active(str(user_id), prompt_type, category)
        for r in rows:
            r["is_active"] = False
            r["updated_at"] = datetime.now(UTC)
        return len(rows)

    def deactivate_prompt_ids(self, prompt_ids) -> int:
        self.calls.append("deactivate_prompt_ids")
        ids = {str(i) for i in prompt_ids}
        count = 0
        for r in self.rows:
            if r["id"] in ids and r["is_active"]:
                r["is_active"] = False
                r["updated_at"] = datetime.now(UTC)
                count += 1
        return count

    def get_latest_version(self, user_id, prompt_type, category) -> int:
        self.calls.append("get_latest_version")
        versions = [
            (r["prompt_metadata"] or {}).get("version") or 0
            for r in self.rows
            if r["user_id"] == str(user_id)
            and r["prompt_type"] == _v(prompt_type)
            and r["prompt_category"] == _v(category)
        ]
        return max(versions, default=0)

    def get_active_prompts(self, user_id):
        from app.db.prompts import empty_prompt_grid

        grid = empty_prompt_grid()
        for r in self.active(str(user_id)):
            grid[r["prompt_type"]][r["prompt_category"]].append(r)
        return grid

    def get_prompts_by_type(self, user_id, prompt_type):
        return self.active(str(user_id), prompt_type)

    def get_prompt(self, prompt_id):
        return next((r for r in self.rows if r["id"] == str(prompt_id)), None)

    def mark_prompt_shown(self, prompt_id) -> None:
        row = self.get_prompt(prompt_id)
        if row is None:
            return
        row["times_shown"] += 1
        row["last_shown_at"] = datetime.now(UTC)

    def mark_prompt_used(self, prompt_id) -> None:
        row = self.get_prompt(prompt_id)
        if row is None:
            raise NotFoundError(f"Prompt {prompt_id} not found")
        row["times_used"] += 1
        row["last_shown_at"] = datetime.now(UTC)

    def cleanup_old_prompts(self, older_than_days: int) -> int:
        cutoff = datetime.now(UTC) - timedelta(days=older_than_days)
        keep = [r for r in self.rows if r["is_active"] or r["updated_at"] >= cutoff]
        deleted = len(self.rows) - len(keep)
        self.rows = keep
        return deleted
