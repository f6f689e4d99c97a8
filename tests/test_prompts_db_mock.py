"""Tests for prompt, profile and entry database operations with mocked Supabase."""

from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest

from app.core.prompt_errors import NotFoundError, StoreError
from app.core.schemas_prompts import PromptCategory, PromptMetadata, PromptType
from app.db.prompts import (
    cleanup_old_prompts,
    create_prompt,
    deactivate_prompt_ids,
    deactivate_prompts,
    get_active_prompts,
    get_latest_version,
    get_prompt,
    mark_prompt_shown,
    mark_prompt_used,
)

BUILDER_METHODS = ("select", "insert", "update", "delete", "eq", "in_", "lt", "order", "limit")


def _query(data=None, count=None) -> MagicMock:
    """Query builder whose chained calls all return itself."""
    query = MagicMock()
    for method in BUILDER_METHODS:
        getattr(query, method).return_value = query
    query.execute.return_value = MagicMock(data=data, count=count)
    return query


@pytest.fixture
def mock_supabase():
    """Mock Supabase client."""
    with patch("app.db.prompts.get_supabase") as mock:
        yield mock.return_value


def _metadata(version: int = 1) -> PromptMetadata:
    return PromptMetadata(model="claude-sonnet-4-6", tokens_used=120, generated_at="2026-01-05T10:00:00Z", version=version)


class TestCreatePrompt:
    def test_inserts_active_row(self, mock_supabase):
        prompt_id = str(uuid4())
        query = _query(data=[{"id": prompt_id}])
        mock_supabase.table.return_value = query

        result = create_prompt("user-1", PromptType.REFLECTION, PromptCategory.STATIC, "What went well?", _metadata())

        assert result == prompt_id
        mock_supabase.table.assert_called_with("journal_prompts")
        row = query.insert.call_args[0][0]
        assert row["prompt_type"] == "reflection"
        assert row["prompt_category"] == "static"
        assert row["is_active"] is True
        assert row["times_shown"] == 0 and row["times_used"] == 0
        assert row["prompt_metadata"]["version"] == 1
        assert row["prompt_metadata"]["model"] == "claude-sonnet-4-6"
        assert isinstance(row["prompt_metadata"]["generated_at"], str)

    def test_empty_response_raises(self, mock_supabase):
        mock_supabase.table.return_value = _query(data=[])

        with pytest.raises(StoreError):
            create_prompt("user-1", "reflection", "static", "Q?", _metadata())

    def test_client_error_raises_store_error(self, mock_supabase):
        query = _query()
        query.execute.side_effect = RuntimeError("connection reset")
        mock_supabase.table.return_value = query

        with pytest.raises(StoreError, match="connection reset"):
            create_prompt("user-1", "reflection", "static", "Q?", _metadata())


class TestDeactivate:
    def test_no_active_rows_is_noop(self, mock_supabase):
        query = _query(data=[])
        mock_supabase.table.return_value = query

        assert deactivate_prompts("user-1", PromptType.CAREER_GROWTH, PromptCategory.HISTORY_BASED) == 0
        assert deactivate_prompts("user-1", PromptType.CAREER_GROWTH, PromptCategory.HISTORY_BASED) == 0

        update = query.update.call_args[0][0]
        assert update["is_active"] is False
        query.eq.assert_any_call("prompt_category", "history-based")
        query.eq.assert_any_call("is_active", True)

    def test_returns_deactivated_count(self, mock_supabase):
        mock_supabase.table.return_value = _query(data=[{"id": "a"}, {"id": "b"}])

        assert deactivate_prompts("user-1", "reflection", "static") == 2

    def test_deactivate_ids_filters_by_id(self, mock_supabase):
        query = _query(data=[{"id": "a"}])
        mock_supabase.table.return_value = query

        assert deactivate_prompt_ids(["a", "b"]) == 1
        query.in_.assert_called_once_with("id", ["a", "b"])

    def test_deactivate_no_ids_skips_query(self, mock_supabase):
        assert deactivate_prompt_ids([]) == 0
        mock_supabase.table.assert_not_called()


class TestVersions:
    def test_latest_version_counts_inactive_rows(self, mock_supabase):
        mock_supabase.table.return_value = _query(
            data=[
                {"prompt_metadata": {"version": 1}},
                {"prompt_metadata": {"version": 3}},
                {"prompt_metadata": None},
            ]
        )

        assert get_latest_version("user-1", "reflection", "static") == 3

    def test_latest_version_without_rows_is_zero(self, mock_supabase):
        mock_supabase.table.return_value = _query(data=[])

        assert get_latest_version("user-1", "reflection", "static") == 0


class TestActivePrompts:
    def test_grid_has_every_combination(self, mock_supabase):
        rows = [
            {"id": "1", "prompt_type": "reflection", "prompt_category": "static"},
            {"id": "2", "prompt_type": "reflection", "prompt_category": "static"},
            {"id": "3", "prompt_type": "daily-checkin", "prompt_category": "context-aware"},
            {"id": "4", "prompt_type": "gratitude", "prompt_category": "static"},
        ]
        mock_supabase.table.return_value = _query(data=rows)

        grid = get_active_prompts("user-1")

        assert set(grid) == {"reflection", "skill-development", "career-growth", "daily-checkin"}
        assert all(set(by_cat) == {"static", "history-based", "context-aware"} for by_cat in grid.values())
        assert [r["id"] for r in grid["reflection"]["static"]] == ["1", "2"]
        assert [r["id"] for r in grid["daily-checkin"]["context-aware"]] == ["3"]
        assert grid["career-growth"]["history-based"] == []

    def test_get_prompt_missing(self, mock_supabase):
        mock_supabase.table.return_value = _query(data=[])

        assert get_prompt("missing") is None


class TestTelemetry:
    def test_mark_used_on_deleted_prompt_raises(self, mock_supabase):
        query = _query(data=[])
        mock_supabase.table.return_value = query

        with pytest.raises(NotFoundError):
            mark_prompt_used("deleted-id")
        query.update.assert_not_called()

    def test_mark_shown_on_deleted_prompt_is_noop(self, mock_supabase):
        query = _query(data=[])
        mock_supabase.table.return_value = query

        mark_prompt_shown("deleted-id")

        query.update.assert_not_called()

    def test_mark_shown_increments(self, mock_supabase):
        query = _query(data=[{"id": "p1", "times_shown": 4, "times_used": 1}])
        mock_supabase.table.return_value = query

        mark_prompt_shown("p1")

        update = query.update.call_args[0][0]
        assert update["times_shown"] == 5
        assert "last_shown_at" in update

    def test_mark_used_increments(self, mock_supabase):
        query = _query(data=[{"id": "p1", "times_shown": 4, "times_used": 1}])
        mock_supabase.table.return_value = query

        mark_prompt_used("p1")

        update = query.update.call_args[0][0]
        assert update["times_used"] == 2


class TestCleanup:
    def test_deletes_only_inactive_before_cutoff(self, mock_supabase):
        query = _query(data=[{"id": "a"}, {"id": "b"}])
        mock_supabase.table.return_value = query

        assert cleanup_old_prompts(30) == 2

        query.delete.assert_called_once()
        query.eq.assert_called_once_with("is_active", False)
        assert query.lt.call_args[0][0] == "updated_at"


class TestCollaboratorReads:
    def test_recent_entries(self):
        with patch("app.db.entries.get_supabase") as mock:
            query = _query(
                data=[
                    {"entry_date": "2026-01-05T09:00:00Z", "plain_text": "Shipped the release"},
                    {"entry_date": "2026-01-04T09:00:00Z", "plain_text": None},
                ]
            )
            mock.return_value.table.return_value = query

            from app.db.entries import get_recent_entries

            entries = get_recent_entries("user-1", limit=10)

        assert [e.plain_text for e in entries] == ["Shipped the release", ""]
        query.order.assert_called_once_with("entry_date", desc=True)
        query.limit.assert_called_once_with(10)

    def test_count_active_entries(self):
        with patch("app.db.entries.get_supabase") as mock:
            mock.return_value.table.return_value = _query(data=[], count=5)

            from app.db.entries import count_active_entries

            assert count_active_entries("user-1") == 5

    @pytest.mark.asyncio
    async def test_profile_missing(self):
        with patch("app.db.profiles.get_client") as mock:
            mock.return_value.table.return_value = _query(data=[])

            from app.db.profiles import get_profile

            assert await get_profile("nobody") is None

    @pytest.mark.asyncio
    async def test_profile_defaults_lists(self):
        row = {
            "user_id": "user-1",
            "full_name": "Ada",
            "current_role": "Engineer",
            "experience_level": "Senior",
            "mentorship_style": None,
            "development_goals": None,
            "tech_stack": None,
            "work_environment": None,
            "is_onboarded": None,
        }
        with patch("app.db.profiles.get_client") as mock:
            mock.return_value.table.return_value = _query(data=[row])

            from app.db.profiles import get_profile

            profile = await get_profile("user-1")

        assert profile.development_goals == []
        assert profile.is_onboarded is False
        assert profile.style.value == "Reflective"
