"""Pytest configuration and fixtures."""

import os

import pytest


@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    """Set up test environment variables."""
    os.environ["SUPABASE_URL"] = "https://test.supabase.co"
    os.environ["SUPABASE_SERVICE_ROLE_KEY"] = "test-key"
    os.environ["ANTHROPIC_API_KEY"] = "test-anthropic-key"
    os.environ["JOURNAL_ENV"] = "test"


@pytest.fixture(autouse=True)
def fresh_globals(setup_test_env):
    """Reset cached settings and process-wide queue/trigger state per test."""
    from app.core import prompt_orchestrator, prompt_task_queue, prompt_triggers
    from app.core.config import get_settings

    get_settings.cache_clear()
    prompt_task_queue._task_queue = None
    prompt_triggers._draft_trigger = None
    prompt_orchestrator._triple_locks.clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def profile():
    from app.core.schemas_prompts import JournalProfile

    return JournalProfile(
        user_id="user-1",
        full_name="Ada",
        current_role="Backend Engineer",
        experience_level="Mid-Level",
        mentorship_style="Challenge-driven",
        development_goals=["system design", "mentoring"],
        tech_stack=["Python", "Postgres"],
        work_environment="remote",
        is_onboarded=True,
    )
