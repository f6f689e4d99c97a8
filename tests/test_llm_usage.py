"""Tests for usage accounting and structured logging."""

import logging
from unittest.mock import patch

from app.core.llm_usage import estimate_cost, log_llm_usage
from app.core.logging import StructuredFormatter


def test_estimate_cost_exact_model():
    assert estimate_cost("claude-sonnet-4-6", 1_000_000, 1_000_000) == 18.0


def test_estimate_cost_dated_model_uses_family_price():
    assert estimate_cost("claude-haiku-4-5-20251001", 1_000_000, 0) == 0.8


def test_estimate_cost_unknown_model_is_zero():
    assert estimate_cost("mystery-model", 500, 500) == 0.0


def test_log_llm_usage_inserts_row():
    with patch("app.core.llm_usage.get_supabase") as mock:
        log_llm_usage("history", "claude-sonnet-4-6", 100, 50, duration_ms=900, user_id="user-1", prompt_type="reflection")

    table = mock.return_value.table
    table.assert_called_once_with("llm_usage_log")
    row = table.return_value.insert.call_args[0][0]
    assert row["workflow"] == "history"
    assert row["user_id"] == "user-1"
    assert row["prompt_type"] == "reflection"
    assert row["estimated_cost_usd"] > 0


def test_log_llm_usage_never_raises():
    with patch("app.core.llm_usage.get_supabase", side_effect=RuntimeError("db down")):
        log_llm_usage("static", "claude-sonnet-4-6", 1, 1)


def test_formatter_renders_context_fields():
    record = logging.LogRecord("app.test", logging.INFO, __file__, 1, "Created 2 prompts", None, None)
    record.user_id = "user-1"
    record.extra_data = {"workflow": "static", "category": "history-based"}

    line = StructuredFormatter().format(record)

    assert "level=INFO" in line
    assert 'message="Created 2 prompts"' in line
    assert "user_id=user-1" in line
    assert "workflow=static" in line
