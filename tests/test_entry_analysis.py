"""Tests for keyword analysis of journal entries."""

from datetime import UTC, datetime, timedelta

from app.core.entry_analysis import (
    ANALYZE_ENTRIES_TOOL,
    analyze_entries,
    extract_recent_topics,
    extract_themes,
    find_patterns,
    identify_gaps,
    load_taxonomy,
    make_analysis_tool_handler,
)
from app.core.schemas_prompts import EntrySummary


def _entries(*texts: str) -> list[EntrySummary]:
    now = datetime.now(UTC)
    return [EntrySummary(entry_date=now - timedelta(days=i), plain_text=t) for i, t in enumerate(texts)]


def test_taxonomy_loads():
    taxonomy = load_taxonomy()
    assert len(taxonomy["themes"]) == 16
    assert len(taxonomy["reflection_areas"]) == 6


def test_theme_needs_two_mentions():
    entries = _entries("Spent the morning debugging a flaky test. Debugging async code is hard.")

    themes = extract_themes(entries)

    assert "Debugging and troubleshooting" in themes
    # "test" appears once only
    assert "Testing and quality assurance" not in themes


def test_themes_capped_at_five():
    text = " ".join(
        f"{kw} {kw}" for kw in ["debug", "refactor", "test", "deploy", "review", "meeting", "learn"]
    )
    assert len(extract_themes(_entries(text))) == 5


def test_gaps_list_missing_reflection_areas():
    entries = _entries("Spent the morning debugging a flaky test.")

    gaps = identify_gaps(entries)

    assert gaps == ["Technical challenges", "Wins and accomplishments", "Learning and growth"]


def test_no_gaps_when_every_area_is_covered():
    entries = _entries(
        "A difficult problem, but we shipped it. I learned a lot from the team and "
        "plan to refactor next week."
    )
    assert identify_gaps(entries) == []


def test_brief_new_habit_pattern():
    patterns = find_patterns(_entries("Short day."))
    labels = load_taxonomy()["pattern_labels"]

    assert labels["brief"] in patterns
    assert labels["building"] in patterns


def test_consistent_and_detailed_pattern():
    long_text = "word " * 200
    patterns = find_patterns(_entries(*[long_text] * 5))
    labels = load_taxonomy()["pattern_labels"]

    assert labels["detailed"] in patterns
    assert labels["consistent"] in patterns


def test_problem_focused_pattern():
    patterns = find_patterns(_entries("Another bug, an issue, an error and I was stuck. Eventually fixed."))
    assert load_taxonomy()["pattern_labels"]["problem_focused"] in patterns


def test_solution_focused_pattern():
    patterns = find_patterns(_entries("Solved the flaky build, resolved the outage and fixed the issue."))
    assert load_taxonomy()["pattern_labels"]["solution_focused"] in patterns


def test_no_patterns_for_no_entries():
    assert find_patterns([]) == []


def test_recent_topics_take_leading_long_words():
    entries = _entries("Spent the morning debugging flaky tests", "Quarterly planning session today")

    topics = extract_recent_topics(entries)

    assert topics == ["spent", "morning", "debugging", "quarterly", "planning"]


def test_analyze_entries_respects_lookback():
    entries = _entries("debug debug", "deploy deploy")

    analysis = analyze_entries(entries, lookback=1)

    assert analysis.themes == ["Debugging and troubleshooting"]


def test_tool_handler_runs_analysis():
    handle = make_analysis_tool_handler(_entries("review review feedback feedback"))

    result = handle(ANALYZE_ENTRIES_TOOL["name"], {"lookback": "3"})

    assert set(result) == {"themes", "gaps", "patterns", "recent_topics"}
    assert "Code review" in result["themes"]
    assert "Receiving and giving feedback" in result["themes"]


def test_tool_handler_rejects_unknown_tool():
    handle = make_analysis_tool_handler([])
    assert "error" in handle("search_web", {})
