"""Journal entry analysis for history-based prompts.

Keyword heuristics over recent entries:
1. Themes: taxonomy keywords mentioned at least twice
2. Gaps: reflection areas with no keyword present
3. Patterns: entry length, habit consistency, problem vs solution framing
4. Recent topics: leading long words from the newest entries

The taxonomy lives in data/entry_taxonomy.json. Results are advisory context
for the generator and are never persisted.
"""

from __future__ import annotations

import json
import re
from functools import lru_cache
from pathlib import Path
from typing import Any, Iterable

from app.core.schemas_prompts import EntryAnalysis, EntrySummary

TAXONOMY_PATH = Path(__file__).parent / "data" / "entry_taxonomy.json"

ANALYZE_ENTRIES_TOOL = {
    "name": "analyze_entries",
    "description": (
        "Analyze the user's recent journal entries to identify recurring themes, "
        "gaps in their reflections, writing-habit patterns and recent topics."
    ),
    "input_schema": {
        "type": "object",
        "properties": {
            "lookback": {
                "type": "integer",
                "description": "Number of recent entries to analyze (default: 5)",
            },
        },
    },
}


@lru_cache(maxsize=1)
def load_taxonomy(path: str | None = None) -> dict[str, Any]:
    """Load the keyword taxonomy (cached)."""
    with open(path or TAXONOMY_PATH, encoding="utf-8") as f:
        return json.load(f)


def _combined_text(entries: Iterable[EntrySummary]) -> str:
    return " ".join((e.plain_text or "").lower() for e in entries)


def _count_prefixed(text: str, words: Iterable[str]) -> int:
    pattern = r"\b(?:" + "|".join(re.escape(w) for w in words) + r")\w*\b"
    return len(re.findall(pattern, text))


def extract_themes(entries: list[EntrySummary], taxonomy: dict[str, Any] | None = None) -> list[str]:
    """Themes whose keyword (as a word prefix) appears at least the minimum number of times."""
    taxonomy = taxonomy or load_taxonomy()
    text = _combined_text(entries)
    min_mentions = taxonomy["theme_min_mentions"]

    themes = []
    for item in taxonomy["themes"]:
        if _count_prefixed(text, [item["keyword"]]) >= min_mentions:
            themes.append(item["theme"])
    return themes[: taxonomy["max_themes"]]


def identify_gaps(entries: list[EntrySummary], taxonomy: dict[str, Any] | None = None) -> list[str]:
    """Reflection areas with none of their keywords present."""
    taxonomy = taxonomy or load_taxonomy()
    text = _combined_text(entries)

    gaps = [
        area["area"]
        for area in taxonomy["reflection_areas"]
        if not any(kw in text for kw in area["keywords"])
    ]
    return gaps[: taxonomy["max_gaps"]]


def find_patterns(entries: list[EntrySummary], taxonomy: dict[str, Any] | None = None) -> list[str]:
    """Writing-habit observations."""
    taxonomy = taxonomy or load_taxonomy()
    labels = taxonomy["pattern_labels"]
    patterns: list[str] = []
    if not entries:
        return patterns

    avg_length = sum(len(e.plain_text or "") for e in entries) / len(entries)
    if avg_length < taxonomy["length_bands"]["brief_below"]:
        patterns.append(labels["brief"])
    elif avg_length > taxonomy["length_bands"]["detailed_above"]:
        patterns.append(labels["detailed"])

    if len(entries) >= taxonomy["consistent_habit_min_entries"]:
        patterns.append(labels["consistent"])
    elif len(entries) < taxonomy["new_habit_below_entries"]:
        patterns.append(labels["building"])

    text = _combined_text(entries)
    problems = _count_prefixed(text, taxonomy["problem_words"])
    solutions = _count_prefixed(text, taxonomy["solution_words"])
    if problems and solutions:
        if problems > solutions * 2:
            patterns.append(labels["problem_focused"])
        elif solutions > problems:
            patterns.append(labels["solution_focused"])

    return patterns


def extract_recent_topics(entries: list[EntrySummary], taxonomy: dict[str, Any] | None = None) -> list[str]:
    """Leading long words from each of the given entries, deduplicated."""
    taxonomy = taxonomy or load_taxonomy()
    min_len = taxonomy["topic_min_word_length"]

    topics: list[str] = []
    for entry in entries:
        words = [w for w in (entry.plain_text or "").lower().split() if len(w) >= min_len]
        unique = list(dict.fromkeys(words))
        topics.extend(unique[: taxonomy["topics_per_entry"]])

    return list(dict.fromkeys(topics))[: taxonomy["max_topics"]]


def analyze_entries(entries: list[EntrySummary], lookback: int = 5) -> EntryAnalysis:
    """
    Analyze the most recent entries.

    Args:
        entries: Entries ordered newest first
        lookback: Number of entries to consider

    Returns:
        EntryAnalysis with themes, gaps, patterns and recent topics
    """
    taxonomy = load_taxonomy()
    recent = entries[: max(lookback, 0)]

    return EntryAnalysis(
        themes=extract_themes(recent, taxonomy),
        gaps=identify_gaps(recent, taxonomy),
        patterns=find_patterns(recent, taxonomy),
        recent_topics=extract_recent_topics(recent[: taxonomy["topic_entries"]], taxonomy),
    )


def make_analysis_tool_handler(entries: list[EntrySummary]):
    """Bind the analyze_entries tool to a fixed set of entries.

    The generator only chooses the lookback; entry content always comes from
    the workflow.
    """

    def handle(name: str, tool_input: dict[str, Any]) -> dict[str, Any]:
        if name != ANALYZE_ENTRIES_TOOL["name"]:
            return {"error": f"Unknown tool: {name}"}
        lookback = tool_input.get("lookback") or 5
        try:
            lookback = int(lookback)
        except (TypeError, ValueError):
            lookback = 5
        return analyze_entries(entries, lookback=lookback).model_dump()

    return handle
