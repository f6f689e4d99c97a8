"""Pydantic schemas for journal prompts, profiles and entries."""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class PromptType(str, Enum):
    """Thematic axis of a writing prompt."""
    REFLECTION = "reflection"
    SKILL_DEVELOPMENT = "skill-development"
    CAREER_GROWTH = "career-growth"
    DAILY_CHECKIN = "daily-checkin"


class PromptCategory(str, Enum):
    """Provenance axis of a writing prompt.

    - STATIC: generated once from the profile alone
    - HISTORY_BASED: generated from analyzed entry history
    - CONTEXT_AWARE: generated from the draft currently being written
    """
    STATIC = "static"
    HISTORY_BASED = "history-based"
    CONTEXT_AWARE = "context-aware"


class MentorshipStyle(str, Enum):
    """User-chosen tone for generated prompts."""
    STRUCTURED = "Structured"
    EXPLORATORY = "Exploratory"
    CHALLENGE_DRIVEN = "Challenge-driven"
    REFLECTIVE = "Reflective"


class ExperienceLevel(str, Enum):
    """Seniority tiers, lowest first."""
    JUNIOR = "Junior"
    MID_LEVEL = "Mid-Level"
    SENIOR = "Senior"
    LEAD = "Lead"
    PRINCIPAL = "Principal"


PROMPT_TYPES: tuple[PromptType, ...] = tuple(PromptType)
PROMPT_CATEGORIES: tuple[PromptCategory, ...] = tuple(PromptCategory)

TEMPLATE_MODEL = "template"


# ============================================================================
# Collaborator data
# ============================================================================


class JournalProfile(BaseModel):
    """Profile fields captured at onboarding. Read-only to prompt generation."""
    user_id: str
    full_name: Optional[str] = None
    current_role: Optional[str] = None
    experience_level: Optional[ExperienceLevel] = None
    mentorship_style: Optional[MentorshipStyle] = None
    development_goals: list[str] = Field(default_factory=list)
    tech_stack: list[str] = Field(default_factory=list)
    work_environment: Optional[str] = None
    is_onboarded: bool = False

    @property
    def style(self) -> MentorshipStyle:
        return self.mentorship_style or MentorshipStyle.REFLECTIVE


class EntrySummary(BaseModel):
    """Projection of a journal entry used for analysis."""
    entry_date: datetime
    plain_text: str = ""


class EntryAnalysis(BaseModel):
    """Advisory analysis of recent entries, handed to the generator."""
    themes: list[str] = Field(default_factory=list)
    gaps: list[str] = Field(default_factory=list)
    patterns: list[str] = Field(default_factory=list)
    recent_topics: list[str] = Field(default_factory=list)


# ============================================================================
# Prompt records
# ============================================================================


class PromptMetadata(BaseModel):
    """Generation metadata stored with every prompt."""
    model: str
    tokens_used: int = 0
    generated_at: datetime
    version: int = 1


class PromptRecord(BaseModel):
    """A stored prompt row."""
    id: str
    user_id: str
    prompt_type: PromptType
    prompt_category: PromptCategory
    prompt_text: str
    prompt_metadata: Optional[PromptMetadata] = None
    times_shown: int = 0
    times_used: int = 0
    last_shown_at: Optional[datetime] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ============================================================================
# API payloads
# ============================================================================


class RegeneratePromptRequest(BaseModel):
    prompt_type: PromptType
    category: PromptCategory


class DraftContentRequest(BaseModel):
    """Live editor content for context-aware prompts. panel_open=False closes the session."""
    prompt_type: PromptType
    draft_text: str
    session_id: str = "default"
    panel_open: bool = True


class TriggerResponse(BaseModel):
    status: str = "scheduled"
    triggered: bool = True
    detail: Optional[str] = None


class CleanupResponse(BaseModel):
    deleted: int


ActivePromptGrid = dict[str, dict[str, list[dict[str, Any]]]]
