"""Instruction builders for journal prompt generation.

One builder per workflow:
- static: profile only, asks for a JSON array of N prompts
- history: profile + recent entry summaries, analysis tool available
- context: profile + tail of the draft being written
"""

from app.core.schemas_prompts import EntrySummary, JournalProfile, PromptType

AGENT_INSTRUCTIONS = """\
You are an expert career coach and journaling assistant specializing in software engineering career development.

Your role is to generate thoughtful, personalized writing prompts that help users:
- Reflect on their technical growth and challenges
- Track progress toward their career goals
- Develop skills aligned with their experience level
- Maintain consistent professional development habits

Adapt your tone and approach based on the user's mentorship style:
- Structured: Clear, step-by-step prompts with specific objectives
- Exploratory: Open-ended questions that encourage discovery
- Challenge-driven: Prompts that push boundaries and problem-solving
- Reflective: Deep, introspective questions about experiences

Always make prompts specific, actionable, appropriate for the user's experience level,
relevant to their tech stack and goals, and concise (1-2 sentences max).
Avoid generic or overly broad questions."""

STYLE_GUIDE = {
    "Structured": "Create clear, step-by-step prompts with specific objectives.",
    "Exploratory": "Create open-ended questions that encourage discovery.",
    "Challenge-driven": "Create prompts that push boundaries and problem-solving.",
    "Reflective": "Create deep, introspective questions about experiences.",
}

Message = dict[str, str]


def _type_label(prompt_type: PromptType | str) -> str:
    return prompt_type.value if isinstance(prompt_type, PromptType) else prompt_type


def build_static_messages(profile: JournalProfile, prompt_type: PromptType, count: int, fresh: bool = False) -> list[Message]:
    """Messages asking for `count` profile-only prompts as a JSON array."""
    label = _type_label(prompt_type)
    style = profile.style.value
    level = profile.experience_level.value if profile.experience_level else "software engineer"

    system = f"""{AGENT_INSTRUCTIONS}

Generate {label} prompts for a {level} working in {profile.current_role or 'development'}.

Mentorship style: {style}
{STYLE_GUIDE.get(style, STYLE_GUIDE['Reflective'])}

Tech stack: {', '.join(profile.tech_stack) or 'general software development'}
Goals: {', '.join(profile.development_goals) or 'professional growth'}

These are STATIC prompts (not personalized to recent entries).
Make them:
- Relevant to their role and experience level
- Aligned with their mentorship style
- Focused on {label}
- Concise (1-2 sentences max)"""

    example = ", ".join(f'{{"prompt": "Prompt {i + 1} text here"}}' for i in range(count))
    qualifier = "fresh " if fresh else ""
    user = f"""Generate {count} {qualifier}{label} prompts. Return ONLY a JSON array in this exact format:
[{example}]

Do not include any other text, explanations, or markdown formatting."""

    return [{"role": "system", "content": system}, {"role": "user", "content": user}]


def summarize_entries(entries: list[EntrySummary], count: int, preview_chars: int) -> str:
    """Date plus plain-text preview for the newest `count` entries."""
    lines = []
    for i, entry in enumerate(entries[:count]):
        preview = (entry.plain_text or "")[:preview_chars] or "No content"
        lines.append(f"Entry {i + 1} ({entry.entry_date.date().isoformat()}): {preview}...")
    return "\n\n".join(lines)


def build_history_messages(
    profile: JournalProfile,
    prompt_type: PromptType,
    entries: list[EntrySummary],
    summarized: int = 5,
    preview_chars: int = 200,
) -> list[Message]:
    """Messages asking for one prompt grounded in recent entries."""
    label = _type_label(prompt_type)
    level = profile.experience_level.value if profile.experience_level else "Mid-Level"

    system = f"""{AGENT_INSTRUCTIONS}

Analyze the user's recent journal entries and generate a personalized {label} prompt that:

1. Addresses patterns or gaps in their reflection
2. Builds on themes they've been exploring
3. Encourages growth in areas they haven't covered
4. Aligns with their {profile.style.value} style

User context:
- Role: {profile.current_role or 'Software engineer'}
- Level: {level}
- Goals: {', '.join(profile.development_goals) or 'Professional growth'}

Use the analyze_entries tool if needed to identify themes and gaps.

Return ONLY the prompt text (1-2 sentences), nothing else."""

    user = f"""Here are the user's recent journal entries:

{summarize_entries(entries, summarized, preview_chars)}

Based on these entries, generate a personalized {label} prompt that addresses gaps, patterns, or opportunities for growth."""

    return [{"role": "system", "content": system}, {"role": "user", "content": user}]


def build_context_messages(profile: JournalProfile, prompt_type: PromptType, draft_tail: str) -> list[Message]:
    """Messages asking for one prompt that deepens the current draft."""
    label = _type_label(prompt_type)
    style = profile.style.value

    system = f"""{AGENT_INSTRUCTIONS}

Generate a {label} prompt based on what the user is currently writing.

The prompt should:
- Deepen their reflection on the current topic
- Match their {style} mentorship style
- Be specific to their current context
- Encourage further exploration

Return ONLY the prompt text (1-2 sentences), nothing else."""

    user = f"""The user is currently writing about: "{draft_tail}"

Generate a {label} prompt that deepens their reflection on this specific topic. The prompt should:
- Be directly related to what they're writing about
- Encourage them to explore the topic further
- Match their {style} mentorship style

Return ONLY the prompt text, nothing else."""

    return [{"role": "system", "content": system}, {"role": "user", "content": user}]
