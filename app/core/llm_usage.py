"""Token and cost accounting for prompt generation calls.

Each gateway call writes one row to llm_usage_log. Writing the row is best
effort: a failed insert is logged and the generation result stands.
"""

from dataclasses import asdict, dataclass
from typing import Optional

from app.core.logging import get_logger
from app.db.supabase_client import get_supabase

logger = get_logger(__name__)

USAGE_TABLE = "llm_usage_log"

# USD per million tokens, (input, output). Keys match model ids or their
# undated prefix.
MODEL_PRICING: dict[str, tuple[float, float]] = {
    "claude-opus-4-6": (15.0, 75.0),
    "claude-sonnet-4-6": (3.0, 15.0),
    "claude-sonnet-4-5": (3.0, 15.0),
    "claude-sonnet-4": (3.0, 15.0),
    "claude-haiku-4-5": (0.80, 4.0),
    "claude-3-5-haiku": (0.80, 4.0),
}


def _rates_for(model: str) -> Optional[tuple[float, float]]:
    if model in MODEL_PRICING:
        return MODEL_PRICING[model]
    # Longest prefix wins so dated ids resolve to their family
    matches = [key for key in MODEL_PRICING if model.startswith(key)]
    return MODEL_PRICING[max(matches, key=len)] if matches else None


def estimate_cost(model: str, tokens_input: int, tokens_output: int) -> float:
    """Estimated USD cost of one call; 0.0 for unpriced models."""
    rates = _rates_for(model)
    if rates is None:
        logger.warning(f"No pricing for model '{model}', recording $0")
        return 0.0
    input_rate, output_rate = rates
    return round((tokens_input * input_rate + tokens_output * output_rate) / 1_000_000, 6)


@dataclass
class UsageRecord:
    workflow: str
    model: str
    tokens_input: int
    tokens_output: int
    duration_ms: int = 0
    user_id: Optional[str] = None
    prompt_type: Optional[str] = None
    provider: str = "anthropic"

    @property
    def estimated_cost_usd(self) -> float:
        return estimate_cost(self.model, self.tokens_input, self.tokens_output)

    def to_row(self) -> dict:
        row = {k: v for k, v in asdict(self).items() if v is not None}
        row["estimated_cost_usd"] = self.estimated_cost_usd
        return row


def log_llm_usage(
    workflow: str,
    model: str,
    tokens_input: int,
    tokens_output: int,
    duration_ms: int = 0,
    user_id: Optional[str] = None,
    prompt_type: Optional[str] = None,
    provider: str = "anthropic",
) -> None:
    """Record one generation call. Never raises."""
    record = UsageRecord(
        workflow=workflow,
        model=model,
        tokens_input=tokens_input,
        tokens_output=tokens_output,
        duration_ms=duration_ms,
        user_id=str(user_id) if user_id else None,
        prompt_type=prompt_type,
        provider=provider,
    )
    try:
        row = record.to_row()
        get_supabase().table(USAGE_TABLE).insert(row).execute()
        logger.debug(
            f"Usage: {workflow}/{prompt_type or '-'} model={model} "
            f"tokens={tokens_input}+{tokens_output} cost=${row['estimated_cost_usd']:.4f}"
        )
    except Exception as e:
        logger.error(f"Failed to log LLM usage: {e}")
