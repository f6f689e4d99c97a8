"""Text-generation gateway for journal prompts.

One call = one atomic exchange with the Anthropic Messages API, including
any analysis-tool round trips. Callers never retry: every failure surfaces
as GatewayError and routes into the calling workflow's failure policy.
"""

from __future__ import annotations

import asyncio
import json
import time
from dataclasses import dataclass
from typing import Any, Callable

from anthropic import AsyncAnthropic

from app.core.config import get_settings
from app.core.llm_usage import log_llm_usage
from app.core.logging import get_logger
from app.core.prompt_errors import GatewayError

logger = get_logger(__name__)

ToolHandler = Callable[[str, dict[str, Any]], dict[str, Any]]


@dataclass(frozen=True)
class GenerationResult:
    """Generated text plus usage metadata."""

    text: str
    tokens_used: int
    model: str


def _split_messages(messages: list[dict[str, Any]]) -> tuple[str, list[dict[str, Any]]]:
    """Join system messages into one system string; keep the rest in order."""
    system_parts = [m["content"] for m in messages if m["role"] == "system"]
    conversation = [
        {"role": m["role"], "content": m["content"]} for m in messages if m["role"] != "system"
    ]
    return "\n\n".join(system_parts), conversation


def _run_tool(tool_handler: ToolHandler, name: str, tool_input: Any) -> str:
    try:
        result = tool_handler(name, tool_input if isinstance(tool_input, dict) else {})
    except Exception as e:
        logger.warning(f"Tool {name} failed: {e}")
        result = {"error": str(e)}
    return json.dumps(result)


async def _exchange(
    client: AsyncAnthropic,
    system: str,
    conversation: list[dict[str, Any]],
    tools: list[dict[str, Any]] | None,
    tool_handler: ToolHandler | None,
) -> tuple[str, int, int, str]:
    settings = get_settings()
    tokens_input = 0
    tokens_output = 0
    rounds = 0

    while True:
        kwargs: dict[str, Any] = {
            "model": settings.PROMPT_MODEL,
            "max_tokens": settings.PROMPT_MAX_TOKENS,
            "temperature": settings.PROMPT_TEMPERATURE,
            "messages": conversation,
        }
        if system:
            kwargs["system"] = system
        if tools:
            kwargs["tools"] = tools
            # Out of tool rounds: force a final text answer
            if rounds >= settings.PROMPT_TOOL_MAX_ROUNDS:
                kwargs["tool_choice"] = {"type": "none"}
            else:
                kwargs["tool_choice"] = {"type": "auto"}

        response = await client.messages.create(**kwargs)

        usage = getattr(response, "usage", None)
        if usage is not None:
            tokens_input += getattr(usage, "input_tokens", 0) or 0
            tokens_output += getattr(usage, "output_tokens", 0) or 0

        tool_calls = [b for b in response.content if getattr(b, "type", None) == "tool_use"]
        if response.stop_reason != "tool_use" or not tool_calls or tool_handler is None:
            break

        rounds += 1
        logger.debug(f"Tool round {rounds}: {[b.name for b in tool_calls]}")
        conversation = conversation + [
            {"role": "assistant", "content": response.content},
            {
                "role": "user",
                "content": [
                    {
                        "type": "tool_result",
                        "tool_use_id": block.id,
                        "content": _run_tool(tool_handler, block.name, block.input),
                    }
                    for block in tool_calls
                ],
            },
        ]

    text = "".join(
        block.text for block in response.content if getattr(block, "type", None) == "text"
    ).strip()
    model = getattr(response, "model", None) or settings.PROMPT_MODEL
    return text, tokens_input, tokens_output, model


async def generate_text(
    messages: list[dict[str, Any]],
    *,
    tools: list[dict[str, Any]] | None = None,
    tool_handler: ToolHandler | None = None,
    workflow: str = "journal_prompts",
    user_id: str | None = None,
    prompt_type: str | None = None,
) -> GenerationResult:
    """
    Generate text from role-tagged messages.

    Args:
        messages: Ordered {"role", "content"} dicts; system messages first
        tools: Optional tool declarations the generator may invoke
        tool_handler: Executes a tool call locally and returns a JSON-able dict
        workflow: Usage-log label
        user_id: Usage-log owner
        prompt_type: Usage-log prompt type

    Returns:
        GenerationResult with text, total tokens and model id

    Raises:
        GatewayError: On missing API key, SDK error, timeout or empty output
    """
    settings = get_settings()
    if not settings.ANTHROPIC_API_KEY:
        raise GatewayError("ANTHROPIC_API_KEY is not configured")

    system, conversation = _split_messages(messages)
    client = AsyncAnthropic(api_key=settings.ANTHROPIC_API_KEY)

    t0 = time.time()
    try:
        text, tokens_input, tokens_output, model = await asyncio.wait_for(
            _exchange(client, system, conversation, tools, tool_handler),
            timeout=settings.PROMPT_GATEWAY_TIMEOUT_SECONDS,
        )
    except asyncio.TimeoutError as e:
        raise GatewayError(
            f"Generation timed out after {settings.PROMPT_GATEWAY_TIMEOUT_SECONDS}s"
        ) from e
    except Exception as e:
        raise GatewayError(f"Generation call failed: {e}") from e
    duration_ms = int((time.time() - t0) * 1000)

    log_llm_usage(
        workflow=workflow,
        model=model,
        tokens_input=tokens_input,
        tokens_output=tokens_output,
        duration_ms=duration_ms,
        user_id=user_id,
        prompt_type=prompt_type,
    )

    if not text:
        raise GatewayError("Generation returned empty output")

    return GenerationResult(text=text, tokens_used=tokens_input + tokens_output, model=model)
