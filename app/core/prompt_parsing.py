"""Decode generator output into prompt text.

Decoders never raise: they return a DecodeResult so each workflow can apply
its own failure policy.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")

_FENCE_RE = re.compile(r"```(?:json|text)?\s*\n?(.*?)```", re.DOTALL)
_LABEL_RE = re.compile(r"^prompt\s*:\s*", re.IGNORECASE)
_QUOTE_PAIRS = (('"', '"'), ("'", "'"), ("“", "”"), ("‘", "’"))


@dataclass(frozen=True)
class DecodeResult(Generic[T]):
    """Outcome of decoding untrusted generator output."""

    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, value: T) -> "DecodeResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str) -> "DecodeResult[T]":
        return cls(ok=False, error=error)


def _strip_llm_fences(raw_output: str) -> str:
    """Strip markdown code fences from LLM output."""
    cleaned = raw_output.strip()
    fence_match = _FENCE_RE.search(cleaned)
    if fence_match:
        return fence_match.group(1).strip()
    return cleaned


def find_json_array(text: str) -> Optional[str]:
    """
    Return the first balanced ``[...]`` substring of text.

    Brackets inside JSON string literals are ignored.

    Args:
        text: Text that may contain prose around a JSON array

    Returns:
        The array substring, or None if no balanced array exists
    """
    start = text.find("[")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    return None


def decode_prompt_list(text: str | None, limit: int | None = None) -> DecodeResult[list[str]]:
    """
    Decode a JSON array of prompt objects.

    Items may be strings or objects with a ``prompt`` (or ``text``) field.
    Non-string and empty items are dropped.

    Args:
        text: Raw generator output
        limit: Maximum number of prompts to keep

    Returns:
        DecodeResult holding the prompt strings
    """
    if not text or not text.strip():
        return DecodeResult.failure("empty response")

    array_text = find_json_array(_strip_llm_fences(text))
    if array_text is None:
        return DecodeResult.failure("no JSON array found in response")

    try:
        parsed = json.loads(array_text)
    except json.JSONDecodeError as e:
        return DecodeResult.failure(f"invalid JSON array: {e}")

    prompts: list[str] = []
    for item in parsed:
        if isinstance(item, dict):
            item = item.get("prompt") or item.get("text")
        if isinstance(item, str) and item.strip():
            prompts.append(item.strip())

    if limit is not None:
        prompts = prompts[:limit]

    if not prompts:
        return DecodeResult.failure("no prompts in parsed array")
    return DecodeResult.success(prompts)


def _strip_once(text: str) -> str:
    text = text.strip()
    if text.startswith("**"):
        text = text[2:]
    if text.endswith("**"):
        text = text[:-2]
    text = text.strip()

    for open_q, close_q in _QUOTE_PAIRS:
        if len(text) >= 2 and text.startswith(open_q) and text.endswith(close_q):
            text = text[1:-1].strip()
            break

    return _LABEL_RE.sub("", text, count=1)


def decode_single_prompt(text: str | None) -> DecodeResult[str]:
    """
    Decode a single free-text prompt.

    Strips surrounding quotes, markdown bold markers and a leading
    ``Prompt:`` label, repeating until nothing more changes.

    Args:
        text: Raw generator output

    Returns:
        DecodeResult holding the prompt string
    """
    if not text:
        return DecodeResult.failure("empty response")

    cleaned = _strip_llm_fences(text)
    while True:
        stripped = _strip_once(cleaned)
        if stripped == cleaned:
            break
        cleaned = stripped

    if not cleaned:
        return DecodeResult.failure("prompt empty after cleanup")
    return DecodeResult.success(cleaned)
