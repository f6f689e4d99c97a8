"""Structured key=value logging for the Journal Prompt Engine.

All loggers under the ``app`` namespace share one stdout handler configured
on first use. Context fields (user_id, workflow, prompt_type, ...) are passed
through ``log_with_context`` and rendered after the message.
"""

import logging
import sys
from typing import Any

ROOT_LOGGER = "app"
_CORE_FIELDS = ("timestamp", "level", "module", "function", "message")


def _render(value: Any) -> str:
    text = str(value)
    if not text or any(c.isspace() for c in text) or "=" in text:
        return '"' + text.replace('"', '\\"') + '"'
    return text


class StructuredFormatter(logging.Formatter):
    """Renders records as ``key=value`` pairs, quoting values with spaces."""

    def format(self, record: logging.LogRecord) -> str:
        fields: dict[str, Any] = dict(
            zip(
                _CORE_FIELDS,
                (
                    self.formatTime(record, self.datefmt),
                    record.levelname,
                    record.module,
                    record.funcName,
                    record.getMessage(),
                ),
            )
        )
        user_id = getattr(record, "user_id", None)
        if user_id is not None:
            fields["user_id"] = user_id
        fields.update(getattr(record, "extra_data", None) or {})

        line = " ".join(f"{key}={_render(value)}" for key, value in fields.items())
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _level_for_env() -> int:
    try:
        from app.core.config import get_settings

        return logging.DEBUG if get_settings().JOURNAL_ENV == "dev" else logging.INFO
    except Exception:
        # Settings unavailable (missing env vars at import time)
        return logging.INFO


def _configure_root() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter())
        root.addHandler(handler)
        root.setLevel(_level_for_env())
    return root


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger that writes through the shared structured handler.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    root = _configure_root()
    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    # Modules outside the app package get a child logger so they share the handler
    return root.getChild(name)


def log_with_context(logger: logging.Logger, level: int, msg: str, **context: Any) -> None:
    """
    Log with additional context fields.

    Args:
        logger: Logger instance
        level: Log level (logging.INFO, etc.)
        msg: Log message
        **context: Context fields (e.g., user_id, workflow, prompt_type)
    """
    user_id = context.pop("user_id", None)
    extra: dict[str, Any] = {"extra_data": context}
    if user_id is not None:
        extra["user_id"] = user_id
    logger.log(level, msg, extra=extra)
