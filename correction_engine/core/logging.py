"""
结构化日志 - structlog on top of the standard logging module
Events are snake_case names from ``LogEvent``; context goes in keyword fields.
User text is logged through ``preview`` only.
"""
import logging
import sys
from typing import Any

import structlog
from structlog.types import FilteringBoundLogger, Processor

# Third-party loggers that are chatty at INFO
_QUIET_LOGGERS = ("httpx", "httpcore", "openai", "aiosqlite", "sqlalchemy.engine")


def configure_logging(level: str = "INFO", json_logs: bool = True) -> None:
    """
    初始化日志

    Args:
        level: 标准日志级别名称; unknown names fall back to INFO
        json_logs: JSON lines for production, coloured console output otherwise
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    shared: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]
    renderer: Processor = (
        # Hebrew stays readable instead of \uXXXX escapes
        structlog.processors.JSONRenderer(ensure_ascii=False)
        if json_logs
        else structlog.dev.ConsoleRenderer(colors=True)
    )

    structlog.configure(
        processors=[*shared, renderer],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


def get_logger(name: str, **initial_context: Any) -> FilteringBoundLogger:
    """Module logger, optionally pre-bound with context fields."""
    logger = structlog.get_logger(name)
    return logger.bind(**initial_context) if initial_context else logger


def preview(text: str, limit: int = 50) -> str:
    """Shorten user text for log fields."""
    if text is None:
        return ""
    return text[:limit] + "..." if len(text) > limit else text


class LogEvent:
    """日志事件名称"""

    APP_STARTED = "app_started"
    APP_STOPPED = "app_stopped"
    REQUEST_REJECTED = "request_rejected"
    REQUEST_FAILED = "request_failed"
    UNHANDLED_EXCEPTION = "unhandled_exception"

    # Learning
    PATTERN_CREATED = "pattern_created"
    PATTERN_REINFORCED = "pattern_reinforced"
    PATTERN_UPDATED = "pattern_updated"
    PATTERN_DELETED = "pattern_deleted"
    PATTERN_IMPORTED = "pattern_imported"
    PATTERN_SKIPPED = "pattern_skipped"
    CORRECTION_IGNORED = "correction_ignored"
    ALIGNMENT_UNRESOLVED = "alignment_unresolved"
    TEXT_ANALYZED = "text_analyzed"

    # Generation service
    GENERATION_CALL = "generation_call"
    GENERATION_SUCCESS = "generation_success"
    GENERATION_ERROR = "generation_error"
    SUGGESTIONS_PARSE_FALLBACK = "suggestions_parse_fallback"
    SUGGESTIONS_READY = "suggestions_ready"

    # Storage
    PERSISTENCE_ERROR = "persistence_error"
    UPSERT_RACE_RETRY = "upsert_race_retry"
