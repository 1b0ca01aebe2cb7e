"""
Convenience accessors for the structured logging facility.

Usage:
    from recordmapper.utils.logging_utils import get_logger, log_context
    log = get_logger("mapper")
    with log_context(model="User", action="create"):
        log.info("inserted row id=%s", 7)
"""

from .manager import (
    ContextAwareFormatter,
    LoggerManager,
    clear_log_context,
    get_log_context,
    get_logger,
    init_logger,
    log_context,
    update_log_context,
)

__all__ = [
    "ContextAwareFormatter",
    "LoggerManager",
    "get_logger",
    "get_log_context",
    "update_log_context",
    "clear_log_context",
    "log_context",
    "init_logger",
]
