"""
AgentWiki - Monitoring Module

Structured logging and request context helpers.
"""

from .logging import (
    LoggingContextMiddleware,
    bind_context,
    clear_context,
    configure_logging,
    log_duration,
)

__all__ = [
    "configure_logging",
    "bind_context",
    "clear_context",
    "log_duration",
    "LoggingContextMiddleware",
]
