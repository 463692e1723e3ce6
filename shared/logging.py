"""
Shared logging configuration for the rules engine.
"""

import sys
import structlog
import logging
import uuid
from typing import Any, Dict, Iterator, Optional
from contextlib import contextmanager
from contextvars import ContextVar

# Context variables for evaluation correlation
evaluation_id_var: ContextVar[Optional[str]] = ContextVar('evaluation_id', default=None)
rule_set_var: ContextVar[Optional[str]] = ContextVar('rule_set', default=None)


def configure_logging(service_name: str, log_level: str = "info") -> None:
    """Configure structured logging for a component."""

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            add_service_context,
            add_evaluation_context,
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Configure standard library logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )


def add_service_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add service context to log events."""
    # Extract component name from logger name
    logger_name = event_dict.get("logger", "")
    if "." in logger_name:
        event_dict["service"] = logger_name.split(".")[0]

    return event_dict


def add_evaluation_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add evaluation correlation context to log events."""
    evaluation_id = evaluation_id_var.get()
    if evaluation_id:
        event_dict["evaluation_id"] = evaluation_id

    rule_set = rule_set_var.get()
    if rule_set:
        event_dict["rule_set"] = rule_set

    return event_dict


def set_evaluation_context(evaluation_id: Optional[str] = None, rule_set: Optional[str] = None) -> str:
    """Set evaluation context for logging."""
    if evaluation_id is None:
        evaluation_id = str(uuid.uuid4())
    evaluation_id_var.set(evaluation_id)
    if rule_set:
        rule_set_var.set(rule_set)
    return evaluation_id


@contextmanager
def evaluation_context(evaluation_id: Optional[str] = None, rule_set: Optional[str] = None) -> Iterator[str]:
    """
    Scope evaluation context to a block.

    An evaluation_id already set by the caller is reused. On exit both
    variables are restored to the values they had on entry.
    """
    if evaluation_id is None:
        evaluation_id = evaluation_id_var.get() or str(uuid.uuid4())
    id_token = evaluation_id_var.set(evaluation_id)
    rule_set_token = rule_set_var.set(rule_set or rule_set_var.get())
    try:
        yield evaluation_id
    finally:
        rule_set_var.reset(rule_set_token)
        evaluation_id_var.reset(id_token)


def clear_context():
    """Clear all context variables."""
    evaluation_id_var.set(None)
    rule_set_var.set(None)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
