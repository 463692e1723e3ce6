"""
Shared error handling for the rules engine.
"""

from typing import Dict, Any, List, Optional, Sequence
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    code: str
    message: str
    details: Dict[str, Any] = {}


class RulesEngineException(Exception):
    """Base exception for the rules engine."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            code=self.code,
            message=self.message,
            details=self.details
        )


class CatalogConfigurationError(RulesEngineException):
    """Malformed rule catalog, detected at load time."""

    def __init__(self, message: str = "Invalid rule catalog", details: Optional[Dict[str, Any]] = None):
        super().__init__("CATALOG_ERROR", message, details)


class FactFieldError(RulesEngineException):
    """Unknown field, or a write to an input field."""

    def __init__(self, message: str = "Invalid fact field", details: Optional[Dict[str, Any]] = None):
        super().__init__("FACT_FIELD_ERROR", message, details)


class EvaluationAborted(RulesEngineException):
    """
    Evaluation stopped before reaching a fixpoint.

    ``fired`` holds the ``FiredRule`` entries recorded before the failure;
    their writes remain on the fact.
    """

    def __init__(
        self,
        code: str,
        message: str,
        details: Dict[str, Any],
        fired: Optional[Sequence[Any]] = None
    ):
        self.fired = list(fired or [])
        details["fired_rules"] = self.fired_rule_names
        super().__init__(code, message, details)

    @property
    def fired_rule_names(self) -> List[str]:
        return [entry.rule_name for entry in self.fired]


class RuleEngineCycleExceeded(EvaluationAborted):
    """Agenda did not empty within the iteration cap."""

    def __init__(
        self,
        rule_set_name: str,
        last_agenda_size: int,
        iterations: int,
        fired: Optional[Sequence[Any]] = None
    ):
        self.rule_set_name = rule_set_name
        self.last_agenda_size = last_agenda_size
        self.iterations = iterations
        super().__init__(
            "RULE_CYCLE_EXCEEDED",
            f"Rule set '{rule_set_name}' did not reach a fixpoint after {iterations} iterations",
            {
                "rule_set_name": rule_set_name,
                "last_agenda_size": last_agenda_size,
                "iterations": iterations,
            },
            fired
        )


class RuleExecutionFault(EvaluationAborted):
    """A rule's condition or action raised during evaluation."""

    def __init__(self, rule_name: str, cause: BaseException, fired: Optional[Sequence[Any]] = None):
        self.rule_name = rule_name
        self.cause = cause
        super().__init__(
            "RULE_EXECUTION_FAULT",
            f"Rule '{rule_name}' failed: {cause}",
            {"rule_name": rule_name, "cause": type(cause).__name__},
            fired
        )
