"""
Unit tests for shared logging helpers.
"""

import json
import logging
from datetime import datetime

import pytest
import structlog
from structlog.testing import capture_logs

from shared.errors import RuleExecutionFault
from shared.logging import (
    add_evaluation_context, add_service_context, clear_context,
    configure_logging, evaluation_context, evaluation_id_var, get_logger,
    rule_set_var, set_evaluation_context
)
from rules_engine.actions import CallableAction, assign
from rules_engine.conditions import PredicateCondition
from rules_engine.engine import RuleEngine
from rules_engine.facts import FactModel, output_field
from rules_engine.models import Rule, RuleSet


class Flag(FactModel):
    """Fact used by logging tests."""
    raised: bool = output_field(False)


class TestLogging:
    """Test cases for structured logging."""

    @pytest.fixture(autouse=True)
    def reset(self):
        """Reset logging state around each test."""
        clear_context()
        yield
        clear_context()
        structlog.reset_defaults()

    def test_evaluation_context_processor(self):
        """Correlation fields are added from context variables."""
        evaluation_id = set_evaluation_context(rule_set="payment")

        event = add_evaluation_context(None, "info", {"event": "x"})

        assert event["evaluation_id"] == evaluation_id
        assert event["rule_set"] == "payment"

    def test_clear_context(self):
        """Cleared context adds nothing."""
        set_evaluation_context("eval-1", "offer")
        clear_context()

        assert add_evaluation_context(None, "info", {"event": "x"}) == {"event": "x"}

    def test_service_context_processor(self):
        """The first logger name segment becomes the service."""
        event = add_service_context(None, "info", {"logger": "rules_engine.engine"})

        assert event["service"] == "rules_engine"

    def test_configure_logging(self):
        """configure_logging installs the stdlib-backed pipeline."""
        configure_logging("rules_engine", "debug")

        assert structlog.is_configured()
        assert get_logger("rules_engine.test") is not None

    def test_engine_emits_firing_events(self):
        """The engine logs each firing and the completion."""
        rule_set = RuleSet(name="flags", rules=[
            Rule(
                name="raise",
                condition=PredicateCondition(lambda fact: True),
                action=assign(raised=True)
            )
        ])

        with capture_logs() as logs:
            RuleEngine().evaluate(Flag(), rule_set)

        events = [entry["event"] for entry in logs]
        assert "Rule fired" in events
        assert "Evaluation complete" in events
        fired = next(entry for entry in logs if entry["event"] == "Rule fired")
        assert fired["rule"] == "raise"

    def test_rendered_timestamp_is_iso(self, caplog):
        """Rendered events carry an ISO-8601 timestamp."""
        configure_logging("rules_engine", "info")
        caplog.set_level(logging.INFO)

        get_logger("rules_engine.test").info("Timestamped", answer=42)

        message = next(
            record.getMessage() for record in caplog.records
            if "Timestamped" in record.getMessage()
        )
        payload = json.loads(message)
        assert isinstance(payload["timestamp"], str)
        assert datetime.fromisoformat(payload["timestamp"].replace("Z", "+00:00"))
        assert payload["answer"] == 42
        assert payload["service"] == "rules_engine"

    def test_evaluation_context_restores_previous_values(self):
        """Leaving the block restores whatever was set before it."""
        set_evaluation_context("outer-id", "outer")

        with evaluation_context(rule_set="inner") as evaluation_id:
            assert evaluation_id == "outer-id"
            assert rule_set_var.get() == "inner"

        assert evaluation_id_var.get() == "outer-id"
        assert rule_set_var.get() == "outer"

    def test_evaluation_context_generates_id_when_unset(self):
        """Without a caller id a fresh one is used and then cleared."""
        with evaluation_context(rule_set="offer") as evaluation_id:
            assert evaluation_id
            assert evaluation_id_var.get() == evaluation_id

        assert evaluation_id_var.get() is None
        assert rule_set_var.get() is None

    def test_engine_keeps_caller_context(self):
        """Evaluation reuses the caller's id and leaves its context in place."""
        seen = {}

        def record_context(fact):
            seen["evaluation_id"] = evaluation_id_var.get()
            seen["rule_set"] = rule_set_var.get()
            fact.set("raised", True)

        rule_set = RuleSet(name="flags", rules=[
            Rule(
                name="record",
                condition=PredicateCondition(lambda fact: True),
                action=CallableAction(record_context)
            )
        ])
        set_evaluation_context("caller-id", "outer")

        RuleEngine().evaluate(Flag(), rule_set)

        assert seen == {"evaluation_id": "caller-id", "rule_set": "flags"}
        assert evaluation_id_var.get() == "caller-id"
        assert rule_set_var.get() == "outer"

    def test_engine_restores_context_after_fault(self):
        """A failed evaluation also restores the caller's context."""
        def explode(fact):
            raise ValueError("boom")

        rule_set = RuleSet(name="faulty", rules=[
            Rule(
                name="explode",
                condition=PredicateCondition(lambda fact: True),
                action=CallableAction(explode)
            )
        ])
        set_evaluation_context("caller-id", "outer")

        with pytest.raises(RuleExecutionFault):
            RuleEngine().evaluate(Flag(), rule_set)

        assert evaluation_id_var.get() == "caller-id"
        assert rule_set_var.get() == "outer"
