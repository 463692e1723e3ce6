"""
Rule evaluation engine.

Forward-chaining match/resolve/act loop over a single fact:

1. Build the agenda: rules whose condition matches and that are not
   suppressed by no-loop.
2. Stop when the agenda is empty.
3. Fail with ``RuleEngineCycleExceeded`` once the iteration cap is reached.
4. Fire the rule with the highest salience (earliest declared on ties),
   then re-scan, since its action may enable other rules.

The engine keeps no per-evaluation state on the instance, so one engine can
serve concurrent evaluations of distinct facts.
"""

import time
from typing import Optional, Set, Union, List

from pydantic import BaseModel

from shared.config import EngineConfig
from shared.errors import RuleEngineCycleExceeded, RuleExecutionFault
from shared.logging import evaluation_context, get_logger
from .facts import Fact
from .models import Rule, RuleSet, FiredRule, EvaluationResult


class RuleEngine:
    """Stateless rule evaluation engine."""

    def __init__(self, max_iterations: Optional[int] = None):
        if max_iterations is not None and max_iterations <= 0:
            raise ValueError("max_iterations must be positive")
        self.logger = get_logger("rules_engine.engine")
        self.max_iterations = max_iterations

    @classmethod
    def from_config(cls, config: EngineConfig) -> "RuleEngine":
        return cls(max_iterations=config.max_iterations)

    def evaluate(
        self,
        fact: Union[Fact, BaseModel],
        rule_set: RuleSet,
        max_iterations: Optional[int] = None
    ) -> EvaluationResult:
        """Evaluate rule set against fact until fixpoint."""
        start_time = time.time()

        if not isinstance(fact, Fact):
            fact = Fact(fact)

        cap = self._iteration_cap(rule_set, max_iterations)

        suppressed: Set[str] = set()
        trace: List[FiredRule] = []
        iteration = 0

        with evaluation_context(rule_set=rule_set.name):
            while True:
                agenda = self._build_agenda(fact, rule_set, suppressed, trace)

                if not agenda:
                    break

                if iteration >= cap:
                    self.logger.warning(
                        "Rule set did not reach fixpoint",
                        fact=fact.type_name,
                        iterations=iteration,
                        agenda=[rule.name for rule in agenda]
                    )
                    raise RuleEngineCycleExceeded(rule_set.name, len(agenda), iteration, fired=trace)

                rule = self._resolve_conflict(agenda)
                self._fire(rule, fact, trace)

                if rule.no_loop:
                    suppressed.add(rule.name)
                trace.append(FiredRule(rule_name=rule.name, iteration=iteration))

                self.logger.debug(
                    "Rule fired",
                    rule=rule.name,
                    salience=rule.salience,
                    iteration=iteration,
                    agenda_size=len(agenda)
                )
                iteration += 1

            result = EvaluationResult(
                rule_set_name=rule_set.name,
                fact=fact,
                fired=trace,
                final_state=fact.snapshot(),
                evaluation_time_ms=(time.time() - start_time) * 1000
            )

            self.logger.info(
                "Evaluation complete",
                fact=fact.type_name,
                fired_count=result.fired_count,
                evaluation_time_ms=result.evaluation_time_ms
            )

            return result

    def _iteration_cap(self, rule_set: RuleSet, max_iterations: Optional[int]) -> int:
        """Call argument, then engine default, then rule set size."""
        if max_iterations is not None:
            if max_iterations <= 0:
                raise ValueError("max_iterations must be positive")
            return max_iterations

        if self.max_iterations is not None:
            return self.max_iterations

        return len(rule_set)

    def _build_agenda(
        self,
        fact: Fact,
        rule_set: RuleSet,
        suppressed: Set[str],
        trace: List[FiredRule]
    ) -> List[Rule]:
        """Matching, unsuppressed rules in declaration order."""
        agenda = []

        for rule in rule_set:
            if rule.name in suppressed:
                continue

            try:
                matched = rule.condition.matches(fact)
            except Exception as e:
                self.logger.error("Condition failed", rule=rule.name, error=str(e))
                raise RuleExecutionFault(rule.name, e, fired=trace) from e

            if matched:
                agenda.append(rule)

        return agenda

    def _resolve_conflict(self, agenda: List[Rule]) -> Rule:
        """Highest salience wins; max() keeps the earliest on ties."""
        return max(agenda, key=lambda rule: rule.salience)

    def _fire(self, rule: Rule, fact: Fact, trace: List[FiredRule]) -> None:
        try:
            rule.action.apply(fact)
        except Exception as e:
            self.logger.error("Action failed", rule=rule.name, error=str(e))
            raise RuleExecutionFault(rule.name, e, fired=trace) from e
