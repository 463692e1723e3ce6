"""
Forward-chaining rule engine for single-record evaluations.

A caller wraps a record in a ``Fact``, picks a ``RuleSet`` (usually from a
``RuleCatalog``) and calls ``RuleEngine.evaluate``. Rules fire one at a time
by salience until no rule matches.
"""

from .actions import Action, Assignment, AssignmentAction, CallableAction, assign
from .catalog import RuleCatalog, load_builtin_rule_set, load_rule_set
from .conditions import (
    AllOf, AnyOf, Condition, ConditionOperator, FieldCondition, Not,
    PredicateCondition, when
)
from .engine import RuleEngine
from .facts import Fact, FactModel, FactSchema, output_field
from .models import EvaluationResult, FiredRule, Rule, RuleSet

__all__ = [
    "Action", "Assignment", "AssignmentAction", "CallableAction", "assign",
    "RuleCatalog", "load_builtin_rule_set", "load_rule_set",
    "AllOf", "AnyOf", "Condition", "ConditionOperator", "FieldCondition", "Not",
    "PredicateCondition", "when",
    "RuleEngine",
    "Fact", "FactModel", "FactSchema", "output_field",
    "EvaluationResult", "FiredRule", "Rule", "RuleSet",
]
