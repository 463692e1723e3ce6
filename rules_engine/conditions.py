"""
Rule conditions.

Conditions are pure predicates over a fact. A condition that reads an unset
field does not match (``is_null`` excepted).
"""

from enum import Enum
from typing import Any, Callable, FrozenSet, Optional, Protocol, Sequence

from shared.logging import get_logger
from .expressions import Expression, Literal
from .facts import Fact


logger = get_logger("rules_engine.conditions")


class Condition(Protocol):
    """Condition interface."""

    def matches(self, fact: Fact) -> bool:
        ...

    def fields(self) -> FrozenSet[str]:
        ...


class ConditionOperator(str, Enum):
    """Field condition operators."""
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    IN = "in"
    NOT_IN = "not_in"
    GREATER_THAN = "greater_than"
    GREATER_THAN_OR_EQUAL = "greater_than_or_equal"
    LESS_THAN = "less_than"
    LESS_THAN_OR_EQUAL = "less_than_or_equal"
    CONTAINS = "contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    IS_NULL = "is_null"
    NOT_NULL = "not_null"


class FieldCondition:
    """Compares one fact field against an operand expression."""

    def __init__(self, field: str, operator: ConditionOperator, value: Optional[Expression] = None):
        self.field = field
        self.operator = ConditionOperator(operator)
        self.value = value if value is not None else Literal(None)

    def matches(self, fact: Fact) -> bool:
        field_value = fact.get(self.field)

        if self.operator == ConditionOperator.IS_NULL:
            return field_value is None

        if field_value is None:
            return False

        if self.operator == ConditionOperator.NOT_NULL:
            return True

        operand = self.value.evaluate(fact.get)
        if operand is None:
            return False

        try:
            return self._compare(field_value, operand)
        except TypeError:
            logger.debug(
                "Incomparable condition operands",
                field=self.field,
                operator=self.operator.value,
                field_type=type(field_value).__name__,
                operand_type=type(operand).__name__
            )
            return False

    def _compare(self, field_value: Any, operand: Any) -> bool:
        if self.operator == ConditionOperator.EQUALS:
            return field_value == operand

        elif self.operator == ConditionOperator.NOT_EQUALS:
            return field_value != operand

        elif self.operator == ConditionOperator.IN:
            return field_value in operand

        elif self.operator == ConditionOperator.NOT_IN:
            return field_value not in operand

        elif self.operator == ConditionOperator.GREATER_THAN:
            return field_value > operand

        elif self.operator == ConditionOperator.GREATER_THAN_OR_EQUAL:
            return field_value >= operand

        elif self.operator == ConditionOperator.LESS_THAN:
            return field_value < operand

        elif self.operator == ConditionOperator.LESS_THAN_OR_EQUAL:
            return field_value <= operand

        elif self.operator == ConditionOperator.CONTAINS:
            if isinstance(field_value, (list, tuple, set, frozenset)):
                return operand in field_value
            return str(operand) in str(field_value)

        elif self.operator == ConditionOperator.STARTS_WITH:
            return str(field_value).startswith(str(operand))

        elif self.operator == ConditionOperator.ENDS_WITH:
            return str(field_value).endswith(str(operand))

        return False

    def fields(self) -> FrozenSet[str]:
        return frozenset([self.field]) | self.value.fields()

    def __repr__(self) -> str:
        return f"FieldCondition({self.field!r}, {self.operator.value}, {self.value!r})"


class AllOf:
    """Matches when every child matches; empty matches everything."""

    def __init__(self, conditions: Sequence[Condition]):
        self.conditions = tuple(conditions)

    def matches(self, fact: Fact) -> bool:
        return all(condition.matches(fact) for condition in self.conditions)

    def fields(self) -> FrozenSet[str]:
        return frozenset().union(*(c.fields() for c in self.conditions))


class AnyOf:
    """Matches when at least one child matches."""

    def __init__(self, conditions: Sequence[Condition]):
        self.conditions = tuple(conditions)

    def matches(self, fact: Fact) -> bool:
        return any(condition.matches(fact) for condition in self.conditions)

    def fields(self) -> FrozenSet[str]:
        return frozenset().union(*(c.fields() for c in self.conditions))


class Not:
    """Negates a child condition."""

    def __init__(self, condition: Condition):
        self.condition = condition

    def matches(self, fact: Fact) -> bool:
        return not self.condition.matches(fact)

    def fields(self) -> FrozenSet[str]:
        return self.condition.fields()


class PredicateCondition:
    """Wraps a plain callable taking the fact."""

    def __init__(self, fn: Callable[[Fact], bool], name: Optional[str] = None):
        self.fn = fn
        self.name = name or getattr(fn, "__name__", "predicate")

    def matches(self, fact: Fact) -> bool:
        return bool(self.fn(fact))

    def fields(self) -> FrozenSet[str]:
        return frozenset()

    def __repr__(self) -> str:
        return f"PredicateCondition({self.name!r})"


def when(*conditions: Condition) -> Condition:
    """Combine conditions; a single one is returned as is."""
    if len(conditions) == 1:
        return conditions[0]
    return AllOf(conditions)
