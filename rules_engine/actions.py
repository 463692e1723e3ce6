"""
Rule actions.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, Optional, Protocol, Sequence

from .expressions import Expression, compile_expression
from .facts import Fact


class Action(Protocol):
    """Action interface."""

    def apply(self, fact: Fact) -> None:
        ...


@dataclass(frozen=True)
class Assignment:
    """Single field assignment."""
    field: str
    value: Expression


class AssignmentAction:
    """
    Ordered set of field assignments.

    Right-hand sides are computed against a staging overlay, so an assignment
    sees values written earlier in the same action. Writes are committed only
    after every value has been computed and validated.
    """

    def __init__(self, assignments: Sequence[Assignment]):
        self.assignments = tuple(assignments)

    def apply(self, fact: Fact) -> None:
        staged: Dict[str, Any] = {}

        def resolve(name: str) -> Any:
            if name in staged:
                return staged[name]
            return fact.get(name)

        for assignment in self.assignments:
            staged[assignment.field] = assignment.value.evaluate(resolve)

        fact.update(staged)

    @property
    def targets(self) -> FrozenSet[str]:
        return frozenset(a.field for a in self.assignments)

    def fields(self) -> FrozenSet[str]:
        """Fields read by right-hand sides."""
        return frozenset().union(*(a.value.fields() for a in self.assignments))

    def __repr__(self) -> str:
        return f"AssignmentAction({[a.field for a in self.assignments]!r})"


class CallableAction:
    """Wraps a plain callable taking the fact."""

    def __init__(self, fn: Callable[[Fact], None], name: Optional[str] = None):
        self.fn = fn
        self.name = name or getattr(fn, "__name__", "action")

    def apply(self, fact: Fact) -> None:
        self.fn(fact)

    def __repr__(self) -> str:
        return f"CallableAction({self.name!r})"


def assign(**values: Any) -> AssignmentAction:
    """Build an assignment action from keyword expressions."""
    return AssignmentAction([
        Assignment(field=name, value=compile_expression(value))
        for name, value in values.items()
    ])
