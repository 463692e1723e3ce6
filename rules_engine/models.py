"""
Rule data models.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

from shared.errors import CatalogConfigurationError
from .actions import Action
from .conditions import Condition
from .facts import Fact


@dataclass(frozen=True)
class Rule:
    """Named condition/action pair."""
    name: str
    condition: Condition
    action: Action
    salience: int = 0
    no_loop: bool = True
    description: Optional[str] = None


@dataclass(frozen=True)
class RuleSet:
    """Ordered, immutable collection of rules for one domain."""
    name: str
    rules: Tuple[Rule, ...] = ()
    fact_type: Optional[str] = None
    version: Optional[str] = None

    def __post_init__(self):
        # Accept any sequence but store a tuple
        object.__setattr__(self, "rules", tuple(self.rules))

        seen = set()
        for rule in self.rules:
            if rule.name in seen:
                raise CatalogConfigurationError(
                    f"Duplicate rule name '{rule.name}' in rule set '{self.name}'",
                    {"rule_set": self.name, "rule": rule.name}
                )
            seen.add(rule.name)

    def __len__(self) -> int:
        return len(self.rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self.rules)

    def get(self, name: str) -> Optional[Rule]:
        for rule in self.rules:
            if rule.name == name:
                return rule
        return None

    @property
    def rule_names(self) -> List[str]:
        return [rule.name for rule in self.rules]


@dataclass(frozen=True)
class FiredRule:
    """One entry of the firing trace."""
    rule_name: str
    iteration: int


@dataclass
class EvaluationResult:
    """Outcome of one evaluation."""
    rule_set_name: str
    fact: Fact
    fired: List[FiredRule] = field(default_factory=list)
    final_state: Dict[str, Any] = field(default_factory=dict)
    evaluation_time_ms: float = 0.0

    @property
    def fired_rule_names(self) -> List[str]:
        return [entry.rule_name for entry in self.fired]

    @property
    def fired_count(self) -> int:
        return len(self.fired)

    def has_fired(self, rule_name: str) -> bool:
        return any(entry.rule_name == rule_name for entry in self.fired)
