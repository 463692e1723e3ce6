"""
Rule catalog loading and registry.

Catalogs are YAML documents describing one rule set. They are validated in
two passes: structure (pydantic) and semantics (field references checked
against the fact model). Both fail fast with ``CatalogConfigurationError``.
"""

import threading
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Type, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from shared.config import EngineConfig
from shared.errors import CatalogConfigurationError
from shared.logging import get_logger
from .actions import Assignment, AssignmentAction
from .conditions import AllOf, AnyOf, Condition, ConditionOperator, FieldCondition, Not
from .domain import FACT_MODELS
from .expressions import compile_expression
from .facts import FactSchema
from .models import Rule, RuleSet


logger = get_logger("rules_engine.catalog")

BUILTIN_CATALOG_DIR = Path(__file__).parent / "catalogs"

_LEAF_KEYS = {"field", "operator", "value", "description"}
_NULL_OPERATORS = {ConditionOperator.IS_NULL, ConditionOperator.NOT_NULL}


class AssignmentDefinition(BaseModel):
    """Catalog model for one field assignment."""
    model_config = ConfigDict(extra="forbid")

    field: str = Field(..., min_length=1, description="Output field to write")
    value: Any = Field(None, description="Expression for the new value")


class RuleDefinition(BaseModel):
    """Catalog model for a rule."""
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, description="Rule name")
    description: Optional[str] = Field(None, description="Rule description")
    salience: int = Field(0, description="Rule priority, higher fires first")
    no_loop: bool = Field(True, description="Suppress re-firing within one evaluation")
    conditions: List[Dict[str, Any]] = Field(default_factory=list, description="Rule conditions")
    actions: List[AssignmentDefinition] = Field(..., min_length=1, description="Field assignments")


class CatalogDocument(BaseModel):
    """Catalog model for a rule set."""
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, description="Rule set name")
    fact: str = Field(..., description="Fact model key")
    version: Optional[str] = Field(None, description="Catalog version")
    description: Optional[str] = Field(None, description="Catalog description")
    rules: List[RuleDefinition] = Field(default_factory=list, description="Rules in declaration order")


def compile_condition(raw: Any) -> Condition:
    """Compile a raw condition mapping."""
    if not isinstance(raw, dict):
        raise CatalogConfigurationError("Condition must be a mapping", {"condition": raw})

    for key, combinator in (("all", AllOf), ("any", AnyOf)):
        if key in raw:
            children = raw[key]
            if len(raw) != 1 or not isinstance(children, list):
                raise CatalogConfigurationError(
                    f"'{key}' condition must be the only key and hold a list",
                    {"condition": raw}
                )
            return combinator([compile_condition(child) for child in children])

    if "not" in raw:
        if len(raw) != 1:
            raise CatalogConfigurationError("'not' condition must be the only key", {"condition": raw})
        return Not(compile_condition(raw["not"]))

    unknown = set(raw) - _LEAF_KEYS
    if unknown or "field" not in raw or "operator" not in raw:
        raise CatalogConfigurationError(
            "Condition needs 'field' and 'operator'",
            {"condition": raw, "unknown_keys": sorted(unknown)}
        )

    try:
        operator = ConditionOperator(raw["operator"])
    except ValueError:
        raise CatalogConfigurationError(
            f"Unknown condition operator '{raw['operator']}'",
            {"condition": raw, "operators": [op.value for op in ConditionOperator]}
        )

    if operator not in _NULL_OPERATORS and "value" not in raw:
        raise CatalogConfigurationError(
            f"Operator '{operator.value}' needs a value",
            {"condition": raw}
        )

    value = compile_expression(raw["value"]) if "value" in raw else None
    return FieldCondition(raw["field"], operator, value)


def _compile_rule(definition: RuleDefinition, schema: FactSchema) -> Rule:
    condition = AllOf([compile_condition(raw) for raw in definition.conditions])
    action = AssignmentAction([
        Assignment(field=a.field, value=compile_expression(a.value))
        for a in definition.actions
    ])

    unknown = (condition.fields() | action.fields() | action.targets) - schema.fields
    if unknown:
        raise CatalogConfigurationError(
            f"Rule '{definition.name}' references unknown fields",
            {"rule": definition.name, "fact": schema.name, "fields": sorted(unknown)}
        )

    inputs = action.targets - schema.output_fields
    if inputs:
        raise CatalogConfigurationError(
            f"Rule '{definition.name}' writes input fields",
            {"rule": definition.name, "fact": schema.name, "fields": sorted(inputs)}
        )

    return Rule(
        name=definition.name,
        condition=condition,
        action=action,
        salience=definition.salience,
        no_loop=definition.no_loop,
        description=definition.description
    )


def _read_document(source: Union[str, Path, Mapping[str, Any]]) -> Dict[str, Any]:
    if isinstance(source, Mapping):
        return dict(source)

    path = Path(source)
    try:
        with open(path, 'r') as f:
            document = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise CatalogConfigurationError(f"Invalid YAML: {e}", {"path": str(path)})
    except OSError as e:
        raise CatalogConfigurationError(f"Error reading catalog: {e}", {"path": str(path)})

    if not isinstance(document, dict):
        raise CatalogConfigurationError("Catalog must be a mapping", {"path": str(path)})
    return document


def load_rule_set(
    source: Union[str, Path, Mapping[str, Any]],
    fact_models: Optional[Mapping[str, Type[BaseModel]]] = None
) -> RuleSet:
    """Load and validate a rule set from a YAML file or a mapping."""
    fact_models = FACT_MODELS if fact_models is None else fact_models
    raw = _read_document(source)

    try:
        document = CatalogDocument.model_validate(raw)
    except ValidationError as e:
        raise CatalogConfigurationError(
            "Catalog structure is invalid",
            {"errors": e.errors(include_url=False, include_input=False)}
        )

    model_cls = fact_models.get(document.fact)
    if model_cls is None:
        raise CatalogConfigurationError(
            f"Unknown fact type '{document.fact}'",
            {"rule_set": document.name, "fact_types": sorted(fact_models)}
        )
    schema = FactSchema.from_model(model_cls)

    rule_set = RuleSet(
        name=document.name,
        rules=tuple(_compile_rule(definition, schema) for definition in document.rules),
        fact_type=document.fact,
        version=document.version
    )

    logger.info(
        "Rule set loaded",
        rule_set=rule_set.name,
        fact=document.fact,
        version=document.version,
        rules=len(rule_set)
    )
    return rule_set


def load_builtin_rule_set(name: str) -> RuleSet:
    """Load one of the packaged catalogs (offer, order, payment)."""
    path = BUILTIN_CATALOG_DIR / f"{name}.yaml"
    if not path.exists():
        raise CatalogConfigurationError(
            f"No built-in catalog named '{name}'",
            {"available": sorted(p.stem for p in BUILTIN_CATALOG_DIR.glob("*.yaml"))}
        )
    return load_rule_set(path)


class RuleCatalog:
    """
    Registry of named rule sets.

    Updates replace the whole mapping, so a reader always sees one consistent
    set of rule sets and in-flight evaluations keep the rule set they fetched.
    Writers are serialized; readers never lock.
    """

    def __init__(self, fact_models: Optional[Mapping[str, Type[BaseModel]]] = None):
        self.logger = get_logger("rules_engine.catalog")
        self.fact_models = dict(FACT_MODELS if fact_models is None else fact_models)
        self._rule_sets: Dict[str, RuleSet] = {}
        self._write_lock = threading.Lock()

    @classmethod
    def from_config(cls, config: EngineConfig) -> "RuleCatalog":
        catalog = cls()
        if config.load_builtin_catalogs:
            catalog.load_directory(BUILTIN_CATALOG_DIR)
        if config.catalog_dir:
            catalog.load_directory(config.catalog_dir)
        return catalog

    def register(self, rule_set: RuleSet) -> None:
        """Add a new rule set."""
        with self._write_lock:
            if rule_set.name in self._rule_sets:
                raise CatalogConfigurationError(
                    f"Rule set '{rule_set.name}' is already registered",
                    {"rule_set": rule_set.name}
                )
            self._rule_sets = {**self._rule_sets, rule_set.name: rule_set}
        self.logger.info("Rule set registered", rule_set=rule_set.name, rules=len(rule_set))

    def replace(self, rule_set: RuleSet) -> Optional[RuleSet]:
        """Swap in a rule set, returning the one it replaced."""
        with self._write_lock:
            previous = self._rule_sets.get(rule_set.name)
            self._rule_sets = {**self._rule_sets, rule_set.name: rule_set}
        self.logger.info(
            "Rule set replaced",
            rule_set=rule_set.name,
            rules=len(rule_set),
            previous_version=previous.version if previous else None,
            version=rule_set.version
        )
        return previous

    def remove(self, name: str) -> bool:
        """Remove a rule set."""
        with self._write_lock:
            if name not in self._rule_sets:
                return False
            rule_sets = dict(self._rule_sets)
            del rule_sets[name]
            self._rule_sets = rule_sets
        self.logger.info("Rule set removed", rule_set=name)
        return True

    def get(self, name: str) -> Optional[RuleSet]:
        """Get a rule set by name."""
        return self._rule_sets.get(name)

    def __getitem__(self, name: str) -> RuleSet:
        rule_set = self._rule_sets.get(name)
        if rule_set is None:
            raise KeyError(name)
        return rule_set

    def __contains__(self, name: str) -> bool:
        return name in self._rule_sets

    def names(self) -> List[str]:
        return sorted(self._rule_sets)

    def load_file(self, path: Union[str, Path]) -> RuleSet:
        """Load a YAML catalog and swap it in."""
        rule_set = load_rule_set(path, self.fact_models)
        self.replace(rule_set)
        return rule_set

    def load_directory(self, directory: Union[str, Path]) -> List[RuleSet]:
        """
        Load every ``*.yaml`` catalog in a directory.

        All files are validated before any of them is swapped in.
        """
        directory = Path(directory)
        if not directory.is_dir():
            raise CatalogConfigurationError(
                f"Catalog directory not found: {directory}",
                {"path": str(directory)}
            )

        rule_sets = [
            load_rule_set(path, self.fact_models)
            for path in sorted(directory.glob("*.yaml"))
        ]
        for rule_set in rule_sets:
            self.replace(rule_set)
        return rule_sets

    def get_stats(self) -> Dict[str, Any]:
        """Get catalog statistics."""
        rule_sets = self._rule_sets
        return {
            "total_rule_sets": len(rule_sets),
            "total_rules": sum(len(rs) for rs in rule_sets.values()),
            "rule_sets": {
                name: {"rules": len(rs), "version": rs.version, "fact": rs.fact_type}
                for name, rs in rule_sets.items()
            }
        }
