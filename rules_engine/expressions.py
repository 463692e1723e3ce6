"""
Serializable value expressions used by catalog conditions and actions.

Forms accepted by ``compile_expression``:

- scalars are literals (floats become ``Decimal``)
- lists are literal tuples, for ``in``/``not_in`` operands
- ``{"field": name}`` reads a fact field
- ``{op: [args...]}`` applies one of ``OPERATORS``
"""

from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Callable, Dict, FrozenSet, List, Protocol, Sequence

from shared.errors import CatalogConfigurationError


Resolver = Callable[[str], Any]


class Expression(Protocol):
    """Compiled expression."""

    def evaluate(self, resolve: Resolver) -> Any:
        ...

    def fields(self) -> FrozenSet[str]:
        ...


def _normalize_literal(value: Any) -> Any:
    if isinstance(value, float):
        return Decimal(str(value))
    return value


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


class Literal:
    """Constant value."""

    def __init__(self, value: Any):
        self.value = value

    def evaluate(self, resolve: Resolver) -> Any:
        return self.value

    def fields(self) -> FrozenSet[str]:
        return frozenset()

    def __repr__(self) -> str:
        return f"Literal({self.value!r})"


class FieldRef:
    """Reads a field from the fact (or a staged assignment)."""

    def __init__(self, name: str):
        self.name = name

    def evaluate(self, resolve: Resolver) -> Any:
        return resolve(self.name)

    def fields(self) -> FrozenSet[str]:
        return frozenset([self.name])

    def __repr__(self) -> str:
        return f"FieldRef({self.name!r})"


def _add(args: List[Any]) -> Any:
    total = args[0]
    for arg in args[1:]:
        total = total + arg
    return total


def _sub(args: List[Any]) -> Any:
    return args[0] - args[1]


def _mul(args: List[Any]) -> Any:
    product = args[0]
    for arg in args[1:]:
        product = product * arg
    return product


def _div(args: List[Any]) -> Decimal:
    return _to_decimal(args[0]) / _to_decimal(args[1])


def _round(args: List[Any]) -> Decimal:
    exponent = Decimal(1).scaleb(-int(args[1]))
    return _to_decimal(args[0]).quantize(exponent, rounding=ROUND_HALF_UP)


# name -> (function, min args, max args, propagates None)
OPERATORS: Dict[str, tuple] = {
    "add": (_add, 2, None, True),
    "sub": (_sub, 2, 2, True),
    "mul": (_mul, 2, None, True),
    "div": (_div, 2, 2, True),
    "min": (min, 1, None, True),
    "max": (max, 1, None, True),
    "round": (_round, 2, 2, True),
    "today": (lambda args: date.today(), 0, 0, False),
    "now": (lambda args: datetime.now(), 0, 0, False),
}


class Operation:
    """Operator applied to argument expressions."""

    def __init__(self, op: str, args: Sequence[Expression]):
        self.op = op
        self.args = tuple(args)
        self._fn, _, _, self._propagates_none = OPERATORS[op]

    def evaluate(self, resolve: Resolver) -> Any:
        values = [arg.evaluate(resolve) for arg in self.args]
        if self._propagates_none and any(value is None for value in values):
            return None
        return self._fn(values)

    def fields(self) -> FrozenSet[str]:
        names: FrozenSet[str] = frozenset()
        for arg in self.args:
            names = names | arg.fields()
        return names

    def __repr__(self) -> str:
        return f"Operation({self.op!r}, {list(self.args)!r})"


def compile_expression(raw: Any) -> Expression:
    """Compile a raw catalog value into an expression."""
    if isinstance(raw, dict):
        if len(raw) != 1:
            raise CatalogConfigurationError(
                "Expression mappings must have exactly one key",
                {"expression": raw}
            )
        key, value = next(iter(raw.items()))

        if key == "field":
            if not isinstance(value, str) or not value:
                raise CatalogConfigurationError(
                    "Field reference must name a field",
                    {"expression": raw}
                )
            return FieldRef(value)

        if key not in OPERATORS:
            raise CatalogConfigurationError(
                f"Unknown expression operator '{key}'",
                {"expression": raw, "operators": sorted(OPERATORS)}
            )

        args = value if isinstance(value, list) else ([] if value is None else [value])
        _, min_args, max_args, _ = OPERATORS[key]
        if len(args) < min_args or (max_args is not None and len(args) > max_args):
            raise CatalogConfigurationError(
                f"Operator '{key}' got {len(args)} arguments",
                {"expression": raw}
            )
        if key == "round" and not isinstance(args[1], int):
            raise CatalogConfigurationError(
                "round places must be an integer literal",
                {"expression": raw}
            )
        return Operation(key, [compile_expression(arg) for arg in args])

    if isinstance(raw, (list, tuple)):
        return Literal(tuple(_normalize_literal(item) for item in raw))

    return Literal(_normalize_literal(raw))
