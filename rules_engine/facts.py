"""
Fact representation for the rule engine.

A fact wraps a pydantic record. Input fields are supplied by the caller;
output fields are declared with ``output_field()`` and are the only fields
rule actions may write.
"""

from typing import Any, Dict, FrozenSet, Type

from pydantic import BaseModel, ConfigDict, Field

from shared.errors import FactFieldError


OUTPUT_MARKER = "output"


def output_field(default: Any = None, **kwargs) -> Any:
    """Declare a field written by rule actions."""
    return Field(default=default, json_schema_extra={OUTPUT_MARKER: True}, **kwargs)


class FactModel(BaseModel):
    """Base class for fact records."""

    model_config = ConfigDict(validate_assignment=True)


def _is_output(field_info) -> bool:
    extra = field_info.json_schema_extra
    return isinstance(extra, dict) and bool(extra.get(OUTPUT_MARKER))


class FactSchema:
    """Field schema of a fact model, used to validate catalogs at load time."""

    def __init__(self, name: str, fields: FrozenSet[str], output_fields: FrozenSet[str]):
        self.name = name
        self.fields = fields
        self.output_fields = output_fields

    @classmethod
    def from_model(cls, model_cls: Type[BaseModel]) -> "FactSchema":
        fields = frozenset(model_cls.model_fields)
        outputs = frozenset(
            name for name, info in model_cls.model_fields.items() if _is_output(info)
        )
        return cls(model_cls.__name__, fields, outputs)

    @property
    def input_fields(self) -> FrozenSet[str]:
        return self.fields - self.output_fields

    def __repr__(self) -> str:
        return f"FactSchema({self.name!r}, fields={len(self.fields)}, outputs={len(self.output_fields)})"


class Fact:
    """Mutable record evaluated by the engine."""

    def __init__(self, record: BaseModel):
        if not isinstance(record, BaseModel):
            raise FactFieldError(
                "Fact records must be pydantic models",
                {"type": type(record).__name__}
            )
        self._record = record
        self._schema = FactSchema.from_model(type(record))

    @property
    def record(self) -> BaseModel:
        return self._record

    @property
    def schema(self) -> FactSchema:
        return self._schema

    @property
    def type_name(self) -> str:
        return self._schema.name

    @property
    def field_names(self) -> FrozenSet[str]:
        return self._schema.fields

    @property
    def input_fields(self) -> FrozenSet[str]:
        return self._schema.input_fields

    @property
    def output_fields(self) -> FrozenSet[str]:
        return self._schema.output_fields

    def has_field(self, name: str) -> bool:
        return name in self._schema.fields

    def get(self, name: str) -> Any:
        if name not in self._schema.fields:
            raise FactFieldError(
                f"Unknown field '{name}' on {self.type_name}",
                {"field": name, "fact": self.type_name}
            )
        return getattr(self._record, name)

    def _check_writable(self, name: str) -> None:
        if name not in self._schema.fields:
            raise FactFieldError(
                f"Unknown field '{name}' on {self.type_name}",
                {"field": name, "fact": self.type_name}
            )
        if name not in self._schema.output_fields:
            raise FactFieldError(
                f"Field '{name}' on {self.type_name} is an input field",
                {"field": name, "fact": self.type_name}
            )

    def set(self, name: str, value: Any) -> None:
        self._check_writable(name)
        setattr(self._record, name, value)

    def update(self, values: Dict[str, Any]) -> None:
        """
        Write several output fields at once.

        The merged record is validated before any field is written, so a
        value that fails validation leaves the record unchanged.
        """
        for name in values:
            self._check_writable(name)

        validated = type(self._record).model_validate({**self._record.model_dump(), **values})

        for name in values:
            setattr(self._record, name, getattr(validated, name))

    def snapshot(self) -> Dict[str, Any]:
        """Copy of all field values."""
        return self._record.model_dump()

    def __repr__(self) -> str:
        return f"Fact({self._record!r})"
