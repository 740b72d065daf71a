"""Declarative argument constraints for tools.

Each tool declares its inputs as a tuple of :class:`FieldSpec`. The
registry evaluates them uniformly before dispatch, and the same specs
render the JSON Schema advertised to the model::

    FieldSpec(
        "address",
        description="The address to get the balance of",
        constraints=(
            Pattern(ADDRESS_PATTERN, "Invalid Ethereum address"),
            NotEqual(ZERO_ADDRESS, "Zero address is not allowed"),
        ),
    )

Evaluation order per field: presence, then type, then constraints in
declaration order. The first violation wins.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

ADDRESS_PATTERN = r"^0x[a-fA-F0-9]{40}$"
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

_JSON_TYPES: dict[str, tuple[type, ...]] = {
    "string": (str,),
    "integer": (int,),
    "number": (int, float),
    "boolean": (bool,),
    "array": (list, tuple),
    "object": (dict,),
}


@dataclass(frozen=True, slots=True)
class Pattern:
    """Value must be a string matching ``regex``."""

    regex: str
    message: str

    def check(self, value: Any) -> bool:
        return isinstance(value, str) and re.fullmatch(self.regex, value) is not None

    def schema(self) -> dict[str, Any]:
        return {"pattern": self.regex}


@dataclass(frozen=True, slots=True)
class NotEqual:
    """Value must differ from ``value`` (case-insensitive for strings)."""

    value: Any
    message: str

    def check(self, value: Any) -> bool:
        if isinstance(value, str) and isinstance(self.value, str):
            return value.lower() != self.value.lower()
        return bool(value != self.value)

    def schema(self) -> dict[str, Any]:
        return {"not": {"const": self.value}}


@dataclass(frozen=True, slots=True)
class Predicate:
    """Value must satisfy an arbitrary check. Not expressible in JSON Schema."""

    fn: Callable[[Any], bool]
    message: str

    def check(self, value: Any) -> bool:
        try:
            return bool(self.fn(value))
        except (TypeError, ValueError, ArithmeticError):
            return False

    def schema(self) -> dict[str, Any]:
        return {}


Constraint = Pattern | NotEqual | Predicate


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """One declared tool input."""

    name: str
    type: str = "string"
    description: str = ""
    required: bool = True
    items: str | None = None  # element type for arrays
    constraints: tuple[Constraint, ...] = field(default_factory=tuple)

    def json_schema(self) -> dict[str, Any]:
        prop: dict[str, Any] = {"type": self.type}
        if self.items:
            prop["items"] = {"type": self.items}
        for c in self.constraints:
            prop.update(c.schema())
        if self.description:
            prop["description"] = self.description
        return prop


def _type_ok(value: Any, type_name: str) -> bool:
    expected = _JSON_TYPES.get(type_name)
    if expected is None:
        return True
    if type_name in ("integer", "number") and isinstance(value, bool):
        return False
    return isinstance(value, expected)


def validate_arguments(
    fields: tuple[FieldSpec, ...], args: Mapping[str, Any]
) -> str | None:
    """Return a description of the first violated rule, or None if valid."""
    for spec in fields:
        if spec.name not in args or args[spec.name] is None:
            if spec.required:
                return f"{spec.name}: required field is missing"
            continue
        value = args[spec.name]
        if not _type_ok(value, spec.type):
            return f"{spec.name}: expected {spec.type}"
        if spec.items:
            for i, item in enumerate(value):
                if not _type_ok(item, spec.items):
                    return f"{spec.name}[{i}]: expected {spec.items}"
        for constraint in spec.constraints:
            if not constraint.check(value):
                return f"{spec.name}: {constraint.message}"
    return None


def build_input_schema(fields: tuple[FieldSpec, ...]) -> dict[str, Any]:
    """Render field specs as a JSON Schema object."""
    schema: dict[str, Any] = {
        "type": "object",
        "properties": {f.name: f.json_schema() for f in fields},
    }
    required = [f.name for f in fields if f.required]
    if required:
        schema["required"] = required
    return schema


def address_field(
    name: str,
    description: str,
    message: str = "Invalid Ethereum address",
) -> FieldSpec:
    """A required, non-zero, 0x-prefixed 40-hex-digit address."""
    return FieldSpec(
        name,
        description=description,
        constraints=(
            Pattern(ADDRESS_PATTERN, message),
            NotEqual(ZERO_ADDRESS, "Zero address is not allowed"),
        ),
    )
