"""
Argument validation for Flow EVM tools.

Each tool declares its input as a tuple of ``Field`` descriptors. A field pairs
an argument name with a rule (hex string, nested object, one-or-many, list) and
says whether it is required or has a default. ``validate_arguments`` applies a
shape to a raw argument bundle and ``input_schema`` renders the same shape as
JSON Schema for ``tools/list``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

ADDRESS_REGEX = re.compile(r"^0x[a-fA-F0-9]{40}$")
HASH_REGEX = re.compile(r"^0x[a-fA-F0-9]{64}$")
HEX_DATA_REGEX = re.compile(r"^0x[a-fA-F0-9]*$")
HEX_QUANTITY_REGEX = re.compile(r"^0x[a-fA-F0-9]+$")
BLOCK_PARAMETER_REGEX = re.compile(r"^(latest|earliest|pending|0x[a-fA-F0-9]+)$")

DEFAULT_BLOCK_PARAMETER = "latest"


class ValidationError(ValueError):
    """Raised when tool arguments do not match the declared shape."""

    def __init__(self, path: str, problem: str) -> None:
        super().__init__(f"{path}: {problem}" if path else problem)
        self.path = path
        self.problem = problem


def _join(path: str, name: str) -> str:
    return f"{path}.{name}" if path else name


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    return type(value).__name__


class Rule:
    """A check applied to a single argument value."""

    def check(self, value: Any, path: str) -> Any:
        raise NotImplementedError

    def json_schema(self) -> Dict[str, Any]:
        raise NotImplementedError


@dataclass(frozen=True)
class HexString(Rule):
    regex: re.Pattern[str]
    expected: str

    def check(self, value: Any, path: str) -> str:
        if not isinstance(value, str):
            raise ValidationError(path, f"expected a string, got {_type_name(value)}")
        if not self.regex.fullmatch(value):
            raise ValidationError(path, f"must be {self.expected}")
        return value

    def json_schema(self) -> Dict[str, Any]:
        return {"type": "string", "pattern": self.regex.pattern}


@dataclass(frozen=True)
class OneOrMany(Rule):
    """A single value or a list of values, each satisfying ``item``."""

    item: Rule

    def check(self, value: Any, path: str) -> Any:
        if isinstance(value, list):
            return [self.item.check(entry, f"{path}[{index}]") for index, entry in enumerate(value)]
        return self.item.check(value, path)

    def json_schema(self) -> Dict[str, Any]:
        item_schema = self.item.json_schema()
        return {"anyOf": [item_schema, {"type": "array", "items": item_schema}]}


@dataclass(frozen=True)
class ListOf(Rule):
    item: Rule
    nullable_items: bool = False

    def check(self, value: Any, path: str) -> list:
        if not isinstance(value, list):
            raise ValidationError(path, f"expected an array, got {_type_name(value)}")
        checked = []
        for index, entry in enumerate(value):
            if entry is None and self.nullable_items:
                checked.append(None)
                continue
            checked.append(self.item.check(entry, f"{path}[{index}]"))
        return checked

    def json_schema(self) -> Dict[str, Any]:
        item_schema = self.item.json_schema()
        if self.nullable_items:
            item_schema = {"anyOf": [item_schema, {"type": "null"}]}
        return {"type": "array", "items": item_schema}


@dataclass(frozen=True)
class ObjectOf(Rule):
    fields: Tuple["Field", ...]

    def check(self, value: Any, path: str) -> Dict[str, Any]:
        if not isinstance(value, dict):
            raise ValidationError(path, f"expected an object, got {_type_name(value)}")
        return _check_fields(self.fields, value, path)

    def json_schema(self) -> Dict[str, Any]:
        return _object_schema(self.fields)


@dataclass(frozen=True)
class Field:
    """A named argument: its rule, whether it may be omitted, and its default."""

    name: str
    rule: Rule
    description: str
    required: bool = True
    default: Optional[Any] = None
    arg: Optional[str] = None

    @property
    def kwarg(self) -> str:
        """Python keyword the validated value is passed under."""
        return self.arg or self.name

    def json_schema(self) -> Dict[str, Any]:
        schema = dict(self.rule.json_schema())
        schema["description"] = self.description
        if self.default is not None:
            schema["default"] = self.default
        return schema


Shape = Tuple[Field, ...]


def _check_fields(fields: Sequence[Field], values: Mapping[str, Any], path: str) -> Dict[str, Any]:
    known = {f.name for f in fields}
    unknown = sorted(name for name in values if name not in known)
    if unknown:
        raise ValidationError(path, f"unexpected argument(s): {', '.join(unknown)}")

    checked: Dict[str, Any] = {}
    for f in fields:
        field_path = _join(path, f.name)
        if f.name not in values or values[f.name] is None:
            if f.default is not None:
                checked[f.name] = f.default
            elif f.required:
                raise ValidationError(field_path, "is required")
            continue
        checked[f.name] = f.rule.check(values[f.name], field_path)
    return checked


def _object_schema(fields: Sequence[Field]) -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": {f.name: f.json_schema() for f in fields},
        "required": [f.name for f in fields if f.required and f.default is None],
        "additionalProperties": False,
    }


def validate_arguments(shape: Sequence[Field], arguments: Any) -> Dict[str, Any]:
    """
    Check ``arguments`` against ``shape``.

    Returns:
        A new dict holding the validated values, with defaults filled in and
        absent optional fields left out.

    Raises:
        ValidationError: naming the first offending field.
    """
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, dict):
        raise ValidationError("", f"arguments must be an object, got {_type_name(arguments)}")
    return _check_fields(shape, arguments, "")


def input_schema(shape: Sequence[Field]) -> Dict[str, Any]:
    """Render ``shape`` as a JSON Schema object."""
    return _object_schema(shape)


ADDRESS = HexString(ADDRESS_REGEX, "a 20-byte hex address (0x followed by 40 hex characters)")
HASH = HexString(HASH_REGEX, "a 32-byte hex value (0x followed by 64 hex characters)")
HEX_DATA = HexString(HEX_DATA_REGEX, "0x-prefixed hex data")
HEX_QUANTITY = HexString(HEX_QUANTITY_REGEX, "a non-empty 0x-prefixed hex value")
BLOCK_PARAMETER = HexString(
    BLOCK_PARAMETER_REGEX, 'a hex block number or one of "latest", "earliest", "pending"'
)


def block_parameter_field() -> Field:
    return Field(
        "blockParameter",
        BLOCK_PARAMETER,
        'Block parameter (default: "latest")',
        required=False,
        default=DEFAULT_BLOCK_PARAMETER,
        arg="block_parameter",
    )


def is_valid_address(address: Optional[str]) -> bool:
    """Format check for 20-byte hex addresses."""
    return isinstance(address, str) and bool(ADDRESS_REGEX.fullmatch(address))


def is_hex_quantity(value: Optional[str]) -> bool:
    return isinstance(value, str) and bool(HEX_QUANTITY_REGEX.fullmatch(value))
