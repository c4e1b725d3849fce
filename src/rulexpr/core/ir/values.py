"""
Runtime value model for rulexpr.

Every environment binding read by the evaluator and every evaluation result
is one of a closed set of frozen models:

- NullValue: absence of a value (unbound names, nil)
- BoolValue: true / false
- IntValue: signed 64-bit integer
- UIntValue: unsigned 64-bit integer
- FloatValue: 64-bit IEEE float
- StrValue: text
- MapValue: nested name -> value mapping, traversed with selectors

Host values are widened into this union by ``from_native``. Python ints land
in IntValue when they fit and UIntValue otherwise; callers that need an
unsigned binding for a small number wrap it explicitly with ``uint64``.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from enum import StrEnum
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from rulexpr.core.errors import UnsupportedValueError

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1
UINT64_MAX = (1 << 64) - 1


class ValueKind(StrEnum):
    """Kinds of runtime values."""

    NULL = "null"
    BOOL = "bool"
    INT64 = "int64"
    UINT64 = "uint64"
    FLOAT64 = "float64"
    STRING = "string"
    MAP = "map"


# ---------------------------------------------------------------------------
# Value types
# ---------------------------------------------------------------------------


class NullValue(BaseModel):
    """The null value."""

    kind: ClassVar[ValueKind] = ValueKind.NULL

    model_config = ConfigDict(frozen=True)

    def to_python(self) -> None:
        return None

    def __str__(self) -> str:
        return ""


class BoolValue(BaseModel):
    """A boolean."""

    kind: ClassVar[ValueKind] = ValueKind.BOOL

    value: bool

    model_config = ConfigDict(frozen=True, strict=True)

    def to_python(self) -> bool:
        return self.value

    def __str__(self) -> str:
        return "true" if self.value else "false"


class IntValue(BaseModel):
    """A signed 64-bit integer."""

    kind: ClassVar[ValueKind] = ValueKind.INT64

    value: int = Field(ge=INT64_MIN, le=INT64_MAX)

    model_config = ConfigDict(frozen=True, strict=True)

    def to_python(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)


class UIntValue(BaseModel):
    """An unsigned 64-bit integer."""

    kind: ClassVar[ValueKind] = ValueKind.UINT64

    value: int = Field(ge=0, le=UINT64_MAX)

    model_config = ConfigDict(frozen=True, strict=True)

    def to_python(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)


class FloatValue(BaseModel):
    """A 64-bit float."""

    kind: ClassVar[ValueKind] = ValueKind.FLOAT64

    value: float

    model_config = ConfigDict(frozen=True)

    def to_python(self) -> float:
        return self.value

    def __str__(self) -> str:
        return format_float(self.value)


class StrValue(BaseModel):
    """A string."""

    kind: ClassVar[ValueKind] = ValueKind.STRING

    value: str

    model_config = ConfigDict(frozen=True, strict=True)

    def to_python(self) -> str:
        return self.value

    def __str__(self) -> str:
        return self.value


class MapValue(BaseModel):
    """
    A nested environment.

    Entries keep their host representation and are widened on lookup, so
    large records are not converted up front.
    """

    kind: ClassVar[ValueKind] = ValueKind.MAP

    entries: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    def lookup(self, name: str) -> Value:
        """Return the entry for ``name`` as a Value.

        Raises:
            KeyError: If the map has no such entry.
        """
        return from_native(self.entries[name])

    def __contains__(self, name: object) -> bool:
        return name in self.entries

    def to_python(self) -> dict[str, Any]:
        return dict(self.entries)

    def __str__(self) -> str:
        items = " ".join(f"{k}:{from_native(v)}" for k, v in sorted(self.entries.items()))
        return f"map[{items}]"


# ---------------------------------------------------------------------------
# Union type
# ---------------------------------------------------------------------------

Value = NullValue | BoolValue | IntValue | UIntValue | FloatValue | StrValue | MapValue

_VALUE_TYPES = (NullValue, BoolValue, IntValue, UIntValue, FloatValue, StrValue, MapValue)

NULL = NullValue()
TRUE = BoolValue(value=True)
FALSE = BoolValue(value=False)
EMPTY_STRING = StrValue(value="")


def format_float(x: float) -> str:
    """Render a float in shortest decimal form; integral floats drop the '.0'."""
    if math.isnan(x):
        return "NaN"
    if math.isinf(x):
        return "+Inf" if x > 0 else "-Inf"
    if x.is_integer() and abs(x) < 1e21:
        return str(int(x))
    return repr(x)


def int64(value: int) -> IntValue:
    """Wrap a Python int as a signed 64-bit value."""
    return IntValue(value=value)


def uint64(value: int) -> UIntValue:
    """Wrap a Python int as an unsigned 64-bit value."""
    return UIntValue(value=value)


def float64(value: float) -> FloatValue:
    """Wrap a number as a 64-bit float value."""
    return FloatValue(value=float(value))


def from_native(raw: Any) -> Value:
    """Widen a host value into the Value union.

    Args:
        raw: A Value, None, bool, int, float, str or Mapping with str keys.

    Returns:
        The corresponding Value.

    Raises:
        UnsupportedValueError: If the value has no representation.
    """
    if isinstance(raw, _VALUE_TYPES):
        return raw
    if raw is None:
        return NULL
    # bool before int: bool is an int subclass
    if isinstance(raw, bool):
        return TRUE if raw else FALSE
    if isinstance(raw, int):
        if INT64_MIN <= raw <= INT64_MAX:
            return IntValue(value=int(raw))
        if 0 <= raw <= UINT64_MAX:
            return UIntValue(value=int(raw))
        raise UnsupportedValueError(f"integer {raw} does not fit in 64 bits")
    if isinstance(raw, float):
        return FloatValue(value=raw)
    if isinstance(raw, str):
        return StrValue(value=str(raw))
    if isinstance(raw, Mapping):
        try:
            return MapValue(entries=dict(raw))
        except ValidationError as e:
            raise UnsupportedValueError(f"map keys must be strings: {e.error_count()} invalid") from e
    raise UnsupportedValueError(f"unsupported value type {type(raw).__name__}")
