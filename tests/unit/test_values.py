"""Tests for the runtime value model."""

from __future__ import annotations

import math
from collections import OrderedDict

import pytest
from pydantic import ValidationError

from rulexpr.core.errors import UnsupportedValueError
from rulexpr.core.ir.values import (
    EMPTY_STRING,
    FALSE,
    INT64_MAX,
    INT64_MIN,
    NULL,
    TRUE,
    UINT64_MAX,
    BoolValue,
    FloatValue,
    IntValue,
    MapValue,
    NullValue,
    StrValue,
    UIntValue,
    ValueKind,
    float64,
    format_float,
    from_native,
    int64,
    uint64,
)


class TestFromNative:
    """Host values widen into the closed Value union."""

    def test_none(self) -> None:
        assert from_native(None) is NULL

    def test_bool_before_int(self) -> None:
        assert from_native(True) is TRUE
        assert from_native(False) is FALSE

    def test_small_int_is_signed(self) -> None:
        value = from_native(5)
        assert isinstance(value, IntValue)
        assert value.value == 5

    def test_int64_bounds(self) -> None:
        assert isinstance(from_native(INT64_MIN), IntValue)
        assert isinstance(from_native(INT64_MAX), IntValue)

    def test_large_int_is_unsigned(self) -> None:
        value = from_native(INT64_MAX + 1)
        assert isinstance(value, UIntValue)
        assert value.value == INT64_MAX + 1

    def test_int_too_large(self) -> None:
        with pytest.raises(UnsupportedValueError, match="64 bits"):
            from_native(UINT64_MAX + 1)

    def test_int_too_small(self) -> None:
        with pytest.raises(UnsupportedValueError):
            from_native(INT64_MIN - 1)

    def test_float(self) -> None:
        assert from_native(1.5) == FloatValue(value=1.5)

    def test_str(self) -> None:
        assert from_native("x") == StrValue(value="x")

    def test_mapping(self) -> None:
        value = from_native(OrderedDict(a=1))
        assert isinstance(value, MapValue)
        assert "a" in value
        assert value.lookup("a") == IntValue(value=1)

    def test_mapping_with_non_string_keys(self) -> None:
        with pytest.raises(UnsupportedValueError, match="keys"):
            from_native({1: "a"})

    def test_value_passthrough(self) -> None:
        value = uint64(3)
        assert from_native(value) is value

    @pytest.mark.parametrize("raw", [[1, 2], (1,), object(), b"bytes"])
    def test_unsupported(self, raw: object) -> None:
        with pytest.raises(UnsupportedValueError):
            from_native(raw)


class TestValueModels:
    def test_kinds(self) -> None:
        assert NULL.kind == ValueKind.NULL
        assert TRUE.kind == ValueKind.BOOL
        assert int64(1).kind == ValueKind.INT64
        assert uint64(1).kind == ValueKind.UINT64
        assert float64(1).kind == ValueKind.FLOAT64
        assert EMPTY_STRING.kind == ValueKind.STRING
        assert MapValue().kind == ValueKind.MAP

    def test_frozen(self) -> None:
        value = int64(1)
        with pytest.raises(ValidationError):
            value.value = 2

    def test_int64_range_enforced(self) -> None:
        with pytest.raises(ValidationError):
            IntValue(value=INT64_MAX + 1)

    def test_uint64_rejects_negative(self) -> None:
        with pytest.raises(ValidationError):
            UIntValue(value=-1)

    def test_strict_payloads(self) -> None:
        with pytest.raises(ValidationError):
            IntValue(value=True)
        with pytest.raises(ValidationError):
            StrValue(value=1)
        with pytest.raises(ValidationError):
            BoolValue(value=1)

    def test_float64_constructor_accepts_int(self) -> None:
        assert float64(2).value == 2.0

    def test_to_python(self) -> None:
        assert NullValue().to_python() is None
        assert TRUE.to_python() is True
        assert int64(-3).to_python() == -3
        assert StrValue(value="x").to_python() == "x"
        assert MapValue(entries={"a": 1}).to_python() == {"a": 1}

    def test_lookup_missing(self) -> None:
        with pytest.raises(KeyError):
            MapValue(entries={}).lookup("a")


class TestStringification:
    """str() is the rendering used when coercing into strings."""

    def test_null(self) -> None:
        assert str(NULL) == ""

    def test_bool(self) -> None:
        assert str(TRUE) == "true"
        assert str(FALSE) == "false"

    def test_integers(self) -> None:
        assert str(int64(-10)) == "-10"
        assert str(uint64(UINT64_MAX)) == "18446744073709551615"

    def test_integral_float_drops_fraction(self) -> None:
        assert str(float64(10.0)) == "10"

    def test_fractional_float(self) -> None:
        assert str(float64(0.5)) == "0.5"

    def test_map(self) -> None:
        assert str(MapValue(entries={"b": 2, "a": "x"})) == "map[a:x b:2]"

    def test_format_float_specials(self) -> None:
        assert format_float(math.nan) == "NaN"
        assert format_float(math.inf) == "+Inf"
        assert format_float(-math.inf) == "-Inf"
        assert format_float(1e21) == "1e+21"
