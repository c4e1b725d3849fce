"""
rulexpr - Go-like expressions evaluated against named values.

Compile an expression once, then evaluate it against many environments:

    from rulexpr import must_compile

    expr = must_compile("a + 1 > 2")
    expr.as_bool({"a": 2})  # True
"""

from __future__ import annotations

from ._version import get_version
from .compiled import CompiledExpression, compile, must_compile
from .core import ir
from .core.environment import ExpressionLimits, get_limits
from .core.errors import (
    DivisionByZeroError,
    ExpressionEvalError,
    ExpressionSyntaxError,
    InternalEvalError,
    NegativeShiftCountError,
    RulexprError,
    TypeMismatchError,
    UnknownAttributeError,
    UnsupportedBooleanOperationError,
    UnsupportedNodeError,
    UnsupportedOperatorError,
    UnsupportedValueError,
)
from .core.ir.values import (
    BoolValue,
    FloatValue,
    IntValue,
    MapValue,
    NullValue,
    StrValue,
    UIntValue,
    Value,
    ValueKind,
    float64,
    from_native,
    int64,
    uint64,
)

__version__ = get_version()

__all__ = [
    "__version__",
    "ir",
    # Compilation
    "CompiledExpression",
    "compile",
    "must_compile",
    "ExpressionLimits",
    "get_limits",
    # Values
    "Value",
    "ValueKind",
    "NullValue",
    "BoolValue",
    "IntValue",
    "UIntValue",
    "FloatValue",
    "StrValue",
    "MapValue",
    "from_native",
    "int64",
    "uint64",
    "float64",
    # Errors
    "RulexprError",
    "ExpressionSyntaxError",
    "ExpressionEvalError",
    "UnsupportedNodeError",
    "UnsupportedOperatorError",
    "UnsupportedBooleanOperationError",
    "UnknownAttributeError",
    "DivisionByZeroError",
    "NegativeShiftCountError",
    "TypeMismatchError",
    "UnsupportedValueError",
    "InternalEvalError",
]
