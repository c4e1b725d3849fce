"""Core rulexpr functionality: IR, expression language, errors and configuration."""

from . import ir
from .environment import ExpressionLimits, get_limits
from .errors import (
    DivisionByZeroError,
    ErrorContext,
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

__all__ = [
    "ir",
    "ExpressionLimits",
    "get_limits",
    "RulexprError",
    "ErrorContext",
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
