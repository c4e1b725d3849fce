"""
Expression evaluator for the rulexpr expression language.

Evaluates expression AST nodes against an environment (mapping of names to
host values). Pure evaluation: no I/O, no side effects, no shared state, so a
single tree can be evaluated from many threads at once. Does NOT use
Python's eval().

Typing is looser than the syntax suggests:
- Bindings are widened into the closed Value union (ints to int64/uint64,
  floats to float64) before use.
- Unbound names are null; ``true`` and ``false`` are booleans unless bound.
- The right operand of a binary operator is coerced into the left
  operand's type, and a null right operand becomes that type's zero value.
- A null left operand makes every operator except == and != yield null.
"""

from __future__ import annotations

import math
import operator
from collections.abc import Callable, Mapping
from typing import Any

from rulexpr.core.errors import (
    DivisionByZeroError,
    InternalEvalError,
    NegativeShiftCountError,
    TypeMismatchError,
    UnknownAttributeError,
    UnsupportedBooleanOperationError,
    UnsupportedNodeError,
    UnsupportedOperatorError,
)
from rulexpr.core.expression_lang.tokenizer import unquote
from rulexpr.core.ir.expressions import (
    COMPARISON_OPS,
    BinaryExpr,
    BinaryOp,
    Expr,
    Identifier,
    Literal,
    LiteralKind,
    ParenExpr,
    Selector,
    UnaryExpr,
    UnaryOp,
)
from rulexpr.core.ir.values import (
    EMPTY_STRING,
    FALSE,
    INT64_MAX,
    NULL,
    TRUE,
    BoolValue,
    FloatValue,
    IntValue,
    MapValue,
    NullValue,
    StrValue,
    UIntValue,
    Value,
    from_native,
)

_MASK64 = (1 << 64) - 1
_WORD_BITS = 64

_COMPARATORS: dict[BinaryOp, Callable[[Any, Any], bool]] = {
    BinaryOp.EQ: operator.eq,
    BinaryOp.NE: operator.ne,
    BinaryOp.LT: operator.lt,
    BinaryOp.GT: operator.gt,
    BinaryOp.LE: operator.le,
    BinaryOp.GE: operator.ge,
}


def evaluate(expr: Expr, env: Mapping[str, Any] | None = None) -> Value:
    """Evaluate an expression against an environment.

    This is a safe tree-walking interpreter over the closed set of AST node
    types; the environment is only read.

    Args:
        expr: Parsed expression AST.
        env: Name -> value bindings. Nested mappings are reachable with
            selectors (``a.b``). None is treated as empty.

    Returns:
        The computed Value.

    Raises:
        ExpressionEvalError: If evaluation fails.
    """
    return _interpret(expr, env if env is not None else {})


def to_bool(value: Any) -> bool:
    """Truthiness: null is false, strings are true when non-empty, numbers when non-zero.

    Raises:
        TypeMismatchError: For maps, which have no truth value.
    """
    value = from_native(value)
    if isinstance(value, NullValue):
        return False
    if isinstance(value, BoolValue):
        return value.value
    if isinstance(value, StrValue):
        return value.value != ""
    if isinstance(value, IntValue | UIntValue | FloatValue):
        return value.value != 0
    raise TypeMismatchError(f"cannot use {value.kind} value as a boolean")


def _interpret(expr: Expr, env: Mapping[str, Any]) -> Value:
    """Dispatch evaluation to the appropriate handler."""
    if isinstance(expr, BinaryExpr):
        return _interpret_binary(expr, env)

    if isinstance(expr, Identifier):
        return _interpret_identifier(expr, env)

    if isinstance(expr, Literal):
        return _interpret_literal(expr)

    if isinstance(expr, ParenExpr):
        return _interpret(expr.inner, env)

    if isinstance(expr, Selector):
        return _interpret_selector(expr, env)

    if isinstance(expr, UnaryExpr):
        return _interpret_unary(expr, env)

    raise UnsupportedNodeError(f"unsupported expression node {type(expr).__name__}: {expr}")


def _interpret_literal(expr: Literal) -> Value:
    """Decode literal text into a value."""
    try:
        if expr.kind == LiteralKind.INT:
            return IntValue(value=_parse_int64(expr.text))
        if expr.kind == LiteralKind.FLOAT:
            return FloatValue(value=_parse_float64(expr.text))
        if expr.kind == LiteralKind.STRING:
            return StrValue(value=unquote(expr.text))
    except ValueError as e:
        raise InternalEvalError(f"invalid {expr.kind} literal {expr.text}: {e}") from e
    raise InternalEvalError(f"unsupported literal kind {expr.kind}")


def _parse_int64(text: str) -> int:
    """Parse base-10 int64 text; prefixed forms like 0x10 are rejected."""
    if not text or any(c not in "0123456789" for c in text):
        raise ValueError("invalid syntax")
    value = int(text)
    if value > INT64_MAX:
        raise ValueError("value out of range")
    return value


def _parse_float64(text: str) -> float:
    value = float(text)
    if math.isinf(value):
        raise ValueError("value out of range")
    return value


def _interpret_identifier(expr: Identifier, env: Mapping[str, Any]) -> Value:
    """Resolve a name: bindings win, then the true/false built-ins, else null."""
    if expr.name in env:
        return from_native(env[expr.name])
    if expr.name == "true":
        return TRUE
    if expr.name == "false":
        return FALSE
    return NULL


def _interpret_selector(expr: Selector, env: Mapping[str, Any]) -> Value:
    """Resolve base.field against a nested map, walking a.b.c without recursion."""
    fields: list[str] = []
    node: Expr = expr
    while isinstance(node, Selector):
        fields.append(node.field)
        node = node.base

    value = _interpret(node, env)
    for field in reversed(fields):
        if not (isinstance(value, MapValue) and field in value):
            raise UnknownAttributeError(
                field, f'unknown attribute "{field}" on {value.kind} value'
            )
        value = value.lookup(field)
    return value


def _interpret_unary(expr: UnaryExpr, env: Mapping[str, Any]) -> Value:
    """Evaluate a unary expression. Only logical negation is defined."""
    if expr.op == UnaryOp.NOT:
        return _bool(not to_bool(_interpret(expr.operand, env)))
    raise UnsupportedOperatorError(f"unsupported unary operator {expr.op.value}")


def _interpret_binary(expr: BinaryExpr, env: Mapping[str, Any]) -> Value:
    """Evaluate a binary expression.

    The left operand is evaluated first; && and || only evaluate the right
    operand when the left one does not decide the result. A left-associated
    chain such as ``a || b || c`` is folded in a loop, so its length costs
    no stack.
    """
    spine: list[BinaryExpr] = []
    node: Expr = expr
    while isinstance(node, BinaryExpr):
        spine.append(node)
        node = node.left

    value = _interpret(node, env)
    for binary in reversed(spine):
        value = _apply_binary(binary, value, env)
    return value


def _apply_binary(expr: BinaryExpr, left: Value, env: Mapping[str, Any]) -> Value:
    """Finish a binary expression whose left operand is already evaluated."""
    op = expr.op

    # Short-circuit for logical operators
    if op == BinaryOp.LAND:
        if not to_bool(left):
            return FALSE
        return _bool(to_bool(_interpret(expr.right, env)))
    if op == BinaryOp.LOR:
        if to_bool(left):
            return TRUE
        return _bool(to_bool(_interpret(expr.right, env)))

    if isinstance(left, BoolValue):
        if op == BinaryOp.EQ:
            return _bool(left.value == to_bool(_interpret(expr.right, env)))
        if op == BinaryOp.NE:
            return _bool(left.value != to_bool(_interpret(expr.right, env)))
        raise UnsupportedBooleanOperationError(f"unsupported boolean operation {op.value}")

    right = _interpret(expr.right, env)

    # Null on the left: only equality is meaningful, everything else is null
    if isinstance(left, NullValue):
        if op == BinaryOp.EQ:
            return _bool(isinstance(right, NullValue))
        if op == BinaryOp.NE:
            return _bool(not isinstance(right, NullValue))
        return NULL

    if isinstance(right, NullValue):
        if op == BinaryOp.EQ:
            return FALSE
        if op == BinaryOp.NE:
            return TRUE
        right = _zero_of(left)

    if isinstance(left, IntValue):
        return _eval_integer(op, left.value, _as_int64(right), signed=True)
    if isinstance(left, UIntValue):
        return _eval_integer(op, left.value, _as_uint64(right), signed=False)
    if isinstance(left, FloatValue):
        return _eval_float(op, left.value, _as_float64(right))
    if isinstance(left, StrValue):
        return _eval_string(op, left.value, _as_string(right))

    # Maps used directly as operands pass through untouched
    return left


# ---------------------------------------------------------------------------
# Coercion
# ---------------------------------------------------------------------------


def _bool(value: bool) -> BoolValue:
    return TRUE if value else FALSE


def _zero_of(value: Value) -> Value:
    """The zero value of ``value``'s type."""
    if isinstance(value, IntValue):
        return IntValue(value=0)
    if isinstance(value, UIntValue):
        return UIntValue(value=0)
    if isinstance(value, FloatValue):
        return FloatValue(value=0.0)
    if isinstance(value, StrValue):
        return EMPTY_STRING
    return NULL


def _wrap_int64(value: int) -> int:
    """Reduce to int64 with two's-complement wraparound."""
    value &= _MASK64
    return value - (1 << 64) if value > INT64_MAX else value


def _wrap_uint64(value: int) -> int:
    return value & _MASK64


def _truncate(value: float) -> int:
    if not math.isfinite(value):
        raise TypeMismatchError(f"cannot convert {value} to an integer")
    return int(value)


def _as_int64(value: Value) -> int:
    if isinstance(value, IntValue):
        return value.value
    if isinstance(value, UIntValue):
        return _wrap_int64(value.value)
    if isinstance(value, FloatValue):
        return _wrap_int64(_truncate(value.value))
    raise TypeMismatchError(f"cannot convert {value.kind} value {str(value)!r} to int64")


def _as_uint64(value: Value) -> int:
    if isinstance(value, UIntValue):
        return value.value
    if isinstance(value, IntValue):
        return _wrap_uint64(value.value)
    if isinstance(value, FloatValue):
        return _wrap_uint64(_truncate(value.value))
    raise TypeMismatchError(f"cannot convert {value.kind} value {str(value)!r} to uint64")


def _as_float64(value: Value) -> float:
    if isinstance(value, FloatValue):
        return value.value
    if isinstance(value, IntValue | UIntValue):
        return float(value.value)
    raise TypeMismatchError(f"cannot convert {value.kind} value {str(value)!r} to float64")


def _as_string(value: Value) -> str:
    if isinstance(value, MapValue):
        raise TypeMismatchError("cannot convert map value to string")
    return str(value)


# ---------------------------------------------------------------------------
# Operators per type
# ---------------------------------------------------------------------------


def _unsupported(op: BinaryOp, kind: str) -> UnsupportedOperatorError:
    return UnsupportedOperatorError(f"unsupported operator {op.value} for {kind} operands")


def _trunc_div(left: int, right: int) -> int:
    """Integer division truncating toward zero."""
    quotient = abs(left) // abs(right)
    return quotient if (left >= 0) == (right > 0) else -quotient


def _eval_integer(op: BinaryOp, left: int, right: int, *, signed: bool) -> Value:
    """Integer operators with 64-bit wraparound."""
    if op in COMPARISON_OPS:
        return _bool(_COMPARATORS[op](left, right))

    make = IntValue if signed else UIntValue
    wrap = _wrap_int64 if signed else _wrap_uint64

    if op == BinaryOp.ADD:
        return make(value=wrap(left + right))
    if op == BinaryOp.SUB:
        return make(value=wrap(left - right))
    if op == BinaryOp.MUL:
        return make(value=wrap(left * right))

    if op in (BinaryOp.QUO, BinaryOp.REM):
        if right == 0:
            raise DivisionByZeroError("integer divide by zero")
        quotient = _trunc_div(left, right)
        if op == BinaryOp.QUO:
            return make(value=wrap(quotient))
        return make(value=wrap(left - quotient * right))

    if op in (BinaryOp.SHL, BinaryOp.SHR):
        if right < 0:
            raise NegativeShiftCountError(f"negative shift count {right}")
        if op == BinaryOp.SHL:
            return make(value=wrap(left << right) if right < _WORD_BITS else 0)
        if right >= _WORD_BITS:
            return make(value=-1 if left < 0 else 0)
        return make(value=left >> right)

    if op == BinaryOp.AND:
        return make(value=left & right)
    if op == BinaryOp.OR:
        return make(value=left | right)
    if op == BinaryOp.XOR:
        return make(value=left ^ right)
    if op == BinaryOp.AND_NOT:
        return make(value=left & ~right)

    raise _unsupported(op, "int64" if signed else "uint64")


def _eval_float(op: BinaryOp, left: float, right: float) -> Value:
    """Float operators; division by zero follows IEEE 754."""
    if op in COMPARISON_OPS:
        return _bool(_COMPARATORS[op](left, right))
    if op == BinaryOp.ADD:
        return FloatValue(value=left + right)
    if op == BinaryOp.SUB:
        return FloatValue(value=left - right)
    if op == BinaryOp.MUL:
        return FloatValue(value=left * right)
    if op == BinaryOp.QUO:
        if right == 0:
            if left == 0 or math.isnan(left):
                return FloatValue(value=math.nan)
            return FloatValue(value=math.copysign(math.inf, left) * math.copysign(1.0, right))
        return FloatValue(value=left / right)
    raise _unsupported(op, "float64")


def _eval_string(op: BinaryOp, left: str, right: str) -> Value:
    """Concatenation and lexicographic comparison."""
    if op in COMPARISON_OPS:
        return _bool(_COMPARATORS[op](left, right))
    if op == BinaryOp.ADD:
        return StrValue(value=left + right)
    raise _unsupported(op, "string")
