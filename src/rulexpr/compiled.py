"""
Compiled expressions.

An expression is compiled once and evaluated many times against different
environments:

    expr = must_compile("a + 1 > 2")
    expr.as_bool({"a": 0})  # False
    expr.as_bool({"a": 2})  # True
    expr.eval({"a": 2})     # BoolValue(value=True)

The empty expression is valid: it is always true and evaluates to "".
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from rulexpr.core.environment import ExpressionLimits
from rulexpr.core.errors import ExpressionEvalError, ExpressionSyntaxError, InternalEvalError
from rulexpr.core.expression_lang import collect_terms, evaluate, parse_expr, to_bool
from rulexpr.core.ir.expressions import Expr
from rulexpr.core.ir.values import EMPTY_STRING, Value

logger = logging.getLogger(__name__)


class CompiledExpression(BaseModel):
    """An expression compiled and ready for evaluation.

    Immutable: one instance can be evaluated concurrently against many
    environments.
    """

    source: str = Field(description="Expression text exactly as compiled")
    ast: Expr | None = Field(default=None, description="Parsed tree; None for the empty expression")
    terms: tuple[str, ...] = Field(default=(), description="Names referenced by the expression")

    model_config = ConfigDict(frozen=True)

    def eval(self, env: Mapping[str, Any] | None = None) -> Value:
        """Evaluate the expression against ``env`` and return the result.

        Integers are widened to int64/uint64 and floats to float64 before use;
        unbound names evaluate to null.

        Raises:
            ExpressionEvalError: If evaluation fails. Unexpected failures inside
                the tree walk surface as InternalEvalError.
        """
        if self.ast is None:
            return EMPTY_STRING
        try:
            return evaluate(self.ast, env)
        except ExpressionEvalError:
            raise
        except (RecursionError, ArithmeticError, LookupError, TypeError, ValueError) as e:
            raise InternalEvalError(f"{type(e).__name__}: {e}") from e

    def as_bool(self, env: Mapping[str, Any] | None = None) -> bool:
        """Evaluate the expression and return its truthiness.

        The empty expression is true. Evaluation errors are false.
        """
        if self.ast is None:
            return True
        try:
            return to_bool(self.eval(env))
        except ExpressionEvalError as e:
            logger.debug("Expression %r failed to evaluate, treating as false: %s", self.source, e)
            return False

    def source_text(self) -> str:
        """The original expression text."""
        return self.source

    def __str__(self) -> str:
        return self.source


def compile(source: str, *, limits: ExpressionLimits | None = None) -> CompiledExpression:  # noqa: A001
    """Compile an expression.

    An expression is any syntactically valid Go-like expression over
    identifiers, literals, selectors (``A.B.C``) and operators.

    Args:
        source: Expression text. The empty string is valid.
        limits: Nesting and depth limits; read from the environment if omitted.

    Returns:
        The compiled expression.

    Raises:
        ExpressionSyntaxError: If the source is not a valid expression.
    """
    if source == "":
        return CompiledExpression(source=source)

    ast = parse_expr(source, limits)
    terms = tuple(collect_terms(ast))
    logger.debug("Compiled expression %r (terms: %s)", source, ", ".join(terms) or "none")
    return CompiledExpression(source=source, ast=ast, terms=terms)


def must_compile(source: str, *, limits: ExpressionLimits | None = None) -> CompiledExpression:
    """Compile an expression that is known to be valid.

    Meant for expressions written into code, where a syntax error is a bug.

    Raises:
        ExpressionSyntaxError: With the source text prefixed to the message.
    """
    try:
        return compile(source, limits=limits)
    except ExpressionSyntaxError as e:
        raise ExpressionSyntaxError(f"{source}: {e.message}", e.pos, e.context) from e
