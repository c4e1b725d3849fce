"""
rulexpr expression language.

Tokenizer, parser, term collector and evaluator for Go-like expressions
evaluated against named values.

Usage:
    from rulexpr.core.expression_lang import evaluate, parse_expr

    expr = parse_expr("a + 1 > 2")
    result = evaluate(expr, {"a": 2})
    # result == BoolValue(value=True)
"""

from rulexpr.core.expression_lang.evaluator import evaluate, to_bool
from rulexpr.core.expression_lang.parser import parse_expr
from rulexpr.core.expression_lang.terms import collect_terms

__all__ = ["collect_terms", "evaluate", "parse_expr", "to_bool"]
