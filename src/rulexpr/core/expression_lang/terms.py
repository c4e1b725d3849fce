"""
Term collection for compiled expressions.

Terms are the bare names an expression compares or combines, in left to
right order with duplicates kept. Only binary operands and parenthesized
expressions are searched: names under ``!``, selectors, index or call
syntax are not terms, so ``!Foo`` and ``Foo.Bar`` have none.
"""

from __future__ import annotations

from rulexpr.core.ir.expressions import BinaryExpr, Expr, Identifier, ParenExpr

# Identifiers with a built-in meaning
RESERVED_NAMES = frozenset({"nil", "true", "false"})


def collect_terms(expr: Expr) -> list[str]:
    """Collect the names referenced by ``expr``.

    Walks the tree with an explicit stack, so long operator chains and deep
    parentheses cost no recursion.

    Examples:
        >>> collect_terms(parse_expr("a + b * c + c"))
        ['a', 'b', 'c', 'c']
    """
    terms: list[str] = []
    stack: list[Expr] = [expr]
    while stack:
        node = stack.pop()
        if isinstance(node, BinaryExpr):
            # Right first so the left operand is visited first
            stack.append(node.right)
            stack.append(node.left)
        elif isinstance(node, ParenExpr):
            stack.append(node.inner)
        elif isinstance(node, Identifier) and node.name not in RESERVED_NAMES:
            terms.append(node.name)
    return terms
