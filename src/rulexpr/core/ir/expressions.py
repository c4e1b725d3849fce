"""
Expression AST for rulexpr.

Nodes are frozen pydantic models: a compiled tree is immutable and acyclic,
so one tree can be evaluated concurrently against many environments.

Supports:
- Literals: 42, 1.5, "text", `raw text`
- Identifiers: amount, true, false, nil (the last three resolve at evaluation)
- Selectors: order.customer.name
- Unary: !x (also -x, +x, ^x, which parse but do not evaluate)
- Binary: || && == != < > <= >= & | ^ &^ << >> + - * / %
- Parentheses, retained as their own node
- Index, slice and call syntax: a[0], a[1:2], f(x) (parse only)
"""

from __future__ import annotations

from collections.abc import Iterator
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Operators
# ---------------------------------------------------------------------------


class BinaryOp(StrEnum):
    """Binary operators for expressions."""

    # Logical
    LOR = "||"
    LAND = "&&"
    # Comparison
    EQ = "=="
    NE = "!="
    LT = "<"
    GT = ">"
    LE = "<="
    GE = ">="
    # Bitwise
    AND = "&"
    OR = "|"
    XOR = "^"
    AND_NOT = "&^"
    SHL = "<<"
    SHR = ">>"
    # Arithmetic
    ADD = "+"
    SUB = "-"
    MUL = "*"
    QUO = "/"
    REM = "%"


COMPARISON_OPS = frozenset(
    {BinaryOp.EQ, BinaryOp.NE, BinaryOp.LT, BinaryOp.GT, BinaryOp.LE, BinaryOp.GE}
)


class UnaryOp(StrEnum):
    """Unary operators for expressions."""

    NOT = "!"
    NEG = "-"
    POS = "+"
    XOR = "^"


class LiteralKind(StrEnum):
    """Kinds of literal tokens."""

    INT = "int"
    FLOAT = "float"
    STRING = "string"


# ---------------------------------------------------------------------------
# AST node types
# ---------------------------------------------------------------------------


class Literal(BaseModel):
    """
    A literal token, kept as its source text.

    The text is decoded at evaluation time, so ``0x10`` compiles but fails
    to evaluate (integer literals are read as base-10 int64).
    """

    kind: LiteralKind
    text: str = Field(description="Literal text exactly as written, quotes included")

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return self.text


class Identifier(BaseModel):
    """A bare name, resolved against the environment."""

    name: str

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return self.name


class Selector(BaseModel):
    """Field access on a nested map: base.field."""

    base: Expr
    field: str

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        fields: list[str] = []
        node: Expr = self
        while isinstance(node, Selector):
            fields.append(node.field)
            node = node.base
        return ".".join([str(node), *reversed(fields)])


class UnaryExpr(BaseModel):
    """Unary operation: op operand."""

    op: UnaryOp
    operand: Expr

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"{self.op.value}{self.operand}"


class BinaryExpr(BaseModel):
    """Binary operation: left op right."""

    op: BinaryOp
    left: Expr
    right: Expr

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        # Left-associated chains are rendered without recursing down the spine
        spine: list[BinaryExpr] = []
        node: Expr = self
        while isinstance(node, BinaryExpr):
            spine.append(node)
            node = node.left
        text = str(node)
        for binary in reversed(spine):
            text = f"{text} {binary.op.value} {binary.right}"
        return text


class ParenExpr(BaseModel):
    """Parenthesized expression: (inner)."""

    inner: Expr

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"({self.inner})"


class IndexExpr(BaseModel):
    """Subscript: base[index]. Accepted by the grammar, never evaluated."""

    base: Expr
    index: Expr

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"{self.base}[{self.index}]"


class SliceExpr(BaseModel):
    """Slice: base[low:high]. Accepted by the grammar, never evaluated."""

    base: Expr
    low: Expr | None = None
    high: Expr | None = None

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        low = "" if self.low is None else str(self.low)
        high = "" if self.high is None else str(self.high)
        return f"{self.base}[{low}:{high}]"


class CallExpr(BaseModel):
    """Function call: func(arg1, arg2, ...). Accepted by the grammar, never evaluated."""

    func: Expr
    args: list[Expr] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        args_str = ", ".join(str(a) for a in self.args)
        return f"{self.func}({args_str})"


# ---------------------------------------------------------------------------
# Union type
# ---------------------------------------------------------------------------

Expr = (
    Literal
    | Identifier
    | Selector
    | UnaryExpr
    | BinaryExpr
    | ParenExpr
    | IndexExpr
    | SliceExpr
    | CallExpr
)

# Rebuild models for recursive forward references
Selector.model_rebuild()
UnaryExpr.model_rebuild()
BinaryExpr.model_rebuild()
ParenExpr.model_rebuild()
IndexExpr.model_rebuild()
SliceExpr.model_rebuild()
CallExpr.model_rebuild()


def iter_children(expr: Expr) -> Iterator[Expr]:
    """Yield the direct children of a node, left to right."""
    if isinstance(expr, Selector):
        yield expr.base
    elif isinstance(expr, UnaryExpr):
        yield expr.operand
    elif isinstance(expr, BinaryExpr):
        yield expr.left
        yield expr.right
    elif isinstance(expr, ParenExpr):
        yield expr.inner
    elif isinstance(expr, IndexExpr):
        yield expr.base
        yield expr.index
    elif isinstance(expr, SliceExpr):
        yield expr.base
        if expr.low is not None:
            yield expr.low
        if expr.high is not None:
            yield expr.high
    elif isinstance(expr, CallExpr):
        yield expr.func
        yield from expr.args


def tree_depth(expr: Expr) -> int:
    """Nesting depth of the tree rooted at ``expr`` (a lone leaf has depth 1).

    The left operand of a binary node that is itself a binary node, and the
    base of a selector that is itself a selector, sit at the same depth as
    their parent: ``a || b || c`` and ``a.b.c`` are chains, not nesting.
    Every other child is one level deeper. Iterative, so it is safe on trees
    deeper than the recursion limit.
    """
    deepest = 0
    stack: list[tuple[Expr, int]] = [(expr, 1)]
    while stack:
        node, depth = stack.pop()
        deepest = max(deepest, depth)
        if isinstance(node, BinaryExpr):
            left_depth = depth if isinstance(node.left, BinaryExpr) else depth + 1
            stack.append((node.left, left_depth))
            stack.append((node.right, depth + 1))
        elif isinstance(node, Selector):
            base_depth = depth if isinstance(node.base, Selector) else depth + 1
            stack.append((node.base, base_depth))
        else:
            for child in iter_children(node):
                stack.append((child, depth + 1))
    return deepest
