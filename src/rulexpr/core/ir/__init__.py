"""
rulexpr Intermediate Representation (IR) types.

Expression AST nodes and the runtime value model, re-exported here.
"""

# Expression AST
from .expressions import (
    BinaryExpr,
    BinaryOp,
    CallExpr,
    Expr,
    Identifier,
    IndexExpr,
    Literal,
    LiteralKind,
    ParenExpr,
    Selector,
    SliceExpr,
    UnaryExpr,
    UnaryOp,
    iter_children,
    tree_depth,
)

# Runtime values
from .values import (
    EMPTY_STRING,
    FALSE,
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
    ValueKind,
    float64,
    from_native,
    int64,
    uint64,
)

__all__ = [
    # Expression AST
    "BinaryExpr",
    "BinaryOp",
    "CallExpr",
    "Expr",
    "Identifier",
    "IndexExpr",
    "Literal",
    "LiteralKind",
    "ParenExpr",
    "Selector",
    "SliceExpr",
    "UnaryExpr",
    "UnaryOp",
    "iter_children",
    "tree_depth",
    # Runtime values
    "EMPTY_STRING",
    "FALSE",
    "NULL",
    "TRUE",
    "BoolValue",
    "FloatValue",
    "IntValue",
    "MapValue",
    "NullValue",
    "StrValue",
    "UIntValue",
    "Value",
    "ValueKind",
    "float64",
    "from_native",
    "int64",
    "uint64",
]
