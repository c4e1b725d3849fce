"""
Recursive descent parser for the rulexpr expression language.

Grammar (precedence low to high, binary levels left-associative):
    expr           → or_expr
    or_expr        → and_expr ("||" and_expr)*
    and_expr       → comparison ("&&" comparison)*
    comparison     → bitwise (comp_op bitwise)*
    bitwise        → shift (("&" | "|" | "^" | "&^") shift)*
    shift          → additive (("<<" | ">>") additive)*
    additive       → multiplicative (("+" | "-") multiplicative)*
    multiplicative → unary (("*" | "/" | "%") unary)*
    unary          → ("!" | "-" | "+" | "^") unary | postfix
    postfix        → primary ("." IDENT | "[" index "]" | "(" args ")")*
    index          → expr | expr? ":" expr?
    primary        → IDENT | INT | FLOAT | STRING | "(" expr ")"

Index, slice and call forms are parsed so that such expressions compile;
the evaluator rejects them.
"""

from __future__ import annotations

from rulexpr.core.environment import ExpressionLimits, get_limits
from rulexpr.core.errors import ExpressionSyntaxError, make_syntax_error
from rulexpr.core.expression_lang.tokenizer import (
    ExpressionTokenError,
    Token,
    TokenKind,
    tokenize,
)
from rulexpr.core.ir.expressions import (
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
    tree_depth,
)

# Binary operators with their precedence (higher binds tighter)
_BINARY_OPS: dict[TokenKind, tuple[BinaryOp, int]] = {
    TokenKind.LOR: (BinaryOp.LOR, 1),
    TokenKind.LAND: (BinaryOp.LAND, 2),
    TokenKind.EQ: (BinaryOp.EQ, 3),
    TokenKind.NE: (BinaryOp.NE, 3),
    TokenKind.LT: (BinaryOp.LT, 3),
    TokenKind.GT: (BinaryOp.GT, 3),
    TokenKind.LE: (BinaryOp.LE, 3),
    TokenKind.GE: (BinaryOp.GE, 3),
    TokenKind.AMP: (BinaryOp.AND, 4),
    TokenKind.PIPE: (BinaryOp.OR, 4),
    TokenKind.CARET: (BinaryOp.XOR, 4),
    TokenKind.AND_NOT: (BinaryOp.AND_NOT, 4),
    TokenKind.SHL: (BinaryOp.SHL, 5),
    TokenKind.SHR: (BinaryOp.SHR, 5),
    TokenKind.PLUS: (BinaryOp.ADD, 6),
    TokenKind.MINUS: (BinaryOp.SUB, 6),
    TokenKind.STAR: (BinaryOp.MUL, 7),
    TokenKind.SLASH: (BinaryOp.QUO, 7),
    TokenKind.PERCENT: (BinaryOp.REM, 7),
}

_LOWEST_PRECEDENCE = 1

_UNARY_OPS: dict[TokenKind, UnaryOp] = {
    TokenKind.BANG: UnaryOp.NOT,
    TokenKind.MINUS: UnaryOp.NEG,
    TokenKind.PLUS: UnaryOp.POS,
    TokenKind.CARET: UnaryOp.XOR,
}

_LITERAL_KINDS: dict[TokenKind, LiteralKind] = {
    TokenKind.INT: LiteralKind.INT,
    TokenKind.FLOAT: LiteralKind.FLOAT,
    TokenKind.STRING: LiteralKind.STRING,
}


class _Parser:
    """Recursive descent parser for expressions."""

    def __init__(self, source: str, tokens: list[Token], limits: ExpressionLimits) -> None:
        self.source = source
        self.tokens = tokens
        self.pos = 0
        self.limits = limits
        self.nesting = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.pos]

    def advance(self) -> Token:
        tok = self.tokens[self.pos]
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        return tok

    def expect(self, kind: TokenKind) -> Token:
        tok = self.current
        if tok.kind != kind:
            raise self.error(f"Expected {kind}, got {_describe(tok)}", tok)
        return self.advance()

    def match(self, *kinds: TokenKind) -> Token | None:
        if self.current.kind in kinds:
            return self.advance()
        return None

    def error(self, message: str, tok: Token | None = None) -> ExpressionSyntaxError:
        tok = tok or self.current
        return make_syntax_error(message, self.source, tok.pos)

    def enter(self) -> None:
        """Descend one nesting level (brackets, unary operators)."""
        self.nesting += 1
        if self.nesting > self.limits.max_nesting:
            raise self.error(f"Expression nested deeper than {self.limits.max_nesting} levels")

    def leave(self) -> None:
        self.nesting -= 1

    # -- Grammar rules --

    def parse_expr(self) -> Expr:
        """Top-level: or_expr."""
        return self.parse_binary(_LOWEST_PRECEDENCE)

    def parse_binary(self, min_prec: int) -> Expr:
        """All binary levels from ``min_prec`` up, by precedence climbing.

        Each operator's right operand only takes tighter-binding operators,
        which keeps every level left-associative.
        """
        left = self.parse_unary()
        while True:
            entry = _BINARY_OPS.get(self.current.kind)
            if entry is None or entry[1] < min_prec:
                return left
            op, prec = entry
            self.advance()
            right = self.parse_binary(prec + 1)
            left = BinaryExpr(op=op, left=left, right=right)

    def parse_unary(self) -> Expr:
        """("!" | "-" | "+" | "^") unary | postfix"""
        if self.current.kind in _UNARY_OPS:
            op = _UNARY_OPS[self.advance().kind]
            self.enter()
            operand = self.parse_unary()
            self.leave()
            return UnaryExpr(op=op, operand=operand)
        return self.parse_postfix()

    def parse_postfix(self) -> Expr:
        """primary ("." IDENT | "[" index "]" | "(" args ")")*"""
        expr = self.parse_primary()
        while True:
            if self.match(TokenKind.DOT):
                name = self.expect(TokenKind.IDENT)
                expr = Selector(base=expr, field=name.value)
            elif self.current.kind == TokenKind.LBRACKET:
                expr = self._parse_index(expr)
            elif self.current.kind == TokenKind.LPAREN:
                expr = self._parse_call(expr)
            else:
                return expr

    def parse_primary(self) -> Expr:
        """IDENT | INT | FLOAT | STRING | "(" expr ")" """
        tok = self.current

        if tok.kind == TokenKind.LPAREN:
            self.advance()
            self.enter()
            inner = self.parse_expr()
            self.leave()
            self.expect(TokenKind.RPAREN)
            return ParenExpr(inner=inner)

        if tok.kind in _LITERAL_KINDS:
            self.advance()
            return Literal(kind=_LITERAL_KINDS[tok.kind], text=tok.value)

        if tok.kind == TokenKind.IDENT:
            self.advance()
            return Identifier(name=tok.value)

        raise self.error(f"Unexpected token: {_describe(tok)}", tok)

    def _parse_index(self, base: Expr) -> Expr:
        """'[' expr ']' | '[' expr? ':' expr? ']'"""
        self.expect(TokenKind.LBRACKET)
        self.enter()
        low = None if self.current.kind == TokenKind.COLON else self.parse_expr()
        if low is not None and self.current.kind != TokenKind.COLON:
            result: Expr = IndexExpr(base=base, index=low)
        else:
            self.expect(TokenKind.COLON)
            high = None if self.current.kind == TokenKind.RBRACKET else self.parse_expr()
            result = SliceExpr(base=base, low=low, high=high)
        self.leave()
        self.expect(TokenKind.RBRACKET)
        return result

    def _parse_call(self, func: Expr) -> CallExpr:
        """'(' (expr (',' expr)* ','?)? ')'"""
        self.expect(TokenKind.LPAREN)
        self.enter()
        args: list[Expr] = []
        while self.current.kind != TokenKind.RPAREN:
            args.append(self.parse_expr())
            if not self.match(TokenKind.COMMA):
                break
        self.leave()
        self.expect(TokenKind.RPAREN)
        return CallExpr(func=func, args=args)


def _describe(tok: Token) -> str:
    if tok.kind == TokenKind.EOF:
        return "end of expression"
    return f"{tok.kind} ({tok.value!r})"


def parse_expr(source: str, limits: ExpressionLimits | None = None) -> Expr:
    """Parse an expression string into an AST.

    Args:
        source: Expression string (e.g., "a + 1 > 2")
        limits: Nesting and depth limits; read from the environment if omitted.

    Returns:
        Parsed expression AST.

    Raises:
        ExpressionSyntaxError: If the expression is invalid or nested too deeply.
    """
    limits = limits or get_limits()

    try:
        tokens = tokenize(source)
    except ExpressionTokenError as e:
        raise make_syntax_error(str(e), source, e.pos) from e

    parser = _Parser(source, tokens, limits)
    try:
        expr = parser.parse_expr()
    except RecursionError as e:
        raise make_syntax_error("Expression nested too deeply", source, parser.current.pos) from e

    # Ensure all tokens consumed
    if parser.current.kind != TokenKind.EOF:
        raise parser.error(f"Unexpected token after expression: {parser.current.value!r}")

    if tree_depth(expr) > limits.max_depth:
        raise make_syntax_error(
            f"Expression tree deeper than {limits.max_depth} levels", source, 0
        )

    return expr
