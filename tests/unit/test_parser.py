"""Tests for the rulexpr expression parser."""

from __future__ import annotations

import pytest

from rulexpr.core.environment import ExpressionLimits
from rulexpr.core.errors import ExpressionSyntaxError
from rulexpr.core.expression_lang.parser import parse_expr
from rulexpr.core.ir.expressions import (
    BinaryExpr,
    BinaryOp,
    CallExpr,
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


class TestPrimary:
    def test_int_literal(self) -> None:
        assert parse_expr("42") == Literal(kind=LiteralKind.INT, text="42")

    def test_float_literal(self) -> None:
        assert parse_expr("1.5") == Literal(kind=LiteralKind.FLOAT, text="1.5")

    def test_string_literal_keeps_source_text(self) -> None:
        assert parse_expr('"a\\n"') == Literal(kind=LiteralKind.STRING, text='"a\\n"')

    def test_identifier(self) -> None:
        assert parse_expr("foo") == Identifier(name="foo")

    def test_builtin_names_parse_as_identifiers(self) -> None:
        for name in ("true", "false", "nil"):
            assert parse_expr(name) == Identifier(name=name)

    def test_parens_are_retained(self) -> None:
        expr = parse_expr("(a)")
        assert isinstance(expr, ParenExpr)
        assert expr.inner == Identifier(name="a")


class TestPrecedence:
    """Operators bind according to the Go precedence table."""

    def test_mul_over_add(self) -> None:
        expr = parse_expr("a + b * c")
        assert isinstance(expr, BinaryExpr)
        assert expr.op == BinaryOp.ADD
        assert isinstance(expr.right, BinaryExpr)
        assert expr.right.op == BinaryOp.MUL

    def test_left_associative(self) -> None:
        expr = parse_expr("a - b - c")
        assert isinstance(expr, BinaryExpr)
        assert isinstance(expr.left, BinaryExpr)
        assert expr.right == Identifier(name="c")

    def test_and_over_or(self) -> None:
        expr = parse_expr("a || b && c")
        assert isinstance(expr, BinaryExpr)
        assert expr.op == BinaryOp.LOR
        assert isinstance(expr.right, BinaryExpr)
        assert expr.right.op == BinaryOp.LAND

    def test_comparison_over_and(self) -> None:
        expr = parse_expr("a == 1 && b != 2")
        assert isinstance(expr, BinaryExpr)
        assert expr.op == BinaryOp.LAND
        assert expr.left.op == BinaryOp.EQ
        assert expr.right.op == BinaryOp.NE

    def test_bitwise_over_comparison(self) -> None:
        expr = parse_expr("I & 2 == 2")
        assert isinstance(expr, BinaryExpr)
        assert expr.op == BinaryOp.EQ
        assert expr.left.op == BinaryOp.AND

    def test_shift_over_bitwise(self) -> None:
        expr = parse_expr("a | b << 2")
        assert expr.op == BinaryOp.OR
        assert expr.right.op == BinaryOp.SHL

    def test_additive_over_shift(self) -> None:
        expr = parse_expr("1 << a + b")
        assert expr.op == BinaryOp.SHL
        assert expr.right.op == BinaryOp.ADD

    def test_and_not(self) -> None:
        expr = parse_expr("a &^ b")
        assert expr.op == BinaryOp.AND_NOT

    def test_parens_override(self) -> None:
        expr = parse_expr("(a + b) * c")
        assert expr.op == BinaryOp.MUL
        assert isinstance(expr.left, ParenExpr)

    def test_comparison_chains_left(self) -> None:
        expr = parse_expr("a < b == c")
        assert expr.op == BinaryOp.EQ
        assert expr.left.op == BinaryOp.LT


class TestUnaryAndPostfix:
    def test_not(self) -> None:
        expr = parse_expr("!a")
        assert expr == UnaryExpr(op=UnaryOp.NOT, operand=Identifier(name="a"))

    def test_double_not(self) -> None:
        expr = parse_expr("!!a")
        assert isinstance(expr, UnaryExpr)
        assert isinstance(expr.operand, UnaryExpr)

    def test_other_unary_operators_parse(self) -> None:
        assert parse_expr("-5").op == UnaryOp.NEG
        assert parse_expr("+5").op == UnaryOp.POS
        assert parse_expr("^5").op == UnaryOp.XOR

    def test_unary_binds_tighter_than_binary(self) -> None:
        expr = parse_expr("!a && b")
        assert expr.op == BinaryOp.LAND
        assert isinstance(expr.left, UnaryExpr)

    def test_selector_chain(self) -> None:
        expr = parse_expr("a.b.c")
        assert expr == Selector(
            base=Selector(base=Identifier(name="a"), field="b"),
            field="c",
        )

    def test_selector_binds_tighter_than_not(self) -> None:
        expr = parse_expr("!a.b")
        assert isinstance(expr, UnaryExpr)
        assert isinstance(expr.operand, Selector)

    def test_index(self) -> None:
        expr = parse_expr("I[0]")
        assert isinstance(expr, IndexExpr)
        assert expr.index == Literal(kind=LiteralKind.INT, text="0")

    def test_slice(self) -> None:
        expr = parse_expr("a[1:2]")
        assert isinstance(expr, SliceExpr)
        assert expr.low is not None
        assert expr.high is not None

    def test_open_slice(self) -> None:
        expr = parse_expr("a[:]")
        assert isinstance(expr, SliceExpr)
        assert expr.low is None
        assert expr.high is None

    def test_half_open_slices(self) -> None:
        low_only = parse_expr("a[1:]")
        assert isinstance(low_only, SliceExpr)
        assert low_only.low == Literal(kind=LiteralKind.INT, text="1")
        assert low_only.high is None

        high_only = parse_expr("a[:2]")
        assert isinstance(high_only, SliceExpr)
        assert high_only.low is None
        assert high_only.high == Literal(kind=LiteralKind.INT, text="2")

    def test_index_inside_slice_bounds(self) -> None:
        expr = parse_expr("a[b[0]:]")
        assert isinstance(expr, SliceExpr)
        assert isinstance(expr.low, IndexExpr)

    def test_call(self) -> None:
        expr = parse_expr("f(x, 1)")
        assert isinstance(expr, CallExpr)
        assert expr.func == Identifier(name="f")
        assert len(expr.args) == 2

    def test_call_without_args(self) -> None:
        expr = parse_expr("f()")
        assert isinstance(expr, CallExpr)
        assert expr.args == []


class TestRendering:
    def test_str_round_trip_shape(self) -> None:
        assert str(parse_expr("a + (b * c)")) == "a + (b * c)"
        assert str(parse_expr("!Foo.Bar")) == "!Foo.Bar"
        assert str(parse_expr("f(a, b)[1:]")) == "f(a, b)[1:]"


class TestSyntaxErrors:
    @pytest.mark.parametrize(
        "source",
        [
            "a +",
            "(a",
            "a)",
            "a b",
            "* a",
            "a.",
            "a.1",
            "a[1",
            "a[]",
            "a[1:",
            "a[:2",
            "f(a",
            '"abc',
            "a $ b",
            "a ==",
            "()",
        ],
    )
    def test_invalid(self, source: str) -> None:
        with pytest.raises(ExpressionSyntaxError):
            parse_expr(source)

    def test_error_position(self) -> None:
        with pytest.raises(ExpressionSyntaxError) as exc_info:
            parse_expr("a + * b")
        assert exc_info.value.pos == 4
        assert exc_info.value.context is not None
        assert "^" in str(exc_info.value)

    def test_trailing_tokens(self) -> None:
        with pytest.raises(ExpressionSyntaxError, match="after expression"):
            parse_expr("a b")

    def test_token_error_becomes_syntax_error(self) -> None:
        with pytest.raises(ExpressionSyntaxError, match="Unexpected character") as exc_info:
            parse_expr("a @ b")
        assert exc_info.value.pos == 2


class TestLimits:
    def test_nesting_limit(self, tight_limits: ExpressionLimits) -> None:
        parse_expr("((((a))))", tight_limits)
        with pytest.raises(ExpressionSyntaxError, match="nested deeper"):
            parse_expr("(((((a)))))", tight_limits)

    def test_unary_counts_as_nesting(self, tight_limits: ExpressionLimits) -> None:
        with pytest.raises(ExpressionSyntaxError, match="nested deeper"):
            parse_expr("!!!!!a", tight_limits)

    def test_depth_limit(self, tight_limits: ExpressionLimits) -> None:
        # Each operator binds tighter than the last, so every level nests
        source = "a || b && c == d | e << f + g * h.x"
        with pytest.raises(ExpressionSyntaxError, match="deeper than 8"):
            parse_expr(source, tight_limits)

    def test_flat_chain_is_not_nesting(self, tight_limits: ExpressionLimits) -> None:
        expr = parse_expr(" + ".join(["a"] * 100), tight_limits)
        assert isinstance(expr, BinaryExpr)
        assert tree_depth(expr) == 2

    def test_selector_chain_is_not_nesting(self, tight_limits: ExpressionLimits) -> None:
        source = ".".join(["a"] * 50)
        expr = parse_expr(source, tight_limits)
        assert tree_depth(expr) == 2
        assert str(expr) == source

    def test_runaway_nesting_with_raised_limits(self) -> None:
        limits = ExpressionLimits(max_nesting=100_000, max_depth=100_000)
        source = "(" * 5000 + "a" + ")" * 5000
        with pytest.raises(ExpressionSyntaxError, match="nested too deeply"):
            parse_expr(source, limits)

    def test_default_limits_reject_pathological_nesting(self, clean_limits_env) -> None:
        source = "(" * 500 + "a" + ")" * 500
        with pytest.raises(ExpressionSyntaxError):
            parse_expr(source)

    def test_default_limits_accept_reasonable_nesting(self, clean_limits_env) -> None:
        source = "(" * 50 + "a" + ")" * 50
        assert tree_depth(parse_expr(source)) == 51

    def test_limits_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RULEXPR_MAX_NESTING", "2")
        with pytest.raises(ExpressionSyntaxError):
            parse_expr("(((a)))")
