"""Tests for the error hierarchy and source context rendering."""

import pytest

from rulexpr.core.errors import (
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
    make_syntax_error,
)


class TestHierarchy:
    @pytest.mark.parametrize(
        "cls",
        [
            UnsupportedNodeError,
            UnsupportedOperatorError,
            UnsupportedBooleanOperationError,
            DivisionByZeroError,
            NegativeShiftCountError,
            TypeMismatchError,
            UnsupportedValueError,
            InternalEvalError,
        ],
    )
    def test_eval_errors(self, cls: type[ExpressionEvalError]) -> None:
        err = cls("boom")
        assert isinstance(err, ExpressionEvalError)
        assert isinstance(err, RulexprError)
        assert err.message == "boom"
        assert str(err) == "boom"

    def test_syntax_error_is_not_an_eval_error(self) -> None:
        assert not issubclass(ExpressionSyntaxError, ExpressionEvalError)
        assert issubclass(ExpressionSyntaxError, RulexprError)

    def test_unknown_attribute_default_message(self) -> None:
        err = UnknownAttributeError("Baz")
        assert err.field == "Baz"
        assert str(err) == 'unknown attribute "Baz"'


class TestErrorContext:
    def test_column(self) -> None:
        assert ErrorContext(source="a + * b", pos=4).column == 5

    def test_format_single_line(self) -> None:
        ctx = ErrorContext(source="a + * b", pos=4)
        assert ctx.format() == "  | a + * b\n  |     ^"

    def test_format_multi_line(self) -> None:
        ctx = ErrorContext(source="a +\n* b", pos=4)
        assert ctx.format() == "  | * b\n  | ^"

    def test_make_syntax_error(self) -> None:
        err = make_syntax_error("Unexpected token", "a $", 2)
        assert err.pos == 2
        assert err.message == "Unexpected token"
        assert str(err) == "Unexpected token\n  | a $\n  |   ^"
