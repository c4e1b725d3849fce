"""
Error types for rulexpr compilation and evaluation.
"""

from dataclasses import dataclass


class RulexprError(Exception):
    """Base exception for all rulexpr errors."""

    def __init__(self, message: str, context: "ErrorContext | None" = None):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            return f"{self.message}\n{self.context.format()}"
        return self.message


class ExpressionSyntaxError(RulexprError):
    """
    Raised when expression source cannot be compiled.

    Examples:
    - Malformed tokens (bad escapes, unterminated strings)
    - Unbalanced parentheses or brackets
    - Trailing input after a complete expression
    - Nesting deeper than the configured limits
    """

    def __init__(self, message: str, pos: int = 0, context: "ErrorContext | None" = None):
        self.pos = pos
        super().__init__(message, context)


class ExpressionEvalError(RulexprError):
    """
    Raised when a compiled expression cannot be evaluated.

    Evaluation is all-or-nothing: no partial result accompanies the error.
    """

    pass


class UnsupportedNodeError(ExpressionEvalError):
    """Raised for syntax that parses but has no evaluation rule (index, slice, call)."""

    pass


class UnsupportedOperatorError(ExpressionEvalError):
    """Raised when an operator is not defined for the left operand's type."""

    pass


class UnsupportedBooleanOperationError(ExpressionEvalError):
    """Raised when a boolean left operand is used with anything but ==, !=, && or ||."""

    pass


class UnknownAttributeError(ExpressionEvalError):
    """Raised when a selector names a field its base does not have."""

    def __init__(self, field: str, message: str | None = None):
        self.field = field
        super().__init__(message or f'unknown attribute "{field}"')


class DivisionByZeroError(ExpressionEvalError):
    """Raised for integer division or remainder by zero."""

    pass


class NegativeShiftCountError(ExpressionEvalError):
    """Raised when a signed value is shifted by a negative amount."""

    pass


class TypeMismatchError(ExpressionEvalError):
    """Raised when an operand cannot be coerced into the type an operation needs."""

    pass


class UnsupportedValueError(ExpressionEvalError):
    """Raised when an environment binding has no Value representation."""

    pass


class InternalEvalError(ExpressionEvalError):
    """Catch-all for unexpected failures during evaluation."""

    pass


@dataclass
class ErrorContext:
    """
    Location of an error inside expression source.

    Attributes:
        source: The complete expression text
        pos: Character offset of the error (0-indexed)
    """

    source: str
    pos: int

    @property
    def column(self) -> int:
        """1-indexed column of the error."""
        return self.pos + 1

    def format(self) -> str:
        """
        Format the source line with a marker under the offending column.

        Returns:
            Formatted string like:
                "  | a + * b"
                "  |     ^"
        """
        if "\n" in self.source:
            # Multi-line source: show only the line holding the error.
            line_start = self.source.rfind("\n", 0, self.pos) + 1
            line_end = self.source.find("\n", self.pos)
            line = self.source[line_start : line_end if line_end != -1 else None]
            offset = self.pos - line_start
        else:
            line = self.source
            offset = self.pos

        prefix = "  | "
        return f"{prefix}{line}\n{prefix}{' ' * offset}^"


def make_syntax_error(message: str, source: str, pos: int) -> ExpressionSyntaxError:
    """
    Helper to create an ExpressionSyntaxError with source context.

    Args:
        message: Error description
        source: Expression text being compiled
        pos: Character offset of the error

    Returns:
        ExpressionSyntaxError with context attached
    """
    return ExpressionSyntaxError(message, pos, ErrorContext(source=source, pos=pos))
