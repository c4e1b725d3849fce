"""
Tokenizer for the rulexpr expression language.

Converts an expression string into a sequence of typed tokens. The lexical
rules follow Go expression syntax: ``true``, ``false`` and ``nil`` are plain
identifiers, strings are double-quoted with Go escapes or back-quoted raw.
"""

from __future__ import annotations

import re
import string
from enum import StrEnum, auto


class TokenKind(StrEnum):
    """Token types for the expression language."""

    # Literals
    INT = auto()
    FLOAT = auto()
    STRING = auto()

    # Identifiers
    IDENT = auto()

    # Logical
    LOR = auto()  # ||
    LAND = auto()  # &&
    BANG = auto()  # !

    # Comparison
    EQ = auto()
    NE = auto()
    LT = auto()
    GT = auto()
    LE = auto()
    GE = auto()

    # Arithmetic
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    PERCENT = auto()

    # Bitwise
    AMP = auto()  # &
    PIPE = auto()  # |
    CARET = auto()  # ^
    AND_NOT = auto()  # &^
    SHL = auto()  # <<
    SHR = auto()  # >>

    # Punctuation
    LPAREN = auto()
    RPAREN = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    COMMA = auto()
    DOT = auto()
    COLON = auto()

    # End of input
    EOF = auto()


class Token:
    """A single token from the expression tokenizer."""

    __slots__ = ("kind", "value", "pos")

    def __init__(self, kind: TokenKind, value: str, pos: int) -> None:
        self.kind = kind
        self.value = value
        self.pos = pos

    def __repr__(self) -> str:
        return f"Token({self.kind}, {self.value!r}, pos={self.pos})"


_TWO_CHAR_OPS: dict[str, TokenKind] = {
    "||": TokenKind.LOR,
    "&&": TokenKind.LAND,
    "==": TokenKind.EQ,
    "!=": TokenKind.NE,
    "<=": TokenKind.LE,
    ">=": TokenKind.GE,
    "<<": TokenKind.SHL,
    ">>": TokenKind.SHR,
    "&^": TokenKind.AND_NOT,
}

_SINGLE_CHAR_OPS: dict[str, TokenKind] = {
    "!": TokenKind.BANG,
    "<": TokenKind.LT,
    ">": TokenKind.GT,
    "+": TokenKind.PLUS,
    "-": TokenKind.MINUS,
    "*": TokenKind.STAR,
    "/": TokenKind.SLASH,
    "%": TokenKind.PERCENT,
    "&": TokenKind.AMP,
    "|": TokenKind.PIPE,
    "^": TokenKind.CARET,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    "[": TokenKind.LBRACKET,
    "]": TokenKind.RBRACKET,
    ",": TokenKind.COMMA,
    ".": TokenKind.DOT,
    ":": TokenKind.COLON,
}

_DIGITS = "0123456789"

# Prefixed integers tokenize but are rejected when the literal is evaluated
_INT_PREFIXED_RE = re.compile(r"0[xX][0-9a-fA-F]+|0[oO][0-7]+|0[bB][01]+")
_FLOAT_RE = re.compile(
    r"(?:[0-9]+\.[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|[0-9]+[eE][+-]?[0-9]+"
)
# Identifier: unicode letter or underscore followed by letters/digits/underscores
_IDENT_RE = re.compile(r"[^\W\d]\w*")

_SIMPLE_ESCAPES: dict[str, str] = {
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
    "\\": "\\",
    '"': '"',
}
_HEX_ESCAPE_WIDTHS: dict[str, int] = {"x": 2, "u": 4, "U": 8}
_OCTAL_DIGITS = "01234567"


class ExpressionTokenError(Exception):
    """Error during expression tokenization."""

    def __init__(self, message: str, pos: int) -> None:
        super().__init__(message)
        self.pos = pos


def tokenize(source: str) -> list[Token]:
    """Tokenize an expression string into a list of tokens."""
    tokens: list[Token] = []
    i = 0
    n = len(source)

    while i < n:
        c = source[i]

        # Skip whitespace
        if c in " \t\n\r":
            i += 1
            continue

        # String literals
        if c == '"':
            i, tok = _read_string(source, i)
            tokens.append(tok)
            continue
        if c == "`":
            i, tok = _read_raw_string(source, i)
            tokens.append(tok)
            continue

        # Numbers
        if c in _DIGITS or (c == "." and i + 1 < n and source[i + 1] in _DIGITS):
            i, tok = _read_number(source, i)
            tokens.append(tok)
            continue

        # Identifiers
        m = _IDENT_RE.match(source, i)
        if m:
            tokens.append(Token(TokenKind.IDENT, m.group(0), i))
            i = m.end()
            continue

        # Two-character operators
        two = source[i : i + 2]
        if two in _TWO_CHAR_OPS:
            tokens.append(Token(_TWO_CHAR_OPS[two], two, i))
            i += 2
            continue

        # Single-character operators and punctuation
        if c in _SINGLE_CHAR_OPS:
            tokens.append(Token(_SINGLE_CHAR_OPS[c], c, i))
            i += 1
            continue

        raise ExpressionTokenError(f"Unexpected character: {c!r}", i)

    tokens.append(Token(TokenKind.EOF, "", n))
    return tokens


def _read_number(source: str, start: int) -> tuple[int, Token]:
    """Read an integer or float literal."""
    m = _INT_PREFIXED_RE.match(source, start)
    if m:
        return m.end(), Token(TokenKind.INT, m.group(0), start)
    m = _FLOAT_RE.match(source, start)
    if m:
        return m.end(), Token(TokenKind.FLOAT, m.group(0), start)
    end = start
    while end < len(source) and source[end] in _DIGITS:
        end += 1
    return end, Token(TokenKind.INT, source[start:end], start)


def _read_string(source: str, start: int) -> tuple[int, Token]:
    """Read a double-quoted string literal, keeping its quotes."""
    i = start + 1
    n = len(source)

    while i < n:
        c = source[i]
        if c == "\\":
            i += 2
            continue
        if c == "\n":
            raise ExpressionTokenError("Newline in string literal", start)
        if c == '"':
            text = source[start : i + 1]
            try:
                unquote(text)
            except ValueError as e:
                raise ExpressionTokenError(str(e), start) from e
            return i + 1, Token(TokenKind.STRING, text, start)
        i += 1

    raise ExpressionTokenError("Unterminated string literal", start)


def _read_raw_string(source: str, start: int) -> tuple[int, Token]:
    """Read a back-quoted raw string literal, keeping its quotes."""
    end = source.find("`", start + 1)
    if end == -1:
        raise ExpressionTokenError("Unterminated raw string literal", start)
    return end + 1, Token(TokenKind.STRING, source[start : end + 1], start)


def unquote(text: str) -> str:
    """Decode a quoted string literal as written in source.

    Raw strings (back quotes) are taken verbatim, minus carriage returns.
    Double-quoted strings accept the Go escapes \\a \\b \\f \\n \\r \\t \\v
    \\\\ \\" as well as \\xHH, \\ooo, \\uHHHH and \\UHHHHHHHH. Byte escapes
    (\\x, octal) decode to the code point of the same value.

    Raises:
        ValueError: If the literal is malformed.
    """
    if len(text) >= 2 and text[0] == "`" and text[-1] == "`":
        return text[1:-1].replace("\r", "")
    if len(text) < 2 or text[0] != '"' or text[-1] != '"':
        raise ValueError("Invalid string literal")

    body = text[1:-1]
    chars: list[str] = []
    i = 0
    n = len(body)

    while i < n:
        c = body[i]
        if c in ('"', "\n"):
            raise ValueError("Invalid string literal")
        if c != "\\":
            chars.append(c)
            i += 1
            continue
        if i + 1 >= n:
            raise ValueError("Unterminated escape sequence")

        esc = body[i + 1]
        if esc in _SIMPLE_ESCAPES:
            chars.append(_SIMPLE_ESCAPES[esc])
            i += 2
        elif esc in _HEX_ESCAPE_WIDTHS:
            width = _HEX_ESCAPE_WIDTHS[esc]
            digits = body[i + 2 : i + 2 + width]
            if len(digits) != width or any(d not in string.hexdigits for d in digits):
                raise ValueError(f"Invalid \\{esc} escape sequence")
            code = int(digits, 16)
            if code > 0x10FFFF or 0xD800 <= code <= 0xDFFF:
                raise ValueError(f"Escape sequence is invalid Unicode code point: \\{esc}{digits}")
            chars.append(chr(code))
            i += 2 + width
        elif esc in _OCTAL_DIGITS:
            digits = body[i + 1 : i + 4]
            if len(digits) != 3 or any(d not in _OCTAL_DIGITS for d in digits):
                raise ValueError("Invalid octal escape sequence")
            code = int(digits, 8)
            if code > 255:
                raise ValueError(f"Octal escape value > 255: \\{digits}")
            chars.append(chr(code))
            i += 4
        else:
            raise ValueError(f"Unknown escape sequence: \\{esc}")

    return "".join(chars)
