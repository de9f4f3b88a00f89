"""
makeit.parse.lexer - Block Tokenizer
====================================

Turns the characters inside a ``{{ ... }}`` block into tokens, one token per
call to :meth:`Lexer.next`.

The lexer does not own its input. It reads from a :class:`CharCursor` that
is shared with the text scanner in :mod:`makeit.parse.parser`; the scanner
walks plain text, and hands the cursor over to the lexer once it has
consumed an opening ``{{``.

Token Rules
-----------
==========  ===============================================
Input       Token
==========  ===============================================
``?``       QUESTION
``??``      NULL_CHECK
``:``       COLON
``==``      EQUALS (a lone ``=`` is an invalid token)
``"..."``   LITERAL (``\\n``, ``\\r``, ``\\t`` escapes)
``name``    IDENT (letters, digits and ``_``)
``(``       OPEN_PAREN
``)``       CLOSE_PAREN
``+``       PLUS
``}}``      END (a lone ``}`` is an invalid token)
==========  ===============================================
"""

from __future__ import annotations

from enum import Enum
from typing import NamedTuple

from makeit.errors import (
    InvalidTokenError,
    LexerError,
    UnclosedBlockError,
    UnclosedLiteralError,
)


# Escape sequences recognised inside string literals. Any other escaped
# character stands for itself.
LITERAL_ESCAPES: dict[str, str] = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
}


class TokenKind(str, Enum):
    """Kinds of tokens produced inside a block."""

    COLON = "colon"
    QUESTION = "question"
    NULL_CHECK = "null_check"
    EQUALS = "equals"
    IDENT = "ident"
    LITERAL = "literal"
    OPEN_PAREN = "open_paren"
    CLOSE_PAREN = "close_paren"
    PLUS = "plus"
    END = "end"


class Token(NamedTuple):
    """A single token. ``value`` is only meaningful for IDENT and LITERAL."""

    kind: TokenKind
    value: str = ""


_SINGLE_CHAR_TOKENS: dict[str, TokenKind] = {
    ":": TokenKind.COLON,
    "(": TokenKind.OPEN_PAREN,
    ")": TokenKind.CLOSE_PAREN,
    "+": TokenKind.PLUS,
}


class CharCursor:
    """
    Position-tracking cursor over a string.

    ``cur`` is the character under the cursor, or None at end of input.
    Line and column are 1-based and only used for error messages.
    """

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0
        self.line = 1
        self.column = 1

    @property
    def cur(self) -> str | None:
        if self.pos < len(self.text):
            return self.text[self.pos]
        return None

    def advance(self) -> None:
        """Move one character forward. Does nothing at end of input."""
        if self.pos >= len(self.text):
            return
        if self.text[self.pos] == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        self.pos += 1

    def error(self, exc_type: type[LexerError]) -> LexerError:
        """Build a lexer error located at the current position."""
        return exc_type(line=self.line, column=self.column)


class Lexer:
    """
    Produces tokens lazily from a :class:`CharCursor`.

    Examples
    --------
    >>> lexer = Lexer(CharCursor('name ?? "none" }}'))
    >>> [lexer.next().kind.value for _ in range(4)]
    ['ident', 'null_check', 'literal', 'end']
    """

    def __init__(self, cursor: CharCursor) -> None:
        self.cursor = cursor

    def next(self) -> Token:
        """
        Read the next token.

        Raises
        ------
        UnclosedBlockError
            If input ends before ``}}``.
        UnclosedLiteralError
            If input ends inside a string literal.
        InvalidTokenError
            On a character that cannot start a token.
        """
        self._skip_whitespace()
        c = self.cursor.cur

        if c is None:
            raise self.cursor.error(UnclosedBlockError)
        if c == "?":
            return self._read_question()
        if c == "=":
            return self._read_pair("=", TokenKind.EQUALS)
        if c == "}":
            return self._read_pair("}", TokenKind.END)
        if c == '"':
            return self._read_literal()
        if c.isalpha() or c == "_":
            return self._read_ident()
        if c in _SINGLE_CHAR_TOKENS:
            self.cursor.advance()
            return Token(_SINGLE_CHAR_TOKENS[c])

        raise self.cursor.error(InvalidTokenError)

    def _skip_whitespace(self) -> None:
        while self.cursor.cur is not None and self.cursor.cur.isspace():
            self.cursor.advance()

    def _read_question(self) -> Token:
        self.cursor.advance()
        if self.cursor.cur == "?":
            self.cursor.advance()
            return Token(TokenKind.NULL_CHECK)
        return Token(TokenKind.QUESTION)

    def _read_pair(self, second: str, kind: TokenKind) -> Token:
        """Read a two-character token whose second character must follow."""
        self.cursor.advance()
        if self.cursor.cur != second:
            raise self.cursor.error(InvalidTokenError)
        self.cursor.advance()
        return Token(kind)

    def _read_ident(self) -> Token:
        start = self.cursor.pos
        while self.cursor.cur is not None and (
            self.cursor.cur.isalnum() or self.cursor.cur == "_"
        ):
            self.cursor.advance()
        return Token(TokenKind.IDENT, self.cursor.text[start:self.cursor.pos])

    def _read_literal(self) -> Token:
        # Skip the opening quote
        self.cursor.advance()
        chars: list[str] = []

        while self.cursor.cur is not None:
            c = self.cursor.cur
            self.cursor.advance()
            if c == '"':
                return Token(TokenKind.LITERAL, "".join(chars))
            if c == "\\":
                escaped = self.cursor.cur
                if escaped is None:
                    break
                self.cursor.advance()
                c = LITERAL_ESCAPES.get(escaped, escaped)
            chars.append(c)

        raise self.cursor.error(UnclosedLiteralError)
