"""
makeit.parse.parser - Text Scanner and Expression Parser
========================================================

This module renders text containing ``{{ ... }}`` blocks. It has two
layers:

1. **Text scanning** walks the raw text character by character, copying it
   to the output and handling ``{`` and ``\\`` specially.
2. **Expression parsing** runs inside a block, pulling tokens from the
   :class:`~makeit.parse.lexer.Lexer` and building a tree from
   :mod:`makeit.parse.ast` by recursive descent.

Each block is parsed, evaluated and written out before scanning resumes,
so a template never exists as a whole tree in memory.

Grammar
-------
The full expression parser folds an accumulated expression (``prev``)
against each following token::

    a ? b : c      ternary, terminal (nothing may follow the else branch)
    a ?? b         null check, terminal (``a ?? b ?? c`` nests to the right)
    a == b         equality, right side is high-precedence, keeps folding
    a + b          concatenation, right side is high-precedence, keeps folding
    (a)            grouping

High-precedence operands are a single identifier, literal or group, so
``a + " " + b == "x"`` reads as ``((a + " ") + b) == "x"``.

Output
------
The output sink is any text stream: ``io.StringIO`` for strings, an open
file for rendered template files, ``sys.stdout`` for the console.

Examples
--------
>>> render_string('{{ name ?? "world" }}!', {})
'world!'
>>> render_string('{{ a + "-" + b }}', {"a": "x", "b": "y"})
'x-y'
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import TextIO

from makeit.errors import UnclosedBlockError, UnexpectedTokenError
from makeit.parse.ast import (
    Add,
    Check,
    Empty,
    Equals,
    Expr,
    Lit,
    NullCheck,
    Var,
    Variables,
    display,
)
from makeit.parse.lexer import CharCursor, Lexer, Token, TokenKind


class Parser:
    """
    Renders one piece of text to an output stream.

    Parameters
    ----------
    text : str
        Text possibly containing ``{{ ... }}`` blocks.

    variables : Mapping[str, str]
        Variable environment used to evaluate blocks.

    output : TextIO
        Destination for rendered text.
    """

    def __init__(self, text: str, variables: Variables, output: TextIO) -> None:
        self.cursor = CharCursor(text)
        self.lexer = Lexer(self.cursor)
        self.variables = variables
        self.output = output
        # One token of lookahead pushed back by the expression parser
        self.token: Token | None = None

    # -------------------------------------------------------------------------
    # Text Scanning
    # -------------------------------------------------------------------------

    def parse(self) -> None:
        """
        Render the whole text.

        Raises
        ------
        LexerError
            On any malformed block. Output written before the error stays
            written.
        """
        while self.cursor.cur is not None:
            c = self.cursor.cur
            self.cursor.advance()

            if c == "{":
                self._handle_opening()
            elif c == "\\":
                self._handle_escape()
            else:
                self.output.write(c)

    def _handle_opening(self) -> None:
        c = self.cursor.cur
        if c is None:
            self.output.write("{")
            return

        self.cursor.advance()
        if c != "{":
            self.output.write("{" + c)
            return

        self._handle_block()

    def _handle_escape(self) -> None:
        c = self.cursor.cur
        if c is None:
            raise self.cursor.error(UnclosedBlockError)

        # \{{ is a literal {{, never a block
        if c == "{" and self._peek() == "{":
            self.cursor.advance()
            self.cursor.advance()
            self.output.write("{{")
            return

        self.cursor.advance()
        self.output.write("\\" + c)

    def _peek(self) -> str | None:
        pos = self.cursor.pos + 1
        if pos < len(self.cursor.text):
            return self.cursor.text[pos]
        return None

    def _handle_block(self) -> None:
        expr = self.parse_expr()
        self._next_token()
        if self._take().kind != TokenKind.END:
            raise self.cursor.error(UnexpectedTokenError)

        self.output.write(display(expr.eval(self.variables)))

    # -------------------------------------------------------------------------
    # Expression Parsing
    # -------------------------------------------------------------------------

    def parse_expr(self) -> Expr:
        """Parse a full expression, leaving the terminating token pushed back."""
        self._next_token()
        prev: Expr = Empty()

        while True:
            token = self._take()
            kind = token.kind

            if kind == TokenKind.QUESTION:
                return self._parse_check(prev)
            if kind == TokenKind.NULL_CHECK:
                return NullCheck(prev, self.parse_expr())

            if kind == TokenKind.EQUALS:
                prev = Equals(prev, self.parse_expr_hp())
            elif kind == TokenKind.PLUS:
                prev = Add(prev, self.parse_expr_hp())
            elif kind == TokenKind.OPEN_PAREN:
                self._expect_empty(prev)
                prev = self._parse_paren()
            elif kind in (TokenKind.IDENT, TokenKind.LITERAL):
                prev = self._parse_operand(prev, token)
            else:
                self.token = token
                return prev

            self._next_token()

    def parse_expr_hp(self) -> Expr:
        """Parse a high-precedence operand: identifier, literal or group."""
        self._next_token()
        token = self._take()

        if token.kind in (TokenKind.IDENT, TokenKind.LITERAL):
            return self._parse_operand(Empty(), token)
        if token.kind == TokenKind.OPEN_PAREN:
            return self._parse_paren()

        self.token = token
        return Empty()

    def _parse_check(self, cond: Expr) -> Expr:
        left = self.parse_expr()
        if self._take().kind != TokenKind.COLON:
            raise self.cursor.error(UnexpectedTokenError)

        right = self.parse_expr()
        return Check(cond, left, right)

    def _parse_paren(self) -> Expr:
        expr = self.parse_expr()
        if self._take().kind != TokenKind.CLOSE_PAREN:
            raise self.cursor.error(UnexpectedTokenError)
        return expr

    def _parse_operand(self, prev: Expr, token: Token) -> Expr:
        self._expect_empty(prev)
        if token.kind == TokenKind.IDENT:
            return Var(token.value)
        return Lit(token.value)

    def _expect_empty(self, prev: Expr) -> None:
        # Two operands side by side without an operator
        if not isinstance(prev, Empty):
            raise self.cursor.error(UnexpectedTokenError)

    def _next_token(self) -> None:
        if self.token is None:
            self.token = self.lexer.next()

    def _take(self) -> Token:
        token = self.token
        self.token = None
        if token is None:
            # Every caller reads a token first; reaching here is a bug
            raise RuntimeError("parser has no pending token")
        return token


# =============================================================================
# Rendering Helpers
# =============================================================================


def render(text: str, variables: Variables, output: TextIO) -> None:
    """Render ``text`` into an output stream."""
    Parser(text, variables, output).parse()


def render_string(text: str, variables: Variables) -> str:
    """
    Render ``text`` and return the result.

    Used for filenames and hook commands.
    """
    buffer = io.StringIO()
    render(text, variables, buffer)
    return buffer.getvalue()


def render_file(src: Path, dst: Path, variables: Variables) -> None:
    """
    Render the file ``src`` into ``dst``.

    Line endings are preserved as written in the source. ``dst`` is created
    (or truncated) before rendering starts, so a render error leaves a
    partial file behind.

    Raises
    ------
    LexerError
        If a block in the file is malformed.
    OSError
        If either file cannot be read or written.
    UnicodeDecodeError
        If ``src`` is not UTF-8 text.
    """
    with src.open(encoding="utf-8", newline="") as f:
        text = f.read()

    with dst.open("w", encoding="utf-8", newline="") as out:
        render(text, variables, out)
