"""
makeit.errors - Exception Hierarchy
===================================

Every failure makeit reports on purpose derives from ``MakeitError`` so the
CLI can catch one type, print the message and exit non-zero.

Hierarchy
---------
    MakeitError
    ├── LexerError
    │   ├── InvalidTokenError
    │   ├── UnclosedLiteralError
    │   ├── UnclosedBlockError
    │   └── UnexpectedTokenError
    ├── TemplateError
    │   ├── TemplateNotFoundError
    │   ├── TemplateExistsError
    │   ├── InvalidRenameError
    │   └── HookError
    │       ├── PreHookError
    │       └── PostHookError
    └── RecordDecodeError

I/O problems (permissions, missing paths) are not wrapped; they surface as
the ``OSError`` raised by the standard library.
"""

from __future__ import annotations

from pathlib import Path


class MakeitError(Exception):
    """Base class for all makeit errors."""


# =============================================================================
# Expression Language Errors
# =============================================================================


class LexerError(MakeitError):
    """
    Error raised while tokenizing or parsing a ``{{ ... }}`` block.

    Lexical errors are always fatal to the render operation that hit them.

    Attributes
    ----------
    line : int | None
        1-based line of the offending character, if known.

    column : int | None
        1-based column of the offending character, if known.

    path : Path | None
        File (or template-relative name) being rendered. Filled in by the
        template pipeline, since the parser only sees characters.
    """

    message = "lexical error"

    def __init__(
        self,
        message: str | None = None,
        *,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        super().__init__(message or self.message)
        self.line = line
        self.column = column
        self.path: Path | None = None

    def __str__(self) -> str:
        text = super().__str__()
        if self.line is not None:
            text = f"{text} at {self.line}:{self.column}"
        if self.path is not None:
            text = f"{self.path}: {text}"
        return text


class InvalidTokenError(LexerError):
    message = "invalid token found"


class UnclosedLiteralError(LexerError):
    message = "unclosed literal"


class UnclosedBlockError(LexerError):
    message = "code block not closed"


class UnexpectedTokenError(LexerError):
    message = "unexpected token"


# =============================================================================
# Template Errors
# =============================================================================


class TemplateError(MakeitError):
    """Error raised by the template pipeline around a specific operation."""


class TemplateNotFoundError(TemplateError):
    def __init__(self, name: str) -> None:
        super().__init__(f"template '{name}' not found")
        self.name = name


class TemplateExistsError(TemplateError):
    def __init__(self, name: str) -> None:
        super().__init__(f"template '{name}' already exists")
        self.name = name


class InvalidRenameError(TemplateError):
    """A rename template rendered to something that is not a plain filename."""

    def __init__(self, path: Path, filename: str) -> None:
        super().__init__(f"{path}: invalid file name '{filename}' from rename")
        self.path = path
        self.filename = filename


class HookError(TemplateError):
    """
    A pre or post hook could not be spawned or exited non-zero.

    Attributes
    ----------
    command : str
        The rendered hook command.

    stderr : str
        Standard error captured from the hook (or the spawn failure text).

    returncode : int | None
        Exit status, or None when the process never started.
    """

    stage = "hook"

    def __init__(
        self,
        command: str,
        stderr: str = "",
        returncode: int | None = None,
    ) -> None:
        self.command = command
        self.stderr = stderr
        self.returncode = returncode

        msg = f"executing {self.stage} script failed"
        if returncode is not None:
            msg += f" (exit status {returncode})"
        if stderr.strip():
            msg += f": {stderr.strip()}"
        super().__init__(msg)


class PreHookError(HookError):
    stage = "pre"


class PostHookError(HookError):
    stage = "post"


# =============================================================================
# Metadata Errors
# =============================================================================


class RecordDecodeError(MakeitError):
    """The template's ``makeit.json`` is missing or cannot be decoded."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"loading template metadata {path}: {reason}")
        self.path = path
