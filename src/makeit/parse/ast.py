"""
makeit.parse.ast - Expression Tree and Evaluator
================================================

The expression tree is a closed set of frozen dataclasses, one per node
kind. Each node evaluates itself against a variable environment and
returns a :data:`Value`.

Values
------
A value is one of three variants, represented by plain Python objects:

=========  ==========  =============
Variant    Python      Display text
=========  ==========  =============
string     ``str``     as-is
boolean    ``bool``    ``true`` / ``false``
null       ``None``    ``null``
=========  ==========  =============

Equality is structural. Comparing values of different variants yields
``False`` rather than an error (``"true" == True`` is false, and so is
``"" == None``).

Trees are built fresh for every block and discarded after evaluation.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TypeAlias


Value: TypeAlias = "str | bool | None"

Variables: TypeAlias = Mapping[str, str]


def display(value: Value) -> str:
    """
    Convert a value to the text written to the output.

    Examples
    --------
    >>> display("hello"), display(True), display(None)
    ('hello', 'true', 'null')
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


def values_equal(left: Value, right: Value) -> bool:
    """Structural equality; values of different variants are never equal."""
    if type(left) is not type(right):
        return False
    return left == right


def is_truthy(value: Value) -> bool:
    """Only ``false`` and null are falsy. The empty string is truthy."""
    return value is not None and value is not False


# =============================================================================
# Expression Nodes
# =============================================================================


class Expr:
    """Base class of all expression nodes."""

    __slots__ = ()

    def eval(self, variables: Variables) -> Value:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class Var(Expr):
    """Variable lookup; unbound names evaluate to null."""

    name: str

    def eval(self, variables: Variables) -> Value:
        return variables.get(self.name)


@dataclass(frozen=True, slots=True)
class Lit(Expr):
    value: Value

    def eval(self, variables: Variables) -> Value:
        return self.value


@dataclass(frozen=True, slots=True)
class Check(Expr):
    """Ternary ``cond ? left : right``."""

    cond: Expr
    left: Expr
    right: Expr

    def eval(self, variables: Variables) -> Value:
        if is_truthy(self.cond.eval(variables)):
            return self.left.eval(variables)
        return self.right.eval(variables)


@dataclass(frozen=True, slots=True)
class NullCheck(Expr):
    """Null-coalescing ``left ?? right``. ``right`` is evaluated only if needed."""

    left: Expr
    right: Expr

    def eval(self, variables: Variables) -> Value:
        result = self.left.eval(variables)
        if result is None:
            return self.right.eval(variables)
        return result


@dataclass(frozen=True, slots=True)
class Equals(Expr):
    left: Expr
    right: Expr

    def eval(self, variables: Variables) -> Value:
        return values_equal(self.left.eval(variables), self.right.eval(variables))


@dataclass(frozen=True, slots=True)
class Add(Expr):
    """String concatenation of both operands' display text."""

    left: Expr
    right: Expr

    def eval(self, variables: Variables) -> Value:
        return display(self.left.eval(variables)) + display(self.right.eval(variables))


@dataclass(frozen=True, slots=True)
class Empty(Expr):
    """Placeholder for a missing operand. Evaluates to null."""

    def eval(self, variables: Variables) -> Value:
        return None
