"""
makeit.parse - The ``{{ ... }}`` Expression Language
====================================================

- ``lexer``: characters inside a block to tokens
- ``parser``: text scanning and recursive-descent expression parsing
- ``ast``: expression nodes, values and evaluation
"""

from makeit.parse.ast import Value, display
from makeit.parse.parser import Parser, render, render_file, render_string


__all__ = [
    "Parser",
    "Value",
    "display",
    "render",
    "render_file",
    "render_string",
]
