"""
makeit - Projects from Directory Templates
==========================================

A CLI tool that stores directory trees as templates and creates new
projects from them, rendering selected files through a small expression
language.

Features
--------
- **Any Directory is a Template**: ``makeit create`` stores it as-is
- **Per-File Control**: copy, render, rename or ignore each file
- **Expressions**: ``{{ name ?? "default" }}``, ternaries, equality and
  concatenation in file contents, filenames and hooks
- **Hooks**: run commands before and after the files are made

Quick Start
-----------
```bash
# Store a skeleton project
makeit create python ./skeleton

# Create a new project from it
makeit load python ./myproject -D author="Jane Doe"
```

Example
-------
>>> from makeit import render_string
>>> render_string('Hello {{ name ?? "world" }}', {"name": "makeit"})
'Hello makeit'

Architecture
------------
- ``cli``: Typer-based command line interface
- ``template``: Template store and load pipeline
- ``hooks``: Pre/post hook execution
- ``models``: Pydantic models for template metadata and configuration
- ``errors``: Exception hierarchy
- ``parse``: Lexer, parser and evaluator of the expression language
"""

# =============================================================================
# Package Metadata
# =============================================================================
__version__ = "0.1.0"
__license__ = "MIT"

# =============================================================================
# Public API Exports
# =============================================================================
# These are the main functions/classes users should interact with when using
# makeit as a library (as opposed to the CLI)

from makeit.errors import MakeitError
from makeit.models import AppConfig, FileAction, FileOptions, TemplateRecord
from makeit.parse import render, render_string
from makeit.template import (
    create_template,
    list_templates,
    load_template,
    remove_template,
)


__all__ = [
    # Configuration and metadata models
    "AppConfig",
    "FileAction",
    "FileOptions",
    "MakeitError",
    "TemplateRecord",
    # Version info
    "__version__",
    # Core functions
    "create_template",
    "list_templates",
    "load_template",
    "remove_template",
    "render",
    "render_string",
]
