"""
makeit.cli - Command Line Interface
===================================

This module provides the command-line interface for makeit using Typer.

Architecture
------------
The CLI is structured around Typer's app pattern:

    app (main entry point)
    ├── create   - Store a directory as a template
    ├── load     - Create a project from a template
    ├── remove   - Delete a stored template
    ├── list     - Show stored templates
    └── render   - Render one file to the terminal

Commands that may overwrite something ask first. The --yes flag answers
every question with yes for scripted usage.

Usage Examples
--------------
Store the current directory as a template:
    $ makeit create python .

Create a project from it:
    $ makeit load python ./myproject -D author="Jane Doe"

See Also
--------
- template.py: The operations behind each command
- models.py: Template metadata and configuration models
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Annotated

import questionary
import typer
from rich import print as rprint
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from makeit import __version__
from makeit.errors import MakeitError
from makeit.models import AppConfig
from makeit.parse.parser import render
from makeit.template import (
    Confirm,
    create_template,
    list_templates,
    load_template,
    remove_template,
)


# =============================================================================
# CLI Application Setup
# =============================================================================

# Create the main Typer application
app = typer.Typer(
    name="makeit",
    help="Create projects from your own directory templates.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=True,
)

# Console for rich output
console = Console()


# Options shared by several commands
TemplateDirOption = Annotated[
    Path | None,
    typer.Option(
        "--template-dir",
        envvar="MAKEIT_TEMPLATE_DIR",
        help="Directory holding stored templates (default: from config.toml)",
        file_okay=False,
        dir_okay=True,
    ),
]

YesOption = Annotated[
    bool,
    typer.Option(
        "--yes",
        "-y",
        help="Answer yes to every confirmation prompt",
    ),
]

VarOption = Annotated[
    list[str] | None,
    typer.Option(
        "--var",
        "-D",
        help="Set a variable as KEY=VALUE (repeatable)",
    ),
]


# =============================================================================
# Helpers
# =============================================================================

def version_callback(value: bool) -> None:
    """Display version information and exit."""
    if value:
        console.print(Panel(
            f"[bold green]makeit[/] version [cyan]{__version__}[/]\n\n"
            f"[dim]Projects from directory templates[/]",
            border_style="green",
        ))
        raise typer.Exit()


def print_error(error: Exception) -> None:
    rprint(f"[red]Error:[/] {escape(str(error))}")


def resolve_storage_root(template_dir: Path | None) -> Path:
    """
    Storage root from the command line, falling back to config.toml.

    Exits with status 1 if the configuration file cannot be read.
    """
    if template_dir is not None:
        return template_dir.expanduser()

    try:
        return AppConfig.load().template_dir
    except Exception as e:
        rprint(f"[red]Error:[/] Invalid configuration: {escape(str(e))}")
        raise typer.Exit(1) from e


def parse_variables(values: list[str] | None) -> dict[str, str]:
    """
    Parse ``KEY=VALUE`` pairs given with --var.

    Only the first ``=`` separates key and value, so values may contain
    ``=`` themselves.

    Raises
    ------
    ValueError
        If a pair has no ``=`` or an empty key.

    Examples
    --------
    >>> parse_variables(["name=demo", "flags=a=b"])
    {'name': 'demo', 'flags': 'a=b'}
    """
    variables: dict[str, str] = {}
    for raw in values or []:
        key, sep, value = raw.partition("=")
        key = key.strip()
        if not sep or not key:
            msg = f"Invalid variable '{raw}'. Use KEY=VALUE."
            raise ValueError(msg)
        variables[key] = value
    return variables


def make_confirm(yes: bool) -> Confirm:
    """
    Build the confirmation prompt passed to the template operations.

    With ``yes`` every question is answered without prompting. Pressing
    Ctrl-C at the prompt aborts the command.
    """
    def confirm(question: str) -> bool:
        if yes:
            return True

        answer = questionary.confirm(question, default=True).ask()
        if answer is None:
            raise typer.Abort()
        return answer

    return confirm


# =============================================================================
# Main Application Callback
# =============================================================================

@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """
    [bold]makeit[/] - Create projects from directory templates.

    Store any directory as a template, then create new projects from it.
    Files listed in the template's [cyan]makeit.json[/] are rendered with
    [cyan]{{ ... }}[/] expressions.

    [bold]Quick Start:[/]

        makeit create mytemplate ./skeleton

        makeit load mytemplate ./newproject
    """
    pass


# =============================================================================
# Create Command
# =============================================================================

@app.command()
def create(
    name: Annotated[
        str,
        typer.Argument(help="Name to store the template under"),
    ],
    source: Annotated[
        Path,
        typer.Argument(
            help="Directory to store as a template",
            exists=True,
            file_okay=False,
            dir_okay=True,
        ),
    ] = Path("."),
    template_dir: TemplateDirOption = None,
    yes: YesOption = False,
) -> None:
    """
    Store a directory as a template.

    The directory is copied as-is. Edit the generated [cyan]makeit.json[/]
    to choose which files are rendered, renamed or ignored.

    [bold]Examples:[/]

        makeit create python
        makeit create rust ./skeleton --yes
    """
    storage_root = resolve_storage_root(template_dir)

    try:
        result = create_template(
            storage_root,
            source.resolve(),
            name,
            confirm=make_confirm(yes),
            verbose=True,
        )
    except (MakeitError, OSError) as e:
        print_error(e)
        raise typer.Exit(1)

    if not result.completed:
        console.print("[yellow]Template left unchanged.[/]")
        return

    console.print(Panel(
        f"[bold green]Template '{escape(name)}' stored![/]\n\n"
        f"[dim]Location:[/] {escape(str(result.template_path))}",
        title="[bold]Success[/]",
        border_style="green",
    ))


# =============================================================================
# Load Command
# =============================================================================

@app.command()
def load(
    name: Annotated[
        str,
        typer.Argument(help="Template to create the project from"),
    ],
    dest: Annotated[
        Path,
        typer.Argument(help="Directory to create the project in"),
    ] = Path("."),
    var: VarOption = None,
    template_dir: TemplateDirOption = None,
    yes: YesOption = False,
) -> None:
    """
    Create a project from a stored template.

    Variables given with [cyan]--var[/] are available to every
    [cyan]{{ ... }}[/] block, together with [cyan]_PNAME[/],
    [cyan]_PDIR[/] and [cyan]_OS[/].

    [bold]Examples:[/]

        makeit load python ./myproject
        makeit load python ./myproject -D author="Jane Doe" --yes
    """
    try:
        variables = parse_variables(var)
    except ValueError as e:
        print_error(e)
        raise typer.Exit(1)

    storage_root = resolve_storage_root(template_dir)
    dest = dest.resolve()

    try:
        result = load_template(
            storage_root,
            dest,
            name,
            variables,
            confirm=make_confirm(yes),
            verbose=True,
        )
    except (MakeitError, OSError, UnicodeDecodeError) as e:
        print_error(e)
        raise typer.Exit(1)

    if not result.completed:
        console.print("[yellow]Nothing was created.[/]")
        return

    console.print()
    console.print(Panel(
        f"[bold green]Project created from '{escape(name)}'![/]\n\n"
        f"[dim]Location:[/] {escape(str(result.project_path))}\n"
        f"[dim]Files:[/] {len(result.files_created)} created, "
        f"{len(result.files_ignored)} ignored",
        title="[bold green]Success[/]",
        border_style="green",
    ))


# =============================================================================
# Remove Command
# =============================================================================

@app.command()
def remove(
    name: Annotated[
        str,
        typer.Argument(help="Template to delete"),
    ],
    template_dir: TemplateDirOption = None,
) -> None:
    """
    Delete a stored template.

    [bold]Example:[/]

        makeit remove python
    """
    storage_root = resolve_storage_root(template_dir)

    try:
        path = remove_template(storage_root, name)
    except (MakeitError, OSError) as e:
        print_error(e)
        raise typer.Exit(1)

    console.print(f"[green]✓[/] Removed {escape(str(path))}")


# =============================================================================
# List Command
# =============================================================================

@app.command("list")
def list_(
    template_dir: TemplateDirOption = None,
) -> None:
    """
    Show all stored templates.
    """
    storage_root = resolve_storage_root(template_dir)

    try:
        names = list_templates(storage_root)
    except OSError as e:
        print_error(e)
        raise typer.Exit(1)

    if not names:
        console.print(f"[dim]No templates in {escape(str(storage_root))}[/]")
        return

    table = Table(title="Templates", show_header=False)
    table.add_column("Name", style="cyan")
    for template_name in names:
        table.add_row(template_name)

    console.print(table)


# =============================================================================
# Render Command
# =============================================================================

@app.command("render")
def render_command(
    file: Annotated[
        Path,
        typer.Argument(
            help="File to render",
            exists=True,
            file_okay=True,
            dir_okay=False,
        ),
    ],
    var: VarOption = None,
) -> None:
    """
    Render a single file and print the result.

    Useful to check [cyan]{{ ... }}[/] expressions before adding a file
    to a template.

    [bold]Example:[/]

        makeit render README.md -D name=demo
    """
    try:
        variables = parse_variables(var)
        # Keep line endings as written, like files made by load
        with file.open(encoding="utf-8", newline="") as f:
            text = f.read()
        render(text, variables, sys.stdout)
    except (MakeitError, OSError, ValueError) as e:
        print_error(e)
        raise typer.Exit(1)


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    app()
