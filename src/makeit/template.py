"""
makeit.template - Template Store and Load Pipeline
==================================================

This module contains the operations on stored templates: ``create``,
``load``, ``remove`` and ``list``. ``load`` is where the interesting work
happens; it orchestrates variable merging, hook execution and rendering of
the template's files into a destination directory.

Storage Layout
--------------
Templates live under a storage root (see ``AppConfig.template_dir``)::

    <storage root>/
    └── <name>/
        ├── makeit.json     TemplateRecord
        └── template/       literal source tree

Load Pipeline
-------------
    1. Check the template exists
    2. Ask before writing into a non-empty destination
    3. Read and validate makeit.json
    4. Merge built-in, supplied and stored variables
    5. Create the destination directory
    6. Run the pre hook
    7. Walk template/ and copy, make or skip every file
    8. Run the post hook

The pipeline is not transactional. If something fails partway through,
whatever was already written stays in the destination.

Usage Example
-------------
>>> from makeit.template import load_template
>>> result = load_template(
...     Path("~/.config/makeit/templates").expanduser(),
...     Path("./myproject"),
...     "python",
...     {"author": "Jane"},
...     confirm=lambda question: True,
... )
>>> result.files_created[:2]
[PosixPath('myproject/README.md'), PosixPath('myproject/pyproject.toml')]
"""

from __future__ import annotations

import os
import platform
import shutil
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import ValidationError
from rich.console import Console

from makeit.errors import (
    InvalidRenameError,
    LexerError,
    RecordDecodeError,
    TemplateExistsError,
    TemplateNotFoundError,
)
from makeit.hooks import HookRunner, HookStage, ShellHookRunner
from makeit.models import (
    RECORD_FILE_NAME,
    TEMPLATE_SUBDIR,
    FileAction,
    FileOptions,
    TemplateRecord,
)
from makeit.parse.parser import render_file, render_string


# =============================================================================
# Module-Level Configuration
# =============================================================================

# Console for rich output
console = Console()

# Asks the user a yes/no question. Returning False cancels the operation.
Confirm = Callable[[str], bool]

# Names of the variables injected into every load
VAR_PROJECT_NAME = "_PNAME"
VAR_PROJECT_DIR = "_PDIR"
VAR_OS = "_OS"


# =============================================================================
# Result Data Classes
# =============================================================================


@dataclass
class CreateResult:
    """
    Result of storing a template.

    Attributes
    ----------
    template_path : Path
        Directory of the stored template.

    completed : bool
        False if the user declined to replace an existing template.

    replaced : bool
        Whether an existing template of the same name was deleted.
    """

    template_path: Path
    completed: bool = True
    replaced: bool = False


@dataclass
class LoadResult:
    """
    Result of loading a template into a destination directory.

    Attributes
    ----------
    project_path : Path
        Destination directory.

    completed : bool
        False if the user declined to write into a non-empty directory.

    files_created : list[Path]
        Every file written, in walk order.

    files_ignored : list[Path]
        Template-relative paths skipped because of an Ignore action.

    variables : dict[str, str]
        The merged variable environment the template was rendered with.

    Examples
    --------
    >>> result = LoadResult(project_path=Path("/home/user/myproject"))
    >>> if result.completed:
    ...     print(f"{len(result.files_created)} files created")
    0 files created
    """

    project_path: Path
    completed: bool = True
    files_created: list[Path] = field(default_factory=list)
    files_ignored: list[Path] = field(default_factory=list)
    variables: dict[str, str] = field(default_factory=dict)


# =============================================================================
# Record Storage
# =============================================================================


def template_dir(storage_root: Path, name: str) -> Path:
    """Directory of the stored template ``name``."""
    return storage_root / name


def read_record(path: Path) -> TemplateRecord:
    """
    Read and validate a template's ``makeit.json``.

    A missing file is a decode failure just like a malformed one; a stored
    template always has a record.

    Raises
    ------
    RecordDecodeError
        If the file cannot be read or does not describe a valid record.
    """
    record_path = path / RECORD_FILE_NAME
    try:
        data = record_path.read_text(encoding="utf-8")
    except OSError as e:
        raise RecordDecodeError(record_path, e.strerror or str(e)) from e

    try:
        return TemplateRecord.model_validate_json(data)
    except ValidationError as e:
        raise RecordDecodeError(record_path, str(e)) from e


def write_record(path: Path, record: TemplateRecord) -> Path:
    """Write ``record`` as the ``makeit.json`` of the template at ``path``."""
    record_path = path / RECORD_FILE_NAME
    record_path.write_text(record.to_json(), encoding="utf-8")
    return record_path


# =============================================================================
# Variables
# =============================================================================


def host_os() -> str:
    """
    Identifier of the host operating system, e.g. ``linux`` or ``macos``.
    """
    system = platform.system().lower()
    return {"darwin": "macos"}.get(system, system)


def builtin_variables(dest_dir: Path) -> dict[str, str]:
    """
    Variables injected into every load.

    ``_PNAME`` is the destination's base name, ``_PDIR`` its absolute path
    and ``_OS`` the host operating system.
    """
    dest_dir = dest_dir.resolve()
    return {
        VAR_PROJECT_NAME: dest_dir.name,
        VAR_PROJECT_DIR: str(dest_dir),
        VAR_OS: host_os(),
    }


def merge_variables(
    stored: Mapping[str, str],
    supplied: Mapping[str, str],
) -> dict[str, str]:
    """
    Merge supplied variables into the variables stored in a record.

    A value stored in the record is never overwritten by a supplied value
    of the same name; supplied values only fill in names the record lacks.

    Examples
    --------
    >>> merge_variables({"license": "MIT"}, {"license": "GPL", "author": "Jo"})
    {'license': 'MIT', 'author': 'Jo'}
    """
    merged = dict(stored)
    for name, value in supplied.items():
        merged.setdefault(name, value)
    return merged


# =============================================================================
# File Action Resolution
# =============================================================================


def resolve_file_options(record: TemplateRecord, relative_path: str) -> FileOptions:
    """
    Decide how a template file is handled.

    Parameters
    ----------
    record : TemplateRecord
        The template's metadata.

    relative_path : str
        Path of the file relative to ``template/``, with forward slashes.

    Returns
    -------
    FileOptions
        The record's entry for the path, or a plain Copy when there is none.
    """
    options = record.options_for(relative_path)
    if options is None:
        return FileOptions(action=FileAction.COPY)
    return options


def check_filename(filename: str, relative_path: str) -> None:
    """
    Reject a rendered rename that would leave the file's directory.

    Raises
    ------
    InvalidRenameError
        If ``filename`` is empty, ``.`` or ``..``, or contains a path
        separator.
    """
    separators = {"/", os.sep}
    if os.altsep:
        separators.add(os.altsep)

    if filename in ("", ".", "..") or any(sep in filename for sep in separators):
        raise InvalidRenameError(Path(relative_path), filename)


def make_file(
    src: Path,
    dst_dir: Path,
    relative_path: str,
    record: TemplateRecord,
    variables: Mapping[str, str],
) -> Path | None:
    """
    Materialize one template file inside ``dst_dir``.

    Returns
    -------
    Path | None
        The file written, or None if the file is ignored.

    Raises
    ------
    LexerError
        If the file (or its rename template) contains a malformed block.
        The error's ``path`` is set to ``relative_path``.
    InvalidRenameError
        If the rename renders to something other than a plain filename.
    """
    options = resolve_file_options(record, relative_path)
    if options.action == FileAction.IGNORE:
        return None

    try:
        filename = src.name
        if options.name is not None:
            filename = render_string(options.name, variables)
            check_filename(filename, relative_path)
        dst = dst_dir / filename

        if options.action == FileAction.COPY:
            shutil.copy(src, dst)
        else:
            render_file(src, dst, variables)
            shutil.copymode(src, dst)
    except LexerError as e:
        e.path = Path(relative_path)
        raise

    return dst


def make_tree(
    src_dir: Path,
    dst_dir: Path,
    root: Path,
    record: TemplateRecord,
    variables: Mapping[str, str],
    result: LoadResult,
    visited: set[Path] | None = None,
    verbose: bool = False,
) -> None:
    """
    Recursively materialize ``src_dir`` into ``dst_dir``.

    Directories are created as needed (existing ones are fine) and files
    go through :func:`make_file`. Each real directory is walked at most
    once, so symlink cycles in a template terminate.
    """
    if visited is None:
        visited = set()

    real_dir = src_dir.resolve()
    if real_dir in visited:
        return
    visited.add(real_dir)

    for entry in sorted(src_dir.iterdir()):
        relative_path = entry.relative_to(root).as_posix()

        if entry.is_dir():
            target = dst_dir / entry.name
            target.mkdir(exist_ok=True)
            make_tree(entry, target, root, record, variables, result, visited, verbose)
            continue

        created = make_file(entry, dst_dir, relative_path, record, variables)
        if created is None:
            result.files_ignored.append(Path(relative_path))
            if verbose:
                console.print(f"  [dim]Ignored {relative_path}[/]")
        else:
            result.files_created.append(created)
            if verbose:
                console.print(f"  Created {created.relative_to(result.project_path)}")


# =============================================================================
# Operations
# =============================================================================


def create_template(
    storage_root: Path,
    source_dir: Path,
    name: str,
    *,
    confirm: Confirm | None = None,
    verbose: bool = False,
) -> CreateResult:
    """
    Store ``source_dir`` as a new template called ``name``.

    The source tree is copied as-is; nothing is rendered. The new template
    gets an empty record that can then be edited by hand.

    Parameters
    ----------
    storage_root : Path
        Directory holding all stored templates.

    source_dir : Path
        Directory to store.

    name : str
        Template name.

    confirm : Callable[[str], bool] | None
        Asked before replacing an existing template of the same name. When
        None, an existing template is an error.

    verbose : bool, default=False
        If True, display progress information to the console.

    Raises
    ------
    TemplateExistsError
        If the template exists and no ``confirm`` was given.
    FileNotFoundError
        If ``source_dir`` does not exist.
    NotADirectoryError
        If ``source_dir`` is not a directory.
    """
    if not source_dir.exists():
        raise FileNotFoundError(f"Path does not exist: {source_dir}")
    if not source_dir.is_dir():
        raise NotADirectoryError(f"Path is not a directory: {source_dir}")

    path = template_dir(storage_root, name)
    result = CreateResult(template_path=path)

    if path.exists():
        if confirm is None:
            raise TemplateExistsError(name)
        if not confirm(f"Template '{name}' already exists. Replace it?"):
            result.completed = False
            return result

        shutil.rmtree(path)
        result.replaced = True
        if verbose:
            console.print(f"  Removed existing template '{name}'")

    path.mkdir(parents=True)
    shutil.copytree(source_dir, path / TEMPLATE_SUBDIR, symlinks=True)
    if verbose:
        console.print(f"  Copied {source_dir} -> {path / TEMPLATE_SUBDIR}")

    record_path = write_record(path, TemplateRecord())
    if verbose:
        console.print(f"  Created {record_path}")

    return result


def load_template(
    storage_root: Path,
    dest_dir: Path,
    name: str,
    variables: Mapping[str, str] | None = None,
    *,
    confirm: Confirm | None = None,
    hook_runner: HookRunner | None = None,
    verbose: bool = False,
) -> LoadResult:
    """
    Instantiate the template ``name`` into ``dest_dir``.

    Parameters
    ----------
    storage_root : Path
        Directory holding all stored templates.

    dest_dir : Path
        Directory to populate. Created (with parents) if needed.

    name : str
        Template name.

    variables : Mapping[str, str] | None
        Caller-supplied variables. The built-ins ``_PNAME``, ``_PDIR`` and
        ``_OS`` are added to them; a supplied value of the same name wins
        over a built-in. Values stored in the record win over both.

    confirm : Callable[[str], bool] | None
        Asked before writing into a non-empty ``dest_dir``. When None, no
        question is asked and loading proceeds.

    hook_runner : HookRunner | None
        Executes the pre/post hooks. Defaults to :class:`ShellHookRunner`.

    verbose : bool, default=False
        If True, display progress information to the console.

    Returns
    -------
    LoadResult
        What was written, or ``completed=False`` if the user declined.

    Raises
    ------
    TemplateNotFoundError
        If no template of that name is stored.
    RecordDecodeError
        If the template's makeit.json is missing or invalid.
    PreHookError, PostHookError
        If a hook fails.
    LexerError
        If a made file, rename template or hook has a malformed block.
    InvalidRenameError
        If a rename would place a file outside its directory.
    """
    path = template_dir(storage_root, name)
    if not path.is_dir():
        raise TemplateNotFoundError(name)

    result = LoadResult(project_path=dest_dir)

    if dest_dir.is_dir() and any(dest_dir.iterdir()):
        if confirm is not None and not confirm(
            f"Directory '{dest_dir}' is not empty. Continue anyway?"
        ):
            result.completed = False
            return result

    record = read_record(path)

    supplied = {**builtin_variables(dest_dir), **(variables or {})}
    result.variables = merge_variables(record.vars, supplied)

    dest_dir.mkdir(parents=True, exist_ok=True)
    runner = hook_runner or ShellHookRunner()

    if record.pre is not None:
        if verbose:
            console.print("[bold]Running pre hook...[/]")
        runner.run(record.pre, HookStage.PRE, dest_dir, result.variables)

    if verbose:
        console.print(f"[bold]Making files from '{name}'...[/]")
    source_root = path / TEMPLATE_SUBDIR
    make_tree(
        source_root,
        dest_dir,
        source_root,
        record,
        result.variables,
        result,
        verbose=verbose,
    )

    if record.post is not None:
        if verbose:
            console.print("[bold]Running post hook...[/]")
        runner.run(record.post, HookStage.POST, dest_dir, result.variables)

    return result


def remove_template(storage_root: Path, name: str) -> Path:
    """
    Delete the stored template ``name``.

    Returns
    -------
    Path
        Directory that was removed.

    Raises
    ------
    TemplateNotFoundError
        If no template of that name is stored.
    """
    path = template_dir(storage_root, name)
    if not path.is_dir():
        raise TemplateNotFoundError(name)

    shutil.rmtree(path)
    return path


def list_templates(storage_root: Path) -> list[str]:
    """
    Names of all stored templates, sorted.

    Every subdirectory of the storage root counts; records are not read.
    A storage root that does not exist yet holds no templates.
    """
    if not storage_root.is_dir():
        return []
    return sorted(entry.name for entry in storage_root.iterdir() if entry.is_dir())
