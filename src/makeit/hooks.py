"""
makeit.hooks - Pre/Post Hook Execution
======================================

Templates may declare a ``pre`` and a ``post`` command in their record.
Before running, a hook command is rendered through the expression language
(so it can use variables like any template file), split into shell words
and executed directly, without a shell, inside the destination directory.

The template pipeline only depends on the :class:`HookRunner` protocol, so
tests can substitute a runner that records calls instead of spawning
processes.

Usage
-----
>>> runner = ShellHookRunner()
>>> runner.run("git init", HookStage.POST, Path("/tmp/demo"), {"_PNAME": "demo"})
"""

from __future__ import annotations

import os
import shlex
import subprocess
from enum import Enum
from pathlib import Path
from typing import Protocol

from makeit.errors import HookError, PostHookError, PreHookError
from makeit.parse.ast import Variables
from makeit.parse.parser import render_string


class HookStage(str, Enum):
    """When a hook runs relative to materializing the files."""

    PRE = "pre"
    POST = "post"

    @property
    def error_type(self) -> type[HookError]:
        """Exception raised when a hook of this stage fails."""
        return PreHookError if self is HookStage.PRE else PostHookError


class HookRunner(Protocol):
    """Anything that can execute a hook command template."""

    def run(
        self,
        command: str,
        stage: HookStage,
        cwd: Path,
        variables: Variables,
    ) -> None:
        ...


def build_hook_env(variables: Variables) -> dict[str, str]:
    """Current process environment extended with the template variables."""
    return {**os.environ, **variables}


class ShellHookRunner:
    """
    Runs hooks as child processes.

    The child inherits stdin and stdout so interactive hooks work; stderr
    is captured so it can be reported if the hook fails. There is no
    timeout: a hook that never exits blocks makeit.
    """

    def run(
        self,
        command: str,
        stage: HookStage,
        cwd: Path,
        variables: Variables,
    ) -> None:
        """
        Render, split and execute a hook command.

        Parameters
        ----------
        command : str
            Hook command template from the record.

        stage : HookStage
            Which hook this is; selects the exception type on failure.

        cwd : Path
            Destination directory the hook runs in.

        variables : Mapping[str, str]
            Merged variables, used both for rendering and as extra
            environment variables.

        Raises
        ------
        PreHookError, PostHookError
            If the process cannot be spawned or exits non-zero.
        LexerError
            If the command template is malformed.
        """
        rendered = render_string(command, variables)

        try:
            words = shlex.split(rendered)
        except ValueError as e:
            # Unbalanced quotes in the rendered command
            raise stage.error_type(rendered, str(e)) from e

        if not words:
            return

        try:
            result = subprocess.run(
                words,
                cwd=cwd,
                env=build_hook_env(variables),
                stderr=subprocess.PIPE,
                text=True,
                check=False,
            )
        except OSError as e:
            raise stage.error_type(rendered, str(e)) from e

        if result.returncode != 0:
            raise stage.error_type(rendered, result.stderr or "", result.returncode)
