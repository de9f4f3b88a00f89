"""
makeit.models - Pydantic Models for Templates and Configuration
===============================================================

This module defines the data models makeit persists. We use Pydantic so
that hand-edited metadata is validated on load and reported with clear
error messages instead of failing somewhere deep in the pipeline.

Architecture Notes
------------------
The models are organized in a hierarchy:

    TemplateRecord (stored as <template>/makeit.json)
    ├── pre: str | None            command run before the files are made
    ├── post: str | None           command run after the files are made
    ├── file_options: dict[str, FileOptions]
    │   ├── action: FileAction     Copy | Make | Ignore
    │   └── name: str | None       rename template
    └── vars: dict[str, str]       default variables

    AppConfig (stored as <app dir>/config.toml)
    └── template_dir: Path         storage root holding all templates

Usage Example
-------------
>>> record = TemplateRecord.model_validate_json(
...     '{"file_options": {"README.md": {}}, "vars": {"license": "MIT"}}'
... )
>>> record.file_options["README.md"].action
<FileAction.MAKE: 'Make'>
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

import typer
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


# Name of the metadata file stored next to each template's tree
RECORD_FILE_NAME = "makeit.json"

# Directory inside a stored template that holds the literal source tree
TEMPLATE_SUBDIR = "template"

APP_NAME = "makeit"
CONFIG_FILE_NAME = "config.toml"


# =============================================================================
# Enumerations
# =============================================================================

class FileAction(str, Enum):
    """
    What to do with a single template file when a template is loaded.

    Attributes
    ----------
    COPY : str
        Copy the file byte-for-byte without looking at its content.

    MAKE : str
        Render the file through the expression language.

    IGNORE : str
        Leave the file out of the generated project.

    Note
    ----
    Files without an entry in the record are copied, while entries that do
    not name an action are made. Only files that need substitution have to
    be listed.
    """

    COPY = "Copy"
    MAKE = "Make"
    IGNORE = "Ignore"


# =============================================================================
# Template Metadata
# =============================================================================

class FileOptions(BaseModel):
    """
    Options for one template-relative path.

    Attributes
    ----------
    action : FileAction
        How the file is materialized. Defaults to MAKE.

    name : str | None
        Expression-language text rendered to produce the destination
        filename. The file keeps its destination directory.

    Examples
    --------
    >>> FileOptions(name='{{ _PNAME }}.py').action
    <FileAction.MAKE: 'Make'>
    """

    action: FileAction = Field(
        default=FileAction.MAKE,
        description="How the file is materialized",
    )
    name: str | None = Field(
        default=None,
        description="Rename template for the destination filename",
    )


class TemplateRecord(BaseModel):
    """
    Metadata persisted alongside every stored template.

    A record is written empty by ``create`` and only changes when the user
    edits ``makeit.json`` by hand.

    Attributes
    ----------
    pre : str | None
        Hook command template run before files are made.

    post : str | None
        Hook command template run after files are made.

    file_options : dict[str, FileOptions]
        Per-file options keyed by path relative to the template's
        ``template/`` directory, always using forward slashes. Older
        records spell this field ``files_options``; both are accepted.

    vars : dict[str, str]
        Default variables. These take precedence over variables supplied
        when the template is loaded.
    """

    model_config = ConfigDict(populate_by_name=True)

    pre: str | None = Field(
        default=None,
        description="Command run before files are made",
    )
    post: str | None = Field(
        default=None,
        description="Command run after files are made",
    )
    file_options: dict[str, FileOptions] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("file_options", "files_options"),
        description="Per-file options keyed by template-relative path",
    )
    vars: dict[str, str] = Field(
        default_factory=dict,
        description="Default variables",
    )

    @field_validator("file_options")
    @classmethod
    def validate_relative_paths(
        cls, v: dict[str, FileOptions]
    ) -> dict[str, FileOptions]:
        """
        Reject absolute paths.

        Keys are matched as exact strings against template-relative paths,
        so an absolute key could never match and is almost certainly a
        mistake in a hand-edited record.
        """
        for path in v:
            if path.startswith("/") or Path(path).is_absolute():
                msg = f"File option paths must be relative to the template: {path}"
                raise ValueError(msg)
        return v

    def options_for(self, relative_path: str) -> FileOptions | None:
        """Look up the options of a template-relative, forward-slash path."""
        return self.file_options.get(relative_path)

    def to_json(self) -> str:
        """Serialize the record for writing to ``makeit.json``."""
        return self.model_dump_json(indent=4, exclude_none=True) + "\n"


# =============================================================================
# Application Configuration
# =============================================================================

def default_config_dir() -> Path:
    """Per-user configuration directory for makeit."""
    return Path(typer.get_app_dir(APP_NAME))


class AppConfig(BaseModel):
    """
    User configuration.

    Attributes
    ----------
    template_dir : Path
        Storage root. Every subdirectory is one stored template. The
        ``templateDir`` spelling is accepted as well.
    """

    model_config = ConfigDict(populate_by_name=True)

    template_dir: Path = Field(
        default_factory=lambda: default_config_dir() / "templates",
        validation_alias=AliasChoices("template_dir", "templateDir"),
        description="Directory holding stored templates",
    )

    @field_validator("template_dir")
    @classmethod
    def expand_user(cls, v: Path) -> Path:
        """Allow ``~`` in the configured path."""
        return v.expanduser()

    @classmethod
    def from_toml(cls, path: Path) -> AppConfig:
        """
        Load configuration from a TOML file.

        Parameters
        ----------
        path : Path
            Path to the TOML configuration file.

        Returns
        -------
        AppConfig
            Validated configuration object.

        Raises
        ------
        FileNotFoundError
            If the config file doesn't exist.
        ValidationError
            If the config file has invalid values.
        """
        import tomli

        with open(path, "rb") as f:
            data = tomli.load(f)

        return cls(**data)

    @classmethod
    def load(cls, path: Path | None = None) -> AppConfig:
        """
        Load the user configuration, falling back to defaults.

        A missing file is not an error; makeit then keeps its templates in
        ``<config dir>/templates``. A file that exists but cannot be parsed
        is reported.
        """
        path = path or default_config_dir() / CONFIG_FILE_NAME
        if not path.exists():
            return cls()
        return cls.from_toml(path)
