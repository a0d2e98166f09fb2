#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/panfilter/options.py
"""Runtime options and configuration file loading.

:class:`FilterOptions` controls how a filter run writes its output and how
loud it is. Options are read from the first configuration file found:

1. The path passed to :func:`load_options`
2. The file named by the ``PANFILTER_CONFIG`` environment variable
3. A search from the working directory up to the filesystem root for
   ``.panfilter.toml``, ``.panfilter.yaml``, ``.panfilter.yml``,
   ``.panfilter.json``, or a ``pyproject.toml`` with a ``[tool.panfilter]``
   table

Example ``.panfilter.toml``::

    output_schema = "v2"
    json_indent = 2
    log_level = "INFO"

"""

from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Optional

if sys.version_info >= (3, 11):
    import tomllib
    from typing import Self
else:
    import tomli as tomllib  # type: ignore[import-not-found,unused-ignore]
    from typing_extensions import Self

import yaml

from panfilter.constants import (
    CONFIG_ENV_VAR,
    CONFIG_FILENAMES,
    DEFAULT_ENSURE_ASCII,
    DEFAULT_JSON_INDENT,
    DEFAULT_LOG_LEVEL,
    DEFAULT_OUTPUT_SCHEMA,
    OutputSchema,
)
from panfilter.exceptions import MalformedInputError

logger = logging.getLogger(__name__)

_OUTPUT_SCHEMAS = ("auto", "v1", "v2")
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_PYPROJECT = "pyproject.toml"
_TOOL_SECTION = "panfilter"


@dataclass(frozen=True)
class CloneFrozenMixin:
    """Mixin adding modified copies to frozen dataclasses."""

    def create_updated(self, **kwargs: Any) -> Self:
        """Create a new instance with updated field values.

        Parameters
        ----------
        **kwargs : Any
            Field names and their new values

        Returns
        -------
        Self
            New instance with specified fields updated

        """
        return replace(self, **kwargs)


@dataclass(frozen=True)
class FilterOptions(CloneFrozenMixin):
    """Output and logging options of a filter run.

    Parameters
    ----------
    output_schema : {"auto", "v1", "v2"}, default "auto"
        Wire layout of the output; "auto" re-emits the input's layout
    json_indent : int or None, default None
        Indentation of the output JSON; None writes compact JSON
    ensure_ascii : bool, default False
        Escape non-ASCII characters in the output
    log_level : str, default "WARNING"
        Level used by :func:`panfilter.logging_utils.configure_logging`

    """

    output_schema: OutputSchema = field(
        default=DEFAULT_OUTPUT_SCHEMA,
        metadata={"help": "Wire layout of the output document", "choices": _OUTPUT_SCHEMAS},
    )
    json_indent: Optional[int] = field(
        default=DEFAULT_JSON_INDENT,
        metadata={"help": "Indent output JSON by this many spaces", "type": int},
    )
    ensure_ascii: bool = field(
        default=DEFAULT_ENSURE_ASCII,
        metadata={"help": "Escape non-ASCII characters in output JSON"},
    )
    log_level: str = field(
        default=DEFAULT_LOG_LEVEL,
        metadata={"help": "Logging level", "choices": _LOG_LEVELS},
    )

    def __post_init__(self) -> None:
        """Validate field values.

        Raises
        ------
        ValueError
            If any field value is outside its valid range.

        """
        if self.output_schema not in _OUTPUT_SCHEMAS:
            raise ValueError(f"output_schema must be one of {_OUTPUT_SCHEMAS}, got {self.output_schema!r}")
        if self.json_indent is not None and self.json_indent < 0:
            raise ValueError(f"json_indent must be non-negative, got {self.json_indent}")
        if str(self.log_level).upper() not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {_LOG_LEVELS}, got {self.log_level!r}")

    @property
    def schema(self) -> Optional[str]:
        """The schema to pass to the encoder; None keeps the input's."""
        return None if self.output_schema == "auto" else self.output_schema

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> FilterOptions:
        """Build options from a configuration mapping.

        Keys may use dashes or underscores. Unknown keys are logged and
        ignored.
        """
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in config.items():
            name = str(key).replace("-", "_")
            if name not in known:
                logger.warning(f"Ignoring unknown configuration key: {key}")
                continue
            values[name] = value
        return cls(**values)


def _load_pyproject_section(pyproject_path: Path) -> dict[str, Any]:
    """Return the ``[tool.panfilter]`` table of a pyproject file, or {}."""
    with open(pyproject_path, "rb") as f:
        data = tomllib.load(f)
    config = data.get("tool", {}).get(_TOOL_SECTION, {})
    if not isinstance(config, dict):
        raise MalformedInputError(
            f"[tool.{_TOOL_SECTION}] section in {pyproject_path} must be a table, got {type(config).__name__}"
        )
    return config


def find_config_in_parents(start_dir: Optional[Path] = None) -> Optional[Path]:
    """Find a configuration file by searching parent directories.

    Parameters
    ----------
    start_dir : Path, optional
        Starting directory for the search, defaults to the working directory

    Returns
    -------
    Path or None
        The first configuration file found

    """
    current = (start_dir or Path.cwd()).resolve()

    while True:
        for filename in CONFIG_FILENAMES:
            config_path = current / filename
            if config_path.is_file():
                return config_path

        pyproject_path = current / _PYPROJECT
        if pyproject_path.is_file():
            try:
                if _load_pyproject_section(pyproject_path):
                    return pyproject_path
            except (tomllib.TOMLDecodeError, MalformedInputError, OSError):
                logger.debug(f"Skipping unreadable {pyproject_path}")

        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def load_config_file(config_path: Path | str) -> dict[str, Any]:
    """Load a configuration mapping from a TOML, YAML, JSON or pyproject file.

    Raises
    ------
    MalformedInputError
        If the file is missing, unreadable, unparseable, or not a mapping

    """
    config_path = Path(config_path)
    if not config_path.is_file():
        raise MalformedInputError(f"Configuration file does not exist: {config_path}")

    ext = config_path.suffix.lower()
    try:
        if config_path.name.lower() == _PYPROJECT:
            return _load_pyproject_section(config_path)
        if ext == ".toml":
            with open(config_path, "rb") as f:
                config = tomllib.load(f)
        elif ext in (".yaml", ".yml"):
            with open(config_path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f) or {}
        elif ext == ".json":
            with open(config_path, "r", encoding="utf-8") as f:
                config = json.load(f)
        else:
            raise MalformedInputError(f"Unsupported config file format: {ext}. Use .json, .toml, or .yaml")
    except MalformedInputError:
        raise
    except (tomllib.TOMLDecodeError, yaml.YAMLError, json.JSONDecodeError) as e:
        raise MalformedInputError(f"Invalid configuration in {config_path}: {e}", original_error=e) from e
    except OSError as e:
        raise MalformedInputError(f"Error reading config file {config_path}: {e}", original_error=e) from e

    if not isinstance(config, dict):
        raise MalformedInputError(f"Config file {config_path} must contain a mapping, got {type(config).__name__}")
    return config


def load_options(path: Path | str | None = None, start_dir: Optional[Path] = None) -> FilterOptions:
    """Return the options of the first configuration file found.

    Defaults are returned when no file is found.

    Raises
    ------
    MalformedInputError
        If the chosen file cannot be read or holds invalid values

    """
    if path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        path = Path(env_path) if env_path else find_config_in_parents(start_dir)
    if path is None:
        return FilterOptions()

    logger.debug(f"Loading configuration from {path}")
    config = load_config_file(path)
    try:
        return FilterOptions.from_dict(config)
    except (TypeError, ValueError) as e:
        raise MalformedInputError(f"Invalid configuration in {path}: {e}", original_error=e) from e
