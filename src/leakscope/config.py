"""Configuration loading for leakscope.

Settings come from three places, lowest precedence first:
- ``LEAKSCOPE_*`` environment variables
- the ``[scan]`` table of ``leakscope.toml`` (or ``[tool.leakscope.scan]``
  in ``pyproject.toml``)
- command-line options, applied by the CLI on top of the result

Example leakscope.toml:
    [scan]
    profiles = ["custom", "gitleaks"]
    max_workers = 8
    fail_on_severity = "medium"
    git_metadata = true
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from leakscope.scanner.base import FindingSeverity
from leakscope.sources import IGNORE_DIRS, MAX_FILE_SIZE

CONFIG_FILENAME = "leakscope.toml"


class ConfigNotFoundError(Exception):
    """Configuration file not found."""

    pass


class ScanSettings(BaseSettings):
    """Scan configuration.

    All values can be overridden via environment variables. Prefix: ``LEAKSCOPE_``.
    """

    profiles: list[str] = Field(default_factory=lambda: ["custom"], min_length=1)
    max_workers: int = Field(default=4, ge=1)
    max_file_size: int = Field(default=MAX_FILE_SIZE, ge=1)
    context_chars: int = Field(default=10, ge=0)
    fail_on_severity: FindingSeverity = FindingSeverity.HIGH
    ignore_dirs: list[str] = Field(default_factory=lambda: sorted(IGNORE_DIRS))
    git_metadata: bool = False

    model_config = SettingsConfigDict(env_prefix="LEAKSCOPE_", extra="ignore")

    @field_validator("fail_on_severity", mode="before")
    @classmethod
    def normalize_severity(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("profiles", mode="before")
    @classmethod
    def split_profiles(cls, value: Any) -> Any:
        # Allow a single profile name in TOML: profiles = "gitleaks"
        if isinstance(value, str):
            return [value]
        return value

    @classmethod
    def from_file(cls, path: Path | None = None) -> ScanSettings:
        """Build settings from environment plus an optional config file.

        Args:
            path: Explicit config file. Auto-discovered if None.

        Returns:
            ScanSettings with file values taking precedence over environment.

        Raises:
            ConfigNotFoundError: If an explicit path does not exist.
            tomllib.TOMLDecodeError: If the file is not valid TOML.
            pydantic.ValidationError: If a value is invalid.
        """
        config = load_config(path)
        return cls(**config.get("scan", {}))


def find_config(start_dir: Path | None = None) -> Path | None:
    """Find a config file by walking up from ``start_dir``.

    ``leakscope.toml`` wins over ``pyproject.toml`` in the same directory; a
    ``pyproject.toml`` only counts if it has a ``[tool.leakscope]`` table.

    Args:
        start_dir: Directory to start from. Defaults to the current directory.

    Returns:
        Path to the config file, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for directory in [current, *current.parents]:
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate

        pyproject = directory / "pyproject.toml"
        if pyproject.is_file():
            try:
                with pyproject.open("rb") as f:
                    data = tomllib.load(f)
            except (OSError, tomllib.TOMLDecodeError):
                continue
            if "leakscope" in data.get("tool", {}):
                return pyproject

    return None


def load_config(path: Path | None = None) -> dict[str, Any]:
    """Load the raw configuration mapping.

    Args:
        path: Explicit config file. Auto-discovered if None.

    Returns:
        The config mapping (``{}`` when nothing was found by discovery).

    Raises:
        ConfigNotFoundError: If an explicit path does not exist.
        tomllib.TOMLDecodeError: If the file is not valid TOML.
    """
    if path is None:
        path = find_config()
        if path is None:
            return {}
    elif not path.is_file():
        raise ConfigNotFoundError(f"Config file not found: {path}")

    with path.open("rb") as f:
        data = tomllib.load(f)

    if path.name == "pyproject.toml":
        return data.get("tool", {}).get("leakscope", {})
    return data
