"""File collection for scans.

Builds the FileRecord list a scan runs over, either by walking local paths
or by validating an uploaded file payload. Collection problems never raise:
an unreadable file becomes a record with ``read_error`` set, which the
engine reports as a warning.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Sequence
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from leakscope.scanner.base import FileKind, FileReadError, FileRecord
from leakscope.utils.git import get_last_commit

logger = logging.getLogger(__name__)

# Maximum file size to scan (1 MB)
MAX_FILE_SIZE = 1_048_576

IGNORE_DIRS: frozenset[str] = frozenset(
    {
        ".git",
        "node_modules",
        ".venv",
        "venv",
        "dist",
        "build",
        "__pycache__",
        ".pytest_cache",
        ".mypy_cache",
        ".tox",
    }
)

# Listed but never read
BINARY_EXTENSIONS: frozenset[str] = frozenset(
    {
        ".png", ".jpg", ".jpeg", ".gif", ".svg", ".ico", ".pdf",
        ".zip", ".gz", ".tar", ".mp3", ".mp4", ".mov", ".avi",
        ".exe", ".dll", ".so", ".dylib", ".jar", ".war", ".ear",
        ".class", ".psd", ".ttf", ".woff", ".woff2", ".eot",
    }
)


def is_binary_path(path: str) -> bool:
    """Check if a path has a known binary extension."""
    return Path(path).suffix.lower() in BINARY_EXTENSIONS


class UploadedFile(BaseModel):
    """One entry of an uploaded file list."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = Field(min_length=1)
    content: str = ""
    size: int | None = Field(default=None, ge=0)
    last_modified: datetime | None = Field(default=None, alias="lastModified")

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        """Use forward slashes and drop leading ``./`` and ``/``."""
        normalized = value.replace("\\", "/").lstrip("/")
        while normalized.startswith("./"):
            normalized = normalized[2:]
        if not normalized:
            raise ValueError("file name must not be empty")
        return normalized


class ScanRequest(BaseModel):
    """A request to scan one repository with one or more profiles."""

    model_config = ConfigDict(populate_by_name=True)

    repository_identifier: str = Field(alias="repositoryIdentifier", min_length=1)
    scanner_profiles: list[str] = Field(alias="scannerProfiles", min_length=1)

    @field_validator("scanner_profiles")
    @classmethod
    def drop_duplicates(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(value))


def records_from_upload(payload: Iterable[dict[str, Any] | UploadedFile]) -> list[FileRecord]:
    """Build file records from an uploaded file list.

    Args:
        payload: Entries shaped like ``{"name", "content", "size", "lastModified"}``.

    Returns:
        One record per entry. Binary entries keep their size but no content.

    Raises:
        pydantic.ValidationError: If an entry is malformed.
        ValueError: If two entries share a name.
    """
    records: list[FileRecord] = []
    seen: set[str] = set()
    for entry in payload:
        upload = entry if isinstance(entry, UploadedFile) else UploadedFile.model_validate(entry)
        if upload.name in seen:
            raise ValueError(f"Duplicate file name in upload: {upload.name}")
        seen.add(upload.name)

        size = upload.size if upload.size is not None else len(upload.content.encode("utf-8"))
        content = "" if is_binary_path(upload.name) else upload.content
        records.append(FileRecord(path=upload.name, content=content, size_bytes=size))
    return records


def read_text(path: Path) -> str:
    """Read a file as UTF-8 text.

    Raises:
        FileReadError: If the file cannot be opened or is not valid UTF-8.
    """
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise FileReadError(str(path), "not valid UTF-8 text") from e
    except OSError as e:
        raise FileReadError(str(path), e.strerror or str(e)) from e


def _relative_name(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()


def _file_record(
    path: Path, name: str, max_file_size: int, git_metadata: bool
) -> FileRecord:
    try:
        size = path.stat().st_size
    except OSError as e:
        logger.warning("Cannot stat %s: %s", path, e)
        return FileRecord(path=name, read_error=e.strerror or str(e))

    provenance = get_last_commit(path) if git_metadata else None

    if is_binary_path(name):
        return FileRecord(path=name, size_bytes=size, provenance=provenance)
    if size > max_file_size:
        logger.debug("Skipping %s (%d bytes > %d limit)", name, size, max_file_size)
        return FileRecord(path=name, size_bytes=size, provenance=provenance)

    try:
        content = read_text(path)
    except FileReadError as e:
        logger.warning("Cannot read %s: %s", name, e.reason)
        return FileRecord(
            path=name, size_bytes=size, read_error=e.reason, provenance=provenance
        )
    return FileRecord(path=name, content=content, size_bytes=size, provenance=provenance)


def collect_local_files(
    paths: Sequence[Path],
    root: Path | None = None,
    max_file_size: int = MAX_FILE_SIZE,
    ignore_dirs: Iterable[str] = IGNORE_DIRS,
    git_metadata: bool = False,
) -> list[FileRecord]:
    """Recursively collect files and directories under the given paths.

    Args:
        paths: Files or directories to collect.
        root: Base for the relative record paths. Defaults to the directory
            itself when a single directory is given, else the current directory.
        max_file_size: Files larger than this are listed without content.
        ignore_dirs: Directory names never descended into.
        git_metadata: Attach last-commit provenance to each file record.

    Returns:
        Records sorted by path, each path listed once.
    """
    ignored = set(ignore_dirs)
    if root is None:
        if len(paths) == 1 and paths[0].is_dir():
            root = paths[0]
        else:
            root = Path.cwd()
    root = root.resolve()

    records: dict[str, FileRecord] = {}

    for target in paths:
        target = target.resolve()
        if target.is_file():
            name = _relative_name(target, root)
            records.setdefault(name, _file_record(target, name, max_file_size, git_metadata))
            continue
        if not target.is_dir():
            logger.warning("Path not found: %s", target)
            continue

        for dirpath, dirnames, filenames in os.walk(target):
            # Prune in place so os.walk does not descend
            dirnames[:] = sorted(d for d in dirnames if d not in ignored)
            current = Path(dirpath)

            for dirname in dirnames:
                name = _relative_name(current / dirname, root)
                records.setdefault(name, FileRecord(path=name, kind=FileKind.DIRECTORY))

            for filename in sorted(filenames):
                file_path = current / filename
                name = _relative_name(file_path, root)
                if name not in records:
                    records[name] = _file_record(file_path, name, max_file_size, git_metadata)

    return [records[name] for name in sorted(records)]
