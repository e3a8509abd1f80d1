"""Git utilities for leakscope.

This module looks up version-control provenance (last commit, author and
date) so findings in a local checkout can be attributed.
"""

from __future__ import annotations

import logging
import subprocess  # nosec B404
from datetime import datetime
from pathlib import Path

from leakscope.scanner.base import Provenance

logger = logging.getLogger(__name__)

# Fields separated by NUL so author names may contain anything printable
_LOG_FORMAT = "%H%x00%an%x00%aI"


def get_git_root(path: Path) -> Path | None:
    """
    Find the top-level directory of the checkout that holds ``path``.

    Parameters:
        path: A file or directory, possibly inside a git checkout.

    Returns:
        The checkout root, or None when ``path`` is not tracked by git or git
        is unavailable.
    """
    cwd = path if path.is_dir() else path.parent
    try:
        result = subprocess.run(  # nosec B603, B607
            ["git", "rev-parse", "--show-toplevel"],
            cwd=str(cwd),
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (subprocess.TimeoutExpired, FileNotFoundError) as e:
        logger.debug("git unavailable for %s: %s", path, e)
        return None

    toplevel = result.stdout.strip()
    if result.returncode != 0 or not toplevel:
        return None
    return Path(toplevel)


def parse_log_line(output: str) -> Provenance | None:
    """Parse one ``git log`` line produced with the NUL-separated format."""
    parts = output.strip().split("\x00")
    if len(parts) != 3 or not parts[0]:
        return None
    sha, author, date_text = parts
    try:
        date = datetime.fromisoformat(date_text)
    except ValueError:
        date = None
    return Provenance(commit=sha, author=author or None, date=date)


def get_last_commit(file_path: Path) -> Provenance | None:
    """
    Get the most recent commit that touched a file.

    Parameters:
        file_path: Path to the file.

    Returns:
        Provenance with commit sha, author and date, or None if the file is
        not in a git repository or has never been committed.
    """
    git_root = get_git_root(file_path)
    if not git_root:
        return None

    try:
        relative_path = file_path.resolve().relative_to(git_root.resolve())

        result = subprocess.run(  # nosec B603, B607
            ["git", "log", "-1", f"--format={_LOG_FORMAT}", "--", str(relative_path)],
            cwd=str(git_root),
            capture_output=True,
            text=True,
            timeout=10,
        )

        if result.returncode != 0:
            logger.debug("git log failed for %s: %s", file_path, result.stderr.strip())
            return None
        return parse_log_line(result.stdout)
    except (subprocess.TimeoutExpired, FileNotFoundError, ValueError):
        return None
