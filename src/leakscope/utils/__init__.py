"""Utility modules for leakscope."""

from leakscope.utils.git import get_git_root, get_last_commit

__all__ = [
    "get_git_root",
    "get_last_commit",
]
