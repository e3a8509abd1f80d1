"""Detect hardcoded secrets in source trees with pluggable rule profiles.

leakscope helps you:
- Scan local directories or uploaded files for leaked credentials
- Combine trufflehog-, gitleaks- and keyword-style detection profiles
- Ingest reports from external secret scanners
- Produce JSON, Markdown and terminal reports with CI exit codes
"""

__version__ = "0.1.0"

from leakscope.scanner.base import Finding, FindingSeverity, ScanResult, ScanStatus
from leakscope.service import ScanService

__all__ = [
    "Finding",
    "FindingSeverity",
    "ScanResult",
    "ScanService",
    "ScanStatus",
    "__version__",
]
