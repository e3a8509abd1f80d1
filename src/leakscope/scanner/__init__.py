"""Secret detection engine.

This module provides line-oriented secret detection through named profiles:
- trufflehog: high-entropy and structured credentials
- gitleaks: structured token formats
- custom: keyword heuristics

The ScanEngine runs every selected profile over every file and merges the
classified findings into one ordered batch.
"""

from leakscope.scanner.aggregate import filter_findings, summarize
from leakscope.scanner.base import (
    FileKind,
    FileRecord,
    Finding,
    FindingSeverity,
    NoScannerSelectedError,
    ScanBatch,
    ScanError,
    ScanResult,
    ScanStatus,
    ScanSummary,
    ScanWarning,
    UnknownProfileError,
)
from leakscope.scanner.engine import EngineConfig, ScanEngine
from leakscope.scanner.patterns import DetectionRule, PatternRegistry, default_registry

__all__ = [
    "DetectionRule",
    "EngineConfig",
    "FileKind",
    "FileRecord",
    "Finding",
    "FindingSeverity",
    "NoScannerSelectedError",
    "PatternRegistry",
    "ScanBatch",
    "ScanEngine",
    "ScanError",
    "ScanResult",
    "ScanStatus",
    "ScanSummary",
    "ScanWarning",
    "UnknownProfileError",
    "default_registry",
    "filter_findings",
    "summarize",
]
