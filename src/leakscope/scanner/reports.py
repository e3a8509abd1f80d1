"""Ingestion of reports produced by external secret scanners.

Supports:
- gitleaks ``--report-format json`` (a JSON array of findings)
- trufflehog ``--json`` (one JSON object per line)

These reports carry a rule id but no severity, so severities come from the
keyword classifier. Entries that cannot be parsed are logged and skipped.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any

from leakscope.scanner.base import UNKNOWN, Finding, FindingSeverity, new_id, utc_now
from leakscope.scanner.classifier import (
    secret_type_for,
    severity_from_keywords,
    severity_from_label,
)
from leakscope.scanner.patterns import redact_secret

logger = logging.getLogger(__name__)

GITLEAKS_PROFILE = "gitleaks"
TRUFFLEHOG_PROFILE = "trufflehog"

_PARSE_ERRORS = (KeyError, TypeError, ValueError, AttributeError)


class ReportFormatError(ValueError):
    """The report as a whole is not in the expected format."""

    pass


def _parse_date(value: Any) -> datetime:
    """Parse the timestamp formats both scanners emit, defaulting to now."""
    if not value:
        return utc_now()
    text = str(value).strip()
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    try:
        # trufflehog git metadata: "2022-06-16 10:17:40 -0700"
        return datetime.strptime(text, "%Y-%m-%d %H:%M:%S %z")
    except ValueError:
        return utc_now()


def _parse_gitleaks_entry(entry: dict[str, Any], scan_id: str) -> Finding | None:
    """Convert one gitleaks finding into a Finding, or None if malformed."""
    try:
        rule_id = str(entry.get("RuleID") or UNKNOWN)
        description = str(entry.get("Description") or rule_id)
        secret = str(entry.get("Secret") or entry.get("Match") or "")
        severity = severity_from_keywords(f"{rule_id} {description}")

        return Finding(
            id=new_id(),
            scan_id=scan_id,
            file_path=str(entry["File"]),
            line_number=max(1, int(entry.get("StartLine") or 1)),
            column=max(1, int(entry.get("StartColumn") or 1)),
            secret_type=secret_type_for(GITLEAKS_PROFILE, description),
            rule_name=rule_id,
            profile=GITLEAKS_PROFILE,
            severity=severity,
            description=description,
            code_snippet=str(entry.get("Match") or "").strip(),
            secret_preview=redact_secret(secret) if secret else "",
            commit=entry.get("Commit") or UNKNOWN,
            author=entry.get("Author") or UNKNOWN,
            date=_parse_date(entry.get("Date")),
        )
    except _PARSE_ERRORS as e:
        logger.warning("Skipping malformed gitleaks entry: %s", e)
        return None


def parse_gitleaks_report(data: str | list[Any], scan_id: str) -> list[Finding]:
    """Parse a gitleaks JSON report.

    Args:
        data: Raw JSON text or an already decoded list.
        scan_id: Identifier stamped on every finding.

    Returns:
        Findings in report order.

    Raises:
        ReportFormatError: If the report is not a JSON array.
    """
    if isinstance(data, str):
        if not data.strip():
            return []
        try:
            data = json.loads(data)
        except json.JSONDecodeError as e:
            raise ReportFormatError(f"Invalid gitleaks report: {e}") from e

    if not isinstance(data, list):
        raise ReportFormatError("gitleaks report must be a JSON array")

    findings = []
    for entry in data:
        if not isinstance(entry, dict):
            logger.warning("Skipping non-object gitleaks entry")
            continue
        finding = _parse_gitleaks_entry(entry, scan_id)
        if finding:
            findings.append(finding)
    return findings


def _trufflehog_severity(entry: dict[str, Any], detector: str) -> FindingSeverity:
    label = severity_from_label(entry.get("Severity"))
    if label is not None:
        return label
    if entry.get("Verified"):
        return FindingSeverity.HIGH
    return severity_from_keywords(f"{detector} {entry.get('DetectorDescription', '')}")


def _parse_trufflehog_entry(entry: dict[str, Any], scan_id: str) -> Finding | None:
    """Convert one trufflehog result into a Finding, or None if malformed."""
    try:
        data = entry["SourceMetadata"]["Data"]
        git = data.get("Git") or {}
        filesystem = data.get("Filesystem") or {}
        source = git or filesystem
        if not source.get("file"):
            raise KeyError("file")

        detector = str(entry.get("DetectorName") or UNKNOWN)
        raw = str(entry.get("Raw") or "")
        description = f"{detector} secret detected"
        if entry.get("Verified"):
            description += " (verified)"

        return Finding(
            id=new_id(),
            scan_id=scan_id,
            file_path=str(source["file"]),
            line_number=max(1, int(source.get("line") or 1)),
            secret_type=secret_type_for(TRUFFLEHOG_PROFILE, detector),
            rule_name=detector,
            profile=TRUFFLEHOG_PROFILE,
            severity=_trufflehog_severity(entry, detector),
            description=description,
            code_snippet=redact_secret(raw) if raw else "",
            secret_preview=redact_secret(raw) if raw else "",
            commit=git.get("commit") or UNKNOWN,
            author=git.get("email") or UNKNOWN,
            date=_parse_date(git.get("timestamp")),
        )
    except _PARSE_ERRORS as e:
        logger.warning("Skipping malformed trufflehog entry: %s", e)
        return None


def parse_trufflehog_report(text: str, scan_id: str) -> list[Finding]:
    """Parse trufflehog JSON-lines output.

    Blank lines and lines that are not JSON objects (trufflehog mixes log
    lines into stdout in some modes) are skipped.

    Args:
        text: Raw report text.
        scan_id: Identifier stamped on every finding.

    Returns:
        Findings in report order.
    """
    findings = []
    for line_number, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            entry = json.loads(line)
        except json.JSONDecodeError:
            logger.debug("Ignoring non-JSON trufflehog output on line %d", line_number)
            continue
        if not isinstance(entry, dict):
            continue
        finding = _parse_trufflehog_entry(entry, scan_id)
        if finding:
            findings.append(finding)
    return findings
