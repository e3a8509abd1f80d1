"""Turn raw matches into classified findings.

A rule's declared severity always wins. Rules without one (and upstream
reports that only carry a rule id) fall back to keyword sniffing over the
rule's name and description.
"""

from __future__ import annotations

from leakscope.scanner.base import (
    UNKNOWN,
    Finding,
    FindingSeverity,
    Provenance,
    new_id,
    utc_now,
)
from leakscope.scanner.line_scanner import RawMatch
from leakscope.scanner.patterns import redact_secret

HIGH_KEYWORDS = (
    "credential",
    "key",
    "token",
    "password",
    "passwd",
    "private",
    "certificate",
    "oauth",
)

MEDIUM_KEYWORDS = (
    "connection",
    "database",
    "config",
    "environment",
    "email",
)

# Labels used by common scanners' own severity fields
SEVERITY_LABELS: dict[str, FindingSeverity] = {
    "critical": FindingSeverity.HIGH,
    "high": FindingSeverity.HIGH,
    "error": FindingSeverity.HIGH,
    "medium": FindingSeverity.MEDIUM,
    "moderate": FindingSeverity.MEDIUM,
    "warning": FindingSeverity.MEDIUM,
    "low": FindingSeverity.LOW,
    "minor": FindingSeverity.LOW,
    "info": FindingSeverity.INFO,
    "informational": FindingSeverity.INFO,
    "note": FindingSeverity.INFO,
}


def severity_from_keywords(text: str) -> FindingSeverity:
    """Derive a severity from free text such as a rule id or description.

    Never returns INFO: informational findings must be declared explicitly.
    """
    lowered = text.lower()
    if any(keyword in lowered for keyword in HIGH_KEYWORDS):
        return FindingSeverity.HIGH
    if any(keyword in lowered for keyword in MEDIUM_KEYWORDS):
        return FindingSeverity.MEDIUM
    return FindingSeverity.LOW


def severity_from_label(label: str | None) -> FindingSeverity | None:
    """Map a scanner-supplied severity label onto a band.

    Returns:
        The band, or None if the label is empty or unrecognized.
    """
    if not label:
        return None
    return SEVERITY_LABELS.get(label.strip().lower())


def secret_type_for(profile: str, rule_name: str) -> str:
    return f"{profile}: {rule_name}"


def classify(
    match: RawMatch,
    scan_id: str,
    profile: str,
    provenance: Provenance | None = None,
) -> Finding:
    """Build a finding from one raw match.

    Args:
        match: Output of the line scanner.
        scan_id: Identifier of the scan the finding belongs to.
        profile: Name of the profile whose rule matched.
        provenance: Commit metadata for the file, if known.

    Returns:
        A finding with a fresh id.
    """
    rule = match.rule
    severity = rule.severity
    if severity is None:
        severity = severity_from_keywords(f"{rule.name} {rule.description}")

    commit = author = UNKNOWN
    date = utc_now()
    if provenance is not None:
        commit = provenance.commit or UNKNOWN
        author = provenance.author or UNKNOWN
        date = provenance.date or date

    return Finding(
        id=new_id(),
        scan_id=scan_id,
        file_path=match.file_path,
        line_number=match.line_number,
        column=match.column,
        secret_type=secret_type_for(profile, rule.name),
        rule_name=rule.name,
        profile=profile,
        severity=severity,
        description=rule.description,
        code_snippet=match.context,
        secret_preview=redact_secret(match.matched_text),
        commit=commit,
        author=author,
        date=date,
    )
