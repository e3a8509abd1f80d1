"""Summary counts and filtering over finding lists."""

from __future__ import annotations

from collections.abc import Iterable

from leakscope.scanner.base import Finding, FindingSeverity, ScanSummary


def summarize(findings: Iterable[Finding]) -> ScanSummary:
    """Count findings per severity band in a single pass.

    The result always satisfies ``total == high + medium + low + info``.
    """
    counts = dict.fromkeys(FindingSeverity, 0)
    for finding in findings:
        counts[finding.severity] += 1

    return ScanSummary(
        total_secrets=sum(counts.values()),
        high_severity=counts[FindingSeverity.HIGH],
        medium_severity=counts[FindingSeverity.MEDIUM],
        low_severity=counts[FindingSeverity.LOW],
        info_severity=counts[FindingSeverity.INFO],
    )


def filter_findings(
    findings: Iterable[Finding],
    severity: FindingSeverity | None = None,
    profile: str | None = None,
    secret_type: str | None = None,
    file_path: str | None = None,
) -> list[Finding]:
    """Select findings matching every given criterion.

    Args:
        findings: Findings to filter; order is preserved.
        severity: Keep only this exact band.
        profile: Keep only findings produced by this profile.
        secret_type: Case-insensitive substring of the secret type.
        file_path: Case-insensitive substring of the file path.

    Returns:
        A new list. Call ``summarize`` on it for counts of the filtered view.
    """
    type_needle = secret_type.lower() if secret_type else None
    path_needle = file_path.lower() if file_path else None

    selected = []
    for finding in findings:
        if severity is not None and finding.severity != severity:
            continue
        if profile is not None and finding.profile != profile:
            continue
        if type_needle and type_needle not in finding.secret_type.lower():
            continue
        if path_needle and path_needle not in finding.file_path.lower():
            continue
        selected.append(finding)
    return selected
