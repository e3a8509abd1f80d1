"""Report rendering for scan results.

Formats:
- JSON: the serialized ScanResult, for automation
- Markdown: a downloadable report with every finding and its snippet
- Text: a compact plain-text report suitable for pasting
- Rich: a colored summary and findings table for the terminal
"""

from __future__ import annotations

import json
from datetime import datetime
from urllib.parse import urlparse

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from leakscope.scanner.base import Finding, FindingSeverity, ScanResult, ScanStatus

SEVERITY_STYLES: dict[FindingSeverity, str] = {
    FindingSeverity.HIGH: "bold red",
    FindingSeverity.MEDIUM: "yellow",
    FindingSeverity.LOW: "blue",
    FindingSeverity.INFO: "dim",
}


def parse_repo_name(url: str) -> str:
    """Get a display name from a repository URL or path.

    Examples:
        >>> parse_repo_name("https://github.com/acme/widgets.git")
        'acme/widgets'
        >>> parse_repo_name("/home/dev/widgets")
        'widgets'
    """
    parsed = urlparse(url)
    if parsed.scheme and parsed.netloc:
        parts = [part for part in parsed.path.split("/") if part]
        if len(parts) >= 2:
            return f"{parts[-2]}/{parts[-1].removesuffix('.git')}"
        if len(parts) == 1:
            return parts[0].removesuffix(".git")
        return url

    last = url.rstrip("/").split("/")[-1].removesuffix(".git")
    return last or url


def format_date(value: datetime | None) -> str:
    """Format a timestamp like "Oct 18, 2026, 09:30 AM"."""
    if value is None:
        return "Unknown"
    return value.strftime("%b %d, %Y, %I:%M %p")


def format_json(result: ScanResult, indent: int = 2) -> str:
    """Serialize a scan result to JSON."""
    return json.dumps(result.to_dict(), indent=indent)


def _summary_lines(result: ScanResult, bullet: str = "- ") -> list[str]:
    summary = result.summary
    return [
        f"{bullet}Total Secrets Found: {summary.total_secrets}",
        f"{bullet}High Severity: {summary.high_severity}",
        f"{bullet}Medium Severity: {summary.medium_severity}",
        f"{bullet}Low Severity: {summary.low_severity}",
        f"{bullet}Info: {summary.info_severity}",
    ]


def format_markdown(result: ScanResult) -> str:
    """Render a full Markdown report.

    Args:
        result: The scan result to render.

    Returns:
        Markdown text with a summary section and one subsection per finding.
    """
    lines = [
        f"# Scan Report for {parse_repo_name(result.repository_id)}",
        f"Date: {format_date(result.started_at)}",
        "",
        "## Summary",
        *_summary_lines(result),
        "",
        "## Detailed Findings",
    ]

    for finding in result.findings:
        lines.extend(
            [
                "",
                f"### {finding.severity.value.upper()}: {finding.secret_type}",
                f"- File: {finding.file_path}",
                f"- Line: {finding.line_number}",
                f"- Commit: {finding.commit}",
                f"- Author: {finding.author}",
                f"- Date: {format_date(finding.date)}",
                f"- Description: {finding.description}",
                "",
                "```",
                finding.code_snippet,
                "```",
            ]
        )

    if result.warnings:
        lines.extend(["", "## Skipped Files"])
        for warning in result.warnings:
            lines.append(f"- {warning.file_path}: {warning.message}")

    return "\n".join(lines) + "\n"


def format_text(result: ScanResult) -> str:
    """Render a compact plain-text report."""
    lines = [
        f"Scan Report for {parse_repo_name(result.repository_id)}",
        f"Date: {format_date(result.started_at)}",
        "",
        "Summary:",
        *_summary_lines(result),
    ]

    for finding in result.findings:
        lines.extend(
            [
                "",
                f"{finding.severity.value.upper()}: {finding.secret_type}",
                f"File: {finding.file_path}",
                f"Line: {finding.line_number}",
                f"Commit: {finding.commit}",
                f"Author: {finding.author}",
                f"Date: {format_date(finding.date)}",
            ]
        )

    return "\n".join(lines) + "\n"


def _findings_table(findings: list[Finding]) -> Table:
    table = Table(show_header=True, header_style="bold")
    table.add_column("Severity")
    table.add_column("Type")
    table.add_column("Location", no_wrap=True)
    table.add_column("Preview", overflow="ellipsis", max_width=24)

    for finding in findings:
        style = SEVERITY_STYLES[finding.severity]
        table.add_row(
            f"[{style}]{finding.severity.value.upper()}[/{style}]",
            finding.secret_type,
            f"{finding.file_path}:{finding.line_number}",
            finding.secret_preview,
        )
    return table


def format_rich(result: ScanResult, console: Console) -> None:
    """Print a scan result to a rich console."""
    summary = result.summary
    repo_name = parse_repo_name(result.repository_id)

    if result.status == ScanStatus.FAILED:
        console.print(
            Panel(
                f"[red]{result.error_message}[/red]",
                title=f"Scan failed: {repo_name}",
                border_style="red",
            )
        )
        return

    if not result.findings:
        console.print(
            Panel(
                "[green]No secrets found.[/green]",
                title=f"Scan Report: {repo_name}",
                border_style="green",
            )
        )
    else:
        counts = "  ".join(
            f"[{SEVERITY_STYLES[severity]}]{severity.value.upper()}: {summary.count(severity)}"
            f"[/{SEVERITY_STYLES[severity]}]"
            for severity in FindingSeverity
        )
        console.print(
            Panel(
                f"Total secrets found: [bold]{summary.total_secrets}[/bold]\n{counts}",
                title=f"Scan Report: {repo_name}",
                border_style="red" if summary.high_severity else "yellow",
            )
        )
        console.print(_findings_table(result.findings))

    for warning in result.warnings:
        console.print(f"[yellow]Warning:[/yellow] {warning.file_path}: {warning.message}")

    if result.status == ScanStatus.CANCELLED:
        console.print(f"[yellow]Warning:[/yellow] {result.error_message}")
