"""Scan and ingest commands - find hardcoded secrets.

The scan command walks local paths and runs the selected detection
profiles over every text file:
- trufflehog: AWS keys, private keys, connection strings, passwords
- gitleaks: GitHub tokens, JWTs, bearer headers, generic secrets
- custom: keyword heuristics for api keys, passwords, secrets and tokens

The ingest command renders a report produced by an external gitleaks or
trufflehog run with the same summary and exit codes.

Configuration can be set in leakscope.toml:
    [scan]
    profiles = ["custom", "gitleaks"]
    max_workers = 4
    fail_on_severity = "high"
    ignore_dirs = [".git", "node_modules"]
    git_metadata = false
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError
from rich.console import Console

from leakscope.config import ConfigNotFoundError, ScanSettings
from leakscope.log import configure_logging
from leakscope.output.rich import console, print_error, print_success, print_warning
from leakscope.scanner.base import (
    FindingSeverity,
    ScanError,
    ScanResult,
    ScanStatus,
    new_id,
)
from leakscope.scanner.engine import EngineConfig, ScanEngine
from leakscope.scanner.output import format_json, format_markdown, format_rich, format_text
from leakscope.scanner.reports import (
    ReportFormatError,
    parse_gitleaks_report,
    parse_trufflehog_report,
)
from leakscope.service import ScanService
from leakscope.sources import ScanRequest, collect_local_files

REPORT_FORMATS = ("gitleaks", "trufflehog")
REPORT_SUFFIXES = {".json": "json", ".md": "markdown", ".markdown": "markdown"}


def _load_settings(config_file: Path | None) -> ScanSettings:
    try:
        return ScanSettings.from_file(config_file)
    except ConfigNotFoundError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    except tomllib.TOMLDecodeError as e:
        print_error(f"TOML syntax error in config file: {e}")
        raise typer.Exit(code=1) from e
    except ValidationError as e:
        print_error(f"Invalid configuration: {e}")
        raise typer.Exit(code=1) from e


def _parse_severity(value: str) -> FindingSeverity:
    try:
        return FindingSeverity(value.strip().lower())
    except ValueError as e:
        valid = ", ".join(s.value for s in FindingSeverity)
        print_error(f"Invalid severity '{value}'. Valid options: {valid}")
        raise typer.Exit(code=1) from e


def _report_format(
    json_output: bool, markdown: bool, text: bool, output: Path | None
) -> str | None:
    """Pick the report format, defaulting from the --output file suffix."""
    if json_output:
        return "json"
    if markdown:
        return "markdown"
    if text:
        return "text"
    if output is not None:
        return REPORT_SUFFIXES.get(output.suffix.lower(), "text")
    return None


def _emit(
    result: ScanResult,
    json_output: bool,
    markdown: bool,
    output: Path | None,
    plain: bool,
    text: bool = False,
) -> None:
    """Write the result in the requested format."""
    fmt = _report_format(json_output, markdown, text, output)
    if fmt is None:
        output_console = Console(force_terminal=False, no_color=True) if plain else console
        format_rich(result, output_console)
        return

    if fmt == "json":
        rendered = format_json(result)
    elif fmt == "markdown":
        rendered = format_markdown(result)
    else:
        rendered = format_text(result)

    if output is None:
        print(rendered)
        return

    output.write_text(rendered, encoding="utf-8")
    print_success(f"Report written to {output}")
    if result.warnings:
        print_warning(f"{len(result.warnings)} file(s) could not be scanned")


def _exit_for(result: ScanResult, ci: bool, fail_severity: FindingSeverity) -> None:
    if result.status == ScanStatus.FAILED:
        raise typer.Exit(code=1)
    if ci:
        exit_code = result.summary.exit_code(fail_severity)
        if exit_code != 0:
            raise typer.Exit(code=exit_code)


def scan(
    paths: Annotated[
        list[Path] | None,
        typer.Argument(
            help="Paths to scan (default: current directory)",
        ),
    ] = None,
    profile: Annotated[
        list[str] | None,
        typer.Option(
            "--profile",
            "-p",
            help="Detection profile to run; repeat for several (trufflehog, gitleaks, custom)",
        ),
    ] = None,
    repository: Annotated[
        str | None,
        typer.Option(
            "--repo",
            "-r",
            help="Repository name or URL shown in reports (default: scanned path)",
        ),
    ] = None,
    git_metadata: Annotated[
        bool,
        typer.Option(
            "--git-metadata",
            "-g",
            help="Attribute findings to the last commit touching each file",
        ),
    ] = False,
    # Output options
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            "-j",
            help="Output results as JSON",
        ),
    ] = False,
    markdown: Annotated[
        bool,
        typer.Option(
            "--markdown",
            "-m",
            help="Output results as a Markdown report",
        ),
    ] = False,
    text: Annotated[
        bool,
        typer.Option(
            "--text",
            "-t",
            help="Output results as a plain-text report",
        ),
    ] = False,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Write the report to this file (.json, .md, otherwise text)",
        ),
    ] = None,
    ci: Annotated[
        bool,
        typer.Option(
            "--ci",
            help="CI mode: exit non-zero on findings at or above --fail-on, no colors",
        ),
    ] = False,
    fail_on: Annotated[
        str | None,
        typer.Option(
            "--fail-on",
            help="Minimum severity to cause non-zero exit (high|medium|low|info)",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Show debug logging",
        ),
    ] = False,
    config_file: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to leakscope.toml config file (auto-detected if not specified)",
        ),
    ] = None,
) -> None:
    """Scan files for hardcoded secrets.

    \b
    Exit codes (with --ci):
      0 - No findings at or above --fail-on
      1 - High severity findings detected (or scan error)
      2 - Medium severity findings detected
      3 - Low severity findings detected
      4 - Info findings detected

    \b
    Examples:
      leakscope scan                         # Default profile over current directory
      leakscope scan -p trufflehog -p gitleaks ./src
      leakscope scan --ci --fail-on medium   # CI mode
      leakscope scan --markdown -o report.md # Downloadable report
    """
    configure_logging(verbose)
    settings = _load_settings(config_file)
    fail_severity = _parse_severity(fail_on) if fail_on else settings.fail_on_severity

    if not paths:
        paths = [Path.cwd()]
    for path in paths:
        if not path.exists():
            print_error(f"Path not found: {path}")
            raise typer.Exit(code=1)

    profiles = list(profile) if profile else list(settings.profiles)
    repository_id = repository if repository is not None else (
        str(paths[0].resolve()) if len(paths) == 1 else str(Path.cwd())
    )

    try:
        request = ScanRequest(repository_identifier=repository_id, scanner_profiles=profiles)
    except ValidationError as e:
        print_error(f"Invalid scan request: {e}")
        raise typer.Exit(code=1) from e

    files = collect_local_files(
        paths,
        max_file_size=settings.max_file_size,
        ignore_dirs=settings.ignore_dirs,
        git_metadata=git_metadata or settings.git_metadata,
    )

    service = ScanService(engine=ScanEngine(EngineConfig.from_settings(settings)))

    try:
        result = service.execute(request, files)
    except ScanError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if result.status == ScanStatus.FAILED:
        print_error(result.error_message or "Scan failed")

    _emit(result, json_output, markdown, output, plain=ci, text=text)
    _exit_for(result, ci, fail_severity)


def ingest(
    report: Annotated[
        Path,
        typer.Argument(help="Report file produced by gitleaks or trufflehog"),
    ],
    report_format: Annotated[
        str,
        typer.Option(
            "--format",
            "-f",
            help="Report format (gitleaks|trufflehog)",
        ),
    ] = "gitleaks",
    repository: Annotated[
        str | None,
        typer.Option(
            "--repo",
            "-r",
            help="Repository name or URL shown in reports",
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", "-j", help="Output results as JSON"),
    ] = False,
    markdown: Annotated[
        bool,
        typer.Option("--markdown", "-m", help="Output results as a Markdown report"),
    ] = False,
    text: Annotated[
        bool,
        typer.Option("--text", "-t", help="Output results as a plain-text report"),
    ] = False,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the report to this file (.json, .md, otherwise text)"),
    ] = None,
    ci: Annotated[
        bool,
        typer.Option("--ci", help="CI mode: exit non-zero on findings at or above --fail-on"),
    ] = False,
    fail_on: Annotated[
        str,
        typer.Option("--fail-on", help="Minimum severity to cause non-zero exit"),
    ] = "high",
) -> None:
    """Summarize a report from an external secret scanner."""
    fail_severity = _parse_severity(fail_on)

    fmt = report_format.strip().lower()
    if fmt not in REPORT_FORMATS:
        print_error(f"Unknown report format '{report_format}'. Valid options: {', '.join(REPORT_FORMATS)}")
        raise typer.Exit(code=1)

    try:
        raw = report.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        print_error(f"Cannot read {report}: {e}")
        raise typer.Exit(code=1) from e

    scan_id = new_id()
    try:
        if fmt == "gitleaks":
            findings = parse_gitleaks_report(raw, scan_id)
        else:
            findings = parse_trufflehog_report(raw, scan_id)
    except ReportFormatError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    result = ScanResult(id=scan_id, repository_id=repository or report.stem, profiles=[fmt])
    result.start()
    result.complete(findings)

    _emit(result, json_output, markdown, output, plain=ci, text=text)
    _exit_for(result, ci, fail_severity)
