"""Rich console helpers shared by CLI commands."""

from __future__ import annotations

from rich.console import Console

from leakscope.scanner.patterns import PatternRegistry

console = Console()
err_console = Console(stderr=True)


def print_error(message: str) -> None:
    """Print an error line to stderr."""
    err_console.print(f"[red]Error:[/red] {message}")


def print_warning(message: str) -> None:
    """Print a warning line to stderr."""
    err_console.print(f"[yellow]Warning:[/yellow] {message}")


def print_success(message: str) -> None:
    console.print(f"[green]{message}[/green]")


def print_profiles(registry: PatternRegistry, verbose: bool = False) -> None:
    """Print registered profiles, and their rules when verbose."""
    from rich.table import Table

    table = Table(title="Detection profiles", show_header=True, header_style="bold")
    table.add_column("Profile", no_wrap=True)
    table.add_column("Rules", justify="right")
    table.add_column("Description")

    for profile in registry:
        table.add_row(profile.name, str(len(profile.rules)), profile.description)
    console.print(table)

    if not verbose:
        return

    for profile in registry:
        rules = Table(title=profile.name, show_header=True, header_style="bold")
        rules.add_column("Rule", no_wrap=True)
        rules.add_column("Severity")
        rules.add_column("Description")
        for rule in profile.detection_rules:
            severity = rule.severity.value if rule.severity else "[dim]keyword[/dim]"
            rules.add_row(rule.name, severity, rule.description)
        console.print(rules)
