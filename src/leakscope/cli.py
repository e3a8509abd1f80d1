"""Command-line interface for leakscope."""

from typing import Annotated

import typer

from leakscope.cli_commands.scan import ingest, scan
from leakscope.output.rich import console, print_profiles
from leakscope.scanner.patterns import default_registry

app = typer.Typer(
    name="leakscope",
    help="Detect hardcoded secrets with trufflehog-, gitleaks- and keyword-style profiles.",
    no_args_is_help=True,
)

app.command()(scan)
app.command()(ingest)


@app.command()
def profiles(
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="List every rule of each profile")
    ] = False,
) -> None:
    """List the available detection profiles."""
    print_profiles(default_registry(), verbose=verbose)


@app.command()
def version() -> None:
    """Show leakscope version."""
    from leakscope import __version__

    console.print(f"leakscope [bold green]{__version__}[/bold green]")


if __name__ == "__main__":
    app()
