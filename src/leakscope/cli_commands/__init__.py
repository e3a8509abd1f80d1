"""CLI command implementations for leakscope."""

from leakscope.cli_commands.scan import ingest, scan

__all__ = ["ingest", "scan"]
