"""Terminal output helpers for leakscope."""

from leakscope.output.rich import console, print_error, print_success, print_warning

__all__ = ["console", "print_error", "print_success", "print_warning"]
