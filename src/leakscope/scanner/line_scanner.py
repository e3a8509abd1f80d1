"""Line-by-line rule evaluation for a single file."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from leakscope.scanner.base import FileRecord
from leakscope.scanner.patterns import CompiledRule, DetectionRule

DEFAULT_CONTEXT_CHARS = 10
MAX_SNIPPET_LENGTH = 200


@dataclass(frozen=True)
class RawMatch:
    """An unclassified match of one rule on one line.

    Attributes:
        rule: The rule that matched.
        rule_index: Position of the rule inside its profile.
        file_path: Path of the scanned file.
        line_number: 1-based line number.
        column: 1-based column of the first matched character.
        matched_text: The exact text the rule matched.
        context: Matched text plus surrounding characters, clipped to the line.
    """

    rule: DetectionRule
    rule_index: int
    file_path: str
    line_number: int
    column: int
    matched_text: str
    context: str


def _context_window(line: str, start: int, end: int, context_chars: int) -> str:
    window = line[max(0, start - context_chars) : end + context_chars].strip()
    if len(window) > MAX_SNIPPET_LENGTH:
        window = window[:MAX_SNIPPET_LENGTH] + "..."
    return window


def scan_file(
    file: FileRecord,
    rules: Sequence[CompiledRule],
    context_chars: int = DEFAULT_CONTEXT_CHARS,
) -> list[RawMatch]:
    """Evaluate every rule against every non-blank line of a file.

    Each rule is applied independently, so one line can yield several matches
    from different rules, and repeated occurrences of one rule on the same
    line each produce their own match.

    Args:
        file: The file to scan. Directories and empty files yield nothing.
        rules: Compiled rules in profile order.
        context_chars: Characters of context kept on each side of a match.

    Returns:
        Matches ordered by line, then rule index, then column.
    """
    if not file.is_scannable:
        return []

    matches: list[RawMatch] = []
    for line_number, line in enumerate(file.content.split("\n"), start=1):
        line = line.removesuffix("\r")
        if not line.strip():
            continue

        for rule_index, compiled in enumerate(rules):
            for match in compiled.finditer(line):
                matches.append(
                    RawMatch(
                        rule=compiled.rule,
                        rule_index=rule_index,
                        file_path=file.path,
                        line_number=line_number,
                        column=match.start() + 1,
                        matched_text=match.group(0),
                        context=_context_window(
                            line, match.start(), match.end(), context_chars
                        ),
                    )
                )
    return matches
