"""Scan engine - runs detection profiles over a file collection.

The ScanEngine is responsible for:
- Resolving requested profiles before any work starts
- Running one unit of work per (file, profile) pair in parallel
- Turning per-unit failures into warnings instead of failing the scan
- Merging findings into a stable, reproducible order
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from leakscope.scanner.base import (
    FileKind,
    FileRecord,
    Finding,
    FindingSeverity,
    NoScannerSelectedError,
    ScanAbortedError,
    ScanBatch,
    ScanWarning,
    WarningKind,
)
from leakscope.scanner.classifier import classify
from leakscope.scanner.line_scanner import DEFAULT_CONTEXT_CHARS, scan_file
from leakscope.scanner.patterns import PatternRegistry, Profile, default_registry

if TYPE_CHECKING:
    from leakscope.config import ScanSettings

logger = logging.getLogger(__name__)

_SortKey = tuple[str, int, int, int, int]


@dataclass
class EngineConfig:
    """Configuration for the scan engine.

    Attributes:
        profiles: Profiles used when a caller does not name any.
        max_workers: Upper bound on concurrent units of work.
        context_chars: Characters of context kept around each match.
        fail_on_severity: Minimum severity that makes a CI run fail.
    """

    profiles: list[str] = field(default_factory=lambda: ["custom"])
    max_workers: int = 4
    context_chars: int = DEFAULT_CONTEXT_CHARS
    fail_on_severity: FindingSeverity = FindingSeverity.HIGH

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> EngineConfig:
        """Create config from a dictionary (e.g., from leakscope.toml).

        Args:
            config: Dictionary with a ``scan`` table.

        Returns:
            EngineConfig instance.
        """
        scan_config = config.get("scan", {})

        profiles = scan_config.get("profiles", ["custom"])
        if isinstance(profiles, str):
            profiles = [profiles]

        fail_on = scan_config.get("fail_on_severity", "high")
        try:
            fail_severity = FindingSeverity(str(fail_on).lower())
        except ValueError:
            fail_severity = FindingSeverity.HIGH

        return cls(
            profiles=list(profiles),
            max_workers=max(1, int(scan_config.get("max_workers", 4))),
            context_chars=max(0, int(scan_config.get("context_chars", DEFAULT_CONTEXT_CHARS))),
            fail_on_severity=fail_severity,
        )

    @classmethod
    def from_settings(cls, settings: ScanSettings) -> EngineConfig:
        """Create config from resolved settings."""
        return cls(
            profiles=list(settings.profiles),
            max_workers=settings.max_workers,
            context_chars=settings.context_chars,
            fail_on_severity=settings.fail_on_severity,
        )


class ScanEngine:
    """Runs detection profiles over a collection of files.

    Units of work are independent, so they run on a thread pool and their
    results are merged on the calling thread. Output order never depends on
    completion order.

    Example:
        engine = ScanEngine(EngineConfig(max_workers=2))
        batch = engine.run_scan(scan_id, files, ["custom", "gitleaks"])
        print(f"Found {len(batch.findings)} secrets")
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        registry: PatternRegistry | None = None,
    ) -> None:
        """Initialize the scan engine.

        Args:
            config: Engine configuration. Uses defaults if None.
            registry: Profile registry. Uses the built-in profiles if None.
        """
        self.config = config or EngineConfig()
        self.registry = registry or default_registry()

    def resolve_profiles(self, profiles: Sequence[str]) -> list[Profile]:
        """Look up every requested profile, dropping repeats.

        Raises:
            NoScannerSelectedError: If no profile is requested.
            UnknownProfileError: If any name is not registered.
        """
        if not profiles:
            raise NoScannerSelectedError()
        names = list(dict.fromkeys(profiles))
        return [self.registry.get_profile(name) for name in names]

    def _scan_unit(
        self,
        scan_id: str,
        file: FileRecord,
        profile: Profile,
        profile_index: int,
        cancel_event: threading.Event | None,
    ) -> list[tuple[_SortKey, Finding]]:
        """Scan one file with one profile (for parallel execution)."""
        if cancel_event is not None and cancel_event.is_set():
            raise ScanAbortedError(f"Cancelled before scanning {file.path} with {profile.name}")

        results = []
        for match in scan_file(file, profile.rules, self.config.context_chars):
            finding = classify(match, scan_id, profile.name, file.provenance)
            key = (
                match.file_path,
                match.line_number,
                profile_index,
                match.rule_index,
                match.column,
            )
            results.append((key, finding))
        return results

    def run_scan(
        self,
        scan_id: str,
        files: Sequence[FileRecord],
        profiles: Sequence[str],
        cancel_event: threading.Event | None = None,
    ) -> ScanBatch:
        """Scan every file with every requested profile.

        Args:
            scan_id: Identifier stamped on every finding.
            files: Files to scan; paths must be unique.
            profiles: Names of registered profiles.
            cancel_event: When set, units that have not started are skipped.

        Returns:
            ScanBatch with ordered findings, warnings and cancellation state.

        Raises:
            NoScannerSelectedError: If no profile is requested.
            UnknownProfileError: If any profile is not registered.
            ValueError: If two files share a path.
        """
        resolved = self.resolve_profiles(profiles)

        seen_paths: set[str] = set()
        for file in files:
            if file.path in seen_paths:
                raise ValueError(f"Duplicate file path in scan input: {file.path}")
            seen_paths.add(file.path)

        batch = ScanBatch(scan_id=scan_id)
        units: list[tuple[FileRecord, Profile, int]] = []

        for file in files:
            if file.kind == FileKind.DIRECTORY:
                continue
            if file.read_error is not None:
                logger.warning("Skipping %s: %s", file.path, file.read_error)
                batch.warnings.append(
                    ScanWarning(
                        kind=WarningKind.FILE_READ_FAILURE,
                        file_path=file.path,
                        message=file.read_error,
                    )
                )
                continue
            batch.files_scanned += 1
            if not file.is_scannable:
                continue
            for profile in resolved:
                units.append((file, profile, self.registry.profile_index(profile.name)))

        logger.debug(
            "Scan %s: %d files, %d profiles, %d units",
            scan_id,
            batch.files_scanned,
            len(resolved),
            len(units),
        )

        keyed: list[tuple[_SortKey, Finding]] = []
        if units:
            max_workers = max(1, min(len(units), self.config.max_workers))
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                future_to_unit = {
                    executor.submit(
                        self._scan_unit, scan_id, file, profile, index, cancel_event
                    ): (file, profile)
                    for file, profile, index in units
                }

                for future in as_completed(future_to_unit):
                    file, profile = future_to_unit[future]
                    try:
                        keyed.extend(future.result())
                    except ScanAbortedError:
                        batch.units_skipped += 1
                        batch.cancelled = True
                    except Exception as e:
                        # Record the unit failure but keep the rest of the scan
                        logger.exception(
                            "Error scanning %s with profile %s", file.path, profile.name
                        )
                        batch.warnings.append(
                            ScanWarning(
                                kind=WarningKind.EVALUATION_ERROR,
                                file_path=file.path,
                                profile=profile.name,
                                message=f"Profile {profile.name} failed: {e!s}",
                            )
                        )

        keyed.sort(key=lambda item: item[0])
        batch.findings = [finding for _, finding in keyed]
        batch.warnings.sort(key=lambda w: (w.file_path, w.profile or ""))
        if not units and cancel_event is not None and cancel_event.is_set():
            batch.cancelled = True

        if batch.cancelled:
            logger.info(
                "Scan %s cancelled, %d units skipped", scan_id, batch.units_skipped
            )
        return batch
