"""Scan lifecycle management.

ScanService wraps the engine with the PENDING -> SCANNING -> terminal state
machine, persisting each transition to an injected store.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence

from leakscope.scanner.base import FileRecord, ScanResult, ScanStatus, new_id
from leakscope.scanner.engine import ScanEngine
from leakscope.sources import ScanRequest
from leakscope.store import InMemoryScanStore, ScanStore

logger = logging.getLogger(__name__)

StatusCallback = Callable[[ScanResult], None]


class ScanService:
    """Runs scans and records their lifecycle.

    Example:
        service = ScanService(store=InMemoryScanStore())
        request = ScanRequest(repository_identifier="acme/api", scanner_profiles=["custom"])
        result = service.execute(request, files)
        print(result.status, result.summary.total_secrets)
    """

    def __init__(
        self,
        engine: ScanEngine | None = None,
        store: ScanStore | None = None,
        on_status: StatusCallback | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            engine: Scan engine. Uses a default engine if None.
            store: Result store. A private in-memory store if None.
            on_status: Called with the result after every state change.
        """
        self.engine = engine or ScanEngine()
        self.store = store if store is not None else InMemoryScanStore()
        self.on_status = on_status

    def _publish(self, result: ScanResult) -> None:
        self.store.save(result)
        if self.on_status is not None:
            self.on_status(result)

    def execute(
        self,
        request: ScanRequest,
        files: Sequence[FileRecord],
        cancel_event: threading.Event | None = None,
    ) -> ScanResult:
        """Run one scan to a terminal state.

        Profiles are validated before anything is stored, so a request with
        an unknown profile leaves no trace in the store.
        An exception from the store or the status callback before the engine
        finishes fails the scan instead of leaving it half-recorded.

        Args:
            request: Repository identifier and profile names.
            files: Files to scan.
            cancel_event: Set from another thread to stop early.

        Returns:
            The terminal ScanResult: COMPLETED (possibly with warnings),
            CANCELLED with partial findings, or FAILED.

        Raises:
            NoScannerSelectedError: If no profile is requested.
            UnknownProfileError: If a profile is not registered.
        """
        self.engine.resolve_profiles(request.scanner_profiles)

        result = ScanResult(
            id=new_id(),
            repository_id=request.repository_identifier,
            profiles=list(request.scanner_profiles),
        )

        try:
            self._publish(result)
            result.start()
            self._publish(result)
            logger.info(
                "Scan %s started for %s with %s",
                result.id,
                result.repository_id,
                ", ".join(result.profiles),
            )
            batch = self.engine.run_scan(
                result.id, files, result.profiles, cancel_event=cancel_event
            )
        except Exception as e:
            logger.exception("Scan %s failed", result.id)
            # A failing publish can leave the scan PENDING; it still has to end FAILED
            if result.status == ScanStatus.PENDING:
                result.start()
            result.fail(str(e) or type(e).__name__)
            self._publish(result)
            return result

        if batch.cancelled:
            result.cancel(batch.findings, batch.warnings)
        else:
            result.complete(batch.findings, batch.warnings)
        self._publish(result)

        logger.info(
            "Scan %s %s: %d secrets, %d warnings",
            result.id,
            result.status.value,
            len(result.findings),
            len(result.warnings),
        )
        return result

    def get(self, scan_id: str) -> ScanResult:
        """Fetch a stored result.

        Raises:
            ScanNotFoundError: If no result has that id.
        """
        return self.store.get(scan_id)

    def history(self, repository_id: str | None = None) -> list[ScanResult]:
        """Stored results, newest first."""
        return self.store.list_results(repository_id)
