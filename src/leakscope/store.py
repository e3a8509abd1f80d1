"""Storage for scan results.

Stores are injected into ScanService rather than kept as module state, so
concurrent scans in one process never share storage by accident.
"""

from __future__ import annotations

import copy
import threading
from abc import ABC, abstractmethod

from leakscope.scanner.base import ScanResult


class ScanNotFoundError(KeyError):
    """No scan result exists for the requested id."""

    def __init__(self, scan_id: str) -> None:
        self.scan_id = scan_id
        super().__init__(scan_id)

    def __str__(self) -> str:
        return f"Scan not found: {self.scan_id}"


class ScanStore(ABC):
    """Abstract interface for scan result persistence.

    Implementations must be safe to call from several threads.
    """

    @abstractmethod
    def save(self, result: ScanResult) -> None:
        """Insert or replace a result, keyed by its id."""
        ...

    @abstractmethod
    def get(self, scan_id: str) -> ScanResult:
        """Retrieve a result by id.

        Raises:
            ScanNotFoundError: If no result has that id.
        """
        ...

    @abstractmethod
    def list_results(self, repository_id: str | None = None) -> list[ScanResult]:
        """List results, newest first, optionally for one repository."""
        ...


class InMemoryScanStore(ScanStore):
    """Thread-safe in-process store.

    Results are copied on the way in and out so callers cannot mutate
    stored state behind the lock.
    """

    def __init__(self) -> None:
        self._results: dict[str, ScanResult] = {}
        self._lock = threading.Lock()

    def save(self, result: ScanResult) -> None:
        snapshot = copy.deepcopy(result)
        with self._lock:
            self._results[result.id] = snapshot

    def get(self, scan_id: str) -> ScanResult:
        with self._lock:
            result = self._results.get(scan_id)
        if result is None:
            raise ScanNotFoundError(scan_id)
        return copy.deepcopy(result)

    def list_results(self, repository_id: str | None = None) -> list[ScanResult]:
        with self._lock:
            results = list(self._results.values())
        if repository_id is not None:
            results = [r for r in results if r.repository_id == repository_id]
        results.sort(key=lambda r: r.started_at, reverse=True)
        return [copy.deepcopy(r) for r in results]

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)
