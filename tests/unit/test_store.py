"""Tests for scan result stores."""

from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone

import pytest

from leakscope.scanner.base import ScanResult, ScanStatus
from leakscope.store import InMemoryScanStore, ScanNotFoundError, ScanStore


def _result(scan_id: str, repo: str = "acme/widgets", minutes: int = 0) -> ScanResult:
    started = datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(minutes=minutes)
    return ScanResult(id=scan_id, repository_id=repo, started_at=started)


class TestInMemoryScanStore:
    """Tests for InMemoryScanStore."""

    def test_is_a_scan_store(self):
        assert isinstance(InMemoryScanStore(), ScanStore)

    def test_save_and_get(self):
        store = InMemoryScanStore()
        store.save(_result("s1"))

        assert store.get("s1").repository_id == "acme/widgets"

    def test_missing(self):
        with pytest.raises(ScanNotFoundError) as exc_info:
            InMemoryScanStore().get("nope")

        assert exc_info.value.scan_id == "nope"
        assert "nope" in str(exc_info.value)

    def test_not_found_is_key_error(self):
        with pytest.raises(KeyError):
            InMemoryScanStore().get("nope")

    def test_save_replaces(self):
        store = InMemoryScanStore()
        result = _result("s1")
        store.save(result)
        result.start()
        store.save(result)

        assert store.get("s1").status == ScanStatus.SCANNING
        assert len(store) == 1

    def test_stored_copy_is_isolated(self):
        """Mutating a result after saving does not change the stored one."""
        store = InMemoryScanStore()
        result = _result("s1")
        store.save(result)
        result.start()

        assert store.get("s1").status == ScanStatus.PENDING

    def test_list_newest_first(self):
        store = InMemoryScanStore()
        store.save(_result("old", minutes=0))
        store.save(_result("new", minutes=5))
        store.save(_result("other", repo="acme/gadgets", minutes=10))

        assert [r.id for r in store.list_results()] == ["other", "new", "old"]
        assert [r.id for r in store.list_results("acme/widgets")] == ["new", "old"]

    def test_separate_instances_do_not_share(self):
        first = InMemoryScanStore()
        second = InMemoryScanStore()
        first.save(_result("s1"))

        assert len(second) == 0

    def test_concurrent_saves(self):
        store = InMemoryScanStore()

        def save_many(prefix: str) -> None:
            for i in range(50):
                store.save(_result(f"{prefix}-{i}"))

        threads = [threading.Thread(target=save_many, args=(p,)) for p in "abcd"]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(store) == 200
