"""Unit tests for the execution-context-local tenant store."""

from __future__ import annotations

import asyncio
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from tenancy import apply_snapshot, snapshot
from tenancy.context import (
    DEFAULT_CONTEXT_KEY,
    ContextStore,
    current,
    get_default_store,
)
from tenancy.exceptions import NotPresentError


@pytest.fixture
def store() -> ContextStore:
    return get_default_store()


class TestContextStoreReadWrite:
    """Tests for set/get/clear/present."""

    def test_get_returns_none_when_nothing_stored(self, store: ContextStore) -> None:
        """An empty context should yield None for the default key."""
        assert store.get() is None
        assert current() is None

    def test_set_then_get_returns_value(self, store: ContextStore) -> None:
        """A stored tenant should be readable through the store and current()."""
        store.set(DEFAULT_CONTEXT_KEY, "acme")

        assert store.get() == "acme"
        assert current() == "acme"

    def test_set_replaces_previous_value(self, store: ContextStore) -> None:
        """Setting a key twice should keep only the latest value."""
        store.set(DEFAULT_CONTEXT_KEY, "acme")
        store.set(DEFAULT_CONTEXT_KEY, "globex")

        assert store.get() == "globex"

    def test_get_returns_supplied_default(self, store: ContextStore) -> None:
        """get should fall back to the caller's default."""
        assert store.get("tenancy_missing", default="fallback") == "fallback"

    def test_get_or_fail_raises_when_absent(self, store: ContextStore) -> None:
        """The strict accessor should raise NotPresentError naming the key."""
        with pytest.raises(NotPresentError) as exc_info:
            store.get_or_fail()

        assert exc_info.value.key == DEFAULT_CONTEXT_KEY
        assert "tenancy_tenant" in str(exc_info.value)

    def test_get_or_fail_treats_stored_none_as_absent(
        self, store: ContextStore
    ) -> None:
        """A key explicitly holding None should still count as absent."""
        store.set(DEFAULT_CONTEXT_KEY, None)

        with pytest.raises(NotPresentError):
            store.get_or_fail()

    def test_get_or_fail_is_a_lookup_error(self, store: ContextStore) -> None:
        """Callers catching LookupError should also catch NotPresentError."""
        with pytest.raises(LookupError):
            store.get_or_fail("tenancy_other")

    def test_get_or_fail_returns_value(self, store: ContextStore) -> None:
        """The strict accessor should return a stored tenant."""
        store.set(DEFAULT_CONTEXT_KEY, "acme")
        assert store.get_or_fail() == "acme"

    def test_clear_removes_value(self, store: ContextStore) -> None:
        """clear should remove the key."""
        store.set(DEFAULT_CONTEXT_KEY, "acme")
        store.clear()

        assert store.get() is None
        assert DEFAULT_CONTEXT_KEY not in store.entries()

    def test_clear_is_idempotent(self, store: ContextStore) -> None:
        """Clearing an absent key should not raise."""
        store.clear()
        store.clear()

        assert store.get() is None

    def test_present_reflects_state(self, store: ContextStore) -> None:
        """present should be True only while a non-None value is stored."""
        assert store.present() is False
        store.set(DEFAULT_CONTEXT_KEY, "acme")
        assert store.present() is True
        store.set(DEFAULT_CONTEXT_KEY, None)
        assert store.present() is False

    def test_entries_view_is_read_only(self, store: ContextStore) -> None:
        """The entries view should not allow mutation."""
        store.set(DEFAULT_CONTEXT_KEY, "acme")

        with pytest.raises(TypeError):
            store.entries()[DEFAULT_CONTEXT_KEY] = "globex"  # type: ignore[index]


class TestTemporaryValues:
    """Tests for temporary/with_temporary."""

    def test_temporary_restores_previous_value(self, store: ContextStore) -> None:
        """The previous tenant should be back after the block."""
        store.set(DEFAULT_CONTEXT_KEY, "acme")

        with store.temporary(DEFAULT_CONTEXT_KEY, "globex"):
            assert store.get() == "globex"

        assert store.get() == "acme"

    def test_temporary_restores_absence(self, store: ContextStore) -> None:
        """A key that was absent before should be absent afterwards."""
        with store.temporary(DEFAULT_CONTEXT_KEY, "globex"):
            assert store.present()

        assert DEFAULT_CONTEXT_KEY not in store.entries()

    def test_with_temporary_returns_result(self, store: ContextStore) -> None:
        """with_temporary should return whatever the function returns."""
        result = store.with_temporary(
            DEFAULT_CONTEXT_KEY, "globex", lambda: f"ran for {current()}"
        )

        assert result == "ran for globex"
        assert store.get() is None

    def test_with_temporary_restores_on_exception(self, store: ContextStore) -> None:
        """The previous value should be restored even when the function raises."""
        store.set(DEFAULT_CONTEXT_KEY, "acme")

        def boom():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            store.with_temporary(DEFAULT_CONTEXT_KEY, "globex", boom)

        assert store.get() == "acme"


class TestSnapshots:
    """Tests for snapshot/apply_snapshot."""

    def test_snapshot_of_empty_context_is_none(self) -> None:
        """Nothing stored should produce no snapshot."""
        assert snapshot() is None

    def test_apply_none_snapshot_is_noop(self, store: ContextStore) -> None:
        """Applying None should leave the context untouched."""
        store.set(DEFAULT_CONTEXT_KEY, "acme")
        apply_snapshot(None)

        assert store.get() == "acme"

    def test_snapshot_captures_every_namespaced_key(
        self, store: ContextStore
    ) -> None:
        """All keys under the namespace prefix should be captured, others not."""
        store.set(DEFAULT_CONTEXT_KEY, "acme")
        store.set("tenancy_region", "eu")
        store.set("request_id", "req-1")

        captured = snapshot()

        assert dict(captured) == {"tenancy_tenant": "acme", "tenancy_region": "eu"}

    def test_snapshot_is_read_only(self, store: ContextStore) -> None:
        """A snapshot should not be mutable after capture."""
        store.set(DEFAULT_CONTEXT_KEY, "acme")
        captured = snapshot()

        with pytest.raises(TypeError):
            captured[DEFAULT_CONTEXT_KEY] = "globex"  # type: ignore[index]

    def test_applying_own_snapshot_changes_nothing(self, store: ContextStore) -> None:
        """Re-applying a snapshot in its own context should change nothing."""
        store.set(DEFAULT_CONTEXT_KEY, "acme")
        store.set("tenancy_region", "eu")
        store.set("request_id", "req-1")
        before = dict(store.entries())

        apply_snapshot(snapshot())

        assert dict(store.entries()) == before

    def test_snapshot_round_trip_into_thread(self, store: ContextStore) -> None:
        """A fresh thread should see the tenant only after applying a snapshot."""
        store.set(DEFAULT_CONTEXT_KEY, "acme")
        captured = snapshot()
        seen: dict[str, object] = {}

        def worker():
            seen["before"] = current()
            apply_snapshot(captured)
            seen["after"] = current()

        thread = threading.Thread(target=worker)
        thread.start()
        thread.join()

        assert seen == {"before": None, "after": "acme"}

    def test_snapshot_events_are_reported(self, recording_probe) -> None:
        """A store with a probe should report snapshot activity."""
        probed = ContextStore(probe=recording_probe)
        probed.set(DEFAULT_CONTEXT_KEY, "acme")

        captured = probed.snapshot()
        probed.apply_snapshot(captured)

        assert recording_probe.events == [
            ("snapshot_created", {"keys": 1}),
            ("snapshot_applied", {"keys": 1}),
        ]

    def test_empty_snapshot_is_not_reported(self, recording_probe) -> None:
        """No event should fire when there is nothing to capture or apply."""
        probed = ContextStore(probe=recording_probe)

        probed.apply_snapshot(probed.snapshot())

        assert recording_probe.events == []


class TestIsolation:
    """Tests for isolation between execution contexts."""

    def test_isolated_discards_writes(self, store: ContextStore) -> None:
        """Writes inside an isolated block should vanish when it exits."""
        store.set(DEFAULT_CONTEXT_KEY, "acme")

        with store.isolated():
            store.set(DEFAULT_CONTEXT_KEY, "globex")
            store.set("tenancy_region", "eu")
            assert store.get() == "globex"

        assert store.get() == "acme"
        assert store.get("tenancy_region") is None

    def test_concurrent_threads_do_not_observe_each_other(self) -> None:
        """Each thread should only ever read the tenant it wrote."""
        barrier = threading.Barrier(8)

        def worker(tenant: str) -> str:
            get_default_store().set(DEFAULT_CONTEXT_KEY, tenant)
            barrier.wait()
            return current()

        tenants = [f"tenant-{i}" for i in range(8)]
        with ThreadPoolExecutor(max_workers=8) as executor:
            results = list(executor.map(worker, tenants))

        assert results == tenants

    def test_thread_writes_do_not_reach_caller(self, store: ContextStore) -> None:
        """A thread writing the tenant should not change the caller's context."""
        store.set(DEFAULT_CONTEXT_KEY, "acme")

        thread = threading.Thread(
            target=lambda: store.set(DEFAULT_CONTEXT_KEY, "globex")
        )
        thread.start()
        thread.join()

        assert store.get() == "acme"

    async def test_asyncio_tasks_inherit_and_isolate(
        self, store: ContextStore
    ) -> None:
        """Tasks start with the parent's tenant and keep their own writes."""
        store.set(DEFAULT_CONTEXT_KEY, "acme")

        async def child(tenant: str) -> tuple[object, object]:
            inherited = current()
            store.set(DEFAULT_CONTEXT_KEY, tenant)
            await asyncio.sleep(0)
            return inherited, current()

        results = await asyncio.gather(child("globex"), child("initech"))

        assert results == [("acme", "globex"), ("acme", "initech")]
        assert current() == "acme"
