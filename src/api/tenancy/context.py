"""Execution-context-local tenant storage.

Entries live in a single ``ContextVar`` holding a read-only mapping. Every
write replaces the mapping instead of mutating it, so each thread and each
asyncio task only ever sees entries written in its own context (or inherited
when the task was created). Nothing is shared, so nothing is locked.

Crossing into a context that does not inherit ours (a worker thread, an
executor, a process pool initializer) is done with an explicit snapshot:

    snapshot = store.snapshot()
    ...
    # in the worker
    store.apply_snapshot(snapshot)

Architecture:
    Task A (Request 1) → {"tenancy_tenant": "acme"}
    Task B (Request 2) → {"tenancy_tenant": "globex"}
    Worker thread      → {} until a snapshot is applied
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, TypeVar

from tenancy.exceptions import NotPresentError

if TYPE_CHECKING:
    from tenancy.observability import TenantResolutionProbe


NAMESPACE = "tenancy"
DEFAULT_CONTEXT_KEY = "tenancy_tenant"

Snapshot = Mapping[str, Any]

T = TypeVar("T")

_EMPTY: Mapping[str, Any] = MappingProxyType({})
_MISSING = object()

_entries: ContextVar[Mapping[str, Any]] = ContextVar(
    "tenancy_entries", default=_EMPTY
)


class ContextStore:
    """Key/value storage scoped to the current execution context.

    Args:
        namespace: Prefix identifying the keys captured by ``snapshot``.
        probe: Optional probe notified when snapshots are created or applied.
    """

    def __init__(
        self,
        namespace: str = NAMESPACE,
        probe: TenantResolutionProbe | None = None,
    ):
        self._namespace = namespace
        self._probe = probe

    @property
    def namespace(self) -> str:
        return self._namespace

    def set(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        entries = dict(_entries.get())
        entries[key] = value
        _entries.set(MappingProxyType(entries))

    def get(self, key: str = DEFAULT_CONTEXT_KEY, default: Any = None) -> Any:
        """Return the value under ``key``, or ``default`` when absent."""
        return _entries.get().get(key, default)

    def get_or_fail(self, key: str = DEFAULT_CONTEXT_KEY) -> Any:
        """Return the value under ``key``.

        Raises:
            NotPresentError: If the key holds no value.
        """
        value = _entries.get().get(key, _MISSING)
        if value is _MISSING or value is None:
            raise NotPresentError(key)
        return value

    def clear(self, key: str = DEFAULT_CONTEXT_KEY) -> None:
        """Remove ``key``. Clearing an absent key is a no-op."""
        current = _entries.get()
        if key not in current:
            return
        entries = dict(current)
        del entries[key]
        _entries.set(MappingProxyType(entries))

    def present(self, key: str = DEFAULT_CONTEXT_KEY) -> bool:
        """Whether ``key`` currently holds a (non-None) value."""
        return self.get(key) is not None

    @contextmanager
    def temporary(self, key: str, value: Any) -> Iterator[Any]:
        """Override ``key`` for the duration of the block.

        The previous value, or its absence, is restored on every exit path,
        including exceptions raised inside the block.
        """
        previous = _entries.get().get(key, _MISSING)
        self.set(key, value)
        try:
            yield value
        finally:
            if previous is _MISSING:
                self.clear(key)
            else:
                self.set(key, previous)

    def with_temporary(self, key: str, value: Any, fn: Callable[[], T]) -> T:
        """Call ``fn`` with ``key`` temporarily set to ``value``."""
        with self.temporary(key, value):
            return fn()

    def snapshot(self) -> Snapshot | None:
        """Capture every entry whose key belongs to this store's namespace.

        Returns:
            A read-only mapping, or ``None`` when no namespaced entry exists.
        """
        captured = {
            key: value
            for key, value in _entries.get().items()
            if isinstance(key, str) and key.startswith(self._namespace)
        }
        if not captured:
            return None
        if self._probe is not None:
            self._probe.snapshot_created(keys=len(captured))
        return MappingProxyType(captured)

    def apply_snapshot(self, snapshot: Snapshot | None) -> None:
        """Write every entry of ``snapshot`` into the current context."""
        if snapshot is None:
            return
        entries = dict(_entries.get())
        entries.update(snapshot)
        _entries.set(MappingProxyType(entries))
        if self._probe is not None:
            self._probe.snapshot_applied(keys=len(snapshot))

    def entries(self) -> Mapping[str, Any]:
        """Read-only view of every entry in the current context."""
        return _entries.get()

    @contextmanager
    def isolated(self) -> Iterator[None]:
        """Discard every write made inside the block when it exits.

        Used around a single request so that entries written while serving it
        never leak into whatever runs next in the same thread or task.
        """
        token = _entries.set(_entries.get())
        try:
            yield
        finally:
            _entries.reset(token)


_default_store = ContextStore()


def get_default_store() -> ContextStore:
    """Return the process-wide accessor for the ``tenancy`` namespace.

    The accessor itself holds no entries; all state lives in the current
    execution context.
    """
    return _default_store


def current(key: str = DEFAULT_CONTEXT_KEY) -> Any:
    """Return the tenant stored under ``key`` in the current context."""
    return _default_store.get(key)
