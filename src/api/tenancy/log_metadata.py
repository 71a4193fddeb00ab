"""Tenant metadata for structured logging.

Binds the resolved tenant into ``structlog.contextvars`` so that every log
event emitted while serving the request carries it, provided the
``merge_contextvars`` processor is configured (see
``infrastructure.logging.configure_logging``).

Example log output:

    # Without tenant metadata
    2026-01-01T00:00:00Z [info] processing_request

    # With tenant metadata
    2026-01-01T00:00:00Z [info] processing_request tenant_id=acme
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from typing import Any, TypeVar

import structlog

DEFAULT_METADATA_KEY = "tenant_id"

T = TypeVar("T")


class LogMetadata:
    """Set and clear the tenant under one structlog context variable."""

    def __init__(self, key: str = DEFAULT_METADATA_KEY):
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    def set(self, value: Any) -> None:
        structlog.contextvars.bind_contextvars(**{self._key: value})

    def clear(self) -> None:
        structlog.contextvars.unbind_contextvars(self._key)

    def get(self) -> Any:
        return structlog.contextvars.get_contextvars().get(self._key)

    def present(self) -> bool:
        return self.get() is not None

    @contextmanager
    def temporary(self, value: Any) -> Iterator[Any]:
        """Bind ``value`` for the duration of the block, then restore."""
        original = self.get()
        self.set(value)
        try:
            yield value
        finally:
            if original is None:
                self.clear()
            else:
                self.set(original)

    def with_metadata(self, value: Any, fn: Callable[[], T]) -> T:
        with self.temporary(value):
            return fn()

    def log_with_tenant(self, level: str, event: str, tenant: Any, **kw: Any) -> None:
        """Emit one log event with ``tenant`` bound, leaving the context as it was."""
        with self.temporary(tenant):
            getattr(structlog.get_logger(), level)(event, **kw)


def tenant_metadata() -> dict[str, Any]:
    """Return every bound context variable whose name mentions a tenant or org."""
    return {
        key: value
        for key, value in structlog.contextvars.get_contextvars().items()
        if "tenant" in key or "org" in key
    }


def snapshot_metadata() -> dict[str, Any]:
    """Capture tenant-related log metadata for transfer to another context."""
    return tenant_metadata()


def restore_metadata(snapshot: Mapping[str, Any] | None) -> None:
    """Bind every entry of a metadata snapshot in the current context."""
    if not snapshot:
        return
    structlog.contextvars.bind_contextvars(**snapshot)


def format_tenant(tenant: Any) -> str:
    """Render a tenant for inclusion in plain-text log messages.

    >>> format_tenant("acme")
    '[tenant: acme]'
    >>> format_tenant(None)
    ''
    """
    if tenant is None:
        return ""
    if isinstance(tenant, (str, int, float)):
        return f"[tenant: {tenant}]"
    return f"[tenant: {tenant!r}]"
