"""Carry tenant context into work that runs in another execution context.

asyncio tasks inherit the context they were created in, so the tenant is
already visible there. Threads, thread pools and anything scheduled outside
the request's context start empty; wrap the callable with ``bind_snapshot``
before handing it over:

    executor.submit(bind_snapshot(send_invoice), invoice_id)

The snapshot is taken when ``bind_snapshot`` is called, not when the
callable runs.
"""

from __future__ import annotations

import functools
from collections.abc import Callable
from concurrent.futures import Executor, Future
from typing import Any, TypeVar

import structlog

from tenancy.context import ContextStore, get_default_store
from tenancy.log_metadata import snapshot_metadata

T = TypeVar("T")


def bind_snapshot(
    fn: Callable[..., T],
    store: ContextStore | None = None,
) -> Callable[..., T]:
    """Return ``fn`` wrapped to run with the caller's tenant context applied."""
    store = store or get_default_store()
    snapshot = store.snapshot()
    metadata = snapshot_metadata()

    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> T:
        # Worker threads are reused; leave them as empty as they were found.
        with store.isolated(), structlog.contextvars.bound_contextvars(**metadata):
            store.apply_snapshot(snapshot)
            return fn(*args, **kwargs)

    return wrapper


def submit_with_tenant(
    executor: Executor,
    fn: Callable[..., T],
    *args: Any,
    store: ContextStore | None = None,
    **kwargs: Any,
) -> Future[T]:
    """Submit ``fn`` to ``executor`` with the current tenant context."""
    return executor.submit(bind_snapshot(fn, store=store), *args, **kwargs)
