"""Helpers for testing code that depends on the tenant context.

Nothing here imports a test framework; assertion helpers raise plain
``AssertionError`` so they read naturally under pytest.

Usage:
    from tenancy.testing import assert_tenant, put_tenant_header, with_tenant

    def test_invoice_uses_tenant():
        with with_tenant("acme"):
            assert_tenant("acme")
            ...

    def test_header_resolution():
        request = put_tenant_header(TenantRequest(), "acme")
        assert TenantResolver().resolve(request).tenant == "acme"
"""

from __future__ import annotations

import base64
import dataclasses
import json
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

import structlog
from jose import jwt

from tenancy.context import DEFAULT_CONTEXT_KEY, Snapshot, get_default_store
from tenancy.outcomes import Found, Outcome, is_outcome
from tenancy.pipeline import PipelineConfig, TenantResolver
from tenancy.request import TenantRequest

if TYPE_CHECKING:
    from infrastructure.observability.context import ObservationContext


class RecordingProbe:
    """TenantResolutionProbe that keeps every event it receives.

    Events are ``(method_name, kwargs)`` pairs in the order they were
    reported; contexts passed to ``with_context`` are kept in ``contexts``.
    """

    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []
        self.contexts: list[ObservationContext] = []

    def names(self) -> list[str]:
        return [name for name, _ in self.events]

    def clear(self) -> None:
        self.events.clear()
        self.contexts.clear()

    def with_context(self, context: ObservationContext) -> RecordingProbe:
        self.contexts.append(context)
        return self

    def tenant_resolved(self, tenant: Any, strategy: str, duration_ms: float) -> None:
        self.events.append(
            (
                "tenant_resolved",
                {"tenant": tenant, "strategy": strategy, "duration_ms": duration_ms},
            )
        )

    def tenant_cleared(self, tenant: Any) -> None:
        self.events.append(("tenant_cleared", {"tenant": tenant}))

    def strategy_exception(self, error: Exception, strategy: str) -> None:
        self.events.append(
            ("strategy_exception", {"error": error, "strategy": strategy})
        )

    def strategy_failed(self, reason: str, strategy: str | None = None) -> None:
        self.events.append(
            ("strategy_failed", {"reason": reason, "strategy": strategy})
        )

    def snapshot_created(self, keys: int) -> None:
        self.events.append(("snapshot_created", {"keys": keys}))

    def snapshot_applied(self, keys: int) -> None:
        self.events.append(("snapshot_applied", {"keys": keys}))


def recording_resolver(**options: Any) -> tuple[TenantResolver, RecordingProbe]:
    """Build a resolver whose events are recorded.

    Args:
        **options: Passed to ``PipelineConfig``.
    """
    probe = RecordingProbe()
    return TenantResolver(PipelineConfig(**options), probe=probe), probe


class StubStrategy:
    """Strategy answering every request with a fixed result.

    ``result`` may be an outcome (returned as is), an exception instance
    (raised) or any other value (returned as ``Found(result)``). Requests
    seen are kept in ``requests``.
    """

    def __init__(self, result: Any, name: str = "stub"):
        self.result = result
        self.name = name
        self.requests: list[Any] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    def extract(self, request: Any, config: PipelineConfig) -> Outcome:
        self.requests.append(request)
        if isinstance(self.result, BaseException):
            raise self.result
        if is_outcome(self.result):
            return self.result
        return Found(self.result)

    def __repr__(self) -> str:
        return f"StubStrategy({self.result!r})"


# Request builders


def put_tenant_header(
    request: TenantRequest,
    tenant: str,
    header_name: str = "x-tenant-id",
) -> TenantRequest:
    """Return a copy of ``request`` carrying ``tenant`` in a header."""
    return _add_header(request, header_name, tenant)


def put_tenant_subdomain(
    request: TenantRequest,
    tenant: str,
    base_domain: str,
) -> TenantRequest:
    """Return a copy of ``request`` whose host is ``<tenant>.<base_domain>``."""
    host = f"{tenant}.{base_domain}"
    request = _add_header(request, "host", host)
    return dataclasses.replace(request, host_override=host)


def put_tenant_jwt(
    request: TenantRequest,
    tenant: Any,
    claim: str = "tenant_id",
    header: str = "authorization",
    prefix: str | None = "Bearer ",
    cookie: str | None = None,
    secret: str | None = None,
) -> TenantRequest:
    """Return a copy of ``request`` carrying a token with ``tenant`` in ``claim``.

    Dotted claims are written as nested objects. The token goes into
    ``cookie`` when given, otherwise into ``header`` behind ``prefix``.
    """
    token = create_test_jwt(_nest(claim, tenant), secret=secret)
    if cookie is not None:
        cookies = dict(request.cookies)
        cookies[cookie] = token
        return dataclasses.replace(request, cookies=MappingProxyType(cookies))
    return _add_header(request, header, f"{prefix or ''}{token}")


def create_test_jwt(
    payload: Mapping[str, Any],
    secret: str | None = None,
    algorithm: str = "HS256",
) -> str:
    """Encode ``payload`` as a JWT.

    Without ``secret`` the token is unsigned (``alg: none``, empty signature)
    and only readable by strategies that skip verification.
    """
    if secret is not None:
        return jwt.encode(dict(payload), secret, algorithm=algorithm)
    header = _encode_part({"alg": "none", "typ": "JWT"})
    return f"{header}.{_encode_part(payload)}."


def _encode_part(data: Mapping[str, Any]) -> str:
    raw = json.dumps(dict(data), separators=(",", ":")).encode()
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _nest(claim: str, value: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    node = payload
    *parents, leaf = claim.split(".")
    for part in parents:
        node = node.setdefault(part, {})
    node[leaf] = value
    return payload


def _add_header(request: TenantRequest, name: str, value: str) -> TenantRequest:
    # Prepended so the new value wins over any header of the same name
    headers = ((name, value), *request.headers)
    return dataclasses.replace(request, headers=headers)


# Context helpers


def set_current(tenant: Any, key: str = DEFAULT_CONTEXT_KEY) -> None:
    """Store ``tenant`` in the current context without running a pipeline."""
    get_default_store().set(key, tenant)


def clear_tenant(key: str = DEFAULT_CONTEXT_KEY) -> None:
    get_default_store().clear(key)


@contextmanager
def with_tenant(tenant: Any, key: str = DEFAULT_CONTEXT_KEY) -> Iterator[Any]:
    """Set ``tenant`` for the block, restoring the previous state afterwards."""
    with get_default_store().temporary(key, tenant):
        yield tenant


@contextmanager
def clean_context() -> Iterator[None]:
    """Run the block against an empty tenant context and log context.

    Every write made inside the block is discarded when it exits.
    """
    store = get_default_store()
    with store.isolated():
        for key in list(store.entries()):
            store.clear(key)
        structlog.contextvars.clear_contextvars()
        try:
            yield
        finally:
            structlog.contextvars.clear_contextvars()


def create_test_snapshot(tenant: Any, key: str = DEFAULT_CONTEXT_KEY) -> Snapshot:
    """Build a snapshot as ``snapshot()`` would return it for ``tenant``."""
    return MappingProxyType({key: tenant})


# Assertions


def assert_tenant(expected: Any, key: str = DEFAULT_CONTEXT_KEY) -> None:
    actual = get_default_store().get(key)
    if actual != expected:
        raise AssertionError(f"Expected tenant to be {expected!r}, got {actual!r}")


def refute_tenant(unwanted: Any, key: str = DEFAULT_CONTEXT_KEY) -> None:
    if get_default_store().get(key) == unwanted:
        raise AssertionError(f"Expected tenant not to be {unwanted!r}")


def assert_tenant_present(key: str = DEFAULT_CONTEXT_KEY) -> None:
    if not get_default_store().present(key):
        raise AssertionError("Expected tenant to be present, but none was set")


def assert_no_tenant(key: str = DEFAULT_CONTEXT_KEY) -> None:
    actual = get_default_store().get(key)
    if actual is not None:
        raise AssertionError(f"Expected no tenant to be set, but found {actual!r}")
