"""Request-scoped tenant resolution.

Determines the tenant of each incoming request with an ordered chain of
extraction strategies and makes it available, through execution-context-local
storage, to request handlers, structured logs and background work.

Components:
- context: ContextStore over contextvars, snapshot/apply_snapshot
- strategies: header, subdomain and JWT claim extraction
- pipeline: PipelineConfig and TenantResolver
- propagation: carry tenant context into threads and executors
- log_metadata: structlog contextvars binding
- observability: domain probe for resolution events
- middleware: ASGI middleware and FastAPI dependencies
- testing: helpers for testing tenant-aware code
"""

from tenancy.context import (
    DEFAULT_CONTEXT_KEY,
    NAMESPACE,
    ContextStore,
    current,
    get_default_store,
)
from tenancy.exceptions import ConfigurationError, NotPresentError, TenancyError
from tenancy.outcomes import (
    NOT_FOUND,
    Failed,
    Found,
    NotFound,
    Resolved,
    Unresolved,
)
from tenancy.pipeline import PipelineConfig, PipelineResult, TenantResolver
from tenancy.propagation import bind_snapshot, submit_with_tenant
from tenancy.request import TenantRequest
from tenancy.strategies import (
    ClaimStrategy,
    FunctionStrategy,
    HeaderStrategy,
    SubdomainStrategy,
    build_strategies,
)


def snapshot():
    """Capture the tenant context of the current execution context."""
    return get_default_store().snapshot()


def apply_snapshot(captured) -> None:
    """Apply a snapshot taken with ``snapshot()`` to the current context."""
    get_default_store().apply_snapshot(captured)


__all__ = [
    "ClaimStrategy",
    "ConfigurationError",
    "ContextStore",
    "DEFAULT_CONTEXT_KEY",
    "Failed",
    "Found",
    "FunctionStrategy",
    "HeaderStrategy",
    "NAMESPACE",
    "NOT_FOUND",
    "NotFound",
    "NotPresentError",
    "PipelineConfig",
    "PipelineResult",
    "Resolved",
    "SubdomainStrategy",
    "TenancyError",
    "TenantRequest",
    "TenantResolver",
    "Unresolved",
    "apply_snapshot",
    "bind_snapshot",
    "build_strategies",
    "current",
    "get_default_store",
    "snapshot",
    "submit_with_tenant",
]
