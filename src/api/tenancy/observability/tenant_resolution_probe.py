"""Domain probe for tenant resolution.

Following Domain-Oriented Observability patterns, this probe captures
domain-significant events of the resolution pipeline and the context store:
a tenant being resolved or cleared, a strategy failing or raising, and
snapshots being taken or applied.

Every event carries a ``count`` measurement of 1; resolution additionally
carries ``duration_ms``.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from infrastructure.observability.context import ObservationContext


TENANT_RESOLVED = "tenant.resolved"
TENANT_CLEARED = "tenant.cleared"
STRATEGY_EXCEPTION = "error.strategy_exception"
STRATEGY_FAILED = "error.strategy_failed"
SNAPSHOT_CREATED = "context.snapshot_created"
SNAPSHOT_APPLIED = "context.snapshot_applied"

EVENTS = (
    TENANT_RESOLVED,
    TENANT_CLEARED,
    STRATEGY_EXCEPTION,
    STRATEGY_FAILED,
    SNAPSHOT_CREATED,
    SNAPSHOT_APPLIED,
)


class TenantResolutionProbe(Protocol):
    """Domain probe for tenant resolution operations."""

    def tenant_resolved(
        self,
        tenant: Any,
        strategy: str,
        duration_ms: float,
    ) -> None:
        """Record that a strategy resolved the tenant."""
        ...

    def tenant_cleared(self, tenant: Any) -> None:
        """Record that the tenant was removed from the current context."""
        ...

    def strategy_exception(self, error: Exception, strategy: str) -> None:
        """Record that a strategy raised instead of returning an outcome."""
        ...

    def strategy_failed(self, reason: str, strategy: str | None = None) -> None:
        """Record that a strategy returned a failure and stopped the chain."""
        ...

    def snapshot_created(self, keys: int) -> None:
        """Record that the tenant context was captured."""
        ...

    def snapshot_applied(self, keys: int) -> None:
        """Record that a captured tenant context was applied."""
        ...

    def with_context(self, context: ObservationContext) -> TenantResolutionProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultTenantResolutionProbe:
    """Default implementation of TenantResolutionProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        """Get context metadata as kwargs for logging."""
        if self._context is None:
            return {}
        return self._context.as_dict()

    def with_context(
        self, context: ObservationContext
    ) -> DefaultTenantResolutionProbe:
        """Create a new probe with observation context bound."""
        return DefaultTenantResolutionProbe(logger=self._logger, context=context)

    def tenant_resolved(
        self,
        tenant: Any,
        strategy: str,
        duration_ms: float,
    ) -> None:
        """Record that a strategy resolved the tenant."""
        self._logger.debug(
            TENANT_RESOLVED,
            tenant=tenant,
            strategy=strategy,
            count=1,
            duration_ms=duration_ms,
            **self._get_context_kwargs(),
        )

    def tenant_cleared(self, tenant: Any) -> None:
        """Record that the tenant was removed from the current context."""
        self._logger.debug(
            TENANT_CLEARED,
            tenant=tenant,
            count=1,
            **self._get_context_kwargs(),
        )

    def strategy_exception(self, error: Exception, strategy: str) -> None:
        """Record that a strategy raised instead of returning an outcome."""
        self._logger.error(
            STRATEGY_EXCEPTION,
            strategy=strategy,
            error=str(error),
            error_type=type(error).__name__,
            count=1,
            **self._get_context_kwargs(),
        )

    def strategy_failed(self, reason: str, strategy: str | None = None) -> None:
        """Record that a strategy returned a failure and stopped the chain."""
        self._logger.warning(
            STRATEGY_FAILED,
            reason=reason,
            strategy=strategy,
            count=1,
            **self._get_context_kwargs(),
        )

    def snapshot_created(self, keys: int) -> None:
        """Record that the tenant context was captured."""
        self._logger.debug(
            SNAPSHOT_CREATED,
            keys=keys,
            count=1,
            **self._get_context_kwargs(),
        )

    def snapshot_applied(self, keys: int) -> None:
        """Record that a captured tenant context was applied."""
        self._logger.debug(
            SNAPSHOT_APPLIED,
            keys=keys,
            count=1,
            **self._get_context_kwargs(),
        )


class NullTenantResolutionProbe:
    """Probe that drops every event. Used when observability is disabled."""

    def with_context(self, context: ObservationContext) -> NullTenantResolutionProbe:
        return self

    def tenant_resolved(self, tenant: Any, strategy: str, duration_ms: float) -> None:
        pass

    def tenant_cleared(self, tenant: Any) -> None:
        pass

    def strategy_exception(self, error: Exception, strategy: str) -> None:
        pass

    def strategy_failed(self, reason: str, strategy: str | None = None) -> None:
        pass

    def snapshot_created(self, keys: int) -> None:
        pass

    def snapshot_applied(self, keys: int) -> None:
        pass
