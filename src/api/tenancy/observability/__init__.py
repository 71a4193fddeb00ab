"""Observability for tenant resolution."""

from tenancy.observability.tenant_resolution_probe import (
    EVENTS,
    SNAPSHOT_APPLIED,
    SNAPSHOT_CREATED,
    STRATEGY_EXCEPTION,
    STRATEGY_FAILED,
    TENANT_CLEARED,
    TENANT_RESOLVED,
    DefaultTenantResolutionProbe,
    NullTenantResolutionProbe,
    TenantResolutionProbe,
)

__all__ = [
    "DefaultTenantResolutionProbe",
    "EVENTS",
    "NullTenantResolutionProbe",
    "SNAPSHOT_APPLIED",
    "SNAPSHOT_CREATED",
    "STRATEGY_EXCEPTION",
    "STRATEGY_FAILED",
    "TENANT_CLEARED",
    "TENANT_RESOLVED",
    "TenantResolutionProbe",
]
