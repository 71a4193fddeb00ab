"""Tenant resolution pipeline.

Runs the configured strategies in order against one request:

    Pending ──Found(tenant)──────────────▶ Resolved(tenant)   (stop)
       │  ──NotFound / Found(None)──────▶ next strategy
       │  ──Failed(reason)──────────────▶ Unresolved(reason)  (stop)
       │  ──strategy raised─────────────▶ next strategy (reported)
       └──list exhausted────────────────▶ Unresolved

On ``Resolved`` the tenant is written to the context store, bound into log
metadata and reported to the probe. On ``Unresolved`` the request is halted
with a 400 when ``require_resolved`` is set and passed through untouched
otherwise. The pipeline never raises once constructed.

Usage:
    resolver = TenantResolver(
        PipelineConfig(strategies=["header", ("subdomain", {"position": "last"})])
    )
    result = resolver.process(TenantRequest.build({"x-tenant-id": "acme"}))
    result.tenant   # "acme"
    current()       # "acme"
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from tenancy.context import DEFAULT_CONTEXT_KEY, ContextStore, Snapshot
from tenancy.exceptions import ConfigurationError
from tenancy.log_metadata import LogMetadata
from tenancy.observability import (
    DefaultTenantResolutionProbe,
    NullTenantResolutionProbe,
    TenantResolutionProbe,
)
from tenancy.outcomes import (
    Failed,
    Found,
    Resolution,
    Resolved,
    Unresolved,
    is_outcome,
)
from tenancy.strategies import (
    ClaimStrategy,
    ExtractionStrategy,
    HeaderStrategy,
    SubdomainStrategy,
    build_strategies,
    strategy_name,
)

if TYPE_CHECKING:
    from infrastructure.observability.context import ObservationContext
    from infrastructure.settings import TenancySettings
    from tenancy.request import RequestLike


BAD_REQUEST = 400


def _default_strategies() -> tuple[ExtractionStrategy, ...]:
    return (HeaderStrategy(),)


@dataclass(frozen=True)
class PipelineConfig:
    """Validated, immutable pipeline configuration.

    ``strategies`` accepts any entries understood by ``build_strategies`` and
    is normalised to a tuple of strategy instances. Safe to share between
    concurrent requests.

    Raises:
        ConfigurationError: If any option is invalid.
    """

    strategies: Any = field(default_factory=_default_strategies)
    context_key: str = DEFAULT_CONTEXT_KEY
    logger_metadata_enabled: bool = True
    observability_enabled: bool = True
    require_resolved: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "strategies", build_strategies(self.strategies))
        if not isinstance(self.context_key, str) or not self.context_key:
            raise ConfigurationError("context_key must be a string")
        for flag in (
            "logger_metadata_enabled",
            "observability_enabled",
            "require_resolved",
        ):
            if not isinstance(getattr(self, flag), bool):
                raise ConfigurationError(f"{flag} must be a boolean")

    @classmethod
    def from_settings(cls, settings: TenancySettings) -> PipelineConfig:
        """Build a configuration from environment-backed settings."""
        entries: list[Any] = []
        for source in settings.sources:
            if source == "header":
                entries.append(HeaderStrategy(header=settings.header_name))
            elif source == "subdomain":
                entries.append(
                    SubdomainStrategy(
                        exclude=settings.subdomain_exclude,
                        position=settings.subdomain_position,
                    )
                )
            elif source in ("jwt", "claim"):
                secret = settings.jwt_secret.get_secret_value() or None
                entries.append(
                    ClaimStrategy(
                        claim=settings.jwt_claim,
                        cookie=settings.jwt_cookie,
                        verify=settings.jwt_verify,
                        secret=secret,
                        algorithm=settings.jwt_algorithm,
                    )
                )
            else:
                entries.append(source)
        return cls(
            strategies=entries,
            context_key=settings.context_key,
            logger_metadata_enabled=settings.logger_metadata_enabled,
            observability_enabled=settings.observability_enabled,
            require_resolved=settings.require_resolved,
        )


@dataclass(frozen=True)
class PipelineResult:
    """What the host should do with the request after resolution.

    Attributes:
        resolution: ``Resolved`` or ``Unresolved``.
        halted: True when processing must stop here.
        status_code: Status to respond with when halted.
    """

    resolution: Resolution
    halted: bool = False
    status_code: int | None = None

    @property
    def resolved(self) -> bool:
        return isinstance(self.resolution, Resolved)

    @property
    def tenant(self) -> Any:
        if isinstance(self.resolution, Resolved):
            return self.resolution.tenant
        return None


class TenantResolver:
    """Apply a ``PipelineConfig`` to incoming requests.

    Args:
        config: Pipeline configuration. Defaults to header resolution.
        store: Context store to write into.
        probe: Observability probe. Replaced by a no-op probe when
            observability is disabled in ``config``.
        log_metadata: Log metadata binder.
    """

    def __init__(
        self,
        config: PipelineConfig | None = None,
        store: ContextStore | None = None,
        probe: TenantResolutionProbe | None = None,
        log_metadata: LogMetadata | None = None,
    ):
        self._config = config or PipelineConfig()
        if not self._config.observability_enabled:
            probe = NullTenantResolutionProbe()
        self._probe = probe or DefaultTenantResolutionProbe()
        self._store = store or ContextStore(probe=self._probe)
        self._log_metadata = log_metadata or LogMetadata()

    @property
    def config(self) -> PipelineConfig:
        return self._config

    @property
    def store(self) -> ContextStore:
        return self._store

    @property
    def probe(self) -> TenantResolutionProbe:
        return self._probe

    @property
    def log_metadata(self) -> LogMetadata:
        return self._log_metadata

    def resolve(
        self,
        request: RequestLike,
        probe: TenantResolutionProbe | None = None,
    ) -> Resolution:
        """Run the strategy chain without touching the context store."""
        probe = probe or self._probe
        started = time.perf_counter()

        for strategy in self._config.strategies:
            name = strategy_name(strategy)
            try:
                outcome = strategy.extract(request, self._config)
                if not is_outcome(outcome):
                    raise TypeError(
                        f"strategy {name} returned {outcome!r} instead of an outcome"
                    )
            except Exception as e:
                probe.strategy_exception(error=e, strategy=name)
                continue

            if isinstance(outcome, Found):
                if outcome.tenant is None:
                    continue
                elapsed = (time.perf_counter() - started) * 1000
                return Resolved(
                    tenant=outcome.tenant, strategy=name, duration_ms=elapsed
                )

            if isinstance(outcome, Failed):
                probe.strategy_failed(reason=outcome.reason, strategy=name)
                return Unresolved(reason=outcome.reason, strategy=name)

        return Unresolved()

    def process(
        self,
        request: RequestLike,
        context: ObservationContext | None = None,
    ) -> PipelineResult:
        """Resolve the tenant for ``request`` and apply the side effects."""
        probe = self._probe.with_context(context) if context else self._probe
        resolution = self.resolve(request, probe=probe)

        if isinstance(resolution, Resolved):
            self._store.set(self._config.context_key, resolution.tenant)
            if self._config.logger_metadata_enabled:
                self._log_metadata.set(resolution.tenant)
            probe.tenant_resolved(
                tenant=resolution.tenant,
                strategy=resolution.strategy,
                duration_ms=resolution.duration_ms,
            )
            return PipelineResult(resolution=resolution)

        if self._config.require_resolved:
            return PipelineResult(
                resolution=resolution, halted=True, status_code=BAD_REQUEST
            )
        return PipelineResult(resolution=resolution)

    def current(self) -> Any:
        """The tenant resolved in the current execution context, if any."""
        return self._store.get(self._config.context_key)

    def snapshot(self) -> Snapshot | None:
        return self._store.snapshot()

    def apply_snapshot(self, snapshot: Snapshot | None) -> None:
        self._store.apply_snapshot(snapshot)
        if snapshot is not None and self._config.logger_metadata_enabled:
            tenant = snapshot.get(self._config.context_key)
            if tenant is not None:
                self._log_metadata.set(tenant)

    def clear(self) -> None:
        """Remove the tenant from the current context and log metadata."""
        tenant = self._store.get(self._config.context_key)
        self._store.clear(self._config.context_key)
        if self._config.logger_metadata_enabled:
            self._log_metadata.clear()
        self._probe.tenant_cleared(tenant=tenant)
