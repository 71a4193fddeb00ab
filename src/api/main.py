"""Main FastAPI application entry point."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Annotated, Any

import structlog
from fastapi import Depends, FastAPI

from infrastructure.logging import configure_logging
from infrastructure.settings import TenancySettings, get_tenancy_settings
from infrastructure.version import __version__
from tenancy.middleware import (
    TenantResolutionMiddleware,
    get_current_tenant,
    require_tenant,
)
from tenancy.pipeline import PipelineConfig, TenantResolver
from tenancy.strategies import strategy_name


@asynccontextmanager
async def tenancy_lifespan(app: FastAPI):
    """Application lifespan context.

    Configures logging and reports the active resolution chain.
    """
    configure_logging()
    resolver: TenantResolver = app.state.resolver
    structlog.get_logger().info(
        "tenancy_started",
        strategies=[strategy_name(s) for s in resolver.config.strategies],
        require_resolved=resolver.config.require_resolved,
    )
    yield


def create_app(settings: TenancySettings | None = None) -> FastAPI:
    """Build the application with tenant resolution installed.

    Args:
        settings: Tenancy settings. Loaded from the environment if omitted.

    Raises:
        ConfigurationError: If the settings describe an invalid pipeline.
    """
    settings = settings or get_tenancy_settings()
    resolver = TenantResolver(PipelineConfig.from_settings(settings))

    app = FastAPI(
        title="Tenancy API",
        description="Request-scoped tenant resolution",
        version=__version__,
        lifespan=tenancy_lifespan,
    )
    app.state.resolver = resolver
    app.add_middleware(TenantResolutionMiddleware, resolver=resolver)

    @app.get("/health")
    def health():
        """Basic health check endpoint."""
        return {"status": "ok"}

    @app.get("/tenant")
    async def tenant(
        current: Annotated[Any, Depends(get_current_tenant)],
    ) -> dict:
        """Report the tenant resolved for this request, if any."""
        return {"tenant": current, "context": resolver.current()}

    @app.get("/tenant/required")
    async def required_tenant(
        current: Annotated[Any, Depends(require_tenant)],
    ) -> dict:
        """Report the tenant, rejecting requests without one."""
        return {"tenant": current}

    return app


app = create_app()
