"""ASGI integration for the tenant resolution pipeline.

Usage with FastAPI:
    app = FastAPI()
    app.add_middleware(TenantResolutionMiddleware, resolver=TenantResolver(config))

    @app.get("/orders")
    async def list_orders(
        tenant: Annotated[str, Depends(require_tenant)],
    ):
        ...

The middleware runs once per HTTP or websocket connection. Entries it writes
to the context store and log metadata are discarded when the downstream
application returns. The resolved tenant is also placed on ``request.state``
so dependencies running in a worker thread can read it.
Rejected websocket handshakes are closed with code 1008 instead of a 400.
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

import structlog
from fastapi import HTTPException, status
from starlette.requests import HTTPConnection, Request
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Receive, Scope, Send
from starlette.websockets import WebSocketClose

from infrastructure.observability.context import ObservationContext
from tenancy.pipeline import TenantResolver
from tenancy.request import TenantRequest

UNRESOLVED_DETAIL = "Tenant could not be resolved"


class TenantResolutionMiddleware:
    """Resolve the tenant before the wrapped application sees the request."""

    def __init__(self, app: ASGIApp, resolver: TenantResolver | None = None):
        self.app = app
        self.resolver = resolver or TenantResolver()

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        request = request_from_scope(scope)
        context = ObservationContext(
            request_id=request.header("x-request-id") or str(uuid.uuid4()),
            method=scope.get("method"),
            path=scope.get("path"),
        )

        with self.resolver.store.isolated():
            result = self.resolver.process(request, context=context)
            scope.setdefault("state", {})["tenant"] = result.tenant
            try:
                if result.halted and scope["type"] == "websocket":
                    close = WebSocketClose(code=status.WS_1008_POLICY_VIOLATION)
                    await close(scope, receive, send)
                    return
                if result.halted:
                    response = JSONResponse(
                        {"detail": UNRESOLVED_DETAIL},
                        status_code=result.status_code or status.HTTP_400_BAD_REQUEST,
                    )
                    await response(scope, receive, send)
                    return
                await self.app(scope, receive, send)
            finally:
                if result.resolved and self.resolver.config.logger_metadata_enabled:
                    self.resolver.log_metadata.clear()


def request_from_scope(scope: Mapping[str, Any]) -> TenantRequest:
    """Build a TenantRequest from an ASGI HTTP or websocket scope."""
    connection = HTTPConnection(scope)
    pairs = tuple(
        (name.decode("latin-1"), value.decode("latin-1"))
        for name, value in connection.headers.raw
    )
    return TenantRequest(
        headers=pairs,
        cookies=MappingProxyType(dict(connection.cookies)),
    )


def get_current_tenant(request: Request) -> Any:
    """FastAPI dependency returning the resolved tenant, or None."""
    return getattr(request.state, "tenant", None)


def require_tenant(request: Request) -> Any:
    """FastAPI dependency returning the resolved tenant.

    Raises:
        HTTPException 400: If no tenant was resolved for this request.
    """
    tenant = getattr(request.state, "tenant", None)
    if tenant is None:
        structlog.get_logger().warning("tenant_required_but_missing")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=UNRESOLVED_DETAIL,
        )
    return tenant
