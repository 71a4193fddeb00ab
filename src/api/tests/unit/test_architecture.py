"""Architecture tests using pytest-archon.

These tests keep the resolution core framework-agnostic: only the ASGI
integration may depend on FastAPI, and the infrastructure layer never
depends on the tenancy package.
"""

from pytest_archon import archrule


class TestTenancyBoundaries:
    """Tests that the tenancy core has no forbidden dependencies."""

    def test_core_does_not_import_fastapi(self):
        """Only the middleware module may depend on FastAPI.

        Strategies and the pipeline should be usable from any ASGI or
        non-HTTP host.
        """
        (
            archrule("tenancy_core_no_fastapi")
            .match("tenancy*")
            .exclude("tenancy.middleware")
            .should_not_import("fastapi*")
            .check("tenancy")
        )

    def test_outcomes_have_no_dependencies(self):
        """Outcome values should not depend on anything else in the package."""
        (
            archrule("outcomes_standalone")
            .match("tenancy.outcomes")
            .should_not_import("tenancy.*", "structlog*", "starlette*", "jose*")
            .check("tenancy")
        )

    def test_request_view_does_not_import_starlette(self):
        """The request view should import without any web framework installed."""
        (
            archrule("request_no_starlette")
            .match("tenancy.request")
            .should_not_import("starlette*", "fastapi*")
            .check("tenancy")
        )

    def test_core_does_not_import_test_helpers(self):
        """Test helpers build on the core, never the other way round."""
        (
            archrule("core_no_testing")
            .match("tenancy*")
            .exclude("tenancy.testing")
            .should_not_import("tenancy.testing")
            .check("tenancy")
        )

    def test_strategies_do_not_import_fastapi(self):
        """Strategies only see the framework-agnostic request view."""
        (
            archrule("strategies_no_fastapi")
            .match("tenancy.strategies*")
            .should_not_import("fastapi*")
            .check("tenancy")
        )


class TestInfrastructureBoundaries:
    """Tests that infrastructure stays below the tenancy package."""

    def test_infrastructure_does_not_import_tenancy(self):

        """Infrastructure should stay usable without the tenancy package."""
        (
            archrule("infrastructure_no_tenancy")
            .match("infrastructure*")
            .should_not_import("tenancy*")
            .check("infrastructure")
        )
