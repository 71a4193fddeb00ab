"""Unit tests for HeaderStrategy."""

from __future__ import annotations

import pytest

from tenancy.exceptions import ConfigurationError
from tenancy.outcomes import NOT_FOUND, Failed, Found
from tenancy.pipeline import PipelineConfig
from tenancy.request import TenantRequest
from tenancy.strategies import HeaderStrategy
from tenancy.strategies.base import TRANSFORM_MESSAGE


@pytest.fixture
def config() -> PipelineConfig:
    return PipelineConfig()


class TestHeaderExtraction:
    """Tests for reading the tenant from a header."""

    def test_reads_default_header(self, make_request, config) -> None:
        """X-Tenant-ID should be read regardless of case."""
        request = make_request({"X-Tenant-ID": "tenant-123"})

        assert HeaderStrategy().extract(request, config) == Found("tenant-123")

    def test_missing_header_is_not_found(self, make_request, config) -> None:
        """No header should mean NotFound, not a failure."""
        assert HeaderStrategy().extract(make_request(), config) == NOT_FOUND

    def test_empty_header_is_not_found(self, make_request, config) -> None:
        """An empty value should be treated as absent."""
        request = make_request({"x-tenant-id": ""})

        assert HeaderStrategy().extract(request, config) == NOT_FOUND

    def test_custom_header_name(self, make_request, config) -> None:
        """A configured header name should be honoured."""
        request = make_request({"x-org": "globex", "x-tenant-id": "acme"})

        assert HeaderStrategy(header="x-org").extract(request, config) == Found(
            "globex"
        )

    def test_first_occurrence_wins(self, config) -> None:
        """With repeated headers the first value should be used."""
        request = TenantRequest.build(
            [("x-tenant-id", "first"), ("x-tenant-id", "second")]
        )

        assert HeaderStrategy().extract(request, config) == Found("first")

    def test_case_sensitive_requires_exact_name(self, make_request, config) -> None:
        """case_sensitive should disable case folding of the header name."""
        request = make_request({"x-tenant-id": "acme"})
        strategy = HeaderStrategy(header="X-Tenant-ID", case_sensitive=True)

        assert strategy.extract(request, config) == NOT_FOUND
        assert strategy.extract(
            make_request({"X-Tenant-ID": "acme"}), config
        ) == Found("acme")

    def test_transform_is_applied(self, make_request, config) -> None:
        """The transform result should become the tenant."""
        request = make_request({"x-tenant-id": "acme"})
        strategy = HeaderStrategy(transform=str.upper)

        assert strategy.extract(request, config) == Found("ACME")

    def test_failing_transform_returns_failed(self, make_request, config) -> None:
        """A raising transform should produce Failed, not an exception."""
        request = make_request({"x-tenant-id": "acme"})

        def reject(value):
            raise ValueError("unknown tenant")

        outcome = HeaderStrategy(transform=reject).extract(request, config)

        assert isinstance(outcome, Failed)
        assert outcome.reason.startswith("Header transformation failed:")
        assert "unknown tenant" in outcome.reason


class TestHeaderConfiguration:
    """Tests for option validation."""

    def test_non_string_header_rejected(self) -> None:
        """header must be a string."""
        with pytest.raises(ConfigurationError, match="header must be a string"):
            HeaderStrategy(header=123)  # type: ignore[arg-type]

    def test_non_boolean_case_sensitive_rejected(self) -> None:
        """case_sensitive must be a boolean."""
        with pytest.raises(
            ConfigurationError, match="case_sensitive must be a boolean"
        ):
            HeaderStrategy(case_sensitive="yes")  # type: ignore[arg-type]

    def test_two_argument_transform_rejected(self) -> None:
        """transform must accept exactly one argument."""
        with pytest.raises(ConfigurationError) as exc_info:
            HeaderStrategy(transform=lambda a, b: a)

        assert exc_info.value.message == TRANSFORM_MESSAGE

    def test_validate_config_returns_none_for_valid_options(self) -> None:
        """Valid options should produce no error message."""
        assert HeaderStrategy.validate_config({"header": "x-org"}) is None
