"""Unit tests for tenant log metadata."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
import structlog

from tenancy.log_metadata import (
    DEFAULT_METADATA_KEY,
    LogMetadata,
    format_tenant,
    restore_metadata,
    snapshot_metadata,
    tenant_metadata,
)


@pytest.fixture
def metadata() -> LogMetadata:
    return LogMetadata()


class TestLogMetadata:
    """Tests for LogMetadata."""

    def test_set_binds_tenant_id(self, metadata: LogMetadata) -> None:

        """set should bind tenant_id into the structlog context."""
        metadata.set("acme")

        assert structlog.contextvars.get_contextvars() == {"tenant_id": "acme"}
        assert metadata.get() == "acme"
        assert metadata.present()

    def test_clear_unbinds(self, metadata: LogMetadata) -> None:

        """clear should remove the binding."""
        metadata.set("acme")
        metadata.clear()

        assert metadata.get() is None
        assert not metadata.present()

    def test_custom_key(self) -> None:

        """A custom key should be used instead of tenant_id."""
        metadata = LogMetadata(key="org_id")
        metadata.set("globex")

        assert structlog.contextvars.get_contextvars() == {"org_id": "globex"}
        assert metadata.key == "org_id"
        assert DEFAULT_METADATA_KEY == "tenant_id"

    def test_temporary_restores_original(self, metadata: LogMetadata) -> None:

        """The previous value comes back after the block."""
        metadata.set("acme")

        with metadata.temporary("globex"):
            assert metadata.get() == "globex"

        assert metadata.get() == "acme"

    def test_with_metadata_restores_on_exception(self, metadata: LogMetadata) -> None:

        """The binding is removed even when the callable raises."""
        def boom():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            metadata.with_metadata("globex", boom)

        assert metadata.get() is None

    def test_with_metadata_returns_result(self, metadata: LogMetadata) -> None:

        """with_metadata should return the callable's result."""
        assert metadata.with_metadata("globex", metadata.get) == "globex"

    def test_log_with_tenant_binds_only_for_the_event(
        self, metadata: LogMetadata
    ) -> None:
        """The tenant should be bound while logging and unbound afterwards."""
        logger = MagicMock()
        seen = {}
        logger.info.side_effect = lambda event, **kw: seen.update(
            structlog.contextvars.get_contextvars()
        )

        with patch("tenancy.log_metadata.structlog.get_logger", return_value=logger):
            metadata.log_with_tenant("info", "invoice_sent", "acme", invoice=7)

        logger.info.assert_called_once_with("invoice_sent", invoice=7)
        assert seen == {"tenant_id": "acme"}
        assert metadata.get() is None


class TestMetadataSnapshots:
    """Tests for the module-level metadata helpers."""

    def test_tenant_metadata_filters_keys(self) -> None:

        """Only tenant-related keys are reported."""
        structlog.contextvars.bind_contextvars(
            tenant_id="acme", org_id="org-1", user_id="user-1"
        )

        assert tenant_metadata() == {"tenant_id": "acme", "org_id": "org-1"}

    def test_snapshot_and_restore(self) -> None:

        """A restored snapshot should bring back only tenant keys."""
        structlog.contextvars.bind_contextvars(tenant_id="acme", request_id="r-1")
        captured = snapshot_metadata()
        structlog.contextvars.clear_contextvars()

        restore_metadata(captured)

        assert structlog.contextvars.get_contextvars() == {"tenant_id": "acme"}

    def test_restore_none_is_noop(self) -> None:

        """Restoring None should leave the context untouched."""
        restore_metadata(None)

        assert structlog.contextvars.get_contextvars() == {}


class TestFormatTenant:
    """Tests for format_tenant."""

    @pytest.mark.parametrize(
        ("tenant", "expected"),
        [
            ("acme", "[tenant: acme]"),
            (42, "[tenant: 42]"),
            (None, ""),
            ({"id": 1}, "[tenant: {'id': 1}]"),
        ],
    )
    def test_format(self, tenant, expected) -> None:
        """Tenants are formatted for log lines; None formats as empty."""
        assert format_tenant(tenant) == expected
