"""Unit test fixtures shared by the tenancy tests."""

from __future__ import annotations

import pytest

from tenancy.request import TenantRequest
from tenancy.testing import RecordingProbe, clean_context


@pytest.fixture
def recording_probe() -> RecordingProbe:
    """Provide a probe that records events for assertions."""
    return RecordingProbe()


@pytest.fixture(autouse=True)
def clean_tenant_context():
    """Run every test against an empty tenant context and log context."""
    with clean_context():
        yield


@pytest.fixture
def make_request():
    """Build a TenantRequest from headers, cookies and host."""

    def _make(headers=None, cookies=None, host=None) -> TenantRequest:
        return TenantRequest.build(headers or {}, cookies=cookies, host=host)

    return _make
