"""Resolve the tenant from a request header.

Options:
    header: Header name to read (default: ``x-tenant-id``).
    case_sensitive: Match the header name exactly (default: False).
    transform: Optional one-argument callable applied to the value.

Example:
    GET /api/users
    X-Tenant-ID: tenant-123     -> Found("tenant-123")
    X-Tenant-ID:                -> NotFound
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from tenancy.outcomes import NOT_FOUND, Outcome
from tenancy.strategies.base import (
    BuiltinStrategy,
    Transform,
    apply_transform,
    first_error,
    validate_boolean,
    validate_string,
    validate_transform,
)

if TYPE_CHECKING:
    from tenancy.pipeline import PipelineConfig
    from tenancy.request import RequestLike


DEFAULT_HEADER = "x-tenant-id"


class HeaderStrategy(BuiltinStrategy):
    """Read the tenant from the first occurrence of a header."""

    name = "header"
    OPTIONS = ("header", "case_sensitive", "transform")

    def __init__(
        self,
        header: str | None = DEFAULT_HEADER,
        case_sensitive: bool | None = False,
        transform: Transform | None = None,
    ):
        self._raise_if_invalid(
            {"header": header, "case_sensitive": case_sensitive, "transform": transform}
        )
        self.header_name = header or DEFAULT_HEADER
        self.case_sensitive = bool(case_sensitive)
        self.transform = transform

    @classmethod
    def validate_config(cls, options: Mapping[str, Any]) -> str | None:
        return first_error(
            validate_string(options, "header"),
            validate_boolean(options, "case_sensitive"),
            validate_transform(options),
        )

    def extract(self, request: RequestLike, config: PipelineConfig) -> Outcome:
        value = request.header(self.header_name, case_sensitive=self.case_sensitive)
        if not value:
            return NOT_FOUND
        return apply_transform(self.transform, value, "Header")

    def __repr__(self) -> str:
        return f"HeaderStrategy(header={self.header_name!r})"
