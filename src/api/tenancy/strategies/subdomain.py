"""Resolve the tenant from the request host's subdomain.

Options:
    exclude: Labels that never identify a tenant
        (default: ``["www", "api", "admin"]``).
    position: ``"first"`` (leftmost label), ``"last"`` (rightmost label
        before domain and TLD that is not excluded) or a zero-based index
        (default: ``"first"``).
    transform: Optional one-argument callable applied to the label.
    min_parts: Minimum number of dot-separated labels (default: 3).

Examples (defaults):
    acme.myapp.com            -> Found("acme")
    www.myapp.com             -> NotFound
    myapp.com                 -> NotFound
    acme.myapp.com:4000       -> Found("acme")

With ``position="last"``:
    app.tenant.myapp.com      -> Found("tenant")
    acme..myapp.com           -> NotFound

Dotted IP addresses are treated like any other host, so ``10.0.0.1`` yields
``"10"`` with the defaults.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from tenancy.outcomes import NOT_FOUND, Outcome
from tenancy.strategies.base import (
    BuiltinStrategy,
    Transform,
    apply_transform,
    first_error,
    validate_transform,
)

if TYPE_CHECKING:
    from tenancy.pipeline import PipelineConfig
    from tenancy.request import RequestLike


DEFAULT_EXCLUDES = ("www", "api", "admin")
DEFAULT_MIN_PARTS = 3

Position = str | int


@dataclass(frozen=True)
class HostParts:
    """A host split into subdomain, domain and TLD."""

    subdomain: str | None
    domain: str
    tld: str


def parse_host(host: str) -> HostParts:
    """Split a host into its components.

    >>> parse_host("tenant.example.com")
    HostParts(subdomain='tenant', domain='example', tld='com')
    >>> parse_host("app.tenant.example.com").subdomain
    'app.tenant'

    Raises:
        ValueError: If the host has fewer than two labels.
    """
    parts = host.split(".")
    if len(parts) < 2:
        raise ValueError("Invalid host format")
    subdomain = ".".join(parts[:-2]) or None
    return HostParts(subdomain=subdomain, domain=parts[-2], tld=parts[-1])


class SubdomainStrategy(BuiltinStrategy):
    """Read the tenant from a label of the ``host`` header."""

    name = "subdomain"
    OPTIONS = ("exclude", "position", "transform", "min_parts")

    def __init__(
        self,
        exclude: Sequence[str] | None = DEFAULT_EXCLUDES,
        position: Position | None = "first",
        transform: Transform | None = None,
        min_parts: int | None = DEFAULT_MIN_PARTS,
    ):
        self._raise_if_invalid(
            {
                "exclude": exclude,
                "position": position,
                "transform": transform,
                "min_parts": min_parts,
            }
        )
        self.exclude = frozenset(DEFAULT_EXCLUDES if exclude is None else exclude)
        self.position = "first" if position is None else position
        self.transform = transform
        self.min_parts = DEFAULT_MIN_PARTS if min_parts is None else min_parts

    @classmethod
    def validate_config(cls, options: Mapping[str, Any]) -> str | None:
        return first_error(
            _validate_exclude(options.get("exclude")),
            _validate_position(options.get("position")),
            validate_transform(options),
            _validate_min_parts(options.get("min_parts")),
        )

    def extract(self, request: RequestLike, config: PipelineConfig) -> Outcome:
        host = request.host
        if not host:
            return NOT_FOUND

        parts = host.split(":")[0].split(".")
        if len(parts) < self.min_parts:
            return NOT_FOUND

        if self.position == "last":
            label = self._last_included(parts)
        else:
            label = _label_at(parts, self.position)
            if label in self.exclude:
                label = None

        if not label:
            return NOT_FOUND
        return apply_transform(self.transform, label, "Subdomain")

    def _last_included(self, parts: list[str]) -> str | None:
        # Everything but domain and TLD, scanned right to left; an empty
        # label ends the scan
        for label in reversed(parts[:-2]):
            if not label:
                return None
            if label not in self.exclude:
                return label
        return None

    def __repr__(self) -> str:
        return f"SubdomainStrategy(position={self.position!r})"


def _label_at(parts: list[str], position: Position) -> str | None:
    if len(parts) < 3:
        return None
    if position == "first":
        return parts[0]
    if isinstance(position, int) and position < len(parts) - 2:
        return parts[position]
    return None


def _validate_exclude(exclude: Any) -> str | None:
    if exclude is None:
        return None
    if isinstance(exclude, (list, tuple, frozenset, set)) and all(
        isinstance(item, str) for item in exclude
    ):
        return None
    return "exclude must be a list of strings"


def _validate_position(position: Any) -> str | None:
    if position is None or position in ("first", "last"):
        return None
    if isinstance(position, int) and not isinstance(position, bool) and position >= 0:
        return None
    return "position must be 'first', 'last', or a non-negative integer"


def _validate_min_parts(min_parts: Any) -> str | None:
    if min_parts is None:
        return None
    if (
        isinstance(min_parts, int)
        and not isinstance(min_parts, bool)
        and min_parts >= 2
    ):
        return None
    return "min_parts must be an integer >= 2"
