"""Framework-agnostic view of an inbound HTTP request.

Strategies only ever see this type: an ordered list of header pairs, a cookie
mapping and the host. Adapters build it from whatever the host framework
provides.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Protocol


class RequestLike(Protocol):
    """The request capabilities a strategy may depend on."""

    @property
    def headers(self) -> tuple[tuple[str, str], ...]: ...

    @property
    def cookies(self) -> Mapping[str, str]: ...

    @property
    def host(self) -> str | None: ...

    def header(self, name: str, case_sensitive: bool = False) -> str | None: ...


@dataclass(frozen=True)
class TenantRequest:
    """Immutable request snapshot consumed by extraction strategies.

    Attributes:
        headers: Header pairs in the order they were received. Names keep
            their original case.
        cookies: Cookie name to value.
        host_override: Explicit host, used instead of the ``host`` header
            when set.
    """

    headers: tuple[tuple[str, str], ...] = ()
    cookies: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    host_override: str | None = None

    @classmethod
    def build(
        cls,
        headers: Iterable[tuple[str, str]] | Mapping[str, str] = (),
        cookies: Mapping[str, str] | None = None,
        host: str | None = None,
    ) -> TenantRequest:
        """Convenience constructor accepting a header mapping or pair list."""
        if isinstance(headers, Mapping):
            pairs = tuple(headers.items())
        else:
            pairs = tuple((name, value) for name, value in headers)
        return cls(
            headers=pairs,
            cookies=MappingProxyType(dict(cookies or {})),
            host_override=host,
        )
        return cls(
            headers=pairs,
            cookies=MappingProxyType(dict(connection.cookies)),
        )

    def header(self, name: str, case_sensitive: bool = False) -> str | None:
        """Return the first header named ``name``, or None.

        Names are compared lower-cased unless ``case_sensitive`` is set.
        """
        if case_sensitive:
            for header_name, value in self.headers:
                if header_name == name:
                    return value
            return None

        wanted = name.lower()
        for header_name, value in self.headers:
            if header_name.lower() == wanted:
                return value
        return None

    @property
    def host(self) -> str | None:
        if self.host_override is not None:
            return self.host_override
        return self.header("host")
