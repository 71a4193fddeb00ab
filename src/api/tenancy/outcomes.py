"""Result values produced by extraction strategies and the pipeline.

A strategy answers with exactly one of ``Found``, ``NotFound`` or ``Failed``.
The pipeline folds those answers into ``Resolved`` or ``Unresolved``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class Found:
    """A strategy extracted a value.

    A ``Found`` carrying ``None`` is treated by the pipeline like ``NotFound``.
    """

    tenant: Any


@dataclass(frozen=True)
class NotFound:
    """The strategy had no applicable data. Not an error."""


@dataclass(frozen=True)
class Failed:
    """The strategy attempted extraction and could not complete it."""

    reason: str


NOT_FOUND = NotFound()

Outcome = Union[Found, NotFound, Failed]


def is_outcome(value: object) -> bool:
    return isinstance(value, (Found, NotFound, Failed))


@dataclass(frozen=True)
class Resolved:
    """The pipeline resolved a tenant.

    Attributes:
        tenant: The resolved tenant identifier.
        strategy: Name of the strategy that produced it.
        duration_ms: Wall time spent in the strategy chain.
    """

    tenant: Any
    strategy: str
    duration_ms: float = 0.0


@dataclass(frozen=True)
class Unresolved:
    """No strategy produced a tenant.

    Attributes:
        reason: The failure reason when a strategy returned ``Failed``;
            ``None`` when the chain was simply exhausted.
        strategy: Name of the failing strategy, if any.
    """

    reason: str | None = None
    strategy: str | None = None

    @property
    def failed(self) -> bool:
        return self.reason is not None


Resolution = Union[Resolved, Unresolved]
