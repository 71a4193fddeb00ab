"""Tenant extraction strategies.

Built-in strategies are referenced by name, by class, or as a
``(name_or_class, options)`` pair; any object with an
``extract(request, config)`` method is accepted as a custom strategy.

    build_strategies([
        "header",
        ("subdomain", {"exclude": ["www", "staging"]}),
        (ClaimStrategy, {"claim": "org.id", "cookie": "session"}),
        MyCustomStrategy(),
    ])
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from tenancy.exceptions import ConfigurationError
from tenancy.strategies.base import (
    BuiltinStrategy,
    ExtractionStrategy,
    FunctionStrategy,
    implements_extract,
    strategy_name,
)
from tenancy.strategies.claim import ClaimStrategy
from tenancy.strategies.header import HeaderStrategy
from tenancy.strategies.subdomain import SubdomainStrategy, parse_host

BUILTIN_STRATEGIES: Mapping[str, type[BuiltinStrategy]] = {
    "header": HeaderStrategy,
    "subdomain": SubdomainStrategy,
    "jwt": ClaimStrategy,
    "claim": ClaimStrategy,
}


def build_strategies(entries: Any) -> tuple[ExtractionStrategy, ...]:
    """Normalise strategy configuration entries into strategy instances.

    Raises:
        ConfigurationError: If ``entries`` is not a list, an entry cannot be
            turned into a strategy, or a built-in rejects its options.
    """
    if isinstance(entries, (str, bytes)) or not isinstance(entries, Sequence):
        raise ConfigurationError("strategies must be a list")

    strategies: list[ExtractionStrategy] = []
    invalid: list[Any] = []
    for entry in entries:
        strategy = _build_one(entry)
        if strategy is None:
            invalid.append(entry)
        else:
            strategies.append(strategy)

    if invalid:
        raise ConfigurationError(
            f"Invalid sources: {invalid!r}. "
            "Each source must implement extract(request, config)."
        )
    return tuple(strategies)


def _build_one(entry: Any) -> ExtractionStrategy | None:
    if isinstance(entry, tuple) and len(entry) == 2:
        reference, options = entry
        cls = _resolve_class(reference)
        if cls is None:
            return None
        if not isinstance(options, Mapping):
            raise ConfigurationError(
                f"options for {strategy_name(cls)} must be a mapping"
            )
        if issubclass(cls, BuiltinStrategy):
            return cls.from_options(options)
        return _checked(_instantiate(cls, dict(options)))

    cls = _resolve_class(entry)
    if cls is not None:
        return _checked(_instantiate(cls, {}))

    return _checked(entry)


def _resolve_class(reference: Any) -> type | None:
    if isinstance(reference, str):
        return BUILTIN_STRATEGIES.get(reference)
    if isinstance(reference, type) and callable(getattr(reference, "extract", None)):
        return reference
    return None


def _instantiate(cls: type, options: dict[str, Any]) -> ExtractionStrategy:
    try:
        return cls(**options)
    except TypeError as e:
        raise ConfigurationError(
            f"Could not build strategy {cls.__name__}: {e}"
        ) from e


def _checked(candidate: Any) -> ExtractionStrategy | None:
    # Checked on the instance, where extract is already bound
    return candidate if implements_extract(candidate) else None


__all__ = [
    "BUILTIN_STRATEGIES",
    "BuiltinStrategy",
    "ClaimStrategy",
    "ExtractionStrategy",
    "FunctionStrategy",
    "HeaderStrategy",
    "SubdomainStrategy",
    "build_strategies",
    "parse_host",
    "strategy_name",
]
