"""Extraction strategy contract and shared helpers.

A strategy inspects a request and answers with ``Found``, ``NotFound`` or
``Failed``. Built-in strategies declare their options, validate them once
when the pipeline is built, and never raise for conditions they expect
(missing header, malformed token, failing transform).

Custom strategies only need an ``extract(request, config)`` method:

    class FromQueryString:
        name = "query"

        def extract(self, request, config):
            ...
            return Found(tenant) if tenant else NOT_FOUND
"""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, ClassVar, Protocol, runtime_checkable

from tenancy.exceptions import ConfigurationError
from tenancy.outcomes import Failed, Found, Outcome

if TYPE_CHECKING:
    from tenancy.pipeline import PipelineConfig
    from tenancy.request import RequestLike


Transform = Callable[[Any], Any]

TRANSFORM_MESSAGE = "transform must be a callable accepting one argument"


@runtime_checkable
class ExtractionStrategy(Protocol):
    """Anything the pipeline can ask for a tenant."""

    def extract(self, request: RequestLike, config: PipelineConfig) -> Outcome: ...


class BuiltinStrategy(ABC):
    """Base class for the strategies shipped with this package.

    Subclasses list their option names in ``OPTIONS`` and implement
    ``validate_config`` and ``extract``.
    """

    name: ClassVar[str]
    OPTIONS: ClassVar[tuple[str, ...]] = ()

    @classmethod
    @abstractmethod
    def validate_config(cls, options: Mapping[str, Any]) -> str | None:
        """Check an options mapping.

        Returns:
            None when every option is acceptable, otherwise a message
            describing the first violated constraint.
        """

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> BuiltinStrategy:
        """Build a strategy from an options mapping.

        Raises:
            ConfigurationError: If an option is unknown or invalid.
        """
        if not isinstance(options, Mapping):
            raise ConfigurationError(f"options for {cls.name} must be a mapping")
        unknown = sorted(set(options) - set(cls.OPTIONS))
        if unknown:
            raise ConfigurationError(
                f"Unknown options for {cls.name}: {', '.join(unknown)}"
            )
        return cls(**options)

    @abstractmethod
    def extract(self, request: RequestLike, config: PipelineConfig) -> Outcome: ...

    def _raise_if_invalid(self, options: Mapping[str, Any]) -> None:
        message = self.validate_config(options)
        if message is not None:
            raise ConfigurationError(message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class FunctionStrategy:
    """Adapt a plain ``fn(request, config) -> Outcome`` into a strategy."""

    def __init__(
        self,
        fn: Callable[[RequestLike, PipelineConfig], Outcome],
        name: str | None = None,
    ):
        self._fn = fn
        self.name = name or getattr(fn, "__name__", "function")

    def extract(self, request: RequestLike, config: PipelineConfig) -> Outcome:
        return self._fn(request, config)

    def __repr__(self) -> str:
        return f"FunctionStrategy({self.name!r})"


def accepts_one_argument(fn: Any) -> bool:
    """Whether ``fn`` can be called with exactly one positional argument."""
    if not callable(fn):
        return False
    return _binds(fn, None)


def implements_extract(candidate: Any) -> bool:
    """Whether ``candidate.extract`` can be called as ``extract(request, config)``."""
    extract = getattr(candidate, "extract", None)
    if not callable(extract):
        return False
    return _binds(extract, None, None)


def _binds(fn: Callable[..., Any], *args: Any) -> bool:
    try:
        inspect.signature(fn).bind(*args)
    except TypeError:
        return False
    except ValueError:
        # Some builtins expose no signature; trust that they are callable.
        return True
    return True


def validate_string(options: Mapping[str, Any], name: str) -> str | None:
    value = options.get(name)
    if value is None or isinstance(value, str):
        return None
    return f"{name} must be a string"


def validate_boolean(options: Mapping[str, Any], name: str) -> str | None:
    value = options.get(name)
    if value is None or isinstance(value, bool):
        return None
    return f"{name} must be a boolean"


def validate_transform(options: Mapping[str, Any]) -> str | None:
    value = options.get("transform")
    if value is None or accepts_one_argument(value):
        return None
    return TRANSFORM_MESSAGE


def first_error(*errors: str | None) -> str | None:
    for error in errors:
        if error is not None:
            return error
    return None


def apply_transform(
    transform: Transform | None,
    value: Any,
    label: str,
) -> Outcome:
    """Run a user transform, turning any exception into ``Failed``.

    Args:
        transform: The configured transform, or None.
        value: The raw extracted value.
        label: Prefix for the failure message, e.g. ``"Header"``.
    """
    if transform is None:
        return Found(value)
    try:
        return Found(transform(value))
    except Exception as e:
        return Failed(f"{label} transformation failed: {e!r}")


def strategy_name(strategy: Any) -> str:
    """Human-readable name used in events and error messages."""
    name = getattr(strategy, "name", None)
    if isinstance(name, str):
        return name
    return type(strategy).__name__
