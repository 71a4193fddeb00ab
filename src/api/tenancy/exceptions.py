"""Exceptions raised by the tenancy package.

Only two situations raise: building a pipeline from invalid configuration,
and reading a context entry through the strict accessor when it is absent.
Everything a strategy encounters at request time is reported as an outcome
value instead.
"""


class TenancyError(Exception):
    """Base class for tenancy errors."""

    pass


class ConfigurationError(TenancyError, ValueError):
    """Raised when a pipeline or strategy is built from invalid options.

    Always raised at construction time, never while serving a request.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotPresentError(TenancyError, LookupError):
    """Raised by ``ContextStore.get_or_fail`` when the key holds no value."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"No tenant found in context under key {key!r}")
