"""Domain-oriented observability infrastructure.

Probes elsewhere in the service take an ``ObservationContext`` so that
their events carry request-scoped metadata.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from infrastructure.observability.context import ObservationContext

__all__ = [
    "ObservationContext",
]
