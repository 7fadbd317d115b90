"""
Request-scoped context passed explicitly through service calls.
"""

import uuid
from dataclasses import dataclass, field

from loguru import logger


@dataclass(frozen=True)
class RequestContext:
    """Carries the correlation id of one inbound request."""

    correlation_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def log(self):
        """Logger bound to this request's correlation id."""
        return logger.bind(correlation_id=self.correlation_id)

    @classmethod
    def from_header(cls, value: str | None) -> "RequestContext":
        """Reuse an inbound correlation id header, or mint a new one."""
        if value and value.strip():
            return cls(correlation_id=value.strip()[:128])
        return cls()


# Used when a caller does not supply a context (background tasks, tests)
UNKNOWN_CONTEXT = RequestContext(correlation_id="unknown")
