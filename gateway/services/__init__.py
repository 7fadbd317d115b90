"""
Service layer - resilient access to the upstream Employee API.

Provides:
- UpstreamClient: one call per operation, classified into ServiceError kinds
- RetryingClient: bounded exponential backoff over transient failures
- SnapshotCache: single-flight TTL cache of the full employee list
- aggregation: search / highest salary / top-N over a snapshot
- translate_error: ErrorKind -> boundary outcome

EmployeeService lives in gateway.services.employee_service.
"""

from gateway.services.errors import (
    ErrorEnvelope,
    ErrorKind,
    ServiceError,
    NotFoundError,
    ValidationError,
    RateLimitError,
    ServiceUnavailableError,
    UpstreamError,
    UpstreamServerError,
    DeletionConflictError,
    UnexpectedError,
)
from gateway.services.deduplicator import RequestDeduplicator
from gateway.services.cache import CacheStats, Snapshot, SnapshotCache
from gateway.services.client import UpstreamClient
from gateway.services.retry import RetryingClient, RetryPolicy, RetryState
from gateway.services.translator import ErrorOutcome, translate_error

__all__ = [
    # Errors
    "ErrorEnvelope",
    "ErrorKind",
    "ServiceError",
    "NotFoundError",
    "ValidationError",
    "RateLimitError",
    "ServiceUnavailableError",
    "UpstreamError",
    "UpstreamServerError",
    "DeletionConflictError",
    "UnexpectedError",
    # Cache
    "CacheStats",
    "Snapshot",
    "SnapshotCache",
    "RequestDeduplicator",
    # Clients
    "UpstreamClient",
    "RetryingClient",
    "RetryPolicy",
    "RetryState",
    # Boundary
    "ErrorOutcome",
    "translate_error",
]
