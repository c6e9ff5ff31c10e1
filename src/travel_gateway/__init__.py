"""Cached, rate-limited and retrying access to remote travel APIs."""

from travel_gateway.errors import ClassifiedFailure, FailureKind, classify
from travel_gateway.gateway import CachedExecutor, build_executor, create_executor
from travel_gateway.keys import build_cache_key
from travel_gateway.limiter import ConcurrencyLimiter
from travel_gateway.retry import RetryConfig, RetryPolicy

__all__ = [
    "CachedExecutor",
    "ClassifiedFailure",
    "ConcurrencyLimiter",
    "FailureKind",
    "RetryConfig",
    "RetryPolicy",
    "build_cache_key",
    "build_executor",
    "classify",
    "create_executor",
]
