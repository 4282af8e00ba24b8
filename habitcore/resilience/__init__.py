"""Resilience patterns for store access

Bounded retry with backoff for transient storage failures.
"""

from habitcore.resilience.retry import retry_with_backoff, is_retryable_error

__all__ = [
    "retry_with_backoff",
    "is_retryable_error",
]
