"""
Resilience layer for inference calls.

Exports: CircuitBreaker, BreakerState, CircuitState, ResilientInvoker, BoundedScheduler
"""

from .circuit_breaker import BreakerState, CircuitBreaker, CircuitState
from .invoker import ResilientInvoker
from .scheduler import BoundedScheduler

__all__ = [
    "CircuitBreaker",
    "BreakerState",
    "CircuitState",
    "ResilientInvoker",
    "BoundedScheduler",
]
