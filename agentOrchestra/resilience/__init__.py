"""Failure isolation primitives."""

from .circuit_breaker import BreakerOptions, BreakerRegistry, BreakerStats, CircuitBreaker, CircuitState

__all__ = ["BreakerOptions", "BreakerRegistry", "BreakerStats", "CircuitBreaker", "CircuitState"]
