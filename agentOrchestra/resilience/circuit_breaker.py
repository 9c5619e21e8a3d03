"""Circuit breaker guarding failure-prone async dependencies."""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Optional, TypeVar

from agentOrchestra.utils.errors import BreakerOpenError

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitState(str, Enum):
    CLOSED = "CLOSED"  # Normal operation
    OPEN = "OPEN"  # Failing, reject requests immediately
    HALF_OPEN = "HALF_OPEN"  # Testing if service recovered


@dataclass(frozen=True, slots=True)
class BreakerStats:
    """Point-in-time snapshot of a breaker."""

    name: str
    state: CircuitState
    failure_count: int
    success_count: int
    next_attempt: Optional[datetime]
    last_failure_time: Optional[datetime]


@dataclass(frozen=True, slots=True)
class BreakerOptions:
    failure_threshold: int = 5
    success_threshold: int = 2
    timeout: float = 60.0
    reset_timeout: float = 30.0


class CircuitBreaker:
    """
    Protects callers against cascading failures from an external dependency.

    - CLOSED: calls pass through; failures are counted
    - OPEN: calls are rejected with BreakerOpenError until ``timeout`` elapses
    - HALF_OPEN: trial calls; ``success_threshold`` successes close the
      circuit, a single failure reopens it

    Counters and state live behind one lock so that a transition and a stats
    read never interleave. The wrapped call itself runs outside the lock.
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        success_threshold: int = 2,
        timeout: float = 60.0,
        reset_timeout: float = 30.0,
        clock: Callable[[], float] = time.time,
    ):
        if failure_threshold < 1 or success_threshold < 1:
            raise ValueError("Breaker thresholds must be positive")
        if timeout < 0 or reset_timeout < 0:
            raise ValueError("Breaker timeouts must not be negative")

        self.name = name
        self.failure_threshold = failure_threshold
        self.success_threshold = success_threshold
        self.timeout = timeout
        self.reset_timeout = reset_timeout
        self._clock = clock

        self._lock = threading.Lock()
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._success_count = 0
        self._next_attempt = clock()
        self._last_failure_time = 0.0

    @classmethod
    def from_options(cls, name: str, options: BreakerOptions, clock: Callable[[], float] = time.time) -> "CircuitBreaker":
        return cls(
            name,
            failure_threshold=options.failure_threshold,
            success_threshold=options.success_threshold,
            timeout=options.timeout,
            reset_timeout=options.reset_timeout,
            clock=clock,
        )

    async def execute(self, fn: Callable[[], Awaitable[T]]) -> T:
        """Run ``fn`` under breaker protection.

        Raises:
            BreakerOpenError: If the circuit is open; ``fn`` is not invoked
        """
        self._before_call()

        try:
            result = await fn()
        except Exception:
            self._on_failure()
            raise

        self._on_success()
        return result

    def _before_call(self) -> None:
        with self._lock:
            now = self._clock()
            if self._state is CircuitState.OPEN and now >= self._next_attempt:
                self._state = CircuitState.HALF_OPEN
                self._success_count = 0
                LOGGER.info(f"[CircuitBreaker:{self.name}] Transitioning to HALF_OPEN")

            if self._state is CircuitState.OPEN:
                wait = max(0, math.ceil(self._next_attempt - now))
                raise BreakerOpenError(self.name, wait)

    def _on_success(self) -> None:
        with self._lock:
            now = self._clock()
            # Forget stale failures
            if now - self._last_failure_time > self.reset_timeout:
                self._failure_count = 0

            if self._state is CircuitState.HALF_OPEN:
                self._success_count += 1
                if self._success_count >= self.success_threshold:
                    self._close()

    def _on_failure(self) -> None:
        with self._lock:
            now = self._clock()
            self._last_failure_time = now
            self._failure_count += 1

            if self._state is CircuitState.HALF_OPEN or self._failure_count >= self.failure_threshold:
                self._open(now)

    def _open(self, now: float) -> None:
        self._state = CircuitState.OPEN
        self._next_attempt = now + self.timeout
        LOGGER.warning(f"[CircuitBreaker:{self.name}] Circuit OPENED after {self._failure_count} failures")

    def _close(self) -> None:
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._success_count = 0
        LOGGER.info(f"[CircuitBreaker:{self.name}] Circuit CLOSED")

    @property
    def state(self) -> CircuitState:
        with self._lock:
            return self._state

    def get_state(self) -> str:
        """Return the current state name."""
        return self.state.value

    def get_stats(self) -> BreakerStats:
        """Return a consistent snapshot of counters and state."""
        with self._lock:
            return BreakerStats(
                name=self.name,
                state=self._state,
                failure_count=self._failure_count,
                success_count=self._success_count,
                next_attempt=(
                    datetime.fromtimestamp(self._next_attempt)
                    if self._state is CircuitState.OPEN
                    else None
                ),
                last_failure_time=(
                    datetime.fromtimestamp(self._last_failure_time)
                    if self._last_failure_time
                    else None
                ),
            )


class BreakerRegistry:
    """One breaker per named dependency, created on first use."""

    def __init__(self, options: Optional[BreakerOptions] = None, clock: Callable[[], float] = time.time):
        self._options = options or BreakerOptions()
        self._clock = clock
        self._breakers: Dict[str, CircuitBreaker] = {}
        self._lock = threading.Lock()

    def get(self, name: str) -> CircuitBreaker:
        with self._lock:
            breaker = self._breakers.get(name)
            if breaker is None:
                breaker = CircuitBreaker.from_options(name, self._options, clock=self._clock)
                self._breakers[name] = breaker
                LOGGER.debug(f"Registered circuit breaker: {name}")
            return breaker

    def names(self) -> List[str]:
        with self._lock:
            return list(self._breakers)

    def all_stats(self) -> List[BreakerStats]:
        with self._lock:
            breakers = list(self._breakers.values())
        return [breaker.get_stats() for breaker in breakers]
