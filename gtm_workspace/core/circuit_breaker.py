"""Circuit breaker for the generation provider.

After ``failure_threshold`` consecutive failures the circuit opens and calls
fail fast. Once ``recovery_timeout`` has elapsed a single probe is let
through (half-open); its outcome closes or re-opens the circuit. The breaker
never retries anything itself.
"""

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Protocol


class CircuitState(Enum):
    """Circuit breaker states."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass(frozen=True)
class CircuitBreakerConfig:
    """Circuit breaker configuration."""

    failure_threshold: int
    recovery_timeout: float


class CircuitListener(Protocol):
    """Receives every state transition of a breaker."""

    def circuit_transition(
        self,
        breaker: str,
        previous_state: str,
        new_state: str,
        failure_count: int,
        recovery_timeout: float,
    ) -> None: ...


class CircuitBreaker:
    """Async-safe circuit breaker keyed on consecutive failures."""

    def __init__(
        self,
        config: CircuitBreakerConfig,
        name: str = "default",
        listener: CircuitListener | None = None,
    ) -> None:
        self._config = config
        self._name = name
        self._listener = listener
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._opened_at: float | None = None
        self._lock = asyncio.Lock()

    @property
    def name(self) -> str:
        return self._name

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def failure_count(self) -> int:
        return self._failure_count

    @property
    def is_open(self) -> bool:
        return self._state == CircuitState.OPEN

    def _transition(self, new_state: CircuitState) -> None:
        previous = self._state
        self._state = new_state
        if self._listener is not None:
            self._listener.circuit_transition(
                self._name,
                previous.value,
                new_state.value,
                self._failure_count,
                self._config.recovery_timeout,
            )

    async def can_execute(self) -> bool:
        """Return True when a call may go out now."""
        async with self._lock:
            if self._state != CircuitState.OPEN:
                return True
            assert self._opened_at is not None
            if time.monotonic() - self._opened_at >= self._config.recovery_timeout:
                self._transition(CircuitState.HALF_OPEN)
                return True
            return False

    async def record_success(self) -> None:
        async with self._lock:
            self._failure_count = 0
            self._opened_at = None
            if self._state != CircuitState.CLOSED:
                self._transition(CircuitState.CLOSED)

    async def record_failure(self) -> None:
        async with self._lock:
            self._failure_count += 1
            should_open = self._state == CircuitState.HALF_OPEN or (
                self._state == CircuitState.CLOSED
                and self._failure_count >= self._config.failure_threshold
            )
            if should_open:
                self._opened_at = time.monotonic()
                self._transition(CircuitState.OPEN)
