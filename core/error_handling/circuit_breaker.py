"""
Circuit Breaker Pattern Implementation.

Stops calling a failing dependency for a while and lets callers go straight
to their fallback.

States:
- CLOSED: Normal operation, requests pass through
- OPEN: Dependency is failing, requests are skipped
- HALF_OPEN: One probe request is allowed to test recovery

Author: Poker Cashier Team
Version: 1.0.0
"""

import logging
import time
from enum import Enum
from typing import Callable, Optional


class CircuitState(Enum):
    """Circuit breaker states."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    """
    Circuit breaker guarding an unreliable dependency.

    Example:
        breaker = CircuitBreaker(failure_threshold=3, recovery_timeout=60, name="price_feed")

        if breaker.allow_request():
            try:
                price = await feed.fetch_usd_price()
                breaker.record_success()
            except PriceFeedUnavailableError:
                breaker.record_failure()
    """

    def __init__(
        self,
        failure_threshold: int = 3,
        recovery_timeout: float = 60.0,
        name: str = "default",
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            failure_threshold: Consecutive failures before opening the circuit
            recovery_timeout: Seconds to stay open before allowing a probe
            name: Name for logging/metrics
            clock: Monotonic time source
        """
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.name = name
        self._clock = clock

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._opened_at: Optional[float] = None
        self._probe_in_flight = False

        self.logger = logging.getLogger(f"CircuitBreaker.{name}")

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state == CircuitState.OPEN

    def allow_request(self) -> bool:
        """Return True if the caller may hit the dependency now."""
        if self._state == CircuitState.OPEN:
            if self._time_until_retry() > 0:
                return False
            self._transition_to_half_open()

        if self._state == CircuitState.HALF_OPEN:
            if self._probe_in_flight:
                return False
            self._probe_in_flight = True

        return True

    def record_success(self):
        if self._state != CircuitState.CLOSED:
            self._transition_to_closed()
        self._failure_count = 0

    def record_failure(self):
        self._failure_count += 1

        if self._state == CircuitState.HALF_OPEN:
            self._transition_to_open()
        elif self._state == CircuitState.CLOSED and self._failure_count >= self.failure_threshold:
            self._transition_to_open()

    def _time_until_retry(self) -> float:
        if self._opened_at is None:
            return 0.0
        elapsed = self._clock() - self._opened_at
        return max(0.0, self.recovery_timeout - elapsed)

    def _transition_to_closed(self):
        self.logger.info(f"🟢 Circuit breaker '{self.name}' → CLOSED (recovered)")
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._opened_at = None
        self._probe_in_flight = False

    def _transition_to_open(self):
        self.logger.warning(
            f"🔴 Circuit breaker '{self.name}' → OPEN " f"(failures: {self._failure_count}/{self.failure_threshold})"
        )
        self._state = CircuitState.OPEN
        self._opened_at = self._clock()
        self._probe_in_flight = False

    def _transition_to_half_open(self):
        self.logger.info(f"🟡 Circuit breaker '{self.name}' → HALF_OPEN (testing recovery)")
        self._state = CircuitState.HALF_OPEN
        self._probe_in_flight = False

    def get_stats(self) -> dict:
        return {
            "name": self.name,
            "state": self._state.value,
            "failure_count": self._failure_count,
            "failure_threshold": self.failure_threshold,
            "recovery_timeout": self.recovery_timeout,
            "time_until_retry": self._time_until_retry() if self._state == CircuitState.OPEN else 0.0,
        }
