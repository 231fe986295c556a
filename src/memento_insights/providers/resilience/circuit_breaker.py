"""Circuit breaker for the Supabase auth and RPC clients.

After ``threshold`` consecutive failed requests the breaker opens and the
client fails fast for ``cooldown`` seconds. The first request after the
cooldown is a single trial: success closes the breaker, failure reopens it
for another cooldown.
"""

import logging
import threading
import time
from collections.abc import Callable
from enum import Enum

logger = logging.getLogger(__name__)


class CircuitState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitOpenError(Exception):
    """Raised instead of calling a backend whose breaker is open."""


class CircuitBreaker:
    """Thread-safe consecutive-failure breaker with a single-trial recovery"""

    def __init__(
        self,
        threshold: int,
        cooldown: float,
        clock: Callable[[], float] = time.monotonic
    ):
        if threshold <= 0:
            raise ValueError(f"threshold must be > 0, got {threshold}")
        if cooldown < 0:
            raise ValueError(f"cooldown must be >= 0, got {cooldown}")

        self.threshold = threshold
        self.cooldown = cooldown
        self._clock = clock
        self._failures = 0
        self._opened_at: float | None = None
        self._trial_in_flight = False
        self._lock = threading.Lock()

    def _current_state(self) -> CircuitState:
        # Caller holds self._lock
        if self._opened_at is None:
            return CircuitState.CLOSED
        if self._clock() - self._opened_at >= self.cooldown:
            return CircuitState.HALF_OPEN
        return CircuitState.OPEN

    @property
    def state(self) -> CircuitState:
        with self._lock:
            return self._current_state()

    def allow(self) -> bool:
        """Whether a request may go out now. Claims the trial slot when HALF_OPEN."""
        with self._lock:
            state = self._current_state()
            if state is CircuitState.CLOSED:
                return True
            if state is CircuitState.HALF_OPEN and not self._trial_in_flight:
                self._trial_in_flight = True
                return True
            return False

    def record_success(self) -> None:
        with self._lock:
            if self._opened_at is not None:
                logger.info("Circuit breaker closed after a successful trial request")
            self._failures = 0
            self._opened_at = None
            self._trial_in_flight = False

    def record_failure(self) -> None:
        with self._lock:
            self._failures += 1
            trial_failed = self._trial_in_flight
            self._trial_in_flight = False

            if trial_failed or self._failures >= self.threshold:
                self._opened_at = self._clock()
                logger.warning(
                    f"Circuit breaker opened after {self._failures} consecutive failure(s); "
                    f"failing fast for {self.cooldown:.0f}s"
                )
