"""
Per-source circuit breaker.

After `threshold` consecutive failures the breaker opens and calls to the
source are skipped. Once `cooldown` seconds have passed since the last
failure, the next check closes it again with the failure count cleared.
"""
import logging
import time
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 5
DEFAULT_COOLDOWN = 5 * 60.0


@dataclass
class CircuitBreakerState:
    failures: int = 0
    last_failure: Optional[float] = None
    is_open: bool = False


class CircuitBreaker:
    """Failure counter with implicit time-based reset"""

    def __init__(
        self,
        name: str,
        threshold: int = DEFAULT_THRESHOLD,
        cooldown: float = DEFAULT_COOLDOWN,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.threshold = max(1, threshold)
        self.cooldown = cooldown
        self.clock = clock
        self.state = CircuitBreakerState()

    def is_open(self) -> bool:
        """True while the source should be skipped. Resets the breaker once cooldown has elapsed."""
        state = self.state
        if not state.is_open:
            return False

        if state.last_failure is not None and self.clock() - state.last_failure > self.cooldown:
            logger.info(f"[breaker] {self.name}: cooldown elapsed, closing circuit")
            self.state = CircuitBreakerState()
            return False

        return True

    def record_success(self):
        if self.state.failures:
            logger.info(f"[breaker] {self.name}: success after {self.state.failures} failure(s), resetting")
        self.state = CircuitBreakerState()

    def record_failure(self):
        state = self.state
        state.failures += 1
        state.last_failure = self.clock()
        if state.failures >= self.threshold and not state.is_open:
            state.is_open = True
            logger.warning(
                f"[breaker] {self.name}: opened after {state.failures} consecutive failures "
                f"(cooldown {self.cooldown:.0f}s)"
            )

    def snapshot(self) -> Dict[str, Any]:
        data = asdict(self.state)
        data["source"] = self.name
        return data

    def __repr__(self):
        return f"<CircuitBreaker(name={self.name}, failures={self.state.failures}, open={self.state.is_open})>"
