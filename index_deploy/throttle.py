"""Call-count throttle: pause for a fixed time after every N calls."""
import logging
import time
from typing import Callable

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


def should_pause(count: int, max_calls: int) -> bool:
    return count >= max_calls


def pause(duration: float, sleep: Callable[[float], None] = time.sleep) -> None:
    sleep(duration)


def increment(count: int) -> int:
    return count + 1


class RateLimiter:
    """Fixed-window throttle owned by one deployment run.

    before_call() must run before every throttled request. When the counter
    has reached max_calls it sleeps pause_seconds and resets to 0; the
    counter is then incremented either way, so it never exceeds max_calls.
    """

    def __init__(self, max_calls: int, pause_seconds: float, sleep: Callable[[float], None] = time.sleep):
        if max_calls < 1:
            raise ConfigurationError(f"max calls must be at least 1 (got {max_calls})")
        if pause_seconds < 0:
            raise ConfigurationError(f"pause duration must not be negative (got {pause_seconds})")
        self.max_calls = max_calls
        self.pause_seconds = pause_seconds
        self._sleep = sleep
        self.count = 0
        self.pauses = 0

    def before_call(self) -> None:
        if should_pause(self.count, self.max_calls):
            print(f"  rate limit: {self.count} calls made, pausing {self.pause_seconds}s")
            logger.info("Pausing %ss after %s calls", self.pause_seconds, self.count)
            pause(self.pause_seconds, self._sleep)
            self.count = 0
            self.pauses += 1
        self.count = increment(self.count)
