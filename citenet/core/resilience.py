"""
resilience utilities - retry with backoff, request scheduling, logging setup.
keeps retrieval collaborators polite towards rate-limited apis.
"""

import time
import random
import logging
import threading
from typing import TypeVar, Callable, Optional, Tuple, Dict, Any

from .config import RetryConfig
from .errors import CitenetError, RateLimitError, ServerError, NetworkError


# setup logging
logger = logging.getLogger("citenet")


T = TypeVar("T")

# errors worth another attempt
RETRYABLE_ERRORS: Tuple[type, ...] = (RateLimitError, ServerError, NetworkError)


def backoff_delay(config: RetryConfig, attempt: int) -> float:
    """
    delay before retry number `attempt` (0-based).
    base delay doubles each attempt by default.
    """
    delay = min(
        config.base_delay * (config.exponential_base ** attempt),
        config.max_delay
    )
    if config.jitter:
        delay = delay * (0.5 + random.random())
    return delay


def execute_with_retry(
    operation: Callable[[], T],
    config: Optional[RetryConfig] = None,
    operation_name: str = "operation",
    sleep: Callable[[float], None] = time.sleep,
    retryable: Tuple[type, ...] = RETRYABLE_ERRORS
) -> T:
    """
    run operation, retrying retryable errors with exponential backoff.
    after max_retries the last typed error is raised to the caller.
    """
    config = config or RetryConfig()

    for attempt in range(config.max_retries + 1):
        try:
            return operation()

        except retryable as e:
            if attempt >= config.max_retries:
                logger.warning(
                    f"[retry] {operation_name} failed after {attempt + 1} attempts: {e}"
                )
                raise

            delay = backoff_delay(config, attempt)
            logger.info(
                f"[retry] {operation_name} attempt {attempt + 1} failed, "
                f"retrying in {delay:.1f}s: {e}"
            )
            sleep(delay)

    # unreachable: the loop either returns or raises
    raise CitenetError(f"{operation_name} exhausted retries")


class RequestScheduler:
    """
    fifo request queue with a minimum interval between dispatches.

    an explicit object owned by whichever component performs retrieval.
    callers block in submit() until every earlier request has finished
    and min_interval has passed since the previous dispatch.
    """

    def __init__(
        self,
        min_interval: float = 1.1,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        name: str = "scheduler"
    ):
        self.min_interval = min_interval
        self.name = name
        self._clock = clock
        self._sleep = sleep

        self._cond = threading.Condition()
        self._next_ticket = 0
        self._serving = 0
        self._last_dispatch: Optional[float] = None
        self._closed = False

        # stats
        self.dispatched = 0
        self.total_wait = 0.0

    @property
    def pending(self) -> int:
        """requests queued or running."""
        with self._cond:
            return self._next_ticket - self._serving

    @property
    def closed(self) -> bool:
        return self._closed

    def submit(self, request: Callable[..., T], *args, **kwargs) -> T:
        """run request in fifo order, respecting the dispatch interval."""
        with self._cond:
            if self._closed:
                raise CitenetError(f"[{self.name}] scheduler is closed")
            ticket = self._next_ticket
            self._next_ticket += 1
            while ticket != self._serving:
                self._cond.wait()

        try:
            wait = self._time_until_next()
            if wait > 0:
                logger.debug(f"[{self.name}] waiting {wait:.2f}s before dispatch")
                self.total_wait += wait
                self._sleep(wait)

            self._last_dispatch = self._clock()
            self.dispatched += 1
            return request(*args, **kwargs)

        finally:
            with self._cond:
                self._serving += 1
                self._cond.notify_all()

    def _time_until_next(self) -> float:
        if self._last_dispatch is None:
            return 0.0
        elapsed = self._clock() - self._last_dispatch
        return max(0.0, self.min_interval - elapsed)

    def reset(self):
        """forget dispatch history (queue ordering is untouched)."""
        self._last_dispatch = None
        self.dispatched = 0
        self.total_wait = 0.0

    def close(self):
        """reject further submissions."""
        with self._cond:
            self._closed = True

    def __enter__(self) -> "RequestScheduler":
        return self

    def __exit__(self, *exc):
        self.close()

    def stats(self) -> Dict[str, Any]:
        """get scheduler statistics."""
        return {
            "name": self.name,
            "min_interval": self.min_interval,
            "dispatched": self.dispatched,
            "pending": self.pending,
            "total_wait": round(self.total_wait, 3),
            "closed": self._closed
        }


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None
):
    """
    setup citenet logging.
    call once at startup.
    """
    formatter = logging.Formatter(
        "%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    # console handler
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(level)

    # configure citenet logger
    logger.setLevel(level)
    logger.addHandler(console_handler)

    # file handler if specified
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        file_handler.setLevel(level)
        logger.addHandler(file_handler)

    return logger
