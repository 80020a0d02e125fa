# lazuli/utils/timing.py
from __future__ import annotations

import functools
import time
from typing import Callable, Optional, ParamSpec, TypeVar

from lazuli.utils.logger import get_logger

P = ParamSpec("P")
T = TypeVar("T")


def now_ms() -> int:
    """Monotonic clock in milliseconds."""
    return time.monotonic_ns() // 1_000_000


class Deadline:
    """
    A point on the monotonic clock `timeout_ms` from creation.

        deadline = Deadline(5000)
        while not deadline.expired:
            ...
    """

    def __init__(self, timeout_ms: int) -> None:
        self.timeout_ms = max(0, int(timeout_ms))
        self.started_ms = now_ms()

    @property
    def remaining_ms(self) -> int:
        return max(0, self.started_ms + self.timeout_ms - now_ms())

    @property
    def elapsed_ms(self) -> int:
        return now_ms() - self.started_ms

    @property
    def expired(self) -> bool:
        return self.remaining_ms == 0

    def pause(self, interval_ms: int) -> None:
        """Sleep one poll interval, never past the deadline."""
        ms = min(max(1, interval_ms), self.remaining_ms)
        if ms > 0:
            time.sleep(ms / 1000.0)


# ---------------- Polling ----------------

def _poll(
    predicate: Callable[[], T],
    done: Callable[[T], bool],
    timeout_ms: int,
    interval_ms: int,
    what: str,
    description: Optional[str],
) -> T:
    log = get_logger(__name__)
    deadline = Deadline(timeout_ms)
    suffix = f" ({description})" if description else ""
    ticks = 0

    while True:
        val = predicate()
        if done(val):
            return val
        if deadline.expired:
            raise TimeoutError(f"{what} timed out after {timeout_ms} ms{suffix}")
        deadline.pause(interval_ms)
        ticks += 1
        # roughly once a second on slow polls
        if interval_ms >= 500 and ticks * interval_ms % 1000 < interval_ms:
            log.debug(f"Still waiting, {deadline.remaining_ms} ms left{suffix}")


def wait_until(
    predicate: Callable[[], T],
    timeout_ms: int,
    interval_ms: int = 100,
    description: Optional[str] = None,
) -> T:
    """
    Call `predicate` every `interval_ms` until it returns something truthy and
    return that value. The predicate always runs at least once, even with a
    zero timeout.

    Raises:
        TimeoutError when `timeout_ms` passes first.
    """
    return _poll(predicate, bool, timeout_ms, interval_ms, "wait_until", description)


def wait_while(
    predicate: Callable[[], T],
    timeout_ms: int,
    interval_ms: int = 100,
    description: Optional[str] = None,
) -> T:
    """
    Mirror of `wait_until`: polls while the predicate stays truthy and returns
    the first falsy value.

    Raises:
        TimeoutError when the predicate is still truthy at the deadline.
    """
    return _poll(predicate, lambda v: not v, timeout_ms, interval_ms, "wait_while", description)


# ---------------- measure decorator ----------------

def measure(label: str = "", level: str = "DEBUG") -> Callable[[Callable[P, T]], Callable[P, T]]:
    """
    Log how long each call of the decorated function took.

        @measure("take_screenshot")
        def capture(...): ...
    """
    log = get_logger(__name__)
    emit = getattr(log, level.lower(), log.debug)

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        name = label or func.__name__

        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            started = now_ms()
            try:
                return func(*args, **kwargs)
            finally:
                ms = now_ms() - started
                emit(f"{name} took {ms} ms" if ms < 1000 else f"{name} took {ms / 1000:.3f} s")

        return wrapper

    return decorator
