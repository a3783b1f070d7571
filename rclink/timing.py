"""Monotonic clock helpers, timespec arithmetic and precise sleeping."""

from __future__ import annotations

import time

NSEC_PER_SEC = 1_000_000_000


def _tdiv(a: int, b: int) -> int:
    """Integer division truncating toward zero."""
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b >= 0) else -q


def _tmod(a: int, b: int) -> int:
    """Remainder matching truncating division."""
    return a - b * _tdiv(a, b)


class Timer:
    """Measures time elapsed since the last start on the monotonic clock."""

    def __init__(self) -> None:
        self._start_ns = 0
        self.start()

    def start(self) -> None:
        """Restart the measurement."""
        self._start_ns = time.monotonic_ns()

    def ns(self) -> int:
        """Nanoseconds elapsed since start."""
        return time.monotonic_ns() - self._start_ns

    def ms(self) -> float:
        """Milliseconds elapsed since start."""
        return self.ns() / 1e6

    def seconds(self) -> float:
        """Seconds elapsed since start."""
        return self.ns() / 1e9


def timespec_to_us(seconds: int, nanoseconds: int) -> int:
    """Convert a (seconds, nanoseconds) pair to whole microseconds."""
    return _tdiv(seconds * NSEC_PER_SEC + nanoseconds, 1000)


def timespec_to_ns(seconds: int, nanoseconds: int) -> int:
    """Convert a (seconds, nanoseconds) pair to nanoseconds."""
    return seconds * NSEC_PER_SEC + nanoseconds


def us_to_timespec(us: int) -> tuple[int, int]:
    """Split microseconds into a (seconds, nanoseconds) pair."""
    return ns_to_timespec(us * 1000)


def ns_to_timespec(ns: int) -> tuple[int, int]:
    """Split nanoseconds into a (seconds, nanoseconds) pair."""
    return _tdiv(ns, NSEC_PER_SEC), _tmod(ns, NSEC_PER_SEC)


def timespec_add(seconds: int, nanoseconds: int, us: int) -> tuple[int, int]:
    """Add microseconds to a timespec, carrying whole seconds forward."""
    nanoseconds += us * 1000
    while nanoseconds >= NSEC_PER_SEC:
        nanoseconds -= NSEC_PER_SEC
        seconds += 1
    return seconds, nanoseconds


def get_us() -> int:
    """Current monotonic time in microseconds."""
    return _tdiv(time.monotonic_ns(), 1000)


def get_ns() -> int:
    """Current monotonic time in nanoseconds."""
    return time.monotonic_ns()


def ns_to_str(ns: int) -> str:
    """Format nanoseconds as hours, minutes, seconds and sub-second parts."""
    us = _tdiv(ns, 1000)
    ms = _tdiv(us, 1000)
    s = _tdiv(ms, 1000)
    m = _tdiv(s, 60)
    h = _tdiv(m, 60)
    return (
        f"{h:5d}h{_tmod(m, 60):2d}m{_tmod(s, 60):2d}s:"
        f"{_tmod(ms, 1000):3d}ms:{_tmod(us, 1000):3d}us:{_tmod(ns, 1000):3d}ns"
    )


def sleep_until(wakeup_ns: int) -> None:
    """Sleep until the monotonic clock reaches ``wakeup_ns``."""
    while True:
        remaining = wakeup_ns - time.monotonic_ns()
        if remaining <= 0:
            return
        time.sleep(remaining / 1e9)


def sleep_us(us: int) -> None:
    """Sleep for ``us`` microseconds measured on the monotonic clock."""
    sleep_until(time.monotonic_ns() + us * 1000)


def sleep_ns(ns: int) -> None:
    """Sleep for ``ns`` nanoseconds measured on the monotonic clock."""
    sleep_until(time.monotonic_ns() + ns)