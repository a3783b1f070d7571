"""Periodic worker threads and a manager that reports on a set of them."""

from __future__ import annotations

import logging
import math
import os
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable

from .timing import NSEC_PER_SEC, Timer, sleep_until

log = logging.getLogger(__name__)

# Periods at or below this many nanoseconds (with zero whole seconds) run once.
_MIN_LOOP_NS = 10_000


class PeriodicTask(ABC):
    """A worker thread that calls :meth:`run` once per period.

    A period of ten microseconds or less runs :meth:`run` a single time,
    which suits workers whose ``run`` holds its own loop.
    """

    def __init__(self, period_s: float, name: str, stack_size: int, priority: int) -> None:
        self.period_s = float(period_s)
        self.name = name
        self.stack_size = stack_size
        self.priority = priority
        self.max_period = 0.0
        self.max_runtime = 0.0
        self._running = False
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Start the worker thread unless it is already running."""
        if self._running:
            return
        self._running = True
        self._thread = threading.Thread(target=self._loop, name=self.name, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Ask the worker to finish after its current cycle."""
        self._running = False

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the worker thread; return True once it has finished."""
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def status_line(self) -> str | None:
        """One table row of timing statistics, or None when not running."""
        if not self._running:
            return None
        return (
            f"|{self.name:<20}|{self.max_runtime:6.4f}"
            f"|{self.period_s:6.4f}|{self.max_period:6.4f}"
        )

    def clear_max(self) -> None:
        """Reset the recorded worst-case period and run time."""
        self.max_period = 0.0
        self.max_runtime = 0.0

    def is_slow(self) -> bool:
        """True when a cycle overran its period."""
        return self.max_period > self.period_s * 1.01 or self.max_runtime > self.period_s

    @abstractmethod
    def run(self) -> None:
        """The work done once per period."""

    def _setup_scheduler(self) -> None:
        setter = getattr(os, "sched_setscheduler", None)
        if setter is None:
            return
        try:
            setter(0, os.SCHED_FIFO, os.sched_param(self.priority))
        except (OSError, ValueError) as exc:
            log.debug("task %s: real-time scheduling unavailable: %s", self.name, exc)

    @staticmethod
    def _wait_tick(next_tick: int, period_ns: int) -> int:
        now = time.monotonic_ns()
        if now < next_tick:
            sleep_until(next_tick)
            return next_tick + period_ns
        missed = (now - next_tick) // period_ns + 1
        return next_tick + missed * period_ns

    def _loop(self) -> None:
        self._setup_scheduler()
        seconds = int(self.period_s)
        nanoseconds = int(1e9 * math.fmod(self.period_s, 1.0))
        period_ns = seconds * NSEC_PER_SEC + nanoseconds
        is_loop = seconds > 0 or nanoseconds > _MIN_LOOP_NS
        log.info("task %s start (%d s, %d ns)", self.name, seconds, nanoseconds)

        timer = Timer()
        next_tick = time.monotonic_ns() + period_ns
        while True:
            last_period = timer.seconds()
            timer.start()
            self.run()
            last_runtime = timer.seconds()
            self.max_period = max(self.max_period, last_period)
            self.max_runtime = max(self.max_runtime, last_runtime)
            if not (self._running and is_loop):
                break
            next_tick = self._wait_tick(next_tick, period_ns)
            if not self._running:
                break
        log.info("task %s has stopped", self.name)


class PeriodicFunction(PeriodicTask):
    """A periodic task that calls a plain callable each cycle."""

    def __init__(
        self,
        period_s: float,
        name: str,
        stack_size: int,
        priority: int,
        function: Callable[[], object],
    ) -> None:
        super().__init__(period_s, name, stack_size, priority)
        self.function = function

    def run(self) -> None:
        self.function()


_TABLE_TOP = "-------------------------TASKS--------------------------"
_TABLE_RULE = "----------------------------------------------------------"


class TaskManager:
    """A collection of periodic tasks monitored together."""

    def __init__(self) -> None:
        self.tasks: list[PeriodicTask] = []

    def add_task(self, task: PeriodicTask) -> None:
        self.tasks.append(task)

    def status_report(self) -> str:
        """A table of the running tasks' timing statistics."""
        lines = [
            "",
            _TABLE_TOP,
            f"|{'name':<20}|{'rt-max':<6}|{'T-des':<6}|{'T-max':<6}",
            _TABLE_RULE,
        ]
        lines.extend(line for task in self.tasks if (line := task.status_line()) is not None)
        return "\n".join(lines) + "\n"

    def slow_task_report(self) -> str:
        """Rows for the running tasks that have overrun their period."""
        lines = [
            line
            for task in self.tasks
            if task.is_slow() and (line := task.status_line()) is not None
        ]
        return "".join(line + "\n" for line in lines)

    def stop_all(self) -> None:
        for task in self.tasks:
            task.stop()