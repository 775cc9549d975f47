"""Cancelable countdown for a single round.

The clock runs as a background worker (a thread by default, or whatever
``spawn`` the host supplies, e.g. ``socketio.start_background_task``).
Every start bumps a generation counter; a worker only reports while its
generation is still current, and every callback carries the generation so
the receiver can drop signals from a superseded run.
"""

import logging
import math
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


def _thread_spawn(target, *args):
    worker = threading.Thread(target=target, args=args, daemon=True)
    worker.start()
    return worker


class RoundClock:
    def __init__(self,
                 on_tick: Optional[Callable[[int, int], None]] = None,
                 on_expired: Optional[Callable[[int], None]] = None,
                 spawn: Optional[Callable] = None,
                 sleep: Optional[Callable[[float], None]] = None,
                 now: Optional[Callable[[], float]] = None,
                 tick_interval: float = 1.0):
        self._on_tick = on_tick
        self._on_expired = on_expired
        self._spawn = spawn or _thread_spawn
        self._sleep = sleep or time.sleep
        self._now = now or time.monotonic
        self._tick_interval = tick_interval if tick_interval > 0 else 1.0
        self._lock = threading.Lock()
        self._generation = 0
        self._deadline: Optional[float] = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def running(self) -> bool:
        return self._deadline is not None

    def start(self, duration_seconds: int) -> int:
        """Start a countdown, superseding any run in progress. Returns its generation."""
        duration = max(0, int(duration_seconds))
        with self._lock:
            self._generation += 1
            generation = self._generation
            self._deadline = self._now() + duration
            deadline = self._deadline
        logger.debug(f"[timer-set] generation={generation} duration={duration}s")
        self._spawn(self._run, generation, deadline)
        return generation

    def cancel(self) -> None:
        with self._lock:
            if self._deadline is None:
                return
            self._generation += 1
            self._deadline = None
        logger.debug(f"[timer-cancel] generation={self._generation}")

    def remaining(self) -> int:
        """Whole seconds left, rounded up; 0 when idle or past the deadline."""
        deadline = self._deadline
        if deadline is None:
            return 0
        return max(0, math.ceil(deadline - self._now()))

    def _is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation and self._deadline is not None

    def _run(self, generation: int, deadline: float) -> None:
        while True:
            if not self._is_current(generation):
                return
            left = deadline - self._now()
            if left <= 0:
                break
            if self._on_tick:
                self._on_tick(generation, math.ceil(left))
            # sleeping may return early; the loop re-checks against the deadline
            self._sleep(min(self._tick_interval, left))

        with self._lock:
            if generation != self._generation or self._deadline is None:
                return
            self._deadline = None
        logger.debug(f"[timer-fire] generation={generation}")
        if self._on_tick:
            self._on_tick(generation, 0)
        if self._on_expired:
            self._on_expired(generation)
