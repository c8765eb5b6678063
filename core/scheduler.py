#!/usr/bin/env python3
"""
Background task scheduling.

Components that need periodic work (cache sweeping) register it on an
injected Scheduler instead of starting their own timers, so embedders and
tests control when that work runs.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Tuple

logger = logging.getLogger(__name__)


class Scheduler(ABC):
    """Runs named callables at fixed intervals."""

    @abstractmethod
    def schedule_interval(self, name: str, interval_seconds: float, fn: Callable[[], object]) -> None:
        pass

    @abstractmethod
    def start(self) -> None:
        pass

    @abstractmethod
    def shutdown(self, timeout: float = 5.0) -> None:
        pass


class ThreadScheduler(Scheduler):
    """One daemon thread per task, stopped through a shared threading.Event."""

    def __init__(self):
        self._stop_event = threading.Event()
        self._tasks: List[Tuple[str, float, Callable[[], object]]] = []
        self._threads: Dict[str, threading.Thread] = {}
        self._lock = threading.Lock()
        self._started = False

    def schedule_interval(self, name, interval_seconds, fn):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        with self._lock:
            self._tasks.append((name, interval_seconds, fn))
            if self._started:
                self._spawn(name, interval_seconds, fn)

    def _spawn(self, name, interval_seconds, fn):
        thread = threading.Thread(
            target=self._run,
            args=(name, interval_seconds, fn),
            name=f"scheduler-{name}",
            daemon=True,
        )
        self._threads[name] = thread
        thread.start()

    def _run(self, name, interval_seconds, fn):
        logger.info(f"Scheduled task {name} every {interval_seconds}s")
        # wait() returns True once shutdown is requested
        while not self._stop_event.wait(interval_seconds):
            try:
                fn()
            except Exception as e:
                logger.error(f"Scheduled task {name} failed: {e}", exc_info=True)
        logger.info(f"Scheduled task {name} stopped")

    def start(self):
        with self._lock:
            if self._started:
                return
            self._started = True
            self._stop_event.clear()
            for name, interval, fn in self._tasks:
                self._spawn(name, interval, fn)

    def shutdown(self, timeout=5.0):
        self._stop_event.set()
        with self._lock:
            threads = list(self._threads.values())
            self._threads.clear()
            self._started = False
        for thread in threads:
            thread.join(timeout=timeout)
