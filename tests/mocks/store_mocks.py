#!/usr/bin/env python3
"""
Test Mock Implementations - stores, caches, event buses and schedulers for testing.

These provide deterministic behavior for unit tests: call counting,
injected failures and manually advanced time.
"""
from collections import Counter
from typing import Callable, List, Tuple

from core.events import DomainEvent, InMemoryEventBus
from core.scheduler import Scheduler
from core.stores.memory import InMemoryProfileStore


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ManualScheduler(Scheduler):
    """Records scheduled tasks; run_all() executes them once, on demand."""

    def __init__(self):
        self.tasks: List[Tuple[str, float, Callable[[], object]]] = []
        self.started = False
        self.stopped = False

    def schedule_interval(self, name, interval_seconds, fn):
        self.tasks.append((name, interval_seconds, fn))

    def start(self):
        self.started = True

    def shutdown(self, timeout=5.0):
        self.stopped = True

    def run_all(self) -> list:
        return [fn() for _, _, fn in self.tasks]


class RecordingEventBus(InMemoryEventBus):
    """In-memory bus that also keeps every published event for assertions."""

    def __init__(self):
        super().__init__()
        self.published: List[DomainEvent] = []

    def publish(self, event):
        self.published.append(event)
        super().publish(event)


class SpyProfileStore(InMemoryProfileStore):
    """In-memory store that counts every read."""

    def __init__(self):
        super().__init__()
        self.calls = Counter()

    def get_candidate_profile(self, user_id):
        self.calls['get_candidate_profile'] += 1
        return super().get_candidate_profile(user_id)

    def get_job(self, job_id):
        self.calls['get_job'] += 1
        return super().get_job(job_id)

    def get_jobs_matching(self, criteria):
        self.calls['get_jobs_matching'] += 1
        self.last_criteria = criteria
        return super().get_jobs_matching(criteria)

    def get_applied_job_ids(self, candidate_id):
        self.calls['get_applied_job_ids'] += 1
        return super().get_applied_job_ids(candidate_id)

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())


class UnfilteredProfileStore(InMemoryProfileStore):
    """Store that ignores criteria and returns every job, closed ones included."""

    def get_jobs_matching(self, criteria):
        with self._lock:
            return sorted(self._jobs.values(), key=lambda j: j.id)


class FailingProfileStore(InMemoryProfileStore):
    """Store whose job query raises a driver-level error."""

    def get_jobs_matching(self, criteria):
        raise ConnectionError("database unavailable")


class FailingCache:
    """Cache whose every operation raises."""

    def get(self, key):
        raise RuntimeError("cache offline")

    def set(self, key, value, ttl=None, user_id=None):
        raise RuntimeError("cache offline")

    def invalidate_for_user(self, user_id):
        raise RuntimeError("cache offline")

    def clear(self):
        raise RuntimeError("cache offline")

    def stats(self):
        return {}
