#!/usr/bin/env python3
"""
Unit tests for shared helpers: text utilities, deadlines, experience years
and the thread scheduler.
"""

import threading
import unittest
from datetime import date

import pytest

from core.errors import RequestTimeoutError
from core.profiles.models import Experience, ExperienceLevel
from core.profiles.years import level_for_years, total_experience_years
from core.scheduler import ThreadScheduler
from core.utils import Deadline, ShardedCounters, jaccard, normalize_skill_name, shard_index, tokenize
from tests.mocks.store_mocks import FakeClock


class TestTextHelpers(unittest.TestCase):

    def test_01_normalize(self):
        self.assertEqual(normalize_skill_name("  Node.JS  "), "node.js")
        self.assertEqual(normalize_skill_name("Machine   Learning"), "machine learning")
        self.assertEqual(normalize_skill_name(None), "")

    def test_02_tokenize_keeps_symbols(self):
        self.assertEqual(tokenize("C++, C# and Node.js."), {"c++", "c#", "and", "node.js"})

    def test_03_jaccard(self):
        self.assertEqual(jaccard([], []), 0.0)
        self.assertAlmostEqual(jaccard(["a", "b"], ["b", "c"]), 1 / 3)


class TestDeadline(unittest.TestCase):

    def test_01_no_timeout_never_expires(self):
        deadline = Deadline()
        self.assertIsNone(deadline.remaining())
        deadline.check("anything")

    def test_02_expires(self):
        clock = FakeClock()
        deadline = Deadline(2.0, clock=clock)
        self.assertEqual(deadline.remaining(), 2.0)
        clock.advance(2.5)
        self.assertEqual(deadline.remaining(), 0.0)
        with self.assertRaises(RequestTimeoutError):
            deadline.check("score")


class TestShardedCounters(unittest.TestCase):

    def test_01_totals_sum_every_stripe(self):
        counters = ShardedCounters(shards=4)
        for i in range(20):
            counters.increment(f"user-{i}", requests=1, cache_hits=i % 2)
        self.assertEqual(counters.totals(), {'requests': 20, 'cache_hits': 10})

    def test_02_concurrent_increments(self):
        counters = ShardedCounters(shards=4)

        def worker(n):
            for _ in range(500):
                counters.increment(f"user-{n}", requests=1)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(counters.totals()['requests'], 4000)
        counters.clear()
        self.assertEqual(counters.totals(), {})

    def test_03_shard_index_is_stable(self):
        self.assertEqual(shard_index("user-1", 16), shard_index("user-1", 16))
        self.assertTrue(all(0 <= shard_index(f"u{i}", 3) < 3 for i in range(30)))


class TestExperienceYears(unittest.TestCase):

    def test_01_overlapping_roles_not_double_counted(self):
        entries = [
            Experience(title="A", company="X", start_date=date(2020, 1, 1), end_date=date(2022, 1, 1)),
            Experience(title="B", company="Y", start_date=date(2021, 1, 1), end_date=date(2023, 1, 1)),
        ]
        self.assertEqual(total_experience_years(entries, date(2025, 1, 1)), 3.0)

    def test_02_current_role_runs_to_today(self):
        entries = [Experience(title="A", company="X", start_date=date(2024, 1, 1), is_current=True)]
        self.assertEqual(total_experience_years(entries, date(2025, 7, 1)), 1.5)

    def test_03_inverted_and_undated_entries_ignored(self):
        entries = [
            Experience(title="A", company="X", start_date=date(2024, 1, 1), end_date=date(2023, 1, 1)),
            Experience(title="B", company="Y"),
        ]
        self.assertEqual(total_experience_years(entries, date(2025, 1, 1)), 0.0)

    def test_04_levels(self):
        self.assertEqual(level_for_years(0.5), ExperienceLevel.ENTRY)
        self.assertEqual(level_for_years(3.0), ExperienceLevel.MID)
        self.assertEqual(level_for_years(7.9), ExperienceLevel.SENIOR)
        self.assertEqual(level_for_years(15), ExperienceLevel.PRINCIPAL)


@pytest.mark.slow
class TestThreadScheduler(unittest.TestCase):

    def test_01_runs_until_shutdown(self):
        scheduler = ThreadScheduler()
        ran = threading.Event()
        scheduler.schedule_interval("tick", 0.01, ran.set)

        scheduler.start()
        try:
            self.assertTrue(ran.wait(timeout=2))
        finally:
            scheduler.shutdown(timeout=2)

    def test_02_failing_task_keeps_running(self):
        scheduler = ThreadScheduler()
        calls = []

        def flaky():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("first run fails")

        scheduler.schedule_interval("flaky", 0.01, flaky)
        scheduler.start()
        try:
            for _ in range(200):
                if len(calls) >= 2:
                    break
                threading.Event().wait(0.01)
            self.assertGreaterEqual(len(calls), 2)
        finally:
            scheduler.shutdown(timeout=2)

    def test_03_rejects_non_positive_interval(self):
        with self.assertRaises(ValueError):
            ThreadScheduler().schedule_interval("bad", 0, lambda: None)


if __name__ == '__main__':
    unittest.main()
