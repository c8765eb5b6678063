#!/usr/bin/env python3
"""
Unit tests for AppContext wiring.
"""

import unittest
from unittest.mock import patch

from core.app_context import AppContext
from core.cache import LeastRecentlyUsedEviction
from core.config_loader import AppConfig
from core.events import DomainEvent, EventType, InMemoryEventBus
from core.recommender import InteractionSimilarityProvider
from core.stores.memory import InMemoryPreferencesStore, InMemoryProfileStore
from tests.fixtures.profile_fixtures import make_frontend_candidate, make_frontend_job
from tests.mocks.store_mocks import ManualScheduler


class TestAppContext(unittest.TestCase):

    def setUp(self):
        self.store = InMemoryProfileStore()
        self.store.add_candidate(make_frontend_candidate())
        self.store.add_job(make_frontend_job(posted_at=None))
        self.scheduler = ManualScheduler()

    def test_01_build_wires_components(self):
        ctx = AppContext.build(AppConfig(), self.store, InMemoryPreferencesStore(), scheduler=self.scheduler)

        self.assertIsNotNone(ctx.cache)
        self.assertIs(ctx.recommendation_service.cache, ctx.cache)
        self.assertIs(ctx.recommendation_service.scoring_engine, ctx.scoring_engine)
        self.assertIsInstance(ctx.event_bus, InMemoryEventBus)
        self.assertIsInstance(ctx.recommendation_service.similarity_provider, InteractionSimilarityProvider)
        self.assertEqual(self.scheduler.tasks[0][0], "recommendation-cache-sweep")
        self.assertEqual(self.scheduler.tasks[0][1], 60)

    def test_02_cache_disabled(self):
        config = AppConfig(cache={"enabled": False})
        ctx = AppContext.build(config, self.store, scheduler=self.scheduler)

        self.assertIsNone(ctx.cache)
        self.assertEqual(self.scheduler.tasks, [])

    def test_03_lru_policy_from_config(self):
        config = AppConfig(cache={"eviction": "lru", "max_entries": 10, "shards": 2})
        ctx = AppContext.build(config, self.store, scheduler=self.scheduler)

        self.assertIsInstance(ctx.cache.eviction_policy, LeastRecentlyUsedEviction)
        self.assertEqual(ctx.cache.stats()['shards'], 2)

    def test_04_events_reach_service(self):
        ctx = AppContext.build(AppConfig(), self.store, scheduler=self.scheduler)
        ctx.recommendation_service.get_recommendations("user-frontend")
        self.assertEqual(ctx.cache.size(), 1)

        ctx.event_bus.publish(DomainEvent(EventType.PROFILE_UPDATED, {"user_id": "user-frontend"}))

        self.assertEqual(ctx.cache.size(), 0)

    def test_05_redis_backend_selected(self):
        config = AppConfig(events={"backend": "redis", "redis_url": "redis://cache:6379/1"})
        with patch('core.events.Redis') as mock_redis_class:
            ctx = AppContext.build(config, self.store, scheduler=self.scheduler)
            mock_redis_class.from_url.assert_called_once()
            self.assertEqual(ctx.event_bus.channel_prefix, "jobmatch:events:")
            ctx.event_bus.close()

    def test_06_start_and_shutdown(self):
        bus = InMemoryEventBus()
        ctx = AppContext.build(AppConfig(), self.store, scheduler=self.scheduler, event_bus=bus)

        ctx.start()
        ctx.shutdown()

        self.assertTrue(self.scheduler.started)
        self.assertTrue(self.scheduler.stopped)


if __name__ == '__main__':
    unittest.main()
