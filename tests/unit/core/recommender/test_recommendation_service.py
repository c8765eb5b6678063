#!/usr/bin/env python3
"""
Unit tests for JobRecommendationService.

Stores are in-memory (with call counting); time is pinned to FIXED_NOW.
"""

import threading
import time
from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from core.cache import RecommendationCache
from core.config_loader import RecommendationConfig
from core.errors import (
    InvalidRequestError,
    JobNotFoundError,
    ProfileNotFoundError,
    RequestTimeoutError,
    TransientStoreError,
)
from core.events import DomainEvent, EventType, RedisEventBus
from core.profiles.models import UserPreferences
from core.recommender import (
    InteractionSimilarityProvider,
    InteractionTracker,
    JobRecommendationService,
    RecommendationFilters,
    RecommendationRequest,
    RecommendationSource,
    SortOrder,
)
from core.recommender.service import COLLABORATIVE_REASON
from core.scorer import ScoringEngine
from core.stores.memory import InMemoryPreferencesStore
from tests.fixtures.profile_fixtures import (
    FIXED_NOW,
    FIXED_TODAY,
    make_frontend_candidate,
    make_frontend_job,
    make_job,
)
from tests.mocks.store_mocks import (
    FailingCache,
    FailingProfileStore,
    RecordingEventBus,
    SpyProfileStore,
    UnfilteredProfileStore,
)

USER = "user-frontend"


def build_service(store=None, jobs=(), config=None, **kwargs):
    store = store if store is not None else SpyProfileStore()
    store.add_candidate(make_frontend_candidate())
    for job in jobs:
        store.add_job(job)
    kwargs.setdefault('cache', RecommendationCache(max_entries=100, ttl_seconds=600))
    service = JobRecommendationService(
        profile_store=store,
        scoring_engine=ScoringEngine(today=lambda: FIXED_TODAY),
        config=config or RecommendationConfig(),
        clock=lambda: FIXED_NOW,
        **kwargs,
    )
    return service, store


def ids(recommendations):
    return [r.job.id for r in recommendations]


class TestRequestValidation:

    @pytest.mark.parametrize("request_kwargs", [
        {"limit": 0},
        {"limit": -3},
        {"limit": 51},
        {"page": 0},
    ])
    def test_01_invalid_request_rejected_before_store_access(self, request_kwargs):
        service, store = build_service(jobs=[make_frontend_job()])

        with pytest.raises(InvalidRequestError):
            service.get_recommendations(USER, RecommendationRequest(**request_kwargs))

        assert store.total_calls == 0

    def test_02_missing_user_id(self):
        service, store = build_service()
        with pytest.raises(InvalidRequestError):
            service.get_recommendations("  ")
        assert store.total_calls == 0

    def test_03_unknown_filter_in_mapping_request(self):
        service, store = build_service()
        with pytest.raises(InvalidRequestError):
            service.get_recommendations(USER, {"filters": {"favourite_colour": "blue"}})
        assert store.total_calls == 0

    def test_04_mapping_request_accepted(self):
        service, _ = build_service(jobs=[make_frontend_job()])
        response = service.get_recommendations(USER, {"limit": 5, "sort": "recent"})
        assert response.page_size == 5


class TestProfileRecommendations:

    def test_01_strong_match_recommended(self):
        print("\n🧭 UNIT Test: recommendations for a frontend candidate")
        service, _ = build_service(jobs=[make_frontend_job(), make_job("job-python")])

        response = service.get_recommendations(USER)

        assert ids(response.data) == ["job-frontend"]
        rec = response.data[0]
        assert rec.match_score == pytest.approx(0.897)
        assert rec.source == RecommendationSource.PROFILE
        assert rec.match_details.overall_score == pytest.approx(89.7)
        assert rec.last_matched == FIXED_NOW
        assert rec.reasons and rec.reasons[0].startswith("Strong skills match")
        print(f"  ✓ {rec.job.title}: {rec.match_score:.3f}")

    def test_02_scores_below_threshold_dropped(self):
        service, _ = build_service(jobs=[make_job("job-python")])
        response = service.get_recommendations(USER)
        assert response.data == []
        assert response.total == 0
        assert response.total_pages == 0
        assert response.has_more is False

    def test_03_tie_break_by_recency_then_id(self):
        jobs = [
            make_frontend_job(id="job-b", posted_at="2026-10-01T00:00:00Z"),
            make_frontend_job(id="job-a", posted_at="2026-10-01T00:00:00Z"),
            make_frontend_job(id="job-c", posted_at="2026-10-05T00:00:00Z"),
            make_frontend_job(id="job-d", posted_at=None),
        ]
        service, _ = build_service(jobs=jobs)

        response = service.get_recommendations(USER)

        assert ids(response.data) == ["job-c", "job-a", "job-b", "job-d"]

    def test_04_recent_sort(self):
        jobs = [
            make_frontend_job(id="job-old", posted_at="2026-09-01T00:00:00Z"),
            make_frontend_job(id="job-new", posted_at="2026-10-18T00:00:00Z", salary=None),
        ]
        service, _ = build_service(jobs=jobs)

        relevance = service.get_recommendations(USER)
        recent = service.get_recommendations(USER, RecommendationRequest(sort=SortOrder.RECENT))

        assert ids(relevance.data) == ["job-old", "job-new"]
        assert ids(recent.data) == ["job-new", "job-old"]

    def test_05_pagination(self):
        jobs = [make_frontend_job(id=f"job-{i}") for i in range(5)]
        service, _ = build_service(jobs=jobs)

        page2 = service.get_recommendations(USER, RecommendationRequest(limit=2, page=2))
        page3 = service.get_recommendations(USER, RecommendationRequest(limit=2, page=3))
        beyond = service.get_recommendations(USER, RecommendationRequest(limit=2, page=9))

        assert ids(page2.data) == ["job-2", "job-3"]
        assert page2.total == 5
        assert page2.total_pages == 3
        assert page2.has_more is True
        assert ids(page3.data) == ["job-4"]
        assert page3.has_more is False
        assert beyond.data == []
        assert beyond.total == 5

    def test_06_closed_and_expired_jobs_never_returned(self):
        jobs = [
            make_frontend_job(id="job-open"),
            make_frontend_job(id="job-closed", status="CLOSED"),
            make_frontend_job(id="job-expired", expires_at=(FIXED_NOW - timedelta(days=1)).isoformat()),
        ]
        service, _ = build_service(store=UnfilteredProfileStore(), jobs=jobs)

        response = service.get_recommendations(USER)

        assert ids(response.data) == ["job-open"]

    def test_07_applied_jobs_excluded(self):
        service, store = build_service(jobs=[make_frontend_job(id="job-1"), make_frontend_job(id="job-2")])
        store.record_application("cand-frontend", "job-1")

        response = service.get_recommendations(USER)

        assert ids(response.data) == ["job-2"]

    def test_08_request_filters_are_hard(self):
        jobs = [
            make_frontend_job(id="job-remote"),
            make_frontend_job(id="job-onsite", is_remote=False),
        ]
        service, store = build_service(jobs=jobs)

        response = service.get_recommendations(
            USER, RecommendationRequest(filters=RecommendationFilters(remote_only=True)),
        )

        assert ids(response.data) == ["job-remote"]
        assert store.last_criteria.remote_only is True

    def test_09_preferences_store_overrides_profile(self):
        prefs = InMemoryPreferencesStore()
        prefs.set_user_preferences(USER, UserPreferences(exclude_companies=["Chartly"]))
        jobs = [
            make_frontend_job(id="job-chartly"),
            make_frontend_job(id="job-other", company={"name": "Other Co", "industry": "Software"}),
        ]
        service, _ = build_service(jobs=jobs, preferences_store=prefs)

        response = service.get_recommendations(USER)

        assert ids(response.data) == ["job-other"]

    def test_10_unknown_user(self):
        service, _ = build_service(jobs=[make_frontend_job()])
        with pytest.raises(ProfileNotFoundError):
            service.get_recommendations("ghost")
        assert service.cache.size() == 0

    def test_11_store_failure_is_transient_and_not_cached(self):
        service, _ = build_service(store=FailingProfileStore(), jobs=[make_frontend_job()])
        with pytest.raises(TransientStoreError):
            service.get_recommendations(USER)
        assert service.cache.size() == 0

    def test_12_timeout(self):
        service, _ = build_service(jobs=[make_frontend_job()])
        with pytest.raises(RequestTimeoutError):
            service.get_recommendations(USER, timeout=0)
        assert service.cache.size() == 0

    def test_13_results_within_limit_and_unique(self):
        jobs = [make_frontend_job(id=f"job-{i}") for i in range(30)]
        service, _ = build_service(jobs=jobs)

        response = service.get_recommendations(USER, RecommendationRequest(limit=25))

        assert len(response.data) == 25
        assert len(set(ids(response.data))) == 25
        scores = [r.match_score for r in response.data]
        assert all(0.0 <= s <= 1.0 for s in scores)
        assert scores == sorted(scores, reverse=True)


class TestCaching:

    def test_01_cache_hit_skips_stores(self):
        service, store = build_service(jobs=[make_frontend_job()])

        first = service.get_recommendations(USER)
        calls_after_first = store.total_calls
        second = service.get_recommendations(USER)

        assert second is first
        assert store.total_calls == calls_after_first
        stats = service.get_stats()
        assert stats['cache_hits'] == 1
        assert stats['cache_misses'] == 1

    def test_02_different_request_misses(self):
        service, store = build_service(jobs=[make_frontend_job()])
        service.get_recommendations(USER)
        calls = store.total_calls
        service.get_recommendations(USER, RecommendationRequest(limit=5))
        assert store.total_calls > calls

    def test_03_failing_cache_does_not_fail_request(self):
        service, _ = build_service(jobs=[make_frontend_job()], cache=FailingCache())
        response = service.get_recommendations(USER)
        assert ids(response.data) == ["job-frontend"]

    def test_04_no_cache(self):
        service, store = build_service(jobs=[make_frontend_job()], cache=None)
        service.get_recommendations(USER)
        calls = store.total_calls
        service.get_recommendations(USER)
        assert store.total_calls == 2 * calls

    def test_05_clear_cache(self):
        service, store = build_service(jobs=[make_frontend_job()])
        service.get_recommendations(USER)
        service.clear_cache()
        assert service.cache.size() == 0
        assert service.get_stats()['interactions']['interactions'] == 0

    def test_06_excluded_ids_differing_in_case_are_distinct_requests(self):
        service, _ = build_service(jobs=[make_frontend_job(id="Job-1"), make_frontend_job(id="job-1")])

        first = service.get_recommendations(
            USER, RecommendationRequest(filters=RecommendationFilters(exclude_job_ids=["Job-1"]))
        )
        second = service.get_recommendations(
            USER, RecommendationRequest(filters=RecommendationFilters(exclude_job_ids=["job-1"]))
        )

        assert ids(first.data) == ["job-1"]
        assert ids(second.data) == ["Job-1"]
        assert service.get_stats()['cache_hits'] == 0


class TestEvents:

    @pytest.fixture
    def wired(self):
        bus = RecordingEventBus()
        service, store = build_service(jobs=[make_frontend_job()], event_bus=bus)
        service.register_event_handlers(bus)
        return service, store, bus

    def test_01_generated_event_published(self, wired):
        service, _, bus = wired
        service.get_recommendations(USER)

        generated = [e for e in bus.published if e.type == EventType.RECOMMENDATION_GENERATED.value]
        assert len(generated) == 1
        assert generated[0].payload['user_id'] == USER
        assert generated[0].payload['count'] == 1
        assert generated[0].payload['recommendations'][0]['job_id'] == "job-frontend"

    def test_02_profile_update_invalidates_cache(self, wired):
        service, store, bus = wired
        service.get_recommendations(USER)
        assert service.cache.size() == 1

        bus.publish(DomainEvent(EventType.PROFILE_UPDATED, {"user_id": USER}))

        assert service.cache.size() == 0
        calls = store.total_calls
        service.get_recommendations(USER)
        assert store.total_calls > calls

    def test_03_application_invalidates_and_records_interaction(self, wired):
        service, _, bus = wired
        service.get_recommendations(USER)

        bus.publish(DomainEvent(EventType.APPLICATION_SUBMITTED, {"userId": USER, "jobId": "job-frontend"}))

        assert service.cache.size() == 0
        assert service.interactions.get_user_interactions(USER)["job-frontend"] == 3.0

    def test_04_other_users_cache_untouched(self, wired):
        service, _, bus = wired
        service.get_recommendations(USER)
        bus.publish(DomainEvent(EventType.PROFILE_UPDATED, {"user_id": "someone-else"}))
        assert service.cache.size() == 1

    def test_05_event_without_user_is_ignored(self, wired):
        service, _, bus = wired
        service.get_recommendations(USER)
        bus.publish(DomainEvent(EventType.PROFILE_UPDATED, {}))
        assert service.cache.size() == 1

    def test_06_viewed_interactions_recorded(self, wired):
        service, _, _ = wired
        service.get_recommendations(USER)
        assert service.interactions.get_user_interactions(USER) == {"job-frontend": 1.0}

    def test_07_preferences_update_invalidates_cache(self, wired):
        service, _, bus = wired
        service.get_recommendations(USER)

        bus.publish(DomainEvent(EventType.PREFERENCES_UPDATED, {"user_id": USER}))

        assert service.cache.size() == 0

    @pytest.mark.parametrize("event_type", [EventType.JOB_CREATED, EventType.JOB_UPDATED, EventType.JOB_CLOSED])
    def test_08_job_change_clears_every_users_cache(self, wired, event_type):
        service, store, bus = wired
        store.add_candidate(make_frontend_candidate(id="cand-other", user_id="user-other"))
        service.get_recommendations(USER)
        service.get_recommendations("user-other")
        assert service.cache.size() == 2

        bus.publish(DomainEvent(event_type, {"job_id": "job-frontend"}))

        assert service.cache.size() == 0

    def test_09_slow_event_transport_does_not_hold_request(self):
        print("\n📮 UNIT Test: request returns while redis publish is stuck")
        release = threading.Event()
        client = MagicMock()

        def stuck_publish(channel, data):
            release.wait(5)
            raise RedisConnectionError("redis unreachable")

        client.publish.side_effect = stuck_publish
        bus = RedisEventBus(client=client)
        service, _ = build_service(jobs=[make_frontend_job()], event_bus=bus)
        try:
            with patch('time.sleep'):
                started = time.monotonic()
                response = service.get_recommendations(USER, timeout=0.5)
                elapsed = time.monotonic() - started
                assert ids(response.data) == ["job-frontend"]
                assert elapsed < 0.5
                release.set()
                bus.close()
        finally:
            release.set()
        assert client.publish.call_count == 3
        print(f"  ✓ answered in {elapsed:.3f}s")


class TestStats:

    def test_01_counts_aggregate_across_users(self):
        service, store = build_service(jobs=[make_frontend_job()])
        store.add_candidate(make_frontend_candidate(id="cand-other", user_id="user-other"))

        service.get_recommendations(USER)
        service.get_recommendations(USER)
        service.get_recommendations("user-other")

        stats = service.get_stats()
        assert stats['requests'] == 3
        assert stats['cache_hits'] == 1
        assert stats['cache_misses'] == 2
        assert stats['interactions']['users'] == 2


class TestCollaborativeBoost:

    def _tracker(self):
        tracker = InteractionTracker()
        tracker.record(USER, "job-seen", 'viewed')
        tracker.record("user-x", "job-seen", 'viewed')
        tracker.record("user-x", "job-b", 'applied')
        tracker.record("user-x", "job-low", 'applied')
        return tracker

    def _service(self, jobs, enabled=True):
        tracker = self._tracker()
        return build_service(
            jobs=jobs,
            config=RecommendationConfig(enable_collaborative_filtering=enabled),
            interaction_tracker=tracker,
            similarity_provider=InteractionSimilarityProvider(tracker),
        )[0]

    def test_01_boost_reorders_equal_matches(self):
        service = self._service([make_frontend_job(id="job-a"), make_frontend_job(id="job-b")])

        response = service.get_recommendations(USER)

        assert ids(response.data) == ["job-b", "job-a"]
        boosted = response.data[0]
        assert boosted.match_score == pytest.approx(0.897 + (1 - 0.897) * 0.2)
        assert COLLABORATIVE_REASON in boosted.reasons
        assert COLLABORATIVE_REASON not in response.data[1].reasons

    def test_02_boost_applies_before_threshold(self):
        low = make_job("job-low")
        assert ids(self._service([low], enabled=False).get_recommendations(USER).data) == []
        assert ids(self._service([low]).get_recommendations(USER).data) == ["job-low"]

    def test_03_provider_failure_falls_back_to_base_scores(self):
        class BrokenProvider(InteractionSimilarityProvider):
            def collaborative_scores(self, user_id, job_ids):
                raise RuntimeError("similarity backend down")

        service, _ = build_service(
            jobs=[make_frontend_job()],
            similarity_provider=BrokenProvider(InteractionTracker()),
        )
        response = service.get_recommendations(USER)
        assert response.data[0].match_score == pytest.approx(0.897)


class TestSimilarJobs:

    @pytest.fixture
    def service(self):
        jobs = [
            make_frontend_job(),
            make_frontend_job(
                id="job-similar",
                title="Frontend Engineer",
                description="Build React and TypeScript interfaces for our design system.",
            ),
            make_job("job-unrelated"),
            make_frontend_job(id="job-closed-twin", status="CLOSED"),
        ]
        return build_service(jobs=jobs)[0]

    def test_01_similar_jobs(self, service):
        similar = service.get_similar_jobs("job-frontend", USER)

        assert ids(similar) == ["job-similar"]
        assert similar[0].source == RecommendationSource.SIMILAR
        assert similar[0].match_confidence == 0.7
        assert 0.6 < similar[0].match_score < 0.7

    def test_02_unknown_reference_job(self, service):
        with pytest.raises(JobNotFoundError):
            service.get_similar_jobs("job-missing", USER)

    def test_03_limit_validated(self, service):
        with pytest.raises(InvalidRequestError):
            service.get_similar_jobs("job-frontend", USER, limit=0)


class TestTrendingJobs:

    @pytest.fixture
    def service(self):
        def posted(days_ago):
            return (FIXED_NOW - timedelta(days=days_ago)).isoformat()

        jobs = [
            make_job("job-hot", posted_at=posted(2), application_count=80),
            make_job("job-warm", posted_at=posted(3), application_count=25),
            make_job("job-warm-newer", posted_at=posted(1), application_count=25),
            make_job("job-old", posted_at=posted(20), application_count=200),
            make_job("job-undated", posted_at=None, application_count=500),
        ]
        return build_service(jobs=jobs)[0]

    def test_01_week_window(self, service):
        trending = service.get_trending_jobs(USER)

        assert ids(trending) == ["job-hot", "job-warm-newer", "job-warm"]
        assert trending[0].match_score == 1.0
        assert trending[1].match_score == 0.5
        assert all(r.source == RecommendationSource.TRENDING for r in trending)
        assert all(r.match_confidence == 0.8 for r in trending)

    def test_02_month_window(self, service):
        trending = service.get_trending_jobs(USER, time_window='month')
        assert ids(trending)[0] == "job-old"
        assert "job-undated" not in ids(trending)

    def test_03_limit(self, service):
        assert len(service.get_trending_jobs(USER, limit=2)) == 2

    def test_04_unknown_window(self, service):
        with pytest.raises(InvalidRequestError):
            service.get_trending_jobs(USER, time_window='decade')
