#!/usr/bin/env python3
"""
Job Recommendation Service - ranked, cached job recommendations per user.

Request flow:
    BUILD_CONTEXT -> RETRIEVE_CANDIDATES -> SCORE -> FILTER -> RANK
    -> PAGINATE -> CACHE_WRITE -> RESPOND

Any failure surfaces as a typed error and nothing is written to the cache.
Cache and event-bus problems are logged and never fail a request.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

from pydantic import ValidationError as PydanticValidationError

from core.cache.recommendation_cache import RecommendationCache
from core.config_loader import RecommendationConfig
from core.errors import (
    InvalidRequestError,
    JobNotFoundError,
    MatchingError,
    ProfileNotFoundError,
    TransientStoreError,
)
from core.events import DomainEvent, EventBus, EventType
from core.profiles.models import JobProfile, UserPreferences
from core.recommender import ranking
from core.recommender.collaborative import (
    NoOpSimilarityProvider,
    SimilarityProvider,
    apply_collaborative_boost,
)
from core.recommender.interactions import InteractionTracker
from core.recommender.models import (
    JobRecommendation,
    JobSummary,
    PaginatedResponse,
    RecommendationContext,
    RecommendationRequest,
    RecommendationSource,
)
from core.recommender.retrieval import build_criteria
from core.recommender.similarity import content_similarity
from core.scorer.models import MatchResult
from core.scorer.service import ScoringEngine
from core.stores.interfaces import JobCriteria, PreferencesStore, ProfileStore
from core.utils import Deadline, RecommendationFingerprinter, ShardedCounters

logger = logging.getLogger(__name__)

TRENDING_WINDOWS = {
    'week': 7,
    'month': 30,
    'quarter': 90,
}
SIMILAR_CONFIDENCE = 0.7
TRENDING_CONFIDENCE = 0.8
COLLABORATIVE_REASON = "Popular with candidates similar to you"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobRecommendationService:
    """
    Produces ranked job recommendations for a user.

    Collaborators are injected: stores for data, ScoringEngine for scores,
    an optional cache, event bus and similarity provider.
    """

    def __init__(
        self,
        profile_store: ProfileStore,
        scoring_engine: ScoringEngine,
        preferences_store: Optional[PreferencesStore] = None,
        cache: Optional[RecommendationCache] = None,
        config: Optional[RecommendationConfig] = None,
        event_bus: Optional[EventBus] = None,
        similarity_provider: Optional[SimilarityProvider] = None,
        interaction_tracker: Optional[InteractionTracker] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.profile_store = profile_store
        self.preferences_store = preferences_store
        self.scoring_engine = scoring_engine
        self.cache = cache
        self.config = config or RecommendationConfig()
        self.event_bus = event_bus
        self.similarity_provider = similarity_provider or NoOpSimilarityProvider()
        self.interactions = interaction_tracker or InteractionTracker(
            max_per_user=self.config.max_interactions_per_user,
            max_users=self.config.max_tracked_users,
            shards=self.config.user_shards,
        )
        self._clock = clock

        # Striped by user id; only users on the same stripe share a lock
        self._stats = ShardedCounters(self.config.user_shards)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _validate_limit(self, limit: Optional[int], default: int) -> int:
        if limit is None:
            return min(default, self.config.max_recommendations)
        if limit < 1:
            raise InvalidRequestError(f"limit must be at least 1, got {limit}")
        if limit > self.config.max_recommendations:
            raise InvalidRequestError(
                f"limit {limit} exceeds maximum of {self.config.max_recommendations}"
            )
        return limit

    @staticmethod
    def _require(value: Optional[str], name: str) -> str:
        if value is None or not str(value).strip():
            raise InvalidRequestError(f"{name} is required")
        return value

    def _validate_request(self, user_id: str, request: Any) -> RecommendationRequest:
        self._require(user_id, "user_id")
        if request is None:
            request = RecommendationRequest()
        elif not isinstance(request, RecommendationRequest):
            try:
                request = RecommendationRequest.model_validate(request)
            except PydanticValidationError as e:
                raise InvalidRequestError(f"Invalid recommendation request: {e}") from e
        if request.page < 1:
            raise InvalidRequestError(f"page must be at least 1, got {request.page}")
        return request

    # ------------------------------------------------------------------
    # Store / cache / event plumbing
    # ------------------------------------------------------------------

    @staticmethod
    def _call_store(operation: str, fn: Callable[[], Any]) -> Any:
        try:
            return fn()
        except MatchingError:
            raise
        except Exception as e:
            logger.error(f"Store call {operation} failed: {e}")
            raise TransientStoreError(f"{operation} failed: {e}") from e

    def _cache_get(self, key: str) -> Optional[PaginatedResponse]:
        if self.cache is None:
            return None
        try:
            return self.cache.get(key)
        except Exception as e:
            logger.warning(f"Cache read failed, computing fresh results: {e}")
            return None

    def _cache_set(self, key: str, value: PaginatedResponse, user_id: str) -> None:
        if self.cache is None:
            return
        try:
            self.cache.set(key, value, user_id=user_id)
        except Exception as e:
            logger.warning(f"Cache write failed for user {user_id}: {e}")

    def _publish(self, event: DomainEvent) -> None:
        if self.event_bus is None:
            return
        try:
            self.event_bus.publish(event)
        except Exception as e:
            logger.warning(f"Failed to publish {event.type} event: {e}")

    def _publish_generated(
        self, user_id: str, request_id: str, source: RecommendationSource, recs: Sequence[JobRecommendation]
    ) -> None:
        self._publish(DomainEvent(
            type=EventType.RECOMMENDATION_GENERATED,
            payload={
                'user_id': user_id,
                'request_id': request_id,
                'type': source.value,
                'count': len(recs),
                'recommendations': [
                    {'id': r.id, 'job_id': r.job.id, 'score': r.match_score} for r in recs
                ],
            },
        ))

    def _count(self, user_id: str, hit: bool) -> None:
        self._stats.increment(user_id, requests=1, cache_hits=int(hit), cache_misses=int(not hit))

    # ------------------------------------------------------------------
    # Profile recommendations
    # ------------------------------------------------------------------

    def get_recommendations(
        self,
        user_id: str,
        request: Optional[RecommendationRequest] = None,
        timeout: Optional[float] = None,
    ) -> PaginatedResponse:
        """
        Ranked, paginated recommendations for a user.

        Args:
            user_id: User to recommend for
            request: Filters, sort, limit and page (defaults apply when None)
            timeout: Seconds before the request is abandoned; falls back to config

        Raises:
            InvalidRequestError: missing user_id, bad limit or page
            ProfileNotFoundError: user has no candidate profile
            TransientStoreError: a store call failed
            RequestTimeoutError: the deadline passed
        """
        request = self._validate_request(user_id, request)
        limit = self._validate_limit(request.limit, self.config.default_limit)

        key = RecommendationFingerprinter.calculate(
            user_id,
            request.filters.model_dump(mode='json'),
            request.sort.value,
            limit,
            request.page,
        )
        cached = self._cache_get(key)
        if cached is not None:
            self._count(user_id, hit=True)
            logger.debug(f"Cache hit for user {user_id}")
            return cached
        self._count(user_id, hit=False)

        deadline = Deadline(timeout if timeout is not None else self.config.request_timeout_seconds)

        context = self._build_context(user_id)
        deadline.check("build_context")

        criteria = build_criteria(context, request.filters, context.now)
        jobs = self._call_store("get_jobs_matching", lambda: self.profile_store.get_jobs_matching(criteria))
        jobs = [job for job in jobs if criteria.matches(job)]
        deadline.check("retrieve_candidates")

        results = self.scoring_engine.score_jobs(context.profile, jobs, context.preferences, deadline)
        deadline.check("score")

        jobs_by_id = {job.id: job for job in jobs}
        recommendations = self._filter(context, results, jobs_by_id)
        ranked = ranking.rank(recommendations, request.sort)
        response = PaginatedResponse.from_ranked(ranked, request.page, limit)
        deadline.check("rank")

        self._cache_set(key, response, user_id)
        self.interactions.record_many(user_id, [r.job.id for r in response.data], 'viewed')
        self._publish_generated(user_id, context.request_id, RecommendationSource.PROFILE, response.data)

        logger.info(
            f"Generated {len(response.data)} of {response.total} recommendation(s) for user {user_id} "
            f"from {len(jobs)} candidate job(s)"
        )
        return response

    def _build_context(self, user_id: str) -> RecommendationContext:
        profile = self._call_store(
            "get_candidate_profile", lambda: self.profile_store.get_candidate_profile(user_id)
        )
        if profile is None:
            raise ProfileNotFoundError(user_id)

        preferences = None
        if self.preferences_store is not None:
            preferences = self._call_store(
                "get_user_preferences", lambda: self.preferences_store.get_user_preferences(user_id)
            )
        if preferences is None:
            preferences = UserPreferences.from_profile(profile.preferences)

        applied = self._call_store(
            "get_applied_job_ids", lambda: self.profile_store.get_applied_job_ids(profile.id)
        )
        return RecommendationContext(
            user_id=user_id,
            request_id=uuid.uuid4().hex,
            now=self._clock(),
            profile=profile,
            preferences=preferences,
            applied_job_ids=set(applied or []),
            interactions=self.interactions.get_user_interactions(user_id),
        )

    def _collaborative_signals(self, user_id: str, job_ids: List[str]) -> Dict[str, float]:
        if not self.config.enable_collaborative_filtering or not job_ids:
            return {}
        try:
            return self.similarity_provider.collaborative_scores(user_id, job_ids)
        except Exception as e:
            logger.warning(f"Collaborative signal unavailable for user {user_id}: {e}")
            return {}

    def _filter(
        self,
        context: RecommendationContext,
        results: List[MatchResult],
        jobs_by_id: Dict[str, JobProfile],
    ) -> List[JobRecommendation]:
        """Apply collaborative boosting, then drop results below the score threshold."""
        signals = self._collaborative_signals(context.user_id, [r.job_id for r in results])
        recommendations = []
        for result in results:
            signal = signals.get(result.job_id, 0.0)
            score = apply_collaborative_boost(result.fraction, signal, self.config.collaborative_boost_max)
            if score < self.config.min_score_threshold:
                continue

            reasons = list(result.explanation.strengths)
            if signal > 0:
                reasons.append(COLLABORATIVE_REASON)
            recommendations.append(JobRecommendation(
                id=f"{context.user_id}:{result.job_id}",
                job=JobSummary.from_job(jobs_by_id[result.job_id]),
                match_score=round(score, 4),
                match_confidence=result.confidence,
                source=RecommendationSource.PROFILE,
                match_type=result.match_type,
                match_details=result.breakdown,
                explanation=result.explanation,
                reasons=reasons,
                last_matched=context.now,
            ))
        return recommendations

    # ------------------------------------------------------------------
    # Variants
    # ------------------------------------------------------------------

    def _applied_for(self, user_id: str) -> set:
        profile = self._call_store(
            "get_candidate_profile", lambda: self.profile_store.get_candidate_profile(user_id)
        )
        if profile is None:
            return set()
        return set(self._call_store(
            "get_applied_job_ids", lambda: self.profile_store.get_applied_job_ids(profile.id)
        ) or [])

    def get_similar_jobs(self, job_id: str, user_id: str, limit: Optional[int] = None) -> List[JobRecommendation]:
        """
        Open jobs whose title and description resemble a reference job.

        Raises:
            InvalidRequestError: missing ids or bad limit
            JobNotFoundError: reference job does not exist
        """
        self._require(job_id, "job_id")
        self._require(user_id, "user_id")
        limit = self._validate_limit(limit, self.config.default_similar_limit)

        reference = self._call_store("get_job", lambda: self.profile_store.get_job(job_id))
        if reference is None:
            raise JobNotFoundError(job_id)

        now = self._clock()
        criteria = JobCriteria(now=now, exclude_job_ids={job_id} | self._applied_for(user_id))
        jobs = self._call_store("get_jobs_matching", lambda: self.profile_store.get_jobs_matching(criteria))

        recommendations = []
        for job in jobs:
            if not criteria.matches(job):
                continue
            similarity = content_similarity(reference, job)
            if similarity <= self.config.similar_jobs_min_similarity:
                continue
            recommendations.append(JobRecommendation(
                id=f"{user_id}:{job.id}",
                job=JobSummary.from_job(job),
                match_score=round(similarity, 4),
                match_confidence=SIMILAR_CONFIDENCE,
                source=RecommendationSource.SIMILAR,
                reasons=[f"Similar to {reference.title}"],
                last_matched=now,
            ))

        ranked = ranking.rank(recommendations)[:limit]
        self._publish_generated(user_id, uuid.uuid4().hex, RecommendationSource.SIMILAR, ranked)
        logger.info(f"Found {len(ranked)} job(s) similar to {job_id} for user {user_id}")
        return ranked

    def get_trending_jobs(
        self, user_id: str, limit: Optional[int] = None, time_window: str = 'week'
    ) -> List[JobRecommendation]:
        """
        Open jobs posted within the window, ranked by application count.

        Raises:
            InvalidRequestError: missing user_id, bad limit or unknown window
        """
        self._require(user_id, "user_id")
        limit = self._validate_limit(limit, self.config.default_trending_limit)
        if time_window not in TRENDING_WINDOWS:
            raise InvalidRequestError(
                f"time_window must be one of {sorted(TRENDING_WINDOWS)}, got {time_window!r}"
            )

        now = self._clock()
        days = TRENDING_WINDOWS[time_window]
        criteria = JobCriteria(
            now=now,
            exclude_job_ids=self._applied_for(user_id),
            posted_after=now - timedelta(days=days),
        )
        jobs = self._call_store("get_jobs_matching", lambda: self.profile_store.get_jobs_matching(criteria))
        jobs = [job for job in jobs if criteria.matches(job)]
        jobs.sort(key=lambda j: (-j.application_count, -j.posted_at.timestamp(), j.id))

        divisor = self.config.trending_application_divisor
        trending = [
            JobRecommendation(
                id=f"{user_id}:{job.id}",
                job=JobSummary.from_job(job),
                match_score=round(min(1.0, job.application_count / divisor), 4),
                match_confidence=TRENDING_CONFIDENCE,
                source=RecommendationSource.TRENDING,
                reasons=[f"{job.application_count} application(s) in the last {days} days"],
                last_matched=now,
            )
            for job in jobs[:limit]
        ]
        self._publish_generated(user_id, uuid.uuid4().hex, RecommendationSource.TRENDING, trending)
        return trending

    # ------------------------------------------------------------------
    # Events, stats, lifecycle
    # ------------------------------------------------------------------

    def register_event_handlers(self, bus: EventBus) -> None:
        """Invalidate cached pages when profiles, preferences, applications or jobs change."""
        bus.subscribe(EventType.PROFILE_UPDATED, self._on_user_changed)
        bus.subscribe(EventType.PREFERENCES_UPDATED, self._on_user_changed)
        bus.subscribe(EventType.APPLICATION_SUBMITTED, self._on_application_submitted)
        for job_event in (EventType.JOB_CREATED, EventType.JOB_UPDATED, EventType.JOB_CLOSED):
            bus.subscribe(job_event, self._on_job_changed)

    def _on_user_changed(self, event: DomainEvent) -> None:
        user_id = event.user_id
        if not user_id:
            logger.warning(f"{event.type} event {event.event_id} has no user_id")
            return
        if self.cache is not None:
            self.cache.invalidate_for_user(user_id)

    def _on_application_submitted(self, event: DomainEvent) -> None:
        user_id = event.user_id
        if not user_id:
            logger.warning(f"application_submitted event {event.event_id} has no user_id")
            return
        if self.cache is not None:
            self.cache.invalidate_for_user(user_id)
        job_id = event.payload.get('job_id') or event.payload.get('jobId')
        if job_id:
            self.interactions.record(user_id, job_id, 'applied')

    def _on_job_changed(self, event: DomainEvent) -> None:
        # Any user's cached page may contain the job
        if self.cache is not None:
            self.cache.clear()
        logger.info(f"{event.type} for job {event.payload.get('job_id')}, recommendation cache cleared")

    def get_stats(self) -> Dict[str, Any]:
        totals = self._stats.totals()
        stats = {name: totals.get(name, 0) for name in ('requests', 'cache_hits', 'cache_misses')}
        stats['cache'] = self.cache.stats() if self.cache is not None else None
        stats['interactions'] = self.interactions.stats()
        stats['collaborative_filtering'] = self.config.enable_collaborative_filtering
        return stats

    def clear_cache(self) -> None:
        if self.cache is not None:
            self.cache.clear()
        self.interactions.clear()
