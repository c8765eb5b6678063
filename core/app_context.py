import logging
from dataclasses import dataclass
from typing import Optional

from core.analyzer.service import ProfileAnalyzer
from core.cache.recommendation_cache import EVICTION_POLICIES, RecommendationCache
from core.config_loader import AppConfig, CacheConfig, EventBusConfig
from core.events import EventBus, InMemoryEventBus, RedisEventBus
from core.recommender.collaborative import InteractionSimilarityProvider
from core.recommender.interactions import InteractionTracker
from core.recommender.service import JobRecommendationService
from core.scheduler import Scheduler, ThreadScheduler
from core.scorer.service import ScoringEngine
from core.stores.interfaces import PreferencesStore, ProfileStore

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Application context container that holds all wired dependencies.

    Stores are supplied by the embedding application; everything else is
    built from config. Background work (cache sweeping, event listening)
    starts only when start() is called.
    """
    config: AppConfig
    analyzer: ProfileAnalyzer
    scoring_engine: ScoringEngine
    recommendation_service: JobRecommendationService
    event_bus: EventBus
    scheduler: Scheduler
    cache: Optional[RecommendationCache] = None

    @classmethod
    def build(
        cls,
        config: AppConfig,
        profile_store: ProfileStore,
        preferences_store: Optional[PreferencesStore] = None,
        scheduler: Optional[Scheduler] = None,
        event_bus: Optional[EventBus] = None,
    ) -> "AppContext":
        """Build an AppContext from config.

        Args:
            config: Loaded application configuration
            profile_store: Candidate/job store implementation
            preferences_store: Optional preferences store implementation
            scheduler: Scheduler for background tasks (defaults to ThreadScheduler)
            event_bus: Event transport (defaults to the configured backend)

        Returns:
            Fully wired AppContext instance
        """
        scheduler = scheduler or ThreadScheduler()
        event_bus = event_bus or cls._build_event_bus(config.events)

        cache = cls._build_cache(config.cache)
        if cache is not None:
            cache.schedule_sweep(scheduler, config.cache.sweep_interval_seconds)

        rec_config = config.recommendations
        tracker = InteractionTracker(
            max_per_user=rec_config.max_interactions_per_user,
            max_users=rec_config.max_tracked_users,
            shards=rec_config.user_shards,
        )
        similarity_provider = InteractionSimilarityProvider(
            tracker,
            max_neighbors=rec_config.collaborative_max_neighbors,
            min_similarity=rec_config.collaborative_min_similarity,
        )

        scoring_engine = ScoringEngine(config.scorer)
        recommendation_service = JobRecommendationService(
            profile_store=profile_store,
            preferences_store=preferences_store,
            scoring_engine=scoring_engine,
            cache=cache,
            config=rec_config,
            event_bus=event_bus,
            similarity_provider=similarity_provider,
            interaction_tracker=tracker,
        )
        recommendation_service.register_event_handlers(event_bus)

        return cls(
            config=config,
            analyzer=ProfileAnalyzer(config.analyzer),
            scoring_engine=scoring_engine,
            recommendation_service=recommendation_service,
            event_bus=event_bus,
            scheduler=scheduler,
            cache=cache,
        )

    @staticmethod
    def _build_cache(cache_config: CacheConfig) -> Optional[RecommendationCache]:
        """Build the recommendation cache, or None when caching is disabled."""
        if not cache_config.enabled:
            logger.info("Recommendation cache disabled")
            return None
        return RecommendationCache(
            max_entries=cache_config.max_entries,
            ttl_seconds=cache_config.ttl_seconds,
            shards=cache_config.shards,
            eviction_policy=EVICTION_POLICIES[cache_config.eviction](),
        )

    @staticmethod
    def _build_event_bus(events_config: EventBusConfig) -> EventBus:
        """Build the event bus for the configured backend."""
        if events_config.backend == "redis":
            return RedisEventBus(
                redis_url=events_config.redis_url,
                channel_prefix=events_config.channel_prefix,
                publish_workers=events_config.publish_workers,
            )
        return InMemoryEventBus()

    def start(self) -> None:
        self.scheduler.start()
        self.event_bus.start()

    def shutdown(self) -> None:
        """Stop background work and release the event transport."""
        self.scheduler.shutdown()
        self.event_bus.close()
        logger.info("Application context shut down")
