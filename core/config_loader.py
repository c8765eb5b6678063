import logging
import os
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field, model_validator
from pydantic import ValidationError as PydanticValidationError

from core.errors import ConfigurationError

logger = logging.getLogger(__name__)


class ScoringWeights(BaseModel):
    """Weights for each dimension in the composite match score.

    Must sum to 1.0. A table that does not is renormalized with a warning.
    """
    skills: float = Field(default=0.40, ge=0)
    experience: float = Field(default=0.25, ge=0)
    location: float = Field(default=0.15, ge=0)
    salary: float = Field(default=0.10, ge=0)
    education: float = Field(default=0.10, ge=0)
    preferences: float = Field(default=0.0, ge=0)
    cultural_fit: float = Field(default=0.0, ge=0)

    @model_validator(mode='after')
    def normalize_total(self) -> "ScoringWeights":
        values = self.model_dump()
        total = sum(values.values())
        if total <= 0:
            raise ValueError("scoring weights must not all be zero")
        if abs(total - 1.0) > 1e-6:
            logger.warning(f"Scoring weights sum to {total:.4f}, normalizing to 1.0")
            for name, value in values.items():
                setattr(self, name, value / total)
        return self


class ScorerConfig(BaseModel):
    """
    Configuration for the ScoringEngine.

    Thresholds are fractions in [0, 1]; reported scores are on 0-100.
    """
    weights: ScoringWeights = Field(default_factory=ScoringWeights)

    # Skills
    required_skill_weight: float = 2.0
    preferred_skill_weight: float = 1.0
    below_level_credit: float = 0.5  # credit for a matched skill under the job's minimum level

    # Experience
    experience_level_penalty: float = 0.2  # per ordinal level of difference

    # Salary / location / neutral handling
    salary_floor: float = 0.2  # no overlap, keeps the job visible to boosting
    relocation_credit: float = 0.3
    neutral_score: float = 0.5  # dimension has no data on one side

    # Confidence
    confidence_floor: float = 0.5

    # Batch scoring worker pool
    max_workers: int = Field(default=8, ge=1)


class RecommendationConfig(BaseModel):
    """Configuration for the JobRecommendationService."""
    max_recommendations: int = Field(default=50, ge=1)
    default_limit: int = Field(default=20, ge=1)
    min_score_threshold: float = Field(default=0.3, ge=0, le=1)  # fraction of 1

    # Collaborative boosting: score + (1 - score) * boost_max * signal
    enable_collaborative_filtering: bool = True
    collaborative_boost_max: float = Field(default=0.2, ge=0, le=1)
    collaborative_max_neighbors: int = 20
    collaborative_min_similarity: float = 0.1

    # Similar / trending variants
    similar_jobs_min_similarity: float = 0.1
    default_similar_limit: int = 10
    default_trending_limit: int = 20
    trending_application_divisor: int = 50

    # Interaction tracking
    max_interactions_per_user: int = 500
    max_tracked_users: int = Field(default=10000, ge=1)  # least recently active users are dropped beyond this
    user_shards: int = Field(default=16, ge=1)  # lock stripes for per-user tracking and request stats

    # Per-request timeout applied when the caller does not pass one (None = no timeout)
    request_timeout_seconds: Optional[float] = None


class CacheConfig(BaseModel):
    """Configuration for the in-process RecommendationCache."""
    enabled: bool = True
    ttl_seconds: int = Field(default=1800, ge=1)  # 30 minutes
    max_entries: int = Field(default=1000, ge=1)
    shards: int = Field(default=16, ge=1)
    sweep_interval_seconds: int = Field(default=60, ge=1)
    eviction: Literal["oldest", "lru"] = "oldest"


class EventBusConfig(BaseModel):
    """Domain event transport. 'memory' dispatches in-process; 'redis' uses pub/sub."""
    backend: Literal["memory", "redis"] = "memory"
    redis_url: str = "redis://localhost:6379/0"
    channel_prefix: str = "jobmatch:events:"
    publish_workers: int = Field(default=1, ge=1)  # background threads delivering published events


class AnalyzerConfig(BaseModel):
    """Configuration for the ProfileAnalyzer."""
    medium_priority_threshold: int = 70  # completeness below this -> MEDIUM recommendations
    min_skill_count: int = 5
    top_skills_limit: int = 5
    suggested_skills_limit: int = 5


class AppConfig(BaseModel):
    scorer: ScorerConfig = Field(default_factory=ScorerConfig)
    recommendations: RecommendationConfig = Field(default_factory=RecommendationConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    events: EventBusConfig = Field(default_factory=EventBusConfig)
    analyzer: AnalyzerConfig = Field(default_factory=AnalyzerConfig)


def _env_int(name: str) -> Optional[int]:
    raw = os.environ.get(name)
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e


def load_config(config_path: str = "config.yaml") -> AppConfig:
    """Load config from YAML, then apply environment overrides.

    Raises:
        ConfigurationError: unreadable YAML, a bad override or an invalid value
    """
    # If not found at relative path (e.g. running from root), try the project root
    if not os.path.exists(config_path):
        base_dir = os.path.dirname(os.path.abspath(__file__))
        config_path = os.path.join(base_dir, "..", "config.yaml")

    data = {}
    if os.path.exists(config_path):
        try:
            with open(config_path, "r") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Could not parse {config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"{config_path} must contain a mapping, got {type(data).__name__}")
    else:
        logger.warning(f"Config file not found at {config_path}, using defaults")

    # Allow env var override for Redis URL
    env_redis_url = os.environ.get("REDIS_URL")
    if env_redis_url:
        data.setdefault('events', {})
        data['events']['redis_url'] = env_redis_url

    # Allow env var override for event backend
    env_event_backend = os.environ.get("JOBMATCH_EVENT_BACKEND")
    if env_event_backend:
        data.setdefault('events', {})
        data['events']['backend'] = env_event_backend

    # Allow env var override for cache TTL
    env_cache_ttl = _env_int("JOBMATCH_CACHE_TTL_SECONDS")
    if env_cache_ttl is not None:
        data.setdefault('cache', {})
        data['cache']['ttl_seconds'] = env_cache_ttl

    # Allow env var override for the recommendation limit cap
    env_max_recs = _env_int("JOBMATCH_MAX_RECOMMENDATIONS")
    if env_max_recs is not None:
        data.setdefault('recommendations', {})
        data['recommendations']['max_recommendations'] = env_max_recs

    try:
        return AppConfig.model_validate(data)
    except PydanticValidationError as e:
        raise ConfigurationError(f"Invalid configuration in {config_path}: {e}") from e
