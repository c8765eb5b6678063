#!/usr/bin/env python3
"""
Recommendation Module - ranked job recommendations.

Public API:
- JobRecommendationService: get_recommendations / get_similar_jobs / get_trending_jobs
- RecommendationRequest, RecommendationFilters: request models
- PaginatedResponse, JobRecommendation: response models

- models.py: Request, context and response structures
- retrieval.py: Hard retrieval criteria from request and preferences
- collaborative.py: Similarity providers and headroom boosting
- interactions.py: Thread-safe interaction tracking
- similarity.py: Job-to-job content similarity
- ranking.py: Deterministic ordering
- service.py: JobRecommendationService orchestrator
"""

from core.recommender.collaborative import (
    InteractionSimilarityProvider,
    NoOpSimilarityProvider,
    SimilarityProvider,
)
from core.recommender.interactions import InteractionTracker
from core.recommender.models import (
    JobRecommendation,
    JobSummary,
    PaginatedResponse,
    RecommendationFilters,
    RecommendationRequest,
    RecommendationSource,
    SortOrder,
)
from core.recommender.service import JobRecommendationService

__all__ = [
    'InteractionSimilarityProvider',
    'InteractionTracker',
    'JobRecommendation',
    'JobRecommendationService',
    'JobSummary',
    'NoOpSimilarityProvider',
    'PaginatedResponse',
    'RecommendationFilters',
    'RecommendationRequest',
    'RecommendationSource',
    'SimilarityProvider',
    'SortOrder',
]
