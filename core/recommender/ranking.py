#!/usr/bin/env python3
"""
Ranking with a deterministic tie-break.

relevance: score desc, then posted_at desc (undated last), then job id asc
recent:    posted_at desc, then score desc, then job id asc
"""

from typing import List, Tuple

from core.recommender.models import JobRecommendation, SortOrder


def _posted_key(rec: JobRecommendation) -> float:
    # Negated timestamp; undated jobs sort after dated ones
    if rec.job.posted_at is None:
        return float('inf')
    return -rec.job.posted_at.timestamp()


def _relevance_key(rec: JobRecommendation) -> Tuple[float, float, str]:
    return (-rec.match_score, _posted_key(rec), rec.job.id)


def _recent_key(rec: JobRecommendation) -> Tuple[float, float, str]:
    return (_posted_key(rec), -rec.match_score, rec.job.id)


def rank(recommendations: List[JobRecommendation], sort: SortOrder = SortOrder.RELEVANCE) -> List[JobRecommendation]:
    key = _recent_key if sort == SortOrder.RECENT else _relevance_key
    return sorted(recommendations, key=key)
