#!/usr/bin/env python3
"""
Recommender Models - requests, context and response structures.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field

from core.profiles.models import CandidateProfile, ExperienceLevel, JobProfile, SalaryRange, UserPreferences
from core.scorer.models import MatchExplanation, MatchType, ScoreBreakdown


class SortOrder(str, Enum):
    RELEVANCE = "relevance"  # score desc, posted_at desc, job id
    RECENT = "recent"        # posted_at desc, score desc, job id


class RecommendationSource(str, Enum):
    PROFILE = "profile"
    SIMILAR = "similar"
    TRENDING = "trending"


class RecommendationFilters(BaseModel):
    """Explicit request filters. Applied as hard retrieval criteria."""
    model_config = ConfigDict(extra='forbid')

    skills: List[str] = Field(default_factory=list)
    experience_levels: List[ExperienceLevel] = Field(default_factory=list)
    locations: List[str] = Field(default_factory=list)
    remote_only: bool = False
    salary_min: Optional[float] = Field(default=None, ge=0)
    salary_max: Optional[float] = Field(default=None, ge=0)
    industries: List[str] = Field(default_factory=list)
    job_types: List[str] = Field(default_factory=list)
    exclude_companies: List[str] = Field(default_factory=list)
    exclude_job_ids: List[str] = Field(default_factory=list)


class RecommendationRequest(BaseModel):
    """Limit and page are validated by the service so violations surface as InvalidRequestError."""
    model_config = ConfigDict(extra='forbid')

    filters: RecommendationFilters = Field(default_factory=RecommendationFilters)
    sort: SortOrder = SortOrder.RELEVANCE
    limit: Optional[int] = None
    page: int = 1


@dataclass
class JobSummary:
    """Denormalized job fields shown alongside a recommendation."""
    id: str
    title: str
    company_name: str
    location: str
    is_remote: bool
    job_type: Optional[str]
    salary: Optional[SalaryRange]
    posted_at: Optional[datetime]
    skills: List[str] = field(default_factory=list)

    @classmethod
    def from_job(cls, job: JobProfile) -> "JobSummary":
        return cls(
            id=job.id,
            title=job.title,
            company_name=job.company.name,
            location=job.location,
            is_remote=job.is_remote,
            job_type=job.job_type,
            salary=job.salary,
            posted_at=job.posted_at,
            skills=[s.name for s in job.skills],
        )


@dataclass
class JobRecommendation:
    id: str
    job: JobSummary
    match_score: float  # fraction in [0, 1]
    match_confidence: float
    source: RecommendationSource = RecommendationSource.PROFILE
    match_type: Optional[MatchType] = None
    match_details: Optional[ScoreBreakdown] = None
    explanation: Optional[MatchExplanation] = None
    reasons: List[str] = field(default_factory=list)
    last_matched: Optional[datetime] = None


@dataclass
class RecommendationContext:
    """Request-scoped inputs, built once per request and discarded after."""
    user_id: str
    request_id: str
    now: datetime
    profile: CandidateProfile
    preferences: UserPreferences
    applied_job_ids: Set[str] = field(default_factory=set)
    interactions: Dict[str, float] = field(default_factory=dict)


@dataclass
class PaginatedResponse:
    data: List[JobRecommendation]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_more: bool

    @classmethod
    def from_ranked(cls, ranked: List[JobRecommendation], page: int, page_size: int) -> "PaginatedResponse":
        offset = (page - 1) * page_size
        total = len(ranked)
        return cls(
            data=ranked[offset:offset + page_size],
            total=total,
            page=page,
            page_size=page_size,
            total_pages=math.ceil(total / page_size) if total else 0,
            has_more=offset + page_size < total,
        )
