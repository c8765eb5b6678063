#!/usr/bin/env python3
"""
Retrieval criteria for the candidate job pool.

Only hard constraints go into the criteria: explicit request filters, the
candidate's remote-only preference, excluded companies and jobs already
applied to. Soft preferences (preferred locations, salary, industries) are
left to scoring so the pool stays a superset of what can be recommended.
"""

from datetime import datetime

from core.recommender.models import RecommendationContext, RecommendationFilters
from core.stores.interfaces import JobCriteria


def build_criteria(context: RecommendationContext, filters: RecommendationFilters, now: datetime) -> JobCriteria:
    exclude_companies = list(context.preferences.exclude_companies)
    for company in filters.exclude_companies:
        if company not in exclude_companies:
            exclude_companies.append(company)

    return JobCriteria(
        now=now,
        exclude_job_ids=set(context.applied_job_ids) | set(filters.exclude_job_ids),
        exclude_companies=exclude_companies,
        remote_only=filters.remote_only or context.preferences.remote_only,
        locations=list(filters.locations),
        experience_levels=list(filters.experience_levels),
        skills=list(filters.skills),
        salary_min=filters.salary_min,
        salary_max=filters.salary_max,
        industries=list(filters.industries),
        job_types=list(filters.job_types),
    )
