#!/usr/bin/env python3
"""
Dimension Scores - one function per scoring dimension.

Each function returns (score, details) where score is a fraction in [0, 1]
and details records what drove it. Missing data on either side yields the
neutral score rather than an error, except where noted:
- skills: a job with no declared skills scores exactly 0
- experience / education: a candidate with no entries scores 0
"""

import logging
from datetime import date
from typing import Any, Dict, Optional, Tuple

from core.config_loader import ScorerConfig
from core.profiles.models import CandidateProfile, JobProfile, SkillLevel, UserPreferences
from core.profiles.years import (
    level_distance,
    level_for_years,
    required_experience_level,
    total_experience_years,
)
from core.utils import clamp01, normalize_skill_name, tokenize

logger = logging.getLogger(__name__)

DimensionResult = Tuple[float, Dict[str, Any]]

# Education scoring mix
EDUCATION_PRESENCE_WEIGHT = 0.4
EDUCATION_RELEVANCE_WEIGHT = 0.4
EDUCATION_LEVEL_WEIGHT = 0.2
EDUCATION_UNRELATED_CREDIT = 0.3

# Tokens too generic to signal field-of-study relevance
FIELD_STOPWORDS = {
    'a', 'an', 'and', 'the', 'of', 'in', 'for', 'to', 'with', 'or', 'on',
    'degree', 'bachelor', 'bachelors', 'master', 'masters', 'science',
    'sciences', 'arts', 'studies', 'general', 'program',
}

REMOTE_TOKEN = 'remote'


def _candidate_skill_levels(candidate: CandidateProfile) -> Dict[str, SkillLevel]:
    levels: Dict[str, SkillLevel] = {}
    # Skills named only in experience carry no declared level
    for entry in candidate.experience:
        for name in entry.skills:
            key = normalize_skill_name(name)
            if key:
                levels.setdefault(key, SkillLevel.INTERMEDIATE)
    for skill in candidate.skills:
        key = normalize_skill_name(skill.name)
        if not key:
            continue
        current = levels.get(key)
        if current is None or skill.level.rank > current.rank:
            levels[key] = skill.level
    return levels


def score_skills(candidate: CandidateProfile, job: JobProfile, config: ScorerConfig) -> DimensionResult:
    """Weighted skill coverage. Required skills weigh double; below-level matches earn partial credit."""
    details: Dict[str, Any] = {
        'matched': [],
        'below_level': [],
        'missing_required': [],
        'missing_preferred': [],
    }
    if not job.skills:
        details['reason'] = "Job declares no skills"
        return 0.0, details

    candidate_levels = _candidate_skill_levels(candidate)
    total_weight = 0.0
    credit = 0.0
    seen = set()
    for skill in job.skills:
        key = normalize_skill_name(skill.name)
        if not key or key in seen:
            continue
        seen.add(key)

        weight = config.required_skill_weight if skill.required else config.preferred_skill_weight
        total_weight += weight

        level = candidate_levels.get(key)
        if level is None:
            details['missing_required' if skill.required else 'missing_preferred'].append(skill.name)
            continue

        factor = 1.0
        if skill.level is not None and level.rank < skill.level.rank:
            factor = config.below_level_credit
            details['below_level'].append(skill.name)
        credit += weight * factor
        details['matched'].append(skill.name)

    score = credit / total_weight if total_weight > 0 else 0.0
    details['weighted_credit'] = round(credit, 4)
    details['weighted_total'] = round(total_weight, 4)
    return clamp01(score), details


def score_experience(
    candidate: CandidateProfile,
    job: JobProfile,
    config: ScorerConfig,
    today: Optional[date] = None,
) -> DimensionResult:
    """Ordinal level distance: each level of difference costs experience_level_penalty."""
    if not candidate.experience:
        return 0.0, {'reason': "Candidate lists no experience", 'years': 0.0}

    years = total_experience_years(candidate.experience, today)
    candidate_level = level_for_years(years)
    details: Dict[str, Any] = {'years': years, 'candidate_level': candidate_level.value}

    job_level = required_experience_level(job)
    if job_level is None:
        details['reason'] = "Job declares no experience level"
        return config.neutral_score, details

    distance = level_distance(candidate_level, job_level)
    details['job_level'] = job_level.value
    details['level_distance'] = distance
    return clamp01(1.0 - config.experience_level_penalty * distance), details


def _field_tokens(text: str) -> set:
    return {t for t in tokenize(text) if t not in FIELD_STOPWORDS and len(t) > 1}


def score_education(candidate: CandidateProfile, job: JobProfile, config: ScorerConfig) -> DimensionResult:
    """Presence, field-of-study relevance and level against the job's requirements."""
    if not candidate.education:
        return 0.0, {'reason': "Candidate lists no education"}

    job_tokens = _field_tokens(job.title) | _field_tokens(job.description)
    for req in job.education_requirements:
        if req.field:
            job_tokens |= _field_tokens(req.field)

    candidate_tokens = set()
    for entry in candidate.education:
        candidate_tokens |= _field_tokens(entry.field_of_study)

    overlap = sorted(candidate_tokens & job_tokens)
    relevance = 1.0 if overlap else EDUCATION_UNRELATED_CREDIT

    required_levels = [r.level for r in job.education_requirements if r.level is not None]
    level_score = 1.0
    details: Dict[str, Any] = {'relevant_terms': overlap}
    if required_levels:
        needed = max(required_levels, key=lambda lvl: lvl.rank)
        held = [e.level.rank for e in candidate.education if e.level is not None]
        meets = bool(held) and max(held) >= needed.rank
        level_score = 1.0 if meets else 0.5
        details['required_level'] = needed.value
        details['meets_level'] = meets

    score = (
        EDUCATION_PRESENCE_WEIGHT
        + EDUCATION_RELEVANCE_WEIGHT * relevance
        + EDUCATION_LEVEL_WEIGHT * level_score
    )
    return clamp01(score), details


def _accepts_remote(preferences: UserPreferences) -> bool:
    if preferences.remote_only:
        return True
    if any(normalize_skill_name(loc) == REMOTE_TOKEN for loc in preferences.locations):
        return True
    return any(normalize_skill_name(t) == REMOTE_TOKEN for t in preferences.job_types)


def score_location(job: JobProfile, preferences: UserPreferences, config: ScorerConfig) -> DimensionResult:
    accepts_remote = _accepts_remote(preferences)
    if job.is_remote and accepts_remote:
        return 1.0, {'reason': "Remote job, candidate accepts remote"}

    places = [loc for loc in preferences.locations if normalize_skill_name(loc) != REMOTE_TOKEN]
    if preferences.remote_only:
        return 0.0, {'reason': "Candidate wants remote only, job is on-site"}
    if not places and not accepts_remote:
        return config.neutral_score, {'reason': "No location preference"}

    job_location = normalize_skill_name(job.location)
    if job_location:
        for place in places:
            wanted = normalize_skill_name(place)
            if wanted and (wanted in job_location or job_location in wanted):
                return 1.0, {'reason': f"Job location matches preferred location {place}"}

    if preferences.willing_to_relocate:
        return config.relocation_credit, {'reason': "Willing to relocate"}
    return 0.0, {'reason': "Job location not in preferred locations"}


def score_salary(job: JobProfile, preferences: UserPreferences, config: ScorerConfig) -> DimensionResult:
    """Overlap of desired and offered ranges relative to the narrower range."""
    wanted = preferences.salary_range.bounds() if preferences.salary_range else None
    offered = job.salary.bounds() if job.salary else None
    if wanted is None or offered is None:
        return config.neutral_score, {'reason': "Salary range missing"}
    if preferences.salary_range.currency != job.salary.currency:
        return config.neutral_score, {'reason': "Salary currencies differ"}

    overlap = min(wanted[1], offered[1]) - max(wanted[0], offered[0])
    details = {'desired': list(wanted), 'offered': list(offered), 'overlap': overlap}
    if overlap < 0:
        details['reason'] = "No salary overlap"
        return config.salary_floor, details

    narrower = min(wanted[1] - wanted[0], offered[1] - offered[0])
    if narrower <= 0:
        ratio = 1.0
    else:
        ratio = overlap / narrower
    return max(config.salary_floor, clamp01(ratio)), details


def score_preferences(job: JobProfile, preferences: UserPreferences, config: ScorerConfig) -> DimensionResult:
    """Job type and industry alignment, each neutral when undeclared."""
    details: Dict[str, Any] = {}

    wanted_types = {
        normalize_skill_name(t) for t in preferences.job_types
        if normalize_skill_name(t) != REMOTE_TOKEN
    }
    if wanted_types and job.job_type:
        type_score = 1.0 if normalize_skill_name(job.job_type) in wanted_types else 0.0
    else:
        type_score = config.neutral_score
    details['job_type'] = type_score

    wanted_industries = {normalize_skill_name(i) for i in preferences.industries}
    if wanted_industries and job.company.industry:
        industry_score = 1.0 if normalize_skill_name(job.company.industry) in wanted_industries else 0.0
    else:
        industry_score = config.neutral_score
    details['industry'] = industry_score

    return (type_score + industry_score) / 2.0, details


def score_cultural_fit(job: JobProfile, preferences: UserPreferences, config: ScorerConfig) -> DimensionResult:
    """Base 0.5, plus company size match and culture/work-style overlap."""
    score = 0.5
    details: Dict[str, Any] = {}

    sizes = {normalize_skill_name(s) for s in preferences.company_sizes}
    if sizes and job.company.size:
        size_match = normalize_skill_name(job.company.size) in sizes
        details['company_size_match'] = size_match
        if size_match:
            score += 0.25

    styles = {normalize_skill_name(s) for s in preferences.work_styles}
    tags = {normalize_skill_name(t) for t in job.company.culture_tags}
    if styles and tags:
        shared = sorted(styles & tags)
        details['shared_culture'] = shared
        if shared:
            score += 0.25

    return clamp01(score), details
