#!/usr/bin/env python3
"""
Experience duration helpers.

Total years are month-accurate (relativedelta) over the merged union of
experience intervals, so overlapping roles are not double counted.
"""

import logging
from datetime import date
from typing import Iterable, List, Optional, Tuple

from dateutil.relativedelta import relativedelta

from core.profiles.models import EXPERIENCE_LEVEL_ORDER, Experience, ExperienceLevel, JobProfile

logger = logging.getLogger(__name__)

# Upper bounds (exclusive, in years) for each level; anything beyond is principal.
LEVEL_YEAR_THRESHOLDS = [
    (1.0, ExperienceLevel.ENTRY),
    (3.0, ExperienceLevel.JUNIOR),
    (5.0, ExperienceLevel.MID),
    (8.0, ExperienceLevel.SENIOR),
    (12.0, ExperienceLevel.LEAD),
]


def _intervals(experiences: Iterable[Experience], today: date) -> List[Tuple[date, date]]:
    intervals = []
    for entry in experiences:
        if entry.start_date is None:
            continue
        end = today if (entry.is_current or entry.end_date is None) else entry.end_date
        if end < entry.start_date:
            logger.debug(f"Skipping experience {entry.id or entry.title!r} with inverted dates")
            continue
        intervals.append((entry.start_date, end))
    return sorted(intervals)


def total_experience_years(experiences: Iterable[Experience], today: Optional[date] = None) -> float:
    """Total years of experience, rounded to one decimal."""
    today = today or date.today()
    merged: List[Tuple[date, date]] = []
    for start, end in _intervals(experiences, today):
        if merged and start <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))

    total_months = 0
    for start, end in merged:
        diff = relativedelta(end, start)
        total_months += max(0, diff.years * 12 + diff.months)
    return round(total_months / 12, 1)


def level_for_years(years: float) -> ExperienceLevel:
    """Map years of experience to an ordinal experience level."""
    for upper, level in LEVEL_YEAR_THRESHOLDS:
        if years < upper:
            return level
    return ExperienceLevel.PRINCIPAL


def level_distance(a: ExperienceLevel, b: ExperienceLevel) -> int:
    return abs(EXPERIENCE_LEVEL_ORDER.index(a) - EXPERIENCE_LEVEL_ORDER.index(b))


def required_experience_level(job: JobProfile) -> Optional[ExperienceLevel]:
    """Declared job level, else the level implied by its minimum years."""
    if job.experience_level is not None:
        return job.experience_level
    if job.min_years_experience is not None:
        return level_for_years(job.min_years_experience)
    return None
