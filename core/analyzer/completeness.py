#!/usr/bin/env python3
"""
Profile completeness scoring.

Point allocation (sums to 100):
- personal info 20: name 5, email 5, phone 3, location 3, headline or summary 4
- experience 30: any entry 20, any entry with a description or achievements 10
- education 15: any entry 10, any entry with both degree and school 5
- skills 20: any skill 10, at least MIN_SKILLS_FOR_FULL_CREDIT skills 10
- projects 15: any project 10, any project with a description or technologies 5

Each section only adds points for content it has, so removing a section can
never raise the score.
"""

from typing import Dict, Tuple

from core.profiles.models import CandidateProfile

MIN_SKILLS_FOR_FULL_CREDIT = 5

SECTION_POINTS = {
    'personal_info': 20,
    'experience': 30,
    'education': 15,
    'skills': 20,
    'projects': 15,
}


def _personal_info_points(profile: CandidateProfile) -> int:
    info = profile.personal_info
    points = 0
    if info.first_name.strip() or info.last_name.strip():
        points += 5
    if info.email.strip():
        points += 5
    if info.phone.strip():
        points += 3
    if info.location.strip():
        points += 3
    if info.headline.strip() or info.summary.strip():
        points += 4
    return points


def _experience_points(profile: CandidateProfile) -> int:
    if not profile.experience:
        return 0
    points = 20
    if any(e.description.strip() or e.achievements for e in profile.experience):
        points += 10
    return points


def _education_points(profile: CandidateProfile) -> int:
    if not profile.education:
        return 0
    points = 10
    if any(e.degree.strip() and e.school_name.strip() for e in profile.education):
        points += 5
    return points


def _skills_points(profile: CandidateProfile) -> int:
    if not profile.skills:
        return 0
    points = 10
    if len(profile.skills) >= MIN_SKILLS_FOR_FULL_CREDIT:
        points += 10
    return points


def _projects_points(profile: CandidateProfile) -> int:
    if not profile.projects:
        return 0
    points = 10
    if any(p.description.strip() or p.technologies for p in profile.projects):
        points += 5
    return points


def completeness_breakdown(profile: CandidateProfile) -> Tuple[int, Dict[str, int]]:
    """
    Calculate profile completeness.

    Returns:
        Tuple of (completeness 0-100, points earned per section)
    """
    sections = {
        'personal_info': _personal_info_points(profile),
        'experience': _experience_points(profile),
        'education': _education_points(profile),
        'skills': _skills_points(profile),
        'projects': _projects_points(profile),
    }
    total = sum(sections.values())
    return max(0, min(100, total)), sections
