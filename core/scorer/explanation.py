#!/usr/bin/env python3
"""
Match Explanation - deterministic strengths, weaknesses and skill gaps.

Derived only from the dimension fractions and their details, using fixed
thresholds, so the same breakdown always produces the same explanation.
"""

from typing import Any, Dict, List

from core.config_loader import ScorerConfig
from core.scorer.models import MatchExplanation

MAX_SKILL_GAPS = 3

SKILLS_STRENGTH = 0.8
SKILLS_WEAKNESS = 0.3
EXPERIENCE_STRENGTH = 0.7
EXPERIENCE_WEAKNESS = 0.4
LOCATION_STRENGTH = 0.8
LOCATION_WEAKNESS = 0.3
SALARY_STRENGTH = 0.8
EDUCATION_STRENGTH = 0.7


def _join(names: List[str], limit: int = 3) -> str:
    shown = names[:limit]
    text = ", ".join(shown)
    if len(names) > limit:
        text += f" and {len(names) - limit} more"
    return text


def build_explanation(
    fractions: Dict[str, float],
    components: Dict[str, Dict[str, Any]],
    config: ScorerConfig,
) -> MatchExplanation:
    strengths: List[str] = []
    weaknesses: List[str] = []
    suggestions: List[str] = []

    skills = fractions['skills']
    skill_details = components.get('skills', {})
    matched = skill_details.get('matched', [])
    missing_required = skill_details.get('missing_required', [])
    skill_gaps = list(missing_required[:MAX_SKILL_GAPS])

    if skills > SKILLS_STRENGTH:
        strengths.append(f"Strong skills match: {_join(matched)}")
    elif skills < SKILLS_WEAKNESS:
        weaknesses.append("Limited overlap with the job's skill requirements")
    for gap in skill_gaps:
        suggestions.append(f"Build experience with {gap}")
    for name in skill_details.get('below_level', [])[:MAX_SKILL_GAPS]:
        suggestions.append(f"Deepen your proficiency in {name}")

    experience = fractions['experience']
    exp_details = components.get('experience', {})
    if experience > EXPERIENCE_STRENGTH:
        strengths.append(f"Good experience match ({exp_details.get('years', 0.0)} years)")
    elif experience < EXPERIENCE_WEAKNESS:
        if exp_details.get('years', 0.0) == 0.0 and 'job_level' not in exp_details:
            weaknesses.append("No relevant work experience listed")
        else:
            weaknesses.append(
                f"Experience level ({exp_details.get('candidate_level', 'unknown')}) differs from "
                f"the role ({exp_details.get('job_level', 'unspecified')})"
            )
        suggestions.append("Highlight responsibilities that match the role's seniority")

    location = fractions['location']
    if location >= LOCATION_STRENGTH:
        strengths.append("Location fits your preferences")
    elif location < LOCATION_WEAKNESS:
        weaknesses.append("Job location is outside your preferred locations")

    salary = fractions['salary']
    if salary >= SALARY_STRENGTH:
        strengths.append("Salary range aligns with your expectations")
    elif salary <= config.salary_floor:
        weaknesses.append("Salary range does not overlap your expectations")

    education = fractions['education']
    if education >= EDUCATION_STRENGTH:
        strengths.append("Education is relevant to the role")
    elif education == 0.0:
        weaknesses.append("No education listed")
        suggestions.append("Add your education history")

    summary_parts = []
    if matched:
        summary_parts.append(f"Matches {len(matched)} of the job's skills ({_join(matched)})")
    else:
        summary_parts.append("No matching skills")
    if exp_details.get('candidate_level'):
        summary_parts.append(f"{exp_details['candidate_level']}-level experience")
    summary = "; ".join(summary_parts)

    return MatchExplanation(
        summary=summary,
        strengths=strengths,
        weaknesses=weaknesses,
        skill_gaps=skill_gaps,
        improvement_suggestions=suggestions,
    )
