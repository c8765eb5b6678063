"""
Profile Module - validated candidate, job and preference records.

Public API:
- CandidateProfile, JobProfile, UserPreferences: store-boundary records
- total_experience_years, level_for_years: experience duration helpers
"""

from core.profiles.models import (
    CandidateProfile,
    CompanyInfo,
    Education,
    EducationLevel,
    EducationRequirement,
    Experience,
    ExperienceLevel,
    JobPreferences,
    JobProfile,
    JobStatus,
    PersonalInfo,
    Project,
    RequiredSkill,
    SalaryRange,
    Skill,
    SkillLevel,
    UserPreferences,
)
from core.profiles.years import level_for_years, total_experience_years

__all__ = [
    'CandidateProfile',
    'CompanyInfo',
    'Education',
    'EducationLevel',
    'EducationRequirement',
    'Experience',
    'ExperienceLevel',
    'JobPreferences',
    'JobProfile',
    'JobStatus',
    'PersonalInfo',
    'Project',
    'RequiredSkill',
    'SalaryRange',
    'Skill',
    'SkillLevel',
    'UserPreferences',
    'level_for_years',
    'total_experience_years',
]
