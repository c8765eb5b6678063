#!/usr/bin/env python3
"""
Profile Models - validated records for candidates, jobs and preferences.

Records are validated here, at the store boundary, so scoring and analysis
never see untyped JSON. Missing list sections are coerced to empty lists:
a sparse profile is partial data, not an error.
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# ============================================================================
# ENUMS
# ============================================================================

class SkillLevel(str, Enum):
    BEGINNER = "BEGINNER"
    INTERMEDIATE = "INTERMEDIATE"
    ADVANCED = "ADVANCED"
    EXPERT = "EXPERT"

    @property
    def rank(self) -> int:
        return SKILL_LEVEL_ORDER.index(self)


SKILL_LEVEL_ORDER = [
    SkillLevel.BEGINNER,
    SkillLevel.INTERMEDIATE,
    SkillLevel.ADVANCED,
    SkillLevel.EXPERT,
]


class ExperienceLevel(str, Enum):
    ENTRY = "entry"
    JUNIOR = "junior"
    MID = "mid"
    SENIOR = "senior"
    LEAD = "lead"
    PRINCIPAL = "principal"

    @property
    def rank(self) -> int:
        return EXPERIENCE_LEVEL_ORDER.index(self)


EXPERIENCE_LEVEL_ORDER = [
    ExperienceLevel.ENTRY,
    ExperienceLevel.JUNIOR,
    ExperienceLevel.MID,
    ExperienceLevel.SENIOR,
    ExperienceLevel.LEAD,
    ExperienceLevel.PRINCIPAL,
]


class EducationLevel(str, Enum):
    HIGH_SCHOOL = "HIGH_SCHOOL"
    ASSOCIATE = "ASSOCIATE"
    BACHELOR = "BACHELOR"
    MASTER = "MASTER"
    DOCTORATE = "DOCTORATE"

    @property
    def rank(self) -> int:
        return EDUCATION_LEVEL_ORDER.index(self)


EDUCATION_LEVEL_ORDER = [
    EducationLevel.HIGH_SCHOOL,
    EducationLevel.ASSOCIATE,
    EducationLevel.BACHELOR,
    EducationLevel.MASTER,
    EducationLevel.DOCTORATE,
]


class JobStatus(str, Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    CLOSED = "CLOSED"
    EXPIRED = "EXPIRED"


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ProfileRecord(BaseModel):
    """Base for validated records. Explicit nulls fall back to field defaults."""
    model_config = ConfigDict(extra='forbid')

    @model_validator(mode='before')
    @classmethod
    def drop_none_values(cls, data):
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


# ============================================================================
# CANDIDATE MODELS
# ============================================================================

class Skill(ProfileRecord):
    """A declared skill with proficiency and endorsement count."""
    name: str
    level: SkillLevel = SkillLevel.INTERMEDIATE
    endorsements: int = Field(default=0, ge=0)


class Experience(ProfileRecord):
    """A single work experience entry.

    Date ordering is not enforced here; validate_experience reports it so
    that an inverted entry can be described rather than rejected outright.
    """
    id: Optional[str] = None
    title: str = ""
    company: str = ""
    location: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_current: bool = False
    description: str = ""
    skills: List[str] = Field(default_factory=list)
    achievements: List[str] = Field(default_factory=list)
    industry: Optional[str] = None

    def consistency_errors(self) -> List[str]:
        """Date-ordering problems with this entry, empty when consistent."""
        errors = []
        if self.start_date and self.end_date and self.end_date < self.start_date:
            errors.append("end_date must not be before start_date")
        if self.is_current and self.end_date is not None:
            errors.append("end_date must be empty for a current position")
        return errors


class Education(ProfileRecord):
    id: Optional[str] = None
    school_name: str = ""
    degree: str = ""
    field_of_study: str = ""
    level: Optional[EducationLevel] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class Project(ProfileRecord):
    id: Optional[str] = None
    title: str = ""
    description: str = ""
    technologies: List[str] = Field(default_factory=list)
    url: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class PersonalInfo(ProfileRecord):
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    location: str = ""
    headline: str = ""
    summary: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class SalaryRange(ProfileRecord):
    min: Optional[float] = Field(default=None, ge=0)
    max: Optional[float] = Field(default=None, ge=0)
    currency: str = "USD"

    def bounds(self):
        """Return (low, high) or None when neither bound is set."""
        if self.min is None and self.max is None:
            return None
        low = self.min if self.min is not None else self.max
        high = self.max if self.max is not None else self.min
        return (min(low, high), max(low, high))


class JobPreferences(ProfileRecord):
    """Preferences declared on the candidate profile itself."""
    job_types: List[str] = Field(default_factory=list)
    locations: List[str] = Field(default_factory=list)
    salary_range: Optional[SalaryRange] = None
    industries: List[str] = Field(default_factory=list)
    remote_only: bool = False
    willing_to_relocate: bool = False
    company_sizes: List[str] = Field(default_factory=list)
    work_styles: List[str] = Field(default_factory=list)


class CandidateProfile(ProfileRecord):
    id: str
    user_id: str
    personal_info: PersonalInfo = Field(default_factory=PersonalInfo)
    experience: List[Experience] = Field(default_factory=list)
    education: List[Education] = Field(default_factory=list)
    skills: List[Skill] = Field(default_factory=list)
    projects: List[Project] = Field(default_factory=list)
    preferences: JobPreferences = Field(default_factory=JobPreferences)
    completeness: int = Field(default=0, ge=0, le=100)
    last_updated: Optional[datetime] = None


# ============================================================================
# JOB MODELS
# ============================================================================

class RequiredSkill(ProfileRecord):
    """A job skill, tagged required or preferred, with an optional minimum level."""
    name: str
    required: bool = True
    level: Optional[SkillLevel] = None


class EducationRequirement(ProfileRecord):
    level: Optional[EducationLevel] = None
    field: Optional[str] = None
    required: bool = False


class CompanyInfo(ProfileRecord):
    id: Optional[str] = None
    name: str = ""
    industry: Optional[str] = None
    size: Optional[str] = None
    culture_tags: List[str] = Field(default_factory=list)


class JobProfile(ProfileRecord):
    id: str
    title: str = ""
    description: str = ""
    skills: List[RequiredSkill] = Field(default_factory=list)
    experience_level: Optional[ExperienceLevel] = None
    min_years_experience: Optional[float] = Field(default=None, ge=0)
    education_requirements: List[EducationRequirement] = Field(default_factory=list)
    salary: Optional[SalaryRange] = None
    location: str = ""
    is_remote: bool = False
    job_type: Optional[str] = None
    company: CompanyInfo = Field(default_factory=CompanyInfo)
    posted_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    status: JobStatus = JobStatus.PUBLISHED
    application_count: int = Field(default=0, ge=0)

    @field_validator('posted_at', 'expires_at')
    @classmethod
    def ensure_utc(cls, value):
        return _as_utc(value)

    def is_open(self, now: datetime) -> bool:
        """Published and not past its expiry."""
        if self.status != JobStatus.PUBLISHED:
            return False
        return self.expires_at is None or self.expires_at > now


# ============================================================================
# PREFERENCES STORE RECORD
# ============================================================================

class UserPreferences(ProfileRecord):
    """Preferences Store record. Overrides the profile's own preferences when present."""
    salary_range: Optional[SalaryRange] = None
    locations: List[str] = Field(default_factory=list)
    industries: List[str] = Field(default_factory=list)
    remote_only: bool = False
    willing_to_relocate: bool = False
    job_types: List[str] = Field(default_factory=list)
    exclude_companies: List[str] = Field(default_factory=list)
    company_sizes: List[str] = Field(default_factory=list)
    work_styles: List[str] = Field(default_factory=list)

    @classmethod
    def from_profile(cls, preferences: JobPreferences) -> "UserPreferences":
        return cls(
            salary_range=preferences.salary_range,
            locations=list(preferences.locations),
            industries=list(preferences.industries),
            remote_only=preferences.remote_only,
            willing_to_relocate=preferences.willing_to_relocate,
            job_types=list(preferences.job_types),
            company_sizes=list(preferences.company_sizes),
            work_styles=list(preferences.work_styles),
        )
