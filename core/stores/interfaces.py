"""
Store Interfaces - Abstract bases for the records the matching core reads.

The core performs no I/O itself; implementations (database, HTTP, memory)
live behind these interfaces. Records returned must already be validated
pydantic models.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional, Set

from core.profiles.models import CandidateProfile, ExperienceLevel, JobProfile, UserPreferences
from core.profiles.years import required_experience_level
from core.utils import normalize_skill_name


def _normalized(values: Iterable[str]) -> Set[str]:
    return {normalize_skill_name(v) for v in values if normalize_skill_name(v)}


@dataclass
class JobCriteria:
    """Hard filters for candidate retrieval. Empty collections mean 'no filter'."""
    now: datetime
    open_only: bool = True
    exclude_job_ids: Set[str] = field(default_factory=set)
    exclude_companies: List[str] = field(default_factory=list)
    remote_only: bool = False
    locations: List[str] = field(default_factory=list)
    experience_levels: List[ExperienceLevel] = field(default_factory=list)
    skills: List[str] = field(default_factory=list)
    salary_min: Optional[float] = None
    salary_max: Optional[float] = None
    industries: List[str] = field(default_factory=list)
    job_types: List[str] = field(default_factory=list)
    posted_after: Optional[datetime] = None
    limit: Optional[int] = None

    def matches(self, job: JobProfile) -> bool:
        """Apply the hard filters to one job."""
        if self.open_only and not job.is_open(self.now):
            return False
        if job.id in self.exclude_job_ids:
            return False

        excluded = _normalized(self.exclude_companies)
        if excluded and (
            normalize_skill_name(job.company.name) in excluded
            or (job.company.id and normalize_skill_name(job.company.id) in excluded)
        ):
            return False

        if self.remote_only and not job.is_remote:
            return False

        if self.locations and not job.is_remote:
            job_location = normalize_skill_name(job.location)
            if not job_location or not any(
                normalize_skill_name(loc) in job_location for loc in self.locations
            ):
                return False

        if self.experience_levels:
            level = required_experience_level(job)
            if level is not None and level not in self.experience_levels:
                return False

        if self.skills:
            if not _normalized(self.skills) & _normalized(s.name for s in job.skills):
                return False

        bounds = job.salary.bounds() if job.salary else None
        if bounds is not None:
            if self.salary_min is not None and bounds[1] < self.salary_min:
                return False
            if self.salary_max is not None and bounds[0] > self.salary_max:
                return False

        # Unknown industry or job type is kept; retrieval returns a superset
        if self.industries and job.company.industry:
            if normalize_skill_name(job.company.industry) not in _normalized(self.industries):
                return False
        if self.job_types and job.job_type:
            if normalize_skill_name(job.job_type) not in _normalized(self.job_types):
                return False

        if self.posted_after is not None:
            if job.posted_at is None or job.posted_at < self.posted_after:
                return False

        return True


class ProfileStore(ABC):
    """Read access to candidate profiles, jobs and applications."""

    @abstractmethod
    def get_candidate_profile(self, user_id: str) -> Optional[CandidateProfile]:
        """Profile for a user, or None if the user has none."""
        pass

    @abstractmethod
    def get_job(self, job_id: str) -> Optional[JobProfile]:
        pass

    @abstractmethod
    def get_jobs_matching(self, criteria: JobCriteria) -> List[JobProfile]:
        """
        Jobs satisfying the criteria.

        With open_only set, expired and non-published jobs must never be returned.
        """
        pass

    @abstractmethod
    def get_applied_job_ids(self, candidate_id: str) -> List[str]:
        pass


class PreferencesStore(ABC):

    @abstractmethod
    def get_user_preferences(self, user_id: str) -> Optional[UserPreferences]:
        pass
