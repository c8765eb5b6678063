"""
In-memory store implementations.

Used by the CLI driver and tests, and as the reference for how store
implementations apply JobCriteria. Records are validated on the way in.
"""
import json
import logging
import threading
from typing import Any, Dict, List, Tuple

from pydantic import ValidationError as PydanticValidationError

from core.errors import ValidationError
from core.profiles.models import CandidateProfile, JobProfile, UserPreferences
from core.stores.interfaces import PreferencesStore, ProfileStore

logger = logging.getLogger(__name__)


class InMemoryProfileStore(ProfileStore):
    """Thread-safe dict-backed profile and job store."""

    def __init__(self):
        self._lock = threading.RLock()
        self._profiles_by_user: Dict[str, CandidateProfile] = {}
        self._jobs: Dict[str, JobProfile] = {}
        self._applications: Dict[str, List[str]] = {}

    def add_candidate(self, profile: CandidateProfile) -> None:
        """Add or replace a profile. Inconsistent experience dates are rejected."""
        errors = []
        for entry in profile.experience:
            errors.extend(f"{entry.id or entry.title}: {err}" for err in entry.consistency_errors())
        if errors:
            raise ValidationError(f"Invalid experience for candidate {profile.id}: {'; '.join(errors)}")
        with self._lock:
            self._profiles_by_user[profile.user_id] = profile

    def add_job(self, job: JobProfile) -> None:
        with self._lock:
            self._jobs[job.id] = job

    def record_application(self, candidate_id: str, job_id: str) -> None:
        with self._lock:
            applied = self._applications.setdefault(candidate_id, [])
            if job_id not in applied:
                applied.append(job_id)

    def get_candidate_profile(self, user_id):
        with self._lock:
            return self._profiles_by_user.get(user_id)

    def get_job(self, job_id):
        with self._lock:
            return self._jobs.get(job_id)

    def get_jobs_matching(self, criteria):
        with self._lock:
            jobs = list(self._jobs.values())
        matched = sorted((j for j in jobs if criteria.matches(j)), key=lambda j: j.id)
        if criteria.limit is not None:
            matched = matched[:criteria.limit]
        return matched

    def get_applied_job_ids(self, candidate_id):
        with self._lock:
            return list(self._applications.get(candidate_id, []))


class InMemoryPreferencesStore(PreferencesStore):

    def __init__(self):
        self._lock = threading.Lock()
        self._preferences: Dict[str, UserPreferences] = {}

    def set_user_preferences(self, user_id: str, preferences: UserPreferences) -> None:
        with self._lock:
            self._preferences[user_id] = preferences

    def get_user_preferences(self, user_id):
        with self._lock:
            return self._preferences.get(user_id)


def load_fixture(path: str) -> Tuple[InMemoryProfileStore, InMemoryPreferencesStore]:
    """
    Load stores from a JSON fixture file.

    Expected shape:
        {
          "candidates": [CandidateProfile, ...],
          "jobs": [JobProfile, ...],
          "applications": [{"candidate_id": "...", "job_id": "..."}, ...],
          "preferences": {"<user_id>": UserPreferences, ...}
        }

    Raises:
        ValidationError: the file is not JSON or a record fails validation
        OSError: the file cannot be read
    """
    with open(path, "r") as f:
        try:
            data: Dict[str, Any] = json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Fixture {path} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ValidationError(f"Fixture {path} must contain a JSON object")

    profiles = InMemoryProfileStore()
    preferences = InMemoryPreferencesStore()
    try:
        for raw in data.get('candidates', []):
            profiles.add_candidate(CandidateProfile.model_validate(raw))
        for raw in data.get('jobs', []):
            profiles.add_job(JobProfile.model_validate(raw))
        for user_id, raw in (data.get('preferences') or {}).items():
            preferences.set_user_preferences(user_id, UserPreferences.model_validate(raw))
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid record in fixture {path}: {e}") from e

    for application in data.get('applications', []):
        try:
            profiles.record_application(application['candidate_id'], application['job_id'])
        except (KeyError, TypeError) as e:
            raise ValidationError(f"Invalid application in fixture {path}: {application!r}") from e

    logger.info(
        f"Loaded fixture {path}: {len(data.get('candidates', []))} candidate(s), "
        f"{len(data.get('jobs', []))} job(s)"
    )
    return profiles, preferences
