"""
Tests for the in-memory stores, retrieval criteria and fixture loading.
"""
import json
from datetime import timedelta

import pytest

from core.errors import ValidationError
from core.profiles.models import ExperienceLevel
from core.stores import JobCriteria, InMemoryProfileStore, load_fixture
from tests.fixtures.profile_fixtures import FIXED_NOW, make_candidate, make_job


@pytest.fixture
def store():
    store = InMemoryProfileStore()
    store.add_job(make_job("job-berlin", location="Berlin", salary={"min": 60000, "max": 80000}))
    store.add_job(make_job("job-remote", is_remote=True, location="", experience_level="senior"))
    store.add_job(make_job("job-closed", status="CLOSED"))
    store.add_job(make_job("job-expired", expires_at=(FIXED_NOW - timedelta(hours=1)).isoformat()))
    store.add_job(make_job(
        "job-fintech", location="Lisbon", company={"name": "Paylane", "industry": "Fintech"}, job_type="CONTRACT",
        skills=[{"name": "Go"}],
    ))
    return store


def matching(store, **criteria):
    return [j.id for j in store.get_jobs_matching(JobCriteria(now=FIXED_NOW, **criteria))]


class TestJobCriteria:

    def test_01_open_only_by_default(self, store):
        assert matching(store) == ["job-berlin", "job-fintech", "job-remote"]

    def test_02_include_closed_when_not_open_only(self, store):
        assert "job-closed" in matching(store, open_only=False)

    def test_03_remote_only(self, store):
        assert matching(store, remote_only=True) == ["job-remote"]

    def test_04_locations_keep_remote_jobs(self, store):
        assert matching(store, locations=["berlin"]) == ["job-berlin", "job-remote"]

    def test_05_salary_bounds(self, store):
        assert "job-berlin" not in matching(store, salary_min=90000)
        assert "job-berlin" in matching(store, salary_min=70000)
        # jobs without a salary are kept
        assert "job-remote" in matching(store, salary_min=90000)

    def test_06_skills_any_of(self, store):
        assert matching(store, skills=["go", "rust"]) == ["job-fintech"]

    def test_07_exclusions(self, store):
        assert "job-fintech" not in matching(store, exclude_companies=["PAYLANE"])
        assert "job-berlin" not in matching(store, exclude_job_ids={"job-berlin"})

    def test_08_experience_levels(self, store):
        result = matching(store, experience_levels=[ExperienceLevel.JUNIOR])
        assert "job-remote" not in result
        assert "job-berlin" in result

    def test_09_industries_and_job_types(self, store):
        assert matching(store, industries=["fintech"]) == ["job-berlin", "job-fintech", "job-remote"]
        assert matching(store, job_types=["full_time"]) == ["job-berlin", "job-remote"]

    def test_10_limit(self, store):
        assert len(matching(store, limit=2)) == 2


class TestInMemoryProfileStore:

    def test_01_inconsistent_experience_rejected(self):
        store = InMemoryProfileStore()
        profile = make_candidate(experience=[{
            "title": "Dev", "company": "Acme", "start_date": "2022-01-01", "end_date": "2020-01-01",
        }])
        with pytest.raises(ValidationError):
            store.add_candidate(profile)
        assert store.get_candidate_profile("user-1") is None

    def test_02_lookup_by_user_id(self):
        store = InMemoryProfileStore()
        store.add_candidate(make_candidate())
        assert store.get_candidate_profile("user-1").id == "cand-1"
        assert store.get_candidate_profile("cand-1") is None

    def test_03_applications_deduplicated(self):
        store = InMemoryProfileStore()
        store.record_application("cand-1", "job-1")
        store.record_application("cand-1", "job-1")
        assert store.get_applied_job_ids("cand-1") == ["job-1"]
        assert store.get_applied_job_ids("cand-2") == []


class TestLoadFixture:

    def test_01_sample_fixture(self, tmp_path):
        data = {
            "candidates": [{"id": "c1", "user_id": "u1", "skills": [{"name": "Python", "level": None}]}],
            "jobs": [{"id": "j1", "title": "Engineer"}],
            "applications": [{"candidate_id": "c1", "job_id": "j1"}],
            "preferences": {"u1": {"remote_only": True}},
        }
        path = tmp_path / "fixture.json"
        path.write_text(json.dumps(data))

        profiles, preferences = load_fixture(str(path))

        assert profiles.get_candidate_profile("u1").skills[0].level.value == "INTERMEDIATE"
        assert profiles.get_job("j1").title == "Engineer"
        assert profiles.get_applied_job_ids("c1") == ["j1"]
        assert preferences.get_user_preferences("u1").remote_only is True

    def test_02_invalid_record(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"jobs": [{"title": "no id"}]}))
        with pytest.raises(ValidationError):
            load_fixture(str(path))

    def test_03_bundled_sample_loads(self):
        import os
        root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))
        profiles, preferences = load_fixture(os.path.join(root, "data", "sample_profiles.json"))
        assert profiles.get_candidate_profile("user-1") is not None
        assert preferences.get_user_preferences("user-2").exclude_companies == ["Launchpad"]

    def test_04_not_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(ValidationError):
            load_fixture(str(path))

    def test_05_application_missing_job(self, tmp_path):
        path = tmp_path / "apps.json"
        path.write_text(json.dumps({"applications": [{"candidate_id": "c1"}]}))
        with pytest.raises(ValidationError):
            load_fixture(str(path))
