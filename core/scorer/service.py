#!/usr/bin/env python3
"""
Scoring Engine - weighted multi-factor candidate/job scoring.

Computes seven dimension scores, combines them with configured weights,
derives match type, confidence and an explanation. Batch scoring fans out
over a bounded thread pool and honours a request deadline: when the
deadline passes, outstanding work is cancelled and RequestTimeoutError is
raised. Partial batches are never returned.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from datetime import date, datetime, timezone
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from core.config_loader import ScorerConfig
from core.errors import InvalidInputError, RequestTimeoutError
from core.profiles.models import CandidateProfile, JobProfile, UserPreferences
from core.scorer import composite, dimensions
from core.scorer.explanation import build_explanation
from core.scorer.models import DIMENSIONS, MatchResult, ScoreBreakdown
from core.utils import Deadline

logger = logging.getLogger(__name__)


class ScoringEngine:
    """Scores candidate/job pairs. Stateless apart from configuration."""

    def __init__(self, config: Optional[ScorerConfig] = None, today: Optional[Callable[[], date]] = None):
        self.config = config or ScorerConfig()
        self._today = today or date.today

    def calculate_match(
        self,
        candidate: CandidateProfile,
        job: JobProfile,
        preferences: Optional[UserPreferences] = None,
    ) -> MatchResult:
        """
        Score one candidate against one job.

        Args:
            candidate: Candidate profile
            job: Job profile
            preferences: Resolved preferences; defaults to the profile's own

        Returns:
            MatchResult with score on 0-100

        Raises:
            InvalidInputError: candidate or job is None
        """
        if candidate is None:
            raise InvalidInputError("candidate is required")
        if job is None:
            raise InvalidInputError("job is required")

        prefs = preferences or UserPreferences.from_profile(candidate.preferences)
        cfg = self.config

        results = {
            'skills': dimensions.score_skills(candidate, job, cfg),
            'experience': dimensions.score_experience(candidate, job, cfg, self._today()),
            'education': dimensions.score_education(candidate, job, cfg),
            'location': dimensions.score_location(job, prefs, cfg),
            'salary': dimensions.score_salary(job, prefs, cfg),
            'preferences': dimensions.score_preferences(job, prefs, cfg),
            'cultural_fit': dimensions.score_cultural_fit(job, prefs, cfg),
        }
        fractions = {name: results[name][0] for name in DIMENSIONS}
        components = {name: results[name][1] for name in DIMENSIONS}

        overall = composite.combine(fractions, cfg.weights)
        breakdown = ScoreBreakdown(
            **{name: round(fractions[name] * 100.0, 2) for name in DIMENSIONS},
            overall_score=round(overall * 100.0, 2),
            weights=cfg.weights.model_dump(),
            components=components,
        )

        result = MatchResult(
            candidate_id=candidate.id,
            job_id=job.id,
            score=breakdown.overall_score,
            match_type=composite.classify_match(overall),
            confidence=composite.calculate_confidence(fractions, cfg.weights, cfg.confidence_floor),
            breakdown=breakdown,
            explanation=build_explanation(fractions, components, cfg),
            calculated_at=datetime.now(timezone.utc),
        )
        logger.debug(
            f"Scored candidate={candidate.id} job={job.id}: "
            f"score={result.score:.1f} type={result.match_type.value} confidence={result.confidence:.2f}"
        )
        return result

    def batch_calculate_matches(
        self,
        candidates: Sequence[CandidateProfile],
        jobs: Sequence[JobProfile],
        timeout: Optional[float] = None,
    ) -> List[MatchResult]:
        """
        Score every candidate against every job.

        Results are in candidate-major order: all jobs for the first
        candidate, then all jobs for the second, and so on.

        Raises:
            InvalidInputError: candidates or jobs is None, or contains None
            RequestTimeoutError: timeout elapsed before all pairs were scored
        """
        if candidates is None or jobs is None:
            raise InvalidInputError("candidates and jobs are required")
        pairs = [(c, j, None) for c in candidates for j in jobs]
        logger.info(f"Batch scoring {len(candidates)} candidate(s) x {len(jobs)} job(s)")
        return self._run_parallel(pairs, Deadline(timeout))

    def score_jobs(
        self,
        candidate: CandidateProfile,
        jobs: Iterable[JobProfile],
        preferences: Optional[UserPreferences] = None,
        deadline: Optional[Deadline] = None,
    ) -> List[MatchResult]:
        """Score one candidate against many jobs, preserving job order."""
        pairs = [(candidate, j, preferences) for j in jobs]
        return self._run_parallel(pairs, deadline or Deadline())

    def _run_parallel(
        self,
        pairs: List[Tuple[CandidateProfile, JobProfile, Optional[UserPreferences]]],
        deadline: Deadline,
    ) -> List[MatchResult]:
        if not pairs:
            return []
        deadline.check("scoring")

        workers = min(self.config.max_workers, len(pairs))
        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="scoring")
        try:
            futures = [executor.submit(self.calculate_match, c, j, p) for c, j, p in pairs]
            _, not_done = wait(futures, timeout=deadline.remaining())
            if not_done:
                for future in not_done:
                    future.cancel()
                logger.warning(
                    f"Scoring timed out after {deadline.timeout_seconds}s with "
                    f"{len(not_done)}/{len(futures)} pair(s) outstanding"
                )
                raise RequestTimeoutError(
                    f"Scoring exceeded {deadline.timeout_seconds}s timeout"
                )
            # result() re-raises the first failure in submission order
            return [future.result() for future in futures]
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
