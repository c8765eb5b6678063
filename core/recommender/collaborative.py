#!/usr/bin/env python3
"""
Collaborative boosting.

A SimilarityProvider returns, per job, a signal in [0, 1] for how strongly
users similar to this one engaged with that job. The boost lifts a match
score by up to boost_max of its remaining headroom:

    boosted = score + (1 - score) * boost_max * signal

so a boosted score never exceeds 1.0.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Tuple

import numpy as np

from core.recommender.interactions import MAX_INTERACTION_WEIGHT, InteractionTracker
from core.utils import clamp01

logger = logging.getLogger(__name__)

DEFAULT_BOOST_MAX = 0.2


def apply_collaborative_boost(score: float, signal: float, boost_max: float = DEFAULT_BOOST_MAX) -> float:
    score = clamp01(score)
    return min(1.0, score + (1.0 - score) * boost_max * clamp01(signal))


class SimilarityProvider(ABC):

    @abstractmethod
    def collaborative_scores(self, user_id: str, job_ids: Iterable[str]) -> Dict[str, float]:
        """Signal in [0, 1] per job id. Jobs without a signal may be omitted."""
        pass


class NoOpSimilarityProvider(SimilarityProvider):
    """No collaborative signal: scores pass through unchanged."""

    def collaborative_scores(self, user_id, job_ids):
        return {}


class InteractionSimilarityProvider(SimilarityProvider):
    """
    User-based collaborative signal from tracked interactions.

    Users are compared by cosine similarity of their interaction-weight
    vectors. A job's signal is the similarity-weighted mean of neighbours'
    normalized interaction weights for that job.
    """

    def __init__(self, tracker: InteractionTracker, max_neighbors: int = 20, min_similarity: float = 0.1):
        self.tracker = tracker
        self.max_neighbors = max_neighbors
        self.min_similarity = min_similarity

    def _neighbors(self, user_id: str, snapshot: Dict[str, Dict[str, float]]) -> List[Tuple[str, float]]:
        mine = snapshot.get(user_id)
        others = [u for u, jobs in snapshot.items() if u != user_id and jobs]
        if not mine or not others:
            return []

        vocabulary = sorted(set(mine).union(*(snapshot[u] for u in others)))
        index = {job_id: i for i, job_id in enumerate(vocabulary)}

        def vector(jobs: Dict[str, float]) -> np.ndarray:
            v = np.zeros(len(vocabulary), dtype=np.float64)
            for job_id, weight in jobs.items():
                v[index[job_id]] = weight
            return v

        me = vector(mine)
        matrix = np.vstack([vector(snapshot[u]) for u in others])   # (num_users, num_jobs)
        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(me)
        sims = (matrix @ me) / np.maximum(norms, 1e-12)

        neighbors = [(u, float(s)) for u, s in zip(others, sims) if s >= self.min_similarity]
        neighbors.sort(key=lambda pair: (-pair[1], pair[0]))
        return neighbors[:self.max_neighbors]

    def collaborative_scores(self, user_id, job_ids):
        snapshot = self.tracker.snapshot()
        neighbors = self._neighbors(user_id, snapshot)
        if not neighbors:
            return {}

        total_similarity = sum(s for _, s in neighbors)
        scores = {}
        for job_id in job_ids:
            weighted = sum(
                s * snapshot[u].get(job_id, 0.0) / MAX_INTERACTION_WEIGHT
                for u, s in neighbors
            )
            if weighted > 0:
                scores[job_id] = clamp01(weighted / total_similarity)
        logger.debug(f"Collaborative signal for user {user_id}: {len(neighbors)} neighbour(s), {len(scores)} job(s)")
        return scores
