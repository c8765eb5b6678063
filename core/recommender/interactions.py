#!/usr/bin/env python3
"""
Interaction Tracker - recent user/job interactions for collaborative signals.
"""

import logging
import threading
from collections import OrderedDict
from typing import Dict, Iterable

from core.utils import shard_index

logger = logging.getLogger(__name__)

INTERACTION_WEIGHTS = {
    'viewed': 1.0,
    'saved': 2.0,
    'applied': 3.0,
}
MAX_INTERACTION_WEIGHT = max(INTERACTION_WEIGHTS.values())

DEFAULT_MAX_USERS = 10000
DEFAULT_SHARDS = 16


class _UserShard:
    def __init__(self):
        self.lock = threading.Lock()
        # user_id -> job_id -> weight, least recently active user first
        self.users: "OrderedDict[str, OrderedDict[str, float]]" = OrderedDict()


class InteractionTracker:
    """
    Thread-safe, bounded record of which jobs each user interacted with.

    Users are spread over shards by id, each with its own lock, so requests
    for users on different shards never wait on each other. A job keeps the
    strongest interaction seen for it; each user keeps at most max_per_user
    jobs and each shard keeps its share of max_users, dropping the least
    recently active user first.
    """

    def __init__(self, max_per_user: int = 500, max_users: int = DEFAULT_MAX_USERS, shards: int = DEFAULT_SHARDS):
        self.max_per_user = max_per_user
        self.max_users = max_users
        shard_count = max(1, min(shards, max_users))
        self._shards = [_UserShard() for _ in range(shard_count)]
        self._users_per_shard = max(1, max_users // shard_count)

    def _shard_for(self, user_id: str) -> _UserShard:
        return self._shards[shard_index(user_id, len(self._shards))]

    def record(self, user_id: str, job_id: str, kind: str = 'viewed') -> None:
        self.record_many(user_id, [job_id], kind)

    def record_many(self, user_id: str, job_ids: Iterable[str], kind: str = 'viewed') -> None:
        if kind not in INTERACTION_WEIGHTS:
            raise ValueError(f"Unknown interaction kind: {kind}")
        weight = INTERACTION_WEIGHTS[kind]
        shard = self._shard_for(user_id)
        with shard.lock:
            jobs = shard.users.get(user_id)
            if jobs is None:
                jobs = shard.users[user_id] = OrderedDict()
            shard.users.move_to_end(user_id)
            for job_id in job_ids:
                jobs[job_id] = max(weight, jobs.get(job_id, 0.0))
                jobs.move_to_end(job_id)
            while len(jobs) > self.max_per_user:
                jobs.popitem(last=False)
            while len(shard.users) > self._users_per_shard:
                dropped, _ = shard.users.popitem(last=False)
                logger.debug(f"Dropped interactions of inactive user {dropped}")

    def get_user_interactions(self, user_id: str) -> Dict[str, float]:
        shard = self._shard_for(user_id)
        with shard.lock:
            return dict(shard.users.get(user_id, {}))

    def snapshot(self) -> Dict[str, Dict[str, float]]:
        snapshot = {}
        for shard in self._shards:
            with shard.lock:
                snapshot.update((user, dict(jobs)) for user, jobs in shard.users.items())
        return snapshot

    def clear(self) -> None:
        for shard in self._shards:
            with shard.lock:
                shard.users.clear()

    def stats(self) -> Dict[str, int]:
        users = interactions = 0
        for shard in self._shards:
            with shard.lock:
                users += len(shard.users)
                interactions += sum(len(jobs) for jobs in shard.users.values())
        return {'users': users, 'interactions': interactions}
