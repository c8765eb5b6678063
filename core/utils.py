import hashlib
import json
import logging
import re
import threading
import time
import zlib
from collections import Counter
from typing import Any, Dict, Iterable, Optional, Set

from core.errors import RequestTimeoutError

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"[a-z0-9+#.]+")


def clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def clamp01(x: float) -> float:
    return clamp(x, 0.0, 1.0)


def normalize_skill_name(name: Optional[str]) -> str:
    """Normalize a skill name for comparison: trimmed, lowercase, single spaces."""
    if not name:
        return ""
    return " ".join(str(name).strip().lower().split())


def tokenize(text: Optional[str]) -> Set[str]:
    """Split free text into a set of lowercase word tokens.

    Keeps '+', '#' and '.' inside tokens so that "c++", "c#" and "node.js"
    survive, then strips trailing punctuation dots.
    """
    if not text:
        return set()
    tokens = set()
    for raw in _TOKEN_RE.findall(text.lower()):
        token = raw.strip(".")
        if token:
            tokens.add(token)
    return tokens


def jaccard(a: Iterable[str], b: Iterable[str]) -> float:
    """Jaccard similarity of two token collections. Empty vs empty is 0."""
    set_a, set_b = set(a), set(b)
    union = set_a | set_b
    if not union:
        return 0.0
    return len(set_a & set_b) / len(union)


class RecommendationFingerprinter:
    """
    Pure logic for creating deterministic cache keys for recommendation requests.
    """

    KEY_PREFIX = "rec"
    # Filter fields that retrieval compares case-insensitively
    CASE_INSENSITIVE_FILTERS = frozenset({
        'skills', 'locations', 'industries', 'job_types', 'exclude_companies',
    })

    @staticmethod
    def calculate(user_id: str, filters: Dict[str, Any], sort: str, limit: int, page: int) -> str:
        """
        Create a deterministic key that embeds the user id.
        Formula: rec:{user_id}:SHA256(canonical_json(filters, sort, limit, page))

        Filter lists are sorted so that semantically identical requests collide.
        Only fields matched case-insensitively are case-folded; ids stay exact.
        """
        canonical = {
            'filters': RecommendationFingerprinter._canonicalize_filters(filters or {}),
            'sort': sort,
            'limit': limit,
            'page': page,
        }
        raw_string = json.dumps(canonical, sort_keys=True, separators=(',', ':'), default=str)
        digest = hashlib.sha256(raw_string.encode('utf-8')).hexdigest()
        return f"{RecommendationFingerprinter.KEY_PREFIX}:{user_id}:{digest}"

    @staticmethod
    def user_prefix(user_id: str) -> str:
        return f"{RecommendationFingerprinter.KEY_PREFIX}:{user_id}:"

    @staticmethod
    def _canonicalize_filters(filters: Dict[str, Any]) -> Dict[str, Any]:
        canonical = {}
        for name, value in filters.items():
            if value is None:
                continue
            if isinstance(value, (list, tuple, set)):
                if name in RecommendationFingerprinter.CASE_INSENSITIVE_FILTERS:
                    items = sorted({normalize_skill_name(v) for v in value} - {""})
                elif all(isinstance(v, str) for v in value):
                    items = sorted(set(value))
                else:
                    items = list(value)
                if not items:
                    continue
                value = items
            canonical[name] = value
        return canonical


class Deadline:
    """Tracks a per-request time budget. A deadline without a timeout never expires."""

    def __init__(self, timeout_seconds: Optional[float] = None, clock=time.monotonic):
        self._clock = clock
        self.timeout_seconds = timeout_seconds
        self._expires_at = None if timeout_seconds is None else clock() + timeout_seconds

    def remaining(self) -> Optional[float]:
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - self._clock())

    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0.0

    def check(self, stage: str) -> None:
        """Raise RequestTimeoutError if the deadline has passed."""
        if self.expired():
            logger.warning(f"Request deadline of {self.timeout_seconds}s exceeded during {stage}")
            raise RequestTimeoutError(
                f"Request exceeded {self.timeout_seconds}s timeout during {stage}"
            )


def shard_index(key: str, shard_count: int) -> int:
    """Stable shard for a key; the same key always lands on the same shard."""
    return zlib.crc32(str(key).encode('utf-8')) % shard_count


class ShardedCounters:
    """
    Named counters striped across independent locks by a shard key (usually a user id).

    Requests for different users increment different stripes; totals() sums
    every stripe.
    """

    def __init__(self, shards: int = 16):
        self._stripes = [(threading.Lock(), Counter()) for _ in range(max(1, shards))]

    def increment(self, shard_key: str, **amounts: int) -> None:
        lock, counts = self._stripes[shard_index(shard_key, len(self._stripes))]
        with lock:
            counts.update(amounts)

    def totals(self) -> Dict[str, int]:
        total = Counter()
        for lock, counts in self._stripes:
            with lock:
                total.update(counts)
        return dict(total)

    def clear(self) -> None:
        for lock, counts in self._stripes:
            with lock:
                counts.clear()
