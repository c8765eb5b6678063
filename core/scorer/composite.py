#!/usr/bin/env python3
"""
Composite score, match type and confidence.

overall = sum(sub_score * weight) over the dimensions, weights summing to 1.0.
confidence = clamp(1 - std(weighted sub-scores), floor, 1.0): agreement
between dimensions raises confidence; the population std of fractions is
at most 0.5, so the floor is only reached at maximal disagreement.
"""

from typing import Dict

import numpy as np

from core.config_loader import ScoringWeights
from core.scorer.models import DIMENSIONS, MatchType
from core.utils import clamp, clamp01

PERFECT_THRESHOLD = 0.9
STRONG_THRESHOLD = 0.7
MODERATE_THRESHOLD = 0.5


def combine(fractions: Dict[str, float], weights: ScoringWeights) -> float:
    """Weighted sum of dimension fractions, as a fraction."""
    w = weights.model_dump()
    total = sum(fractions.get(name, 0.0) * float(w.get(name, 0.0)) for name in DIMENSIONS)
    return clamp01(total)


def classify_match(fraction: float) -> MatchType:
    if fraction >= PERFECT_THRESHOLD:
        return MatchType.PERFECT
    if fraction >= STRONG_THRESHOLD:
        return MatchType.STRONG
    if fraction >= MODERATE_THRESHOLD:
        return MatchType.MODERATE
    return MatchType.WEAK


def calculate_confidence(fractions: Dict[str, float], weights: ScoringWeights, floor: float = 0.5) -> float:
    w = weights.model_dump()
    values = np.array(
        [fractions.get(name, 0.0) for name in DIMENSIONS if float(w.get(name, 0.0)) > 0],
        dtype=np.float64,
    )
    if values.size == 0:
        return floor
    spread = float(np.std(values))
    return round(clamp(1.0 - spread, floor, 1.0), 4)
