#!/usr/bin/env python3
"""
Scoring Module - weighted multi-factor match scoring.

Public API:
- ScoringEngine: calculate_match / batch_calculate_matches
- MatchResult: Dataclass for scored match results

The scoring module is split into focused, single-responsibility modules:

- models.py: Data structures (MatchResult, ScoreBreakdown, MatchExplanation)
- dimensions.py: One scoring function per dimension
- composite.py: Weighted combination, match type and confidence
- explanation.py: Deterministic strengths, weaknesses and skill gaps
- service.py: ScoringEngine orchestrator and batch worker pool
"""

from core.scorer.models import MatchExplanation, MatchResult, MatchType, ScoreBreakdown
from core.scorer.service import ScoringEngine

__all__ = ['ScoringEngine', 'MatchResult', 'MatchType', 'ScoreBreakdown', 'MatchExplanation']
