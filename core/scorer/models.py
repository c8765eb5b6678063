#!/usr/bin/env python3
"""
Scoring Models - Data structures for scoring results.

All scores are reported on 0-100. Confidence is a fraction in [0.5, 1].
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class MatchType(str, Enum):
    PERFECT = "perfect"
    STRONG = "strong"
    MODERATE = "moderate"
    WEAK = "weak"


DIMENSIONS = (
    'skills',
    'experience',
    'education',
    'location',
    'salary',
    'preferences',
    'cultural_fit',
)


@dataclass
class ScoreBreakdown:
    """Per-dimension sub-scores (0-100) and the weighted overall score (0-100)."""
    skills: float = 0.0
    experience: float = 0.0
    education: float = 0.0
    location: float = 0.0
    salary: float = 0.0
    preferences: float = 0.0
    cultural_fit: float = 0.0
    overall_score: float = 0.0

    weights: Dict[str, float] = field(default_factory=dict)
    components: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    def sub_scores(self) -> Dict[str, float]:
        return {name: getattr(self, name) for name in DIMENSIONS}


@dataclass
class MatchExplanation:
    summary: str = ""
    strengths: List[str] = field(default_factory=list)
    weaknesses: List[str] = field(default_factory=list)
    skill_gaps: List[str] = field(default_factory=list)
    improvement_suggestions: List[str] = field(default_factory=list)


@dataclass
class MatchResult:
    """Complete scored match between one candidate and one job."""
    candidate_id: str
    job_id: str
    score: float
    match_type: MatchType
    confidence: float
    breakdown: ScoreBreakdown
    explanation: MatchExplanation
    calculated_at: Optional[datetime] = field(default=None, compare=False)

    @property
    def fraction(self) -> float:
        """Score as a fraction in [0, 1]."""
        return self.score / 100.0
