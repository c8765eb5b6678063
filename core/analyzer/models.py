#!/usr/bin/env python3
"""
Analyzer Models - Data structures for profile analysis results.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from core.profiles.models import Skill


class RecommendationPriority(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


PRIORITY_ORDER = {
    RecommendationPriority.HIGH: 0,
    RecommendationPriority.MEDIUM: 1,
    RecommendationPriority.LOW: 2,
}


@dataclass
class ProfileStrength:
    category: str
    description: str
    impact: str  # 'high' | 'medium' | 'low'


@dataclass
class ProfileWeakness:
    category: str
    description: str
    suggestion: str


@dataclass
class ProfileRecommendation:
    """An actionable, prioritized profile improvement."""
    priority: RecommendationPriority
    category: str
    action: str
    benefit: str


@dataclass
class ExtractedSkill:
    """A skill found in the profile, with where it came from and how sure we are."""
    name: str
    source: str  # 'declared' | 'experience' | 'projects'
    confidence: float


@dataclass
class ExperienceValidation:
    is_valid: bool
    errors: List[str] = field(default_factory=list)


@dataclass
class SkillAnalysis:
    total_skills: int
    categories: Dict[str, List[str]]
    level_distribution: Dict[str, int]
    top_skills: List[Skill]
    suggested_skills: List[str]
    endorsement_stats: Dict[str, float]


@dataclass
class AnalysisResult:
    completeness: int
    strengths: List[ProfileStrength]
    weaknesses: List[ProfileWeakness]
    recommendations: List[ProfileRecommendation]
    skill_analysis: Optional[SkillAnalysis] = None
    total_experience_years: float = 0.0
    is_malformed: bool = False
    analyzed_at: Optional[datetime] = None
