#!/usr/bin/env python3
"""
Profile Analyzer Module.

Public API:
- ProfileAnalyzer: completeness, skills, experience validation and advice
- AnalysisResult: Dataclass for analysis results

- models.py: Data structures (AnalysisResult, ProfileStrength, ...)
- completeness.py: Point-based completeness calculation
- taxonomy.py: Skill keyword taxonomy and complementary skills
- service.py: ProfileAnalyzer
"""

from core.analyzer.models import (
    AnalysisResult,
    ExperienceValidation,
    ExtractedSkill,
    ProfileRecommendation,
    ProfileStrength,
    ProfileWeakness,
    RecommendationPriority,
    SkillAnalysis,
)
from core.analyzer.service import ProfileAnalyzer

__all__ = [
    'AnalysisResult',
    'ExperienceValidation',
    'ExtractedSkill',
    'ProfileAnalyzer',
    'ProfileRecommendation',
    'ProfileStrength',
    'ProfileWeakness',
    'RecommendationPriority',
    'SkillAnalysis',
]
