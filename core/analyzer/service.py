#!/usr/bin/env python3
"""
Profile Analyzer - completeness, strengths, weaknesses and improvement advice.

Analysis never fails on sparse data. Only absent input (None) raises;
a structurally invalid profile is reported with completeness 0.
"""

import logging
from collections.abc import Mapping
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from core.analyzer.completeness import completeness_breakdown
from core.analyzer.models import (
    PRIORITY_ORDER,
    AnalysisResult,
    ExperienceValidation,
    ExtractedSkill,
    ProfileRecommendation,
    ProfileStrength,
    ProfileWeakness,
    RecommendationPriority,
    SkillAnalysis,
)
from core.analyzer.taxonomy import (
    COMPLEMENTARY_SKILLS,
    DEFAULT_SUGGESTIONS,
    categorize,
    find_known_skills,
)
from core.config_loader import AnalyzerConfig
from core.errors import InvalidInputError
from core.profiles.models import SKILL_LEVEL_ORDER, CandidateProfile, Experience, SkillLevel
from core.profiles.years import total_experience_years
from core.utils import normalize_skill_name

logger = logging.getLogger(__name__)

# Confidence by source
DECLARED_LEVEL_CONFIDENCE = {
    SkillLevel.BEGINNER: 0.6,
    SkillLevel.INTERMEDIATE: 0.75,
    SkillLevel.ADVANCED: 0.9,
    SkillLevel.EXPERT: 1.0,
}
EXPERIENCE_LIST_CONFIDENCE = 0.85
EXPERIENCE_TEXT_CONFIDENCE = 0.6
PROJECT_TECH_CONFIDENCE = 0.8
PROJECT_TEXT_CONFIDENCE = 0.55

SENIOR_YEARS = 5.0
EXPERIENCED_YEARS = 2.0
ENDORSEMENT_STRENGTH_THRESHOLD = 10
NEARLY_COMPLETE = 80


class ProfileAnalyzer:
    """Analyzes candidate profiles and produces actionable improvement advice."""

    def __init__(
        self,
        config: Optional[AnalyzerConfig] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        self.config = config or AnalyzerConfig()
        self._today = today or date.today

    # ------------------------------------------------------------------
    # Coercion
    # ------------------------------------------------------------------

    @staticmethod
    def _coerce_profile(profile: Any) -> Tuple[Optional[CandidateProfile], Optional[str]]:
        if isinstance(profile, CandidateProfile):
            return profile, None
        if isinstance(profile, Mapping):
            try:
                return CandidateProfile.model_validate(dict(profile)), None
            except PydanticValidationError as e:
                return None, f"{e.error_count()} validation error(s)"
        return None, f"unsupported profile type {type(profile).__name__}"

    def _require_profile(self, profile: Any) -> CandidateProfile:
        if profile is None:
            raise InvalidInputError("profile is required")
        candidate, error = self._coerce_profile(profile)
        if candidate is None:
            raise InvalidInputError(f"malformed profile: {error}")
        return candidate

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def analyze_profile(self, profile: Any) -> AnalysisResult:
        """
        Analyze a profile.

        Args:
            profile: CandidateProfile, or a mapping to validate into one

        Returns:
            AnalysisResult. Malformed input yields completeness 0 and weaknesses.

        Raises:
            InvalidInputError: profile is None
        """
        if profile is None:
            raise InvalidInputError("profile is required")

        analyzed_at = datetime.now(timezone.utc)
        candidate, error = self._coerce_profile(profile)
        if candidate is None:
            logger.warning(f"Malformed profile submitted for analysis: {error}")
            return AnalysisResult(
                completeness=0,
                strengths=[],
                weaknesses=self._malformed_weaknesses(),
                recommendations=self._malformed_recommendations(),
                is_malformed=True,
                analyzed_at=analyzed_at,
            )

        completeness = self.calculate_completeness(candidate)
        years = total_experience_years(candidate.experience, self._today())
        skill_analysis = self.analyze_skills(candidate)
        result = AnalysisResult(
            completeness=completeness,
            strengths=self._identify_strengths(candidate, completeness, years, skill_analysis),
            weaknesses=self._identify_weaknesses(candidate),
            recommendations=self.generate_recommendations(candidate, completeness),
            skill_analysis=skill_analysis,
            total_experience_years=years,
            analyzed_at=analyzed_at,
        )
        logger.debug(
            f"Analyzed profile {candidate.id}: completeness={completeness}, "
            f"strengths={len(result.strengths)}, weaknesses={len(result.weaknesses)}"
        )
        return result

    def calculate_completeness(self, profile: Any) -> int:
        """Completeness score 0-100. Malformed input scores 0."""
        candidate, _ = self._coerce_profile(profile)
        if candidate is None:
            return 0
        completeness, _ = completeness_breakdown(candidate)
        return completeness

    def extract_skills(self, profile: Any) -> List[ExtractedSkill]:
        """
        Collect skills from declared skills, experience and projects.

        Deduplicated by normalized name, keeping the highest-confidence sighting.
        Ordered by confidence desc, then name.
        """
        profile = self._require_profile(profile)

        found: Dict[str, ExtractedSkill] = {}

        def add(name: str, source: str, confidence: float) -> None:
            key = normalize_skill_name(name)
            if not key:
                return
            current = found.get(key)
            if current is None or confidence > current.confidence:
                found[key] = ExtractedSkill(name=name.strip(), source=source, confidence=confidence)

        for skill in profile.skills:
            add(skill.name, 'declared', DECLARED_LEVEL_CONFIDENCE[skill.level])

        for entry in profile.experience:
            for name in entry.skills:
                add(name, 'experience', EXPERIENCE_LIST_CONFIDENCE)
            text = " ".join([entry.title, entry.description, *entry.achievements])
            for name in find_known_skills(text):
                add(name, 'experience', EXPERIENCE_TEXT_CONFIDENCE)

        for project in profile.projects:
            for name in project.technologies:
                add(name, 'projects', PROJECT_TECH_CONFIDENCE)
            for name in find_known_skills(f"{project.title} {project.description}"):
                add(name, 'projects', PROJECT_TEXT_CONFIDENCE)

        return sorted(found.values(), key=lambda s: (-s.confidence, normalize_skill_name(s.name)))

    def validate_experience(self, entry: Any) -> ExperienceValidation:
        """Validate one experience entry (model or mapping)."""
        if entry is None:
            raise InvalidInputError("experience entry is required")

        if isinstance(entry, Experience):
            experience = entry
        elif isinstance(entry, Mapping):
            try:
                experience = Experience.model_validate(dict(entry))
            except PydanticValidationError as e:
                errors = [
                    f"{'.'.join(str(p) for p in err['loc']) or 'entry'} is invalid: {err['msg']}"
                    for err in e.errors()
                ]
                return ExperienceValidation(is_valid=False, errors=errors)
        else:
            return ExperienceValidation(
                is_valid=False,
                errors=[f"unsupported experience type {type(entry).__name__}"],
            )

        errors = []
        if not experience.title.strip():
            errors.append("title is required")
        if not experience.company.strip():
            errors.append("company is required")
        errors.extend(experience.consistency_errors())
        return ExperienceValidation(is_valid=not errors, errors=errors)

    def analyze_skills(self, profile: Any) -> SkillAnalysis:
        """Categorize declared skills and summarize levels and endorsements."""
        profile = self._require_profile(profile)

        categories: Dict[str, List[str]] = {'technical': [], 'soft': [], 'business': [], 'other': []}
        level_distribution = {level.value: 0 for level in SKILL_LEVEL_ORDER}
        for skill in profile.skills:
            categories[categorize(skill.name)].append(skill.name)
            level_distribution[skill.level.value] += 1

        top_skills = sorted(
            profile.skills,
            key=lambda s: (-s.endorsements, -s.level.rank, normalize_skill_name(s.name)),
        )[:self.config.top_skills_limit]

        endorsements = [s.endorsements for s in profile.skills]
        total = sum(endorsements)
        endorsement_stats = {
            'total': total,
            'average': round(total / len(endorsements), 2) if endorsements else 0.0,
            'max': max(endorsements) if endorsements else 0,
        }

        return SkillAnalysis(
            total_skills=len(profile.skills),
            categories=categories,
            level_distribution=level_distribution,
            top_skills=top_skills,
            suggested_skills=self._suggest_skills(profile, top_skills),
            endorsement_stats=endorsement_stats,
        )

    def generate_recommendations(
        self, profile: Any, completeness: Optional[int] = None
    ) -> List[ProfileRecommendation]:
        """
        Prioritized improvement actions.

        Empty sections are HIGH priority. Other advice is MEDIUM while the
        profile is below the completeness threshold, LOW after.
        A malformed profile gets the same HIGH priority advice analyze_profile gives it.
        """
        if profile is None:
            raise InvalidInputError("profile is required")
        candidate, error = self._coerce_profile(profile)
        if candidate is None:
            logger.warning(f"Malformed profile submitted for recommendations: {error}")
            return self._malformed_recommendations()
        profile = candidate
        if completeness is None:
            completeness = self.calculate_completeness(profile)

        normal = (
            RecommendationPriority.MEDIUM
            if completeness < self.config.medium_priority_threshold
            else RecommendationPriority.LOW
        )
        min_skills = self.config.min_skill_count
        recs: List[ProfileRecommendation] = []

        # Experience
        if not profile.experience:
            recs.append(ProfileRecommendation(
                RecommendationPriority.HIGH, 'experience',
                "Add your work experience with roles, companies and dates",
                "Experience carries the most weight when you are matched to jobs",
            ))
        elif any(not e.description.strip() and not e.achievements for e in profile.experience):
            recs.append(ProfileRecommendation(
                normal, 'experience',
                "Describe your responsibilities and quantify achievements for each role",
                "Concrete results make your experience easier to evaluate",
            ))
        else:
            recs.append(ProfileRecommendation(
                normal, 'experience',
                "Keep your most recent role updated with new achievements",
                "Up-to-date experience keeps your matches relevant",
            ))

        # Skills
        if not profile.skills:
            recs.append(ProfileRecommendation(
                RecommendationPriority.HIGH, 'skills',
                "Add the skills you use professionally",
                "Skills are the strongest signal in job matching",
            ))
        elif len(profile.skills) < min_skills:
            recs.append(ProfileRecommendation(
                normal, 'skills',
                f"Add at least {min_skills} skills relevant to your target roles",
                "More skills increase the number of jobs you match",
            ))
        else:
            recs.append(ProfileRecommendation(
                normal, 'skills',
                "Ask colleagues to endorse your top skills",
                "Endorsed skills build credibility with employers",
            ))

        # Education
        if not profile.education:
            recs.append(ProfileRecommendation(
                RecommendationPriority.HIGH, 'education',
                "Add your education history",
                "Some roles require a degree and filter on it",
            ))
        else:
            recs.append(ProfileRecommendation(
                normal, 'education',
                "Add certifications or courses that support your target roles",
                "Recent learning shows you keep your skills current",
            ))

        # Projects
        if not profile.projects:
            recs.append(ProfileRecommendation(
                RecommendationPriority.HIGH, 'projects',
                "Showcase projects that demonstrate your skills",
                "Projects give employers evidence of what you can build",
            ))
        elif not any(p.technologies for p in profile.projects):
            recs.append(ProfileRecommendation(
                normal, 'projects',
                "List the technologies used in each project",
                "Project technologies count toward your skill matches",
            ))

        # Personal info
        info = profile.personal_info
        if not (info.headline.strip() or info.summary.strip()):
            recs.append(ProfileRecommendation(
                normal, 'personal_info',
                "Write a short professional summary",
                "A summary tells employers what you are looking for at a glance",
            ))

        return sorted(recs, key=lambda r: PRIORITY_ORDER[r.priority])

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _suggest_skills(self, profile: CandidateProfile, top_skills) -> List[str]:
        owned = {normalize_skill_name(s.name) for s in profile.skills}
        if not owned:
            return list(DEFAULT_SUGGESTIONS[:self.config.suggested_skills_limit])

        suggestions: List[str] = []
        ordered = list(top_skills) + [s for s in profile.skills if s not in top_skills]
        for skill in ordered:
            for suggestion in COMPLEMENTARY_SKILLS.get(normalize_skill_name(skill.name), []):
                key = normalize_skill_name(suggestion)
                if key in owned or suggestion in suggestions:
                    continue
                suggestions.append(suggestion)
        return suggestions[:self.config.suggested_skills_limit]

    def _identify_strengths(
        self,
        profile: CandidateProfile,
        completeness: int,
        years: float,
        skill_analysis: SkillAnalysis,
    ) -> List[ProfileStrength]:
        strengths = []

        if years >= SENIOR_YEARS:
            strengths.append(ProfileStrength('experience', f"{years} years of professional experience", 'high'))
        elif years >= EXPERIENCED_YEARS:
            strengths.append(ProfileStrength('experience', f"{years} years of professional experience", 'medium'))
        if any(e.achievements for e in profile.experience):
            strengths.append(ProfileStrength('experience', "Quantified achievements in work history", 'medium'))

        experts = [s.name for s in profile.skills if s.level == SkillLevel.EXPERT]
        if experts:
            strengths.append(ProfileStrength('skills', f"Expert-level proficiency in {', '.join(experts[:3])}", 'high'))
        if len(profile.skills) >= self.config.min_skill_count:
            strengths.append(ProfileStrength('skills', f"Broad skill set ({len(profile.skills)} skills)", 'medium'))
        if skill_analysis.endorsement_stats['total'] >= ENDORSEMENT_STRENGTH_THRESHOLD:
            strengths.append(ProfileStrength(
                'skills', f"Skills endorsed {skill_analysis.endorsement_stats['total']} times", 'medium'
            ))

        degrees = [e for e in profile.education if e.degree.strip()]
        if degrees:
            best = max(degrees, key=lambda e: e.level.rank if e.level else -1)
            field = f" in {best.field_of_study}" if best.field_of_study.strip() else ""
            school = f" from {best.school_name}" if best.school_name.strip() else ""
            strengths.append(ProfileStrength('education', f"{best.degree}{field}{school}", 'medium'))

        if profile.projects:
            strengths.append(ProfileStrength('projects', f"{len(profile.projects)} portfolio project(s)", 'medium'))

        if completeness >= NEARLY_COMPLETE:
            strengths.append(ProfileStrength('profile', "Profile is nearly complete", 'high'))

        return strengths

    def _identify_weaknesses(self, profile: CandidateProfile) -> List[ProfileWeakness]:
        weaknesses = []
        info = profile.personal_info

        if not info.full_name:
            weaknesses.append(ProfileWeakness('personal_info', "Missing name", "Add your first and last name"))
        if not info.email.strip():
            weaknesses.append(ProfileWeakness('personal_info', "Missing email address", "Add an email so employers can reach you"))
        if not info.phone.strip():
            weaknesses.append(ProfileWeakness('personal_info', "Missing phone number", "Add a phone number"))
        if not info.location.strip():
            weaknesses.append(ProfileWeakness('personal_info', "Missing location", "Add your city or region"))
        if not (info.headline.strip() or info.summary.strip()):
            weaknesses.append(ProfileWeakness('personal_info', "Missing professional summary", "Write a short summary of your goals"))

        if not profile.experience:
            weaknesses.append(ProfileWeakness('experience', "No work experience listed", "Add your past and current roles"))
        elif all(not e.description.strip() and not e.achievements for e in profile.experience):
            weaknesses.append(ProfileWeakness('experience', "Experience entries lack descriptions", "Describe what you did and achieved in each role"))

        if not profile.education:
            weaknesses.append(ProfileWeakness('education', "No education listed", "Add degrees, diplomas or certifications"))

        if not profile.skills:
            weaknesses.append(ProfileWeakness('skills', "No skills listed", "Add the skills you use professionally"))
        elif len(profile.skills) < self.config.min_skill_count:
            weaknesses.append(ProfileWeakness(
                'skills', f"Only {len(profile.skills)} skill(s) listed",
                f"List at least {self.config.min_skill_count} relevant skills",
            ))

        if not profile.projects:
            weaknesses.append(ProfileWeakness('projects', "No projects listed", "Add projects that show your work"))

        prefs = profile.preferences
        if not (prefs.locations or prefs.job_types or prefs.industries or prefs.salary_range or prefs.remote_only):
            weaknesses.append(ProfileWeakness('preferences', "No job preferences set", "Set locations, job types and salary expectations"))

        return weaknesses

    @staticmethod
    def _malformed_weaknesses() -> List[ProfileWeakness]:
        weaknesses = [ProfileWeakness('profile', "Profile data could not be read", "Re-save your profile to repair its structure")]
        for category, description in (
            ('personal_info', "Missing personal information"),
            ('experience', "No work experience listed"),
            ('education', "No education listed"),
            ('skills', "No skills listed"),
            ('projects', "No projects listed"),
        ):
            weaknesses.append(ProfileWeakness(category, description, "Complete this section of your profile"))
        return weaknesses

    @staticmethod
    def _malformed_recommendations() -> List[ProfileRecommendation]:
        return [
            ProfileRecommendation(
                RecommendationPriority.HIGH, category,
                f"Complete the {category.replace('_', ' ')} section",
                "A complete profile is required for accurate matching",
            )
            for category in ('experience', 'skills', 'education', 'projects')
        ]
