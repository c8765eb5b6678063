#!/usr/bin/env python3
"""
Skill taxonomy - fixed keyword lists used to categorize skills, spot skills
mentioned in free text, and suggest complementary skills.
"""

import re
from typing import Dict, List

from core.utils import normalize_skill_name

TECHNICAL_SKILLS = [
    "JavaScript", "TypeScript", "React", "Angular", "Vue", "Node.js", "Next.js",
    "Redux", "HTML", "CSS", "Python", "Django", "Flask", "FastAPI", "Pandas",
    "Java", "Spring Boot", "Kotlin", "Swift", "C++", "C#", "Rust", "Ruby",
    "PHP", "Scala", "SQL", "PostgreSQL", "MySQL", "MongoDB", "Redis",
    "GraphQL", "Docker", "Kubernetes", "Terraform", "AWS", "Azure",
    "GCP", "Linux", "Git", "Jest", "Machine Learning", "Spark",
]

SOFT_SKILLS = [
    "Communication", "Leadership", "Teamwork", "Collaboration", "Mentoring",
    "Problem Solving", "Time Management", "Adaptability", "Public Speaking",
    "Critical Thinking",
]

BUSINESS_SKILLS = [
    "Project Management", "Product Management", "Agile", "Scrum",
    "Stakeholder Management", "Budgeting", "Strategy", "Sales", "Marketing",
    "Negotiation", "Analytics",
]

# Owned skill -> skills that commonly accompany it
COMPLEMENTARY_SKILLS: Dict[str, List[str]] = {
    "javascript": ["TypeScript", "Node.js", "Jest"],
    "typescript": ["Node.js", "GraphQL"],
    "react": ["TypeScript", "Redux", "Next.js", "Jest"],
    "node.js": ["Express", "GraphQL", "PostgreSQL"],
    "python": ["Django", "FastAPI", "Pandas", "SQL"],
    "java": ["Spring Boot", "Kotlin"],
    "sql": ["PostgreSQL"],
    "docker": ["Kubernetes"],
    "aws": ["Terraform", "Docker"],
    "leadership": ["Mentoring", "Stakeholder Management"],
    "agile": ["Scrum"],
}

DEFAULT_SUGGESTIONS = ["Communication", "Git", "SQL"]

_CATEGORY_BY_NAME: Dict[str, str] = {}
for _names, _category in (
    (TECHNICAL_SKILLS, "technical"),
    (SOFT_SKILLS, "soft"),
    (BUSINESS_SKILLS, "business"),
):
    for _name in _names:
        _CATEGORY_BY_NAME[normalize_skill_name(_name)] = _category

_DISPLAY_BY_NAME: Dict[str, str] = {
    normalize_skill_name(n): n for n in TECHNICAL_SKILLS + SOFT_SKILLS + BUSINESS_SKILLS
}

_PATTERNS = [
    (display, re.compile(r"(?<![a-z0-9])" + re.escape(key) + r"(?![a-z0-9+#])"))
    for key, display in _DISPLAY_BY_NAME.items()
]


def categorize(name: str) -> str:
    """Return 'technical', 'soft', 'business' or 'other'."""
    return _CATEGORY_BY_NAME.get(normalize_skill_name(name), "other")


def find_known_skills(text: str) -> List[str]:
    """Known skills mentioned in free text, in taxonomy order."""
    if not text:
        return []
    lowered = text.lower()
    return [display for display, pattern in _PATTERNS if pattern.search(lowered)]
