#!/usr/bin/env python3
"""
Content similarity between jobs, independent of any candidate.

similarity = 0.3 * Jaccard(title tokens) + 0.7 * Jaccard(description tokens)
"""

from typing import Set

from core.profiles.models import JobProfile
from core.utils import jaccard, tokenize

TITLE_WEIGHT = 0.3
DESCRIPTION_WEIGHT = 0.7
MIN_TOKEN_LENGTH = 3


def _content_tokens(text: str) -> Set[str]:
    return {t for t in tokenize(text) if len(t) >= MIN_TOKEN_LENGTH}


def content_similarity(a: JobProfile, b: JobProfile) -> float:
    title = jaccard(_content_tokens(a.title), _content_tokens(b.title))
    description = jaccard(_content_tokens(a.description), _content_tokens(b.description))
    return TITLE_WEIGHT * title + DESCRIPTION_WEIGHT * description
