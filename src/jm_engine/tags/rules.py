from __future__ import annotations

from typing import List, Optional, Tuple

from jm_engine.models import TagCategory

RULES_VERSION = "2025-06-TAGS-1"
MAX_TAGS = 3

# Order is the deterministic output order. Plain substring matching, so
# "node" also fires on "node.js" and "java" on "javascript".
SKILL_KEYWORDS: Tuple[Tuple[str, str], ...] = (
    ("react", "React"),
    ("node", "Node.js"),
    ("javascript", "JavaScript"),
    ("python", "Python"),
    ("java", "Java"),
    ("postgresql", "PostgreSQL"),
    ("mongodb", "MongoDB"),
    ("aws", "AWS"),
    ("docker", "Docker"),
    ("kubernetes", "Kubernetes"),
)

# Most specific phrase first.
ROLE_KEYWORDS: Tuple[Tuple[str, str], ...] = (
    ("full stack", "Full Stack Developer"),
    ("frontend", "Frontend Developer"),
    ("backend", "Backend Developer"),
    ("devops", "DevOps Engineer"),
    ("data scientist", "Data Scientist"),
    ("developer", "Software Developer"),
    ("engineer", "Software Engineer"),
)

# Generic fallbacks: only considered when no specific role phrase matched.
GENERIC_ROLE_KEYWORDS = frozenset({"developer", "engineer"})

_SKILL_NAMES = {tag for _, tag in SKILL_KEYWORDS}
_ROLE_NAMES = {tag for _, tag in ROLE_KEYWORDS}


def normalize_description(text: Optional[str]) -> str:
    """Lowercased text, or "" when the input is None or whitespace-only."""
    if not text or not text.strip():
        return ""
    return text.lower()


def _skills_from_text(text: str, out: List[str]) -> None:
    for keyword, tag in SKILL_KEYWORDS:
        if len(out) >= MAX_TAGS:
            return
        if keyword in text and tag not in out:
            out.append(tag)


def _roles_from_text(text: str, out: List[str]) -> None:
    specific_matched = False
    for keyword, tag in ROLE_KEYWORDS:
        if keyword not in text:
            continue
        if keyword in GENERIC_ROLE_KEYWORDS:
            if specific_matched:
                continue
        else:
            specific_matched = True
        if len(out) < MAX_TAGS and tag not in out:
            out.append(tag)


def extract_tag_names(text: Optional[str]) -> List[str]:
    """
    Deterministic keyword tagger: up to MAX_TAGS canonical tag names.

    Skills are scanned first in declared order, then roles fill the remaining
    slots. A generic role ("developer", "engineer") never joins a specific
    role phrase that already matched.
    """
    normalized = normalize_description(text)
    if not normalized:
        return []
    out: List[str] = []
    _skills_from_text(normalized, out)
    _roles_from_text(normalized, out)
    return out[:MAX_TAGS]


def category_for(tag_name: str) -> TagCategory:
    if tag_name in _ROLE_NAMES and tag_name not in _SKILL_NAMES:
        return TagCategory.JOB_ROLE
    return TagCategory.SKILL


__all__ = [
    "GENERIC_ROLE_KEYWORDS",
    "MAX_TAGS",
    "ROLE_KEYWORDS",
    "RULES_VERSION",
    "SKILL_KEYWORDS",
    "category_for",
    "extract_tag_names",
    "normalize_description",
]
