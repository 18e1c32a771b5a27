from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class TagCategory(str, Enum):
    SKILL = "Skill"
    JOB_ROLE = "JobRole"


class JobStatus(str, Enum):
    ACTIVE = "active"
    CLOSED = "closed"


@dataclass(frozen=True)
class Tag:
    """Catalog entry for a skill or job role. Unique by name."""

    id: int
    name: str
    category: TagCategory

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "category": self.category.value}


@dataclass
class JobPosting:
    id: int
    recruiter_id: str
    title: str
    description: str
    status: JobStatus
    created_at: datetime
    salary_min: Optional[int] = None
    salary_max: Optional[int] = None
    location: Optional[str] = None
    employment_type: Optional[str] = None
    about: Optional[str] = None
    benefits: Optional[str] = None
    updated_at: Optional[datetime] = None
    tags: List[Tag] = field(default_factory=list)

    @property
    def is_active(self) -> bool:
        return self.status == JobStatus.ACTIVE

    @property
    def tag_names(self) -> List[str]:
        return [t.name for t in self.tags]

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        # Convert datetime to ISO so it's JSON-serializable
        d["created_at"] = self.created_at.isoformat()
        d["updated_at"] = self.updated_at.isoformat() if self.updated_at else None
        d["status"] = self.status.value
        d["tags"] = [t.to_dict() for t in self.tags]
        return d


@dataclass
class SeekerPreferences:
    """
    A seeker's stated job preferences. At most one record per user.

    preferred_locations has set semantics; the list keeps the order the
    seeker entered them in for display.
    """

    user_id: str
    preferred_job_titles: List[str] = field(default_factory=list)
    preferred_industries: List[str] = field(default_factory=list)
    preferred_locations: List[str] = field(default_factory=list)
    salary_expectation_min: Optional[int] = None
    salary_expectation_max: Optional[int] = None
    is_skipped: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ScoredJob:
    job: JobPosting
    match_score: int
    match_score_display: str

    def to_dict(self) -> Dict[str, Any]:
        d = self.job.to_dict()
        d["match_score"] = self.match_score
        d["match_score_display"] = self.match_score_display
        return d


@dataclass
class RecommendationPage:
    jobs: List[ScoredJob]
    page: int
    limit: int
    total: int
    total_preference_tags: int
    personalized: bool
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "jobs": [j.to_dict() for j in self.jobs],
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "total_preference_tags": self.total_preference_tags,
            "personalized": self.personalized,
            "message": self.message,
        }


@dataclass
class BrowsePage:
    jobs: List[JobPosting]
    page: int
    limit: int
    total: int
    pages: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "jobs": [j.to_dict() for j in self.jobs],
            "pagination": {
                "page": self.page,
                "limit": self.limit,
                "total": self.total,
                "pages": self.pages,
            },
        }
