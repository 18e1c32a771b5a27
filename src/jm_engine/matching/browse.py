from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from jm_engine.matching.pagination import Pagination, page_count, paginate
from jm_engine.matching.scorer import recency_key
from jm_engine.models import BrowsePage, JobPosting


@dataclass(frozen=True)
class BrowseFilters:
    location: Optional[str] = None
    salary_min: Optional[int] = None
    salary_max: Optional[int] = None
    employment_type: Optional[str] = None
    tags: List[str] = field(default_factory=list)


def _matches(job: JobPosting, filters: BrowseFilters) -> bool:
    if filters.location:
        if not job.location or filters.location.lower() not in job.location.lower():
            return False
    # A job missing the compared bound never passes a salary filter.
    if filters.salary_min:
        if job.salary_max is None or job.salary_max < filters.salary_min:
            return False
    if filters.salary_max:
        if job.salary_min is None or job.salary_min > filters.salary_max:
            return False
    if filters.employment_type and job.employment_type != filters.employment_type:
        return False
    if filters.tags:
        wanted = set(filters.tags)
        if not any(name in wanted for name in job.tag_names):
            return False
    return True


def browse_jobs(jobs: Iterable[JobPosting], filters: BrowseFilters, pagination: Pagination) -> BrowsePage:
    """Active jobs passing every filter, newest first."""
    pool = sorted((j for j in jobs if j.is_active and _matches(j, filters)), key=recency_key, reverse=True)
    return BrowsePage(
        jobs=paginate(pool, pagination),
        page=pagination.page,
        limit=pagination.limit,
        total=len(pool),
        pages=page_count(len(pool), pagination.limit),
    )
