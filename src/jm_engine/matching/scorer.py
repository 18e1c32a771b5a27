from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

from jm_engine.matching.pagination import Pagination, paginate
from jm_engine.models import JobPosting, RecommendationPage, ScoredJob, SeekerPreferences, Tag

FALLBACK_MESSAGE = "Showing recent jobs (no preferences set)"


def _clean(items: Iterable[str]) -> List[str]:
    return [str(i).strip() for i in items if str(i).strip()]


def preference_tags(prefs: SeekerPreferences) -> List[str]:
    """Preferred job titles followed by preferred industries, blanks dropped."""
    return _clean(prefs.preferred_job_titles) + _clean(prefs.preferred_industries)


def tag_matches(tag_name: str, pref_tag: str) -> bool:
    """
    Case-insensitive containment in either direction.

    Known heuristic limitation: short names match loosely, e.g. a preference
    "AI" matches any tag containing "ai".
    """
    tag = tag_name.strip().lower()
    pref = pref_tag.strip().lower()
    if not tag or not pref:
        return False
    return tag in pref or pref in tag


def compute_match_score(tags: Sequence[Tag], pref_tags: Sequence[str]) -> int:
    """Number of distinct job tags matching at least one preference tag."""
    matched = set()
    for tag in tags:
        if tag.id in matched:
            continue
        if any(tag_matches(tag.name, pref) for pref in pref_tags):
            matched.add(tag.id)
    return len(matched)


def format_match_display(score: int, total_preference_tags: int) -> str:
    return f"{score}/{max(total_preference_tags, 1)}"


def location_compatible(job: JobPosting, prefs: SeekerPreferences) -> bool:
    locations = set(_clean(prefs.preferred_locations))
    if not locations:
        return True
    return not job.location or job.location in locations


def salary_compatible(job: JobPosting, prefs: SeekerPreferences) -> bool:
    if prefs.salary_expectation_min and job.salary_max is not None:
        if job.salary_max < prefs.salary_expectation_min:
            return False
    if prefs.salary_expectation_max and job.salary_min is not None:
        if job.salary_min > prefs.salary_expectation_max:
            return False
    return True


def recency_key(job: JobPosting) -> Tuple[float, int]:
    return (job.created_at.timestamp(), job.id)


def rank_scored(scored: Iterable[ScoredJob]) -> List[ScoredJob]:
    """Score desc, then created_at desc, then id desc so the order is total."""
    return sorted(scored, key=lambda s: (s.match_score, *recency_key(s.job)), reverse=True)


def _active(jobs: Iterable[JobPosting]) -> List[JobPosting]:
    return [j for j in jobs if j.is_active]


def recommend_jobs(
    prefs: Optional[SeekerPreferences],
    jobs: Iterable[JobPosting],
    pagination: Pagination,
) -> RecommendationPage:
    """
    Rank active jobs for a seeker and return one page.

    Without a preference record (or when the seeker skipped preferences) jobs
    come back newest first with match_score=0 and no location/salary filter.
    """
    active = _active(jobs)

    if prefs is None or prefs.is_skipped:
        recent = sorted(active, key=recency_key, reverse=True)
        page_jobs = paginate(recent, pagination)
        return RecommendationPage(
            jobs=[ScoredJob(job=j, match_score=0, match_score_display=format_match_display(0, 0)) for j in page_jobs],
            page=pagination.page,
            limit=pagination.limit,
            total=len(recent),
            total_preference_tags=0,
            personalized=False,
            message=FALLBACK_MESSAGE,
        )

    pref_tags = preference_tags(prefs)
    total_pref = len(pref_tags)
    candidates = [j for j in active if location_compatible(j, prefs) and salary_compatible(j, prefs)]
    scored = []
    for job in candidates:
        score = compute_match_score(job.tags, pref_tags)
        scored.append(ScoredJob(job=job, match_score=score, match_score_display=format_match_display(score, total_pref)))
    ranked = rank_scored(scored)
    return RecommendationPage(
        jobs=paginate(ranked, pagination),
        page=pagination.page,
        limit=pagination.limit,
        total=len(ranked),
        total_preference_tags=total_pref,
        personalized=True,
    )


__all__ = [
    "FALLBACK_MESSAGE",
    "compute_match_score",
    "format_match_display",
    "location_compatible",
    "preference_tags",
    "rank_scored",
    "recommend_jobs",
    "salary_compatible",
    "tag_matches",
]
