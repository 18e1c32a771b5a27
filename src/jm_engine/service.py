from __future__ import annotations

import logging
from typing import List, Optional

from jm_engine.config import Settings, load_settings
from jm_engine.errors import JobNotFoundError
from jm_engine.matching.browse import BrowseFilters, browse_jobs
from jm_engine.matching.pagination import validate_pagination
from jm_engine.matching.scorer import recommend_jobs
from jm_engine.models import BrowsePage, JobPosting, RecommendationPage, SeekerPreferences
from jm_engine.repository import JobRepository, SqliteJobRepository
from jm_engine.schemas import JobInput, JobUpdate, PreferencesInput
from jm_engine.tags.cache import InMemoryTagCache, TagCache
from jm_engine.tags.extractor import TagExtractor

logger = logging.getLogger(__name__)


class JobMatchService:
    """Job and recommendation flows used by the API and the CLI."""

    def __init__(
        self,
        repository: JobRepository,
        extractor: TagExtractor,
        *,
        max_page_limit: Optional[int] = None,
    ) -> None:
        self.repository = repository
        self.extractor = extractor
        self._max_page_limit = max_page_limit

    def _owned_job(self, job_id: int, recruiter_id: str) -> JobPosting:
        job = self.repository.get_job(job_id)
        if job is None or job.recruiter_id != recruiter_id:
            raise JobNotFoundError(job_id)
        return job

    def create_job(self, recruiter_id: str, data: JobInput) -> JobPosting:
        tag_ids = self.extractor.extract_tag_ids(data.description)
        return self.repository.create_job(recruiter_id, data.to_fields(), tag_ids)

    def update_job(self, job_id: int, recruiter_id: str, data: JobUpdate) -> JobPosting:
        current = self._owned_job(job_id, recruiter_id)
        fields = data.to_fields()
        tag_ids: Optional[List[int]] = None
        new_description = fields.get("description")
        if new_description and new_description != current.description:
            logger.info("description changed, regenerating tags: job_id=%s", job_id)
            tag_ids = self.extractor.extract_tag_ids(new_description)
        updated = self.repository.update_job(job_id, fields, tag_ids)
        if updated is None:
            raise JobNotFoundError(job_id)
        return updated

    def delete_job(self, job_id: int, recruiter_id: str) -> None:
        self._owned_job(job_id, recruiter_id)
        if not self.repository.delete_job(job_id):
            raise JobNotFoundError(job_id)
        logger.info("job deleted: job_id=%s recruiter_id=%s", job_id, recruiter_id)

    def get_job(self, job_id: int) -> JobPosting:
        job = self.repository.get_job(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    def list_recruiter_jobs(self, recruiter_id: str) -> List[JobPosting]:
        return self.repository.list_jobs_by_recruiter(recruiter_id)

    def browse_jobs(self, filters: BrowseFilters, page: int, limit: int) -> BrowsePage:
        pagination = validate_pagination(page, limit, self._max_page_limit)
        return browse_jobs(self.repository.list_active_jobs_with_tags(), filters, pagination)

    def save_preferences(self, user_id: str, data: PreferencesInput) -> SeekerPreferences:
        return self.repository.save_seeker_preferences(data.to_preferences(user_id))

    def get_preferences(self, user_id: str) -> Optional[SeekerPreferences]:
        return self.repository.get_seeker_preferences(user_id)

    def recommend_jobs(self, seeker_id: str, page: int, limit: int) -> RecommendationPage:
        pagination = validate_pagination(page, limit, self._max_page_limit)
        prefs = self.repository.get_seeker_preferences(seeker_id)
        jobs = self.repository.list_active_jobs_with_tags()
        result = recommend_jobs(prefs, jobs, pagination)
        logger.debug(
            "recommendations: seeker_id=%s personalized=%s total=%d page=%d",
            seeker_id,
            result.personalized,
            result.total,
            result.page,
        )
        return result

    def preview_tags(self, description: Optional[str]) -> List[str]:
        return self.extractor.extract_tag_names(description)

    def clear_tag_cache(self) -> None:
        self.extractor.clear_cache()


def build_service(settings: Optional[Settings] = None, cache: Optional[TagCache] = None) -> JobMatchService:
    settings = settings or load_settings()
    repository = SqliteJobRepository(settings.db_path, timeout_seconds=settings.sqlite_timeout_seconds)
    cache = cache if cache is not None else InMemoryTagCache(settings.tag_cache_ttl_seconds)
    extractor = TagExtractor(repository, cache, ttl_seconds=settings.tag_cache_ttl_seconds)
    return JobMatchService(repository, extractor, max_page_limit=settings.max_page_limit)
