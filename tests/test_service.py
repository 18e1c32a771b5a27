from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import List, Tuple

import pytest

from jm_engine.config import Settings
from jm_engine.errors import InvalidPaginationError, JobNotFoundError, PersistenceError
from jm_engine.matching import BrowseFilters
from jm_engine.models import JobStatus
from jm_engine.repository import SqliteJobRepository
from jm_engine.schemas import JobInput, JobUpdate, PreferencesInput
from jm_engine.service import JobMatchService, build_service
from jm_engine.tags.cache import InMemoryTagCache
from jm_engine.tags.extractor import TagExtractor


def _post(service: JobMatchService, description: str, recruiter: str = "rec-1", **extra):
    return service.create_job(recruiter, JobInput(title="Engineer", description=description, **extra))


def test_create_job_attaches_extracted_tags(service: JobMatchService) -> None:
    job = _post(service, "Looking for React developer with Node.js experience")
    assert job.tag_names == ["React", "Node.js", "Software Developer"]
    assert job.status == JobStatus.ACTIVE
    assert service.get_job(job.id).tag_names == job.tag_names


def test_description_change_regenerates_tags(service: JobMatchService, caplog) -> None:
    job = _post(service, "Python and Docker")
    assert job.tag_names == ["Python", "Docker"]

    with caplog.at_level(logging.INFO, logger="jm_engine.service"):
        updated = service.update_job(job.id, "rec-1", JobUpdate(description="Docker and Kubernetes"))
    assert updated.tag_names == ["Docker", "Kubernetes"]
    assert "regenerating tags" in caplog.text


def test_update_without_description_change_keeps_tags(service: JobMatchService, monkeypatch) -> None:
    job = _post(service, "Python and Docker")

    def _fail(_text):
        raise AssertionError("tags should not be re-extracted")

    monkeypatch.setattr(service.extractor, "extract_tag_ids", _fail)
    updated = service.update_job(job.id, "rec-1", JobUpdate(title="Senior Engineer", description="Python and Docker"))
    assert updated.title == "Senior Engineer"
    assert updated.tag_names == ["Python", "Docker"]


def test_other_recruiters_cannot_touch_a_job(service: JobMatchService) -> None:
    job = _post(service, "Python and Docker")
    with pytest.raises(JobNotFoundError):
        service.update_job(job.id, "rec-2", JobUpdate(title="Hijacked"))
    with pytest.raises(JobNotFoundError):
        service.delete_job(job.id, "rec-2")
    assert service.get_job(job.id).title == "Engineer"


def test_delete_then_get_raises(service: JobMatchService) -> None:
    job = _post(service, "Python and Docker")
    service.delete_job(job.id, "rec-1")
    with pytest.raises(JobNotFoundError):
        service.get_job(job.id)
    with pytest.raises(JobNotFoundError):
        service.delete_job(job.id, "rec-1")


def test_recommendations_from_stored_preferences(service: JobMatchService) -> None:
    react = _post(service, "React and JavaScript for our web app")
    _post(service, "Python backend developer")

    service.save_preferences("seeker-1", PreferencesInput(preferred_job_titles=["React Developer"]))
    result = service.recommend_jobs("seeker-1", page=1, limit=10)

    assert result.personalized is True
    assert result.jobs[0].job.id == react.id
    assert result.jobs[0].match_score == 1
    assert result.jobs[0].match_score_display == "1/1"


def test_recommendations_without_preferences_fall_back(service: JobMatchService) -> None:
    first = _post(service, "Python and Docker")
    second = _post(service, "React developer")
    result = service.recommend_jobs("nobody", page=1, limit=10)
    assert result.personalized is False
    assert [s.job.id for s in result.jobs] == [second.id, first.id]


def test_closed_jobs_drop_out_of_recommendations(service: JobMatchService) -> None:
    job = _post(service, "Python and Docker")
    service.update_job(job.id, "rec-1", JobUpdate(status=JobStatus.CLOSED))
    assert service.recommend_jobs("nobody", page=1, limit=10).jobs == []


def test_invalid_pagination_raises(service: JobMatchService) -> None:
    with pytest.raises(InvalidPaginationError):
        service.recommend_jobs("seeker-1", page=0, limit=10)
    with pytest.raises(InvalidPaginationError):
        service.browse_jobs(BrowseFilters(), page=1, limit=0)


def test_limit_is_clamped_to_configured_maximum(service: JobMatchService) -> None:
    assert service.recommend_jobs("seeker-1", page=1, limit=1000).limit == 100


def test_browse_through_service(service: JobMatchService) -> None:
    _post(service, "Python and Docker", location="Berlin")
    remote = _post(service, "React developer", location="Remote")
    result = service.browse_jobs(BrowseFilters(location="remote"), page=1, limit=10)
    assert [j.id for j in result.jobs] == [remote.id]


def test_preview_and_clear_cache(service: JobMatchService) -> None:
    assert service.preview_tags("DevOps engineer with AWS and Docker experience") == [
        "AWS",
        "Docker",
        "DevOps Engineer",
    ]
    assert service.preview_tags("") == []
    service.clear_tag_cache()


def test_build_service_uses_settings(tmp_path) -> None:
    settings = Settings(db_path=tmp_path / "built.sqlite", max_page_limit=5)
    service = build_service(settings)
    job = _post(service, "Python developer")
    assert job.tag_names == ["Python", "Software Developer"]
    assert (tmp_path / "built.sqlite").exists()
    assert service.recommend_jobs("x", page=1, limit=50).limit == 5


def test_readers_never_see_a_half_replaced_tag_set(service: JobMatchService) -> None:
    job = _post(service, "Python and Docker")
    allowed = {("Python", "Docker"), ("Docker", "Kubernetes")}
    seen: List[Tuple[str, ...]] = []
    errors: List[BaseException] = []
    stop = threading.Event()
    reading = threading.Event()

    def reader() -> None:
        try:
            while not stop.is_set():
                seen.append(tuple(service.get_job(job.id).tag_names))
                reading.set()
        except Exception as exc:
            errors.append(exc)
            reading.set()

    thread = threading.Thread(target=reader)
    thread.start()
    try:
        assert reading.wait(timeout=5)
        for i in range(20):
            description = "Docker and Kubernetes" if i % 2 == 0 else "Python and Docker"
            service.update_job(job.id, "rec-1", JobUpdate(description=description))
    finally:
        stop.set()
        thread.join()

    assert errors == []
    assert seen
    assert set(seen) <= allowed


def test_list_recruiter_jobs(service: JobMatchService) -> None:
    mine = _post(service, "Python and Docker")
    _post(service, "React developer", recruiter="rec-2")
    closed = _post(service, "Docker and Kubernetes")
    service.update_job(closed.id, "rec-1", JobUpdate(status=JobStatus.CLOSED))

    jobs = service.list_recruiter_jobs("rec-1")
    assert [j.id for j in jobs] == [closed.id, mine.id]
    assert jobs[0].status == JobStatus.CLOSED
    assert jobs[1].tag_names == ["Python", "Docker"]


def test_unopenable_store_surfaces_as_persistence_error(tmp_path: Path) -> None:
    blocker = tmp_path / "occupied"
    blocker.write_text("x", encoding="utf-8")
    repo = SqliteJobRepository(blocker / "jobmatch.sqlite")
    service = JobMatchService(repo, TagExtractor(repo, InMemoryTagCache()))

    with pytest.raises(PersistenceError):
        service.recommend_jobs("seeker-1", page=1, limit=10)
    with pytest.raises(PersistenceError):
        _post(service, "Python and Docker")
