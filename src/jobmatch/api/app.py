"""
SignalCraft
Copyright (c) 2026 Chris Menendez.
All Rights Reserved.
See LICENSE for permitted use.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

try:
    from fastapi import FastAPI, Header, Query, Request
    from fastapi.exceptions import RequestValidationError
    from fastapi.responses import JSONResponse
    from pydantic import BaseModel
except ModuleNotFoundError as exc:  # pragma: no cover - exercised in environments without api extras
    raise RuntimeError("API dependencies are not installed. Install with: pip install -e '.[api]'") from exc

from jm_engine.config import load_settings
from jm_engine.errors import InvalidPaginationError, JobMatchError, JobNotFoundError, PersistenceError
from jm_engine.matching.browse import BrowseFilters
from jm_engine.schemas import JobInput, JobUpdate, PreferencesInput
from jm_engine.service import JobMatchService, build_service
from jm_engine.tags.rules import RULES_VERSION

logger = logging.getLogger(__name__)


class _ExtractRequest(BaseModel):
    description: Optional[str] = None


def _ok(data: Any, status_code: int = 200, message: Optional[str] = None) -> JSONResponse:
    body: Dict[str, Any] = {"success": True, "data": data}
    if message:
        body["message"] = message
    return JSONResponse(status_code=status_code, content=body)


def _fail(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message, **extra})


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = [{"loc": [str(p) for p in e.get("loc", ())], "msg": e.get("msg", ""), "type": e.get("type", "")} for e in exc.errors()]
        return _fail(422, "Validation failed", errors=errors)

    @app.exception_handler(JobNotFoundError)
    async def _not_found(request: Request, exc: JobNotFoundError) -> JSONResponse:
        return _fail(404, "Job not found or unauthorized")

    @app.exception_handler(InvalidPaginationError)
    async def _bad_pagination(request: Request, exc: InvalidPaginationError) -> JSONResponse:
        return _fail(400, str(exc))

    @app.exception_handler(PersistenceError)
    async def _persistence(request: Request, exc: PersistenceError) -> JSONResponse:
        logger.error("persistence failure: path=%s error=%s", request.url.path, exc)
        return _fail(500, "Storage error")

    @app.exception_handler(JobMatchError)
    async def _generic(request: Request, exc: JobMatchError) -> JSONResponse:
        logger.error("request failed: path=%s error=%s", request.url.path, exc)
        return _fail(500, "Request failed")


def create_app(service: Optional[JobMatchService] = None) -> FastAPI:
    settings = load_settings()
    svc = service or build_service(settings)
    default_limit = settings.default_page_limit

    app = FastAPI(title="jobmatch API")
    app.state.service = svc
    _register_error_handlers(app)

    @app.get("/health")
    def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/jobs")
    def create_job(body: JobInput, x_user_id: str = Header(...)) -> JSONResponse:
        job = svc.create_job(x_user_id, body)
        return _ok({"job": job.to_dict()}, status_code=201, message="Job created successfully")

    @app.get("/jobs")
    def browse(
        location: Optional[str] = None,
        salary_min: Optional[int] = None,
        salary_max: Optional[int] = None,
        employment_type: Optional[str] = None,
        tags: Optional[List[str]] = Query(default=None),
        page: int = 1,
        limit: Optional[int] = None,
    ) -> JSONResponse:
        filters = BrowseFilters(
            location=location,
            salary_min=salary_min,
            salary_max=salary_max,
            employment_type=employment_type,
            tags=list(tags or []),
        )
        result = svc.browse_jobs(filters, page, default_limit if limit is None else limit)
        return _ok(result.to_dict())

    @app.get("/recruiter/jobs")
    def recruiter_jobs(x_user_id: str = Header(...)) -> JSONResponse:
        jobs = svc.list_recruiter_jobs(x_user_id)
        return _ok({"jobs": [j.to_dict() for j in jobs]})

    @app.get("/jobs/{job_id}")
    def get_job(job_id: int) -> JSONResponse:
        return _ok({"job": svc.get_job(job_id).to_dict()})

    @app.put("/jobs/{job_id}")
    def update_job(job_id: int, body: JobUpdate, x_user_id: str = Header(...)) -> JSONResponse:
        job = svc.update_job(job_id, x_user_id, body)
        return _ok({"job": job.to_dict()}, message="Job updated successfully")

    @app.delete("/jobs/{job_id}")
    def delete_job(job_id: int, x_user_id: str = Header(...)) -> JSONResponse:
        svc.delete_job(job_id, x_user_id)
        return _ok(None, message="Job deleted successfully")

    @app.put("/seekers/{user_id}/preferences")
    def save_preferences(user_id: str, body: PreferencesInput) -> JSONResponse:
        prefs = svc.save_preferences(user_id, body)
        return _ok({"preferences": prefs.to_dict()})

    @app.get("/seekers/{user_id}/preferences")
    def get_preferences(user_id: str) -> JSONResponse:
        prefs = svc.get_preferences(user_id)
        return _ok({"preferences": prefs.to_dict() if prefs else None})

    @app.get("/seekers/{user_id}/recommendations")
    def recommendations(user_id: str, page: int = 1, limit: Optional[int] = None) -> JSONResponse:
        result = svc.recommend_jobs(user_id, page, default_limit if limit is None else limit)
        return _ok(result.to_dict())

    @app.post("/tags/extract")
    def extract_tags(body: _ExtractRequest) -> JSONResponse:
        return _ok({"tags": svc.preview_tags(body.description), "rules_version": RULES_VERSION})

    @app.post("/tags/cache/clear")
    def clear_tag_cache() -> JSONResponse:
        svc.clear_tag_cache()
        return _ok(None, message="Tag cache cleared")

    return app


app = create_app()
