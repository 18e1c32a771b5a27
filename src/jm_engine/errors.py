from __future__ import annotations

from typing import List


class JobMatchError(Exception):
    """Base class for errors raised by the matching core."""


class InvalidPaginationError(JobMatchError, ValueError):
    def __init__(self, page: int, limit: int):
        super().__init__(f"invalid pagination: page={page} limit={limit} (page >= 1 and limit >= 1 required)")
        self.page = page
        self.limit = limit


class JobNotFoundError(JobMatchError, LookupError):
    def __init__(self, job_id: int):
        super().__init__(f"job not found: id={job_id}")
        self.job_id = job_id


class PersistenceError(JobMatchError):
    """A job/tag store operation failed. Never retried by the core."""


class TagResolutionError(PersistenceError):
    def __init__(self, unresolved: List[str]):
        super().__init__("could not resolve tag names to catalog ids: " + ", ".join(unresolved))
        self.unresolved = list(unresolved)
