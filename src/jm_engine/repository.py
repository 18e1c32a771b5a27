"""
SignalCraft
Copyright (c) 2026 Chris Menendez.
All Rights Reserved.
See LICENSE for permitted use.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Protocol, Sequence

from jm_engine.config import DEFAULT_SQLITE_TIMEOUT_SECONDS
from jm_engine.errors import PersistenceError
from jm_engine.models import JobPosting, JobStatus, SeekerPreferences, Tag, TagCategory
from jm_engine.utils.time import from_storage, to_storage, utc_now

logger = logging.getLogger(__name__)

JOB_COLUMNS = (
    "title",
    "about",
    "description",
    "salary_min",
    "salary_max",
    "benefits",
    "location",
    "employment_type",
    "status",
)


class JobRepository(Protocol):
    def find_tag_by_name(self, name: str) -> Optional[Tag]: ...

    def insert_tag(self, name: str, category: TagCategory) -> Tag: ...

    def list_tags(self) -> List[Tag]: ...

    def replace_job_tags(self, job_id: int, tag_ids: Sequence[int]) -> None: ...

    def list_active_jobs_with_tags(self) -> List[JobPosting]: ...

    def get_seeker_preferences(self, user_id: str) -> Optional[SeekerPreferences]: ...

    def save_seeker_preferences(self, prefs: SeekerPreferences) -> SeekerPreferences: ...

    def create_job(
        self,
        recruiter_id: str,
        fields: Dict[str, Any],
        tag_ids: Sequence[int],
        *,
        created_at: Optional[datetime] = None,
    ) -> JobPosting: ...

    def update_job(
        self,
        job_id: int,
        fields: Dict[str, Any],
        tag_ids: Optional[Sequence[int]] = None,
    ) -> Optional[JobPosting]: ...

    def get_job(self, job_id: int) -> Optional[JobPosting]: ...

    def list_jobs_by_recruiter(self, recruiter_id: str) -> List[JobPosting]: ...

    def delete_job(self, job_id: int) -> bool: ...


_SCHEMA = """
PRAGMA journal_mode=WAL;
CREATE TABLE IF NOT EXISTS tags (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE,
    category TEXT NOT NULL,
    created_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS jobs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    recruiter_id TEXT NOT NULL,
    title TEXT NOT NULL,
    about TEXT,
    description TEXT NOT NULL,
    salary_min INTEGER,
    salary_max INTEGER,
    benefits TEXT,
    location TEXT,
    employment_type TEXT,
    status TEXT NOT NULL DEFAULT 'active' CHECK (status IN ('active', 'closed')),
    created_at TEXT NOT NULL,
    updated_at TEXT
);
CREATE INDEX IF NOT EXISTS idx_jobs_status_created
    ON jobs(status, created_at DESC, id DESC);
CREATE TABLE IF NOT EXISTS job_tags (
    job_id INTEGER NOT NULL REFERENCES jobs(id) ON DELETE CASCADE,
    tag_id INTEGER NOT NULL REFERENCES tags(id),
    position INTEGER NOT NULL,
    PRIMARY KEY (job_id, tag_id)
);
CREATE TABLE IF NOT EXISTS job_preferences (
    user_id TEXT PRIMARY KEY,
    preferred_job_titles TEXT NOT NULL DEFAULT '[]',
    preferred_industries TEXT NOT NULL DEFAULT '[]',
    preferred_locations TEXT NOT NULL DEFAULT '[]',
    salary_expectation_min INTEGER,
    salary_expectation_max INTEGER,
    is_skipped INTEGER NOT NULL DEFAULT 0,
    updated_at TEXT NOT NULL
);
"""


def _row_to_tag(row: sqlite3.Row) -> Tag:
    return Tag(id=int(row["id"]), name=row["name"], category=TagCategory(row["category"]))


def _row_to_job(row: sqlite3.Row, tags: List[Tag]) -> JobPosting:
    created_at = from_storage(row["created_at"])
    if created_at is None:
        raise PersistenceError(f"job row without created_at: id={row['id']}")
    return JobPosting(
        id=int(row["id"]),
        recruiter_id=row["recruiter_id"],
        title=row["title"],
        description=row["description"],
        status=JobStatus(row["status"]),
        created_at=created_at,
        salary_min=row["salary_min"],
        salary_max=row["salary_max"],
        location=row["location"],
        employment_type=row["employment_type"],
        about=row["about"],
        benefits=row["benefits"],
        updated_at=from_storage(row["updated_at"]),
        tags=tags,
    )


def _load_str_list(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    value = json.loads(raw)
    if not isinstance(value, list):
        return []
    return [str(v) for v in value]


def _dedupe(ids: Sequence[int]) -> List[int]:
    seen: set[int] = set()
    out: List[int] = []
    for tag_id in ids:
        if tag_id in seen:
            continue
        seen.add(tag_id)
        out.append(tag_id)
    return out


def _column_value(column: str, value: Any) -> Any:
    if column == "status" and isinstance(value, JobStatus):
        return value.value
    return value


class SqliteJobRepository(JobRepository):
    """
    Job, tag catalog and seeker preference store on SQLite.

    Each operation opens its own connection so the repository can be shared
    across request threads. Writes that touch several tables run inside a
    single transaction.
    """

    def __init__(self, db_path: Path, timeout_seconds: float = DEFAULT_SQLITE_TIMEOUT_SECONDS) -> None:
        self._db_path = Path(db_path)
        self._timeout = timeout_seconds
        self._schema_lock = threading.Lock()
        self._schema_ready = False

    @property
    def db_path(self) -> Path:
        return self._db_path

    def ensure_schema(self) -> None:
        with self._schema_lock:
            if self._schema_ready:
                return
            try:
                self._db_path.parent.mkdir(parents=True, exist_ok=True)
                conn = sqlite3.connect(self._db_path, timeout=self._timeout)
                try:
                    conn.executescript(_SCHEMA)
                    conn.commit()
                finally:
                    conn.close()
            except (OSError, sqlite3.Error) as exc:
                raise PersistenceError(f"schema setup failed for {self._db_path}: {exc}") from exc
            self._schema_ready = True
            logger.debug("job store schema ready: db_path=%s", self._db_path)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        self.ensure_schema()
        try:
            conn = sqlite3.connect(self._db_path, timeout=self._timeout)
        except sqlite3.Error as exc:
            raise PersistenceError(f"cannot open {self._db_path}: {exc}") from exc
        try:
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys = ON")
            yield conn
        except sqlite3.Error as exc:
            raise PersistenceError(f"job store operation failed: {exc}") from exc
        finally:
            conn.close()

    # Tag catalog

    def find_tag_by_name(self, name: str) -> Optional[Tag]:
        with self._connect() as conn:
            row = conn.execute("SELECT id, name, category FROM tags WHERE name = ?", (name,)).fetchone()
            return _row_to_tag(row) if row else None

    def insert_tag(self, name: str, category: TagCategory) -> Tag:
        """
        Idempotent insert: a name that already exists (including one written
        by a concurrent caller) resolves to the existing row.
        """
        with self._connect() as conn:
            try:
                with conn:
                    cur = conn.execute(
                        "INSERT INTO tags(name, category, created_at) VALUES (?, ?, ?) ON CONFLICT(name) DO NOTHING",
                        (name, category.value, to_storage(utc_now())),
                    )
                if cur.rowcount == 1:
                    logger.info("tag catalog insert: name=%s category=%s", name, category.value)
            except sqlite3.IntegrityError:
                logger.debug("tag catalog insert conflict: name=%s", name)
            row = conn.execute("SELECT id, name, category FROM tags WHERE name = ?", (name,)).fetchone()
        if row is None:
            raise PersistenceError(f"tag insert did not produce a row: name={name}")
        return _row_to_tag(row)

    def list_tags(self) -> List[Tag]:
        with self._connect() as conn:
            rows = conn.execute("SELECT id, name, category FROM tags ORDER BY id").fetchall()
            return [_row_to_tag(r) for r in rows]

    # Job/tag associations

    def _write_job_tags(self, conn: sqlite3.Connection, job_id: int, tag_ids: Sequence[int]) -> None:
        conn.execute("DELETE FROM job_tags WHERE job_id = ?", (job_id,))
        conn.executemany(
            "INSERT INTO job_tags(job_id, tag_id, position) VALUES (?, ?, ?)",
            [(job_id, tag_id, pos) for pos, tag_id in enumerate(_dedupe(tag_ids))],
        )

    def replace_job_tags(self, job_id: int, tag_ids: Sequence[int]) -> None:
        with self._connect() as conn:
            with conn:
                self._write_job_tags(conn, job_id, tag_ids)
        logger.debug("job tags replaced: job_id=%s tag_ids=%s", job_id, list(tag_ids))

    def _tags_for_jobs(self, conn: sqlite3.Connection, job_ids: Sequence[int]) -> Dict[int, List[Tag]]:
        by_job: Dict[int, List[Tag]] = {job_id: [] for job_id in job_ids}
        if not job_ids:
            return by_job
        placeholders = ",".join("?" for _ in job_ids)
        rows = conn.execute(
            f"""
            SELECT jt.job_id, t.id, t.name, t.category
            FROM job_tags jt
            INNER JOIN tags t ON t.id = jt.tag_id
            WHERE jt.job_id IN ({placeholders})
            ORDER BY jt.job_id, jt.position
            """,
            tuple(job_ids),
        ).fetchall()
        for row in rows:
            by_job[int(row["job_id"])].append(_row_to_tag(row))
        return by_job

    def _jobs_from_rows(self, conn: sqlite3.Connection, rows: List[sqlite3.Row]) -> List[JobPosting]:
        tags = self._tags_for_jobs(conn, [int(r["id"]) for r in rows])
        return [_row_to_job(r, tags[int(r["id"])]) for r in rows]

    # Jobs

    def list_active_jobs_with_tags(self) -> List[JobPosting]:
        with self._connect() as conn:
            # One read transaction so jobs and their tags come from the same snapshot.
            conn.execute("BEGIN")
            try:
                rows = conn.execute(
                    "SELECT * FROM jobs WHERE status = ? ORDER BY created_at DESC, id DESC",
                    (JobStatus.ACTIVE.value,),
                ).fetchall()
                return self._jobs_from_rows(conn, rows)
            finally:
                conn.rollback()

    def list_jobs_by_recruiter(self, recruiter_id: str) -> List[JobPosting]:
        """All of a recruiter's jobs regardless of status, newest first."""
        with self._connect() as conn:
            conn.execute("BEGIN")
            try:
                rows = conn.execute(
                    "SELECT * FROM jobs WHERE recruiter_id = ? ORDER BY created_at DESC, id DESC",
                    (recruiter_id,),
                ).fetchall()
                return self._jobs_from_rows(conn, rows)
            finally:
                conn.rollback()

    def get_job(self, job_id: int) -> Optional[JobPosting]:
        with self._connect() as conn:
            # Row and tags from one snapshot; a concurrent tag rewrite is seen whole or not at all.
            conn.execute("BEGIN")
            try:
                return self._get_job(conn, job_id)
            finally:
                conn.rollback()

    def _get_job(self, conn: sqlite3.Connection, job_id: int) -> Optional[JobPosting]:
        row = conn.execute("SELECT * FROM jobs WHERE id = ?", (job_id,)).fetchone()
        if row is None:
            return None
        return self._jobs_from_rows(conn, [row])[0]

    def create_job(
        self,
        recruiter_id: str,
        fields: Dict[str, Any],
        tag_ids: Sequence[int],
        *,
        created_at: Optional[datetime] = None,
    ) -> JobPosting:
        values = {c: _column_value(c, fields[c]) for c in JOB_COLUMNS if c in fields}
        values.setdefault("status", JobStatus.ACTIVE.value)
        columns = ["recruiter_id", *values.keys(), "created_at"]
        params = [recruiter_id, *values.values(), to_storage(created_at or utc_now())]
        with self._connect() as conn:
            with conn:
                cur = conn.execute(
                    f"INSERT INTO jobs({', '.join(columns)}) VALUES ({', '.join('?' for _ in columns)})",
                    params,
                )
                job_id = int(cur.lastrowid)
                self._write_job_tags(conn, job_id, tag_ids)
            job = self._get_job(conn, job_id)
        if job is None:
            raise PersistenceError(f"job insert did not produce a row: id={job_id}")
        logger.info("job created: job_id=%s recruiter_id=%s tags=%s", job.id, recruiter_id, job.tag_names)
        return job

    def update_job(
        self,
        job_id: int,
        fields: Dict[str, Any],
        tag_ids: Optional[Sequence[int]] = None,
    ) -> Optional[JobPosting]:
        """
        Update the given columns; when tag_ids is not None the job's tag
        associations are replaced in the same transaction.
        """
        values = {c: _column_value(c, fields[c]) for c in JOB_COLUMNS if c in fields}
        assignments = [f"{c} = ?" for c in values] + ["updated_at = ?"]
        params = [*values.values(), to_storage(utc_now()), job_id]
        with self._connect() as conn:
            with conn:
                cur = conn.execute(f"UPDATE jobs SET {', '.join(assignments)} WHERE id = ?", params)
                if cur.rowcount == 0:
                    return None
                if tag_ids is not None:
                    self._write_job_tags(conn, job_id, tag_ids)
            job = self._get_job(conn, job_id)
        if tag_ids is not None and job is not None:
            logger.info("job tags regenerated: job_id=%s tags=%s", job_id, job.tag_names)
        return job

    def delete_job(self, job_id: int) -> bool:
        with self._connect() as conn:
            with conn:
                cur = conn.execute("DELETE FROM jobs WHERE id = ?", (job_id,))
        return cur.rowcount > 0

    # Seeker preferences

    def get_seeker_preferences(self, user_id: str) -> Optional[SeekerPreferences]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM job_preferences WHERE user_id = ?", (user_id,)).fetchone()
        if row is None:
            return None
        return SeekerPreferences(
            user_id=row["user_id"],
            preferred_job_titles=_load_str_list(row["preferred_job_titles"]),
            preferred_industries=_load_str_list(row["preferred_industries"]),
            preferred_locations=_load_str_list(row["preferred_locations"]),
            salary_expectation_min=row["salary_expectation_min"],
            salary_expectation_max=row["salary_expectation_max"],
            is_skipped=bool(row["is_skipped"]),
        )

    def save_seeker_preferences(self, prefs: SeekerPreferences) -> SeekerPreferences:
        with self._connect() as conn:
            with conn:
                conn.execute(
                    """
                    INSERT INTO job_preferences(
                        user_id, preferred_job_titles, preferred_industries, preferred_locations,
                        salary_expectation_min, salary_expectation_max, is_skipped, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(user_id) DO UPDATE SET
                        preferred_job_titles = excluded.preferred_job_titles,
                        preferred_industries = excluded.preferred_industries,
                        preferred_locations = excluded.preferred_locations,
                        salary_expectation_min = excluded.salary_expectation_min,
                        salary_expectation_max = excluded.salary_expectation_max,
                        is_skipped = excluded.is_skipped,
                        updated_at = excluded.updated_at
                    """,
                    (
                        prefs.user_id,
                        json.dumps(prefs.preferred_job_titles, ensure_ascii=False),
                        json.dumps(prefs.preferred_industries, ensure_ascii=False),
                        json.dumps(prefs.preferred_locations, ensure_ascii=False),
                        prefs.salary_expectation_min,
                        prefs.salary_expectation_max,
                        1 if prefs.is_skipped else 0,
                        to_storage(utc_now()),
                    ),
                )
        logger.info("seeker preferences saved: user_id=%s is_skipped=%s", prefs.user_id, prefs.is_skipped)
        saved = self.get_seeker_preferences(prefs.user_id)
        if saved is None:
            raise PersistenceError(f"preference upsert did not produce a row: user_id={prefs.user_id}")
        return saved
