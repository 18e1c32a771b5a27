"""
SignalCraft
Copyright (c) 2026 Chris Menendez.
All Rights Reserved.
See LICENSE for permitted use.
"""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, List, Optional

from jm_engine.config import Settings, load_settings
from jm_engine.errors import JobMatchError
from jm_engine.matching.browse import BrowseFilters
from jm_engine.repository import SqliteJobRepository
from jm_engine.service import JobMatchService, build_service
from jm_engine.tags.rules import extract_tag_names

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool = False) -> None:
    if logging.getLogger().hasHandlers():
        return
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _split_csv(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _emit(payload: Any) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True))


def _settings(args: argparse.Namespace) -> Settings:
    settings = load_settings()
    if args.db:
        settings = replace(settings, db_path=Path(args.db))
    return settings


def _limit(args: argparse.Namespace) -> int:
    return args.limit if args.limit is not None else _settings(args).default_page_limit


def _service(args: argparse.Namespace) -> JobMatchService:
    return build_service(_settings(args))


def _init_db(args: argparse.Namespace) -> int:
    settings = _settings(args)
    repository = SqliteJobRepository(settings.db_path, timeout_seconds=settings.sqlite_timeout_seconds)
    repository.ensure_schema()
    logger.info("database ready: %s", repository.db_path)
    return 0


def _extract_tags(args: argparse.Namespace) -> int:
    if args.offline:
        _emit({"tags": extract_tag_names(args.text)})
        return 0
    service = _service(args)
    tags = service.extractor.extract_tags(args.text)
    _emit({"tags": [t.to_dict() for t in tags]})
    return 0


def _recommend(args: argparse.Namespace) -> int:
    service = _service(args)
    page = service.recommend_jobs(args.seeker_id, args.page, _limit(args))
    _emit(page.to_dict())
    return 0


def _browse(args: argparse.Namespace) -> int:
    service = _service(args)
    filters = BrowseFilters(
        location=args.location,
        salary_min=args.salary_min,
        salary_max=args.salary_max,
        employment_type=args.employment_type,
        tags=_split_csv(args.tags),
    )
    page = service.browse_jobs(filters, args.page, _limit(args))
    _emit(page.to_dict())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jobmatch",
        description="Job tagging and preference matching CLI.",
    )
    parser.add_argument("--db", help="SQLite database path (default: JOBMATCH_DB_PATH or state/jobmatch.sqlite).")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_cmd = subparsers.add_parser("init-db", help="Create the database schema")
    init_cmd.set_defaults(func=_init_db)

    extract_cmd = subparsers.add_parser("extract-tags", help="Extract tags from a job description")
    extract_cmd.add_argument("text", help="Job description text.")
    extract_cmd.add_argument(
        "--offline",
        action="store_true",
        help="Print tag names only; do not touch the tag catalog.",
    )
    extract_cmd.set_defaults(func=_extract_tags)

    rec_cmd = subparsers.add_parser("recommend", help="Recommended jobs for a seeker")
    rec_cmd.add_argument("--seeker-id", required=True)
    rec_cmd.add_argument("--page", type=int, default=1)
    rec_cmd.add_argument("--limit", type=int)
    rec_cmd.set_defaults(func=_recommend)

    browse_cmd = subparsers.add_parser("browse", help="Browse active jobs")
    browse_cmd.add_argument("--location")
    browse_cmd.add_argument("--salary-min", type=int)
    browse_cmd.add_argument("--salary-max", type=int)
    browse_cmd.add_argument("--employment-type")
    browse_cmd.add_argument("--tags", help="Comma-separated tag names.")
    browse_cmd.add_argument("--page", type=int, default=1)
    browse_cmd.add_argument("--limit", type=int)
    browse_cmd.set_defaults(func=_browse)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.verbose)
    try:
        return args.func(args)
    except JobMatchError as exc:
        logger.error("%s", exc)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
