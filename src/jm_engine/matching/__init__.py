from .browse import BrowseFilters, browse_jobs
from .pagination import Pagination, page_count, paginate, validate_pagination
from .scorer import compute_match_score, preference_tags, recommend_jobs, tag_matches

__all__ = [
    "BrowseFilters",
    "Pagination",
    "browse_jobs",
    "compute_match_score",
    "page_count",
    "paginate",
    "preference_tags",
    "recommend_jobs",
    "tag_matches",
    "validate_pagination",
]
