from .cache import InMemoryTagCache, NullTagCache, TagCache, tag_cache_key
from .extractor import TagCatalog, TagExtractor
from .rules import MAX_TAGS, ROLE_KEYWORDS, SKILL_KEYWORDS, category_for, extract_tag_names

__all__ = [
    "InMemoryTagCache",
    "MAX_TAGS",
    "NullTagCache",
    "ROLE_KEYWORDS",
    "SKILL_KEYWORDS",
    "TagCache",
    "TagCatalog",
    "TagExtractor",
    "category_for",
    "extract_tag_names",
    "tag_cache_key",
]
