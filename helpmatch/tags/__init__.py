"""Tag vocabulary, normalization, expansion and suggestion."""

from .exceptions import TagSuggestionError
from .normalizer import expand_tag_list, expand_tags, normalize_tag, normalize_tag_list, normalize_tags
from .suggestion import (
    FallbackTagSuggester,
    HeuristicTagSuggester,
    RemoteTagSuggester,
    SuggestTagsResult,
    TagSuggester,
    build_tag_suggester,
    filter_allowed_tags,
)
from .vocabulary import ALLOWED_TAGS, TAG_SYNONYMS, is_allowed_tag

__all__ = [
    "ALLOWED_TAGS",
    "TAG_SYNONYMS",
    "is_allowed_tag",
    "normalize_tag",
    "normalize_tag_list",
    "normalize_tags",
    "expand_tags",
    "expand_tag_list",
    "TagSuggester",
    "HeuristicTagSuggester",
    "RemoteTagSuggester",
    "FallbackTagSuggester",
    "SuggestTagsResult",
    "build_tag_suggester",
    "filter_allowed_tags",
    "TagSuggestionError",
]
