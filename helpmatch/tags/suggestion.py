"""Tag suggestion from free text.

Suggestion is an optional enrichment upstream of matching: the requester types
a description and gets proposed tags from the closed vocabulary. Two
implementations exist behind the ``TagSuggester`` interface:

- ``RemoteTagSuggester`` asks an external AI-backed HTTP service
- ``HeuristicTagSuggester`` applies fixed keyword rules locally

``FallbackTagSuggester`` chains them. A failing or unusable remote answer
never fails the caller; the heuristic answers instead.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Pattern, Tuple

import requests

from helpmatch.logging import get_logger

from .exceptions import TagSuggestionError
from .normalizer import normalize_tag
from .vocabulary import ALLOWED_TAGS

logger = get_logger(__name__, component="tags")

DEFAULT_MAX_TAGS = 3

SOURCE_AI = "ai"
SOURCE_HEURISTIC = "heuristic"

KEYWORD_RULES: List[Tuple[Pattern[str], Tuple[str, ...]]] = [
    (re.compile(r"\b(cv|resume)\b", re.I), ("cv", "career")),
    (re.compile(r"\binterview\b|\bmock interview\b", re.I), ("interview", "career")),
    (re.compile(r"\b(frontend|react|ui|ux|figma)\b", re.I), ("frontend", "design")),
    (re.compile(r"\b(backend|api|server)\b", re.I), ("backend", "coding")),
    (re.compile(r"\b(database|sql|postgres|mongodb)\b", re.I), ("database", "backend")),
    (re.compile(r"\b(design|brand|visual)\b", re.I), ("design",)),
    (re.compile(r"\b(writing|copy|docs)\b", re.I), ("writing",)),
    (re.compile(r"\b(marketing|pitch|growth)\b", re.I), ("marketing",)),
    (re.compile(r"\b(finance|budget|pricing)\b", re.I), ("finance",)),
    (re.compile(r"\b(legal|terms|privacy)\b", re.I), ("legal",)),
    (re.compile(r"\b(health|wellbeing)\b", re.I), ("health",)),
    (re.compile(r"\b(admin|ops|operations)\b", re.I), ("admin",)),
    (re.compile(r"\b(code|bug|debug)\b", re.I), ("coding",)),
]

# Padding used when the rules find fewer than two tags
FALLBACK_TAGS: Tuple[str, ...] = ("career", "coding", "design")

MIN_HEURISTIC_TAGS = 2


@dataclass
class SuggestTagsResult:
    """Suggested tags and which implementation produced them."""

    tags: List[str] = field(default_factory=list)
    source: str = SOURCE_HEURISTIC


def filter_allowed_tags(candidates: Any, max_tags: int = DEFAULT_MAX_TAGS) -> List[str]:
    """Keep vocabulary tags from an untrusted value, unique, in order, at most ``max_tags``.

    Args:
        candidates: Anything; non-lists yield an empty result
        max_tags: Maximum number of tags to keep

    Returns:
        List of allowed tags
    """
    if not isinstance(candidates, list):
        return []

    kept: List[str] = []
    for item in candidates:
        if not isinstance(item, str):
            continue
        tag = normalize_tag(item)
        if tag in ALLOWED_TAGS and tag not in kept:
            kept.append(tag)
        if len(kept) >= max_tags:
            break
    return kept


class TagSuggester(ABC):
    """Capability interface: propose vocabulary tags for a description."""

    source: str = SOURCE_HEURISTIC

    @abstractmethod
    def suggest(self, text: str, max_tags: int = DEFAULT_MAX_TAGS) -> List[str]:
        """Return up to ``max_tags`` tags for ``text``.

        Raises:
            TagSuggestionError: If no usable tags could be produced
        """


class HeuristicTagSuggester(TagSuggester):
    """Keyword-rule suggester. Deterministic and never raises."""

    source = SOURCE_HEURISTIC

    def __init__(
        self,
        rules: Optional[Iterable[Tuple[Pattern[str], Tuple[str, ...]]]] = None,
        fallback_tags: Tuple[str, ...] = FALLBACK_TAGS,
    ):
        self.rules = list(rules) if rules is not None else KEYWORD_RULES
        self.fallback_tags = fallback_tags

    def suggest(self, text: str, max_tags: int = DEFAULT_MAX_TAGS) -> List[str]:
        selected: List[str] = []

        def add(tag: str) -> None:
            if tag not in selected:
                selected.append(tag)

        for pattern, tags in self.rules:
            if pattern.search(text):
                for tag in tags:
                    add(tag)

        # Pad to at least two tags, first from the fallback list, then the vocabulary
        for padding in (self.fallback_tags, ALLOWED_TAGS):
            for tag in padding:
                if len(selected) >= MIN_HEURISTIC_TAGS:
                    break
                add(tag)

        return selected[:max_tags]


class RemoteTagSuggester(TagSuggester):
    """Suggester backed by an external HTTP service.

    Sends ``{"text": ..., "maxTags": ...}`` as JSON and accepts any of these
    response shapes: ``{"tags": [...]}``, ``{"data": {"tags": [...]}}``,
    ``{"data": [...]}``, ``{"result": {"tags": [...]}}``. Tags outside the
    vocabulary are dropped.
    """

    source = SOURCE_AI

    def __init__(
        self,
        endpoint: str,
        timeout: int = 10,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the remote suggester.

        Args:
            endpoint: URL of the suggestion service
            timeout: Request timeout in seconds
            api_key: Optional bearer token
            session: Optional requests session (injected by tests)
        """
        self.endpoint = endpoint
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": "CampusHelpMatcher/0.1"})
        if api_key:
            self._session.headers.update({"Authorization": f"Bearer {api_key}"})

    def suggest(self, text: str, max_tags: int = DEFAULT_MAX_TAGS) -> List[str]:
        try:
            response = self._session.post(
                self.endpoint,
                json={"text": text, "maxTags": max_tags},
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            raise TagSuggestionError(
                f"Tag suggestion timed out after {self.timeout}s", url=self.endpoint
            ) from e
        except requests.exceptions.RequestException as e:
            raise TagSuggestionError(f"Tag suggestion request failed: {e}", url=self.endpoint) from e

        if response.status_code >= 400:
            raise TagSuggestionError(
                f"HTTP {response.status_code} from tag suggestion service",
                url=self.endpoint,
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise TagSuggestionError(
                f"Tag suggestion service returned invalid JSON: {e}", url=self.endpoint
            ) from e

        tags = filter_allowed_tags(self._extract_candidates(payload), max_tags)
        if not tags:
            raise TagSuggestionError("Tag suggestion service returned no usable tags", url=self.endpoint)

        logger.debug(
            "Remote tag suggestion succeeded",
            extra={"event": "tags.suggest.remote.succeeded", "tag_count": len(tags)},
        )
        return tags

    @staticmethod
    def _extract_candidates(payload: Any) -> Any:
        """Pull the tag list out of the accepted response shapes."""
        if not isinstance(payload, dict):
            return None

        if "tags" in payload:
            return payload["tags"]

        data = payload.get("data")
        if isinstance(data, dict) and "tags" in data:
            return data["tags"]
        if isinstance(data, list):
            return data

        result = payload.get("result")
        if isinstance(result, dict):
            return result.get("tags")

        return None


class FallbackTagSuggester:
    """Tries ``primary`` then ``fallback``; always returns a result.

    Example:
        >>> chain = FallbackTagSuggester(None, HeuristicTagSuggester())
        >>> chain.suggest_tags("Need help fixing a bug in my API").source
        'heuristic'
    """

    def __init__(self, primary: Optional[TagSuggester], fallback: Optional[TagSuggester] = None):
        self.primary = primary
        self.fallback = fallback or HeuristicTagSuggester()

    def suggest_tags(self, text: Optional[str], max_tags: int = DEFAULT_MAX_TAGS) -> SuggestTagsResult:
        cleaned = (text or "").strip()
        if not cleaned:
            return SuggestTagsResult(tags=[], source=SOURCE_HEURISTIC)

        if self.primary is not None:
            try:
                tags = self.primary.suggest(cleaned, max_tags)
                return SuggestTagsResult(tags=tags, source=self.primary.source)
            except TagSuggestionError as e:
                logger.warning(
                    f"Tag suggestion fell back to heuristic: {e}",
                    extra={
                        "event": "tags.suggest.fallback",
                        "status_code": e.status_code,
                    },
                )

        return SuggestTagsResult(tags=self.fallback.suggest(cleaned, max_tags), source=self.fallback.source)


def build_tag_suggester(tag_config, env_config=None) -> FallbackTagSuggester:
    """Build the suggestion chain from configuration.

    Args:
        tag_config: TagSuggestionConfig
        env_config: Optional EnvironmentConfig (supplies the API key)

    Returns:
        FallbackTagSuggester with a remote primary when enabled and configured
    """
    primary = None
    if tag_config.enabled and tag_config.endpoint:
        primary = RemoteTagSuggester(
            endpoint=tag_config.endpoint,
            timeout=tag_config.timeout_seconds,
            api_key=getattr(env_config, "tag_suggest_api_key", None),
        )
    return FallbackTagSuggester(primary, HeuristicTagSuggester())
