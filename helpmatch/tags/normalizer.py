"""Tag canonicalization and synonym expansion."""

from typing import Iterable, List, Set

from .vocabulary import TAG_SYNONYMS


def normalize_tag(tag: str) -> str:
    """Trim and lower-case a single tag."""
    return tag.strip().lower()


def normalize_tag_list(tags: Iterable[str]) -> List[str]:
    """Normalize tags preserving first-seen order, dropping blanks and duplicates."""
    seen: Set[str] = set()
    ordered: List[str] = []
    for raw in tags:
        tag = normalize_tag(raw)
        if tag and tag not in seen:
            seen.add(tag)
            ordered.append(tag)
    return ordered


def normalize_tags(tags: Iterable[str]) -> Set[str]:
    """Normalize tags into a set."""
    return set(normalize_tag_list(tags))


def expand_tags(tags: Iterable[str]) -> Set[str]:
    """Normalize tags and union in their synonym expansions.

    Expansion is one level deep: synonyms are looked up only for the tags
    present before expansion started. Unknown tags pass through unexpanded.

    Args:
        tags: Raw tag strings

    Returns:
        Set of normalized tags plus their direct synonyms

    Example:
        >>> sorted(expand_tags([" Coding "]))
        ['backend', 'coding', 'frontend']
    """
    expanded = normalize_tags(tags)
    snapshot = list(expanded)

    for tag in snapshot:
        for synonym in TAG_SYNONYMS.get(tag, ()):
            expanded.add(normalize_tag(synonym))

    return expanded


def expand_tag_list(tags: Iterable[str]) -> List[str]:
    """Ordered form of ``expand_tags``.

    The normalized tags come first in their original order, followed by each
    tag's synonyms in table order. Duplicates keep their first position.

    Example:
        >>> expand_tag_list(["interview", "coding"])
        ['interview', 'coding', 'cv', 'writing', 'backend', 'frontend']
    """
    ordered = normalize_tag_list(tags)
    seen = set(ordered)

    for tag in list(ordered):
        for synonym in TAG_SYNONYMS.get(tag, ()):
            synonym = normalize_tag(synonym)
            if synonym not in seen:
                seen.add(synonym)
                ordered.append(synonym)

    return ordered
