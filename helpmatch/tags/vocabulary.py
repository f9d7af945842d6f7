"""The closed tag vocabulary and the fixed synonym table."""

from typing import Dict, Tuple

ALLOWED_TAGS: Tuple[str, ...] = (
    "career",
    "cv",
    "interview",
    "coding",
    "frontend",
    "backend",
    "database",
    "design",
    "writing",
    "marketing",
    "finance",
    "legal",
    "health",
    "admin",
    "other",
)

# One-level expansions used to broaden similarity; never applied transitively
TAG_SYNONYMS: Dict[str, Tuple[str, ...]] = {
    "interview": ("cv", "writing"),
    "coding": ("backend", "frontend"),
}


def is_allowed_tag(tag: str) -> bool:
    """Return True if ``tag`` is in the vocabulary (exact, already normalized)."""
    return tag in ALLOWED_TAGS
