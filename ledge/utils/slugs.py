"""URL slug helpers for published articles."""

import re

_DISALLOWED = re.compile(r"[^\w\s-]")
_WHITESPACE = re.compile(r"\s+")


def generate_slug(text: str, max_length: int = 120) -> str:
    """
    Build a URL slug: lowercase, punctuation dropped, whitespace runs
    collapsed to single hyphens.

    Example:
        >>> generate_slug("Clean Water Act of 2025!")
        'clean-water-act-of-2025'
    """
    slug = _DISALLOWED.sub("", text.lower()).strip()
    slug = _WHITESPACE.sub("-", slug)
    slug = re.sub(r"-{2,}", "-", slug).strip("-")
    return slug[:max_length].rstrip("-")
