from __future__ import annotations

import re
from typing import Callable

_WHITESPACE_RE = re.compile(r"\s+")
_UNDERSCORE_RE = re.compile(r"_+")
_DISALLOWED_RE = re.compile(r"[^a-z0-9\-]+")
_REPEATED_HYPHEN_RE = re.compile(r"-{2,}")

FALLBACK_SLUG = "resource"
MAX_SLUG_ATTEMPTS = 10_000

# Fixed path segments under /api/resources/ that a detail slug would be shadowed by.
RESERVED_SLUGS = frozenset({"categories", "tags", "featured"})


def slugify(text: str) -> str:
    """Turn a display title into a lowercase, hyphen-separated token.

    Whitespace runs and underscores become single hyphens, every other
    character outside ``[a-z0-9-]`` is dropped, and hyphen runs are
    collapsed and trimmed. Empty input yields an empty string.
    """
    value = str(text or "").lower().strip()
    value = _WHITESPACE_RE.sub("-", value)
    value = _UNDERSCORE_RE.sub("-", value)
    value = _DISALLOWED_RE.sub("", value)
    value = _REPEATED_HYPHEN_RE.sub("-", value)
    return value.strip("-")


def slug_candidate(base: str, attempt: int) -> str:
    if attempt <= 0:
        return base
    return f"{base}-{attempt}"


def resolve_unique_slug(
    title: str,
    slug_taken: Callable[[str], bool],
    *,
    start_attempt: int = 0,
) -> str:
    """Probe ``base``, ``base-1``, ``base-2``... until ``slug_taken`` says no.

    Reserved route words are always treated as taken. ``slug_taken`` is
    expected to already exclude the entity being updated, so an unchanged
    slug is reported free for its owner.
    """
    base = slugify(title) or FALLBACK_SLUG
    for attempt in range(start_attempt, start_attempt + MAX_SLUG_ATTEMPTS):
        candidate = slug_candidate(base, attempt)
        if candidate not in RESERVED_SLUGS and not slug_taken(candidate):
            return candidate
    raise RuntimeError(f"Unable to allocate a unique slug for title: {title!r}")
