from __future__ import annotations

from dataclasses import dataclass

SORT_NEWEST = "newest"
SORT_OLDEST = "oldest"
SORT_POPULAR = "popular"
SORT_TITLE = "title"

SORT_ORDERS: dict[str, str] = {
    SORT_NEWEST: "created_at DESC, id DESC",
    SORT_OLDEST: "created_at ASC, id ASC",
    SORT_POPULAR: "download_count DESC, created_at DESC",
    SORT_TITLE: "title COLLATE NOCASE ASC, created_at DESC",
}


@dataclass(slots=True, frozen=True)
class ResourceFilter:
    """Store-level filter; every field is optional and ANDed together.

    ``text`` is a full-text query (word match over title, description and
    tags). ``search`` is a case-insensitive substring match over the same
    fields, used by the admin listing.
    """

    category: str | None = None
    tag: str | None = None
    featured: bool | None = None
    text: str | None = None
    search: str | None = None


@dataclass(slots=True, frozen=True)
class ResourceQuery:
    page: int
    limit: int
    filter: ResourceFilter
    sort: str = SORT_NEWEST

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit
