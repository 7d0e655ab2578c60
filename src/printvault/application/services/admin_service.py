from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from printvault.application.services.query_resolver import resolve_admin_query
from printvault.core.errors import NotFoundError, SlugConflictError, ValidationError
from printvault.core.formats import FILE_FORMATS, FORMAT_FIELDS, merge_file_refs
from printvault.core.ids import new_resource_id
from printvault.core.slugs import resolve_unique_slug
from printvault.domain.models.category import CATEGORIES, is_category
from printvault.domain.models.resource import Resource, ResourcePage, normalize_tags
from printvault.infrastructure.db.repos.resource_repo import ResourceRepo
from printvault.infrastructure.drive.urls import normalize_file_ref

logger = logging.getLogger(__name__)

MAX_SLUG_CONFLICT_RETRIES = 5
RECENT_RESOURCES_LIMIT = 5


@dataclass(slots=True)
class DashboardStats:
    total_resources: int
    featured_count: int
    category_stats: list[tuple[str, int]]
    total_downloads: int
    recent_resources: list[Resource] = field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return {
            "totalResources": self.total_resources,
            "featuredCount": self.featured_count,
            "categoryStats": [
                {"category": category, "count": count} for category, count in self.category_stats
            ],
            "totalDownloads": self.total_downloads,
            "recentResources": [
                {
                    "id": r.id,
                    "title": r.title,
                    "slug": r.slug,
                    "category": r.category,
                    "createdAt": r.created_at,
                }
                for r in self.recent_resources
            ],
        }


class AdminResourceService:
    def __init__(self, resource_repo: ResourceRepo, *, max_page_limit: int = 100) -> None:
        self.resource_repo = resource_repo
        self.max_page_limit = max_page_limit

    def list_resources(self, params: Mapping[str, Any]) -> ResourcePage:
        query = resolve_admin_query(params, max_limit=self.max_page_limit)
        items, total = self.resource_repo.find_many(
            query.filter,
            sort=query.sort,
            skip=query.skip,
            limit=query.limit,
        )
        return ResourcePage(items=items, total=total, page=query.page, limit=query.limit)

    def get(self, resource_id: str) -> Resource:
        resource = self.resource_repo.get_by_id(resource_id)
        if resource is None:
            raise NotFoundError("Resource not found")
        return resource

    def create(self, data: Mapping[str, Any]) -> Resource:
        title = _opt_str(data.get("title"))
        category = _opt_str(data.get("category"))
        description = _opt_str(data.get("description"))
        if not title or not category or not description:
            raise ValidationError("Title, category, and description are required")
        if not is_category(category):
            raise ValidationError(f"Category must be one of: {', '.join(CATEGORIES)}")

        resource = Resource(
            id=new_resource_id(),
            title=title,
            slug="",
            category=category,
            description=description,
            preview_url=_opt_str(data.get("preview_url")) or "",
            tags=normalize_tags(data.get("tags")),
            featured=bool(data.get("featured") or False),
            download_count=0,
        )
        resource.apply_file_refs(_file_refs_from(data))

        attempt = 0
        for _ in range(MAX_SLUG_CONFLICT_RETRIES):
            resource.slug = resolve_unique_slug(
                title, self.resource_repo.slug_exists, start_attempt=attempt
            )
            try:
                created = self.resource_repo.insert(resource)
            except SlugConflictError:
                # Another writer took the slug between probe and insert.
                logger.info("Slug %s taken concurrently; retrying", resource.slug)
                attempt += 1
                continue
            logger.info("Created resource %s (%s)", created.slug, created.id)
            return created
        raise ValidationError(f"Unable to allocate a unique slug for title: {title}")

    def update(self, resource_id: str, data: Mapping[str, Any]) -> Resource:
        """Apply a partial update.

        Only keys present in ``data`` change. ``formats`` is always
        recomputed, with omitted file references keeping their stored
        values. The slug is re-derived only when the title changes.
        """
        existing = self.get(resource_id)
        fields: dict[str, Any] = {}

        if "title" in data:
            title = _opt_str(data.get("title"))
            if not title:
                raise ValidationError("Title cannot be empty")
            fields["title"] = title
        if "description" in data:
            description = _opt_str(data.get("description"))
            if not description:
                raise ValidationError("Description cannot be empty")
            fields["description"] = description
        if "category" in data:
            category = _opt_str(data.get("category"))
            if not is_category(category):
                raise ValidationError(f"Category must be one of: {', '.join(CATEGORIES)}")
            fields["category"] = category
        if "tags" in data:
            fields["tags"] = normalize_tags(data.get("tags"))
        if "preview_url" in data:
            fields["preview_url"] = _opt_str(data.get("preview_url")) or ""
        if "featured" in data:
            fields["featured"] = bool(data.get("featured"))

        refs = merge_file_refs(existing.file_refs(), _file_refs_from(data))
        for fmt in FILE_FORMATS:
            fields[FORMAT_FIELDS[fmt]] = refs[fmt]

        title_changed = "title" in fields and fields["title"] != existing.title
        attempt = 0
        for _ in range(MAX_SLUG_CONFLICT_RETRIES):
            if title_changed:
                fields["slug"] = resolve_unique_slug(
                    fields["title"],
                    lambda slug: self.resource_repo.slug_exists(slug, exclude_id=resource_id),
                    start_attempt=attempt,
                )
            try:
                return self.resource_repo.update_by_id(resource_id, fields)
            except SlugConflictError:
                if not title_changed:
                    raise
                attempt += 1
        raise ValidationError(f"Unable to allocate a unique slug for title: {fields.get('title')}")

    def delete(self, resource_id: str) -> None:
        if self.resource_repo.delete_by_id(resource_id) == 0:
            raise NotFoundError("Resource not found")
        logger.info("Deleted resource %s", resource_id)

    def bulk_delete(self, ids: Any) -> int:
        if not isinstance(ids, list) or not ids:
            raise ValidationError("Resource IDs array is required")
        deleted = self.resource_repo.delete_many([str(i) for i in ids])
        logger.info("Bulk deleted %d resources", deleted)
        return deleted

    def toggle_featured(self, resource_id: str) -> Resource:
        resource = self.get(resource_id)
        return self.resource_repo.set_featured(resource_id, not resource.featured)

    def stats(self) -> DashboardStats:
        return DashboardStats(
            total_resources=self.resource_repo.count(),
            featured_count=self.resource_repo.count(featured=True),
            category_stats=self.resource_repo.count_by_category(),
            total_downloads=self.resource_repo.total_downloads(),
            recent_resources=self.resource_repo.list_recent(limit=RECENT_RESOURCES_LIMIT),
        )


def _file_refs_from(data: Mapping[str, Any]) -> dict[str, str | None]:
    """Collect the file-reference keys actually present in ``data``."""
    refs: dict[str, str | None] = {}
    for fmt in FILE_FORMATS:
        key = FORMAT_FIELDS[fmt]
        if key in data:
            refs[fmt] = normalize_file_ref(data.get(key))
    return refs


def _opt_str(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None
