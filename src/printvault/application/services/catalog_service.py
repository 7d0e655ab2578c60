from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from printvault.application.services.download_counter import DownloadCountRecorder
from printvault.application.services.query_resolver import (
    DEFAULT_PAGE_LIMIT,
    MAX_PAGE_LIMIT,
    coerce_int,
    resolve_resource_query,
)
from printvault.core.errors import NotFoundError, ValidationError
from printvault.core.formats import FILE_FORMATS, is_known_format, mime_type_for
from printvault.domain.models.category import CATEGORIES, category_label
from printvault.domain.models.resource import CategoryCount, Resource, ResourcePage, TagCount
from printvault.infrastructure.db.repos.resource_repo import ResourceRepo
from printvault.infrastructure.drive.urls import download_url

TOP_TAGS_LIMIT = 50
RELATED_DEFAULT_LIMIT = 4
RELATED_MAX_LIMIT = 10
FEATURED_DEFAULT_LIMIT = 8
FEATURED_MAX_LIMIT = 20


@dataclass(slots=True)
class DownloadTarget:
    resource: Resource
    format: str
    file_id: str
    url: str
    mime_type: str


class CatalogService:
    def __init__(
        self,
        resource_repo: ResourceRepo,
        download_recorder: DownloadCountRecorder | None = None,
        *,
        default_page_limit: int = DEFAULT_PAGE_LIMIT,
        max_page_limit: int = MAX_PAGE_LIMIT,
    ) -> None:
        self.resource_repo = resource_repo
        self.download_recorder = download_recorder
        self.default_page_limit = default_page_limit
        self.max_page_limit = max_page_limit

    def list_resources(self, params: Mapping[str, Any]) -> ResourcePage:
        query = resolve_resource_query(
            params,
            default_limit=self.default_page_limit,
            max_limit=self.max_page_limit,
        )
        partition = query.filter.category if query.filter.category in CATEGORIES else None
        items, total = self.resource_repo.find_many(
            query.filter,
            sort=query.sort,
            skip=query.skip,
            limit=query.limit,
            partition=partition,
        )
        return ResourcePage(items=items, total=total, page=query.page, limit=query.limit)

    def get_by_slug(self, slug: str) -> Resource:
        slug = str(slug or "").strip()
        if not slug:
            raise ValidationError("Slug is required")

        resource = self.resource_repo.get_by_slug(slug)
        if resource is not None:
            return resource
        # Rows that only exist in a partition are still served.
        for category in CATEGORIES:
            resource = self.resource_repo.get_by_slug_in_partition(category, slug)
            if resource is not None:
                return resource
        raise NotFoundError("Resource not found")

    def related(self, slug: str, limit: Any = None) -> list[Resource]:
        resource = self.get_by_slug(slug)
        size = min(coerce_int(limit, RELATED_DEFAULT_LIMIT) or RELATED_DEFAULT_LIMIT, RELATED_MAX_LIMIT)
        return self.resource_repo.find_related(resource, limit=max(1, size))

    def categories(self) -> list[CategoryCount]:
        return [
            CategoryCount(name=name, count=count, label=category_label(name))
            for name, count in self.resource_repo.count_by_category()
        ]

    def tags(self) -> list[TagCount]:
        return [
            TagCount(name=name, count=count)
            for name, count in self.resource_repo.top_tags(limit=TOP_TAGS_LIMIT)
        ]

    def featured(self, limit: Any = None) -> list[Resource]:
        size = min(coerce_int(limit, FEATURED_DEFAULT_LIMIT) or FEATURED_DEFAULT_LIMIT, FEATURED_MAX_LIMIT)
        return self.resource_repo.list_featured(limit=max(1, size))

    def resolve_download(self, slug: str, fmt: Any) -> DownloadTarget:
        """Validate a download request and schedule the counter increment.

        The increment is handed to the background recorder; the caller
        gets the redirect target without waiting for it.
        """
        if not is_known_format(fmt):
            raise ValidationError(
                f"Valid format is required ({', '.join(FILE_FORMATS)})"
            )
        resource = self.get_by_slug(slug)
        file_id = resource.file_ref(fmt)
        if not file_id:
            raise NotFoundError(f'Format "{fmt}" not available for this resource')

        if self.download_recorder is not None:
            self.download_recorder.record(resource.id)

        return DownloadTarget(
            resource=resource,
            format=fmt,
            file_id=file_id,
            url=download_url(file_id),
            mime_type=mime_type_for(fmt),
        )
