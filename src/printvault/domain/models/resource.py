from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from printvault.core.errors import ValidationError
from printvault.core.formats import FILE_FORMATS, FORMAT_FIELDS, derive_formats
from printvault.domain.models.category import CATEGORIES, is_category

TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 1000


@dataclass(slots=True)
class Resource:
    id: str
    title: str
    slug: str
    category: str
    description: str
    preview_url: str = ""
    tags: list[str] = field(default_factory=list)
    drive_pdf_id: str | None = None
    drive_cdr_id: str | None = None
    drive_ai_id: str | None = None
    drive_svg_id: str | None = None
    drive_eps_id: str | None = None
    formats: list[str] = field(default_factory=list)
    featured: bool = False
    download_count: int = 0
    created_at: str = ""
    updated_at: str = ""

    def file_refs(self) -> dict[str, str | None]:
        return {fmt: getattr(self, FORMAT_FIELDS[fmt]) for fmt in FILE_FORMATS}

    def file_ref(self, fmt: str) -> str | None:
        field_name = FORMAT_FIELDS.get(fmt)
        if field_name is None:
            return None
        value = getattr(self, field_name)
        return value or None

    def apply_file_refs(self, refs: dict[str, str | None]) -> None:
        """Set the per-format references and recompute ``formats`` from them."""
        for fmt in FILE_FORMATS:
            value = str(refs.get(fmt) or "").strip()
            setattr(self, FORMAT_FIELDS[fmt], value or None)
        self.formats = derive_formats(self.file_refs())

    def validate(self) -> None:
        if not self.title or not self.title.strip():
            raise ValidationError("Title is required")
        if len(self.title) > TITLE_MAX_LENGTH:
            raise ValidationError(f"Title must be at most {TITLE_MAX_LENGTH} characters")
        if not self.description or not self.description.strip():
            raise ValidationError("Description is required")
        if len(self.description) > DESCRIPTION_MAX_LENGTH:
            raise ValidationError(
                f"Description must be at most {DESCRIPTION_MAX_LENGTH} characters"
            )
        if not is_category(self.category):
            raise ValidationError(
                f"Category must be one of: {', '.join(CATEGORIES)}"
            )
        if not self.slug:
            raise ValidationError("Slug is required")
        if self.formats != derive_formats(self.file_refs()):
            raise ValidationError("Formats do not match the stored file references")

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "category": self.category,
            "tags": list(self.tags),
            "description": self.description,
            "previewUrl": self.preview_url,
            "drivePdfId": self.drive_pdf_id,
            "driveCdrId": self.drive_cdr_id,
            "driveAiId": self.drive_ai_id,
            "driveSvgId": self.drive_svg_id,
            "driveEpsId": self.drive_eps_id,
            "formats": list(self.formats),
            "featured": self.featured,
            "downloadCount": self.download_count,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


def normalize_tags(tags: object) -> list[str]:
    """Lowercase and trim tags, dropping empties and repeats but keeping order."""
    if tags is None:
        return []
    if isinstance(tags, str):
        raw = tags.split(",")
    elif isinstance(tags, (list, tuple)):
        raw = list(tags)
    else:
        raise ValidationError("Tags must be a list of strings")
    out: list[str] = []
    for item in raw:
        value = str(item or "").strip().lower()
        if value and value not in out:
            out.append(value)
    return out


@dataclass(slots=True)
class CategoryCount:
    name: str
    count: int
    label: str


@dataclass(slots=True)
class TagCount:
    name: str
    count: int


@dataclass(slots=True)
class ResourcePage:
    items: list[Resource]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        if self.limit <= 0:
            return 0
        return (self.total + self.limit - 1) // self.limit

    @property
    def has_next_page(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev_page(self) -> bool:
        return self.page > 1

    def meta(self) -> dict[str, Any]:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "totalPages": self.total_pages,
            "hasNextPage": self.has_next_page,
            "hasPrevPage": self.has_prev_page,
        }
