from __future__ import annotations

import json
import re
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from printvault.core.errors import NotFoundError, SlugConflictError, StoreError
from printvault.core.formats import FILE_FORMATS, FORMAT_FIELDS
from printvault.core.time import now_utc_iso
from printvault.domain.models.category import CATEGORIES, partition_table
from printvault.domain.models.query import SORT_NEWEST, SORT_ORDERS, ResourceFilter
from printvault.domain.models.resource import Resource
from printvault.infrastructure.db.sqlite import RESOURCE_COLUMNS, get_connection

UNIFIED_TABLE = "resources"

_FTS_TOKEN_RE = re.compile(r"\w+", re.UNICODE)

_UPDATABLE_FIELDS = {
    "title",
    "slug",
    "category",
    "tags",
    "description",
    "preview_url",
    "featured",
    *FORMAT_FIELDS.values(),
}


class ResourceRepo:
    """Persists resources in the unified table and mirrors each row into its
    category partition within the same transaction."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path

    # -- writes -------------------------------------------------------------

    def insert(self, resource: Resource) -> Resource:
        now = now_utc_iso()
        if not resource.created_at:
            resource.created_at = now
        resource.updated_at = resource.updated_at or now
        resource.validate()

        with self._connect() as conn:
            conn.execute(
                f"INSERT INTO {UNIFIED_TABLE} ({', '.join(RESOURCE_COLUMNS)}) "
                f"VALUES ({', '.join('?' for _ in RESOURCE_COLUMNS)})",
                self._to_row(resource),
            )
            self._sync_partition(conn, resource)
            self._sync_fts(conn, resource)
            conn.commit()
        return resource

    def save(self, resource: Resource) -> Resource:
        """Rewrite every column of an existing resource."""
        resource.updated_at = now_utc_iso()
        resource.validate()

        assignments = ", ".join(f"{col} = ?" for col in RESOURCE_COLUMNS if col != "id")
        values = [v for col, v in zip(RESOURCE_COLUMNS, self._to_row(resource)) if col != "id"]
        with self._connect() as conn:
            cur = conn.execute(
                f"UPDATE {UNIFIED_TABLE} SET {assignments} WHERE id = ?",
                (*values, resource.id),
            )
            if cur.rowcount == 0:
                conn.rollback()
                raise NotFoundError(f"Resource not found: {resource.id}")
            self._sync_partition(conn, resource)
            self._sync_fts(conn, resource)
            conn.commit()
        return resource

    def update_by_id(self, resource_id: str, fields: dict[str, Any]) -> Resource:
        """Merge ``fields`` into the stored resource and persist it.

        Touching any file-reference field recomputes ``formats``; the
        remaining references keep their stored values.
        """
        resource = self.get_by_id(resource_id)
        if resource is None:
            raise NotFoundError(f"Resource not found: {resource_id}")

        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unsupported resource fields: {', '.join(sorted(unknown))}")

        refs = resource.file_refs()
        for name, value in fields.items():
            if name in FORMAT_FIELDS.values():
                fmt = next(f for f, col in FORMAT_FIELDS.items() if col == name)
                refs[fmt] = value
            else:
                setattr(resource, name, value)
        resource.apply_file_refs(refs)
        return self.save(resource)

    def set_featured(self, resource_id: str, featured: bool) -> Resource:
        return self.update_by_id(resource_id, {"featured": bool(featured)})

    def increment_download_count(self, resource_id: str, amount: int = 1) -> None:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT category FROM {UNIFIED_TABLE} WHERE id = ?",
                (resource_id,),
            ).fetchone()
            if row is None:
                raise NotFoundError(f"Resource not found: {resource_id}")
            for table in (UNIFIED_TABLE, partition_table(row["category"])):
                conn.execute(
                    f"UPDATE {table} SET download_count = download_count + ? WHERE id = ?",
                    (amount, resource_id),
                )
            conn.commit()

    def delete_by_id(self, resource_id: str) -> int:
        return self.delete_many([resource_id])

    def delete_many(self, resource_ids: list[str]) -> int:
        ids = [str(rid) for rid in resource_ids if str(rid or "").strip()]
        if not ids:
            return 0
        placeholders = ", ".join("?" for _ in ids)
        with self._connect() as conn:
            cur = conn.execute(f"DELETE FROM {UNIFIED_TABLE} WHERE id IN ({placeholders})", ids)
            deleted = cur.rowcount
            for category in CATEGORIES:
                conn.execute(
                    f"DELETE FROM {partition_table(category)} WHERE id IN ({placeholders})", ids
                )
            conn.execute(f"DELETE FROM resources_fts WHERE resource_id IN ({placeholders})", ids)
            conn.commit()
        return int(deleted)

    def clear(self) -> int:
        with self._connect() as conn:
            deleted = conn.execute(f"DELETE FROM {UNIFIED_TABLE}").rowcount
            for category in CATEGORIES:
                conn.execute(f"DELETE FROM {partition_table(category)}")
            conn.execute("DELETE FROM resources_fts")
            conn.commit()
        return int(deleted)

    # -- reads --------------------------------------------------------------

    def get_by_id(self, resource_id: str) -> Resource | None:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT * FROM {UNIFIED_TABLE} WHERE id = ?",
                (resource_id,),
            ).fetchone()
        return self._to_model(row) if row else None

    def get_by_slug(self, slug: str) -> Resource | None:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT * FROM {UNIFIED_TABLE} WHERE slug = ?",
                (slug,),
            ).fetchone()
        return self._to_model(row) if row else None

    def get_by_slug_in_partition(self, category: str, slug: str) -> Resource | None:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT * FROM {partition_table(category)} WHERE slug = ? LIMIT 1",
                (slug,),
            ).fetchone()
        return self._to_model(row) if row else None

    def slug_exists(self, slug: str, exclude_id: str | None = None) -> bool:
        sql = f"SELECT 1 FROM {UNIFIED_TABLE} WHERE slug = ?"
        params: list[Any] = [slug]
        if exclude_id:
            sql += " AND id != ?"
            params.append(exclude_id)
        with self._connect() as conn:
            row = conn.execute(sql, params).fetchone()
        return row is not None

    def find_many(
        self,
        resource_filter: ResourceFilter,
        *,
        sort: str = SORT_NEWEST,
        skip: int = 0,
        limit: int = 12,
        partition: str | None = None,
    ) -> tuple[list[Resource], int]:
        """Return one page of matching resources plus the total match count.

        When ``partition`` names a category the query runs against that
        category's partition table instead of the unified table.
        """
        table = partition_table(partition) if partition else UNIFIED_TABLE
        where, params = self._build_where(resource_filter)
        order_by = SORT_ORDERS.get(sort, SORT_ORDERS[SORT_NEWEST])

        with self._connect() as conn:
            total = conn.execute(
                f"SELECT COUNT(*) FROM {table} AS r {where}",
                params,
            ).fetchone()[0]
            rows = conn.execute(
                f"SELECT r.* FROM {table} AS r {where} ORDER BY {order_by} LIMIT ? OFFSET ?",
                (*params, limit, skip),
            ).fetchall()
        return [self._to_model(row) for row in rows], int(total)

    def find_related(self, resource: Resource, limit: int = 4) -> list[Resource]:
        tag_clause = ""
        params: list[Any] = [resource.id, resource.category]
        if resource.tags:
            tag_placeholders = ", ".join("?" for _ in resource.tags)
            tag_clause = (
                " OR EXISTS (SELECT 1 FROM json_each(r.tags_json) AS t "
                f"WHERE t.value IN ({tag_placeholders}))"
            )
            params.extend(resource.tags)
        with self._connect() as conn:
            rows = conn.execute(
                f"""
                SELECT r.* FROM {UNIFIED_TABLE} AS r
                WHERE r.id != ? AND (r.category = ?{tag_clause})
                ORDER BY {SORT_ORDERS['popular']}
                LIMIT ?
                """,
                (*params, limit),
            ).fetchall()
        return [self._to_model(row) for row in rows]

    def list_featured(self, limit: int = 8) -> list[Resource]:
        items, _ = self.find_many(
            ResourceFilter(featured=True), sort="popular", skip=0, limit=limit
        )
        return items

    def list_recent(self, limit: int = 5) -> list[Resource]:
        items, _ = self.find_many(ResourceFilter(), sort=SORT_NEWEST, skip=0, limit=limit)
        return items

    def count(self, *, featured: bool | None = None) -> int:
        where, params = self._build_where(ResourceFilter(featured=featured))
        with self._connect() as conn:
            row = conn.execute(f"SELECT COUNT(*) FROM {UNIFIED_TABLE} AS r {where}", params).fetchone()
        return int(row[0])

    def total_downloads(self) -> int:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT COALESCE(SUM(download_count), 0) FROM {UNIFIED_TABLE}"
            ).fetchone()
        return int(row[0])

    def count_by_category(self) -> list[tuple[str, int]]:
        with self._connect() as conn:
            rows = conn.execute(
                f"""
                SELECT category, COUNT(*) AS n
                FROM {UNIFIED_TABLE}
                GROUP BY category
                ORDER BY n DESC, category ASC
                """
            ).fetchall()
        return [(row["category"], int(row["n"])) for row in rows]

    def top_tags(self, limit: int = 50) -> list[tuple[str, int]]:
        with self._connect() as conn:
            rows = conn.execute(
                f"""
                SELECT t.value AS tag, COUNT(*) AS n
                FROM {UNIFIED_TABLE} AS r, json_each(r.tags_json) AS t
                GROUP BY t.value
                ORDER BY n DESC, tag ASC
                LIMIT ?
                """,
                (limit,),
            ).fetchall()
        return [(row["tag"], int(row["n"])) for row in rows]

    # -- helpers ------------------------------------------------------------

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn: sqlite3.Connection | None = None
        try:
            conn = get_connection(self.db_path)
            yield conn
        except sqlite3.IntegrityError as exc:
            if "slug" in str(exc):
                raise SlugConflictError(f"Slug already in use: {exc}") from exc
            raise StoreError(f"Database integrity error: {exc}") from exc
        except sqlite3.Error as exc:
            raise StoreError(f"Database error: {exc}") from exc
        finally:
            if conn is not None:
                conn.close()

    @staticmethod
    def _build_where(resource_filter: ResourceFilter) -> tuple[str, list[Any]]:
        clauses: list[str] = []
        params: list[Any] = []

        if resource_filter.category:
            clauses.append("r.category = ?")
            params.append(resource_filter.category)
        if resource_filter.tag:
            clauses.append(
                "EXISTS (SELECT 1 FROM json_each(r.tags_json) AS t WHERE t.value = ?)"
            )
            params.append(resource_filter.tag.strip().lower())
        if resource_filter.featured is not None:
            clauses.append("r.featured = ?")
            params.append(1 if resource_filter.featured else 0)
        if resource_filter.text:
            match = fts_match_expression(resource_filter.text)
            if match:
                clauses.append(
                    "r.id IN (SELECT resource_id FROM resources_fts WHERE resources_fts MATCH ?)"
                )
                params.append(match)
        if resource_filter.search:
            pattern = f"%{_escape_like(resource_filter.search.strip().lower())}%"
            clauses.append(
                "(lower(r.title) LIKE ? ESCAPE '\\' "
                "OR lower(r.description) LIKE ? ESCAPE '\\' "
                "OR lower(r.tags_json) LIKE ? ESCAPE '\\')"
            )
            params.extend([pattern, pattern, pattern])

        if not clauses:
            return "", params
        return "WHERE " + " AND ".join(clauses), params

    @staticmethod
    def _sync_partition(conn: sqlite3.Connection, resource: Resource) -> None:
        for category in CATEGORIES:
            conn.execute(f"DELETE FROM {partition_table(category)} WHERE id = ?", (resource.id,))
        conn.execute(
            f"INSERT INTO {partition_table(resource.category)} ({', '.join(RESOURCE_COLUMNS)}) "
            f"VALUES ({', '.join('?' for _ in RESOURCE_COLUMNS)})",
            ResourceRepo._to_row(resource),
        )

    @staticmethod
    def _sync_fts(conn: sqlite3.Connection, resource: Resource) -> None:
        conn.execute("DELETE FROM resources_fts WHERE resource_id = ?", (resource.id,))
        conn.execute(
            "INSERT INTO resources_fts (resource_id, title, description, tags) VALUES (?, ?, ?, ?)",
            (resource.id, resource.title, resource.description, " ".join(resource.tags)),
        )

    @staticmethod
    def _to_row(resource: Resource) -> tuple[Any, ...]:
        return (
            resource.id,
            resource.title,
            resource.slug,
            resource.category,
            json.dumps(resource.tags, ensure_ascii=False),
            resource.description,
            resource.preview_url or "",
            resource.drive_pdf_id,
            resource.drive_cdr_id,
            resource.drive_ai_id,
            resource.drive_svg_id,
            resource.drive_eps_id,
            json.dumps(resource.formats),
            1 if resource.featured else 0,
            int(resource.download_count or 0),
            resource.created_at,
            resource.updated_at,
        )

    @staticmethod
    def _to_model(row) -> Resource:
        formats = [f for f in json.loads(row["formats_json"] or "[]") if f in FILE_FORMATS]
        return Resource(
            id=row["id"],
            title=row["title"],
            slug=row["slug"],
            category=row["category"],
            tags=list(json.loads(row["tags_json"] or "[]")),
            description=row["description"],
            preview_url=row["preview_url"] or "",
            drive_pdf_id=row["drive_pdf_id"],
            drive_cdr_id=row["drive_cdr_id"],
            drive_ai_id=row["drive_ai_id"],
            drive_svg_id=row["drive_svg_id"],
            drive_eps_id=row["drive_eps_id"],
            formats=formats,
            featured=bool(row["featured"]),
            download_count=int(row["download_count"] or 0),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )


def fts_match_expression(text: str) -> str | None:
    """Build an FTS5 MATCH expression that ORs the quoted words of ``text``."""
    words: list[str] = []
    for word in _FTS_TOKEN_RE.findall(text.lower()):
        if word not in words:
            words.append(word)
    if not words:
        return None
    return " OR ".join(f'"{word}"' for word in words)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
