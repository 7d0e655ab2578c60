from __future__ import annotations

from typing import Mapping

# Tested in this order, so derived format lists are stable.
FILE_FORMATS: tuple[str, ...] = ("pdf", "cdr", "ai", "svg", "eps")

FORMAT_FIELDS: dict[str, str] = {
    "pdf": "drive_pdf_id",
    "cdr": "drive_cdr_id",
    "ai": "drive_ai_id",
    "svg": "drive_svg_id",
    "eps": "drive_eps_id",
}

FORMAT_MIME_TYPES: dict[str, str] = {
    "pdf": "application/pdf",
    "cdr": "application/octet-stream",
    "ai": "application/illustrator",
    "svg": "image/svg+xml",
    "eps": "application/postscript",
}


def is_known_format(value: object) -> bool:
    return isinstance(value, str) and value in FILE_FORMATS


def derive_formats(file_refs: Mapping[str, str | None]) -> list[str]:
    """Return the formats whose file reference is present and non-empty.

    ``file_refs`` is keyed by format name (``"pdf"``...).
    """
    return [fmt for fmt in FILE_FORMATS if str(file_refs.get(fmt) or "").strip()]


def merge_file_refs(
    current: Mapping[str, str | None],
    updates: Mapping[str, str | None],
) -> dict[str, str | None]:
    """Overlay provided file references on the stored ones.

    A format absent from ``updates`` keeps its stored reference; a format
    present with an empty value is cleared.
    """
    merged: dict[str, str | None] = {}
    for fmt in FILE_FORMATS:
        if fmt in updates:
            value = str(updates[fmt] or "").strip()
            merged[fmt] = value or None
        else:
            merged[fmt] = current.get(fmt)
    return merged


def mime_type_for(fmt: str) -> str:
    return FORMAT_MIME_TYPES.get(fmt, "application/octet-stream")
