from __future__ import annotations

import re

DRIVE_BASE_URL = "https://drive.google.com"

_FILE_ID_PATTERNS = (
    re.compile(r"/file/d/([a-zA-Z0-9_-]+)"),
    re.compile(r"[?&]id=([a-zA-Z0-9_-]+)"),
    re.compile(r"/open\?id=([a-zA-Z0-9_-]+)"),
)


def _require_file_id(file_id: str) -> str:
    value = str(file_id or "").strip()
    if not value:
        raise ValueError("File ID is required")
    return value


def download_url(file_id: str) -> str:
    return f"{DRIVE_BASE_URL}/uc?export=download&id={_require_file_id(file_id)}"


def view_url(file_id: str) -> str:
    return f"{DRIVE_BASE_URL}/file/d/{_require_file_id(file_id)}/view"


def thumbnail_url(file_id: str, size: int = 400) -> str:
    return f"{DRIVE_BASE_URL}/thumbnail?id={_require_file_id(file_id)}&sz=w{size}"


def extract_file_id(url: str | None) -> str | None:
    """Pull the file id out of a Drive share/view/open URL."""
    if not url:
        return None
    for pattern in _FILE_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


def normalize_file_ref(value: str | None) -> str | None:
    """Accept either a bare file id or a full Drive URL and return the id."""
    text = str(value or "").strip()
    if not text:
        return None
    if text.startswith(("http://", "https://")):
        return extract_file_id(text) or text
    return text
