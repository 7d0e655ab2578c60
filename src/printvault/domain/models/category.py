from __future__ import annotations

CATEGORIES: tuple[str, ...] = ("bhagwan", "frames", "initials", "templates", "elements")

CATEGORY_LABELS: dict[str, str] = {
    "bhagwan": "Bhagwan / Deities",
    "frames": "Frames & Borders",
    "initials": "Couple Initials",
    "templates": "Card Templates",
    "elements": "Design Elements",
}


def is_category(value: object) -> bool:
    return isinstance(value, str) and value in CATEGORIES


def category_label(category: str) -> str:
    return CATEGORY_LABELS.get(category, category)


def partition_table(category: str) -> str:
    """Name of the per-category partition table holding ``category`` rows."""
    if not is_category(category):
        raise ValueError(f"Unknown category: {category}")
    return f"{category}_resources"
