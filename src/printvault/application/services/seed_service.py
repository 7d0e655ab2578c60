from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from printvault.application.services.admin_service import AdminResourceService
from printvault.core.errors import ValidationError
from printvault.infrastructure.db.repos.resource_repo import ResourceRepo

logger = logging.getLogger(__name__)

SAMPLE_DATA_PATH = Path(__file__).resolve().parents[2] / "data" / "sample_resources.json"


@dataclass(slots=True)
class SeedSummary:
    inserted: int = 0
    cleared: int = 0
    skipped: bool = False
    by_category: dict[str, int] = field(default_factory=dict)


def load_sample_resources(path: Path = SAMPLE_DATA_PATH) -> list[dict[str, Any]]:
    raw = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, list):
        raise ValidationError(f"Sample data must be a JSON list: {path}")
    return [entry for entry in raw if isinstance(entry, dict)]


class SeedService:
    def __init__(self, resource_repo: ResourceRepo) -> None:
        self.resource_repo = resource_repo
        self.admin_service = AdminResourceService(resource_repo)

    def seed(self, *, force: bool = False, entries: list[dict[str, Any]] | None = None) -> SeedSummary:
        summary = SeedSummary()
        if self.resource_repo.count() > 0:
            if not force:
                summary.skipped = True
                return summary
            summary.cleared = self.resource_repo.clear()
            logger.info("Cleared %d existing resources", summary.cleared)

        for entry in entries if entries is not None else load_sample_resources():
            resource = self.admin_service.create(entry)
            summary.inserted += 1
            summary.by_category[resource.category] = summary.by_category.get(resource.category, 0) + 1
        return summary
