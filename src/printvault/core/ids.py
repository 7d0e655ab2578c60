from __future__ import annotations

import uuid


def new_resource_id() -> str:
    """Generate an opaque resource identifier (UUID4 hex)."""
    return uuid.uuid4().hex
