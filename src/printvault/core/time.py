from __future__ import annotations

from datetime import datetime, timezone


def now_utc_iso() -> str:
    """Return an ISO timestamp in UTC with microsecond precision.

    Creation-order sorting relies on these strings comparing lexically,
    so the precision is fixed.
    """
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")
