# ───────────────────────── src/proofscan/freshness.py ─────────────────────────
"""
Time-based expiry of the cached network dictionary.

All timestamps are integer milliseconds since the epoch.
"""

import time
from typing import Optional


def now_ms() -> int:
    """Current time in epoch milliseconds."""
    return int(time.time() * 1000)


def is_expired(last_updated: Optional[int], interval: int, now: int) -> bool:
    """Tell whether a dictionary fetched at ``last_updated`` is stale.

    A missing timestamp counts as the epoch, so a first run is always
    expired.

    Args:
        last_updated: When the cached dictionary was fetched, or None.
        interval: Refresh interval in milliseconds.
        now: Current time in milliseconds.

    Returns:
        True when ``last_updated + interval < now``.

    Examples:
        >>> is_expired(0, 60000, 60001)
        True
        >>> is_expired(1000, 60000, 60500)
        False
    """
    return (last_updated or 0) + interval < now
