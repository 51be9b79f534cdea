"""
Wall-clock helpers. Timestamps are epoch milliseconds throughout.
"""

import time
from datetime import datetime


def now_ms() -> int:
    return int(time.time() * 1000)


def local_datetime(ms: int) -> datetime:
    """Server-local datetime for an epoch-ms timestamp."""
    return datetime.fromtimestamp(ms / 1000)
