"""Time helpers; records carry epoch seconds."""

import time


def now_ts() -> int:
    """Current UTC time as epoch seconds."""
    return int(time.time())
