"""Small helpers shared across the sync core."""

import time
import uuid


def now_ms() -> int:
    """Current wall-clock time in milliseconds since the epoch."""
    return int(time.time() * 1000)


def generate_device_id() -> str:
    """Generate a per-installation device identifier (``dev_`` + 8 hex chars)."""
    return "dev_" + uuid.uuid4().hex[:8]
