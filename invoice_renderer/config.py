"""Runtime configuration loaded from environment variables."""

from __future__ import annotations

import os
from typing import Optional


def env_int(name: str, default: int, minimum: int = 1) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value >= minimum else default


def env_str(name: str, default: Optional[str] = None) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


DEFAULT_MAX_CONCURRENT_RENDERS = max(4, min(32, os.cpu_count() or 4))
MAX_CONCURRENT_RENDERS = env_int(
    "INVOICE_MAX_CONCURRENT_RENDERS",
    DEFAULT_MAX_CONCURRENT_RENDERS,
    minimum=1,
)
MAX_INFLIGHT_RENDERS = env_int(
    "INVOICE_MAX_INFLIGHT_RENDERS",
    max(100, MAX_CONCURRENT_RENDERS * 4),
    minimum=1,
)
RENDER_QUEUE_TIMEOUT_MS = env_int("INVOICE_RENDER_QUEUE_TIMEOUT_MS", 120000, minimum=0)
RENDER_TIMEOUT_MS = env_int("INVOICE_RENDER_TIMEOUT_MS", 300000, minimum=1000)

MAX_BODY_BYTES = env_int("INVOICE_MAX_BODY_BYTES", 16 * 1024 * 1024, minimum=1024)
MAX_PAGES = env_int("INVOICE_MAX_PAGES", 500, minimum=1)
LISTEN_BACKLOG = env_int("INVOICE_LISTEN_BACKLOG", 512, minimum=1)

# Logo fetches give up quickly; a missing logo never fails a render.
# httpx applies the limit to each phase (connect, read, write, pool) separately.
LOGO_TIMEOUT_MS = env_int("INVOICE_LOGO_TIMEOUT_MS", 3000, minimum=100)
ASSET_BASE_URL = env_str("INVOICE_ASSET_BASE_URL", "http://localhost:8080")

PROFILE_PATH = env_str("INVOICE_PROFILE_PATH")

RASTER_SCALE = env_int("INVOICE_RASTER_SCALE", 2, minimum=1)

LOG_LEVEL = (env_str("INVOICE_LOG_LEVEL", "INFO") or "INFO").upper()
