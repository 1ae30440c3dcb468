"""Company logo fetching.

Logos are optional decoration: every failure is logged and turns into ``None``.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Callable, Optional

import httpx
from PIL import Image

from .config import ASSET_BASE_URL, LOGO_TIMEOUT_MS

logger = logging.getLogger(__name__)

MAX_LOGO_SIZE = (800, 600)
JPEG_QUALITY = 80


@dataclass(frozen=True)
class LogoImage:
    data: bytes
    width_px: int
    height_px: int

    def height_for_width(self, width: float) -> float:
        return width * self.height_px / float(self.width_px)


LogoLoader = Callable[[Optional[str]], Optional[LogoImage]]


def resolve_logo_url(url: str, base_url: Optional[str] = ASSET_BASE_URL) -> str:
    if url.startswith(("http://", "https://")) or not base_url:
        return url
    path = url if url.startswith("/") else f"/{url}"
    return f"{base_url.rstrip('/')}{path}"


def optimize_logo(raw: bytes) -> LogoImage:
    """Flatten onto white, fit within 800x600 and re-encode as JPEG."""
    with Image.open(io.BytesIO(raw)) as source:
        source.load()
        image = source.convert("RGBA")
    background = Image.new("RGB", image.size, "white")
    background.paste(image, mask=image.getchannel("A"))
    background.thumbnail(MAX_LOGO_SIZE)

    buffer = io.BytesIO()
    background.save(buffer, format="JPEG", quality=JPEG_QUALITY)
    width, height = background.size
    return LogoImage(data=buffer.getvalue(), width_px=width, height_px=height)


class HttpLogoLoader:
    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        timeout_ms: int = LOGO_TIMEOUT_MS,
        base_url: Optional[str] = ASSET_BASE_URL,
    ) -> None:
        self._client = client
        self._timeout = timeout_ms / 1000.0
        self._timeouts = httpx.Timeout(self._timeout)
        self._base_url = base_url

    def fetch(self, url: str) -> bytes:
        if self._client is not None:
            response = self._client.get(url, timeout=self._timeouts)
        else:
            response = httpx.get(url, timeout=self._timeouts, follow_redirects=True)
        response.raise_for_status()
        return response.content

    def __call__(self, logo_url: Optional[str]) -> Optional[LogoImage]:
        if not logo_url or not logo_url.strip():
            logger.debug("No logo URL provided, skipping logo")
            return None

        url = resolve_logo_url(logo_url.strip(), self._base_url)
        try:
            raw = self.fetch(url)
        except httpx.TimeoutException:
            logger.warning("Logo load timed out after %.1fs: %s", self._timeout, url)
            return None
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("Could not load logo %r: %s", url, exc)
            return None

        try:
            logo = optimize_logo(raw)
        except Exception as exc:
            logger.warning("Could not decode logo %s: %s", url, exc)
            return None
        if logo.width_px <= 0 or logo.height_px <= 0:
            logger.warning("Logo %s has no usable dimensions", url)
            return None
        return logo


def no_logo(logo_url: Optional[str]) -> Optional[LogoImage]:
    return None
