"""Font discovery and vector text helpers."""

from __future__ import annotations

import functools
import logging
import os
import threading
from typing import List, Optional, Tuple

from fpdf import FPDF  # type: ignore

logger = logging.getLogger(__name__)

_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
_FONTS_DIR = os.path.join(_PROJECT_ROOT, "fonts")


def find_font_path(env_var: str, candidates: List[str]) -> Optional[str]:
    override = os.getenv(env_var)
    if override and os.path.exists(override):
        return override

    for path in candidates:
        if os.path.exists(path):
            return path
    return None


CJK_FONT_CANDIDATES = [
    os.path.join(_FONTS_DIR, "NotoSansJP-Regular.ttf"),
    os.path.join(_FONTS_DIR, "NotoSansCJK-Regular.ttc"),
    "/usr/share/fonts/opentype/noto/NotoSansCJK-Regular.ttc",
    "/usr/share/fonts/noto-cjk/NotoSansCJK-Regular.ttc",
    "/usr/share/fonts/google-noto-cjk/NotoSansCJK-Regular.ttc",
    "/usr/share/fonts/truetype/noto/NotoSansJP-Regular.ttf",
    "/usr/share/fonts/opentype/ipafont-gothic/ipag.ttf",
    "/usr/share/fonts/truetype/takao-gothic/TakaoGothic.ttf",
    "/usr/share/fonts/truetype/fonts-japanese-gothic.ttf",
    "/System/Library/Fonts/ヒラギノ角ゴシック W3.ttc",
    "/System/Library/Fonts/Hiragino Sans GB.ttc",
    "/Library/Fonts/Arial Unicode.ttf",
    "C:\\Windows\\Fonts\\meiryo.ttc",
    "C:\\Windows\\Fonts\\msgothic.ttc",
]


@functools.lru_cache(maxsize=None)
def find_cjk_font() -> Optional[str]:
    path = find_font_path("INVOICE_CJK_FONT_PATH", CJK_FONT_CANDIDATES)
    if path is None:
        logger.warning(
            "No CJK-capable font found; Japanese text will use the vector fallback. "
            "Set INVOICE_CJK_FONT_PATH to a font such as Noto Sans JP."
        )
    return path


FONT_INIT_LOCK = threading.Lock()


class FontManager:
    """Vector font used for every non-rasterised string.

    A Unicode TTF is preferred. Without one the PDF core Helvetica is used and
    text is narrowed to Latin-1, so drawing never fails on unsupported glyphs.
    """

    FAMILY = "InvoiceFont"
    CORE_FAMILY = "helvetica"
    BUNDLED_REGULAR = os.path.join(_FONTS_DIR, "DejaVuSans.ttf")
    BUNDLED_BOLD = os.path.join(_FONTS_DIR, "DejaVuSans-Bold.ttf")
    SYSTEM_REGULAR_CANDIDATES = [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
        "/usr/share/fonts/dejavu/DejaVuSans.ttf",
        "/Library/Fonts/DejaVuSans.ttf",
    ]
    SYSTEM_BOLD_CANDIDATES = [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
        "/usr/share/fonts/dejavu/DejaVuSans-Bold.ttf",
        "/Library/Fonts/DejaVuSans-Bold.ttf",
    ]

    def __init__(self, pdf: FPDF) -> None:
        self.pdf = pdf
        self.family = self.CORE_FAMILY
        self.has_bold = True
        self.unicode = False

        regular_path = find_font_path(
            "INVOICE_FONT_PATH",
            [self.BUNDLED_REGULAR, *self.SYSTEM_REGULAR_CANDIDATES],
        )
        if not regular_path:
            logger.debug("No Unicode TTF found, using core font %s", self.CORE_FAMILY)
            return

        bold_path = find_font_path(
            "INVOICE_FONT_BOLD_PATH",
            [self.BUNDLED_BOLD, *self.SYSTEM_BOLD_CANDIDATES],
        )

        with FONT_INIT_LOCK:
            self.pdf.add_font(self.FAMILY, "", regular_path)
            self.has_bold = False
            if bold_path:
                self.pdf.add_font(self.FAMILY, "B", bold_path)
                self.has_bold = True
        self.family = self.FAMILY
        self.unicode = True

    def encodable(self, text: str) -> str:
        if self.unicode:
            return text
        return text.encode("latin-1", "replace").decode("latin-1")

    def set_font(self, size: float, bold: bool = False) -> None:
        style = "B" if bold and self.has_bold else ""
        self.pdf.set_font(self.family, style, size)

    def text_width(self, text: str, size: float, bold: bool = False) -> float:
        self.set_font(size, bold)
        return self.pdf.get_string_width(self.encodable(text))

    def draw_text(
        self,
        x: float,
        y: float,
        text: str,
        size: float,
        color: Tuple[int, int, int] = (0, 0, 0),
        bold: bool = False,
    ) -> None:
        text = self.encodable(text)
        self.pdf.set_text_color(*color)
        self.set_font(size, bold)
        if bold and not self.has_bold:
            self.pdf.text(x, y, text)
            self.pdf.text(x + 0.15, y, text)
        else:
            self.pdf.text(x, y, text)

    def draw_aligned(
        self,
        x: float,
        y: float,
        text: str,
        size: float,
        align: str = "left",
        bold: bool = False,
        color: Tuple[int, int, int] = (0, 0, 0),
    ) -> None:
        """Draw one line so that ``x`` is its left edge, centre or right edge."""
        if align == "right":
            x -= self.text_width(text, size, bold=bold)
        elif align == "center":
            x -= self.text_width(text, size, bold=bold) / 2.0
        self.draw_text(x, y, text, size, color, bold=bold)
