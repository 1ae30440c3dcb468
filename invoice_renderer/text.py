"""Script-aware text placement.

Strings are drawn either as vector glyphs with the document font or, when they
contain Japanese script (or the caller asks for Japanese mode), rasterised with
a CJK-capable font and placed as an image. Rasterisation problems degrade to
the vector path and are reported through :class:`RenderOutcome`.
"""

from __future__ import annotations

import io
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Tuple

from PIL import Image, ImageDraw, ImageFont

from .config import RASTER_SCALE
from .fonts import FontManager, find_cjk_font
from .formatting import wrap_text
from .models import Language

logger = logging.getLogger(__name__)

JAPANESE_SCRIPT = re.compile(r"[\u3040-\u30ff\u4e00-\u9faf]")

ALIGNMENTS = ("left", "center", "right")

MM_PER_INCH = 25.4
PT_PER_INCH = 72.0
CSS_DPI = 96.0
LINE_HEIGHT_FACTOR = 1.15
RASTER_LINE_HEIGHT_FACTOR = 1.4


def needs_raster(text: str, language: Language = Language.EN) -> bool:
    if language is Language.JA:
        return True
    return JAPANESE_SCRIPT.search(text) is not None


class RenderOutcome(str, Enum):
    VECTOR = "vector"
    RASTER = "raster"
    FALLBACK = "fallback"
    EMPTY = "empty"


@dataclass(frozen=True)
class TextStyle:
    font_size: float = 10.0
    bold: bool = False
    align: str = "left"
    language: Language = Language.EN
    max_width: float = 100.0

    def __post_init__(self) -> None:
        if self.font_size <= 0:
            raise ValueError(f"font_size must be positive, got {self.font_size}")
        if self.max_width <= 0:
            raise ValueError(f"max_width must be positive, got {self.max_width}")
        if self.align not in ALIGNMENTS:
            raise ValueError(f"align must be one of {ALIGNMENTS}, got {self.align!r}")
        if not isinstance(self.language, Language):
            object.__setattr__(self, "language", Language.parse(self.language))

    @property
    def line_height(self) -> float:
        """Vector line advance in millimetres."""
        return self.font_size * LINE_HEIGHT_FACTOR * MM_PER_INCH / PT_PER_INCH


@dataclass(frozen=True)
class TextFragment:
    text: str
    outcome: RenderOutcome
    page: int
    x: float
    y: float


@dataclass(frozen=True)
class RasterImage:
    png: bytes
    width_px: int
    height_px: int

    @property
    def aspect_ratio(self) -> float:
        return self.width_px / float(self.height_px)


Rasterizer = Callable[[str, TextStyle], Optional[RasterImage]]


def raster_placement(
    x: float,
    y: float,
    width: float,
    height: float,
    align: str,
) -> Tuple[float, float]:
    """Top-left image origin that lines the bitmap up with vector text at ``(x, y)``.

    ``x`` is the anchor for the alignment mode and ``y`` is a baseline, while
    images are placed by their top-left corner.
    """
    if align == "right":
        x -= width
    elif align == "center":
        x -= width / 2.0
    return x, y - height


class PillowRasterizer:
    """Lays a single line out in a box ``style.max_width`` wide and captures it as PNG."""

    def __init__(self, font_path: Optional[str] = None, scale: int = RASTER_SCALE) -> None:
        self.font_path = font_path
        self.scale = scale

    def _font_path(self) -> Optional[str]:
        return self.font_path or find_cjk_font()

    def __call__(self, text: str, style: TextStyle) -> Optional[RasterImage]:
        font_path = self._font_path()
        if font_path is None:
            return None

        px_per_mm = CSS_DPI / MM_PER_INCH * self.scale
        font_px = max(1, int(round(style.font_size * CSS_DPI / PT_PER_INCH * self.scale)))
        width_px = max(1, int(round(style.max_width * px_per_mm)))
        height_px = max(1, int(round(font_px * RASTER_LINE_HEIGHT_FACTOR)))

        font = ImageFont.truetype(font_path, font_px)
        image = Image.new("RGB", (width_px, height_px), "white")
        draw = ImageDraw.Draw(image)
        text_px = draw.textlength(text, font=font)
        if style.align == "right":
            left = width_px - text_px
        elif style.align == "center":
            left = (width_px - text_px) / 2.0
        else:
            left = 0.0
        # Lines wider than the box are clipped at its edge.
        draw.text(
            (left, height_px / 2.0),
            text,
            font=font,
            fill="black",
            anchor="lm",
            stroke_width=1 if style.bold else 0,
            stroke_fill="black",
        )

        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        return RasterImage(png=buffer.getvalue(), width_px=width_px, height_px=height_px)


class TextRenderer:
    def __init__(
        self,
        fonts: FontManager,
        rasterizer: Optional[Rasterizer] = None,
    ) -> None:
        self.fonts = fonts
        self.pdf = fonts.pdf
        self.rasterizer = rasterizer if rasterizer is not None else PillowRasterizer()

    def text_width(self, text: str, size: float, bold: bool = False) -> float:
        """Width in millimetres; Japanese characters count as one full em."""
        if not JAPANESE_SCRIPT.search(text):
            return self.fonts.text_width(text, size, bold=bold)
        em = size * MM_PER_INCH / PT_PER_INCH
        latin = "".join(char for char in text if not JAPANESE_SCRIPT.match(char))
        wide = len(text) - len(latin)
        latin_width = self.fonts.text_width(latin, size, bold=bold) if latin else 0.0
        return latin_width + wide * em

    def wrap(self, text: str, style: TextStyle) -> List[str]:
        return wrap_text(self, text, style.max_width, style.font_size, bold=style.bold)

    def draw(self, text: str, x: float, y: float, style: TextStyle) -> TextFragment:
        page = self.pdf.page_no()
        if not text or not text.strip():
            return TextFragment(text, RenderOutcome.EMPTY, page, x, y)

        if not needs_raster(text, style.language):
            self._draw_vector(text, x, y, style)
            return TextFragment(text, RenderOutcome.VECTOR, page, x, y)

        if self._draw_raster(text, x, y, style):
            return TextFragment(text, RenderOutcome.RASTER, page, x, y)

        self._draw_vector(text, x, y, style)
        return TextFragment(text, RenderOutcome.FALLBACK, page, x, y)

    def _draw_vector(self, text: str, x: float, y: float, style: TextStyle) -> None:
        for index, line in enumerate(self.wrap(text, style)):
            self.fonts.draw_aligned(
                x,
                y + index * style.line_height,
                line,
                style.font_size,
                align=style.align,
                bold=style.bold,
            )

    def _draw_raster(self, text: str, x: float, y: float, style: TextStyle) -> bool:
        try:
            raster = self.rasterizer(text, style)
        except Exception:
            logger.warning("Rasterising %r failed, using vector fallback", text, exc_info=True)
            return False
        if raster is None or raster.width_px <= 0 or raster.height_px <= 0 or not raster.png:
            logger.warning("No raster image for %r, using vector fallback", text)
            return False

        width = style.max_width
        height = width / raster.aspect_ratio
        left, top = raster_placement(x, y, width, height, style.align)
        self.pdf.image(io.BytesIO(raster.png), x=left, y=top, w=width, h=height)
        return True
