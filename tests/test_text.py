import io
import unittest
from importlib import util as importlib_util
from unittest.mock import patch

from invoice_renderer.models import Language

FPDF_AVAILABLE = importlib_util.find_spec("fpdf") is not None
PIL_AVAILABLE = importlib_util.find_spec("PIL") is not None
if FPDF_AVAILABLE and PIL_AVAILABLE:
    from fpdf import FPDF
    from PIL import Image, ImageOps

    from invoice_renderer.fonts import FontManager, find_cjk_font, find_font_path
    from invoice_renderer.text import (
        PillowRasterizer,
        RasterImage,
        RenderOutcome,
        TextRenderer,
        TextStyle,
        needs_raster,
        raster_placement,
    )


def png_bytes(width: int = 200, height: int = 40) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), "white").save(buffer, format="PNG")
    return buffer.getvalue()


@unittest.skipUnless(FPDF_AVAILABLE and PIL_AVAILABLE, "fpdf2 and Pillow are required")
class ScriptDetectionTests(unittest.TestCase):
    def test_japanese_script_is_raster_routed_in_english_mode(self) -> None:
        self.assertTrue(needs_raster("ひらがな", Language.EN))
        self.assertTrue(needs_raster("カタカナ", Language.EN))
        self.assertTrue(needs_raster("Invoice 請求書", Language.EN))

    def test_ascii_is_raster_routed_only_in_japanese_mode(self) -> None:
        self.assertFalse(needs_raster("Invoice #42", Language.EN))
        self.assertTrue(needs_raster("Invoice #42", Language.JA))

    def test_characters_outside_detected_ranges_stay_vector(self) -> None:
        self.assertFalse(needs_raster("Café ₹ 100", Language.EN))
        self.assertFalse(needs_raster("한국어", Language.EN))


@unittest.skipUnless(FPDF_AVAILABLE and PIL_AVAILABLE, "fpdf2 and Pillow are required")
class TextStyleTests(unittest.TestCase):
    def test_defaults(self) -> None:
        style = TextStyle()

        self.assertEqual(style.font_size, 10.0)
        self.assertFalse(style.bold)
        self.assertEqual(style.align, "left")
        self.assertIs(style.language, Language.EN)
        self.assertEqual(style.max_width, 100.0)

    def test_rejects_invalid_values(self) -> None:
        with self.assertRaises(ValueError):
            TextStyle(font_size=0)
        with self.assertRaises(ValueError):
            TextStyle(max_width=-1)
        with self.assertRaises(ValueError):
            TextStyle(align="justify")
        with self.assertRaises(ValueError):
            TextStyle(language="fr")

    def test_language_strings_are_normalised(self) -> None:
        self.assertIs(TextStyle(language="ja").language, Language.JA)


@unittest.skipUnless(FPDF_AVAILABLE and PIL_AVAILABLE, "fpdf2 and Pillow are required")
class RasterPlacementTests(unittest.TestCase):
    def test_left_alignment_lifts_by_height_only(self) -> None:
        self.assertEqual(raster_placement(14.0, 40.0, 100.0, 5.0, "left"), (14.0, 35.0))

    def test_right_alignment_shifts_by_full_width(self) -> None:
        self.assertEqual(raster_placement(196.0, 40.0, 80.0, 5.0, "right"), (116.0, 35.0))

    def test_center_alignment_shifts_by_half_width(self) -> None:
        self.assertEqual(raster_placement(105.0, 40.0, 182.0, 4.0, "center"), (14.0, 36.0))


@unittest.skipUnless(FPDF_AVAILABLE and PIL_AVAILABLE, "fpdf2 and Pillow are required")
class TextRendererTests(unittest.TestCase):
    def _renderer(self, rasterizer) -> "TextRenderer":
        pdf = FPDF(unit="mm", format="A4")
        pdf.set_auto_page_break(False)
        pdf.add_page()
        return TextRenderer(FontManager(pdf), rasterizer)

    def test_latin_text_uses_vector_path(self) -> None:
        calls = []
        renderer = self._renderer(lambda text, style: calls.append(text))

        fragment = renderer.draw("Subtotal:", 135.0, 80.0, TextStyle(align="right"))

        self.assertIs(fragment.outcome, RenderOutcome.VECTOR)
        self.assertEqual(calls, [])
        self.assertEqual(fragment.page, 1)

    def test_blank_text_is_reported_empty(self) -> None:
        renderer = self._renderer(lambda text, style: None)

        fragment = renderer.draw("   ", 14.0, 20.0, TextStyle(language=Language.JA))

        self.assertIs(fragment.outcome, RenderOutcome.EMPTY)

    def test_raster_image_is_sized_to_max_width_and_aligned(self) -> None:
        raster = RasterImage(png=png_bytes(), width_px=200, height_px=40)
        renderer = self._renderer(lambda text, style: raster)

        with patch.object(renderer.pdf, "image") as image:
            fragment = renderer.draw(
                "請求先",
                196.0,
                20.0,
                TextStyle(font_size=11, bold=True, align="right", max_width=50.0),
            )

        self.assertIs(fragment.outcome, RenderOutcome.RASTER)
        _, kwargs = image.call_args
        self.assertAlmostEqual(kwargs["x"], 146.0)
        self.assertAlmostEqual(kwargs["y"], 10.0)
        self.assertAlmostEqual(kwargs["w"], 50.0)
        self.assertAlmostEqual(kwargs["h"], 10.0)

    def test_ascii_in_japanese_mode_goes_through_rasterizer(self) -> None:
        seen = []

        def rasterizer(text, style):
            seen.append(text)
            return RasterImage(png=png_bytes(), width_px=200, height_px=40)

        renderer = self._renderer(rasterizer)
        fragment = renderer.draw("SNO", 14.0, 60.0, TextStyle(language=Language.JA, max_width=15.0))

        self.assertIs(fragment.outcome, RenderOutcome.RASTER)
        self.assertEqual(seen, ["SNO"])

    def test_missing_raster_falls_back_to_vector(self) -> None:
        renderer = self._renderer(lambda text, style: None)

        with self.assertLogs("invoice_renderer.text", level="WARNING"):
            fragment = renderer.draw("合計金額:", 135.0, 100.0, TextStyle(align="right"))

        self.assertIs(fragment.outcome, RenderOutcome.FALLBACK)

    def test_rasterizer_errors_never_escape(self) -> None:
        def broken(text, style):
            raise OSError("capture failed")

        renderer = self._renderer(broken)

        with self.assertLogs("invoice_renderer.text", level="WARNING"):
            fragment = renderer.draw("小計", 135.0, 100.0, TextStyle())

        self.assertIs(fragment.outcome, RenderOutcome.FALLBACK)

    def test_japanese_characters_measure_one_em(self) -> None:
        renderer = self._renderer(lambda text, style: None)

        width = renderer.text_width("東京", 12)

        self.assertAlmostEqual(width, 2 * 12 * 25.4 / 72.0)


def raster_font_path():
    if not (FPDF_AVAILABLE and PIL_AVAILABLE):
        return None
    return find_cjk_font() or find_font_path(
        "INVOICE_FONT_PATH",
        [FontManager.BUNDLED_REGULAR, *FontManager.SYSTEM_REGULAR_CANDIDATES],
    )


@unittest.skipUnless(FPDF_AVAILABLE and PIL_AVAILABLE, "fpdf2 and Pillow are required")
class PillowRasterizerTests(unittest.TestCase):
    def setUp(self) -> None:
        font_path = raster_font_path()
        if font_path is None:
            self.skipTest("no TrueType font available for rasterising")
        self.rasterizer = PillowRasterizer(font_path=font_path, scale=2)

    def _ink_box(self, raster: "RasterImage"):
        with Image.open(io.BytesIO(raster.png)) as image:
            return ImageOps.invert(image.convert("L")).getbbox()

    def test_bitmap_is_max_width_at_double_css_resolution(self) -> None:
        raster = self.rasterizer("SNO", TextStyle(max_width=15.0))

        assert raster is not None
        self.assertEqual(raster.width_px, round(15.0 * 96 / 25.4 * 2))
        self.assertEqual(raster.height_px, 38)
        self.assertTrue(raster.png.startswith(b"\x89PNG"))

    def test_text_is_aligned_inside_the_box(self) -> None:
        left = self._ink_box(self.rasterizer("SNO", TextStyle(max_width=40.0)))
        right = self._ink_box(self.rasterizer("SNO", TextStyle(max_width=40.0, align="right")))

        assert left is not None and right is not None
        width_px = round(40.0 * 96 / 25.4 * 2)
        self.assertLess(left[0], 10)
        self.assertGreater(right[2], width_px - 10)

    def test_bold_strokes_more_ink(self) -> None:
        regular = self.rasterizer("SNO", TextStyle(max_width=40.0))
        bold = self.rasterizer("SNO", TextStyle(max_width=40.0, bold=True))

        assert regular is not None and bold is not None
        regular_box = self._ink_box(regular)
        bold_box = self._ink_box(bold)
        self.assertGreater(bold_box[2] - bold_box[0], regular_box[2] - regular_box[0])


if __name__ == "__main__":
    unittest.main()
