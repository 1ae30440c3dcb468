import unittest

from invoice_renderer.formatting import (
    fmt_amount,
    fmt_date,
    fmt_hours,
    fmt_money,
    safe_float,
    split_address,
    wrap_text,
)


class FixedWidthFonts:
    """One millimetre per character, whatever the size."""

    def text_width(self, text: str, size: float, bold: bool = False) -> float:
        return float(len(text))


class FormattingTests(unittest.TestCase):
    def test_fmt_date_formats_valid_dates(self) -> None:
        self.assertEqual(fmt_date("2026-01-15"), "15/01/2026")

    def test_fmt_date_returns_original_for_invalid_input(self) -> None:
        raw = "not-a-date"
        self.assertEqual(fmt_date(raw), raw)

    def test_fmt_amount_groups_thousands_with_two_decimals(self) -> None:
        self.assertEqual(fmt_amount(1234.5), "1,234.50")
        self.assertEqual(fmt_amount(0), "0.00")
        self.assertEqual(fmt_money(1980, "INR"), "INR 1,980.00")

    def test_fmt_hours_uses_two_decimals(self) -> None:
        self.assertEqual(fmt_hours(10), "10.00")
        self.assertEqual(fmt_hours("2.5"), "2.50")

    def test_safe_float_uses_default_for_non_numeric_values(self) -> None:
        self.assertEqual(safe_float("abc", 7.5), 7.5)
        self.assertEqual(safe_float(None), 0.0)

    def test_split_address_breaks_on_commas_and_newlines(self) -> None:
        self.assertEqual(
            split_address("12 Main St, Springfield, 00000"),
            ["12 Main St", "Springfield", "00000"],
        )
        self.assertEqual(split_address("Flat 4\nRoad 9,, City"), ["Flat 4", "Road 9", "City"])
        self.assertEqual(split_address(""), [])

    def test_split_address_handles_ideographic_comma_in_japanese_mode(self) -> None:
        self.assertEqual(split_address("東京都、千代田区", japanese=True), ["東京都", "千代田区"])
        self.assertEqual(split_address("東京都、千代田区"), ["東京都、千代田区"])

    def test_wrap_text_breaks_on_words_then_characters(self) -> None:
        fonts = FixedWidthFonts()

        self.assertEqual(wrap_text(fonts, "alpha beta gamma", 10, 10), ["alpha beta", "gamma"])
        self.assertEqual(wrap_text(fonts, "abcdefghijkl", 5, 10), ["abcde", "fghij", "kl"])
        self.assertEqual(wrap_text(fonts, "", 5, 10), [""])


if __name__ == "__main__":
    unittest.main()
