import unittest

from invoice_renderer.models import Country
from invoice_renderer.tax import compute_tax


class TaxEngineTests(unittest.TestCase):
    def test_india_example_splits_rate_into_cgst_and_sgst(self) -> None:
        totals = compute_tax(1800.0, 10.0, Country.INDIA)

        self.assertEqual(totals.sub_total, 1800.0)
        self.assertEqual(totals.cgst_rate, 5.0)
        self.assertEqual(totals.sgst_rate, 5.0)
        self.assertAlmostEqual(totals.cgst_amount, 90.0)
        self.assertAlmostEqual(totals.sgst_amount, 90.0)
        self.assertAlmostEqual(totals.grand_total, 1980.0)
        self.assertIsNone(totals.consumption_tax_rate)
        self.assertEqual(totals.currency, "INR")

    def test_japan_example_uses_single_consumption_tax(self) -> None:
        totals = compute_tax(1800.0, 10.0, Country.JAPAN)

        self.assertEqual(totals.consumption_tax_rate, 10.0)
        self.assertAlmostEqual(totals.consumption_tax_amount, 180.0)
        self.assertAlmostEqual(totals.grand_total, 1980.0)
        self.assertIsNone(totals.cgst_rate)
        self.assertEqual(totals.currency, "JPY")

    def test_india_identities_hold_across_inputs(self) -> None:
        for sub_total in (0.0, 1.0, 99.99, 1800.0, 123456.78):
            for rate in (0.0, 0.5, 5.0, 18.0, 28.0):
                totals = compute_tax(sub_total, rate, Country.INDIA)
                expected_half = sub_total * rate / 200.0
                self.assertAlmostEqual(totals.cgst_amount, expected_half)
                self.assertAlmostEqual(totals.sgst_amount, expected_half)
                self.assertAlmostEqual(
                    totals.cgst_amount + totals.sgst_amount + totals.sub_total,
                    totals.grand_total,
                )
                self.assertAlmostEqual(totals.tax_amount, totals.cgst_amount + totals.sgst_amount)

    def test_japan_identities_hold_across_inputs(self) -> None:
        for sub_total in (0.0, 1.0, 99.99, 1800.0, 123456.78):
            for rate in (0.0, 8.0, 10.0):
                totals = compute_tax(sub_total, rate, Country.JAPAN)
                self.assertAlmostEqual(totals.consumption_tax_amount, sub_total * rate / 100.0)
                self.assertAlmostEqual(totals.grand_total, sub_total + totals.consumption_tax_amount)

    def test_zero_rate_components_are_not_listed(self) -> None:
        self.assertEqual(compute_tax(500.0, 0.0, Country.INDIA).tax_lines(), [])
        self.assertEqual(compute_tax(500.0, 0.0, Country.JAPAN).tax_lines(), [])

    def test_tax_lines_follow_jurisdiction(self) -> None:
        india = compute_tax(1800.0, 10.0, Country.INDIA).tax_lines()
        japan = compute_tax(1800.0, 10.0, Country.JAPAN).tax_lines()

        self.assertEqual([kind for kind, _, _ in india], ["cgst", "sgst"])
        self.assertEqual(japan, [("consumption_tax", 10.0, 180.0)])

    def test_empty_invoice_totals_are_zero(self) -> None:
        totals = compute_tax(0.0, 18.0, Country.INDIA)

        self.assertEqual(totals.sub_total, 0.0)
        self.assertEqual(totals.grand_total, 0.0)


if __name__ == "__main__":
    unittest.main()
