"""Jurisdiction-aware tax breakdown."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from .models import Country

CURRENCY_BY_COUNTRY = {
    Country.INDIA: "INR",
    Country.JAPAN: "JPY",
}


@dataclass(frozen=True)
class TaxBreakdown:
    country: Country
    sub_total: float
    tax_amount: float
    grand_total: float
    cgst_rate: Optional[float] = None
    sgst_rate: Optional[float] = None
    cgst_amount: Optional[float] = None
    sgst_amount: Optional[float] = None
    consumption_tax_rate: Optional[float] = None
    consumption_tax_amount: Optional[float] = None

    @property
    def currency(self) -> str:
        return CURRENCY_BY_COUNTRY[self.country]

    def tax_lines(self) -> List[Tuple[str, float, float]]:
        """Return ``(kind, rate, amount)`` for every component with a positive rate."""
        if self.country is Country.JAPAN:
            components = [("consumption_tax", self.consumption_tax_rate, self.consumption_tax_amount)]
        else:
            components = [
                ("cgst", self.cgst_rate, self.cgst_amount),
                ("sgst", self.sgst_rate, self.sgst_amount),
            ]
        return [
            (kind, rate, amount or 0.0)
            for kind, rate, amount in components
            if rate is not None and rate > 0
        ]


def compute_tax(sub_total: float, tax_rate: float, country: Country) -> TaxBreakdown:
    # Inputs are not clamped; callers guarantee sub_total >= 0 and tax_rate >= 0.
    if country is Country.JAPAN:
        consumption_tax_amount = sub_total * (tax_rate / 100.0)
        return TaxBreakdown(
            country=country,
            sub_total=sub_total,
            tax_amount=consumption_tax_amount,
            grand_total=sub_total + consumption_tax_amount,
            consumption_tax_rate=tax_rate,
            consumption_tax_amount=consumption_tax_amount,
        )

    half_rate = tax_rate / 2.0
    cgst_amount = sub_total * (half_rate / 100.0)
    sgst_amount = sub_total * (half_rate / 100.0)
    return TaxBreakdown(
        country=Country.INDIA,
        sub_total=sub_total,
        tax_amount=cgst_amount + sgst_amount,
        grand_total=sub_total + cgst_amount + sgst_amount,
        cgst_rate=half_rate,
        sgst_rate=half_rate,
        cgst_amount=cgst_amount,
        sgst_amount=sgst_amount,
    )
