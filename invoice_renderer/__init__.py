"""Bilingual (English/Japanese) invoice PDF rendering."""

from __future__ import annotations

from typing import Any, Optional

from .models import BankDetails, CompanyProfile, Country, Invoice, Language, ServiceItem
from .tax import TaxBreakdown, compute_tax


def render_invoice(
    invoice: Invoice,
    language: Any = Language.EN,
    company: Optional[CompanyProfile] = None,
    **options: Any,
) -> bytes:
    from .assembler import render_invoice as _render_invoice

    return _render_invoice(invoice, language, company, **options)


def run(host: str = "0.0.0.0", port: int = 8080) -> None:
    from .server import run as _run

    _run(host, port)


__all__ = [
    "BankDetails",
    "CompanyProfile",
    "Country",
    "Invoice",
    "Language",
    "ServiceItem",
    "TaxBreakdown",
    "compute_tax",
    "render_invoice",
    "run",
]
