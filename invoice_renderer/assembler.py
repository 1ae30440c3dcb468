"""Turn an invoice into finished PDF bytes.

The download path and the email path both call :func:`build_invoice`, so a
downloaded file and an emailed attachment are the same bytes for the same
input.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Union

from dateutil import parser as dateutil_parser
from fpdf import FPDF  # type: ignore

from .fonts import FontManager
from .layout import InvoiceLayout, LayoutReport
from .logo import HttpLogoLoader, LogoLoader
from .models import CompanyProfile, Invoice, Language
from .profiles import resolve_company_profile
from .tax import compute_tax
from .text import Rasterizer, TextRenderer
from .translations import get_translations

logger = logging.getLogger(__name__)

DOCUMENT_CREATOR = "Invoice Generator"
PDF_MIME_TYPE = "application/pdf"
EPOCH = datetime(2000, 1, 1, tzinfo=timezone.utc)


class RenderError(RuntimeError):
    """Raised when an invoice could not be turned into a PDF."""


@dataclass(frozen=True)
class RenderedInvoice:
    content: bytes
    filename: str
    report: LayoutReport


@dataclass(frozen=True)
class EmailAttachment:
    filename: str
    content: bytes
    mime_type: str = PDF_MIME_TYPE


def invoice_filename(invoice_number: str, language: Union[Language, str] = Language.EN) -> str:
    number = invoice_number.strip().replace("/", "-").replace("\\", "-") or "draft"
    if Language.parse(language) is Language.JA:
        return f"請求書_{number}.pdf"
    return f"invoice_{number}.pdf"


def creation_date_for(invoice: Invoice) -> datetime:
    """Document timestamp derived from the invoice, so repeat renders match byte for byte."""
    try:
        parsed = dateutil_parser.parse(invoice.date)
    except (ValueError, OverflowError):
        return EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _new_document(invoice: Invoice) -> FPDF:
    pdf = FPDF(orientation="P", unit="mm", format="A4")
    pdf.set_auto_page_break(False)
    pdf.set_title(f"Invoice {invoice.invoice_number}")
    pdf.set_creator(DOCUMENT_CREATOR)
    pdf.set_author(DOCUMENT_CREATOR)
    pdf.set_creation_date(creation_date_for(invoice))
    pdf.add_page()
    return pdf


def _serialize(pdf: FPDF) -> bytes:
    pdf_blob = pdf.output()
    if isinstance(pdf_blob, (bytes, bytearray)):
        return bytes(pdf_blob)
    raise RenderError(f"Unexpected PDF output type: {type(pdf_blob).__name__}")


def build_invoice(
    invoice: Invoice,
    language: Union[Language, str] = Language.EN,
    company: Optional[CompanyProfile] = None,
    *,
    logo_loader: Optional[LogoLoader] = None,
    rasterizer: Optional[Rasterizer] = None,
) -> RenderedInvoice:
    lang = Language.parse(language)
    translations = get_translations(lang)
    profile = resolve_company_profile(company, lang)
    totals = compute_tax(invoice.subtotal, invoice.tax_rate, invoice.country)
    loader = logo_loader if logo_loader is not None else HttpLogoLoader()

    logger.info(
        "Rendering invoice %s (language=%s, country=%s, services=%d)",
        invoice.invoice_number,
        lang.value,
        invoice.country.value,
        len(invoice.services),
    )
    try:
        pdf = _new_document(invoice)
        fonts = FontManager(pdf)
        text = TextRenderer(fonts, rasterizer)
        logo = loader(profile.company_logo_url)
        report = InvoiceLayout(pdf, text, invoice, profile, translations, totals, logo).run()
        content = _serialize(pdf)
    except RenderError:
        raise
    except Exception as exc:
        raise RenderError(f"Failed to render invoice {invoice.invoice_number}: {exc}") from exc

    logger.info(
        "Rendered invoice %s: %d page(s), %d bytes",
        invoice.invoice_number,
        report.page_count,
        len(content),
    )
    return RenderedInvoice(
        content=content,
        filename=invoice_filename(invoice.invoice_number, lang),
        report=report,
    )


def render_invoice(
    invoice: Invoice,
    language: Union[Language, str] = Language.EN,
    company: Optional[CompanyProfile] = None,
    **options: Any,
) -> bytes:
    return build_invoice(invoice, language, company, **options).content


def save_invoice(
    invoice: Invoice,
    directory: str,
    language: Union[Language, str] = Language.EN,
    company: Optional[CompanyProfile] = None,
    **options: Any,
) -> str:
    """Download path: write the PDF under ``directory`` and return its path."""
    rendered = build_invoice(invoice, language, company, **options)
    os.makedirs(directory, exist_ok=True)
    path = os.path.join(directory, rendered.filename)
    with open(path, "wb") as handle:
        handle.write(rendered.content)
    logger.info("Saved %s", path)
    return path


def email_attachment(
    invoice: Invoice,
    language: Union[Language, str] = Language.EN,
    company: Optional[CompanyProfile] = None,
    **options: Any,
) -> EmailAttachment:
    """Email path: the same document as raw bytes for an outbound message."""
    rendered = build_invoice(invoice, language, company, **options)
    return EmailAttachment(filename=rendered.filename, content=rendered.content)


def parse_payload(payload: Mapping[str, Any]) -> Dict[str, Any]:
    company = payload.get("company")
    return {
        "invoice": Invoice.from_dict(payload.get("invoice") or {}),
        "language": Language.parse(payload.get("language") or Language.EN.value),
        "company": CompanyProfile.from_dict(company) if isinstance(company, Mapping) else None,
    }


def render_payload(payload: Mapping[str, Any]) -> bytes:
    """Render the JSON wire shape ``{"invoice", "language", "company"}``."""
    parsed = parse_payload(payload)
    return render_invoice(parsed["invoice"], parsed["language"], parsed["company"])
