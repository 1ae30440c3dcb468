"""Invoice page layout.

A single forward pass places every block of the invoice while a vertical
cursor (``self.y``, millimetres from the top edge) moves down the page. Each
block starts where the previous one ended plus a fixed gap; horizontal anchors
are shared by every page.
"""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from typing import List, Optional

from fpdf import FPDF  # type: ignore

from .formatting import fmt_amount, fmt_date, fmt_hours, fmt_money, fmt_rate, split_address
from .logo import LogoImage
from .models import CompanyProfile, Invoice, Language
from .pagination import (
    ROW_LINE_H,
    TOP_MARGIN_Y,
    advance_row,
    needs_page_break,
    row_height,
)
from .profiles import payment_details
from .tax import TaxBreakdown
from .text import TextFragment, TextRenderer, TextStyle
from .translations import Translations

X_LEFT = 14.0
X_RIGHT = 196.0
X_CENTER = 105.0
X_INDENT = 20.0
TABLE_W = X_RIGHT - X_LEFT

X_SNO = 14.0
X_DESCRIPTION = 30.0
X_HOURS = 100.0
X_UNIT_PRICE = 150.0
X_AMOUNT = 190.0
DESCRIPTION_W = 70.0

X_TOTALS_LABEL = 135.0
X_SIGNATURE_START = 130.0
X_SIGNATURE_CAPTION = 163.0
X_SEAL = 160.0

HEADER_Y = 18.0
HEADER_LINE_H = 7.0
HEADER_H = 15.0
LOGO_W = 50.0
LOGO_MAX_H = 13.0

LINE_H = 6.0
LABEL_GAP = 7.0
SECTION_GAP = 10.0
TOTALS_ROW_H = 8.0

HEADER_BAND_H = 8.0
COLOR_HEADER_BAND = (245, 245, 245)
GRAY_RULE = 200
GRAY_ROW_RULE = 230

FONT_SIZE_LABEL = 11
FONT_SIZE_BODY = 10
FONT_SIZE_SMALL = 9
FONT_SIZE_TOTAL = 12

NOT_AVAILABLE = "N/A"


@dataclass(frozen=True)
class RowPlacement:
    index: int
    page: int
    y: float
    height: float
    line_count: int


@dataclass
class LayoutReport:
    fragments: List[TextFragment] = field(default_factory=list)
    rows: List[RowPlacement] = field(default_factory=list)
    page_count: int = 1
    logo_drawn: bool = False

    def texts(self) -> List[str]:
        return [fragment.text for fragment in self.fragments]


class InvoiceLayout:
    def __init__(
        self,
        pdf: FPDF,
        text: TextRenderer,
        invoice: Invoice,
        company: CompanyProfile,
        translations: Translations,
        totals: TaxBreakdown,
        logo: Optional[LogoImage] = None,
    ) -> None:
        self.pdf = pdf
        self.text = text
        self.invoice = invoice
        self.company = company
        self.t = translations
        self.language = translations.language
        self.totals = totals
        self.logo = logo
        self.report = LayoutReport()
        self.y = HEADER_Y

    def _draw(
        self,
        text: str,
        x: float,
        y: float,
        size: float = FONT_SIZE_BODY,
        bold: bool = False,
        align: str = "left",
        max_width: float = 100.0,
        language: Optional[Language] = None,
    ) -> TextFragment:
        style = TextStyle(
            font_size=size,
            bold=bold,
            align=align,
            language=language or self.language,
            max_width=max_width,
        )
        fragment = self.text.draw(text, x, y, style)
        self.report.fragments.append(fragment)
        return fragment

    def _draw_value(self, text: str, x: float, y: float, size: float = FONT_SIZE_BODY, bold: bool = False) -> None:
        # Numbers always go through the vector font, whatever the document language.
        self._draw(text, x, y, size=size, bold=bold, align="right", max_width=80.0, language=Language.EN)

    def _rule(self, x1: float, y: float, x2: float, gray: int, width: float) -> None:
        self.pdf.set_draw_color(gray)
        self.pdf.set_line_width(width)
        self.pdf.line(x1, y, x2, y)

    def _new_page(self) -> None:
        self.pdf.add_page()
        self.y = TOP_MARGIN_Y

    def _ensure_space(self, height: float) -> None:
        if needs_page_break(self.y, height):
            self._new_page()

    def _draw_logo(self) -> None:
        if self.logo is None:
            return
        width = LOGO_W
        height = self.logo.height_for_width(width)
        if height > LOGO_MAX_H:
            width = width * LOGO_MAX_H / height
            height = LOGO_MAX_H
        self.pdf.image(io.BytesIO(self.logo.data), x=X_LEFT, y=HEADER_Y, w=width, h=height)
        self.report.logo_drawn = True

    def _draw_header(self) -> None:
        self._draw_logo()

        header_lines = [
            f"{self.t['invoice_no']} {self.invoice.invoice_number}",
            f"{self.t['date']} {fmt_date(self.invoice.date)}",
        ]
        if self.invoice.due_date:
            header_lines.append(f"{self.t['due_date']} {fmt_date(self.invoice.due_date)}")
        for index, line in enumerate(header_lines):
            self._draw(
                line,
                X_RIGHT,
                HEADER_Y + index * HEADER_LINE_H,
                size=FONT_SIZE_LABEL,
                bold=True,
                align="right",
                max_width=50.0,
            )

        self.y = HEADER_Y + HEADER_H

    def _from_lines(self) -> List[str]:
        company = self.company
        lines = [company.company_name]
        lines.extend(split_address(company.company_address, japanese=self.t.is_japanese))
        lines.extend([company.gstin or "", company.phone or "", company.email or ""])
        return [line.strip() for line in lines if line and line.strip()]

    def _bill_to_lines(self) -> List[str]:
        invoice = self.invoice
        lines = [invoice.employee_name.strip()]
        if invoice.employee_id.strip():
            lines.append(f"{self.t['employee_id']}: {invoice.employee_id.strip()}")
        if invoice.employee_email.strip():
            lines.append(f"{self.t['email']}: {invoice.employee_email.strip()}")
        if invoice.employee_mobile.strip():
            lines.append(f"{self.t['phone']}: {invoice.employee_mobile.strip()}")
        address_lines = split_address(invoice.employee_address)
        if address_lines:
            lines.append(f"{self.t['address']}:")
            lines.extend(address_lines)
        return lines

    def _draw_parties(self) -> None:
        start_y = self.y

        self._draw(self.t["from"], X_LEFT, start_y, size=FONT_SIZE_LABEL, bold=True)
        from_y = start_y + LABEL_GAP
        for line in self._from_lines():
            self._draw(line, X_LEFT, from_y)
            from_y += LINE_H

        bill_to_y = start_y + LABEL_GAP
        name = self.invoice.employee_name.strip()
        if name and name != NOT_AVAILABLE:
            self._draw(
                self.t["bill_to"],
                X_RIGHT,
                start_y,
                size=FONT_SIZE_LABEL,
                bold=True,
                align="right",
                max_width=80.0,
            )
            for line in self._bill_to_lines():
                self._draw(line, X_RIGHT, bill_to_y, align="right", max_width=80.0)
                bill_to_y += LINE_H

        # The longer of the two blocks decides where the table starts.
        self.y = max(from_y, bill_to_y) + SECTION_GAP

    def _draw_table_header(self) -> None:
        table_y = self.y
        band_top = table_y - 5

        self.pdf.set_fill_color(*COLOR_HEADER_BAND)
        self.pdf.rect(X_LEFT, band_top, TABLE_W, HEADER_BAND_H, "F")
        self._rule(X_LEFT, band_top, X_RIGHT, 0, 0.1)

        self._draw(self.t["sno"], X_SNO, table_y, size=FONT_SIZE_LABEL, bold=True, max_width=15.0)
        self._draw(self.t["description"], X_DESCRIPTION, table_y, size=FONT_SIZE_LABEL, bold=True, max_width=DESCRIPTION_W)
        self._draw(self.t["hours"], X_HOURS, table_y, size=FONT_SIZE_LABEL, bold=True, align="right", max_width=30.0)
        self._draw(self.t["unit_price"], X_UNIT_PRICE, table_y, size=FONT_SIZE_LABEL, bold=True, align="right", max_width=30.0)
        self._draw(self.t["amount"], X_AMOUNT, table_y, size=FONT_SIZE_LABEL, bold=True, align="right", max_width=20.0)

        self.y = table_y + 3
        self._rule(X_LEFT, self.y, X_RIGHT, GRAY_RULE, 0.1)
        self.y += LINE_H

    def _draw_rows(self) -> None:
        description_style = TextStyle(font_size=FONT_SIZE_BODY, max_width=DESCRIPTION_W)

        for index, service in enumerate(self.invoice.services):
            lines = self.text.wrap(service.description.strip() or "-", description_style)
            height = row_height(len(lines))
            row_y = self.y

            if index > 0:
                self._rule(X_LEFT, row_y - 2, X_RIGHT, GRAY_ROW_RULE, 0.1)

            self._draw(str(index + 1), X_SNO, row_y, max_width=15.0, language=Language.EN)
            for line_index, line in enumerate(lines):
                # Description lines route by script only, so Latin text stays vector in either language.
                self._draw(
                    line,
                    X_DESCRIPTION,
                    row_y + line_index * ROW_LINE_H,
                    max_width=DESCRIPTION_W,
                    language=Language.EN,
                )
            self._draw_value(fmt_hours(service.hours), X_HOURS, row_y)
            self._draw_value(fmt_amount(service.rate), X_UNIT_PRICE, row_y)
            self._draw_value(fmt_amount(service.amount), X_AMOUNT, row_y)

            self.report.rows.append(
                RowPlacement(
                    index=index,
                    page=self.pdf.page_no(),
                    y=row_y,
                    height=height,
                    line_count=len(lines),
                )
            )

            self.y, new_page = advance_row(row_y, height)
            if new_page:
                self._new_page()

    def _draw_totals(self) -> None:
        tax_lines = self.totals.tax_lines()
        currency = self.totals.currency
        self._ensure_space(3 + TOTALS_ROW_H * (len(tax_lines) + 2) + 3 + 15)

        self.y += 3
        self._rule(X_LEFT, self.y, X_RIGHT, GRAY_RULE, 0.5)
        self.y += TOTALS_ROW_H

        self._draw(f"{self.t['subtotal']}:", X_TOTALS_LABEL, self.y, bold=True, align="right", max_width=30.0)
        self._draw_value(fmt_money(self.totals.sub_total, currency), X_RIGHT, self.y)
        self.y += TOTALS_ROW_H

        for kind, rate, amount in tax_lines:
            self._draw(
                f"{self.t[kind]} ({fmt_rate(rate)}):",
                X_TOTALS_LABEL,
                self.y,
                bold=True,
                align="right",
                max_width=50.0,
            )
            self._draw_value(fmt_money(amount, currency), X_RIGHT, self.y)
            self.y += TOTALS_ROW_H

        self._rule(X_TOTALS_LABEL, self.y - 2, X_RIGHT, 0, 0.3)
        self.y += 3

        self._draw(
            f"{self.t['grand_total']}:",
            X_TOTALS_LABEL,
            self.y,
            size=FONT_SIZE_TOTAL,
            bold=True,
            align="right",
            max_width=30.0,
        )
        self._draw_value(fmt_money(self.totals.grand_total, currency), X_RIGHT, self.y, size=FONT_SIZE_TOTAL, bold=True)
        self.y += 15

    def _draw_payment_block(self) -> None:
        details = payment_details(self.company, Language.EN)
        lines = [
            f"{self.t['account_name']} {details.account_name}",
            f"{self.t['account_number']} {details.account_number}",
            f"{self.t['ifsc']} {details.ifsc_code}",
        ]
        if details.branch_code:
            lines.append(f"{self.t['branch_code']} {details.branch_code}")
        self._ensure_space(SECTION_GAP + LABEL_GAP + LINE_H * (len(lines) + 2))

        self.y += SECTION_GAP
        self._draw(self.t["payment_instructions"], X_LEFT, self.y, size=FONT_SIZE_LABEL, bold=True)
        self.y += LABEL_GAP
        for line in lines:
            self._draw(line, X_LEFT, self.y)
            self.y += LINE_H
        self.y += LINE_H
        self._draw(self.t["payment_note"], X_LEFT, self.y)
        self.y += 15

    def _draw_signature(self) -> None:
        self._ensure_space(SECTION_GAP + LINE_H + 2)
        signature_y = self.y + SECTION_GAP
        self._rule(X_SIGNATURE_START, signature_y, X_RIGHT, 0, 0.3)
        self._draw(
            self.t["authorised_signature"],
            X_SIGNATURE_CAPTION,
            signature_y + LINE_H,
            size=FONT_SIZE_SMALL,
            align="right",
            max_width=60.0,
        )
        self.y = signature_y + 15

    def _draw_japanese_closing(self) -> None:
        self._ensure_space(15 + SECTION_GAP + 2)
        self.y += 15
        self._draw(
            self.t["thank_you_message"],
            X_CENTER,
            self.y,
            size=FONT_SIZE_SMALL,
            align="center",
            max_width=TABLE_W,
        )
        self.y += SECTION_GAP
        self._draw(self.t["company_seal"], X_SEAL, self.y, size=FONT_SIZE_SMALL, bold=True, align="right", max_width=60.0)

        details = payment_details(self.company, Language.JA)
        bank_lines = [
            f"{self.t['bank_name']} {details.bank_name}",
            f"{self.t['branch_name']} {details.branch_name}",
            f"{self.t['account_type']} {details.account_type}",
            f"{self.t['account_number']} {details.account_number}",
            f"{self.t['account_name']} {details.account_name}",
            self.t["payment_note"],
        ]
        self._ensure_space(15 + LINE_H * len(bank_lines) + 2)
        self.y += 15
        self._draw(self.t["payment_instructions"], X_LEFT, self.y, size=FONT_SIZE_LABEL, bold=True)
        for line in bank_lines:
            self.y += LINE_H
            self._draw(line, X_INDENT, self.y)

        self._ensure_space(12 + LINE_H * 2 + 2)
        self.y += 12
        self._draw(self.t["contact_info"], X_LEFT, self.y, size=FONT_SIZE_LABEL, bold=True)
        self.y += LINE_H
        self._draw(f"{self.t['contact_phone']} {self.t['phone_hours']}", X_INDENT, self.y)
        self.y += LINE_H
        self._draw(self.t["contact_email"], X_INDENT, self.y, language=Language.EN)

    def _draw_closing(self) -> None:
        if self.t.is_japanese:
            self._draw_japanese_closing()
            return
        self._ensure_space(LINE_H)
        self._draw(
            self.t["thank_you"],
            X_CENTER,
            self.y,
            size=FONT_SIZE_SMALL,
            align="center",
            max_width=TABLE_W,
        )

    def run(self) -> LayoutReport:
        self._draw_header()
        self._draw_parties()
        self._draw_table_header()
        self._draw_rows()
        self._draw_totals()
        if not self.t.is_japanese:
            self._draw_payment_block()
        self._draw_signature()
        self._draw_closing()
        self.report.page_count = self.pdf.page_no()
        return self.report
