"""Formatting and text measuring helpers."""

from __future__ import annotations

import re
from typing import Any, List, Protocol

from dateutil import parser as dateutil_parser

ADDRESS_SEPARATORS = re.compile(r"[,\n]")
JA_ADDRESS_SEPARATORS = re.compile(r"[,\n、]")


class TextWidthProvider(Protocol):
    def text_width(self, text: str, size: float, bold: bool = False) -> float:
        ...


def fmt_amount(amount: float) -> str:
    return f"{amount:,.2f}"


def fmt_money(amount: float, currency: str) -> str:
    return f"{currency} {fmt_amount(amount)}"


def fmt_hours(hours: Any) -> str:
    return f"{safe_float(hours):.2f}"


def fmt_rate(rate: float) -> str:
    return f"{rate:.2f}%"


def safe_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except Exception:
        return default


def fmt_date(raw: str) -> str:
    """Parse a date string and return it formatted as '14/03/2025'."""
    raw = raw.strip()
    if not raw:
        return raw
    try:
        dt = dateutil_parser.parse(raw)
        return dt.strftime("%d/%m/%Y")
    except (ValueError, OverflowError):
        return raw


def split_address(text: str, japanese: bool = False) -> List[str]:
    """Split a free-text address into display lines.

    Commas and newlines separate segments; Japanese addresses also break on
    the ideographic comma.
    """
    if not text:
        return []
    pattern = JA_ADDRESS_SEPARATORS if japanese else ADDRESS_SEPARATORS
    return [part.strip() for part in pattern.split(text) if part.strip()]


def wrap_text(
    fonts_obj: TextWidthProvider,
    text: str,
    max_width: float,
    font_size: float,
    bold: bool = False,
) -> List[str]:
    def line_width(value: str) -> float:
        return fonts_obj.text_width(value, font_size, bold=bold)

    def wrap_paragraph(paragraph: str) -> List[str]:
        words = paragraph.split()
        if not words:
            return [paragraph]

        lines: List[str] = []
        current = ""
        for word in words:
            candidate = word if not current else f"{current} {word}"
            if line_width(candidate) <= max_width:
                current = candidate
                continue

            if current:
                lines.append(current)
                current = ""

            # Words wider than the column (or unspaced CJK runs) break per character.
            chunk = ""
            for char in word:
                candidate_chunk = chunk + char
                if chunk and line_width(candidate_chunk) > max_width:
                    lines.append(chunk)
                    chunk = char
                else:
                    chunk = candidate_chunk
            current = chunk

        if current:
            lines.append(current)
        return lines

    result: List[str] = []
    for paragraph in text.split("\n"):
        result.extend(wrap_paragraph(paragraph))
    return result if result else [text]
