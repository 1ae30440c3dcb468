"""Vertical cursor rules for the line-item table and the blocks after it."""

from __future__ import annotations

from typing import Tuple

# Millimetres on an A4 page, top-left origin.
PAGE_BOTTOM_Y = 287.0
TOP_MARGIN_Y = 20.0
TABLE_BREAK_Y = 250.0
ROW_LINE_H = 6.0
MIN_ROW_H = 8.0

# Earliest y a first table row can start at: the header ends at 33, empty
# parties blocks end at 40 plus a 10 mm gap, then the header band adds 3 + 6.
FIRST_ROW_MIN_Y = 59.0


def row_height(line_count: int) -> float:
    return max(MIN_ROW_H, max(1, line_count) * ROW_LINE_H)


def advance_row(y: float, height: float) -> Tuple[float, bool]:
    """Move the cursor past a placed row; ``True`` means start a new page."""
    y += height
    if y > TABLE_BREAK_Y:
        return TOP_MARGIN_Y, True
    return y, False


def needs_page_break(y: float, block_height: float) -> bool:
    return y + block_height > PAGE_BOTTOM_Y


def _rows_before_break(start_y: float) -> int:
    return int((TABLE_BREAK_Y - start_y) // MIN_ROW_H) + 1


FIRST_PAGE_ROWS = _rows_before_break(FIRST_ROW_MIN_Y)
CONTINUATION_PAGE_ROWS = _rows_before_break(TOP_MARGIN_Y)


def estimate_page_count(row_count: int) -> int:
    """Lower bound on the pages a table of ``row_count`` rows spans."""
    if row_count < FIRST_PAGE_ROWS:
        return 1
    return 2 + (row_count - FIRST_PAGE_ROWS) // CONTINUATION_PAGE_ROWS


def max_rows_for_pages(page_count: int) -> int:
    if page_count <= 1:
        return FIRST_PAGE_ROWS - 1
    return FIRST_PAGE_ROWS + CONTINUATION_PAGE_ROWS * (page_count - 1) - 1
