"""Spreadsheet row extraction.

Loads a workbook, picks the sheet to read and converts its cell grid into
rows, honoring the header-row, range and empty-cell options.
"""

import logging
from pathlib import Path
from typing import Any

from openpyxl.utils.cell import range_boundaries

from sheetflow.errors import EmptyWorkbookError, ParseError, SheetNotFoundError
from sheetflow.ingestion.workbook import Sheet, Workbook, load_workbook
from sheetflow.models.items import KeyedRow, PositionalRow, Row
from sheetflow.models.options import ConversionOptions

logger = logging.getLogger(__name__)

EMPTY_HEADER = "__EMPTY"


class SpreadsheetRowExtractor:
    """Turn spreadsheet payloads into rows according to ConversionOptions."""

    def __init__(self, options: ConversionOptions) -> None:
        self._options = options

    def extract(self, source: bytes | Path) -> list[Row]:
        """Load the payload and extract rows from the selected sheet."""
        workbook = load_workbook(
            source,
            read_as_string=self._options.read_as_string,
            raw_data=self._options.raw_data,
        )
        return self.extract_workbook(workbook)

    def extract_workbook(self, workbook: Workbook) -> list[Row]:
        opts = self._options
        sheet = select_sheet(workbook, opts.sheet_name)
        rows = sheet_to_rows(
            sheet,
            cell_range=resolve_range(opts.range),
            header_row=opts.header_row,
            include_empty_cells=opts.include_empty_cells,
        )
        logger.debug("Sheet %r produced %d rows", sheet.name, len(rows))
        return rows


def select_sheet(workbook: Workbook, sheet_name: str | None) -> Sheet:
    """The named sheet, or the first one when no name is given.

    Raises:
        EmptyWorkbookError: If the workbook has no sheets.
        SheetNotFoundError: If ``sheet_name`` is not one of the workbook's sheets.
    """
    if not workbook.sheet_names:
        raise EmptyWorkbookError()

    if sheet_name:
        if sheet_name not in workbook.sheets:
            raise SheetNotFoundError(sheet_name)
        return workbook.sheets[sheet_name]

    return workbook.sheets[workbook.sheet_names[0]]


def resolve_range(value: str | int | None) -> int | str | None:
    """Normalize the ``range`` option.

    Numeric values (ints or digit strings) are a starting row index; anything
    else is an A1 range expression. Falsy values mean no restriction.
    """
    if not value:
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if text.isdigit():
        return int(text)
    return text


# ---------------------------------------------------------------------------
# Grid -> rows
# ---------------------------------------------------------------------------


def sheet_to_rows(
    sheet: Sheet,
    *,
    cell_range: int | str | None = None,
    header_row: bool = True,
    include_empty_cells: bool = False,
) -> list[Row]:
    """Convert a sheet's cells to rows.

    Args:
        sheet: Sheet to read.
        cell_range: Starting row index (0-based) or A1 range such as ``"A2:D9"``.
            Defaults to the sheet's used range.
        header_row: Use the first row of the range as keys. Otherwise every
            row, the first included, is returned positionally.
        include_empty_cells: Materialize empty cells as ``""``.

    Raises:
        ParseError: If ``cell_range`` is negative or not a valid A1 range.
    """
    bounds = sheet.used_bounds()
    if bounds is None:
        return []

    min_row, min_col, max_row, max_col = _apply_range(bounds, cell_range)
    if min_row > max_row or min_col > max_col:
        return []

    columns = range(min_col, max_col + 1)
    if not header_row:
        return [
            _positional_row(sheet, r, columns, include_empty_cells)
            for r in range(min_row, max_row + 1)
        ]

    headers = _headers(sheet, min_row, columns)
    rows: list[Row] = []
    for r in range(min_row + 1, max_row + 1):
        values: dict[str, Any] = {}
        is_empty = True
        for key, c in zip(headers, columns):
            value = sheet.cell(r, c)
            if value is None:
                if include_empty_cells:
                    values[key] = ""
                continue
            values[key] = value
            is_empty = False
        if not is_empty:
            rows.append(KeyedRow(values=values))
    return rows


def _apply_range(
    bounds: tuple[int, int, int, int],
    cell_range: int | str | None,
) -> tuple[int, int, int, int]:
    min_row, min_col, max_row, max_col = bounds
    if cell_range is None:
        return bounds
    if isinstance(cell_range, int):
        if cell_range < 0:
            raise ParseError(f"Invalid range: {cell_range!r}")
        return cell_range, min_col, max_row, max_col

    try:
        # 1-based (min_col, min_row, max_col, max_row); None for open-ended ranges
        c0, r0, c1, r1 = range_boundaries(cell_range.upper())
    except (ValueError, TypeError) as exc:
        raise ParseError(f"Invalid range: {cell_range!r}") from exc

    return (
        r0 - 1 if r0 is not None else min_row,
        c0 - 1 if c0 is not None else min_col,
        r1 - 1 if r1 is not None else max_row,
        c1 - 1 if c1 is not None else max_col,
    )


def _headers(sheet: Sheet, row: int, columns: range) -> list[str]:
    headers: list[str] = []
    for c in columns:
        value = sheet.cell(row, c)
        base = EMPTY_HEADER if value is None else str(value)
        key = base
        counter = 0
        while key in headers:
            counter += 1
            key = f"{base}_{counter}"
        headers.append(key)
    return headers


def _positional_row(
    sheet: Sheet,
    row: int,
    columns: range,
    include_empty_cells: bool,
) -> PositionalRow:
    values = [sheet.cell(row, c) for c in columns]
    if include_empty_cells:
        return PositionalRow(values=["" if v is None else v for v in values])
    while values and values[-1] is None:
        values.pop()
    return PositionalRow(values=values)
