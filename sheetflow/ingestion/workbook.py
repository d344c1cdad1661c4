"""Workbook loading.

Reads spreadsheet payloads into a plain ``Workbook``: named sheets in
declared order, each a grid of cell values addressed from A1. The format is
picked by magic number: XLSX (ZIP) goes through openpyxl, legacy XLS (OLE)
through xlrd, and anything else is read as delimited text.
"""

import csv
import io
import logging
import re
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import openpyxl
import xlrd
from openpyxl.utils.exceptions import InvalidFileException

from sheetflow.errors import ParseError

logger = logging.getLogger(__name__)

ZIP_MAGIC = b"PK\x03\x04"
OLE_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"

TEXT_SHEET_NAME = "Sheet1"

_INT_RE = re.compile(r"^[+-]?\d+$")
_FLOAT_RE = re.compile(r"^[+-]?(\d+\.\d*|\.\d+|\d+)([eE][+-]?\d+)?$")


@dataclass
class Sheet:
    """One worksheet. ``grid[r][c]`` is the cell at row r+1, column c+1."""

    name: str
    grid: list[list[Any]] = field(default_factory=list)

    def cell(self, row: int, col: int) -> Any:
        if row < 0 or col < 0:
            return None
        if row >= len(self.grid) or col >= len(self.grid[row]):
            return None
        return self.grid[row][col]

    def used_bounds(self) -> tuple[int, int, int, int] | None:
        """(min_row, min_col, max_row, max_col) of non-empty cells, 0-based, or None."""
        rows = [r for r, row in enumerate(self.grid) if any(v is not None for v in row)]
        if not rows:
            return None
        cols = [
            c
            for row in self.grid
            for c, v in enumerate(row)
            if v is not None
        ]
        return rows[0], min(cols), rows[-1], max(cols)


@dataclass
class Workbook:
    """Sheets of a loaded spreadsheet, in declared order."""

    sheets: dict[str, Sheet] = field(default_factory=dict)

    @property
    def sheet_names(self) -> list[str]:
        return list(self.sheets)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def load_workbook(
    source: bytes | Path,
    *,
    read_as_string: bool = False,
    raw_data: bool = False,
) -> Workbook:
    """Load a workbook from bytes or from a file on disk.

    Args:
        source: Payload bytes or path to the payload.
        read_as_string: Skip format detection and read the payload as text.
        raw_data: In the text path, keep every value as the string it was read as.

    Raises:
        ParseError: If the payload is a damaged workbook or not a spreadsheet.
    """
    head = source[:8] if isinstance(source, bytes) else _read_head(source)

    if not read_as_string:
        if head.startswith(ZIP_MAGIC):
            return _load_xlsx(source)
        if head == OLE_MAGIC:
            return _load_xls(source)

    content = source if isinstance(source, bytes) else source.read_bytes()
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        msg = "Unsupported spreadsheet format: payload is not XLSX, XLS or text"
        raise ParseError(msg) from exc
    return _load_text(text, raw_data=raw_data)


def _read_head(path: Path) -> bytes:
    with path.open("rb") as fh:
        return fh.read(8)


def _load_xlsx(source: bytes | Path) -> Workbook:
    target = io.BytesIO(source) if isinstance(source, bytes) else source
    try:
        wb = openpyxl.load_workbook(target, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as exc:
        raise ParseError(f"Invalid XLSX workbook: {exc}") from exc

    workbook = Workbook()
    for ws in wb.worksheets:
        grid = [list(row) for row in ws.iter_rows(values_only=True)]
        workbook.sheets[ws.title] = Sheet(name=ws.title, grid=grid)
    wb.close()

    logger.debug("Loaded XLSX workbook with sheets %s", workbook.sheet_names)
    return workbook


def _load_xls(source: bytes | Path) -> Workbook:
    try:
        if isinstance(source, bytes):
            book = xlrd.open_workbook(file_contents=source)
        else:
            book = xlrd.open_workbook(filename=str(source))
    except xlrd.XLRDError as exc:
        raise ParseError(f"Invalid XLS workbook: {exc}") from exc

    workbook = Workbook()
    for sheet in book.sheets():
        grid = [
            [_xls_value(sheet.cell(r, c), book.datemode) for c in range(sheet.ncols)]
            for r in range(sheet.nrows)
        ]
        workbook.sheets[sheet.name] = Sheet(name=sheet.name, grid=grid)
    book.release_resources()

    logger.debug("Loaded XLS workbook with sheets %s", workbook.sheet_names)
    return workbook


def _xls_value(cell: xlrd.sheet.Cell, datemode: int) -> Any:
    ctype = cell.ctype
    if ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK, xlrd.XL_CELL_ERROR):
        return None
    if ctype == xlrd.XL_CELL_NUMBER:
        value = cell.value
        return int(value) if float(value).is_integer() else value
    if ctype == xlrd.XL_CELL_DATE:
        return xlrd.xldate_as_datetime(cell.value, datemode)
    if ctype == xlrd.XL_CELL_BOOLEAN:
        return bool(cell.value)
    return cell.value


def _load_text(text: str, *, raw_data: bool) -> Workbook:
    try:
        records = list(csv.reader(io.StringIO(text, newline="")))
    except csv.Error as exc:
        raise ParseError(str(exc)) from exc

    grid = [
        [_text_value(v, raw_data=raw_data) for v in record]
        for record in records
    ]
    return Workbook(sheets={TEXT_SHEET_NAME: Sheet(name=TEXT_SHEET_NAME, grid=grid)})


def _text_value(value: str, *, raw_data: bool) -> Any:
    if value == "":
        return None
    if raw_data:
        return value
    upper = value.upper()
    if upper == "TRUE":
        return True
    if upper == "FALSE":
        return False
    if _INT_RE.match(value):
        return int(value)
    if _FLOAT_RE.match(value):
        return float(value)
    return value
