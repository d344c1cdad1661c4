"""Serialize a batch of records to a single CSV or XLSX file.

The column set is the union of the records' keys in first-seen order; a
record without a given key leaves that cell empty. Deterministic, no I/O
beyond the in-memory buffer.
"""

import csv
import io
import json
import logging
from collections.abc import Sequence
from typing import Any

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE

from sheetflow.ingestion.csv_reader import DELIMITER_STANDIN
from sheetflow.models.binary import BinaryData, guess_mime_type
from sheetflow.models.options import ConversionOptions, OutputFormat

logger = logging.getLogger(__name__)

DEFAULT_SHEET_NAME = "Sheet"


def collect_columns(records: Sequence[dict[str, Any]]) -> list[str]:
    """Union of record keys, in the order they first appear."""
    seen: dict[str, None] = {}
    for record in records:
        for key in record:
            seen.setdefault(key, None)
    return list(seen)


def _cell_value(value: Any) -> Any:
    """Scalars go in as-is; nested structures are written as JSON text."""
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, default=str)
    return value


def _xlsx_value(value: Any) -> Any:
    """Cell value for a worksheet; XML-illegal control characters are dropped."""
    value = _cell_value(value)
    if isinstance(value, str):
        return ILLEGAL_CHARACTERS_RE.sub("", value)
    return value


class SpreadsheetWriter:
    """Build CSV/XLSX payloads from JSON-like records."""

    def write(
        self,
        records: Sequence[dict[str, Any]],
        output_format: OutputFormat,
        options: ConversionOptions,
    ) -> bytes:
        """Return the file bytes for ``records`` in ``output_format``."""
        columns = collect_columns(records)
        if output_format == OutputFormat.CSV:
            content = self._write_csv(records, columns, options)
        else:
            content = self._write_xlsx(records, columns, options)
        logger.info(
            "Wrote %d records x %d columns as %s (%d bytes)",
            len(records), len(columns), output_format.value, len(content),
        )
        return content

    def write_binary(
        self,
        records: Sequence[dict[str, Any]],
        output_format: OutputFormat,
        options: ConversionOptions,
    ) -> BinaryData:
        """Like ``write`` but wrapped as an in-memory BinaryData with file metadata."""
        content = self.write(records, output_format, options)
        file_name = options.file_name or f"spreadsheet.{output_format.value}"
        return BinaryData(
            data=content,
            file_name=file_name,
            file_extension=output_format.value,
            file_size=len(content),
            mime_type=guess_mime_type(output_format.value),
        )

    # ------------------------------------------------------------------
    # Formats
    # ------------------------------------------------------------------

    @staticmethod
    def _write_csv(
        records: Sequence[dict[str, Any]],
        columns: list[str],
        options: ConversionOptions,
    ) -> bytes:
        delimiter = options.delimiter
        multi_char = len(delimiter) > 1

        def encode(value: Any) -> Any:
            value = _cell_value(value)
            if multi_char and isinstance(value, str):
                if DELIMITER_STANDIN in value:
                    msg = f"Value contains reserved character U+{ord(DELIMITER_STANDIN):04X}"
                    raise ValueError(msg)
                # csv quotes any field holding the stand-in, i.e. the delimiter
                return value.replace(delimiter, DELIMITER_STANDIN)
            return value

        buf = io.StringIO()
        writer = csv.writer(
            buf,
            delimiter=DELIMITER_STANDIN if multi_char else delimiter,
            lineterminator="\n",
        )
        if options.header_row:
            writer.writerow([encode(col) for col in columns])
        for record in records:
            writer.writerow([encode(record.get(col, "")) for col in columns])

        text = buf.getvalue()
        if multi_char:
            text = text.replace(DELIMITER_STANDIN, delimiter)
        return text.encode("utf-8")

    @staticmethod
    def _write_xlsx(
        records: Sequence[dict[str, Any]],
        columns: list[str],
        options: ConversionOptions,
    ) -> bytes:
        wb = Workbook()
        ws = wb.active
        ws.title = options.sheet_name or DEFAULT_SHEET_NAME

        def put(row: int, col: int, value: Any) -> None:
            cell = ws.cell(row=row, column=col, value=_xlsx_value(value))
            if isinstance(cell.value, str):
                # text starting with "=" stays text, never a formula
                cell.data_type = "s"

        row_idx = 1
        if options.header_row:
            for col, name in enumerate(columns, 1):
                put(row_idx, col, name)
            row_idx += 1

        for record in records:
            for col, name in enumerate(columns, 1):
                if name in record and record[name] is not None:
                    put(row_idx, col, record[name])
            row_idx += 1

        buf = io.BytesIO()
        wb.save(buf)
        return buf.getvalue()
