"""CSV row extraction.

Parses CSV bytes or a byte stream with the stdlib csv module and applies
the node options: delimiter, starting line, byte-order mark, header row,
row cap and empty-cell stripping.
"""

import csv
import io
import logging
from collections.abc import Iterable, Iterator
from itertools import islice
from typing import BinaryIO

from sheetflow.errors import ParseError
from sheetflow.models.items import KeyedRow, PositionalRow, Row
from sheetflow.models.options import ConversionOptions

logger = logging.getLogger(__name__)

# Private-use character standing in for a multi-character delimiter, which
# the csv module cannot take directly.
DELIMITER_STANDIN = "\ue000"


def _check_delimiter(delimiter: str) -> None:
    if not delimiter or any(ch in delimiter for ch in '"\r\n'):
        raise ParseError(f"Invalid delimiter: {delimiter!r}")


def _substitute_delimiter(lines: Iterable[str], delimiter: str) -> Iterator[str]:
    for line in lines:
        if DELIMITER_STANDIN in line:
            msg = f"Input contains reserved character U+{ord(DELIMITER_STANDIN):04X}"
            raise ParseError(msg)
        yield line.replace(delimiter, DELIMITER_STANDIN)


class CsvRowExtractor:
    """Turn CSV input into rows according to ConversionOptions."""

    def __init__(self, options: ConversionOptions) -> None:
        self._options = options

    @property
    def encoding(self) -> str:
        # utf-8-sig strips a leading BOM; plain utf-8 keeps it on the first field
        return "utf-8-sig" if self._options.enable_bom else "utf-8"

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def extract_bytes(self, content: bytes) -> list[Row]:
        """Parse an in-memory CSV payload."""
        try:
            text = content.decode(self.encoding)
        except UnicodeDecodeError as exc:
            raise ParseError(f"Invalid CSV encoding: {exc}") from exc
        return list(self._parse(io.StringIO(text, newline="")))

    def extract_stream(self, stream: BinaryIO) -> list[Row]:
        """Parse a CSV byte stream.

        Reading stops at EOF or as soon as the row cap is reached. The caller
        owns the stream and closes it.
        """
        wrapper = io.TextIOWrapper(stream, encoding=self.encoding, newline="")
        try:
            return list(self._parse(wrapper))
        except UnicodeDecodeError as exc:
            raise ParseError(f"Invalid CSV encoding: {exc}") from exc
        finally:
            # hand the stream back to its owner untouched
            wrapper.detach()

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    def _parse(self, lines: Iterable[str]) -> Iterator[Row]:
        opts = self._options
        delimiter = opts.delimiter
        _check_delimiter(delimiter)
        multi_char = len(delimiter) > 1

        lines = islice(lines, opts.from_line - 1, None)
        if multi_char:
            lines = _substitute_delimiter(lines, delimiter)
        reader = csv.reader(
            lines,
            delimiter=DELIMITER_STANDIN if multi_char else delimiter,
            strict=True,
        )
        limit = opts.max_row_count
        emitted = 0
        columns: list[str] | None = None
        if limit == 0:
            return

        try:
            for record in reader:
                if not record:
                    continue
                if multi_char:
                    # quoted fields keep the delimiter text
                    record = [v.replace(DELIMITER_STANDIN, delimiter) for v in record]

                if not opts.header_row:
                    yield PositionalRow(values=record)
                    emitted += 1
                    if emitted == limit:
                        break
                    continue

                if columns is None:
                    columns = record
                    continue

                if len(record) != len(columns):
                    line = reader.line_num + opts.from_line - 1
                    msg = (
                        "Invalid Record Length: columns length is "
                        f"{len(columns)}, got {len(record)} on line {line}"
                    )
                    raise ParseError(msg)

                values = dict(zip(columns, record))
                if not opts.include_empty_cells:
                    values = {k: v for k, v in values.items() if v != ""}
                yield KeyedRow(values=values)
                emitted += 1
                if emitted == limit:
                    break
        except csv.Error as exc:
            raise ParseError(str(exc)) from exc

        logger.debug("CSV parse finished: %d rows", emitted)
