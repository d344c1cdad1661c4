"""Reading tabular payloads into rows."""

from sheetflow.ingestion.csv_reader import CsvRowExtractor
from sheetflow.ingestion.format_detector import ParsePath, detect_format
from sheetflow.ingestion.spreadsheet_reader import SpreadsheetRowExtractor

__all__ = [
    "CsvRowExtractor",
    "ParsePath",
    "SpreadsheetRowExtractor",
    "detect_format",
]
