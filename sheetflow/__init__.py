"""sheetflow: spreadsheet/CSV conversion node and cloud account REST client.

Package Structure:
- nodes: the Spreadsheet File node (fromFile / toFile)
- ingestion: format detection, CSV and workbook row extraction, binary store
- export: CSV/XLSX serialization
- api: cloud account REST client
- models: items, options, binary payloads, cloud payloads
"""

__version__ = "0.1.0"

from sheetflow.models.items import InputItem, OutputItem, PairedItem
from sheetflow.models.options import ConversionOptions, NodeParameters, Operation
from sheetflow.nodes.spreadsheet_file import SpreadsheetFileNode

__all__ = [
    "__version__",
    "ConversionOptions",
    "InputItem",
    "NodeParameters",
    "Operation",
    "OutputItem",
    "PairedItem",
    "SpreadsheetFileNode",
]
