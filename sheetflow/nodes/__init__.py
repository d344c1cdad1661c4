"""Workflow nodes."""

from sheetflow.nodes.spreadsheet_file import SpreadsheetFileNode

__all__ = ["SpreadsheetFileNode"]
