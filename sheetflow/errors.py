"""Exceptions raised by the spreadsheet conversion pipeline."""


class SheetflowError(Exception):
    """Base class for sheetflow errors."""


class ParseError(SheetflowError, ValueError):
    """The CSV or spreadsheet engine rejected the input."""


class EmptyWorkbookError(SheetflowError, ValueError):
    """The workbook contains no sheets."""

    def __init__(self) -> None:
        super().__init__("Spreadsheet does not have any sheets!")


class SheetNotFoundError(SheetflowError, ValueError):
    """A sheet was requested by name and the workbook does not have it."""

    def __init__(self, sheet_name: str) -> None:
        self.sheet_name = sheet_name
        super().__init__(f'Spreadsheet does not contain sheet called "{sheet_name}"!')


class BinaryDataError(SheetflowError, ValueError):
    """An item's binary payload is missing or cannot be resolved."""


class NodeOperationError(SheetflowError):
    """A node run failed. ``item_index`` is None when the whole batch failed."""

    def __init__(self, message: str, *, item_index: int | None = None) -> None:
        self.item_index = item_index
        suffix = f" [item {item_index}]" if item_index is not None else ""
        super().__init__(f"{message}{suffix}")
        self.description = message
