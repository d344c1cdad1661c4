"""Map extracted rows to output items."""

from collections.abc import Iterable

from sheetflow.models.items import KeyedRow, OutputItem, PairedItem, PositionalRow, Row


def row_to_item(row: Row, item_index: int) -> OutputItem:
    """Wrap one row as an output item paired with its source input item.

    Positional rows go under a single ``row`` field; keyed rows become the
    item's fields directly.
    """
    paired = PairedItem(item=item_index)
    if isinstance(row, PositionalRow):
        return OutputItem(json={"row": list(row.values)}, paired_item=paired)
    if isinstance(row, KeyedRow):
        return OutputItem(json=dict(row.values), paired_item=paired)
    raise TypeError(f"Unsupported row type: {type(row).__name__}")


def rows_to_items(rows: Iterable[Row], item_index: int) -> list[OutputItem]:
    return [row_to_item(row, item_index) for row in rows]
