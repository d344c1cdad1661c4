"""Workflow items and extracted rows.

Items are what flows between nodes: a JSON record plus optional binary
payloads. Rows are what the extractors produce before they become items.
"""

from dataclasses import dataclass, field
from typing import Any

from sheetflow.models.binary import BinaryData


# ---------------------------------------------------------------------------
# Rows
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class KeyedRow:
    """A row keyed by column name (header row present)."""

    values: dict[str, Any]


@dataclass(frozen=True)
class PositionalRow:
    """A row of values in column order (no header row)."""

    values: list[Any]


Row = KeyedRow | PositionalRow


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PairedItem:
    """Index of the input item an output item was derived from."""

    item: int


@dataclass(frozen=True)
class InputItem:
    """One item of a node's input batch. Its index is its position in the batch."""

    json: dict[str, Any] = field(default_factory=dict)
    binary: dict[str, BinaryData] = field(default_factory=dict)


@dataclass(frozen=True)
class OutputItem:
    """One item of a node's output, tagged with the input item(s) it came from."""

    json: dict[str, Any]
    paired_item: PairedItem | list[PairedItem]
    binary: dict[str, BinaryData] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly view used by the CLI."""
        if isinstance(self.paired_item, list):
            paired: Any = [{"item": p.item} for p in self.paired_item]
        else:
            paired = {"item": self.paired_item.item}
        out: dict[str, Any] = {"json": self.json, "pairedItem": paired}
        if self.binary:
            out["binary"] = {
                name: bd.model_dump(exclude={"data"}, by_alias=True)
                for name, bd in self.binary.items()
            }
        return out


def generate_paired_items(count: int) -> list[PairedItem]:
    """Paired-item references covering a whole batch of ``count`` inputs."""
    return [PairedItem(item=i) for i in range(count)]
