"""Command-line entry point for the Spreadsheet File node.

Usage:
    python -m sheetflow from-file PATH [--format autodetect|csv|xlsx|xls] [options]
    python -m sheetflow to-file JSON_PATH OUT_PATH [--format csv|xlsx] [options]

``from-file`` prints the output items as JSON. ``to-file`` reads a JSON array
of records and writes them as one spreadsheet. With ``--use-store`` payloads
go through the binary data store rooted at BINARY_DATA_PATH.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

import structlog
from pydantic import ValidationError

from sheetflow.config.settings import get_settings
from sheetflow.errors import NodeOperationError
from sheetflow.ingestion.binary_store import BinaryDataStore
from sheetflow.models.binary import BinaryData, extension_of
from sheetflow.models.items import InputItem
from sheetflow.models.options import ConversionOptions, NodeParameters, Operation
from sheetflow.nodes.spreadsheet_file import SpreadsheetFileNode
from sheetflow.observability.log_config import configure_logging

logger = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sheetflow",
        description="Convert between CSV/XLSX files and JSON records",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    read = sub.add_parser("from-file", help="Read rows from a CSV/XLSX/XLS file")
    read.add_argument("path", type=Path)
    read.add_argument(
        "--format",
        default="autodetect",
        choices=["autodetect", "csv", "xlsx", "xls"],
    )
    read.add_argument("--sheet-name", default=None)
    read.add_argument("--range", dest="cell_range", default=None)
    read.add_argument("--delimiter", default=",")
    read.add_argument("--from-line", type=int, default=1)
    read.add_argument("--max-row-count", type=int, default=-1)
    read.add_argument("--include-empty-cells", action="store_true")
    read.add_argument("--enable-bom", action="store_true")
    read.add_argument("--read-as-string", action="store_true")
    read.add_argument("--raw-data", action="store_true")
    read.add_argument("--no-header-row", action="store_true")
    read.add_argument(
        "--use-store",
        action="store_true",
        help="Copy the file into the binary data store and read it by reference",
    )

    write = sub.add_parser("to-file", help="Write a JSON array of records to CSV/XLSX")
    write.add_argument("json_path", type=Path)
    write.add_argument("out_path", type=Path)
    write.add_argument("--format", default=None, choices=["csv", "xlsx"])
    write.add_argument("--sheet-name", default=None)
    write.add_argument("--delimiter", default=",")
    write.add_argument("--no-header-row", action="store_true")
    write.add_argument(
        "--use-store",
        action="store_true",
        help="Also keep the written file in the binary data store",
    )

    return parser


def _store_from_args(args: argparse.Namespace) -> BinaryDataStore | None:
    if not args.use_store:
        return None
    return BinaryDataStore(storage_root=get_settings().BINARY_DATA_PATH)


def _from_file(args: argparse.Namespace) -> int:
    content = args.path.read_bytes()
    store = _store_from_args(args)
    if store is not None:
        binary = store.store(content, file_name=args.path.name)
    else:
        binary = BinaryData.from_bytes(content, file_name=args.path.name)
    params = NodeParameters(
        operation=Operation.FROM_FILE,
        file_format=args.format,
        options=ConversionOptions(
            delimiter=args.delimiter,
            from_line=args.from_line,
            max_row_count=args.max_row_count,
            include_empty_cells=args.include_empty_cells,
            header_row=not args.no_header_row,
            sheet_name=args.sheet_name,
            range=args.cell_range,
            read_as_string=args.read_as_string,
            raw_data=args.raw_data,
            enable_bom=args.enable_bom,
        ),
    )

    node = SpreadsheetFileNode(params, binary_store=store)
    items = asyncio.run(node.execute([InputItem(binary={"data": binary})]))
    json.dump([item.to_dict() for item in items], sys.stdout, indent=2, default=str)
    sys.stdout.write("\n")
    return 0


def _to_file(args: argparse.Namespace) -> int:
    records = json.loads(args.json_path.read_text(encoding="utf-8"))
    if not isinstance(records, list) or not all(isinstance(r, dict) for r in records):
        print("Input JSON must be an array of objects", file=sys.stderr)
        return 1

    output_format = args.format or extension_of(args.out_path.name) or "xlsx"
    params = NodeParameters(
        operation=Operation.TO_FILE,
        file_format=output_format,
        options=ConversionOptions(
            delimiter=args.delimiter,
            header_row=not args.no_header_row,
            sheet_name=args.sheet_name,
            file_name=args.out_path.name,
        ),
    )

    store = _store_from_args(args)
    node = SpreadsheetFileNode(params, binary_store=store)
    items = asyncio.run(node.execute([InputItem(json=r) for r in records]))
    binary = items[0].binary["data"]
    content = store.get_buffer(binary) if store is not None else binary.data
    args.out_path.write_bytes(content)
    logger.info(
        "file_written",
        path=str(args.out_path),
        records=len(records),
        size=binary.file_size,
        binary_id=binary.id,
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    configure_logging(get_settings())
    args = build_parser().parse_args(argv)

    try:
        if args.command == "from-file":
            return _from_file(args)
        return _to_file(args)
    except NodeOperationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except ValidationError as exc:
        print(f"Error: invalid option value\n{exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
