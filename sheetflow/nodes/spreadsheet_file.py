"""Spreadsheet File node: convert between tabular files and workflow items.

``fromFile`` reads each input item's binary payload (CSV, XLSX or XLS) and
emits one output item per row. ``toFile`` writes the JSON of the whole
input batch into a single CSV/XLSX payload.

Items are processed one at a time, in order. With ``continue_on_fail`` a
failing item turns into an ``{"error": ...}`` item and processing resumes;
otherwise the run stops with a NodeOperationError naming the item.
"""

from collections.abc import Sequence

import structlog

from sheetflow.errors import BinaryDataError, NodeOperationError
from sheetflow.export.spreadsheet_writer import SpreadsheetWriter
from sheetflow.ingestion.binary_store import BinaryDataStore, assert_binary_data
from sheetflow.ingestion.csv_reader import CsvRowExtractor
from sheetflow.ingestion.format_detector import ParsePath, detect_format
from sheetflow.ingestion.row_mapper import rows_to_items
from sheetflow.ingestion.spreadsheet_reader import SpreadsheetRowExtractor
from sheetflow.models.binary import BinaryData
from sheetflow.models.items import (
    InputItem,
    OutputItem,
    PairedItem,
    Row,
    generate_paired_items,
)
from sheetflow.models.options import NodeParameters, Operation

logger = structlog.get_logger(__name__)


class SpreadsheetFileNode:
    """Runs one configured Spreadsheet File conversion over a batch of items."""

    def __init__(
        self,
        parameters: NodeParameters,
        *,
        binary_store: BinaryDataStore | None = None,
    ) -> None:
        self._params = parameters
        self._store = binary_store
        self._writer = SpreadsheetWriter()

    async def execute(self, items: Sequence[InputItem]) -> list[OutputItem]:
        """Run the configured operation over ``items``.

        Raises:
            NodeOperationError: On the first failure when ``continue_on_fail`` is off.
        """
        if self._params.operation == Operation.TO_FILE:
            return await self._to_file(items)
        return await self._from_file(items)

    # ------------------------------------------------------------------
    # fromFile
    # ------------------------------------------------------------------

    async def _from_file(self, items: Sequence[InputItem]) -> list[OutputItem]:
        output: list[OutputItem] = []

        for index, item in enumerate(items):
            try:
                rows = await self._read_rows(item)
            except Exception as exc:
                if self._params.continue_on_fail:
                    logger.warning("spreadsheet_item_failed", item_index=index, error=str(exc))
                    output.append(
                        OutputItem(json={"error": str(exc)}, paired_item=PairedItem(item=index)),
                    )
                    continue
                logger.error("spreadsheet_read_aborted", item_index=index, error=str(exc))
                raise NodeOperationError(str(exc), item_index=index) from exc

            if not rows:
                logger.info("spreadsheet_item_empty", item_index=index)
                continue
            output.extend(rows_to_items(rows, index))

        logger.info("spreadsheet_read_done", items=len(items), output_items=len(output))
        return output

    async def _read_rows(self, item: InputItem) -> list[Row]:
        params = self._params
        options = params.options
        binary = assert_binary_data(item, params.binary_property_name)
        parse_path = detect_format(params.input_format, binary)

        if parse_path == ParsePath.CSV:
            extractor = CsvRowExtractor(options)
            if binary.id is not None:
                with self._require_store(binary).open_stream(binary.id) as stream:
                    return extractor.extract_stream(stream)
            return extractor.extract_bytes(binary.data)

        sheet_extractor = SpreadsheetRowExtractor(options)
        if binary.id is not None:
            return sheet_extractor.extract(self._require_store(binary).get_path(binary.id))
        return sheet_extractor.extract(binary.data)

    def _require_store(self, binary: BinaryData) -> BinaryDataStore:
        if self._store is None:
            msg = (
                f"Binary data {binary.id} is stored by reference "
                "but no binary data store is configured"
            )
            raise BinaryDataError(msg)
        return self._store

    # ------------------------------------------------------------------
    # toFile
    # ------------------------------------------------------------------

    async def _to_file(self, items: Sequence[InputItem]) -> list[OutputItem]:
        params = self._params
        paired = generate_paired_items(len(items))

        try:
            records = [item.json for item in items]
            binary = self._writer.write_binary(records, params.output_format, params.options)
            if self._store is not None:
                binary = self._store.store(
                    binary.data,
                    file_name=binary.file_name,
                    mime_type=binary.mime_type,
                )
        except Exception as exc:
            if params.continue_on_fail:
                logger.warning("spreadsheet_write_failed", items=len(items), error=str(exc))
                return [OutputItem(json={"error": str(exc)}, paired_item=paired)]
            logger.error("spreadsheet_write_aborted", items=len(items), error=str(exc))
            raise NodeOperationError(str(exc)) from exc

        logger.info(
            "spreadsheet_write_done",
            items=len(items),
            file_name=binary.file_name,
            size=binary.file_size,
        )
        return [
            OutputItem(
                json={},
                binary={params.binary_property_name: binary},
                paired_item=paired,
            ),
        ]
