"""Tests for SpreadsheetFileNode.

Covers: fromFile over inline and stored payloads, format hints, failure
policy per item, empty results, and toFile serialization with paired items.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import BinaryIO

import pytest

from sheetflow.errors import NodeOperationError
from sheetflow.ingestion.binary_store import BinaryDataStore
from sheetflow.models.binary import BinaryData
from sheetflow.models.items import InputItem, PairedItem
from sheetflow.models.options import ConversionOptions, NodeParameters
from sheetflow.nodes.spreadsheet_file import SpreadsheetFileNode

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00\xff" * 64


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class RecordingStore(BinaryDataStore):
    """Store that keeps a handle on every stream it opens."""

    def __init__(self, storage_root: str) -> None:
        super().__init__(storage_root)
        self.streams: list[BinaryIO] = []

    @contextmanager
    def open_stream(self, binary_id: str) -> Iterator[BinaryIO]:
        with super().open_stream(binary_id) as stream:
            self.streams.append(stream)
            yield stream


def _item(content: bytes, file_name: str, prop: str = "data") -> InputItem:
    return InputItem(binary={prop: BinaryData.from_bytes(content, file_name=file_name)})


def _node(**params) -> SpreadsheetFileNode:
    return SpreadsheetFileNode(NodeParameters.model_validate(params))


# ===================================================================
# fromFile
# ===================================================================


class TestFromFile:
    @pytest.mark.anyio
    async def test_csv_rows_become_items(self, make_csv_bytes) -> None:
        content = make_csv_bytes([["name", "qty"], ["bolt", "4"], ["nut", "10"]])
        out = await _node().execute([_item(content, "parts.csv")])
        assert [o.json for o in out] == [
            {"name": "bolt", "qty": "4"},
            {"name": "nut", "qty": "10"},
        ]
        assert all(o.paired_item == PairedItem(item=0) for o in out)

    @pytest.mark.anyio
    async def test_xlsx_rows_become_items(self, make_xlsx_bytes) -> None:
        content = make_xlsx_bytes({"Parts": [["name", "qty"], ["bolt", 4]]})
        out = await _node().execute([_item(content, "parts.xlsx")])
        assert [o.json for o in out] == [{"name": "bolt", "qty": 4}]

    @pytest.mark.anyio
    async def test_items_paired_with_their_source(self, make_csv_bytes) -> None:
        first = make_csv_bytes([["a"], ["1"]])
        second = make_csv_bytes([["a"], ["2"], ["3"]])
        out = await _node().execute([_item(first, "1.csv"), _item(second, "2.csv")])
        assert [(o.json["a"], o.paired_item.item) for o in out] == [
            ("1", 0), ("2", 1), ("3", 1),
        ]

    @pytest.mark.anyio
    async def test_positional_rows(self, make_csv_bytes) -> None:
        content = make_csv_bytes([["name", "qty"], ["bolt", "4"]])
        out = await _node(options={"headerRow": False}).execute([_item(content, "p.csv")])
        assert [o.json for o in out] == [{"row": ["name", "qty"]}, {"row": ["bolt", "4"]}]

    @pytest.mark.anyio
    async def test_custom_binary_property(self, make_csv_bytes) -> None:
        content = make_csv_bytes([["a"], ["1"]])
        node = _node(binaryPropertyName="sheet")
        out = await node.execute([_item(content, "x.csv", prop="sheet")])
        assert [o.json for o in out] == [{"a": "1"}]

    @pytest.mark.anyio
    async def test_csv_hint_overrides_detection(self) -> None:
        item = _item(b"a,b\n1,2\n", "export.dat")
        hinted = await _node(fileFormat="csv").execute([item])
        detected = await _node().execute([item])
        assert hinted[0].json == {"a": "1", "b": "2"}
        assert detected[0].json == {"a": 1, "b": 2}

    @pytest.mark.anyio
    async def test_empty_sheet_yields_no_items(self, make_xlsx_bytes) -> None:
        content = make_xlsx_bytes({"Empty": []})
        assert await _node().execute([_item(content, "empty.xlsx")]) == []

    @pytest.mark.anyio
    async def test_named_sheet(self, make_xlsx_bytes) -> None:
        content = make_xlsx_bytes({"A": [["x"], [1]], "B": [["y"], [2]]})
        out = await _node(options={"sheetName": "B"}).execute([_item(content, "b.xlsx")])
        assert [o.json for o in out] == [{"y": 2}]


class TestStoredPayloads:
    @pytest.mark.anyio
    async def test_stored_csv_streamed_and_released(self, tmp_path, make_csv_bytes) -> None:
        store = RecordingStore(str(tmp_path / "binary"))
        rows = [["id"]] + [[str(i)] for i in range(100)]
        binary = store.store(make_csv_bytes(rows), file_name="ids.csv")
        params = NodeParameters.model_validate({"options": {"maxRowCount": 5}})

        out = await SpreadsheetFileNode(params, binary_store=store).execute(
            [InputItem(binary={"data": binary})],
        )

        assert [o.json["id"] for o in out] == ["0", "1", "2", "3", "4"]
        assert len(store.streams) == 1
        assert store.streams[0].closed

    @pytest.mark.anyio
    async def test_stream_released_on_parse_error(self, tmp_path) -> None:
        store = RecordingStore(str(tmp_path / "binary"))
        binary = store.store(b"a,b\n1,2,3\n", file_name="bad.csv")
        node = SpreadsheetFileNode(NodeParameters(), binary_store=store)

        with pytest.raises(NodeOperationError):
            await node.execute([InputItem(binary={"data": binary})])
        assert store.streams[0].closed

    @pytest.mark.anyio
    async def test_stored_xlsx(self, binary_store, make_xlsx_bytes) -> None:
        content = make_xlsx_bytes({"Data": [["a"], [1], [2]]})
        binary = binary_store.store(content, file_name="data.xlsx")
        node = SpreadsheetFileNode(NodeParameters(), binary_store=binary_store)
        out = await node.execute([InputItem(binary={"data": binary})])
        assert [o.json for o in out] == [{"a": 1}, {"a": 2}]

    @pytest.mark.anyio
    async def test_reference_without_store(self) -> None:
        binary = BinaryData(id="0190-abc", mime_type="text/csv")
        with pytest.raises(NodeOperationError, match="no binary data store"):
            await _node().execute([InputItem(binary={"data": binary})])


# ===================================================================
# Failure policy
# ===================================================================


class TestFailurePolicy:
    @pytest.mark.anyio
    async def test_continue_on_fail_keeps_going(self, make_csv_bytes) -> None:
        good = make_csv_bytes([["a"], ["1"]])
        items = [
            _item(good, "0.csv"),
            _item(PNG_BYTES, "logo.png"),
            _item(good, "2.csv"),
        ]
        out = await _node(continueOnFail=True).execute(items)

        assert len(out) == 3
        assert out[0].json == {"a": "1"}
        assert "error" in out[1].json
        assert out[1].paired_item == PairedItem(item=1)
        assert out[2].json == {"a": "1"}
        assert out[2].paired_item == PairedItem(item=2)

    @pytest.mark.anyio
    async def test_abort_names_failing_item(self, make_csv_bytes) -> None:
        good = make_csv_bytes([["a"], ["1"]])
        items = [_item(good, "0.csv"), _item(PNG_BYTES, "logo.png")]

        with pytest.raises(NodeOperationError) as exc_info:
            await _node().execute(items)

        assert exc_info.value.item_index == 1
        assert "[item 1]" in str(exc_info.value)

    @pytest.mark.anyio
    async def test_missing_binary_property(self) -> None:
        out = await _node(continueOnFail=True).execute([InputItem(json={"a": 1})])
        assert out[0].json == {
            "error": (
                "This operation expects the node's input data to contain a "
                "binary file 'data', but none was found"
            ),
        }

    @pytest.mark.anyio
    async def test_missing_sheet_message(self, make_xlsx_bytes) -> None:
        content = make_xlsx_bytes({"Data": [["a"], [1]]})
        node = _node(continueOnFail=True, options={"sheetName": "Totals"})
        out = await node.execute([_item(content, "d.xlsx")])
        assert out[0].json == {"error": 'Spreadsheet does not contain sheet called "Totals"!'}

    @pytest.mark.anyio
    async def test_negative_range_rejected(self, make_xlsx_bytes) -> None:
        content = make_xlsx_bytes({"Data": [["h"], [1], [2]]})
        node = _node(continueOnFail=True, options={"range": -1})
        out = await node.execute([_item(content, "d.xlsx")])
        assert len(out) == 1
        assert "Invalid range" in out[0].json["error"]

    @pytest.mark.anyio
    async def test_unknown_input_format(self, make_csv_bytes) -> None:
        content = make_csv_bytes([["a"], ["1"]])
        with pytest.raises(NodeOperationError):
            await _node(fileFormat="ods").execute([_item(content, "a.csv")])


# ===================================================================
# toFile
# ===================================================================


class TestToFile:
    RECORDS = [{"name": "bolt", "qty": 4}, {"name": "nut", "qty": 10}, {"name": "washer"}]

    @pytest.mark.anyio
    async def test_single_item_paired_with_whole_batch(self) -> None:
        node = _node(operation="toFile", fileFormat="csv")
        out = await node.execute([InputItem(json=r) for r in self.RECORDS])

        assert len(out) == 1
        assert out[0].json == {}
        assert out[0].paired_item == [PairedItem(0), PairedItem(1), PairedItem(2)]
        binary = out[0].binary["data"]
        assert binary.data == b"name,qty\nbolt,4\nnut,10\nwasher,\n"
        assert binary.file_name == "spreadsheet.csv"

    @pytest.mark.anyio
    async def test_xlsx_by_default(self) -> None:
        out = await _node(operation="toFile").execute([InputItem(json=r) for r in self.RECORDS])
        binary = out[0].binary["data"]
        assert binary.file_extension == "xlsx"
        assert binary.data.startswith(b"PK\x03\x04")

    @pytest.mark.anyio
    async def test_round_trip_through_from_file(self) -> None:
        written = await _node(operation="toFile").execute(
            [InputItem(json=r) for r in self.RECORDS],
        )
        read = await _node().execute([InputItem(binary=written[0].binary)])
        assert [o.json for o in read] == self.RECORDS

    @pytest.mark.anyio
    async def test_output_persisted_when_store_configured(self, binary_store) -> None:
        params = NodeParameters.model_validate({
            "operation": "toFile",
            "fileFormat": "csv",
            "binaryPropertyName": "report",
            "options": {"fileName": "report.csv"},
        })
        node = SpreadsheetFileNode(params, binary_store=binary_store)
        out = await node.execute([InputItem(json=r) for r in self.RECORDS])

        binary = out[0].binary["report"]
        assert binary.data is None
        assert binary.file_name == "report.csv"
        assert binary_store.read(binary.id).startswith(b"name,qty\n")

    @pytest.mark.anyio
    async def test_failure_with_continue_on_fail(self) -> None:
        node = _node(operation="toFile", fileFormat="ods", continueOnFail=True)
        out = await node.execute([InputItem(json=r) for r in self.RECORDS])
        assert len(out) == 1
        assert "error" in out[0].json
        assert out[0].paired_item == [PairedItem(0), PairedItem(1), PairedItem(2)]

    @pytest.mark.anyio
    async def test_failure_aborts_without_item_index(self) -> None:
        node = _node(operation="toFile", fileFormat="ods")
        with pytest.raises(NodeOperationError) as exc_info:
            await node.execute([InputItem(json=r) for r in self.RECORDS])
        assert exc_info.value.item_index is None

    @pytest.mark.anyio
    async def test_options_shared_with_from_file(self) -> None:
        node = SpreadsheetFileNode(
            NodeParameters(
                operation="toFile",
                file_format="csv",
                options=ConversionOptions(delimiter=";", header_row=False),
            ),
        )
        out = await node.execute([InputItem(json={"a": 1, "b": 2})])
        assert out[0].binary["data"].data == b"1;2\n"

    @pytest.mark.anyio
    async def test_formula_like_text_round_trips(self) -> None:
        records = [{"note": "=total"}, {"note": "=1+1"}]
        written = await _node(operation="toFile").execute([InputItem(json=r) for r in records])
        read = await _node().execute([InputItem(binary=written[0].binary)])
        assert [o.json for o in read] == records

    @pytest.mark.anyio
    async def test_control_characters_do_not_fail_xlsx(self) -> None:
        out = await _node(operation="toFile").execute([InputItem(json={"a": "bell\x07here"})])
        read = await _node().execute([InputItem(binary=out[0].binary)])
        assert read[0].json == {"a": "bellhere"}

    @pytest.mark.anyio
    async def test_multi_character_delimiter_both_directions(self) -> None:
        options = {"delimiter": "||"}
        written = await _node(operation="toFile", fileFormat="csv", options=options).execute(
            [InputItem(json={"a": "x", "b": "y"})],
        )
        assert written[0].binary["data"].data == b"a||b\nx||y\n"
        read = await _node(fileFormat="csv", options=options).execute(
            [InputItem(binary=written[0].binary)],
        )
        assert read[0].json == {"a": "x", "b": "y"}
