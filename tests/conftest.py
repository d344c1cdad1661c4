"""Shared pytest fixtures for the sheetflow test suite.

Provides:
- binary_store: BinaryDataStore rooted in a temp directory
- make_csv_bytes / make_xlsx_bytes: payload builders
- anyio_backend: async tests run on asyncio only
- structlog configuration is reset after every test
"""

import csv
import io
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
import structlog
from openpyxl import Workbook

from sheetflow.ingestion.binary_store import BinaryDataStore


def _csv_bytes(rows: list[list[str]], delimiter: str = ",") -> bytes:
    buf = io.StringIO()
    writer = csv.writer(buf, delimiter=delimiter, lineterminator="\n")
    writer.writerows(rows)
    return buf.getvalue().encode("utf-8")


def _xlsx_bytes(sheets: dict[str, list[list[Any]]]) -> bytes:
    wb = Workbook()
    wb.remove(wb.active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(name)
        for row in rows:
            ws.append(row)
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    yield
    structlog.reset_defaults()


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def binary_store(tmp_path: Path) -> BinaryDataStore:
    """Binary data store backed by a temp directory."""
    return BinaryDataStore(storage_root=str(tmp_path / "binary"))


@pytest.fixture
def make_csv_bytes() -> Callable[..., bytes]:
    return _csv_bytes


@pytest.fixture
def make_xlsx_bytes() -> Callable[[dict[str, list[list[Any]]]], bytes]:
    return _xlsx_bytes
