"""Spreadsheet File node parameters.

All options carry defaults, so a workflow that omits any of them still runs.
Keys are accepted in camelCase (as stored in workflow definitions) or
snake_case.
"""

from enum import StrEnum

from pydantic import Field, field_validator

from sheetflow.models.common import NodeOptionsBase


class Operation(StrEnum):
    """Direction of the conversion."""

    FROM_FILE = "fromFile"
    TO_FILE = "toFile"


class FileFormat(StrEnum):
    """Input format hint for the read direction."""

    AUTODETECT = "autodetect"
    CSV = "csv"
    XLSX = "xlsx"
    XLS = "xls"


class OutputFormat(StrEnum):
    """Target format for the write direction."""

    CSV = "csv"
    XLSX = "xlsx"


class ConversionOptions(NodeOptionsBase):
    """Options shared by both directions."""

    delimiter: str = Field(default=",", min_length=1)
    from_line: int = Field(default=1, ge=1)
    max_row_count: int = Field(default=-1, ge=-1)
    include_empty_cells: bool = False
    header_row: bool = True
    sheet_name: str | None = None
    range: str | int | None = None
    read_as_string: bool = False
    raw_data: bool = False
    enable_bom: bool = Field(default=False, alias="enableBOM")
    file_name: str | None = None

    @field_validator("sheet_name", "file_name", mode="before")
    @classmethod
    def _blank_is_unset(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class NodeParameters(NodeOptionsBase):
    """Resolved parameters of one Spreadsheet File node run."""

    operation: Operation = Operation.FROM_FILE
    file_format: str = "autodetect"
    binary_property_name: str = Field(default="data", min_length=1)
    options: ConversionOptions = Field(default_factory=ConversionOptions)
    continue_on_fail: bool = False

    @property
    def input_format(self) -> FileFormat:
        """The read-direction format hint."""
        return FileFormat(self.file_format)

    @property
    def output_format(self) -> OutputFormat:
        """The write-direction target format; ``xlsx`` unless set otherwise."""
        if self.file_format == FileFormat.AUTODETECT:
            return OutputFormat.XLSX
        return OutputFormat(self.file_format)
