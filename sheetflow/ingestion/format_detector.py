"""Choose the parse path for an item's binary payload."""

from enum import StrEnum

from sheetflow.models.binary import BinaryData
from sheetflow.models.options import FileFormat


class ParsePath(StrEnum):
    """Concrete parse path for a payload."""

    CSV = "csv"
    SPREADSHEET = "spreadsheet"


def detect_format(file_format: FileFormat, binary: BinaryData) -> ParsePath:
    """Resolve the format hint and binary metadata to a parse path.

    ``autodetect`` picks CSV for ``text/csv`` payloads and for ``text/plain``
    payloads with a ``csv`` extension. Everything that is not CSV goes the
    spreadsheet way.
    """
    if file_format == FileFormat.CSV:
        return ParsePath.CSV

    if file_format == FileFormat.AUTODETECT and _looks_like_csv(binary):
        return ParsePath.CSV

    return ParsePath.SPREADSHEET


def _looks_like_csv(binary: BinaryData) -> bool:
    mime = binary.mime_type.lower()
    if mime == "text/csv":
        return True
    return mime == "text/plain" and (binary.file_extension or "").lower() == "csv"
