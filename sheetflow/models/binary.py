"""Binary payload metadata attached to workflow items."""

from pydantic import Field, model_validator

from sheetflow.models.common import SheetflowBase

CSV_MIME = "text/csv"
XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
XLS_MIME = "application/vnd.ms-excel"

MIME_BY_EXTENSION: dict[str, str] = {
    "csv": CSV_MIME,
    "xlsx": XLSX_MIME,
    "xls": XLS_MIME,
    "txt": "text/plain",
    "json": "application/json",
}


class BinaryData(SheetflowBase):
    """A binary payload, held in memory or referenced in the binary data store.

    Exactly one of ``data`` (raw bytes) and ``id`` (store reference) is set.
    """

    model_config = {
        "populate_by_name": True,
        "protected_namespaces": (),
        "frozen": True,
    }

    mime_type: str = Field(default="application/octet-stream", min_length=1)
    file_name: str | None = None
    file_extension: str | None = None
    file_size: int | None = Field(default=None, ge=0)
    data: bytes | None = None
    id: str | None = None

    @model_validator(mode="after")
    def _one_source(self) -> "BinaryData":
        if (self.data is None) == (self.id is None):
            msg = "BinaryData needs exactly one of 'data' or 'id'."
            raise ValueError(msg)
        return self

    @classmethod
    def from_bytes(
        cls,
        content: bytes,
        *,
        file_name: str | None = None,
        mime_type: str | None = None,
    ) -> "BinaryData":
        """Wrap in-memory bytes, deriving extension and MIME type from the name."""
        extension = extension_of(file_name)
        return cls(
            data=content,
            file_name=file_name,
            file_extension=extension,
            file_size=len(content),
            mime_type=mime_type or guess_mime_type(extension),
        )


def extension_of(file_name: str | None) -> str | None:
    """Lower-case extension of a file name, without the dot."""
    if not file_name or "." not in file_name:
        return None
    return file_name.rsplit(".", 1)[1].lower() or None


def guess_mime_type(extension: str | None) -> str:
    """MIME type for a known extension, falling back to octet-stream."""
    if extension is None:
        return "application/octet-stream"
    return MIME_BY_EXTENSION.get(extension.lower(), "application/octet-stream")
