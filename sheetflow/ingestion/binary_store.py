"""Binary data store: access to item payloads held in memory or on disk.

Payloads that are too large to pass around inline are written under a
local root and referenced by id. Readers get them back as bytes, as a
filesystem path, or as a byte stream scoped to a ``with`` block.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO

from sheetflow.errors import BinaryDataError
from sheetflow.models.binary import BinaryData, extension_of, guess_mime_type
from sheetflow.models.common import new_uuid7
from sheetflow.models.items import InputItem

logger = logging.getLogger(__name__)


class BinaryDataStore:
    """Local filesystem-backed binary data store."""

    def __init__(self, storage_root: str) -> None:
        self._root = Path(storage_root)
        self._root.mkdir(parents=True, exist_ok=True)

    def store(
        self,
        content: bytes,
        *,
        file_name: str | None = None,
        mime_type: str | None = None,
    ) -> BinaryData:
        """Persist content and return a BinaryData referencing it by id.

        Raises:
            ValueError: If content is empty.
        """
        if len(content) == 0:
            msg = "Binary content must not be empty."
            raise ValueError(msg)

        binary_id = str(new_uuid7())
        dest = self._root / binary_id
        dest.write_bytes(content)
        logger.debug("Stored %d bytes as binary %s", len(content), binary_id)

        extension = extension_of(file_name)
        return BinaryData(
            id=binary_id,
            file_name=file_name,
            file_extension=extension,
            file_size=len(content),
            mime_type=mime_type or guess_mime_type(extension),
        )

    def get_path(self, binary_id: str) -> Path:
        """Filesystem path of a stored payload.

        Raises:
            BinaryDataError: If the id is unknown.
        """
        path = self._root / binary_id
        if not path.is_file():
            msg = f"Binary data not found for id: {binary_id}"
            raise BinaryDataError(msg)
        return path

    def read(self, binary_id: str) -> bytes:
        return self.get_path(binary_id).read_bytes()

    @contextmanager
    def open_stream(self, binary_id: str) -> Iterator[BinaryIO]:
        """Open a stored payload for reading; the stream closes when the block exits."""
        path = self.get_path(binary_id)
        stream = path.open("rb")
        try:
            yield stream
        finally:
            stream.close()
            logger.debug("Released stream for binary %s", binary_id)

    def get_buffer(self, binary: BinaryData) -> bytes:
        """Payload bytes, whether held inline or stored by id."""
        if binary.data is not None:
            return binary.data
        return self.read(binary.id)


def assert_binary_data(item: InputItem, property_name: str) -> BinaryData:
    """Return the named binary property of an item or fail.

    Raises:
        BinaryDataError: If the item has no binary data under that name.
    """
    binary = item.binary.get(property_name)
    if binary is None:
        msg = (
            "This operation expects the node's input data to contain a binary "
            f"file '{property_name}', but none was found"
        )
        raise BinaryDataError(msg)
    return binary
