"""Shared helpers and the base model used across sheetflow models."""

from uuid import UUID

from pydantic import BaseModel
from uuid_extensions import uuid7


def new_uuid7() -> UUID:
    """Generate a new time-sortable UUID v7."""
    return uuid7()


def to_camel(name: str) -> str:
    """Convert a snake_case field name to the camelCase option key."""
    head, *tail = name.split("_")
    return head + "".join(part.title() for part in tail)


# --- Base models ---


class SheetflowBase(BaseModel):
    """Base model with common configuration for all sheetflow Pydantic models."""

    model_config = {
        "populate_by_name": True,
        "protected_namespaces": (),
    }


class NodeOptionsBase(SheetflowBase):
    """Immutable option record whose keys may be given in camelCase or snake_case.

    Workflow definitions spell options the way the editor does
    (``maxRowCount``); Python callers use the field names.
    Unknown keys are ignored so older workflow definitions keep loading.
    """

    model_config = {
        "populate_by_name": True,
        "protected_namespaces": (),
        "alias_generator": to_camel,
        "frozen": True,
        "extra": "ignore",
    }
