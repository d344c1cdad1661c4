"""Payloads returned by the cloud account REST endpoints.

Only the fields the editor reads are declared; anything else the server
sends is kept as an extra attribute.
"""

from datetime import datetime
from typing import Any

from pydantic import Field

from sheetflow.models.common import SheetflowBase, to_camel


class CloudBase(SheetflowBase):
    """camelCase wire payload that tolerates unknown fields."""

    model_config = {
        "populate_by_name": True,
        "protected_namespaces": (),
        "alias_generator": to_camel,
        "extra": "allow",
    }


class RestApiContext(SheetflowBase):
    """Where the REST API lives."""

    base_url: str = Field(..., min_length=1)


class PlanMetadata(CloudBase):
    version: str | None = None
    group: str | None = None
    slug: str | None = None
    trial: dict[str, Any] | None = None


class PlanData(CloudBase):
    """The account's current cloud plan."""

    plan_id: int | None = None
    monthly_executions_limit: int | None = None
    active_workflows_limit: int | None = None
    credentials_limit: int | None = None
    is_active: bool = False
    display_name: str | None = None
    expiration_date: datetime | None = None
    metadata: PlanMetadata | None = None


class InstanceUsage(CloudBase):
    """Execution and workflow counters of the current billing period."""

    timesaved: int | None = None
    executions: int = 0
    active_workflows: int = 0


class UserAccount(CloudBase):
    confirmed: bool = False
    username: str | None = None
    email: str | None = None
    has_early_access: bool | None = None
    role: str | None = None


class AdminPanelLoginCode(CloudBase):
    code: str


class LeadEnrichmentTemplates(CloudBase):
    sections: list[dict[str, Any]] = Field(default_factory=list)
