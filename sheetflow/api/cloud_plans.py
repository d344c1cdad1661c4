"""Cloud account REST client.

Thin wrappers around the instance's cloud endpoints: current plan, usage,
user account, admin-panel login code and lead-enrichment templates. Each
call is a single request; HTTP errors surface as ``httpx.HTTPStatusError``.
"""

import logging
from typing import Any

import httpx

from sheetflow.config.settings import get_settings
from sheetflow.models.cloud import (
    AdminPanelLoginCode,
    InstanceUsage,
    LeadEnrichmentTemplates,
    PlanData,
    RestApiContext,
    UserAccount,
)

logger = logging.getLogger(__name__)

CLOUD_PLAN_PATH = "/admin/cloud-plan"
CLOUD_LIMITS_PATH = "/cloud/limits"
CLOUD_USER_PATH = "/cloud/proxy/user/me"
CONFIRM_EMAIL_PATH = "/cloud/proxy/user/resend-confirmation-email"
LOGIN_CODE_PATH = "/cloud/proxy/login/code"
TEMPLATES_PATH = "/cloud/proxy/templates"


def default_context() -> RestApiContext:
    """Context pointing at the configured CLOUD_API_BASE_URL."""
    return RestApiContext(base_url=get_settings().CLOUD_API_BASE_URL)


async def _request(context: RestApiContext, method: str, path: str) -> Any:
    """Send one request and return the decoded body.

    Bodies wrapped as ``{"data": ...}`` are unwrapped.
    """
    timeout = get_settings().HTTP_TIMEOUT_S
    base_url = context.base_url.rstrip("/")

    async with httpx.AsyncClient(base_url=base_url, timeout=timeout) as client:
        resp = await client.request(method, path)
        resp.raise_for_status()
        body = resp.json()

    logger.debug("%s %s%s -> %s", method, base_url, path, resp.status_code)
    if isinstance(body, dict) and set(body) == {"data"}:
        return body["data"]
    return body


async def get_current_plan(context: RestApiContext) -> PlanData:
    return PlanData.model_validate(await _request(context, "GET", CLOUD_PLAN_PATH))


async def get_current_usage(context: RestApiContext) -> InstanceUsage:
    return InstanceUsage.model_validate(await _request(context, "GET", CLOUD_LIMITS_PATH))


async def get_cloud_user_info(context: RestApiContext) -> UserAccount:
    return UserAccount.model_validate(await _request(context, "GET", CLOUD_USER_PATH))


async def confirm_email(context: RestApiContext) -> UserAccount:
    """Ask the cloud to re-send the account confirmation e-mail."""
    return UserAccount.model_validate(await _request(context, "POST", CONFIRM_EMAIL_PATH))


async def get_admin_panel_login_code(context: RestApiContext) -> AdminPanelLoginCode:
    return AdminPanelLoginCode.model_validate(await _request(context, "GET", LOGIN_CODE_PATH))


async def get_lead_enrichment_templates(context: RestApiContext) -> LeadEnrichmentTemplates:
    return LeadEnrichmentTemplates.model_validate(
        await _request(context, "GET", TEMPLATES_PATH),
    )
