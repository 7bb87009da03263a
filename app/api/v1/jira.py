"""Jira endpoints: one-click export of a requirement tree and a credentials connectivity probe."""

import logging

from fastapi import APIRouter, HTTPException

from app.core.config import get_settings
from app.schemas.jira import ConnectionTestRequest, ConnectionTestResponse, ExportProgress, ExportResult
from app.schemas.requirements import ExportRequest
from app.services.jira_client import JiraApiError, JiraClient
from app.services.jira_export import JiraNotConfiguredError, export_requirements_to_jira

logger = logging.getLogger(__name__)
router = APIRouter()


def _log_progress(progress: ExportProgress) -> None:
    logger.info(
        "Jira export progress %s/%s",
        progress.current,
        progress.total,
        extra={"issue_key": progress.last_created_key or ""},
    )


@router.post("/export", response_model=ExportResult)
async def post_jira_export(body: ExportRequest) -> ExportResult:
    """
    Export requirements to Jira: one Task per requirement, one Sub-task per test case,
    each sub-task linked to its parent with a "Relates" link.

    Requires JIRA_BASE_URL, JIRA_EMAIL, JIRA_API_TOKEN and a project key
    (JIRA_PROJECT_KEY or a /browse/<KEY>- URL). Per-issue failures are returned
    in errors / subtask_errors (partial success).
    """
    if not body.requirements:
        return ExportResult()

    try:
        return await export_requirements_to_jira(
            body.requirements, get_settings(), on_progress=_log_progress
        )
    except JiraNotConfiguredError as e:
        logger.error(
            "Jira export failed",
            extra={
                "export_status": "failure",
                "requirement_count": len(body.requirements),
                "reason": (e.message or str(e))[:500],
            },
        )
        raise HTTPException(status_code=503, detail=e.message) from e


@router.post("/test-connection", response_model=ConnectionTestResponse)
async def post_jira_test_connection(body: ConnectionTestRequest) -> ConnectionTestResponse:
    """
    Verify Jira credentials via GET /rest/api/3/myself.

    Fields missing from the body fall back to the configured settings.
    """
    settings = get_settings()
    url = (body.url or settings.JIRA_BASE_URL or "").strip()
    username = (body.username or settings.JIRA_EMAIL or "").strip()
    token_secret = body.api_token or settings.JIRA_API_TOKEN
    token = token_secret.get_secret_value() if token_secret is not None else ""
    if not url or not username or not token:
        raise HTTPException(
            status_code=422,
            detail="Missing required fields: url, username, api_token.",
        )

    try:
        async with JiraClient(
            url, username, token, timeout=settings.JIRA_REQUEST_TIMEOUT_SEC
        ) as client:
            user = await client.get_myself()
    except JiraApiError as e:
        status = 502 if (e.status_code or 500) >= 500 else 400
        raise HTTPException(status_code=status, detail=e.message) from e
    return ConnectionTestResponse(success=True, user=user)
