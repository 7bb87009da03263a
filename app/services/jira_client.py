"""Jira Cloud REST API v3 transport: create issues, link issues, attach files, probe credentials."""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from contextlib import AsyncExitStack
from typing import Any

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from app.schemas.document import StructuredDocument
from app.schemas.jira import IssueRecord, JiraUser

logger = logging.getLogger(__name__)

# Jira rejects summaries longer than 255 characters.
SUMMARY_MAX_LENGTH = 255

# Throttled or temporarily unavailable; safe to retry a create call after a pause.
RETRYABLE_STATUS_CODES = frozenset({429, 502, 503, 504})


class JiraApiError(Exception):
    """Raised when a Jira API call fails (non-2xx response or network error)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class _RetryableStatus(Exception):
    """Carries a throttled/unavailable response through the retry loop."""

    def __init__(self, response: httpx.Response) -> None:
        self.response = response
        super().__init__(f"status {response.status_code}")


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, (_RetryableStatus, httpx.HTTPError))


def _json_body(resp: httpx.Response) -> dict[str, Any]:
    """Decode a successful response body; a non-JSON body (e.g. a proxy page) is a JiraApiError."""
    try:
        data = resp.json()
    except ValueError as e:
        raise JiraApiError("Jira returned an invalid response body.", resp.status_code) from e
    if not isinstance(data, dict):
        raise JiraApiError("Jira returned an invalid response body.", resp.status_code)
    return data


def _error_detail(resp: httpx.Response) -> str:
    """Pull a readable message out of Jira's error envelope."""
    try:
        body = resp.json()
        err_messages = body.get("errorMessages", [])
        errors = body.get("errors", {})
        return "; ".join(err_messages) if err_messages else json.dumps(errors)[:500]
    except Exception:
        return resp.text[:500] if resp.text else "Unknown error"


def _raise_for_status(resp: httpx.Response) -> None:
    if resp.status_code == 401:
        raise JiraApiError("Jira authentication failed (invalid email or API token).", 401)
    if resp.status_code == 404:
        raise JiraApiError("Jira project or resource not found.", 404)
    if resp.status_code >= 400:
        raise JiraApiError(
            f"Jira returned {resp.status_code}: {_error_detail(resp)}", resp.status_code
        )


class JiraClient:
    """
    Thin async client over the Jira endpoints used by the export.

    Use as an async context manager; one underlying httpx.AsyncClient (Basic auth
    from email and API token) is shared by every call of the run. Pass
    http_client to reuse an existing client instead.
    Retries are off unless max_attempts > 1.
    """

    def __init__(
        self,
        base_url: str,
        email: str,
        api_token: str,
        *,
        timeout: float = 30.0,
        max_attempts: int = 1,
        backoff_sec: float = 1.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.email = email
        self._api_token = api_token
        self.timeout = timeout
        self.max_attempts = max(1, max_attempts)
        self.backoff_sec = backoff_sec
        self._http = http_client
        self._stack: AsyncExitStack | None = None

    async def __aenter__(self) -> JiraClient:
        if self._http is None:
            self._stack = AsyncExitStack()
            self._http = await self._stack.enter_async_context(
                httpx.AsyncClient(
                    auth=(self.email, self._api_token),
                    timeout=self.timeout,
                    headers={"Accept": "application/json"},
                )
            )
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        if self._stack is not None:
            await self._stack.aclose()
            self._stack = None
            self._http = None

    def _url(self, path: str) -> str:
        return f"{self.base_url}/rest/api/3{path}"

    async def _send(self, call: Callable[[], Awaitable[httpx.Response]]) -> httpx.Response:
        """Run one HTTP call, retrying throttled/unavailable responses and network errors when enabled."""
        if self._http is None:
            raise RuntimeError("JiraClient must be used as an async context manager.")
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.backoff_sec, min=0),
            retry=retry_if_exception(_is_retryable),
            before_sleep=self._log_retry,
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    resp = await call()
                    if resp.status_code in RETRYABLE_STATUS_CODES:
                        raise _RetryableStatus(resp)
                    return resp
        except _RetryableStatus as e:
            return e.response
        except httpx.HTTPError as e:
            raise JiraApiError(f"Jira request failed: {str(e) or type(e).__name__}") from e

    def _log_retry(self, retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        if isinstance(exc, _RetryableStatus):
            reason = f"status {exc.response.status_code}"
        else:
            reason = type(exc).__name__
        logger.warning(
            "Retrying Jira request",
            extra={
                "attempt": retry_state.attempt_number,
                "max_attempts": self.max_attempts,
                "reason": reason,
                "delay_sec": retry_state.next_action.sleep if retry_state.next_action else None,
            },
        )

    async def create_issue(
        self,
        project_key: str,
        summary: str,
        description: StructuredDocument,
        issue_type: str,
        labels: list[str] | tuple[str, ...] = (),
        parent_key: str | None = None,
    ) -> IssueRecord:
        """Create one issue (or sub-task when parent_key is set). Raises JiraApiError on failure."""
        fields: dict[str, Any] = {
            "project": {"key": project_key},
            "summary": summary[:SUMMARY_MAX_LENGTH],
            "description": description.to_adf(),
            "issuetype": {"name": issue_type},
            "labels": list(labels),
        }
        if parent_key:
            fields["parent"] = {"key": parent_key}
        resp = await self._send(lambda: self._http.post(self._url("/issue"), json={"fields": fields}))
        _raise_for_status(resp)
        data = _json_body(resp)
        key = data.get("key")
        if not key:
            raise JiraApiError("Jira response missing issue key.", resp.status_code)
        return IssueRecord(key=key, id=str(data.get("id") or ""), parent_key=parent_key)

    async def create_link(self, link_type: str, inward_key: str, outward_key: str) -> bool:
        """Create an issue link. Failures are logged and reported as False, never raised."""
        payload = {
            "type": {"name": link_type},
            "inwardIssue": {"key": inward_key},
            "outwardIssue": {"key": outward_key},
        }
        try:
            resp = await self._send(lambda: self._http.post(self._url("/issueLink"), json=payload))
            _raise_for_status(resp)
        except JiraApiError as e:
            logger.warning(
                "Failed to link %s to %s: %s",
                inward_key,
                outward_key,
                e.message,
                extra={"link_type": link_type, "status_code": e.status_code},
            )
            return False
        logger.info("Linked %s -> %s (%s)", inward_key, outward_key, link_type)
        return True

    async def attach_file(self, issue_key: str, filename: str, content: bytes) -> bool:
        """Upload one attachment to an issue. Failures are logged and reported as False."""
        try:
            resp = await self._send(
                lambda: self._http.post(
                    self._url(f"/issue/{issue_key}/attachments"),
                    files={"file": (filename, content)},
                    headers={"X-Atlassian-Token": "no-check"},
                )
            )
            _raise_for_status(resp)
        except JiraApiError as e:
            logger.warning("Failed to attach %s to %s: %s", filename, issue_key, e.message)
            return False
        logger.info("Attached %s to %s", filename, issue_key)
        return True

    async def get_myself(self) -> JiraUser:
        """Connectivity probe: return the authenticated account. Raises JiraApiError."""
        resp = await self._send(lambda: self._http.get(self._url("/myself")))
        _raise_for_status(resp)
        data = _json_body(resp)
        return JiraUser(
            display_name=data.get("displayName"),
            email_address=data.get("emailAddress"),
            account_id=data.get("accountId"),
        )
