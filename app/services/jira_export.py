"""Export a generated requirement tree to Jira: one task per requirement, one sub-task per test case.

Runs strictly sequentially: a parent must exist before its sub-tasks are
created, and a sub-task must exist before it is linked back to its parent.
Per-call failures are recorded and never abort the run; only an incomplete
configuration does, and it does so before any request is sent.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, NamedTuple, Protocol

from app.schemas.document import StructuredDocument
from app.schemas.jira import ExportProgress, ExportResult, IssueRecord, JiraConfig, LinkRecord
from app.schemas.requirements import Requirement
from app.services.config_validator import (
    DEFAULT_HOST_SUFFIX,
    jira_config_from_settings,
    resolve_project_key,
    validate_config,
)
from app.services.document_formatter import DocumentFormatter, formatter_options_from_settings
from app.services.jira_client import JiraApiError, JiraClient
from app.services.pacer import Pacer, SleepPacer

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

PARENT_ISSUE_TYPE = "Task"
SUBTASK_ISSUE_TYPE = "Sub-task"
LINK_TYPE = "Relates"

NOT_CONFIGURED_MESSAGE = (
    "Jira configuration is incomplete; set JIRA_BASE_URL (an atlassian.net site), "
    "JIRA_EMAIL, JIRA_API_TOKEN and JIRA_PROJECT_KEY."
)
CANCELLED_MESSAGE = "Export cancelled"

ProgressCallback = Callable[[ExportProgress], None]


class JiraNotConfiguredError(Exception):
    """Raised when an export is started with an incomplete or unusable Jira configuration."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class IssueClient(Protocol):
    """Remote tracker operations the export depends on (JiraClient or a test fake)."""

    async def create_issue(
        self,
        project_key: str,
        summary: str,
        description: StructuredDocument,
        issue_type: str,
        labels: list[str] | tuple[str, ...] = (),
        parent_key: str | None = None,
    ) -> IssueRecord: ...

    async def create_link(self, link_type: str, inward_key: str, outward_key: str) -> bool: ...

    async def attach_file(self, issue_key: str, filename: str, content: bytes) -> bool: ...


class SourceFile(NamedTuple):
    """Document the requirements were generated from (attached to the first parent when enabled)."""

    filename: str
    content: bytes


class _Cancelled(Exception):
    pass


class _RunState:
    """Counters owned by exactly one export run."""

    def __init__(self, pacer: Pacer, cancel_event: asyncio.Event | None) -> None:
        self.result = ExportResult()
        self.pacer = pacer
        self.cancel_event = cancel_event
        self.creation_calls = 0

    def check_cancelled(self) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise _Cancelled()

    async def before_create(self) -> None:
        """Cancellation check plus the pause after the previous creation call."""
        self.check_cancelled()
        if self.creation_calls > 0:
            await self.pacer.wait()
            self.check_cancelled()
        self.creation_calls += 1


class ExportOrchestrator:
    """
    Walk the requirement tree and build the parent/sub-task hierarchy in Jira.

    - strict_linking: when True a failed traceability link counts as a test case
      failure (recorded in subtask_errors); by default it is only logged.
    - attach_source_file: when True and a SourceFile is passed to export(), it is
      attached to the first requirement's parent issue (best-effort).
    """

    def __init__(
        self,
        client: IssueClient,
        *,
        formatter: DocumentFormatter | None = None,
        pacer: Pacer | None = None,
        host_suffix: str = DEFAULT_HOST_SUFFIX,
        strict_linking: bool = False,
        attach_source_file: bool = False,
    ) -> None:
        self.client = client
        self.formatter = formatter or DocumentFormatter()
        self.pacer = pacer or SleepPacer(0.5)
        self.host_suffix = host_suffix
        self.strict_linking = strict_linking
        self.attach_source_file = attach_source_file

    async def export(
        self,
        config: JiraConfig,
        requirements: Sequence[Requirement],
        on_progress: ProgressCallback | None = None,
        *,
        cancel_event: asyncio.Event | None = None,
        source_file: SourceFile | None = None,
    ) -> ExportResult:
        """
        Export every requirement in order and return the aggregated result.

        Raises JiraNotConfiguredError before any remote call when the config is invalid.
        success_count + failed_count always equals len(requirements).
        """
        if not validate_config(config, self.host_suffix):
            raise JiraNotConfiguredError(NOT_CONFIGURED_MESSAGE)
        project_key = resolve_project_key(config) or ""
        total = len(requirements)
        run = _RunState(self.pacer, cancel_event)
        result = run.result

        logger.info(
            "Jira export started",
            extra={"project_key": project_key, "requirement_count": total},
        )
        index = 1
        try:
            for index, requirement in enumerate(requirements, start=1):
                parent = await self._export_parent(run, project_key, requirement, index)
                if on_progress is not None:
                    on_progress(
                        ExportProgress(
                            current=index,
                            total=total,
                            last_created_key=parent.key if parent else None,
                        )
                    )
                if parent is None:
                    continue
                await self._export_subtasks(run, project_key, requirement, index, parent)
                if index == 1 and self.attach_source_file and source_file is not None:
                    run.check_cancelled()
                    await self.client.attach_file(parent.key, source_file.filename, source_file.content)
        except _Cancelled:
            result.cancelled = True
            first_unattempted = index + 1 if _was_attempted(result, index) else index
            for skipped in range(first_unattempted, total + 1):
                result.failed_count += 1
                result.errors.append(f"Requirement #{skipped}: {CANCELLED_MESSAGE}")
            logger.warning(
                "Jira export cancelled",
                extra={"requirement_index": index, "requirement_count": total},
            )

        export_status = "success" if not result.errors and not result.subtask_errors else "partial"
        log_extra: dict[str, str | int] = {
            "export_status": export_status,
            "success_count": result.success_count,
            "failed_count": result.failed_count,
            "partial_count": result.partial_count,
            "issue_count": len(result.issues),
            "link_count": len(result.links),
            "error_count": len(result.errors) + len(result.subtask_errors),
        }
        if result.errors:
            log_extra["first_error"] = result.errors[0][:200]
        logger.info("Jira export completed", extra=log_extra)
        return result

    async def _export_parent(
        self,
        run: _RunState,
        project_key: str,
        requirement: Requirement,
        index: int,
    ) -> IssueRecord | None:
        """Create the requirement's parent task; record the outcome in the run counters."""
        summary = self.formatter.parent_summary(requirement, index)
        description = self.formatter.build_parent_document(requirement)
        await run.before_create()
        try:
            parent = await self.client.create_issue(
                project_key,
                summary,
                description,
                PARENT_ISSUE_TYPE,
                labels=self.formatter.options.parent_labels,
            )
        except JiraApiError as e:
            run.result.failed_count += 1
            run.result.errors.append(f"Requirement #{index}: {e.message}")
            logger.error(
                "Failed to create parent task for requirement #%s: %s",
                index,
                e.message,
                extra={"status_code": e.status_code},
            )
            return None
        run.result.success_count += 1
        run.result.issues.append(parent)
        logger.info("Created parent task %s for requirement #%s", parent.key, index)
        return parent

    async def _export_subtasks(
        self,
        run: _RunState,
        project_key: str,
        requirement: Requirement,
        index: int,
        parent: IssueRecord,
    ) -> None:
        """Create one sub-task per test case and link each back to the parent; never short-circuits."""
        any_failed = False
        for tc_index, test_case in enumerate(requirement.test_cases, start=1):
            summary = self.formatter.subtask_summary(test_case, tc_index)
            description = self.formatter.build_subtask_document(test_case)
            await run.before_create()
            try:
                subtask = await self.client.create_issue(
                    project_key,
                    summary,
                    description,
                    SUBTASK_ISSUE_TYPE,
                    labels=self.formatter.options.subtask_labels,
                    parent_key=parent.key,
                )
            except JiraApiError as e:
                any_failed = True
                run.result.subtask_errors.append(f"Requirement #{index} TC-{tc_index}: {e.message}")
                logger.warning(
                    "Failed to create sub-task %s under %s: %s",
                    tc_index,
                    parent.key,
                    e.message,
                    extra={"status_code": e.status_code},
                )
                continue
            run.result.issues.append(subtask)
            logger.info("Created sub-task %s under %s", subtask.key, parent.key)

            run.check_cancelled()
            if await self.client.create_link(LINK_TYPE, subtask.key, parent.key):
                run.result.links.append(
                    LinkRecord(type=LINK_TYPE, inward_key=subtask.key, outward_key=parent.key)
                )
            elif self.strict_linking:
                any_failed = True
                run.result.subtask_errors.append(
                    f"Requirement #{index} TC-{tc_index}: Failed to link {subtask.key} to {parent.key}"
                )
        if any_failed:
            run.result.partial_count += 1


def _was_attempted(result: ExportResult, index: int) -> bool:
    """True when requirement #index already has a success or failure recorded."""
    return result.success_count + result.failed_count >= index


async def export_requirements_to_jira(
    requirements: Sequence[Requirement],
    settings: Settings,
    on_progress: ProgressCallback | None = None,
    *,
    cancel_event: asyncio.Event | None = None,
    source_file: SourceFile | None = None,
    attach_source_file: bool | None = None,
) -> ExportResult:
    """
    Export requirements using the active Jira settings.

    Raises JiraNotConfiguredError if the configuration is incomplete.
    On per-issue failure, appends to errors and continues (partial success).
    attach_source_file overrides JIRA_ATTACH_SOURCE_FILE for this run when set.
    """
    config = jira_config_from_settings(settings)
    if not validate_config(config, settings.JIRA_HOST_SUFFIX):
        raise JiraNotConfiguredError(NOT_CONFIGURED_MESSAGE)

    max_attempts = settings.JIRA_RETRY_MAX_ATTEMPTS if settings.JIRA_RETRY_ENABLED else 1
    timeout = max(1.0, min(120.0, settings.JIRA_REQUEST_TIMEOUT_SEC))
    async with JiraClient(
        config.url,
        config.username,
        config.api_token.get_secret_value(),
        timeout=timeout,
        max_attempts=max_attempts,
        backoff_sec=settings.JIRA_RETRY_BACKOFF_SEC,
    ) as client:
        orchestrator = ExportOrchestrator(
            client,
            formatter=DocumentFormatter(formatter_options_from_settings(settings)),
            pacer=SleepPacer(settings.JIRA_CALL_DELAY_SEC),
            host_suffix=settings.JIRA_HOST_SUFFIX,
            strict_linking=settings.JIRA_STRICT_LINKING,
            attach_source_file=(
                settings.JIRA_ATTACH_SOURCE_FILE if attach_source_file is None else attach_source_file
            ),
        )
        return await orchestrator.export(
            config,
            requirements,
            on_progress,
            cancel_event=cancel_event,
            source_file=source_file,
        )
