"""Pydantic schemas for Jira export: connection config, created records, progress and results."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr


class JiraConfig(BaseModel):
    """Resolved connection configuration for one export run (immutable while the run is in flight)."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(default="", description="Jira site URL (e.g. https://your-domain.atlassian.net).")
    username: str = Field(default="", description="Account email used for Basic auth.")
    api_token: SecretStr = Field(default=SecretStr(""), description="Jira API token.")
    project_key: str | None = Field(
        default=None,
        description="Project key; derived from a /browse/<KEY>- URL when absent.",
    )


class IssueRecord(BaseModel):
    """One issue created in Jira."""

    key: str = Field(..., min_length=1, description="Jira issue key (e.g. PROJ-123).")
    id: str = Field(default="", description="Jira numeric issue id.")
    parent_key: str | None = Field(
        default=None,
        description="Parent issue key for sub-tasks.",
    )


class LinkRecord(BaseModel):
    """A traceability link created between two issues."""

    type: Literal["Relates"] = "Relates"
    inward_key: str = Field(..., min_length=1)
    outward_key: str = Field(..., min_length=1)


class ExportProgress(BaseModel):
    """Progress after each requirement's parent issue was attempted."""

    current: int = Field(..., ge=0)
    total: int = Field(..., ge=0)
    last_created_key: str | None = Field(
        default=None,
        description="Parent key when the attempt succeeded; None on failure.",
    )


class ExportResult(BaseModel):
    """Aggregated outcome of one export run (partial success is normal)."""

    success_count: int = Field(default=0, ge=0, description="Requirements whose parent issue was created.")
    failed_count: int = Field(default=0, ge=0, description="Requirements whose parent issue was not created.")
    errors: list[str] = Field(
        default_factory=list,
        description="Requirement-level error messages (Requirement #i: ...).",
    )
    partial_count: int = Field(
        default=0,
        ge=0,
        description="Successful requirements with at least one failed test case (subset of success_count).",
    )
    subtask_errors: list[str] = Field(
        default_factory=list,
        description="Test case level error messages (Requirement #i TC-j: ...).",
    )
    issues: list[IssueRecord] = Field(
        default_factory=list,
        description="Created issues in creation order.",
    )
    links: list[LinkRecord] = Field(
        default_factory=list,
        description="Traceability links that were created.",
    )
    cancelled: bool = Field(
        default=False,
        description="True when the run was cancelled before all requirements were attempted.",
    )


class JiraUser(BaseModel):
    """Authenticated Jira account returned by the connectivity probe."""

    display_name: str | None = None
    email_address: str | None = None
    account_id: str | None = None


class ConnectionTestRequest(BaseModel):
    """Request body for POST /api/v1/jira/test-connection; missing fields fall back to settings."""

    url: str | None = None
    username: str | None = None
    api_token: SecretStr | None = None


class ConnectionTestResponse(BaseModel):
    """Response for POST /api/v1/jira/test-connection."""

    success: bool
    user: JiraUser | None = None
