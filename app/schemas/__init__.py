"""Pydantic request/response schemas."""

from app.schemas.document import Heading, Paragraph, Rule, StructuredDocument, TextRun
from app.schemas.health import HealthResponse
from app.schemas.jira import (
    ConnectionTestRequest,
    ConnectionTestResponse,
    ExportProgress,
    ExportResult,
    IssueRecord,
    JiraConfig,
    JiraUser,
    LinkRecord,
)
from app.schemas.requirements import ExportRequest, Requirement, TestCase

__all__ = [
    "ConnectionTestRequest",
    "ConnectionTestResponse",
    "ExportProgress",
    "ExportRequest",
    "ExportResult",
    "HealthResponse",
    "Heading",
    "IssueRecord",
    "JiraConfig",
    "JiraUser",
    "LinkRecord",
    "Paragraph",
    "Requirement",
    "Rule",
    "StructuredDocument",
    "TestCase",
    "TextRun",
]
