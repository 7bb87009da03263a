"""Pydantic schemas for the generated requirement tree: requirements and their test cases.

Accepts the upstream generator's camelCase contract (requirement, testCases)
as well as snake_case field names.
"""

from pydantic import BaseModel, ConfigDict, Field

REQUIREMENT_TEXT_MAX_LENGTH = 32_000
TEST_CASE_DESCRIPTION_MAX_LENGTH = 32_000
MAX_REQUIREMENTS_PER_EXPORT = 200


class TestCase(BaseModel):
    """One generated test case for a requirement."""

    __test__ = False  # not a pytest test class

    model_config = ConfigDict(frozen=True, extra="ignore")

    description: str = Field(
        ...,
        max_length=TEST_CASE_DESCRIPTION_MAX_LENGTH,
        description="Plain-text test case description (may already be Given/When/Then).",
    )
    compliance: list[str] = Field(
        default_factory=list,
        description="Compliance standard names in display order (duplicates allowed).",
    )


class Requirement(BaseModel):
    """One requirement with its ordered test cases. Read-only input to the export."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    text: str = Field(
        ...,
        alias="requirement",
        max_length=REQUIREMENT_TEXT_MAX_LENGTH,
        description="Requirement text, optionally containing an ID such as REQ-INT-001.",
    )
    test_cases: list[TestCase] = Field(
        default_factory=list,
        alias="testCases",
        description="Test cases in display order.",
    )


class ExportRequest(BaseModel):
    """Request body for POST /api/v1/jira/export."""

    model_config = ConfigDict(populate_by_name=True)

    requirements: list[Requirement] = Field(
        ...,
        max_length=MAX_REQUIREMENTS_PER_EXPORT,
        description="Requirement tree to export, in order.",
    )
