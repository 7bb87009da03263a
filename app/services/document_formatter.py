"""Convert plain-text requirements and test cases into Jira-ready summaries and structured documents.

Requirement → parent summary ("REQ-ID: first sentence") and description
(heading, text, test case count, footer). Test case → sub-task summary
("TC-n: first sentence") and Given/When/Then description.

All helpers are deterministic heuristics and never raise on arbitrary text;
empty or unstructured input degrades to fixed fallback strings.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, NamedTuple

from pydantic import BaseModel, ConfigDict, Field

from app.core.config import DEFAULT_FOOTER_LINES, DEFAULT_PARENT_LABELS, DEFAULT_SUBTASK_LABELS
from app.schemas.document import Paragraph, StructuredDocument, heading, paragraph, rule, text
from app.schemas.requirements import Requirement, TestCase

if TYPE_CHECKING:
    from app.core.config import Settings

REQUIREMENT_ID_PATTERN = re.compile(r"REQ-[A-Z]+-\d+")
# Priority annotations such as (Critical) or (High)
PARENTHESIZED_PATTERN = re.compile(r"\([^)]*\)")
LEADING_SEPARATORS_PATTERN = re.compile(r"^[:\s]+")
SENTENCE_END_PATTERN = re.compile(r"[.!?] ")

GIVEN_PREFIX = re.compile(r"^given:?\s*", re.IGNORECASE)
WHEN_PREFIX = re.compile(r"^when:?\s*", re.IGNORECASE)
THEN_PREFIX = re.compile(r"^then:?\s*", re.IGNORECASE)

DEFAULT_ACTION_VERBS = ("verify", "check", "ensure", "validate", "test", "confirm")

FALLBACK_GIVEN = "The system is in a ready state"
FALLBACK_WHEN = "The test action is performed"
FALLBACK_THEN = "The expected outcome matches the requirement"
FALLBACK_THEN_AFTER_ACTION = "The expected outcome is verified"

ELLIPSIS = "..."


class FormatterOptions(BaseModel):
    """Tunable constants for the formatting heuristics (swap to change strategy without code changes)."""

    model_config = ConfigDict(frozen=True)

    summary_max_length: int = Field(default=80, ge=10, le=255)
    action_verbs: tuple[str, ...] = DEFAULT_ACTION_VERBS
    parent_labels: tuple[str, ...] = tuple(DEFAULT_PARENT_LABELS)
    subtask_labels: tuple[str, ...] = tuple(DEFAULT_SUBTASK_LABELS)
    footer_lines: tuple[str, ...] = tuple(DEFAULT_FOOTER_LINES)


class BDDSteps(NamedTuple):
    given: str
    when: str
    then: str


def formatter_options_from_settings(settings: Settings) -> FormatterOptions:
    return FormatterOptions(
        summary_max_length=settings.EXPORT_SUMMARY_MAX_LENGTH,
        parent_labels=tuple(settings.JIRA_PARENT_LABELS),
        subtask_labels=tuple(settings.JIRA_SUBTASK_LABELS),
        footer_lines=tuple(settings.EXPORT_FOOTER_LINES),
    )


class DocumentFormatter:
    """Builds summaries, BDD steps and structured descriptions using a FormatterOptions strategy."""

    def __init__(self, options: FormatterOptions | None = None) -> None:
        self.options = options or FormatterOptions()

    def summarize(self, value: str, max_length: int | None = None) -> str:
        """
        First sentence of the text if it fits, else a hard cut with an ellipsis.

        The cut result is exactly max_length characters long.
        """
        limit = max_length if max_length is not None else self.options.summary_max_length
        trimmed = (value or "").strip()
        match = SENTENCE_END_PATTERN.search(trimmed)
        first_sentence = trimmed[: match.start() + 1] if match else trimmed
        if len(first_sentence) <= limit:
            return first_sentence
        return trimmed[: max(limit - len(ELLIPSIS), 0)] + ELLIPSIS

    def to_bdd(self, description: str) -> BDDSteps:
        """
        Split a test case description into Given/When/Then.

        Pre-structured input (lines starting with given/when/then) passes through
        with the keywords stripped. Otherwise the first line mentioning an action
        verb becomes "when", the lines before it "given" and the lines after it "then".
        """
        lines = [line.strip() for line in (description or "").split("\n") if line.strip()]

        given_line = _first_line_starting_with(lines, "given")
        when_line = _first_line_starting_with(lines, "when")
        then_line = _first_line_starting_with(lines, "then")
        if given_line is not None and when_line is not None and then_line is not None:
            return BDDSteps(
                given=GIVEN_PREFIX.sub("", given_line, count=1),
                when=WHEN_PREFIX.sub("", when_line, count=1),
                then=THEN_PREFIX.sub("", then_line, count=1),
            )

        verbs = [verb.lower() for verb in self.options.action_verbs]
        action_index = next(
            (i for i, line in enumerate(lines) if any(verb in line.lower() for verb in verbs)),
            -1,
        )
        if action_index > 0:
            return BDDSteps(
                given=" ".join(lines[:action_index]),
                when=lines[action_index],
                then=" ".join(lines[action_index + 1 :]) or FALLBACK_THEN_AFTER_ACTION,
            )

        return BDDSteps(
            given=lines[0] if lines else FALLBACK_GIVEN,
            when=" ".join(lines[1:]) or FALLBACK_WHEN,
            then=FALLBACK_THEN,
        )

    def requirement_id(self, requirement_text: str, index: int) -> str:
        """REQ-XXX-NNN from the text, else REQ-<index> (1-based)."""
        match = REQUIREMENT_ID_PATTERN.search(requirement_text or "")
        return match.group(0) if match else f"REQ-{index}"

    def parent_summary(self, requirement: Requirement, index: int) -> str:
        """'<requirement id>: <short summary>' with IDs and (Priority) annotations removed from the text."""
        req_id = self.requirement_id(requirement.text, index)
        cleaned = REQUIREMENT_ID_PATTERN.sub("", requirement.text or "")
        cleaned = PARENTHESIZED_PATTERN.sub("", cleaned)
        cleaned = LEADING_SEPARATORS_PATTERN.sub("", cleaned)
        return f"{req_id}: {self.summarize(cleaned)}"

    def subtask_summary(self, test_case: TestCase, index: int) -> str:
        return f"TC-{index}: {self.summarize(test_case.description)}"

    def build_parent_document(self, requirement: Requirement) -> StructuredDocument:
        blocks = [
            heading("Requirement"),
            paragraph(text(requirement.text)),
            paragraph(text(f"Total Test Cases: {len(requirement.test_cases)}", "strong")),
            rule(),
            *self._footer(),
        ]
        return StructuredDocument(content=tuple(blocks))

    def build_subtask_document(self, test_case: TestCase) -> StructuredDocument:
        steps = self.to_bdd(test_case.description)
        blocks = [
            _labelled("Given: ", steps.given),
            _labelled("When: ", steps.when),
            _labelled("Then: ", steps.then),
        ]
        if test_case.compliance:
            blocks.append(rule())
            blocks.append(_labelled("Compliance Standards: ", ", ".join(test_case.compliance)))
        blocks.append(rule())
        blocks.extend(self._footer())
        return StructuredDocument(content=tuple(blocks))

    def _footer(self) -> list[Paragraph]:
        return [paragraph(text(line, "em")) for line in self.options.footer_lines]


def _first_line_starting_with(lines: list[str], keyword: str) -> str | None:
    for line in lines:
        if line.lower().startswith(keyword):
            return line
    return None


def _labelled(label: str, value: str) -> Paragraph:
    return paragraph(text(label, "strong"), text(value))
