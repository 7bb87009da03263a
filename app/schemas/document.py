"""Structured rich-text documents for Jira issue descriptions (Atlassian Document Format subset).

Only headings, paragraphs and horizontal rules are modelled. Blocks are
validated when they are built, so a document that exists can always be
serialized for the REST API without further checks.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

TextMark = Literal["strong", "em"]


class TextRun(BaseModel):
    """A run of text with optional bold (strong) / italic (em) marks."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(..., min_length=1, description="ADF rejects empty text nodes.")
    marks: tuple[TextMark, ...] = ()

    def to_adf(self) -> dict[str, Any]:
        node: dict[str, Any] = {"type": "text", "text": self.text}
        if self.marks:
            node["marks"] = [{"type": mark} for mark in self.marks]
        return node


class Heading(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["heading"] = "heading"
    level: int = Field(default=2, ge=1, le=6)
    content: tuple[TextRun, ...] = Field(..., min_length=1)

    def to_adf(self) -> dict[str, Any]:
        return {
            "type": "heading",
            "attrs": {"level": self.level},
            "content": [run.to_adf() for run in self.content],
        }


class Paragraph(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["paragraph"] = "paragraph"
    content: tuple[TextRun, ...] = Field(..., min_length=1)

    def to_adf(self) -> dict[str, Any]:
        return {
            "type": "paragraph",
            "content": [run.to_adf() for run in self.content],
        }


class Rule(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["rule"] = "rule"

    def to_adf(self) -> dict[str, Any]:
        return {"type": "rule"}


Block = Annotated[Union[Heading, Paragraph, Rule], Field(discriminator="type")]


class StructuredDocument(BaseModel):
    """Ordered block sequence accepted by Jira's description field."""

    model_config = ConfigDict(frozen=True)

    content: tuple[Block, ...] = ()

    def to_adf(self) -> dict[str, Any]:
        """Serialize to an Atlassian Document Format ``doc`` node."""
        return {
            "type": "doc",
            "version": 1,
            "content": [block.to_adf() for block in self.content],
        }


def text(value: str, *marks: TextMark) -> TextRun:
    """Build a text run; blank input becomes a single space so the run stays valid."""
    return TextRun(text=value if value else " ", marks=marks)


def heading(value: str, level: int = 2) -> Heading:
    return Heading(level=level, content=(text(value),))


def paragraph(*runs: TextRun) -> Paragraph:
    return Paragraph(content=runs)


def rule() -> Rule:
    return Rule()
