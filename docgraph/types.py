"""Pydantic models for records supplied by the host environment."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, StringConstraints


class SectionContainerInfo(BaseModel):
    """Describes a node recognized as a section container."""

    model_config = ConfigDict(frozen=True)

    nature: Literal["heading", "section"] = Field(
        ...,
        description="'heading' for real headings (depth-based nesting), 'section' for heading-like markers",
    )
    label: str = Field(..., description="Plain-text label")
    md_label: str = Field(default="", description="Markdown-formatted label")


SelectorText = Annotated[
    str, StringConstraints(strict=True, strip_whitespace=True, min_length=1)
]


class ClassificationEntry(BaseModel):
    """One entry of a frontmatter classification list.

    Example (YAML):
        - select: heading[depth="1"]
          role: project

    Only ``select`` is validated here. The other pairs are read straight
    from the entry, since YAML keys need not be strings.
    """

    select: SelectorText
