"""Domain models for search results.

Value objects are immutable (frozen=True) and carry no infrastructure
dependencies, so they can be handed straight to whatever renders results.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class HighlightMark(BaseModel):
    """A plain (``raw``) or matched (``mark``) fragment of a field."""

    model_config = ConfigDict(frozen=True)

    type: Literal["raw", "mark"]
    text: str


class HighlightResult(BaseModel):
    """Score and ordered fragments for one matched title or body node."""

    model_config = ConfigDict(frozen=True)

    score: float = 0.0
    marks: list[HighlightMark] = Field(default_factory=list)

    @property
    def text(self) -> str:
        return "".join(mark.text for mark in self.marks)

    @property
    def matched(self) -> list[str]:
        return [mark.text for mark in self.marks if mark.type == "mark"]


class SearchHit(BaseModel):
    """One section of a document that matched a query.

    ``body`` only lists the nodes that matched, in document order.
    """

    model_config = ConfigDict(frozen=True)

    url: str
    score: float
    title: HighlightResult
    body: list[HighlightResult] = Field(default_factory=list)
