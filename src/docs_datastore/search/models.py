"""Search data models."""

from __future__ import annotations

from dataclasses import dataclass, field
import re
from typing import Any


_ENTRY_KEY_PATTERN = re.compile(r"^(?P<url>.*)@lvl(?P<level>\d+)$", re.DOTALL)


@dataclass
class Section:
    """A heading-delimited unit of a document."""

    url: str
    title: str = ""
    nodes: list[str] = field(default_factory=list)

    def entry_count(self) -> int:
        return 1 + len(self.nodes)

    def text_for_level(self, level: int) -> str | None:
        """Return the title for level 0 or ``nodes[level - 1]``; ``None`` when out of range."""
        if level == 0:
            return self.title
        if 0 < level <= len(self.nodes):
            return self.nodes[level - 1]
        return None

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "nodes": list(self.nodes), "url": self.url}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Section:
        nodes = data.get("nodes") or []
        return cls(
            url=str(data.get("url", "")),
            title=str(data.get("title") or ""),
            nodes=[str(node) for node in nodes],
        )


@dataclass(frozen=True)
class EntryKey:
    """Structured form of the ``url@lvl{N}`` reference stored in the index.

    Level 0 is the section title, level ``k`` is ``nodes[k - 1]``.
    """

    url: str
    level: int

    def encode(self) -> str:
        return f"{self.url}@lvl{self.level}"

    @classmethod
    def decode(cls, ref: str) -> EntryKey | None:
        match = _ENTRY_KEY_PATTERN.match(ref)
        if match is None:
            return None
        return cls(url=match.group("url"), level=int(match.group("level")))

    @property
    def is_title(self) -> bool:
        return self.level == 0
