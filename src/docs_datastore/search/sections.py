"""Split a parsed document tree into heading-delimited sections.

The extractor consumes the JSON tree produced by the markdown parser. Nodes
are mappings shaped like::

    {"type": "element", "tag": "p", "props": {"className": [...]}, "children": [...]}
    {"type": "text", "value": "Hello"}

Every node is first classified into a ``BlockKind`` and all text extraction
dispatches on that kind. A heading opens a new ``Section``; the blocks that
follow it contribute one entry per paragraph, list text run or table row.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, MutableMapping, Sequence
from enum import Enum
import logging
from typing import Any

from docs_datastore.config import IndexSettings
from docs_datastore.search.models import Section


logger = logging.getLogger(__name__)

_INLINE_TAGS = frozenset(
    {"a", "abbr", "b", "code", "del", "em", "i", "kbd", "mark", "s", "small", "span", "strong", "sub", "sup", "u"}
)
_NON_TEXT_TAGS = frozenset({"img", "input", "br", "hr"})
_LIST_TAGS = frozenset({"ul", "ol"})


class InvalidInputError(ValueError):
    """Raised when the extractor receives a malformed tree or permalink."""


class BlockKind(str, Enum):
    """Variant a document node is dispatched on."""

    HEADING = "heading"
    PARAGRAPH = "paragraph"
    LIST = "list"
    LIST_ITEM = "list_item"
    TABLE_ROW = "table_row"
    INLINE = "inline"
    TEXT = "text"
    SKIPPED = "skipped"
    OTHER = "other"


def _class_names(node: Mapping[str, Any]) -> list[str]:
    props = node.get("props") or {}
    raw = props.get("className") or []
    if isinstance(raw, str):
        return raw.split()
    return [str(name) for name in raw]


def _children(node: Mapping[str, Any]) -> Sequence[Any]:
    children = node.get("children")
    return children if isinstance(children, Sequence) and not isinstance(children, str) else ()


class SectionExtractor:
    """Groups a document's top-level blocks into ``Section`` entries."""

    def __init__(self, settings: IndexSettings | None = None) -> None:
        settings = settings if settings is not None else IndexSettings()
        self.heading_tags = frozenset(settings.heading_tags)
        self.blacklisted_block_tags = frozenset(settings.blacklisted_block_tags)
        self.blacklisted_classes = frozenset(settings.blacklisted_classes)

    def classify(self, node: Any) -> BlockKind:
        if not isinstance(node, Mapping):
            return BlockKind.SKIPPED

        node_type = node.get("type")
        if node_type == "text":
            return BlockKind.TEXT
        if node_type != "element":
            return BlockKind.OTHER if _children(node) else BlockKind.SKIPPED

        tag = node.get("tag")
        if tag in self.blacklisted_block_tags or tag in _NON_TEXT_TAGS:
            return BlockKind.SKIPPED
        if any(name in self.blacklisted_classes for name in _class_names(node)):
            return BlockKind.SKIPPED
        if tag in self.heading_tags:
            return BlockKind.HEADING
        if tag == "p":
            return BlockKind.PARAGRAPH
        if tag in _LIST_TAGS:
            return BlockKind.LIST
        if tag == "li":
            return BlockKind.LIST_ITEM
        if tag == "tr":
            return BlockKind.TABLE_ROW
        if tag in _INLINE_TAGS:
            return BlockKind.INLINE
        return BlockKind.OTHER

    def add_doc(
        self,
        content: Mapping[str, Any],
        permalink: str,
        docs: MutableMapping[str, Section],
    ) -> MutableMapping[str, Section]:
        """Append the sections of one document to ``docs`` and return it.

        Blocks that appear before the first heading are discarded. Sections
        are keyed by url, so a repeated url replaces the earlier section.
        """

        self._validate(content, permalink)

        current: Section | None = None
        added = 0
        for child in content["children"]:
            kind = self.classify(child)
            if kind is BlockKind.HEADING:
                url = self._section_url(child, permalink)
                if url in docs:
                    logger.warning("Section %s appears more than once, keeping the last one", url)
                current = Section(url=url, title=self.flatten(child).strip())
                docs[url] = current
                added += 1
                continue
            if current is None:
                continue
            current.nodes.extend(self.extract_text(child))

        logger.debug("Extracted %d sections from %s", added, permalink)
        return docs

    def extract_text(self, node: Any) -> list[str]:
        """Return the indexable text entries for a single block."""

        kind = self.classify(node)
        if kind is BlockKind.SKIPPED:
            return []
        if kind in (BlockKind.TEXT, BlockKind.INLINE, BlockKind.PARAGRAPH, BlockKind.HEADING):
            return _non_blank([self.flatten(node)])
        if kind is BlockKind.TABLE_ROW:
            cells = (
                self.flatten(cell).strip()
                for cell in _children(node)
                if self.classify(cell) is not BlockKind.SKIPPED
            )
            joined = " ".join(cell for cell in cells if cell)
            return [joined] if joined else []
        return self._collect_runs(_children(node))

    def flatten(self, node: Any) -> str:
        """Concatenate the text of a node, skipping non-prose descendants."""

        kind = self.classify(node)
        if kind is BlockKind.SKIPPED:
            return ""
        if kind is BlockKind.TEXT:
            value = node.get("value")
            return value if isinstance(value, str) else ""
        return "".join(self.flatten(child) for child in _children(node))

    def _collect_runs(self, children: Iterable[Any]) -> list[str]:
        # consecutive inline content forms one run; block children are recursed
        entries: list[str] = []
        buffer: list[str] = []
        for child in children:
            kind = self.classify(child)
            if kind in (BlockKind.TEXT, BlockKind.INLINE):
                buffer.append(self.flatten(child))
                continue
            if kind is BlockKind.SKIPPED:
                continue
            entries.extend(_non_blank(["".join(buffer)]))
            buffer = []
            entries.extend(self.extract_text(child))
        entries.extend(_non_blank(["".join(buffer)]))
        return entries

    def _section_url(self, heading: Mapping[str, Any], permalink: str) -> str:
        if heading.get("tag") == "h1":
            return permalink
        anchor = _heading_anchor(heading)
        if not anchor:
            logger.warning(
                "Heading %r under %s has no anchor, using the permalink",
                self.flatten(heading).strip(),
                permalink,
            )
            return permalink
        return f"{permalink}#{anchor}"

    def _validate(self, content: Any, permalink: Any) -> None:
        if not isinstance(content, Mapping) or "children" not in content:
            raise InvalidInputError("content must be a mapping with a 'children' key")
        children = content["children"]
        if not isinstance(children, Sequence) or isinstance(children, str) or not children:
            raise InvalidInputError("content.children must be a non-empty list")
        if not isinstance(permalink, str) or not permalink:
            raise InvalidInputError("permalink must be a non-empty string")


def _heading_anchor(heading: Mapping[str, Any]) -> str:
    props = heading.get("props") or {}
    anchor = props.get("id")
    if not anchor:
        children = _children(heading)
        if children and isinstance(children[0], Mapping):
            anchor = (children[0].get("props") or {}).get("href")
    if not isinstance(anchor, str):
        return ""
    return anchor.lstrip("#")


def _non_blank(values: Iterable[str]) -> list[str]:
    return [value.strip() for value in values if value and value.strip()]
