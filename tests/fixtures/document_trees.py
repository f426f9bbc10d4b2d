"""Hand-built parsed document trees for search tests.

The trees mirror what the markdown parser hands to the indexer: element nodes
with ``tag``/``props``/``children`` and text nodes with ``value``. Headings
carry their slug on a leading anchor link, like the parser output.
"""

from __future__ import annotations

from typing import Any


Node = dict[str, Any]


def text(value: str) -> Node:
    return {"type": "text", "value": value}


def el(tag: str, *children: Node | str, class_name: list[str] | None = None, **props: Any) -> Node:
    node_props = dict(props)
    if class_name is not None:
        node_props["className"] = class_name
    return {
        "type": "element",
        "tag": tag,
        "props": node_props,
        "children": [text(child) if isinstance(child, str) else child for child in children],
    }


def heading(level: int, title: str, slug: str) -> Node:
    anchor = el("a", el("span", class_name=["icon", "icon-link"]), href=f"#{slug}", aria_hidden="true")
    return el(f"h{level}", anchor, title)


def paragraph(*children: Node | str) -> Node:
    return el("p", *children)


def code_block(source: str, language: str = "js") -> Node:
    return el("div", el("pre", el("code", source, class_name=[f"language-{language}"])), class_name=["dimer-highlight"])


def bullet_list(*items: Node) -> Node:
    return el("ul", *items)


def item(*children: Node | str) -> Node:
    return el("li", *children)


def table(header: list[str], rows: list[list[str]]) -> Node:
    return el(
        "table",
        el("thead", el("tr", *[el("th", cell) for cell in header])),
        el("tbody", *[el("tr", *[el("td", cell) for cell in row]) for row in rows]),
    )


def root(*children: Node) -> Node:
    return {"type": "root", "children": list(children)}


def hello_document() -> Node:
    """# Hello world / first paragraph / ## This is section 2 / section 2 content."""
    return root(
        heading(1, "Hello world", "hello-world"),
        text("\n"),
        paragraph("This is the first paragraph"),
        text("\n"),
        heading(2, "This is section 2", "this-is-section-2"),
        text("\n"),
        paragraph("Here's the section 2 content"),
    )


def database_document() -> Node:
    """## Database / Database content."""
    return root(
        heading(2, "Database", "database"),
        paragraph("Database content"),
    )


def guide_document() -> Node:
    """A longer page touching every block kind the extractor handles."""
    return root(
        paragraph("Preamble that sits before any heading"),
        heading(1, "Installation guide", "installation-guide"),
        paragraph("Install the package with ", el("code", "npm"), " before you ", el("strong", "configure"), " it."),
        code_block("npm install dimer"),
        heading(2, "Configuration", "configuration"),
        bullet_list(
            item("Set the ", el("code", "port"), " option"),
            item("Enable caching", bullet_list(item("memory cache"), item("disk cache"))),
        ),
        table(["Key", "Description"], [["port", "server port"], ["cache", "cache driver"]]),
        heading(3, "Database drivers", "database-drivers"),
        paragraph("Pick a database driver for production."),
        el("div", paragraph("Generated contents"), class_name=["toc-container"]),
    )
