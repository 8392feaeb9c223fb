"""Text helpers over mdast-shaped document nodes."""

from __future__ import annotations

from collections.abc import Iterator

from docgraph.model import Node, node_attr, node_children, node_type


def walk(root: Node) -> Iterator[tuple[Node, int | None, Node | None]]:
    """Pre-order walk yielding ``(node, index, parent)``.

    The root itself comes first with ``index`` and ``parent`` set to None.
    """
    stack: list[tuple[Node, int | None, Node | None]] = [(root, None, None)]
    while stack:
        node, index, parent = stack.pop()
        yield node, index, parent
        children = node_children(node)
        for i in range(len(children) - 1, -1, -1):
            stack.append((children[i], i, node))


def heading_text(node: Node) -> str:
    """Get the text of a heading's first text child ('' for non-headings)."""
    if node_type(node) != "heading":
        return ""
    for child in node_children(node):
        value = node_attr(child, "value")
        if node_type(child) == "text" and isinstance(value, str):
            return value
    return ""


def node_plain_text(node: Node) -> str:
    """Flatten the visible text under a node, ignoring formatting."""
    if node_type(node) == "root":
        return "root"

    parts: list[str] = []
    for current, _, _ in walk(node):
        value = node_attr(current, "value")
        if node_type(current) == "text" and value:
            parts.append(str(value))
    return "".join(parts)


_INLINE_WRAPPERS = {
    "strong": "**",
    "emphasis": "*",
    "delete": "~~",
}


def to_markdown(node: Node) -> str:
    """Render a node back to markdown, best-effort.

    Covers the phrasing content used in section labels (text, strong,
    emphasis, delete, inline code, links) plus headings and paragraphs.
    Anything else falls back to its plain text.
    """
    kind = node_type(node)

    if kind == "text":
        return str(node_attr(node, "value", ""))
    if kind == "inlineCode":
        return f"`{node_attr(node, 'value', '')}`"
    if kind in _INLINE_WRAPPERS:
        marker = _INLINE_WRAPPERS[kind]
        return f"{marker}{_children_markdown(node)}{marker}"
    if kind == "link":
        return f"[{_children_markdown(node)}]({node_attr(node, 'url', '')})"
    if kind == "heading":
        depth = node_attr(node, "depth", 1)
        return f"{'#' * int(depth)} {_children_markdown(node)}"
    if kind == "paragraph":
        return _children_markdown(node)

    return node_plain_text(node)


def _children_markdown(node: Node) -> str:
    return "".join(to_markdown(child) for child in node_children(node))
