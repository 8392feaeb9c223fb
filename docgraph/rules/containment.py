"""Structural containment rules (headings and section containers)."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Literal, Union

from docgraph.content import heading_text, to_markdown
from docgraph.governance import Rule, augment_rule
from docgraph.model import Edge, Node, Relationship, node_attr, node_children, node_type
from docgraph.types import SectionContainerInfo

# Type aliases
ContainerResult = Union[SectionContainerInfo, Mapping[str, Any], Literal[False], None]
IsSectionContainer = Callable[[Node], ContainerResult]
SectionNestingDecision = Literal["child", "sibling"]
SectionNestingFn = Callable[..., SectionNestingDecision]


def _heading_depth(node: Node) -> int | None:
    depth = node_attr(node, "depth")
    if (
        node_type(node) == "heading"
        and isinstance(depth, int)
        and not isinstance(depth, bool)
        and depth >= 1
    ):
        return depth
    return None


class _HeadingStack:
    """Ancestor headings keyed by depth."""

    def __init__(self) -> None:
        self._by_depth: dict[int, Node] = {}

    def parent_for(self, depth: int) -> Node | None:
        """Nearest heading shallower than ``depth``."""
        shallower = [d for d in self._by_depth if d < depth]
        return self._by_depth[max(shallower)] if shallower else None

    def place(self, node: Node, depth: int) -> None:
        """Put ``node`` at its depth and forget every deeper heading."""
        for d in [d for d in self._by_depth if d >= depth]:
            del self._by_depth[d]
        self._by_depth[depth] = node

    def current(self) -> Node | None:
        return self._by_depth[max(self._by_depth)] if self._by_depth else None


def contained_in_heading_rule(rel: Relationship) -> Rule:
    """Attach every node to its closest heading.

    Emits ``node --rel--> heading`` for non-heading nodes and
    ``heading --rel--> shallower heading`` for sub-headings. "Closest" is
    the most recently seen heading in pre-order, so a depth-2 heading that
    follows a depth-3 one links back to the depth-1 heading.
    """

    def build(ctx: Any) -> list[Edge] | Literal[False]:
        root = ctx.root
        edges: list[Edge] = []
        stack = _HeadingStack()

        def walk(node: Node) -> None:
            depth = _heading_depth(node)
            if depth is not None:
                parent = stack.parent_for(depth)
                if parent is not None:
                    edges.append(Edge(rel, node, parent))
                stack.place(node, depth)
            else:
                heading = stack.current()
                if heading is not None and node is not root:
                    edges.append(Edge(rel, node, heading))

            for child in node_children(node):
                walk(child)

        for child in node_children(root):
            walk(child)

        return edges if edges else False

    return augment_rule(build)


def _container_info(result: ContainerResult) -> SectionContainerInfo | None:
    if not result:
        return None
    if isinstance(result, SectionContainerInfo):
        return result
    return SectionContainerInfo.model_validate(dict(result))


def contained_in_section_rule(
    rel: Relationship,
    is_section_container: IsSectionContainer,
    section_nesting: SectionNestingFn | None = None,
) -> Rule:
    """Attach every node to its closest section container.

    ``is_section_container(node)`` returns False or a container descriptor
    (``SectionContainerInfo`` or a mapping with ``nature``, ``label`` and
    ``md_label``). Containers with nature ``"heading"`` that are real
    headings keep depth-based parent links exactly as
    :func:`contained_in_heading_rule` does. Containers with nature
    ``"section"`` attach according to ``section_nesting``, called with
    keyword arguments ``node``, ``info``, ``current_container`` and
    ``last_heading_container``:

    - ``"sibling"`` (the default when no callback is given): attach under
      the last heading container, else the current container.
    - ``"child"``: attach under the current container, else the last
      heading container.

    Every container becomes the current container for the nodes after it;
    non-container nodes attach to the current container.

    Example:
        contained_in_section_rule(
            "containedInSection",
            heading_like_section_container,
            lambda **kw: "child",
        )
    """

    def build(ctx: Any) -> list[Edge] | Literal[False]:
        root = ctx.root
        edges: list[Edge] = []
        stack = _HeadingStack()
        current_container: Node | None = None
        last_heading_container: Node | None = None

        def walk(node: Node) -> None:
            nonlocal current_container, last_heading_container

            info = _container_info(is_section_container(node))
            if info is not None:
                depth = _heading_depth(node)
                if info.nature == "heading" and depth is not None:
                    parent = stack.parent_for(depth)
                    if parent is not None:
                        edges.append(Edge(rel, node, parent))
                    stack.place(node, depth)
                    last_heading_container = node
                elif info.nature == "section":
                    decision: SectionNestingDecision = "sibling"
                    if section_nesting is not None:
                        decision = section_nesting(
                            node=node,
                            info=info,
                            current_container=current_container,
                            last_heading_container=last_heading_container,
                        )
                    if decision == "sibling":
                        parent = (
                            last_heading_container
                            if last_heading_container is not None
                            else current_container
                        )
                    else:
                        parent = (
                            current_container
                            if current_container is not None
                            else last_heading_container
                        )
                    if parent is not None and node is not root:
                        edges.append(Edge(rel, node, parent))

                current_container = node
            elif current_container is not None and node is not root:
                edges.append(Edge(rel, node, current_container))

            for child in node_children(node):
                walk(child)

        for child in node_children(root):
            walk(child)

        return edges if edges else False

    return augment_rule(build)


# -----------------------------------------------------------------------------
# Container recognizers
# -----------------------------------------------------------------------------


def _meaningful_children(node: Node) -> list[Node]:
    return [
        child for child in node_children(node)
        if not (node_type(child) == "text" and str(node_attr(child, "value", "")).strip() == "")
    ]


def _strong_label(strong: Node) -> str:
    return "".join(
        str(node_attr(child, "value", "")) for child in node_children(strong)
    ).strip()


def is_bold_single_line_paragraph(node: Node) -> SectionContainerInfo | Literal[False]:
    """Recognize a paragraph made of a single bold run, optionally followed by ':'.

    ``**Setup**`` and ``**Setup**:`` both qualify; the label is the bold text.
    """
    if node_type(node) != "paragraph":
        return False

    meaningful = _meaningful_children(node)
    if len(meaningful) == 1:
        strong = meaningful[0]
    elif (
        len(meaningful) == 2
        and node_type(meaningful[1]) == "text"
        and str(node_attr(meaningful[1], "value", "")).strip() == ":"
    ):
        strong = meaningful[0]
    else:
        return False

    if node_type(strong) != "strong":
        return False

    return SectionContainerInfo(
        nature="section",
        label=_strong_label(strong),
        md_label=to_markdown(node),
    )


def is_colon_single_line_paragraph(node: Node) -> SectionContainerInfo | Literal[False]:
    """Recognize a paragraph with one text child ending in ':' (``Inputs:``)."""
    if node_type(node) != "paragraph":
        return False

    children = node_children(node)
    if len(children) != 1 or node_type(children[0]) != "text":
        return False

    raw = str(node_attr(children[0], "value", "")).rstrip()
    if not raw.endswith(":"):
        return False

    return SectionContainerInfo(nature="section", label=raw[:-1].strip(), md_label=raw)


def heading_like_section_container(node: Node) -> SectionContainerInfo | Literal[False]:
    """Treat headings and heading-like paragraphs as section containers."""
    if node_type(node) == "heading":
        return SectionContainerInfo(
            nature="heading",
            label=heading_text(node),
            md_label=to_markdown(node),
        )

    if node_type(node) != "paragraph":
        return False

    return is_bold_single_line_paragraph(node) or is_colon_single_line_paragraph(node)


def is_heading_like(node: Node) -> bool:
    """True for headings and for paragraphs recognized as pseudo-headings."""
    return bool(heading_like_section_container(node))
