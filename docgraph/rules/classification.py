"""Classification rules: tag nodes with ``root --rel--> node`` edges."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any, Literal, Optional

from pydantic import ValidationError

from docgraph.content import walk
from docgraph.governance import Rule, augment_rule
from docgraph.model import Edge, Node, Relationship, node_attr
from docgraph.select import SelectorError, select_all as default_select_all
from docgraph.types import ClassificationEntry

logger = logging.getLogger(__name__)

# Type aliases
SelectAll = Callable[[str, Node], list[Node]]
VisitMatchFn = Callable[[Node, Optional[int], Optional[Node]], bool]


def _select_edges(
    selector: str,
    rel: Relationship,
    root: Node,
    select_all: SelectAll,
) -> list[Edge]:
    try:
        targets = select_all(selector, root)
    except SelectorError as e:
        logger.debug("selector %r matches nothing: %s", selector, e)
        return []
    return [Edge(rel, root, node) for node in targets]


def selected_nodes_classification_rule(
    selector: str,
    rel: Relationship,
    select_all: SelectAll | None = None,
) -> Rule:
    """Tag every node matched by ``selector`` with ``root --rel--> node``.

    Args:
        selector: Structural selector, e.g. ``"emphasis"`` or
                  ``'heading[depth="2"]'``.
        rel: Relationship for the emitted edges.
        select_all: Selector evaluator ``(selector, root) -> nodes``.
                    Defaults to :func:`docgraph.select.select_all`.
    """
    evaluate = select_all or default_select_all

    def build(ctx: Any) -> list[Edge] | Literal[False]:
        edges = _select_edges(selector, rel, ctx.root, evaluate)
        return edges if edges else False

    return augment_rule(build)


def document_frontmatter(root: Node) -> Mapping[str, Any] | None:
    """Get the parsed document frontmatter attached to a root node.

    Tree producers store it under ``root.data["frontmatter"]``.
    """
    data = node_attr(root, "data")
    if not isinstance(data, Mapping):
        return None
    frontmatter = data.get("frontmatter")
    return frontmatter if isinstance(frontmatter, Mapping) else None


def _scalar_text(value: Any) -> str | None:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (str, int, float)):
        return str(value)
    return None


def frontmatter_classification_rule(
    frontmatter_key: str,
    frontmatter: Mapping[str, Any] | None = None,
    select_all: SelectAll | None = None,
) -> Rule:
    """Classify nodes from a selector list in document frontmatter.

    Expects ``frontmatter[frontmatter_key]`` to be a list such as:

        doc-classify:
          - select: heading[depth="1"]
            role: project
          - select: heading[depth="2"]
            role: strategy

    Each non-``select`` pair produces relationship ``"<key>:<value>"``
    (``role:project``) and the selector is evaluated right away, emitting
    ``root --rel--> node`` per match. Entries without a usable ``select``
    string and non-scalar values are skipped.

    Args:
        frontmatter_key: Key holding the classification list.
        frontmatter: Parsed frontmatter. When None, read from the root's
                     ``data["frontmatter"]``.
        select_all: Selector evaluator, as for
                    :func:`selected_nodes_classification_rule`.
    """
    evaluate = select_all or default_select_all

    def build(ctx: Any) -> list[Edge] | Literal[False]:
        source = frontmatter if frontmatter is not None else document_frontmatter(ctx.root)
        if not source:
            return False

        raw = source.get(frontmatter_key)
        if not isinstance(raw, list):
            return False

        edges: list[Edge] = []
        for item in raw:
            if not isinstance(item, Mapping):
                logger.debug("skipping malformed %s entry: %r", frontmatter_key, item)
                continue
            try:
                entry = ClassificationEntry.model_validate({"select": item.get("select")})
            except ValidationError:
                logger.debug("skipping malformed %s entry: %r", frontmatter_key, item)
                continue

            for key, value in item.items():
                if key == "select":
                    continue
                text = _scalar_text(value)
                if text is None:
                    continue
                name = _scalar_text(key) or str(key)
                edges.extend(_select_edges(entry.select, f"{name}:{text}", ctx.root, evaluate))

        return edges if edges else False

    return augment_rule(build)


def nodes_classification_rule(rel: Relationship, match: VisitMatchFn) -> Rule:
    """Tag every node for which ``match(node, index, parent)`` is true.

    The walk is pre-order and includes the root (with ``index`` and
    ``parent`` None).
    """

    def build(ctx: Any) -> list[Edge] | Literal[False]:
        root = ctx.root
        edges = [
            Edge(rel, root, node)
            for node, index, parent in walk(root)
            if match(node, index, parent)
        ]
        return edges if edges else False

    return augment_rule(build)
