"""Rules that tag blocks attached to section containers."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

import yaml

from docgraph.governance import Rule, transform_rule
from docgraph.model import Edge, Node, Relationship, node_attr, node_type

logger = logging.getLogger(__name__)

FRONTMATTER_LANGS = frozenset({"yaml", "yml", "json"})


def is_frontmatter_block(node: Node) -> bool:
    """True for ``code`` nodes whose language is yaml, yml or json."""
    if node_type(node) != "code":
        return False
    lang = node_attr(node, "lang")
    return isinstance(lang, str) and lang.lower() in FRONTMATTER_LANGS


def is_semantic_id_decorator(node: Node) -> bool:
    """True for ``decorator`` nodes named ``id`` (e.g. ``@id setup``)."""
    return node_type(node) == "decorator" and node_attr(node, "name") == "id"


def _container_tag_rule(
    tag_rel: Relationship,
    container_rels: Iterable[Relationship],
    is_tagged: Callable[[Node], bool],
) -> Rule:
    container_rel_set = frozenset(container_rels)

    def transform(ctx: Any, edge: Edge) -> Edge | list[Edge]:
        if edge.rel not in container_rel_set or not is_tagged(edge.source):
            return edge
        return [edge, Edge(tag_rel, edge.source, edge.target)]

    return transform_rule(transform)


def section_frontmatter_rule(
    frontmatter_rel: Relationship,
    container_rels: Iterable[Relationship],
    is_frontmatter: Callable[[Node], bool] | None = None,
) -> Rule:
    """Mark structured data blocks as the frontmatter of their container.

    For every incoming edge whose relationship is one of ``container_rels``
    and whose source is a data block, emits the edge itself followed by
    ``block --frontmatter_rel--> container``. All other edges pass through.

    Args:
        frontmatter_rel: Relationship for the added edges.
        container_rels: Containment relationships to watch
                        (e.g. ``["containedInSection"]``).
        is_frontmatter: Data block recognizer. Defaults to yaml/json code
                        blocks.
    """
    return _container_tag_rule(
        frontmatter_rel, container_rels, is_frontmatter or is_frontmatter_block
    )


def section_semantic_id_rule(
    semantic_id_rel: Relationship,
    container_rels: Iterable[Relationship],
    is_semantic_id: Callable[[Node], bool] | None = None,
) -> Rule:
    """Mark ``id`` decorators as the semantic id of their container.

    Same shape as :func:`section_frontmatter_rule`, recognizing decorator
    nodes named ``id`` by default.
    """
    return _container_tag_rule(
        semantic_id_rel, container_rels, is_semantic_id or is_semantic_id_decorator
    )


def parse_section_frontmatter(node: Node) -> dict[str, Any] | None:
    """Parse the body of a frontmatter block into a mapping.

    Returns:
        The parsed mapping, or None if the node is not a data block, its
        body is malformed, or it does not hold a mapping.
    """
    if not is_frontmatter_block(node):
        return None

    body = node_attr(node, "value") or ""
    try:
        data = yaml.safe_load(body)
    except yaml.YAMLError as e:
        logger.debug("ignoring malformed section frontmatter: %s", e)
        return None

    if not isinstance(data, Mapping):
        return None
    return dict(data)
