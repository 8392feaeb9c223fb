"""The standard rule pipeline for markdown documents.

Code blocks name themselves and their dependencies in the fence meta:

    ```bash setup
    ```bash build --dep setup
    ```sql PARTIAL header
"""

from __future__ import annotations

import logging
import shlex
from collections.abc import Iterable
from typing import Literal

from docgraph.governance import Rule, create_graph_rules_builder
from docgraph.graph_utils.hierarchy import GraphEdgesTree, graph_edges_tree
from docgraph.model import Edge, Node, define_relationships, node_attr, node_type
from docgraph.rules.classification import (
    frontmatter_classification_rule,
    nodes_classification_rule,
    selected_nodes_classification_rule,
)
from docgraph.rules.containment import contained_in_section_rule, heading_like_section_container
from docgraph.rules.dependency import node_dependency_rule
from docgraph.rules.frontmatter import section_frontmatter_rule, section_semantic_id_rule

logger = logging.getLogger(__name__)

TYPICAL_RELATIONSHIPS = define_relationships(
    "containedInSection",
    "frontmatter",
    "sectionSemanticId",
    "isImportant",
    "isCode",
    "isPartial",
    "isTask",
    "codeDependsOn",
)

PARTIAL_DIRECTIVE = "PARTIAL"


def parse_code_meta(meta: str | None) -> tuple[list[str], dict[str, list[str]]]:
    """Split a code fence meta string into positional tokens and flags.

    ``--name=value`` and ``--name value`` both record ``value`` under
    ``name``; a flag followed by another flag (or nothing) records an empty
    value list. Unbalanced quotes make the whole meta count as empty.

    Example:
        >>> parse_code_meta('build --dep setup --dep=lint')
        (['build'], {'dep': ['setup', 'lint']})
    """
    if not meta:
        return [], {}

    try:
        tokens = shlex.split(meta)
    except ValueError as e:
        logger.debug("unparsable code meta %r: %s", meta, e)
        return [], {}

    positional: list[str] = []
    flags: dict[str, list[str]] = {}
    i = 0
    while i < len(tokens):
        token = tokens[i]
        i += 1
        if not token.startswith("-") or token.strip("-") == "":
            positional.append(token)
            continue

        name, sep, value = token.lstrip("-").partition("=")
        values = flags.setdefault(name, [])
        if sep:
            values.append(value)
        elif i < len(tokens) and not tokens[i].startswith("-"):
            values.append(tokens[i])
            i += 1

    return positional, flags


def _code_meta(node: Node) -> tuple[list[str], dict[str, list[str]]]:
    if node_type(node) != "code":
        return [], {}
    return parse_code_meta(node_attr(node, "meta"))


def code_identity(node: Node) -> str | None:
    """The first positional token of a code block's meta, if any."""
    positional, _ = _code_meta(node)
    return positional[0] if positional else None


def code_dependencies(node: Node) -> list[str] | Literal[False]:
    """Names given with ``--dep`` in a code block's meta, or False."""
    _, flags = _code_meta(node)
    deps = [dep for dep in flags.get("dep", []) if dep]
    return deps if deps else False


def is_code_partial(node: Node) -> bool:
    """True for code blocks declared as ``PARTIAL <name>``."""
    positional, _ = _code_meta(node)
    return len(positional) >= 2 and positional[0] == PARTIAL_DIRECTIVE


def typical_rules() -> list[Rule]:
    """Build the standard pipeline.

    In order: section containment (headings and heading-like paragraphs),
    section frontmatter, section semantic ids, ``doc-classify`` frontmatter
    classification, emphasis as ``isImportant``, ``isCode``, ``isPartial``,
    list items as ``isTask``, and ``codeDependsOn`` between named code
    blocks.
    """
    return (
        create_graph_rules_builder()
        .use(contained_in_section_rule("containedInSection", heading_like_section_container))
        .use(section_frontmatter_rule("frontmatter", ["containedInSection"]))
        .use(section_semantic_id_rule("sectionSemanticId", ["containedInSection"]))
        .use(frontmatter_classification_rule("doc-classify"))
        .use(selected_nodes_classification_rule("emphasis", "isImportant"))
        .use(nodes_classification_rule("isCode", lambda node, index, parent: node_type(node) == "code"))
        .use(nodes_classification_rule("isPartial", lambda node, index, parent: is_code_partial(node)))
        .use(nodes_classification_rule("isTask", lambda node, index, parent: node_type(node) == "listItem"))
        .use(
            node_dependency_rule(
                "codeDependsOn",
                lambda node: node_type(node) == "code",
                lambda node, name: code_identity(node) == name,
                code_dependencies,
            )
        )
        .build()
    )


def build_graph_tree_for_root(root: Node, edges: Iterable[Edge]) -> GraphEdgesTree:
    """Containment forest of one document from its typical pipeline edges."""
    return graph_edges_tree(list(edges), relationships=["containedInSection"])
