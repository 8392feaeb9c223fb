"""Dependency edges between named nodes (typically code blocks)."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any, Literal, Union

from docgraph.content import walk
from docgraph.governance import Rule, augment_rule
from docgraph.model import Edge, Node, Relationship

# Type aliases
DepsResult = Union[str, Sequence[str], Literal[False]]


def node_dependency_rule(
    rel: Relationship,
    is_target: Callable[[Node], bool],
    is_named_dep: Callable[[Node, str], bool],
    node_deps: Callable[[Node], DepsResult],
) -> Rule:
    """Link nodes to the nodes they declare as dependencies.

    Every node accepted by ``is_target`` (pre-order, root included) is a
    candidate. For each candidate ``source`` with dependency names
    ``node_deps(source)``, an edge ``source --rel--> target`` is emitted
    for every other candidate ``target`` where ``is_named_dep(target, name)``
    holds for any of those names.

    This compares every pair of candidates, so cost grows with the square
    of the candidate count.

    Args:
        rel: Relationship for the emitted edges.
        is_target: Candidate recognizer.
        is_named_dep: True if a node answers to a dependency name.
        node_deps: Dependency names of a node: a string, a list of strings,
                   or False for none.
    """

    def build(ctx: Any) -> list[Edge] | Literal[False]:
        targets = [node for node, _, _ in walk(ctx.root) if is_target(node)]
        if len(targets) < 2:
            return False

        edges: list[Edge] = []
        for source in targets:
            deps = node_deps(source)
            if deps is False:
                continue

            names = [deps] if isinstance(deps, str) else list(deps)
            if not names:
                continue

            for target in targets:
                if target is source:
                    continue
                if any(is_named_dep(target, name) for name in names):
                    edges.append(Edge(rel, source, target))

        return edges if edges else False

    return augment_rule(build)
