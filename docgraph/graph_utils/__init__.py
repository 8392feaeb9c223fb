"""Graph utilities for consuming finished relationship graphs.

This module provides hierarchy reconstruction, traversal, analysis and
serialization over Graph instances.

Example usage:
    from docgraph.graph_utils import (
        build_hierarchy_trees,
        visit_hier,
        check_acyclic,
    )

    # Containment forest
    if check_acyclic(graph, "containedInSection"):
        trees = build_hierarchy_trees("containedInSection", graph.edges)

    # Walk sections depth-first
    visit_hier(graph, lambda node, ancestors, ctx: print(len(ancestors), node["type"]),
               rel_test="containedInSection")
"""

# Hierarchy - trees from flat edges
from .hierarchy import (
    GraphEdgeTreeNode,
    GraphEdgesTree,
    HierarchyTreeNode,
    build_hierarchy_trees,
    default_node_label,
    default_resolve_hierarchy,
    graph_edges_tree,
)

# Traversal - visitors
from .visit import (
    HierVisitContext,
    visit_graph,
    visit_hier,
)

# Analysis - computed properties
from .analysis import (
    check_acyclic,
    compute_graph_stats,
    find_cycles,
    to_networkx,
)

# Serialization
from .serialize import graph_to_dict

__all__ = [
    # Hierarchy
    "GraphEdgeTreeNode",
    "GraphEdgesTree",
    "HierarchyTreeNode",
    "build_hierarchy_trees",
    "default_node_label",
    "default_resolve_hierarchy",
    "graph_edges_tree",
    # Traversal
    "HierVisitContext",
    "visit_graph",
    "visit_hier",
    # Analysis
    "check_acyclic",
    "compute_graph_stats",
    "find_cycles",
    "to_networkx",
    # Serialization
    "graph_to_dict",
]
