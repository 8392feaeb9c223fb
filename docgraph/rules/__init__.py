"""Rule factories that derive relationship edges from document trees.

Example usage:
    from docgraph.governance import ast_graph_edges, create_graph_rules_builder
    from docgraph.rules import contained_in_heading_rule, nodes_classification_rule

    rules = (
        create_graph_rules_builder()
        .use(contained_in_heading_rule("containedInHeading"))
        .use(nodes_classification_rule("isTask", lambda n, i, p: n["type"] == "listItem"))
        .build()
    )
    edges = list(ast_graph_edges(root, rules=rules))
"""

# Containment - structural parents
from .containment import (
    contained_in_heading_rule,
    contained_in_section_rule,
    heading_like_section_container,
    is_bold_single_line_paragraph,
    is_colon_single_line_paragraph,
    is_heading_like,
)

# Section tags - frontmatter blocks and semantic ids
from .frontmatter import (
    is_frontmatter_block,
    is_semantic_id_decorator,
    parse_section_frontmatter,
    section_frontmatter_rule,
    section_semantic_id_rule,
)

# Classification - root-anchored tags
from .classification import (
    document_frontmatter,
    frontmatter_classification_rule,
    nodes_classification_rule,
    selected_nodes_classification_rule,
)

# Dependencies
from .dependency import node_dependency_rule

# Standard pipeline
from .typical import (
    TYPICAL_RELATIONSHIPS,
    build_graph_tree_for_root,
    code_dependencies,
    code_identity,
    is_code_partial,
    parse_code_meta,
    typical_rules,
)

__all__ = [
    # Containment
    "contained_in_heading_rule",
    "contained_in_section_rule",
    "heading_like_section_container",
    "is_bold_single_line_paragraph",
    "is_colon_single_line_paragraph",
    "is_heading_like",
    # Section tags
    "is_frontmatter_block",
    "is_semantic_id_decorator",
    "parse_section_frontmatter",
    "section_frontmatter_rule",
    "section_semantic_id_rule",
    # Classification
    "document_frontmatter",
    "frontmatter_classification_rule",
    "nodes_classification_rule",
    "selected_nodes_classification_rule",
    # Dependencies
    "node_dependency_rule",
    # Standard pipeline
    "TYPICAL_RELATIONSHIPS",
    "build_graph_tree_for_root",
    "code_dependencies",
    "code_identity",
    "is_code_partial",
    "parse_code_meta",
    "typical_rules",
]
