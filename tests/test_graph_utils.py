"""Tests for hierarchy reconstruction, traversal, analysis and serialization."""

import json

import pytest

from docgraph.graph_utils import (
    build_hierarchy_trees,
    check_acyclic,
    compute_graph_stats,
    find_cycles,
    graph_edges_tree,
    graph_to_dict,
    to_networkx,
    visit_graph,
    visit_hier,
)
from docgraph.model import Edge, Graph

from mdast_builders import code, heading, paragraph, root


def _named(*names):
    return [{"type": "node", "name": name} for name in names]


class TestBuildHierarchyTrees:
    """Test forests rebuilt from one relationship."""

    def test_root_inference(self):
        a, b, c, d = _named("a", "b", "c", "d")
        edges = [
            Edge("parent", b, a),
            Edge("parent", c, a),
            Edge("parent", d, b),
            Edge("parent", b, a),
            Edge("other", a, d),
        ]
        forest = build_hierarchy_trees("parent", edges)

        assert len(forest) == 1
        assert forest[0].node is a
        assert [t.node for t in forest[0].children] == [b, c]
        assert [t.node for t in forest[0].children[0].children] == [d]
        assert forest[0].children[1].children == []

    def test_multiple_roots(self):
        a, b, c, d = _named("a", "b", "c", "d")
        forest = build_hierarchy_trees("p", [Edge("p", b, a), Edge("p", d, c)])
        assert [t.node["name"] for t in forest] == ["a", "c"]

    def test_other_relationships_ignored(self):
        a, b = _named("a", "b")
        assert build_hierarchy_trees("p", [Edge("q", b, a)]) == []


class TestGraphEdgesTree:
    """Test labeled multi-relationship trees."""

    def setup_method(self):
        self.h1 = heading(1, "Intro")
        self.body = paragraph("body")
        self.h2 = heading(2, "More")
        self.block = code("k: v", lang="yaml")
        self.edges = [
            Edge("containedInSection", self.body, self.h1),
            Edge("containedInSection", self.h2, self.h1),
            Edge("containedInSection", self.block, self.h2),
            Edge("frontmatter", self.block, self.h2),
            Edge("isCode", self.h1, self.block),
        ]

    def test_primary_relationship_shapes_tree(self):
        tree = graph_edges_tree(self.edges, relationships=["containedInSection", "frontmatter"])

        assert tree.rels == ["containedInSection", "frontmatter"]
        assert len(tree.roots) == 1

        top = tree.roots[0]
        assert top.node is self.h1
        assert top.edge is None
        assert top.level == 0
        assert top.label == "heading:#1 Intro"
        assert [c.label for c in top.children] == ["paragraph:body", "heading:#2 More"]

        block = top.children[1].children[0]
        assert block.node is self.block
        assert block.level == 2
        assert block.rels == ["containedInSection", "frontmatter"]
        assert block.label.startswith('{"type": "code"')

    def test_all_edges_structural_without_relationships(self):
        a, b, c = _named("a", "b", "c")
        tree = graph_edges_tree([Edge("x", b, a), Edge("y", c, b)])

        assert tree.rels == ["x", "y"]
        assert tree.roots[0].children[0].children[0].node is c

    def test_overrides(self):
        tree = graph_edges_tree(
            self.edges,
            relationships=["containedInSection"],
            node_level=lambda **kw: kw["default_level"] + 10,
            node_label=lambda **kw: f"L{kw['level']}",
        )
        top = tree.roots[0]
        assert top.label == "L10"
        assert top.children[1].label == "L21"
        assert top.children[1].children[0].label == "L32"

    def test_resolver_can_drop_everything(self):
        tree = graph_edges_tree(self.edges, resolve_hierarchy=lambda edge: None)
        assert tree.rels == []
        assert tree.roots == []
        assert len(tree.edges) == len(self.edges)

    def test_untyped_node_label(self):
        a = {"name": "a"}
        b = {"type": "node"}
        tree = graph_edges_tree([Edge("p", b, a)])
        assert tree.roots[0].label == "(not a node!)"


class TestVisitGraph:
    """Test the flat relationship visitor."""

    def setup_method(self):
        self.a, self.b, self.c, self.d = _named("a", "b", "c", "d")
        self.r1 = [Edge("r1", self.a, self.b), Edge("r1", self.b, self.c), Edge("r1", self.c, self.d)]
        self.r2 = [Edge("r2", self.d, self.a)]
        self.graph = Graph(root=self.a, edges=(self.r1[0], self.r2[0], self.r1[1], self.r1[2]))

    def test_skip_stops_group_only(self):
        visited = []

        def visitor(rel, edge, index, group, graph):
            visited.append(edge)
            if rel == "r1" and index == 1:
                return "skip"

        visit_graph(self.graph, visitor)
        assert visited == [self.r1[0], self.r1[1], self.r2[0]]

    def test_exit_stops_everything(self):
        visited = []

        def visitor(rel, edge, index, group, graph):
            visited.append(edge)
            return "exit"

        visit_graph(self.graph, visitor)
        assert visited == [self.r1[0]]

    def test_visitor_arguments(self):
        calls = []
        visit_graph(self.graph, lambda *args: calls.append(args), test="r2")

        rel, edge, index, group, graph = calls[0]
        assert (rel, edge, index, list(group), graph) == ("r2", self.r2[0], 0, self.r2, self.graph)

    def test_relationship_filters(self):
        seen = []
        visit_graph(self.graph, lambda rel, *_: seen.append(rel), test=["r2"])
        visit_graph(self.graph, lambda rel, *_: seen.append(rel), test=lambda rel: rel.endswith("1"))
        assert seen == ["r2", "r1", "r1", "r1"]

    def test_relationship_order(self):
        seen = []
        visit_graph(self.graph, lambda rel, *_: seen.append(rel), rel_order="desc")
        assert seen == ["r2", "r1", "r1", "r1"]

        seen.clear()
        visit_graph(self.graph, lambda rel, *_: seen.append(rel), rel_order=lambda x, y: (x < y) - (x > y))
        assert seen == ["r2", "r1", "r1", "r1"]

    def test_edge_order_by_endpoint_text(self):
        zed, alpha = paragraph("zed"), paragraph("alpha")
        e1, e2 = Edge("r", zed, alpha), Edge("r", alpha, zed)
        graph = Graph(root=root(), edges=(e1, e2))

        seen = []
        visit_graph(graph, lambda rel, edge, *_: seen.append(edge), edge_order="from")
        assert seen == [e2, e1]

        seen.clear()
        visit_graph(graph, lambda rel, edge, *_: seen.append(edge), edge_order="to")
        assert seen == [e1, e2]

    def test_unknown_order(self):
        with pytest.raises(ValueError):
            visit_graph(self.graph, lambda *_: None, rel_order="sideways")
        with pytest.raises(ValueError):
            visit_graph(self.graph, lambda *_: None, edge_order="sideways")


class TestVisitHier:
    """Test the hierarchical visitor."""

    def setup_method(self):
        self.h1, self.p1, self.h2, self.p2, self.h1b, self.p3 = _named("h1", "p1", "h2", "p2", "h1b", "p3")
        self.graph = Graph(
            root=root(),
            edges=(
                Edge("in", self.p1, self.h1),
                Edge("in", self.h2, self.h1),
                Edge("in", self.p2, self.h2),
                Edge("in", self.p3, self.h1b),
                Edge("other", self.h1, self.p3),
            ),
        )

    def _names(self, **kwargs):
        seen = []
        visit_hier(self.graph, lambda node, ancestors, ctx: seen.append(node["name"]), rel_test="in", **kwargs)
        return seen

    def test_preorder_with_inferred_roots(self):
        assert self._names() == ["h1", "p1", "h2", "p2", "h1b", "p3"]

    def test_ancestors_and_context(self):
        seen = {}

        def visitor(node, ancestors, ctx):
            seen[node["name"]] = (ancestors, ctx)

        visit_hier(self.graph, visitor, rel_test="in")

        ancestors, ctx = seen["p2"]
        assert ancestors == (self.h1, self.h2)
        assert ctx.graph is self.graph
        assert ctx.outgoing == ()
        assert len(ctx.incoming) == 1 and ctx.incoming[0].target is self.h2
        assert len(seen["h1"][1].outgoing) == 2

    def test_exit_halts_across_roots(self):
        seen = []

        def visitor(node, ancestors, ctx):
            seen.append(node["name"])
            if node is self.h2:
                return "exit"

        visit_hier(self.graph, visitor, rel_test="in")
        assert seen == ["h1", "p1", "h2"]

    def test_skip_does_not_descend(self):
        seen = []

        def visitor(node, ancestors, ctx):
            seen.append(node["name"])
            return "skip" if node is self.h2 else None

        visit_hier(self.graph, visitor, rel_test="in")
        assert seen == ["h1", "p1", "h2", "h1b", "p3"]

    def test_parent_to_child_direction(self):
        a, b, c = _named("a", "b", "c")
        graph = Graph(root=a, edges=(Edge("has", a, b), Edge("has", b, c)))
        seen = []
        visit_hier(graph, lambda node, *_: seen.append(node["name"]), direction="parent_to_child")
        assert seen == ["a", "b", "c"]

    def test_explicit_roots_and_children_of(self):
        assert self._names(roots=[self.h2]) == ["h2", "p2"]
        assert self._names(roots=[self.h1], children_of=lambda node, ctx: []) == ["h1"]

    def test_cycles_visit_each_node_once(self):
        a, b = _named("a", "b")
        graph = Graph(root=a, edges=(Edge("c", a, b), Edge("c", b, a)))
        seen = []
        visit_hier(graph, lambda node, *_: seen.append(node["name"]), roots=[a])
        assert seen == ["a", "b"]

    def test_falls_back_to_graph_root(self):
        doc = root()
        seen = []
        visit_hier(Graph(root=doc), lambda node, *_: seen.append(node))
        assert len(seen) == 1 and seen[0] is doc

    def test_unknown_direction(self):
        with pytest.raises(ValueError):
            visit_hier(self.graph, lambda *_: None, direction="sideways")


class TestAnalysis:
    """Test networkx-backed analysis."""

    def setup_method(self):
        self.doc = root()
        self.h1, self.p1, self.h2 = heading(1, "A"), paragraph("x"), heading(2, "B")
        self.graph = Graph(
            root=self.doc,
            edges=(
                Edge("in", self.p1, self.h1),
                Edge("in", self.h2, self.h1),
                Edge("isCode", self.doc, self.p1),
                Edge("loop", self.h1, self.h2),
            ),
        )

    def test_to_networkx(self):
        g = to_networkx(self.graph)
        assert g.number_of_nodes() == 4
        assert g.number_of_edges() == 4
        assert g.nodes["n0"]["node"] is self.p1
        assert g.nodes["n1"]["type"] == "heading"

    def test_acyclic_per_relationship(self):
        assert check_acyclic(self.graph, "in") is True
        assert find_cycles(self.graph, "in") == []

        cyclic = Graph(root=self.doc, edges=self.graph.edges + (Edge("in", self.h1, self.p1),))
        assert check_acyclic(cyclic, "in") is False
        assert sorted(find_cycles(cyclic, "in")[0]) == ["n0", "n1"]

    def test_compute_graph_stats(self):
        stats = compute_graph_stats(self.graph)
        assert stats["node_count"] == 4
        assert stats["edge_count"] == 4
        assert stats["edges_by_rel"] == {"in": 2, "isCode": 1, "loop": 1}
        assert stats["nodes_by_type"] == {"paragraph": 1, "heading": 2, "root": 1}
        assert stats["rel_count"] == 3


class TestSerialize:
    """Test dict serialization."""

    def test_graph_to_dict(self):
        doc = root()
        h1, p1 = heading(1, "Title"), paragraph("body")
        graph = Graph(root=doc, edges=(Edge("in", p1, h1), Edge("isCode", doc, p1)))
        data = graph_to_dict(graph)

        assert data["nodes"] == [
            {"id": "n0", "type": "paragraph", "text": "body"},
            {"id": "n1", "type": "heading", "text": "Title"},
            {"id": "n2", "type": "root", "text": "root"},
        ]
        assert data["edges"][1] == {"rel": "isCode", "source": "n2", "target": "n0"}
        json.dumps(data)
