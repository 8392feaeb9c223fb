"""Tests for styles, DOT and outline export, and the top-level entry points."""

import json

import pytest

from docgraph import FORMATS, load, visualize
from docgraph.exporters import DOTExporter, OutlineExporter, graph_edges_tree_text, graph_to_dot, headings_tree_text
from docgraph.graph_utils import graph_edges_tree
from docgraph.graph_utils.hierarchy import GraphEdgesTree, GraphEdgeTreeNode
from docgraph.model import Edge, Graph
from docgraph.styles import StyleRegistry, ThemeValidationError, truncate_label

from mdast_builders import code, heading, paragraph, root, strong


def _outline_graph():
    doc = root()
    h1, body, h2, block = heading(1, "Intro"), paragraph("body"), heading(2, "More"), code("x")
    graph = Graph(
        root=doc,
        edges=(
            Edge("containedInSection", body, h1),
            Edge("containedInSection", h2, h1),
            Edge("containedInSection", block, h2),
            Edge("isCode", doc, block),
        ),
    )
    return graph, (h1, body, h2, block)


class TestGraphToDot:
    """Test the plain DOT rendering."""

    def test_one_line_per_node_and_edge(self):
        graph, _ = _outline_graph()
        lines = graph_to_dot(graph).split("\n")

        assert lines[0] == 'digraph "G" {'
        assert lines[-1] == "}"
        assert len(lines) == 1 + 5 + 4 + 1
        assert lines[1] == '  n0 [label="paragraph"];'
        assert lines[6] == '  n0 -> n1 [label="containedInSection"];'
        assert '  n4 [label="root"];' in lines

    def test_graph_name(self):
        graph, _ = _outline_graph()
        assert graph_to_dot(graph, graph_name="Doc").startswith('digraph "Doc" {')

    def test_graph_name_is_quoted_and_escaped(self):
        graph, _ = _outline_graph()
        first = graph_to_dot(graph, graph_name='my "doc"-1').split("\n")[0]
        assert first == 'digraph "my \\"doc\\"-1" {'
        assert DOTExporter().export(graph, graph_name="2 docs").startswith('digraph "2 docs" {')

    def test_labels_are_escaped(self):
        a, b = paragraph("a"), paragraph("b")
        out = graph_to_dot(Graph(root=root(), edges=(Edge('say "hi"\nnow', a, b),)))
        assert '[label="say \\"hi\\"\\nnow"]' in out
        assert out.count("\n") == 4

    def test_empty_graph(self):
        assert graph_to_dot(Graph(root=root())) == 'digraph "G" {\n}'


class TestDOTExporter:
    """Test the styled DOT exporter."""

    def test_nodes_and_edges_are_styled(self):
        graph, _ = _outline_graph()
        output = DOTExporter().export(graph)

        assert output.startswith('digraph "G" {')
        assert output.rstrip().endswith("}")
        assert 'n1 [label="heading: Intro", shape=box, style=filled, fillcolor="#6FB1FC"' in output
        assert 'label="root", shape=doubleoctagon' in output
        assert 'n4 -> n3 [label="isCode", color="#999999", penwidth=1.0, style=dashed];' in output
        assert 'n0 -> n1 [label="containedInSection", color="#4A90D9", penwidth=1.0];' in output

    def test_node_text_is_truncated_and_escaped(self):
        long = paragraph('He said "' + "word " * 30 + '"')
        graph = Graph(root=root(), edges=(Edge("r", long, root()),))
        output = DOTExporter(StyleRegistry(max_label_chars=20)).export(graph)

        assert 'label="paragraph: He said \\"word word…"' in output

    def test_export_to_file(self, tmp_path):
        graph, _ = _outline_graph()
        path = tmp_path / "graph.dot"
        DOTExporter().export_to_file(graph, path, graph_name="Doc")
        assert path.read_text().startswith('digraph "Doc" {')


class TestStyleRegistry:
    """Test theme loading and style lookup."""

    def test_bundled_theme(self):
        styles = StyleRegistry()
        assert styles.node_style(heading(1, "x")).fill_color == "#6FB1FC"
        dep = styles.edge_style("codeDependsOn")
        assert (dep.line_color, dep.line_width, dep.line_style) == ("#C0392B", 1.5, "solid")

    def test_root_and_unknown_kinds(self):
        styles = StyleRegistry()
        assert styles.node_style(root(), is_root=True).shape == "doubleoctagon"

        table = styles.node_style({"type": "table"})
        assert table.shape == "ellipse"
        assert table.fill_color == "#F8F8F8"
        assert styles.node_style(object()).border_color == "#AAAAAA"

    def test_custom_theme(self, tmp_path):
        theme = tmp_path / "theme.yaml"
        theme.write_text(
            "name: custom\n"
            "colors:\n"
            '  heading_fill: "#123456"\n'
            "edges:\n"
            "  isCode:\n"
            '    color: "#ABCDEF"\n'
            "    style: dotted\n"
            "    width: 2\n"
        )
        styles = StyleRegistry(theme=theme)

        node = styles.node_style(heading(1, "x"))
        assert node.fill_color == "#123456"
        assert node.border_color == "#4A90D9"

        edge = styles.edge_style("isCode")
        assert (edge.line_color, edge.line_width, edge.line_style) == ("#ABCDEF", 2.0, "dotted")
        assert styles.edge_style("containedInSection").line_color == "#333333"

    def test_empty_theme_uses_defaults(self, tmp_path):
        theme = tmp_path / "empty.yaml"
        theme.write_text("")
        styles = StyleRegistry(theme=theme)
        assert styles.node_style(code("x")).fill_color == "#F5A45D"
        assert styles.edge_style("isCode").line_style == "solid"

    @pytest.mark.parametrize(
        "content, field",
        [
            ('colors:\n  heading_fill: "blue"\n', "colors.heading_fill"),
            ("edges:\n  isCode:\n    style: wavy\n", "edges.isCode.style"),
            ("edges:\n  isCode:\n    width: 0\n", "edges.isCode.width"),
            ("fonts: {}\n", "root"),
        ],
    )
    def test_invalid_theme_reports_field(self, tmp_path, content, field):
        theme = tmp_path / "bad.yaml"
        theme.write_text(content)
        with pytest.raises(ThemeValidationError, match=f"'{field}'"):
            StyleRegistry(theme=theme)

    def test_malformed_yaml(self, tmp_path):
        theme = tmp_path / "broken.yaml"
        theme.write_text("colors: [unclosed\n")
        with pytest.raises(ThemeValidationError):
            StyleRegistry(theme=theme)

    def test_non_mapping_theme(self, tmp_path):
        theme = tmp_path / "list.yaml"
        theme.write_text("- a\n- b\n")
        with pytest.raises(ThemeValidationError, match="expected a mapping"):
            StyleRegistry(theme=theme)

    def test_missing_theme(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            StyleRegistry(theme=tmp_path / "nope.yaml")

    def test_truncate_label(self):
        assert truncate_label("short", 10) == ("short", False)
        text, truncated = truncate_label("alpha beta gamma delta", 12)
        assert truncated
        assert text == "alpha beta…"


class TestOutline:
    """Test tree text rendering."""

    def test_relationship_bullets(self):
        graph, _ = _outline_graph()
        tree = graph_edges_tree(graph.edges, relationships=["containedInSection"])

        assert graph_edges_tree_text(tree, label=lambda node, **_: node.label.split(" ")[0]) == (
            "- containedInSection\n"
            "  heading:#1\n"
            "  ├─ paragraph:body\n"
            "  └─ heading:#2\n"
            "     └─ {\"type\":"
        )

    def test_emit_and_follow(self):
        graph, _ = _outline_graph()
        tree = graph_edges_tree(graph.edges, relationships=["containedInSection"])

        shallow = graph_edges_tree_text(tree, should_follow=lambda node, **_: node.level < 1)
        assert shallow == (
            "- containedInSection\n"
            "  heading:#1 Intro\n"
            "  ├─ paragraph:body\n"
            "  └─ heading:#2 More"
        )

    def test_secondary_relationship_prunes_to_touching_nodes(self):
        h1, h2, p = heading(1, "A"), heading(2, "B"), paragraph("p")
        edges = [
            Edge("in", h2, h1),
            Edge("in", p, h2),
            Edge("tag", p, h2),
        ]
        tree = graph_edges_tree(edges, relationships=["in", "tag"])

        assert graph_edges_tree_text(tree) == (
            "- in\n"
            "  heading:#1 A\n"
            "  └─ heading:#2 B\n"
            "     └─ paragraph:p\n"
            "\n"
            "- tag\n"
            "  heading:#1 A\n"
            "  └─ heading:#2 B\n"
            "     └─ paragraph:p"
        )

    def test_plain_rendering_without_relationships(self):
        b = GraphEdgeTreeNode(node={}, edge=None, rels=[], label="B", level=1)
        c = GraphEdgeTreeNode(node={}, edge=None, rels=[], label="C", level=1)
        a = GraphEdgeTreeNode(node={}, edge=None, rels=[], label="A", level=0, children=[b, c])
        d = GraphEdgeTreeNode(node={}, edge=None, rels=[], label="D", level=0)

        single = graph_edges_tree_text(GraphEdgesTree(rels=[], edges=[], roots=[a]))
        assert single == "A\n   ├─ B\n   └─ C"

        several = graph_edges_tree_text(GraphEdgesTree(rels=[], edges=[], roots=[a, d]))
        assert several == "A\n│  ├─ B\n│  └─ C\n\nD"

    def test_headings_only(self):
        graph, _ = _outline_graph()
        tree = graph_edges_tree(graph.edges, relationships=["containedInSection"])

        assert headings_tree_text(tree) == (
            "- containedInSection\n"
            "  heading:#1 Intro\n"
            "  └─ heading:#2 More"
        )

        colored = headings_tree_text(tree, emit_colors=True)
        assert "\x1b[1mheading:#1 Intro\x1b[0m" in colored
        assert "\x1b[36mheading:#2 More\x1b[0m" in colored

    def test_headings_only_keeps_pseudo_headings(self):
        h1, label, p = heading(1, "A"), paragraph(strong("Setup")), paragraph("p")
        tree = graph_edges_tree(
            [Edge("in", label, h1), Edge("in", p, label)],
            relationships=["in"],
        )
        assert headings_tree_text(tree) == "- in\n  heading:#1 A\n  └─ " + tree.roots[0].children[0].label

    def test_outline_exporter(self, tmp_path):
        graph, _ = _outline_graph()
        exporter = OutlineExporter(headings_only=True)
        path = tmp_path / "outline.txt"
        exporter.export_to_file(graph, path)

        assert path.read_text() == exporter.export(graph)
        assert path.read_text().endswith("└─ heading:#2 More")
        assert OutlineExporter(rel="missing").export(graph) == ""


class TestVisualize:
    """Test the top-level render entry point."""

    def setup_method(self):
        self.doc = root(heading(1, "Intro"), paragraph("body"), heading(2, "More"), code("ls", lang="bash"))
        self.graph = load(self.doc)

    def test_load_runs_standard_rules(self):
        rels = {e.rel for e in self.graph.edges}
        assert {"containedInSection", "isCode"} <= rels
        assert self.graph.root is self.doc

    def test_formats(self):
        assert FORMATS == ["dot", "json", "outline"]

        assert visualize(self.graph).startswith('digraph "G" {')

        data = json.loads(visualize(self.graph, format="json"))
        assert {"rel", "source", "target"} == set(data["edges"][0])
        assert any(node["type"] == "root" for node in data["nodes"])

        outline = visualize(self.graph, format="outline")
        assert outline.startswith("- containedInSection\n  heading:#1 Intro")

    def test_unsupported_format(self):
        with pytest.raises(ValueError, match="Unsupported format"):
            visualize(self.graph, format="svg")

    def test_writes_output(self, tmp_path):
        path = tmp_path / "graph.json"
        content = visualize(self.graph, output=path, format="json")
        assert path.read_text() == content

    def test_theme_errors_surface(self, tmp_path):
        theme = tmp_path / "bad.yaml"
        theme.write_text('colors:\n  heading_fill: "nope"\n')
        with pytest.raises(ThemeValidationError):
            visualize(self.graph, theme=theme)
