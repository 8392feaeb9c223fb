"""Tests for the structural selector evaluator."""

import pytest

from docgraph.select import SelectorError, compile_selector, select_all

from mdast_builders import bullet_list, code, emphasis, heading, list_item, paragraph, root


class TestSelectAll:
    """Test selector matching over document trees."""

    def setup_method(self):
        self.h1 = heading(1, "Top")
        self.h2 = heading(2, "Sub")
        self.inner = paragraph("inside")
        self.item = list_item(self.inner)
        self.outer = paragraph("outside", emphasis("x"))
        self.fence = code("x", lang="yaml")
        self.bare = code("y")
        self.doc = root(self.h1, self.outer, bullet_list(self.item), self.h2, self.fence, self.bare)

    def _same(self, found, expected):
        return len(found) == len(expected) and all(a is b for a, b in zip(found, expected))

    def test_type_selector(self):
        assert self._same(select_all("heading", self.doc), [self.h1, self.h2])

    def test_attribute_value_compares_as_text(self):
        assert self._same(select_all('heading[depth="2"]', self.doc), [self.h2])
        assert self._same(select_all("heading[depth=1]", self.doc), [self.h1])
        assert self._same(select_all("code[lang='yaml']", self.doc), [self.fence])

    def test_attribute_presence(self):
        assert self._same(select_all("code[lang]", self.doc), [self.fence])

    def test_descendant_and_child(self):
        assert self._same(select_all("listItem paragraph", self.doc), [self.inner])
        assert self._same(select_all("list > listItem", self.doc), [self.item])
        assert select_all("root > listItem", self.doc) == []

    def test_selector_list_in_document_order(self):
        found = select_all("code, heading", self.doc)
        assert self._same(found, [self.h1, self.h2, self.fence, self.bare])

    def test_universal_includes_root(self):
        found = select_all("*", self.doc)
        assert found[0] is self.doc
        assert self._same(select_all("root", self.doc), [self.doc])

    def test_no_match(self):
        assert select_all("table", self.doc) == []


class TestCompileSelector:
    """Test selector parsing errors."""

    @pytest.mark.parametrize("selector", ["", "   ", "a >", "> a", "a,,b", "heading[", "a:first"])
    def test_malformed(self, selector):
        with pytest.raises(SelectorError):
            compile_selector(selector)

    def test_selector_error_is_value_error(self):
        assert issubclass(SelectorError, ValueError)

    def test_compiled_structure(self):
        (selector,) = compile_selector('list > listItem paragraph[x="1"]')
        assert [c.type for c in selector.compounds] == ["list", "listItem", "paragraph"]
        assert selector.combinators == (">", " ")
        assert selector.compounds[2].attributes[0].value == "1"
