"""Structural selectors over document trees.

A small CSS-like selector language for mdast-shaped trees, used as the
default selector evaluator by the classification rules:

    heading                  every heading
    heading[depth="2"]       headings of depth 2 (values compare as text)
    code[lang]               code blocks that declare a language
    listItem paragraph       paragraphs anywhere inside a list item
    list > listItem          list items directly under a list
    heading, code            either
    *                        any node
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache

from docgraph.model import IdentitySet, Node, node_attr, node_children, node_type


class SelectorError(ValueError):
    """Raised when a selector cannot be parsed."""
    pass


_IDENT = r"[A-Za-z_][\w-]*"

_TOKEN_PATTERN = re.compile(
    r"(?P<space>\s+)"
    r"|(?P<child>>)"
    r"|(?P<comma>,)"
    rf"|(?P<type>{_IDENT}|\*)"
    r"|\[\s*(?P<attr>" + _IDENT + r")\s*"
    r"(?:=\s*(?:\"(?P<dq>[^\"]*)\"|'(?P<sq>[^']*)'|(?P<bare>[^\]\s]+))\s*)?\]"
)


@dataclass(frozen=True)
class AttributeTest:
    """``[name]`` or ``[name=value]``."""

    name: str
    value: str | None = None

    def matches(self, node: Node) -> bool:
        actual = node_attr(node, self.name)
        if actual is None:
            return False
        if self.value is None:
            return True
        return _as_text(actual) == self.value


@dataclass(frozen=True)
class Compound:
    """A type test plus any attribute tests, all of which must hold."""

    type: str | None
    attributes: tuple[AttributeTest, ...] = ()

    def matches(self, node: Node) -> bool:
        if self.type is not None and node_type(node) != self.type:
            return False
        return all(test.matches(node) for test in self.attributes)


@dataclass(frozen=True)
class Selector:
    """Compounds joined by combinators (``" "`` descendant, ``">"`` child)."""

    compounds: tuple[Compound, ...]
    combinators: tuple[str, ...]

    def matches(self, node: Node, ancestors: list[Node]) -> bool:
        return self._match_at(len(self.compounds) - 1, node, ancestors)

    def _match_at(self, i: int, node: Node, ancestors: list[Node]) -> bool:
        if not self.compounds[i].matches(node):
            return False
        if i == 0:
            return True

        if self.combinators[i - 1] == ">":
            return bool(ancestors) and self._match_at(i - 1, ancestors[-1], ancestors[:-1])

        for j in range(len(ancestors) - 1, -1, -1):
            if self._match_at(i - 1, ancestors[j], ancestors[:j]):
                return True
        return False


def _as_text(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@lru_cache(maxsize=256)
def compile_selector(selector: str) -> tuple[Selector, ...]:
    """Parse a selector list into matchers.

    Raises:
        SelectorError: If the selector is empty or malformed.
    """
    text = selector.strip()
    if not text:
        raise SelectorError("Empty selector")

    selectors: list[Selector] = []
    compounds: list[Compound] = []
    combinators: list[str] = []
    current_type: str | None = None
    current_attrs: list[AttributeTest] = []
    has_current = False
    pending: str | None = None

    def close_compound() -> None:
        nonlocal current_type, current_attrs, has_current, pending
        if not has_current:
            return
        if compounds:
            combinators.append(pending or " ")
        compounds.append(Compound(current_type, tuple(current_attrs)))
        current_type, current_attrs, has_current, pending = None, [], False, None

    def close_selector() -> None:
        nonlocal compounds, combinators
        close_compound()
        if not compounds or pending is not None:
            raise SelectorError(f"Incomplete selector: '{selector}'")
        selectors.append(Selector(tuple(compounds), tuple(combinators)))
        compounds, combinators = [], []

    pos = 0
    while pos < len(text):
        match = _TOKEN_PATTERN.match(text, pos)
        if not match:
            raise SelectorError(f"Unsupported selector syntax at {pos}: '{selector}'")
        pos = match.end()
        kind = match.lastgroup

        if kind == "space":
            close_compound()
        elif kind == "child":
            close_compound()
            if not compounds or pending is not None:
                raise SelectorError(f"Dangling '>' in selector: '{selector}'")
            pending = ">"
        elif kind == "comma":
            close_selector()
        elif kind == "type":
            if has_current:
                raise SelectorError(f"Unexpected type '{match.group('type')}' in '{selector}'")
            token = match.group("type")
            current_type = None if token == "*" else token
            has_current = True
        else:
            value = match.group("dq")
            if value is None:
                value = match.group("sq")
            if value is None:
                value = match.group("bare")
            current_attrs.append(AttributeTest(match.group("attr"), value))
            has_current = True

    close_selector()
    return tuple(selectors)


def select_all(selector: str, root: Node) -> list[Node]:
    """Return every node under ``root`` (root included) matching ``selector``.

    Results are in document (pre-order) order with no duplicates.

    Raises:
        SelectorError: If the selector is malformed.
    """
    matchers = compile_selector(selector)
    found: list[Node] = []
    seen = IdentitySet()

    def visit(node: Node, ancestors: list[Node]) -> None:
        if node not in seen and any(m.matches(node, ancestors) for m in matchers):
            seen.add(node)
            found.append(node)
        children = node_children(node)
        if children:
            ancestors.append(node)
            for child in children:
                visit(child, ancestors)
            ancestors.pop()

    visit(root, [])
    return found

