"""Rule algebra and pipeline runner for relationship edges.

A rule receives the run context and the edge stream produced by the rules
before it, and returns the stream for the rules after it:

    root -> rule1 -> rule2 -> rule3 -> ... -> final edges

Returning ``False`` from a rule discards everything produced so far.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Hashable, Iterable, Iterator
from typing import TYPE_CHECKING, Any, Literal, TypeVar, Union

from docgraph.model import Edge, Graph, Node, RuleContext, node_type

if TYPE_CHECKING:
    from typing import Self

logger = logging.getLogger(__name__)

Ctx = TypeVar("Ctx", bound=RuleContext)

# Type aliases
RuleResult = Union[Iterable[Edge], Literal[False]]
Rule = Callable[[Any, Iterable[Edge]], RuleResult]
BuildFn = Callable[[Any], RuleResult]
TransformResult = Union[Edge, Iterable[Edge], None, Literal[False]]
TransformFn = Callable[[Any, Edge], TransformResult]
PredicateFn = Callable[[Any, Edge], bool]
KeyFn = Callable[[Edge], Hashable]
TapFn = Callable[[Any, Edge], None]
FinalizeFn = Callable[[Any, Iterable[Edge]], Iterable[Edge]]
RulesSource = Union[Iterable[Rule], Callable[[Any], Iterable[Rule]]]


# -----------------------------------------------------------------------------
# Combinators
# -----------------------------------------------------------------------------


def source_rule(build: BuildFn) -> Rule:
    """Emit only the edges from ``build(ctx)``, ignoring incoming ones."""

    def rule(ctx: Any, incoming: Iterable[Edge]) -> RuleResult:
        return build(ctx)

    return rule


def augment_rule(build: BuildFn) -> Rule:
    """Pass incoming edges through, then append ``build(ctx)``.

    When ``build`` returns False the incoming stream is returned untouched.
    """

    def rule(ctx: Any, incoming: Iterable[Edge]) -> RuleResult:
        built = build(ctx)
        if built is False:
            return incoming

        def output() -> Iterator[Edge]:
            yield from incoming
            yield from built

        return output()

    return rule


def transform_rule(transform: TransformFn) -> Rule:
    """Rewrite, expand or drop each incoming edge.

    ``transform(ctx, edge)`` may return an edge, an iterable of edges, or
    None/False to drop. Input order is preserved.
    """

    def rule(ctx: Any, incoming: Iterable[Edge]) -> Iterator[Edge]:
        for edge in incoming:
            out = transform(ctx, edge)
            if out is None or out is False:
                continue
            if isinstance(out, Edge):
                yield out
            else:
                yield from out

    return rule


def filter_edges_rule(predicate: PredicateFn) -> Rule:
    """Keep only edges for which ``predicate(ctx, edge)`` is true."""
    return transform_rule(lambda ctx, edge: edge if predicate(ctx, edge) else None)


def dedupe_edges_rule(key_fn: KeyFn) -> Rule:
    """Keep the first edge seen for each ``key_fn(edge)`` value."""

    def rule(ctx: Any, incoming: Iterable[Edge]) -> Iterator[Edge]:
        seen: set[Hashable] = set()
        for edge in incoming:
            key = key_fn(edge)
            if key in seen:
                continue
            seen.add(key)
            yield edge

    return rule


def tap_rule(fn: TapFn) -> Rule:
    """Call ``fn(ctx, edge)`` on every edge and pass it on unchanged."""

    def rule(ctx: Any, incoming: Iterable[Edge]) -> Iterator[Edge]:
        for edge in incoming:
            fn(ctx, edge)
            yield edge

    return rule


def finalize_rule(fn: FinalizeFn) -> Rule:
    """Hand the whole stream to ``fn`` (sorting, batching, aggregation)."""

    def rule(ctx: Any, incoming: Iterable[Edge]) -> RuleResult:
        return fn(ctx, incoming)

    return rule


def logging_tap(
    log: logging.Logger | None = None,
    level: int = logging.DEBUG,
) -> TapFn:
    """Build a tap callback that logs every edge passing through.

    Example:
        builder.tap(logging_tap(level=logging.INFO))
    """
    target = log or logger

    def fn(ctx: Any, edge: Edge) -> None:
        target.log(
            level,
            "edge %s: %s -> %s",
            edge.rel,
            node_type(edge.source) or "node",
            node_type(edge.target) or "node",
        )

    return fn


# -----------------------------------------------------------------------------
# Fluent builder
# -----------------------------------------------------------------------------


class GraphRulesBuilder:
    """Accumulate rules in order for :func:`ast_graph_edges`.

    Every method appends one rule and returns the builder for chaining.
    The builder keeps no per-run state, so a built list can be reused
    across any number of pipeline runs.
    """

    def __init__(self) -> None:
        self._rules: list[Rule] = []

    def use(self, rule: Rule) -> Self:
        """Append a pre-built rule."""
        self._rules.append(rule)
        return self

    def source(self, build: BuildFn) -> Self:
        """Append a :func:`source_rule`."""
        self._rules.append(source_rule(build))
        return self

    def augment(self, build: BuildFn) -> Self:
        """Append an :func:`augment_rule`."""
        self._rules.append(augment_rule(build))
        return self

    def transform(self, transform: TransformFn) -> Self:
        """Append a :func:`transform_rule`."""
        self._rules.append(transform_rule(transform))
        return self

    def filter(self, predicate: PredicateFn) -> Self:
        """Append a :func:`filter_edges_rule`."""
        self._rules.append(filter_edges_rule(predicate))
        return self

    def dedupe(self, key_fn: KeyFn) -> Self:
        """Append a :func:`dedupe_edges_rule`."""
        self._rules.append(dedupe_edges_rule(key_fn))
        return self

    def tap(self, fn: TapFn) -> Self:
        """Append a :func:`tap_rule`."""
        self._rules.append(tap_rule(fn))
        return self

    def finalize(self, fn: FinalizeFn) -> Self:
        """Append a :func:`finalize_rule`."""
        self._rules.append(finalize_rule(fn))
        return self

    def build(self) -> list[Rule]:
        """Return a copy of the accumulated rules."""
        return list(self._rules)


def create_graph_rules_builder() -> GraphRulesBuilder:
    return GraphRulesBuilder()


# -----------------------------------------------------------------------------
# Pipeline
# -----------------------------------------------------------------------------


def ast_graph_edges(
    root: Node,
    *,
    rules: RulesSource,
    prepare_context: Callable[[Node], Any] = RuleContext,
) -> Iterator[Edge]:
    """Run ``rules`` in order over ``root`` and yield the final edges.

    Args:
        root: Root of the document tree.
        rules: Rule list, or a callable taking the context and returning one.
        prepare_context: Factory building the run context from the root.

    Yields:
        Edges of the last rule's output stream. Nothing (context included)
        is evaluated until the first edge is requested.
    """
    ctx = prepare_context(root)
    rule_list = rules(ctx) if callable(rules) else rules

    current: Iterable[Edge] = ()
    for index, rule in enumerate(rule_list):
        produced = rule(ctx, current)
        if produced is False:
            logger.debug("rule %d contributed nothing; stream reset", index)
            current = ()
            continue
        current = produced

    yield from current


def build_graph(
    root: Node,
    *,
    rules: RulesSource | None = None,
    prepare_context: Callable[[Node], Any] = RuleContext,
) -> Graph:
    """Run a pipeline to completion and snapshot the result as a Graph.

    Uses :func:`docgraph.rules.typical_rules` when ``rules`` is None.
    """
    if rules is None:
        from docgraph.rules.typical import typical_rules

        rules = typical_rules()

    edges = tuple(ast_graph_edges(root, rules=rules, prepare_context=prepare_context))
    logger.debug("built graph with %d edges", len(edges))
    return Graph(root=root, edges=edges)
