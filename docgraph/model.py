"""Graph data model for document relationship graphs.

Nodes belong to the caller's document tree (mdast-shaped mappings or plain
objects) and are only ever held and compared by identity. Edges and graphs
are immutable values produced by a rule pipeline.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

# Type aliases
Node = Any
Relationship = str

V = TypeVar("V")


def node_attr(node: Node, name: str, default: Any = None) -> Any:
    """Read an attribute from a node.

    Works for mapping nodes (``{"type": "heading", "depth": 2}``) and for
    objects exposing the same names as attributes.
    """
    if isinstance(node, Mapping):
        return node.get(name, default)
    return getattr(node, name, default)


def node_type(node: Node) -> str | None:
    """Get the node kind (``"heading"``, ``"code"``, ...), if it has one."""
    value = node_attr(node, "type")
    return value if isinstance(value, str) else None


def node_children(node: Node) -> list[Node]:
    """Get the child list of a node, or an empty list for leaves."""
    children = node_attr(node, "children")
    if isinstance(children, (list, tuple)):
        return list(children)
    return []


class IdentityDict(Generic[V]):
    """Mapping keyed by node identity rather than equality.

    Document nodes are frequently unhashable dicts, and two structurally
    equal nodes are still different nodes. Keys are held strongly so their
    ``id()`` stays valid for the lifetime of the map. Iteration follows
    insertion order.
    """

    def __init__(self) -> None:
        self._items: dict[int, tuple[Node, V]] = {}

    def __contains__(self, node: Node) -> bool:
        return id(node) in self._items

    def __getitem__(self, node: Node) -> V:
        try:
            return self._items[id(node)][1]
        except KeyError:
            raise KeyError(node) from None

    def __setitem__(self, node: Node, value: V) -> None:
        key = id(node)
        if key in self._items:
            self._items[key] = (self._items[key][0], value)
        else:
            self._items[key] = (node, value)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Node]:
        return self.keys()

    def get(self, node: Node, default: V | None = None) -> V | None:
        entry = self._items.get(id(node))
        return entry[1] if entry is not None else default

    def setdefault(self, node: Node, default: V) -> V:
        if node not in self:
            self[node] = default
        return self[node]

    def keys(self) -> Iterator[Node]:
        return (node for node, _ in self._items.values())

    def values(self) -> Iterator[V]:
        return (value for _, value in self._items.values())

    def items(self) -> Iterator[tuple[Node, V]]:
        return iter(list(self._items.values()))


class IdentitySet:
    """Insertion-ordered set of nodes compared by identity."""

    def __init__(self, nodes: Iterable[Node] = ()) -> None:
        self._items: dict[int, Node] = {}
        for node in nodes:
            self.add(node)

    def add(self, node: Node) -> None:
        self._items.setdefault(id(node), node)

    def __contains__(self, node: Node) -> bool:
        return id(node) in self._items

    def __iter__(self) -> Iterator[Node]:
        return iter(list(self._items.values()))

    def __len__(self) -> int:
        return len(self._items)


@dataclass(frozen=True, eq=False)
class Edge:
    """A directed, labeled relationship between two nodes.

    ``source`` and ``target`` are the from/to endpoints. Direction is a
    convention of whichever rule produced the edge (containment edges point
    child -> container). Equality is identity, so identical triples coexist
    until a dedupe rule removes them.
    """

    rel: Relationship
    source: Node
    target: Node


@dataclass(frozen=True, eq=False)
class Graph:
    """A root node plus the edges computed for it."""

    root: Node
    edges: tuple[Edge, ...] = ()


@dataclass(frozen=True)
class RuleContext:
    """State visible to every rule of one pipeline run.

    Subclass this to add precomputed lookups and pass a matching
    ``prepare_context`` factory to the pipeline.
    """

    root: Node


def define_relationships(*relationships: Relationship) -> tuple[Relationship, ...]:
    """Declare the closed set of relationship labels a pipeline uses.

    Example:
        RELS = define_relationships("containedInHeading", "isTask")
    """
    return relationships


def node_ids(graph: Graph) -> IdentityDict[str]:
    """Assign stable synthetic ids (``n0``, ``n1``, ...) to graph nodes.

    Nodes are numbered in first-seen order over ``graph.edges``, the source
    of each edge before its target. Nodes not referenced by any edge get
    no id.
    """
    ids: IdentityDict[str] = IdentityDict()
    for edge in graph.edges:
        for node in (edge.source, edge.target):
            if node not in ids:
                ids[node] = f"n{len(ids)}"
    return ids
