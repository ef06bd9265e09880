"""
Selector values used as arguments to path steps.

Selectors identify graph elements: a specific node, a set of nodes, a
predicate, a set of predicates, a tag or a set of tags. ``AnyNode`` stands
for every node in the graph. "Any predicate" and "any tag" are expressed by
leaving the argument out.

Selectors are frozen dataclasses: immutable, hashable and compared by value.

Usage:
    Vertex(Node("C")).out(Predicate("follows"), Tag("friend"))
    Vertex(AnyNode).has(Predicate("status"), NodeSet(["cool_person", "smart_person"]))
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from src.path.exceptions import MalformedStepError


def _check_name(kind: str, value: object) -> None:
    if not isinstance(value, str) or not value:
        raise MalformedStepError(kind, f"expected a non-empty string, got {value!r}")


def _freeze_names(kind: str, values: Iterable[str]) -> tuple[str, ...]:
    if isinstance(values, str):
        raise MalformedStepError(kind, f"expected a sequence of names, got string {values!r}")
    names = tuple(values)
    if not names:
        raise MalformedStepError(kind, "expected at least one name")
    for name in names:
        _check_name(kind, name)
    return names


# =============================================================================
# Node selectors
# =============================================================================


@dataclass(frozen=True)
class AnyNodeSelector:
    """Every node in the graph (``g.V()``)."""

    def __repr__(self) -> str:
        return "AnyNode"


AnyNode = AnyNodeSelector()


@dataclass(frozen=True)
class Node:
    """A single node identified by its id."""

    id: str

    def __post_init__(self) -> None:
        _check_name("Node", self.id)


@dataclass(frozen=True)
class NodeSet:
    """Several nodes; order is preserved on the wire."""

    ids: tuple[str, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "ids", _freeze_names("NodeSet", self.ids))


# =============================================================================
# Predicate selectors
# =============================================================================


@dataclass(frozen=True)
class Predicate:
    """A single predicate (edge label)."""

    name: str

    def __post_init__(self) -> None:
        _check_name("Predicate", self.name)


@dataclass(frozen=True)
class PredicateSet:
    """Several predicates, matched as OR-of-predicates; order is preserved."""

    names: tuple[str, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "names", _freeze_names("PredicateSet", self.names))


# =============================================================================
# Tag selectors
# =============================================================================


@dataclass(frozen=True)
class Tag:
    """A single tag name."""

    name: str

    def __post_init__(self) -> None:
        _check_name("Tag", self.name)


@dataclass(frozen=True)
class TagSet:
    """Several tag names applied at once."""

    names: tuple[str, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "names", _freeze_names("TagSet", self.names))


NodeSelector = AnyNodeSelector | Node | NodeSet
TagSelector = Tag | TagSet
Selector = AnyNodeSelector | Node | NodeSet | Predicate | PredicateSet | Tag | TagSet

NODE_SELECTORS = (AnyNodeSelector, Node, NodeSet)
TAG_SELECTORS = (Tag, TagSet)


def node_ids(selector: NodeSelector) -> tuple[str, ...]:
    """Return the ids named by a node selector (empty for AnyNode)."""
    if isinstance(selector, Node):
        return (selector.id,)
    if isinstance(selector, NodeSet):
        return selector.ids
    return ()


def encode_selector(selector: Selector) -> str | list[str]:
    """Encode a selector operand: a string for one name, a list for a set."""
    if isinstance(selector, Node):
        return selector.id
    if isinstance(selector, (Predicate, Tag)):
        return selector.name
    if isinstance(selector, NodeSet):
        return list(selector.ids)
    if isinstance(selector, (PredicateSet, TagSet)):
        return list(selector.names)
    raise MalformedStepError("selector", f"{selector!r} has no operand encoding")
