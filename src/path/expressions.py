"""
Path expressions: chainable, immutable step sequences.

Three chainable kinds share the same step methods:
- Vertex: rooted at a start selector; may be finalized into a Query
- Morphism: a named fragment without a start; never finalized
- Path: a bare fragment that can be appended to either with ``+``

Every step method returns a new value with one more step appended, so an
expression held by one caller never changes under another.

Usage:
    friends = Vertex(Node("C")).out(Predicate("follows"))
    query = friends.has(Predicate("status"), Node("cool_person")).all()

    fof = Morphism("friendOfFriend").out(Predicate("follows")).out(Predicate("follows"))
    registry.save(fof)
    query = Vertex(Node("C")).follow(fof).get_limit(10)
    Compiler(registry).compile(query)
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, TypeVar

from src.path import steps as _steps
from src.path.exceptions import InvalidLimitError, MalformedStepError
from src.path.selectors import NODE_SELECTORS, AnyNode, NodeSelector
from src.path.steps import Route, Step, StepKind

_C = TypeVar("_C", bound="_Chain")


# =============================================================================
# Finalizers
# =============================================================================


@dataclass(frozen=True)
class All:
    """Fetch every result."""


@dataclass(frozen=True)
class GetLimit:
    """Fetch at most ``limit`` results."""

    limit: int


Final = All | GetLimit


def check_limit(limit: object) -> int:
    """Return ``limit`` if it is a positive integer.

    Raises:
        InvalidLimitError: For zero, negative, boolean or non-integer limits
    """
    if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
        raise InvalidLimitError(limit)
    return limit


def _freeze_steps(owner: str, values: Any) -> tuple[Step, ...]:
    frozen = tuple(values)
    for step in frozen:
        if not isinstance(step, Step):
            raise MalformedStepError(owner, f"expected Step, got {step!r}")
    return frozen


# =============================================================================
# Shared step methods
# =============================================================================


class _Chain:
    """Step methods shared by Vertex, Morphism and Path."""

    steps: tuple[Step, ...]

    def _extend(self: _C, *new_steps: Step) -> _C:
        return replace(self, steps=self.steps + new_steps)

    def __add__(self: _C, other: object) -> _C:
        if not isinstance(other, Path):
            return NotImplemented
        return self._extend(*other.steps)

    # -- traversals -----------------------------------------------------------

    def out(self: _C, predicate: Any = None, tags: Any = None) -> _C:
        """Follow outgoing edges, optionally filtered by predicate and tagged."""
        return self._extend(_steps.traverse(StepKind.OUT, predicate, tags))

    def in_(self: _C, predicate: Any = None, tags: Any = None) -> _C:
        """Follow incoming edges, optionally filtered by predicate and tagged."""
        return self._extend(_steps.traverse(StepKind.IN, predicate, tags))

    def both(self: _C, predicate: Any = None, tags: Any = None) -> _C:
        """Follow edges in both directions."""
        return self._extend(_steps.traverse(StepKind.BOTH, predicate, tags))

    def out_predicates(self: _C, predicates: Any, tags: Any = None) -> _C:
        """Follow outgoing edges matching any predicate of a PredicateSet."""
        return self._extend(_steps.traverse_predicates(StepKind.OUT_PREDICATES, predicates, tags))

    def in_predicates(self: _C, predicates: Any, tags: Any = None) -> _C:
        """Follow incoming edges matching any predicate of a PredicateSet."""
        return self._extend(_steps.traverse_predicates(StepKind.IN_PREDICATES, predicates, tags))

    def both_predicates(self: _C, predicates: Any, tags: Any = None) -> _C:
        return self._extend(_steps.traverse_predicates(StepKind.BOTH_PREDICATES, predicates, tags))

    # -- filters --------------------------------------------------------------

    def is_(self: _C, nodes: Any) -> _C:
        return self._extend(_steps.is_(nodes))

    def has(self: _C, predicate: Any, nodes: Any) -> _C:
        """Keep nodes that have ``predicate`` pointing at ``nodes``."""
        return self._extend(_steps.has(predicate, nodes))

    # -- tagging --------------------------------------------------------------

    def tag(self: _C, tags: Any) -> _C:
        """Save the current nodes under one or more tag names."""
        return self._extend(_steps.tag(tags))

    as_ = tag

    def back(self: _C, tag: Any) -> _C:
        return self._extend(_steps.back(tag))

    def save(self: _C, predicate: Any, tag: Any) -> _C:
        return self._extend(_steps.save(predicate, tag))

    # -- combinators ----------------------------------------------------------

    def and_(self: _C, route: Any) -> _C:
        """Intersect with the nodes reached by another Vertex expression."""
        return self._extend(_steps.combine(StepKind.AND, route))

    def intersect(self: _C, route: Any) -> _C:
        return self._extend(_steps.combine(StepKind.INTERSECT, route))

    def or_(self: _C, route: Any) -> _C:
        """Union with the nodes reached by another Vertex expression."""
        return self._extend(_steps.combine(StepKind.OR, route))

    def union(self: _C, route: Any) -> _C:
        return self._extend(_steps.combine(StepKind.UNION, route))

    # -- morphisms ------------------------------------------------------------

    def follow(self: _C, morphism: Morphism | str) -> _C:
        """Apply a morphism, referenced by value or by name.

        A Morphism value must be declared in the registry with the same
        steps by the time the query is compiled.
        """
        return self._extend(_steps.follow(StepKind.FOLLOW, *_morphism_ref(morphism)))

    def follow_reverse(self: _C, morphism: Morphism | str) -> _C:
        """Apply a morphism backwards."""
        return self._extend(_steps.follow(StepKind.FOLLOW_REVERSE, *_morphism_ref(morphism)))


def _morphism_ref(morphism: object) -> tuple[object, tuple[Step, ...] | None]:
    if isinstance(morphism, Morphism):
        return morphism.name, morphism.steps
    return morphism, None


# =============================================================================
# Expression kinds
# =============================================================================


@dataclass(frozen=True)
class Path(_Chain):
    """A start-less, name-less step fragment."""

    steps: tuple[Step, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "steps", _freeze_steps("Path", self.steps))


@dataclass(frozen=True)
class Morphism(_Chain):
    """A named, reusable step fragment.

    Morphisms are expanded inline wherever Follow/FollowReverse reference
    them. They have no start and are never finalized.
    """

    name: str | None = None
    steps: tuple[Step, ...] = ()

    def __post_init__(self) -> None:
        if self.name is not None and (not isinstance(self.name, str) or not self.name):
            raise MalformedStepError("Morphism", f"expected a non-empty name, got {self.name!r}")
        object.__setattr__(self, "steps", _freeze_steps("Morphism", self.steps))


@dataclass(frozen=True)
class Vertex(_Chain, Route):
    """A path expression rooted at a start selector.

    Attributes:
        start: AnyNode, Node or NodeSet
        steps: Steps in traversal order
    """

    start: NodeSelector = AnyNode
    steps: tuple[Step, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.start, NODE_SELECTORS):
            raise MalformedStepError(
                "Vertex", f"expected AnyNode, Node or NodeSet as start, got {self.start!r}"
            )
        object.__setattr__(self, "steps", _freeze_steps("Vertex", self.steps))

    def all(self) -> Query:
        """Finalize to fetch every result."""
        return Query(self, All())

    def get_limit(self, limit: int) -> Query:
        """Finalize to fetch at most ``limit`` results.

        Raises:
            InvalidLimitError: If limit is not a positive integer
        """
        return Query(self, GetLimit(check_limit(limit)))


@dataclass(frozen=True)
class Query(Route):
    """A finalized Vertex, ready to be compiled and executed.

    Query exposes no step or finalizer methods, so a finalized expression
    cannot be extended or finalized a second time.
    """

    vertex: Vertex
    final: Final

    def __post_init__(self) -> None:
        if not isinstance(self.vertex, Vertex):
            raise MalformedStepError("Query", f"expected Vertex, got {self.vertex!r}")
        if not isinstance(self.final, (All, GetLimit)):
            raise MalformedStepError("Query", f"expected All or GetLimit, got {self.final!r}")

    @property
    def start(self) -> NodeSelector:
        return self.vertex.start

    @property
    def steps(self) -> tuple[Step, ...]:
        return self.vertex.steps
