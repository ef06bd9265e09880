"""
Step model for path expressions.

A Step is one traversal, filter, tagging, combinator or morphism operation.
Each factory in this module validates the shape of its operands and raises
MalformedStepError immediately, so a malformed step can never be part of an
expression.

Operands are stored positionally. An omitted ("any") operand is None.
Sub-expression operands are Route instances (Vertex or Query); morphism
operands are MorphismRef values holding only the morphism name, resolved
later by the Compiler.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from src.path.exceptions import MalformedStepError
from src.path.selectors import (
    TAG_SELECTORS,
    Node,
    NodeSet,
    Predicate,
    PredicateSet,
    Tag,
)


class StepKind(Enum):
    """Step operation names, as they appear in the wire query."""

    # Traversals
    OUT = "Out"
    IN = "In"
    BOTH = "Both"
    OUT_PREDICATES = "OutPredicates"
    IN_PREDICATES = "InPredicates"
    BOTH_PREDICATES = "BothPredicates"
    # Filters
    IS = "Is"
    HAS = "Has"
    # Tagging
    TAG = "Tag"
    BACK = "Back"
    SAVE = "Save"
    # Set combinators
    AND = "And"
    OR = "Or"
    INTERSECT = "Intersect"
    UNION = "Union"
    # Morphisms
    FOLLOW = "Follow"
    FOLLOW_REVERSE = "FollowReverse"


COMBINATOR_KINDS = frozenset(
    {StepKind.AND, StepKind.OR, StepKind.INTERSECT, StepKind.UNION}
)
FOLLOW_KINDS = frozenset({StepKind.FOLLOW, StepKind.FOLLOW_REVERSE})
PREDICATE_SET_KINDS = frozenset(
    {StepKind.OUT_PREDICATES, StepKind.IN_PREDICATES, StepKind.BOTH_PREDICATES}
)


class Route:
    """Base class for expressions that may be nested as step operands.

    Vertex and Query derive from it. A Query is accepted at construction
    time but rejected by the Compiler with NestedFinalizerError.
    """

    __slots__ = ()


@dataclass(frozen=True)
class MorphismRef:
    """Lazy reference to a morphism by name.

    When the reference was made from a Morphism value, ``expected`` holds
    that value's steps; the Compiler checks them against the registry entry.
    """

    name: str
    expected: tuple[Step, ...] | None = None


@dataclass(frozen=True)
class Step:
    """One operation of a path expression."""

    kind: StepKind
    operands: tuple[Any, ...] = ()

    def __repr__(self) -> str:
        args = ", ".join(repr(operand) for operand in self.operands)
        return f"{self.kind.value}({args})"


# =============================================================================
# Operand checks
# =============================================================================


def _check_tags(kind: StepKind, tags: object, *, required: bool = False) -> None:
    if tags is None and not required:
        return
    if not isinstance(tags, TAG_SELECTORS):
        raise MalformedStepError(kind.value, f"expected Tag or TagSet, got {tags!r}")


def _check_route(kind: StepKind, route: object) -> None:
    if not isinstance(route, Route):
        raise MalformedStepError(
            kind.value, f"expected a Vertex sub-expression, got {route!r}"
        )


# =============================================================================
# Traversals
# =============================================================================


def traverse(kind: StepKind, predicate: object = None, tags: object = None) -> Step:
    """Build an Out/In/Both step.

    Args:
        kind: StepKind.OUT, StepKind.IN or StepKind.BOTH
        predicate: Predicate, a Vertex whose nodes are used as predicates,
                   or None for any predicate
        tags: Optional Tag or TagSet labelling the traversed predicate

    Raises:
        MalformedStepError: If an operand has the wrong shape
    """
    if predicate is not None and not isinstance(predicate, (Predicate, Route)):
        hint = " (use the *_predicates variant)" if isinstance(predicate, PredicateSet) else ""
        raise MalformedStepError(
            kind.value, f"expected Predicate or sub-expression, got {predicate!r}{hint}"
        )
    _check_tags(kind, tags)
    return Step(kind, (predicate, tags))


def traverse_predicates(kind: StepKind, predicates: object, tags: object = None) -> Step:
    """Build an OutPredicates/InPredicates/BothPredicates step.

    Raises:
        MalformedStepError: If predicates is not a PredicateSet
    """
    if not isinstance(predicates, PredicateSet):
        raise MalformedStepError(kind.value, f"expected PredicateSet, got {predicates!r}")
    _check_tags(kind, tags)
    return Step(kind, (predicates, tags))


# =============================================================================
# Filters
# =============================================================================


def is_(nodes: object) -> Step:
    """Build an Is step keeping only the given node(s)."""
    if not isinstance(nodes, (Node, NodeSet)):
        raise MalformedStepError(StepKind.IS.value, f"expected Node or NodeSet, got {nodes!r}")
    return Step(StepKind.IS, (nodes,))


def has(predicate: object, nodes: object) -> Step:
    """Build a Has step keeping nodes with ``predicate`` pointing at ``nodes``."""
    if not isinstance(predicate, Predicate):
        raise MalformedStepError(StepKind.HAS.value, f"expected Predicate, got {predicate!r}")
    if not isinstance(nodes, (Node, NodeSet)):
        raise MalformedStepError(StepKind.HAS.value, f"expected Node or NodeSet, got {nodes!r}")
    return Step(StepKind.HAS, (predicate, nodes))


# =============================================================================
# Tagging
# =============================================================================


def tag(tags: object) -> Step:
    """Build a Tag (As) step."""
    _check_tags(StepKind.TAG, tags, required=True)
    return Step(StepKind.TAG, (tags,))


def back(tag_: object) -> Step:
    """Build a Back step returning to the nodes saved under ``tag_``."""
    if not isinstance(tag_, Tag):
        raise MalformedStepError(StepKind.BACK.value, f"expected Tag, got {tag_!r}")
    return Step(StepKind.BACK, (tag_,))


def save(predicate: object, tag_: object) -> Step:
    """Build a Save step storing the object of ``predicate`` under ``tag_``."""
    if not isinstance(predicate, Predicate):
        raise MalformedStepError(StepKind.SAVE.value, f"expected Predicate, got {predicate!r}")
    if not isinstance(tag_, Tag):
        raise MalformedStepError(StepKind.SAVE.value, f"expected Tag, got {tag_!r}")
    return Step(StepKind.SAVE, (predicate, tag_))


# =============================================================================
# Combinators and morphisms
# =============================================================================


def combine(kind: StepKind, route: object) -> Step:
    """Build an And/Or/Intersect/Union step over a sub-expression."""
    _check_route(kind, route)
    return Step(kind, (route,))


def follow(kind: StepKind, name: object, expected: tuple[Step, ...] | None = None) -> Step:
    """Build a Follow/FollowReverse step.

    Args:
        kind: StepKind.FOLLOW or StepKind.FOLLOW_REVERSE
        name: Name of the morphism to expand
        expected: Steps of the Morphism value the caller passed, if any

    The Compiler resolves the name against the registry; when ``expected``
    is given, the registered steps must be equal to it.
    """
    if not isinstance(name, str) or not name:
        raise MalformedStepError(kind.value, f"expected a morphism name, got {name!r}")
    return Step(kind, (MorphismRef(name, expected),))
