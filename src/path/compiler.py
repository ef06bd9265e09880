"""
Compiler from path expressions to wire queries.

The Compiler walks a finalized Query's steps in declared order and renders
each one as a single-key mapping ``{"<StepOp>": <operands>}``, then appends
the finalizer. Compilation is side-effect-free apart from debug logging and
touches no network.

Operand encoding:
- Node, Predicate, Tag: the name as a string
- NodeSet, PredicateSet, TagSet: a list of names, order preserved
- Omitted ("any") operand: null; trailing omitted operands are dropped
- Vertex sub-expression: a list headed by ``{"V": [start ids]}`` followed by
  the sub-expression's rendered steps
- Morphism reference: a list of the morphism's rendered steps, expanded
  inline (no morphism names survive in the output)
- GetLimit: the integer limit

A step with exactly one operand renders it bare, zero operands render ``[]``
and several operands render a list.

Example:
    Vertex(Node("C")).follow("friendOfFriend").all()
    -> start ["C"], steps [{"Follow": [{"OutPredicates": ["follows"]}]}, {"All": []}]
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from src.core.logging import get_logger
from src.path.exceptions import (
    MissingFinalizerError,
    MorphismCycleError,
    MorphismMismatchError,
    NestedFinalizerError,
)
from src.path.expressions import All, Final, GetLimit, Morphism, Path, Query, Vertex, check_limit
from src.path.registry import MorphismRegistry
from src.path.selectors import encode_selector, node_ids
from src.path.steps import COMBINATOR_KINDS, FOLLOW_KINDS, MorphismRef, Route, Step, StepKind

logger = get_logger("compiler")

START_OP = "V"
ALL_OP = "All"
GET_LIMIT_OP = "GetLimit"

WireStep = dict[str, Any]


@dataclass(frozen=True)
class WireQuery:
    """Compiled query: start node ids plus the ordered wire steps.

    Attributes:
        start: Start node ids; empty means every node
        steps: Rendered steps, the finalizer last
    """

    start: tuple[str, ...]
    steps: tuple[WireStep, ...]

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self) -> Iterator[WireStep]:
        return iter(self.steps)

    def __getitem__(self, index: int) -> WireStep:
        return self.steps[index]

    def to_list(self) -> list[WireStep]:
        return list(self.steps)

    def to_json(self) -> str:
        """Serialize the step sequence as compact, deterministic JSON.

        Covers ``steps`` only; the start ids travel separately (they become
        the ``g.V(...)`` head of the Gremlin program). Compare whole WireQuery
        values when the start matters.
        """
        return json.dumps(self.to_list(), separators=(",", ":"), ensure_ascii=False)


class Compiler:
    """Renders Query expressions into WireQuery values.

    Usage:
        compiler = Compiler(registry)
        wire = compiler.compile(Vertex(AnyNode).all())
        wire.to_json()  # '[{"All":[]}]'
    """

    def __init__(self, registry: MorphismRegistry | None = None) -> None:
        """Initialize compiler.

        Args:
            registry: Registry used to resolve Follow/FollowReverse references
                      (default: a new empty registry)
        """
        self._registry = registry if registry is not None else MorphismRegistry()

    @property
    def registry(self) -> MorphismRegistry:
        return self._registry

    def compile(self, expression: Query | Vertex | Morphism | Path) -> WireQuery:
        """Compile a finalized Query.

        Raises:
            MissingFinalizerError: If expression is not a finalized Query
            NestedFinalizerError: If a combinator operand is finalized
            UnknownMorphismError: If a referenced morphism is not declared
            MorphismCycleError: If morphisms reference each other in a cycle
            MorphismMismatchError: If a followed Morphism value differs from its declaration
            InvalidLimitError: If the GetLimit limit is not positive
        """
        if not isinstance(expression, Query):
            raise MissingFinalizerError(
                f"{type(expression).__name__} has no finalizer; "
                "call all() or get_limit(n) on a Vertex before compiling"
            )

        steps = self._render_steps(expression.steps, chain=())
        steps.append(self._render_final(expression.final))
        wire = WireQuery(start=node_ids(expression.start), steps=tuple(steps))

        logger.debug(
            "Compiled query",
            extra={"context": {"start": list(wire.start), "steps": len(wire)}},
        )
        return wire

    def compile_route(self, vertex: Vertex) -> WireQuery:
        """Compile an unfinalized Vertex, e.g. to inspect a sub-expression.

        Raises:
            NestedFinalizerError: If vertex is a finalized Query
        """
        if isinstance(vertex, Query):
            raise NestedFinalizerError("compile_route")
        if not isinstance(vertex, Vertex):
            raise MissingFinalizerError(f"{type(vertex).__name__} is not a Vertex expression")
        return WireQuery(
            start=node_ids(vertex.start),
            steps=tuple(self._render_steps(vertex.steps, chain=())),
        )

    # =========================================================================
    # Rendering
    # =========================================================================

    def _render_steps(self, steps: tuple[Step, ...], chain: tuple[str, ...]) -> list[WireStep]:
        return [self._render_step(step, chain) for step in steps]

    def _render_step(self, step: Step, chain: tuple[str, ...]) -> WireStep:
        if step.kind in COMBINATOR_KINDS:
            return {step.kind.value: self._render_route(step.kind, step.operands[0], chain)}

        if step.kind in FOLLOW_KINDS:
            ref: MorphismRef = step.operands[0]
            return {step.kind.value: self._render_morphism(ref, chain)}

        operands = list(step.operands)
        while operands and operands[-1] is None:
            operands.pop()
        encoded = [self._render_operand(step.kind, operand, chain) for operand in operands]

        if len(encoded) == 1:
            return {step.kind.value: encoded[0]}
        return {step.kind.value: encoded}

    def _render_operand(self, kind: StepKind, operand: Any, chain: tuple[str, ...]) -> Any:
        if operand is None:
            return None
        if isinstance(operand, Route):
            return self._render_route(kind, operand, chain)
        return encode_selector(operand)

    def _render_route(self, kind: StepKind, route: Route, chain: tuple[str, ...]) -> list[WireStep]:
        if isinstance(route, Query):
            raise NestedFinalizerError(kind.value)
        assert isinstance(route, Vertex)  # For type checker
        head: WireStep = {START_OP: list(node_ids(route.start))}
        return [head, *self._render_steps(route.steps, chain)]

    def _render_morphism(self, ref: MorphismRef, chain: tuple[str, ...]) -> list[WireStep]:
        if ref.name in chain:
            raise MorphismCycleError([*chain, ref.name])
        morphism = self._registry.resolve(ref.name)
        if ref.expected is not None and ref.expected != morphism.steps:
            raise MorphismMismatchError(ref.name)
        return self._render_steps(morphism.steps, (*chain, ref.name))

    @staticmethod
    def _render_final(final: Final) -> WireStep:
        if isinstance(final, All):
            return {ALL_OP: []}
        if isinstance(final, GetLimit):
            return {GET_LIMIT_OP: check_limit(final.limit)}
        raise MissingFinalizerError(f"Unknown finalizer {final!r}")
