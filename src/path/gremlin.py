"""
Gremlin text rendering of wire queries.

The Cayley HTTP endpoint accepts a Gremlin (JavaScript) program as the
request body. This module turns a WireQuery into that program:

    start ["foo"], steps [{"Or": [{"V": ["bar"]}, {"Has": ["status", "cool_person"]}]},
                          {"All": []}]
    -> g.V("foo").Or(g.V("bar").Has("status","cool_person")).All()

Inlined morphisms are rendered as ``g.M()`` paths passed straight to
Follow/FollowR. String literals are JSON-escaped.
"""

from __future__ import annotations

import json
from typing import Any

from src.path.compiler import START_OP, WireQuery, WireStep
from src.path.steps import PREDICATE_SET_KINDS, StepKind

# Wire step names that the Gremlin dialect spells differently.
_GREMLIN_NAMES = {
    StepKind.OUT_PREDICATES.value: "Out",
    StepKind.IN_PREDICATES.value: "In",
    StepKind.BOTH_PREDICATES.value: "Both",
    StepKind.TAG.value: "As",
    StepKind.INTERSECT.value: "And",
    StepKind.UNION.value: "Or",
    StepKind.FOLLOW_REVERSE.value: "FollowR",
}

# Steps whose single set operand is spread as call arguments: .Is("B","C")
_VARIADIC_OPS = {StepKind.IS.value, StepKind.TAG.value, StepKind.BACK.value}

# Steps whose wire operand is always exactly one argument.
_UNARY_OPS = _VARIADIC_OPS | {
    StepKind.AND.value,
    StepKind.OR.value,
    StepKind.INTERSECT.value,
    StepKind.UNION.value,
    StepKind.FOLLOW.value,
    StepKind.FOLLOW_REVERSE.value,
    "GetLimit",
}

_MORPHISM_OPS = {StepKind.FOLLOW.value, StepKind.FOLLOW_REVERSE.value}
_PREDICATE_SET_OPS = {kind.value for kind in PREDICATE_SET_KINDS}


def render_gremlin(wire: WireQuery) -> str:
    """Render a compiled query as a Gremlin program."""
    return _render_start(wire.start) + _render_steps(wire.steps)


def _render_start(start: tuple[str, ...] | list[str]) -> str:
    return "g.V(" + ",".join(_literal(node) for node in start) + ")"


def _render_steps(steps: tuple[WireStep, ...] | list[WireStep]) -> str:
    return "".join(_render_step(step) for step in steps)


def _render_step(step: WireStep) -> str:
    ((op, operand),) = step.items()
    name = _GREMLIN_NAMES.get(op, op)

    if op in _MORPHISM_OPS:
        return f".{name}(g.M(){_render_steps(operand)})"

    args = _split_args(op, operand)
    if op in _VARIADIC_OPS and len(args) == 1 and _is_name_list(args[0]):
        args = list(args[0])

    return f".{name}(" + ",".join(_render_arg(arg) for arg in args) + ")"


def _split_args(op: str, operand: Any) -> list[Any]:
    """Undo the single-operand collapse applied by the compiler."""
    if operand == []:
        return []
    if op in _UNARY_OPS or not isinstance(operand, list):
        return [operand]
    if _is_route(operand):
        return [operand]
    if op in _PREDICATE_SET_OPS and _is_name_list(operand):
        return [operand]
    return operand


def _render_arg(arg: Any) -> str:
    if arg is None:
        return "null"
    if isinstance(arg, bool):
        return "true" if arg else "false"
    if isinstance(arg, (str, int)):
        return _literal(arg)
    if _is_route(arg):
        head, *rest = arg
        return _render_start(head[START_OP]) + _render_steps(rest)
    if _is_name_list(arg):
        return "[" + ",".join(_literal(name) for name in arg) + "]"
    raise ValueError(f"Cannot render operand {arg!r} as Gremlin")


def _literal(value: str | int) -> str:
    return json.dumps(value, ensure_ascii=False)


def _is_route(value: Any) -> bool:
    return (
        isinstance(value, list)
        and bool(value)
        and isinstance(value[0], dict)
        and START_OP in value[0]
    )


def _is_name_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, str) for item in value)
