"""
Response decoder for Cayley query results.

Cayley answers a Gremlin query with ``{"result": [ {...}, ... ]}`` where each
row is a flat object such as ``{"id": "alice", "friend": "bob"}``. Fields
other than ``id`` appear only when the query tagged nodes upstream, so a
missing field is a valid shape, not an error.

Every field value is stringified with one rule: strings are kept verbatim,
any other JSON value becomes its compact JSON text (``1`` -> ``"1"``,
``true`` -> ``"true"``, ``null`` -> ``"null"``).
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Mapping, Sequence
from typing import Any, overload

from pydantic import BaseModel, ConfigDict, ValidationError

from src.graph.exceptions import QueryRejectedError, ResponseDecodeError

_FRAGMENT_LIMIT = 200


def _fragment(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        text = bytes(value).decode("utf-8", errors="replace")
    elif isinstance(value, str):
        text = value
    else:
        text = json.dumps(value, ensure_ascii=False, default=str)
    return text[:_FRAGMENT_LIMIT]


def stringify(value: Any) -> str:
    """Canonical string form of a JSON value."""
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


# =============================================================================
# Result types
# =============================================================================


class GraphNode(Mapping[str, str]):
    """One result row: a read-only mapping of field name to string value."""

    __slots__ = ("_fields",)

    def __init__(self, fields: Mapping[str, str] | None = None) -> None:
        self._fields: dict[str, str] = dict(fields or {})

    @property
    def id(self) -> str | None:
        """The node id, if the row carries one."""
        return self._fields.get("id")

    def __getitem__(self, key: str) -> str:
        return self._fields[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"GraphNode({self._fields!r})"


class GraphNodes(Sequence[GraphNode]):
    """Ordered, immutable sequence of result rows."""

    __slots__ = ("_nodes",)

    def __init__(self, nodes: Sequence[GraphNode] = ()) -> None:
        self._nodes: tuple[GraphNode, ...] = tuple(nodes)

    @overload
    def __getitem__(self, index: int) -> GraphNode: ...

    @overload
    def __getitem__(self, index: slice) -> GraphNodes: ...

    def __getitem__(self, index: int | slice) -> GraphNode | GraphNodes:
        if isinstance(index, slice):
            return GraphNodes(self._nodes[index])
        return self._nodes[index]

    def __len__(self) -> int:
        return len(self._nodes)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, GraphNodes):
            return self._nodes == other._nodes
        if isinstance(other, Sequence) and not isinstance(other, (str, bytes)):
            return list(self._nodes) == list(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def ids(self) -> list[str | None]:
        """Ids of all rows, in order."""
        return [node.id for node in self._nodes]

    def __repr__(self) -> str:
        return f"GraphNodes({list(self._nodes)!r})"


# =============================================================================
# Wire response envelope
# =============================================================================


class WireResponse(BaseModel):
    """Top-level JSON object returned by the Cayley query endpoint."""

    model_config = ConfigDict(extra="allow")

    result: list[Any] | None = None
    error: str | None = None


def decode_nodes(payload: Any) -> GraphNodes:
    """Decode a JSON array of row objects.

    Args:
        payload: Raw JSON text/bytes, or an already parsed list

    Returns:
        GraphNodes in payload order; an empty array gives an empty sequence

    Raises:
        ResponseDecodeError: If payload is not an array of objects
    """
    if isinstance(payload, (str, bytes, bytearray)):
        try:
            payload = json.loads(payload)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ResponseDecodeError(
                f"Result payload is not valid JSON: {e}",
                fragment=_fragment(payload),
                cause=e,
            ) from e

    if not isinstance(payload, list):
        raise ResponseDecodeError(
            f"Expected a JSON array of results, got {type(payload).__name__}",
            fragment=_fragment(payload),
        )

    nodes = []
    for index, row in enumerate(payload):
        if not isinstance(row, dict):
            raise ResponseDecodeError(
                f"Result row {index} is not a JSON object",
                fragment=_fragment(row),
            )
        nodes.append(GraphNode({str(key): stringify(value) for key, value in row.items()}))
    return GraphNodes(nodes)


def decode_response(body: bytes | str, query: str | None = None) -> GraphNodes:
    """Decode a full Cayley response body.

    Args:
        body: Raw HTTP response body
        query: The query text that produced it, attached to rejections

    Returns:
        GraphNodes; ``"result": null`` or a missing result gives an empty sequence

    Raises:
        QueryRejectedError: If the response carries an ``error`` message
        ResponseDecodeError: If the body is not a valid response envelope
    """
    try:
        response = WireResponse.model_validate_json(body)
    except ValidationError as e:
        raise ResponseDecodeError(
            f"Malformed Cayley response: {e.error_count()} validation error(s)",
            fragment=_fragment(body),
            cause=e,
        ) from e

    if response.error:
        raise QueryRejectedError(response.error, query=query)
    if response.result is None:
        return GraphNodes()
    return decode_nodes(response.result)
