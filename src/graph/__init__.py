# Graph module for Cayley integration
"""
Graph layer for talking to a Cayley server:
- CayleyGraph: compile, execute and decode queries
- CayleyTransport / FakeCayleyTransport: HTTP shim and in-memory fake
- decode_response / decode_nodes: typed GraphNodes from JSON rows
"""

from src.graph.client import CayleyGraph
from src.graph.decoder import (
    GraphNode,
    GraphNodes,
    decode_nodes,
    decode_response,
)
from src.graph.exceptions import (
    GraphError,
    QueryRejectedError,
    ResponseDecodeError,
    TransportError,
)
from src.graph.transport import (
    APIVersion,
    CayleyTransport,
    CayleyTransportProtocol,
    FakeCayleyTransport,
)

__all__ = [
    # Exceptions
    "GraphError",
    "TransportError",
    "ResponseDecodeError",
    "QueryRejectedError",
    # Client
    "CayleyGraph",
    "APIVersion",
    "CayleyTransport",
    "CayleyTransportProtocol",
    "FakeCayleyTransport",
    # Results
    "GraphNode",
    "GraphNodes",
    "decode_nodes",
    "decode_response",
]
