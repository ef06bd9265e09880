"""
Cayley graph client.

CayleyGraph is the entry point callers use: it owns the morphism registry,
compiles Query expressions, sends them through the transport shim and
decodes the response rows.

Data flow:
    Query -> Compiler -> WireQuery -> transport (Gremlin text over HTTP)
          -> response body -> decoder -> GraphNodes
"""

from __future__ import annotations

import uuid
from typing import Any

from src.core.config import Settings, get_settings
from src.core.logging import (
    clear_correlation_id,
    get_correlation_id,
    get_logger,
    set_correlation_id,
)
from src.graph.decoder import GraphNodes, decode_response
from src.graph.transport import APIVersion, CayleyTransport, CayleyTransportProtocol
from src.path.compiler import Compiler, WireQuery
from src.path.expressions import Morphism, Path, Query
from src.path.gremlin import render_gremlin
from src.path.registry import MorphismRegistry

logger = get_logger("client")


class CayleyGraph:
    """Typed client for a running Cayley database.

    Usage:
        async with CayleyGraph(settings) as graph:
            graph.save(Morphism("friendOfFriend").out(Predicate("follows")).out(Predicate("follows")))
            nodes = await graph.find(
                Vertex(Node("C"))
                .follow("friendOfFriend")
                .has(Predicate("status"), Node("cool_person"))
                .all()
            )
            for node in nodes:
                print(node.id)

    Several queries may be compiled and executed concurrently; the only
    shared mutable state is the registry, which serializes its own access.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        transport: CayleyTransportProtocol | None = None,
        registry: MorphismRegistry | None = None,
        version: APIVersion | None = None,
    ) -> None:
        """Initialize client.

        Args:
            settings: Connection settings (default: get_settings())
            transport: Transport shim (default: CayleyTransport from settings)
            registry: Morphism registry (default: a new empty registry)
            version: API version overriding settings.cayley_api_version
        """
        self._settings = settings if settings is not None else get_settings()
        self._registry = registry if registry is not None else MorphismRegistry()
        self._compiler = Compiler(self._registry)
        self._transport = (
            transport
            if transport is not None
            else CayleyTransport(self._settings, version=version)
        )

    @property
    def registry(self) -> MorphismRegistry:
        return self._registry

    @property
    def transport(self) -> CayleyTransportProtocol:
        return self._transport

    async def close(self) -> None:
        await self._transport.close()

    async def __aenter__(self) -> CayleyGraph:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        await self.close()

    # =========================================================================
    # Morphisms
    # =========================================================================

    def declare(self, name: str, expression: Morphism | Path) -> Morphism:
        """Declare a morphism under ``name`` (see MorphismRegistry.declare)."""
        return self._registry.declare(name, expression)

    def save(self, morphism: Morphism) -> Morphism:
        """Declare a named morphism under its own name."""
        return self._registry.save(morphism)

    # =========================================================================
    # Queries
    # =========================================================================

    def compile(self, query: Query) -> WireQuery:
        """Compile a query without executing it."""
        return self._compiler.compile(query)

    def to_gremlin(self, query: Query) -> str:
        """Render a query as the Gremlin program that find() would send."""
        return render_gremlin(self.compile(query))

    async def find(self, query: Query) -> GraphNodes:
        """Compile, execute and decode a finalized query.

        Compilation errors are raised before any request is sent. The query
        is rendered to Gremlin once and sent with execute_raw.

        Raises:
            CompilationError: If the query cannot be compiled
            TransportError: If the request fails
            QueryRejectedError: If Cayley reports an error for the query
            ResponseDecodeError: If the response is malformed
        """
        wire = self._compiler.compile(query)
        return await self._exchange(render_gremlin(wire))

    async def find_raw(self, gremlin: str) -> GraphNodes:
        """Execute a prepared Gremlin program and decode its rows.

        Bypasses the compiler; useful for programs the expression model
        does not cover.
        """
        return await self._exchange(gremlin)

    async def _exchange(self, gremlin: str) -> GraphNodes:
        # One correlation id per exchange unless the caller already set one.
        owns_id = get_correlation_id() is None
        if owns_id:
            set_correlation_id(uuid.uuid4().hex)
        try:
            body = await self._transport.execute_raw(gremlin)
            nodes = decode_response(body, query=gremlin)
            logger.info(
                f"Query returned {len(nodes)} node(s)",
                extra={"context": {"query": gremlin, "count": len(nodes)}},
            )
            return nodes
        finally:
            if owns_id:
                clear_correlation_id()
