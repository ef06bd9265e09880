"""
Transport shim for the Cayley HTTP query endpoint.

Design follows the client/fake pairing used for other backing services:
- CayleyTransport: real client over httpx, one reused AsyncClient
- FakeCayleyTransport: in-memory fake recording queries for tests
- Both satisfy CayleyTransportProtocol (duck typing)

Each execute() call sends exactly one POST with the Gremlin program as the
body. There are no retries, no caching and no internal timeout: callers that
need a deadline wrap the call themselves (e.g. asyncio.wait_for).
"""

from __future__ import annotations

import asyncio
import json
from enum import Enum
from typing import Any, Protocol, runtime_checkable

import httpx

from src.core.config import Settings
from src.core.logging import get_logger
from src.graph.exceptions import TransportError
from src.path.compiler import WireQuery
from src.path.gremlin import render_gremlin

logger = get_logger("transport")

QUERY_PATH_TEMPLATE = "http://{host}:{port}/api/{version}/query/gremlin"


class APIVersion(Enum):
    """Cayley HTTP API version selector."""

    V1 = "v1"
    DEFAULT = "v1"


def build_query_url(host: str, port: int, version: APIVersion | str = APIVersion.DEFAULT) -> str:
    """Build the Gremlin query endpoint URL."""
    version_str = version.value if isinstance(version, APIVersion) else version
    return QUERY_PATH_TEMPLATE.format(host=host, port=port, version=version_str)


@runtime_checkable
class CayleyTransportProtocol(Protocol):
    """Protocol for anything that can execute a compiled query."""

    async def execute(self, wire: WireQuery) -> bytes:
        """Send a compiled query and return the raw response body."""
        ...

    async def execute_raw(self, gremlin: str) -> bytes:
        """Send a Gremlin program verbatim and return the raw response body."""
        ...

    async def close(self) -> None:
        """Release held resources."""
        ...


class CayleyTransport:
    """HTTP transport to a running Cayley server.

    Usage:
        async with CayleyTransport(settings=settings) as transport:
            body = await transport.execute(wire)

    Args to the constructor are read once; the target URL never changes
    for the lifetime of the transport.
    """

    def __init__(
        self,
        settings: Settings,
        version: APIVersion | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize transport from settings.

        Args:
            settings: Settings with cayley_host, cayley_port, cayley_api_version
            version: API version overriding settings.cayley_api_version
            transport: Optional httpx transport (e.g. httpx.MockTransport in tests)

        Note:
            The HTTP client is NOT created here - call connect() or use
            as async context manager. execute() connects lazily otherwise.
        """
        self._settings = settings
        self._url = build_query_url(
            settings.cayley_host,
            settings.cayley_port,
            version if version is not None else settings.cayley_api_version,
        )
        self._http_transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def url(self) -> str:
        """Get the query endpoint URL."""
        return self._url

    @property
    def is_connected(self) -> bool:
        """Check if the HTTP client is initialized."""
        return self._client is not None

    async def connect(self) -> None:
        """Create the HTTP client. Safe to call twice."""
        if self._client is None:
            self._client = httpx.AsyncClient(transport=self._http_transport, timeout=None)

    async def close(self) -> None:
        """Close the HTTP client. Safe to call even if not connected."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> CayleyTransport:
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        await self.close()

    async def execute(self, wire: WireQuery) -> bytes:
        """Render a compiled query as Gremlin and send it.

        Raises:
            TransportError: On connection failure or non-success status
        """
        return await self.execute_raw(render_gremlin(wire))

    async def execute_raw(self, gremlin: str) -> bytes:
        """Send a Gremlin program and return the response body.

        Raises:
            TransportError: On connection failure or non-success status
        """
        await self.connect()
        assert self._client is not None  # For type checker

        logger.debug(
            "Executing query",
            extra={"context": {"url": self._url, "query": gremlin}},
        )
        try:
            response = await self._client.post(
                self._url,
                content=gremlin.encode("utf-8"),
                headers={"Content-Type": "text/plain; charset=utf-8"},
            )
        except httpx.TimeoutException as e:
            logger.warning(f"Request to {self._url} timed out")
            raise TransportError(
                f"Request to {self._url} timed out",
                url=self._url,
                cause=e,
            ) from e
        except httpx.HTTPError as e:
            logger.warning(f"Request to {self._url} failed: {e}")
            raise TransportError(
                f"Request to {self._url} failed: {e}",
                url=self._url,
                cause=e,
            ) from e

        if not response.is_success:
            logger.warning(
                f"Cayley answered {response.status_code} {response.reason_phrase}",
                extra={"context": {"url": self._url, "status_code": response.status_code}},
            )
            raise TransportError(
                f"Cayley answered {response.status_code} {response.reason_phrase}",
                url=self._url,
                status_code=response.status_code,
                reason=response.reason_phrase,
                body=response.content,
            )

        logger.debug(f"Request to {self._url} succeeded")
        return response.content


class FakeCayleyTransport:
    """In-memory fake transport for testing.

    Records every Gremlin program it is asked to execute and answers with
    configured bodies (default: an empty result).

    Usage:
        fake = FakeCayleyTransport()
        fake.set_response({"result": [{"id": "alice"}]})
        graph = CayleyGraph(settings, transport=fake)
    """

    def __init__(self) -> None:
        self._responses: list[bytes] = []
        self._default = b'{"result": null}'
        self._error: TransportError | None = None
        self.sent: list[str] = []
        self.closed = False

    async def execute(self, wire: WireQuery) -> bytes:
        return await self.execute_raw(render_gremlin(wire))

    async def execute_raw(self, gremlin: str) -> bytes:
        await asyncio.sleep(0)  # Yield to event loop for true async
        self.sent.append(gremlin)
        if self._error is not None:
            raise self._error
        if self._responses:
            return self._responses.pop(0)
        return self._default

    async def close(self) -> None:
        await asyncio.sleep(0)  # Yield to event loop for true async
        self.closed = True

    def set_response(self, body: dict[str, Any] | bytes | str) -> None:
        """Queue a response body for the next execute call."""
        if isinstance(body, dict):
            body = json.dumps(body).encode("utf-8")
        elif isinstance(body, str):
            body = body.encode("utf-8")
        self._responses.append(body)

    def set_error(self, error: TransportError | None) -> None:
        """Make every following execute call raise ``error``."""
        self._error = error
