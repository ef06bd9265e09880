"""
Unit tests for the Cayley transport shim.

The real transport is exercised against httpx.MockTransport, so no
server is needed. Covers:
- URL construction and API versions
- One POST per query with the Gremlin program as body
- Status and connection failures mapped to TransportError
- Connection lifecycle (lazy connect, context manager, close)
- FakeCayleyTransport behaviour
"""

from __future__ import annotations

import httpx
import pytest

from src.core.config import Settings
from src.graph.exceptions import GraphError, TransportError
from src.graph.transport import (
    APIVersion,
    CayleyTransport,
    CayleyTransportProtocol,
    FakeCayleyTransport,
    build_query_url,
)
from src.path.compiler import Compiler
from src.path.expressions import Vertex
from src.path.selectors import Node, Predicate

# =============================================================================
# Test Fixtures
# =============================================================================


class RecordingHandler:
    """httpx.MockTransport handler that records requests."""

    def __init__(self, status_code: int = 200, body: bytes = b'{"result": null}') -> None:
        self.status_code = status_code
        self.body = body
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, content=self.body)


@pytest.fixture
def handler() -> RecordingHandler:
    return RecordingHandler(body=b'{"result": [{"id": "bar"}]}')


@pytest.fixture
def transport(settings: Settings, handler: RecordingHandler) -> CayleyTransport:
    return CayleyTransport(settings=settings, transport=httpx.MockTransport(handler))


# =============================================================================
# Test: URL
# =============================================================================


class TestQueryUrl:
    """The endpoint URL is fixed at construction."""

    def test_build_query_url(self) -> None:
        assert (
            build_query_url("localhost", 64210, APIVersion.V1)
            == "http://localhost:64210/api/v1/query/gremlin"
        )

    def test_default_version_is_v1(self) -> None:
        assert APIVersion.DEFAULT is APIVersion.V1
        assert build_query_url("h", 1) == "http://h:1/api/v1/query/gremlin"

    def test_url_from_settings(self, settings: Settings) -> None:
        transport = CayleyTransport(settings=settings)

        assert transport.url == "http://localhost:64210/api/v1/query/gremlin"

    def test_explicit_version_overrides_settings(self) -> None:
        settings = Settings(cayley_host="graph.local", cayley_port=8080, cayley_api_version="v2")

        transport = CayleyTransport(settings=settings, version=APIVersion.DEFAULT)

        assert transport.url == "http://graph.local:8080/api/v1/query/gremlin"

    def test_settings_version_used_when_not_given(self) -> None:
        settings = Settings(cayley_host="graph.local", cayley_port=8080, cayley_api_version="v2")

        transport = CayleyTransport(settings=settings)

        assert transport.url == "http://graph.local:8080/api/v2/query/gremlin"


# =============================================================================
# Test: Execution
# =============================================================================


class TestExecute:
    """Each execute() sends exactly one POST."""

    @pytest.mark.asyncio
    async def test_execute_posts_gremlin(
        self, transport: CayleyTransport, handler: RecordingHandler
    ) -> None:
        wire = Compiler().compile(Vertex(Node("foo")).out(Predicate("follows")).all())

        body = await transport.execute(wire)
        await transport.close()

        assert body == b'{"result": [{"id": "bar"}]}'
        assert len(handler.requests) == 1
        request = handler.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "http://localhost:64210/api/v1/query/gremlin"
        assert request.content == b'g.V("foo").Out("follows").All()'
        assert request.headers["content-type"] == "text/plain; charset=utf-8"

    @pytest.mark.asyncio
    async def test_execute_raw_sends_text_verbatim(
        self, transport: CayleyTransport, handler: RecordingHandler
    ) -> None:
        await transport.execute_raw('g.V("foo").In("bar").All()')
        await transport.close()

        assert handler.requests[0].content == b'g.V("foo").In("bar").All()'

    @pytest.mark.asyncio
    async def test_body_is_utf8(
        self, transport: CayleyTransport, handler: RecordingHandler
    ) -> None:
        await transport.execute_raw('g.V("Amélie").All()')
        await transport.close()

        assert handler.requests[0].content == 'g.V("Amélie").All()'.encode("utf-8")

    @pytest.mark.asyncio
    async def test_no_retry_on_failure(self, settings: Settings) -> None:
        handler = RecordingHandler(status_code=503, body=b"unavailable")
        transport = CayleyTransport(settings=settings, transport=httpx.MockTransport(handler))

        with pytest.raises(TransportError):
            await transport.execute_raw("g.V().All()")
        await transport.close()

        assert len(handler.requests) == 1


# =============================================================================
# Test: Failures
# =============================================================================


class TestTransportErrors:
    """Failures surface as TransportError with details."""

    @pytest.mark.asyncio
    async def test_non_success_status(self, settings: Settings) -> None:
        handler = RecordingHandler(status_code=500, body=b"boom")
        transport = CayleyTransport(settings=settings, transport=httpx.MockTransport(handler))

        with pytest.raises(TransportError) as exc_info:
            await transport.execute_raw("g.V().All()")
        await transport.close()

        error = exc_info.value
        assert error.status_code == 500
        assert error.reason == "Internal Server Error"
        assert error.body == b"boom"
        assert error.url == "http://localhost:64210/api/v1/query/gremlin"

    @pytest.mark.asyncio
    async def test_bad_request_status(self, settings: Settings) -> None:
        handler = RecordingHandler(status_code=400, body=b'{"error": "bad query"}')
        transport = CayleyTransport(settings=settings, transport=httpx.MockTransport(handler))

        with pytest.raises(TransportError) as exc_info:
            await transport.execute_raw("g.V(")
        await transport.close()

        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_connection_refused(self, settings: Settings) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        transport = CayleyTransport(settings=settings, transport=httpx.MockTransport(refuse))

        with pytest.raises(TransportError) as exc_info:
            await transport.execute_raw("g.V().All()")
        await transport.close()

        assert exc_info.value.status_code is None
        assert isinstance(exc_info.value.cause, httpx.ConnectError)
        assert exc_info.value.__cause__ is exc_info.value.cause

    @pytest.mark.asyncio
    async def test_timeout(self, settings: Settings) -> None:
        def slow(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        transport = CayleyTransport(settings=settings, transport=httpx.MockTransport(slow))

        with pytest.raises(TransportError, match="timed out") as exc_info:
            await transport.execute_raw("g.V().All()")
        await transport.close()

        assert isinstance(exc_info.value.cause, httpx.TimeoutException)

    def test_transport_error_is_graph_error(self) -> None:
        assert issubclass(TransportError, GraphError)


# =============================================================================
# Test: Lifecycle
# =============================================================================


class TestTransportLifecycle:
    """Client creation is lazy and close() is idempotent."""

    def test_not_connected_on_construction(self, transport: CayleyTransport) -> None:
        assert transport.is_connected is False

    @pytest.mark.asyncio
    async def test_context_manager_connects_and_closes(self, transport: CayleyTransport) -> None:
        async with transport as active:
            assert active is transport
            assert transport.is_connected is True

        assert transport.is_connected is False

    @pytest.mark.asyncio
    async def test_execute_connects_lazily(self, transport: CayleyTransport) -> None:
        await transport.execute_raw("g.V().All()")

        assert transport.is_connected is True
        await transport.close()

    @pytest.mark.asyncio
    async def test_client_reused_between_calls(
        self, transport: CayleyTransport, handler: RecordingHandler
    ) -> None:
        await transport.connect()
        client = transport._client

        await transport.execute_raw("g.V().All()")
        await transport.execute_raw("g.V().All()")

        assert transport._client is client
        assert len(handler.requests) == 2
        await transport.close()

    @pytest.mark.asyncio
    async def test_close_without_connect(self, transport: CayleyTransport) -> None:
        await transport.close()
        await transport.close()

        assert transport.is_connected is False

    def test_satisfies_protocol(self, transport: CayleyTransport) -> None:
        assert isinstance(transport, CayleyTransportProtocol)


# =============================================================================
# Test: FakeCayleyTransport
# =============================================================================


class TestFakeCayleyTransport:
    """The fake records programs and replays configured bodies."""

    def test_satisfies_protocol(self, fake_transport: FakeCayleyTransport) -> None:
        assert isinstance(fake_transport, CayleyTransportProtocol)

    @pytest.mark.asyncio
    async def test_default_response_is_null_result(
        self, fake_transport: FakeCayleyTransport
    ) -> None:
        assert await fake_transport.execute_raw("g.V().All()") == b'{"result": null}'

    @pytest.mark.asyncio
    async def test_queued_responses_in_order(self, fake_transport: FakeCayleyTransport) -> None:
        fake_transport.set_response({"result": [{"id": "a"}]})
        fake_transport.set_response('{"result": []}')

        first = await fake_transport.execute_raw("q1")
        second = await fake_transport.execute_raw("q2")

        assert first == b'{"result": [{"id": "a"}]}'
        assert second == b'{"result": []}'
        assert fake_transport.sent == ["q1", "q2"]

    @pytest.mark.asyncio
    async def test_execute_renders_wire_query(self, fake_transport: FakeCayleyTransport) -> None:
        wire = Compiler().compile(Vertex().out(Predicate("follows")).all())

        await fake_transport.execute(wire)

        assert fake_transport.sent == ['g.V().Out("follows").All()']

    @pytest.mark.asyncio
    async def test_configured_error(self, fake_transport: FakeCayleyTransport) -> None:
        fake_transport.set_error(TransportError("down"))

        with pytest.raises(TransportError, match="down"):
            await fake_transport.execute_raw("g.V().All()")

    @pytest.mark.asyncio
    async def test_close(self, fake_transport: FakeCayleyTransport) -> None:
        await fake_transport.close()

        assert fake_transport.closed is True
