"""End-to-end tests against a local aiohttp server."""

from __future__ import annotations

import asyncio

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from laakhay.httpr import Group, Service, TransportError


async def echo(request: web.Request) -> web.Response:
    body = await request.read()
    return web.json_response(
        {
            "method": request.method,
            "path": request.path,
            "query": dict(request.query),
            "token": request.headers.get("Authorization"),
            "body": body.decode("utf-8"),
        }
    )


async def slow(request: web.Request) -> web.Response:
    await asyncio.sleep(int(request.match_info["ms"]) / 1000)
    return web.Response(text=request.match_info["ms"])


async def feed(request: web.Request) -> web.Response:
    return web.Response(text="<feed><item>a</item><item>b</item></feed>", content_type="application/xml")


@pytest_asyncio.fixture
async def service():
    app = web.Application()
    app.router.add_route("*", "/echo", echo)
    app.router.add_get("/slow/{ms}", slow)
    app.router.add_get("/feed", feed)
    server = TestServer(app)
    await server.start_server()
    svc = Service(f"http://{server.host}:{server.port}")
    try:
        yield svc
    finally:
        await svc.close()
        await server.close()


class TestLocalServer:
    """Test full request execution over real sockets."""

    @pytest.mark.asyncio
    async def test_get_with_params_and_hook(self, service):
        """Test query params and a before-send header reach the server."""
        service.before_send(lambda wire: wire.headers.__setitem__("Authorization", "Bearer abc"))
        envelope = await service.get("/echo").params("page", "2", "tag", "x").execute()

        assert envelope.ok
        data = await envelope.response.to_json()
        assert data == {
            "method": "GET",
            "path": "/echo",
            "query": {"page": "2", "tag": "x"},
            "token": "Bearer abc",
            "body": "",
        }

    @pytest.mark.asyncio
    async def test_post_json_and_dump(self, service):
        """Test a JSON body round trip and the human-readable dump."""
        envelope = await service.post("/echo").json({"name": "widget"}).execute()

        data = await envelope.response.to_json()
        assert data["method"] == "POST"
        assert data["body"] == '{"name": "widget"}'

        dump = await envelope.response.dump()
        assert dump.startswith("POST /echo HTTP/1.1")
        assert "HTTP/1.1 200 OK" in dump
        assert "Summary: start at" in dump

    @pytest.mark.asyncio
    async def test_to_xml(self, service):
        """Test XML decoding of a real response."""
        envelope = await service.get("/feed").execute()
        root = await envelope.response.to_xml()
        assert [item.text for item in root.findall("item")] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_connection_refused_is_transport_error(self):
        """Test an unreachable host yields an error envelope after retries."""
        async with Service("http://127.0.0.1:1") as svc:
            envelope = await svc.get("/").retry_delay(0.01).execute()
        assert isinstance(envelope.error, TransportError)
        assert envelope.error.attempts == 2

    @pytest.mark.asyncio
    async def test_group_parallel_over_sockets(self, service):
        """Test a parallel group delivers each response exactly once."""
        group = Group(*(service.get(f"/slow/{ms}") for ms in (60, 10, 30)))

        envelopes = await asyncio.wait_for(group.parallel().collect(), timeout=5.0)

        assert sorted([await e.response.text() for e in envelopes]) == ["10", "30", "60"]

    @pytest.mark.asyncio
    async def test_group_sequential_over_sockets(self, service):
        """Test a sequential group runs requests in order on demand."""
        group = Group(*(service.get(f"/slow/{ms}") for ms in (30, 10)))
        bodies = []
        async for envelope in group.sequential():
            bodies.append(await envelope.response.text())
            group.advance()
        assert bodies == ["30", "10"]
