"""Tests for AiohttpProbeAdapter against a local aiohttp server."""

import pytest
from aiohttp import web
from aiohttp import test_utils

from kubeship.infrastructure.adapters.aiohttp_probe_adapter import AiohttpProbeAdapter


async def _ok(request):
    return web.Response(text="x" * 500)


async def _redirect(request):
    raise web.HTTPFound("/elsewhere")


async def _unavailable(request):
    return web.Response(status=503, text="starting")


def _app():
    app = web.Application()
    app.router.add_get("/", _ok)
    app.router.add_get("/old", _redirect)
    app.router.add_get("/busy", _unavailable)
    return app


class TestAiohttpProbeAdapter:
    @pytest.mark.asyncio
    async def test_ok_with_body_preview(self):
        async with test_utils.TestServer(_app()) as server:
            response = await AiohttpProbeAdapter().get(str(server.make_url("/")))
        assert response.status == 200
        assert response.code == "200"
        assert len(response.body_preview) == 200

    @pytest.mark.asyncio
    async def test_redirect_is_not_followed(self):
        async with test_utils.TestServer(_app()) as server:
            response = await AiohttpProbeAdapter().get(str(server.make_url("/old")))
        assert response.status == 302

    @pytest.mark.asyncio
    async def test_error_status_is_reported(self):
        async with test_utils.TestServer(_app()) as server:
            response = await AiohttpProbeAdapter().get(str(server.make_url("/busy")))
        assert response.code == "503"
        assert response.responded

    @pytest.mark.asyncio
    async def test_connection_refused(self):
        async with test_utils.TestServer(_app()) as server:
            url = str(server.make_url("/"))
        response = await AiohttpProbeAdapter(total_timeout=2, connect_timeout=1).get(url)
        assert not response.responded
        assert response.code == "000"
        assert response.error
