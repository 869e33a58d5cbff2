from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from conftest import provider_song
from songstash.gateways.music_api import MusicApiGateway
from songstash.utils.exceptions import ResolveFailed, SearchFailed
from songstash.utils.settings import GatewaySettings

pytestmark = pytest.mark.anyio


def _make_app(requests: list[dict[str, str]]) -> web.Application:
    async def search(request: web.Request) -> web.Response:
        requests.append(dict(request.query))
        keywords = request.query["keywords"]
        if keywords == "broken":
            return web.Response(text="<html>oops</html>")
        if keywords == "crash":
            return web.Response(status=500)
        if keywords == "refused":
            return web.json_response({"status": False, "msg": "rate limited"})
        return web.json_response(
            {
                "status": True,
                "data": {
                    "qq": {"songs": [provider_song(1, "Song", ["Alice"], lossless=True)]},
                    "xiami": {"songs": []},
                    "netease": {
                        "songs": [provider_song(3, "Song", ["Alice", "Bob"], kbps_320=True)]
                    },
                },
            }
        )

    async def url(request: web.Request) -> web.Response:
        requests.append(dict(request.query))
        if request.query["id"] == "missing":
            return web.json_response({"status": False})
        return web.json_response(
            {
                "status": True,
                "data": {
                    "url": f"http://cdn.test/{request.query['vendor']}/{request.query['id']}"
                },
            }
        )

    app = web.Application()
    app.router.add_get("/search", search)
    app.router.add_get("/url", url)
    return app


@pytest.fixture
async def gateway_and_requests(
    anyio_backend: str,
) -> AsyncIterator[tuple[MusicApiGateway, list[dict[str, str]]]]:
    requests: list[dict[str, str]] = []
    async with TestServer(_make_app(requests)) as server:
        gateway = MusicApiGateway(GatewaySettings(base_url=str(server.make_url("/"))))
        try:
            yield gateway, requests
        finally:
            await gateway.close()


async def test_search_song_keeps_provider_order(gateway_and_requests) -> None:
    gateway, requests = gateway_and_requests

    response = await gateway.search_song("Alice Song")

    assert response.status is True
    assert list(response.data) == ["qq", "xiami", "netease"]
    assert response.data["qq"][0]["name"] == "Song"
    assert response.data["xiami"] == []
    assert requests == [{"keywords": "Alice Song"}]


async def test_search_song_reports_unsuccessful_status(gateway_and_requests) -> None:
    gateway, _ = gateway_and_requests

    response = await gateway.search_song("refused")

    assert response.status is False
    assert response.data == {}


@pytest.mark.parametrize("keywords", ["broken", "crash"])
async def test_search_song_raises_on_bad_reply(gateway_and_requests, keywords) -> None:
    gateway, _ = gateway_and_requests

    with pytest.raises(SearchFailed) as excinfo:
        await gateway.search_song(keywords)

    assert excinfo.value.keywords == keywords


async def test_get_song_url_resolves_provider_id(gateway_and_requests) -> None:
    gateway, requests = gateway_and_requests

    response = await gateway.get_song_url("netease", "3")

    assert response.status is True
    assert response.url == "http://cdn.test/netease/3"
    assert requests == [{"vendor": "netease", "id": "3"}]


async def test_get_song_url_without_data_has_no_url(gateway_and_requests) -> None:
    gateway, _ = gateway_and_requests

    response = await gateway.get_song_url("qq", "missing")

    assert response.status is False
    assert response.url is None


async def test_get_song_url_raises_when_service_is_unreachable(
    gateway_and_requests,
) -> None:
    gateway, _ = gateway_and_requests
    gateway._base_url = "http://127.0.0.1:9/api"

    with pytest.raises(ResolveFailed):
        await gateway.get_song_url("qq", "1")
