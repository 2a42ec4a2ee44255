"""
Tests the websocket channels against an in-process ledger server.
"""

import asyncio
import json

import pytest
import pytest_asyncio
from aiohttp import test_utils, web

from nftgate.config.settings import Settings
from nftgate.core import ledger
from nftgate.service import channel as channel_service


class LedgerServer:
    """
    Answers `nft_info` lookups by identifier. A few identifiers misbehave:
    `garbage` gets a non-JSON reply, `hangup` gets the connection closed,
    `missing` gets an error status, `stray` is preceded by a response to
    some other request and `pushed` is preceded by an unsolicited status
    message without an id.
    """

    def __init__(self):
        self.url = None
        self.connections = 0
        self.finished = 0
        self.requests = []

    @property
    def open_connections(self) -> int:
        return self.connections - self.finished

    async def handler(self, request: web.Request) -> web.WebSocketResponse:
        ws = web.WebSocketResponse()
        await ws.prepare(request)
        self.connections += 1

        try:
            await self.serve(ws)
        finally:
            self.finished += 1

        return ws

    async def serve(self, ws: web.WebSocketResponse):
        async for message in ws:
            body = json.loads(message.data)
            self.requests.append(body)

            match body.get("nft_id"):
                case "garbage":
                    await ws.send_str("this is not json")
                case "hangup":
                    await ws.close()
                case "missing":
                    await ws.send_json(
                        {"id": body["id"], "status": "error", "error": "objectNotFound"}
                    )
                case nft_id:
                    if nft_id == "pushed":
                        await ws.send_json(
                            {"type": "serverStatus", "server_status": "full"}
                        )
                    if nft_id == "stray":
                        await ws.send_json(
                            {
                                "id": "nft_info_0",
                                "status": "success",
                                "result": {"nft_id": "old", "owner": "rStale"},
                            }
                        )
                    await ws.send_json(
                        {
                            "id": body["id"],
                            "status": "success",
                            "result": {"nft_id": nft_id, "owner": "rOwner"},
                        }
                    )


async def all_closed(server: LedgerServer, timeout: float = 1.0) -> bool:
    """
    The server notices a client close slightly after the client returns.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout

    while server.open_connections and loop.time() < deadline:
        await asyncio.sleep(0.01)

    return server.open_connections == 0


@pytest_asyncio.fixture(loop_scope="session")
async def ledger_server():
    server = LedgerServer()
    application = web.Application()
    application.router.add_get("/", server.handler)

    async with test_utils.TestServer(application) as test_server:
        server.url = str(test_server.make_url("/"))
        yield server


def test_unwrap():
    assert channel_service.unwrap(
        '{"id": "a_1", "status": "success", "result": {"owner": "rX"}}'
    ) == {"owner": "rX"}

    with pytest.raises(channel_service.NotFound):
        channel_service.unwrap('{"id": "a_1", "status": "success"}')

    with pytest.raises(channel_service.NotFound):
        channel_service.unwrap('{"id": "a_1", "status": "error", "result": {}}')

    with pytest.raises(channel_service.ParseFailure):
        channel_service.unwrap("[1, 2")

    with pytest.raises(channel_service.ParseFailure):
        channel_service.unwrap("[1, 2]")


def test_request_ids_increase():
    first = channel_service.next_request_id("nft_info")
    second = channel_service.next_request_id("account_nfts")

    assert first.startswith("nft_info_")
    assert second.startswith("account_nfts_")
    assert int(second.rsplit("_", 1)[1]) > int(first.rsplit("_", 1)[1])


@pytest.mark.asyncio(loop_scope="session")
async def test_per_request_channel(ledger_server, logger):
    channel = channel_service.WebSocketChannel(url=ledger_server.url)

    result = await channel.send(ledger.nft_info_by_id("NFT_A"), log=logger)
    assert result == {"nft_id": "NFT_A", "owner": "rOwner"}

    result = await channel.send(ledger.nft_info_by_id("NFT_B"), log=logger)
    assert result["nft_id"] == "NFT_B"

    # One connection per request, each closed once the response arrived
    assert ledger_server.connections == 2
    assert await all_closed(ledger_server)
    assert ledger_server.finished == 2

    ids = [request["id"] for request in ledger_server.requests]
    assert len(set(ids)) == 2
    assert all(
        request["ledger_index"] == "validated" for request in ledger_server.requests
    )


@pytest.mark.asyncio(loop_scope="session")
async def test_per_request_channel_failures(ledger_server, logger):
    channel = channel_service.WebSocketChannel(url=ledger_server.url)

    with pytest.raises(channel_service.ParseFailure):
        await channel.send(ledger.nft_info_by_id("garbage"), log=logger)

    assert await all_closed(ledger_server)

    with pytest.raises(channel_service.NotFound):
        await channel.send(ledger.nft_info_by_id("missing"), log=logger)

    assert await all_closed(ledger_server)

    with pytest.raises(channel_service.TransportFailure):
        await channel.send(ledger.nft_info_by_id("hangup"), log=logger)

    assert await all_closed(ledger_server)
    assert ledger_server.connections == 3
    assert ledger_server.finished == 3

    unreachable = channel_service.WebSocketChannel(
        url=f"http://127.0.0.1:{test_utils.unused_port()}/"
    )

    with pytest.raises(channel_service.TransportFailure):
        await unreachable.send(ledger.nft_info_by_id("NFT_A"), log=logger)


@pytest.mark.asyncio(loop_scope="session")
async def test_persistent_channel(ledger_server, logger):
    async with channel_service.PersistentWebSocketChannel(
        url=ledger_server.url
    ) as channel:
        first = await channel.send(ledger.nft_info_by_id("NFT_A"), log=logger)
        second = await channel.send(ledger.nft_info_by_id("stray"), log=logger)

        assert first["nft_id"] == "NFT_A"
        # The response for another request id was skipped
        assert second == {"nft_id": "stray", "owner": "rOwner"}
        assert ledger_server.connections == 1

        with pytest.raises(channel_service.TransportFailure):
            await channel.send(ledger.nft_info_by_id("hangup"), log=logger)

        assert not channel.connected

        # Reconnects on the next request
        third = await channel.send(ledger.nft_info_by_id("NFT_C"), log=logger)
        assert third["nft_id"] == "NFT_C"
        assert ledger_server.connections == 2

    assert not channel.connected
    assert await all_closed(ledger_server)


@pytest.mark.asyncio(loop_scope="session")
async def test_persistent_channel_skips_unsolicited_messages(ledger_server, logger):
    async with channel_service.PersistentWebSocketChannel(
        url=ledger_server.url
    ) as channel:
        result = await channel.send(ledger.nft_info_by_id("pushed"), log=logger)
        assert result == {"nft_id": "pushed", "owner": "rOwner"}

        # Nothing was left behind for the next request to pick up
        result = await channel.send(ledger.nft_info_by_id("NFT_A"), log=logger)
        assert result == {"nft_id": "NFT_A", "owner": "rOwner"}

        with pytest.raises(channel_service.ParseFailure):
            await channel.send(ledger.nft_info_by_id("garbage"), log=logger)


def test_build_channel():
    url = "wss://ledger.example.org"
    per_request = channel_service.build_channel(
        Settings(ledger_url=url, connection_mode="per_request")
    )
    persistent = channel_service.build_channel(
        Settings(ledger_url=url, connection_mode="persistent", request_timeout=5.0)
    )

    assert isinstance(per_request, channel_service.WebSocketChannel)
    assert isinstance(persistent, channel_service.PersistentWebSocketChannel)
    assert per_request.url == url
    assert persistent.timeout == 5.0
