"""
Request/response channel to the ledger indexing service.

A channel sends one JSON command and hands back the `result` payload of the
matching response. Anything else (transport errors, garbage payloads, a
non-success status) is raised as a `ChannelError` subclass so that callers
can tell the causes apart in their logs, even though they all treat them as
"no result".
"""

import abc
import asyncio
import itertools
import json
from typing import Any

import aiohttp
from pydantic import ValidationError
from structlog.typing import FilteringBoundLogger

from nftgate.config.settings import Settings
from nftgate.core.ledger import LedgerResponse


class ChannelError(Exception):
    pass


class TransportFailure(ChannelError):
    pass


class ParseFailure(ChannelError):
    pass


class NotFound(ChannelError):
    pass


_request_counter = itertools.count(1)


def next_request_id(command: str) -> str:
    """
    Process-wide, monotonically increasing request ids, e.g. `nft_info_12`.
    """
    return f"{command}_{next(_request_counter)}"


def unwrap(raw: str | bytes) -> dict[str, Any]:
    """
    Turn the raw text of a response into its `result` payload.

    Raises
    ------
    ParseFailure
        If the payload is not a JSON object of the expected shape.
    NotFound
        If the status is not `success` or there is no `result`.
    """
    try:
        response = LedgerResponse.model_validate_json(raw)
    except ValidationError as e:
        raise ParseFailure(f"Malformed response: {e}") from e

    if not response.succeeded:
        raise NotFound(
            f"Request {response.id} answered with status {response.status!r}"
        )

    return response.result


class LedgerChannel(abc.ABC):
    """
    The base class for channels. Downstream must implement:

    - _exchange: transmit one already-stamped request and return the raw
                 body of its response, raising `TransportFailure` if the
                 connection breaks down first.
    """

    @abc.abstractmethod
    async def _exchange(self, request: dict[str, Any]) -> str | bytes:
        raise NotImplementedError

    async def send(
        self, command: dict[str, Any], log: FilteringBoundLogger
    ) -> dict[str, Any]:
        """
        Send `command` (which must carry a `command` name) and return the
        `result` of its response.

        Raises
        ------
        ChannelError
            One of `TransportFailure`, `ParseFailure` or `NotFound`.
        """
        request = {"id": next_request_id(command["command"]), **command}
        log = log.bind(request_id=request["id"], command=request["command"])

        await log.adebug("channel.request_sent")
        result = unwrap(await self._exchange(request))
        await log.adebug("channel.response_received")

        return result

    async def close(self) -> None:
        return None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()


def _payload(message: aiohttp.WSMessage) -> str | bytes:
    if message.type in (aiohttp.WSMsgType.TEXT, aiohttp.WSMsgType.BINARY):
        return message.data

    raise TransportFailure(
        f"Connection ended before a response arrived ({message.type.name})"
    )


def _answers(raw: str | bytes, request_id: str) -> bool:
    """
    Whether `raw` is the response to `request_id`. Payloads that are not a
    JSON object are taken as the answer so they surface as `ParseFailure`;
    objects with a missing or different id belong to someone else.
    """
    try:
        body = json.loads(raw)
    except ValueError:
        return True

    if not isinstance(body, dict):
        return True

    return body.get("id") == request_id


class WebSocketChannel(LedgerChannel):
    """
    Opens a fresh websocket for every request and closes it as soon as the
    first message comes back.
    """

    url: str
    timeout: float | None

    def __init__(self, url: str, timeout: float | None = None):
        self.url = url
        self.timeout = timeout

    async def _exchange(self, request: dict[str, Any]) -> str | bytes:
        try:
            async with aiohttp.ClientSession() as session:
                async with session.ws_connect(self.url) as ws:
                    await ws.send_json(request)
                    message = await ws.receive(timeout=self.timeout)
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            raise TransportFailure(f"Could not reach {self.url}: {e!r}") from e

        return _payload(message)


class PersistentWebSocketChannel(LedgerChannel):
    """
    Keeps one websocket open across requests. Requests are sent one at a
    time and the response is picked out by its `id`; stray messages are
    dropped. After a transport failure the connection is torn down and
    re-opened by the next request.
    """

    url: str
    timeout: float | None

    def __init__(self, url: str, timeout: float | None = None):
        self.url = url
        self.timeout = timeout

        self._session: aiohttp.ClientSession | None = None
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._lock = asyncio.Lock()

    @property
    def connected(self) -> bool:
        return self._ws is not None and not self._ws.closed

    async def _connect(self) -> aiohttp.ClientWebSocketResponse:
        if self.connected:
            return self._ws

        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()

        self._ws = await self._session.ws_connect(self.url)
        return self._ws

    async def _exchange(self, request: dict[str, Any]) -> str | bytes:
        async with self._lock:
            try:
                ws = await self._connect()
                await ws.send_json(request)

                while True:
                    raw = _payload(await ws.receive(timeout=self.timeout))
                    if _answers(raw, request_id=request["id"]):
                        return raw
            except TransportFailure:
                await self.close()
                raise
            except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
                await self.close()
                raise TransportFailure(f"Could not reach {self.url}: {e!r}") from e

    async def close(self) -> None:
        if self._ws is not None:
            await self._ws.close()
            self._ws = None

        if self._session is not None:
            await self._session.close()
            self._session = None


def build_channel(settings: Settings) -> LedgerChannel:
    match settings.connection_mode:
        case "per_request":
            return WebSocketChannel(
                url=settings.ledger_url, timeout=settings.request_timeout
            )
        case "persistent":
            return PersistentWebSocketChannel(
                url=settings.ledger_url, timeout=settings.request_timeout
            )
        case _:
            raise ValueError
