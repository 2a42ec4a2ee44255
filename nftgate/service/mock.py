"""
The mock ledger channel, used for testing.
"""

import asyncio
import json
from typing import Any, Literal

from .channel import LedgerChannel, TransportFailure

SerialKey = tuple[str, int, int]
Failure = Literal["transport", "parse"]


class MockLedger(LedgerChannel):
    """
    Serves `nft_info` and `account_nfts` from in-memory tables and records
    every request it is sent.

    Parameters
    ----------
    serials: dict[tuple[str, int, int], str]
        NFT identifiers keyed by (issuer, taxon, serial).
    owners: dict[str, str]
        Current owner keyed by NFT identifier.
    accounts: dict[str, list[dict]]
        Raw `account_nfts` entries keyed by account.
    failures: dict
        Keys (a serial key, an NFT identifier or an account) whose lookups
        break, either at the transport (`transport`) or by answering with
        something that is not JSON (`parse`).
    """

    def __init__(
        self,
        serials: dict[SerialKey, str] | None = None,
        owners: dict[str, str] | None = None,
        accounts: dict[str, list[dict[str, Any]]] | None = None,
        failures: dict[SerialKey | str, Failure] | None = None,
    ):
        self.serials = serials or {}
        self.owners = owners or {}
        self.accounts = accounts or {}
        self.failures = failures or {}
        self.requests: list[dict[str, Any]] = []
        # Event loop time at which each request arrived
        self.request_times: list[float] = []

    @property
    def owner_lookups(self) -> list[str]:
        return [
            request["nft_id"]
            for request in self.requests
            if request["command"] == "nft_info" and "nft_id" in request
        ]

    def _key(self, request: dict[str, Any]) -> SerialKey | str | None:
        match request:
            case {"command": "nft_info", "nft_id": nft_id}:
                return nft_id
            case {"command": "nft_info", "params": [params]}:
                return (params["issuer"], params["nftaxon"], params["nfserial"])
            case {"command": "account_nfts", "account": account}:
                return account
            case _:
                return None

    def _result(self, request: dict[str, Any]) -> dict[str, Any] | None:
        key = self._key(request)

        match request:
            case {"command": "nft_info", "nft_id": nft_id} if nft_id in self.owners:
                return {"nft_id": nft_id, "owner": self.owners[nft_id]}
            case {"command": "nft_info", "params": _} if key in self.serials:
                issuer, taxon, serial = key
                return {
                    "nft_id": self.serials[key],
                    "issuer": issuer,
                    "nft_taxon": taxon,
                    "nft_serial": serial,
                }
            case {"command": "account_nfts"} if key in self.accounts:
                return {"account": key, "account_nfts": self.accounts[key]}
            case _:
                return None

    async def _exchange(self, request: dict[str, Any]) -> str | bytes:
        self.requests.append(request)
        self.request_times.append(asyncio.get_running_loop().time())

        key = self._key(request)

        match self.failures.get(key):
            case "transport":
                raise TransportFailure(f"Mock transport failure for {key}")
            case "parse":
                return "<html>502 Bad Gateway</html>"

        result = self._result(request)

        if result is None:
            return json.dumps(
                {"id": request["id"], "status": "error", "error": "objectNotFound"}
            )

        return json.dumps(
            {
                "id": request["id"],
                "status": "success",
                "type": "response",
                "result": result,
            }
        )
