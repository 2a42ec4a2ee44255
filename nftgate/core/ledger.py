"""
Wire models for the ledger indexing service.

Every exchange is a single JSON command answered by a single JSON
response envelope of the form ``{"id": ..., "status": ..., "result": {...}}``.
"""

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

LEDGER_INDEX = "validated"


class LedgerResponse(BaseModel):
    id: str | None = None
    status: str | None = None
    result: dict[str, Any] | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == "success" and self.result is not None


class NFTInfo(BaseModel):
    """
    The `result` of an `nft_info` command. Only the fields we consume are
    declared, the rest are kept as extras.
    """

    nft_id: str | None = None
    owner: str | None = None

    model_config = ConfigDict(extra="allow")


class AccountNFT(BaseModel):
    nft_id: str = Field(validation_alias=AliasChoices("NFTokenID", "nft_id"))
    taxon: int | None = Field(
        default=None, validation_alias=AliasChoices("NFTaxon", "NFTokenTaxon")
    )
    serial: int | None = Field(
        default=None, validation_alias=AliasChoices("Serial", "nft_serial")
    )


class AccountNFTs(BaseModel):
    account: str | None = None
    account_nfts: list[AccountNFT] = []


def nft_info_by_serial(issuer: str, taxon: int, serial: int) -> dict[str, Any]:
    """
    Look up an NFT by its compound (issuer, taxon, serial) key.
    """
    return {
        "command": "nft_info",
        "ledger_index": LEDGER_INDEX,
        "params": [{"issuer": issuer, "nftaxon": taxon, "nfserial": serial}],
    }


def nft_info_by_id(nft_id: str) -> dict[str, Any]:
    """
    Look up an NFT (and so its current owner) by its identifier.
    """
    return {
        "command": "nft_info",
        "ledger_index": LEDGER_INDEX,
        "nft_id": nft_id,
    }


def account_nfts(account: str) -> dict[str, Any]:
    """
    List the NFTs held by an account.
    """
    return {
        "command": "account_nfts",
        "account": account,
        "ledger_index": LEDGER_INDEX,
    }
