"""
Pydantic models for request/responses to APIs.
"""

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, Field

from nftgate.core.group import GroupData, GroupName


class IdentifierBatch(BaseModel):
    source: Literal["identifiers"] = "identifiers"
    nft_ids: list[str]


class RangeBatch(BaseModel):
    source: Literal["range"] = "range"
    issuer: str
    taxon: int
    start: int
    end: int


class CollectionBatch(BaseModel):
    source: Literal["collection"] = "collection"
    issuer: str
    taxon: int | None = None


class AddressBatch(BaseModel):
    source: Literal["addresses"] = "addresses"
    addresses: list[str]


class SnapshotBatch(BaseModel):
    source: Literal["snapshot"] = "snapshot"
    nft_group: str
    scheduled_for: datetime | None = None


NFTBatch = Annotated[
    IdentifierBatch | RangeBatch | CollectionBatch, Field(discriminator="source")
]
WalletBatch = Annotated[AddressBatch | SnapshotBatch, Field(discriminator="source")]


class NFTGroupCreationRequest(BaseModel):
    name: GroupName
    description: str = ""
    batches: list[NFTBatch]


class WalletGroupCreationRequest(BaseModel):
    name: GroupName
    description: str = ""
    batches: list[WalletBatch]


class BatchReport(BaseModel):
    """
    How many records one builder step added, out of how many were asked
    for (when that number is known up front).
    """

    source: str
    requested: int | None = None
    added: int


class GroupCreationResponse(BaseModel):
    group: GroupData
    batches: list[BatchReport]


class EligibilityResponse(BaseModel):
    group_name: str
    wallet: str
    eligible: bool
